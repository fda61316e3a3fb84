"""
Relay client tests — fake HTTP session, no network.
Run with: python -m pytest tests/ -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
from urllib.parse import unquote

import pytest
import requests

from agents.relay import (
    AllOriginsRelay, CodeTabsRelay, CorsProxyRelay, RelayClient, RelayExhaustedError,
    RELAY_EXHAUSTED_MESSAGE, add_cache_buster, decode_payload,
)

TARGET = "https://store.steampowered.com/api/appdetails?appids=10"


class FakeResponse:
    def __init__(self, status_code=200, body=""):
        self.status_code = status_code
        self.text = body if isinstance(body, str) else json.dumps(body)

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return json.loads(self.text)


class FakeSession:
    """Answers by relay host; records requested URLs."""

    def __init__(self, **by_host):
        self.by_host = by_host
        self.headers = {}
        self.requested = []

    def get(self, url, timeout=None):
        self.requested.append(url)
        for host, answer in self.by_host.items():
            if host in url:
                if isinstance(answer, Exception):
                    raise answer
                return answer
        raise AssertionError(f"unexpected url {url}")


def envelope(contents, http_code=200):
    return FakeResponse(200, {"contents": contents, "status": {"http_code": http_code}})


def client(session):
    return RelayClient(session=session, clock=lambda: 1700000000.0)


class TestRelayClient:
    def test_first_relay_wins(self):
        session = FakeSession(allorigins=envelope('{"10": {"success": true}}'))
        assert client(session).fetch(TARGET) == {"10": {"success": True}}
        assert len(session.requested) == 1

    def test_falls_back_after_http_500(self):
        session = FakeSession(
            allorigins=FakeResponse(500, "oops"),
            corsproxy=FakeResponse(200, {"success": 1, "results_html": "<a></a>"}),
        )
        result = client(session).fetch(TARGET)
        assert result == {"success": 1, "results_html": "<a></a>"}
        assert len(session.requested) == 2

    def test_all_relays_fail(self):
        session = FakeSession(
            allorigins=FakeResponse(503),
            corsproxy=requests.ConnectionError("connection refused"),
            codetabs=FakeResponse(429),
        )
        with pytest.raises(RelayExhaustedError) as exc:
            client(session).fetch(TARGET)

        err = exc.value
        assert len(err.reasons) == 3
        assert err.reasons[0] == "AllOrigins: Status 503"
        assert err.reasons[1].startswith("CorsProxy: ")
        assert err.reasons[2].startswith("CodeTabs: ")
        assert str(err).startswith(RELAY_EXHAUSTED_MESSAGE)
        assert err.target_url == TARGET

    def test_strategies_tried_once_each_in_order(self):
        session = FakeSession(
            allorigins=FakeResponse(500),
            corsproxy=FakeResponse(500),
            codetabs=FakeResponse(500),
        )
        with pytest.raises(RelayExhaustedError):
            client(session).fetch(TARGET)
        hosts = [u.split("/")[2] for u in session.requested]
        assert hosts == ["api.allorigins.win", "corsproxy.io", "api.codetabs.com"]

    def test_cache_buster_sent_to_relay(self):
        session = FakeSession(corsproxy=FakeResponse(200, "{}"))
        RelayClient(strategies=[CorsProxyRelay()], session=session,
                    clock=lambda: 1700000000.5).fetch(TARGET)
        assert unquote(session.requested[0]) == (
            "https://corsproxy.io/?" + TARGET + "&_t=1700000000500"
        )

    def test_user_agent_header(self):
        session = FakeSession()
        client(session)
        assert "User-Agent" in session.headers

    def test_non_json_body_returned_as_text(self):
        session = FakeSession(codetabs=FakeResponse(200, "<div>rows</div>"))
        result = RelayClient(strategies=[CodeTabsRelay()], session=session).fetch(TARGET)
        assert result == "<div>rows</div>"


class TestAllOriginsEnvelope:
    def test_upstream_error_fails_relay(self):
        session = FakeSession(
            allorigins=envelope("", http_code=502),
            corsproxy=FakeResponse(200, {"ok": True}),
        )
        assert client(session).fetch(TARGET) == {"ok": True}

    def test_not_found_tolerated_when_requested(self):
        session = FakeSession(allorigins=envelope("", http_code=404))
        assert client(session).fetch(TARGET, tolerate_not_found=True) is None
        assert len(session.requested) == 1

    def test_not_found_with_body_still_decoded(self):
        session = FakeSession(allorigins=envelope('{"results_html": ""}', http_code=404))
        assert client(session).fetch(TARGET, tolerate_not_found=True) == {"results_html": ""}

    def test_not_found_fails_by_default(self):
        session = FakeSession(
            allorigins=envelope("", http_code=404),
            corsproxy=FakeResponse(404),
            codetabs=FakeResponse(404),
        )
        with pytest.raises(RelayExhaustedError) as exc:
            client(session).fetch(TARGET)
        assert exc.value.reasons[0] == "AllOrigins: Upstream error: 404"

    def test_empty_contents_fails_relay(self):
        session = FakeSession(
            allorigins=envelope(None),
            corsproxy=FakeResponse(200, "[]"),
        )
        assert client(session).fetch(TARGET) == []

    def test_invalid_envelope(self):
        session = FakeSession(
            allorigins=FakeResponse(200, "not json"),
            corsproxy=FakeResponse(200, "{}"),
        )
        assert client(session).fetch(TARGET) == {}

    def test_malformed_status_falls_through(self):
        session = FakeSession(
            allorigins=FakeResponse(200, {"contents": "{}", "status": "ok"}),
            corsproxy=FakeResponse(200, {"success": 1}),
        )
        assert client(session).fetch(TARGET) == {"success": 1}
        assert len(session.requested) == 2

    def test_malformed_status_counts_as_relay_failure(self):
        session = FakeSession(
            allorigins=FakeResponse(200, {"contents": "{}", "status": ["ok"]}),
            corsproxy=FakeResponse(500),
            codetabs=FakeResponse(500),
        )
        with pytest.raises(RelayExhaustedError) as exc:
            client(session).fetch(TARGET)
        assert exc.value.reasons[0] == "AllOrigins: Invalid envelope"


class TestHelpers:
    def test_cache_buster_separator(self):
        assert add_cache_buster("https://x/a", 5) == "https://x/a?_t=5"
        assert add_cache_buster("https://x/a?b=1", 5) == "https://x/a?b=1&_t=5"

    def test_relay_urls_encode_target(self):
        assert AllOriginsRelay().build_url("https://a/b?c=1&d=2") == (
            "https://api.allorigins.win/get?url=https%3A%2F%2Fa%2Fb%3Fc%3D1%26d%3D2"
        )
        assert CodeTabsRelay().build_url("https://a/b").startswith(
            "https://api.codetabs.com/v1/proxy?quest=https%3A"
        )

    def test_decode_payload(self):
        assert decode_payload('{"a": 1}') == {"a": 1}
        assert decode_payload("<html>") == "<html>"
