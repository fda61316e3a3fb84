"""
Relay Client
-------------
The storefront refuses cross-origin browser requests, so every store call is
routed through free third-party CORS relays. Each relay embeds the target
URL differently and wraps the upstream body differently; a RelayStrategy
hides both. RelayClient tries the strategies in order, once each, and only
fails when every one of them has failed.

Supported relays (tried in this order):
  - AllOrigins  (JSON envelope: {contents, status: {http_code}})
  - CorsProxy   (raw upstream body)
  - CodeTabs    (raw upstream body)
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence
from urllib.parse import quote

import requests

from config.settings import settings

logger = logging.getLogger(__name__)

RELAY_EXHAUSTED_MESSAGE = "网络连接失败：所有代理服务均无响应，请稍后重试。"


# ─── Errors ─────────────────────────────────────────────────────────────────


class RelayError(Exception):
    """One relay failed for one URL."""


class RelayExhaustedError(RuntimeError):
    """Every configured relay failed for one URL."""

    def __init__(self, target_url: str, reasons: List[str]):
        self.target_url = target_url
        self.reasons = list(reasons)
        super().__init__(f"{RELAY_EXHAUSTED_MESSAGE} ({'; '.join(self.reasons)})")


# ─── Helpers ────────────────────────────────────────────────────────────────


def add_cache_buster(url: str, timestamp_ms: int) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}_t={timestamp_ms}"


def decode_payload(text: str) -> Any:
    """Parsed JSON if the payload is JSON, else the raw text (HTML fragments)."""
    try:
        return json.loads(text)
    except (TypeError, ValueError):
        return text


# ─── Strategies ─────────────────────────────────────────────────────────────


class RelayStrategy(ABC):
    name: str = "Relay"

    @abstractmethod
    def build_url(self, target_url: str) -> str:
        raise NotImplementedError

    @abstractmethod
    def unwrap(self, response: requests.Response, tolerate_not_found: bool) -> Any:
        raise NotImplementedError

    def attempt(
        self, session: requests.Session, target_url: str, tolerate_not_found: bool = False
    ) -> Any:
        """Single try through this relay. Raises RelayError on any failure."""
        try:
            response = session.get(self.build_url(target_url), timeout=settings.REQUEST_TIMEOUT)
        except requests.RequestException as e:
            raise RelayError(str(e)) from e
        if not response.ok:
            raise RelayError(f"Status {response.status_code}")
        return self.unwrap(response, tolerate_not_found)

    def __repr__(self):
        return f"<RelayStrategy: {self.name}>"


class AllOriginsRelay(RelayStrategy):
    name = "AllOrigins"

    def build_url(self, target_url: str) -> str:
        return f"https://api.allorigins.win/get?url={quote(target_url, safe='')}"

    def unwrap(self, response: requests.Response, tolerate_not_found: bool) -> Any:
        try:
            envelope = response.json()
        except ValueError as e:
            raise RelayError("Invalid envelope") from e
        if not isinstance(envelope, dict):
            raise RelayError("Invalid envelope")

        status = envelope.get("status") or {}
        if not isinstance(status, dict):
            raise RelayError("Invalid envelope")
        http_code = status.get("http_code")
        contents = envelope.get("contents")
        if http_code and http_code != 200:
            if http_code != 404 or not tolerate_not_found:
                raise RelayError(f"Upstream error: {http_code}")
            if not contents:
                return None
        if not contents:
            raise RelayError("Empty response content")
        return decode_payload(contents)


class RawBodyRelay(RelayStrategy):
    """Relays that stream the upstream body back untouched."""

    prefix: str = ""

    def build_url(self, target_url: str) -> str:
        return f"{self.prefix}{quote(target_url, safe='')}"

    def unwrap(self, response: requests.Response, tolerate_not_found: bool) -> Any:
        return decode_payload(response.text)


class CorsProxyRelay(RawBodyRelay):
    name = "CorsProxy"
    prefix = "https://corsproxy.io/?"


class CodeTabsRelay(RawBodyRelay):
    name = "CodeTabs"
    prefix = "https://api.codetabs.com/v1/proxy?quest="


DEFAULT_STRATEGIES = (AllOriginsRelay, CorsProxyRelay, CodeTabsRelay)


# ─── Client ─────────────────────────────────────────────────────────────────


class RelayClient:
    """Ordered fallback chain over RelayStrategy instances."""

    def __init__(
        self,
        strategies: Optional[Sequence[RelayStrategy]] = None,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.strategies = list(strategies) if strategies is not None else [
            cls() for cls in DEFAULT_STRATEGIES
        ]
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": settings.USER_AGENT})
        self._clock = clock

    def fetch(self, target_url: str, tolerate_not_found: bool = False) -> Any:
        url = add_cache_buster(target_url, int(self._clock() * 1000))
        reasons: List[str] = []

        for strategy in self.strategies:
            try:
                return strategy.attempt(self.session, url, tolerate_not_found)
            except RelayError as e:
                logger.debug(f"{strategy.name} failed for {target_url}: {e}")
                reasons.append(f"{strategy.name}: {e}")

        logger.error(f"All relays failed for {target_url}: {reasons}")
        raise RelayExhaustedError(target_url, reasons)
