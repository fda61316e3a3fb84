"""
Dashboard flow tests — Streamlit AppTest with the pipeline stubbed, no network.
Run with: python -m pytest tests/ -v
"""

import sys
import os
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

import calendar
from datetime import datetime

import pytest
from streamlit.testing.v1 import AppTest

from models.schemas import Candidate, Review
from utils import pipeline

APP_PATH = os.path.join(ROOT, "dashboard", "app.py")


@pytest.fixture
def fetched():
    return []


@pytest.fixture
def app(monkeypatch, fetched):
    def fake_fetch(app_id, limit):
        fetched.append(app_id)
        created = calendar.timegm(datetime(2025, 6, 1).timetuple())
        return [Review("1", "a", 120, created, True, "不错")]

    monkeypatch.setattr(pipeline, "fetch_reviews", fake_fetch)
    at = AppTest.from_file(APP_PATH, default_timeout=30)
    at.session_state["games"] = [
        Candidate(app_id=7, name="山海旅人", total_reviews=2500, origin_score=75),
    ]
    return at


def button(at, label):
    return next(b for b in at.button if b.label == label)


class TestDashboardFlow:
    def test_list_view_initially(self, app):
        app.run()
        assert not app.exception
        assert any("游戏列表" in s.value for s in app.subheader)
        assert not app.header

    def test_fetching_reviews_switches_to_game_view(self, app, fetched):
        app.run()
        button(app, "抓取评论").click().run()

        assert not app.exception
        assert fetched == [7]
        assert app.session_state["selected_game"].app_id == 7
        assert [h.value for h in app.header] == ["山海旅人"]
        assert not any("游戏列表" in s.value for s in app.subheader)

    def test_back_button_returns_to_list(self, app):
        app.run()
        button(app, "抓取评论").click().run()
        button(app, "⬅ 返回列表").click().run()

        assert app.session_state["selected_game"] is None
        assert any("游戏列表" in s.value for s in app.subheader)
