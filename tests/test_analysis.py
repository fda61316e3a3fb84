"""
Summarizer, report export and game lookup tests.
Run with: python -m pytest tests/ -v
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import json
from datetime import date, datetime
from types import SimpleNamespace

import pytest

from agents.lookup import GameLookup
from agents.relay import RelayExhaustedError
from agents.summarizer import (
    SummaryError, UNPARSEABLE_VERDICT, build_prompt, parse_report, summarize,
)
from config.settings import settings
from models.schemas import AnalysisReport, Review
from utils.report import (
    format_report_text, playtime_distribution, report_filename, sentiment_split,
)


def review(text="剧情很棒", minutes=120, voted_up=True):
    return Review(recommendation_id="1", author_steamid="s", author_playtime_minutes=minutes,
                  created_at=1750000000, voted_up=voted_up, text=text)


class FakeLLM:
    """Stands in for the OpenAI client: client.chat.completions.create(...)."""

    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


REPORT_JSON = {
    "summary": "整体口碑不错",
    "positivePoints": ["美术出色", "剧情扎实"],
    "negativePoints": ["优化一般"],
    "technicalIssues": ["偶发闪退"],
    "verdict": "推荐购买",
    "sentimentScore": 82,
}


# ─── Summarizer ──────────────────────────────────────────────────────────────

class TestSummarizer:
    def test_structured_report(self):
        llm = FakeLLM(json.dumps(REPORT_JSON, ensure_ascii=False))
        report = summarize("黑神话：悟空", [review()], client=llm)

        assert report.summary == "整体口碑不错"
        assert report.positive_points == ["美术出色", "剧情扎实"]
        assert report.technical_issues == ["偶发闪退"]
        assert report.sentiment_score == 82

        call = llm.calls[0]
        assert call["model"] == settings.LLM_MODEL
        assert call["response_format"] == {"type": "json_object"}
        assert "黑神话：悟空" in call["messages"][1]["content"]

    def test_json_inside_prose_is_salvaged(self):
        text = "好的，以下是分析结果：\n" + json.dumps(REPORT_JSON) + "\n希望有帮助。"
        assert parse_report(text).verdict == "推荐购买"

    def test_unparseable_output_falls_back_to_text(self):
        report = parse_report("模型返回了一段纯文本")
        assert report.summary == "模型返回了一段纯文本"
        assert report.verdict == UNPARSEABLE_VERDICT
        assert report.sentiment_score == 50
        assert report.positive_points == []

    def test_score_is_clamped(self):
        assert parse_report('{"summary": "x", "sentimentScore": 140}').sentiment_score == 100
        assert parse_report('{"summary": "x", "sentimentScore": "bad"}').sentiment_score == 50

    def test_snake_case_keys_accepted(self):
        report = AnalysisReport.from_dict({"summary": "x", "negative_points": ["卡顿"]})
        assert report.negative_points == ["卡顿"]

    def test_backend_error_raises_summary_error(self):
        llm = FakeLLM(error=RuntimeError("quota exceeded"))
        with pytest.raises(SummaryError):
            summarize("Game", [review()], client=llm)

    def test_empty_output_raises(self):
        with pytest.raises(SummaryError):
            summarize("Game", [review()], client=FakeLLM(""))

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.setattr(settings, "LLM_API_KEY", "")
        with pytest.raises(SummaryError):
            summarize("Game", [review()])

    def test_no_reviews(self):
        with pytest.raises(ValueError):
            summarize("Game", [], client=FakeLLM("{}"))

    def test_prompt_is_bounded(self):
        reviews = [review(text="长" * 800) for _ in range(5)]
        prompt = build_prompt("Game", reviews, sample_size=3, max_chars=500)
        assert "3. " in prompt
        assert "4. " not in prompt
        assert "长" * 500 in prompt
        assert "长" * 501 not in prompt


# ─── Report export ───────────────────────────────────────────────────────────

class TestReportExport:
    @pytest.fixture
    def report(self):
        return AnalysisReport.from_dict(REPORT_JSON)

    def test_text_layout(self, report):
        text = format_report_text("山海旅人", report, generated_at=datetime(2025, 7, 1, 9, 30))
        assert text.startswith("=" * 50)
        assert "《山海旅人》Steam舆情分析报告" in text
        assert "生成时间: 2025-07-01 09:30:00" in text
        assert "【AI 综合情感评分】: 82/100" in text
        assert "+ 美术出色" in text
        assert "- 优化一般" in text
        assert "! 偶发闪退" in text
        assert text.endswith("分析工具: Steam Insight")

    def test_filename(self):
        assert report_filename("山海旅人", date(2025, 7, 1)) == "山海旅人_舆情分析报告_2025-07-01.txt"
        assert report_filename('A/B: "C"', date(2025, 7, 1)).startswith("A_B_ _C_")

    def test_aggregates(self):
        reviews = [
            review(minutes=30), review(minutes=120, voted_up=False),
            review(minutes=600), review(minutes=3000, voted_up=False), review(minutes=6000),
        ]
        assert sentiment_split(reviews) == {"positive": 3, "negative": 2}
        assert playtime_distribution(reviews) == {"0-2h": 1, "2-10h": 1, "10-50h": 1, "50h+": 2}


# ─── Game lookup ─────────────────────────────────────────────────────────────

class StubRelay:
    def __init__(self, payload):
        self.payload = payload
        self.urls = []

    def fetch(self, target_url, tolerate_not_found=False):
        self.urls.append(target_url)
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class TestGameLookup:
    def test_numeric_query_uses_details(self):
        relay = StubRelay({"2358720": {"success": True, "data": {
            "steam_appid": 2358720, "name": "黑神话：悟空", "header_image": "h.jpg",
            "release_date": {"date": "2024 年 8 月 20 日"},
            "developers": ["Game Science", "Other"], "publishers": ["Game Science"],
        }}})
        results = GameLookup(relay).search_by_name_or_id(" 2358720 ")

        assert len(results) == 1
        game = results[0]
        assert game.name == "黑神话：悟空"
        assert game.developers == ["Game Science"]
        assert game.release_date == "2024 年 8 月 20 日"
        assert "/api/appdetails" in relay.urls[0]

    def test_text_query_uses_store_search(self):
        relay = StubRelay({"total": 2, "items": [
            {"id": 1, "name": "Alpha", "tiny_image": "a.jpg"},
            {"id": 2, "name": "Beta"},
        ]})
        results = GameLookup(relay).search_by_name_or_id("wukong")
        assert [(g.app_id, g.name) for g in results] == [(1, "Alpha"), (2, "Beta")]
        assert "term=wukong" in relay.urls[0]

    def test_malformed_items_skipped_individually(self):
        relay = StubRelay({"items": [
            {"id": 10, "name": "Alpha"},
            {"id": "bundle/5", "name": "Bundle"},
            {"name": "No id"},
            "garbage",
            {"id": "12", "name": "Gamma"},
        ]})
        results = GameLookup(relay).search_games("x")
        assert [(g.app_id, g.name) for g in results] == [(10, "Alpha"), (12, "Gamma")]

    def test_blank_query(self):
        relay = StubRelay({})
        assert GameLookup(relay).search_by_name_or_id("   ") == []
        assert relay.urls == []

    def test_failures_degrade_to_empty(self):
        relay = StubRelay(RelayExhaustedError("u", ["A: x"]))
        lookup = GameLookup(relay)
        assert lookup.search_games("x") == []
        assert lookup.get_game_details(5) is None
        assert lookup.search_by_name_or_id("5") == []
