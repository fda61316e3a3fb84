"""
Review Summarizer
------------------
Sends a bounded sample of review text to an LLM and returns a structured
AnalysisReport.

The backend is any OpenAI-compatible chat-completions endpoint (Gemini's
compatibility endpoint by default). The model is asked for strict JSON;
when it answers with something else the parser tries to salvage a JSON
object from the text, and failing that returns the raw text as the summary.
"""

import json
import logging
import re
from typing import Any, List, Optional

from openai import OpenAI

from config.settings import settings
from models.schemas import AnalysisReport, Review

logger = logging.getLogger(__name__)

SUMMARY_FAILED_MESSAGE = "AI 分析请求失败，请稍后重试。"
UNPARSEABLE_VERDICT = "无法解析模型输出为 JSON，请检查模型响应"
JSON_BLOCK_RE = re.compile(r"\{[\s\S]*\}")

SYSTEM_PROMPT = "你是一名严谨的游戏舆情分析师，只输出严格的 JSON。"

INSTRUCTION_TEMPLATE = """请基于下面的游戏评论集合，生成一个 JSON 对象，结构为:
{{
  "summary": string,
  "positivePoints": string[],
  "negativePoints": string[],
  "technicalIssues": string[],
  "verdict": string,
  "sentimentScore": number  // 0-100
}}

说明：
- 只返回严格的 JSON（不要额外文本或注释）。
- 按重点提炼要点，数组内每项短小（不超过20字）。
- sentimentScore 表示整体情绪（100 非常正面，0 非常负面）。

游戏名：{game_name}
评论样本：
{sample}"""


class SummaryError(RuntimeError):
    """The LLM backend could not produce a report."""


def build_prompt(
    game_name: str,
    reviews: List[Review],
    sample_size: int = settings.SUMMARY_SAMPLE_SIZE,
    max_chars: int = settings.MAX_REVIEW_CHARS,
) -> str:
    lines = [
        f"{i}. {r.text.strip()[:max_chars]}"
        for i, r in enumerate(reviews[:sample_size], 1)
    ]
    return INSTRUCTION_TEMPLATE.format(game_name=game_name, sample="\n".join(lines))


def parse_report(output_text: str) -> AnalysisReport:
    parsed: Optional[Any] = None
    try:
        parsed = json.loads(output_text)
    except (TypeError, ValueError):
        m = JSON_BLOCK_RE.search(output_text or "")
        if m:
            try:
                parsed = json.loads(m.group(0))
            except ValueError:
                parsed = None

    if not isinstance(parsed, dict):
        logger.warning("LLM output is not a JSON object; falling back to raw text")
        return AnalysisReport(
            summary=(output_text or "")[:2000],
            verdict=UNPARSEABLE_VERDICT,
            sentiment_score=50,
        )
    return AnalysisReport.from_dict(parsed)


def get_client() -> OpenAI:
    """OpenAI client pointed at the configured compatible endpoint."""
    return OpenAI(api_key=settings.LLM_API_KEY, base_url=settings.LLM_BASE_URL)


def summarize(game_name: str, reviews: List[Review], client: Optional[OpenAI] = None) -> AnalysisReport:
    if not reviews:
        raise ValueError("No reviews to analyze.")

    try:
        if client is None:
            if not settings.LLM_API_KEY:
                raise SummaryError("LLM_API_KEY missing")
            client = get_client()

        response = client.chat.completions.create(
            model=settings.LLM_MODEL,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(game_name, reviews)},
            ],
            temperature=settings.LLM_TEMPERATURE,
            response_format={"type": "json_object"},
        )
        output_text = response.choices[0].message.content
    except Exception as e:
        logger.error(f"Analysis request failed for '{game_name}': {e}")
        raise SummaryError(SUMMARY_FAILED_MESSAGE) from e

    if not output_text:
        raise SummaryError(SUMMARY_FAILED_MESSAGE)
    return parse_report(output_text)
