"""
Report export and chart aggregates for an analyzed game.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Dict, List, Optional

from models.schemas import AnalysisReport, Review

RULE = "-" * 50
BANNER = "=" * 50

# (label, lower bound hours inclusive, upper bound hours exclusive)
PLAYTIME_BUCKETS = [
    ("0-2h", 0, 2),
    ("2-10h", 2, 10),
    ("10-50h", 10, 50),
    ("50h+", 50, None),
]


def format_report_text(
    game_name: str,
    report: AnalysisReport,
    generated_at: Optional[datetime] = None,
) -> str:
    """Plain-text report offered for download."""
    generated_at = generated_at or datetime.now()
    lines = [
        BANNER,
        f"《{game_name}》Steam舆情分析报告",
        f"生成时间: {generated_at:%Y-%m-%d %H:%M:%S}",
        BANNER,
        "",
        f"【AI 综合情感评分】: {report.sentiment_score}/100",
        f"【购买建议/最终评价】: {report.verdict}",
        "",
        RULE,
        "【舆情总结】",
        report.summary,
        "",
        RULE,
        "【核心优点 (Pros)】",
        *[f"+ {p}" for p in report.positive_points],
        "",
        RULE,
        "【主要槽点 (Cons)】",
        *[f"- {p}" for p in report.negative_points],
        "",
        RULE,
        "【技术问题/Bug反馈】",
        *[f"! {p}" for p in report.technical_issues],
        "",
        RULE,
        "数据来源: Steam 真实用户评测",
        "分析工具: Steam Insight",
    ]
    return "\n".join(lines).strip()


def report_filename(game_name: str, day: Optional[date] = None) -> str:
    day = day or date.today()
    safe_name = re.sub(r'[\\/:*?"<>|]+', "_", game_name).strip() or "game"
    return f"{safe_name}_舆情分析报告_{day.isoformat()}.txt"


def sentiment_split(reviews: List[Review]) -> Dict[str, int]:
    positive = sum(1 for r in reviews if r.voted_up)
    return {"positive": positive, "negative": len(reviews) - positive}


def playtime_distribution(reviews: List[Review]) -> Dict[str, int]:
    counts = {label: 0 for label, _, _ in PLAYTIME_BUCKETS}
    for r in reviews:
        hours = r.playtime_hours
        for label, low, high in PLAYTIME_BUCKETS:
            if hours >= low and (high is None or hours < high):
                counts[label] += 1
                break
    return counts
