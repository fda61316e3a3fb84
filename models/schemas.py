"""
Core data models / schemas for Steam Insight.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any


# ---------------------------------------------------------------------------
# Discovery
# ---------------------------------------------------------------------------

@dataclass
class Candidate:
    """A store product. Discovered from a listing first, classified later."""
    app_id: int
    name: str
    logo: str = ""
    release_date: Optional[str] = None      # free text, only year-matched
    total_reviews: int = 0                  # approximate, from the tooltip
    review_summary: str = "Unknown"         # e.g. "Very Positive"
    # filled by OriginClassifier
    developers: Optional[List[str]] = None
    publishers: Optional[List[str]] = None
    origin_score: Optional[int] = None

    @property
    def developer(self) -> str:
        return ", ".join(self.developers or [])

    @property
    def is_classified(self) -> bool:
        return self.origin_score is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["developer"] = self.developer
        return data


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------

@dataclass
class Review:
    recommendation_id: str
    author_steamid: str
    author_playtime_minutes: int            # playtime_forever
    created_at: int                         # epoch seconds
    voted_up: bool
    text: str
    language: str = ""
    playtime_at_review_minutes: int = 0
    votes_up: int = 0
    votes_funny: int = 0
    comment_count: int = 0
    steam_purchase: bool = False
    received_for_free: bool = False
    written_during_early_access: bool = False

    @property
    def playtime_hours(self) -> float:
        return self.author_playtime_minutes / 60

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Review":
        """Build a Review from one element of the appreviews `reviews` list."""
        author = raw.get("author") or {}
        return cls(
            recommendation_id=str(raw.get("recommendationid", "")),
            author_steamid=str(author.get("steamid", "")),
            author_playtime_minutes=max(0, int(author.get("playtime_forever") or 0)),
            playtime_at_review_minutes=max(0, int(author.get("playtime_at_review") or 0)),
            created_at=int(raw.get("timestamp_created") or 0),
            voted_up=bool(raw.get("voted_up")),
            text=raw.get("review") or "",
            language=raw.get("language") or "",
            votes_up=int(raw.get("votes_up") or 0),
            votes_funny=int(raw.get("votes_funny") or 0),
            comment_count=int(raw.get("comment_count") or 0),
            steam_purchase=bool(raw.get("steam_purchase")),
            received_for_free=bool(raw.get("received_for_free")),
            written_during_early_access=bool(raw.get("written_during_early_access")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Analysis
# ---------------------------------------------------------------------------

@dataclass
class AnalysisReport:
    summary: str
    positive_points: List[str] = field(default_factory=list)
    negative_points: List[str] = field(default_factory=list)
    technical_issues: List[str] = field(default_factory=list)
    verdict: str = ""
    sentiment_score: int = 50               # 0–100

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisReport":
        """Accepts the camelCase LLM contract as well as snake_case keys."""
        def pick(camel: str, snake: str, default):
            if camel in data:
                return data[camel]
            return data.get(snake, default)

        def as_list(value) -> List[str]:
            if not value:
                return []
            if isinstance(value, str):
                return [value]
            return [str(v) for v in value]

        try:
            score = int(round(float(pick("sentimentScore", "sentiment_score", 50))))
        except (TypeError, ValueError):
            score = 50

        return cls(
            summary=str(data.get("summary") or ""),
            positive_points=as_list(pick("positivePoints", "positive_points", [])),
            negative_points=as_list(pick("negativePoints", "negative_points", [])),
            technical_issues=as_list(pick("technicalIssues", "technical_issues", [])),
            verdict=str(data.get("verdict") or ""),
            sentiment_score=min(100, max(0, score)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
