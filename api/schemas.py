"""
Pydantic schemas for API request/response validation.
"""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from config.settings import settings


# ─── Request Schemas ─────────────────────────────────────────────────────────

class ScanRequest(BaseModel):
    max_pages: int = Field(settings.MAX_PAGES, ge=1, le=100)
    page_size: int = Field(settings.PAGE_SIZE, ge=1, le=100)


class ReviewPayload(BaseModel):
    recommendation_id: str = ""
    author_steamid: str = ""
    author_playtime_minutes: int = Field(0, ge=0)
    created_at: int
    voted_up: bool
    text: str
    language: str = ""


class AnalyzeRequest(BaseModel):
    game_name: str = Field(..., min_length=1)
    reviews: List[ReviewPayload]


class ReportPayload(BaseModel):
    summary: str
    positive_points: List[str] = []
    negative_points: List[str] = []
    technical_issues: List[str] = []
    verdict: str = ""
    sentiment_score: int = Field(50, ge=0, le=100)


class ExportRequest(BaseModel):
    game_name: str = Field(..., min_length=1)
    report: ReportPayload


# ─── Response Schemas ────────────────────────────────────────────────────────

class CandidateResponse(BaseModel):
    app_id: int
    name: str
    logo: str
    release_date: Optional[str] = None
    total_reviews: int = 0
    review_summary: str = "Unknown"
    developer: str = ""
    developers: Optional[List[str]] = None
    publishers: Optional[List[str]] = None
    origin_score: Optional[int] = None


class ScanResponse(BaseModel):
    status: str
    message: str
    total: int
    games: List[CandidateResponse]
    progress: List[str]
    run_at: datetime


class ReviewsResponse(BaseModel):
    app_id: int
    total_fetched: int
    filtered_count: int
    reviews: List[ReviewPayload]


class HealthResponse(BaseModel):
    status: str
    version: str
    timestamp: datetime
