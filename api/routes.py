"""
FastAPI Route Handlers
Steam Insight — Domestic Game Review Intelligence
"""

import logging
from datetime import date, datetime, timezone
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import PlainTextResponse

from api.schemas import (
    ScanRequest, ScanResponse, CandidateResponse, ReviewsResponse,
    ReviewPayload, AnalyzeRequest, ReportPayload, ExportRequest, HealthResponse,
)
from agents.reviews import FilterCriteria, ReviewFetchError, filter_reviews
from agents.summarizer import SummaryError, summarize
from config.settings import settings
from models.schemas import AnalysisReport, Review
from utils import pipeline
from utils.report import format_report_text, report_filename

logger = logging.getLogger(__name__)

router = APIRouter()


def _review_fields(review: Review) -> dict:
    return {k: v for k, v in review.to_dict().items() if k in ReviewPayload.model_fields}


# ─── Health ──────────────────────────────────────────────────────────────────

@router.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    return HealthResponse(
        status="ok",
        version=settings.APP_VERSION,
        timestamp=datetime.now(timezone.utc),
    )


# ─── Scan ────────────────────────────────────────────────────────────────────

@router.post("/scan", response_model=ScanResponse, tags=["Scan"])
def run_scan(request: Optional[ScanRequest] = None):
    """
    Discover domestic titles:
    Top-seller pages → dedup → origin classification → ranked by review count
    """
    request = request or ScanRequest()
    progress: List[str] = []

    try:
        games = pipeline.scan(
            progress_callback=progress.append,
            max_pages=request.max_pages,
            page_size=request.page_size,
        )
    except pipeline.ScanError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return ScanResponse(
        status="success",
        message=f"Scan complete. {len(games)} domestic games identified.",
        total=len(games),
        games=[CandidateResponse(**g.to_dict()) for g in games],
        progress=progress,
        run_at=datetime.now(timezone.utc),
    )


# ─── Games ───────────────────────────────────────────────────────────────────

@router.get("/games/search", response_model=List[CandidateResponse], tags=["Games"])
def search_games(q: str = Query(..., min_length=1)):
    """Search by name, or look up directly when the query is an AppID."""
    return [CandidateResponse(**g.to_dict()) for g in pipeline.search_by_name_or_id(q)]


@router.get("/games/{app_id}", response_model=CandidateResponse, tags=["Games"])
def get_game(app_id: int):
    game = pipeline.get_game_details(app_id)
    if game is None:
        raise HTTPException(status_code=404, detail="未找到该 App ID 对应的游戏。")
    return CandidateResponse(**game.to_dict())


@router.get("/games/{app_id}/reviews", response_model=ReviewsResponse, tags=["Reviews"])
def get_reviews(
    app_id: int,
    limit: int = Query(settings.DEFAULT_REVIEW_LIMIT, ge=1, le=10000),
    min_playtime_hours: float = Query(0, ge=0),
    max_playtime_hours: float = Query(settings.DEFAULT_MAX_PLAYTIME_HOURS, ge=0),
    start_date: date = Query(date.fromisoformat(settings.DEFAULT_FILTER_START_DATE)),
    end_date: Optional[date] = None,
):
    """Fetch the review feed and apply playtime/date filters."""
    try:
        reviews = pipeline.fetch_reviews(app_id, limit)
    except ReviewFetchError as e:
        raise HTTPException(status_code=502, detail=str(e))

    criteria = FilterCriteria(
        min_playtime_hours=min_playtime_hours,
        max_playtime_hours=max_playtime_hours,
        start_date=start_date,
        end_date=end_date or date.today(),
    )
    filtered = filter_reviews(reviews, criteria)

    return ReviewsResponse(
        app_id=app_id,
        total_fetched=len(reviews),
        filtered_count=len(filtered),
        reviews=[ReviewPayload(**_review_fields(r)) for r in filtered],
    )


# ─── Analysis ────────────────────────────────────────────────────────────────

@router.post("/analyze", response_model=ReportPayload, tags=["Analysis"])
def analyze(request: AnalyzeRequest):
    if not request.reviews:
        raise HTTPException(status_code=400, detail="At least one review is required.")

    reviews = [Review(**r.model_dump()) for r in request.reviews]
    try:
        report = summarize(request.game_name, reviews)
    except SummaryError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ReportPayload(**report.to_dict())


@router.post("/report", response_class=PlainTextResponse, tags=["Analysis"])
def export_report(request: ExportRequest):
    """Render a report as the downloadable text file."""
    report = AnalysisReport(**request.report.model_dump())
    filename = report_filename(request.game_name)
    return PlainTextResponse(
        format_report_text(request.game_name, report),
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
    )
