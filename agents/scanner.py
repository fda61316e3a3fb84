"""
Search Page Scanner
--------------------
Fetches one page of the store's top-sellers listing and turns the embedded
`results_html` fragment into discovered Candidates.

A row survives only if:
  - it carries a numeric `data-ds-appid`
  - its release date mentions a year in 2025–2099
  - its review tooltip reports more than MIN_REVIEW_COUNT user reviews

Markup parsing is isolated in `parse_result_row` so it can be exercised
without the network.
"""

import logging
import re
from typing import List, Optional
from urllib.parse import urlencode

from bs4 import BeautifulSoup, Tag

from config.settings import settings
from models.schemas import Candidate

logger = logging.getLogger(__name__)

YEAR_RE = re.compile(settings.RELEASE_YEAR_PATTERN)
REVIEW_COUNT_RE = re.compile(r"([0-9,]+)\s*(?:user reviews|篇用户评测)")


def build_search_url(start: int, count: int) -> str:
    params = {
        "query": "",
        "start": start,
        "count": count,
        "dynamic_data": "",
        "sort_by": "",
        "filter": "topsellers",
        "supportedlang": settings.STORE_LANGUAGE,
        "category1": settings.GAMES_CATEGORY,   # games only, no DLC/soundtracks
        "infinite": 1,
        "l": settings.STORE_LANGUAGE,
        "cc": settings.STORE_COUNTRY,
    }
    return f"{settings.STORE_BASE_URL}/search/results/?{urlencode(params)}"


def match_release_year(release_date: str) -> Optional[str]:
    """'15 Jan, 2025' / 'Q1 2026' / '2025 年' → the matched year, else None."""
    m = YEAR_RE.search(release_date or "")
    return m.group(0) if m else None


def parse_review_count(tooltip: str) -> int:
    """'95% of the 12,345 user reviews ...' → 12345. 0 when absent."""
    if not tooltip:
        return 0
    m = REVIEW_COUNT_RE.search(tooltip)
    if not m:
        return 0
    digits = m.group(1).replace(",", "")
    return int(digits) if digits else 0


def _review_tooltip(row: Tag) -> str:
    summary = row.select_one(".search_review_summary")
    if summary is not None:
        return summary.get("data-tooltip-html") or summary.get("data-store-tooltip") or ""
    score_div = row.select_one(".search_reviewscore")
    if score_div is not None:
        return score_div.get("data-store-tooltip") or ""
    return ""


def parse_result_row(row: Tag, min_reviews: int = settings.MIN_REVIEW_COUNT) -> Optional[Candidate]:
    """One `a.search_result_row` → Candidate, or None if the row is filtered out."""
    appid_attr = row.get("data-ds-appid")
    if not appid_attr:
        return None
    first_id = appid_attr.split(",")[0].strip()
    if not first_id.isdigit():
        return None

    date_el = row.select_one(".search_released")
    release_date = date_el.get_text(strip=True) if date_el else ""
    if not match_release_year(release_date):
        return None

    tooltip = _review_tooltip(row)
    review_count = parse_review_count(tooltip)
    if review_count <= min_reviews:
        return None

    title_el = row.select_one(".title")
    img_el = row.select_one("img")

    return Candidate(
        app_id=int(first_id),
        name=(title_el.get_text(strip=True) if title_el else "") or "Unknown",
        logo=(img_el.get("src") if img_el else "") or "",
        release_date=release_date,
        total_reviews=review_count,
        review_summary=tooltip.split("<br>")[0].strip() or "Unknown",
    )


def parse_results_html(html: str, min_reviews: int = settings.MIN_REVIEW_COUNT) -> List[Candidate]:
    soup = BeautifulSoup(html, "html.parser")
    found: List[Candidate] = []
    for row in soup.select("a.search_result_row"):
        try:
            candidate = parse_result_row(row, min_reviews)
        except Exception as e:
            logger.warning(f"Skipping malformed search row: {e}")
            continue
        if candidate:
            found.append(candidate)
    return found


class SearchPageScanner:
    """Scans one listing page through the relay client. Never raises."""

    def __init__(self, relay, min_reviews: int = settings.MIN_REVIEW_COUNT):
        self.relay = relay
        self.min_reviews = min_reviews

    def scan_page(self, page_index: int, page_size: int = settings.PAGE_SIZE) -> List[Candidate]:
        try:
            url = build_search_url(page_index * page_size, page_size)
            data = self.relay.fetch(url, tolerate_not_found=True)
            if not isinstance(data, dict) or not data.get("results_html"):
                return []
            found = parse_results_html(data["results_html"], self.min_reviews)
            logger.info(f"Page {page_index}: {len(found)} candidates")
            return found
        except Exception as e:
            logger.warning(f"Page {page_index} scan failed: {e}")
            return []
