"""
Review Fetcher & Filter
------------------------
Pulls a product's review feed page by page (cursor continuation) and lets
the caller narrow it down by author playtime and creation date.

Fetching is all-or-nothing: if the relays give out on any page, the whole
call fails and pages already fetched are dropped.
"""

import calendar
import logging
import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List
from urllib.parse import quote

from config.settings import settings
from models.schemas import Review

logger = logging.getLogger(__name__)

REVIEW_FETCH_FAILED_MESSAGE = "无法抓取评论数据，请检查网络或Steam服务状态。"
UNBOUNDED_DAY_RANGE = "9223372036854775807"
SECONDS_PER_DAY = 86400


class ReviewFetchError(RuntimeError):
    """The review feed could not be fetched."""


def build_reviews_url(app_id: int, cursor: str, page_size: int) -> str:
    return (
        f"{settings.STORE_BASE_URL}/appreviews/{app_id}"
        f"?json=1&cursor={quote(cursor, safe='')}"
        f"&language={settings.STORE_LANGUAGE}&day_range={UNBOUNDED_DAY_RANGE}"
        f"&num_per_page={page_size}&review_type=all&purchase_type=all"
    )


class ReviewFetcher:
    def __init__(self, relay, page_size: int = settings.REVIEW_PAGE_SIZE):
        self.relay = relay
        self.page_size = page_size

    def fetch_reviews(self, app_id: int, limit: int = 500) -> List[Review]:
        """
        Fetch up to `limit` reviews (the last page may overshoot it).

        At most ceil(limit / page_size) requests are made, whatever the
        cursor does. Stops early on an empty page or `success != 1`.
        """
        reviews: List[Review] = []
        cursor = "*"
        max_batches = math.ceil(limit / self.page_size)

        try:
            for batch in range(max_batches):
                data = self.relay.fetch(build_reviews_url(app_id, cursor, self.page_size))

                if not isinstance(data, dict) or data.get("success") != 1 or not data.get("reviews"):
                    logger.info(f"App {app_id}: review feed exhausted after {batch} pages")
                    break

                reviews.extend(Review.from_api(r) for r in data["reviews"])
                cursor = data.get("cursor") or cursor

                if len(reviews) >= limit:
                    break
        except Exception as e:
            logger.error(f"Error fetching reviews for {app_id}: {e}")
            raise ReviewFetchError(REVIEW_FETCH_FAILED_MESSAGE) from e

        logger.info(f"App {app_id}: fetched {len(reviews)} reviews")
        return reviews


# ─── Filtering ──────────────────────────────────────────────────────────────


@dataclass
class FilterCriteria:
    """Inclusive playtime bounds (hours) and inclusive calendar-day bounds."""
    min_playtime_hours: float = 0
    max_playtime_hours: float = settings.DEFAULT_MAX_PLAYTIME_HOURS
    start_date: date = field(
        default_factory=lambda: date.fromisoformat(settings.DEFAULT_FILTER_START_DATE)
    )
    end_date: date = field(default_factory=date.today)

    @property
    def start_ts(self) -> int:
        return calendar.timegm(self.start_date.timetuple())

    @property
    def end_ts(self) -> int:
        # end of the end day
        return calendar.timegm(self.end_date.timetuple()) + SECONDS_PER_DAY

    def matches(self, review: Review) -> bool:
        playtime_ok = self.min_playtime_hours <= review.playtime_hours <= self.max_playtime_hours
        date_ok = self.start_ts <= review.created_at <= self.end_ts
        return playtime_ok and date_ok


def filter_reviews(reviews: Iterable[Review], criteria: FilterCriteria) -> List[Review]:
    return [r for r in reviews if criteria.matches(r)]
