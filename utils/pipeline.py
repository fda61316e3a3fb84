"""
Pipeline runner — wires the scan agents together and exposes the
consumer-facing operations used by the API, dashboard and CLI.

Architecture:
  DiscoveryAgent (SearchPageScanner) → ClassificationAgent (OriginClassifier)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from agents.base import Orchestrator, ProgressCallback
from agents.classifier import OriginClassifier
from agents.discovery import ClassificationAgent, DiscoveryAgent
from agents.lookup import GameLookup
from agents.relay import RelayClient
from agents.reviews import ReviewFetcher
from agents.scanner import SearchPageScanner
from config.settings import settings
from models.schemas import Candidate, Review

logger = logging.getLogger(__name__)

SCAN_FAILED_MESSAGE = "扫描失败：无法获取热销榜数据，请稍后重试。"


class ScanError(RuntimeError):
    """The discovery scan failed before anything was verified."""


def scan(
    progress_callback: Optional[ProgressCallback] = None,
    relay=None,
    max_pages: int = settings.MAX_PAGES,
    page_size: int = settings.PAGE_SIZE,
    sleep: Callable[[float], None] = time.sleep,
) -> List[Candidate]:
    """
    Full discovery scan: top-seller pages → dedup → origin classification.

    Returns the accepted Candidates sorted by review count, descending.
    Raises ScanError when the pipeline fails with no partial result.
    """
    relay = relay or RelayClient()

    pipeline = Orchestrator([
        DiscoveryAgent(
            SearchPageScanner(relay),
            max_pages=max_pages,
            page_size=page_size,
            progress=progress_callback,
            sleep=sleep,
        ),
        ClassificationAgent(
            OriginClassifier(relay),
            progress=progress_callback,
            sleep=sleep,
        ),
    ])

    result = pipeline.execute()
    logger.info(pipeline.summary())
    if not result.success:
        raise ScanError(SCAN_FAILED_MESSAGE) from result.exception
    return result.data


def fetch_reviews(app_id: int, limit: int = settings.DEFAULT_REVIEW_LIMIT, relay=None) -> List[Review]:
    return ReviewFetcher(relay or RelayClient()).fetch_reviews(app_id, limit)


def search_by_name_or_id(query: str, relay=None) -> List[Candidate]:
    return GameLookup(relay or RelayClient()).search_by_name_or_id(query)


def get_game_details(app_id: int, relay=None) -> Optional[Candidate]:
    return GameLookup(relay or RelayClient()).get_game_details(app_id)
