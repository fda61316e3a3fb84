"""
Scan Agents
------------
The two phases of a discovery scan, run back to back by the Orchestrator:

  DiscoveryAgent       listing pages → deduplicated Candidates
  ClassificationAgent  Candidates    → domestic Candidates, most reviewed first

Listing pages are cheap, detail fetches are not, so each phase bounds its
own concurrency: pages go out PAGE_CONCURRENCY at a time, detail lookups
CLASSIFY_CHUNK_SIZE at a time. Every group is fanned out, joined, and
followed by a short pause before the next one starts. The relays are free
services with unstated rate limits; small fixed widths keep them happy.
"""

import time
from typing import Callable, List, Optional

from agents.base import Agent, ProgressCallback, chunked, fan_out
from agents.classifier import OriginClassifier
from agents.scanner import SearchPageScanner
from config.settings import settings
from models.schemas import Candidate


def sort_by_reviews(candidates: List[Candidate]) -> List[Candidate]:
    return sorted(candidates, key=lambda c: c.total_reviews or 0, reverse=True)


class DiscoveryAgent(Agent):
    """
    Phase 1: Top-seller listing scan

    Input:  ignored
    Output: List[Candidate]  (unique app_id, first-seen order)
    """

    def __init__(
        self,
        scanner: SearchPageScanner,
        max_pages: int = settings.MAX_PAGES,
        page_size: int = settings.PAGE_SIZE,
        concurrency: int = settings.PAGE_CONCURRENCY,
        delay_seconds: float = settings.PAGE_GROUP_DELAY_SECONDS,
        progress: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(name="DiscoveryAgent", progress=progress)
        self.scanner = scanner
        self.max_pages = max_pages
        self.page_size = page_size
        self.concurrency = concurrency
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def run(self, _data=None) -> List[Candidate]:
        candidates: List[Candidate] = []
        seen = set()

        for group in chunked(range(self.max_pages), self.concurrency):
            self.report(
                f"正在高速扫描热销榜 ({group[0] + 1} - {group[-1] + 1} / {self.max_pages} 页)..."
            )
            pages = fan_out(lambda p: self.scanner.scan_page(p, self.page_size), group)

            for page in pages:
                for candidate in page:
                    if candidate.app_id not in seen:
                        seen.add(candidate.app_id)
                        candidates.append(candidate)

            self._sleep(self.delay_seconds)

        self.logger.info(f"Discovered {len(candidates)} unique candidates")
        return candidates


class ClassificationAgent(Agent):
    """
    Phase 2: Domestic origin verification

    Input:  List[Candidate]
    Output: List[Candidate]  (accepted only, sorted by total_reviews desc)

    If something breaks mid-way, whatever was already accepted is returned;
    with nothing accepted yet the error propagates.
    """

    def __init__(
        self,
        classifier: OriginClassifier,
        chunk_size: int = settings.CLASSIFY_CHUNK_SIZE,
        delay_seconds: float = settings.CLASSIFY_CHUNK_DELAY_SECONDS,
        progress: Optional[ProgressCallback] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(name="ClassificationAgent", progress=progress)
        self.classifier = classifier
        self.chunk_size = chunk_size
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def run(self, candidates: List[Candidate]) -> List[Candidate]:
        validated: List[Candidate] = []
        total = len(candidates)
        self.report(f"扫描完成，正在验证 {total} 款游戏的国产身份...")

        try:
            for start in range(0, total, self.chunk_size):
                chunk = candidates[start:start + self.chunk_size]
                self.report(f"深度验证中: {min(start + self.chunk_size, total)} / {total} ...")

                for result in fan_out(self.classifier.classify, chunk):
                    if result is not None:
                        validated.append(result)

                self._sleep(self.delay_seconds)
        except Exception as e:
            if not validated:
                raise
            self.logger.warning(
                f"Classification interrupted ({e}); returning {len(validated)} partial results"
            )

        self.logger.info(f"{len(validated)} / {total} candidates verified as domestic")
        return sort_by_reviews(validated)
