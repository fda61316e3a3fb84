from .base import Agent, AgentResult, Orchestrator
from .relay import RelayClient, RelayExhaustedError
from .scanner import SearchPageScanner
from .classifier import OriginClassifier
from .discovery import DiscoveryAgent, ClassificationAgent
from .reviews import ReviewFetcher, ReviewFetchError, FilterCriteria, filter_reviews
from .lookup import GameLookup

__all__ = [
    "Agent", "AgentResult", "Orchestrator",
    "RelayClient", "RelayExhaustedError",
    "SearchPageScanner", "OriginClassifier",
    "DiscoveryAgent", "ClassificationAgent",
    "ReviewFetcher", "ReviewFetchError", "FilterCriteria", "filter_reviews",
    "GameLookup",
]
