"""
Core data models for Steam Insight.
"""

from .schemas import (
    Candidate,
    Review,
    AnalysisReport,
)

__all__ = [
    "Candidate",
    "Review",
    "AnalysisReport",
]
