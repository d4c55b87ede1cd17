"""Search orchestration module."""

from vectorcart.retrieval.orchestrator import SearchOrchestrator, popularity_score

__all__ = [
    "SearchOrchestrator",
    "popularity_score",
]
