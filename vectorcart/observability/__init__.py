"""Observability module for metrics and monitoring."""

from vectorcart.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_embedding_fallback,
    track_embedding_request,
    track_llm_request,
    track_search_request,
    track_synthesis_fallback,
    track_vectorstore_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_embedding_fallback",
    "track_embedding_request",
    "track_llm_request",
    "track_search_request",
    "track_synthesis_fallback",
    "track_vectorstore_operation",
]
