"""Prometheus metrics for product search.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Embedding requests per backend and fallbacks between backends
- LLM token usage and latency
- Search result counts and scores
- Synthesis fallbacks to deterministic templates
- Vector index operation latency
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from vectorcart.logging_config import get_logger

logger = get_logger(__name__)

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# LLM Metrics
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"],  # "type" label values: prompt, completion
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total LLM requests",
    ["model", "status"],
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["backend", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["backend", "status"],
)

EMBEDDING_FALLBACK_TOTAL = Counter(
    "embedding_fallbacks_total",
    "Embeddings served by a backend other than the primary",
    ["backend"],
)

# Search Metrics
SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Number of products returned per search after score filtering",
    buckets=[0, 1, 2, 3, 5, 10, 20, 50],
)

SEARCH_TOP_SCORE = Histogram(
    "search_top_score",
    "Top similarity score per search",
    buckets=[0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0],
)

# Synthesis Metrics
SYNTHESIS_FALLBACK_TOTAL = Counter(
    "synthesis_fallbacks_total",
    "Responses built from the deterministic template instead of model output",
    ["operation", "reason"],
)

# Vector Index Metrics
VECTORSTORE_OPERATION_DURATION = Histogram(
    "vectorstore_operation_duration_seconds",
    "Vector index operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware."""
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time

        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality.

        Product ids and category names are collapsed into placeholders.
        """
        if path.startswith("/health"):
            return "/health"
        prefix = "/api/v1/products/"
        if path.startswith(prefix):
            parts = path[len(prefix) :].split("/")
            head = parts[0]
            if head in ("search", "compare", "stats"):
                return prefix + head
            if head == "trending":
                return prefix + "trending"
            if head == "category":
                return prefix + "category/{category}"
            if len(parts) > 1 and parts[1] == "recommendations":
                return prefix + "{id}/recommendations"
            return prefix + "{id}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool = True,
) -> None:
    """Track LLM request metrics.

    Args:
        model: LLM model name.
        duration: Request duration in seconds.
        prompt_tokens: Number of prompt tokens.
        completion_tokens: Number of completion tokens.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()

    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)


def track_embedding_request(
    backend: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a single embedding backend call.

    Args:
        backend: Backend name.
        duration: Request duration in seconds.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(backend=backend, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(backend=backend, status=status).inc()


def track_embedding_fallback(backend: str) -> None:
    """Count an embedding served by a non-primary backend."""
    EMBEDDING_FALLBACK_TOTAL.labels(backend=backend).inc()


def track_search_request(
    results_returned: int,
    top_score: float,
) -> None:
    """Track search result metrics.

    Args:
        results_returned: Number of hits after filtering.
        top_score: Highest similarity score.
    """
    SEARCH_RESULTS_RETURNED.observe(results_returned)
    if top_score > 0:
        SEARCH_TOP_SCORE.observe(top_score)


def track_synthesis_fallback(operation: str, reason: str) -> None:
    """Count a synthesis that fell back to its template."""
    SYNTHESIS_FALLBACK_TOTAL.labels(operation=operation, reason=reason).inc()


def track_vectorstore_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector index call duration."""
    status = "success" if success else "error"
    VECTORSTORE_OPERATION_DURATION.labels(
        operation=operation, status=status
    ).observe(duration)
