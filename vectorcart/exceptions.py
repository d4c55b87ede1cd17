"""Application exception hierarchy.

All custom exceptions inherit from VectorCartError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "VC-1000"
    CONFIGURATION_ERROR = "VC-1001"
    INVALID_INPUT = "VC-1002"

    # Embedding errors (3xxx)
    EMBEDDING_SERVICE_ERROR = "VC-3000"
    EMBEDDING_UNAVAILABLE = "VC-3001"
    MALFORMED_RESPONSE = "VC-3002"

    # Vector index errors (4xxx)
    VECTOR_STORE_ERROR = "VC-4000"
    ITEM_NOT_FOUND = "VC-4001"
    COLLECTION_NOT_FOUND = "VC-4002"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "VC-5000"
    LLM_TIMEOUT = "VC-5001"
    LLM_RATE_LIMIT = "VC-5002"
    LLM_INVALID_RESPONSE = "VC-5003"
    RESPONSE_PARSE_ERROR = "VC-5004"
    SYNTHESIS_DEGRADED = "VC-5005"

    # Search errors (6xxx)
    SEARCH_ERROR = "VC-6000"
    INSUFFICIENT_ITEMS = "VC-6001"


class VectorCartError(Exception):
    """Base exception for all VectorCart errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(VectorCartError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class InvalidInputError(VectorCartError):
    """Bad caller input: empty query, out-of-range id count, and so on."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INVALID_INPUT, details)


class EmbeddingError(VectorCartError):
    """Embedding provider error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingUnavailableError(EmbeddingError):
    """Every configured embedding provider failed."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.EMBEDDING_UNAVAILABLE, details)


class MalformedResponseError(EmbeddingError):
    """A provider answered with a shape we cannot use."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.MALFORMED_RESPONSE, details)


class VectorStoreError(VectorCartError):
    """Vector index operation error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.VECTOR_STORE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ItemNotFoundError(VectorStoreError):
    """Requested id is not present in the index."""

    def __init__(
        self,
        item_id: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.item_id = item_id
        super().__init__(
            f"Product not found: {item_id}",
            ErrorCode.ITEM_NOT_FOUND,
            {"id": item_id, **(details or {})},
        )


class LLMError(VectorCartError):
    """LLM service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class ResponseParseError(LLMError):
    """Model output did not contain a usable JSON object."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.RESPONSE_PARSE_ERROR, details)


class ModelSynthesisDegraded(VectorCartError):
    """A deterministic template replaced model output.

    Recorded and logged, never raised to callers.
    """

    def __init__(
        self,
        operation: str,
        reason: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            f"{operation} fell back to template: {reason}",
            ErrorCode.SYNTHESIS_DEGRADED,
            {"operation": operation, "reason": reason, **(details or {})},
        )


class SearchError(VectorCartError):
    """Search orchestration error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SEARCH_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class InsufficientItemsError(SearchError):
    """Fewer than two products resolved for a comparison."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INSUFFICIENT_ITEMS, details)
