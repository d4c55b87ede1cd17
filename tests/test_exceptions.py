"""Tests for application exceptions."""

import pytest

from vectorcart.exceptions import (
    ConfigurationError,
    EmbeddingError,
    EmbeddingUnavailableError,
    ErrorCode,
    InsufficientItemsError,
    InvalidInputError,
    ItemNotFoundError,
    LLMError,
    MalformedResponseError,
    ModelSynthesisDegraded,
    ResponseParseError,
    SearchError,
    VectorCartError,
    VectorStoreError,
)


class TestErrorCode:
    """Tests for error codes."""

    def test_error_code_format(self) -> None:
        """Error codes follow VC-XXXX format."""
        for code in ErrorCode:
            assert code.value.startswith("VC-")
            assert len(code.value) == 7

    def test_error_code_uniqueness(self) -> None:
        """All error codes are unique."""
        codes = [code.value for code in ErrorCode]
        assert len(codes) == len(set(codes))


class TestVectorCartError:
    """Tests for base exception."""

    def test_basic_exception(self) -> None:
        """Base exception stores message and code."""
        error = VectorCartError("Something went wrong")
        assert error.message == "Something went wrong"
        assert error.code == ErrorCode.INTERNAL_ERROR
        assert error.details == {}
        assert str(error) == "Something went wrong"

    def test_to_dict(self) -> None:
        """Exception converts to API response dict."""
        error = VectorCartError(
            "Something went wrong",
            details={"trace_id": "abc123"},
        )

        assert error.to_dict() == {
            "error": {
                "code": "VC-1000",
                "message": "Something went wrong",
                "details": {"trace_id": "abc123"},
            }
        }


@pytest.mark.parametrize(
    ("error", "code", "parent"),
    [
        (ConfigurationError("x"), ErrorCode.CONFIGURATION_ERROR, VectorCartError),
        (InvalidInputError("x"), ErrorCode.INVALID_INPUT, VectorCartError),
        (EmbeddingError("x"), ErrorCode.EMBEDDING_SERVICE_ERROR, VectorCartError),
        (EmbeddingUnavailableError("x"), ErrorCode.EMBEDDING_UNAVAILABLE, EmbeddingError),
        (MalformedResponseError("x"), ErrorCode.MALFORMED_RESPONSE, EmbeddingError),
        (VectorStoreError("x"), ErrorCode.VECTOR_STORE_ERROR, VectorCartError),
        (ItemNotFoundError("x"), ErrorCode.ITEM_NOT_FOUND, VectorStoreError),
        (LLMError("x"), ErrorCode.LLM_SERVICE_ERROR, VectorCartError),
        (ResponseParseError("x"), ErrorCode.RESPONSE_PARSE_ERROR, LLMError),
        (SearchError("x"), ErrorCode.SEARCH_ERROR, VectorCartError),
        (InsufficientItemsError("x"), ErrorCode.INSUFFICIENT_ITEMS, SearchError),
    ],
)
def test_default_codes(error: VectorCartError, code: ErrorCode, parent: type) -> None:
    """Each exception carries its code and parent class."""
    assert error.code == code
    assert isinstance(error, parent)


class TestItemNotFoundError:
    def test_message_and_details(self) -> None:
        error = ItemNotFoundError("sku-1", details={"collection": "products"})
        assert error.item_id == "sku-1"
        assert error.message == "Product not found: sku-1"
        assert error.details == {"id": "sku-1", "collection": "products"}


class TestModelSynthesisDegraded:
    """Tests for the synthesis fallback record."""

    def test_fields(self) -> None:
        """Operation and reason are kept in details."""
        error = ModelSynthesisDegraded("explain_results", "parse_error")

        assert error.code == ErrorCode.SYNTHESIS_DEGRADED
        assert error.details == {"operation": "explain_results", "reason": "parse_error"}
        assert "explain_results" in error.message


class TestCustomCodes:
    def test_vector_store_custom_code(self) -> None:
        """VectorStoreError accepts a narrower code."""
        error = VectorStoreError("Collection not found", code=ErrorCode.COLLECTION_NOT_FOUND)
        assert error.code == ErrorCode.COLLECTION_NOT_FOUND

    def test_llm_timeout_code(self) -> None:
        error = LLMError("Request timed out", code=ErrorCode.LLM_TIMEOUT)
        assert error.code == ErrorCode.LLM_TIMEOUT
