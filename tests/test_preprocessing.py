"""Tests for text preprocessing."""

import pytest

from vectorcart.embeddings.preprocessing import TextPreprocessor
from vectorcart.exceptions import ErrorCode, InvalidInputError


class TestTextPreprocessor:
    """Tests for TextPreprocessor."""

    def test_collapses_whitespace(self) -> None:
        """Whitespace runs become single spaces."""
        assert TextPreprocessor().normalize("gaming\t\tlaptop\n16GB") == "gaming laptop 16gb"

    def test_strips_disallowed_characters(self) -> None:
        """Symbols outside basic punctuation are removed."""
        assert TextPreprocessor().normalize("USB-C @ ₹499, fast!") == "usb-c  499, fast!"

    def test_keeps_unicode_letters(self) -> None:
        """Non-ASCII word characters survive."""
        assert TextPreprocessor().normalize("Café Crème") == "café crème"

    def test_truncates(self) -> None:
        """Output is cut to max_length."""
        assert TextPreprocessor(max_length=5).normalize("abcdefgh") == "abcde"

    def test_idempotent(self) -> None:
        """Normalizing twice changes nothing."""
        preprocessor = TextPreprocessor()
        once = preprocessor.normalize("  Smart   Phone, good Camera!! ")
        assert preprocessor.normalize(once) == once

    @pytest.mark.parametrize("text", ["", None, 42, "###"])
    def test_rejects_unusable_input(self, text: object) -> None:
        """Non-strings and empty results are invalid input."""
        with pytest.raises(InvalidInputError) as exc_info:
            TextPreprocessor().normalize(text)

        assert exc_info.value.code == ErrorCode.INVALID_INPUT
