"""Text normalization applied before every embedding request."""

import re

from vectorcart.exceptions import InvalidInputError

DEFAULT_MAX_LENGTH = 512

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^\w\s.,!?-]")


class TextPreprocessor:
    """Normalizes raw text into the form sent to embedding providers.

    Whitespace runs collapse to one space, characters outside word
    characters and basic punctuation are dropped, the result is lowercased
    and cut to ``max_length`` characters.
    """

    def __init__(self, max_length: int = DEFAULT_MAX_LENGTH) -> None:
        self.max_length = max_length

    def normalize(self, text: object) -> str:
        """Normalize text for embedding.

        Args:
            text: Raw input text.

        Returns:
            Cleaned text.

        Raises:
            InvalidInputError: If the input is not a non-empty string or
                nothing survives normalization.
        """
        if not isinstance(text, str) or not text:
            raise InvalidInputError(
                "Text must be a non-empty string",
                details={"type": type(text).__name__},
            )

        clean = _WHITESPACE.sub(" ", text)
        clean = _DISALLOWED.sub("", clean).strip().lower()
        clean = clean[: self.max_length]

        if not clean:
            raise InvalidInputError(
                "No valid text content to embed after preprocessing",
                details={"input_length": len(text)},
            )
        return clean
