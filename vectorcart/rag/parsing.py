"""Extraction of JSON objects from free-form model output."""

import json
from typing import Any

from vectorcart.exceptions import ResponseParseError


def _balanced_end(text: str, start: int) -> int | None:
    """Index just past the brace that closes the one at ``start``."""
    depth = 0
    in_string = False
    escaped = False

    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index + 1
    return None


def extract_json_object(text: str) -> dict[str, Any]:
    """Return the first JSON object embedded in ``text``.

    Models often wrap JSON in markdown fences or prose. Every ``{`` is tried
    as a candidate start, in order, and the first balanced span that decodes
    to an object wins.

    Raises:
        ResponseParseError: If no JSON object can be decoded.
    """
    if not text:
        raise ResponseParseError("Model returned an empty response")

    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            try:
                parsed = json.loads(text[start:end])
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, dict):
                return parsed
        start = text.find("{", start + 1)

    raise ResponseParseError(
        "No valid JSON found in response",
        details={"preview": text[:200]},
    )
