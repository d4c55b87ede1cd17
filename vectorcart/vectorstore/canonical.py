"""Canonicalization of product records into index metadata.

Source records arrive with varying field names (``discounted_price`` vs
``price``, ``img_link`` vs ``image``) and numbers formatted as currency
strings. Everything stored in the index goes through ``canonicalize_metadata``
so the serving path only ever sees the canonical keys below.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

DESCRIPTION_MAX_CHARS = 500
FEATURES_MAX_CHARS = 300

# Canonical key -> source keys, first present value wins
FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "product_name"),
    "category": ("category", "product_category_tree"),
    "brand": ("brand",),
    "price": ("price", "discounted_price", "actual_price"),
    "originalPrice": ("originalPrice", "actual_price", "discounted_price"),
    "discount": ("discount", "discount_percentage"),
    "rating": ("rating",),
    "reviewCount": ("reviewCount", "rating_count"),
    "description": ("description", "about_product", "review_content"),
    "image": ("image", "img_link"),
    "url": ("url", "product_link"),
    "features": ("features", "review_title"),
}

NUMERIC_FIELDS = frozenset({"price", "originalPrice", "discount", "rating"})
TEXT_LIMITS = {"description": DESCRIPTION_MAX_CHARS, "features": FEATURES_MAX_CHARS}

_NON_NUMERIC = re.compile(r"[^\d.]")
_LEADING_NUMBER = re.compile(r"\d+(?:\.\d*)?|\.\d+")


def clean_number(value: Any) -> float:
    """Parse a number out of a loosely formatted value.

    Every character other than digits and ``.`` is dropped, then the leading
    number is read: ``"₹1,299"`` gives 1299.0 and ``"64%"`` gives 64.0.
    Anything unparsable gives 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        return float(value) if math.isfinite(value) else 0.0

    match = _LEADING_NUMBER.match(_NON_NUMERIC.sub("", str(value)))
    if match is None:
        return 0.0
    return float(match.group())


def clean_text(value: Any, limit: int | None = None) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    return text[:limit] if limit is not None else text


def _first_present(raw: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def canonicalize_metadata(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Map a raw product record onto the canonical metadata keys.

    Unknown keys are dropped. The result is stable under repeated
    application, so stored payloads can be passed through it again.

    Args:
        raw: Source record with any supported field names.

    Returns:
        Dict with exactly the canonical keys.
    """
    metadata: dict[str, Any] = {}
    for key, aliases in FIELD_ALIASES.items():
        value = _first_present(raw, aliases)
        if key in NUMERIC_FIELDS:
            metadata[key] = clean_number(value)
        elif key == "reviewCount":
            metadata[key] = int(clean_number(value))
        else:
            metadata[key] = clean_text(value, TEXT_LIMITS.get(key))
    return metadata
