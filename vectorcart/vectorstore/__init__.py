"""Vector index module."""

from vectorcart.vectorstore.canonical import canonicalize_metadata, clean_number
from vectorcart.vectorstore.models import (
    IndexedItem,
    IndexStats,
    ProductMetadata,
    SearchHit,
)
from vectorcart.vectorstore.service import QdrantVectorIndex, VectorIndex, point_id

__all__ = [
    "IndexStats",
    "IndexedItem",
    "ProductMetadata",
    "QdrantVectorIndex",
    "SearchHit",
    "VectorIndex",
    "canonicalize_metadata",
    "clean_number",
    "point_id",
]
