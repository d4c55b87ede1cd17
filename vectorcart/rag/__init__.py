"""RAG pipeline module."""

from vectorcart.rag.models import (
    ComparisonResult,
    ItemRecommendation,
    RankedProduct,
    SearchQuery,
    SynthesizedResponse,
)
from vectorcart.rag.parsing import extract_json_object
from vectorcart.rag.pipeline import ProductRAGPipeline
from vectorcart.rag.synthesizer import ResponseSynthesizer

__all__ = [
    "ComparisonResult",
    "ItemRecommendation",
    "ProductRAGPipeline",
    "RankedProduct",
    "ResponseSynthesizer",
    "SearchQuery",
    "SynthesizedResponse",
    "extract_json_object",
]
