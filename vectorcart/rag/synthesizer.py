"""Natural-language synthesis over search results.

Every operation makes at most one model call. When the call fails or its
output cannot be parsed, a deterministic template built from product fields
takes its place, so callers always receive a complete response.
"""

import asyncio
from collections.abc import Sequence

from pydantic import ValidationError

from vectorcart.config import SynthesisSettings, get_settings
from vectorcart.exceptions import (
    InsufficientItemsError,
    LLMError,
    ModelSynthesisDegraded,
    ResponseParseError,
)
from vectorcart.llm.client import LLMClient
from vectorcart.llm.prompts import (
    ProductComparisonPrompt,
    ProductExplanationPrompt,
    ProductSummaryPrompt,
)
from vectorcart.logging_config import get_logger
from vectorcart.observability.metrics import track_synthesis_fallback
from vectorcart.rag.models import (
    ComparisonResult,
    ItemRecommendation,
    ModelExplanation,
    RankedProduct,
    SynthesizedResponse,
)
from vectorcart.rag.parsing import extract_json_object
from vectorcart.vectorstore.models import ProductMetadata, SearchHit

logger = get_logger(__name__)

NO_RESULTS_MESSAGE = (
    "I couldn't find any products matching your query. "
    "Please try with different keywords."
)
NO_RESULTS_SUMMARY = "No products found"

PLACEHOLDER_RECOMMENDATION = ItemRecommendation(
    reason="Good match for your search criteria",
    key_benefits="Quality product with competitive features",
)

FALLBACK_EXPLANATION = (
    "I found several products that match your search criteria "
    "based on their features and categories."
)
FALLBACK_RECOMMENDED_ITEMS = 3

SUMMARY_MIN_WORDS = 18
SUMMARY_MAX_WORDS = 20
SUMMARY_PADDING = " Excellent choice for customers seeking quality and value."

FALLBACK_COMPARISON = (
    "All products offer good value with different strengths in pricing, "
    "features, and customer satisfaction."
)
FALLBACK_COMPARISON_RECOMMENDATION = (
    "Choose based on your specific needs and budget preferences."
)


def fallback_recommendation(item: ProductMetadata) -> ItemRecommendation:
    """Template recommendation built from rating, reviews, category and brand."""
    return ItemRecommendation(
        reason=(
            f"This product has a rating of {item.rating}/5 with "
            f"{item.review_count} reviews and offers good value."
        ),
        key_benefits=f"Quality {item.category} from {item.brand} at competitive price.",
    )


def fallback_summary(item: ProductMetadata) -> str:
    """Template review summary for one product."""
    return (
        f"Highly rated {item.category} with {item.rating}/5 stars from "
        f"{item.review_count} satisfied customers offering excellent value."
    )


def fit_summary_length(summary: str) -> str:
    """Clamp a summary to 18-20 words.

    Longer text keeps its first 20 words and gains a full stop; shorter text
    is padded with a stock sentence.
    """
    words = summary.split()
    if len(words) > SUMMARY_MAX_WORDS:
        return " ".join(words[:SUMMARY_MAX_WORDS]).rstrip(".!?") + "."
    if len(words) < SUMMARY_MIN_WORDS:
        return summary + SUMMARY_PADDING
    return summary


def _fallback_explanation(hits: Sequence[SearchHit]) -> ModelExplanation:
    return ModelExplanation.model_validate(
        {
            "explanation": FALLBACK_EXPLANATION,
            "recommendations": [
                {
                    "productIndex": position,
                    **fallback_recommendation(hit.item).model_dump(by_alias=True),
                }
                for position, hit in enumerate(hits[:FALLBACK_RECOMMENDED_ITEMS])
            ],
            "summary": (
                f"Top rated products with {hits[0].item.rating}/5 stars offering "
                "excellent features and competitive pricing."
            ),
        }
    )


class ResponseSynthesizer:
    """Turns search hits into explanations, summaries and comparisons."""

    def __init__(
        self,
        llm_client: LLMClient,
        settings: SynthesisSettings | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the synthesizer.

        Args:
            llm_client: Client used for every model call.
            settings: Prompt bounds.
            timeout: Seconds allowed per model call; defaults to the LLM timeout.
        """
        self._llm_client = llm_client
        self._settings = settings or get_settings().synthesis
        self._timeout = timeout if timeout is not None else get_settings().llm.timeout
        self._explanation_prompt = ProductExplanationPrompt(
            max_items=self._settings.max_prompt_items,
            description_chars=self._settings.description_chars,
        )
        self._summary_prompt = ProductSummaryPrompt(
            description_chars=self._settings.description_chars,
        )
        self._comparison_prompt = ProductComparisonPrompt()

    async def _complete(self, prompt: str, system_prompt: str) -> str:
        """Run one model call under the per-call timeout.

        Raises:
            LLMError: On any model failure, including timeouts.
        """
        try:
            async with asyncio.timeout(self._timeout):
                result = await self._llm_client.generate_text(
                    prompt=prompt,
                    system_prompt=system_prompt,
                )
        except TimeoutError as e:
            raise LLMError(
                "LLM request timed out",
                details={"timeout": self._timeout},
            ) from e
        return result.content

    def _degrade(self, operation: str, reason: str, error: Exception) -> None:
        degraded = ModelSynthesisDegraded(operation, reason, {"error": str(error)})
        logger.warning(degraded.message, extra=degraded.details)
        track_synthesis_fallback(operation, reason)

    async def explain_results(
        self,
        query: str,
        hits: Sequence[SearchHit],
    ) -> SynthesizedResponse:
        """Explain why the hits match the query.

        Args:
            query: The user's query.
            hits: Search hits in ranked order.

        Returns:
            SynthesizedResponse with a recommendation for every position.
        """
        if not hits:
            return SynthesizedResponse(
                query=query,
                summary=NO_RESULTS_SUMMARY,
                message=NO_RESULTS_MESSAGE,
            )

        prompt = self._explanation_prompt.format(query=query, hits=hits)
        degraded = False
        try:
            content = await self._complete(prompt, self._explanation_prompt.system_prompt)
            parsed = ModelExplanation.model_validate(extract_json_object(content))
        except ResponseParseError as e:
            self._degrade("explain", "parse_error", e)
            parsed, degraded = _fallback_explanation(hits), True
        except ValidationError as e:
            self._degrade("explain", "invalid_response", e)
            parsed, degraded = _fallback_explanation(hits), True
        except LLMError as e:
            self._degrade("explain", "model_error", e)
            parsed, degraded = _fallback_explanation(hits), True

        recommendations: dict[int, ItemRecommendation] = {}
        for entry in parsed.recommendations:
            if 0 <= entry.product_index < len(hits):
                recommendations.setdefault(
                    entry.product_index,
                    ItemRecommendation(reason=entry.reason, key_benefits=entry.key_benefits),
                )
        for position in range(len(hits)):
            recommendations.setdefault(position, PLACEHOLDER_RECOMMENDATION)

        summary = parsed.summary if degraded else fit_summary_length(parsed.summary)

        results = [
            RankedProduct(
                id=hit.id,
                score=hit.score,
                item=hit.item,
                recommendation=recommendations[position],
            )
            for position, hit in enumerate(hits)
        ]

        logger.info(
            "Synthesized search explanation",
            extra={"results": len(results), "degraded": degraded},
        )

        return SynthesizedResponse(
            query=query,
            explanation=parsed.explanation,
            recommendations=recommendations,
            summary=summary,
            results=results,
            degraded=degraded,
            total_results=len(results),
        )

    async def summarize_item(self, item: ProductMetadata) -> str:
        """Write an 18-20 word review summary for one product."""
        prompt = self._summary_prompt.format(item=item)
        try:
            summary = (await self._complete(prompt, self._summary_prompt.system_prompt)).strip()
        except LLMError as e:
            self._degrade("summarize", "model_error", e)
            return fallback_summary(item)

        if not summary:
            self._degrade("summarize", "empty_response", ValueError("empty summary"))
            return fallback_summary(item)

        return fit_summary_length(summary)

    async def compare(self, items: Sequence[ProductMetadata]) -> ComparisonResult:
        """Compare two or more products.

        Raises:
            InsufficientItemsError: If fewer than two products are given.
        """
        if len(items) < 2:
            raise InsufficientItemsError(
                "Need at least 2 products for comparison",
                details={"count": len(items)},
            )

        prompt = self._comparison_prompt.format(items=items)
        try:
            content = await self._complete(prompt, self._comparison_prompt.system_prompt)
            result = ComparisonResult.model_validate(extract_json_object(content))
        except ResponseParseError as e:
            self._degrade("compare", "parse_error", e)
            return self._fallback_comparison()
        except ValidationError as e:
            self._degrade("compare", "invalid_response", e)
            return self._fallback_comparison()
        except LLMError as e:
            self._degrade("compare", "model_error", e)
            return self._fallback_comparison()

        indexes = (result.best_overall, result.best_price, result.best_rated)
        if any(index >= len(items) for index in indexes):
            self._degrade(
                "compare",
                "invalid_response",
                ValueError(f"product index out of range: {indexes}"),
            )
            return self._fallback_comparison()

        return result

    @staticmethod
    def _fallback_comparison() -> ComparisonResult:
        return ComparisonResult(
            best_overall=0,
            best_price=0,
            best_rated=0,
            comparison=FALLBACK_COMPARISON,
            recommendation=FALLBACK_COMPARISON_RECOMMENDATION,
            degraded=True,
        )
