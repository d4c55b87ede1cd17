"""Prompt templates for product synthesis."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from vectorcart.vectorstore.models import ProductMetadata, SearchHit

SHOPPING_SYSTEM_PROMPT = (
    "You are a helpful AI shopping assistant for VectorCart. "
    "Base every statement on the product data you are given."
)


def truncate(text: str, limit: int) -> str:
    """Cut text to ``limit`` characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


class PromptTemplate(ABC):
    """Abstract base class for prompt templates."""

    system_prompt: str = SHOPPING_SYSTEM_PROMPT

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Format the template with provided variables.

        Args:
            **kwargs: Template variables.

        Returns:
            Formatted prompt string.
        """
        ...


class ProductExplanationPrompt(PromptTemplate):
    """Asks the model to explain why search hits match a query.

    The model must answer with a single JSON object holding ``explanation``,
    ``recommendations`` and ``summary``.
    """

    ITEM_TEMPLATE = """Product {number}:
- Title: {title}
- Category: {category}
- Brand: {brand}
- Price: ₹{price}
- Original Price: ₹{original_price}
- Discount: {discount}%
- Rating: {rating}/5
- Review Count: {review_count}
- Description: {description}
- Features: {features}
- Similarity Score: {score:.3f}"""

    USER_TEMPLATE = """A user searched for: "{query}"

Here are the most relevant products found based on semantic similarity:

{products}

Please provide:
1. A compelling explanation (2-3 sentences) of why these products match the user's query
2. For each product, a brief recommendation explaining why it's a good choice
3. A concise 18-20 word summary highlighting the key benefits based on ratings and features

Respond with one JSON object and nothing else:
{{
  "explanation": "Overall explanation of why these products match the query",
  "recommendations": [
    {{
      "productIndex": 0,
      "reason": "Why this specific product is recommended",
      "keyBenefits": "Main selling points"
    }}
  ],
  "summary": "18-20 word summary of all products highlighting ratings and key features"
}}

Guidelines:
- productIndex is the 0-based position of the product in the list above
- Focus on actual product features and ratings
- Be honest about product quality based on ratings
- Consider price-to-value ratio in recommendations"""

    def __init__(self, max_items: int = 10, description_chars: int = 300) -> None:
        self.max_items = max_items
        self.description_chars = description_chars

    def format_item(self, position: int, hit: SearchHit) -> str:
        item = hit.item
        return self.ITEM_TEMPLATE.format(
            number=position + 1,
            title=item.title,
            category=item.category,
            brand=item.brand,
            price=item.price,
            original_price=item.original_price,
            discount=item.discount,
            rating=item.rating,
            review_count=item.review_count,
            description=truncate(item.description, self.description_chars),
            features=item.features,
            score=hit.score,
        )

    def format(self, **kwargs: Any) -> str:
        """Format the user prompt.

        Args:
            **kwargs: Must include 'query' and 'hits'.
        """
        hits: Sequence[SearchHit] = kwargs["hits"]
        products = "\n\n".join(
            self.format_item(position, hit)
            for position, hit in enumerate(hits[: self.max_items])
        )
        return self.USER_TEMPLATE.format(query=kwargs["query"], products=products)


class ProductSummaryPrompt(PromptTemplate):
    """Asks for an 18-20 word review summary of one product."""

    USER_TEMPLATE = """Generate a concise 18-20 word summary of this product based on its information:

Product: {title}
Rating: {rating}/5 stars
Review Count: {review_count} reviews
Price: {price}
Features: {features}
Description: {description}

Create a summary that highlights the key customer sentiment and product quality. \
Make it exactly 18-20 words. Reply with the summary only."""

    def __init__(self, description_chars: int = 300) -> None:
        self.description_chars = description_chars

    def format(self, **kwargs: Any) -> str:
        """Format the user prompt. Expects an 'item' keyword."""
        item: ProductMetadata = kwargs["item"]
        return self.USER_TEMPLATE.format(
            title=item.title,
            rating=item.rating,
            review_count=item.review_count,
            price=item.price,
            features=item.features,
            description=truncate(item.description, self.description_chars),
        )


class ProductComparisonPrompt(PromptTemplate):
    """Asks the model to compare two or more products as JSON."""

    ITEM_TEMPLATE = """Product {number}: {title}
- Price: {price}
- Rating: {rating}/5 ({review_count} reviews)
- Brand: {brand}
- Category: {category}
- Key Features: {features}"""

    USER_TEMPLATE = """Compare these products and provide insights:

{products}

Respond with one JSON object and nothing else:
{{
  "bestOverall": 0,
  "bestPrice": 0,
  "bestRated": 0,
  "comparison": "2-3 sentence comparison highlighting key differences",
  "recommendation": "Which product to choose and why"
}}

bestOverall, bestPrice and bestRated are 0-based product indexes."""

    def format(self, **kwargs: Any) -> str:
        """Format the user prompt. Expects an 'items' keyword."""
        items: Sequence[ProductMetadata] = kwargs["items"]
        products = "\n\n".join(
            self.ITEM_TEMPLATE.format(
                number=position + 1,
                title=item.title,
                price=item.price,
                rating=item.rating,
                review_count=item.review_count,
                brand=item.brand,
                category=item.category,
                features=item.features,
            )
            for position, item in enumerate(items)
        )
        return self.USER_TEMPLATE.format(products=products)
