"""LLM client module."""

from vectorcart.llm.client import LLMClient, OpenAICompatibleClient
from vectorcart.llm.models import GenerationResult, Message, Role
from vectorcart.llm.prompts import (
    ProductComparisonPrompt,
    ProductExplanationPrompt,
    ProductSummaryPrompt,
    PromptTemplate,
)

__all__ = [
    "GenerationResult",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "ProductComparisonPrompt",
    "ProductExplanationPrompt",
    "ProductSummaryPrompt",
    "PromptTemplate",
    "Role",
]
