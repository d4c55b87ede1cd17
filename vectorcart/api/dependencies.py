"""Service wiring for the HTTP layer.

Services are built once at application start and stored on ``app.state``.
Routes receive them through FastAPI dependencies, which tests override.
"""

from fastapi import Depends, HTTPException, Request, status

from vectorcart.config import SearchSettings, Settings, get_settings
from vectorcart.embeddings.service import FallbackEmbeddingService
from vectorcart.llm.client import OpenAICompatibleClient
from vectorcart.logging_config import get_logger
from vectorcart.rag.pipeline import ProductRAGPipeline
from vectorcart.rag.synthesizer import ResponseSynthesizer
from vectorcart.retrieval.orchestrator import SearchOrchestrator
from vectorcart.vectorstore.service import QdrantVectorIndex

logger = get_logger(__name__)


class ServiceContainer:
    """Every long-lived service the API needs."""

    def __init__(
        self,
        embedding_service: FallbackEmbeddingService,
        vector_index: QdrantVectorIndex,
        llm_client: OpenAICompatibleClient,
        settings: Settings,
    ) -> None:
        self.embedding_service = embedding_service
        self.vector_index = vector_index
        self.llm_client = llm_client
        self.settings = settings

        self.orchestrator = SearchOrchestrator(
            embedding_service,
            vector_index,
            max_compare_items=settings.search.max_compare_items,
        )
        self.synthesizer = ResponseSynthesizer(
            llm_client,
            settings=settings.synthesis,
            timeout=settings.llm.timeout,
        )
        self.pipeline = ProductRAGPipeline(self.orchestrator, self.synthesizer)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "ServiceContainer":
        """Build every service from configuration.

        Raises:
            ConfigurationError: If no embedding provider is configured.
        """
        settings = settings or get_settings()
        return cls(
            embedding_service=FallbackEmbeddingService.from_settings(settings.embedding),
            vector_index=QdrantVectorIndex(settings=settings.qdrant),
            llm_client=OpenAICompatibleClient(settings=settings.llm),
            settings=settings,
        )

    async def close(self) -> None:
        """Release HTTP and Qdrant clients."""
        await self.embedding_service.close()
        await self.vector_index.close()
        await self.llm_client.close()


def get_container(request: Request) -> ServiceContainer:
    """Return the container built at startup.

    Raises:
        HTTPException: 503 when services are not configured.
    """
    container: ServiceContainer | None = getattr(request.app.state, "services", None)
    if container is None:
        logger.warning("Product search services not configured")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={
                "error": "Product search not configured",
                "message": (
                    "Product search requires an embedding provider, "
                    "the vector index and an LLM to be configured"
                ),
            },
        )
    return container


def get_pipeline(
    container: ServiceContainer = Depends(get_container),
) -> ProductRAGPipeline:
    return container.pipeline


def get_orchestrator(
    container: ServiceContainer = Depends(get_container),
) -> SearchOrchestrator:
    return container.orchestrator


def get_vector_index(
    container: ServiceContainer = Depends(get_container),
) -> QdrantVectorIndex:
    return container.vector_index


def get_search_settings() -> SearchSettings:
    return get_settings().search
