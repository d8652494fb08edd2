"""Embedding service for generating text embeddings via OpenAI-compatible APIs."""

from openai import AsyncOpenAI

from src.utils.logging import get_logger

from .config import RAGConfig

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating text embeddings.

    This service supports multiple embedding providers (OpenAI, Ollama, OpenRouter)
    through OpenAI-compatible APIs. The same instance (and therefore the same
    model) must be used for ingestion and for questions, otherwise similarity
    scores are meaningless.
    """

    def __init__(self, config: RAGConfig, client: AsyncOpenAI | None = None):
        """Initialize embedding service with configuration.

        Args:
            config: Configuration object with embedding provider settings.
            client: Pre-built client. Built from ``config`` when omitted.
        """
        self.config = config
        self.client = client or self._get_client()
        logger.info(
            "embedding_service_initialized",
            provider=config.embedding_provider,
            model=config.embedding_model,
            base_url=config.embedding_base_url,
        )

    def _get_client(self) -> AsyncOpenAI:
        """Initialize OpenAI-compatible client based on provider.

        Returns:
            Configured AsyncOpenAI client instance.
        """
        if self.config.embedding_provider == "ollama":
            # Ollama doesn't require a real API key
            return AsyncOpenAI(
                base_url=self.config.embedding_base_url,
                api_key="ollama",
            )
        else:
            return AsyncOpenAI(
                base_url=self.config.embedding_base_url,
                api_key=self.config.embedding_api_key,
            )

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for several texts in one request.

        Args:
            texts: Text contents to embed.

        Returns:
            Embedding vectors in the same order as ``texts``.

        Raises:
            Exception: If embedding generation fails.
        """
        if not texts:
            return []

        try:
            response = await self.client.embeddings.create(
                input=texts,
                model=self.config.embedding_model,
            )
            ordered = sorted(response.data, key=lambda item: item.index)
            embeddings = [item.embedding for item in ordered]

            if len(embeddings) != len(texts):
                raise ValueError(
                    f"Embedding count mismatch: expected {len(texts)}, got {len(embeddings)}"
                )

            logger.debug(
                "embeddings_generated",
                count=len(embeddings),
                embedding_dim=len(embeddings[0]) if embeddings else 0,
            )
            return embeddings

        except Exception as e:
            logger.exception(
                "embedding_failed",
                count=len(texts),
                error_type=type(e).__name__,
            )
            raise

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Args:
            text: Text content to embed.

        Returns:
            Embedding vector as a list of floats.
        """
        embeddings = await self.embed_texts([text])
        return embeddings[0]
