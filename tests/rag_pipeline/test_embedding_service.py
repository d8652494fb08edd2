"""Unit tests for embedding service."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.rag_pipeline.config import RAGConfig
from src.rag_pipeline.embedding_service import EmbeddingService


def embedding_response(vectors: list[list[float]], reverse: bool = False) -> MagicMock:
    """Build an embeddings.create response with indexed items."""
    items = [MagicMock(embedding=vector, index=i) for i, vector in enumerate(vectors)]
    response = MagicMock()
    response.data = list(reversed(items)) if reverse else items
    return response


@pytest.mark.unit
class TestEmbeddingService:
    """Test suite for EmbeddingService class."""

    @pytest.fixture
    def config_ollama(self, config: RAGConfig) -> RAGConfig:
        """Create test configuration for Ollama provider."""
        return config.model_copy(
            update={
                "embedding_provider": "ollama",
                "embedding_base_url": "http://localhost:11434/v1",
                "embedding_model": "nomic-embed-text",
            }
        )

    def test_service_initialization_openai(self, config: RAGConfig) -> None:
        """Test service initialization with OpenAI provider."""
        with patch("src.rag_pipeline.embedding_service.AsyncOpenAI") as mock_openai:
            service = EmbeddingService(config)

            assert service.config == config
            mock_openai.assert_called_once_with(
                base_url="https://api.openai.com/v1",
                api_key="test_key",
            )

    def test_service_initialization_ollama(self, config_ollama: RAGConfig) -> None:
        """Test service initialization with Ollama provider."""
        with patch("src.rag_pipeline.embedding_service.AsyncOpenAI") as mock_openai:
            EmbeddingService(config_ollama)

            # Ollama should use "ollama" as API key
            mock_openai.assert_called_once_with(
                base_url="http://localhost:11434/v1",
                api_key="ollama",
            )

    def test_injected_client_used(self, config: RAGConfig) -> None:
        """Test that a pre-built client skips client construction."""
        client = MagicMock()
        with patch("src.rag_pipeline.embedding_service.AsyncOpenAI") as mock_openai:
            service = EmbeddingService(config, client=client)

            assert service.client is client
            mock_openai.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_text_success(self, config: RAGConfig) -> None:
        """Test successful single text embedding."""
        client = MagicMock()
        client.embeddings.create = AsyncMock(
            return_value=embedding_response([[0.1, 0.2, 0.3]])
        )
        service = EmbeddingService(config, client=client)

        embedding = await service.embed_text("Test text to embed")

        assert embedding == [0.1, 0.2, 0.3]
        client.embeddings.create.assert_called_once_with(
            input=["Test text to embed"],
            model="text-embedding-3-small",
        )

    @pytest.mark.asyncio
    async def test_embed_texts_single_request(self, config: RAGConfig) -> None:
        """Test that several texts go out in one request."""
        client = MagicMock()
        client.embeddings.create = AsyncMock(
            return_value=embedding_response([[1.0], [2.0], [3.0]])
        )
        service = EmbeddingService(config, client=client)

        embeddings = await service.embed_texts(["a", "b", "c"])

        assert embeddings == [[1.0], [2.0], [3.0]]
        assert client.embeddings.create.call_count == 1

    @pytest.mark.asyncio
    async def test_embed_texts_restores_input_order(self, config: RAGConfig) -> None:
        """Test that response items are reordered by index."""
        client = MagicMock()
        client.embeddings.create = AsyncMock(
            return_value=embedding_response([[1.0], [2.0], [3.0]], reverse=True)
        )
        service = EmbeddingService(config, client=client)

        embeddings = await service.embed_texts(["a", "b", "c"])

        assert embeddings == [[1.0], [2.0], [3.0]]

    @pytest.mark.asyncio
    async def test_embed_texts_empty_list(self, config: RAGConfig) -> None:
        """Test that an empty list makes no API call."""
        client = MagicMock()
        client.embeddings.create = AsyncMock()
        service = EmbeddingService(config, client=client)

        assert await service.embed_texts([]) == []
        client.embeddings.create.assert_not_called()

    @pytest.mark.asyncio
    async def test_embed_texts_count_mismatch(self, config: RAGConfig) -> None:
        """Test that a short response is an error."""
        client = MagicMock()
        client.embeddings.create = AsyncMock(return_value=embedding_response([[1.0]]))
        service = EmbeddingService(config, client=client)

        with pytest.raises(ValueError, match="count mismatch"):
            await service.embed_texts(["a", "b"])

    @pytest.mark.asyncio
    async def test_embed_text_failure(self, config: RAGConfig) -> None:
        """Test embedding generation re-raises API errors."""
        client = MagicMock()
        client.embeddings.create = AsyncMock(side_effect=Exception("API Error"))
        service = EmbeddingService(config, client=client)

        with pytest.raises(Exception, match="API Error"):
            await service.embed_text("Test text")
