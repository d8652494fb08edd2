"""Runtime dependency container.

Holds the services shared by ingestion and question answering so that the
HTTP layer, the CLI and the tests all wire the pipeline the same way.
"""

from dataclasses import dataclass

from httpx import AsyncClient

from .analysis_service import AnalysisService
from .answer_service import AnswerService
from .chat_service import ChatService
from .chunking_service import ChunkingService
from .config import RAGConfig, get_config
from .embedding_service import EmbeddingService
from .pipeline import IngestionPipeline
from .query_pipeline import QueryPipeline
from .retrieval_service import RetrievalService
from .storage_service import StorageService
from .youtube_service import YouTubeService


@dataclass
class RAGDeps:
    """Runtime dependencies for ingestion and question answering.

    Attributes:
        config: Configuration the services were built from.
        embedding_service: Shared by ingestion and retrieval.
        storage_service: Vector store adapter.
        chat_service: Chat model client for answers and analysis.
        youtube_service: Transcript and comment source.
        ingestion: Ingestion pipeline.
        queries: Question answering pipeline.
        analysis: Description, Q&A and comment insights.
        http_client: AsyncClient shared by the YouTube service and auth checks.
    """

    config: RAGConfig
    embedding_service: EmbeddingService
    storage_service: StorageService
    chat_service: ChatService
    youtube_service: YouTubeService
    ingestion: IngestionPipeline
    queries: QueryPipeline
    analysis: AnalysisService
    http_client: AsyncClient

    async def aclose(self) -> None:
        await self.http_client.aclose()


def build_deps(
    config: RAGConfig | None = None,
    *,
    embedding_service: EmbeddingService | None = None,
    storage_service: StorageService | None = None,
    chat_service: ChatService | None = None,
    youtube_service: YouTubeService | None = None,
    chunking_service: ChunkingService | None = None,
    http_client: AsyncClient | None = None,
) -> RAGDeps:
    """Build all services, using any pre-built ones passed in.

    Args:
        config: Configuration object. If None, loads from environment.
        embedding_service: Replaces the OpenAI-compatible embedding client.
        storage_service: Replaces the Supabase vector store.
        chat_service: Replaces the chat model client.
        youtube_service: Replaces the Supadata/YouTube client.
        chunking_service: Replaces the chunker (and its tokenizer download).
        http_client: Shared HTTP client.

    Returns:
        RAGDeps with the ingestion and query pipelines wired to the same
        embedding and storage services.
    """
    config = config or get_config()
    http_client = http_client or AsyncClient(timeout=30.0)

    embedding_service = embedding_service or EmbeddingService(config)
    storage_service = storage_service or StorageService(config)
    chat_service = chat_service or ChatService(config)
    youtube_service = youtube_service or YouTubeService(config, http_client=http_client)
    chunking_service = chunking_service or ChunkingService(config)

    ingestion = IngestionPipeline(
        config,
        chunking_service,
        embedding_service,
        storage_service,
        youtube_service,
    )
    queries = QueryPipeline(
        config,
        RetrievalService(config, embedding_service, storage_service),
        AnswerService(chat_service),
    )

    return RAGDeps(
        config=config,
        embedding_service=embedding_service,
        storage_service=storage_service,
        chat_service=chat_service,
        youtube_service=youtube_service,
        ingestion=ingestion,
        queries=queries,
        analysis=AnalysisService(config, chat_service, storage_service),
        http_client=http_client,
    )
