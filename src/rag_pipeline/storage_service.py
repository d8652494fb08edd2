"""Storage service for content chunks in the Supabase vector database."""

from typing import Any

from supabase import Client, create_client

from src.utils.logging import get_logger

from .config import RAGConfig
from .schemas import ChunkWithEmbedding, RetrievedChunk

logger = get_logger(__name__)


class StorageService:
    """Service for storing and searching chunks in Supabase (pgvector).

    Owner, content type and source are stored both as columns and inside the
    JSONB ``metadata``. Similarity search goes through the
    ``match_content_chunks`` RPC, which applies the metadata filter inside the
    database (``metadata @> filter``) before ranking.
    """

    def __init__(self, config: RAGConfig, client: Client | None = None):
        """Initialize storage service with configuration.

        Args:
            config: Configuration object with Supabase credentials.
            client: Pre-built Supabase client. Built from ``config`` when omitted.
        """
        self.config = config
        self.table = config.chunks_table
        self.client: Client = client or create_client(
            config.supabase_url,
            config.supabase_key,
        )
        logger.info(
            "storage_service_initialized",
            supabase_url=config.supabase_url,
            table=self.table,
        )

    async def add_chunks(self, chunks: list[ChunkWithEmbedding]) -> int:
        """Insert chunks with embeddings.

        Args:
            chunks: Chunks with embeddings to save.

        Returns:
            Number of rows written.

        Raises:
            Exception: If database operation fails.
        """
        if not chunks:
            return 0

        try:
            data = [
                {
                    "owner_id": chunk.metadata["owner_id"],
                    "content_type": chunk.metadata["content_type"],
                    "source_id": chunk.metadata["source_id"],
                    "chunk_index": chunk.chunk_index,
                    "content": chunk.content,
                    "token_count": chunk.token_count,
                    "embedding": chunk.embedding,
                    "metadata": chunk.metadata,
                }
                for chunk in chunks
            ]

            self.client.table(self.table).insert(data).execute()
            logger.info(
                "chunks_saved",
                count=len(chunks),
                source_id=chunks[0].metadata.get("source_id"),
            )
            return len(chunks)

        except Exception as e:
            logger.exception(
                "chunks_save_failed",
                count=len(chunks),
                error_type=type(e).__name__,
            )
            raise

    async def search(
        self,
        query_embedding: list[float],
        match_count: int = 4,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[RetrievedChunk]:
        """Search for similar chunks using vector similarity.

        Args:
            query_embedding: Query embedding vector.
            match_count: Number of results to return.
            filter_metadata: JSONB containment filter applied by the database.

        Returns:
            Matching chunks, nearest first.

        Raises:
            Exception: If search operation fails.
        """
        try:
            response = self.client.rpc(
                self.config.match_function,
                {
                    "query_embedding": query_embedding,
                    "match_count": match_count,
                    "filter": filter_metadata or {},
                },
            ).execute()

            rows: list[dict[str, Any]] = response.data or []
            results = [
                RetrievedChunk(
                    content=row.get("content", ""),
                    metadata=row.get("metadata") or {},
                    similarity=row.get("similarity"),
                )
                for row in rows
            ]
            logger.info(
                "vector_search_completed",
                results=len(results),
                match_count=match_count,
            )
            return results

        except Exception as e:
            logger.exception(
                "vector_search_failed",
                error_type=type(e).__name__,
            )
            raise

    async def list_source_chunks(
        self,
        owner_id: str,
        source_id: str,
        content_type: str | None = None,
    ) -> list[RetrievedChunk]:
        """Fetch every chunk of one source belonging to one owner.

        Args:
            owner_id: Owner of the chunks.
            source_id: Video or document ID.
            content_type: Optional content type restriction.

        Returns:
            Chunks ordered by chunk index.
        """
        try:
            query = (
                self.client.table(self.table)
                .select("content, metadata, chunk_index")
                .eq("owner_id", owner_id)
                .eq("source_id", source_id)
            )
            if content_type:
                query = query.eq("content_type", content_type)

            response = query.order("chunk_index").execute()
            rows: list[dict[str, Any]] = response.data or []

            logger.debug(
                "source_chunks_listed",
                source_id=source_id,
                count=len(rows),
            )
            return [
                RetrievedChunk(content=row.get("content", ""), metadata=row.get("metadata") or {})
                for row in rows
            ]

        except Exception as e:
            logger.exception(
                "source_chunks_list_failed",
                source_id=source_id,
                error_type=type(e).__name__,
            )
            raise

    async def delete_source(
        self,
        owner_id: str,
        source_id: str,
        content_type: str | None = None,
    ) -> int:
        """Delete the chunks of one source belonging to one owner.

        Args:
            owner_id: Owner of the chunks.
            source_id: Video or document ID.
            content_type: Optional content type restriction, e.g. only comments.

        Returns:
            Number of rows deleted.

        Raises:
            Exception: If database operation fails.
        """
        try:
            query = (
                self.client.table(self.table)
                .delete()
                .eq("owner_id", owner_id)
                .eq("source_id", source_id)
            )
            if content_type:
                query = query.eq("content_type", content_type)

            response = query.execute()
            deleted = len(response.data or [])

            logger.info(
                "source_deleted",
                source_id=source_id,
                content_type=content_type,
                deleted=deleted,
            )
            return deleted

        except Exception as e:
            logger.exception(
                "source_delete_failed",
                source_id=source_id,
                error_type=type(e).__name__,
            )
            raise
