"""Retrieval of owner-scoped chunks for a question."""

from typing import Any

from src.utils.logging import get_logger

from .config import RAGConfig
from .embedding_service import EmbeddingService
from .exceptions import RetrievalError
from .schemas import Query, RetrievedChunk
from .storage_service import StorageService

logger = get_logger(__name__)


def build_filter(query: Query) -> dict[str, Any]:
    """Build the metadata predicate pushed into the vector store query.

    Args:
        query: Question being answered.

    Returns:
        Mapping every returned chunk's metadata must contain.
    """
    predicate: dict[str, Any] = {
        "owner_id": query.owner_id,
        "content_type": query.content_type.value,
    }
    if query.scope_id:
        predicate["source_id"] = query.scope_id
    return predicate


def matches_filter(chunk: RetrievedChunk, predicate: dict[str, Any]) -> bool:
    """Return True when every predicate key has the same value in the chunk metadata."""
    return all(chunk.metadata.get(key) == value for key, value in predicate.items())


class RetrievalService:
    """Nearest-neighbour retrieval restricted to one owner.

    The owner, content type and optional source are sent to the store as a
    native filter. Results are checked again here so that a store ignoring
    the filter can never leak another owner's chunks into an answer.
    """

    def __init__(
        self,
        config: RAGConfig,
        embedding_service: EmbeddingService,
        storage_service: StorageService,
    ):
        self.config = config
        self.embedding_service = embedding_service
        self.storage_service = storage_service

    async def retrieve(self, query: Query) -> list[RetrievedChunk]:
        """Retrieve at most ``query.result_limit`` chunks for a question.

        Args:
            query: Validated question.

        Returns:
            Chunks in store relevance order (nearest first). Empty when nothing
            of this owner matched.

        Raises:
            RetrievalError: If the embedding or vector store call fails.
        """
        predicate = build_filter(query)
        match_count = query.result_limit * max(1, self.config.over_fetch_factor)

        logger.info(
            "retrieval_started",
            owner_id=query.owner_id,
            content_type=query.content_type.value,
            scope_id=query.scope_id,
            match_count=match_count,
        )

        try:
            query_embedding = await self.embedding_service.embed_text(query.question)
            candidates = await self.storage_service.search(
                query_embedding,
                match_count=match_count,
                filter_metadata=predicate,
            )
        except Exception as e:
            logger.exception(
                "retrieval_failed",
                owner_id=query.owner_id,
                error_type=type(e).__name__,
            )
            raise RetrievalError(f"Vector search failed: {e}") from e

        allowed = [chunk for chunk in candidates if matches_filter(chunk, predicate)]

        discarded = len(candidates) - len(allowed)
        if discarded:
            logger.warning(
                "retrieval_filter_discarded",
                owner_id=query.owner_id,
                discarded=discarded,
            )

        results = allowed[: query.result_limit]

        logger.info(
            "retrieval_completed",
            owner_id=query.owner_id,
            candidates=len(candidates),
            returned=len(results),
        )
        return results
