"""Ingestion pipeline: chunk, tag, embed and store transcripts, documents and comments."""

from datetime import UTC, datetime
from typing import Any

from src.utils.logging import get_logger

from .chunking_service import ChunkingService
from .config import RAGConfig
from .embedding_service import EmbeddingService
from .exceptions import EmptyContentError, IngestionError
from .schemas import (
    Chunk,
    ChunkWithEmbedding,
    CommentRecord,
    ContentType,
    IngestionResult,
    Transcript,
    VideoMetadata,
)
from .sentiment import classify_sentiment
from .storage_service import StorageService
from .youtube_service import YouTubeService

logger = get_logger(__name__)

# Metadata keys set by the pipeline itself; caller extras never override them.
CORE_METADATA_KEYS = ("owner_id", "content_type", "source_id", "source_title", "ingested_at")


def format_comment_content(comment: CommentRecord, video_title: str) -> str:
    """Render a comment as the text block that gets embedded.

    Author, sentiment and likes are part of the embedded text so that
    questions like "what do negative comments say" match on them.
    """
    published = comment.published_at.date().isoformat() if comment.published_at else "Unknown"
    sentiment = comment.sentiment.value if comment.sentiment else "unknown"

    return (
        f"Comment: {comment.text}\n"
        f"Author: {comment.author}\n"
        f"Sentiment: {sentiment}\n"
        f"Likes: {comment.like_count}\n"
        f"Date: {published}\n"
        f"Video: {video_title}"
    )


class IngestionPipeline:
    """Orchestrates ingestion of one source at a time.

    This class coordinates the chunking, embedding and storage services. Every
    stored chunk is tagged with its owner, content type and source so that
    retrieval can be restricted to one owner. Ingestion is best-effort: a
    batch that fails to embed or store is recorded in the result, batches
    already written stay written, and re-ingesting a source appends chunks.
    """

    def __init__(
        self,
        config: RAGConfig,
        chunking_service: ChunkingService,
        embedding_service: EmbeddingService,
        storage_service: StorageService,
        youtube_service: YouTubeService | None = None,
    ):
        """Initialize pipeline with all required services.

        Args:
            config: Configuration object.
            chunking_service: Splits text into overlapping windows.
            embedding_service: Must be the same instance used for questions.
            storage_service: Vector store adapter.
            youtube_service: Needed only for the ``ingest_video*`` helpers.
        """
        self.config = config
        self.chunking_service = chunking_service
        self.embedding_service = embedding_service
        self.storage_service = storage_service
        self.youtube_service = youtube_service

        logger.info(
            "pipeline_initialized",
            batch_size=config.embedding_batch_size,
            chunk_size=config.chunk_size,
        )

    def _build_metadata(
        self,
        owner_id: str,
        content_type: ContentType,
        source_id: str,
        source_title: str,
        extra_metadata: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        metadata = dict(extra_metadata or {})
        metadata.update(
            owner_id=owner_id,
            content_type=content_type.value,
            source_id=source_id,
            source_title=source_title,
            ingested_at=datetime.now(UTC).isoformat(),
        )
        return metadata

    def _check_source(self, owner_id: str, source_id: str) -> None:
        if not owner_id or not owner_id.strip():
            raise IngestionError("owner_id is required")
        if not source_id or not source_id.strip():
            raise IngestionError("source_id is required")

    async def ingest(
        self,
        raw_text: str,
        owner_id: str,
        content_type: ContentType,
        source_id: str,
        source_title: str,
        extra_metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Chunk, embed and store the text of one source.

        Args:
            raw_text: Full text of the transcript or document.
            owner_id: Owner the chunks belong to.
            content_type: Kind of source.
            source_id: Video or document ID.
            source_title: Human readable title, shown in answers.
            extra_metadata: Additional metadata stored with every chunk.

        Returns:
            IngestionResult with stored and failed chunk counts.

        Raises:
            EmptyContentError: If the text is empty or near-empty.
            IngestionError: If owner or source is missing, or no chunk was stored.
        """
        self._check_source(owner_id, source_id)

        content_chars = len("".join((raw_text or "").split()))
        if content_chars < self.config.min_content_chars:
            logger.warning(
                "ingestion_rejected_empty",
                source_id=source_id,
                content_chars=content_chars,
            )
            raise EmptyContentError(
                f"Source {source_id} has no meaningful text content to ingest"
            )

        logger.info(
            "ingestion_started",
            owner_id=owner_id,
            source_id=source_id,
            content_type=content_type.value,
            text_length=len(raw_text),
        )

        metadata = self._build_metadata(
            owner_id, content_type, source_id, source_title, extra_metadata
        )
        chunks = self.chunking_service.chunk_text(raw_text, metadata)

        return await self._store_chunks(chunks, source_id, content_type)

    async def ingest_comments(
        self,
        comments: list[CommentRecord],
        owner_id: str,
        video_id: str,
        video_title: str,
    ) -> IngestionResult:
        """Store every comment of a video as its own searchable text block.

        Comments without a sentiment label are classified first.

        Returns:
            IngestionResult; an empty comment list yields an empty result.

        Raises:
            IngestionError: If owner or video is missing, or no chunk was stored.
        """
        self._check_source(owner_id, video_id)

        if not comments:
            logger.info("no_comments_to_ingest", video_id=video_id)
            return IngestionResult(source_id=video_id, content_type=ContentType.COMMENT)

        chunks: list[Chunk] = []
        for comment_index, comment in enumerate(comments):
            if not comment.text.strip():
                continue
            if comment.sentiment is None:
                comment = comment.model_copy(
                    update={"sentiment": classify_sentiment(comment.text)}
                )

            metadata = self._build_metadata(
                owner_id,
                ContentType.COMMENT,
                video_id,
                video_title,
                {
                    "comment_index": comment_index,
                    "comment_id": comment.comment_id,
                    "author": comment.author,
                    "sentiment": comment.sentiment.value,
                    "like_count": comment.like_count,
                    "published_at": (
                        comment.published_at.isoformat() if comment.published_at else None
                    ),
                    "original_text": comment.text,
                },
            )
            for chunk in self.chunking_service.chunk_text(
                format_comment_content(comment, video_title), metadata
            ):
                chunks.append(chunk.model_copy(update={"chunk_index": len(chunks)}))

        logger.info(
            "comments_prepared",
            video_id=video_id,
            comments=len(comments),
            chunks=len(chunks),
        )
        return await self._store_chunks(chunks, video_id, ContentType.COMMENT)

    async def _store_chunks(
        self,
        chunks: list[Chunk],
        source_id: str,
        content_type: ContentType,
    ) -> IngestionResult:
        """Embed and insert chunks batch by batch, recording failed batches."""
        result = IngestionResult(
            source_id=source_id,
            content_type=content_type,
            total_chunks=len(chunks),
        )
        batch_size = max(1, self.config.embedding_batch_size)

        for start in range(0, len(chunks), batch_size):
            batch = chunks[start : start + batch_size]
            try:
                embeddings = await self.embedding_service.embed_texts(
                    [chunk.content for chunk in batch]
                )
                result.stored_chunks += await self.storage_service.add_chunks(
                    [
                        ChunkWithEmbedding(**chunk.model_dump(), embedding=embedding)
                        for chunk, embedding in zip(batch, embeddings, strict=True)
                    ]
                )

            except Exception as e:
                result.failed_chunk_indices.extend(chunk.chunk_index for chunk in batch)
                result.errors.append(f"chunks {start}-{start + len(batch) - 1}: {e}")
                logger.warning(
                    "ingestion_batch_failed",
                    source_id=source_id,
                    batch_start=start,
                    batch_size=len(batch),
                    error_type=type(e).__name__,
                    error=str(e),
                )

        if result.total_chunks and result.stored_chunks == 0:
            logger.error("ingestion_failed", source_id=source_id, errors=result.errors)
            raise IngestionError(
                f"No chunks could be stored for source {source_id}", result=result
            )

        logger.info(
            "ingestion_completed",
            source_id=source_id,
            content_type=content_type.value,
            total_chunks=result.total_chunks,
            stored_chunks=result.stored_chunks,
            failed_chunks=len(result.failed_chunk_indices),
        )
        return result

    def _require_youtube(self) -> YouTubeService:
        if self.youtube_service is None:
            raise IngestionError("YouTube ingestion requires a YouTube service")
        return self.youtube_service

    async def ingest_video(self, video_id: str, owner_id: str) -> IngestionResult:
        """Fetch a video's title and transcript and ingest the transcript.

        Raises:
            EmptyContentError: If the video has no transcript.
            IngestionError: If nothing could be stored.
        """
        video, transcript = await self.fetch_video(video_id)
        return await self.ingest_transcript(transcript, video, owner_id)

    async def fetch_video(self, video_id: str) -> tuple[VideoMetadata, Transcript]:
        """Fetch a video's metadata and transcript.

        Raises:
            EmptyContentError: If the video has no transcript.
            IngestionError: If the YouTube lookup fails.
        """
        youtube = self._require_youtube()

        try:
            video = await youtube.get_video(video_id)
            transcript = await youtube.get_transcript(video_id)
        except Exception as e:
            raise IngestionError(f"Could not fetch video {video_id}: {e}") from e

        if transcript is None:
            raise EmptyContentError(f"Transcript unavailable for video {video_id}")
        return video, transcript

    async def ingest_transcript(
        self,
        transcript: Transcript,
        video: VideoMetadata,
        owner_id: str,
    ) -> IngestionResult:
        """Ingest an already fetched transcript, titled with the video title."""
        return await self.ingest(
            transcript.text,
            owner_id=owner_id,
            content_type=ContentType.TRANSCRIPT,
            source_id=video.id,
            source_title=video.title,
            extra_metadata={
                "video_url": video.url,
                "lang": transcript.lang,
                "duration_seconds": video.duration_seconds,
            },
        )

    async def ingest_video_comments(
        self,
        video_id: str,
        owner_id: str,
        video_title: str,
    ) -> IngestionResult:
        """Fetch a video's top comments and ingest them.

        Comments are optional for a video: when the fetch fails (comments
        disabled, quota exceeded) the error is recorded in the result instead
        of raised, so the transcript already ingested is unaffected.
        """
        youtube = self._require_youtube()
        try:
            comments = await youtube.get_comments(video_id, self.config.max_comments)
        except Exception as e:
            logger.warning(
                "comments_skipped",
                video_id=video_id,
                error_type=type(e).__name__,
                error=str(e),
            )
            return IngestionResult(
                source_id=video_id,
                content_type=ContentType.COMMENT,
                errors=[f"comment fetch failed: {e}"],
            )
        return await self.ingest_comments(comments, owner_id, video_id, video_title)

    async def ingest_document(
        self,
        text: str,
        owner_id: str,
        document_id: str,
        file_name: str,
        extra_metadata: dict[str, Any] | None = None,
    ) -> IngestionResult:
        """Ingest the extracted text of an uploaded document."""
        metadata = {"file_name": file_name}
        metadata.update(extra_metadata or {})

        return await self.ingest(
            text,
            owner_id=owner_id,
            content_type=ContentType.DOCUMENT,
            source_id=document_id,
            source_title=file_name,
            extra_metadata=metadata,
        )

    async def delete_source(
        self,
        owner_id: str,
        source_id: str,
        content_type: ContentType | None = None,
    ) -> int:
        """Remove the chunks of one source of one owner.

        Returns:
            Number of chunks deleted.
        """
        self._check_source(owner_id, source_id)
        return await self.storage_service.delete_source(
            owner_id,
            source_id,
            content_type.value if content_type else None,
        )
