"""Pydantic schemas for the RAG ingestion and question answering pipeline."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ContentType(str, Enum):
    """Kind of source a chunk was produced from."""

    TRANSCRIPT = "transcript"
    DOCUMENT = "document"
    COMMENT = "comment"


class Sentiment(str, Enum):
    """Sentiment label attached to YouTube comments."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class VideoMetadata(BaseModel):
    """YouTube video metadata used to title transcript and comment chunks."""

    id: str
    title: str
    url: str
    duration_seconds: int | None = None


class Transcript(BaseModel):
    """Plain-text video transcript."""

    video_id: str
    text: str
    lang: str = "en"
    available_langs: list[str] = Field(default_factory=list)


class CommentRecord(BaseModel):
    """A single YouTube comment.

    ``sentiment`` is filled in by the sentiment classifier before ingestion
    when the source did not provide one.
    """

    text: str
    author: str = "Unknown"
    like_count: int = 0
    published_at: datetime | None = None
    sentiment: Sentiment | None = None
    comment_id: str | None = None


class Chunk(BaseModel):
    """Text window produced by the chunking service.

    ``metadata`` always carries owner_id, content_type, source_id and
    source_title once the ingestion pipeline has tagged it.
    """

    content: str
    chunk_index: int
    token_count: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)


class ChunkWithEmbedding(Chunk):
    """Chunk with embedding vector.

    This is what gets written to the vector store.
    """

    embedding: list[float]


class RetrievedChunk(BaseModel):
    """Chunk returned by a vector store search, nearest first."""

    content: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    similarity: float | None = None

    @property
    def owner_id(self) -> str | None:
        return self.metadata.get("owner_id")

    @property
    def source_id(self) -> str | None:
        return self.metadata.get("source_id")

    @property
    def source_title(self) -> str:
        return self.metadata.get("source_title") or "Unknown Source"

    @property
    def content_type(self) -> str | None:
        return self.metadata.get("content_type")


class Query(BaseModel):
    """A question asked by one owner.

    ``owner_id`` comes from the authenticated session, never from user input.
    """

    question: str
    owner_id: str
    content_type: ContentType = ContentType.TRANSCRIPT
    scope_id: str | None = None
    result_limit: int = 4


class SourceExcerpt(BaseModel):
    """Public-facing view of a retrieved chunk (no embedding exposed)."""

    source_id: str
    source_title: str
    content_type: str
    content: str
    author: str | None = None
    sentiment: str | None = None
    like_count: int | None = None
    similarity: float | None = None


class Answer(BaseModel):
    """Response of the question answering pipeline."""

    text: str
    sources: list[SourceExcerpt] = Field(default_factory=list)
    has_answer: bool


class IngestionResult(BaseModel):
    """Outcome of ingesting one source.

    Ingestion is best-effort: batches that failed to embed or store are
    listed in ``failed_chunk_indices`` and are not retried or rolled back.
    """

    source_id: str
    content_type: ContentType
    total_chunks: int = 0
    stored_chunks: int = 0
    failed_chunk_indices: list[int] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.stored_chunks == self.total_chunks and not self.failed_chunk_indices


class QAPair(BaseModel):
    """Generated question and answer about a source."""

    question: str
    answer: str


class SourceAnalysis(BaseModel):
    """LLM generated description and Q&A pairs for a source."""

    description: str
    qa_pairs: list[QAPair] = Field(default_factory=list)
    word_count: int = 0


class SentimentBreakdown(BaseModel):
    """Counts of comments per sentiment label."""

    positive: int = 0
    negative: int = 0
    neutral: int = 0


class CommentHighlight(BaseModel):
    """A stand-out comment for the insights view."""

    text: str
    author: str
    like_count: int = 0


class CommentInsights(BaseModel):
    """Aggregate view over all ingested comments of one video."""

    video_id: str
    total_comments: int = 0
    top_positive_comments: list[CommentHighlight] = Field(default_factory=list)
    top_negative_comments: list[CommentHighlight] = Field(default_factory=list)
    sentiment_breakdown: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
