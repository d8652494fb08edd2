"""Shared fixtures and in-memory fakes for the embedding, store and chat boundaries."""

import hashlib
import math
import re
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.rag_pipeline.chunking_service import ChunkingService
from src.rag_pipeline.config import RAGConfig
from src.rag_pipeline.deps import RAGDeps, build_deps
from src.rag_pipeline.schemas import ChunkWithEmbedding, RetrievedChunk

EMBEDDING_DIM = 64


def bag_of_words_vector(text: str, dim: int = EMBEDDING_DIM) -> list[float]:
    """Deterministic unit vector: each word increments one hashed dimension."""
    vector = [0.0] * dim
    for word in re.findall(r"\w+", text.lower()):
        bucket = int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % dim
        vector[bucket] += 1.0

    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return vector
    return [value / norm for value in vector]


class FakeEmbeddingService:
    """Embedding service stand-in with deterministic vectors."""

    def __init__(self, fail_on_calls: set[int] | None = None):
        self.calls: list[list[str]] = []
        self.fail_on_calls = fail_on_calls or set()

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        call_number = len(self.calls)
        self.calls.append(list(texts))
        if call_number in self.fail_on_calls:
            raise RuntimeError("embedding backend unavailable")
        return [bag_of_words_vector(text) for text in texts]

    async def embed_text(self, text: str) -> list[float]:
        embeddings = await self.embed_texts([text])
        return embeddings[0]


class InMemoryVectorStore:
    """Storage service stand-in with metadata containment filtering.

    Setting ``ignore_filter`` simulates a store that drops the predicate.
    """

    def __init__(self, ignore_filter: bool = False):
        self.rows: list[ChunkWithEmbedding] = []
        self.ignore_filter = ignore_filter
        self.search_calls: list[dict[str, Any]] = []
        self.fail_search = False

    async def add_chunks(self, chunks: list[ChunkWithEmbedding]) -> int:
        self.rows.extend(chunks)
        return len(chunks)

    async def search(
        self,
        query_embedding: list[float],
        match_count: int = 4,
        filter_metadata: dict[str, Any] | None = None,
    ) -> list[RetrievedChunk]:
        self.search_calls.append({"match_count": match_count, "filter": filter_metadata})
        if self.fail_search:
            raise RuntimeError("vector store unavailable")

        predicate = {} if self.ignore_filter else (filter_metadata or {})
        candidates = [
            row
            for row in self.rows
            if all(row.metadata.get(key) == value for key, value in predicate.items())
        ]

        scored = sorted(
            (
                (sum(a * b for a, b in zip(query_embedding, row.embedding, strict=True)), row)
                for row in candidates
            ),
            key=lambda pair: pair[0],
            reverse=True,
        )
        return [
            RetrievedChunk(content=row.content, metadata=dict(row.metadata), similarity=score)
            for score, row in scored[:match_count]
        ]

    async def list_source_chunks(
        self,
        owner_id: str,
        source_id: str,
        content_type: str | None = None,
    ) -> list[RetrievedChunk]:
        rows = [row for row in self.rows if self._matches(row, owner_id, source_id, content_type)]
        rows.sort(key=lambda row: row.chunk_index)
        return [RetrievedChunk(content=row.content, metadata=dict(row.metadata)) for row in rows]

    async def delete_source(
        self,
        owner_id: str,
        source_id: str,
        content_type: str | None = None,
    ) -> int:
        kept = [
            row for row in self.rows if not self._matches(row, owner_id, source_id, content_type)
        ]
        deleted = len(self.rows) - len(kept)
        self.rows = kept
        return deleted

    @staticmethod
    def _matches(
        row: ChunkWithEmbedding,
        owner_id: str,
        source_id: str,
        content_type: str | None,
    ) -> bool:
        return (
            row.metadata.get("owner_id") == owner_id
            and row.metadata.get("source_id") == source_id
            and (content_type is None or row.metadata.get("content_type") == content_type)
        )


class FakeChatService:
    """Chat service stand-in that records prompts."""

    def __init__(self, replies: list[str] | None = None, default_reply: str = "Generated answer."):
        self.prompts: list[str] = []
        self.replies = list(replies or [])
        self.default_reply = default_reply
        self.fail = False

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.fail:
            raise RuntimeError("chat backend unavailable")
        if self.replies:
            return self.replies.pop(0)
        return self.default_reply


@pytest.fixture
def config() -> RAGConfig:
    """Create test configuration independent of the environment."""
    return RAGConfig(
        chunk_size=1000,
        chunk_overlap=200,
        min_content_chars=3,
        default_result_limit=4,
        max_result_limit=10,
        over_fetch_factor=1,
        embedding_provider="openai",
        embedding_base_url="https://api.openai.com/v1",
        embedding_api_key="test_key",
        embedding_model="text-embedding-3-small",
        embedding_batch_size=16,
        llm_choice="gpt-4o-mini",
        llm_base_url="https://api.openai.com/v1",
        llm_api_key="test_key",
        supabase_url="https://test.supabase.co",
        supabase_key="test_key",
        supadata_api_key="test_key",
        youtube_api_key="test_key",
        max_comments=100,
        analysis_max_chars=8000,
    )


@pytest.fixture
def mock_tokenizer() -> MagicMock:
    """Create a mock tokenizer counting one token per word."""
    tokenizer = MagicMock()
    tokenizer.encode = lambda text: text.split()
    return tokenizer


@pytest.fixture
def chunking_service(config: RAGConfig, mock_tokenizer: MagicMock) -> ChunkingService:
    """Create chunking service with mocked tokenizer."""
    with patch("src.rag_pipeline.chunking_service.AutoTokenizer") as mock_auto:
        mock_auto.from_pretrained.return_value = mock_tokenizer
        return ChunkingService(config)


@pytest.fixture
def embedding_service() -> FakeEmbeddingService:
    return FakeEmbeddingService()


@pytest.fixture
def vector_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def chat_service() -> FakeChatService:
    return FakeChatService()


@pytest.fixture
def youtube_service() -> MagicMock:
    """Create mock YouTube service; tests set return values as needed."""
    return MagicMock()


@pytest.fixture
def deps(
    config: RAGConfig,
    chunking_service: ChunkingService,
    embedding_service: FakeEmbeddingService,
    vector_store: InMemoryVectorStore,
    chat_service: FakeChatService,
    youtube_service: MagicMock,
) -> RAGDeps:
    """Wire the real pipelines to the in-memory fakes."""
    return build_deps(
        config,
        embedding_service=embedding_service,
        storage_service=vector_store,
        chat_service=chat_service,
        youtube_service=youtube_service,
        chunking_service=chunking_service,
        http_client=AsyncMock(),
    )
