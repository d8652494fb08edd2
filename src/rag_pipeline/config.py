"""Configuration module for the RAG question answering pipeline."""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


class RAGConfig(BaseModel):
    """Configuration for ingestion and question answering.

    This configuration class manages all settings for chunking, embedding,
    vector storage, retrieval, answer generation and the YouTube sources.
    All settings can be overridden via environment variables or explicit
    keyword arguments.
    """

    # Chunking settings (character based)
    chunk_size: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_SIZE", "1000"))
    )
    chunk_overlap: int = Field(
        default_factory=lambda: int(os.getenv("CHUNK_OVERLAP", "200"))
    )
    min_content_chars: int = Field(
        default_factory=lambda: int(os.getenv("MIN_CONTENT_CHARS", "3"))
    )

    # Retrieval settings
    default_result_limit: int = Field(
        default_factory=lambda: int(os.getenv("DEFAULT_RESULT_LIMIT", "4"))
    )
    max_result_limit: int = Field(
        default_factory=lambda: int(os.getenv("MAX_RESULT_LIMIT", "10"))
    )
    over_fetch_factor: int = Field(
        default_factory=lambda: int(os.getenv("OVER_FETCH_FACTOR", "1"))
    )

    # Embedding settings
    embedding_provider: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_PROVIDER", "openai")
    )
    embedding_base_url: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_BASE_URL", "https://api.openai.com/v1"
        )
    )
    embedding_api_key: str = Field(
        default_factory=lambda: os.getenv("EMBEDDING_API_KEY", "")
    )
    embedding_model: str = Field(
        default_factory=lambda: os.getenv(
            "EMBEDDING_MODEL_CHOICE", "text-embedding-3-small"
        )
    )
    embedding_batch_size: int = Field(
        default_factory=lambda: int(os.getenv("EMBEDDING_BATCH_SIZE", "16"))
    )

    # Chat model settings
    llm_choice: str = Field(default_factory=lambda: os.getenv("LLM_CHOICE", "gpt-4o-mini"))
    llm_base_url: str = Field(
        default_factory=lambda: os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
    )
    llm_api_key: str = Field(default_factory=lambda: os.getenv("LLM_API_KEY", "ollama"))

    # Vector store settings (Supabase + pgvector)
    supabase_url: str = Field(default_factory=lambda: os.getenv("SUPABASE_URL", ""))
    supabase_key: str = Field(
        default_factory=lambda: os.getenv("SUPABASE_SERVICE_KEY", "")
    )
    chunks_table: str = Field(
        default_factory=lambda: os.getenv("CHUNKS_TABLE", "content_chunks")
    )
    match_function: str = Field(
        default_factory=lambda: os.getenv("MATCH_FUNCTION", "match_content_chunks")
    )

    # YouTube settings
    supadata_api_key: str = Field(
        default_factory=lambda: os.getenv("SUPADATA_API_KEY", "")
    )
    youtube_api_key: str = Field(
        default_factory=lambda: os.getenv("YOUTUBE_API_KEY", "")
    )
    max_comments: int = Field(
        default_factory=lambda: int(os.getenv("MAX_COMMENTS", "100"))
    )

    # Analysis settings
    analysis_max_chars: int = Field(
        default_factory=lambda: int(os.getenv("ANALYSIS_MAX_CHARS", "8000"))
    )


def get_config() -> RAGConfig:
    """Get validated configuration instance.

    Returns:
        RAGConfig: Validated configuration object with all settings.

    Raises:
        ValidationError: If environment variables hold invalid values.
    """
    return RAGConfig()
