"""Chunking service for overlapping, boundary-aware text windows."""

from typing import Any

from transformers import AutoTokenizer

from src.utils.logging import get_logger

from .config import RAGConfig
from .schemas import Chunk

logger = get_logger(__name__)

# Cut preference, strongest boundary first. A hard cut is the last resort.
_SEPARATORS = ("\n\n", "\n", ". ", "! ", "? ", " ")


class ChunkingService:
    """Service for splitting transcripts, documents and comments into windows.

    Windows are at most ``chunk_size`` characters long and consecutive windows
    share exactly ``chunk_overlap`` characters, so a sentence cut by one
    boundary is still whole in the neighbouring chunk. Each window ends on the
    strongest boundary (paragraph, line, sentence, word) found in its second
    half, falling back to a hard character cut.
    """

    def __init__(self, config: RAGConfig):
        """Initialize chunking service with configuration.

        Args:
            config: Configuration object with window size, overlap and the
                embedding model used to pick a tokenizer.

        Raises:
            ValueError: If the window or overlap settings are inconsistent.
        """
        if config.chunk_size <= 0:
            raise ValueError("chunk_size must be greater than zero")
        if config.chunk_overlap < 0:
            raise ValueError("chunk_overlap must be greater than or equal to zero")
        if config.chunk_overlap >= config.chunk_size:
            raise ValueError("chunk_overlap must be smaller than chunk_size")

        self.config = config
        self.chunk_size = config.chunk_size
        self.chunk_overlap = config.chunk_overlap
        self.tokenizer = self._get_tokenizer(config.embedding_model)
        logger.info(
            "chunking_service_initialized",
            chunk_size=self.chunk_size,
            chunk_overlap=self.chunk_overlap,
            model=config.embedding_model,
        )

    def _get_tokenizer(self, embedding_model: str) -> Any:
        """Get a tokenizer compatible with the embedding model.

        Token counts are stored with every chunk for telemetry only; window
        sizes are measured in characters.

        Args:
            embedding_model: Name of the embedding model.

        Returns:
            Configured AutoTokenizer instance (untyped due to transformers library).
        """
        tokenizer_map = {
            "text-embedding-3-small": "sentence-transformers/all-MiniLM-L6-v2",
            "text-embedding-3-large": "sentence-transformers/all-MiniLM-L6-v2",
            "nomic-embed-text": "bert-base-uncased",
            "all-MiniLM-L6-v2": "sentence-transformers/all-MiniLM-L6-v2",
        }

        tokenizer_name = tokenizer_map.get(
            embedding_model, "sentence-transformers/all-MiniLM-L6-v2"
        )
        logger.info("loading_tokenizer", tokenizer=tokenizer_name)
        return AutoTokenizer.from_pretrained(tokenizer_name)  # type: ignore

    def split(self, text: str) -> list[str]:
        """Split text into overlapping windows.

        Args:
            text: Text to split.

        Returns:
            Ordered list of windows. Empty or whitespace-only input yields
            an empty list.
        """
        if not text or not text.strip():
            return []

        windows: list[str] = []
        start = 0
        length = len(text)

        while length - start > self.chunk_size:
            end = self._find_cut(text, start)
            windows.append(text[start:end])
            start = end - self.chunk_overlap

        windows.append(text[start:])
        return windows

    def _find_cut(self, text: str, start: int) -> int:
        """Return the end offset of the window beginning at ``start``.

        The cut lies in ``(start + chunk_overlap, start + chunk_size]`` so that
        every window advances and none exceeds the size limit.
        """
        window_end = start + self.chunk_size
        min_end = start + max(self.chunk_overlap + 1, self.chunk_size // 2)

        for separator in _SEPARATORS:
            index = text.rfind(separator, min_end - len(separator), window_end)
            if index != -1:
                return index + len(separator)

        return window_end

    def chunk_text(self, text: str, metadata: dict[str, Any] | None = None) -> list[Chunk]:
        """Split text and wrap every window in a Chunk.

        Args:
            text: Text to split.
            metadata: Metadata copied onto every chunk.

        Returns:
            List of Chunk objects ready for embedding generation.
        """
        windows = self.split(text)

        chunks = [
            Chunk(
                content=window,
                chunk_index=index,
                token_count=len(self.tokenizer.encode(window)),
                metadata=dict(metadata or {}),
            )
            for index, window in enumerate(windows)
        ]

        logger.info(
            "chunking_completed",
            source_id=(metadata or {}).get("source_id"),
            text_length=len(text),
            chunks_created=len(chunks),
        )
        return chunks
