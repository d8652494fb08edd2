"""Exception hierarchy for the RAG pipeline.

    RAGError                  (base, anything the pipeline raises on purpose)
    +-- InvalidQuestionError  (rejected before any external call)
    +-- IngestionError        (nothing could be stored for a source)
    |   +-- EmptyContentError (empty or near-empty input text)
    +-- RetrievalError        (embedding or vector store failure at query time)
    +-- GenerationError       (chat model failure)

"No matching chunks" is not an error: it is an ``Answer`` with
``has_answer=False``.
"""

from typing import Any


class RAGError(Exception):
    """Base exception for all pipeline errors."""


class InvalidQuestionError(RAGError):
    """Raised when a query fails validation."""


class IngestionError(RAGError):
    """Raised when a source could not be ingested.

    Attributes:
        result: The partial ``IngestionResult`` when one was produced.
    """

    def __init__(self, message: str, result: Any | None = None) -> None:
        super().__init__(message)
        self.result = result


class EmptyContentError(IngestionError):
    """Raised when the text to ingest is empty or near-empty."""


class RetrievalError(RAGError):
    """Raised when the embedding or vector store call fails during retrieval."""


class GenerationError(RAGError):
    """Raised when the chat model call fails."""
