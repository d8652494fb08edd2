"""Answer assembly: context formatting, prompting and source packaging."""

from src.utils.logging import get_logger

from .chat_service import ChatService
from .exceptions import GenerationError
from .profiles import ContentProfile
from .schemas import Answer, RetrievedChunk, SourceExcerpt

logger = get_logger(__name__)


def format_context(chunks: list[RetrievedChunk]) -> str:
    """Format retrieved chunks as labelled context blocks.

    Args:
        chunks: Chunks in retrieval order.

    Returns:
        Blocks of ``[Source N - <title>]`` followed by the chunk content,
        separated by blank lines.

    Examples:
        >>> format_context([RetrievedChunk(content="Hi", metadata={"source_title": "Intro"})])
        '[Source 1 - Intro]\\nHi'
    """
    return "\n\n".join(
        f"[Source {index} - {chunk.source_title}]\n{chunk.content}"
        for index, chunk in enumerate(chunks, 1)
    )


def to_source_excerpt(chunk: RetrievedChunk) -> SourceExcerpt:
    """Map a retrieved chunk to its public-facing shape."""
    metadata = chunk.metadata
    like_count = metadata.get("like_count")

    return SourceExcerpt(
        source_id=chunk.source_id or "unknown",
        source_title=chunk.source_title,
        content_type=chunk.content_type or "unknown",
        content=chunk.content,
        author=metadata.get("author"),
        sentiment=metadata.get("sentiment"),
        like_count=int(like_count) if like_count is not None else None,
        similarity=chunk.similarity,
    )


class AnswerService:
    """Builds grounded answers from retrieved chunks.

    The chat model is only called when at least one chunk was retrieved.
    """

    def __init__(self, chat_service: ChatService):
        self.chat_service = chat_service

    async def answer(
        self,
        question: str,
        chunks: list[RetrievedChunk],
        profile: ContentProfile,
        scoped: bool = False,
    ) -> Answer:
        """Answer a question from retrieved chunks.

        Args:
            question: The user's question, passed verbatim to the model.
            chunks: Retrieved chunks in relevance order.
            profile: Wording for the content type being asked about.
            scoped: Whether the question targeted a single source, which
                selects the fallback message.

        Returns:
            Answer with ``has_answer=False`` and the profile's fallback text
            when ``chunks`` is empty, otherwise the model's text and sources.

        Raises:
            GenerationError: If the chat model call fails.
        """
        if not chunks:
            logger.info(
                "answer_fallback",
                content_type=profile.content_type.value,
                scoped=scoped,
            )
            return Answer(
                text=profile.fallback_message(scoped),
                sources=[],
                has_answer=False,
            )

        prompt = profile.build_prompt(question, format_context(chunks))

        try:
            text = await self.chat_service.complete(prompt)
        except Exception as e:
            raise GenerationError(f"Chat model call failed: {e}") from e

        logger.info(
            "answer_generated",
            content_type=profile.content_type.value,
            sources=len(chunks),
            answer_length=len(text),
        )
        return Answer(
            text=text,
            sources=[to_source_excerpt(chunk) for chunk in chunks],
            has_answer=True,
        )
