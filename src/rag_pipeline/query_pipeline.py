"""Question answering pipeline: validate, retrieve, assemble."""

from src.utils.logging import get_logger

from .answer_service import AnswerService
from .config import RAGConfig
from .exceptions import InvalidQuestionError
from .profiles import get_profile
from .retrieval_service import RetrievalService
from .schemas import Answer, ContentType, Query

logger = get_logger(__name__)


class QueryPipeline:
    """Answers questions about one owner's transcripts, documents or comments.

    Each call is handled independently: validation happens before any
    external call, retrieval completes before assembly starts, and no state
    is shared between questions.
    """

    def __init__(
        self,
        config: RAGConfig,
        retrieval_service: RetrievalService,
        answer_service: AnswerService,
    ):
        self.config = config
        self.retrieval_service = retrieval_service
        self.answer_service = answer_service

    def validate(self, query: Query) -> Query:
        """Check a query and return it with the question trimmed.

        Raises:
            InvalidQuestionError: If the question is blank, the owner is
                missing, the scope is blank, the result limit is out of range,
                or the content type requires a scope that was not given.
        """
        question = query.question.strip() if query.question else ""
        if not question:
            raise InvalidQuestionError("Question is required and must be a non-empty string")

        if not query.owner_id or not query.owner_id.strip():
            raise InvalidQuestionError("An authenticated owner is required")

        if query.scope_id is not None and not query.scope_id.strip():
            raise InvalidQuestionError("Scope ID must not be blank")

        if not 1 <= query.result_limit <= self.config.max_result_limit:
            raise InvalidQuestionError(
                f"result_limit must be between 1 and {self.config.max_result_limit}"
            )

        profile = get_profile(query.content_type)
        if profile.requires_scope and not query.scope_id:
            raise InvalidQuestionError(
                f"A {profile.source_noun} question requires a video ID"
            )

        return query.model_copy(update={"question": question})

    async def ask(self, query: Query) -> Answer:
        """Answer one question.

        Args:
            query: Question, owner and optional scope.

        Returns:
            The assembled answer. ``has_answer`` is False when no chunk of
            this owner matched.

        Raises:
            InvalidQuestionError: If the query fails validation.
            RetrievalError: If the embedding or vector store call fails.
            GenerationError: If the chat model call fails.
        """
        query = self.validate(query)
        profile = get_profile(query.content_type)

        logger.info(
            "question_received",
            owner_id=query.owner_id,
            content_type=query.content_type.value,
            scope_id=query.scope_id,
            question_length=len(query.question),
            result_limit=query.result_limit,
        )

        chunks = await self.retrieval_service.retrieve(query)
        answer = await self.answer_service.answer(
            query.question,
            chunks,
            profile,
            scoped=query.scope_id is not None,
        )

        logger.info(
            "question_answered",
            owner_id=query.owner_id,
            has_answer=answer.has_answer,
            sources=len(answer.sources),
        )
        return answer

    async def ask_about_videos(
        self,
        question: str,
        owner_id: str,
        video_id: str | None = None,
        result_limit: int | None = None,
    ) -> Answer:
        """Ask across all transcripts of an owner, or within one video."""
        return await self.ask(
            Query(
                question=question,
                owner_id=owner_id,
                content_type=ContentType.TRANSCRIPT,
                scope_id=video_id,
                result_limit=(
                    self.config.default_result_limit if result_limit is None else result_limit
                ),
            )
        )

    async def ask_about_documents(
        self,
        question: str,
        owner_id: str,
        document_id: str | None = None,
        result_limit: int | None = None,
    ) -> Answer:
        """Ask across all documents of an owner, or within one document."""
        return await self.ask(
            Query(
                question=question,
                owner_id=owner_id,
                content_type=ContentType.DOCUMENT,
                scope_id=document_id,
                result_limit=(
                    self.config.default_result_limit if result_limit is None else result_limit
                ),
            )
        )

    async def ask_about_comments(
        self,
        question: str,
        owner_id: str,
        video_id: str,
        result_limit: int | None = None,
    ) -> Answer:
        """Ask about the ingested comments of one video."""
        return await self.ask(
            Query(
                question=question,
                owner_id=owner_id,
                content_type=ContentType.COMMENT,
                scope_id=video_id,
                result_limit=(
                    self.config.default_result_limit if result_limit is None else result_limit
                ),
            )
        )
