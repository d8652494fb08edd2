"""Unit tests for source analysis and comment insights."""

from typing import Any

import pytest

from src.rag_pipeline.analysis_service import (
    AnalysisService,
    comment_key,
    parse_qa_pairs,
    summarize_sentiment,
)
from src.rag_pipeline.config import RAGConfig
from src.rag_pipeline.deps import RAGDeps
from src.rag_pipeline.exceptions import GenerationError
from src.rag_pipeline.schemas import CommentRecord, ContentType, QAPair, SourceExcerpt

QA_REPLY = """Here you go:
[
  {"question": "What is the main topic?", "answer": "Unit testing."},
  {"question": "Who is it for?", "answer": "Developers."}
]"""


@pytest.mark.unit
class TestParseQAPairs:
    """Test suite for parse_qa_pairs."""

    def test_extracts_array_from_prose(self) -> None:
        assert parse_qa_pairs(QA_REPLY) == [
            QAPair(question="What is the main topic?", answer="Unit testing."),
            QAPair(question="Who is it for?", answer="Developers."),
        ]

    @pytest.mark.parametrize("reply", ["", "No JSON at all", "[not valid json]", "[1, 2]"])
    def test_unparseable_reply_is_empty(self, reply: str) -> None:
        assert parse_qa_pairs(reply) == []


@pytest.mark.unit
class TestSummarizeSentiment:
    def test_counts(self) -> None:
        sources = [
            SourceExcerpt(
                source_id="v1",
                source_title="t",
                content_type="comment",
                content=text,
                sentiment=sentiment,
            )
            for text, sentiment in (("a", "positive"), ("b", "negative"), ("c", None))
        ]

        breakdown = summarize_sentiment(sources)

        assert (breakdown.positive, breakdown.negative, breakdown.neutral) == (1, 1, 1)


@pytest.mark.unit
class TestAnalysisService:
    """Test suite for AnalysisService class."""

    @pytest.fixture
    def analysis(
        self, config: RAGConfig, chat_service: Any, vector_store: Any
    ) -> AnalysisService:
        return AnalysisService(config, chat_service, vector_store)

    @pytest.mark.asyncio
    async def test_analyze_source(self, analysis: AnalysisService, chat_service: Any) -> None:
        """Test description then Q&A generation."""
        chat_service.replies = ["  A video about testing.  ", QA_REPLY]

        result = await analysis.analyze_source(
            "Testing 101", "Discussing unit testing today.", ContentType.TRANSCRIPT
        )

        assert result.description == "A video about testing."
        assert len(result.qa_pairs) == 2
        assert result.word_count == 4
        assert "Title: Testing 101" in chat_service.prompts[0]
        assert "Description: A video about testing." in chat_service.prompts[1]

    @pytest.mark.asyncio
    async def test_analyze_source_truncates_text(
        self, config: RAGConfig, chat_service: Any, vector_store: Any
    ) -> None:
        analysis = AnalysisService(
            config.model_copy(update={"analysis_max_chars": 10}), chat_service, vector_store
        )

        await analysis.analyze_source("Doc", "0123456789ABCDEF", ContentType.DOCUMENT)

        assert "0123456789" in chat_service.prompts[0]
        assert "ABCDEF" not in chat_service.prompts[0]

    @pytest.mark.asyncio
    async def test_analyze_source_bad_json(
        self, analysis: AnalysisService, chat_service: Any
    ) -> None:
        chat_service.replies = ["Description.", "Sorry, I cannot do that."]

        result = await analysis.analyze_source("Doc", "Some text here.", ContentType.DOCUMENT)

        assert result.qa_pairs == []

    @pytest.mark.asyncio
    async def test_analyze_source_failure(
        self, analysis: AnalysisService, chat_service: Any
    ) -> None:
        chat_service.fail = True

        with pytest.raises(GenerationError):
            await analysis.analyze_source("Doc", "Some text here.")

    @pytest.mark.asyncio
    async def test_comment_insights(self, deps: RAGDeps) -> None:
        """Test top comments by likes and the breakdown for one owner's video."""
        await deps.ingestion.ingest_comments(
            [
                CommentRecord(text="Great and helpful", author="A", like_count=5),
                CommentRecord(text="Amazing, thanks", author="B", like_count=50),
                CommentRecord(text="Awesome content", author="C", like_count=1),
                CommentRecord(text="Excellent work", author="D", like_count=20),
                CommentRecord(text="Terrible audio", author="E", like_count=3),
                CommentRecord(text="Posted on Monday", author="F", like_count=0),
            ],
            "u1",
            "v1",
            "Testing",
        )
        await deps.ingestion.ingest_comments(
            [CommentRecord(text="Worst video ever", author="X", like_count=999)],
            "u2",
            "v1",
            "Testing",
        )

        insights = await deps.analysis.comment_insights("u1", "v1")

        assert insights.total_comments == 6
        assert [c.author for c in insights.top_positive_comments] == ["B", "D", "A"]
        assert [c.author for c in insights.top_negative_comments] == ["E"]
        assert insights.top_positive_comments[0].text == "Amazing, thanks"
        breakdown = insights.sentiment_breakdown
        assert (breakdown.positive, breakdown.negative, breakdown.neutral) == (4, 1, 1)

    @pytest.mark.asyncio
    async def test_comment_insights_count_reingested_comments_once(
        self, deps: RAGDeps
    ) -> None:
        """Test that ingesting the same comments twice does not double them."""
        comments = [
            CommentRecord(text="Amazing, thanks", author="B", like_count=50),
            CommentRecord(
                text="Terrible audio", author="E", like_count=3, comment_id="UgxComment2"
            ),
        ]
        for _ in range(2):
            await deps.ingestion.ingest_comments(comments, "u1", "v1", "Testing")

        insights = await deps.analysis.comment_insights("u1", "v1")

        assert insights.total_comments == 2
        assert [c.author for c in insights.top_positive_comments] == ["B"]
        assert [c.author for c in insights.top_negative_comments] == ["E"]

    def test_comment_key(self) -> None:
        assert comment_key({"comment_id": "Ugx1", "author": "A"}) == ("id", "Ugx1")
        assert comment_key({"author": "A", "original_text": "hi"}) != comment_key(
            {"author": "B", "original_text": "hi"}
        )

    @pytest.mark.asyncio
    async def test_comment_insights_without_comments(self, analysis: AnalysisService) -> None:
        insights = await analysis.comment_insights("u1", "v1")

        assert insights.total_comments == 0
        assert insights.top_positive_comments == []
