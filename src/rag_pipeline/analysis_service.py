"""LLM analysis of ingested sources and aggregate views over comments."""

import json
import re
from typing import Any

from src.utils.logging import get_logger

from .chat_service import ChatService
from .config import RAGConfig
from .exceptions import GenerationError
from .schemas import (
    CommentHighlight,
    CommentInsights,
    ContentType,
    QAPair,
    RetrievedChunk,
    Sentiment,
    SentimentBreakdown,
    SourceAnalysis,
    SourceExcerpt,
)
from .storage_service import StorageService

logger = get_logger(__name__)

DESCRIPTION_PROMPT = """Based on the following {source_noun} content, generate a comprehensive and engaging description of it.

Title: {title}

Content:
{text}

Instructions:
1. Create a 2-3 paragraph description that summarizes the main topics and key points
2. Make it engaging and informative for someone who hasn't seen it
3. Highlight the most important insights or takeaways
4. Keep the tone professional but accessible
5. Do not include timestamps or references to specific segments

Description:"""

QA_PROMPT = """Based on the following {source_noun} content, generate 5-7 relevant question and answer pairs that would be commonly asked about it.

Title: {title}
Description: {description}

Content:
{text}

Instructions:
1. Generate diverse questions that cover different aspects of the content
2. Answers should be comprehensive but concise (2-3 sentences each)
3. Make sure answers are based only on the content above
4. IMPORTANT: Return ONLY a valid JSON array, no other text

Return format (JSON array only):
[
  {{"question": "What is the main topic?", "answer": "The main topic is..."}},
  {{"question": "What are the key takeaways?", "answer": "The key takeaways include..."}}
]"""

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")

TOP_COMMENTS = 3

_SOURCE_NOUNS = {
    ContentType.TRANSCRIPT: "video transcript",
    ContentType.DOCUMENT: "document",
    ContentType.COMMENT: "comment",
}


def parse_qa_pairs(reply: str) -> list[QAPair]:
    """Extract Q&A pairs from a model reply.

    The first ``[`` to the last ``]`` is parsed as JSON. Anything that is not
    a JSON array of objects yields an empty list.

    Examples:
        >>> parse_qa_pairs('Sure! [{"question": "Q?", "answer": "A."}]')
        [QAPair(question='Q?', answer='A.')]
        >>> parse_qa_pairs("no json here")
        []
    """
    match = _JSON_ARRAY.search(reply)
    if not match:
        logger.warning("qa_pairs_not_found", reply_length=len(reply))
        return []

    try:
        items = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        logger.warning("qa_pairs_parse_failed", error=str(e))
        return []

    if not isinstance(items, list):
        return []

    return [
        QAPair(question=str(item.get("question", "")), answer=str(item.get("answer", "")))
        for item in items
        if isinstance(item, dict)
    ]


def summarize_sentiment(sources: list[SourceExcerpt]) -> SentimentBreakdown:
    """Count sentiment labels over answer sources; unlabelled sources count as neutral."""
    breakdown = SentimentBreakdown()
    for source in sources:
        if source.sentiment == Sentiment.POSITIVE.value:
            breakdown.positive += 1
        elif source.sentiment == Sentiment.NEGATIVE.value:
            breakdown.negative += 1
        else:
            breakdown.neutral += 1
    return breakdown


def comment_key(metadata: dict[str, Any]) -> tuple[Any, ...]:
    """Identity of a stored comment that survives re-ingestion.

    Uses the YouTube comment id when known, otherwise author, text and date.
    """
    if metadata.get("comment_id"):
        return ("id", metadata["comment_id"])
    return (
        "text",
        metadata.get("author"),
        metadata.get("original_text"),
        metadata.get("published_at"),
    )


def _highlight(metadata: dict[str, Any], content: str) -> CommentHighlight:
    return CommentHighlight(
        text=metadata.get("original_text") or content,
        author=metadata.get("author") or "Unknown",
        like_count=int(metadata.get("like_count") or 0),
    )


class AnalysisService:
    """Generates descriptions and Q&A pairs, and comment insights."""

    def __init__(
        self,
        config: RAGConfig,
        chat_service: ChatService,
        storage_service: StorageService,
    ):
        self.config = config
        self.chat_service = chat_service
        self.storage_service = storage_service

    async def analyze_source(
        self,
        title: str,
        text: str,
        content_type: ContentType = ContentType.TRANSCRIPT,
    ) -> SourceAnalysis:
        """Describe a source and generate Q&A pairs about it.

        Only the first ``analysis_max_chars`` characters are sent to the model.
        The description is generated first and fed into the Q&A prompt.

        Raises:
            GenerationError: If a chat model call fails.
        """
        source_noun = _SOURCE_NOUNS[ContentType(content_type)]
        excerpt = text[: self.config.analysis_max_chars]

        logger.info(
            "analysis_started",
            title=title,
            content_type=ContentType(content_type).value,
            text_length=len(text),
        )

        try:
            description = await self.chat_service.complete(
                DESCRIPTION_PROMPT.format(source_noun=source_noun, title=title, text=excerpt)
            )
            reply = await self.chat_service.complete(
                QA_PROMPT.format(
                    source_noun=source_noun,
                    title=title,
                    description=description.strip(),
                    text=excerpt,
                )
            )
        except Exception as e:
            raise GenerationError(f"Source analysis failed: {e}") from e

        analysis = SourceAnalysis(
            description=description.strip(),
            qa_pairs=parse_qa_pairs(reply),
            word_count=len(text.split()),
        )

        logger.info(
            "analysis_completed",
            title=title,
            qa_pairs=len(analysis.qa_pairs),
            word_count=analysis.word_count,
        )
        return analysis

    async def comment_insights(self, owner_id: str, video_id: str) -> CommentInsights:
        """Aggregate all ingested comments of one video of one owner.

        Returns:
            Top positive and negative comments by likes and the sentiment
            breakdown. A video without ingested comments yields zero counts.
        """
        chunks = await self.storage_service.list_source_chunks(
            owner_id, video_id, ContentType.COMMENT.value
        )

        # A long comment may span several chunks and re-ingestion appends
        # copies; count each comment once.
        comments: dict[tuple[Any, ...], RetrievedChunk] = {}
        for chunk in chunks:
            if chunk.owner_id != owner_id:
                continue
            comments.setdefault(comment_key(chunk.metadata), chunk)

        positive: list[RetrievedChunk] = []
        negative: list[RetrievedChunk] = []
        breakdown = SentimentBreakdown()
        for chunk in comments.values():
            sentiment = chunk.metadata.get("sentiment")
            if sentiment == Sentiment.POSITIVE.value:
                breakdown.positive += 1
                positive.append(chunk)
            elif sentiment == Sentiment.NEGATIVE.value:
                breakdown.negative += 1
                negative.append(chunk)
            else:
                breakdown.neutral += 1

        def by_likes(chunk: RetrievedChunk) -> int:
            return int(chunk.metadata.get("like_count") or 0)

        insights = CommentInsights(
            video_id=video_id,
            total_comments=len(comments),
            top_positive_comments=[
                _highlight(chunk.metadata, chunk.content)
                for chunk in sorted(positive, key=by_likes, reverse=True)[:TOP_COMMENTS]
            ],
            top_negative_comments=[
                _highlight(chunk.metadata, chunk.content)
                for chunk in sorted(negative, key=by_likes, reverse=True)[:TOP_COMMENTS]
            ],
            sentiment_breakdown=breakdown,
        )

        logger.info(
            "comment_insights_computed",
            owner_id=owner_id,
            video_id=video_id,
            total_comments=insights.total_comments,
        )
        return insights
