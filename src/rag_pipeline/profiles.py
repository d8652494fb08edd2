"""Per content type settings for the shared retrieval and answer pipeline.

Transcripts, documents and comments go through the same retrieval and
answer assembly code; only the wording below differs between them.
"""

from dataclasses import dataclass

from .schemas import ContentType

PROMPT_TEMPLATE = """You are a helpful assistant that answers questions based on {subject}.
Use the following context from {subject} to answer the user's question.

Context from {subject}:
{context}

Question: {question}

Instructions:
1. Answer the question based ONLY on the provided context from the {subject}
2. If the context doesn't contain enough information to answer the question, say "{insufficient}"
3. Be specific and cite the relevant sources (e.g. [Source 1]) when possible
4. If the context comes from several {source_noun}s, make sure to distinguish between them
5. Keep your answer concise but informative
{extra_instructions}
Answer:"""


@dataclass(frozen=True)
class ContentProfile:
    """Wording and defaults for one content type.

    Attributes:
        content_type: Content type the profile applies to.
        subject: Plural description used in the prompt ("video transcripts").
        source_noun: Singular noun for one source ("video").
        no_content_message: Returned when nothing matched an unscoped question.
        scoped_no_content_message: Returned when nothing matched inside one source.
        insufficient_message: Sentence the model must use when context is not enough.
        extra_instructions: Additional numbered instructions, may be empty.
        requires_scope: Whether questions must name a source.
    """

    content_type: ContentType
    subject: str
    source_noun: str
    no_content_message: str
    scoped_no_content_message: str
    insufficient_message: str
    extra_instructions: str = ""
    requires_scope: bool = False

    def fallback_message(self, scoped: bool) -> str:
        """Return the fixed answer used when retrieval found nothing."""
        return self.scoped_no_content_message if scoped else self.no_content_message

    def build_prompt(self, question: str, context: str) -> str:
        """Render the full prompt for one question."""
        return PROMPT_TEMPLATE.format(
            subject=self.subject,
            source_noun=self.source_noun,
            context=context,
            question=question,
            insufficient=self.insufficient_message,
            extra_instructions=self.extra_instructions,
        )


TRANSCRIPT_PROFILE = ContentProfile(
    content_type=ContentType.TRANSCRIPT,
    subject="YouTube video transcripts",
    source_noun="video",
    no_content_message=(
        "I don't have any video transcripts in your library to answer this question. "
        "Please upload and transcribe some videos first."
    ),
    scoped_no_content_message=(
        "I don't have enough information about this specific video to answer your question."
    ),
    insufficient_message=(
        "I don't have enough information in the video transcripts to answer this question."
    ),
)

DOCUMENT_PROFILE = ContentProfile(
    content_type=ContentType.DOCUMENT,
    subject="uploaded documents (PDF, DOC, DOCX)",
    source_noun="document",
    no_content_message=(
        "I don't have any documents in your library to answer this question. "
        "Please upload some PDF or DOC files first."
    ),
    scoped_no_content_message=(
        "I don't have enough information about this specific document to answer your question."
    ),
    insufficient_message=(
        "I don't have enough information in the uploaded documents to answer this question."
    ),
    extra_instructions=(
        "6. If you reference specific information, mention which document it came from\n"
    ),
)

COMMENT_PROFILE = ContentProfile(
    content_type=ContentType.COMMENT,
    subject="YouTube video comments",
    source_noun="comment",
    no_content_message=(
        "I couldn't find any relevant comments to answer your question."
    ),
    scoped_no_content_message=(
        "I couldn't find any relevant comments for this video to answer your question. "
        "The video might not have comments yet, or there might not be any comments "
        "that match your query."
    ),
    insufficient_message="I can't answer that based on the available comments.",
    extra_instructions=(
        "6. Provide insights about viewer sentiment, common themes or specific feedback\n"
        "7. If the question is about sentiment trends, provide a breakdown\n"
    ),
    requires_scope=True,
)

PROFILES: dict[ContentType, ContentProfile] = {
    ContentType.TRANSCRIPT: TRANSCRIPT_PROFILE,
    ContentType.DOCUMENT: DOCUMENT_PROFILE,
    ContentType.COMMENT: COMMENT_PROFILE,
}


def get_profile(content_type: ContentType | str) -> ContentProfile:
    """Look up the profile for a content type.

    Raises:
        ValueError: If the content type is unknown.
    """
    return PROFILES[ContentType(content_type)]
