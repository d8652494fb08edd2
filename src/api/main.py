"""FastAPI application for the video and document question answering service.

Provides question endpoints for transcripts, documents and comments, ingestion
endpoints for videos and documents, and source deletion. Every endpoint is
scoped to the owner identified by the Supabase bearer token.
"""

import os
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, Security
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from src.rag_pipeline.analysis_service import summarize_sentiment
from src.rag_pipeline.config import RAGConfig
from src.rag_pipeline.deps import RAGDeps, build_deps
from src.rag_pipeline.exceptions import EmptyContentError, InvalidQuestionError, RAGError
from src.rag_pipeline.schemas import (
    Answer,
    CommentInsights,
    ContentType,
    IngestionResult,
    SentimentBreakdown,
    SourceAnalysis,
    SourceExcerpt,
)
from src.rag_pipeline.youtube_service import extract_video_id
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Check if we're in production
is_production = os.getenv("ENVIRONMENT") == "production"

if not is_production:
    # Development: prioritize .env file
    project_root = Path(__file__).resolve().parent.parent.parent
    dotenv_path = project_root / ".env"
    load_dotenv(dotenv_path, override=True)
else:
    # Production: use cloud platform env vars only
    load_dotenv()

GENERIC_ERROR = "Could not process your question. Please try again."


# ==============================================================================
# Lifespan Management
# ==============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the FastAPI application.

    Builds the services once at startup unless they were already provided on
    ``app.state.deps``, and closes the shared HTTP client on shutdown.
    """
    logger.info("application_startup_started")

    try:
        if getattr(app.state, "deps", None) is None:
            app.state.deps = build_deps()

        logger.info(
            "application_startup_completed",
            services=["embedding", "storage", "chat", "youtube"],
        )

    except Exception:
        logger.exception("application_startup_failed")
        raise

    yield  # Application runs here

    # Shutdown: Clean up resources
    logger.info("application_shutdown_started")
    await app.state.deps.aclose()
    logger.info("application_shutdown_completed")


# ==============================================================================
# FastAPI Application Setup
# ==============================================================================

app = FastAPI(
    title="Video & Document Q&A API",
    description="Owner-scoped RAG over YouTube transcripts, comments and documents",
    version="1.0.0",
    lifespan=lifespan,
)

security = HTTPBearer()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidQuestionError)
async def invalid_question_handler(request: Request, exc: InvalidQuestionError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(EmptyContentError)
async def empty_content_handler(request: Request, exc: EmptyContentError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(RAGError)
async def rag_error_handler(request: Request, exc: RAGError) -> JSONResponse:
    logger.error(
        "request_failed",
        path=request.url.path,
        error_type=type(exc).__name__,
        error=str(exc),
    )
    return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR})


# ==============================================================================
# Dependencies
# ==============================================================================


def get_deps(request: Request) -> RAGDeps:
    """Return the services built at startup."""
    deps = getattr(request.app.state, "deps", None)
    if deps is None:
        logger.error("services_not_initialized")
        raise HTTPException(status_code=500, detail="Services not initialized")
    return deps


async def verify_token(
    credentials: HTTPAuthorizationCredentials = Security(security),
    deps: RAGDeps = Depends(get_deps),
) -> dict[str, Any]:
    """Verify the JWT token from Supabase and return the user information.

    Args:
        credentials: The HTTP Authorization credentials containing the bearer token.
        deps: Services holding the shared HTTP client and Supabase settings.

    Returns:
        User information from Supabase.

    Raises:
        HTTPException: If the token is invalid or the user cannot be verified.
    """
    logger.info("auth_verification_started")

    try:
        token = credentials.credentials

        # Make request to Supabase auth API to get user info
        response = await deps.http_client.get(
            f"{deps.config.supabase_url}/auth/v1/user",
            headers={"Authorization": f"Bearer {token}", "apikey": deps.config.supabase_key},
        )

        if response.status_code != 200:
            logger.warning(
                "auth_verification_failed",
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise HTTPException(status_code=401, detail="Invalid authentication token")

        user_data = response.json()
        if not user_data.get("id"):
            raise HTTPException(status_code=401, detail="Invalid authentication token")

        logger.info("auth_verification_completed", user_id=user_data.get("id"))

        return user_data

    except HTTPException:
        raise
    except Exception as e:
        logger.exception("auth_verification_error")
        raise HTTPException(status_code=401, detail=f"Authentication error: {str(e)}")


def resolve_result_limit(max_results: int | None, config: RAGConfig) -> int:
    """Clamp a requested source count; out-of-range values fall back to the default.

    Examples:
        >>> resolve_result_limit(50, RAGConfig())
        4
    """
    if max_results is None or not 1 <= max_results <= config.max_result_limit:
        return config.default_result_limit
    return max_results


# ==============================================================================
# Request/Response Models
# ==============================================================================


class ChatRequest(BaseModel):
    """Question about the caller's video transcripts."""

    question: str
    video_id: str | None = None
    max_results: int | None = None


class DocumentChatRequest(BaseModel):
    """Question about the caller's documents."""

    question: str
    document_id: str | None = None
    max_results: int | None = None


class CommentsChatRequest(BaseModel):
    """Question about, or insights into, the comments of one video."""

    video_id: str
    question: str | None = None
    type: Literal["question", "insights"] = "question"
    max_results: int | None = None


class CommentsAnswer(BaseModel):
    answer: str
    sources: list[SourceExcerpt]
    has_answer: bool
    total_comments: int
    sentiment_breakdown: SentimentBreakdown


class VideoIngestRequest(BaseModel):
    video: str
    include_comments: bool = False
    analyze: bool = True


class VideoIngestResponse(BaseModel):
    video_id: str
    title: str
    transcript: IngestionResult
    comments: IngestionResult | None = None
    analysis: SourceAnalysis | None = None


class DocumentIngestRequest(BaseModel):
    text: str
    file_name: str
    document_id: str | None = None
    analyze: bool = True


class DocumentIngestResponse(BaseModel):
    document_id: str
    ingestion: IngestionResult
    analysis: SourceAnalysis | None = None


def _answer_payload(answer: Answer) -> dict[str, Any]:
    return {
        "answer": answer.text,
        "sources": [source.model_dump() for source in answer.sources],
        "has_answer": answer.has_answer,
    }


# ==============================================================================
# API Endpoints
# ==============================================================================


@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint.

    Returns:
        Health status and timestamp.
    """
    deps = getattr(request.app.state, "deps", None)
    return {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "services": {
            "embedding": deps is not None and deps.embedding_service is not None,
            "storage": deps is not None and deps.storage_service is not None,
            "chat": deps is not None and deps.chat_service is not None,
            "youtube": deps is not None and deps.youtube_service is not None,
        },
    }


@app.post("/api/chat")
async def chat_endpoint(
    request: ChatRequest,
    user: dict[str, Any] = Depends(verify_token),
    deps: RAGDeps = Depends(get_deps),
):
    """Answer a question from the caller's video transcripts."""
    answer = await deps.queries.ask_about_videos(
        request.question,
        owner_id=user["id"],
        video_id=request.video_id,
        result_limit=resolve_result_limit(request.max_results, deps.config),
    )
    return _answer_payload(answer)


@app.post("/api/documents/chat")
async def document_chat_endpoint(
    request: DocumentChatRequest,
    user: dict[str, Any] = Depends(verify_token),
    deps: RAGDeps = Depends(get_deps),
):
    """Answer a question from the caller's documents."""
    answer = await deps.queries.ask_about_documents(
        request.question,
        owner_id=user["id"],
        document_id=request.document_id,
        result_limit=resolve_result_limit(request.max_results, deps.config),
    )
    return _answer_payload(answer)


@app.post("/api/comments-chat", response_model=CommentsAnswer | CommentInsights)
async def comments_chat_endpoint(
    request: CommentsChatRequest,
    user: dict[str, Any] = Depends(verify_token),
    deps: RAGDeps = Depends(get_deps),
):
    """Answer a question about a video's comments, or summarise them."""
    if request.type == "insights":
        return await deps.analysis.comment_insights(user["id"], request.video_id)

    answer = await deps.queries.ask_about_comments(
        request.question or "",
        owner_id=user["id"],
        video_id=request.video_id,
        result_limit=resolve_result_limit(request.max_results, deps.config),
    )
    return CommentsAnswer(
        answer=answer.text,
        sources=answer.sources,
        has_answer=answer.has_answer,
        total_comments=len(answer.sources),
        sentiment_breakdown=summarize_sentiment(answer.sources),
    )


@app.post("/api/videos", response_model=VideoIngestResponse)
async def ingest_video_endpoint(
    request: VideoIngestRequest,
    user: dict[str, Any] = Depends(verify_token),
    deps: RAGDeps = Depends(get_deps),
):
    """Transcribe a YouTube video into the caller's library."""
    video_id = extract_video_id(request.video)
    if not video_id:
        raise HTTPException(status_code=400, detail="Invalid YouTube URL or video ID")

    logger.info("video_ingest_requested", user_id=user["id"], video_id=video_id)

    try:
        video = await deps.youtube_service.get_video(video_id)
        transcript = await deps.youtube_service.get_transcript(video_id)
    except Exception as e:
        logger.exception("video_fetch_failed", video_id=video_id)
        raise HTTPException(status_code=502, detail="Could not fetch the video") from e

    if transcript is None:
        raise HTTPException(status_code=400, detail="No transcript available for this video")

    ingestion = await deps.ingestion.ingest_transcript(transcript, video, user["id"])

    comments = None
    if request.include_comments:
        comments = await deps.ingestion.ingest_video_comments(video_id, user["id"], video.title)

    analysis = None
    if request.analyze:
        analysis = await deps.analysis.analyze_source(
            video.title, transcript.text, ContentType.TRANSCRIPT
        )

    return VideoIngestResponse(
        video_id=video_id,
        title=video.title,
        transcript=ingestion,
        comments=comments,
        analysis=analysis,
    )


@app.post("/api/documents", response_model=DocumentIngestResponse)
async def ingest_document_endpoint(
    request: DocumentIngestRequest,
    user: dict[str, Any] = Depends(verify_token),
    deps: RAGDeps = Depends(get_deps),
):
    """Add extracted document text to the caller's library."""
    document_id = request.document_id or str(uuid.uuid4())

    ingestion = await deps.ingestion.ingest_document(
        request.text,
        owner_id=user["id"],
        document_id=document_id,
        file_name=request.file_name,
    )

    analysis = None
    if request.analyze:
        analysis = await deps.analysis.analyze_source(
            request.file_name, request.text, ContentType.DOCUMENT
        )

    return DocumentIngestResponse(
        document_id=document_id,
        ingestion=ingestion,
        analysis=analysis,
    )


@app.delete("/api/sources/{content_type}/{source_id}")
async def delete_source_endpoint(
    content_type: ContentType,
    source_id: str,
    user: dict[str, Any] = Depends(verify_token),
    deps: RAGDeps = Depends(get_deps),
):
    """Delete the caller's chunks of one source."""
    deleted = await deps.ingestion.delete_source(user["id"], source_id, content_type)
    return {"source_id": source_id, "content_type": content_type.value, "deleted": deleted}
