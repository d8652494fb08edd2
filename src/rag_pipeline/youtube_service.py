"""YouTube service for fetching transcripts (Supadata) and comments (YouTube Data API)."""

import re
from datetime import datetime

import httpx
from supadata import Supadata

from src.utils.logging import get_logger

from .config import RAGConfig
from .schemas import CommentRecord, Transcript, VideoMetadata

logger = get_logger(__name__)

COMMENT_THREADS_URL = "https://www.googleapis.com/youtube/v3/commentThreads"

_VIDEO_ID_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?(?:.*&)?v=)([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:youtu\.be/)([A-Za-z0-9_-]{11})"),
    re.compile(r"(?:youtube\.com/(?:shorts|embed|live)/)([A-Za-z0-9_-]{11})"),
)
_BARE_VIDEO_ID = re.compile(r"^[A-Za-z0-9_-]{11}$")


def extract_video_id(value: str) -> str | None:
    """Extract the 11-character video ID from a YouTube URL or bare ID.

    Examples:
        >>> extract_video_id("https://youtube.com/watch?v=dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
        >>> extract_video_id("https://youtu.be/dQw4w9WgXcQ")
        'dQw4w9WgXcQ'
        >>> extract_video_id("not a video") is None
        True
    """
    value = value.strip()
    if _BARE_VIDEO_ID.match(value):
        return value

    for pattern in _VIDEO_ID_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    return None


def format_video_url(video_id: str) -> str:
    """Format the canonical watch URL for a video."""
    return f"https://youtube.com/watch?v={video_id}"


class YouTubeService:
    """Service for fetching YouTube data.

    Transcripts and titles come from the Supadata API; comments come from the
    YouTube Data API v3 ``commentThreads`` endpoint.
    """

    def __init__(
        self,
        config: RAGConfig,
        http_client: httpx.AsyncClient | None = None,
        client: Supadata | None = None,
    ):
        """Initialize YouTube service with configuration.

        Args:
            config: Configuration object with Supadata and YouTube API keys.
            http_client: Shared HTTP client for the YouTube Data API.
            client: Pre-built Supadata client.
        """
        self.config = config
        self.client = client or Supadata(api_key=config.supadata_api_key)
        self.http_client = http_client or httpx.AsyncClient(timeout=30.0)
        logger.info(
            "youtube_service_initialized",
            api_key_present=bool(config.supadata_api_key),
            comments_enabled=bool(config.youtube_api_key),
        )

    async def get_video(self, video_id: str) -> VideoMetadata:
        """Fetch title and duration for a video.

        Args:
            video_id: YouTube video ID.

        Returns:
            VideoMetadata for the video.

        Raises:
            Exception: If the API request fails.
        """
        try:
            video = self.client.youtube.video(id=video_id)
            duration = getattr(video, "duration", None)

            metadata = VideoMetadata(
                id=video_id,
                title=getattr(video, "title", None) or video_id,
                url=format_video_url(video_id),
                duration_seconds=int(duration) if duration else None,
            )
            logger.info("video_metadata_fetched", video_id=video_id, title=metadata.title)
            return metadata

        except Exception as e:
            logger.exception(
                "video_metadata_fetch_failed",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

    async def get_transcript(self, video_id: str) -> Transcript | None:
        """Fetch the plain-text transcript of a video.

        Args:
            video_id: YouTube video ID.

        Returns:
            Transcript, or None if the video has no transcript.

        Raises:
            Exception: If API request fails (non-transcript errors).
        """
        logger.info("fetching_transcript", video_id=video_id)

        try:
            response = self.client.youtube.transcript(
                video_id=video_id,
                text=True,
            )

            content = response.content
            if not isinstance(content, str):
                # Segmented response: join the segment texts
                content = " ".join(segment.text for segment in content)

            transcript = Transcript(
                video_id=video_id,
                text=content,
                lang=getattr(response, "lang", "en") or "en",
                available_langs=list(getattr(response, "available_langs", None) or []),
            )

            logger.info(
                "transcript_fetched",
                video_id=video_id,
                length=len(transcript.text),
                lang=transcript.lang,
            )
            return transcript

        except Exception as e:
            # Check if transcript is unavailable (common case, not an error)
            error_str = str(e).lower()
            if "transcript-unavailable" in error_str or "206" in error_str:
                logger.warning("transcript_unavailable", video_id=video_id)
                return None

            logger.exception(
                "transcript_fetch_error",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

    async def get_comments(self, video_id: str, max_results: int | None = None) -> list[CommentRecord]:
        """Fetch top-level comments of a video, most relevant first.

        Args:
            video_id: YouTube video ID.
            max_results: Maximum number of comments (capped at 100 by the API).

        Returns:
            Comments without sentiment labels. Empty when no YouTube API key
            is configured.

        Raises:
            httpx.HTTPError: If the YouTube API request fails.
        """
        if not self.config.youtube_api_key:
            logger.warning("youtube_api_key_missing", video_id=video_id)
            return []

        limit = min(max_results or self.config.max_comments, 100)

        try:
            response = await self.http_client.get(
                COMMENT_THREADS_URL,
                params={
                    "part": "snippet",
                    "videoId": video_id,
                    "key": self.config.youtube_api_key,
                    "maxResults": limit,
                    "order": "relevance",
                    "textFormat": "plainText",
                },
            )
            response.raise_for_status()
            items = response.json().get("items", [])

            comments = []
            for item in items:
                snippet = item["snippet"]["topLevelComment"]["snippet"]
                published = snippet.get("publishedAt")
                comments.append(
                    CommentRecord(
                        text=snippet.get("textDisplay", ""),
                        author=snippet.get("authorDisplayName") or "Unknown",
                        like_count=int(snippet.get("likeCount", 0)),
                        comment_id=item.get("id"),
                        published_at=(
                            datetime.fromisoformat(published.replace("Z", "+00:00"))
                            if published
                            else None
                        ),
                    )
                )

            logger.info("comments_fetched", video_id=video_id, count=len(comments))
            return comments

        except Exception as e:
            logger.exception(
                "comments_fetch_failed",
                video_id=video_id,
                error_type=type(e).__name__,
            )
            raise

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.http_client.aclose()
