"""Command-line interface for ingesting sources and asking questions."""

import argparse
import asyncio
import uuid
from pathlib import Path

from src.utils.logging import get_logger

from .config import get_config
from .deps import RAGDeps, build_deps
from .exceptions import RAGError
from .schemas import Answer, ContentType, IngestionResult, Query
from .youtube_service import extract_video_id

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RAG Pipeline - Index videos and documents, then ask questions about them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Ingest a video transcript and its comments
  python -m src.rag_pipeline.cli ingest-video https://youtu.be/dQw4w9WgXcQ --owner u1 --comments

  # Ingest an extracted document text
  python -m src.rag_pipeline.cli ingest-document notes.txt --owner u1

  # Ask across all of an owner's videos
  python -m src.rag_pipeline.cli ask "What is covered about pricing?" --owner u1

  # Ask about the comments of one video
  python -m src.rag_pipeline.cli ask "Do viewers like it?" --owner u1 --type comment --scope dQw4w9WgXcQ

  # Delete a source
  python -m src.rag_pipeline.cli delete dQw4w9WgXcQ --owner u1
        """,
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    video = subparsers.add_parser("ingest-video", help="Ingest a YouTube video transcript")
    video.add_argument("video", help="YouTube URL or video ID")
    video.add_argument("--owner", required=True, help="Owner ID the chunks belong to")
    video.add_argument("--comments", action="store_true", help="Also ingest top comments")

    document = subparsers.add_parser("ingest-document", help="Ingest a plain-text document")
    document.add_argument("path", type=Path, help="Path to a UTF-8 text file")
    document.add_argument("--owner", required=True, help="Owner ID the chunks belong to")
    document.add_argument("--document-id", help="Document ID (random UUID when omitted)")
    document.add_argument("--name", help="Display name (file name when omitted)")

    ask = subparsers.add_parser("ask", help="Ask a question")
    ask.add_argument("question", help="Question to answer")
    ask.add_argument("--owner", required=True, help="Owner whose sources are searched")
    ask.add_argument(
        "--type",
        choices=[content_type.value for content_type in ContentType],
        default=ContentType.TRANSCRIPT.value,
        help="Kind of source to search",
    )
    ask.add_argument("--scope", help="Restrict to one video or document ID")
    ask.add_argument("--limit", type=int, help="Maximum number of sources")

    delete = subparsers.add_parser("delete", help="Delete the chunks of a source")
    delete.add_argument("source_id", help="Video or document ID")
    delete.add_argument("--owner", required=True, help="Owner of the source")
    delete.add_argument(
        "--type",
        choices=[content_type.value for content_type in ContentType],
        help="Only delete chunks of this kind",
    )

    return parser


def print_ingestion(result: IngestionResult) -> None:
    print("\n" + "=" * 60)
    print(f"Ingestion Results ({result.content_type.value})")
    print("=" * 60)
    print(f"Source: {result.source_id}")
    print(f"Total chunks: {result.total_chunks}")
    print(f"Stored chunks: {result.stored_chunks}")

    if result.errors:
        print("\nErrors encountered:")
        for error in result.errors:
            print(f"  ❌ {error}")
    else:
        print("\n✅ No errors encountered")
    print("=" * 60 + "\n")


def print_answer(answer: Answer) -> None:
    print("\n" + "=" * 60)
    print(answer.text)

    if answer.sources:
        print("\nSources:")
        for index, source in enumerate(answer.sources, 1):
            print(f"  [Source {index}] {source.source_title} ({source.source_id})")
    print("=" * 60 + "\n")


async def run(args: argparse.Namespace, deps: RAGDeps) -> int:
    """Execute one subcommand and return the process exit code."""
    if args.command == "ingest-video":
        video_id = extract_video_id(args.video)
        if not video_id:
            print(f"\n❌ Not a YouTube video: {args.video}")
            return 2

        video, transcript = await deps.ingestion.fetch_video(video_id)
        result = await deps.ingestion.ingest_transcript(transcript, video, args.owner)
        print_ingestion(result)

        if args.comments:
            comments = await deps.ingestion.ingest_video_comments(
                video_id, args.owner, video.title
            )
            print_ingestion(comments)
        return 0

    if args.command == "ingest-document":
        text = args.path.read_text(encoding="utf-8")
        result = await deps.ingestion.ingest_document(
            text,
            owner_id=args.owner,
            document_id=args.document_id or str(uuid.uuid4()),
            file_name=args.name or args.path.name,
        )
        print_ingestion(result)
        return 0

    if args.command == "ask":
        answer = await deps.queries.ask(
            Query(
                question=args.question,
                owner_id=args.owner,
                content_type=ContentType(args.type),
                scope_id=args.scope,
                result_limit=(
                    deps.config.default_result_limit if args.limit is None else args.limit
                ),
            )
        )
        print_answer(answer)
        return 0

    deleted = await deps.ingestion.delete_source(
        args.owner,
        args.source_id,
        ContentType(args.type) if args.type else None,
    )
    print(f"\n🗑  Deleted {deleted} chunks of {args.source_id}\n")
    return 0


async def main(argv: list[str] | None = None) -> int:
    """CLI entry point.

    Parses command-line arguments, wires the services from the environment,
    runs the subcommand and displays results to the user.
    """
    args = build_parser().parse_args(argv)
    config = get_config()

    logger.info("cli_started", command=args.command)

    print("\n" + "=" * 60)
    print("RAG Pipeline")
    print("=" * 60)
    print(f"Embedding provider: {config.embedding_provider}")
    print(f"Embedding model: {config.embedding_model}")
    print(f"Chat model: {config.llm_choice}")
    print(f"Chunk size: {config.chunk_size} chars, overlap {config.chunk_overlap}")
    print("=" * 60)

    deps = build_deps(config)
    try:
        code = await run(args, deps)
    except RAGError as e:
        logger.exception("cli_command_failed", command=args.command, error_type=type(e).__name__)
        print(f"\n❌ {args.command} failed: {e}")
        code = 1
    finally:
        await deps.aclose()

    logger.info("cli_completed", command=args.command, exit_code=code)
    return code


def cli() -> None:
    """Console script entry point."""
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
