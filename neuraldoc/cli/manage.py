"""Standalone CLI for managing NeuralDoc documents and chat.

Usage::

    python -m neuraldoc.cli ingest --file report.pdf
    python -m neuraldoc.cli crawl --url https://example.com
    python -m neuraldoc.cli ask "What does the report say about revenue?"
    python -m neuraldoc.cli documents
    python -m neuraldoc.cli delete --id 3f2a...
    python -m neuraldoc.cli clear-chat

Commands always use the SQLite repository (``SQLITE_DB_PATH``), whatever
``REPOSITORY_BACKEND`` says, because an in-memory store would be empty on
every run.  ``--quiet`` sends logs to stderr at WARNING+ so stdout only
carries command output.
"""

from __future__ import annotations

import argparse
import asyncio
import mimetypes
import os
import shutil
import sys
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from neuraldoc.config.settings import Settings
from neuraldoc.models.ingestion import IngestionOutcome, IngestionResult
from neuraldoc.utils.errors import NeuralDocError
from neuraldoc.utils.logging import configure_logging


def _quiet_logging() -> None:
    """Send structlog and stdlib logging to stderr at WARNING+."""
    configure_logging(log_level="WARNING", stream=sys.stderr)


@asynccontextmanager
async def _services(app_settings: Settings) -> AsyncIterator[dict[str, Any]]:
    """Build components, initialize the repository, close clients on exit."""
    # Deferred: importing the app module configures logging and builds the app.
    from neuraldoc.main import build_components

    components = build_components(app_settings)
    await components["repository"].initialize()
    try:
        yield components
    finally:
        await components["ingestion_service"].shutdown()
        await components["page_fetcher"].close()


def _print_result(result: IngestionResult) -> int:
    print(f"\nIngestion {result.outcome.value}:")
    print(f"  Document ID:    {result.document_id}")
    print(f"  Chunks stored:  {result.chunks_stored}/{result.chunks_total}")
    if result.chunks_failed:
        print(f"  Chunks failed:  {result.chunks_failed}")
    print(f"  Time:           {result.elapsed_seconds:.2f}s")
    if result.error:
        print(f"  Error:          {result.error}")
    return 0 if result.outcome == IngestionOutcome.COMPLETED else 1


# ---------------------------------------------------------------------------
# Subcommand handlers
# ---------------------------------------------------------------------------


async def _handle_ingest(args: argparse.Namespace, app_settings: Settings) -> int:
    """Ingest a local file and wait for the pipeline to finish."""
    source = Path(args.file)
    if not source.is_file():
        print(f"Error: file not found: {source}", file=sys.stderr)
        return 1

    mime_type = args.mime_type or mimetypes.guess_type(source.name)[0] or ""
    print(f"Ingesting file: {source.name} ({mime_type or 'unknown type'})")

    # The pipeline deletes its input when done; hand it a copy.
    upload_dir = Path(app_settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(prefix="cli_", suffix=source.suffix, dir=upload_dir)
    os.close(fd)
    await asyncio.to_thread(shutil.copyfile, source, temp_path)

    async with _services(app_settings) as components:
        job = await components["ingestion_service"].submit_file(
            path=temp_path,
            original_name=source.name,
            mime_type=mime_type,
            size=source.stat().st_size,
        )
        result = await job.wait()
    return _print_result(result)


async def _handle_crawl(args: argparse.Namespace, app_settings: Settings) -> int:
    """Crawl a URL and wait for the pipeline to finish."""
    print(f"Crawling: {args.url}")
    async with _services(app_settings) as components:
        job = await components["ingestion_service"].submit_url(args.url)
        result = await job.wait()
    return _print_result(result)


async def _handle_ask(args: argparse.Namespace, app_settings: Settings) -> int:
    """Answer a question from the stored documents."""
    async with _services(app_settings) as components:
        turn = await components["chat_service"].send_message(
            args.question, language=args.language
        )

    answer = turn.assistant_message
    print(answer.content)
    if answer.sources:
        print("\nSources:")
        for source in answer.sources:
            print(f"  - {source.name} ({source.similarity:.0%})")
    return 0


async def _handle_documents(app_settings: Settings) -> int:
    """List documents, newest first."""
    async with _services(app_settings) as components:
        repository = components["repository"]
        documents = await repository.list_documents()
        stats = await repository.get_stats()

    if not documents:
        print("No documents.")
        return 0

    print(f"{'ID':<34} {'STATUS':<11} {'SIZE':>10}  NAME")
    for doc in documents:
        print(f"{doc.id:<34} {doc.status.value:<11} {doc.size:>10}  {doc.original_name}")
    print(f"\n{stats.documents} documents, {stats.chunks} chunks")
    return 0


async def _handle_delete(args: argparse.Namespace, app_settings: Settings) -> int:
    """Delete one document and its chunks."""
    async with _services(app_settings) as components:
        deleted = await components["repository"].delete_document(args.id)

    if deleted:
        print(f"Deleted document {args.id}")
    else:
        print(f"No document with id {args.id}")
    return 0


async def _handle_clear_chat(app_settings: Settings) -> int:
    async with _services(app_settings) as components:
        await components["chat_service"].clear_history()
    print("Chat history cleared.")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the NeuralDoc CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m neuraldoc.cli",
        description="Ingest documents and ask questions about them.",
    )
    parser.add_argument(
        "--quiet", "-q", action="store_true", help="Only log warnings, to stderr"
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- ingest --
    ingest_parser = subparsers.add_parser("ingest", help="Ingest a local file")
    ingest_parser.add_argument("--file", required=True, help="Path to the file")
    ingest_parser.add_argument(
        "--mime-type",
        dest="mime_type",
        default=None,
        help="MIME type (guessed from the file name when omitted)",
    )

    # -- crawl --
    crawl_parser = subparsers.add_parser("crawl", help="Crawl a URL and its same-site pages")
    crawl_parser.add_argument("--url", required=True, help="Absolute http(s) URL")

    # -- ask --
    ask_parser = subparsers.add_parser("ask", help="Ask a question")
    ask_parser.add_argument("question", help="The question text")
    ask_parser.add_argument("--language", default=None, help="Answer language hint")

    # -- documents --
    subparsers.add_parser("documents", help="List documents")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("--id", required=True, help="Document ID")

    # -- clear-chat --
    subparsers.add_parser("clear-chat", help="Clear the chat history")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def _dispatch(args: argparse.Namespace, app_settings: Settings) -> int:
    if args.command == "ingest":
        return await _handle_ingest(args, app_settings)
    if args.command == "crawl":
        return await _handle_crawl(args, app_settings)
    if args.command == "ask":
        return await _handle_ask(args, app_settings)
    if args.command == "documents":
        return await _handle_documents(app_settings)
    if args.command == "delete":
        return await _handle_delete(args, app_settings)
    if args.command == "clear-chat":
        return await _handle_clear_chat(app_settings)
    return 1


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.

    Parses the subcommand, builds Settings from the environment with the
    SQLite backend forced on, and dispatches to the handler.  Domain errors
    are printed to stderr and exit with status 1.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings(repository_backend="sqlite")

    if args.quiet:
        # Import the app module first so its logging setup is overridden.
        import neuraldoc.main  # noqa: F401

        _quiet_logging()

    try:
        exit_code = asyncio.run(_dispatch(args, app_settings))
    except NeuralDocError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
