"""Unit tests for the management CLI - neuraldoc.cli.manage."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from neuraldoc.cli.manage import _build_parser, main
from neuraldoc.models.document import Document, DocumentStatus
from neuraldoc.providers.repository.sqlite_repository import SQLiteDocumentRepository


# ======================================================================
# Shared helpers
# ======================================================================


@pytest.fixture
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI's SQLite database and upload directory into tmp_path."""
    monkeypatch.setenv("SQLITE_DB_PATH", str(tmp_path / "db" / "neuraldoc.db"))
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setenv("EMBEDDING_DIMENSION", "32")
    return tmp_path


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def _stored_documents(tmp_path: Path) -> list[Document]:
    async def _list() -> list[Document]:
        repository = SQLiteDocumentRepository(
            db_path=str(tmp_path / "db" / "neuraldoc.db"), max_chat_messages=12
        )
        await repository.initialize()
        return await repository.list_documents()

    return asyncio.run(_list())


# ======================================================================
# Parser
# ======================================================================


class TestBuildParser:
    def test_parser_ingest_subcommand(self) -> None:
        args = _build_parser().parse_args(["ingest", "--file", "report.pdf"])
        assert args.command == "ingest"
        assert args.file == "report.pdf"
        assert args.mime_type is None

    def test_parser_ingest_mime_type(self) -> None:
        args = _build_parser().parse_args(
            ["ingest", "--file", "blob", "--mime-type", "application/pdf"]
        )
        assert args.mime_type == "application/pdf"

    def test_parser_crawl_subcommand(self) -> None:
        args = _build_parser().parse_args(["crawl", "--url", "https://example.com"])
        assert args.command == "crawl"
        assert args.url == "https://example.com"

    def test_parser_ask_subcommand(self) -> None:
        args = _build_parser().parse_args(["ask", "What changed?", "--language", "sr"])
        assert args.question == "What changed?"
        assert args.language == "sr"

    def test_parser_with_quiet_flag(self) -> None:
        args = _build_parser().parse_args(["-q", "documents"])
        assert args.quiet is True
        assert args.command == "documents"

    def test_parser_delete_requires_id(self) -> None:
        with pytest.raises(SystemExit):
            _build_parser().parse_args(["delete"])

    def test_parser_no_subcommand(self) -> None:
        args = _build_parser().parse_args([])
        assert args.command is None


# ======================================================================
# Commands
# ======================================================================


class TestMain:
    def test_no_command_exits_with_error(self, cli_env: Path) -> None:
        assert _run([]) == 1

    def test_ingest_text_file(self, cli_env: Path) -> None:
        source = cli_env / "notes.txt"
        source.write_text("The budget was approved. Hiring starts in June.", encoding="utf-8")

        assert _run(["ingest", "--file", str(source)]) == 0

        documents = _stored_documents(cli_env)
        assert len(documents) == 1
        assert documents[0].original_name == "notes.txt"
        assert documents[0].mime_type == "text/plain"
        assert documents[0].status is DocumentStatus.COMPLETED
        # The source is copied, never consumed.
        assert source.exists()
        assert list((cli_env / "uploads").iterdir()) == []

    def test_ingest_missing_file(self, cli_env: Path) -> None:
        assert _run(["ingest", "--file", str(cli_env / "absent.txt")]) == 1

    def test_ingest_unsupported_file(self, cli_env: Path) -> None:
        source = cli_env / "setup.exe"
        source.write_bytes(b"MZ\x90\x00")

        assert _run(["ingest", "--file", str(source), "--mime-type", "application/x-msdownload"]) == 1

        documents = _stored_documents(cli_env)
        assert documents[0].status is DocumentStatus.FAILED

    def test_crawl_invalid_url(self, cli_env: Path) -> None:
        assert _run(["crawl", "--url", "not-a-url"]) == 1
        assert _stored_documents(cli_env) == []

    def test_ask_without_documents(self, cli_env: Path) -> None:
        assert _run(["ask", "Anything there?"]) == 0

    def test_documents_then_delete(self, cli_env: Path) -> None:
        source = cli_env / "memo.txt"
        source.write_text("Short memo.", encoding="utf-8")
        _run(["ingest", "--file", str(source)])
        doc_id = _stored_documents(cli_env)[0].id

        assert _run(["documents"]) == 0
        assert _run(["delete", "--id", doc_id]) == 0

        assert _stored_documents(cli_env) == []

    def test_delete_unknown_id(self, cli_env: Path) -> None:
        assert _run(["delete", "--id", "missing"]) == 0

    def test_clear_chat(self, cli_env: Path) -> None:
        assert _run(["clear-chat"]) == 0
