"""SQLite-backed document repository.

Persists documents, chunk-vectors and chat messages to a local SQLite
database (default ``data/neuraldoc.db``) using ``aiosqlite``.  Vectors,
chunk metadata and chat sources are stored as JSON text.  Each operation
opens its own connection; multi-row writes happen inside one transaction
so a failed batch leaves nothing behind.

Foreign keys are enabled on every connection, so deleting a document
cascades to its chunks and chunks cannot reference a missing document.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiosqlite
import structlog

from neuraldoc.interfaces.document_repository import IDocumentRepository
from neuraldoc.models.chat import ChatMessage
from neuraldoc.models.document import ChunkVector, Document, DocumentStatus, RepositoryStats
from neuraldoc.utils.errors import DocumentNotFoundError, InvalidStatusTransitionError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/neuraldoc.db")
DEFAULT_MAX_CHAT_MESSAGES = 12

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS documents (
    seq           INTEGER PRIMARY KEY AUTOINCREMENT,
    id            TEXT    NOT NULL UNIQUE,
    filename      TEXT    NOT NULL,
    original_name TEXT    NOT NULL,
    mime_type     TEXT    NOT NULL,
    size          INTEGER NOT NULL,
    content       TEXT,
    status        TEXT    NOT NULL,
    uploaded_at   TEXT    NOT NULL,
    processed_at  TEXT
);
""",
    """\
CREATE TABLE IF NOT EXISTS chunks (
    id          TEXT    PRIMARY KEY,
    document_id TEXT    NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
    content     TEXT    NOT NULL,
    vector      TEXT    NOT NULL,
    metadata    TEXT    NOT NULL,
    chunk_index INTEGER NOT NULL,
    created_at  TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS chat_messages (
    seq        INTEGER PRIMARY KEY AUTOINCREMENT,
    id         TEXT    NOT NULL UNIQUE,
    content    TEXT    NOT NULL,
    role       TEXT    NOT NULL,
    sources    TEXT,
    created_at TEXT    NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id, chunk_index);",
    "CREATE INDEX IF NOT EXISTS idx_documents_uploaded ON documents(uploaded_at);",
]

_DOCUMENT_COLUMNS = (
    "id, filename, original_name, mime_type, size, content, status, uploaded_at, processed_at"
)

_INSERT_DOCUMENT_SQL = f"""\
INSERT INTO documents ({_DOCUMENT_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_UPDATE_DOCUMENT_SQL = """\
UPDATE documents SET content = ?, status = ?, processed_at = ? WHERE id = ?;
"""

_INSERT_CHUNK_SQL = """\
INSERT INTO chunks (id, document_id, content, vector, metadata, chunk_index, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_INSERT_CHAT_SQL = """\
INSERT INTO chat_messages (id, content, role, sources, created_at)
VALUES (?, ?, ?, ?, ?);
"""

_PRUNE_CHAT_SQL = """\
DELETE FROM chat_messages
WHERE seq NOT IN (SELECT seq FROM chat_messages ORDER BY seq DESC LIMIT ?);
"""


def _document_from_row(row: aiosqlite.Row) -> Document:
    return Document(
        id=row["id"],
        filename=row["filename"],
        original_name=row["original_name"],
        mime_type=row["mime_type"],
        size=row["size"],
        content=row["content"],
        status=DocumentStatus(row["status"]),
        uploaded_at=row["uploaded_at"],
        processed_at=row["processed_at"],
    )


def _chunk_from_row(row: aiosqlite.Row) -> ChunkVector:
    return ChunkVector(
        id=row["id"],
        document_id=row["document_id"],
        content=row["content"],
        vector=json.loads(row["vector"]),
        metadata=json.loads(row["metadata"]),
        created_at=row["created_at"],
    )


def _chat_from_row(row: aiosqlite.Row) -> ChatMessage:
    payload: dict[str, Any] = {
        "id": row["id"],
        "content": row["content"],
        "role": row["role"],
        "createdAt": row["created_at"],
        "sources": json.loads(row["sources"]) if row["sources"] else None,
    }
    return ChatMessage.model_validate(payload)


class SQLiteDocumentRepository(IDocumentRepository):
    """SQLite-backed repository; survives process restarts."""

    def __init__(
        self,
        db_path: str | Path = _DEFAULT_DB_PATH,
        max_chat_messages: int = DEFAULT_MAX_CHAT_MESSAGES,
    ) -> None:
        self._db_path = Path(db_path)
        self._max_chat_messages = max_chat_messages

    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with self._connect() as db:
            for sql in _CREATE_TABLES_SQL:
                await db.execute(sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("document_db_initialized", path=str(self._db_path))

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(str(self._db_path))

    @staticmethod
    async def _prepare(db: aiosqlite.Connection) -> None:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys = ON;")

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, document: Document) -> Document:
        if document.status is not DocumentStatus.PROCESSING:
            raise InvalidStatusTransitionError(
                message=f"New documents must be processing, got {document.status.value}"
            )
        async with self._connect() as db:
            await self._prepare(db)
            await db.execute(
                _INSERT_DOCUMENT_SQL,
                (
                    document.id,
                    document.filename,
                    document.original_name,
                    document.mime_type,
                    document.size,
                    document.content,
                    document.status.value,
                    document.uploaded_at.isoformat(),
                    document.processed_at.isoformat() if document.processed_at else None,
                ),
            )
            await db.commit()
        logger.info("document_created", document_id=document.id, name=document.original_name)
        return document

    async def get_document(self, document_id: str) -> Document | None:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", (document_id,)
            )
            row = await cursor.fetchone()
        return _document_from_row(row) if row else None

    async def list_documents(self) -> list[Document]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents ORDER BY uploaded_at DESC, seq DESC"
            )
            rows = await cursor.fetchall()
        return [_document_from_row(r) for r in rows]

    async def update_document(
        self,
        document_id: str,
        *,
        status: DocumentStatus | None = None,
        content: str | None = None,
    ) -> Document:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                f"SELECT {_DOCUMENT_COLUMNS} FROM documents WHERE id = ?", (document_id,)
            )
            row = await cursor.fetchone()
            if row is None:
                raise DocumentNotFoundError(message=f"Document {document_id} not found")
            updated = _document_from_row(row).with_update(status=status, content=content)
            cursor = await db.execute(
                _UPDATE_DOCUMENT_SQL,
                (
                    updated.content,
                    updated.status.value,
                    updated.processed_at.isoformat() if updated.processed_at else None,
                    document_id,
                ),
            )
            # A delete from another connection can land between the read and the write.
            if cursor.rowcount == 0:
                raise DocumentNotFoundError(message=f"Document {document_id} not found")
            await db.commit()
        if status is not None:
            logger.info("document_status_changed", document_id=document_id, status=status.value)
        return updated

    async def delete_document(self, document_id: str) -> bool:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute("DELETE FROM chunks WHERE document_id = ?", (document_id,))
            chunks_deleted = cursor.rowcount
            cursor = await db.execute("DELETE FROM documents WHERE id = ?", (document_id,))
            existed = cursor.rowcount > 0
            await db.commit()
        if existed:
            logger.info("document_deleted", document_id=document_id, chunks_deleted=chunks_deleted)
        return existed

    # ------------------------------------------------------------------
    # Chunk-vectors
    # ------------------------------------------------------------------

    async def add_chunks(self, chunks: list[ChunkVector]) -> int:
        if not chunks:
            return 0
        parent_ids = sorted({c.document_id for c in chunks})
        async with self._connect() as db:
            await self._prepare(db)
            placeholders = ", ".join("?" for _ in parent_ids)
            cursor = await db.execute(
                f"SELECT id FROM documents WHERE id IN ({placeholders})", parent_ids
            )
            present = {row["id"] for row in await cursor.fetchall()}
            missing = [pid for pid in parent_ids if pid not in present]
            if missing:
                raise DocumentNotFoundError(
                    message=f"Cannot store chunks for missing document(s): {missing}"
                )
            try:
                await db.executemany(
                    _INSERT_CHUNK_SQL,
                    [
                        (
                            c.id,
                            c.document_id,
                            c.content,
                            json.dumps(c.vector),
                            json.dumps(c.metadata),
                            c.chunk_index,
                            c.created_at.isoformat(),
                        )
                        for c in chunks
                    ],
                )
            except aiosqlite.IntegrityError as exc:
                await db.rollback()
                raise DocumentNotFoundError(
                    message=f"Chunk batch rejected: {exc}", provider_name="sqlite"
                ) from exc
            await db.commit()
        return len(chunks)

    async def get_chunks_by_document(self, document_id: str) -> list[ChunkVector]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "SELECT * FROM chunks WHERE document_id = ? ORDER BY chunk_index",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [_chunk_from_row(r) for r in rows]

    async def list_chunks(self) -> list[ChunkVector]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute("SELECT * FROM chunks ORDER BY rowid")
            rows = await cursor.fetchall()
        return [_chunk_from_row(r) for r in rows]

    # ------------------------------------------------------------------
    # Chat messages
    # ------------------------------------------------------------------

    async def add_chat_messages(self, messages: list[ChatMessage]) -> list[ChatMessage]:
        async with self._connect() as db:
            await self._prepare(db)
            await db.executemany(
                _INSERT_CHAT_SQL,
                [
                    (
                        m.id,
                        m.content,
                        m.role.value,
                        json.dumps(
                            [s.model_dump(mode="json", by_alias=True) for s in m.sources]
                        )
                        if m.sources
                        else None,
                        m.created_at.isoformat(),
                    )
                    for m in messages
                ],
            )
            await db.execute(_PRUNE_CHAT_SQL, (self._max_chat_messages,))
            await db.commit()
        return list(messages)

    async def list_chat_messages(self, limit: int | None = None) -> list[ChatMessage]:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute("SELECT COUNT(*) AS n FROM documents")
            if (await cursor.fetchone())["n"] == 0:
                await db.execute("DELETE FROM chat_messages")
                await db.commit()
                return []
            cursor = await db.execute(
                "SELECT id, content, role, sources, created_at FROM chat_messages ORDER BY seq"
            )
            rows = await cursor.fetchall()
        history = [_chat_from_row(r) for r in rows]
        if limit is not None:
            history = history[-limit:] if limit > 0 else []
        return history

    async def clear_chat_history(self) -> None:
        async with self._connect() as db:
            await db.execute("DELETE FROM chat_messages")
            await db.commit()
        logger.info("chat_history_cleared", reason="requested")

    # ------------------------------------------------------------------
    # Housekeeping
    # ------------------------------------------------------------------

    async def get_stats(self) -> RepositoryStats:
        async with self._connect() as db:
            await self._prepare(db)
            cursor = await db.execute(
                "SELECT status, COUNT(*) AS n FROM documents GROUP BY status"
            )
            by_status = {row["status"]: row["n"] for row in await cursor.fetchall()}
            cursor = await db.execute("SELECT COUNT(*) AS n FROM chunks")
            chunks = (await cursor.fetchone())["n"]
            cursor = await db.execute("SELECT COUNT(*) AS n FROM chat_messages")
            chat = (await cursor.fetchone())["n"]
        return RepositoryStats(
            documents=sum(by_status.values()),
            processing=by_status.get(DocumentStatus.PROCESSING.value, 0),
            completed=by_status.get(DocumentStatus.COMPLETED.value, 0),
            failed=by_status.get(DocumentStatus.FAILED.value, 0),
            chunks=chunks,
            chat_messages=chat,
        )

    def get_provider_name(self) -> str:
        return "sqlite"
