"""Document repository implementations.

    InMemoryDocumentRepository - dicts guarded by an asyncio.Lock (API default)
    SQLiteDocumentRepository   - aiosqlite file database (CLI, persistent API)
"""

from neuraldoc.providers.repository.memory_repository import InMemoryDocumentRepository
from neuraldoc.providers.repository.sqlite_repository import SQLiteDocumentRepository

__all__ = ["InMemoryDocumentRepository", "SQLiteDocumentRepository"]
