"""SQLite-backed document store.

Documents are JSON blobs in a single table keyed by path, with the parent
collection path stored alongside for listing. Batches run inside one
transaction, so they are atomic. Queries run in worker threads so the event
loop is not blocked.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import threading
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from scenewright.config import get_logger
from scenewright.exceptions import BackendError
from scenewright.storage.base import (
    BatchOperation,
    StoredDocument,
    WriteMode,
    parent_of,
    sort_documents,
)

logger = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    path TEXT PRIMARY KEY,
    parent TEXT NOT NULL,
    data TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_documents_parent ON documents(parent);
"""


class SqliteDocumentStore:
    """Implementation of ``DocumentStore`` on a local SQLite file."""

    def __init__(self, db_path: str | Path, timeout: float = 30.0) -> None:
        """Open (and create if needed) the store.

        Args:
            db_path: SQLite file path, or ":memory:"
            timeout: SQLite busy timeout in seconds
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            self.db_path,
            timeout=timeout,
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode; transactions are explicit
        )
        # One connection shared by worker threads, one statement at a time
        self._lock = threading.Lock()
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(SCHEMA)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Execute operations in a database transaction."""
        conn = self._conn
        conn.execute("BEGIN")
        try:
            yield conn
            conn.execute("COMMIT")
        except Exception as e:
            logger.error(f"Transaction failed, rolling back: {e}")
            conn.execute("ROLLBACK")
            raise

    def _load(self, conn: sqlite3.Connection, path: str) -> dict[str, Any] | None:
        row = conn.execute(
            "SELECT data FROM documents WHERE path = ?", (path,)
        ).fetchone()
        return json.loads(row["data"]) if row else None

    def _apply(self, conn: sqlite3.Connection, operation: BatchOperation) -> None:
        if operation.delete:
            conn.execute("DELETE FROM documents WHERE path = ?", (operation.path,))
            return

        data = dict(operation.data or {})
        if operation.mode == WriteMode.MERGE:
            existing = self._load(conn, operation.path)
            if existing is not None:
                existing.update(data)
                data = existing

        conn.execute(
            """
            INSERT INTO documents (path, parent, data) VALUES (?, ?, ?)
            ON CONFLICT(path) DO UPDATE SET data = excluded.data
            """,
            (operation.path, parent_of(operation.path), json.dumps(data)),
        )

    def _read_one_sync(self, path: str) -> dict[str, Any] | None:
        with self._lock:
            return self._load(self._conn, path)

    def _read_many_sync(self, prefix: str) -> list[sqlite3.Row]:
        with self._lock:
            return self._conn.execute(
                "SELECT path, data FROM documents WHERE parent = ?",
                (prefix.rstrip("/"),),
            ).fetchall()

    def _batch_sync(self, operations: list[BatchOperation]) -> None:
        with self._lock, self.transaction() as conn:
            for operation in operations:
                self._apply(conn, operation)

    async def read_one(self, path: str) -> dict[str, Any] | None:
        try:
            return await asyncio.to_thread(self._read_one_sync, path)
        except sqlite3.Error as e:
            raise BackendError(
                message=f"Failed to read {path}", details={"error": str(e)}
            ) from e

    async def read_many(
        self, prefix: str, order_by: str | None = None
    ) -> list[StoredDocument]:
        try:
            rows = await asyncio.to_thread(self._read_many_sync, prefix)
        except sqlite3.Error as e:
            raise BackendError(
                message=f"Failed to list {prefix}", details={"error": str(e)}
            ) from e
        documents = [
            StoredDocument(path=row["path"], data=json.loads(row["data"]))
            for row in rows
        ]
        return sort_documents(documents, order_by)

    async def write_one(
        self, path: str, data: dict[str, Any], mode: WriteMode = WriteMode.SET
    ) -> None:
        await self.atomic_batch([BatchOperation(path=path, data=data, mode=mode)])

    async def atomic_batch(self, operations: list[BatchOperation]) -> None:
        try:
            await asyncio.to_thread(self._batch_sync, operations)
        except sqlite3.Error as e:
            raise BackendError(
                message="Failed to apply batch",
                details={"operations": len(operations), "error": str(e)},
            ) from e

    async def delete_one(self, path: str) -> None:
        await self.atomic_batch([BatchOperation.remove(path)])
