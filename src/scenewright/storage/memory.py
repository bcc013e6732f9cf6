"""In-process document store.

Useful for tests and for running the editor without a backend. Keeps a log
of every applied write so callers can assert on side effects, and can be
told to deny writes under given path prefixes.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any

from scenewright.config import get_logger
from scenewright.exceptions import SceneWrightPermissionError
from scenewright.storage.base import (
    BatchOperation,
    StoredDocument,
    WriteMode,
    parent_of,
    sort_documents,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class WriteRecord:
    """One write applied to the store."""

    path: str
    kind: str  # "set", "merge" or "delete"


class MemoryDocumentStore:
    """Dictionary-backed implementation of ``DocumentStore``."""

    def __init__(self) -> None:
        self.documents: dict[str, dict[str, Any]] = {}
        self.write_log: list[WriteRecord] = []
        self._denied_prefixes: set[str] = set()

    def deny_writes(self, prefix: str) -> None:
        """Reject writes to any path starting with ``prefix``."""
        self._denied_prefixes.add(prefix)

    def allow_writes(self, prefix: str) -> None:
        self._denied_prefixes.discard(prefix)

    def _check_permission(self, path: str) -> None:
        for prefix in self._denied_prefixes:
            if path.startswith(prefix):
                raise SceneWrightPermissionError(
                    message=f"Missing or insufficient permissions for {path}",
                    details={"path": path},
                )

    def _apply(self, operation: BatchOperation) -> None:
        if operation.delete:
            self.documents.pop(operation.path, None)
            self.write_log.append(WriteRecord(operation.path, "delete"))
            return

        data = copy.deepcopy(operation.data or {})
        existing = self.documents.get(operation.path)
        if operation.mode == WriteMode.MERGE and existing is not None:
            merged = dict(existing)
            merged.update(data)
            data = merged
        self.documents[operation.path] = data
        self.write_log.append(WriteRecord(operation.path, operation.mode.value))

    async def read_one(self, path: str) -> dict[str, Any] | None:
        data = self.documents.get(path)
        return copy.deepcopy(data) if data is not None else None

    async def read_many(
        self, prefix: str, order_by: str | None = None
    ) -> list[StoredDocument]:
        prefix = prefix.rstrip("/")
        found = [
            StoredDocument(path=path, data=copy.deepcopy(data))
            for path, data in self.documents.items()
            if parent_of(path) == prefix
        ]
        return sort_documents(found, order_by)

    async def write_one(
        self, path: str, data: dict[str, Any], mode: WriteMode = WriteMode.SET
    ) -> None:
        self._check_permission(path)
        self._apply(BatchOperation(path=path, data=data, mode=mode))

    async def atomic_batch(self, operations: list[BatchOperation]) -> None:
        # Check every path first so a denied write leaves nothing applied
        for operation in operations:
            self._check_permission(operation.path)
        for operation in operations:
            self._apply(operation)
        logger.debug("Applied batch", operations=len(operations))

    async def delete_one(self, path: str) -> None:
        self._check_permission(path)
        self._apply(BatchOperation.remove(path))
