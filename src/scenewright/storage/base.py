"""Remote document store contract.

The persistence layer only needs five primitives: read one document, list
the documents directly under a collection path, write one document, apply
several writes atomically and delete one document. Any backend offering
those can host screenplays.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Protocol


class WriteMode(str, Enum):
    """How a write treats an existing document."""

    SET = "set"  # replace the whole document
    MERGE = "merge"  # update top-level fields, keep the rest


@dataclass(frozen=True)
class BatchOperation:
    """One write inside an atomic batch."""

    path: str
    data: dict[str, Any] | None = None
    mode: WriteMode = WriteMode.SET
    delete: bool = False

    @classmethod
    def set(cls, path: str, data: dict[str, Any]) -> BatchOperation:
        return cls(path=path, data=data, mode=WriteMode.SET)

    @classmethod
    def merge(cls, path: str, data: dict[str, Any]) -> BatchOperation:
        return cls(path=path, data=data, mode=WriteMode.MERGE)

    @classmethod
    def remove(cls, path: str) -> BatchOperation:
        return cls(path=path, delete=True)


@dataclass
class StoredDocument:
    """A document read back from the store."""

    path: str
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def id(self) -> str:
        return self.path.rsplit("/", 1)[-1]


class DocumentStore(Protocol):
    """Asynchronous document store used by the persistence layer.

    Implementations raise ``SceneWrightPermissionError`` when a write is
    denied and ``BackendError`` for any other failure.
    """

    async def read_one(self, path: str) -> dict[str, Any] | None:
        """Read a document, or None if it does not exist."""
        ...

    async def read_many(
        self, prefix: str, order_by: str | None = None
    ) -> list[StoredDocument]:
        """List documents directly inside the collection at ``prefix``."""
        ...

    async def write_one(
        self, path: str, data: dict[str, Any], mode: WriteMode = WriteMode.SET
    ) -> None:
        """Write a single document."""
        ...

    async def atomic_batch(self, operations: list[BatchOperation]) -> None:
        """Apply all operations or none of them."""
        ...

    async def delete_one(self, path: str) -> None:
        """Delete a document; deleting a missing document is not an error."""
        ...


def parent_of(path: str) -> str:
    """Collection path containing ``path``."""
    return path.rsplit("/", 1)[0] if "/" in path else ""


def sort_documents(
    documents: list[StoredDocument], order_by: str | None
) -> list[StoredDocument]:
    """Order documents by a data field (missing values first), else by path."""
    if order_by is None:
        return sorted(documents, key=lambda doc: doc.path)

    def key(doc: StoredDocument) -> tuple[int, Any, str]:
        value = doc.data.get(order_by)
        return (0, 0, doc.path) if value is None else (1, value, doc.path)

    return sorted(documents, key=key)
