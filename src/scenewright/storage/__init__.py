"""Document store contract and implementations."""

from scenewright.storage.base import (
    BatchOperation,
    DocumentStore,
    StoredDocument,
    WriteMode,
)
from scenewright.storage.memory import MemoryDocumentStore, WriteRecord
from scenewright.storage.paths import ScreenplayPaths, lock_path
from scenewright.storage.sqlite import SqliteDocumentStore

__all__ = [
    "BatchOperation",
    "DocumentStore",
    "MemoryDocumentStore",
    "ScreenplayPaths",
    "SqliteDocumentStore",
    "StoredDocument",
    "WriteMode",
    "WriteRecord",
    "lock_path",
]
