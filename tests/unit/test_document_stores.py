"""Tests for the document store backends."""

import asyncio

import pytest
import pytest_asyncio

from scenewright.exceptions import BackendError, SceneWrightPermissionError
from scenewright.storage import (
    BatchOperation,
    MemoryDocumentStore,
    SqliteDocumentStore,
    WriteMode,
    WriteRecord,
)
from scenewright.storage.base import StoredDocument, parent_of, sort_documents


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def store(request, tmp_path):
    """Each backend behind the same contract."""
    if request.param == "memory":
        yield MemoryDocumentStore()
        return
    sqlite_store = SqliteDocumentStore(tmp_path / "store.db")
    yield sqlite_store
    sqlite_store.close()


class TestDocumentStoreContract:
    """Behavior shared by every backend."""

    @pytest.mark.asyncio
    async def test_read_missing(self, store):
        """Missing documents read as None."""
        assert await store.read_one("projects/p1") is None

    @pytest.mark.asyncio
    async def test_set_replaces(self, store):
        """SET writes replace the whole document."""
        await store.write_one("projects/p1", {"a": 1, "b": 2})
        await store.write_one("projects/p1", {"a": 3})
        assert await store.read_one("projects/p1") == {"a": 3}

    @pytest.mark.asyncio
    async def test_merge_updates_fields(self, store):
        """MERGE writes keep fields they do not mention."""
        await store.write_one("projects/p1", {"a": 1, "b": 2})
        await store.write_one("projects/p1", {"a": 3}, WriteMode.MERGE)
        assert await store.read_one("projects/p1") == {"a": 3, "b": 2}

    @pytest.mark.asyncio
    async def test_merge_creates_missing(self, store):
        """MERGE into a missing document creates it."""
        await store.write_one("projects/p1", {"a": 1}, WriteMode.MERGE)
        assert await store.read_one("projects/p1") == {"a": 1}

    @pytest.mark.asyncio
    async def test_read_many_direct_children_only(self, store):
        """Listing excludes nested sub-collections."""
        await store.write_one("s/scenes/a", {"scene_number": 2})
        await store.write_one("s/scenes/b", {"scene_number": 1})
        await store.write_one("s/scenes/a/content/main", {"x": 1})
        documents = await store.read_many("s/scenes", order_by="scene_number")
        assert [doc.id for doc in documents] == ["b", "a"]
        assert documents[0].data == {"scene_number": 1}

    @pytest.mark.asyncio
    async def test_batch_applies_everything(self, store):
        """Batches apply sets, merges and deletes in order."""
        await store.write_one("c/old", {"v": 1})
        await store.atomic_batch(
            [
                BatchOperation.set("c/new", {"v": 1}),
                BatchOperation.merge("c/new", {"w": 2}),
                BatchOperation.remove("c/old"),
            ]
        )
        assert await store.read_one("c/new") == {"v": 1, "w": 2}
        assert await store.read_one("c/old") is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_fine(self, store):
        """Deleting a missing document is not an error."""
        await store.delete_one("c/nothing")
        assert await store.read_one("c/nothing") is None

    @pytest.mark.asyncio
    async def test_reads_are_copies(self, store):
        """Mutating read results does not change the store."""
        await store.write_one("c/doc", {"items": [1]})
        data = await store.read_one("c/doc")
        data["items"].append(2)
        assert await store.read_one("c/doc") == {"items": [1]}


class TestMemoryDocumentStore:
    """Memory-specific behavior."""

    @pytest.mark.asyncio
    async def test_write_log(self):
        """Every applied write is logged."""
        store = MemoryDocumentStore()
        await store.write_one("c/a", {"v": 1})
        await store.write_one("c/a", {"v": 2}, WriteMode.MERGE)
        await store.delete_one("c/a")
        assert store.write_log == [
            WriteRecord("c/a", "set"),
            WriteRecord("c/a", "merge"),
            WriteRecord("c/a", "delete"),
        ]

    @pytest.mark.asyncio
    async def test_denied_batch_applies_nothing(self):
        """A denied path fails the whole batch before any write."""
        store = MemoryDocumentStore()
        store.deny_writes("locked/")
        with pytest.raises(SceneWrightPermissionError):
            await store.atomic_batch(
                [
                    BatchOperation.set("open/a", {"v": 1}),
                    BatchOperation.set("locked/b", {"v": 1}),
                ]
            )
        assert store.documents == {}
        assert store.write_log == []

    @pytest.mark.asyncio
    async def test_allow_writes(self):
        """Denials can be lifted."""
        store = MemoryDocumentStore()
        store.deny_writes("c")
        store.allow_writes("c")
        await store.write_one("c/a", {"v": 1})
        assert await store.read_one("c/a") == {"v": 1}


class TestSqliteDocumentStore:
    """SQLite-specific behavior."""

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        """Documents survive reopening the file."""
        path = tmp_path / "nested" / "store.db"
        first = SqliteDocumentStore(path)
        await first.write_one("c/a", {"v": 1})
        first.close()

        second = SqliteDocumentStore(path)
        assert await second.read_one("c/a") == {"v": 1}
        second.close()

    @pytest.mark.asyncio
    async def test_failed_batch_rolls_back(self, tmp_path):
        """A batch that fails midway leaves nothing behind."""
        store = SqliteDocumentStore(tmp_path / "store.db")
        await store.write_one("c/a", {"v": 1})

        class Unserializable:
            pass

        with pytest.raises(TypeError):
            await store.atomic_batch(
                [
                    BatchOperation.set("c/a", {"v": 2}),
                    BatchOperation.set("c/b", {"v": Unserializable()}),
                ]
            )
        assert await store.read_one("c/a") == {"v": 1}
        assert await store.read_one("c/b") is None
        store.close()

    @pytest.mark.asyncio
    async def test_closed_store_raises_backend_error(self, tmp_path):
        """SQLite failures surface as BackendError."""
        store = SqliteDocumentStore(tmp_path / "store.db")
        store.close()
        with pytest.raises(BackendError):
            await store.read_one("c/a")

    @pytest.mark.asyncio
    async def test_concurrent_batches_off_the_event_loop(self, tmp_path):
        """Batches gathered together all land, each in its own transaction."""
        store = SqliteDocumentStore(tmp_path / "store.db")
        ticks = 0

        async def ticker():
            nonlocal ticks
            for _ in range(5):
                await asyncio.sleep(0)
                ticks += 1

        await asyncio.gather(
            ticker(),
            *(
                store.atomic_batch(
                    [
                        BatchOperation.set(f"c/{i}", {"v": i}),
                        BatchOperation.merge("meta/count", {f"k{i}": i}),
                    ]
                )
                for i in range(20)
            ),
        )
        assert len(await store.read_many("c")) == 20
        assert len(await store.read_one("meta/count")) == 20
        assert ticks == 5
        store.close()


class TestStoreHelpers:
    """Test path and ordering helpers."""

    def test_parent_of(self):
        """The parent is everything before the last slash."""
        assert parent_of("a/b/c") == "a/b"
        assert parent_of("top") == ""

    def test_sort_missing_values_first(self):
        """Documents without the field sort before those with it."""
        documents = [
            StoredDocument("c/b", {"n": 2}),
            StoredDocument("c/a", {}),
            StoredDocument("c/c", {"n": 1}),
        ]
        ordered = sort_documents(documents, "n")
        assert [doc.id for doc in ordered] == ["a", "c", "b"]
