"""Save manager for screenplay documents.

Turns the editor's block sequence into per-scene records plus a full
document snapshot, under one-writer-per-scene leases, with conflict
detection and debounced autosave.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from scenewright.config import SceneWrightSettings, get_logger, get_settings
from scenewright.exceptions import (
    ConflictError,
    LockConflictError,
    RecordSchemaError,
    SceneWrightPermissionError,
    ValidationError,
    VersionConflictError,
    check_identifiers,
)
from scenewright.models import (
    Block,
    BlockType,
    ChangeType,
    CharacterRecord,
    Conflict,
    EditorSnapshot,
    HistoryEntry,
    ProjectRecord,
    SaveResult,
    Scene,
    SceneContentRecord,
    SceneRecord,
    SceneStatus,
    ScreenplayRecord,
    utc_now,
    validate_document,
)
from scenewright.persistence.decompose import (
    PRELUDE_SCENE_ID,
    build_scene_content,
    content_record_for,
    extract_characters,
    reconstruct_blocks,
    split_into_scenes,
)
from scenewright.persistence.locks import LeaseManager
from scenewright.scheduling import ScheduledTask
from scenewright.storage.base import BatchOperation, DocumentStore
from scenewright.storage.paths import (
    ScreenplayPaths,
    characters_path,
    project_path,
)

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)


class SaveState(str, Enum):
    """Save protocol states."""

    IDLE = "idle"
    SAVING = "saving"
    CONFLICT_PENDING = "conflict_pending"


class ConflictResolution(str, Enum):
    """Caller choices for a pending conflict."""

    OVERWRITE = "overwrite"
    MERGE = "merge"
    CANCEL = "cancel"


def _parse_record(model: type[RecordT], data: dict[str, Any], path: str) -> RecordT:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise RecordSchemaError(
            message=f"Malformed {model.__name__} at {path}",
            hint="The record may have been written by an incompatible client",
            details={"path": path, "error": str(e)},
        ) from e


def _conflict_error(
    error_class: type[ConflictError], message: str, conflicts: list[Conflict]
) -> ConflictError:
    first = conflicts[0]
    return error_class(
        message,
        subject_id=first.subject_id,
        holder_identity=first.holder_identity,
        timestamp=first.timestamp,
        conflicts=conflicts,
    )


class SaveManager:
    """Persist one screenplay for one editing identity.

    Public save operations never raise: validation failures, conflicts and
    backend faults are all reported through ``SaveResult``.
    """

    def __init__(
        self,
        store: DocumentStore,
        identity: str,
        project_id: str,
        screenplay_id: str,
        settings: SceneWrightSettings | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the save manager.

        Args:
            store: Document store holding the screenplay
            identity: Identity recorded as the author of every write
            project_id: Project the screenplay belongs to
            screenplay_id: Screenplay to persist
            settings: Settings (uses global settings if None)
            clock: Source of the current time
        """
        self.store = store
        self.identity = identity
        self.project_id = project_id
        self.screenplay_id = screenplay_id
        self.settings = settings or get_settings()
        self.paths = ScreenplayPaths(project_id, screenplay_id)
        self.leases = LeaseManager(store, identity, self.settings, clock=clock)
        self._clock = clock

        self.state = SaveState.IDLE
        self.dirty = False
        self.pending_conflicts: list[Conflict] = []
        self.loaded_version: int | None = None
        self.document: list[Block] = []
        self.active_block: str | None = None
        self._has_document = False
        self.last_autosave: dict[str, SaveResult] = {}

        self._buffer: dict[str, list[Block]] = {}
        self._timers: dict[str, ScheduledTask] = {}

    # ------------------------------------------------------------------
    # Document state
    # ------------------------------------------------------------------

    def set_document(
        self, blocks: list[Block], active_block: str | None = None
    ) -> None:
        """Replace the document that the next full save will write."""
        self.document = list(blocks)
        self.active_block = active_block
        self._has_document = True
        self.dirty = True

    def _splice_scene(self, scene_id: str, blocks: list[Block]) -> None:
        """Replace the run of blocks forming ``scene_id`` in the document.

        A scene runs from its heading (or the document start, for the
        prelude) up to the next heading. Unknown scenes are appended.
        """
        if scene_id == PRELUDE_SCENE_ID:
            start: int | None = 0
        else:
            start = next(
                (
                    index
                    for index, block in enumerate(self.document)
                    if block.id == scene_id
                    and block.type == BlockType.SCENE_HEADING
                ),
                None,
            )
        if start is None:
            self.document = [*self.document, *blocks]
            return
        end = start if scene_id == PRELUDE_SCENE_ID else start + 1
        while (
            end < len(self.document)
            and self.document[end].type != BlockType.SCENE_HEADING
        ):
            end += 1
        self.document = [*self.document[:start], *blocks, *self.document[end:]]

    @property
    def buffered_scenes(self) -> list[str]:
        return list(self._buffer)

    def _check_identifiers(self) -> None:
        check_identifiers(
            project_id=self.project_id,
            screenplay_id=self.screenplay_id,
            identity=self.identity,
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def _read_screenplay(self) -> ScreenplayRecord | None:
        path = self.paths.screenplay
        data = await self.store.read_one(path)
        return None if data is None else _parse_record(ScreenplayRecord, data, path)

    async def _read_scene(self, scene_id: str) -> SceneRecord | None:
        path = self.paths.scene(scene_id)
        data = await self.store.read_one(path)
        return None if data is None else _parse_record(SceneRecord, data, path)

    async def _read_scenes(self) -> list[SceneRecord]:
        documents = await self.store.read_many(
            self.paths.scenes, order_by="scene_number"
        )
        return [_parse_record(SceneRecord, doc.data, doc.path) for doc in documents]

    # ------------------------------------------------------------------
    # Conflict detection
    # ------------------------------------------------------------------

    def _version_conflict(self, record: SceneRecord | None) -> Conflict | None:
        """Conflict if another identity modified the scene very recently."""
        if record is None or record.modified_by == self.identity:
            return None
        window = timedelta(seconds=self.settings.conflict_window_seconds)
        if record.last_modified <= self._clock() - window:
            return None
        return Conflict(
            subject_id=record.id,
            holder_identity=record.modified_by,
            timestamp=record.last_modified,
            kind="version",
        )

    def _check_versions(
        self, records: Iterable[SceneRecord | None], message: str
    ) -> None:
        """Raise VersionConflictError for scenes another identity just saved."""
        conflicts = [
            conflict
            for conflict in map(self._version_conflict, records)
            if conflict is not None
        ]
        if conflicts:
            raise _conflict_error(VersionConflictError, message, conflicts)

    async def _lease_conflict(self, scene_id: str) -> Conflict | None:
        lease = await self.leases.holder_of(scene_id)
        if lease is None:
            return None
        return Conflict(
            subject_id=scene_id,
            holder_identity=lease.holder_id,
            timestamp=lease.acquired_at,
            kind="lock",
        )

    async def _check_leases(self, scene_ids: Iterable[str]) -> None:
        """Raise LockConflictError if any scene is leased by someone else.

        Only reads; nothing is acquired until every scene is known to be free.
        """
        conflicts = []
        for scene_id in scene_ids:
            conflict = await self._lease_conflict(scene_id)
            if conflict is not None:
                conflicts.append(conflict)
        if conflicts:
            raise _conflict_error(
                LockConflictError, "Scene is being edited by another user", conflicts
            )

    async def _acquire(self, scene_id: str) -> None:
        if await self.leases.acquire(scene_id):
            return
        conflict = await self._lease_conflict(scene_id) or Conflict(
            subject_id=scene_id,
            holder_identity=None,
            timestamp=self._clock(),
            kind="lock",
        )
        raise _conflict_error(
            LockConflictError, "Scene is being edited by another user", [conflict]
        )

    # ------------------------------------------------------------------
    # Batch construction
    # ------------------------------------------------------------------

    def _scene_operations(
        self, scene: Scene, existing: SceneRecord | None, now: datetime
    ) -> list[BatchOperation]:
        record = SceneRecord(
            id=scene.scene_id,
            screenplay_id=self.screenplay_id,
            scene_number=scene.scene_number,
            scene_heading=scene.heading,
            status=existing.status if existing else SceneStatus.DRAFT,
            last_modified=now,
            modified_by=self.identity,
        )
        return [
            BatchOperation.set(self.paths.scene(scene.scene_id), record.to_data()),
            BatchOperation.set(
                self.paths.scene_content(scene.scene_id),
                content_record_for(scene).to_data(),
            ),
        ]

    def _screenplay_operation(
        self,
        existing: ScreenplayRecord | None,
        now: datetime,
        block_count: int,
        scene_count: int,
        full_document: bool,
    ) -> tuple[BatchOperation, int]:
        """Bump the screenplay metadata, creating the record if missing."""
        if existing is None:
            record = ScreenplayRecord(
                id=self.screenplay_id,
                project_id=self.project_id,
                owner_id=self.identity,
                collaborators=[self.identity],
                version=1,
                block_count=block_count,
                scene_count=scene_count,
                has_blocks=block_count > 0,
                created_at=now,
                last_modified=now,
            )
            return BatchOperation.set(self.paths.screenplay, record.to_data()), 1

        version = existing.version + 1
        update: dict[str, Any] = {
            "version": version,
            "last_modified": now.isoformat(),
        }
        if full_document:
            update.update(
                block_count=block_count,
                scene_count=scene_count,
                has_blocks=block_count > 0,
            )
        return BatchOperation.merge(self.paths.screenplay, update), version

    def _history_operation(
        self,
        change: ChangeType,
        description: str,
        now: datetime,
        scene_id: str | None = None,
    ) -> BatchOperation:
        entry = HistoryEntry(
            screenplay_id=self.screenplay_id,
            timestamp=now,
            user_id=self.identity,
            scene_id=scene_id,
            type=change,
            description=description,
        )
        return BatchOperation.set(self.paths.history_entry(entry.id), entry.to_data())

    def _adopt_version(self, previous: int, version: int) -> None:
        """Move the baseline forward when our write continued it."""
        if self.loaded_version is None or self.loaded_version >= previous:
            self.loaded_version = version

    # ------------------------------------------------------------------
    # Auxiliary records
    # ------------------------------------------------------------------

    async def _ensure_project(self, now: datetime) -> None:
        path = project_path(self.project_id)
        if await self.store.read_one(path) is not None:
            return
        record = ProjectRecord(
            id=self.project_id,
            owner_id=self.identity,
            created_at=now,
            last_modified=now,
        )
        await self.store.write_one(path, record.to_data())
        logger.info("Created project record", project_id=self.project_id)

    async def _save_characters(self, blocks: list[Block], now: datetime) -> int:
        """Register new character names with the project.

        Returns:
            Number of characters added
        """
        names = extract_characters(blocks)
        if not names:
            return 0
        collection = characters_path(self.project_id)
        existing = {
            str(doc.data.get("name", "")).lower()
            for doc in await self.store.read_many(collection)
        }
        operations = []
        for name in names:
            if name.lower() in existing:
                continue
            record = CharacterRecord(
                name=name, created_by=self.identity, created_at=now
            )
            operations.append(
                BatchOperation.set(f"{collection}/{record.id}", record.to_data())
            )
        if operations:
            await self.store.atomic_batch(operations)
        return len(operations)

    async def _ensure_auxiliary(self, blocks: list[Block], now: datetime) -> None:
        """Project and character setup. Permission denials only warn."""
        try:
            await self._ensure_project(now)
        except SceneWrightPermissionError as e:
            logger.warning(f"Could not create project record: {e.message}")
        try:
            added = await self._save_characters(blocks, now)
            if added:
                logger.debug("Registered characters", count=added)
        except SceneWrightPermissionError as e:
            logger.warning(f"Could not save characters: {e.message}")

    # ------------------------------------------------------------------
    # Scene saves
    # ------------------------------------------------------------------

    def _scene_from_blocks(
        self, scene_id: str, blocks: list[Block], existing: SceneRecord | None
    ) -> Scene:
        heading = next(
            (b.content for b in blocks if b.type == BlockType.SCENE_HEADING), ""
        )
        # Position in the current document wins over the stored number
        number = existing.scene_number if existing else 0
        count = 0
        for block in self.document:
            if block.type == BlockType.SCENE_HEADING:
                count += 1
                if block.id == scene_id:
                    number = count
                    break
        return Scene(
            scene_id=scene_id,
            scene_number=number,
            heading=heading,
            blocks=list(blocks),
            content=build_scene_content(blocks, self.settings.scene_size_limit),
        )

    async def _save_scene(
        self, scene_id: str, blocks: list[Block], override_conflicts: bool
    ) -> SaveResult:
        acquired = False
        try:
            existing = await self._read_scene(scene_id)
            if not override_conflicts:
                self._check_versions(
                    [existing], "Scene has been modified by another user"
                )
            await self._acquire(scene_id)
            acquired = True

            now = self._clock()
            scene = self._scene_from_blocks(scene_id, blocks, existing)
            screenplay = await self._read_screenplay()
            screenplay_op, version = self._screenplay_operation(
                screenplay, now, len(blocks), 1, full_document=False
            )
            operations = self._scene_operations(scene, existing, now)
            operations.append(screenplay_op)
            operations.append(
                self._history_operation(
                    ChangeType.UPDATE_SCENE if existing else ChangeType.ADD_SCENE,
                    "Updated scene content" if existing else "Added scene",
                    now,
                    scene_id,
                )
            )
            await self.store.atomic_batch(operations)
            self._adopt_version(screenplay.version if screenplay else 0, version)
            logger.info("Saved scene", scene_id=scene_id, version=version)
            return SaveResult.ok(version)
        except ConflictError as e:
            logger.info("Scene save conflicted", scene_id=scene_id, error=e.message)
            return SaveResult.failed(e.message, e.conflicts)
        except SceneWrightPermissionError as e:
            logger.error(f"Permission denied saving scene {scene_id}: {e.message}")
            return SaveResult.failed("Permission denied")
        except Exception as e:
            logger.error(f"Failed to save scene {scene_id}: {e}")
            return SaveResult.failed("Failed to save scene")
        finally:
            if acquired:
                await self.leases.release(scene_id)

    def _finish(self, result: SaveResult) -> SaveResult:
        """Apply the outcome of a save to the protocol state."""
        if result.success:
            self.state = SaveState.IDLE
            self.pending_conflicts = []
        elif result.conflicts:
            self.state = SaveState.CONFLICT_PENDING
            self.pending_conflicts = list(result.conflicts)
        else:
            self.state = SaveState.IDLE
        return result

    async def save_scene(
        self,
        scene_id: str,
        blocks: list[Block],
        override_conflicts: bool = False,
    ) -> SaveResult:
        """Save one scene in a single atomic batch.

        Checks for a recent foreign modification (unless overriding), takes
        the scene lease, writes the scene record, its content, the screenplay
        metadata and a history entry, then releases the lease.
        """
        try:
            self._check_identifiers()
            validate_document(blocks)
        except ValidationError as e:
            return SaveResult.failed(e.message)

        self.state = SaveState.SAVING
        result = self._finish(
            await self._save_scene(scene_id, blocks, override_conflicts)
        )
        if result.success:
            self.dirty = bool(self._buffer)
        return result

    # ------------------------------------------------------------------
    # Autosave
    # ------------------------------------------------------------------

    def buffer_change(self, scene_id: str, blocks: list[Block]) -> None:
        """Buffer a scene edit and restart its autosave timer.

        Must be called from inside a running event loop.
        """
        timer = self._timers.pop(scene_id, None)
        if timer is not None:
            timer.cancel()
        self._buffer[scene_id] = list(blocks)
        self._splice_scene(scene_id, self._buffer[scene_id])
        self.dirty = True
        self._timers[scene_id] = ScheduledTask(
            self.settings.autosave_delay_seconds,
            lambda: self._autosave(scene_id),
            name=f"autosave:{scene_id}",
        )

    async def _autosave(self, scene_id: str) -> None:
        self._timers.pop(scene_id, None)
        blocks = self._buffer.pop(scene_id, None)
        if blocks is None:
            return
        result = await self._save_scene(scene_id, blocks, override_conflicts=False)
        self.last_autosave[scene_id] = result
        if result.success:
            self.dirty = bool(self._buffer)
            return
        logger.warning(
            "Autosave failed", scene_id=scene_id, error=result.error
        )
        # Keep the edit for the next full save unless a newer one arrived
        self._buffer.setdefault(scene_id, blocks)

    def _cancel_timers(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()

    # ------------------------------------------------------------------
    # Document saves
    # ------------------------------------------------------------------

    async def _flush_buffer(self, override_conflicts: bool) -> SaveResult | None:
        """Save buffered scenes concurrently; None when all succeeded."""
        if not self._buffer:
            return None
        self._cancel_timers()
        buffered = dict(self._buffer)
        self._buffer.clear()

        scene_ids = list(buffered)
        results = await asyncio.gather(
            *(
                self._save_scene(scene_id, buffered[scene_id], override_conflicts)
                for scene_id in scene_ids
            )
        )
        failures = []
        for scene_id, result in zip(scene_ids, results, strict=True):
            if not result.success:
                failures.append(result)
                self._buffer.setdefault(scene_id, buffered[scene_id])
        if not failures:
            return None

        conflicts = [c for result in failures for c in result.conflicts]
        error = (
            "Failed to save some scenes even after conflict resolution"
            if override_conflicts
            else "Failed to save some scenes"
        )
        return SaveResult.failed(error, conflicts)

    async def _commit_document(
        self, resolution: ConflictResolution | None
    ) -> SaveResult:
        override = resolution == ConflictResolution.OVERWRITE
        validate_document(self.document)

        screenplay = await self._read_screenplay()
        if resolution == ConflictResolution.MERGE and screenplay is not None:
            self.loaded_version = screenplay.version
        if (
            not override
            and screenplay is not None
            and self.loaded_version is not None
            and screenplay.version > self.loaded_version
        ):
            raise VersionConflictError(
                "Screenplay has been modified since it was loaded",
                subject_id=self.screenplay_id,
                timestamp=screenplay.last_modified,
                conflicts=[
                    Conflict(
                        subject_id=self.screenplay_id,
                        holder_identity=None,
                        timestamp=screenplay.last_modified,
                        kind="version",
                    )
                ],
            )

        scenes = split_into_scenes(self.document, self.settings.scene_size_limit)
        existing = {record.id: record for record in await self._read_scenes()}
        if not override:
            self._check_versions(
                (existing.get(scene.scene_id) for scene in scenes),
                "Scenes have been modified by another user",
            )
        await self._check_leases(scene.scene_id for scene in scenes)

        acquired: list[str] = []
        try:
            for scene in scenes:
                await self._acquire(scene.scene_id)
                acquired.append(scene.scene_id)

            now = self._clock()
            await self._ensure_auxiliary(self.document, now)

            operations: list[BatchOperation] = []
            for scene in scenes:
                operations.extend(
                    self._scene_operations(scene, existing.get(scene.scene_id), now)
                )
            current = {scene.scene_id for scene in scenes}
            for stale_id in sorted(set(existing) - current):
                operations.append(BatchOperation.remove(self.paths.scene(stale_id)))
                operations.append(
                    BatchOperation.remove(self.paths.scene_content(stale_id))
                )
            screenplay_op, version = self._screenplay_operation(
                screenplay,
                now,
                len(self.document),
                len(scenes),
                full_document=True,
            )
            operations.append(screenplay_op)
            operations.append(
                self._history_operation(
                    ChangeType.SAVE_DOCUMENT, "Saved screenplay", now
                )
            )
            snapshot = EditorSnapshot(
                blocks=self.document,
                active_block=self.active_block,
                last_modified=now,
            )
            operations.append(
                BatchOperation.set(self.paths.editor_snapshot, snapshot.to_data())
            )
            await self.store.atomic_batch(operations)
        finally:
            for scene_id in acquired:
                await self.leases.release(scene_id)

        self.loaded_version = version
        self.dirty = bool(self._buffer)
        logger.info(
            "Saved screenplay",
            screenplay_id=self.screenplay_id,
            version=version,
            scenes=len(scenes),
            blocks=len(self.document),
        )
        return SaveResult.ok(version)

    async def save_document(
        self,
        resolution: ConflictResolution | str | None = None,
        blocks: list[Block] | None = None,
    ) -> SaveResult:
        """Save the whole screenplay.

        Buffered scene edits are flushed first, concurrently. If any of them
        fails the result carries the union of their conflicts; scenes that
        did commit stay committed. Otherwise every scene record, content
        record, stale scene removal, the screenplay metadata, a history
        entry and the editor snapshot are written in one atomic batch.

        Args:
            resolution: How to treat conflicts ("overwrite", "merge", "cancel")
            blocks: Document to save (defaults to the current document)
        """
        try:
            self._check_identifiers()
            resolution = ConflictResolution(resolution) if resolution else None
        except ValidationError as e:
            return SaveResult.failed(e.message)
        except ValueError:
            return SaveResult.failed(f"Unknown conflict resolution: {resolution}")

        if resolution == ConflictResolution.CANCEL:
            self.state = SaveState.IDLE
            self.pending_conflicts = []
            logger.info("Save cancelled", screenplay_id=self.screenplay_id)
            return SaveResult.failed("Save cancelled")

        if blocks is not None:
            self.set_document(blocks, self.active_block)

        self.state = SaveState.SAVING
        if not self._has_document:
            try:
                await self._hydrate_document()
            except Exception as e:
                logger.error(f"Failed to read screenplay before saving: {e}")
                return self._finish(SaveResult.failed("Failed to save screenplay"))

        override = resolution == ConflictResolution.OVERWRITE
        flushed = await self._flush_buffer(override)
        if flushed is not None:
            return self._finish(flushed)

        try:
            result = await self._commit_document(resolution)
        except ConflictError as e:
            logger.info(
                "Screenplay save conflicted",
                screenplay_id=self.screenplay_id,
                conflicts=len(e.conflicts),
            )
            result = SaveResult.failed(e.message, e.conflicts)
        except ValidationError as e:
            result = SaveResult.failed(e.message)
        except SceneWrightPermissionError as e:
            logger.error(f"Permission denied saving screenplay: {e.message}")
            result = SaveResult.failed("Permission denied")
        except Exception as e:
            logger.error(f"Failed to save screenplay: {e}")
            result = SaveResult.failed("Failed to save screenplay")
        return self._finish(result)

    async def resolve_conflict(
        self, resolution: ConflictResolution | str
    ) -> SaveResult:
        """Resolve a pending conflict and retry the document save."""
        return await self.save_document(resolution)

    # ------------------------------------------------------------------
    # Loading and cleanup
    # ------------------------------------------------------------------

    async def load_document(self) -> list[Block]:
        """Load the screenplay and make it the conflict baseline.

        Prefers the editor snapshot; falls back to rebuilding the document
        from scene content records ordered by scene number.

        Raises:
            ValidationError: If identifiers are missing
            BackendError: If the store fails or a record is malformed
        """
        self._check_identifiers()
        screenplay = await self._read_screenplay()
        blocks, active_block = await self._read_document()

        self._adopt_document(blocks, active_block)
        self.loaded_version = screenplay.version if screenplay else 0
        self.dirty = bool(self._buffer)
        logger.info(
            "Loaded screenplay",
            screenplay_id=self.screenplay_id,
            blocks=len(self.document),
            version=self.loaded_version,
        )
        return list(self.document)

    async def _read_document(self) -> tuple[list[Block], str | None]:
        """Stored blocks and active block, from the snapshot or scene records."""
        path = self.paths.editor_snapshot
        data = await self.store.read_one(path)
        if data is not None:
            snapshot = _parse_record(EditorSnapshot, data, path)
            if snapshot.blocks:
                return list(snapshot.blocks), snapshot.active_block

        scenes = await self._read_scenes()
        records = []
        for scene in scenes:
            content_path = self.paths.scene_content(scene.id)
            content = await self.store.read_one(content_path)
            if content is None:
                records.append(SceneContentRecord(scene_id=scene.id))
            else:
                records.append(
                    _parse_record(SceneContentRecord, content, content_path)
                )
        blocks = reconstruct_blocks(
            records, {scene.id: scene.scene_heading for scene in scenes}
        )
        return blocks, None

    def _adopt_document(self, blocks: list[Block], active_block: str | None) -> None:
        """Take stored blocks as the document, keeping buffered scene edits."""
        self.document = list(blocks)
        self.active_block = active_block
        self._has_document = True
        for scene_id, buffered in self._buffer.items():
            self._splice_scene(scene_id, buffered)

    async def _hydrate_document(self) -> None:
        """Fill in the document from the store when none was ever set."""
        blocks, active_block = await self._read_document()
        self._adopt_document(blocks, active_block)
        logger.debug(
            "Read stored document before saving",
            screenplay_id=self.screenplay_id,
            blocks=len(self.document),
        )

    async def cleanup(self) -> None:
        """Cancel every autosave timer and release every lease."""
        self._cancel_timers()
        await self.leases.release_all()
