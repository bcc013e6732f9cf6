"""SceneWright data models.

Blocks are the authored unit of a screenplay document. Everything else in
this module is either derived from a block sequence (scenes, dialogue
triples) or describes a record persisted in the remote document store.
Persisted records carry a ``schema_version`` and are validated on read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

SCHEMA_VERSION = 1


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def new_block_id() -> str:
    """Generate a fresh block identifier."""
    return f"block-{uuid4()}"


class BlockType(str, Enum):
    """Screenplay block types."""

    SCENE_HEADING = "scene-heading"
    ACTION = "action"
    CHARACTER = "character"
    DIALOGUE = "dialogue"
    PARENTHETICAL = "parenthetical"
    TRANSITION = "transition"
    TEXT = "text"
    SHOT = "shot"


# Cycle order used by Tab and the format toolbar
BLOCK_TYPES: tuple[BlockType, ...] = (
    BlockType.SCENE_HEADING,
    BlockType.ACTION,
    BlockType.CHARACTER,
    BlockType.PARENTHETICAL,
    BlockType.DIALOGUE,
    BlockType.TRANSITION,
    BlockType.TEXT,
    BlockType.SHOT,
)

NUMBERED_TYPES = frozenset({BlockType.SCENE_HEADING, BlockType.DIALOGUE})


class Block(BaseModel):
    """A typed unit of screenplay text."""

    model_config = ConfigDict(frozen=True, use_enum_values=False)

    id: str = Field(default_factory=new_block_id, min_length=1)
    type: BlockType
    content: str = ""
    number: int | None = Field(default=None, ge=1)

    @field_validator("number")
    @classmethod
    def number_only_on_numbered_types(
        cls, v: int | None, info: ValidationInfo
    ) -> int | None:
        """Only scene headings and dialogue carry a number."""
        block_type = info.data.get("type")
        if v is not None and block_type not in NUMBERED_TYPES:
            raise ValueError(f"{block_type} blocks cannot carry a number")
        return v

    def to_data(self) -> dict[str, Any]:
        """Serialize to a plain dict suitable for the document store."""
        return self.model_dump(mode="json", exclude_none=True)


def validate_document(blocks: list[Block]) -> None:
    """Check document-level invariants.

    Raises:
        ValidationError: If two blocks share an id
    """
    from scenewright.exceptions import ValidationError

    seen: set[str] = set()
    duplicates: list[str] = []
    for block in blocks:
        if block.id in seen:
            duplicates.append(block.id)
        seen.add(block.id)
    if duplicates:
        raise ValidationError(
            message="Document contains duplicate block ids",
            hint="Every block needs a unique id",
            details={"duplicates": duplicates},
        )


def blocks_from_data(items: list[dict[str, Any]]) -> list[Block]:
    """Build blocks from plain dicts, generating ids where missing."""
    blocks = []
    for item in items:
        data = dict(item)
        if not data.get("id"):
            data["id"] = new_block_id()
        blocks.append(Block.model_validate(data))
    return blocks


# ---------------------------------------------------------------------------
# Derived structures
# ---------------------------------------------------------------------------


@dataclass
class DialogueEntry:
    """A character's line with its optional parenthetical."""

    character_name: str
    text: str
    parenthetical: str | None = None


@dataclass
class SceneContent:
    """Content breakdown of a scene."""

    action: str | None = None
    action_chunks: list[str] | None = None
    dialogues: list[DialogueEntry] = field(default_factory=list)


@dataclass
class Scene:
    """A run of blocks from a scene heading up to the next one."""

    scene_id: str
    scene_number: int
    heading: str
    blocks: list[Block]
    content: SceneContent = field(default_factory=SceneContent)


@dataclass
class Conflict:
    """A detected divergence the caller has to resolve."""

    subject_id: str
    holder_identity: str | None
    timestamp: datetime
    kind: Literal["lock", "version"] = "version"


@dataclass
class SaveResult:
    """Outcome of a save operation."""

    success: bool
    error: str | None = None
    conflicts: list[Conflict] = field(default_factory=list)
    version: int | None = None

    @classmethod
    def ok(cls, version: int | None = None) -> SaveResult:
        """Successful save."""
        return cls(success=True, version=version)

    @classmethod
    def failed(
        cls, error: str, conflicts: list[Conflict] | None = None
    ) -> SaveResult:
        """Failed save with optional conflicts."""
        return cls(success=False, error=error, conflicts=conflicts or [])


# ---------------------------------------------------------------------------
# Persisted records
# ---------------------------------------------------------------------------


class StoredRecord(BaseModel):
    """Base class for records kept in the remote document store."""

    model_config = ConfigDict(extra="ignore")

    schema_version: int = SCHEMA_VERSION

    @field_validator("schema_version")
    @classmethod
    def supported_schema(cls, v: int) -> int:
        """Reject records written by a newer schema."""
        if v > SCHEMA_VERSION:
            raise ValueError(f"Unsupported schema version {v}")
        return v

    def to_data(self) -> dict[str, Any]:
        """Serialize for the document store."""
        return self.model_dump(mode="json")


class SceneStatus(str, Enum):
    """Editorial status of a scene."""

    DRAFT = "Draft"
    FINAL = "Final"
    NEEDS_REVISION = "Needs Revision"


class ChangeType(str, Enum):
    """Kinds of change history entries."""

    UPDATE_SCENE = "UPDATE_SCENE"
    ADD_SCENE = "ADD_SCENE"
    DELETE_SCENE = "DELETE_SCENE"
    UPDATE_METADATA = "UPDATE_METADATA"
    SAVE_DOCUMENT = "SAVE_DOCUMENT"


class SceneRecord(StoredRecord):
    """Scene metadata record."""

    id: str
    screenplay_id: str
    scene_number: int = Field(ge=0)
    scene_heading: str = ""
    status: SceneStatus = SceneStatus.DRAFT
    last_modified: datetime
    modified_by: str


class DialogueData(BaseModel):
    """Persisted dialogue triple."""

    character_name: str
    text: str
    parenthetical: str | None = None


class SceneContentRecord(StoredRecord):
    """Content record of a scene, stored beside its metadata."""

    id: str = "main"
    scene_id: str
    scene_number: int = Field(default=0, ge=0)
    action: str | None = None
    action_chunks: list[str] | None = None
    dialogues: list[DialogueData] = Field(default_factory=list)
    blocks: list[Block] = Field(default_factory=list)


class LeaseRecord(StoredRecord):
    """Advisory, time-bounded claim on a scene."""

    subject_id: str
    holder_id: str
    acquired_at: datetime
    expires_at: datetime

    def is_active(self, now: datetime) -> bool:
        """Whether the lease is still unexpired at ``now``."""
        return self.expires_at > now


class ScreenplayRecord(StoredRecord):
    """Document-level metadata."""

    id: str
    project_id: str
    title: str = "Untitled Screenplay"
    owner_id: str
    collaborators: list[str] = Field(default_factory=list)
    status: str = "Draft"
    version: int = Field(default=0, ge=0)
    block_count: int = Field(default=0, ge=0)
    scene_count: int = Field(default=0, ge=0)
    has_blocks: bool = False
    created_at: datetime
    last_modified: datetime


class HistoryEntry(StoredRecord):
    """Change history entry."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    screenplay_id: str
    timestamp: datetime
    user_id: str
    scene_id: str | None = None
    type: ChangeType
    description: str


class EditorSnapshot(StoredRecord):
    """Full block list kept for fast document loads."""

    blocks: list[Block] = Field(default_factory=list)
    active_block: str | None = None
    last_modified: datetime


class CharacterRecord(StoredRecord):
    """Project character registered from character blocks."""

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str
    created_by: str
    created_at: datetime

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        """Validate that character name is not empty."""
        if not v or not v.strip():
            raise ValueError("Character name cannot be empty")
        return v.strip()


class ProjectRecord(StoredRecord):
    """Project a screenplay belongs to."""

    id: str
    owner_id: str
    created_at: datetime
    last_modified: datetime
