"""Turn a block sequence into per-scene records and back."""

from __future__ import annotations

import re
from collections.abc import Iterable

from scenewright.models import (
    Block,
    BlockType,
    DialogueData,
    DialogueEntry,
    Scene,
    SceneContent,
    SceneContentRecord,
    new_block_id,
)

PRELUDE_SCENE_ID = "prelude"
DEFAULT_SIZE_LIMIT = 500 * 1024

SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")


def _byte_size(text: str) -> int:
    return len(text.encode("utf-8"))


def split_action_into_chunks(
    action: str, size_limit: int = DEFAULT_SIZE_LIMIT
) -> list[str]:
    """Split action text into chunks at sentence boundaries.

    Sentences are rejoined with single spaces. A chunk is closed before the
    sentence that would push it over ``size_limit`` bytes, so only a single
    sentence larger than the limit can produce an oversized chunk.

    Args:
        action: Concatenated action text
        size_limit: Maximum chunk size in UTF-8 bytes

    Returns:
        Non-empty chunks in reading order
    """
    chunks: list[str] = []
    current = ""
    for sentence in SENTENCE_BOUNDARY.split(action):
        candidate = f"{current} {sentence}" if current else sentence
        if current and _byte_size(candidate) > size_limit:
            chunks.append(current)
            current = sentence
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def collect_dialogues(blocks: Iterable[Block]) -> list[DialogueEntry]:
    """Assemble dialogue triples from character, parenthetical and dialogue blocks.

    A character block sets the current speaker and drops any pending
    parenthetical. A parenthetical waits for the next dialogue block, which
    consumes it. Dialogue with no current speaker is skipped.
    """
    dialogues: list[DialogueEntry] = []
    character: str | None = None
    parenthetical: str | None = None
    for block in blocks:
        if block.type == BlockType.CHARACTER:
            character = block.content
            parenthetical = None
        elif block.type == BlockType.PARENTHETICAL:
            parenthetical = block.content
        elif block.type == BlockType.DIALOGUE and character:
            dialogues.append(
                DialogueEntry(
                    character_name=character,
                    text=block.content,
                    parenthetical=parenthetical or None,
                )
            )
            parenthetical = None
    return dialogues


def build_scene_content(
    blocks: list[Block], size_limit: int = DEFAULT_SIZE_LIMIT
) -> SceneContent:
    """Build the content breakdown of one scene's blocks."""
    action = "\n".join(b.content for b in blocks if b.type == BlockType.ACTION)
    content = SceneContent(dialogues=collect_dialogues(blocks))
    if _byte_size(action) > size_limit:
        content.action_chunks = split_action_into_chunks(action, size_limit)
    else:
        content.action = action
    return content


def split_into_scenes(
    blocks: list[Block], size_limit: int = DEFAULT_SIZE_LIMIT
) -> list[Scene]:
    """Group blocks into scenes.

    Each scene heading opens a scene that runs until the next heading. The
    scene id is the heading block's id and scenes are numbered from 1 in
    document order. Blocks before the first heading form a prelude scene
    with id ``prelude`` and number 0, so no block is lost.
    """
    scenes: list[Scene] = []
    current: list[Block] = []
    number = 0

    def close() -> None:
        if not current:
            return
        head = current[0]
        if head.type == BlockType.SCENE_HEADING:
            scene_id, heading = head.id, head.content
        else:
            scene_id, heading = PRELUDE_SCENE_ID, ""
        scenes.append(
            Scene(
                scene_id=scene_id,
                scene_number=number if head.type == BlockType.SCENE_HEADING else 0,
                heading=heading,
                blocks=list(current),
                content=build_scene_content(current, size_limit),
            )
        )

    for block in blocks:
        if block.type == BlockType.SCENE_HEADING:
            close()
            number += 1
            current = [block]
        else:
            current.append(block)
    close()
    return scenes


def content_record_for(scene: Scene) -> SceneContentRecord:
    """Persisted content record for a scene."""
    return SceneContentRecord(
        scene_id=scene.scene_id,
        scene_number=scene.scene_number,
        action=scene.content.action,
        action_chunks=scene.content.action_chunks,
        dialogues=[
            DialogueData(
                character_name=d.character_name,
                text=d.text,
                parenthetical=d.parenthetical,
            )
            for d in scene.content.dialogues
        ],
        # Oversized scenes keep only the chunked breakdown
        blocks=[] if scene.content.action_chunks else scene.blocks,
    )


def _blocks_from_breakdown(
    record: SceneContentRecord, heading: str | None
) -> list[Block]:
    """Rebuild approximate blocks for a record that has no block list."""
    blocks: list[Block] = []
    if heading:
        blocks.append(
            Block(id=record.scene_id, type=BlockType.SCENE_HEADING, content=heading)
        )
    action = record.action
    if action is None and record.action_chunks:
        action = " ".join(record.action_chunks)
    if action:
        blocks.extend(
            Block(type=BlockType.ACTION, content=line) for line in action.split("\n")
        )
    speaker: str | None = None
    for dialogue in record.dialogues:
        if dialogue.character_name != speaker:
            blocks.append(
                Block(type=BlockType.CHARACTER, content=dialogue.character_name)
            )
            speaker = dialogue.character_name
        if dialogue.parenthetical:
            blocks.append(
                Block(type=BlockType.PARENTHETICAL, content=dialogue.parenthetical)
            )
        blocks.append(Block(type=BlockType.DIALOGUE, content=dialogue.text))
    return blocks


def reconstruct_blocks(
    records: Iterable[SceneContentRecord],
    headings: dict[str, str] | None = None,
) -> list[Block]:
    """Rebuild a document from scene content records in the given order.

    Records carrying their block list restore it exactly. Older records
    without one are rebuilt from the action text and dialogue triples, using
    ``headings`` (scene id to heading text) for the heading block. Blocks
    without an id get a fresh one, and ids repeated across records are
    replaced.
    """
    headings = headings or {}
    result: list[Block] = []
    seen: set[str] = set()
    for record in records:
        blocks = record.blocks or _blocks_from_breakdown(
            record, headings.get(record.scene_id)
        )
        for block in blocks:
            if not block.id or block.id in seen:
                block = block.model_copy(update={"id": new_block_id()})
            seen.add(block.id)
            result.append(block)
    return result


def extract_characters(blocks: Iterable[Block]) -> list[str]:
    """Unique character names in first-appearance order, compared case-insensitively."""
    names: list[str] = []
    seen: set[str] = set()
    for block in blocks:
        if block.type != BlockType.CHARACTER:
            continue
        name = block.content.strip()
        if name and name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)
    return names
