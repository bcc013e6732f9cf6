"""Block type inference and numbering.

Pure functions: they decide what type a line of text should be, what type
the block after it should be, and how scene headings and dialogue are
numbered. Nothing here touches session state.
"""

from __future__ import annotations

import re

from scenewright.models import Block, BlockType

SCENE_HEADING_PATTERN = re.compile(r"^(INT|EXT|INT/EXT|I/E)\.?\s", re.IGNORECASE)
SCENE_PREFIX_PATTERN = re.compile(
    r"^(INT\.|EXT\.|INT\./EXT\.|EXT\./INT\.|I/E\.)$", re.IGNORECASE
)
TRANSITION_END_PATTERN = re.compile(r"TO:$", re.IGNORECASE)
TRANSITION_START_PATTERN = re.compile(r"^(FADE (IN|OUT)|DISSOLVE)", re.IGNORECASE)
CHARACTER_PATTERN = re.compile(r"^[A-Z][A-Z\s.()'\-]*$")

# Prefixes offered when the user lands on an empty scene heading
SCENE_HEADING_SUGGESTIONS: tuple[str, ...] = (
    "INT. ",
    "EXT. ",
    "INT./EXT. ",
    "EXT./INT. ",
)

_SUCCESSORS: dict[BlockType, BlockType] = {
    BlockType.ACTION: BlockType.CHARACTER,
    BlockType.CHARACTER: BlockType.DIALOGUE,
    BlockType.PARENTHETICAL: BlockType.DIALOGUE,
    BlockType.TRANSITION: BlockType.SCENE_HEADING,
}


def is_transition_content(content: str) -> bool:
    """Check whether text reads as a transition (``CUT TO:``, ``FADE IN`` ...)."""
    trimmed = content.strip()
    return bool(
        TRANSITION_END_PATTERN.search(trimmed)
        or TRANSITION_START_PATTERN.match(trimmed)
    )


def is_scene_heading_content(content: str) -> bool:
    """Check whether text starts with a scene heading prefix and a space."""
    return bool(SCENE_HEADING_PATTERN.match(content.strip()))


def is_scene_prefix(content: str) -> bool:
    """Check whether text is only a bare scene prefix such as ``INT.``."""
    return bool(SCENE_PREFIX_PATTERN.match(content.strip()))


def detect_format(content: str) -> BlockType | None:
    """Classify a line of text.

    Rules are evaluated in priority order: scene heading, transition,
    character, parenthetical.

    Args:
        content: Raw block text

    Returns:
        The detected block type, or None when the caller should keep the
        current type
    """
    trimmed = content.strip()
    if is_scene_heading_content(trimmed):
        return BlockType.SCENE_HEADING
    if is_transition_content(trimmed):
        return BlockType.TRANSITION
    if trimmed and CHARACTER_PATTERN.match(trimmed):
        return BlockType.CHARACTER
    if trimmed.startswith("(") and trimmed.endswith(")"):
        return BlockType.PARENTHETICAL
    return None


def next_block_type(
    current_type: BlockType, preceding_text: str, is_double_enter: bool
) -> BlockType:
    """Pick the type of the block created when Enter splits a block.

    Args:
        current_type: Type of the block being split
        preceding_text: Text left in the current block (before the caret)
        is_double_enter: Whether this Enter closes a dialogue run

    Returns:
        Type for the new block
    """
    if current_type == BlockType.SCENE_HEADING:
        # A bare "INT." means the user is still typing the heading
        if is_scene_prefix(preceding_text):
            return BlockType.SCENE_HEADING
        return BlockType.ACTION

    detected = detect_format(preceding_text)
    if detected is not None:
        return detected

    if current_type == BlockType.DIALOGUE:
        return BlockType.ACTION if is_double_enter else BlockType.CHARACTER
    return _SUCCESSORS.get(current_type, BlockType.ACTION)


def update_block_numbers(blocks: list[Block]) -> list[Block]:
    """Number scene headings and dialogue blocks in document order.

    Scene headings and dialogue use independent counters starting at 1;
    every other block loses its number. Idempotent.
    """
    scene_count = 0
    dialogue_count = 0
    numbered: list[Block] = []

    for block in blocks:
        if block.type == BlockType.SCENE_HEADING:
            scene_count += 1
            number: int | None = scene_count
        elif block.type == BlockType.DIALOGUE:
            dialogue_count += 1
            number = dialogue_count
        else:
            number = None

        if block.number == number:
            numbered.append(block)
        else:
            numbered.append(block.model_copy(update={"number": number}))

    return numbered


# Public names used by the UI layer
classify = detect_format
next_type = next_block_type
renumber = update_block_numbers
