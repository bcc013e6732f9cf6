"""Page layout for block sequences.

Heights are measured in line units. A block's height is its type's base
height times the number of printed lines its content wraps to.
"""

from __future__ import annotations

import math

from scenewright.models import Block, BlockType

DEFAULT_MAX_PAGE_HEIGHT = 55.0
DEFAULT_CHARS_PER_LINE = 75
DEFAULT_BLOCK_HEIGHT = 2.0

BLOCK_HEIGHTS: dict[BlockType, float] = {
    BlockType.SCENE_HEADING: 2.5,
    BlockType.ACTION: 2.0,
    BlockType.CHARACTER: 2.0,
    BlockType.PARENTHETICAL: 1.8,
    BlockType.DIALOGUE: 2.0,
    BlockType.TRANSITION: 2.5,
    BlockType.TEXT: 2.0,
    BlockType.SHOT: 2.5,
}

_KEEP_WITH_CHARACTER = frozenset({BlockType.DIALOGUE, BlockType.PARENTHETICAL})


def block_height(block: Block, chars_per_line: int = DEFAULT_CHARS_PER_LINE) -> float:
    """Estimate the printed height of a block."""
    base = BLOCK_HEIGHTS.get(block.type, DEFAULT_BLOCK_HEIGHT)
    lines = max(1, math.ceil(len(block.content) / chars_per_line))
    return base * lines


def paginate(
    blocks: list[Block],
    max_page_height: float = DEFAULT_MAX_PAGE_HEIGHT,
    chars_per_line: int = DEFAULT_CHARS_PER_LINE,
) -> list[list[Block]]:
    """Pack blocks into pages, preserving order.

    Greedy: a block that would overflow a non-empty page starts a new one.
    A character block is kept on the same page as the dialogue or
    parenthetical right after it: when the pair does not fit, the page is
    closed before the character block.

    Args:
        blocks: Document blocks in reading order
        max_page_height: Height budget per page
        chars_per_line: Characters per printed line

    Returns:
        Non-empty pages of blocks
    """
    pages: list[list[Block]] = []
    current: list[Block] = []
    current_height = 0.0

    def close_page() -> None:
        nonlocal current, current_height
        if current:
            pages.append(current)
        current = []
        current_height = 0.0

    for index, block in enumerate(blocks):
        height = block_height(block, chars_per_line)
        following = blocks[index + 1] if index + 1 < len(blocks) else None

        if (
            block.type == BlockType.CHARACTER
            and following is not None
            and following.type in _KEEP_WITH_CHARACTER
        ):
            pair_end = current_height + height + block_height(following, chars_per_line)
            if pair_end > max_page_height:
                close_page()

        if current and current_height + height > max_page_height:
            close_page()

        current.append(block)
        current_height += height

    close_page()
    return pages


def page_count(
    blocks: list[Block], max_page_height: float = DEFAULT_MAX_PAGE_HEIGHT
) -> int:
    """Number of pages the document lays out to."""
    return len(paginate(blocks, max_page_height))


def page_number_for(
    blocks: list[Block],
    block_id: str,
    max_page_height: float = DEFAULT_MAX_PAGE_HEIGHT,
) -> int | None:
    """1-based page holding ``block_id``, or None if the block is absent."""
    for page_number, page in enumerate(paginate(blocks, max_page_height), start=1):
        if any(block.id == block_id for block in page):
            return page_number
    return None
