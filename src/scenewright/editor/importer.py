"""Plain-text import.

Turns a loosely formatted screenplay (one element per line, paragraphs
separated by blank lines) into a typed block sequence using the same
classification rules the editor applies while typing.
"""

from __future__ import annotations

import re

from scenewright.editor.formatting import (
    detect_format,
    next_block_type,
    update_block_numbers,
)
from scenewright.models import Block, BlockType, new_block_id

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_SPEECH_TYPES = frozenset({BlockType.CHARACTER, BlockType.PARENTHETICAL})


def _undetected_type(previous: BlockType | None, paragraph_start: bool) -> BlockType:
    if previous is not None and previous in _SPEECH_TYPES:
        return next_block_type(previous, "", False)
    if previous == BlockType.DIALOGUE and not paragraph_start:
        return BlockType.DIALOGUE
    return BlockType.ACTION


def blocks_from_text(text: str) -> list[Block]:
    """Classify each line of ``text`` into a block.

    Args:
        text: Screenplay text

    Returns:
        Numbered block sequence
    """
    blocks: list[Block] = []
    previous: BlockType | None = None

    for paragraph in _PARAGRAPH_BREAK.split(text.strip()):
        paragraph_start = True
        for line in paragraph.splitlines():
            content = line.strip()
            if not content:
                continue

            block_type = detect_format(content)
            if block_type == BlockType.CHARACTER and (
                previous in _SPEECH_TYPES and not paragraph_start
            ):
                # Shouted dialogue directly under a name
                block_type = BlockType.DIALOGUE
            elif block_type is None:
                block_type = _undetected_type(previous, paragraph_start)

            blocks.append(Block(id=new_block_id(), type=block_type, content=content))
            previous = block_type
            paragraph_start = False

    return update_block_numbers(blocks)
