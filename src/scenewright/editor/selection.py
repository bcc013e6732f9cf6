"""Multi-block text selection and clipboard access."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from scenewright.models import Block


class Clipboard(Protocol):
    """System clipboard supplied by the UI layer."""

    def write_text(self, text: str) -> None:
        """Replace the clipboard contents."""
        ...


class MemoryClipboard:
    """Clipboard kept in process memory."""

    def __init__(self) -> None:
        self.text = ""

    def write_text(self, text: str) -> None:
        self.text = text


@dataclass(frozen=True)
class CaretRange:
    """Caret or selection inside a single block."""

    start: int
    end: int | None = None

    @property
    def collapsed(self) -> bool:
        return self.end is None or self.end == self.start


@dataclass(frozen=True)
class TextSelection:
    """A text selection that may span several blocks."""

    start_block: str
    start_offset: int
    end_block: str
    end_offset: int

    @property
    def spans_blocks(self) -> bool:
        return self.start_block != self.end_block


def normalize_selection(
    blocks: list[Block], selection: TextSelection
) -> tuple[int, int, int, int] | None:
    """Order a selection by document position.

    Returns:
        ``(start_index, start_offset, end_index, end_offset)`` or None when
        either end refers to a block that no longer exists
    """
    index = {block.id: i for i, block in enumerate(blocks)}
    if selection.start_block not in index or selection.end_block not in index:
        return None

    start = (index[selection.start_block], selection.start_offset)
    end = (index[selection.end_block], selection.end_offset)
    if end < start:
        start, end = end, start
    return start[0], start[1], end[0], end[1]


def selected_text(blocks: list[Block], selection: TextSelection) -> str:
    """Text covered by ``selection``, one line per block."""
    bounds = normalize_selection(blocks, selection)
    if bounds is None:
        return ""
    start_index, start_offset, end_index, end_offset = bounds

    if start_index == end_index:
        return blocks[start_index].content[start_offset:end_offset]

    lines = [blocks[start_index].content[start_offset:]]
    lines.extend(block.content for block in blocks[start_index + 1 : end_index])
    lines.append(blocks[end_index].content[:end_offset])
    return "\n".join(lines)


def delete_selection(blocks: list[Block], selection: TextSelection) -> list[Block]:
    """Structurally remove the selected span.

    The start block keeps the text before the selection, the end block
    keeps the text after it, blocks in between are dropped, and any block
    left blank is removed.
    """
    bounds = normalize_selection(blocks, selection)
    if bounds is None:
        return list(blocks)
    start_index, start_offset, end_index, end_offset = bounds

    result: list[Block] = list(blocks[:start_index])
    first = blocks[start_index]

    if start_index == end_index:
        content = first.content[:start_offset] + first.content[end_offset:]
        survivors = [first.model_copy(update={"content": content})]
    else:
        last = blocks[end_index]
        survivors = [
            first.model_copy(update={"content": first.content[:start_offset]}),
            last.model_copy(update={"content": last.content[end_offset:]}),
        ]

    result.extend(block for block in survivors if block.content.strip())
    result.extend(blocks[end_index + 1 :])
    return result
