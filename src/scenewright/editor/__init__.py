"""Editing core: classification, pagination and the session controller."""

from scenewright.editor.formatting import (
    SCENE_HEADING_SUGGESTIONS,
    classify,
    detect_format,
    next_block_type,
    next_type,
    renumber,
    update_block_numbers,
)
from scenewright.editor.importer import blocks_from_text
from scenewright.editor.pagination import block_height, paginate
from scenewright.editor.selection import CaretRange, MemoryClipboard, TextSelection
from scenewright.editor.session import EditingSession, EditResult

__all__ = [
    "SCENE_HEADING_SUGGESTIONS",
    "CaretRange",
    "EditResult",
    "EditingSession",
    "MemoryClipboard",
    "TextSelection",
    "block_height",
    "blocks_from_text",
    "classify",
    "detect_format",
    "next_block_type",
    "next_type",
    "paginate",
    "renumber",
    "update_block_numbers",
]
