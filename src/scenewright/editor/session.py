"""Editing session controller.

Turns discrete edit events (Enter, Backspace, Tab, typing, format buttons)
into mutations of the block sequence. Every mutating operation records the
pre-mutation sequence for undo, renumbers the result and reports which block
should receive focus.
"""

from __future__ import annotations

import math
import re
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from scenewright.config import SceneWrightSettings, get_logger, get_settings
from scenewright.editor.formatting import (
    detect_format,
    is_scene_heading_content,
    is_transition_content,
    next_block_type,
    update_block_numbers,
)
from scenewright.editor.history import EditHistory
from scenewright.editor.selection import (
    CaretRange,
    Clipboard,
    MemoryClipboard,
    TextSelection,
    delete_selection,
    selected_text,
)
from scenewright.models import (
    BLOCK_TYPES,
    Block,
    BlockType,
    new_block_id,
    validate_document,
)

logger = get_logger(__name__)

_WRAPPING_PARENS = re.compile(r"^\(|\)$")
_SUGGESTION_TYPES = frozenset(
    {BlockType.SCENE_HEADING, BlockType.TRANSITION, BlockType.SHOT}
)


@dataclass
class EditResult:
    """Outcome of an edit operation."""

    blocks: list[Block]
    focus_block_id: str | None = None
    caret: CaretRange | None = None
    show_suggestions: bool = False
    changed: bool = True


def _js_round(value: float) -> int:
    """Round half up, the way caret offsets are computed in the browser."""
    return math.floor(value + 0.5)


def _remap_caret(
    selection: CaretRange | None, old_length: int, new_length: int
) -> CaretRange:
    """Map a caret or selection onto content whose length changed.

    A collapsed caret is clamped; a selection is scaled by the length ratio.
    Anything that cannot be mapped falls back to the end of the content.
    """
    end_of_content = CaretRange(new_length)
    if selection is None or selection.start < 0:
        return end_of_content

    if selection.collapsed:
        return CaretRange(min(selection.start, new_length))

    if old_length == 0 or selection.end is None or selection.end < selection.start:
        return end_of_content

    ratio = new_length / old_length
    start = min(_js_round(selection.start * ratio), new_length)
    end = min(_js_round(selection.end * ratio), new_length)
    return CaretRange(start, end)


def transform_for_format(content: str, old_type: BlockType, new_type: BlockType) -> str:
    """Adjust block content when its type changes.

    Args:
        content: Current content
        old_type: Type the block had
        new_type: Type being applied

    Returns:
        Content for the retyped block
    """
    new_content = content

    if new_type == BlockType.PARENTHETICAL:
        stripped = content.strip()
        if stripped in ("", "()"):
            new_content = "()"
        elif not (stripped.startswith("(") and stripped.endswith(")")):
            new_content = f"({_WRAPPING_PARENS.sub('', stripped)})"
    elif old_type == BlockType.PARENTHETICAL:
        new_content = _WRAPPING_PARENS.sub("", content).strip()

    if new_type == BlockType.CHARACTER and old_type != BlockType.CHARACTER:
        new_content = new_content.upper()

    if new_type == BlockType.SCENE_HEADING and not is_scene_heading_content(
        new_content
    ):
        # Left empty so the suggestion UI can offer INT./EXT.
        if not new_content.strip():
            new_content = ""

    if new_type == BlockType.TRANSITION and not is_transition_content(new_content):
        if not new_content.strip():
            new_content = ""
        elif not new_content.endswith("TO:"):
            new_content = new_content.upper()

    return new_content


class EditingSession:
    """Holds the block sequence being edited and applies edit events."""

    def __init__(
        self,
        blocks: Iterable[Block] | None = None,
        settings: SceneWrightSettings | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        id_factory: Callable[[], str] = new_block_id,
        clipboard: Clipboard | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            blocks: Initial document
            settings: Configuration settings
            clock: Monotonic clock in seconds, used for double-enter detection
            id_factory: Generator for new block ids
            clipboard: Clipboard used by copy and cut
        """
        self.settings = settings or get_settings()
        initial = list(blocks or [])
        validate_document(initial)
        self.blocks: list[Block] = update_block_numbers(initial)
        self.active_block_id: str | None = None
        self.selected_block_ids: set[str] = set()
        self.text_selection: TextSelection | None = None
        self.history = EditHistory(limit=self.settings.history_limit)
        self.clipboard: Clipboard = clipboard or MemoryClipboard()
        self._clock = clock
        self._id_factory = id_factory
        self._last_enter_at: float | None = None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _index(self, block_id: str | None) -> int | None:
        if block_id is None:
            return None
        for index, block in enumerate(self.blocks):
            if block.id == block_id:
                return index
        return None

    def _new_block(self, block_type: BlockType, content: str = "") -> Block:
        return Block(id=self._id_factory(), type=block_type, content=content)

    def _unchanged(self) -> EditResult:
        return EditResult(
            blocks=self.blocks, focus_block_id=self.active_block_id, changed=False
        )

    def _commit(
        self,
        blocks: list[Block],
        focus_block_id: str | None = None,
        caret: CaretRange | None = None,
        show_suggestions: bool = False,
    ) -> EditResult:
        # Every transition leads into a scene heading, whatever the edit was
        for index in range(len(blocks) - 1, -1, -1):
            if blocks[index].type == BlockType.TRANSITION:
                self._ensure_heading_after(blocks, index)
        self.blocks = update_block_numbers(blocks)
        self.active_block_id = focus_block_id
        return EditResult(
            blocks=self.blocks,
            focus_block_id=focus_block_id,
            caret=caret,
            show_suggestions=show_suggestions,
        )

    def _ensure_heading_after(self, blocks: list[Block], index: int) -> Block | None:
        """Insert an empty scene heading after the transition at ``index``.

        Returns the inserted block, or None when a heading already follows.
        """
        following = blocks[index + 1] if index + 1 < len(blocks) else None
        if following is not None and following.type == BlockType.SCENE_HEADING:
            return None
        heading = self._new_block(BlockType.SCENE_HEADING)
        blocks.insert(index + 1, heading)
        return heading

    # ------------------------------------------------------------------
    # edit events
    # ------------------------------------------------------------------

    def on_enter(
        self, block_id: str, caret: int, content: str | None = None
    ) -> EditResult:
        """Split a block at the caret.

        Args:
            block_id: Block receiving the keystroke
            caret: Caret offset within the block text
            content: Live block text if it differs from the stored content

        Returns:
            Edit result focusing the block that should receive the caret
        """
        index = self._index(block_id)
        if index is None:
            return self._unchanged()

        block = self.blocks[index]
        text = block.content if content is None else content
        caret = max(0, min(caret, len(text)))
        before, after = text[:caret], text[caret:]

        now = self._clock()
        is_double_enter = (
            self._last_enter_at is not None
            and now - self._last_enter_at < self.settings.double_enter_window
            and block.type == BlockType.DIALOGUE
            and before.strip() == ""
        )
        self._last_enter_at = now

        self.history.record(self.blocks)
        updated = list(self.blocks)

        # Transitions always lead into a new scene heading
        if block.type == BlockType.TRANSITION:
            if before.strip():
                updated[index] = block.model_copy(
                    update={"content": before.strip().upper()}
                )
            heading = self._new_block(BlockType.SCENE_HEADING)
            updated.insert(index + 1, heading)
            return self._commit(
                updated, heading.id, CaretRange(0), show_suggestions=True
            )

        if is_double_enter:
            # Takes the empty dialogue's place instead of being appended at
            # the end of the document
            del updated[index]
            action = self._new_block(BlockType.ACTION, after)
            updated.insert(index, action)
            return self._commit(updated, action.id, CaretRange(0))

        if block.type == BlockType.PARENTHETICAL:
            closed = before if before.endswith(")") else before + ")"
            updated[index] = block.model_copy(update={"content": closed})
            dialogue = self._new_block(
                BlockType.DIALOGUE, re.sub(r"^\)", "", after).strip()
            )
            updated.insert(index + 1, dialogue)
            return self._commit(updated, dialogue.id, CaretRange(0))

        updated[index] = block.model_copy(update={"content": before})
        new_type = next_block_type(block.type, before, False)
        new_block = self._new_block(new_type, after)
        updated.insert(index + 1, new_block)
        if new_type == BlockType.TRANSITION:
            self._ensure_heading_after(updated, index + 1)
        return self._commit(
            updated,
            new_block.id,
            CaretRange(0),
            show_suggestions=new_type == BlockType.SCENE_HEADING,
        )

    def on_format_change(
        self,
        block_type: BlockType,
        selection: CaretRange | None = None,
        block_id: str | None = None,
    ) -> EditResult:
        """Apply a block type to the active block.

        Args:
            block_type: Type to apply
            selection: Caret or selection before the change
            block_id: Block to retype; defaults to the active block

        Returns:
            Edit result with the caret remapped onto the new content
        """
        target = block_id or self.active_block_id
        index = self._index(target)
        if index is None:
            return self._unchanged()

        self.history.record(self.blocks)
        block = self.blocks[index]
        new_content = transform_for_format(block.content, block.type, block_type)

        updated = list(self.blocks)
        updated[index] = block.model_copy(
            update={"type": block_type, "content": new_content}
        )
        if block_type == BlockType.TRANSITION:
            self._ensure_heading_after(updated, index)

        show_suggestions = False
        if block_type in _SUGGESTION_TYPES and not new_content.strip():
            show_suggestions = True
            caret = CaretRange(0)
        elif block_type == BlockType.PARENTHETICAL and new_content == "()":
            caret = CaretRange(1)
        else:
            caret = _remap_caret(selection, len(block.content), len(new_content))

        logger.debug(
            "Block format changed",
            block_id=block.id,
            old_type=block.type.value,
            new_type=block_type.value,
        )
        return self._commit(updated, block.id, caret, show_suggestions)

    def on_content_change(
        self,
        block_id: str,
        new_content: str,
        forced_type: BlockType | None = None,
    ) -> EditResult:
        """Replace a block's content, retyping it as the text dictates.

        Args:
            block_id: Block being edited
            new_content: Full new text of the block
            forced_type: Type chosen explicitly, e.g. from the suggestion UI

        Returns:
            Edit result
        """
        index = self._index(block_id)
        if index is None:
            return self._unchanged()

        block = self.blocks[index]
        self.history.record(self.blocks)
        updated = list(self.blocks)

        if not new_content.strip():
            del updated[index]
            return self._commit(updated)

        if forced_type is not None:
            updated[index] = block.model_copy(
                update={"type": forced_type, "content": new_content}
            )
            if forced_type == BlockType.TRANSITION:
                heading = self._ensure_heading_after(updated, index)
                if heading is not None:
                    return self._commit(updated, heading.id, CaretRange(0), True)
            return self._commit(updated, block.id, CaretRange(len(new_content)))

        if block.type == BlockType.PARENTHETICAL:
            wrapped = new_content.strip()
            if not wrapped.startswith("("):
                wrapped = f"({wrapped}"
            if not wrapped.endswith(")"):
                wrapped = f"{wrapped})"
            updated[index] = block.model_copy(update={"content": wrapped})
            return self._commit(updated, block.id, CaretRange(len(wrapped) - 1))

        if is_transition_content(new_content) and block.type != BlockType.TRANSITION:
            updated[index] = block.model_copy(
                update={
                    "type": BlockType.TRANSITION,
                    "content": new_content.strip().upper(),
                }
            )
            heading = self._new_block(BlockType.SCENE_HEADING)
            updated.insert(index + 1, heading)
            return self._commit(updated, heading.id, CaretRange(0), True)

        detected = detect_format(new_content)
        updated[index] = block.model_copy(
            update={"type": detected or block.type, "content": new_content}
        )
        return self._commit(updated, block.id, CaretRange(len(new_content)))

    def on_backspace(
        self, block_id: str, caret: int = 0, content: str | None = None
    ) -> EditResult:
        """Merge an empty block into its predecessor by deleting it.

        Only acts when the block is empty, the caret is at 0 and a
        predecessor exists; the predecessor's content is left untouched.
        """
        index = self._index(block_id)
        if index is None or index == 0 or caret != 0:
            return self._unchanged()

        text = self.blocks[index].content if content is None else content
        if text != "":
            return self._unchanged()

        self.history.record(self.blocks)
        previous = self.blocks[index - 1]
        updated = [b for b in self.blocks if b.id != block_id]
        return self._commit(updated, previous.id, CaretRange(len(previous.content)))

    def on_tab(self, block_id: str | None = None) -> EditResult:
        """Cycle the block's type forward through the fixed type list."""
        target = block_id or self.active_block_id
        index = self._index(target)
        if index is None:
            return self._unchanged()

        current = self.blocks[index].type
        position = BLOCK_TYPES.index(current)
        next_format = BLOCK_TYPES[(position + 1) % len(BLOCK_TYPES)]
        return self.on_format_change(next_format, block_id=target)

    def apply_scene_suggestion(self, block_id: str, prefix: str) -> EditResult:
        """Fill a scene heading with a prefix picked from the suggestion list."""
        index = self._index(block_id)
        if index is None:
            return self._unchanged()

        self.history.record(self.blocks)
        updated = list(self.blocks)
        updated[index] = updated[index].model_copy(
            update={"type": BlockType.SCENE_HEADING, "content": prefix}
        )
        return self._commit(updated, block_id, CaretRange(len(prefix)))

    def insert_block(
        self,
        after_id: str | None,
        block_type: BlockType,
        content: str = "",
    ) -> EditResult:
        """Insert a block after ``after_id`` (or at the top when None)."""
        position = 0
        if after_id is not None:
            anchor = self._index(after_id)
            if anchor is None:
                return self._unchanged()
            position = anchor + 1

        self.history.record(self.blocks)
        updated = list(self.blocks)
        new_block = self._new_block(block_type, content)
        updated.insert(position, new_block)
        if block_type == BlockType.TRANSITION:
            self._ensure_heading_after(updated, position)
        return self._commit(updated, new_block.id, CaretRange(len(content)))

    def delete_block(self, block_id: str) -> EditResult:
        """Remove a block explicitly."""
        index = self._index(block_id)
        if index is None:
            return self._unchanged()

        self.history.record(self.blocks)
        updated = [b for b in self.blocks if b.id != block_id]
        focus = self.blocks[index - 1].id if index > 0 else None
        self.selected_block_ids.discard(block_id)
        return self._commit(updated, focus)

    def set_active(self, block_id: str | None) -> None:
        """Move focus to ``block_id``."""
        self.active_block_id = block_id if self._index(block_id) is not None else None

    # ------------------------------------------------------------------
    # selection and clipboard
    # ------------------------------------------------------------------

    def select_blocks(self, block_ids: Iterable[str]) -> set[str]:
        """Replace the block selection with the known ids in ``block_ids``."""
        known = {block.id for block in self.blocks}
        self.selected_block_ids = {bid for bid in block_ids if bid in known}
        return self.selected_block_ids

    def select_range(self, first_id: str, last_id: str) -> set[str]:
        """Select every block between two blocks, inclusive."""
        first, last = self._index(first_id), self._index(last_id)
        if first is None or last is None:
            return self.selected_block_ids
        start, end = sorted((first, last))
        return self.select_blocks(b.id for b in self.blocks[start : end + 1])

    def clear_selection(self) -> None:
        """Drop block and text selections."""
        self.selected_block_ids = set()
        self.text_selection = None

    def set_text_selection(
        self,
        start_block: str,
        start_offset: int,
        end_block: str,
        end_offset: int,
    ) -> TextSelection:
        """Track a text selection that may span several blocks."""
        self.text_selection = TextSelection(
            start_block, start_offset, end_block, end_offset
        )
        return self.text_selection

    def copy_selection(self) -> str | None:
        """Copy a multi-block text selection to the clipboard.

        Returns:
            The copied text, or None when there is no multi-block selection
        """
        selection = self.text_selection
        if selection is None or not selection.spans_blocks:
            return None

        text = selected_text(self.blocks, selection)
        if not text:
            return None

        try:
            self.clipboard.write_text(text)
        except Exception as e:
            logger.error(f"Failed to copy text: {e}")
        return text

    def cut_selection(self) -> EditResult:
        """Copy the multi-block selection, then delete it structurally."""
        selection = self.text_selection
        if self.copy_selection() is None or selection is None:
            return self._unchanged()

        self.history.record(self.blocks)
        updated = delete_selection(self.blocks, selection)
        remaining = {block.id for block in updated}
        focus = selection.start_block if selection.start_block in remaining else None
        self.text_selection = None
        return self._commit(updated, focus)

    # ------------------------------------------------------------------
    # history
    # ------------------------------------------------------------------

    def undo(self) -> EditResult:
        """Restore the sequence before the last mutation."""
        restored = self.history.undo(self.blocks)
        if restored is None:
            return self._unchanged()
        return self._restore(restored)

    def redo(self) -> EditResult:
        """Re-apply the last undone mutation."""
        restored = self.history.redo(self.blocks)
        if restored is None:
            return self._unchanged()
        return self._restore(restored)

    def _restore(self, blocks: list[Block]) -> EditResult:
        self.blocks = blocks
        self.clear_selection()
        if self._index(self.active_block_id) is None:
            self.active_block_id = None
        return EditResult(blocks=self.blocks, focus_block_id=self.active_block_id)
