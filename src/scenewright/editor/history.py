"""Bounded undo/redo history of whole-document snapshots."""

from __future__ import annotations

from collections import deque

from scenewright.models import Block


class EditHistory:
    """Undo and redo stacks of block sequences.

    Blocks are immutable, so a snapshot is simply a copy of the list.
    """

    def __init__(self, limit: int = 100) -> None:
        """Initialize empty history.

        Args:
            limit: Maximum number of snapshots kept on each stack
        """
        self.limit = limit
        self._undo: deque[list[Block]] = deque(maxlen=limit)
        self._redo: deque[list[Block]] = deque(maxlen=limit)

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    def record(self, blocks: list[Block]) -> None:
        """Push the pre-mutation sequence and drop the redo branch."""
        self._undo.append(list(blocks))
        self._redo.clear()

    def undo(self, current: list[Block]) -> list[Block] | None:
        """Step back; returns the restored sequence or None if empty."""
        if not self._undo:
            return None
        self._redo.append(list(current))
        return self._undo.pop()

    def redo(self, current: list[Block]) -> list[Block] | None:
        """Step forward; returns the restored sequence or None if empty."""
        if not self._redo:
            return None
        self._undo.append(list(current))
        return self._redo.pop()

    def clear(self) -> None:
        """Forget all snapshots."""
        self._undo.clear()
        self._redo.clear()
