"""Tests for the editing session controller."""

import pytest

from scenewright.config import SceneWrightSettings
from scenewright.editor.selection import CaretRange, MemoryClipboard
from scenewright.editor.session import EditingSession, transform_for_format
from scenewright.exceptions import ValidationError
from scenewright.models import Block, BlockType


class Ticker:
    """Monotonic clock advanced by hand."""

    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def ticker():
    """Hand-driven monotonic clock."""
    return Ticker()


@pytest.fixture
def session_factory(ticker):
    """Build sessions with predictable ids and a fake clock."""

    def factory(blocks, **kwargs):
        counter = iter(range(1, 1000))
        return EditingSession(
            blocks,
            SceneWrightSettings(identity="tester"),
            clock=ticker,
            id_factory=lambda: f"n{next(counter)}",
            **kwargs,
        )

    return factory


def _types(result):
    return [block.type for block in result.blocks]


class TestSessionSetup:
    """Test session construction."""

    def test_numbers_initial_document(self, session_factory, sample_document):
        """The initial document is renumbered on load."""
        session = session_factory(sample_document)
        headings = [
            b.number for b in session.blocks if b.type == BlockType.SCENE_HEADING
        ]
        assert headings == [1, 2]

    def test_rejects_duplicate_ids(self, session_factory):
        """Duplicate ids are refused up front."""
        blocks = [
            Block(id="x", type=BlockType.ACTION, content="one"),
            Block(id="x", type=BlockType.ACTION, content="two"),
        ]
        with pytest.raises(ValidationError):
            session_factory(blocks)


class TestOnEnter:
    """Test splitting blocks with Enter."""

    def test_unknown_block_is_noop(self, session_factory, sample_document):
        """Enter on a missing block changes nothing."""
        session = session_factory(sample_document)
        result = session.on_enter("missing", 0)
        assert result.changed is False
        assert result.blocks == session.blocks

    def test_split_action_at_caret(self, session_factory):
        """Text after the caret moves to a new block of the successor type."""
        session = session_factory(
            [Block(id="a", type=BlockType.ACTION, content="She runs away.")]
        )
        result = session.on_enter("a", 8)
        assert [b.content for b in result.blocks] == ["She runs", " away."]
        assert _types(result) == [BlockType.ACTION, BlockType.CHARACTER]
        assert result.focus_block_id == "n1"
        assert result.caret == CaretRange(0)

    def test_character_then_dialogue(self, session_factory):
        """Enter after a plain-text character cue leads to dialogue."""
        session = session_factory(
            [Block(id="c", type=BlockType.CHARACTER, content="Mara")]
        )
        result = session.on_enter("c", 4)
        assert _types(result) == [BlockType.CHARACTER, BlockType.DIALOGUE]

    def test_upper_case_character_repeats_character(self, session_factory):
        """A detectable cue decides the successor, so MARA yields a character."""
        session = session_factory(
            [Block(id="c", type=BlockType.CHARACTER, content="MARA")]
        )
        result = session.on_enter("c", 4)
        assert _types(result) == [BlockType.CHARACTER, BlockType.CHARACTER]

    def test_bare_prefix_opens_suggestions(self, session_factory):
        """A bare INT. keeps the next block a scene heading with suggestions."""
        session = session_factory(
            [Block(id="h", type=BlockType.SCENE_HEADING, content="INT.")]
        )
        result = session.on_enter("h", 4)
        assert _types(result) == [BlockType.SCENE_HEADING, BlockType.SCENE_HEADING]
        assert result.show_suggestions is True

    def test_transition_always_opens_heading(self, session_factory):
        """Enter on a transition inserts an empty scene heading."""
        session = session_factory(
            [Block(id="t", type=BlockType.TRANSITION, content="cut to:")]
        )
        result = session.on_enter("t", 7)
        assert _types(result) == [BlockType.TRANSITION, BlockType.SCENE_HEADING]
        assert result.blocks[0].content == "CUT TO:"
        assert result.blocks[1].content == ""
        assert result.focus_block_id == result.blocks[1].id
        assert result.show_suggestions is True

    def test_parenthetical_closes_and_opens_dialogue(self, session_factory):
        """The parenthetical is closed and dialogue follows."""
        session = session_factory(
            [Block(id="p", type=BlockType.PARENTHETICAL, content="(quietly")]
        )
        result = session.on_enter("p", 8)
        assert result.blocks[0].content == "(quietly)"
        assert result.blocks[1].type == BlockType.DIALOGUE
        assert result.blocks[1].content == ""

    def test_parenthetical_before_closing_paren(self, session_factory):
        """A caret before the closing paren does not duplicate it."""
        session = session_factory(
            [Block(id="p", type=BlockType.PARENTHETICAL, content="(quietly)")]
        )
        result = session.on_enter("p", 8)
        assert [b.content for b in result.blocks] == ["(quietly)", ""]

    def test_double_enter_in_dialogue(self, session_factory, ticker):
        """Two quick Enters leave dialogue for action."""
        session = session_factory(
            [
                Block(id="c", type=BlockType.CHARACTER, content="MARA"),
                Block(id="d", type=BlockType.DIALOGUE, content="Hello there."),
            ]
        )
        session.on_enter("c", 4)
        ticker.now += 0.2
        result = session.on_enter("d", 0)
        assert "d" not in [b.id for b in result.blocks]
        assert result.blocks[-1].type == BlockType.ACTION
        assert result.blocks[-1].content == "Hello there."
        assert result.focus_block_id == result.blocks[-1].id

    def test_slow_second_enter_is_a_split(self, session_factory, ticker):
        """Outside the window, Enter in dialogue splits as usual."""
        session = session_factory(
            [
                Block(id="c", type=BlockType.CHARACTER, content="MARA"),
                Block(id="d", type=BlockType.DIALOGUE, content="Hello there."),
            ]
        )
        session.on_enter("c", 4)
        ticker.now += 2.0
        result = session.on_enter("d", 0)
        assert "d" in [b.id for b in result.blocks]
        assert result.blocks[-1].type == BlockType.CHARACTER

    def test_dialogue_numbers_follow_splits(self, session_factory):
        """Numbers are recomputed after every mutation."""
        session = session_factory(
            [
                Block(id="c", type=BlockType.CHARACTER, content="Mara"),
                Block(id="d", type=BlockType.DIALOGUE, content="One."),
            ]
        )
        result = session.on_enter("c", 4)
        dialogue = [b for b in result.blocks if b.type == BlockType.DIALOGUE]
        assert [b.number for b in dialogue] == [1, 2]


class TestFormatChange:
    """Test retyping blocks."""

    def test_character_is_upper_cased(self, session_factory):
        """Switching to character upper-cases and keeps the caret."""
        session = session_factory(
            [Block(id="a", type=BlockType.ACTION, content="mara")]
        )
        result = session.on_format_change(
            BlockType.CHARACTER, CaretRange(2), block_id="a"
        )
        assert result.blocks[0].content == "MARA"
        assert result.caret == CaretRange(2)

    def test_parenthetical_wraps_and_scales_selection(self, session_factory):
        """A selection is scaled to the wrapped content."""
        session = session_factory(
            [Block(id="a", type=BlockType.ACTION, content="quietly")]
        )
        session.set_active("a")
        result = session.on_format_change(BlockType.PARENTHETICAL, CaretRange(0, 7))
        assert result.blocks[0].content == "(quietly)"
        assert result.caret == CaretRange(0, 9)

    def test_empty_parenthetical_caret_inside(self, session_factory):
        """An empty parenthetical puts the caret between the parens."""
        session = session_factory([Block(id="a", type=BlockType.ACTION)])
        result = session.on_format_change(BlockType.PARENTHETICAL, block_id="a")
        assert result.blocks[0].content == "()"
        assert result.caret == CaretRange(1)

    def test_empty_heading_shows_suggestions(self, session_factory):
        """An empty scene heading opens the suggestion list."""
        session = session_factory([Block(id="a", type=BlockType.ACTION)])
        result = session.on_format_change(BlockType.SCENE_HEADING, block_id="a")
        assert result.show_suggestions is True
        assert result.caret == CaretRange(0)

    def test_transition_gets_following_heading(self, session_factory):
        """Retyping to a transition guarantees a heading after it."""
        session = session_factory(
            [Block(id="a", type=BlockType.ACTION, content="cut to")]
        )
        result = session.on_format_change(BlockType.TRANSITION, block_id="a")
        assert result.blocks[0].content == "CUT TO"
        assert _types(result) == [BlockType.TRANSITION, BlockType.SCENE_HEADING]

    def test_transition_before_heading_adds_nothing(self, session_factory):
        """No heading is inserted when one already follows."""
        session = session_factory(
            [
                Block(id="a", type=BlockType.ACTION, content="CUT TO:"),
                Block(id="h", type=BlockType.SCENE_HEADING, content="INT. A"),
            ]
        )
        result = session.on_format_change(BlockType.TRANSITION, block_id="a")
        assert len(result.blocks) == 2

    def test_no_active_block_is_noop(self, session_factory, sample_document):
        """Without a target nothing changes."""
        session = session_factory(sample_document)
        result = session.on_format_change(BlockType.ACTION)
        assert result.changed is False

    @pytest.mark.parametrize(
        ("content", "old", "new", "expected"),
        [
            ("(beat)", BlockType.PARENTHETICAL, BlockType.ACTION, "beat"),
            ("", BlockType.ACTION, BlockType.PARENTHETICAL, "()"),
            ("(already)", BlockType.ACTION, BlockType.PARENTHETICAL, "(already)"),
            ("   ", BlockType.ACTION, BlockType.SCENE_HEADING, ""),
            ("dissolve", BlockType.ACTION, BlockType.TRANSITION, "dissolve"),
            ("jonah", BlockType.CHARACTER, BlockType.CHARACTER, "jonah"),
        ],
    )
    def test_transform_for_format(self, content, old, new, expected):
        """Content transformations for each target type."""
        assert transform_for_format(content, old, new) == expected


class TestContentChange:
    """Test typing into blocks."""

    def test_blank_content_deletes_block(self, session_factory, sample_document):
        """Clearing a block removes it."""
        session = session_factory(sample_document)
        result = session.on_content_change("a1", "   ")
        assert "a1" not in [b.id for b in result.blocks]
        assert result.focus_block_id is None

    def test_typing_transition_inserts_heading(self, session_factory):
        """A line that reads as a transition becomes one."""
        session = session_factory(
            [Block(id="a", type=BlockType.ACTION, content="smash cut")]
        )
        result = session.on_content_change("a", "smash cut to:")
        assert result.blocks[0].type == BlockType.TRANSITION
        assert result.blocks[0].content == "SMASH CUT TO:"
        assert result.blocks[1].type == BlockType.SCENE_HEADING
        assert result.focus_block_id == result.blocks[1].id
        assert result.show_suggestions is True

    def test_parenthetical_rewrapped(self, session_factory):
        """Parenthetical text is kept inside parens, caret before the close."""
        session = session_factory(
            [Block(id="p", type=BlockType.PARENTHETICAL, content="()")]
        )
        result = session.on_content_change("p", "beat")
        assert result.blocks[0].content == "(beat)"
        assert result.caret == CaretRange(5)

    def test_detected_heading(self, session_factory):
        """Typing a heading prefix retypes the block."""
        session = session_factory([Block(id="a", type=BlockType.ACTION, content="i")])
        result = session.on_content_change("a", "INT. HOUSE")
        assert result.blocks[0].type == BlockType.SCENE_HEADING
        assert result.blocks[0].number == 1

    def test_undetected_keeps_type(self, session_factory):
        """Plain prose keeps the block's type."""
        session = session_factory([Block(id="d", type=BlockType.DIALOGUE, content="")])
        result = session.on_content_change("d", "Fine, let's go.")
        assert result.blocks[0].type == BlockType.DIALOGUE
        assert result.caret == CaretRange(15)

    def test_forced_type_wins(self, session_factory):
        """An explicit type overrides detection."""
        session = session_factory([Block(id="a", type=BlockType.ACTION)])
        result = session.on_content_change("a", "MARA", forced_type=BlockType.SHOT)
        assert result.blocks[0].type == BlockType.SHOT

    def test_forced_transition_inserts_heading(self, session_factory):
        """Forcing a transition also guarantees a following heading."""
        session = session_factory([Block(id="a", type=BlockType.ACTION)])
        result = session.on_content_change(
            "a", "CUT TO:", forced_type=BlockType.TRANSITION
        )
        assert _types(result) == [BlockType.TRANSITION, BlockType.SCENE_HEADING]
        assert result.show_suggestions is True


class TestBackspaceAndTab:
    """Test Backspace merging and Tab cycling."""

    def test_backspace_removes_empty_block(self, session_factory):
        """An empty block at caret 0 is removed and focus moves back."""
        session = session_factory(
            [
                Block(id="a", type=BlockType.ACTION, content="Door opens."),
                Block(id="b", type=BlockType.CHARACTER),
            ]
        )
        result = session.on_backspace("b", 0)
        assert [b.id for b in result.blocks] == ["a"]
        assert result.focus_block_id == "a"
        assert result.caret == CaretRange(11)
        assert result.blocks[0].content == "Door opens."

    @pytest.mark.parametrize(
        ("block_id", "caret", "content"),
        [("a", 0, None), ("b", 1, None), ("b", 0, "x")],
    )
    def test_backspace_noops(self, session_factory, block_id, caret, content):
        """First block, non-zero caret or remaining text leave things alone."""
        session = session_factory(
            [
                Block(id="a", type=BlockType.ACTION),
                Block(id="b", type=BlockType.ACTION),
            ]
        )
        result = session.on_backspace(block_id, caret, content)
        assert result.changed is False
        assert len(result.blocks) == 2

    def test_tab_cycles_forward(self, session_factory):
        """Tab moves to the next type in the cycle."""
        session = session_factory(
            [Block(id="a", type=BlockType.ACTION, content="mara")]
        )
        result = session.on_tab("a")
        assert result.blocks[0].type == BlockType.CHARACTER
        assert result.blocks[0].content == "MARA"

    def test_tab_on_heading_after_transition(self, session_factory):
        """Retyping the heading behind a transition brings a new heading."""
        session = session_factory(
            [
                Block(id="t", type=BlockType.TRANSITION, content="CUT TO:"),
                Block(id="h", type=BlockType.SCENE_HEADING, content="INT. X - DAY"),
            ]
        )
        result = session.on_tab("h")
        assert [(b.id, b.type) for b in result.blocks] == [
            ("t", BlockType.TRANSITION),
            ("n1", BlockType.SCENE_HEADING),
            ("h", BlockType.ACTION),
        ]

    def test_format_change_on_heading_after_transition(self, session_factory):
        """A format change cannot leave a transition without a heading."""
        session = session_factory(
            [
                Block(id="t", type=BlockType.TRANSITION, content="CUT TO:"),
                Block(id="h", type=BlockType.SCENE_HEADING, content="INT. X - DAY"),
            ]
        )
        result = session.on_format_change(BlockType.ACTION, block_id="h")
        assert _types(result) == [
            BlockType.TRANSITION,
            BlockType.SCENE_HEADING,
            BlockType.ACTION,
        ]
        assert result.focus_block_id == "h"

    def test_deleting_heading_after_transition(self, session_factory):
        """Removing the heading behind a transition replaces it."""
        session = session_factory(
            [
                Block(id="t", type=BlockType.TRANSITION, content="CUT TO:"),
                Block(id="h", type=BlockType.SCENE_HEADING, content="INT. X - DAY"),
                Block(id="a", type=BlockType.ACTION, content="Rain."),
            ]
        )
        result = session.delete_block("h")
        assert _types(result) == [
            BlockType.TRANSITION,
            BlockType.SCENE_HEADING,
            BlockType.ACTION,
        ]

    def test_tab_wraps_around(self, session_factory):
        """The last type cycles back to scene heading."""
        session = session_factory(
            [Block(id="s", type=BlockType.SHOT, content="CLOSE ON HANDS")]
        )
        result = session.on_tab("s")
        assert result.blocks[0].type == BlockType.SCENE_HEADING


class TestStructuralEdits:
    """Test explicit insertion, deletion and suggestions."""

    def test_insert_at_top(self, session_factory, sample_document):
        """A None anchor inserts at the start."""
        session = session_factory(sample_document)
        result = session.insert_block(None, BlockType.ACTION, "Opening.")
        assert result.blocks[0].content == "Opening."
        assert result.focus_block_id == result.blocks[0].id

    def test_insert_transition_adds_heading(self, session_factory):
        """Inserted transitions are followed by a heading."""
        session = session_factory([Block(id="a", type=BlockType.ACTION, content="x")])
        result = session.insert_block("a", BlockType.TRANSITION, "CUT TO:")
        assert _types(result) == [
            BlockType.ACTION,
            BlockType.TRANSITION,
            BlockType.SCENE_HEADING,
        ]

    def test_insert_after_unknown_block(self, session_factory, sample_document):
        """An unknown anchor is a no-op."""
        session = session_factory(sample_document)
        assert session.insert_block("nope", BlockType.ACTION).changed is False

    def test_delete_block_focuses_previous(self, session_factory, sample_document):
        """Deleting moves focus to the preceding block."""
        session = session_factory(sample_document)
        session.select_blocks(["a1", "c1"])
        result = session.delete_block("a1")
        assert result.focus_block_id == "h1"
        assert session.selected_block_ids == {"c1"}

    def test_apply_scene_suggestion(self, session_factory):
        """Picking a prefix fills the heading and puts the caret after it."""
        session = session_factory([Block(id="h", type=BlockType.SCENE_HEADING)])
        result = session.apply_scene_suggestion("h", "EXT. ")
        assert result.blocks[0].content == "EXT. "
        assert result.caret == CaretRange(5)

    def test_set_active_ignores_unknown(self, session_factory, sample_document):
        """Focus cannot move to a block that does not exist."""
        session = session_factory(sample_document)
        session.set_active("nope")
        assert session.active_block_id is None


class TestSelectionAndClipboard:
    """Test block selection, copy and cut."""

    def test_select_range_is_inclusive(self, session_factory, sample_document):
        """Range selection covers both ends in either direction."""
        session = session_factory(sample_document)
        assert session.select_range("d1", "c1") == {"c1", "p1", "d1"}

    def test_copy_requires_multi_block_selection(
        self, session_factory, sample_document
    ):
        """A selection inside one block is left to the default handler."""
        session = session_factory(sample_document)
        session.set_text_selection("a1", 0, "a1", 4)
        assert session.copy_selection() is None

    def test_copy_writes_clipboard(self, session_factory, sample_document):
        """Multi-block selections are joined with newlines."""
        clipboard = MemoryClipboard()
        session = session_factory(sample_document, clipboard=clipboard)
        session.set_text_selection("c1", 2, "d1", 2)
        assert session.copy_selection() == "RA\n(quietly)\nWe"
        assert clipboard.text == "RA\n(quietly)\nWe"

    def test_cut_deletes_structurally(self, session_factory, sample_document):
        """Cut removes the middle blocks and trims the ends."""
        session = session_factory(sample_document)
        session.set_text_selection("c1", 2, "d1", 3)
        result = session.cut_selection()
        ids = [b.id for b in result.blocks]
        assert "p1" not in ids
        contents = {b.id: b.content for b in result.blocks}
        assert contents["c1"] == "MA"
        assert contents["d1"] == "should go."
        assert session.text_selection is None

    def test_cut_without_selection_is_noop(self, session_factory, sample_document):
        """Nothing is cut when nothing spans blocks."""
        session = session_factory(sample_document)
        assert session.cut_selection().changed is False

    def test_clipboard_failure_is_logged(self, session_factory, sample_document):
        """A failing clipboard does not break the copy."""

        class BrokenClipboard:
            def write_text(self, text):
                raise RuntimeError("no clipboard")

        session = session_factory(sample_document, clipboard=BrokenClipboard())
        session.set_text_selection("c1", 0, "d1", 2)
        assert session.copy_selection() == "MARA\n(quietly)\nWe"


class TestUndoRedo:
    """Test history through the session."""

    def test_undo_restores_previous_sequence(self, session_factory, sample_document):
        """Undo returns to the sequence before the mutation."""
        session = session_factory(sample_document)
        before = list(session.blocks)
        session.delete_block("a1")
        result = session.undo()
        assert result.blocks == before

    def test_redo_reapplies(self, session_factory, sample_document):
        """Redo re-applies the undone mutation."""
        session = session_factory(sample_document)
        session.delete_block("a1")
        after = list(session.blocks)
        session.undo()
        assert session.redo().blocks == after

    def test_new_edit_clears_redo(self, session_factory, sample_document):
        """Editing after undo drops the redo branch."""
        session = session_factory(sample_document)
        session.delete_block("a1")
        session.undo()
        session.delete_block("a2")
        assert session.redo().changed is False

    def test_empty_history(self, session_factory, sample_document):
        """Undo with nothing recorded is a no-op."""
        session = session_factory(sample_document)
        assert session.undo().changed is False
        assert session.redo().changed is False
