"""Rich tables for blocks, pages and scenes."""

from __future__ import annotations

import io

from rich.console import Console
from rich.table import Table

from scenewright.cli.formatters.base import OutputFormat, OutputFormatter
from scenewright.models import Block, Scene

PREVIEW_LENGTH = 60


def _preview(text: str) -> str:
    text = text.replace("\n", " ")
    if len(text) <= PREVIEW_LENGTH:
        return text
    return text[: PREVIEW_LENGTH - 3] + "..."


def _render(table: Table) -> str:
    string_io = io.StringIO()
    temp_console = Console(file=string_io, force_terminal=True)
    temp_console.print(table)
    return string_io.getvalue()


class BlockFormatter(OutputFormatter[list[Block]]):
    """Formatter for block sequences."""

    def format(
        self, data: list[Block], format_type: OutputFormat = OutputFormat.TABLE
    ) -> str:
        if not data:
            return "No blocks"
        if format_type == OutputFormat.TEXT:
            return "\n".join(f"{b.type.value}: {b.content}" for b in data)

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("#", justify="right")
        table.add_column("Type", style="cyan")
        table.add_column("No.", justify="right")
        table.add_column("Content")
        for index, block in enumerate(data, 1):
            table.add_row(
                str(index),
                block.type.value,
                str(block.number) if block.number is not None else "",
                _preview(block.content),
            )
        return _render(table)


class PageFormatter(OutputFormatter[list[list[Block]]]):
    """Formatter for paginated output."""

    def format(
        self,
        data: list[list[Block]],
        format_type: OutputFormat = OutputFormat.TABLE,  # noqa: ARG002
    ) -> str:
        if not data:
            return "No pages"
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Page", justify="right")
        table.add_column("Blocks", justify="right")
        table.add_column("Starts with")
        for number, page in enumerate(data, 1):
            first = page[0]
            table.add_row(
                str(number),
                str(len(page)),
                f"{first.type.value}: {_preview(first.content)}",
            )
        return _render(table)


class SceneFormatter(OutputFormatter[list[Scene]]):
    """Formatter for scene breakdowns."""

    def format(
        self,
        data: list[Scene],
        format_type: OutputFormat = OutputFormat.TABLE,  # noqa: ARG002
    ) -> str:
        if not data:
            return "No scenes"
        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Scene", justify="right")
        table.add_column("Heading", style="cyan")
        table.add_column("Blocks", justify="right")
        table.add_column("Dialogue", justify="right")
        table.add_column("Characters")
        for scene in data:
            speakers = sorted({d.character_name for d in scene.content.dialogues})
            table.add_row(
                str(scene.scene_number),
                _preview(scene.heading) or "(prelude)",
                str(len(scene.blocks)),
                str(len(scene.content.dialogues)),
                ", ".join(speakers),
            )
        return _render(table)
