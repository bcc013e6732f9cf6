"""Offline editing commands: classification, numbering, pagination, import."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scenewright.cli.formatters.base import OutputFormat
from scenewright.cli.formatters.block_formatter import (
    BlockFormatter,
    PageFormatter,
    SceneFormatter,
)
from scenewright.cli.formatters.json_formatter import JsonFormatter
from scenewright.cli.utils.block_files import dump_blocks, load_blocks
from scenewright.cli.utils.cli_handler import cli_command
from scenewright.config import get_logger, get_settings
from scenewright.editor import blocks_from_text, classify, paginate, renumber
from scenewright.exceptions import ValidationError
from scenewright.persistence import split_into_scenes

logger = get_logger(__name__)
console = Console()

JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]


@cli_command()
def classify_command(
    text: Annotated[str, typer.Argument(help="Line of screenplay text")],
    json_output: JsonOption = False,
) -> None:
    """Detect the block type a line of text implies.

    Examples:
        scenewright classify "INT. KITCHEN - NIGHT"
        scenewright classify "CUT TO:"
    """
    block_type = classify(text)
    if json_output:
        print(
            JsonFormatter().format(
                {"text": text, "type": block_type.value if block_type else None}
            )
        )
    elif block_type is None:
        console.print("[dim]No format detected[/dim]")
    else:
        console.print(f"[cyan]{block_type.value}[/cyan]")


@cli_command()
def renumber_command(
    file: Annotated[Path, typer.Argument(help="Block file (JSON)")],
    write: Annotated[
        bool, typer.Option("--write", "-w", help="Rewrite the file in place")
    ] = False,
    json_output: JsonOption = False,
) -> None:
    """Renumber scene headings and dialogue in a block file."""
    blocks = renumber(load_blocks(file))
    if write:
        file.write_text(dump_blocks(blocks) + "\n", encoding="utf-8")
        logger.info("Renumbered block file", path=str(file), blocks=len(blocks))
    if json_output:
        print(dump_blocks(blocks))
    else:
        console.print(BlockFormatter().format(blocks))


@cli_command()
def paginate_command(
    file: Annotated[Path, typer.Argument(help="Block file (JSON)")],
    max_height: Annotated[
        float | None,
        typer.Option("--max-height", help="Page height budget in line units"),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Split a block file into pages."""
    settings = get_settings()
    height = max_height if max_height is not None else settings.max_page_height
    if height <= 0:
        raise ValidationError(
            message="Page height must be positive",
            details={"max_height": height},
        )
    pages = paginate(load_blocks(file), height, settings.chars_per_line)
    if json_output:
        print(
            JsonFormatter().format(
                {
                    "page_count": len(pages),
                    "pages": [[block.id for block in page] for page in pages],
                }
            )
        )
    else:
        console.print(PageFormatter().format(pages))
        console.print(f"[bold]{len(pages)}[/bold] page(s)")


@cli_command()
def scenes_command(
    file: Annotated[Path, typer.Argument(help="Block file (JSON)")],
    json_output: JsonOption = False,
) -> None:
    """Show the scene breakdown of a block file."""
    scenes = split_into_scenes(
        load_blocks(file), get_settings().scene_size_limit
    )
    if json_output:
        print(
            JsonFormatter().format(
                [
                    {
                        "scene_id": scene.scene_id,
                        "scene_number": scene.scene_number,
                        "heading": scene.heading,
                        "block_count": len(scene.blocks),
                        "content": scene.content,
                    }
                    for scene in scenes
                ]
            )
        )
    else:
        console.print(SceneFormatter().format(scenes))


@cli_command()
def import_command(
    text_file: Annotated[Path, typer.Argument(help="Plain-text screenplay")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the block file here"),
    ] = None,
    json_output: JsonOption = False,
) -> None:
    """Convert a plain-text screenplay into a block file."""
    if not text_file.is_file():
        raise ValidationError(
            message=f"Text file not found: {text_file}",
            hint="Pass a plain-text screenplay with blank lines between paragraphs",
        )
    blocks = renumber(blocks_from_text(text_file.read_text(encoding="utf-8")))
    if output is not None:
        output.write_text(dump_blocks(blocks) + "\n", encoding="utf-8")
        if not json_output:
            console.print(f"[green]Wrote {len(blocks)} blocks to {output}[/green]")
    if json_output:
        print(dump_blocks(blocks))
    elif output is None:
        console.print(BlockFormatter().format(blocks, OutputFormat.TABLE))
