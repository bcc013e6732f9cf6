"""Commands that save screenplays to and load them from the local store."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from scenewright.cli.formatters.block_formatter import BlockFormatter
from scenewright.cli.formatters.json_formatter import JsonFormatter
from scenewright.cli.utils.block_files import dump_blocks, load_blocks
from scenewright.cli.utils.cli_handler import async_cli_command
from scenewright.config import get_logger, get_settings_for_cli
from scenewright.models import SaveResult
from scenewright.persistence import ConflictResolution, SaveManager
from scenewright.storage import SqliteDocumentStore

logger = get_logger(__name__)
console = Console()

ProjectOption = Annotated[
    str, typer.Option("--project", "-p", help="Project identifier")
]
ScreenplayOption = Annotated[
    str, typer.Option("--screenplay", "-s", help="Screenplay identifier")
]
StoreOption = Annotated[
    Path | None,
    typer.Option("--store", help="SQLite store path (overrides config)"),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON")]


def _print_failure(result: SaveResult) -> None:
    console.print(f"[red]Save failed: {result.error}[/red]")
    if not result.conflicts:
        return
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Subject")
    table.add_column("Kind")
    table.add_column("Held / modified by")
    table.add_column("At")
    for conflict in result.conflicts:
        table.add_row(
            conflict.subject_id,
            conflict.kind,
            conflict.holder_identity or "unknown",
            conflict.timestamp.isoformat(),
        )
    console.print(table)
    console.print(
        "[yellow]Re-run with --resolution overwrite or merge to resolve[/yellow]"
    )


@async_cli_command
async def save_command(
    file: Annotated[Path, typer.Argument(help="Block file (JSON)")],
    project: ProjectOption,
    screenplay: ScreenplayOption,
    identity: Annotated[
        str | None,
        typer.Option("--identity", "-i", help="Editing identity (overrides config)"),
    ] = None,
    resolution: Annotated[
        ConflictResolution | None,
        typer.Option("--resolution", help="How to resolve conflicts"),
    ] = None,
    store: StoreOption = None,
    json_output: JsonOption = False,
) -> None:
    """Save a block file as a screenplay in the local store.

    Examples:
        scenewright save draft.json --project heist --screenplay act-one -i ana
    """
    settings = get_settings_for_cli(
        cli_overrides={"store_path": store, "identity": identity}
    )
    blocks = load_blocks(file)
    document_store = SqliteDocumentStore(settings.store_path)
    manager = SaveManager(
        document_store,
        settings.identity or "",
        project,
        screenplay,
        settings,
    )
    try:
        result = await manager.save_document(resolution=resolution, blocks=blocks)
    finally:
        await manager.cleanup()
        document_store.close()

    if json_output:
        print(JsonFormatter().format(result))
    elif result.success:
        console.print(
            f"[green]Saved {len(blocks)} blocks to {project}/{screenplay} "
            f"(version {result.version})[/green]"
        )
    else:
        _print_failure(result)
    if not result.success:
        raise typer.Exit(1)


@async_cli_command
async def load_command(
    project: ProjectOption,
    screenplay: ScreenplayOption,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write the block file here"),
    ] = None,
    store: StoreOption = None,
    json_output: JsonOption = False,
) -> None:
    """Load a screenplay from the local store."""
    settings = get_settings_for_cli(cli_overrides={"store_path": store})
    document_store = SqliteDocumentStore(settings.store_path)
    manager = SaveManager(
        document_store,
        settings.identity or "cli",
        project,
        screenplay,
        settings,
    )
    try:
        blocks = await manager.load_document()
    finally:
        document_store.close()

    if output is not None:
        output.write_text(dump_blocks(blocks) + "\n", encoding="utf-8")
        logger.info("Wrote block file", path=str(output), blocks=len(blocks))
    if json_output:
        print(dump_blocks(blocks))
    else:
        console.print(BlockFormatter().format(blocks))
        console.print(
            f"[bold]{len(blocks)}[/bold] block(s), version {manager.loaded_version}"
        )
