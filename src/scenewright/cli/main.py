"""Main CLI entry point."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from scenewright import __version__
from scenewright.cli.commands import (
    classify_command,
    import_command,
    load_command,
    paginate_command,
    renumber_command,
    save_command,
    scenes_command,
)
from scenewright.cli.formatters.json_formatter import JsonFormatter
from scenewright.cli.utils.cli_handler import CLIHandler
from scenewright.config import (
    SceneWrightSettings,
    configure_logging,
    get_logger,
    reset_settings,
    set_settings,
)

logger = get_logger(__name__)
console = Console()

app = typer.Typer(
    name="scenewright",
    help="Screenplay block editing, pagination and collaborative saving",
    pretty_exceptions_enable=False,
    add_completion=False,
    rich_markup_mode="rich",
)

app.command(name="classify")(classify_command)
app.command(name="renumber")(renumber_command)
app.command(name="paginate")(paginate_command)
app.command(name="scenes")(scenes_command)
app.command(name="import")(import_command)
app.command(name="save")(save_command)
app.command(name="load")(load_command)


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show SceneWright version."""
    if json_output:
        print(JsonFormatter().format({"name": "SceneWright", "version": __version__}))
    else:
        console.print(f"SceneWright v{__version__}")


@app.callback()
def main_callback(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file (YAML, TOML, or JSON)",
            envvar="SCENEWRIGHT_CONFIG",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose logging (INFO level)"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option(
            "--debug", help="Enable debug logging", envvar="SCENEWRIGHT_DEBUG"
        ),
    ] = False,
) -> None:
    """Configure global options."""
    if debug:
        os.environ["SCENEWRIGHT_LOG_LEVEL"] = "DEBUG"
        os.environ["SCENEWRIGHT_DEBUG"] = "true"
    elif verbose:
        os.environ["SCENEWRIGHT_LOG_LEVEL"] = "INFO"

    if config is None and not (debug or verbose):
        return

    # Force reconfiguration with the new sources
    reset_settings()
    try:
        if config is not None:
            settings = SceneWrightSettings.from_multiple_sources(
                config_files=[config.expanduser()]
            )
            set_settings(settings)
            logger.debug(f"Loaded configuration from {config}")
        else:
            settings = SceneWrightSettings.from_env()
            set_settings(settings)
        configure_logging(settings)
    except Exception as e:
        CLIHandler(console).handle_error(e)

    if debug:
        logger.debug("Debug mode enabled")


def main() -> None:
    """Main CLI entry point."""
    app()


if __name__ == "__main__":
    main()
