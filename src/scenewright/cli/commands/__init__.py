"""CLI command implementations."""

from scenewright.cli.commands.editing import (
    classify_command,
    import_command,
    paginate_command,
    renumber_command,
    scenes_command,
)
from scenewright.cli.commands.store import load_command, save_command

__all__ = [
    "classify_command",
    "import_command",
    "load_command",
    "paginate_command",
    "renumber_command",
    "save_command",
    "scenes_command",
]
