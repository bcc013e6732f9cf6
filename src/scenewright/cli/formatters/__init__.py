"""Output formatters for CLI commands."""

from scenewright.cli.formatters.base import OutputFormat, OutputFormatter
from scenewright.cli.formatters.block_formatter import (
    BlockFormatter,
    PageFormatter,
    SceneFormatter,
)
from scenewright.cli.formatters.json_formatter import JsonFormatter

__all__ = [
    "BlockFormatter",
    "JsonFormatter",
    "OutputFormat",
    "OutputFormatter",
    "PageFormatter",
    "SceneFormatter",
]
