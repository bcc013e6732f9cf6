"""Unified CLI handler for standardized error handling and output."""

import asyncio
from collections.abc import Callable
from functools import wraps
from typing import Any, TypeVar

import typer
from rich.console import Console

from scenewright.cli.formatters.json_formatter import JsonFormatter
from scenewright.config import get_logger
from scenewright.exceptions import SceneWrightError, ValidationError

logger = get_logger(__name__)

T = TypeVar("T")


class CLIHandler:
    """Unified handler for CLI commands."""

    def __init__(self, console: Console | None = None) -> None:
        """Initialize CLI handler.

        Args:
            console: Rich console for output
        """
        self.console = console or Console()
        self.json_formatter = JsonFormatter()

    def handle_error(
        self, error: Exception, json_output: bool = False, exit_code: int = 1
    ) -> None:
        """Handle and display errors consistently.

        Args:
            error: Exception to handle
            json_output: Whether to output JSON
            exit_code: Exit code to use
        """
        error_msg = error.message if isinstance(error, SceneWrightError) else str(error)
        logger.error(f"Command failed: {error_msg}")

        if json_output:
            print(self.json_formatter.format_error_response(error_msg, exit_code))
        elif isinstance(error, ValidationError):
            self.console.print(f"[red]Validation Error: {error_msg}[/red]")
            if error.hint:
                self.console.print(f"[yellow]Hint: {error.hint}[/yellow]")
        elif isinstance(error, SceneWrightError):
            self.console.print(error.format_error(), style="red", markup=False)
        else:
            self.console.print(f"[red]Error: {error_msg}[/red]")

        raise typer.Exit(exit_code)

    def handle_success(
        self, message: str, data: Any = None, json_output: bool = False
    ) -> None:
        """Handle success responses consistently.

        Args:
            message: Success message
            data: Optional data to include
            json_output: Whether to output JSON
        """
        if json_output:
            print(self.json_formatter.format_success(message, data))
        else:
            self.console.print(f"[green]{message}[/green]")


def cli_command(
    async_func: bool = False,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for CLI commands with standardized error handling.

    Args:
        async_func: Whether the decorated function is async

    Returns:
        Decorator function
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            handler = CLIHandler()
            try:
                if async_func or asyncio.iscoroutinefunction(func):
                    return asyncio.run(func(*args, **kwargs))
                return func(*args, **kwargs)
            except typer.Exit:
                raise
            except Exception as e:
                handler.handle_error(e, kwargs.get("json_output", False))

        return wrapper

    return decorator


def async_cli_command(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator specifically for async CLI commands.

    Args:
        func: Async function to decorate

    Returns:
        Wrapped function
    """
    return cli_command(async_func=True)(func)
