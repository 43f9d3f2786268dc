"""
Utility functions for the print-sv-evidence CLI.

Provides console output helpers and loguru configuration.
"""

import sys

from loguru import logger
from rich.console import Console
from rich.markup import escape

# Shared console instances
console = Console()
err_console = Console(stderr=True)

INTERRUPTED_EXIT_CODE = 130

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <level>{message}</level>"


# =============================================================================
# Console Output Helpers
# =============================================================================


def error(message: str, exit_code: int = 1) -> None:
    """Print an error message and optionally exit."""
    err_console.print(f"[bold red]Error:[/bold red] {escape(message)}", highlight=False)
    if exit_code:
        sys.exit(exit_code)


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]Success:[/bold green] {escape(message)}")


# =============================================================================
# Logging
# =============================================================================


def configure_logging(verbosity: int) -> None:
    """Configure loguru logging based on verbosity level."""
    logger.remove()

    level = {
        0: "WARNING",
        1: "SUCCESS",
        2: "INFO",
        3: "DEBUG",
    }.get(min(verbosity, 3), "WARNING")

    logger.add(
        sys.stderr,
        colorize=True,
        level=level,
        format=LOG_FORMAT,
    )
