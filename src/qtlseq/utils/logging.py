"""Logging configuration for qtlseq.

Log records go through a rich handler on stderr. The CLI uses the
``print_*`` helpers for console messages that are not log records.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path
    from typing import TypeVar

    T = TypeVar("T")

console = Console(stderr=True)

_logging_configured = False


def setup_logging(level: int = logging.INFO, show_time: bool = True) -> None:
    """Attach a rich handler to the root logger.

    Only the first call has an effect, except that the ``qtlseq``
    logger level is always updated so ``--verbose`` can raise it.

    Args:
        level: Logging level (default: INFO).
        show_time: Whether to show timestamps.
    """
    global _logging_configured

    logging.getLogger("qtlseq").setLevel(level)
    if _logging_configured:
        return

    handler = RichHandler(
        console=console,
        show_time=show_time,
        show_path=False,
        rich_tracebacks=True,
        markup=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger in the ``qtlseq`` namespace.

    Args:
        name: Logger name (typically __name__ of the calling module).

    Returns:
        Logger instance.
    """
    if not _logging_configured:
        setup_logging()

    if name == "qtlseq" or name.startswith("qtlseq."):
        return logging.getLogger(name)
    return logging.getLogger(f"qtlseq.{name}")


def track_progress(
    iterable: Iterable[T],
    total: int | None = None,
    description: str = "Processing",
) -> Iterator[T]:
    """Wrap an iterable with a transient progress bar.

    Args:
        iterable: Items to iterate over.
        total: Total number of items (if known).
        description: Description to show next to the bar.

    Yields:
        Items from the iterable.
    """
    progress = Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )
    with progress:
        task = progress.add_task(description, total=total)
        for item in iterable:
            yield item
            progress.advance(task)


def print_info(message: str) -> None:
    """Print an info message to stderr."""
    console.print(f"[blue]INFO:[/blue] {message}")


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    console.print(f"[yellow]WARNING:[/yellow] {message}")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    console.print(f"[red]ERROR:[/red] {message}")


def print_success(message: str) -> None:
    """Print a success message to stderr."""
    console.print(f"[green]SUCCESS:[/green] {message}")


def print_stats(stats: dict[str, int | float | str], title: str = "Statistics") -> None:
    """Print statistics in a formatted table.

    Floats are shown with four significant digits since p-value
    thresholds are often far below 0.01.

    Args:
        stats: Mapping of statistic names to values.
        title: Title for the table.
    """
    from rich.table import Table

    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    for key, value in stats.items():
        if isinstance(value, float):
            table.add_row(key, f"{value:.4g}")
        elif isinstance(value, int):
            table.add_row(key, f"{value:,}")
        else:
            table.add_row(key, str(value))

    console.print(table)


def log_step(step: int, total: int, description: str) -> None:
    """Print a numbered step of a multi-step process.

    Example:
        >>> log_step(2, 3, "Estimating null distribution")
        [2/3] Estimating null distribution
    """
    console.print(f"[bold cyan][{step}/{total}][/bold cyan] {description}")


def print_section(title: str) -> None:
    """Print a section header."""
    from rich.rule import Rule

    console.print(Rule(title, style="blue"))


def print_file_created(path: str | Path) -> None:
    """Print a message indicating a file was created."""
    from pathlib import Path as PathlibPath

    console.print(f"  [dim]Created:[/dim] {PathlibPath(path).name}")
