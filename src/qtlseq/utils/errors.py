"""Error types and user-facing error messages for qtlseq.

Every failure in the analysis falls into one of three categories:
an invalid configuration (rejected before any computation), invalid
input data, or a failure to estimate the null distribution. A missing
FDR threshold is not an error and is reported as ``None``.
"""

from __future__ import annotations

from collections.abc import Sequence

from rich.console import Console
from rich.panel import Panel

console = Console(stderr=True)


class QTLSeqError(Exception):
    """Base exception for qtlseq errors with user-friendly formatting."""

    def __init__(self, message: str, suggestion: str | None = None):
        """Initialize error with message and optional suggestion.

        Args:
            message: Main error message.
            suggestion: Optional suggestion for how to fix the error.
        """
        self.message = message
        self.suggestion = suggestion
        super().__init__(message)

    def display(self) -> None:
        """Display the error in a formatted panel."""
        display_error(self.message, self.suggestion)


class InvalidConfigurationError(QTLSeqError):
    """An analysis parameter is out of range or unrecognized."""


class InvalidInputError(QTLSeqError):
    """The SNP table or a derived statistic violates the input contract."""


class EstimationFailureError(QTLSeqError):
    """The null distribution of G' could not be estimated."""


def format_invalid_parameter(
    param_name: str,
    value: int | float | str,
    reason: str,
) -> str:
    """Format an error for an invalid parameter value.

    Args:
        param_name: Name of the parameter.
        value: Invalid value provided.
        reason: Why the value is invalid.

    Returns:
        Formatted error message.
    """
    return f"Invalid value for {param_name}: {value!r} ({reason})"


def format_missing_columns(
    missing: Sequence[str], available: Sequence[str], table: str = "SNP table"
) -> str:
    """Format an error for required table columns that are absent.

    Args:
        missing: Required column names not present in the table.
        available: Column names the table does have.
        table: Name of the table used in the message.

    Returns:
        Formatted error message.
    """
    msg = f"{table} is missing required column(s): {', '.join(missing)}"
    if available:
        msg += f"\nAvailable columns: {', '.join(str(c) for c in available)}"
    return msg


def display_error(message: str, suggestion: str | None = None) -> None:
    """Display an error message in a formatted panel.

    Args:
        message: Main error message.
        suggestion: Optional suggestion for fixing the error.
    """
    content = f"[red bold]Error:[/red bold] {message}"
    if suggestion:
        content += f"\n\n[yellow]Suggestion:[/yellow] {suggestion}"
    console.print(Panel(content, title="qtlseq Error", border_style="red"))

