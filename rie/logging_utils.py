"""
logging_utils.py

Output helpers for the CLI.

The import engine never prints; it returns ImportResult objects. Everything
a user sees comes from the CLI through these helpers, which keeps output
consistent with Typer and easy to capture in tests.
"""

from typing import Iterable

import typer

from rie.ingestion.result import ImportResult


def log_verbose(message: str, verbose: bool) -> None:
    """
    Print a progress message when verbose mode is enabled.

    Parameters
    ----------
    message : str
        Short, plain-English description of what the importer is doing.
    verbose : bool
        When False, this function does nothing.
    """
    if verbose:
        typer.echo(message)


def log_error(message: str) -> None:
    """Print a message to stderr regardless of verbosity."""
    typer.echo(message, err=True)


def describe_result(result: ImportResult) -> str:
    """One-line description of a committed group."""
    data = {key: list(values) for key, values in result.import_data.items()}
    return (
        f"Imported {data} into record(s) {sorted(result.records)} "
        f"with {result.error_count} error(s)"
    )


def format_summary(summary: dict, title: str = "Import Summary") -> Iterable[str]:
    """Lines of the summary block printed at the end of an import."""
    yield f"\n=== {title} ==="
    for key, value in summary.items():
        yield f"{key}: {value}"
