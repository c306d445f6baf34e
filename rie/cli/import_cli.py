"""
Import command-line interface for the Record Import Engine.

This module defines the `import` command group for the Typer-based CLI.

Public surface:

    • `import_app`  → mounted in rie/cli/main.py as:

          rie import run --data exports/ --format csv --resolve-key ipeds_id
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer

from rie.config import load_config, retry_policy_from_config
from rie.ingestion import (
    CommitConflictError,
    ImportEngine,
    ImportResult,
    import_file,
    scan,
    summarize,
)
from rie.logging_utils import describe_result, format_summary, log_error, log_verbose
from rie.parsers import FORMATS, get_group_source
from rie.store import MemoryStore, SupabaseStore
from rie.types import Store

# ---------------------------------------------------------------------------
# Sub-application definition
# ---------------------------------------------------------------------------
import_app = typer.Typer(
    help=(
        "Import files into the record store.\n\n"
        "Every line (CSV/TSV/PSV), object (JSON) or document (Markdown) is one "
        "group, imported in its own transaction.\n\n"
        "Use --resolve-key to write groups into existing records instead of "
        "new ones, and --dry-run to import into an in-memory store."
    )
)


# ---------------------------------------------------------------------------
# Command: rie import run
# ---------------------------------------------------------------------------
@import_app.command("run")
def import_command(
    data: Path = typer.Option(
        ...,
        "--data",
        "-d",
        exists=True,
        readable=True,
        help="The file or directory to import. Directories are scanned recursively.",
    ),
    format: str = typer.Option(
        "csv",
        "--format",
        "-f",
        help=f"File format: {', '.join(FORMATS)}.",
        show_default=True,
    ),
    resolve_key: Optional[str] = typer.Option(
        None,
        "--resolve-key",
        "-r",
        help="The key to use when resolving data into existing records.",
    ),
    header: Optional[str] = typer.Option(
        None,
        "--header",
        help="Comma-separated field names for delimited files without a header line.",
    ),
    link: Optional[List[str]] = typer.Option(
        None,
        "--link",
        help="column=key: link each value in column to the records whose key has that value. Repeatable.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Import into an in-memory store instead of Supabase.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Print one line per imported group.",
    ),
    max_attempts: Optional[int] = typer.Option(
        None,
        "--max-attempts",
        min=0,
        help="Commit attempts per group before giving up (0 = unbounded). Overrides RIE_MAX_COMMIT_ATTEMPTS.",
    ),
    backoff: Optional[float] = typer.Option(
        None,
        "--backoff",
        min=0.0,
        help="Seconds of linear backoff between commit attempts. Overrides RIE_COMMIT_BACKOFF_SECONDS.",
    ),
) -> None:
    """
    Import every matching file under --data.

    Exits with status 1 when any write was rejected, and 2 when the import
    stops early.
    """
    try:
        summary = run_import(
            data=data,
            format=format,
            resolve_key=resolve_key,
            header=parse_header_option(header),
            links=parse_link_options(link),
            dry_run=dry_run,
            verbose=verbose,
            max_attempts=max_attempts,
            backoff=backoff,
        )
    except (ValueError, CommitConflictError) as e:
        # ValueError covers malformed files and bad settings
        log_error(f"Import failed: {e}")
        raise typer.Exit(code=2)

    if summary["error_count"]:
        raise typer.Exit(code=1)


def run_import(
    data: Path,
    format: str = "csv",
    resolve_key: Optional[str] = None,
    header: Optional[List[str]] = None,
    links: Optional[Dict[str, str]] = None,
    dry_run: bool = False,
    verbose: bool = False,
    max_attempts: Optional[int] = None,
    backoff: Optional[float] = None,
    store: Optional[Store] = None,
) -> Dict[str, Any]:
    """
    CLI entrypoint for importing. Thin wrapper around the engine.

    Responsibilities:

        1. Build the group source for the requested format.
        2. Connect the store (in-memory for dry runs, Supabase otherwise),
           unless one is injected.
        3. Scan --data for matching files.
        4. Import each file, reporting progress in verbose mode.
        5. Print a human-readable summary.
    """
    # ----------------------------------------------------------------------
    # 1. Group source
    # ----------------------------------------------------------------------
    options: Dict[str, Any] = {}
    if header:
        options["header"] = header
    if links:
        options["links"] = links
    source = get_group_source(format, **options)

    # ----------------------------------------------------------------------
    # 2. Store + engine
    # ----------------------------------------------------------------------
    config = load_config()
    if store is None:
        store = connect_store(config, dry_run)
    engine = ImportEngine(
        store,
        retry_policy=retry_policy_from_config(config, max_attempts, backoff),
    )

    # ----------------------------------------------------------------------
    # 3. Files
    # ----------------------------------------------------------------------
    files = scan(data, source.whitelist)
    log_verbose(f"Found {len(files)} file(s) to import under {data}", verbose)

    # ----------------------------------------------------------------------
    # 4. Import
    # ----------------------------------------------------------------------
    started = time.perf_counter()
    results: List[ImportResult] = []

    def report(result: ImportResult) -> None:
        log_verbose(describe_result(result), verbose)
        for message in result.errors:
            log_error(message)

    for path in files:
        log_verbose(f"Importing {path}", verbose)
        file_results = import_file(engine, source, path, resolve_key, on_result=report)
        log_verbose(f"Imported {len(file_results)} group(s) from {path}", verbose)
        results.extend(file_results)

    elapsed = time.perf_counter() - started

    # ----------------------------------------------------------------------
    # 5. Summary
    # ----------------------------------------------------------------------
    summary: Dict[str, Any] = {"files_imported": len(files), **summarize(results)}
    for line in format_summary(summary):
        typer.echo(line)
    typer.echo(f"Finished import in {elapsed:.2f} seconds")

    return summary


def connect_store(config, dry_run: bool) -> Store:
    """
    The CLI is responsible for dependency creation: the engine receives a
    connected store and uses it.
    """
    if dry_run:
        return MemoryStore()

    url = config.get("supabase_url")
    key = config.get("supabase_key")
    if not url or not key:
        raise RuntimeError(
            "Supabase credentials not found. Ensure SUPABASE_URL and SUPABASE_KEY "
            "are set in your environment or .env file, or use --dry-run."
        )
    return SupabaseStore.connect(url, key)


def parse_header_option(header: Optional[str]) -> Optional[List[str]]:
    if header is None:
        return None
    names = [name.strip() for name in header.split(",")]
    if not all(names):
        raise typer.BadParameter("--header must not contain empty field names")
    return names


def parse_link_options(links: Optional[List[str]]) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    for option in links or []:
        column, sep, key = option.partition("=")
        if not sep or not column.strip() or not key.strip():
            raise typer.BadParameter(f"--link expects column=key, got {option!r}")
        parsed[column.strip()] = key.strip()
    return parsed
