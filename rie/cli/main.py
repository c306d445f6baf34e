"""
Root entrypoint for the Record Import Engine CLI.

This module defines the top-level `rie` command and mounts sub-apps from
other modules under rie/cli/:

    • rie/cli/import_cli.py  →  `rie import ...`
    • rie/cli/infer_cli.py   →  `rie infer ...`

Typical use:

    Check how a value will be typed:
        rie infer value "@<customer_id>@678@<customer_id>@"

    Import a directory of CSV files into existing records:
        rie import run --data exports/ --resolve-key account_number
"""

# ---------------------------------------------------------------------------
# Imports (must be at top to satisfy flake8 E402)
# ---------------------------------------------------------------------------
from dotenv import load_dotenv
import typer

from .import_cli import import_app
from .infer_cli import infer_app

# Load environment variables
load_dotenv()

# ---------------------------------------------------------------------------
# Root CLI application
# ---------------------------------------------------------------------------
cli = typer.Typer(
    help=(
        "Record Import Engine command-line interface.\n\n"
        "Loads CSV, TSV, JSON and Markdown files into a schemaless record store, "
        "one transaction per line or document:\n\n"
        "      rie import run --data <file-or-folder> --format csv\n\n"
        "Use `rie infer` to see how raw values will be typed."
    )
)

# ---------------------------------------------------------------------------
# Register sub-applications
# ---------------------------------------------------------------------------
cli.add_typer(import_app, name="import")
cli.add_typer(infer_app, name="infer")

# ---------------------------------------------------------------------------
# Entry point for `python -m rie.cli.main`
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    cli()
