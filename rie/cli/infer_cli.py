"""
infer_cli.py

Typer command group for checking how raw values will be interpreted before
running an import:

    rie infer value 42            → integer: 42
    rie infer value "'42'"        → string: 42
    rie infer link customer_id 678
                                  → @<customer_id>@678@<customer_id>@
"""

import typer

from rie.ingestion.value_inference import infer, wrap_resolvable_link
from rie.types import Inferred, ResolvableLink

infer_app = typer.Typer(
    help=(
        "Show how raw values are typed on import.\n\n"
        "Quoted values are strings, @<integer>@ is a link to a record, "
        "@<key>@value@<key>@ links to every record whose key has that value, "
        "and a trailing D forces a double."
    )
)


@infer_app.command("value")
def infer_value(raw: str = typer.Argument(..., help="The raw value as it appears in a file.")) -> None:
    """Print the inferred type and value of RAW."""
    typer.echo(describe(infer(raw)))


@infer_app.command("link")
def infer_link(
    key: str = typer.Argument(..., help="Field to match in existing records."),
    value: str = typer.Argument(..., help="Value the field must equal."),
) -> None:
    """Print the raw text that links to every record where KEY equals VALUE."""
    typer.echo(wrap_resolvable_link(key, value))


def describe(inferred: Inferred) -> str:
    if isinstance(inferred, ResolvableLink):
        return f"resolvable link: {inferred.key} = {describe(inferred.value)}"
    return f"{inferred.type.value}: {inferred}"
