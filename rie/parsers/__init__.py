"""
Group sources: one per supported file format.

A group source reads one file and yields the groups the engine imports.
Formats differ only here; the engine treats every group the same way.

    get_group_source("csv")                       → DelimitedGroupSource(",")
    get_group_source("tsv")                       → DelimitedGroupSource("\\t")
    get_group_source("psv")                       → DelimitedGroupSource("|")
    get_group_source("json")                      → JsonGroupSource()
    get_group_source("markdown")                  → FrontmatterGroupSource()
"""

from typing import Any, Dict, List

from .common import MalformedGroupError, mapping_to_group, to_raw_values
from .delimited import DelimitedGroupSource, split_respecting_quotes
from .json_documents import JsonGroupSource
from .markdown_frontmatter import FrontmatterGroupSource

DEFAULT_WHITELISTS: Dict[str, List[str]] = {
    "csv": [".csv"],
    "tsv": [".tsv", ".tab"],
    "psv": [".psv"],
    "json": [".json", ".jsonl", ".ndjson"],
    "markdown": [".md", ".markdown"],
}

DELIMITERS = {"csv": ",", "tsv": "\t", "psv": "|"}

FORMATS = tuple(DEFAULT_WHITELISTS)


def get_group_source(format: str, **options: Any):
    """
    Build the group source for `format`.

    Options are passed to the source's constructor (e.g. `header`, `links`
    for delimited formats, `body_field` for markdown). A `whitelist` option
    overrides the format's default extensions.

    Raises:
        ValueError: for an unknown format, or options the format does not take.
    """
    key = format.lower()
    if key not in DEFAULT_WHITELISTS:
        raise ValueError(f"Unknown format {format!r}. Expected one of: {', '.join(FORMATS)}")

    options.setdefault("whitelist", DEFAULT_WHITELISTS[key])

    try:
        if key in DELIMITERS:
            return DelimitedGroupSource(delimiter=DELIMITERS[key], **options)
        if key == "json":
            return JsonGroupSource(**options)
        return FrontmatterGroupSource(**options)
    except TypeError as e:
        raise ValueError(f"Invalid option for format {format!r}: {e}") from e


__all__ = [
    "DEFAULT_WHITELISTS",
    "FORMATS",
    "DelimitedGroupSource",
    "FrontmatterGroupSource",
    "JsonGroupSource",
    "MalformedGroupError",
    "get_group_source",
    "mapping_to_group",
    "split_respecting_quotes",
    "to_raw_values",
]
