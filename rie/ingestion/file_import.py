"""
File-level import helpers.

These functions sit between the CLI and the engine: they locate files,
feed each file's groups through a group source, and hand every group to the
engine with the resolve key chosen for the whole import.
"""

import os
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from rie.ingestion.orchestrator import ImportEngine
from rie.ingestion.result import ImportResult
from rie.types import GroupSource

PathLike = Union[str, "os.PathLike[str]"]


def import_file(
    engine: ImportEngine,
    source: GroupSource,
    path: PathLike,
    resolve_key: Optional[str] = None,
    on_result: Optional[Callable[[ImportResult], None]] = None,
) -> List[ImportResult]:
    """
    Import every group of one file, one transaction per group.

    `on_result` is called after each group commits, which lets the CLI report
    progress without the engine knowing about output.

    Errors:
        • OSError from reading the file propagates.
        • MalformedGroupError stops the file; groups already committed stay.
        • Soft write errors are recorded on the returned results.
    """
    results: List[ImportResult] = []
    for group in source.groups(path):
        result = engine.import_group(group, resolve_key)
        results.append(result)
        if on_result is not None:
            on_result(result)
    return results


def scan(path: PathLike, whitelist: Optional[Sequence[str]] = None) -> List[Path]:
    """
    Collect the files to import under `path`.

    A file is returned as-is. A directory is walked recursively in sorted
    order. When `whitelist` is given, only files whose name ends with one of
    its entries (an extension like ".csv" or a full file name) are kept.

    Raises:
        FileNotFoundError: if `path` does not exist.
    """
    root = expand_path(path)
    if not root.exists():
        raise FileNotFoundError(f"{root} not found")

    if root.is_file():
        return [root] if _whitelisted(root, whitelist) else []

    files: List[Path] = []
    for child in sorted(root.iterdir()):
        if child.is_dir():
            files.extend(scan(child, whitelist))
        elif _whitelisted(child, whitelist):
            files.append(child)
    return files


def expand_path(path: PathLike) -> Path:
    """
    Normalize `path`: "~" and "$HOME" expand to the user's home directory and
    relative paths resolve against the working directory.
    """
    text = os.fspath(path).replace("$HOME", os.path.expanduser("~"))
    text = os.path.expanduser(text)
    return Path(os.path.normpath(os.path.join(os.getcwd(), text)))


def _whitelisted(path: Path, whitelist: Optional[Sequence[str]]) -> bool:
    if not whitelist:
        return True
    return any(path.name.endswith(entry) for entry in whitelist)
