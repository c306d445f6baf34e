"""
JSON documents.

Accepted layouts:
    • a top-level array of objects   → one group per object
    • a single top-level object      → one group
    • JSON Lines (one object a line) → one group per line

Values are handed to inference as text, exactly as they would appear in a
CSV cell: 42 becomes "42", true becomes "true", arrays become several values
for the same field and null is skipped.
"""

import json
from typing import Any, Dict, Iterator, List, Optional, Sequence

from rie.parsers.common import MalformedGroupError, mapping_to_group


class JsonGroupSource:
    """Group source for .json and .jsonl files."""

    def __init__(self, whitelist: Optional[Sequence[str]] = None) -> None:
        self.whitelist = list(whitelist) if whitelist else None

    def groups(self, path) -> Iterator[Dict[str, List[str]]]:
        """
        Yield one group per JSON object in `path`.

        Raises:
            OSError: if the file cannot be read.
            MalformedGroupError: for invalid JSON, non-object documents, or
                nested objects.
        """
        with open(path, encoding="utf-8") as handle:
            text = handle.read()

        for index, document in enumerate(self._documents(text, path)):
            if not isinstance(document, dict):
                raise MalformedGroupError(
                    f"document {index} is a {type(document).__name__}, expected an object", path
                )
            try:
                yield mapping_to_group(document)
            except MalformedGroupError as e:
                raise MalformedGroupError(f"document {index}: {e}", path) from e

    @staticmethod
    def _documents(text: str, path) -> List[Any]:
        if not text.strip():
            return []

        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            return JsonGroupSource._json_lines(text, path)

        if isinstance(parsed, list):
            return parsed
        return [parsed]

    @staticmethod
    def _json_lines(text: str, path) -> List[Any]:
        documents = []
        for number, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                documents.append(json.loads(line))
            except json.JSONDecodeError as e:
                raise MalformedGroupError(f"invalid JSON: {e.msg}", path, number) from e
        return documents
