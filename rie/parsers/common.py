"""
Helpers shared by the group sources.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional


class MalformedGroupError(ValueError):
    """
    Raised when a group cannot be aligned with its field names.

    This is fatal for the file being read: once alignment is lost, every
    following group would be written into the wrong fields.
    """

    def __init__(self, message: str, path: Any = None, line: Optional[int] = None) -> None:
        location = ""
        if path is not None:
            location = f"{path}"
            if line is not None:
                location += f":{line}"
            location += ": "
        super().__init__(f"{location}{message}")
        self.path = path
        self.line = line


def to_raw_values(value: Any) -> List[str]:
    """
    Render a structured scalar (from JSON or YAML) as the raw text the engine
    expects.

        None             → []             (nothing to write)
        True / False     → ["true"] / ["false"]
        date / datetime  → [ISO 8601 text]
        list / tuple     → one entry per element, flattened one level
        anything else    → [str(value)]

    Raises:
        MalformedGroupError: for nested mappings, or lists inside lists.
    """
    if isinstance(value, (list, tuple)):
        values: List[str] = []
        for item in value:
            if isinstance(item, (list, tuple)):
                raise MalformedGroupError("nested lists cannot be imported as field values")
            values.extend(to_raw_values(item))
        return values

    if value is None:
        return []
    if isinstance(value, bool):
        return ["true" if value else "false"]
    if isinstance(value, (datetime, date)):
        return [value.isoformat()]
    if isinstance(value, Mapping):
        raise MalformedGroupError("nested objects cannot be imported as field values")
    return [str(value)]


def mapping_to_group(document: Mapping[str, Any]) -> Dict[str, List[str]]:
    """Convert one structured document (JSON object, front matter) to a group."""
    group: Dict[str, List[str]] = {}
    for key, value in document.items():
        group[str(key)] = to_raw_values(value)
    return group
