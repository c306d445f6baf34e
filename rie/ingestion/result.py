"""
Structured outcome of a single group import.
"""

from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

from rie.types import ImportSummary, RawGroup


class ImportResult:
    """
    What happened when one group was imported.

    Holds:
        • the raw group that was imported (read-only)
        • the records the group was written into (never empty)
        • zero or more error messages, one per write the store rejected

    A non-empty error list does not mean the transaction failed. Errors
    describe individual writes that were refused inside a transaction that
    still committed.

    Everything is fixed at construction except the error list, which only
    grows.
    """

    def __init__(self, import_data: RawGroup, records: Iterable[int]) -> None:
        self._import_data = import_data
        self._records: FrozenSet[int] = frozenset(records)
        self._errors: List[str] = []

    @property
    def import_data(self) -> RawGroup:
        return self._import_data

    @property
    def records(self) -> FrozenSet[int]:
        return self._records

    @property
    def errors(self) -> Tuple[str, ...]:
        return tuple(self._errors)

    @property
    def error_count(self) -> int:
        return len(self._errors)

    @property
    def has_errors(self) -> bool:
        return bool(self._errors)

    def add_error(self, message: str) -> None:
        self._errors.append(message)

    def to_summary_dict(self) -> Dict[str, Any]:
        """Serializable view used by the CLI."""
        return {
            "import_data": {key: list(values) for key, values in self._import_data.items()},
            "records": sorted(self._records),
            "errors": list(self._errors),
        }

    def __repr__(self) -> str:
        return (
            f"ImportResult(records={sorted(self._records)}, "
            f"error_count={self.error_count})"
        )


def freeze_group(group: Mapping[str, Iterable[str]]) -> RawGroup:
    """
    Return a read-only copy of `group`.

    Field order is preserved. Within a field, repeated values collapse into
    one (a group is a set-multimap) while first-seen order is kept.
    """
    frozen: Dict[str, Tuple[str, ...]] = {}
    for field, values in group.items():
        if isinstance(values, str):
            values = [values]
        frozen[field] = tuple(dict.fromkeys(values))
    return MappingProxyType(frozen)


def summarize(results: Iterable[ImportResult]) -> ImportSummary:
    """
    Fold per-group results into one summary.

    The summary always contains every key, so callers can print or assert on
    it without checking for presence.
    """
    groups = 0
    records: set = set()
    errors: List[str] = []

    for result in results:
        groups += 1
        records.update(result.records)
        errors.extend(result.errors)

    return {
        "groups_imported": groups,
        "records_touched": len(records),
        "records": sorted(records),
        "error_count": len(errors),
        "errors": errors,
    }
