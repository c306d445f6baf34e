"""
rie/types.py

Centralized type definitions for the Record Import Engine.

This module defines the value model produced by inference, the Protocols
that store adapters and group sources implement, and the TypedDicts used
for summaries and configuration. Keeping these types in one place ensures:

    • A single source of truth for what a "value" is inside the engine
    • Clear contracts between the CLI, the engine, and the store adapters
    • Easy mocking and dependency injection in tests
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Protocol, Sequence, Set, TypedDict, Union


# ---------------------------------------------------------------------------
# Raw input
# ---------------------------------------------------------------------------
# A group maps each field name to the raw textual values found for it in one
# logical input record (one CSV line, one JSON object, one document).
# ---------------------------------------------------------------------------
RawGroup = Mapping[str, Sequence[str]]

# The store-assigned record identifier. Never usable as a resolve key: the raw
# data has no way of knowing it.
RECORD_ID_KEY = "$id$"


# ---------------------------------------------------------------------------
# ValueType / TypedValue
# ---------------------------------------------------------------------------
# The closed set of value kinds the store understands. The numeric members
# are listed in widening order.
# ---------------------------------------------------------------------------
class ValueType(Enum):
    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    LINK = "link"

    @property
    def is_numeric(self) -> bool:
        return self in NUMERIC_TYPES


NUMERIC_TYPES = (ValueType.INTEGER, ValueType.LONG, ValueType.FLOAT, ValueType.DOUBLE)


@dataclass(frozen=True)
class TypedValue:
    """A raw token after inference: a value tagged with its store type."""

    type: ValueType
    value: Any

    @classmethod
    def string(cls, value: str) -> "TypedValue":
        return cls(ValueType.STRING, value)

    @classmethod
    def boolean(cls, value: bool) -> "TypedValue":
        return cls(ValueType.BOOLEAN, value)

    @classmethod
    def integer(cls, value: int) -> "TypedValue":
        return cls(ValueType.INTEGER, value)

    @classmethod
    def long(cls, value: int) -> "TypedValue":
        return cls(ValueType.LONG, value)

    # double is declared before float so its annotation still names the builtin
    @classmethod
    def double(cls, value: float) -> "TypedValue":
        return cls(ValueType.DOUBLE, value)

    @classmethod
    def float(cls, value: float) -> "TypedValue":
        return cls(ValueType.FLOAT, value)

    @classmethod
    def link(cls, record: int) -> "TypedValue":
        return cls(ValueType.LINK, record)

    def matches(self, other: "TypedValue") -> bool:
        """
        Equality as the store evaluates it.

        Numeric values compare by magnitude across all numeric kinds, so
        Integer 30 matches Long 30 and Double 30.0. Everything else must
        agree on both type and value.
        """
        if self.type.is_numeric and other.type.is_numeric:
            return self.value == other.value
        return self.type == other.type and self.value == other.value

    def __str__(self) -> str:
        if self.type == ValueType.LINK:
            return f"@{self.value}@"
        if self.type == ValueType.BOOLEAN:
            return "true" if self.value else "false"
        return str(self.value)


# ---------------------------------------------------------------------------
# ResolvableLink
# ---------------------------------------------------------------------------
# Intermediate value meaning "link to every record where key == value".
# It only lives between inference and resolution and is never persisted.
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ResolvableLink:
    key: str
    value: TypedValue


Inferred = Union[TypedValue, ResolvableLink]


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------
# Protocol describing the RPC-like surface the engine consumes. Every call is
# a blocking round trip. Implementations:
#   • rie.store.SupabaseStore  (remote)
#   • rie.store.MemoryStore    (dry-run + tests)
#
# IMPORTANT:
#   A store instance is one connection. It runs at most one transaction at a
#   time; engines hold its `lock` for each group import, so imports that
#   share it are serialized.
# ---------------------------------------------------------------------------
class Store(Protocol):
    # Serializes group imports on this connection, across every engine using it.
    lock: Any

    def create_record(self) -> int:
        """Allocate a new, empty record and return its identifier."""
        ...

    def find_records(self, field: str, value: TypedValue) -> Set[int]:
        """Return every record where `field` equals `value`."""
        ...

    def write_field(self, field: str, value: TypedValue, record: int) -> bool:
        """
        Add `value` to `field` in `record`.
        False means the store rejected this one write (a soft error).
        """
        ...

    def begin_transaction(self) -> None: ...

    def commit_transaction(self) -> bool:
        """False means the transaction could not commit and was discarded."""
        ...

    def abort_transaction(self) -> None: ...


# ---------------------------------------------------------------------------
# GroupSource
# ---------------------------------------------------------------------------
# A file-format tokenizer. Turns one file into the sequence of groups the
# engine imports. Sources raise MalformedGroupError on structural problems
# and let OSError propagate.
# ---------------------------------------------------------------------------
class GroupSource(Protocol):
    whitelist: Optional[List[str]]

    def groups(self, path: Any) -> Iterator[RawGroup]: ...


# ---------------------------------------------------------------------------
# ImportSummary
# ---------------------------------------------------------------------------
# Structured summary of a batch of group imports, consumed by the CLI and by
# tests. Always contains every key.
# ---------------------------------------------------------------------------
class ImportSummary(TypedDict):
    groups_imported: int
    records_touched: int
    records: List[int]
    error_count: int
    errors: List[str]


# ---------------------------------------------------------------------------
# ImporterConfig
# ---------------------------------------------------------------------------
# Environment-derived settings (see rie/config.py). total=False because the
# Supabase credentials are optional in dry-run mode.
# ---------------------------------------------------------------------------
class ImporterConfig(TypedDict, total=False):
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    max_commit_attempts: Optional[int]
    commit_backoff_seconds: float


# ---------------------------------------------------------------------------
# SupabaseExecuteResponse
# ---------------------------------------------------------------------------
# Normalized response returned from Supabase `.execute()` by dict-style test
# doubles. The real SDK returns an object with the same attributes.
# ---------------------------------------------------------------------------
class SupabaseExecuteResponse(TypedDict, total=False):
    status: int
    data: Any
    error: Optional[Any]


RowDict = Dict[str, Any]
