"""
In-process record store.

MemoryStore is a stand-in for the remote store. It lets the CLI import
pipeline run end-to-end without:
  • network access
  • environment variables
  • a running Supabase project

It is used by `rie import run --dry-run` and throughout the test suite.

Model
-----
A MemoryDatabase holds the committed data:

    record id → field → [TypedValue, ...]   (insertion ordered, no duplicates)

Any number of MemoryStore connections may share one database. Each
connection runs at most one transaction. Commits are optimistic: a commit
fails when another connection committed a write to the same (field, record)
cell after this transaction began, and the staged writes are discarded.
"""

import threading
from typing import Dict, List, Optional, Set, Tuple

from rie.store.validation import is_writable
from rie.types import TypedValue

Cell = Tuple[str, int]


class MemoryDatabase:
    """Committed state shared by MemoryStore connections."""

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.data: Dict[int, Dict[str, List[TypedValue]]] = {}
        self.next_record = 1
        self.version = 0
        # cell → version of the last commit that wrote to it
        self.cell_versions: Dict[Cell, int] = {}

    def allocate_record(self) -> int:
        with self.lock:
            record = self.next_record
            self.next_record += 1
            return record

    def fetch(self, field: str, record: int) -> List[TypedValue]:
        """Committed values of `field` in `record` (a copy)."""
        with self.lock:
            return list(self.data.get(record, {}).get(field, []))

    def records(self) -> Set[int]:
        with self.lock:
            return set(self.data)


class MemoryStore:
    """
    One connection to a MemoryDatabase.

    Implements the Store protocol from rie/types.py.
    """

    def __init__(self, database: Optional[MemoryDatabase] = None) -> None:
        self.database = database or MemoryDatabase()
        # Held by an ImportEngine for a whole group import.
        self.lock = threading.Lock()
        self._staged: Optional[List[Tuple[str, TypedValue, int]]] = None
        self._start_version = 0

    # -----------------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------------
    @property
    def in_transaction(self) -> bool:
        return self._staged is not None

    def begin_transaction(self) -> None:
        if self.in_transaction:
            raise RuntimeError("A transaction is already open on this connection")
        with self.database.lock:
            self._start_version = self.database.version
        self._staged = []

    def commit_transaction(self) -> bool:
        staged = self._require_transaction()
        self._staged = None

        db = self.database
        with db.lock:
            for field, _value, record in staged:
                if db.cell_versions.get((field, record), 0) > self._start_version:
                    return False

            db.version += 1
            for field, value, record in staged:
                values = db.data.setdefault(record, {}).setdefault(field, [])
                if value not in values:
                    values.append(value)
                db.cell_versions[(field, record)] = db.version
        return True

    def abort_transaction(self) -> None:
        self._staged = None

    # -----------------------------------------------------------------------
    # Records
    # -----------------------------------------------------------------------
    def create_record(self) -> int:
        return self.database.allocate_record()

    def find_records(self, field: str, value: TypedValue) -> Set[int]:
        matches: Set[int] = set()
        with self.database.lock:
            for record, fields in self.database.data.items():
                if any(stored.matches(value) for stored in fields.get(field, [])):
                    matches.add(record)

        # A transaction sees its own staged writes.
        for staged_field, staged_value, record in self._staged or []:
            if staged_field == field and staged_value.matches(value):
                matches.add(record)
        return matches

    def write_field(self, field: str, value: TypedValue, record: int) -> bool:
        """
        Stage a write.

        Rejected (False) when rie.store.validation refuses it. Writing a value
        that is already stored or staged is accepted and changes nothing.
        """
        staged = self._require_transaction()
        if not is_writable(field, value, record):
            return False
        if value in self.database.fetch(field, record) or (field, value, record) in staged:
            return True

        staged.append((field, value, record))
        return True

    # -----------------------------------------------------------------------
    # Reads for callers and tests (committed state only)
    # -----------------------------------------------------------------------
    def fetch(self, field: str, record: int) -> List[TypedValue]:
        return self.database.fetch(field, record)

    def describe(self, record: int) -> Dict[str, List[TypedValue]]:
        with self.database.lock:
            return {field: list(values) for field, values in self.database.data.get(record, {}).items()}

    def _require_transaction(self) -> List[Tuple[str, TypedValue, int]]:
        if self._staged is None:
            raise RuntimeError("No transaction is open on this connection")
        return self._staged
