"""
Supabase-backed record store.

This adapter exposes a Supabase project through the Store protocol defined
in rie/types.py, so the import engine can run against it unchanged.

Schema (entity-attribute-value, one row per stored value):

    record_fields(
        record_id    bigint,
        field        text,
        value        text,
        value_type   text,              -- ValueType.value
        value_number double precision   -- numeric kinds only, else NULL
    )

Two Postgres functions are called over RPC:

    create_record()                 → bigint   next record id (no row written)
    commit_record_fields(writes)    → boolean  insert the batch atomically,
                                               skipping rows already stored;
                                               false on a write conflict

PostgREST has no client-held transactions, so a transaction is staged
client-side: writes are checked and buffered locally, and commit sends the
whole batch to `commit_record_fields` in one call. Reads made inside the
transaction also see the buffered writes.

The class accepts any Supabase-compatible client (the real SDK or a test
double). Responses are normalized by _extract_data, which raises
RuntimeError on any error the client reports.
"""

import threading
from typing import Any, Dict, List, Optional, Set, cast

from rie.store.validation import is_writable
from rie.types import NUMERIC_TYPES, RowDict, TypedValue, ValueType

RECORD_FIELDS_TABLE = "record_fields"
CREATE_RECORD_RPC = "create_record"
COMMIT_RPC = "commit_record_fields"


# ---------------------------------------------------------------------------
# Helper: normalize Supabase responses
# ---------------------------------------------------------------------------
def _extract_data(resp: Any) -> Any:
    """
    Normalize Supabase responses across:
        • real SDK objects (APIResponse with .data)
        • dict-style test doubles ({"status": ..., "data": ...})

    Returns the raw data payload. Raises RuntimeError on any Supabase error.
    """
    if isinstance(resp, dict):
        status = resp.get("status") or 200
        if status >= 400 or resp.get("error"):
            raise RuntimeError(f"Supabase error: {resp}")
        return resp.get("data")

    error = getattr(resp, "error", None)
    if error:
        raise RuntimeError(f"Supabase error: {error}")

    return getattr(resp, "data", None)


def _rows(data: Any) -> List[RowDict]:
    if data is None:
        return []
    if isinstance(data, list):
        return cast(List[RowDict], data)
    return cast(List[RowDict], [data])


def _scalar(data: Any) -> Any:
    """RPC results arrive as a bare value, a one-element list, or a row dict."""
    if isinstance(data, list):
        if not data:
            return None
        data = data[0]
    if isinstance(data, dict):
        return next(iter(data.values()), None)
    return data


# ---------------------------------------------------------------------------
# Value encoding
# ---------------------------------------------------------------------------
def encode_value(field: str, value: TypedValue, record: int) -> RowDict:
    """Build the record_fields row that stores `value`."""
    return {
        "record_id": record,
        "field": field,
        "value": encode_text(value),
        "value_type": value.type.value,
        "value_number": float(value.value) if value.type.is_numeric else None,
    }


def encode_text(value: TypedValue) -> str:
    if value.type == ValueType.BOOLEAN:
        return "true" if value.value else "false"
    return str(value.value)


# ---------------------------------------------------------------------------
# Main adapter class
# ---------------------------------------------------------------------------
class SupabaseStore:
    """
    A thin, dependency-injected wrapper around a Supabase-compatible client.

    One instance is one connection: it holds at most one staged transaction.
    """

    def __init__(self, client: Any) -> None:
        """
        Parameters
        ----------
        client : Any
            A Supabase-compatible client (real SDK or test double). Typed as
            Any because the SDK's query builder is dynamic.
        """
        if client is None:
            raise RuntimeError("No client provided to SupabaseStore")
        self.client = client
        # Held by an ImportEngine for a whole group import.
        self.lock = threading.Lock()
        self._staged: Optional[List[RowDict]] = None

    @classmethod
    def connect(cls, url: str, key: str) -> "SupabaseStore":
        """Create the official SDK client for `url` and wrap it."""
        from supabase import create_client

        return cls(create_client(url, key))

    # -----------------------------------------------------------------------
    # Transactions
    # -----------------------------------------------------------------------
    def begin_transaction(self) -> None:
        if self._staged is not None:
            raise RuntimeError("A transaction is already open on this connection")
        self._staged = []

    def commit_transaction(self) -> bool:
        """
        Send the staged batch to `commit_record_fields`.

        Returns the function's verdict: False means the batch conflicted and
        nothing was written. An empty transaction commits trivially.
        """
        staged = self._require_transaction()
        self._staged = None
        if not staged:
            return True

        resp = self.client.rpc(COMMIT_RPC, {"writes": staged}).execute()
        return bool(_scalar(_extract_data(resp)))

    def abort_transaction(self) -> None:
        self._staged = None

    # -----------------------------------------------------------------------
    # Records
    # -----------------------------------------------------------------------
    def create_record(self) -> int:
        resp = self.client.rpc(CREATE_RECORD_RPC, {}).execute()
        record = _scalar(_extract_data(resp))
        if record is None:
            raise RuntimeError("create_record returned no record id")
        return int(record)

    def find_records(self, field: str, value: TypedValue) -> Set[int]:
        """
        Records where `field` equals `value`.

        Numeric values match across all numeric kinds by magnitude; other
        kinds must agree on type and text.
        """
        query = self.client.table(RECORD_FIELDS_TABLE).select("record_id").eq("field", field)
        query = self._filter_value(query, value)
        rows = _rows(_extract_data(query.execute()))

        records = {int(row["record_id"]) for row in rows}
        for row in self._staged or []:
            if row["field"] == field and self._row_matches(row, value):
                records.add(row["record_id"])
        return records

    def write_field(self, field: str, value: TypedValue, record: int) -> bool:
        """
        Stage one write.

        Rejected (False) when rie.store.validation refuses it. A value staged
        twice is sent once; values already stored are skipped by
        commit_record_fields. Raises RuntimeError outside a transaction.
        """
        staged = self._require_transaction()
        if not is_writable(field, value, record):
            return False

        row = encode_value(field, value, record)
        if row not in staged:
            staged.append(row)
        return True

    # -----------------------------------------------------------------------
    # Internal helpers
    # -----------------------------------------------------------------------
    def _require_transaction(self) -> List[RowDict]:
        if self._staged is None:
            raise RuntimeError("No transaction is open on this connection")
        return self._staged

    @staticmethod
    def _filter_value(query: Any, value: TypedValue) -> Any:
        if value.type.is_numeric:
            return query.in_("value_type", [kind.value for kind in NUMERIC_TYPES]).eq(
                "value_number", float(value.value)
            )
        return query.eq("value_type", value.type.value).eq("value", encode_text(value))

    @staticmethod
    def _row_matches(row: Dict[str, Any], value: TypedValue) -> bool:
        if value.type.is_numeric:
            return row["value_number"] is not None and row["value_number"] == float(value.value)
        return row["value_type"] == value.type.value and row["value"] == encode_text(value)
