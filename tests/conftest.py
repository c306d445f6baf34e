"""
Shared pytest configuration for the Record Import Engine test suite.

This file centralizes all reusable testing utilities so that:
    • Engine tests run against a deterministic, call-recording store
    • Supabase adapter tests never touch the network
    • File fixtures load consistently
    • Tests remain contributor-friendly and easy to extend
"""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from rie.ingestion.value_inference import infer
from rie.store import MemoryDatabase, MemoryStore

# ============================================================================
# FIXTURE DIRECTORY
# ============================================================================
FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ============================================================================
# 1.1 SHARED TEST INFRASTRUCTURE
# ============================================================================


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provides a fresh Typer CliRunner instance for CLI tests."""
    return CliRunner()


@pytest.fixture
def fixture_path():
    """Resolve a file under tests/fixtures/."""

    def _resolve(name: str) -> Path:
        return FIXTURES_DIR / name

    return _resolve


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


# ---------------------------------------------------------------------------
# Fixture: seed
# ---------------------------------------------------------------------------
@pytest.fixture
def seed():
    """
    Commit one record holding `fields` (raw text, inferred like an import)
    through a separate connection to `store`'s database.

    Seeding through its own connection keeps the seeded calls out of a
    ScriptedStore's call log.
    """

    def _seed(store: MemoryStore, fields: dict) -> int:
        connection = MemoryStore(store.database)
        record = connection.create_record()
        connection.begin_transaction()
        for field, raw in fields.items():
            values = raw if isinstance(raw, list) else [raw]
            for value in values:
                assert connection.write_field(field, infer(value), record)
        assert connection.commit_transaction()
        return record

    return _seed


# ============================================================================
# 1.2 DETERMINISTIC TEST DOUBLES
# ============================================================================


# ---------------------------------------------------------------------------
# Fixture: scripted_store
# ---------------------------------------------------------------------------
@pytest.fixture
def scripted_store():
    """
    Factory for a MemoryStore that records every call and can be told to
    misbehave.

    Options:
        • reject          → {(field, TypedValue)} writes refused with False
        • commit_failures → number of commits that fail before one succeeds
        • fault_on        → field whose write raises ConnectionError
        • database        → share a MemoryDatabase with other connections

    Exposes:
        • .calls  → ordered list of (method, *args)
        • .writes → the write_field calls only, as (field, value, record)
    """

    class ScriptedStore(MemoryStore):
        def __init__(self, reject=(), commit_failures=0, fault_on=None, database=None):
            super().__init__(database or MemoryDatabase())
            self.reject = set(reject)
            self.commit_failures = commit_failures
            self.fault_on = fault_on
            self.calls = []

        @property
        def writes(self):
            return [call[1:] for call in self.calls if call[0] == "write_field"]

        def count(self, method: str) -> int:
            return sum(1 for call in self.calls if call[0] == method)

        def create_record(self):
            record = super().create_record()
            self.calls.append(("create_record", record))
            return record

        def find_records(self, field, value):
            self.calls.append(("find_records", field, value))
            return super().find_records(field, value)

        def write_field(self, field, value, record):
            self.calls.append(("write_field", field, value, record))
            if field == self.fault_on:
                raise ConnectionError("connection reset by peer")
            if (field, value) in self.reject:
                return False
            return super().write_field(field, value, record)

        def begin_transaction(self):
            self.calls.append(("begin_transaction",))
            super().begin_transaction()

        def commit_transaction(self):
            self.calls.append(("commit_transaction",))
            if self.commit_failures:
                self.commit_failures -= 1
                MemoryStore.abort_transaction(self)
                return False
            return super().commit_transaction()

        def abort_transaction(self):
            self.calls.append(("abort_transaction",))
            super().abort_transaction()

    def _factory(**options):
        return ScriptedStore(**options)

    return _factory


# ---------------------------------------------------------------------------
# Fixture: fake_supabase
# ---------------------------------------------------------------------------
@pytest.fixture
def fake_supabase():
    """
    Factory for an in-memory stand-in for the Supabase SDK client.

    Mirrors the parts of the SDK SupabaseStore uses:

        client.table("record_fields").select(...).eq(...).in_(...).execute()
        client.rpc("create_record", {}).execute()
        client.rpc("commit_record_fields", {"writes": [...]}).execute()

    Responses are dict-style ({"status": ..., "data": ...}).

    Options:
        • rows           → rows already stored in record_fields
        • commit_results → queued verdicts for commit_record_fields (default True)
        • error          → when set, every call returns this error
        • next_record    → last id handed out by create_record
    """

    class FakeQuery:
        def __init__(self, client, table):
            self.client = client
            self.table = table
            self.columns = None
            self.filters = []

        def select(self, columns):
            self.columns = columns
            return self

        def eq(self, column, value):
            self.filters.append(("eq", column, value))
            return self

        def in_(self, column, values):
            self.filters.append(("in", column, list(values)))
            return self

        def execute(self):
            self.client.queries.append((self.table, list(self.filters)))
            if self.client.error:
                return {"status": 500, "error": self.client.error}

            matches = [row for row in self.client.rows if all(self._passes(row, f) for f in self.filters)]
            return {"status": 200, "data": [{"record_id": row["record_id"]} for row in matches]}

        @staticmethod
        def _passes(row, condition):
            op, column, expected = condition
            if op == "eq":
                return row.get(column) == expected
            return row.get(column) in expected

    class FakeRpc:
        def __init__(self, client, name, params):
            self.client = client
            self.name = name
            self.params = params

        def execute(self):
            client = self.client
            client.rpc_calls.append((self.name, self.params))
            if client.error:
                return {"status": 500, "error": client.error}

            if self.name == "create_record":
                client.next_record += 1
                return {"status": 200, "data": client.next_record}

            if self.name == "commit_record_fields":
                ok = client.commit_results.pop(0) if client.commit_results else True
                if ok:
                    for row in self.params["writes"]:
                        if row not in client.rows:
                            client.rows.append(dict(row))
                return {"status": 200, "data": ok}

            return {"status": 404, "error": f"unknown function {self.name}"}

    class FakeSupabaseClient:
        def __init__(self, rows=None, commit_results=None, error=None, next_record=0):
            self.rows = list(rows or [])
            self.commit_results = list(commit_results or [])
            self.error = error
            self.next_record = next_record
            self.queries = []
            self.rpc_calls = []

        def table(self, name):
            return FakeQuery(self, name)

        def rpc(self, name, params):
            return FakeRpc(self, name, params)

    def _factory(**options):
        return FakeSupabaseClient(**options)

    return _factory


# ---------------------------------------------------------------------------
# Fixture: clean_env
# ---------------------------------------------------------------------------
@pytest.fixture
def clean_env(monkeypatch):
    """Remove every setting rie.config reads, so tests start from defaults."""
    for name in (
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "RIE_MAX_COMMIT_ATTEMPTS",
        "RIE_COMMIT_BACKOFF_SECONDS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
