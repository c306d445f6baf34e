"""
Transaction handling for group imports.

A group is imported inside exactly one store transaction. The coordinator
tracks where that transaction is:

    IDLE ──begin()──▶ STAGED ──commit()──▶ COMMITTED
                         │
                         └──commit() fails──▶ ABORTED_RETRY

While STAGED, each write succeeds or is rejected on its own; a rejected
write is reported to the caller as a soft error and never aborts the
transaction. Only a failed commit sends the whole group back for another
attempt, and that decision belongs to the RetryPolicy.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from rie.types import Store, TypedValue


class CommitState(Enum):
    IDLE = "idle"
    STAGED = "staged"
    COMMITTED = "committed"
    ABORTED_RETRY = "aborted_retry"


class CommitConflictError(RuntimeError):
    """Raised when a group still cannot commit after the allowed attempts."""

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Group could not be committed after {attempts} attempt(s)")
        self.attempts = attempts


# ---------------------------------------------------------------------------
# RetryPolicy
# ---------------------------------------------------------------------------
# max_attempts=None keeps retrying until the store accepts the commit. That
# is the historical behavior of the importer and remains the default; a
# bound can be configured through the CLI or RIE_MAX_COMMIT_ATTEMPTS.
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: Optional[int] = None
    backoff_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1 (or None for unbounded)")
        if self.backoff_seconds < 0:
            raise ValueError("backoff_seconds must not be negative")

    def allows_another_attempt(self, attempts: int) -> bool:
        return self.max_attempts is None or attempts < self.max_attempts

    def delay_for(self, attempts: int) -> float:
        """Linear backoff: the n-th retry waits n * backoff_seconds."""
        return self.backoff_seconds * attempts


# ---------------------------------------------------------------------------
# CommitCoordinator
# ---------------------------------------------------------------------------
class CommitCoordinator:
    """
    One transaction attempt for one group.

    A coordinator is single-use: the engine builds a fresh one for every
    attempt so that no state leaks from an aborted attempt into the next.
    """

    def __init__(self, store: Store) -> None:
        self.store = store
        self.state = CommitState.IDLE
        self.writes_attempted = 0
        self.writes_rejected = 0

    def begin(self) -> None:
        self._require(CommitState.IDLE, "begin")
        self.store.begin_transaction()
        self.state = CommitState.STAGED

    def write(self, field: str, value: TypedValue, record: int) -> bool:
        """
        Stage one write.

        Returns False when the store rejects it. Connection-level faults raised
        by the store propagate unchanged.
        """
        self._require(CommitState.STAGED, "write")
        self.writes_attempted += 1
        accepted = self.store.write_field(field, value, record)
        if not accepted:
            self.writes_rejected += 1
        return accepted

    def commit(self) -> bool:
        self._require(CommitState.STAGED, "commit")
        if self.store.commit_transaction():
            self.state = CommitState.COMMITTED
            return True

        self.state = CommitState.ABORTED_RETRY
        return False

    def abort(self) -> None:
        """Discard the staged transaction, if one is open."""
        if self.state == CommitState.STAGED:
            self.store.abort_transaction()
            self.state = CommitState.ABORTED_RETRY

    def _require(self, expected: CommitState, action: str) -> None:
        if self.state != expected:
            raise RuntimeError(
                f"Cannot {action} while the transaction is {self.state.value}"
            )
