"""
High-level import engine.

This module defines the *canonical import sequence* for one group of raw
data. It is intentionally explicit and linear so that:

    • tests can assert on store call ordering deterministically
    • a failed commit retries the group from scratch, never half-way
    • the same engine serves every file format (formats only differ in how
      they produce groups, see rie/parsers/)

Per attempt:

    1. Open a transaction (IDLE → STAGED)
    2. Resolve target records (resolve key lookup, or one new record)
    3. Infer, expand, and write every value into every target record
    4. Commit (STAGED → COMMITTED), or start over (STAGED → ABORTED_RETRY)

The engine does *not* perform:
    • file reading or tokenizing (group sources)
    • progress output (the CLI prints, the engine returns results)
    • connection management (callers hand in a connected store)
"""

import time
from typing import Callable, Iterable, List, Mapping, Optional

from rie.ingestion.assembler import assemble_group
from rie.ingestion.commit import CommitConflictError, CommitCoordinator, RetryPolicy
from rie.ingestion.reference_resolution import validate_resolve_key
from rie.ingestion.result import ImportResult, freeze_group
from rie.types import Store


class ImportEngine:
    """
    Imports groups into one store connection.

    Group imports on the same store connection are serialized through the
    store's `lock`, even across engines: no two transactions ever interleave
    on one connection. To import in parallel, give each worker its own store
    connection.
    """

    def __init__(
        self,
        store: Store,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep

        # Number of attempts the most recent import_group() call needed.
        self.last_attempts = 0

    def import_group(
        self,
        group: Mapping[str, Iterable[str]],
        resolve_key: Optional[str] = None,
    ) -> ImportResult:
        """
        Import a single group as one all-or-nothing unit.

        If `resolve_key` is given, the group is written into every existing
        record whose `resolve_key` matches one of the group's values for that
        key. Otherwise (or if nothing matches) it goes into one new record.

        Raises:
            ValueError: if `resolve_key` is the store-assigned record id.
            CommitConflictError: if the retry policy is bounded and exhausted.
            Any store/transport fault, after aborting the open transaction.
        """
        validate_resolve_key(resolve_key)
        frozen = freeze_group(group)

        with self.store.lock:
            attempts = 0
            while True:
                attempts += 1
                self.last_attempts = attempts

                result = self._attempt(frozen, resolve_key)
                if result is not None:
                    return result

                if not self.retry_policy.allows_another_attempt(attempts):
                    raise CommitConflictError(attempts)

                delay = self.retry_policy.delay_for(attempts)
                if delay:
                    self._sleep(delay)

    def import_groups(
        self,
        groups: Iterable[Mapping[str, Iterable[str]]],
        resolve_key: Optional[str] = None,
    ) -> List[ImportResult]:
        """Import each group in order; stops at the first fatal error."""
        return [self.import_group(group, resolve_key) for group in groups]

    # -----------------------------------------------------------------------
    # One attempt: IDLE → STAGED → COMMITTED | ABORTED_RETRY
    # -----------------------------------------------------------------------
    def _attempt(self, group, resolve_key: Optional[str]) -> Optional[ImportResult]:
        coordinator = CommitCoordinator(self.store)
        coordinator.begin()
        try:
            result = assemble_group(self.store, coordinator, group, resolve_key)
            committed = coordinator.commit()
        except BaseException:
            # Nothing from a faulted attempt may become visible.
            coordinator.abort()
            raise

        return result if committed else None
