"""
Group assembly: turn one raw group into store writes.

The assembler is the only place that walks a group's fields. For each
non-blank raw value it infers a typed value, expands resolvable links into
concrete Link values, and asks the commit coordinator to write every value
into every target record.

Write order is field → value → record, following the group's own ordering.
"""

from typing import Iterator, List, Optional, Tuple

from rie.ingestion.commit import CommitCoordinator
from rie.ingestion.reference_resolution import is_blank, resolve_deferred, resolve_targets
from rie.ingestion.result import ImportResult
from rie.ingestion.value_inference import infer
from rie.types import RawGroup, ResolvableLink, Store, TypedValue

ERROR_TEMPLATE = "Could not import {field} AS {value} IN {record}"


def assemble_group(
    store: Store,
    coordinator: CommitCoordinator,
    group: RawGroup,
    resolve_key: Optional[str] = None,
) -> ImportResult:
    """
    Apply every write for `group` through `coordinator`.

    The coordinator must already be STAGED; committing is left to the caller
    so that a failed commit can be retried with a fresh attempt.

    Returns:
        An ImportResult whose error list holds one message per rejected write.
    """
    records = resolve_targets(store, group, resolve_key)
    result = ImportResult(group, records)
    ordered_records = sorted(records)

    for field, values in expand_group(store, group):
        for value in values:
            for record in ordered_records:
                if not coordinator.write(field, value, record):
                    result.add_error(
                        ERROR_TEMPLATE.format(field=field, value=value, record=record)
                    )

    return result


def expand_group(store: Store, group: RawGroup) -> Iterator[Tuple[str, List[TypedValue]]]:
    """
    Yield (field, values-to-write) for every non-blank raw value in `group`.

    A plain value yields a single-element list. A resolvable link yields one
    Link per matching record, possibly none.
    """
    for field, raw_values in group.items():
        for raw in raw_values:
            if is_blank(raw):
                continue

            inferred = infer(raw)
            if isinstance(inferred, ResolvableLink):
                yield field, resolve_deferred(store, inferred)
            else:
                yield field, [inferred]
