"""
Record resolution for imported groups.

This module answers two questions for the engine, both by querying the store:

1. resolve_targets(store, group, resolve_key)
   - Which records should this group be written into?
   - Existing records are found through the resolve key. When nothing
     matches, or no resolve key is configured, exactly one new record is
     created. The result is never empty.

2. resolve_deferred(store, link)
   - Which records does a resolvable link point at?
   - Every match becomes one Link value. No match is not an error: the link
     simply resolves to nothing.

Resolution is always expressed in terms of values the raw data contains,
never the store's own record identifier.
"""

from typing import FrozenSet, List, Optional, Set

from rie.ingestion.value_inference import infer
from rie.types import RECORD_ID_KEY, RawGroup, ResolvableLink, Store, TypedValue


# ---------------------------------------------------------------------------
# Target records for a group
# ---------------------------------------------------------------------------
def resolve_targets(
    store: Store,
    group: RawGroup,
    resolve_key: Optional[str] = None,
) -> FrozenSet[int]:
    """
    Determine the records a group is imported into.

    Rules:
        • Every non-blank value of `resolve_key` in the group is inferred and
          looked up; the matches are unioned.
        • A value that infers to a resolvable link is looked up by its
          embedded value.
        • If the union is empty (or `resolve_key` is None/blank, or absent
          from the group), one new record is created.

    Raises:
        ValueError: if `resolve_key` names the store-assigned record id.
    """
    validate_resolve_key(resolve_key)

    records: Set[int] = set()
    if resolve_key:
        for raw in group.get(resolve_key, ()):
            if is_blank(raw):
                continue

            value = infer(raw)
            if isinstance(value, ResolvableLink):
                value = value.value

            records |= store.find_records(resolve_key, value)

    if not records:
        records.add(store.create_record())

    return frozenset(records)


# ---------------------------------------------------------------------------
# Resolvable links
# ---------------------------------------------------------------------------
def resolve_deferred(store: Store, link: ResolvableLink) -> List[TypedValue]:
    """
    Expand a resolvable link into one Link value per matching record.

    Records are returned in ascending id order so that writes are issued
    deterministically.
    """
    return [TypedValue.link(record) for record in sorted(store.find_records(link.key, link.value))]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def validate_resolve_key(resolve_key: Optional[str]) -> None:
    if resolve_key == RECORD_ID_KEY:
        raise ValueError(
            f"{RECORD_ID_KEY!r} is assigned by the store and cannot be used as a "
            "resolve key. Resolve records by a field the raw data contains."
        )


def is_blank(raw: Optional[str]) -> bool:
    """Blank values (None, empty, whitespace only) are never sent to the store."""
    return raw is None or not raw.strip()
