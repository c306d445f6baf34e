"""
Write validation shared by the store adapters.

A write the store refuses is a soft error for the importer: it is reported
on the ImportResult and the rest of the group still commits.
"""

from rie.types import RECORD_ID_KEY, TypedValue, ValueType


def is_writable(field: str, value: TypedValue, record: int) -> bool:
    """
    Return False for writes the store refuses:

        • an empty or whitespace-only field name
        • the reserved record id field
        • a link from a record to itself
    """
    if not field or not field.strip():
        return False
    if field == RECORD_ID_KEY:
        return False
    if value.type == ValueType.LINK and value.value == record:
        return False
    return True
