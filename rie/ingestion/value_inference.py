"""
Value inference for raw textual tokens.

Every value that reaches the engine is text. This module decides what that
text *means* before it is written to the store. It is a pure function
module: no I/O, no store access, deterministic output for every input.

Rules are applied in a fixed order and the first match wins:

    1. '"…"' or "'…'"               → String (one layer of quotes stripped)
    2. @<key>@value@<key>@           → ResolvableLink(key, infer(value))
    3. @<integer>@                   → Link(record id)
    4. true / false (any case)       → Boolean
    5. <decimal>D                    → Double
    6. Integer → Long → Float → Double, first successful parse
    7. anything else                 → String, unchanged

The ordering resolves the ambiguity between "looks like a number" and "is a
reference or a forced string", which is where free-text import goes wrong.
"""

import re
from typing import Optional

from rie.types import Inferred, ResolvableLink, TypedValue

RESOLVABLE_LINK_PREPEND = "@<"
RESOLVABLE_LINK_APPEND = ">@"

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1

INTEGER_RE = re.compile(r"[+-]?[0-9]+")
DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
LINK_RE = re.compile(r"@([+-]?[0-9]+)@")
RESOLVABLE_LINK_RE = re.compile(
    re.escape(RESOLVABLE_LINK_PREPEND)
    + r"(?P<key>.+?)"
    + re.escape(RESOLVABLE_LINK_APPEND)
    + r"(?P<value>.*)"
    + re.escape(RESOLVABLE_LINK_PREPEND)
    + r"(?P=key)"
    + re.escape(RESOLVABLE_LINK_APPEND),
    re.DOTALL,
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def infer(raw: str) -> Inferred:
    """
    Infer the typed value represented by `raw`.

    Never raises: text that matches no grammar is returned as a String.

    Examples:
        infer("42")        → Integer(42)
        infer("9999999999")→ Long(9999999999)
        infer("3.14")      → Float(3.14)
        infer("3.14D")     → Double(3.14)
        infer("'42'")      → String("42")
        infer("@42@")      → Link(42)
        infer("@<ssn>@123-45-6789@<ssn>@")
                           → ResolvableLink("ssn", String("123-45-6789"))
    """
    if _is_within_quotes(raw):
        return TypedValue.string(raw[1:-1])

    match = RESOLVABLE_LINK_RE.fullmatch(raw)
    if match:
        value = infer(match.group("value"))
        if isinstance(value, ResolvableLink):
            # Links cannot nest; the inner markup stays text.
            value = TypedValue.string(match.group("value"))
        return ResolvableLink(match.group("key"), value)

    match = LINK_RE.fullmatch(raw)
    if match:
        record = _parse_long(match.group(1))
        if record is not None:
            return TypedValue.link(record)

    lowered = raw.lower()
    if lowered == "true":
        return TypedValue.boolean(True)
    if lowered == "false":
        return TypedValue.boolean(False)

    if raw.endswith("D") and DECIMAL_RE.fullmatch(raw[:-1]):
        return TypedValue.double(float(raw[:-1]))

    number = _parse_number(raw)
    if number is not None:
        return number

    return TypedValue.string(raw)


def wrap_resolvable_link(key: str, value: str) -> str:
    """
    Rewrite `value` so that inference turns it into a link to every record
    where `key` equals `value`.

    Example:
        wrap_resolvable_link("customer_id", "678")
            → "@<customer_id>@678@<customer_id>@"
    """
    marker = f"{RESOLVABLE_LINK_PREPEND}{key}{RESOLVABLE_LINK_APPEND}"
    return f"{marker}{value}{marker}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _is_within_quotes(raw: str) -> bool:
    return len(raw) >= 2 and raw[0] == raw[-1] and raw[0] in ("'", '"')


def _parse_long(digits: str) -> Optional[int]:
    """Parse a 64-bit integer literal, or None when it is out of range."""
    # Anything past 19 significant digits is outside the range. Leading zeros
    # are dropped before int() so a zero-padded literal stays short.
    sign = "-" if digits.startswith("-") else ""
    significant = digits.lstrip("+-").lstrip("0") or "0"
    if len(significant) > 19:
        return None
    number = int(sign + significant)
    if LONG_MIN <= number <= LONG_MAX:
        return number
    return None


def _parse_number(raw: str) -> Optional[TypedValue]:
    """Integer → Long → Float → Double; None when `raw` is not numeric."""
    if INTEGER_RE.fullmatch(raw):
        number = _parse_long(raw)
        if number is None:
            return TypedValue.float(float(raw))
        if INT_MIN <= number <= INT_MAX:
            return TypedValue.integer(number)
        return TypedValue.long(number)

    if DECIMAL_RE.fullmatch(raw):
        # Every decimal literal that parses as a Double also parses as a
        # Float, so Double is only reachable through the D suffix.
        return TypedValue.float(float(raw))

    return None
