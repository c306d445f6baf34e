"""
Line-oriented delimited text (CSV, TSV, pipe-separated).

Each non-blank line after the header becomes one group. Splitting respects
quotes but keeps them on the token, so a quoted cell reaches inference still
quoted and is imported as a string:

    Sachin,,M,"Maths,Science,English",Need to improve
        → ["Sachin", "", "M", '"Maths,Science,English"', "Need to improve"]

Header names that repeat map several columns onto one field, which is how a
line carries a multi-valued field.
"""

from typing import Dict, Iterator, List, Mapping, Optional, Sequence

from rie.ingestion.reference_resolution import is_blank
from rie.ingestion.value_inference import wrap_resolvable_link
from rie.parsers.common import MalformedGroupError

QUOTES = ('"', "'")


def split_respecting_quotes(line: str, delimiter: str = ",") -> List[str]:
    """
    Split `line` on `delimiter`, ignoring delimiters inside quoted tokens.

    A quote only opens a quoted section at the start of a token (leading
    whitespace allowed), so apostrophes inside words are ordinary text.
    Quotes are kept on the returned tokens; surrounding whitespace is not
    trimmed here.
    """
    if not delimiter:
        raise ValueError("delimiter must not be empty")

    tokens: List[str] = []
    current: List[str] = []
    quote: Optional[str] = None
    i = 0

    while i < len(line):
        ch = line[i]
        if quote is not None:
            current.append(ch)
            if ch == quote:
                quote = None
        elif ch in QUOTES and not "".join(current).strip():
            quote = ch
            current.append(ch)
        elif line.startswith(delimiter, i):
            tokens.append("".join(current))
            current = []
            i += len(delimiter)
            continue
        else:
            current.append(ch)
        i += 1

    tokens.append("".join(current))
    return tokens


class DelimitedGroupSource:
    """
    Group source for delimited text files.

    Parameters
    ----------
    delimiter : str
        Column separator. Defaults to ",".
    header : Sequence[str] | None
        Field names to use when the file has no header line. When None, the
        first non-blank line of the file is the header.
    links : Mapping[str, str] | None
        column → key. Every non-blank value in `column` is rewritten into a
        resolvable link on `key`, linking the imported record to every record
        whose `key` equals that value.
    whitelist : Sequence[str] | None
        File name endings accepted when scanning a directory.
    """

    def __init__(
        self,
        delimiter: str = ",",
        header: Optional[Sequence[str]] = None,
        links: Optional[Mapping[str, str]] = None,
        whitelist: Optional[Sequence[str]] = None,
    ) -> None:
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self.delimiter = delimiter
        self.header = list(header) if header else None
        self.links = dict(links or {})
        self.whitelist = list(whitelist) if whitelist else None

    def groups(self, path) -> Iterator[Dict[str, List[str]]]:
        """
        Yield one group per data line of `path`.

        Raises:
            OSError: if the file cannot be read.
            MalformedGroupError: for an empty header name, or a line whose
                cell count differs from the header's.
        """
        keys = self.header
        with open(path, encoding="utf-8", newline="") as handle:
            for number, line in enumerate(handle, start=1):
                line = line.rstrip("\r\n")
                if not line.strip():
                    continue

                if keys is None:
                    keys = self.parse_header(line, path=path, line_number=number)
                    continue

                yield self.parse_line(line, keys, path=path, line_number=number)

    def parse_header(self, line: str, path=None, line_number: Optional[int] = None) -> List[str]:
        keys = [_unquote(token.strip()) for token in split_respecting_quotes(line, self.delimiter)]
        if any(not key for key in keys):
            raise MalformedGroupError("header contains an empty field name", path, line_number)
        return keys

    def parse_line(
        self,
        line: str,
        keys: Sequence[str],
        path=None,
        line_number: Optional[int] = None,
    ) -> Dict[str, List[str]]:
        tokens = [token.strip() for token in split_respecting_quotes(line, self.delimiter)]
        if len(tokens) != len(keys):
            raise MalformedGroupError(
                f"expected {len(keys)} values but found {len(tokens)}", path, line_number
            )

        group: Dict[str, List[str]] = {}
        for key, token in zip(keys, tokens):
            group.setdefault(key, []).append(self.transform_value(key, token))
        return group

    def transform_value(self, key: str, value: str) -> str:
        link_key = self.links.get(key)
        if link_key is None or is_blank(value):
            return value
        return wrap_resolvable_link(link_key, value)


def _unquote(token: str) -> str:
    if len(token) >= 2 and token[0] == token[-1] and token[0] in QUOTES:
        return token[1:-1]
    return token
