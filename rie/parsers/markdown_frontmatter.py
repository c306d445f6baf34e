"""
Markdown documents with YAML front matter.

Each file is one group. Front-matter keys become fields; the Markdown body
is written to a single field (default "content") and is always imported as a
string, whatever it looks like.

Example:

    ---
    title: Quarterly plan
    owner: "@<email>@ann@example.com@<email>@"
    tags: [planning, q3]
    ---
    Body text...

    → {"title": ["Quarterly plan"],
       "owner": ["@<email>@ann@example.com@<email>@"],
       "tags": ["planning", "q3"],
       "content": ['"Body text..."']}
"""

from typing import Dict, Iterator, List, Mapping, Optional, Sequence

import frontmatter
import yaml

from rie.parsers.common import MalformedGroupError, mapping_to_group


class FrontmatterGroupSource:
    """
    Group source for Markdown files.

    Parameters
    ----------
    body_field : str | None
        Field that receives the document body. None drops the body.
    whitelist : Sequence[str] | None
        File name endings accepted when scanning a directory.
    """

    def __init__(
        self,
        body_field: Optional[str] = "content",
        whitelist: Optional[Sequence[str]] = None,
    ) -> None:
        self.body_field = body_field
        self.whitelist = list(whitelist) if whitelist else None

    def groups(self, path) -> Iterator[Dict[str, List[str]]]:
        try:
            post = frontmatter.load(path)
        except yaml.YAMLError as e:
            raise MalformedGroupError(f"invalid front matter: {e}", path) from e

        if not isinstance(post.metadata, Mapping):
            raise MalformedGroupError("front matter must be a mapping", path)

        try:
            group = mapping_to_group(post.metadata)
        except MalformedGroupError as e:
            raise MalformedGroupError(str(e), path) from e

        body = post.content
        if self.body_field and body.strip():
            # Quoting forces a string: a body of "42" stays text.
            group.setdefault(self.body_field, []).append(f'"{body}"')

        yield group
