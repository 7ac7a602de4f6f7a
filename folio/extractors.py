"""Front-matter parsing for Folio.

Every document starts with a YAML block delimited by ``---`` lines. This
module splits that block from the Markdown body, parses it into a
FrontMatter record and validates the required fields.

Key pieces:
- FrontMatter: Parsed metadata record (title, date, draft, extension fields).
- parse_front_matter: Split and validate raw source text.
- extract_excerpt: First prose paragraph of a body, used as a description.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any

import yaml

from .errors import InvalidDate, MalformedFrontMatter

FRONTMATTER_DELIMITER = "---"
ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")

# Inline Markdown reduced to its text, applied in order
_INLINE_MARKDOWN = [
    (re.compile(r"<((?:https?|mailto):[^>\s]+)>"), r"\1"),
    (re.compile(r"!\[([^\]]*)\]\([^)]*\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\](?:\([^)]*\)|\[[^\]]*\])"), r"\1"),
    (re.compile(r"`+([^`]+?)`+"), r"\1"),
    (re.compile(r"(\*\*|__)(?=\S)(.+?)(?<=\S)\1"), r"\2"),
    (re.compile(r"(?<![\w*])\*(?=\S)(.+?)(?<=\S)\*(?![\w*])"), r"\1"),
    (re.compile(r"(?<!\w)_(?=\S)(.+?)(?<=\S)_(?!\w)"), r"\1"),
    (re.compile(r"~~(?=\S)(.+?)(?<=\S)~~"), r"\1"),
    (re.compile(r"<[^>]+>"), ""),
]

REQUIRED_FIELDS = ("title", "date")
_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _FrontMatterLoader(yaml.SafeLoader):
    """SafeLoader that leaves timestamps as plain strings."""


_FrontMatterLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass(frozen=True)
class FrontMatter:
    """Metadata parsed from a document's leading delimited block.

    Attributes:
        title: Document title.
        date: Publication date.
        draft: Whether the document is excluded from published listings.
        extra: Any other keys, carried but never validated.
    """

    title: str
    date: date
    draft: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


def split_front_matter(text: str, identifier: str = "<string>") -> tuple[str, str]:
    """Split raw source into the front-matter block and the body.

    Args:
        text: Raw source text.
        identifier: Document identifier used in error messages.

    Returns:
        Tuple of (YAML block text, body text).

    Raises:
        MalformedFrontMatter: If the block is missing or unterminated.
    """
    lines = text.lstrip("\ufeff").splitlines(keepends=True)
    if not lines or lines[0].rstrip() != FRONTMATTER_DELIMITER:
        raise MalformedFrontMatter(identifier, "missing front-matter block")
    for index, line in enumerate(lines[1:], start=1):
        if line.rstrip() == FRONTMATTER_DELIMITER:
            return "".join(lines[1:index]), "".join(lines[index + 1 :])
    raise MalformedFrontMatter(identifier, "unterminated front-matter block")


def parse_date(value: Any, identifier: str = "<string>") -> date:
    """Parse a front-matter date value as an ISO calendar date.

    Raises:
        InvalidDate: If the value is not a valid ``YYYY-MM-DD`` date.
    """
    match = ISO_DATE_RE.match(str(value).strip())
    if not match:
        raise InvalidDate(identifier, f"date {value!r} is not an ISO calendar date")
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as exc:
        raise InvalidDate(identifier, f"date {value!r} is not a valid date: {exc}") from exc


def parse_front_matter(
    text: str, identifier: str = "<string>"
) -> tuple[FrontMatter, str]:
    """Parse raw source text into a FrontMatter record and the body.

    Unknown keys are kept in ``FrontMatter.extra``; they are tolerated, not
    rejected.

    Args:
        text: Raw source text.
        identifier: Document identifier used in error messages.

    Returns:
        Tuple of (FrontMatter, body markup text).

    Raises:
        MalformedFrontMatter: If the block is missing, unterminated, not a
            YAML mapping, or lacks a required field.
        InvalidDate: If the date field cannot be parsed.
    """
    block, body = split_front_matter(text, identifier)
    try:
        data = yaml.load(block, Loader=_FrontMatterLoader)
    except yaml.YAMLError as exc:
        raise MalformedFrontMatter(identifier, f"invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedFrontMatter(
            identifier, f"expected a mapping, got {type(data).__name__}"
        )

    missing = [key for key in REQUIRED_FIELDS if data.get(key) in (None, "")]
    if missing:
        raise MalformedFrontMatter(
            identifier, f"missing required field(s): {', '.join(missing)}"
        )

    draft = data.get("draft", False)
    if draft is None:
        draft = False
    if not isinstance(draft, bool):
        raise MalformedFrontMatter(identifier, f"draft must be a boolean, got {draft!r}")

    extra = {
        str(key): value
        for key, value in data.items()
        if key not in ("title", "date", "draft")
    }
    record = FrontMatter(
        title=str(data["title"]).strip(),
        date=parse_date(data["date"], identifier),
        draft=draft,
        extra=extra,
    )
    return record, body


def extract_excerpt(body: str, limit: int | None = None) -> str:
    """Extract the first prose paragraph from a Markdown body.

    Headings, fenced code, images, HTML comments and thematic breaks are
    skipped. Whitespace is collapsed and inline markup (links, code spans,
    emphasis, HTML tags) is reduced to its text.

    Args:
        body: Markdown body text.
        limit: Optional maximum length of the result.

    Returns:
        The paragraph as a single line, or an empty string.
    """
    in_fence = False
    paragraphs: list[str] = []
    current: list[str] = []
    for line in body.splitlines():
        stripped = line.strip()
        if stripped.startswith(("```", "~~~")):
            in_fence = not in_fence
            if current:
                paragraphs.append(" ".join(current))
                current = []
            continue
        if in_fence:
            continue
        if not stripped:
            if current:
                paragraphs.append(" ".join(current))
                current = []
            continue
        current.append(stripped)
    if current:
        paragraphs.append(" ".join(current))

    for para in paragraphs:
        if para.startswith(("#", "![", "<!--", "---", "***", "___")):
            continue
        cleaned = " ".join(para.split())
        for pattern, replacement in _INLINE_MARKDOWN:
            cleaned = pattern.sub(replacement, cleaned)
        return cleaned[:limit] if limit else cleaned
    return ""
