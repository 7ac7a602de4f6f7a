"""Content model and store for Folio.

This module holds the dataclasses that flow through a build and the
file-backed store that discovers and parses source documents.

Key classes:
- Heading: A heading collected while rendering, for the table of contents.
- Document: A parsed source document (front-matter plus Markdown body).
- RenderedPage: A document rendered to HTML.
- PageSummary: The slice of a RenderedPage shown in the site index.
- ContentStore: Discovers ``*.md`` files under a site directory and loads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from .errors import DocumentError, DuplicateIdentifier, UnreadableDocument
from .extractors import parse_front_matter
from .utils import identifier_from_path, is_internal_path, is_markdown

DEFAULT_LAYOUT = "page"


@dataclass(frozen=True)
class Heading:
    """A heading extracted while rendering, used for TOC generation.

    Attributes:
        id: Anchor id for the heading.
        text: Heading text as rendered inline HTML.
        level: Heading level (1-6).
    """

    id: str
    text: str
    level: int


def _normalize_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        return ()
    seen: list[str] = []
    for item in items:
        tag = item.strip()
        if tag and tag not in seen:
            seen.append(tag)
    return tuple(seen)


@dataclass(frozen=True)
class Document:
    """A parsed source document.

    Attributes:
        identifier: Path-derived slug, unique across the store.
        title: Document title from front-matter.
        date: Publication date from front-matter.
        draft: Whether the document is excluded from published listings.
        body: Markdown body text.
        path: Source file, or None for documents built from a string.
        extra: Front-matter extension fields.
    """

    identifier: str
    title: str
    date: date
    draft: bool
    body: str
    path: Path | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_source(
        cls, identifier: str, text: str, path: Path | None = None
    ) -> Document:
        """Parse raw source text into a Document.

        Raises:
            MalformedFrontMatter: If the front-matter block is unusable.
            InvalidDate: If the date field cannot be parsed.
        """
        front_matter, body = parse_front_matter(text, identifier)
        return cls(
            identifier=identifier,
            title=front_matter.title,
            date=front_matter.date,
            draft=front_matter.draft,
            body=body,
            path=path,
            extra=dict(front_matter.extra),
        )

    @property
    def url(self) -> str:
        return f"/{self.identifier}/"

    @property
    def tags(self) -> tuple[str, ...]:
        return _normalize_tags(self.extra.get("tags"))

    @property
    def layout(self) -> str:
        layout = self.extra.get("layout")
        return str(layout) if layout else DEFAULT_LAYOUT


@dataclass(frozen=True)
class RenderedPage:
    """A document rendered to HTML.

    Attributes:
        identifier: Shared with the source Document.
        title: Page title.
        date: Publication date.
        draft: Draft flag carried from the Document.
        content: Rendered HTML body.
        toc: Headings found while rendering.
        description: Short description for listings and feeds.
        tags: Tags from the ``tags`` extension field.
        layout: Layout template name.
        path: Source file, if any.
    """

    identifier: str
    title: str
    date: date
    draft: bool
    content: str
    toc: list[Heading] = field(default_factory=list)
    description: str = ""
    tags: tuple[str, ...] = ()
    layout: str = DEFAULT_LAYOUT
    path: Path | None = None

    @property
    def url(self) -> str:
        return f"/{self.identifier}/"

    def summary(self) -> PageSummary:
        return PageSummary(
            identifier=self.identifier,
            title=self.title,
            date=self.date,
            url=self.url,
            description=self.description,
            tags=self.tags,
        )


@dataclass(frozen=True)
class PageSummary:
    """Entry of the site index."""

    identifier: str
    title: str
    date: date
    url: str
    description: str = ""
    tags: tuple[str, ...] = ()


def check_unique(documents: list[Document]) -> None:
    """Raise DuplicateIdentifier if two documents share an identifier."""
    seen: dict[str, Document] = {}
    for document in documents:
        previous = seen.get(document.identifier)
        if previous is not None:
            raise DuplicateIdentifier(
                document.identifier, [previous.path, document.path]
            )
        seen[document.identifier] = document


class ContentStore:
    """Discovers and loads source documents from a site directory.

    Files are Markdown (``*.md``). Anything under a path segment starting
    with ``_`` (layouts, partials) is not a document.

    Attributes:
        site_dir: Directory containing the documents.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir

    def iter_files(self) -> list[Path]:
        """Return all document paths, sorted for deterministic builds."""
        files: list[Path] = []
        for path in self.site_dir.rglob("*"):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            if is_internal_path(rel):
                continue
            if is_markdown(path):
                files.append(path)
        return sorted(files)

    def identifier_for(self, path: Path) -> str:
        return identifier_from_path(path.relative_to(self.site_dir))

    def load_document(self, path: Path) -> Document:
        """Read and parse a single source file.

        Raises:
            MalformedFrontMatter: If the front-matter block is unusable.
            InvalidDate: If the date field cannot be parsed.
            UnreadableDocument: If the file cannot be read as UTF-8.
        """
        identifier = self.identifier_for(path)
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise UnreadableDocument(
                identifier, f"not valid UTF-8 (byte {exc.start})"
            ) from exc
        except OSError as exc:
            raise UnreadableDocument(identifier, exc.strerror or str(exc)) from exc
        return Document.from_source(identifier, text, path=path)

    def load(self) -> list[Document]:
        """Load every document in the store.

        Raises:
            DocumentError: On the first document that fails to parse.
            DuplicateIdentifier: If two files map to the same identifier.
        """
        documents = [self.load_document(path) for path in self.iter_files()]
        check_unique(documents)
        return documents


__all__ = [
    "ContentStore",
    "Document",
    "DocumentError",
    "Heading",
    "PageSummary",
    "RenderedPage",
    "check_unique",
]
