"""Site assembly for Folio.

The assembler takes the full set of parsed documents, renders each one and
produces the site index plus one rendered page per document that belongs
in the output.

Draft handling:
- Drafts never reach the index.
- With ``include_drafts=False`` drafts are not rendered at all.
- With ``include_drafts=True`` drafts are rendered into ``Site.pages`` so
  they can be previewed at their own URL, but stay out of the index.

Errors raised for a single document propagate to the caller unless an
``on_error`` callback is supplied; then the callback sees the document and
the error and the document is left out. Choosing between the two is the
build driver's job.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .collections import SiteIndex, index_sort_key
from .content import Document, RenderedPage, check_unique
from .errors import DocumentError
from .extractors import extract_excerpt
from .protocols import MarkupRenderer
from .renderers import MarkdownRenderer

logger = logging.getLogger(__name__)

DESCRIPTION_LIMIT = 200

ErrorHandler = Callable[[Document, DocumentError], None]


@dataclass
class Site:
    """Result of assembling a set of documents.

    Attributes:
        index: Published pages, newest first.
        pages: Every rendered page, in index order (drafts included when
            requested).
    """

    index: SiteIndex
    pages: list[RenderedPage]

    def page(self, identifier: str) -> RenderedPage | None:
        for page in self.pages:
            if page.identifier == identifier:
                return page
        return None


class SiteAssembler:
    """Renders documents and builds the site index.

    Attributes:
        renderer: Markup renderer used for document bodies.
        include_drafts: Whether drafts are rendered for preview.
    """

    def __init__(
        self,
        renderer: MarkupRenderer | None = None,
        include_drafts: bool = False,
    ):
        self.renderer = renderer or MarkdownRenderer()
        self.include_drafts = include_drafts

    def render(self, document: Document) -> RenderedPage:
        """Render a single document.

        Raises:
            MalformedMarkup: If the body contains an unterminated construct.
        """
        content, toc = self.renderer.render(document.body, document.identifier)
        description = document.extra.get("description") or extract_excerpt(
            document.body, limit=DESCRIPTION_LIMIT
        )
        return RenderedPage(
            identifier=document.identifier,
            title=document.title,
            date=document.date,
            draft=document.draft,
            content=content,
            toc=list(toc),
            description=str(description),
            tags=document.tags,
            layout=document.layout,
            path=document.path,
        )

    def assemble(
        self,
        documents: Iterable[Document],
        on_error: ErrorHandler | None = None,
    ) -> Site:
        """Render all documents and build the index.

        Args:
            documents: The full set of parsed documents.
            on_error: Optional callback for per-document errors. When given,
                a failing document is skipped instead of aborting.

        Returns:
            Site with the index and the rendered pages.

        Raises:
            DuplicateIdentifier: If two documents share an identifier.
            DocumentError: If a document fails and no on_error is given.
        """
        documents = list(documents)
        check_unique(documents)

        pages: list[RenderedPage] = []
        for document in documents:
            if document.draft and not self.include_drafts:
                logger.debug("Skipping draft %s", document.identifier)
                continue
            try:
                page = self.render(document)
            except DocumentError as exc:
                if on_error is None:
                    raise
                on_error(document, exc)
                continue
            logger.debug("Rendered %s", document.identifier)
            pages.append(page)

        pages.sort(key=index_sort_key)
        return Site(index=SiteIndex(pages), pages=pages)


def assemble_site(
    documents: Iterable[Document], include_drafts: bool = False
) -> Site:
    """Assemble documents with the default Markdown renderer."""
    return SiteAssembler(include_drafts=include_drafts).assemble(documents)
