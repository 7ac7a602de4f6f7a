"""Protocol definitions for Folio.

The assembler depends on these interfaces rather than on concrete classes,
so alternative renderers (or test doubles) can be swapped in.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .collections import SiteIndex
    from .content import Heading, RenderedPage


@runtime_checkable
class MarkupRenderer(Protocol):
    """Protocol for turning a document body into HTML."""

    @abstractmethod
    def render(
        self, body: str, identifier: str = "<string>"
    ) -> tuple[str, list[Heading]]:
        """Render a body.

        Args:
            body: Markup source text.
            identifier: Document identifier used in error messages.

        Returns:
            Tuple of (rendered HTML, headings for the TOC).

        Raises:
            MalformedMarkup: If the body cannot be rendered without guessing.
        """
        ...


@runtime_checkable
class PageTemplater(Protocol):
    """Protocol for the presentation layer that wraps pages in layouts."""

    @abstractmethod
    def render_page(self, page: RenderedPage) -> str:
        """Render a page with its layout."""
        ...

    @abstractmethod
    def render_index(self, index: SiteIndex) -> str:
        """Render the site index."""
        ...
