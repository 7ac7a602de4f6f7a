"""Feed generation for Folio.

Feeds are built from the site index, never from the raw page list, so
drafts cannot leak into them even when they are rendered for preview.

Classes:
    FeedGenerator: Abstract base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates an RSS 2.0 feed.
    FeedRegistry: Runs every registered generator.

Functions:
    create_default_feed_registry: Registry with the sitemap and RSS generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, time, timezone
from pathlib import Path
from typing import Any

from .collections import SiteIndex
from .html_utils import escape_html, join_root_url

RFC822_FORMAT = "%a, %d %b %Y %H:%M:%S +0000"


class FeedGenerator(ABC):
    """Base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename, e.g. ``rss.xml``."""
        ...

    @abstractmethod
    def generate(self, index: SiteIndex, data: dict[str, Any]) -> str | None:
        """Generate feed content.

        Args:
            index: Published pages, newest first.
            data: Site data; ``url`` is required for absolute links.

        Returns:
            Feed content, or None when the feed cannot be generated.
        """
        ...

    def write(self, output_dir: Path, index: SiteIndex, data: dict[str, Any]) -> bool:
        """Generate and write the feed.

        Returns:
            True if the feed was written, False if skipped.
        """
        content = self.generate(index, data)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


def _base_url(data: dict[str, Any]) -> str:
    return str(data.get("url", "") or "").rstrip("/")


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml for the index page and every published page."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, index: SiteIndex, data: dict[str, Any]) -> str | None:
        base_url = _base_url(data)
        if not base_url:
            return None

        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        if index.updated is not None:
            lines.append(
                f"  <url><loc>{escape_html(join_root_url(base_url, '/'))}</loc>"
                f"<lastmod>{index.updated.isoformat()}</lastmod></url>"
            )
        for entry in index:
            loc = escape_html(join_root_url(base_url, entry.url))
            lines.append(
                f"  <url><loc>{loc}</loc><lastmod>{entry.date.isoformat()}</lastmod></url>"
            )
        lines.append("</urlset>")
        return "\n".join(lines)


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of published pages, newest first.

    Attributes:
        limit: Maximum number of items, None for all.
    """

    def __init__(self, limit: int | None = 20):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, index: SiteIndex, data: dict[str, Any]) -> str | None:
        base_url = _base_url(data)
        if not base_url:
            return None
        title = escape_html(str(data.get("title", "Folio")))
        description = escape_html(str(data.get("description", "") or title))

        entries = index.latest(self.limit) if self.limit else list(index)
        items = []
        for entry in entries:
            link = escape_html(join_root_url(base_url, entry.url))
            published = datetime.combine(entry.date, time(), tzinfo=timezone.utc)
            summary = escape_html(entry.description or entry.title)
            items.append(
                f"<item><title>{escape_html(entry.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid><description>{summary}</description>"
                f"<pubDate>{published.strftime(RFC822_FORMAT)}</pubDate></item>"
            )

        build_date = datetime.now(timezone.utc).strftime(RFC822_FORMAT)
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{description}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


class FeedRegistry:
    """Registry of feed generators run at the end of a build."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, index: SiteIndex, data: dict[str, Any]
    ) -> list[str]:
        """Generate all registered feeds.

        Returns:
            Filenames that were written.
        """
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, index, data):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
