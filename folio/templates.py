"""Template rendering engine for Folio.

This module uses Jinja2 to wrap rendered pages and the site index in
layouts. Layouts are looked up in ``site/_layouts`` and ``site/_partials``
first; anything missing falls back to the built-in defaults below, so a
site with no templates at all still builds.

Key class:
- TemplateEngine: Renders pages and the index and provides template globals.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    DictLoader,
    Environment,
    FileSystemLoader,
    TemplateNotFound,
    select_autoescape,
)
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .collections import SiteIndex
from .content import DEFAULT_LAYOUT, Heading, RenderedPage
from .html_utils import escape_html, join_root_url

__all__ = ["DEFAULT_TEMPLATES", "TemplateEngine", "render_toc"]

DEFAULT_TEMPLATES = {
    "base.html.jinja": """<!doctype html>
<html lang="{{ data.language or 'en' }}">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{% block title %}{{ data.title or "Folio" }}{% endblock %}</title>
{% if data.url %}<link rel="alternate" type="application/rss+xml" title="{{ data.title }}" href="{{ url_for('/rss.xml') }}">{% endif %}
<style>{{ pygments_css() }}</style>
</head>
<body>
<header><a href="{{ url_for('/') }}">{{ data.title or "Folio" }}</a></header>
<main>
{% block content %}{% endblock %}
</main>
</body>
</html>
""",
    "page.html.jinja": """{% extends "base.html.jinja" %}
{% block title %}{{ current_page.title }} | {{ data.title or "Folio" }}{% endblock %}
{% block content %}
<article>
<header>
<p class="title">{{ current_page.title }}</p>
<time datetime="{{ current_page.date.isoformat() }}">{{ current_page.date.strftime('%d %B %Y') }}</time>
{% if current_page.draft %}<p class="draft">Draft</p>{% endif %}
</header>
{{ page_content }}
</article>
{% endblock %}
""",
    "index.html.jinja": """{% extends "base.html.jinja" %}
{% block content %}
{% for year, entries in index.by_year().items() %}
<section>
<h2>{{ year }}</h2>
<ul>
{% for entry in entries %}
<li><time datetime="{{ entry.date.isoformat() }}">{{ entry.date.isoformat() }}</time> <a href="{{ url_for(entry.url) }}">{{ entry.title }}</a></li>
{% endfor %}
</ul>
</section>
{% else %}
<p>Nothing published yet.</p>
{% endfor %}
{% endblock %}
""",
}


def render_toc(page: RenderedPage) -> Markup:
    """Render a page's headings as a nested ``<ul>`` table of contents.

    Returns:
        Markup-safe HTML, empty when the page has no headings.
    """
    if not page.toc:
        return Markup("")
    return _render_toc_from_headings(page.toc)


def _render_toc_from_headings(headings: list[Heading]) -> Markup:
    html_parts: list[str] = []
    level_stack: list[int] = []

    for heading in headings:
        level = heading.level

        while level_stack and level_stack[-1] > level:
            level_stack.pop()
            html_parts.append("</li></ul>")

        if level_stack and level_stack[-1] == level:
            html_parts.append("</li>")
        elif not level_stack or level > level_stack[-1]:  # pragma: no branch
            html_parts.append("<ul>")
            level_stack.append(level)

        # heading text is inline HTML already escaped by the Markdown renderer
        html_parts.append(
            f'<li><a href="#{escape_html(heading.id)}">{heading.text}</a>'
        )

    while level_stack:
        level_stack.pop()
        html_parts.append("</li></ul>")

    return Markup("".join(html_parts))


class TemplateEngine:
    """Jinja2 rendering for pages and the site index.

    Attributes:
        site_dir: Directory containing ``_layouts`` and ``_partials``.
        data: Global site data.
        root_url: Base URL applied by ``url_for``.
        env: Jinja2 environment.
        index: Site index exposed to every template.
    """

    def __init__(
        self,
        site_dir: Path,
        data: dict[str, Any],
        root_url: str | None = None,
    ):
        self.site_dir = site_dir
        self.data = data
        self.root_url = (
            root_url or (data.get("root_url") if isinstance(data, dict) else "")
        ) or ""
        self.env = Environment(
            loader=ChoiceLoader(
                [
                    FileSystemLoader([site_dir / "_layouts", site_dir / "_partials"]),
                    DictLoader(DEFAULT_TEMPLATES),
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "html.jinja"]),
        )
        self.index = SiteIndex([])
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["data"] = self.data
        self.env.globals["index"] = self.index
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.globals["render_toc"] = render_toc

    @staticmethod
    def _pygments_css() -> Markup:
        return Markup(HtmlFormatter().get_style_defs(".highlight"))

    def update_index(self, index: SiteIndex) -> None:
        self.index = index
        self.env.globals["index"] = index

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        base = self.root_url or (
            self.data.get("url", "") if isinstance(self.data, dict) else ""
        )
        if base:
            return join_root_url(base, path if path.startswith("/") else f"/{path}")
        return path if path.startswith("/") else f"/{path}"

    def render_page(self, page: RenderedPage) -> str:
        """Render a page inside its layout."""
        template = self._resolve_layout_template(page.layout)
        return template.render(
            current_page=page,
            page_content=Markup(page.content),
            index=self.index,
        )

    def render_index(self, index: SiteIndex | None = None) -> str:
        """Render the site index page."""
        template = self.env.get_template("index.html.jinja")
        return template.render(
            current_page=None, index=index if index is not None else self.index
        )

    def _resolve_layout_template(self, layout: str):
        candidates = [f"{layout}.html.jinja", f"{layout}.jinja", f"{layout}.html"]
        if layout != DEFAULT_LAYOUT:
            candidates.append(f"{DEFAULT_LAYOUT}.html.jinja")
        for name in candidates:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        return self.env.from_string("{{ page_content }}")
