"""Markdown rendering for Folio.

Bodies are rendered to HTML with mistune. Fenced code blocks are passed
through verbatim (escaped, never interpreted); a language tag only selects a
Pygments lexer for cosmetic highlighting.

Before rendering, the body is scanned for constructs that mistune would
silently run to the end of the document (an unterminated code fence, an
unterminated HTML comment). Those fail with MalformedMarkup instead of
producing a half-swallowed page.

Key classes:
- MarkdownRenderer: Renders a Markdown body to (html, headings).

Key functions:
- check_markup: Raise MalformedMarkup for unterminated constructs.
"""

from __future__ import annotations

import re

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .content import Heading
from .errors import MalformedMarkup
from .html_utils import escape_html

FENCE_OPEN_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})(?P<info>.*)$")
HTML_COMMENT_OPEN_RE = re.compile(r"^ {0,3}<!--")
BLOCKQUOTE_RE = re.compile(r"^ {0,3}> ?")
LIST_ITEM_RE = re.compile(r"^ {0,3}(?:[-+*]|\d{1,9}[.)]) {1,4}(?=\S)")

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly anchor id from heading text."""
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-") or "section"


def _closes_fence(line: str, char: str, length: int) -> bool:
    stripped = line.rstrip("\r\n")
    match = re.match(r"^ {0,3}(" + re.escape(char) + r"+)[ \t]*$", stripped)
    return bool(match) and len(match.group(1)) >= length


def _open_containers(line: str) -> tuple[list[str | int], str]:
    """Peel block quote and list item markers off the start of a line.

    Returns:
        The containers opened on this line (``">"`` for a block quote, the
        content indent for a list item) and the text left inside them.
    """
    containers: list[str | int] = []
    while True:
        quote = BLOCKQUOTE_RE.match(line)
        if quote:
            containers.append(">")
            line = line[quote.end():]
            continue
        item = LIST_ITEM_RE.match(line)
        if item:
            containers.append(item.end())
            line = line[item.end():]
            continue
        return containers, line


def _continue_containers(line: str, containers: list[str | int]) -> str | None:
    """Strip the prefixes of open containers, None once one of them ends."""
    for container in containers:
        if container == ">":
            quote = BLOCKQUOTE_RE.match(line)
            if quote is None:
                return None
            line = line[quote.end():]
        elif not line.strip():
            return ""
        elif line.startswith(" " * container):
            line = line[container:]
        else:
            return None
    return line


def check_markup(body: str, identifier: str = "<string>") -> None:
    """Scan a Markdown body for unterminated block constructs.

    Fences opened inside a list item or block quote must close inside the
    same container.

    Args:
        body: Markdown body text.
        identifier: Document identifier used in error messages.

    Raises:
        MalformedMarkup: If a fenced code block or HTML comment never closes.
    """
    lines = body.splitlines()
    index = 0
    while index < len(lines):
        containers, line = _open_containers(lines[index])
        fence = FENCE_OPEN_RE.match(line)
        # Backtick fences cannot carry backticks in their info string
        if fence and not (
            fence.group("fence")[0] == "`" and "`" in fence.group("info")
        ):
            marker = fence.group("fence")
            opened_at = index + 1
            index += 1
            while True:
                inner = (
                    _continue_containers(lines[index], containers)
                    if index < len(lines)
                    else None
                )
                if inner is None:
                    raise MalformedMarkup(identifier, "fenced code block", opened_at)
                index += 1
                if _closes_fence(inner, marker[0], len(marker)):
                    break
            continue
        if HTML_COMMENT_OPEN_RE.match(line):
            opened_at = index + 1
            rest = line.split("<!--", 1)[1]
            while "-->" not in rest:
                index += 1
                if index >= len(lines):
                    raise MalformedMarkup(identifier, "HTML comment", opened_at)
                rest = lines[index]
        index += 1


class _HighlightRenderer(mistune.HTMLRenderer):
    """HTML renderer with heading anchors and verbatim code blocks.

    Attributes:
        headings: Headings seen while rendering, in document order.
    """

    def __init__(self, highlight_code: bool = True):
        super().__init__(escape=False)
        self.highlight_code = highlight_code
        self.headings: list[Heading] = []
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)

        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id

        self.headings.append(Heading(id=heading_id, text=text, level=level))
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block, highlighted when the language is known.

        The code text is never stripped or rewrapped; only HTML-significant
        characters are escaped.
        """
        lang = info.split(None, 1)[0] if info and info.strip() else ""
        if lang and self.highlight_code:
            try:
                lexer = get_lexer_by_name(lang, stripnl=False, ensurenl=False)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape_html(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape_html(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown bodies to HTML.

    Attributes:
        highlight: Whether fenced code with a known language is highlighted.
    """

    def __init__(self, highlight: bool = True):
        self.highlight = highlight

    def render(
        self, body: str, identifier: str = "<string>"
    ) -> tuple[str, list[Heading]]:
        """Render a Markdown body.

        Args:
            body: Markdown source.
            identifier: Document identifier used in error messages.

        Returns:
            Tuple of (rendered HTML, headings for the TOC).

        Raises:
            MalformedMarkup: If the body contains an unterminated construct.
        """
        check_markup(body, identifier)
        renderer = _HighlightRenderer(highlight_code=self.highlight)
        markdown = mistune.create_markdown(renderer=renderer, plugins=MARKDOWN_PLUGINS)
        html = markdown(body)
        return html, renderer.headings
