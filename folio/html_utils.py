"""HTML string helpers for Folio.

Functions:
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
    absolutize_html_urls: Rewrite root-relative URLs in HTML to absolute ones.
"""

from __future__ import annotations

import re

_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)

# Left untouched by absolutize_html_urls
_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
    "data:",
)


def escape_html(text: str) -> str:
    """Escape ``&``, ``<``, ``>`` and ``"`` for inclusion in HTML or XML.

    Examples:
        >>> escape_html('Modules & "mixins" <in> Backpack')
        'Modules &amp; &quot;mixins&quot; &lt;in&gt; Backpack'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Join a root URL and a path without doubling the slash.

    Examples:
        >>> join_root_url('https://example.com/blog/', '/handle-pattern/')
        'https://example.com/blog/handle-pattern/'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative ``href``, ``src`` and ``action`` values.

    External URLs, fragments and ``mailto:``/``tel:``/``javascript:``/``data:``
    URLs are left as they are. Relative URLs without a leading slash are
    treated as root-relative.

    Args:
        html: HTML content to process.
        root_url: Base URL to prepend.

    Returns:
        HTML with absolute URLs, or the input unchanged when root_url is empty.
    """
    if not root_url:
        return html

    def repl(match: re.Match) -> str:
        url = match.group("url")
        if not url or url.startswith(_URL_SKIP_PREFIXES):
            return match.group(0)
        absolute = join_root_url(root_url, url)
        return f"{match.group('prefix')}{absolute}{match.group('suffix')}"

    return _URL_ATTR_RE.sub(repl, html)
