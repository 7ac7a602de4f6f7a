"""Folio static blog generator.

Folio turns a directory of dated, draft-flagged Markdown essays with YAML
front-matter into a static site: one HTML page per published essay plus a
date-ordered index, RSS feed and sitemap.

The pipeline is Parser (``extractors``) -> Renderer (``renderers``) ->
Site Assembler (``assembler``), driven by ``build`` and exposed through the
``folio`` command.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
