"""Site building for Folio.

This module drives a build: it loads configuration and site data, parses
every document in the content store, hands them to the assembler, wraps the
results in layouts and writes the artifacts.

Per-document failures (bad front-matter, bad dates, malformed markup) are
handled according to the ``on_error`` policy:
- ``abort``: the first failure propagates and the build stops.
- ``skip``: the failure is logged, recorded in ``BuildResult.failures`` and
  the document is left out.

Key functions:
- build_site: Build the entire site.
- load_config: Load configuration from folio.yaml.
- load_data: Load template data from YAML files in the data directory.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .assembler import Site, SiteAssembler
from .collections import SiteIndex
from .content import ContentStore, Document, RenderedPage
from .errors import DocumentError, FolioError
from .feeds import FeedRegistry, create_default_feed_registry
from .html_utils import absolutize_html_urls
from .protocols import PageTemplater
from .renderers import MarkdownRenderer
from .templates import TemplateEngine
from .utils import ensure_clean_dir

logger = logging.getLogger(__name__)

CONFIG_FILE = "folio.yaml"
ON_ERROR_POLICIES = ("abort", "skip")

DEFAULT_CONFIG = {
    "output_dir": "output",
    "root_url": "",
    "include_drafts": False,
    "highlight": True,
    "on_error": "abort",
}


class BuildError(FolioError):
    """Error while wrapping a page in its layout.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        site: Assembled index and rendered pages.
        output_dir: Directory the site was written to.
        data: Global site data.
        failures: Document errors skipped under the ``skip`` policy.
        feeds: Feed files written.
    """

    site: Site
    output_dir: Path
    data: dict[str, Any]
    failures: list[DocumentError] = field(default_factory=list)
    feeds: list[str] = field(default_factory=list)

    @property
    def pages(self) -> list[RenderedPage]:
        return self.site.pages

    @property
    def index(self) -> SiteIndex:
        return self.site.index


def load_config(project_root: Path) -> dict[str, Any]:
    """Load configuration from folio.yaml over DEFAULT_CONFIG.

    Raises:
        ValueError: If ``on_error`` names an unknown policy.
    """
    config_path = project_root / CONFIG_FILE
    config = DEFAULT_CONFIG.copy()
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)
    if config["on_error"] not in ON_ERROR_POLICIES:
        raise ValueError(
            f"on_error must be one of {', '.join(ON_ERROR_POLICIES)}, "
            f"got {config['on_error']!r}"
        )
    return config


def load_data(project_root: Path) -> dict[str, Any]:
    """Load template data from ``data/*.yaml``.

    Keys from ``site.yaml`` land at the top level; every other file is
    exposed under its stem.
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        with open(path, encoding="utf-8") as f:
            payload = yaml.safe_load(f) or {}
        if not isinstance(payload, dict):
            continue
        if path.name == "site.yaml":
            data.update(payload)
        else:
            data[path.stem] = payload
    return data


def load_documents(
    store: ContentStore, failures: list[DocumentError] | None = None
) -> list[Document]:
    """Parse every file in the store.

    Args:
        store: Content store to read.
        failures: When given, parse errors are appended here and the file is
            skipped; otherwise the first error propagates.
    """
    documents: list[Document] = []
    for path in store.iter_files():
        try:
            documents.append(store.load_document(path))
        except DocumentError as exc:
            if failures is None:
                raise
            _record_failure(failures, exc)
    return documents


def _record_failure(failures: list[DocumentError], exc: DocumentError) -> None:
    logger.warning("Skipping %s: %s", exc.identifier, exc.message)
    failures.append(exc)


def build_site(
    project_root: Path,
    include_drafts: bool | None = None,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
    on_error: str | None = None,
    feed_registry: FeedRegistry | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Render drafts for preview (never indexed). Defaults
            to the ``include_drafts`` config value.
        root_url: Base URL to absolutize links with; overrides config.
        clean_output: Whether to wipe the output directory first.
        output_dir_override: Write here instead of the configured output_dir.
        on_error: ``abort`` or ``skip``; overrides config.
        feed_registry: Feed generators to run, defaults to sitemap and RSS.

    Returns:
        BuildResult with the assembled site and any skipped failures.

    Raises:
        FileNotFoundError: If the project has no ``site`` directory.
        DocumentError: On a document failure under the ``abort`` policy.
        DuplicateIdentifier: If two files map to the same identifier.
        BuildError: If a layout fails to render.
    """
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    if include_drafts is None:
        include_drafts = bool(config.get("include_drafts"))
    policy = on_error or config["on_error"]
    if policy not in ON_ERROR_POLICIES:
        raise ValueError(f"on_error must be one of {', '.join(ON_ERROR_POLICIES)}")

    site_dir = project_root / "site"
    if not site_dir.exists():
        raise FileNotFoundError(f"Expected site directory at {site_dir}")

    output_dir = output_dir_override or (
        project_root / config.get("output_dir", "output")
    )
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    data = load_data(project_root)
    resolved_root = str(config.get("root_url") or "")
    if resolved_root:
        data.setdefault("root_url", resolved_root)

    failures: list[DocumentError] = []
    collect = failures if policy == "skip" else None
    documents = load_documents(ContentStore(site_dir), collect)

    assembler = SiteAssembler(
        MarkdownRenderer(highlight=bool(config.get("highlight", True))),
        include_drafts=include_drafts,
    )
    site = assembler.assemble(
        documents,
        on_error=(lambda _doc, exc: _record_failure(failures, exc))
        if collect is not None
        else None,
    )

    engine = TemplateEngine(site_dir, data, root_url=resolved_root)
    engine.update_index(site.index)
    _write_site(engine, site, site_dir, output_dir, resolved_root)

    registry = feed_registry or create_default_feed_registry()
    feeds = registry.generate_all(output_dir, site.index, data)
    _copy_static(project_root / "static", output_dir / "static")

    logger.info(
        "Built %d pages (%d indexed, %d skipped) into %s",
        len(site.pages),
        len(site.index),
        len(failures),
        output_dir,
    )
    return BuildResult(
        site=site, output_dir=output_dir, data=data, failures=failures, feeds=feeds
    )


def _write_site(
    templater: PageTemplater,
    site: Site,
    site_dir: Path,
    output_dir: Path,
    root_url: str,
) -> None:
    """Wrap every page and the index in layouts and write them out."""
    for page in site.pages:
        source = page.path or site_dir / f"{page.identifier}.md"
        rendered = _render_or_raise(source, lambda page=page: templater.render_page(page))
        _write_artifact(output_dir, page.url, rendered, root_url)
        logger.debug("Wrote %s", page.url)

    index_source = site_dir / "_layouts" / "index.html.jinja"
    rendered_index = _render_or_raise(
        index_source, lambda: templater.render_index(site.index)
    )
    _write_artifact(output_dir, "/", rendered_index, root_url)


def _render_or_raise(source: Path, render) -> str:
    try:
        return render()
    except TemplateSyntaxError as exc:
        raise BuildError(
            source,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(source, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format a template exception into a user-friendly message."""
    error_type = type(exc).__name__
    error_msg = str(exc)

    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"

    return f"{error_type}: {error_msg}"


def _write_artifact(output_dir: Path, url: str, rendered: str, root_url: str) -> None:
    """Write rendered HTML to ``<output_dir>/<url>/index.html``."""
    if root_url:
        rendered = absolutize_html_urls(rendered, root_url)
    target_dir = output_dir / url.strip("/")
    target_dir.mkdir(parents=True, exist_ok=True)
    with open(target_dir / "index.html", "w", encoding="utf-8") as f:
        f.write(rendered)


def _copy_static(source: Path, target: Path) -> None:
    if not source.is_dir():
        return
    shutil.copytree(source, target, dirs_exist_ok=True)
