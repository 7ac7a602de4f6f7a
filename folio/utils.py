"""Utility functions for Folio.

String and path helpers shared by the content store, the CLI and the build
driver.

Key functions:
    slugify: Convert file names to URL slugs.
    titleize: Convert file names to human-readable titles.
    identifier_from_path: Derive a document identifier from its relative path.
    is_markdown: Check if a path is a Markdown file.
    is_internal_path: Check if a path lives under an underscore directory.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

DATE_PREFIX_RE = re.compile(r"^\d{4}-\d{2}-\d{2}-")


def strip_date_prefix(name: str) -> str:
    """Drop a leading ``YYYY-MM-DD-`` prefix from a file name stem.

    Examples:
        >>> strip_date_prefix("2021-01-31-handle-pattern")
        'handle-pattern'
    """
    stripped = DATE_PREFIX_RE.sub("", name, count=1)
    return stripped or name


def slugify(name: str) -> str:
    """Convert a file name stem to a slug, dropping any date prefix.

    Args:
        name: File name stem.

    Returns:
        URL-friendly slug, ``index`` when nothing usable remains.
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a file name to a human-readable title.

    Examples:
        >>> titleize("2024-01-15-backpack-mixins.md")
        'Backpack Mixins'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def identifier_from_path(rel: Path) -> str:
    """Derive a document identifier from a path relative to the site directory.

    Each directory segment and the file stem are slugified and joined with
    ``/``, so ``notes/2021-01-31-Handle Pattern.md`` becomes
    ``notes/handle-pattern``.
    """
    segments = [slugify(part) for part in rel.parent.parts if part not in ("", ".")]
    segments.append(slugify(rel.stem))
    return "/".join(segments)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file (case-insensitive ``.md``)."""
    return path.suffix.lower() == ".md"


def is_internal_path(path: Path) -> bool:
    """Check if any path component starts with an underscore.

    Internal paths hold layouts and partials rather than documents.
    """
    return any(part.startswith("_") for part in path.parts)


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # rmtree can leave read-only trees behind
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)
