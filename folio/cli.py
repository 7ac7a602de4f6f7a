"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- new: Scaffold a new Folio project.
- build: Build the site into the output directory.
- post: Create a new draft post interactively.
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from datetime import date
from pathlib import Path

import click
import questionary

from . import __version__
from .errors import DocumentError, DuplicateIdentifier
from .templates import DEFAULT_TEMPLATES
from .utils import slugify

SAMPLE_POST = """---
title: Hello, world
date: {today}
draft: false
tags: [meta]
---

# Hello, world

This is the first essay on a fresh Folio site.

```python
print("hello")
```
"""


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Log every page as it is built")
def cli(verbose: bool):
    """Folio static blog generator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Folio project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Folio site created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Render drafts for preview")
@click.option(
    "--keep-going",
    is_flag=True,
    help="Skip documents that fail to parse or render instead of aborting",
)
@click.option("--root-url", default=None, help="Absolute base URL for links")
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output directory (overrides folio.yaml)",
)
def build(drafts: bool, keep_going: bool, root_url: str | None, output_dir: Path | None):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import BuildError, build_site

    try:
        result = build_site(
            project_root,
            include_drafts=True if drafts else None,
            root_url=root_url,
            output_dir_override=output_dir,
            on_error="skip" if keep_going else None,
        )
    except DocumentError as exc:
        _fail(f"Document: {exc.identifier}", exc.message)
    except BuildError as exc:
        _fail(f"File: {_relative(exc.source_path, project_root)}", exc.message)
    except (DuplicateIdentifier, FileNotFoundError, ValueError) as exc:
        _fail("Project", str(exc))

    for failure in result.failures:
        click.echo(
            click.style(f"Skipped {failure.identifier}: {failure.message}", fg="yellow"),
            err=True,
        )
    click.echo(
        f"Built {len(result.pages)} pages ({len(result.index)} indexed) "
        f"into {result.output_dir}"
    )


@cli.command()
def post():
    """Create a new draft post interactively."""
    site_dir = Path.cwd() / "site"
    if not site_dir.exists():
        raise click.ClickException(
            "No site/ directory found. Run this command from a Folio project root."
        )

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = questionary.text(
        "Slug:", default=slugify(title), style=_questionary_style()
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slugify(slug)

    draft = questionary.confirm(
        "Start as a draft?", default=True, style=_questionary_style()
    ).ask()
    if draft is None:
        raise click.Abort()

    target = site_dir / f"{slug}.md"
    existing = [p for p in site_dir.glob("*.md") if slugify(p.stem) == slug]
    if existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[0].name}"
        )

    target.write_text(_post_template(title, date.today(), draft), encoding="utf-8")
    click.echo(f"Created {target.relative_to(Path.cwd())}")


def _post_template(title: str, day: date, draft: bool) -> str:
    escaped = title.replace('"', '\\"')
    return (
        "---\n"
        f'title: "{escaped}"\n'
        f"date: {day.isoformat()}\n"
        f"draft: {'true' if draft else 'false'}\n"
        "---\n\n"
    )


def _fail(location: str, message: str):
    click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
    click.echo(click.style(f"  {location}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)
    raise SystemExit(1)


def _relative(path: Path, root: Path) -> Path:
    try:
        return path.relative_to(root)
    except ValueError:
        return path


def _questionary_style():
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Create the directory structure and files for a new Folio project."""
    layouts = root / "site" / "_layouts"
    layouts.mkdir(parents=True)
    for name, source in DEFAULT_TEMPLATES.items():
        (layouts / name).write_text(source, encoding="utf-8")
    (root / "data").mkdir()
    (root / "static").mkdir()

    (root / "folio.yaml").write_text(
        "output_dir: output\nroot_url: ''\non_error: abort\n", encoding="utf-8"
    )
    (root / "data" / "site.yaml").write_text(
        f"title: {root.name}\nurl: ''\ndescription: ''\n", encoding="utf-8"
    )
    (root / "site" / "hello-world.md").write_text(
        SAMPLE_POST.format(today=date.today().isoformat()), encoding="utf-8"
    )
    (root / ".gitignore").write_text("output/\n", encoding="utf-8")

    _try_git_init(root)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("FOLIO_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run(
            [git_bin, "init"],
            cwd=root,
            check=True,
            capture_output=True,
        )
    except (OSError, subprocess.CalledProcessError):
        # Non-fatal: user can run git init manually
        pass
