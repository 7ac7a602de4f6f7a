from pathlib import Path

import pytest

from folio.build import (
    BuildError,
    BuildResult,
    _format_error_message,
    build_site,
    load_config,
    load_data,
)
from folio.errors import (
    DuplicateIdentifier,
    InvalidDate,
    MalformedMarkup,
    UnreadableDocument,
)


def create_project(tmp_path: Path) -> Path:
    project = tmp_path
    site = project / "site"
    (site / "notes").mkdir(parents=True)
    (project / "data").mkdir()
    (project / "static" / "css").mkdir(parents=True)

    (project / "folio.yaml").write_text("output_dir: output\n", encoding="utf-8")
    (project / "data" / "site.yaml").write_text(
        "title: Essays\nurl: https://blog.example\n", encoding="utf-8"
    )
    (project / "data" / "nav.yaml").write_text(
        "links:\n  - /about/\n", encoding="utf-8"
    )
    (site / "2021-01-31-handle-pattern.md").write_text(
        '---\ntitle: "The handle pattern"\ndate: 2021-01-31\n---\n'
        "# Handles\n\nSee [modules](/notes/module-systems/).\n",
        encoding="utf-8",
    )
    (site / "notes" / "module-systems.md").write_text(
        "---\ntitle: Module systems\ndate: 2020-06-01\ntags: [ml]\n---\n"
        "Backpack and friends.\n",
        encoding="utf-8",
    )
    (site / "unfinished.md").write_text(
        "---\ntitle: Unfinished\ndate: 2022-01-01\ndraft: true\n---\nLater.\n",
        encoding="utf-8",
    )
    (project / "static" / "css" / "style.css").write_text(
        "body { margin: 0; }", encoding="utf-8"
    )
    return project


def test_build_writes_pages_index_and_feeds(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project)
    output = project / "output"

    assert isinstance(result, BuildResult)
    assert result.output_dir == output
    assert [p.identifier for p in result.pages] == ["handle-pattern", "notes/module-systems"]
    assert [e.identifier for e in result.index] == ["handle-pattern", "notes/module-systems"]
    assert result.failures == []
    assert result.feeds == ["sitemap.xml", "rss.xml"]
    assert result.data["nav"] == {"links": ["/about/"]}

    page_html = (output / "handle-pattern" / "index.html").read_text(encoding="utf-8")
    assert '<h1 id="handles">Handles</h1>' in page_html
    assert (output / "notes" / "module-systems" / "index.html").exists()
    assert not (output / "unfinished").exists()

    index_html = (output / "index.html").read_text(encoding="utf-8")
    assert "The handle pattern" in index_html
    assert "Unfinished" not in index_html
    assert "<loc>https://blog.example/notes/module-systems/</loc>" in (
        output / "sitemap.xml"
    ).read_text(encoding="utf-8")
    assert (output / "static" / "css" / "style.css").read_text(encoding="utf-8") == (
        "body { margin: 0; }"
    )


def test_drafts_are_previewed_but_not_indexed(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project, include_drafts=True)
    output = project / "output"

    assert (output / "unfinished" / "index.html").exists()
    assert "unfinished" not in [e.identifier for e in result.index]
    assert "Unfinished" not in (output / "index.html").read_text(encoding="utf-8")
    assert "Unfinished" not in (output / "rss.xml").read_text(encoding="utf-8")


def test_include_drafts_from_config(tmp_path):
    project = create_project(tmp_path)
    (project / "folio.yaml").write_text("include_drafts: true\n", encoding="utf-8")
    result = build_site(project)
    assert "unfinished" in [p.identifier for p in result.pages]


def test_no_feeds_without_site_url(tmp_path):
    project = create_project(tmp_path)
    (project / "data" / "site.yaml").write_text("title: Essays\n", encoding="utf-8")
    result = build_site(project)
    assert result.feeds == []
    assert not (project / "output" / "rss.xml").exists()


def test_abort_policy_stops_on_first_failure(tmp_path):
    project = create_project(tmp_path)
    (project / "site" / "broken.md").write_text(
        "---\ntitle: Broken\ndate: 31/01/2021\n---\nBody\n", encoding="utf-8"
    )
    with pytest.raises(InvalidDate) as exc_info:
        build_site(project)
    assert exc_info.value.identifier == "broken"


def test_skip_policy_collects_failures(tmp_path):
    project = create_project(tmp_path)
    site = project / "site"
    (site / "broken.md").write_text(
        "---\ntitle: Broken\ndate: 31/01/2021\n---\nBody\n", encoding="utf-8"
    )
    (site / "unclosed.md").write_text(
        "---\ntitle: Unclosed\ndate: 2021-02-02\n---\n```python\nprint(1)\n",
        encoding="utf-8",
    )
    result = build_site(project, on_error="skip")

    assert sorted(f.identifier for f in result.failures) == ["broken", "unclosed"]
    assert any(isinstance(f, MalformedMarkup) for f in result.failures)
    assert [e.identifier for e in result.index] == ["handle-pattern", "notes/module-systems"]
    assert not (project / "output" / "unclosed").exists()


def test_undecodable_file_is_skipped_or_aborts(tmp_path):
    project = create_project(tmp_path)
    (project / "site" / "bad.md").write_bytes(
        b"---\ntitle: Bad\ndate: 2021-03-03\n---\n\xff\xfe\n"
    )

    with pytest.raises(UnreadableDocument) as exc_info:
        build_site(project)
    assert exc_info.value.identifier == "bad"

    result = build_site(project, on_error="skip")
    assert [f.identifier for f in result.failures] == ["bad"]
    assert [e.identifier for e in result.index] == ["handle-pattern", "notes/module-systems"]


def test_skip_policy_from_config(tmp_path):
    project = create_project(tmp_path)
    (project / "folio.yaml").write_text("on_error: skip\n", encoding="utf-8")
    (project / "site" / "broken.md").write_text("no front matter\n", encoding="utf-8")
    result = build_site(project)
    assert [f.identifier for f in result.failures] == ["broken"]


def test_duplicate_identifiers_fail_even_when_skipping(tmp_path):
    project = create_project(tmp_path)
    (project / "site" / "2020-01-01-handle-pattern.md").write_text(
        "---\ntitle: Again\ndate: 2020-01-01\n---\nBody\n", encoding="utf-8"
    )
    with pytest.raises(DuplicateIdentifier):
        build_site(project, on_error="skip")


def test_root_url_absolutizes_links(tmp_path):
    project = create_project(tmp_path)
    build_site(project, root_url="https://cdn.example/blog")
    page_html = (project / "output" / "handle-pattern" / "index.html").read_text(
        encoding="utf-8"
    )
    assert 'href="https://cdn.example/blog/notes/module-systems/"' in page_html
    index_html = (project / "output" / "index.html").read_text(encoding="utf-8")
    assert 'href="https://cdn.example/blog/handle-pattern/"' in index_html


def test_output_override_and_clean(tmp_path):
    project = create_project(tmp_path)
    target = tmp_path / "public"
    target.mkdir()
    (target / "stale.html").write_text("old", encoding="utf-8")

    build_site(project, output_dir_override=target)
    assert (target / "index.html").exists()
    assert not (target / "stale.html").exists()

    (target / "keep.txt").write_text("keep", encoding="utf-8")
    build_site(project, output_dir_override=target, clean_output=False)
    assert (target / "keep.txt").exists()


def test_layout_errors_raise_build_error(tmp_path):
    project = create_project(tmp_path)
    layouts = project / "site" / "_layouts"
    layouts.mkdir()
    (layouts / "page.html.jinja").write_text("{% if %}", encoding="utf-8")
    with pytest.raises(BuildError) as exc_info:
        build_site(project)
    assert "Template syntax error" in exc_info.value.message
    assert exc_info.value.source_path.suffix == ".md"


def test_missing_site_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_site(tmp_path)


def test_load_config_defaults_and_validation(tmp_path):
    config = load_config(tmp_path)
    assert config["output_dir"] == "output"
    assert config["on_error"] == "abort"

    (tmp_path / "folio.yaml").write_text("on_error: explode\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(tmp_path)


def test_build_rejects_unknown_policy(tmp_path):
    project = create_project(tmp_path)
    with pytest.raises(ValueError):
        build_site(project, on_error="ignore")


def test_load_data_merges_site_yaml(tmp_path):
    assert load_data(tmp_path) == {}
    project = create_project(tmp_path)
    (project / "data" / "list.yaml").write_text("- a\n- b\n", encoding="utf-8")
    data = load_data(project)
    assert data["title"] == "Essays"
    assert data["nav"]["links"] == ["/about/"]
    assert "list" not in data


def test_format_error_message():
    assert _format_error_message(TypeError("bad")) == "Type error: bad"
    assert _format_error_message(AttributeError("x")) == "Attribute error: x"
    assert _format_error_message(KeyError("k")) == "KeyError: 'k'"
