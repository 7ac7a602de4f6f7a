from datetime import date

from folio.collections import SiteIndex
from folio.content import Heading, RenderedPage
from folio.templates import TemplateEngine, render_toc


def make_page(**overrides):
    values = dict(
        identifier="handle-pattern",
        title="The <Handle> pattern",
        date=date(2021, 1, 31),
        draft=False,
        content='<h1 id="hi">Hi</h1>\n<p>Body</p>',
    )
    values.update(overrides)
    return RenderedPage(**values)


def test_default_layout_wraps_page(tmp_path):
    engine = TemplateEngine(tmp_path, {"title": "Essays"})
    rendered = engine.render_page(make_page())
    assert '<h1 id="hi">Hi</h1>' in rendered
    assert "The &lt;Handle&gt; pattern | Essays" in rendered
    assert '<time datetime="2021-01-31">' in rendered
    assert 'class="draft"' not in rendered


def test_draft_marker(tmp_path):
    engine = TemplateEngine(tmp_path, {})
    assert 'class="draft"' in engine.render_page(make_page(draft=True))


def test_site_layout_overrides_default(tmp_path):
    layouts = tmp_path / "_layouts"
    layouts.mkdir()
    (layouts / "page.html.jinja").write_text(
        "<main>{{ current_page.title }}|{{ page_content }}</main>", encoding="utf-8"
    )
    (layouts / "essay.html.jinja").write_text(
        "<essay>{{ page_content }}</essay>", encoding="utf-8"
    )
    engine = TemplateEngine(tmp_path, {})
    assert engine.render_page(make_page(title="T")).startswith("<main>T|<h1")
    assert engine.render_page(make_page(layout="essay")).startswith("<essay>")
    # unknown layouts fall back to page
    assert engine.render_page(make_page(layout="missing")).startswith("<main>")


def test_index_lists_published_pages_by_year(tmp_path):
    engine = TemplateEngine(tmp_path, {"title": "Essays"})
    engine.update_index(
        SiteIndex(
            [
                make_page(),
                make_page(identifier="modules", title="Modules", date=date(2020, 6, 1)),
                make_page(identifier="wip", title="WIP", draft=True),
            ]
        )
    )
    rendered = engine.render_index()
    assert "<h2>2021</h2>" in rendered
    assert "<h2>2020</h2>" in rendered
    assert '<a href="/handle-pattern/">' in rendered
    assert '<a href="/modules/">Modules</a>' in rendered
    assert "WIP" not in rendered
    assert rendered.index("handle-pattern") < rendered.index("/modules/")


def test_empty_index_message(tmp_path):
    rendered = TemplateEngine(tmp_path, {}).render_index()
    assert "Nothing published yet." in rendered


def test_url_for_prefers_root_url(tmp_path):
    engine = TemplateEngine(tmp_path, {"url": "https://site.com"}, root_url="https://root.com")
    assert engine._url_for("/rss.xml") == "https://root.com/rss.xml"
    assert engine._url_for("posts/") == "https://root.com/posts/"
    assert engine._url_for("http://cdn.com/x.css") == "http://cdn.com/x.css"
    assert TemplateEngine(tmp_path, {})._url_for("about/") == "/about/"


def test_render_toc_nests_levels():
    page = make_page(
        toc=[
            Heading(id="intro", text="Intro", level=2),
            Heading(id="details", text="The <code>Handle</code> &amp; more", level=3),
            Heading(id="end", text="End", level=2),
        ]
    )
    assert str(render_toc(page)) == (
        '<ul><li><a href="#intro">Intro</a>'
        '<ul><li><a href="#details">The <code>Handle</code> &amp; more</a></li></ul>'
        '</li><li><a href="#end">End</a></li></ul>'
    )
    assert str(render_toc(make_page())) == ""


def test_toc_available_in_layouts(tmp_path):
    layouts = tmp_path / "_layouts"
    layouts.mkdir()
    (layouts / "page.html.jinja").write_text(
        "{{ render_toc(current_page) }}", encoding="utf-8"
    )
    engine = TemplateEngine(tmp_path, {})
    page = make_page(toc=[Heading(id="hi", text="Hi", level=1)])
    assert engine.render_page(page) == '<ul><li><a href="#hi">Hi</a></li></ul>'


def test_engine_satisfies_templater_protocol(tmp_path):
    from folio.protocols import PageTemplater

    assert isinstance(TemplateEngine(tmp_path, {}), PageTemplater)


def test_toc_keeps_inline_markup_from_headings():
    from folio.renderers import MarkdownRenderer

    content, toc = MarkdownRenderer().render("## The `Handle` type\n\n## Cats & dogs\n")
    rendered = str(render_toc(make_page(content=content, toc=toc)))
    assert '<a href="#the-handle-type">The <code>Handle</code> type</a>' in rendered
    assert "Cats &amp; dogs" in rendered
    assert "&lt;code&gt;" not in rendered
