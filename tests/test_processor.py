"""End-to-end tests running whole courses through the HTML handlers."""

from __future__ import annotations

import typing as typ

import pytest

from course_processor import cli
from course_processor.diagnostics import CourseProcessingError

if typ.TYPE_CHECKING:
    from .conftest import CourseTree

LAB_THEME = """\
theme:
  name: basics
  title: The Basics
  indexorder: 1
  maps:
    - content: "<p>Start with the introduction.</p>"
  modules:
    intro:
      title: Introduction
      level: green
      indexorder: 1
    lab:
      title: Lab Work
      level: yellow
      indexorder: 2
      filters:
        include: [lab]
"""

COURSE_FOR_LABS = """\
course:
  version: "1.0"
  courseinfo:
    - title: Lab Course
      splash: splash.png
      width: 400
      height: 300
      type: image
      content: "For the lab only."
      filters:
        include: [lab]
"""


def _lab_course(course_tree: CourseTree) -> CourseTree:
    course_tree.write_course()
    course_tree.write_theme("basics", LAB_THEME)
    course_tree.write_step("basics", "intro", "node1.html", "Welcome", "<p>Hi</p>")
    course_tree.write_step("basics", "lab", "node1.html", "Bench", "<p>Lab</p>")
    return course_tree


def test_pages_are_written(intro_advanced: CourseTree) -> None:
    """Steps, theme pages, course pages, glossary, and framework are emitted."""
    result = intro_advanced.process()
    out = intro_advanced.output
    for relative in (
        "basics/intro/step01.html",
        "basics/intro/step02.html",
        "basics/advanced/step01.html",
        "basics/advanced/step02.html",
        "basics/themeindex.html",
        "basics/index.html",
        "courseindex.html",
        "coursemap.html",
        "frontpage.html",
        "glossary/w.html",
        "glossary/index.html",
        "css/course.css",
    ):
        assert (out / relative).is_file(), relative
    assert out / "frontpage.html" in result.written
    assert not (out / "references.html").exists()
    assert result.warnings == intro_advanced.diagnostics.warnings
    assert intro_advanced.diagnostics.matching("'basics' has no map content")


def test_intermediate_files_are_removed(intro_advanced: CourseTree) -> None:
    """Only generated pages remain in module directories."""
    intro_advanced.process()
    out = intro_advanced.output
    assert sorted(path.name for path in (out / "basics" / "intro").iterdir()) == [
        "step01.html",
        "step02.html",
    ]
    assert not (out / "metadata.yaml").exists()
    assert not (out / "basics" / "metadata.yaml").exists()


def test_keep_intermediate_leaves_working_files(intro_advanced: CourseTree) -> None:
    """Intermediate steps and metadata survive when asked to."""
    intro_advanced.process(intro_advanced.config(keep_intermediate=True))
    intro_dir = intro_advanced.output / "basics" / "intro"
    assert (intro_dir / "node01.html").is_file()
    assert (intro_advanced.output / "basics" / "metadata.yaml").is_file()


def test_step_navigation(intro_advanced: CourseTree) -> None:
    """The first step has no previous link; later steps link backwards."""
    intro_advanced.process()
    first = intro_advanced.page("basics/intro/step01.html")
    assert first.select_one("nav.step-nav span.prev.disabled") is not None
    next_link = first.select_one("nav.step-nav a.next")
    assert next_link is not None
    assert next_link["href"] == "step02.html"
    position = first.select_one("span.position")
    assert position is not None
    assert position.get_text() == "Step 1 of 2"

    last = intro_advanced.page("basics/intro/step02.html")
    prev_link = last.select_one("nav.step-nav a.prev")
    assert prev_link is not None
    assert prev_link["href"] == "step01.html"
    assert last.select_one("nav.step-nav span.next.disabled") is not None


def test_links_resolve_across_modules(intro_advanced: CourseTree) -> None:
    """Forward and backward anchor links and glossary links resolve."""
    intro_advanced.process()
    page = intro_advanced.page("basics/advanced/step01.html")
    body = page.select_one("div.step-body")
    assert body is not None
    hrefs = {a.get_text(): a["href"] for a in body.find_all("a")}
    assert hrefs == {
        "the summary": "../../basics/advanced/step02.html#later",
        "the start": "../../basics/intro/step01.html#start",
        "widget": "../../glossary/w.html#widget",
    }
    assert not page.select(".error")

    target = intro_advanced.page("basics/advanced/step02.html")
    assert target.find("a", id="later") is not None


def test_relations_are_repaired_and_linked(intro_advanced: CourseTree) -> None:
    """``intro`` gains ``advanced`` as a follow-on module."""
    intro_advanced.process()
    intro = intro_advanced.page("basics/intro/step01.html")
    leads = intro.select("ul.leadsto a")
    assert [a["href"] for a in leads] == ["../../basics/advanced/step01.html"]

    advanced = intro_advanced.page("basics/advanced/step02.html")
    prereqs = advanced.select("ul.prerequisites a")
    assert [a.get_text() for a in prereqs] == ["Introduction"]

    menu = advanced.select("nav.module-menus ul.dropdown-module li")
    assert [li.get("class") for li in menu] == [["prereq"], ["current"]]


def test_glossary_page_lists_backlinks(intro_advanced: CourseTree) -> None:
    """Each use of a term links back to its step."""
    intro_advanced.process()
    page = intro_advanced.page("glossary/w.html")
    term = page.find("dt", id="widget")
    assert term is not None
    assert term.get_text(strip=True) == "Widget"
    definition = page.select_one("div.definition")
    assert definition is not None
    assert definition.get_text(strip=True) == "A small gadget."
    backlinks = [a["href"] for a in page.select("ol.backlinks a")]
    assert backlinks == [
        "../basics/intro/step01.html",
        "../basics/advanced/step01.html",
    ]
    active = page.select_one("a.bucket.active")
    assert active is not None
    assert active.get_text(strip=True) == "W"


def test_front_page_and_course_index(intro_advanced: CourseTree) -> None:
    """The front page renders its message as Markdown."""
    intro_advanced.process()
    front = intro_advanced.page("frontpage.html")
    strong = front.select_one("div.message strong")
    assert strong is not None
    assert strong.get_text() == "sample"
    splash = front.select_one("div.splash img")
    assert splash is not None
    assert splash["src"] == "media/splash.png"

    index = intro_advanced.page("courseindex.html")
    modules = [section["id"] for section in index.select("section.module")]
    assert modules == ["basics-intro", "basics-advanced"]
    version = index.select_one("span.version")
    assert version is not None
    assert version.get_text() == "Version 1.0"


def test_missing_version_leaves_destination_untouched(
    course_tree: CourseTree,
) -> None:
    """Metadata problems abort before the output directory is replaced."""
    course_tree.write_course(version=None)
    course_tree.output.mkdir()
    marker = course_tree.output / "marker.txt"
    marker.write_text("previous build", encoding="utf-8")
    with pytest.raises(CourseProcessingError, match="version"):
        course_tree.process()
    assert marker.read_text(encoding="utf-8") == "previous build"


def test_filtered_module_is_removed(course_tree: CourseTree) -> None:
    """Modules whose include filters are inactive disappear from the output."""
    _lab_course(course_tree)
    course_tree.process()
    assert not (course_tree.output / "basics" / "lab").exists()
    index = course_tree.page("basics/themeindex.html")
    assert [section["id"] for section in index.select("section.module")] == [
        "intro"
    ]
    assert not course_tree.diagnostics.matching("has no map content")


def test_active_filter_keeps_module(course_tree: CourseTree) -> None:
    """Activating the filter keeps the tagged module."""
    _lab_course(course_tree)
    course_tree.process(course_tree.config(filters=["lab"]))
    assert (course_tree.output / "basics" / "lab" / "step01.html").is_file()


def test_unused_media_is_removed(course_tree: CourseTree) -> None:
    """Media nobody references is deleted unless forced."""
    _lab_course(course_tree)
    course_tree.write_media("splash.png")
    course_tree.write_media("unused.png")
    course_tree.write_media("kept.png")
    course_tree.process(course_tree.config(force_media=["kept.png"]))
    media = course_tree.output / "media"
    assert sorted(path.name for path in media.iterdir()) == ["kept.png", "splash.png"]


def test_media_with_awkward_names_is_kept(course_tree: CourseTree) -> None:
    """Media names with spaces or ampersands survive the cleanup."""
    _lab_course(course_tree)
    course_tree.write_step(
        "basics",
        "intro",
        "node2.html",
        "Figures",
        '<p>[img name="my diagram.png" /][img name="a&amp;b.png" /]</p>',
    )
    for name in ("splash.png", "my diagram.png", "a&b.png", "my"):
        course_tree.write_media(name)
    course_tree.process()

    media = course_tree.output / "media"
    assert sorted(path.name for path in media.iterdir()) == [
        "a&b.png",
        "my diagram.png",
        "splash.png",
    ]
    images = course_tree.page("basics/intro/step02.html").select("div.step-body img")
    assert [img["src"] for img in images] == [
        "../../media/my diagram.png",
        "../../media/a&b.png",
    ]


def test_glossary_term_with_ampersand(course_tree: CourseTree) -> None:
    """Character references in a term are decoded once, not shown literally."""
    _lab_course(course_tree)
    course_tree.write_step(
        "basics",
        "intro",
        "node2.html",
        "Funding",
        '<p>[glossary term="R&amp;D"]Research and development.[/glossary] '
        '[img name="splash.png" alt="Q &amp; A" /]</p>',
    )
    course_tree.process()

    body = course_tree.page("basics/intro/step02.html").select_one("div.step-body")
    assert body is not None
    link = body.select_one("a.glossary")
    assert link is not None
    assert link.get_text() == "R&D"
    assert link["href"] == "../../glossary/r.html#rd"
    image = body.select_one("img")
    assert image is not None
    assert image["alt"] == "Q & A"

    entry = course_tree.page("glossary/r.html").find("dt", id="rd")
    assert entry is not None
    assert entry.get_text(strip=True) == "R&D"


def test_too_many_steps_is_fatal(course_tree: CourseTree) -> None:
    """A module may hold at most 99 steps."""
    _lab_course(course_tree)
    for number in range(2, 101):
        course_tree.write_step(
            "basics", "intro", f"node{number}.html", f"Step {number}", "<p>x</p>"
        )
    with pytest.raises(CourseProcessingError, match="Step count limit exceeded"):
        course_tree.process()


def test_duplicate_step_numbers_are_fatal(course_tree: CourseTree) -> None:
    """Two source files with the same number cannot both become a step."""
    _lab_course(course_tree)
    course_tree.write_step("basics", "intro", "page1.html", "Again", "<p>y</p>")
    with pytest.raises(CourseProcessingError, match="share the same step number"):
        course_tree.process()


def test_destination_inside_source_is_fatal(course_tree: CourseTree) -> None:
    """The output may not be written into the tree being processed."""
    _lab_course(course_tree)
    course_tree.output = course_tree.source / "build"
    with pytest.raises(CourseProcessingError, match="must not be inside"):
        course_tree.process()


def test_missing_template_directory_is_fatal(course_tree: CourseTree) -> None:
    """A configured template override directory must exist."""
    _lab_course(course_tree)
    course_tree.output.mkdir()
    marker = course_tree.output / "marker.txt"
    marker.write_text("previous build", encoding="utf-8")
    config = course_tree.config(templates_dir=course_tree.source.parent / "nope")
    with pytest.raises(CourseProcessingError, match="Template directory"):
        course_tree.process(config)
    assert marker.read_text(encoding="utf-8") == "previous build"


def test_filtered_out_courseinfo_is_fatal_before_output(
    course_tree: CourseTree,
) -> None:
    """A front page hidden by the active filters aborts before any copying."""
    _lab_course(course_tree)
    (course_tree.source / "metadata.yaml").write_text(
        COURSE_FOR_LABS, encoding="utf-8"
    )
    course_tree.output.mkdir()
    marker = course_tree.output / "marker.txt"
    marker.write_text("previous build", encoding="utf-8")
    with pytest.raises(CourseProcessingError, match="No courseinfo block"):
        course_tree.process()
    assert sorted(path.name for path in course_tree.output.iterdir()) == [
        "marker.txt"
    ]

    course_tree.process(course_tree.config(filters=["lab"]))
    assert (course_tree.output / "frontpage.html").is_file()


def test_template_override_replaces_page(course_tree: CourseTree) -> None:
    """Templates in the override directory win over the packaged ones."""
    _lab_course(course_tree)
    skins = course_tree.source.parent / "skins"
    skins.mkdir()
    (skins / "frontpage.jinja").write_text(
        "<p class=\"custom\">{{ course_title }}</p>\n", encoding="utf-8"
    )
    course_tree.process(course_tree.config(templates_dir=skins))
    custom = course_tree.page("frontpage.html").select_one("p.custom")
    assert custom is not None
    assert custom.get_text() == "Sample Course"
    assert (course_tree.output / "css" / "course.css").is_file()


def test_cli_lists_handlers(capsys: pytest.CaptureFixture[str]) -> None:
    cli.handlers()
    assert capsys.readouterr().out.splitlines() == [
        "input html: HTML input processor",
        "output html: HTML output processor",
    ]


def test_cli_process_reports_written_pages(
    intro_advanced: CourseTree, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.process(intro_advanced.source, intro_advanced.output)
    lines = capsys.readouterr().out.splitlines()
    assert any(line.endswith("frontpage.html") for line in lines)
    assert all(line.startswith("wrote ") for line in lines[:-1])
    assert lines[-1].endswith("warnings")


def test_cli_process_exits_on_fatal_error(course_tree: CourseTree) -> None:
    course_tree.write_course(version=None)
    with pytest.raises(SystemExit) as excinfo:
        cli.process(course_tree.source, course_tree.output)
    assert excinfo.value.code == 1
