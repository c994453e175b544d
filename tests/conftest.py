"""Shared fixtures building throwaway course trees under ``tmp_path``.

Tests describe a course by writing ``metadata.yaml`` files and HTML step
sources through :class:`CourseTree`, process it with the real input and output
handlers, and parse the generated pages with BeautifulSoup.
"""

from __future__ import annotations

import textwrap
import typing as typ

import pytest
from bs4 import BeautifulSoup

from course_processor.config import OutputConfig, ProcessorConfig
from course_processor.diagnostics import Diagnostics
from course_processor.processor import CourseProcessor

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.processor import ProcessingResult

COURSE_METADATA = """\
course:
  version: "{version}"
  courseinfo:
    - title: Sample Course
      splash: splash.png
      width: 400
      height: 300
      type: image
      content: "Welcome to the **sample** course."
"""


def step_html(title: str, body: str) -> str:
    """Return a minimal HTML step source with ``title`` and ``body``."""
    return (
        f"<html><head><title>{title}</title></head>"
        f'<body><div id="content">{body}</div></body></html>\n'
    )


class CourseTree:
    """Builder for a course source directory and its processed output."""

    def __init__(self, root: Path) -> None:
        self.source = root / "src"
        self.output = root / "out"
        self.source.mkdir(parents=True, exist_ok=True)
        self.diagnostics = Diagnostics()
        self.result: ProcessingResult | None = None

    def write_course(self, *, version: str | None = "1.0", extra: str = "") -> None:
        """Write the course ``metadata.yaml``; ``version=None`` omits it."""
        text = COURSE_METADATA.format(version=version or "")
        if version is None:
            text = text.replace('  version: ""\n', "")
        (self.source / "metadata.yaml").write_text(
            text + textwrap.dedent(extra), encoding="utf-8"
        )

    def write_theme(self, name: str, metadata: str) -> Path:
        """Write a theme directory with the given ``metadata.yaml`` text."""
        theme_dir = self.source / name
        theme_dir.mkdir(parents=True, exist_ok=True)
        (theme_dir / "metadata.yaml").write_text(
            textwrap.dedent(metadata), encoding="utf-8"
        )
        return theme_dir

    def write_step(
        self, theme: str, module: str, filename: str, title: str, body: str
    ) -> Path:
        """Write one HTML step source file into ``theme/module``."""
        module_dir = self.source / theme / module
        module_dir.mkdir(parents=True, exist_ok=True)
        path = module_dir / filename
        path.write_text(step_html(title, body), encoding="utf-8")
        return path

    def write_media(self, name: str, data: bytes = b"media") -> Path:
        """Write a course-level media file."""
        path = self.source / "media" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def config(self, **output: typ.Any) -> ProcessorConfig:
        """Return a default processor config with ``output`` settings applied."""
        filters = output.pop("filters", [])
        reference_style = output.pop("reference_style", "ieee")
        return ProcessorConfig(
            filters=filters,
            reference_style=reference_style,
            output=OutputConfig(**output),
        )

    def process(self, config: ProcessorConfig | None = None) -> ProcessingResult:
        """Process the source tree into the output directory."""
        self.result = CourseProcessor(
            self.source,
            self.output,
            config or self.config(),
            diagnostics=self.diagnostics,
        ).run()
        return self.result

    def page(self, relative: str) -> BeautifulSoup:
        """Parse a generated page relative to the output directory."""
        text = (self.output / relative).read_text(encoding="utf-8")
        return BeautifulSoup(text, "html.parser")


INTRO_ADVANCED_THEME = """\
theme:
  name: basics
  title: The Basics
  indexorder: 1
  modules:
    intro:
      title: Introduction
      level: green
      indexorder: 1
    advanced:
      title: Advanced Topics
      level: red
      indexorder: 2
      prerequisites: [intro]
"""


@pytest.fixture
def course_tree(tmp_path: Path) -> CourseTree:
    """Return an empty course tree builder rooted in ``tmp_path``."""
    return CourseTree(tmp_path)


@pytest.fixture
def intro_advanced(course_tree: CourseTree) -> CourseTree:
    """Return a one-theme course where ``advanced`` requires ``intro``.

    ``intro`` defines the anchor ``start`` and the glossary term ``Widget``;
    ``advanced`` links forward to an anchor defined later in its own module.
    """
    course_tree.write_course()
    course_tree.write_theme("basics", INTRO_ADVANCED_THEME)
    course_tree.write_step(
        "basics",
        "intro",
        "node1.html",
        "Getting Started",
        '[target name="start"]Read about '
        '[glossary term="Widget"]A small gadget.[/glossary] first.',
    )
    course_tree.write_step(
        "basics", "intro", "node2.html", "Next Steps", "<p>More widgets.</p>"
    )
    course_tree.write_step(
        "basics",
        "advanced",
        "node1.html",
        "Deep Dive",
        'See [link to="later"]the summary[/link] and '
        '[link to="start"]the start[/link]. A [glossary term="widget" /] again.',
    )
    course_tree.write_step(
        "basics",
        "advanced",
        "node2.html",
        "Summary",
        '[target name="later"]<p>All done.</p>',
    )
    return course_tree
