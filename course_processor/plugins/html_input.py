"""Input handler for courses written as plain HTML step files.

Every module directory may hold HTML files whose names end in a number, such
as ``node3.html`` or ``intro 12.htm``. The handler reads the title and body
from each one, in numeric order, and replaces them with intermediate
``nodeNN.html`` files that keep the numeric id and wrap the body in
``<div id="content">`` for the output handler's scan.
"""

from __future__ import annotations

import re
import typing as typ

from markupsafe import Markup

from course_processor._constants import MAX_STEPS_PER_MODULE, METADATA_FILENAME
from course_processor.diagnostics import LOG, CourseProcessingError
from course_processor.emitter.templates import TemplateEngine
from course_processor.scanner import canonical_step_name, read_step_file, step_sort_key

from .base import InputPlugin

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

RAW_STEP_PATTERN = re.compile(r"^[\s\w-]*?\d+(?:\.\d+)?\.html?$", re.IGNORECASE)
INTERMEDIATE_TEMPLATE = "intermediate_step.jinja"


def _visible_dirs(directory: Path) -> list[Path]:
    return sorted(
        path
        for path in directory.iterdir()
        if path.is_dir() and not path.name.startswith(".")
    )


def _raw_steps(module_dir: Path) -> list[Path]:
    return [
        path
        for path in module_dir.iterdir()
        if path.is_file() and RAW_STEP_PATTERN.match(path.name)
    ]


class HTMLInputHandler(InputPlugin):
    """Rewrite HTML step sources into intermediate step files."""

    name = "html"
    description = "HTML input processor"

    def _module_dirs(self) -> cabc.Iterator[Path]:
        """Yield each module directory inside every theme of the course."""
        for theme_dir in _visible_dirs(self.root):
            if not (theme_dir / METADATA_FILENAME).is_file():
                continue
            yield from _visible_dirs(theme_dir)

    def use_plugin(self) -> int:
        """Return the number of HTML step files found in the course."""
        count = sum(len(_raw_steps(module_dir)) for module_dir in self._module_dirs())
        LOG.debug("HTML input handler recognizes %d step files", count)
        return count

    def module_check(self, theme_dir: Path, module: str) -> str | None:
        """Check that ``module`` has a readable directory inside ``theme_dir``."""
        path = theme_dir / module
        if not path.exists():
            return (
                f"HTMLInputHandler: Module {module} does not have a corresponding "
                "module directory."
            )
        if not path.is_dir():
            return f"HTMLInputHandler: {path} is a normal file, not a directory."
        try:
            next(path.iterdir(), None)
        except OSError:
            return f"HTMLInputHandler: {path} is not readable."
        return None

    def process(self) -> bool:
        """Convert every module's HTML steps into intermediate files.

        Raises
        ------
        CourseProcessingError
            If a module has more steps than allowed, two files share a step
            number, or a file cannot be read or written.
        """
        engine = TemplateEngine(self.config.output.templates_dir)
        for module_dir in self._module_dirs():
            sources = sorted(
                _raw_steps(module_dir), key=lambda path: step_sort_key(path.name)
            )
            if sources:
                self._process_module(module_dir, sources, engine)
        return True

    def _process_module(
        self, module_dir: Path, sources: list[Path], engine: TemplateEngine
    ) -> None:
        if len(sources) > MAX_STEPS_PER_MODULE:
            msg = (
                f"Step count limit exceeded in '{module_dir}': modules must not "
                f"contain more than {MAX_STEPS_PER_MODULE} steps."
            )
            raise CourseProcessingError(msg)

        LOG.info("Reading %d HTML steps from %s", len(sources), module_dir)
        pages: dict[str, tuple[Path, str]] = {}
        for source in sources:
            target = canonical_step_name(source.name, prefix="node")
            if target in pages:
                msg = (
                    f"Step files '{pages[target][0].name}' and '{source.name}' in "
                    f"'{module_dir}' share the same step number."
                )
                raise CourseProcessingError(msg)
            document = read_step_file(source)
            pages[target] = (
                source,
                engine.render(
                    INTERMEDIATE_TEMPLATE,
                    {"title": document.title, "body": Markup(document.body)},
                ),
            )

        try:
            for source in sources:
                source.unlink()
            for target, (source, text) in pages.items():
                LOG.debug("Converted %s to %s", source.name, target)
                (module_dir / target).write_text(text, encoding="utf-8")
        except OSError as exc:
            msg = f"Unable to write intermediate steps in '{module_dir}': {exc}"
            raise CourseProcessingError(msg) from exc


__all__ = ["RAW_STEP_PATTERN", "HTMLInputHandler"]
