"""Run a whole course through the input and output handlers.

:class:`CourseProcessor` validates the source course before touching the
destination, so a course with broken metadata never leaves a half-written
output tree behind. The destination is then replaced by a fresh copy of the
source which the plugins rewrite in place.

Examples
--------
>>> from pathlib import Path
>>> from course_processor.config import ProcessorConfig
>>> from course_processor.processor import CourseProcessor
>>> result = CourseProcessor(
...     Path("course"), Path("build"), ProcessorConfig()
... ).run()  # doctest: +SKIP
>>> result.output_dir  # doctest: +SKIP
PosixPath('build')
"""

from __future__ import annotations

import dataclasses as dc
import shutil
import typing as typ

from course_processor.diagnostics import LOG, CourseProcessingError, Diagnostics
from course_processor.metadata import discover_themes, require_course_metadata
from course_processor.plugins import get_input_plugin, get_output_plugin

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.config import ProcessorConfig
    from course_processor.plugins import InputPlugin


@dc.dataclass(frozen=True, slots=True)
class ProcessingResult:
    """Outcome of a successful processing run."""

    output_dir: Path
    written: list[Path]
    warnings: list[str]


def _check_locations(source: Path, dest: Path) -> None:
    if not source.is_dir():
        msg = f"Course source directory '{source}' does not exist."
        raise CourseProcessingError(msg)
    if dest == source or dest.is_relative_to(source):
        msg = f"Output directory '{dest}' must not be inside the source '{source}'."
        raise CourseProcessingError(msg)
    if source.is_relative_to(dest):
        msg = f"Output directory '{dest}' must not contain the source '{source}'."
        raise CourseProcessingError(msg)


def _prepare_destination(source: Path, dest: Path) -> None:
    """Replace ``dest`` with a copy of ``source`` to work on."""
    try:
        if dest.exists():
            LOG.info("Removing previous output in %s", dest)
            shutil.rmtree(dest)
        shutil.copytree(source, dest, ignore=shutil.ignore_patterns(".*"))
    except (OSError, shutil.Error) as exc:
        msg = f"Unable to copy course '{source}' to '{dest}': {exc}"
        raise CourseProcessingError(msg) from exc


class CourseProcessor:
    """Validate, copy, and convert one course.

    Parameters
    ----------
    source_dir : Path
        Course source tree with ``metadata.yaml`` files.
    dest_dir : Path
        Output directory; replaced on every run.
    config : ProcessorConfig
        Handlers, filters, and output settings for the run.
    diagnostics : Diagnostics, optional
        Warning channel; a fresh one is created when omitted.
    """

    def __init__(
        self,
        source_dir: Path,
        dest_dir: Path,
        config: ProcessorConfig,
        *,
        diagnostics: Diagnostics | None = None,
    ) -> None:
        self.source_dir = source_dir
        self.dest_dir = dest_dir
        self.config = config
        self.diagnostics = diagnostics or Diagnostics()

    def run(self) -> ProcessingResult:
        """Process the course and return the written pages and warnings.

        Raises
        ------
        CourseProcessingError
            On any fatal condition. Metadata and output configuration problems
            are detected before the destination directory is modified.
        """
        source = self.source_dir.resolve()
        dest = self.dest_dir.resolve()
        _check_locations(source, dest)

        course = require_course_metadata(source)
        themes = discover_themes(source)
        LOG.info("Loaded course version %s with %d themes", course.version, len(themes))
        output_class = get_output_plugin(self.config.output_handler)
        input_classes = [get_input_plugin(name) for name in self.config.input_handlers]

        inputs: list[InputPlugin] = [
            plugin(dest, self.diagnostics, self.config) for plugin in input_classes
        ]
        output = output_class(
            dest,
            course,
            themes,
            self.diagnostics,
            self.config,
            input_plugins=inputs,
        )
        if not output.use_plugin():
            msg = f"Output handler '{output.name}' cannot process this course."
            raise CourseProcessingError(msg)

        _prepare_destination(source, dest)
        self._run_inputs(inputs)
        LOG.info("Running %s output handler", output.name)
        if not output.process():
            msg = f"Output handler '{output.name}' failed."
            raise CourseProcessingError(msg)
        return ProcessingResult(
            output_dir=dest,
            written=list(output.written),
            warnings=list(self.diagnostics.warnings),
        )

    @staticmethod
    def _run_inputs(inputs: list[InputPlugin]) -> None:
        usable = [plugin for plugin in inputs if plugin.use_plugin()]
        if not usable:
            msg = "The course data is not recognized by any of the input handlers."
            raise CourseProcessingError(msg)
        for plugin in usable:
            LOG.info("Running %s input handler", plugin.name)
            if not plugin.process():
                msg = f"Input handler '{plugin.name}' failed."
                raise CourseProcessingError(msg)


__all__ = ["CourseProcessor", "ProcessingResult"]
