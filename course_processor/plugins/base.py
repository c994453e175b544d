"""Abstract interfaces for input and output handler plugins.

Input plugins turn whatever source format a course is written in into the
intermediate ``nodeNN.html`` step files; the output plugin turns the
intermediate tree into the final course. Every plugin works on the working
copy of the course under the destination directory, never on the source.
"""

from __future__ import annotations

import typing as typ
from abc import ABC, abstractmethod

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.config import ProcessorConfig
    from course_processor.diagnostics import Diagnostics
    from course_processor.metadata import CourseMetadata, ThemeMetadata


class InputPlugin(ABC):
    """Convert one source format into intermediate step files.

    Parameters
    ----------
    root : Path
        Working copy of the course; plugins rewrite files in place here.
    diagnostics : Diagnostics
        Warning channel for the run.
    config : ProcessorConfig
        Active processor configuration.
    """

    name: typ.ClassVar[str]
    description: typ.ClassVar[str]

    def __init__(
        self, root: Path, diagnostics: Diagnostics, config: ProcessorConfig
    ) -> None:
        self.root = root
        self.diagnostics = diagnostics
        self.config = config

    @abstractmethod
    def use_plugin(self) -> int:
        """Return how many source files this plugin can process; 0 skips it."""

    @abstractmethod
    def module_check(self, theme_dir: Path, module: str) -> str | None:
        """Return an error message when ``module`` cannot be handled, else None."""

    @abstractmethod
    def process(self) -> bool:
        """Convert the recognized source files into intermediate steps."""


class OutputPlugin(ABC):
    """Turn the intermediate course tree into a finished course.

    Parameters
    ----------
    root : Path
        Working copy of the course holding the intermediate files.
    course : CourseMetadata
        Validated course metadata.
    themes : Sequence[ThemeMetadata]
        Validated theme metadata, in discovery order.
    diagnostics : Diagnostics
        Warning channel for the run.
    config : ProcessorConfig
        Active processor configuration.
    input_plugins : Sequence[InputPlugin], optional
        Plugins consulted when checking that every module is recognized.
    """

    name: typ.ClassVar[str]
    description: typ.ClassVar[str]

    def __init__(
        self,
        root: Path,
        course: CourseMetadata,
        themes: typ.Sequence[ThemeMetadata],
        diagnostics: Diagnostics,
        config: ProcessorConfig,
        *,
        input_plugins: typ.Sequence[InputPlugin] = (),
    ) -> None:
        self.root = root
        self.course = course
        self.themes = list(themes)
        self.diagnostics = diagnostics
        self.config = config
        self.input_plugins = list(input_plugins)
        self.written: list[Path] = []

    @abstractmethod
    def use_plugin(self) -> bool:
        """Return whether the plugin can run with the current configuration."""

    @abstractmethod
    def process(self) -> bool:
        """Generate the course output."""


__all__ = ["InputPlugin", "OutputPlugin"]
