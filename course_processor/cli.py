"""Cyclopts CLI entrypoint for compiling course trees into HTML courses.

The ``course-processor`` console script validates a course source tree,
replaces the destination directory with a processed copy, and prints every
page it wrote. ``course-processor handlers`` lists the registered input and
output handlers.

Examples
--------
Process a course with the default configuration:

>>> from course_processor.cli import app
>>> app(["process", "course", "build"])  # doctest: +SKIP

Keep only resources tagged for the lab build:

>>> app(["process", "course", "build", "--filters", "lab"])  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_processor_config
from .diagnostics import LOG, CourseProcessingError, setup_logging
from .plugins import describe_plugins
from .processor import CourseProcessor

app = App(
    name="course-processor",
    config=cyclopts.config.Env("COURSE_PROCESSOR_", command=False),
)


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


@app.command(help="Compile a course source tree into a static HTML course.")
def process(
    source: typ.Annotated[Path, Parameter(help="Course source directory")],
    dest: typ.Annotated[Path, Parameter(help="Output directory (replaced)")],
    *,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to processor config YAML")
    ] = None,
    output_handler: typ.Annotated[
        str | None, Parameter(help="Output handler to run")
    ] = None,
    filters: typ.Annotated[
        list[str] | None, Parameter(help="Filter names to activate")
    ] = None,
    templates_dir: typ.Annotated[
        Path | None, Parameter(help="Directory of overriding templates")
    ] = None,
    keep_intermediate: typ.Annotated[
        bool | None, Parameter(help="Keep intermediate step and metadata files")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Report progress")] = False,
    debug: typ.Annotated[bool, Parameter(help="Report per-file detail")] = False,
) -> None:
    """Process ``source`` into ``dest`` and print the written pages.

    Parameters
    ----------
    source : Path
        Course source tree containing ``metadata.yaml``.
    dest : Path
        Output directory; any existing content is removed first.
    config : Path or None, optional
        Processor configuration file; defaults apply when omitted.
    output_handler : str or None, optional
        Overrides ``processor.output_handler`` from the configuration.
    filters : list[str] or None, optional
        Overrides ``processor.filters`` from the configuration.
    templates_dir : Path or None, optional
        Overrides ``output.templates_dir`` from the configuration.
    keep_intermediate : bool or None, optional
        Overrides ``output.keep_intermediate`` from the configuration.
    verbose : bool, optional
        Log progress at INFO level.
    debug : bool, optional
        Log per-file detail at DEBUG level.

    Raises
    ------
    SystemExit
        With status 1 when processing fails.
    """
    setup_logging(verbose=verbose, debug=debug)
    try:
        settings = load_processor_config(config).with_overrides(
            output_handler=output_handler,
            filters=filters,
            templates_dir=templates_dir,
            keep_intermediate=keep_intermediate,
        )
        result = CourseProcessor(source, dest, settings).run()
    except CourseProcessingError as exc:
        LOG.error("FATAL: %s", exc)  # noqa: TRY400 - traceback adds nothing
        raise SystemExit(1) from exc

    for path in result.written:
        print(f"wrote {_format_path(path)}")
    if result.warnings:
        print(f"{len(result.warnings)} warnings")


@app.command(help="List the registered input and output handlers.")
def handlers() -> None:
    """Print each handler as ``kind name: description``."""
    for kind, name, description in describe_plugins():
        print(f"{kind} {name}: {description}")


def main() -> None:
    """Invoke the Cyclopts application behind the ``course-processor`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
