"""Typed dataclasses describing course processor configuration."""

from __future__ import annotations

import dataclasses as dc
from pathlib import Path  # noqa: TC003 - used for runtime type metadata

REFERENCE_STYLES = ("ieee", "none")


@dc.dataclass(slots=True)
class OutputConfig:
    """Settings consumed by the HTML output handler."""

    templates_dir: Path | None = None
    strict_redefinitions: bool = False
    keep_intermediate: bool = False
    force_media: list[str] = dc.field(default_factory=list)


@dc.dataclass(slots=True)
class ProcessorConfig:
    """Aggregated processor configuration sourced from YAML and CLI flags."""

    output_handler: str = "html"
    input_handlers: list[str] = dc.field(default_factory=lambda: ["html"])
    reference_style: str = "ieee"
    filters: list[str] = dc.field(default_factory=list)
    output: OutputConfig = dc.field(default_factory=OutputConfig)

    @property
    def references_enabled(self) -> bool:
        """Return whether ``[ref]`` markers should be processed."""
        return self.reference_style != "none"

    def with_overrides(
        self,
        *,
        output_handler: str | None = None,
        filters: list[str] | None = None,
        templates_dir: Path | None = None,
        keep_intermediate: bool | None = None,
    ) -> ProcessorConfig:
        """Return a copy with command-line overrides applied."""
        output = dc.replace(
            self.output,
            templates_dir=templates_dir or self.output.templates_dir,
            keep_intermediate=(
                self.output.keep_intermediate
                if keep_intermediate is None
                else keep_intermediate
            ),
        )
        return dc.replace(
            self,
            output_handler=output_handler or self.output_handler,
            filters=[name.lower() for name in filters]
            if filters is not None
            else self.filters,
            output=output,
        )


__all__ = ["REFERENCE_STYLES", "OutputConfig", "ProcessorConfig"]
