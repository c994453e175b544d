"""Load and validate processor configuration YAML for course builds.

This subpackage parses the optional processor configuration file, applies
defaults for handler selection, reference style, filters, and output options,
and produces typed dataclasses (:class:`ProcessorConfig`,
:class:`OutputConfig`) that the processor and output handler consume. The
primary entry point is :func:`load_processor_config`.

Examples
--------
>>> from pathlib import Path
>>> from course_processor.config import load_processor_config
>>> config = load_processor_config(None)
>>> config.output_handler, config.reference_style
('html', 'ieee')
"""

from .loader import load_processor_config
from .models import REFERENCE_STYLES, OutputConfig, ProcessorConfig

__all__ = [
    "REFERENCE_STYLES",
    "OutputConfig",
    "ProcessorConfig",
    "load_processor_config",
]
