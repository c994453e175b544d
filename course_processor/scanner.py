"""Scan the theme/module/step tree for anchors, glossary terms, and references.

The scanner is the first of the two processing phases. It walks every
included theme and module in index order, reads each intermediate
``nodeNN.html`` step file, and records:

- named anchors from ``[target name="..."]`` markers,
- glossary definitions (``[glossary term="..."]...[/glossary]``) and bare
  references (``[glossary term="..." /]``) with the location of every use,
- ``[ref ...]`` citation markers, handed to the reference handler,
- the layout tree of themes, modules, and steps with their output filenames.

Nothing is emitted here. The returned :class:`ScanResult` is read-only input
for the navigation builder, the markup converter, and the emitters.

Examples
--------
>>> from course_processor.scanner import canonical_step_name, step_sort_key
>>> canonical_step_name("node2.html"), canonical_step_name("node10.html")
('step02.html', 'step10.html')
>>> sorted(["node10.html", "node2.html"], key=step_sort_key)
['node2.html', 'node10.html']
"""

from __future__ import annotations

import dataclasses as dc
import html
import re
import typing as typ

from bs4 import BeautifulSoup

from course_processor._constants import (
    AUTO_ANCHOR_PREFIX,
    GLOSSARY_BUCKETS,
    OUTJECTIVES_STEP_TITLE,
)
from course_processor.diagnostics import LOG, CourseProcessingError
from course_processor.navigation import sort_by_indexorder

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.diagnostics import Diagnostics
    from course_processor.filters import FilterSet
    from course_processor.metadata import ModuleMetadata, ThemeMetadata
    from course_processor.references import ReferenceHandler

STEP_FILE_PATTERN = re.compile(r"^node(\d+(?:\.\d+)?)\.html?$", re.IGNORECASE)
STEP_ID_PATTERN = re.compile(r"(\d+(?:\.\d+)?)")
TARGET_PATTERN = re.compile(
    r"\[target\s+name\s*=\s*\"([^\"]+?)\"\s*/?\s*\]", re.IGNORECASE | re.DOTALL
)
GLOSSARY_DEFINITION_PATTERN = re.compile(
    r"\[glossary\s+term\s*=\s*\"([^\"]+?)\"\s*\](.*?)\[/glossary\]",
    re.IGNORECASE | re.DOTALL,
)
GLOSSARY_REFERENCE_PATTERN = re.compile(
    r"\[glossary\s+term\s*=\s*\"([^\"]+?)\"\s*/\s*\]", re.IGNORECASE
)
REF_PATTERN = re.compile(r"\[ref\s+(.*?)\s*/?\s*\]", re.IGNORECASE | re.DOTALL)
ATTRIBUTE_PATTERN = re.compile(r"(\w+)\s*=\s*\"([^\"]+)\"")
MARKER_ATTRIBUTES_PATTERN = re.compile(
    r"\[(glossary|img|anim|applet|local|link|target|ref)\s+(.*?)\]",
    re.IGNORECASE | re.DOTALL,
)


@dc.dataclass(frozen=True, slots=True)
class StepLocation:
    """Identify a step page by theme, module, and output filename."""

    theme: str
    module: str
    step: str

    def href(self, prefix: str = "") -> str:
        """Return the step path relative to the course root, with ``prefix``."""
        return f"{prefix}{self.theme}/{self.module}/{self.step}"

    def __str__(self) -> str:
        return self.href()


@dc.dataclass(frozen=True, slots=True)
class StepDocument:
    """Title and body extracted from a step source file."""

    title: str
    body: str


@dc.dataclass(slots=True)
class StepEntry:
    """A step that will be emitted, with its sequential output id."""

    output_id: int
    filename: str
    title: str
    body: str = ""
    source: Path | None = None

    @property
    def is_outjectives(self) -> bool:
        """Return whether this is the synthetic objectives/outcomes step."""
        return self.source is None


@dc.dataclass(slots=True)
class ModuleLayout:
    """An included module and its ordered steps."""

    metadata: ModuleMetadata
    steps: list[StepEntry] = dc.field(default_factory=list)

    @property
    def name(self) -> str:
        """Return the module name."""
        return self.metadata.name


@dc.dataclass(slots=True)
class ThemeLayout:
    """An included theme and its modules in index order."""

    metadata: ThemeMetadata
    modules: list[ModuleLayout] = dc.field(default_factory=list)

    @property
    def name(self) -> str:
        """Return the theme name."""
        return self.metadata.name

    def module(self, name: str) -> ModuleLayout | None:
        """Return the included module called ``name``, if any."""
        return next((module for module in self.modules if module.name == name), None)


@dc.dataclass(frozen=True, slots=True)
class Anchor:
    """A named link target; ``module``/``step`` are None for theme anchors."""

    name: str
    theme: str
    module: str | None = None
    step: str | None = None

    def href(self, prefix: str) -> str:
        """Return the link to this anchor from a page ``prefix`` deep."""
        if self.module is None or self.step is None:
            return f"{prefix}{self.theme}/index.html"
        return f"{prefix}{self.theme}/{self.module}/{self.step}#{self.name}"


@dc.dataclass(slots=True)
class GlossaryTerm:
    """A glossary entry with its first definition and every use."""

    key: str
    term: str
    definition: str | None = None
    defined_at: StepLocation | None = None
    references: list[StepLocation] = dc.field(default_factory=list)

    @property
    def bucket(self) -> str:
        """Return the glossary page bucket for this term."""
        return glossary_bucket(self.term)


@dc.dataclass(slots=True)
class ScanResult:
    """Everything the emit phase needs from the scan phase."""

    layout: list[ThemeLayout]
    anchors: dict[str, Anchor]
    glossary: dict[str, GlossaryTerm]
    references: ReferenceHandler | None = None
    step_titles: dict[StepLocation, str] = dc.field(default_factory=dict)

    def theme(self, name: str) -> ThemeLayout | None:
        """Return the included theme called ``name``, if any."""
        return next((theme for theme in self.layout if theme.name == name), None)

    @property
    def has_glossary(self) -> bool:
        """Return whether any glossary term is referenced anywhere."""
        return any(term.references for term in self.glossary.values())

    @property
    def has_references(self) -> bool:
        """Return whether any citation was recorded."""
        return self.references is not None and bool(self.references.entries())


def step_id(filename: str) -> str:
    """Return the first numeric id embedded in ``filename`` without leading zeros.

    Raises
    ------
    CourseProcessingError
        If the name contains no number.
    """
    match = STEP_ID_PATTERN.search(filename)
    if match is None:
        msg = f"Unable to determine a step number from '{filename}'."
        raise CourseProcessingError(msg)
    whole, _, fraction = match.group(1).partition(".")
    whole = str(int(whole))
    return f"{whole}.{fraction}" if fraction else whole


def step_sort_key(filename: str) -> tuple[int, ...]:
    """Return a numeric sort key so ``node2`` sorts before ``node10``."""
    return tuple(int(part) for part in step_id(filename).split("."))


def canonical_step_name(filename: str, *, prefix: str = "step") -> str:
    """Rewrite ``filename`` to the canonical ``stepNN.html`` form.

    The whole part of the embedded id is zero padded to two digits; a decimal
    id keeps its fraction, so ``node5.1.html`` becomes ``step05.1.html``.
    """
    whole, _, fraction = step_id(filename).partition(".")
    padded = whole.zfill(2)
    return f"{prefix}{padded}.{fraction}.html" if fraction else f"{prefix}{padded}.html"


def step_filename(output_id: int) -> str:
    """Return the output filename for the step at position ``output_id``."""
    return canonical_step_name(f"node{output_id}.html")


def glossary_key(term: str) -> str:
    """Normalize a glossary term: lowercase, punctuation removed, spaces to ``_``."""
    lowered = term.strip().lower()
    stripped = re.sub(r"[^\w\s]", "", lowered).strip()
    return re.sub(r"\s+", "_", stripped or lowered)


def glossary_bucket(term: str) -> str:
    """Return the glossary bucket (``a``-``z``, ``digit``, ``symb``) for ``term``."""
    first = term.strip()[:1].lower()
    if first.isdigit():
        return "digit"
    if first in GLOSSARY_BUCKETS:
        return first
    return "symb"


def auto_anchor_name(theme_title: str) -> str:
    """Return the automatic anchor name pointing at a theme's index page."""
    return AUTO_ANCHOR_PREFIX + re.sub(r"\s", "_", theme_title.strip())


def marker_value(text: str) -> str:
    """Decode character references in a marker value.

    Step bodies are re-serialized HTML, so an ``&`` written inside a marker
    arrives here as ``&amp;``.

    >>> marker_value("R&amp;D")
    'R&D'
    """
    return html.unescape(text)


def parse_attributes(text: str) -> dict[str, str]:
    """Parse ``key="value"`` pairs from a marker's attribute text."""
    return {
        key.lower(): marker_value(value)
        for key, value in ATTRIBUTE_PATTERN.findall(text)
    }


def _join_marker_lines(match: re.Match[str]) -> str:
    attributes = re.sub(r"\s*\n\s*", " ", match.group(2))
    return f"[{match.group(1)} {attributes}]"


def read_step_file(path: Path) -> StepDocument:
    """Extract the title and body from a step HTML file.

    The body is taken from ``<div id="content">`` when present, otherwise from
    ``<body>``. Line breaks inside marker attribute lists are joined so later
    pattern matching sees each marker on one line.

    Raises
    ------
    CourseProcessingError
        If the file cannot be read, or has no title or no body content.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Unable to read step file '{path}': {exc}"
        raise CourseProcessingError(msg) from exc

    soup = BeautifulSoup(text, "html.parser")
    title_tag = soup.find("title")
    title = title_tag.get_text(" ", strip=True) if title_tag is not None else ""
    if not title:
        msg = f"Unable to parse a title from '{path}'."
        raise CourseProcessingError(msg)

    container = soup.find("div", id="content") or soup.body
    body = container.decode_contents().strip() if container is not None else ""
    if not body:
        msg = f"Unable to parse body content from '{path}'."
        raise CourseProcessingError(msg)
    body = MARKER_ATTRIBUTES_PATTERN.sub(_join_marker_lines, body)
    return StepDocument(title=title, body=body)


class CourseScanner:
    """Run the scan phase over an intermediate course tree.

    Parameters
    ----------
    root : Path
        The working course directory containing theme directories.
    themes : Sequence[ThemeMetadata]
        Validated theme metadata; excluded themes are skipped.
    filters : FilterSet
        Active filters deciding which themes, modules, and steps are kept.
    diagnostics : Diagnostics
        Warning channel for redefinitions and undefined terms.
    references : ReferenceHandler, optional
        Collaborator receiving ``[ref]`` markers; markers are ignored when
        omitted.
    strict_redefinitions : bool, optional
        Treat anchor and glossary redefinitions as fatal.
    """

    def __init__(
        self,
        root: Path,
        themes: typ.Sequence[ThemeMetadata],
        filters: FilterSet,
        diagnostics: Diagnostics,
        *,
        references: ReferenceHandler | None = None,
        strict_redefinitions: bool = False,
    ) -> None:
        self.root = root
        self.themes = themes
        self.filters = filters
        self.diagnostics = diagnostics
        self.references = references
        self.strict_redefinitions = strict_redefinitions
        self.anchors: dict[str, Anchor] = {}
        self.glossary: dict[str, GlossaryTerm] = {}
        self.step_titles: dict[StepLocation, str] = {}

    def run(self) -> ScanResult:
        """Scan every included step and return the populated tables."""
        layout: list[ThemeLayout] = []
        for theme in sort_by_indexorder(self.themes, kind="theme"):
            if self.filters.excludes(theme.filters):
                LOG.info("Theme '%s' excluded by filter rule", theme.name)
                continue
            layout.append(self._scan_theme(theme))

        for term in self.glossary.values():
            if term.definition is None and term.references:
                self.diagnostics.warn(
                    f"Glossary term '{term.term}' is used in {term.references[0]} "
                    "but never defined."
                )
        return ScanResult(
            layout=layout,
            anchors=self.anchors,
            glossary=self.glossary,
            references=self.references,
            step_titles=self.step_titles,
        )

    def _scan_theme(self, theme: ThemeMetadata) -> ThemeLayout:
        LOG.info("Scanning theme '%s'", theme.name)
        self._record_anchor(
            Anchor(name=auto_anchor_name(theme.title), theme=theme.name),
            where=f"theme '{theme.name}'",
        )
        theme_layout = ThemeLayout(metadata=theme)
        for module in sort_by_indexorder(theme.modules.values(), kind="module"):
            if self.filters.excludes(module.filters):
                LOG.info(
                    "Module '%s' in theme '%s' excluded by filter rule",
                    module.name,
                    theme.name,
                )
                continue
            theme_layout.modules.append(self._scan_module(theme, module))
        return theme_layout

    def _scan_module(
        self, theme: ThemeMetadata, module: ModuleMetadata
    ) -> ModuleLayout:
        module_dir = self.root / theme.name / module.name
        sources: list[Path] = []
        if module_dir.is_dir():
            sources = sorted(
                (
                    path
                    for path in module_dir.iterdir()
                    if path.is_file() and STEP_FILE_PATTERN.match(path.name)
                ),
                key=lambda path: step_sort_key(path.name),
            )

        layout = ModuleLayout(metadata=module)
        if module.has_outjectives:
            layout.steps.append(
                StepEntry(
                    output_id=1, filename=step_filename(1), title=OUTJECTIVES_STEP_TITLE
                )
            )
        for source in sources:
            document = read_step_file(source)
            if self._step_excluded(module, source.name):
                LOG.info(
                    "Step '%s' in %s/%s excluded by filter rule",
                    source.name,
                    theme.name,
                    module.name,
                )
                self._scan_definitions(document.body, None)
                continue
            output_id = len(layout.steps) + 1
            entry = StepEntry(
                output_id=output_id,
                filename=step_filename(output_id),
                title=document.title,
                body=document.body,
                source=source,
            )
            location = StepLocation(theme.name, module.name, entry.filename)
            LOG.debug("Scanning %s as %s", source, location)
            self.step_titles[location] = entry.title
            self._scan_body(document.body, location)
            layout.steps.append(entry)
        if not any(not step.is_outjectives for step in layout.steps):
            self.diagnostics.warn(
                f"Module '{module.name}' in theme '{theme.name}' has no steps."
            )
        return layout

    def _step_excluded(self, module: ModuleMetadata, filename: str) -> bool:
        identifier = step_id(filename)
        for key in (filename.rsplit(".", 1)[0], f"node{identifier}", identifier):
            if key in module.step_filters:
                return self.filters.excludes(module.step_filters[key])
        return False

    def _scan_body(self, body: str, location: StepLocation) -> None:
        for match in TARGET_PATTERN.finditer(body):
            self._record_anchor(
                Anchor(
                    name=marker_value(match.group(1)),
                    theme=location.theme,
                    module=location.module,
                    step=location.step,
                ),
                where=str(location),
            )
        self._scan_definitions(body, location)
        for match in GLOSSARY_REFERENCE_PATTERN.finditer(body):
            self._term(match.group(1)).references.append(location)
        if self.references is not None:
            for match in REF_PATTERN.finditer(body):
                self.references.set_reference_point(
                    parse_attributes(match.group(1)),
                    location,
                    self.step_titles.get(location, location.step),
                )

    def _scan_definitions(self, body: str, location: StepLocation | None) -> None:
        """Record glossary definitions; ``location`` is None for excluded steps."""
        for match in GLOSSARY_DEFINITION_PATTERN.finditer(body):
            term = self._term(match.group(1))
            definition = match.group(2).strip()
            where = str(location) if location is not None else "an excluded step"
            if term.definition is not None:
                self._redefined(
                    "Redefinition of glossary term "
                    f"'{marker_value(match.group(1))}' in {where} "
                    f"(first defined in {term.defined_at or 'an excluded step'}); "
                    "keeping the first definition."
                )
            else:
                term.definition = definition
                term.defined_at = location
                term.term = marker_value(match.group(1)).strip()
            if location is not None:
                term.references.append(location)

    def _term(self, text: str) -> GlossaryTerm:
        text = marker_value(text)
        key = glossary_key(text)
        entry = self.glossary.get(key)
        if entry is None:
            entry = GlossaryTerm(key=key, term=text.strip())
            self.glossary[key] = entry
        return entry

    def _record_anchor(self, anchor: Anchor, *, where: str) -> None:
        existing = self.anchors.get(anchor.name)
        if existing is not None:
            first = existing.href("").split("#", 1)[0]
            self._redefined(
                f"Redefinition of anchor '{anchor.name}' in {where} "
                f"(first defined in {first}); keeping the first definition."
            )
            return
        self.anchors[anchor.name] = anchor

    def _redefined(self, message: str) -> None:
        if self.strict_redefinitions:
            raise CourseProcessingError(message)
        self.diagnostics.warn(message)


def scan(
    root: Path,
    themes: typ.Sequence[ThemeMetadata],
    filters: FilterSet,
    diagnostics: Diagnostics,
    *,
    references: ReferenceHandler | None = None,
    strict_redefinitions: bool = False,
) -> ScanResult:
    """Scan the course tree under ``root``; see :class:`CourseScanner`."""
    return CourseScanner(
        root,
        themes,
        filters,
        diagnostics,
        references=references,
        strict_redefinitions=strict_redefinitions,
    ).run()


__all__ = [
    "Anchor",
    "CourseScanner",
    "GlossaryTerm",
    "ModuleLayout",
    "ScanResult",
    "StepDocument",
    "StepEntry",
    "StepLocation",
    "ThemeLayout",
    "auto_anchor_name",
    "canonical_step_name",
    "glossary_bucket",
    "glossary_key",
    "marker_value",
    "parse_attributes",
    "read_step_file",
    "scan",
    "step_filename",
    "step_id",
    "step_sort_key",
]
