"""Validation and repair of raw course and theme metadata mappings.

The builders here turn the mapping read from ``metadata.yaml`` into typed
dataclasses, raising :class:`~course_processor.diagnostics.CourseProcessingError`
with a message naming the offending theme, module, and field. Theme
validation also repairs one-sided prerequisite/leadsto relations by inserting
the missing inverse entry.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from course_processor._constants import DUMMY_MODULE, LEVELS
from course_processor.diagnostics import LOG, CourseProcessingError
from course_processor.filters import ResourceFilters

from .models import (
    CourseInfo,
    CourseMetadata,
    IndexOrder,
    MapResource,
    ModuleMetadata,
    ThemeMetadata,
)

if typ.TYPE_CHECKING:
    from pathlib import Path

    from course_processor.diagnostics import Diagnostics
    from course_processor.plugins.base import InputPlugin

COURSEINFO_FIELDS = ("title", "splash", "width", "height", "type", "content")
SPLASH_TYPES = ("image", "anim")
RELATION_FIELDS = ("prerequisites", "leadsto")


def _fail(message: str) -> typ.NoReturn:
    raise CourseProcessingError(message)


def _required_text(payload: cabc.Mapping[str, typ.Any], key: str, where: str) -> str:
    value = payload.get(key)
    if value is None or not str(value).strip():
        _fail(f"{where} does not specify a {key}.")
    return str(value).strip()


def _indexorder(payload: cabc.Mapping[str, typ.Any], where: str) -> IndexOrder:
    value = payload.get("indexorder")
    if value is None:
        _fail(f"{where} does not specify an indexorder.")
    if isinstance(value, bool):
        _fail(f"{where} has a non-numeric indexorder {value!r}.")
    if isinstance(value, int | float):
        return value
    try:
        return float(str(value).strip())
    except ValueError:
        _fail(f"{where} has a non-numeric indexorder {value!r}.")


def _optional_list(
    payload: cabc.Mapping[str, typ.Any], key: str, where: str
) -> list[str]:
    """Return a non-empty list of strings, or an empty list when absent."""
    if key not in payload or payload[key] is None:
        return []
    value = payload[key]
    if not isinstance(value, list) or not value:
        _fail(f"{where} has an empty or malformed {key} list.")
    return [str(item).strip() for item in value]


def _relation(payload: cabc.Mapping[str, typ.Any], key: str, where: str) -> list[str]:
    """Return a flat list of module names for a prerequisite/leadsto field."""
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        _fail(f"{where} has a malformed {key} element: expected a list of names.")
    names: list[str] = []
    for item in value:
        if isinstance(item, list | dict) or item is None:
            _fail(f"{where} has a malformed {key} element: expected a list of names.")
        names.append(str(item).strip())
    return names


def _maps(payload: cabc.Mapping[str, typ.Any], where: str) -> list[MapResource]:
    if "maps" not in payload or payload["maps"] is None:
        return []
    value = payload["maps"]
    if not isinstance(value, list) or not value:
        _fail(f"{where} has an empty or malformed maps list.")
    resources: list[MapResource] = []
    for index, item in enumerate(value, start=1):
        if isinstance(item, str):
            resources.append(MapResource(content=item))
            continue
        if not isinstance(item, cabc.Mapping):
            _fail(f"{where} map {index} must be a string or a mapping.")
        resources.append(
            MapResource(
                content=str(item.get("content") or ""),
                filters=ResourceFilters.from_payload(
                    item.get("filters"), where=f"{where} map {index}"
                ),
            )
        )
    return resources


def build_course_metadata(
    payload: cabc.Mapping[str, typ.Any], *, path: Path
) -> CourseMetadata:
    """Validate a ``course`` mapping and return typed course metadata.

    Raises
    ------
    CourseProcessingError
        If the version or any courseinfo field is missing or invalid.
    """
    where = f"Course metadata '{path}'"
    version = _required_text(payload, "version", where)
    raw_infos = payload.get("courseinfo")
    if isinstance(raw_infos, cabc.Mapping):
        raw_infos = [raw_infos]
    if not isinstance(raw_infos, list) or not raw_infos:
        _fail(f"{where} does not contain any courseinfo elements.")

    infos: list[CourseInfo] = []
    for index, raw in enumerate(raw_infos, start=1):
        info_where = f"{where} courseinfo {index}"
        if not isinstance(raw, cabc.Mapping):
            _fail(f"{info_where} must be a mapping.")
        values = {
            key: _required_text(raw, key, info_where) for key in COURSEINFO_FIELDS
        }
        if values["type"] not in SPLASH_TYPES:
            _fail(
                f"{info_where} has splash type '{values['type']}' "
                "(expected image or anim)."
            )
        infos.append(
            CourseInfo(
                **values,
                filters=ResourceFilters.from_payload(
                    raw.get("filters"), where=info_where
                ),
            )
        )

    return CourseMetadata(
        path=path,
        version=version,
        courseinfo=infos,
        extrahead=str(payload.get("extrahead") or ""),
        maps=_maps(payload, where),
    )


def _build_module(
    name: str, payload: object, *, theme_name: str
) -> ModuleMetadata:
    where = f"Module '{name}' in theme '{theme_name}'"
    if not isinstance(payload, cabc.Mapping):
        _fail(f"{where} must be a mapping of module fields.")
    level = _required_text(payload, "level", where).lower()
    if level not in LEVELS:
        allowed = ", ".join(LEVELS)
        _fail(f"{where} has unknown level '{level}' (expected one of {allowed}).")

    raw_steps = payload.get("steps") or {}
    if not isinstance(raw_steps, cabc.Mapping):
        _fail(f"{where} has a malformed steps mapping.")
    step_filters = {
        str(step): ResourceFilters.from_payload(
            settings.get("filters") if isinstance(settings, cabc.Mapping) else None,
            where=f"{where} step '{step}'",
        )
        for step, settings in raw_steps.items()
    }

    return ModuleMetadata(
        name=name,
        title=_required_text(payload, "title", where),
        level=level,
        indexorder=_indexorder(payload, where),
        prerequisites=_relation(payload, "prerequisites", where),
        leadsto=_relation(payload, "leadsto", where),
        objectives=_optional_list(payload, "objectives", where),
        outcomes=_optional_list(payload, "outcomes", where),
        filters=ResourceFilters.from_payload(payload.get("filters"), where=where),
        step_filters=step_filters,
    )


def build_theme_metadata(
    payload: cabc.Mapping[str, typ.Any], *, path: Path
) -> ThemeMetadata:
    """Validate a ``theme`` mapping, repair relations, and return typed metadata.

    Raises
    ------
    CourseProcessingError
        If required fields are missing, a relation is malformed, or a relation
        targets a module that does not exist in the theme.
    """
    theme_dir = path.parent.name
    where = f"Theme metadata for '{theme_dir}'"
    name = _required_text(payload, "name", where)
    theme_where = f"Theme '{name}'"
    raw_modules = payload.get("modules") or {}
    if not isinstance(raw_modules, cabc.Mapping):
        _fail(f"{theme_where} has a malformed modules mapping.")

    modules = {
        str(module_name): _build_module(str(module_name), raw, theme_name=name)
        for module_name, raw in raw_modules.items()
        if str(module_name) != DUMMY_MODULE
    }
    theme = ThemeMetadata(
        path=path,
        name=name,
        title=_required_text(payload, "title", where),
        indexorder=_indexorder(payload, where),
        modules=modules,
        objectives=_optional_list(payload, "objectives", theme_where),
        outcomes=_optional_list(payload, "outcomes", theme_where),
        maps=_maps(payload, theme_where),
        extrahead=str(payload.get("extrahead") or ""),
        filters=ResourceFilters.from_payload(payload.get("filters"), where=theme_where),
    )
    repair_relations(theme)
    return theme


def repair_relations(theme: ThemeMetadata) -> None:
    """Make prerequisite and leadsto relations symmetric within ``theme``.

    When module A lists B as a prerequisite and B does not list A in
    ``leadsto`` (or the reverse), the missing entry is appended to B. The
    metadata is mutated in place.

    Raises
    ------
    CourseProcessingError
        If a relation targets a module missing from the theme, or a module
        refers to itself.
    """
    inverse = {"prerequisites": "leadsto", "leadsto": "prerequisites"}
    for module in theme.modules.values():
        for field in RELATION_FIELDS:
            for target_name in list(getattr(module, field)):
                if target_name == module.name:
                    _fail(
                        f"Module '{module.name}' in theme '{theme.name}' lists "
                        f"itself in {field}."
                    )
                target = theme.modules.get(target_name)
                if target is None:
                    _fail(
                        f"Module '{module.name}' in theme '{theme.name}' lists "
                        f"'{target_name}' in {field}, but no such module exists."
                    )
                back = getattr(target, inverse[field])
                if module.name not in back:
                    LOG.debug(
                        "Adding missing %s '%s' to module '%s' in theme '%s'",
                        inverse[field],
                        module.name,
                        target.name,
                        theme.name,
                    )
                    back.append(module.name)


def check_modules_with_plugins(
    theme: ThemeMetadata,
    theme_dir: Path,
    plugins: cabc.Sequence[InputPlugin],
    diagnostics: Diagnostics,
) -> bool:
    """Ask every input plugin whether it recognizes each module's files.

    A module that every plugin rejects produces a warning and marks the theme
    as failing validation. With no plugins registered every module passes.
    ``theme_dir`` is the working copy of the theme, which may differ from the
    directory the metadata was loaded from.

    Returns
    -------
    bool
        ``True`` when every module is recognized by at least one plugin.
    """
    if not plugins:
        return True
    valid = True
    for module_name in theme.modules:
        errors = [plugin.module_check(theme_dir, module_name) for plugin in plugins]
        if all(error is not None for error in errors):
            details = "; ".join(typ.cast("list[str]", errors))
            diagnostics.warn(
                f"Module '{module_name}' in theme '{theme.name}' is not "
                f"recognized by any input plugin: {details}"
            )
            valid = False
    return valid


__all__ = [
    "build_course_metadata",
    "build_theme_metadata",
    "check_modules_with_plugins",
    "repair_relations",
]
