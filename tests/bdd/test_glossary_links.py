"""Behaviour tests for the generated glossary pages."""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

if typ.TYPE_CHECKING:
    from bs4 import BeautifulSoup

    from ..conftest import CourseTree

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "glossary_links.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    return {}


@given("a course where the advanced module requires the introduction")
def given_intro_advanced(
    intro_advanced: CourseTree, scenario_state: dict[str, object]
) -> None:
    scenario_state["tree"] = intro_advanced


@when("I process the course")
def when_process(scenario_state: dict[str, object]) -> None:
    tree = typ.cast("CourseTree", scenario_state["tree"])
    tree.process()


@then(
    parsers.parse(
        'the glossary page for "{bucket}" defines "{term}" as "{definition}"'
    )
)
def then_term_defined(
    scenario_state: dict[str, object], bucket: str, term: str, definition: str
) -> None:
    tree = typ.cast("CourseTree", scenario_state["tree"])
    soup = tree.page(f"glossary/{bucket}.html")
    terms = [dt.get_text(strip=True) for dt in soup.select("dl.glossary-entries dt")]
    assert terms == [term]
    body = soup.select_one("dl.glossary-entries dd div.definition")
    assert body is not None
    assert body.get_text(strip=True) == definition
    scenario_state["glossary_page"] = soup


@then(parsers.parse('the term "{key}" links back to {count:d} steps'))
def then_backlinks(scenario_state: dict[str, object], key: str, count: int) -> None:
    soup = typ.cast("BeautifulSoup", scenario_state["glossary_page"])
    entry = soup.find("dt", id=key)
    assert entry is not None
    links = entry.find_next_sibling("dd").select("ol.backlinks a")
    assert [a.get_text() for a in links] == [str(n) for n in range(1, count + 1)]
    assert links[0]["title"] == "Getting Started"


@then("every page header links to the glossary")
def then_header_links(scenario_state: dict[str, object]) -> None:
    tree = typ.cast("CourseTree", scenario_state["tree"])
    for relative, expected in (
        ("frontpage.html", "glossary/index.html"),
        ("basics/index.html", "../glossary/index.html"),
        ("basics/intro/step02.html", "../../glossary/index.html"),
    ):
        link = tree.page(relative).select_one("a.glossary-link")
        assert link is not None, relative
        assert link["href"] == expected
