import logging

import pytest

from htmlgen.errors import (
    SectionNotFound,
    TemplateLoadError,
    TemplateStateError,
    UnknownPlaceholder,
)
from htmlgen.graph import render_numbers_graph
from htmlgen.template import EngineState, TemplateDocument, TemplateEngine
from database.models import DailyNumbers
from datetime import date

DOC = """\
intro text is ignored
<!--[section:greeting]-->
Hello {{name}}, hello again {{name}}!
<!--[/section:greeting]-->
<!--[section:box]-->
<div>{{content}}</div>
<!--[/section:box]-->
<!--[section:graph]-->
<h2>{{title}}</h2><div id="{{plotId}}"></div>
x={{dates}} y={{infections}} d={{deaths}}
<!--[/section:graph]-->
"""


@pytest.fixture
def doc():
    return TemplateDocument.from_string(DOC)


@pytest.fixture
def tpl(doc):
    return TemplateEngine.from_document(doc)


def test_document_sections_and_placeholders(doc):
    assert doc.sections() == ["greeting", "box", "graph"]
    assert len(doc) == 3
    assert doc.section("box") == "<div>{{content}}</div>"
    assert doc.placeholders("graph") == {"title", "plotId", "dates", "infections", "deaths"}
    with pytest.raises(SectionNotFound):
        doc.section("missing")


@pytest.mark.parametrize(
    "text, message",
    [
        ("<!--[section:a]-->x<!--[section:b]-->y<!--[/section:b]--><!--[/section:a]-->", "opened inside"),
        ("<!--[section:a]-->x<!--[/section:a]--><!--[section:a]-->y<!--[/section:a]-->", "duplicate"),
        ("<!--[section:a]-->x<!--[/section:b]-->", "does not match"),
        ("<!--[section:a]-->x", "never closed"),
        ("no sections at all", "any section"),
    ],
)
def test_malformed_documents_are_rejected(text, message):
    with pytest.raises(TemplateLoadError) as exc:
        TemplateDocument.from_string(text, "broken.tpl")
    assert message in str(exc.value)
    assert "broken.tpl" in str(exc.value)


def test_missing_file_is_a_load_error(tmp_path):
    tpl = TemplateEngine()
    with pytest.raises(TemplateLoadError):
        tpl.load_document(tmp_path / "nope.tpl")
    assert tpl.state is EngineState.UNLOADED


def test_state_machine(tmp_path):
    path = tmp_path / "doc.tpl"
    path.write_text(DOC, encoding="utf-8")
    tpl = TemplateEngine()
    assert tpl.state is EngineState.UNLOADED
    with pytest.raises(TemplateStateError):
        tpl.load_section("greeting")

    tpl.load_document(path)
    assert tpl.state is EngineState.DOCUMENT_LOADED
    with pytest.raises(TemplateStateError):
        tpl.tag("name", "x")
    with pytest.raises(TemplateStateError):
        tpl.generate()

    assert tpl.load_section("greeting")
    assert tpl.state is EngineState.SECTION_ACTIVE
    assert tpl.active_section == "greeting"


def test_tag_replaces_every_occurrence(tpl):
    tpl.load_section("greeting")
    tpl.tag("name", "World")
    assert tpl.generate() == "Hello World, hello again World!"


def test_generate_is_repeatable(tpl):
    tpl.load_section("greeting")
    tpl.tag("name", "World")
    assert tpl.generate() == tpl.generate()


def test_unfilled_placeholders_pass_through(tpl):
    tpl.load_section("box")
    assert tpl.unfilled() == ["content"]
    assert tpl.generate() == "<div>{{content}}</div>"


def test_unfilled_placeholders_can_be_reported(doc, caplog):
    tpl = TemplateEngine.from_document(doc, warn_unfilled=True)
    tpl.load_section("box")
    with caplog.at_level(logging.WARNING, logger="htmlgen.template"):
        tpl.generate()
    assert "content" in caplog.text


def test_substitutions_do_not_leak_between_sections(tpl):
    tpl.load_section("greeting")
    tpl.tag("name", "World")
    tpl.generate()
    tpl.load_section("greeting")
    assert tpl.generate() == "Hello {{name}}, hello again {{name}}!"


def test_substituted_values_are_not_expanded_again(tpl):
    tpl.load_section("box")
    tpl.integrate("content", "{{content}} and {{name}}")
    assert tpl.generate() == "<div>{{content}} and {{name}}</div>"


def test_nesting_rendered_sections(tpl):
    tpl.load_section("greeting")
    tpl.tag("name", "A")
    inner = tpl.generate()
    tpl.load_section("box")
    tpl.integrate("content", inner)
    assert tpl.generate() == "<div>Hello A, hello again A!</div>"


def test_missing_section_keeps_engine_usable(tpl):
    tpl.load_section("greeting")
    tpl.tag("name", "World")
    assert tpl.load_section("nonexistent") is False
    assert isinstance(tpl.last_error, SectionNotFound)
    assert tpl.active_section == "greeting"
    assert tpl.generate() == "Hello World, hello again World!"

    assert tpl.load_section("box") is True
    assert tpl.last_error is None


def test_unknown_placeholder_is_ignored_by_default(tpl):
    tpl.load_section("box")
    tpl.tag("bogus", "x")
    tpl.integrate("content", "c")
    assert tpl.generate() == "<div>c</div>"


def test_unknown_placeholder_can_be_rejected(doc):
    tpl = TemplateEngine.from_document(doc, unknown_placeholders="reject")
    tpl.load_section("box")
    with pytest.raises(UnknownPlaceholder):
        tpl.tag("bogus", "x")


def test_invalid_policy():
    with pytest.raises(ValueError):
        TemplateEngine(unknown_placeholders="maybe")


def test_numbers_graph_scenario(tpl):
    numbers = [DailyNumbers(date(2020, 1, 1), 5, 0), DailyNumbers(date(2020, 1, 2), 3, 1)]
    out = render_numbers_graph(tpl, "graph", "Cases in <X>", "graph_xx", numbers)
    assert "<h2>Cases in &lt;X&gt;</h2>" in out
    assert '<div id="graph_xx"></div>' in out
    assert 'x=["2020-01-01", "2020-01-02"] y=[5, 3] d=[0, 1]' in out
    assert "{{" not in out


def test_numbers_graph_with_missing_section(doc):
    tpl = TemplateEngine.from_document(doc)
    with pytest.raises(SectionNotFound):
        render_numbers_graph(tpl, "graphAccumulated", "t", "p", [])
