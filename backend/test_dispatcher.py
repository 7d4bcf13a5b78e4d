"""Tests for header detection and parse dispatch"""

import pytest

from mermaid_check import detect_dialect, parse
from mermaid_check.dsl import dialect_tag, is_supported
from mermaid_check.errors import ParseError
from mermaid_check.ir import (
    ClassDiagram,
    FlowchartDiagram,
    GenericDiagram,
    SequenceDiagram,
    StateDiagram,
)


@pytest.mark.parametrize("source,keyword", [
    ("graph TD\nA", "graph"),
    ("graph LR;A-->B", "graph"),
    ("\n\n%% comment\n%%{init: {'theme': 'dark'}}%%\nflowchart LR\nA", "flowchart"),
    ("---\ntitle: Example\n---\nsequenceDiagram\nA->>B: hi", "sequenceDiagram"),
    ("pie title Pets\n\"Dogs\" : 3", "pie"),
    ("   stateDiagram-v2\n[*] --> A", "stateDiagram-v2"),
])
def test_detect_dialect(source, keyword):
    assert detect_dialect(source) == keyword


@pytest.mark.parametrize("source", ["", "   \n\n", "%% only a comment"])
def test_detect_dialect_without_header(source):
    assert detect_dialect(source) is None


def test_unterminated_front_matter():
    with pytest.raises(ParseError):
        detect_dialect("---\ntitle: x\ngraph TD")


@pytest.mark.parametrize("source,cls,kind", [
    ("graph TD\nA --> B", FlowchartDiagram, "flowchart"),
    ("flowchart LR\nA --> B", FlowchartDiagram, "flowchart"),
    ("sequenceDiagram\nA->>B: hi", SequenceDiagram, "sequence"),
    ("classDiagram\nA <|-- B", ClassDiagram, "class"),
    ("stateDiagram\n[*] --> A", StateDiagram, "state"),
    ("stateDiagram-v2\n[*] --> A", StateDiagram, "state"),
])
def test_parse_dispatches_on_header(source, cls, kind):
    diagram = parse(source)
    assert isinstance(diagram, cls)
    assert diagram.kind == kind
    assert diagram.source == source


def test_front_matter_is_skipped_by_dialect_parsers():
    diagram = parse("---\ntitle: x\n---\nflowchart LR\nA --> B")
    assert isinstance(diagram, FlowchartDiagram)
    assert diagram.position.line == 4
    assert diagram.direction == "LR"


def test_unknown_header_is_generic():
    source = "pie title Pets\n    \"Dogs\" : 386\n    \"Cats\" : 85"
    diagram = parse(source)
    assert isinstance(diagram, GenericDiagram)
    assert diagram.dialect == "pie"
    assert diagram.source == source
    assert diagram.position.line == 1


def test_generic_keeps_header_position():
    diagram = parse("%% leading comment\n  gantt\n  title A Gantt Diagram")
    assert (diagram.dialect, diagram.position.line, diagram.position.column) == ("gantt", 2, 3)


@pytest.mark.parametrize("source", ["", "\n   \n", "%% nothing else"])
def test_empty_source_is_a_parse_error(source):
    with pytest.raises(ParseError) as exc:
        parse(source)
    assert exc.value.message == "empty diagram source"


def test_parse_errors_are_never_partial():
    with pytest.raises(ParseError):
        parse("graph TD\nA --> B\nsubgraph one\nC")


def test_is_supported():
    assert is_supported("classDiagram-v2")
    assert is_supported("stateDiagram")
    assert not is_supported("erDiagram")


@pytest.mark.parametrize("keyword,tag", [
    ("graph", "graph"),
    ("flowchart", "flowchart"),
    ("sequenceDiagram", "sequence"),
    ("classDiagram-v2", "class"),
    ("stateDiagram", "state"),
    ("stateDiagram-v2", "stateDiagram-v2"),
    ("pie", "pie"),
])
def test_dialect_tag_matches_parsed_dialect(keyword, tag):
    assert dialect_tag(keyword) == tag
