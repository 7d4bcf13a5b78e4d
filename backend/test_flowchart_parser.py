"""Tests for the flowchart / graph parser"""

import pytest

from mermaid_check.dsl.flowchart import FlowchartParser
from mermaid_check.errors import ParseError
from mermaid_check.ir import (
    ClassAssignment,
    ClassDef,
    Comment,
    Direction,
    Link,
    NodeDef,
    NodeShape,
    RawStatement,
    Style,
    Subgraph,
    walk_flow,
)


def parse(source: str):
    return FlowchartParser().parse(source)


def summary(statements):
    out = []
    for stmt in statements:
        if isinstance(stmt, NodeDef):
            out.append(("node", stmt.node_id, stmt.label, stmt.shape))
        elif isinstance(stmt, Link):
            out.append(("link", stmt.source, stmt.target, stmt.arrow, stmt.label, stmt.bidirectional))
        else:
            out.append((type(stmt).__name__,))
    return out


R = NodeShape.RECTANGLE


@pytest.mark.parametrize("source,expected", [
    (
        "graph LR\n    A[Start] --> B[End]",
        [("node", "A", "Start", R), ("link", "A", "B", "-->", None, False), ("node", "B", "End", R)],
    ),
    (
        "graph LR\n    A[Standalone]\n    A --> B[Inline]",
        [("node", "A", "Standalone", R), ("link", "A", "B", "-->", None, False), ("node", "B", "Inline", R)],
    ),
    (
        "graph LR\n    A[Defined] --> B",
        [("node", "A", "Defined", R), ("link", "A", "B", "-->", None, False)],
    ),
    (
        "graph LR\n    A[Rectangle] --> B(Rounded)\n    B --> C{Diamond}\n    C --> D[[Subroutine]]",
        [
            ("node", "A", "Rectangle", R),
            ("link", "A", "B", "-->", None, False),
            ("node", "B", "Rounded", NodeShape.ROUNDED),
            ("link", "B", "C", "-->", None, False),
            ("node", "C", "Diamond", NodeShape.DIAMOND),
            ("link", "C", "D", "-->", None, False),
            ("node", "D", "Subroutine", NodeShape.SUBROUTINE),
        ],
    ),
    (
        "graph LR\n    A[Start] -->|Flow| B[Process]",
        [("node", "A", "Start", R), ("link", "A", "B", "-->", "Flow", False), ("node", "B", "Process", R)],
    ),
    (
        "graph LR\n    A[Start<br>Multiline] --> B[Process & Filter]",
        [
            ("node", "A", "Start<br>Multiline", R),
            ("link", "A", "B", "-->", None, False),
            ("node", "B", "Process & Filter", R),
        ],
    ),
    (
        "graph LR\n    A[Node A] <--> B[Node B]",
        [("node", "A", "Node A", R), ("link", "A", "B", "<-->", None, True), ("node", "B", "Node B", R)],
    ),
    (
        "graph LR\n    A[Start] -.-> B[Optional]",
        [("node", "A", "Start", R), ("link", "A", "B", "-.->", None, False), ("node", "B", "Optional", R)],
    ),
    (
        "graph LR\n    A[Start] ==> B[Important]",
        [("node", "A", "Start", R), ("link", "A", "B", "==>", None, False), ("node", "B", "Important", R)],
    ),
])
def test_inline_node_definitions(source, expected):
    diagram = parse(source)
    assert summary(diagram.statements) == expected


def test_inline_definition_suppressed_after_first_label():
    diagram = parse(
        "graph LR\n"
        "    A[First Definition]\n"
        "    A --> B[Second]\n"
        "    B --> A[Duplicate Attempt]"
    )
    defs = [s for s in diagram.statements if isinstance(s, NodeDef) and s.node_id == "A"]
    assert len(defs) == 1
    assert defs[0].label == "First Definition"


def test_real_world_labels():
    diagram = parse(
        "graph LR\n"
        "    A[MCP DevTools<br>Server]\n"
        "    A --> B[Search &<br>Discovery]\n"
        "    A --> C[Document<br>Processing]\n"
        "    B --> B_Tools[Terraform Docs<br>AWS Doc]\n"
        "    C --> C_Tools[Document Processing<br>Excel<br>PDF]"
    )
    labels = {s.node_id: s.label for s in diagram.statements if isinstance(s, NodeDef)}
    assert labels == {
        "A": "MCP DevTools<br>Server",
        "B": "Search &<br>Discovery",
        "C": "Document<br>Processing",
        "B_Tools": "Terraform Docs<br>AWS Doc",
        "C_Tools": "Document Processing<br>Excel<br>PDF",
    }


def test_header_and_direction():
    diagram = parse("flowchart TD\nA --> B")
    assert diagram.dialect == "flowchart"
    assert diagram.kind == "flowchart"
    assert diagram.direction == "TD"
    assert diagram.position.line == 1

    graph = parse("graph\nA --> B")
    assert graph.dialect == "graph"
    assert graph.direction is None


def test_unknown_direction_is_kept_for_validation():
    assert parse("graph XY\nA --> B").direction == "XY"


def test_statements_after_semicolon_on_header():
    diagram = parse("graph LR; A --> B; B --> C")
    links = [s for s in diagram.statements if isinstance(s, Link)]
    assert [(l.source, l.target) for l in links] == [("A", "B"), ("B", "C")]


def test_chain_and_ampersand_groups_expand():
    diagram = parse("graph TD\nA & B --> C --> D")
    links = [(s.source, s.target) for s in diagram.statements if isinstance(s, Link)]
    assert links == [("A", "C"), ("B", "C"), ("C", "D")]


@pytest.mark.parametrize("line,arrow,stroke,bidirectional", [
    ("A --- B", "---", "solid", False),
    ("A ---> B", "--->", "solid", False),
    ("A -.- B", "-.-", "dotted", False),
    ("A -..-> B", "-..->", "dotted", False),
    ("A === B", "===", "thick", False),
    ("A ====> B", "====>", "thick", False),
    ("A ~~~ B", "~~~", "invisible", False),
    ("A --o B", "--o", "solid", False),
    ("A --x B", "--x", "solid", False),
    ("A o--o B", "o--o", "solid", True),
    ("A x--x B", "x--x", "solid", True),
    ("A <-.-> B", "<-.->", "dotted", True),
    ("A <==> B", "<==>", "thick", True),
])
def test_arrow_tokens(line, arrow, stroke, bidirectional):
    link = parse(f"graph LR\n{line}").statements[0]
    assert isinstance(link, Link)
    assert (link.source, link.target) == ("A", "B")
    assert link.arrow == arrow
    assert link.stroke == stroke
    assert link.bidirectional is bidirectional


@pytest.mark.parametrize("line,arrow,label", [
    ("A -- some text --> B", "-->", "some text"),
    ("A -. maybe .-> B", "-.->", "maybe"),
    ("A == must ==> B", "==>", "must"),
    ("A -- open text --- B", "---", "open text"),
])
def test_text_form_link_labels(line, arrow, label):
    link = parse(f"graph LR\n{line}").statements[0]
    assert (link.arrow, link.label) == (arrow, label)


def test_left_head_only_is_rejected():
    with pytest.raises(ParseError):
        parse("graph LR\nA <-- B")


@pytest.mark.parametrize("text,shape,label", [
    ("A[(Database)]", NodeShape.CYLINDER, "Database"),
    ("A([Stadium])", NodeShape.STADIUM, "Stadium"),
    ("A((Circle))", NodeShape.CIRCLE, "Circle"),
    ("A(((Double)))", NodeShape.DOUBLE_CIRCLE, "Double"),
    ("A{{Hex}}", NodeShape.HEXAGON, "Hex"),
    ("A[/Para/]", NodeShape.PARALLELOGRAM, "Para"),
    ("A[\\Alt\\]", NodeShape.PARALLELOGRAM_ALT, "Alt"),
    ("A[/Trap\\]", NodeShape.TRAPEZOID, "Trap"),
    ("A[\\TrapAlt/]", NodeShape.TRAPEZOID_ALT, "TrapAlt"),
    ("A>Flag]", NodeShape.ASYMMETRIC, "Flag"),
    ('A["Quoted (label)"]', NodeShape.RECTANGLE, '"Quoted (label)"'),
])
def test_node_shapes(text, shape, label):
    node = parse(f"graph LR\n{text}").statements[0]
    assert isinstance(node, NodeDef)
    assert node.shape == shape
    assert node.label == label


def test_css_class_suffix():
    node = parse("graph LR\nA[Start]:::highlight").statements[0]
    assert node.css_class == "highlight"


def test_bare_standalone_node_emitted_once():
    diagram = parse("graph LR\nA\nA")
    assert summary(diagram.statements) == [("node", "A", None, None)]


def test_labelled_definition_replaces_bare_node():
    diagram = parse("graph LR\nA\nA[Start]\nA[Start]")
    assert summary(diagram.statements) == [("node", "A", "Start", R), ("node", "A", "Start", R)]
    assert diagram.statements[0].position.line == 3


def test_inline_label_replaces_bare_node_in_closed_subgraph():
    diagram = parse("graph LR\nsubgraph s\nA\nend\nC --> A[Target]")
    sub, link, node = diagram.statements
    assert sub.statements == ()
    assert isinstance(link, Link)
    assert (node.node_id, node.label, node.position.line) == ("A", "Target", 5)


def test_unterminated_label_reports_opener():
    with pytest.raises(ParseError) as exc:
        parse("graph LR\n    A[Start --> B")
    assert exc.value.line == 2
    assert exc.value.column == 6


def test_nested_subgraphs():
    diagram = parse(
        "graph TB\n"
        "    subgraph outer[Outer Box]\n"
        "        subgraph inner\n"
        "            a1 --> a2\n"
        "        end\n"
        "        b1\n"
        "    end\n"
        "    a1 --> b1"
    )
    outer = diagram.statements[0]
    assert isinstance(outer, Subgraph)
    assert (outer.subgraph_id, outer.title) == ("outer", "Outer Box")
    inner = outer.statements[0]
    assert isinstance(inner, Subgraph)
    assert inner.title == "inner"
    assert isinstance(inner.statements[0], Link)
    assert isinstance(diagram.statements[-1], Link)
    assert len(list(walk_flow(diagram.statements))) == 5


def test_subgraph_quoted_title():
    sub = parse('graph TB\nsubgraph "My Title"\nA\nend').statements[0]
    assert sub.title == "My Title"


def test_unmatched_end_is_reported_at_end():
    with pytest.raises(ParseError) as exc:
        parse("graph TD\nA --> B\nend")
    assert exc.value.line == 3


def test_unclosed_subgraph_is_reported_at_opener():
    with pytest.raises(ParseError) as exc:
        parse("graph TD\n  subgraph one\n  A --> B")
    assert (exc.value.line, exc.value.column) == (2, 3)


def test_subgraph_without_title():
    with pytest.raises(ParseError):
        parse("graph TD\nsubgraph\nend")


def test_leaf_statements():
    diagram = parse(
        "graph TD\n"
        "%% a comment\n"
        "direction LR\n"
        "classDef hot fill:#f96\n"
        "class A,B hot\n"
        "style A fill:#bbf\n"
        "linkStyle 0 stroke:#ff3\n"
        "click A callback\n"
        "@{ shape: rect }"
    )
    kinds = [type(s) for s in diagram.statements]
    assert kinds == [Comment, Direction, ClassDef, ClassAssignment, Style, Style, Style, RawStatement]
    assignment = diagram.statements[3]
    assert assignment.node_ids == ("A", "B")
    assert assignment.class_name == "hot"
    assert diagram.statements[5].keyword == "linkStyle"


def test_garbage_after_node_id_is_a_parse_error():
    with pytest.raises(ParseError):
        parse("graph TD\nA B")


def test_link_position_is_source_token():
    link = parse("graph TD\n  A --> B").statements[0]
    assert (link.position.line, link.position.column) == (2, 3)
