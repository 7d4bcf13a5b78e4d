"""Tests for the classDiagram parser"""

import pytest

from mermaid_check.dsl.class_diagram import ClassParser, parse_member, relationship_kind
from mermaid_check.errors import ParseError
from mermaid_check.ir import (
    Annotation,
    ClassComment,
    ClassDecl,
    ClassNote,
    MemberDecl,
    Position,
    RawStatement,
    Relationship,
)


def parse(source: str):
    return ClassParser().parse(source)


@pytest.mark.parametrize("glyph,kind", [
    ("<|--", "inheritance"),
    ("--|>", "inheritance"),
    ("*--", "composition"),
    ("--*", "composition"),
    ("o--", "aggregation"),
    ("--o", "aggregation"),
    ("-->", "association"),
    ("--", "association"),
    ("..>", "dependency"),
    ("..", "dependency"),
    ("..|>", "realization"),
    ("<|..", "realization"),
    ("<|--|>", "inheritance"),
    ("<|--*", "unknown"),
])
def test_relationship_kinds(glyph, kind):
    rel = parse(f"classDiagram\nAnimal {glyph} Duck").statements[0]
    assert isinstance(rel, Relationship)
    assert (rel.source, rel.target) == ("Animal", "Duck")
    assert rel.glyph == glyph
    assert rel.kind == kind


def test_relationship_kind_helper():
    assert relationship_kind(None, "--", ">") == "association"
    assert relationship_kind("<", "..", None) == "dependency"
    assert relationship_kind("o", "--", "*") == "unknown"


def test_cardinality_and_label():
    rel = parse('classDiagram\nCustomer "1" --> "*" Ticket : owns').statements[0]
    assert rel.source_cardinality == "1"
    assert rel.target_cardinality == "*"
    assert rel.label == "owns"


def test_target_starting_with_o_is_not_a_head():
    rel = parse("classDiagram\nA -- owner").statements[0]
    assert rel.target == "owner"
    assert rel.kind == "association"


def test_class_block_members():
    diagram = parse(
        "classDiagram\n"
        "    class Duck {\n"
        "        <<interface>>\n"
        "        +String beakColor\n"
        "        +swim()\n"
        "        +quack()$\n"
        "        -int age\n"
        "    }"
    )
    decl = diagram.statements[0]
    assert isinstance(decl, ClassDecl)
    assert decl.name == "Duck"
    assert decl.annotations == ("interface",)
    assert [(m.visibility, m.name, m.is_method, m.classifier) for m in decl.members] == [
        ("+", "beakColor", False, ""),
        ("+", "swim", True, ""),
        ("+", "quack", True, "$"),
        ("-", "age", False, ""),
    ]
    assert decl.members[0].position == Position(4, 9)


def test_one_line_class_block():
    decl = parse("classDiagram\nclass Foo { +bar }").statements[0]
    assert [m.name for m in decl.members] == ["bar"]


def test_class_generic_label_and_css():
    generic, labelled, styled = parse(
        "classDiagram\n"
        "class Shape~T~\n"
        'class Animal["Animal with a label"]\n'
        "class Foo:::important"
    ).statements
    assert generic.generic == "T"
    assert labelled.label == "Animal with a label"
    assert styled.css_class == "important"


def test_member_declarations():
    method, attr = parse(
        "classDiagram\n"
        "BankAccount : +deposit(amount) bool\n"
        "BankAccount : +String owner"
    ).statements
    assert isinstance(method, MemberDecl)
    assert method.class_name == "BankAccount"
    assert (method.member.name, method.member.is_method) == ("deposit", True)
    assert (attr.member.name, attr.member.is_method) == ("owner", False)


def test_parse_member_keeps_raw_visibility():
    member = parse_member("!secret", Position(1))
    assert member.visibility == "!"
    assert member.name == "secret"

    member = parse_member("someAbstract()*", Position(1))
    assert (member.visibility, member.classifier, member.is_method) == ("", "*", True)


def test_annotations_notes_and_comments():
    annotation, note_for, note, comment = parse(
        "classDiagram\n"
        "<<interface>> Shape\n"
        'note for Duck "can fly"\n'
        'note "general"\n'
        "%% comment"
    ).statements
    assert isinstance(annotation, Annotation)
    assert (annotation.class_name, annotation.annotation) == ("Shape", "interface")
    assert isinstance(note_for, ClassNote)
    assert (note_for.class_name, note_for.text) == ("Duck", "can fly")
    assert note.class_name is None
    assert isinstance(comment, ClassComment)


def test_namespace_block():
    diagram = parse(
        "classDiagram\n"
        "namespace Shapes {\n"
        "    class Triangle\n"
        "}"
    )
    raw, decl = diagram.statements
    assert isinstance(raw, RawStatement)
    assert raw.keyword == "namespace"
    assert decl.name == "Triangle"


def test_header_variants_and_raw_statements():
    diagram = parse("classDiagram-v2\ndirection RL")
    assert diagram.dialect == "class"
    assert diagram.kind == "class"
    assert isinstance(diagram.statements[0], RawStatement)


@pytest.mark.parametrize("source,line", [
    ("classDiagram\n}", 2),
    ("classDiagram\nclass Foo {\n+bar", 2),
    ("classDiagram\nnamespace X {\nclass A", 2),
    ("classDiagram\nA --| B", 2),
    ("classDiagram\n<<interface>>", 2),
])
def test_parse_errors(source, line):
    with pytest.raises(ParseError) as exc:
        parse(source)
    assert exc.value.line == line
