import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from mermaid_check.errors import ParseError
from mermaid_check.ir.base import Position, RawStatement
from mermaid_check.ir.class_diagram import (
    Annotation,
    ClassComment,
    ClassDecl,
    ClassDiagram,
    ClassMember,
    ClassNote,
    MemberDecl,
    Relationship,
)

from .lines import SourceLine, first_word, header_index, source_lines

logger = logging.getLogger(__name__)

CLASS_KEYWORDS = ("classDiagram", "classDiagram-v2")

CLASS_RE = re.compile(
    r"^class\s+(?P<name>\w+)"
    r"(?:~(?P<generic>[^~]+)~)?"
    r"(?:\s*\[\s*(?P<label>[^\]]*?)\s*\])?"
    r"(?::::(?P<css>[\w-]+))?"
    r"\s*(?P<body>\{.*)?$"
)
RELATIONSHIP_RE = re.compile(
    r"^(?P<source>\w+)(?:~[^~]+~)?\s*"
    r'(?:"(?P<source_card>[^"]*)"\s*)?'
    r"(?P<left><\||\*|o|<)?(?P<line>--|\.\.)(?P<right>\|>|\*|o(?!\w)|>)?"
    r'\s*(?:"(?P<target_card>[^"]*)"\s*)?'
    r"(?P<target>\w+)(?:~[^~]+~)?"
    r"\s*(?::\s*(?P<label>.*))?$"
)
RELATIONSHIP_HINT_RE = re.compile(r"--|\.\.")
MEMBER_DECL_RE = re.compile(r"^(?P<name>\w+)(?:~[^~]+~)?\s*:\s*(?P<member>.+)$")
ANNOTATION_RE = re.compile(r"^<<(?P<annotation>[^>]+)>>\s*(?P<name>\w+)?$")
NOTE_FOR_RE = re.compile(r'^note\s+for\s+(?P<name>\w+)\s+"(?P<text>.*)"$')
NOTE_RE = re.compile(r'^note\s+"(?P<text>.*)"$')

RAW_KEYWORDS = ("direction", "style", "cssClass", "classDef", "click", "link", "callback")

HEAD_KINDS = {
    "<|": "triangle",
    "|>": "triangle",
    "*": "composition",
    "o": "aggregation",
    "<": "arrow",
    ">": "arrow",
}


def relationship_kind(left: Optional[str], line: str, right: Optional[str]) -> str:
    """
    Map a connector glyph to a relationship kind.

    Two-way glyphs keep their kind when both heads agree; conflicting heads
    yield "unknown" so valid-relationship-type can report them.
    """
    heads = {HEAD_KINDS[h] for h in (left, right) if h}
    if len(heads) > 1:
        return "unknown"
    head = heads.pop() if heads else None
    if head == "triangle":
        return "inheritance" if line == "--" else "realization"
    if head in ("composition", "aggregation"):
        return head
    return "association" if line == "--" else "dependency"


def parse_member(text: str, position: Position) -> ClassMember:
    """Split a member line into raw visibility token, name and classifier."""
    body = text.strip()
    visibility = ""
    if body and not (body[0].isalnum() or body[0] == "_"):
        visibility = body[0]
        body = body[1:].strip()

    classifier = ""
    if body[-1:] in ("$", "*"):
        classifier = body[-1]
        body = body[:-1].rstrip()

    is_method = "(" in body
    if is_method:
        head = body.split("(", 1)[0].split()
    elif ":" in body:
        head = body.split(":", 1)[0].split()
    else:
        head = body.split()
    name = head[-1] if head else ""

    return ClassMember(
        position=position,
        visibility=visibility,
        name=name,
        text=text.strip(),
        is_method=is_method,
        classifier=classifier,
    )


@dataclass
class _OpenClass:
    line: SourceLine
    name: str
    label: Optional[str]
    generic: Optional[str]
    css_class: Optional[str]
    annotations: List[str] = field(default_factory=list)
    members: List[ClassMember] = field(default_factory=list)

    def build(self) -> ClassDecl:
        return ClassDecl(
            position=self.line.position,
            name=self.name,
            label=self.label,
            generic=self.generic,
            annotations=tuple(self.annotations),
            members=tuple(self.members),
            css_class=self.css_class,
        )


class ClassParser:
    """Parses exactly one classDiagram."""

    def parse(self, source: str) -> ClassDiagram:
        lines = source_lines(source)
        idx = header_index(lines)
        if idx is None:
            raise ParseError("empty diagram source")
        header = lines[idx]
        if first_word(header.text).rstrip(";") not in CLASS_KEYWORDS:
            raise ParseError(
                f"expected 'classDiagram' header, got '{first_word(header.text)}'",
                header.number,
                header.column,
            )

        statements: List = []
        open_class: Optional[_OpenClass] = None
        namespaces: List[SourceLine] = []

        for line in lines[idx + 1:]:
            if open_class is not None:
                if self._feed_class_body(line, open_class):
                    statements.append(open_class.build())
                    open_class = None
                continue

            text = line.text
            word = first_word(text)
            if line.is_comment():
                statements.append(ClassComment(position=line.position, text=text[2:].strip()))
            elif word == "class":
                decl, open_class = self._parse_class(line)
                if decl is not None:
                    statements.append(decl)
            elif word == "namespace":
                if not text.endswith("{"):
                    raise ParseError("namespace must open a '{' block", line.number, line.column)
                namespaces.append(line)
                statements.append(RawStatement(position=line.position, keyword=word, text=text))
            elif text == "}":
                if not namespaces:
                    raise ParseError("'}' without an open block", line.number, line.column)
                namespaces.pop()
            elif word.lower() == "note":
                statements.append(self._parse_note(line))
            elif text.startswith("<<"):
                statements.append(self._parse_annotation(line))
            elif word in RAW_KEYWORDS:
                statements.append(RawStatement(position=line.position, keyword=word, text=text))
            else:
                statements.append(self._parse_relation_or_member(line))

        if open_class is not None:
            raise ParseError(
                f"member block of class '{open_class.name}' is never closed",
                open_class.line.number,
                open_class.line.column,
            )
        if namespaces:
            raise ParseError("namespace block is never closed", namespaces[-1].number, namespaces[-1].column)

        logger.debug("Parsed class diagram: %d statements", len(statements))
        return ClassDiagram(
            dialect="class",
            source=source,
            position=header.position,
            statements=tuple(statements),
        )

    def _parse_class(self, line: SourceLine):
        match = CLASS_RE.match(line.text)
        if not match:
            raise ParseError(f"malformed class declaration '{line.text}'", line.number, line.column)

        label = match.group("label")
        if label is not None and len(label) > 1 and label[0] == label[-1] == '"':
            label = label[1:-1]
        open_class = _OpenClass(
            line=line,
            name=match.group("name"),
            label=label,
            generic=match.group("generic"),
            css_class=match.group("css"),
        )

        body = match.group("body")
        if body is None:
            return open_class.build(), None
        inner = body[1:]
        if inner.rstrip().endswith("}"):
            # one-line block: class Foo { +bar }
            content = inner.rstrip()[:-1].strip()
            if content:
                self._add_member(content, line.position, open_class)
            return open_class.build(), None
        if inner.strip():
            self._add_member(inner.strip(), line.position, open_class)
        return None, open_class

    def _feed_class_body(self, line: SourceLine, open_class: _OpenClass) -> bool:
        """Consume one member-block line; True once the block is closed."""
        text = line.text
        if line.is_comment():
            return False
        if text == "}":
            return True
        if text.endswith("}"):
            self._add_member(text[:-1].strip(), line.position, open_class)
            return True
        self._add_member(text, line.position, open_class)
        return False

    def _add_member(self, text: str, position: Position, open_class: _OpenClass) -> None:
        if text.startswith("<<") and text.endswith(">>"):
            open_class.annotations.append(text[2:-2].strip())
        else:
            open_class.members.append(parse_member(text, position))

    def _parse_note(self, line: SourceLine) -> ClassNote:
        match = NOTE_FOR_RE.match(line.text)
        if match:
            return ClassNote(position=line.position, class_name=match.group("name"), text=match.group("text"))
        match = NOTE_RE.match(line.text)
        if match:
            return ClassNote(position=line.position, class_name=None, text=match.group("text"))
        raise ParseError(f"malformed note '{line.text}'", line.number, line.column)

    def _parse_annotation(self, line: SourceLine) -> Annotation:
        match = ANNOTATION_RE.match(line.text)
        if not match or not match.group("name"):
            raise ParseError(f"malformed annotation '{line.text}'", line.number, line.column)
        return Annotation(
            position=line.position,
            class_name=match.group("name"),
            annotation=match.group("annotation").strip(),
        )

    def _parse_relation_or_member(self, line: SourceLine):
        text = line.text
        match = RELATIONSHIP_RE.match(text)
        if match:
            left, connector, right = match.group("left"), match.group("line"), match.group("right")
            return Relationship(
                position=line.position,
                source=match.group("source"),
                target=match.group("target"),
                kind=relationship_kind(left, connector, right),
                glyph=f"{left or ''}{connector}{right or ''}",
                label=match.group("label").strip() if match.group("label") else None,
                source_cardinality=match.group("source_card"),
                target_cardinality=match.group("target_card"),
            )

        match = MEMBER_DECL_RE.match(text)
        if match:
            member_pos = line.at(text.index(":") + 1)
            return MemberDecl(
                position=line.position,
                class_name=match.group("name"),
                member=parse_member(match.group("member"), member_pos),
            )

        if RELATIONSHIP_HINT_RE.search(text):
            raise ParseError(f"malformed relationship '{text}'", line.number, line.column)
        return RawStatement(position=line.position, keyword=first_word(text), text=text)
