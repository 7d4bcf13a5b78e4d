"""
Flowchart / graph parser.

Handles node shapes, link arrows (plain, pipe-labelled and text-labelled),
chains and '&' groups, nested subgraphs and the inline node definitions that
appear inside link statements (``A[Start] --> B[End]``).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from mermaid_check.errors import ParseError
from mermaid_check.ir.base import Position, RawStatement
from mermaid_check.ir.flowchart import (
    SHAPE_DELIMITERS,
    ClassAssignment,
    ClassDef,
    Comment,
    Direction,
    FlowchartDiagram,
    Link,
    NodeDef,
    NodeShape,
    Style,
    Subgraph,
)

from .lines import SourceLine, first_word, header_index, rest_after, source_lines, split_statements

logger = logging.getLogger(__name__)

FLOWCHART_KEYWORDS = ("graph", "flowchart")

NODE_ID_RE = re.compile(r"\w+")
CSS_CLASS_RE = re.compile(r"\w[\w-]*")
LINK_RE = re.compile(r"(?P<left>[<ox])?(?P<line>-{2,}|={2,}|-\.+-|~{3,})(?P<right>[>ox])?")
SUBGRAPH_ID_TITLE_RE = re.compile(r"^(\w+)\s*\[(.*)\]$")

# text-form link openers and the closers that may end them
TEXT_LINK_CLOSERS = {
    "--": re.compile(r"-{2,}[>ox]|-{3,}"),
    "==": re.compile(r"={2,}[>ox]|={3,}"),
    "-.": re.compile(r"\.-+[>ox]?"),
}

STYLE_KEYWORDS = ("style", "linkStyle", "click")


@dataclass
class _NodeRef:
    node_id: str
    position: Position
    label: Optional[str] = None
    shape: Optional[NodeShape] = None
    css_class: Optional[str] = None

    @property
    def labelled(self) -> bool:
        return self.shape is not None


@dataclass
class _Arrow:
    token: str
    label: Optional[str]
    bidirectional: bool


@dataclass
class _Scope:
    opener: Optional[SourceLine] = None
    subgraph_id: str = ""
    title: str = ""
    statements: List = field(default_factory=list)
    # node id -> its bare definition, or None once a labelled one exists
    defined: Dict[str, Optional[_NodeRef]] = field(default_factory=dict)


class FlowchartParser:
    """
    Parses exactly one flowchart diagram.

    Usage:
        diagram = FlowchartParser().parse("graph LR\\nA[Start] --> B[End]")
    """

    def parse(self, source: str) -> FlowchartDiagram:
        lines = source_lines(source)
        idx = header_index(lines)
        if idx is None:
            raise ParseError("empty diagram source")

        header = lines[idx]
        keyword, direction, trailing = self._parse_header(header)

        scopes: List[_Scope] = [_Scope()]
        for line in trailing + lines[idx + 1:]:
            for stmt_line in split_statements(line):
                self._parse_statement(stmt_line, scopes)

        if len(scopes) > 1:
            opener = scopes[-1].opener
            raise ParseError(
                f"subgraph '{scopes[-1].title}' is never closed with 'end'",
                opener.number,
                opener.column,
            )

        statements = _freeze(scopes[0].statements)
        logger.debug("Parsed %s diagram: %d top-level statements", keyword, len(statements))
        return FlowchartDiagram(
            dialect=keyword,
            source=source,
            position=header.position,
            direction=direction,
            statements=statements,
        )

    # ---------- header ----------

    def _parse_header(self, header: SourceLine) -> Tuple[str, Optional[str], List[SourceLine]]:
        segments = split_statements(header)
        words = segments[0].text.split()
        keyword = words[0]
        if keyword not in FLOWCHART_KEYWORDS:
            raise ParseError(
                f"expected 'graph' or 'flowchart' header, got '{keyword}'",
                header.number,
                header.column,
            )
        if len(words) > 2:
            raise ParseError(
                f"unexpected text after direction: '{' '.join(words[2:])}'",
                header.number,
                header.column,
            )
        # Direction is kept raw; valid-direction rejects unknown tokens.
        direction = words[1] if len(words) == 2 else None
        return keyword, direction, segments[1:]

    # ---------- statements ----------

    def _parse_statement(self, line: SourceLine, scopes: List[_Scope]) -> None:
        text = line.text
        scope = scopes[-1]
        word = first_word(text)

        if line.is_comment():
            scope.statements.append(Comment(position=line.position, text=text[2:].strip()))
        elif word == "subgraph":
            self._open_subgraph(line, scopes)
        elif text == "end":
            self._close_subgraph(line, scopes)
        elif word == "direction":
            scope.statements.append(Direction(position=line.position, direction=rest_after(text, word)))
        elif word == "classDef":
            scope.statements.append(self._parse_class_def(line))
        elif word == "class":
            scope.statements.append(self._parse_class_assignment(line))
        elif word in STYLE_KEYWORDS:
            parts = rest_after(text, word).split(None, 1)
            scope.statements.append(Style(
                position=line.position,
                keyword=word,
                target=parts[0] if parts else "",
                body=parts[1] if len(parts) > 1 else "",
            ))
        elif NODE_ID_RE.match(text):
            self._parse_node_statement(line, scopes)
        else:
            scope.statements.append(RawStatement(position=line.position, keyword=word, text=text))

    def _open_subgraph(self, line: SourceLine, scopes: List[_Scope]) -> None:
        rest = rest_after(line.text, "subgraph")
        if not rest:
            raise ParseError("subgraph requires an id or title", line.number, line.column)

        match = SUBGRAPH_ID_TITLE_RE.match(rest)
        if match:
            subgraph_id, title = match.group(1), _unquote(match.group(2).strip())
        elif rest.startswith('"') and rest.endswith('"') and len(rest) > 1:
            subgraph_id = title = rest[1:-1]
        else:
            subgraph_id = title = rest

        scopes.append(_Scope(opener=line, subgraph_id=subgraph_id, title=title))

    def _close_subgraph(self, line: SourceLine, scopes: List[_Scope]) -> None:
        if len(scopes) == 1:
            raise ParseError("'end' without matching 'subgraph'", line.number, line.column)
        scope = scopes.pop()
        # node ids are diagram-wide, so definitions made inside stay visible
        scopes[-1].defined.update(scope.defined)
        scopes[-1].statements.append(scope)

    def _parse_class_def(self, line: SourceLine) -> ClassDef:
        parts = rest_after(line.text, "classDef").split(None, 1)
        if not parts:
            raise ParseError("classDef requires a class name", line.number, line.column)
        return ClassDef(
            position=line.position,
            class_name=parts[0],
            styles=parts[1] if len(parts) > 1 else "",
        )

    def _parse_class_assignment(self, line: SourceLine) -> ClassAssignment:
        parts = rest_after(line.text, "class").split()
        if len(parts) != 2:
            raise ParseError(
                "class statement needs node ids and a class name", line.number, line.column
            )
        node_ids = tuple(n.strip() for n in parts[0].split(",") if n.strip())
        return ClassAssignment(position=line.position, node_ids=node_ids, class_name=parts[1])

    # ---------- nodes and links ----------

    def _parse_node_statement(self, line: SourceLine, scopes: List[_Scope]) -> None:
        text = line.text
        groups: List[List[_NodeRef]] = []
        arrows: List[_Arrow] = []

        group, pos = self._read_group(line, 0)
        groups.append(group)
        pos = _skip_ws(text, pos)
        while pos < len(text):
            arrow, pos = self._read_arrow(line, pos)
            group, pos = self._read_group(line, _skip_ws(text, pos))
            arrows.append(arrow)
            groups.append(group)
            pos = _skip_ws(text, pos)

        scope = scopes[-1]
        if not arrows:
            self._emit_standalone(groups[0], scopes)
            return

        for i, arrow in enumerate(arrows):
            for src in groups[i]:
                for dst in groups[i + 1]:
                    self._emit_inline(src, scopes)
                    scope.statements.append(Link(
                        position=src.position,
                        source=src.node_id,
                        target=dst.node_id,
                        arrow=arrow.token,
                        label=arrow.label,
                        bidirectional=arrow.bidirectional,
                    ))
                    self._emit_inline(dst, scopes)

    def _emit_standalone(self, group: List[_NodeRef], scopes: List[_Scope]) -> None:
        for ref in group:
            found, bare = _lookup(ref.node_id, scopes)
            if found and not ref.labelled:
                continue
            if bare is not None:
                _discard_bare(bare, scopes)
            self._define(ref, scopes)

    def _emit_inline(self, ref: _NodeRef, scopes: List[_Scope]) -> None:
        # First label wins: an inline label for an already labelled id is dropped.
        if not ref.labelled:
            return
        found, bare = _lookup(ref.node_id, scopes)
        if found and bare is None:
            return
        if bare is not None:
            _discard_bare(bare, scopes)
        self._define(ref, scopes)

    def _define(self, ref: _NodeRef, scopes: List[_Scope]) -> None:
        # a labelled definition takes the place of an earlier bare one
        for scope in scopes:
            if ref.node_id in scope.defined:
                scope.defined[ref.node_id] = None
        scopes[-1].statements.append(ref)
        scopes[-1].defined[ref.node_id] = None if ref.labelled else ref

    def _read_group(self, line: SourceLine, pos: int) -> Tuple[List[_NodeRef], int]:
        text = line.text
        refs = []
        while True:
            ref, pos = self._read_node(line, pos)
            refs.append(ref)
            nxt = _skip_ws(text, pos)
            if nxt < len(text) and text[nxt] == "&":
                pos = _skip_ws(text, nxt + 1)
                continue
            return refs, pos

    def _read_node(self, line: SourceLine, pos: int) -> Tuple[_NodeRef, int]:
        text = line.text
        match = NODE_ID_RE.match(text, pos)
        if not match:
            found = text[pos:pos + 10] or "end of line"
            raise ParseError(f"expected node id, found '{found}'", line.number, line.column + pos)

        ref = _NodeRef(node_id=match.group(0), position=line.at(pos))
        pos = match.end()

        for opener, closer, shape in SHAPE_DELIMITERS:
            if not text.startswith(opener, pos):
                continue
            closers = [(c, s) for o, c, s in SHAPE_DELIMITERS if o == opener]
            label_start = pos + len(opener)
            end, closer, shape = _find_closer(text, label_start, closers)
            if end < 0:
                raise ParseError(
                    f"unterminated label for node '{ref.node_id}'", line.number, line.column + pos
                )
            ref.label = text[label_start:end]
            ref.shape = shape
            pos = end + len(closer)
            break

        if text.startswith(":::", pos):
            css = CSS_CLASS_RE.match(text, pos + 3)
            if not css:
                raise ParseError("expected class name after ':::'", line.number, line.column + pos)
            ref.css_class = css.group(0)
            pos = css.end()

        return ref, pos

    def _read_arrow(self, line: SourceLine, pos: int) -> Tuple[_Arrow, int]:
        text = line.text
        match = LINK_RE.match(text, pos)

        if match and not (match.group("line") in ("--", "==") and not match.group("right")):
            left, right = match.group("left"), match.group("right")
            end = match.end()
            if (
                right in ("o", "x")
                and end < len(text)
                and NODE_ID_RE.match(text[end])
                and match.group("line") not in ("--", "==")
            ):
                # "---xray" is an open link to node "xray", not a cross head
                right = None
                end -= 1
            if left and not right:
                raise ParseError(
                    "link arrow has a head only on the left", line.number, line.column + pos
                )
            token = text[pos:end]
            label = None
            nxt = _skip_ws(text, end)
            if nxt < len(text) and text[nxt] == "|":
                close = text.find("|", nxt + 1)
                if close < 0:
                    raise ParseError("unterminated link label", line.number, line.column + nxt)
                label = text[nxt + 1:close].strip()
                end = close + 1
            return _Arrow(token=token, label=label, bidirectional=bool(left and right)), end

        return self._read_text_arrow(line, pos)

    def _read_text_arrow(self, line: SourceLine, pos: int) -> Tuple[_Arrow, int]:
        text = line.text
        left = ""
        start = pos
        if text[pos] in "<ox" and text[pos + 1:pos + 2] in ("-", "="):
            left = text[pos]
            start += 1
        opener = text[start:start + 2]
        closer_re = TEXT_LINK_CLOSERS.get(opener)
        if closer_re is None or not text[start + 2:start + 3].isspace():
            found = text[pos:pos + 10]
            raise ParseError(f"expected link arrow, found '{found}'", line.number, line.column + pos)

        closer = closer_re.search(text, start + 2)
        if not closer:
            raise ParseError("unterminated link text", line.number, line.column + pos)
        label = text[start + 2:closer.start()].strip()
        if not label:
            raise ParseError("empty link text", line.number, line.column + pos)

        token = closer.group(0) if opener != "-." else "-" + closer.group(0)
        token = left + token
        has_right = token[-1] in ">ox"
        if left and not has_right:
            raise ParseError("link arrow has a head only on the left", line.number, line.column + pos)
        return _Arrow(token=token, label=label, bidirectional=bool(left and has_right)), closer.end()


def _node_def(ref: _NodeRef) -> NodeDef:
    return NodeDef(
        position=ref.position,
        node_id=ref.node_id,
        label=ref.label,
        shape=ref.shape,
        css_class=ref.css_class,
    )


def _lookup(node_id: str, scopes: List[_Scope]) -> Tuple[bool, Optional[_NodeRef]]:
    """Whether node_id is defined, and its bare definition if it has no label yet"""
    for scope in scopes:
        if node_id in scope.defined:
            return True, scope.defined[node_id]
    return False, None


def _discard_bare(ref: _NodeRef, scopes: List[_Scope]) -> None:
    # closed subgraphs sit inside the statement lists of the open scopes
    for scope in scopes:
        if _discard(ref, scope.statements):
            return


def _discard(ref: _NodeRef, statements: List) -> bool:
    for i, item in enumerate(statements):
        if item is ref:
            del statements[i]
            return True
        if isinstance(item, _Scope) and _discard(ref, item.statements):
            return True
    return False


def _freeze(statements: List) -> Tuple:
    frozen = []
    for item in statements:
        if isinstance(item, _NodeRef):
            frozen.append(_node_def(item))
        elif isinstance(item, _Scope):
            frozen.append(Subgraph(
                position=item.opener.position,
                subgraph_id=item.subgraph_id,
                title=item.title,
                statements=_freeze(item.statements),
            ))
        else:
            frozen.append(item)
    return tuple(frozen)


def _find_closer(text: str, start: int, closers) -> Tuple[int, str, NodeShape]:
    search_from = start
    if text[start:start + 1] == '"':
        quote_end = text.find('"', start + 1)
        if quote_end < 0:
            return -1, "", NodeShape.RECTANGLE
        search_from = quote_end + 1

    best = (-1, "", NodeShape.RECTANGLE)
    for closer, shape in closers:
        idx = text.find(closer, search_from)
        if idx >= 0 and (best[0] < 0 or idx < best[0]):
            best = (idx, closer, shape)
    return best


def _skip_ws(text: str, pos: int) -> int:
    while pos < len(text) and text[pos].isspace():
        pos += 1
    return pos


def _unquote(text: str) -> str:
    if len(text) > 1 and text[0] == text[-1] == '"':
        return text[1:-1]
    return text
