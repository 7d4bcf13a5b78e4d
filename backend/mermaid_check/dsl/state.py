import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional

from mermaid_check.errors import ParseError
from mermaid_check.ir.base import RawStatement
from mermaid_check.ir.state import (
    Choice,
    Divider,
    EndState,
    Fork,
    Join,
    StartState,
    State,
    StateComment,
    StateDescription,
    StateDiagram,
    StateNote,
    Transition,
)

from .lines import SourceLine, first_word, header_index, source_lines

logger = logging.getLogger(__name__)

STATE_HEADERS = {
    "state": "state",
    "stateDiagram": "state",
    "stateDiagram-v2": "stateDiagram-v2",
}

PSEUDO = "[*]"

STATE_DESCRIBED_RE = re.compile(r'^state\s+"(?P<desc>[^"]*)"\s+as\s+(?P<id>[\w.]+)\s*(?P<open>\{)?$')
STATE_MARKER_RE = re.compile(r"^state\s+(?P<id>[\w.]+)\s+<<(?P<marker>\w+)>>$")
STATE_PLAIN_RE = re.compile(r"^state\s+(?P<id>[\w.]+)\s*(?P<open>\{)?$")
TRANSITION_RE = re.compile(
    r"^(?P<source>\[\*\]|[\w.]+)\s*-->\s*(?P<target>\[\*\]|[\w.]+)\s*(?::\s*(?P<label>.*))?$"
)
DESCRIPTION_RE = re.compile(r"^(?P<id>[\w.]+)\s*:\s*(?P<text>.*)$")
BARE_STATE_RE = re.compile(r"^[\w.]+$")
NOTE_RE = re.compile(
    r"^note\s+(?P<placement>left of|right of)\s+(?P<id>[\w.]+)\s*(?::\s*(?P<text>.*))?$",
    re.IGNORECASE,
)

MARKERS = {"fork": Fork, "join": Join, "choice": Choice}
RAW_KEYWORDS = ("direction", "classDef", "class", "title", "accTitle", "accDescr", "style")


@dataclass
class _Composite:
    line: SourceLine
    state_id: str
    description: Optional[str]
    statements: List = field(default_factory=list)


class StateParser:
    """Parses exactly one stateDiagram (v1 or v2 header)."""

    def parse(self, source: str) -> StateDiagram:
        lines = source_lines(source)
        idx = header_index(lines)
        if idx is None:
            raise ParseError("empty diagram source")
        header = lines[idx]
        keyword = first_word(header.text).rstrip(";")
        if keyword not in STATE_HEADERS:
            raise ParseError(
                f"expected 'stateDiagram' header, got '{keyword}'",
                header.number,
                header.column,
            )

        root: List = []
        stack: List[_Composite] = []
        remaining = iter(lines[idx + 1:])
        for line in remaining:
            target = stack[-1].statements if stack else root
            self._parse_line(line, remaining, target, stack, root)

        if stack:
            opener = stack[-1]
            raise ParseError(
                f"composite state '{opener.state_id}' is never closed",
                opener.line.number,
                opener.line.column,
            )

        logger.debug("Parsed state diagram: %d top-level statements", len(root))
        return StateDiagram(
            dialect=STATE_HEADERS[keyword],
            source=source,
            position=header.position,
            statements=tuple(root),
        )

    def _parse_line(
        self,
        line: SourceLine,
        remaining: Iterator[SourceLine],
        target: List,
        stack: List[_Composite],
        root: List,
    ) -> None:
        text = line.text
        word = first_word(text)

        if line.is_comment():
            target.append(StateComment(position=line.position, text=text[2:].strip()))
        elif text == "}":
            if not stack:
                raise ParseError("'}' without an open composite state", line.number, line.column)
            done = stack.pop()
            parent = stack[-1].statements if stack else root
            parent.append(State(
                position=done.line.position,
                state_id=done.state_id,
                description=done.description,
                statements=tuple(done.statements),
            ))
        elif text == "--":
            if not stack:
                raise ParseError("'--' outside of a composite state", line.number, line.column)
            target.append(Divider(position=line.position))
        elif word == "state":
            self._parse_state(line, target, stack)
        elif word.lower() == "note":
            target.append(self._parse_note(line, remaining))
        elif word in RAW_KEYWORDS:
            target.append(RawStatement(position=line.position, keyword=word, text=text))
        else:
            target.append(self._parse_transition_or_state(line))

    def _parse_state(self, line: SourceLine, target: List, stack: List[_Composite]) -> None:
        text = line.text

        match = STATE_MARKER_RE.match(text)
        if match:
            marker = match.group("marker").lower()
            if marker not in MARKERS:
                raise ParseError(f"unknown state marker '<<{match.group('marker')}>>'", line.number, line.column)
            target.append(MARKERS[marker](position=line.position, state_id=match.group("id")))
            return

        match = STATE_DESCRIBED_RE.match(text) or STATE_PLAIN_RE.match(text)
        if not match:
            raise ParseError(f"malformed state declaration '{text}'", line.number, line.column)

        description = match.groupdict().get("desc")
        if match.group("open"):
            stack.append(_Composite(line=line, state_id=match.group("id"), description=description))
        else:
            target.append(State(position=line.position, state_id=match.group("id"), description=description))

    def _parse_note(self, line: SourceLine, remaining: Iterator[SourceLine]) -> StateNote:
        match = NOTE_RE.match(line.text)
        if not match:
            raise ParseError(f"malformed note '{line.text}'", line.number, line.column)

        text = match.group("text")
        if text is None:
            # multi-line note, terminated by 'end note'
            body = []
            for note_line in remaining:
                if note_line.text.lower() == "end note":
                    break
                body.append(note_line.text)
            else:
                raise ParseError("note is never closed with 'end note'", line.number, line.column)
            text = "\n".join(body)

        return StateNote(
            position=line.position,
            placement=match.group("placement").lower(),
            state_id=match.group("id"),
            text=text.strip(),
        )

    def _parse_transition_or_state(self, line: SourceLine):
        text = line.text

        match = TRANSITION_RE.match(text)
        if match:
            source, target = match.group("source"), match.group("target")
            label = match.group("label").strip() if match.group("label") else None
            if source == PSEUDO and target == PSEUDO:
                raise ParseError("transition from [*] directly to [*]", line.number, line.column)
            if source == PSEUDO:
                return StartState(position=line.position, target=target, label=label)
            if target == PSEUDO:
                return EndState(position=line.position, source=source, label=label)
            return Transition(position=line.position, source=source, target=target, label=label)

        if "-->" in text:
            raise ParseError(f"malformed transition '{text}'", line.number, line.column)

        match = DESCRIPTION_RE.match(text)
        if match:
            return StateDescription(position=line.position, state_id=match.group("id"), text=match.group("text").strip())

        if BARE_STATE_RE.match(text):
            return State(position=line.position, state_id=text)

        return RawStatement(position=line.position, keyword=first_word(text), text=text)
