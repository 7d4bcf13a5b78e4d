import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from mermaid_check.errors import ParseError
from mermaid_check.ir.base import RawStatement
from mermaid_check.ir.sequence import (
    Activation,
    Alt,
    Autonumber,
    Box,
    Branch,
    Break,
    Critical,
    Loop,
    Message,
    Note,
    Opt,
    Par,
    Participant,
    Rect,
    SeqComment,
    SequenceDiagram,
)

from .lines import SourceLine, first_word, header_index, rest_after, source_lines

logger = logging.getLogger(__name__)

SEQUENCE_KEYWORD = "sequenceDiagram"

PARTICIPANT_RE = re.compile(
    r"^(?:(?P<create>create)\s+)?(?P<kind>participant|actor)\s+(?P<id>\S+?)(?:\s+as\s+(?P<alias>.+))?$"
)
MESSAGE_RE = re.compile(
    r"^(?P<sender>[^\s:+<>-][^:<>]*?)\s*"
    r"(?P<arrow><<-->>|<<->>|-->>|->>|-->|--x|--\)|->|-x|-\))"
    r"\s*(?P<mod>[+-])?\s*"
    r"(?P<receiver>[^\s:+<>-][^:]*?)\s*"
    r"(?::(?P<text>.*))?$"
)
ARROW_HINT_RE = re.compile(r"-[->x)]")
NOTE_RE = re.compile(
    r"^note\s+(?P<placement>left of|right of|over)\s+(?P<who>[^:]+?)\s*:\s*(?P<text>.*)$",
    re.IGNORECASE,
)

SINGLE_BLOCKS = {"loop": Loop, "opt": Opt, "break": Break, "rect": Rect, "box": Box}
BRANCH_BLOCKS = {"alt": Alt, "par": Par, "critical": Critical}
BRANCH_KEYWORDS = {"else": "alt", "and": "par", "option": "critical"}
RAW_KEYWORDS = ("title", "accTitle", "accDescr", "link", "links", "properties", "details", "destroy")


@dataclass
class _BranchBuffer:
    line: SourceLine
    label: str
    statements: List = field(default_factory=list)


@dataclass
class _Block:
    keyword: str
    line: SourceLine
    label: str
    branches: List[_BranchBuffer] = field(default_factory=list)

    @property
    def statements(self) -> List:
        return self.branches[-1].statements


class SequenceParser:
    """Parses exactly one sequenceDiagram."""

    def parse(self, source: str) -> SequenceDiagram:
        lines = source_lines(source)
        idx = header_index(lines)
        if idx is None:
            raise ParseError("empty diagram source")
        header = lines[idx]
        if header.text.rstrip(";").strip() != SEQUENCE_KEYWORD:
            raise ParseError(
                f"expected '{SEQUENCE_KEYWORD}' header, got '{first_word(header.text)}'",
                header.number,
                header.column,
            )

        root: List = []
        stack: List[_Block] = []
        for line in lines[idx + 1:]:
            self._parse_line(line, root, stack)

        if stack:
            block = stack[-1]
            raise ParseError(
                f"'{block.keyword}' block is never closed with 'end'",
                block.line.number,
                block.line.column,
            )

        logger.debug("Parsed sequence diagram: %d top-level statements", len(root))
        return SequenceDiagram(
            dialect="sequence",
            source=source,
            position=header.position,
            statements=tuple(root),
        )

    def _parse_line(self, line: SourceLine, root: List, stack: List[_Block]) -> None:
        text = line.text
        target = stack[-1].statements if stack else root
        word = first_word(text)

        if line.is_comment():
            target.append(SeqComment(position=line.position, text=text[2:].strip()))
        elif text == "end":
            self._close_block(line, stack, root)
        elif word in SINGLE_BLOCKS or word in BRANCH_BLOCKS:
            label = rest_after(text, word)
            stack.append(_Block(
                keyword=word,
                line=line,
                label=label,
                branches=[_BranchBuffer(line=line, label=label)],
            ))
        elif word in BRANCH_KEYWORDS:
            self._open_branch(line, word, stack)
        elif word.lower() == "note":
            target.append(self._parse_note(line))
        elif word in ("activate", "deactivate"):
            participant = rest_after(text, word)
            if not participant:
                raise ParseError(f"'{word}' requires a participant", line.number, line.column)
            target.append(Activation(
                position=line.position,
                participant_id=participant,
                active=word == "activate",
            ))
        elif word == "autonumber":
            target.append(self._parse_autonumber(line))
        elif word in ("participant", "actor", "create"):
            target.append(self._parse_participant(line))
        elif word.rstrip(":") in RAW_KEYWORDS:
            target.append(RawStatement(position=line.position, keyword=word.rstrip(":"), text=text))
        else:
            target.append(self._parse_message(line))

    # ---------- blocks ----------

    def _open_branch(self, line: SourceLine, word: str, stack: List[_Block]) -> None:
        expected = BRANCH_KEYWORDS[word]
        if not stack or stack[-1].keyword != expected:
            raise ParseError(
                f"'{word}' outside of an '{expected}' block", line.number, line.column
            )
        stack[-1].branches.append(_BranchBuffer(line=line, label=rest_after(line.text, word)))

    def _close_block(self, line: SourceLine, stack: List[_Block], root: List) -> None:
        if not stack:
            raise ParseError("'end' without an open block", line.number, line.column)
        block = stack.pop()
        parent = stack[-1].statements if stack else root
        parent.append(self._build_block(block))

    def _build_block(self, block: _Block):
        first = block.branches[0]
        if block.keyword in BRANCH_BLOCKS:
            branches = tuple(
                Branch(position=b.line.position, label=b.label, statements=tuple(b.statements))
                for b in block.branches
            )
            return BRANCH_BLOCKS[block.keyword](position=block.line.position, branches=branches)
        if block.keyword == "rect":
            return Rect(position=block.line.position, color=block.label, statements=tuple(first.statements))
        return SINGLE_BLOCKS[block.keyword](
            position=block.line.position,
            label=block.label,
            statements=tuple(first.statements),
        )

    # ---------- leaves ----------

    def _parse_participant(self, line: SourceLine) -> Participant:
        match = PARTICIPANT_RE.match(line.text)
        if not match:
            raise ParseError(f"malformed participant declaration '{line.text}'", line.number, line.column)
        return Participant(
            position=line.position,
            participant_id=match.group("id"),
            alias=match.group("alias").strip() if match.group("alias") else None,
            kind=match.group("kind"),
            created=bool(match.group("create")),
        )

    def _parse_note(self, line: SourceLine) -> Note:
        match = NOTE_RE.match(line.text)
        if not match:
            raise ParseError(f"malformed note '{line.text}'", line.number, line.column)
        participants = tuple(p.strip() for p in match.group("who").split(",") if p.strip())
        return Note(
            position=line.position,
            placement=match.group("placement").lower(),
            participants=participants,
            text=match.group("text").strip(),
        )

    def _parse_autonumber(self, line: SourceLine) -> Autonumber:
        args = rest_after(line.text, "autonumber").split()
        if args == ["off"]:
            return Autonumber(position=line.position, enabled=False)
        if len(args) > 2 or not all(a.isdigit() for a in args):
            raise ParseError(f"malformed autonumber '{line.text}'", line.number, line.column)
        numbers: List[Optional[int]] = [int(a) for a in args] + [None, None]
        return Autonumber(position=line.position, enabled=True, start=numbers[0], step=numbers[1])

    def _parse_message(self, line: SourceLine):
        match = MESSAGE_RE.match(line.text)
        if match:
            mod = match.group("mod")
            return Message(
                position=line.position,
                sender=match.group("sender").strip(),
                receiver=match.group("receiver").strip(),
                arrow=match.group("arrow"),
                text=(match.group("text") or "").strip(),
                activate=mod == "+",
                deactivate=mod == "-",
            )
        if ARROW_HINT_RE.search(line.text):
            raise ParseError(f"malformed message '{line.text}'", line.number, line.column)
        return RawStatement(position=line.position, keyword=first_word(line.text), text=line.text)
