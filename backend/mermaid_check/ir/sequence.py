from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .base import Diagram, Node, RawStatement


@dataclass(frozen=True)
class Participant(Node):
    participant_id: str = ""
    alias: Optional[str] = None
    kind: str = "participant"  # participant | actor
    created: bool = False


@dataclass(frozen=True)
class Message(Node):
    sender: str = ""
    receiver: str = ""
    arrow: str = "->>"
    text: str = ""
    activate: bool = False
    deactivate: bool = False

    @property
    def dotted(self) -> bool:
        return "--" in self.arrow

    @property
    def bidirectional(self) -> bool:
        return self.arrow.startswith("<<")


@dataclass(frozen=True)
class Activation(Node):
    participant_id: str = ""
    active: bool = True


@dataclass(frozen=True)
class Branch(Node):
    """One section of a multi-branch block (alt/else, par/and, critical/option)."""
    label: str = ""
    statements: Tuple["SeqStatement", ...] = ()


@dataclass(frozen=True)
class Loop(Node):
    label: str = ""
    statements: Tuple["SeqStatement", ...] = ()


@dataclass(frozen=True)
class Opt(Node):
    label: str = ""
    statements: Tuple["SeqStatement", ...] = ()


@dataclass(frozen=True)
class Break(Node):
    label: str = ""
    statements: Tuple["SeqStatement", ...] = ()


@dataclass(frozen=True)
class Rect(Node):
    color: str = ""
    statements: Tuple["SeqStatement", ...] = ()


@dataclass(frozen=True)
class Alt(Node):
    branches: Tuple[Branch, ...] = ()


@dataclass(frozen=True)
class Par(Node):
    branches: Tuple[Branch, ...] = ()


@dataclass(frozen=True)
class Critical(Node):
    branches: Tuple[Branch, ...] = ()


@dataclass(frozen=True)
class Box(Node):
    label: str = ""
    statements: Tuple["SeqStatement", ...] = ()


@dataclass(frozen=True)
class Note(Node):
    placement: str = "over"  # left of | right of | over
    participants: Tuple[str, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Autonumber(Node):
    enabled: bool = True
    start: Optional[int] = None
    step: Optional[int] = None


@dataclass(frozen=True)
class SeqComment(Node):
    text: str = ""


SeqStatement = Union[
    Participant, Message, Activation, Loop, Opt, Break, Rect, Alt, Par, Critical,
    Box, Note, Autonumber, SeqComment, RawStatement,
]


@dataclass(frozen=True)
class SequenceDiagram(Diagram):
    statements: Tuple[SeqStatement, ...] = ()


def walk_sequence(statements):
    """Depth-first walk over sequence statements, entering blocks and branches in order."""
    for stmt in statements:
        yield stmt
        if isinstance(stmt, (Alt, Par, Critical)):
            for branch in stmt.branches:
                yield branch
                yield from walk_sequence(branch.statements)
        elif isinstance(stmt, (Loop, Opt, Break, Rect, Box)):
            yield from walk_sequence(stmt.statements)
