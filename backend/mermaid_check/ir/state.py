from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .base import Diagram, Node, RawStatement


@dataclass(frozen=True)
class State(Node):
    state_id: str = ""
    description: Optional[str] = None
    statements: Tuple["StateStatement", ...] = ()  # composite body

    @property
    def is_composite(self) -> bool:
        return bool(self.statements)


@dataclass(frozen=True)
class StateDescription(Node):
    state_id: str = ""
    text: str = ""


@dataclass(frozen=True)
class Transition(Node):
    source: str = ""
    target: str = ""
    label: Optional[str] = None


@dataclass(frozen=True)
class StartState(Node):
    target: str = ""
    label: Optional[str] = None


@dataclass(frozen=True)
class EndState(Node):
    source: str = ""
    label: Optional[str] = None


@dataclass(frozen=True)
class Fork(Node):
    state_id: str = ""


@dataclass(frozen=True)
class Join(Node):
    state_id: str = ""


@dataclass(frozen=True)
class Choice(Node):
    state_id: str = ""


@dataclass(frozen=True)
class Divider(Node):
    """'--' separating concurrent regions of a composite state."""


@dataclass(frozen=True)
class StateNote(Node):
    placement: str = "right of"
    state_id: str = ""
    text: str = ""


@dataclass(frozen=True)
class StateComment(Node):
    text: str = ""


StateStatement = Union[
    State, StateDescription, Transition, StartState, EndState, Fork, Join, Choice,
    Divider, StateNote, StateComment, RawStatement,
]


@dataclass(frozen=True)
class StateDiagram(Diagram):
    statements: Tuple[StateStatement, ...] = ()

    @property
    def kind(self) -> str:
        return "state"


def walk_states(statements):
    """Depth-first walk, descending into composite state bodies."""
    for stmt in statements:
        yield stmt
        if isinstance(stmt, State) and stmt.is_composite:
            yield from walk_states(stmt.statements)
