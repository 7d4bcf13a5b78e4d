"""
Typed syntax trees for every supported diagram dialect.
"""

from .base import Diagram, Node, Position, RawStatement
from .flowchart import (
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
    walk_flow,
)
from .sequence import (
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
    walk_sequence,
)
from .class_diagram import (
    Annotation,
    ClassComment,
    ClassDecl,
    ClassDiagram,
    ClassMember,
    ClassNote,
    MemberDecl,
    Relationship,
    RELATIONSHIP_KINDS,
    VISIBILITY_SYMBOLS,
)
from .state import (
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
    walk_states,
)
from .generic import GenericDiagram
