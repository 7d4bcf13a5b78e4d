from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from .base import Diagram, Node, RawStatement


class NodeShape(Enum):
    RECTANGLE = "rectangle"
    ROUNDED = "rounded"
    DIAMOND = "diamond"
    SUBROUTINE = "subroutine"
    STADIUM = "stadium"
    CYLINDER = "cylinder"
    CIRCLE = "circle"
    DOUBLE_CIRCLE = "double-circle"
    HEXAGON = "hexagon"
    ASYMMETRIC = "asymmetric"
    PARALLELOGRAM = "parallelogram"
    PARALLELOGRAM_ALT = "parallelogram-alt"
    TRAPEZOID = "trapezoid"
    TRAPEZOID_ALT = "trapezoid-alt"


# (opener, closer, shape) - longest openers first so "[[" wins over "["
SHAPE_DELIMITERS = (
    ("(((", ")))", NodeShape.DOUBLE_CIRCLE),
    ("[[", "]]", NodeShape.SUBROUTINE),
    ("[(", ")]", NodeShape.CYLINDER),
    ("([", "])", NodeShape.STADIUM),
    ("((", "))", NodeShape.CIRCLE),
    ("{{", "}}", NodeShape.HEXAGON),
    ("[/", "/]", NodeShape.PARALLELOGRAM),
    ("[\\", "\\]", NodeShape.PARALLELOGRAM_ALT),
    ("[/", "\\]", NodeShape.TRAPEZOID),
    ("[\\", "/]", NodeShape.TRAPEZOID_ALT),
    ("[", "]", NodeShape.RECTANGLE),
    ("(", ")", NodeShape.ROUNDED),
    ("{", "}", NodeShape.DIAMOND),
    (">", "]", NodeShape.ASYMMETRIC),
)


@dataclass(frozen=True)
class NodeDef(Node):
    node_id: str = ""
    label: Optional[str] = None
    shape: Optional[NodeShape] = None
    css_class: Optional[str] = None


@dataclass(frozen=True)
class Link(Node):
    source: str = ""
    target: str = ""
    arrow: str = "-->"
    label: Optional[str] = None
    bidirectional: bool = False

    @property
    def stroke(self) -> str:
        if "~" in self.arrow:
            return "invisible"
        if "=" in self.arrow:
            return "thick"
        if "." in self.arrow:
            return "dotted"
        return "solid"


@dataclass(frozen=True)
class Subgraph(Node):
    subgraph_id: str = ""
    title: str = ""
    statements: Tuple["FlowStatement", ...] = ()


@dataclass(frozen=True)
class Direction(Node):
    direction: str = ""


@dataclass(frozen=True)
class ClassDef(Node):
    class_name: str = ""
    styles: str = ""


@dataclass(frozen=True)
class ClassAssignment(Node):
    node_ids: Tuple[str, ...] = ()
    class_name: str = ""


@dataclass(frozen=True)
class Style(Node):
    keyword: str = "style"  # style | linkStyle | click
    target: str = ""
    body: str = ""


@dataclass(frozen=True)
class Comment(Node):
    text: str = ""


FlowStatement = Union[
    NodeDef, Link, Subgraph, Direction, ClassDef, ClassAssignment, Style, Comment, RawStatement
]


@dataclass(frozen=True)
class FlowchartDiagram(Diagram):
    direction: Optional[str] = None
    statements: Tuple[FlowStatement, ...] = ()

    @property
    def kind(self) -> str:
        return "flowchart"


def walk_flow(statements):
    """Yield every statement depth-first, descending into subgraphs in source order."""
    for stmt in statements:
        yield stmt
        if isinstance(stmt, Subgraph):
            yield from walk_flow(stmt.statements)
