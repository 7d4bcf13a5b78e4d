from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .base import Diagram, Node, RawStatement


VISIBILITY_SYMBOLS = ("+", "-", "#", "~")

RELATIONSHIP_KINDS = (
    "inheritance",
    "composition",
    "aggregation",
    "association",
    "dependency",
    "realization",
)


@dataclass(frozen=True)
class ClassMember(Node):
    visibility: str = ""  # raw token, not normalized
    name: str = ""
    text: str = ""
    is_method: bool = False
    classifier: str = ""  # "$" static, "*" abstract


@dataclass(frozen=True)
class ClassDecl(Node):
    name: str = ""
    label: Optional[str] = None
    generic: Optional[str] = None
    annotations: Tuple[str, ...] = ()
    members: Tuple[ClassMember, ...] = ()
    css_class: Optional[str] = None


@dataclass(frozen=True)
class MemberDecl(Node):
    class_name: str = ""
    member: Optional[ClassMember] = None


@dataclass(frozen=True)
class Relationship(Node):
    source: str = ""
    target: str = ""
    kind: str = "association"
    glyph: str = "-->"
    label: Optional[str] = None
    source_cardinality: Optional[str] = None
    target_cardinality: Optional[str] = None


@dataclass(frozen=True)
class Annotation(Node):
    class_name: str = ""
    annotation: str = ""


@dataclass(frozen=True)
class ClassNote(Node):
    class_name: Optional[str] = None
    text: str = ""


@dataclass(frozen=True)
class ClassComment(Node):
    text: str = ""


ClassStatement = Union[
    ClassDecl, MemberDecl, Relationship, Annotation, ClassNote, ClassComment, RawStatement
]


@dataclass(frozen=True)
class ClassDiagram(Diagram):
    statements: Tuple[ClassStatement, ...] = ()
