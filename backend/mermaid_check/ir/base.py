"""
Shared building blocks of the diagram syntax trees.

Every tree is made of frozen dataclasses: nodes are created once during a
single parse call and are read-only afterwards. Statement sequences are
tuples in source order.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Position:
    """1-based line/column of the first token of a construct."""
    line: int
    column: int = 1

    def __post_init__(self):
        if self.line < 1 or self.column < 1:
            raise ValueError(
                f"Position must be 1-based, got line={self.line} column={self.column}"
            )

    def __str__(self) -> str:
        return f"line {self.line}, col {self.column}"


@dataclass(frozen=True)
class Node:
    """Base for every statement: it always knows where it came from."""
    position: Position


@dataclass(frozen=True)
class RawStatement(Node):
    """
    A line the dialect parser recognises as a statement but does not model.

    Present in every dialect's statement union so that newer syntax degrades
    to an opaque leaf instead of failing the parse.
    """
    keyword: str = ""
    text: str = ""


@dataclass(frozen=True)
class Diagram:
    """Root of one parsed diagram."""
    dialect: str
    source: str
    position: Position

    @property
    def kind(self) -> str:
        """Dialect family, e.g. 'flowchart' for both graph and flowchart headers."""
        return self.dialect
