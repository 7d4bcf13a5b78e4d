from dataclasses import dataclass, replace
from enum import Enum

from mermaid_check.ir.base import Position


class Severity(Enum):
    ERROR = "error"      # Diagram will not render or is structurally wrong
    WARNING = "warning"  # Diagram renders but is likely not what was meant
    INFO = "info"        # Suggestions for improvement

    def __str__(self) -> str:
        return self.value

    @property
    def rank(self) -> int:
        """Higher is more severe."""
        return {"info": 0, "warning": 1, "error": 2}[self.value]

    def at_least(self, threshold: "Severity") -> bool:
        return self.rank >= threshold.rank


@dataclass(frozen=True)
class Diagnostic:
    """A single validation finding, produced by exactly one rule."""
    line: int
    column: int
    message: str
    severity: Severity = Severity.ERROR
    rule: str = ""

    @classmethod
    def at(cls, position: Position, message: str, severity: Severity = Severity.ERROR, rule: str = "") -> "Diagnostic":
        return cls(
            line=position.line,
            column=position.column,
            message=message,
            severity=severity,
            rule=rule,
        )

    @property
    def position(self) -> Position:
        return Position(self.line, self.column)

    def shifted(self, line_offset: int) -> "Diagnostic":
        """Same finding moved down by line_offset lines (for diagrams embedded in a document)."""
        return replace(self, line=self.line + line_offset)

    def __str__(self) -> str:
        return f"line {self.line}, col {self.column}: {self.severity}: {self.message}"

    def to_dict(self) -> dict:
        return {
            "line": self.line,
            "column": self.column,
            "severity": self.severity.value,
            "message": self.message,
            "rule": self.rule,
        }
