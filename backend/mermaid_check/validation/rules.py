"""
Rule framework.

A rule is bound to exactly one dialect's diagram class. It exposes a name
and a pure check() from that diagram to an ordered list of diagnostics.
A Validator runs an ordered list of rules and concatenates their output.

Usage:
    validator = Validator([ValidDirection(), NoDuplicateNodeIds()])
    diagnostics = validator.validate(diagram)
"""

from abc import ABC, abstractmethod
from typing import List, Sequence, Type

from mermaid_check.ir.base import Diagram, Position
from mermaid_check.ir.class_diagram import ClassDiagram
from mermaid_check.ir.flowchart import FlowchartDiagram
from mermaid_check.ir.sequence import SequenceDiagram
from mermaid_check.ir.state import StateDiagram

from .diagnostics import Diagnostic, Severity


class Rule(ABC):
    name: str = ""
    description: str = ""
    diagram_type: Type[Diagram] = Diagram

    @abstractmethod
    def check(self, diagram) -> List[Diagnostic]:
        """Inspect the diagram, never mutating it."""

    def report(self, position: Position, message: str, severity: Severity = Severity.ERROR) -> Diagnostic:
        return Diagnostic.at(position, message, severity, rule=self.name)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


class FlowchartRule(Rule):
    diagram_type = FlowchartDiagram


class SequenceRule(Rule):
    diagram_type = SequenceDiagram


class ClassRule(Rule):
    diagram_type = ClassDiagram


class StateRule(Rule):
    diagram_type = StateDiagram


class Validator:
    """Ordered rule list for one dialect."""

    def __init__(self, rules: Sequence[Rule]):
        self.rules: List[Rule] = list(rules)

    def validate(self, diagram: Diagram) -> List[Diagnostic]:
        diagnostics: List[Diagnostic] = []
        for rule in self.rules:
            if not isinstance(diagram, rule.diagram_type):
                raise TypeError(
                    f"rule '{rule.name}' checks {rule.diagram_type.__name__}, "
                    f"got {type(diagram).__name__}"
                )
            diagnostics.extend(rule.check(diagram))
        return diagnostics

    @property
    def rule_names(self) -> List[str]:
        return [rule.name for rule in self.rules]
