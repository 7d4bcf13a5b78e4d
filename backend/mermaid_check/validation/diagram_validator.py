"""
Diagram Validator - Runs the rule catalog matching a parsed diagram.

Catches issues like:
- Unknown flowchart directions
- Duplicate node, class, state and participant ids
- Parentheses in flowchart labels (strict)
- Notes referencing unknown classes
- Invalid member visibility and relationship kinds
- Deactivating participants that are not active
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union

from mermaid_check.ir.base import Diagram
from mermaid_check.ir.class_diagram import ClassDiagram
from mermaid_check.ir.flowchart import FlowchartDiagram
from mermaid_check.ir.sequence import SequenceDiagram
from mermaid_check.ir.state import StateDiagram

from .diagnostics import Diagnostic, Severity
from .registry import get_rule_registry
from .rules import Validator

logger = logging.getLogger(__name__)

# Closed set of dialect trees with a rule catalog; anything else validates to [].
DIAGRAM_KINDS = (
    (FlowchartDiagram, "flowchart"),
    (SequenceDiagram, "sequence"),
    (ClassDiagram, "class"),
    (StateDiagram, "state"),
)


def catalog_kind(diagram: object) -> Optional[str]:
    for diagram_type, kind in DIAGRAM_KINDS:
        if isinstance(diagram, diagram_type):
            return kind
    return None


def validator_for(diagram: object, strict: bool = False, disabled: Iterable[str] = ()) -> Optional[Validator]:
    kind = catalog_kind(diagram)
    if kind is None:
        return None
    return Validator(get_rule_registry().rules_for(kind, strict=strict, disabled=disabled))


def validate(diagram: Diagram, strict: bool = False, disabled: Iterable[str] = ()) -> List[Diagnostic]:
    """
    Run the default (or strict) catalog for the diagram's dialect.

    Diagrams without a catalog, generic ones included, yield an empty list.
    Findings are returned, never raised.
    """
    validator = validator_for(diagram, strict=strict, disabled=disabled)
    if validator is None:
        return []
    diagnostics = validator.validate(diagram)
    logger.debug(
        "Validated %s diagram with %d rules: %d diagnostics",
        diagram.dialect, len(validator.rules), len(diagnostics),
    )
    return diagnostics


@dataclass
class ValidationReport:
    """Result of diagram validation"""
    dialect: str
    diagnostics: List[Diagnostic] = field(default_factory=list)
    strict: bool = False

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.WARNING)

    @property
    def info_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.INFO)

    @property
    def is_valid(self) -> bool:
        return self.error_count == 0

    def fails(self, threshold: Union[Severity, str] = Severity.INFO) -> bool:
        """True when any diagnostic is at least as severe as threshold."""
        threshold = Severity(threshold)
        return any(d.severity.at_least(threshold) for d in self.diagnostics)

    def counts(self) -> Dict[str, int]:
        return {
            "error": self.error_count,
            "warning": self.warning_count,
            "info": self.info_count,
        }

    def to_dict(self) -> dict:
        return {
            "dialect": self.dialect,
            "strict": self.strict,
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }

    def get_summary(self) -> str:
        """Get human-readable summary"""
        status = "valid" if self.is_valid else "invalid"
        return (
            f"{self.dialect}: {status} | "
            f"Errors: {self.error_count}, Warnings: {self.warning_count}, Info: {self.info_count}"
        )


class DiagramValidator:
    """
    Validates parsed diagrams against the rule registry.

    Usage:
        validator = DiagramValidator(strict_mode=True)
        report = validator.validate(diagram)

        for diagnostic in report.diagnostics:
            print(diagnostic)
    """

    def __init__(self, strict_mode: bool = False, disabled_rules: Iterable[str] = ()):
        self.strict_mode = strict_mode
        self.disabled_rules = tuple(disabled_rules)
        get_rule_registry().check_names(self.disabled_rules)

    def validate(self, diagram: Diagram) -> ValidationReport:
        return ValidationReport(
            dialect=diagram.dialect,
            diagnostics=validate(diagram, strict=self.strict_mode, disabled=self.disabled_rules),
            strict=self.strict_mode,
        )
