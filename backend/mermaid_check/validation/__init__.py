from .diagnostics import Diagnostic, Severity
from .rules import ClassRule, FlowchartRule, Rule, SequenceRule, StateRule, Validator
from .registry import RuleRegistry, get_rule_registry
from .diagram_validator import DiagramValidator, ValidationReport, validate
