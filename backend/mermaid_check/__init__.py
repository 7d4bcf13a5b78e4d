"""
mermaid_check - parse and validate Mermaid diagrams.

Usage:
    from mermaid_check import parse, validate

    diagram = parse("graph LR\nA[Start] --> B[End]")
    for diagnostic in validate(diagram, strict=True):
        print(diagnostic)
"""

__version__ = "0.1.0"

from mermaid_check.errors import ExtractionError, MermaidCheckError, ParseError, RuleConfigError
from mermaid_check.dsl.mermaid import detect_dialect, parse
from mermaid_check.validation import Diagnostic, DiagramValidator, Severity, ValidationReport, validate
from mermaid_check.extract.markdown import DiagramBlock, extract_from_markdown
