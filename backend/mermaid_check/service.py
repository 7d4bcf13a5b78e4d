"""
Check service - parse and validate one diagram or every diagram of a document.

Usage:
    results = check_document(readme_text, strict=True, workers=4)
    for result in results:
        print(result.get_summary())
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Union

from mermaid_check.dsl.mermaid import detect_dialect, dialect_tag, parse
from mermaid_check.errors import ErrorDetail, ParseError
from mermaid_check.extract.markdown import DiagramBlock, extract_from_markdown
from mermaid_check.validation.diagnostics import Diagnostic, Severity
from mermaid_check.validation.diagram_validator import ValidationReport, validate

logger = logging.getLogger(__name__)

DISPLAY_NAMES = {
    "flowchart": "Flowchart",
    "graph": "Flow Chart",
    "sequence": "Sequence Diagram",
    "class": "Class Diagram",
    "state": "State Diagram",
    "stateDiagram-v2": "State Diagram",
    "erDiagram": "ER Diagram",
    "gantt": "Gantt Chart",
    "pie": "Pie Chart",
    "journey": "User Journey",
    "timeline": "Timeline",
    "gitGraph": "Git Graph",
    "mindmap": "Mindmap",
    "sankey-beta": "Sankey Diagram",
    "quadrantChart": "Quadrant Chart",
    "xychart-beta": "XY Chart",
}


def display_name(dialect: str) -> str:
    return DISPLAY_NAMES.get(dialect, dialect or "unknown")


@dataclass
class BlockResult:
    """Outcome of checking one diagram; line numbers are document lines."""
    dialect: str
    start_line: int
    end_line: int
    diagnostics: List[Diagnostic] = field(default_factory=list)
    error: Optional[ErrorDetail] = None
    strict: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.diagnostics

    @property
    def error_text(self) -> Optional[str]:
        if self.error is None:
            return None
        return f"line {self.error.line}, col {self.error.column}: {self.error.message}"

    @property
    def line_range(self) -> str:
        return f"L{self.start_line}-L{self.end_line}"

    def report(self) -> ValidationReport:
        return ValidationReport(dialect=self.dialect, diagnostics=list(self.diagnostics), strict=self.strict)

    def fails(self, threshold: Union[Severity, str] = Severity.INFO) -> bool:
        """A parse error always fails; diagnostics fail at or above threshold."""
        return self.error is not None or self.report().fails(threshold)

    def get_summary(self) -> str:
        name = display_name(self.dialect)
        if self.error is not None:
            return f"{name} ({self.line_range}): parse error: {self.error_text}"
        if not self.diagnostics:
            return f"{name} ({self.line_range}): valid"
        return f"{name} ({self.line_range}): {len(self.diagnostics)} issue(s)"

    def to_dict(self) -> dict:
        return {
            "dialect": self.dialect,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "valid": self.ok,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "error": self.error.to_dict() if self.error else None,
        }


def check_source(
    source: str,
    strict: bool = False,
    line_offset: int = 0,
    disabled: Iterable[str] = (),
) -> BlockResult:
    """
    Parse and validate one diagram.

    line_offset is added to every reported line, so diagnostics of an
    embedded block point at document lines.
    """
    line_count = max(1, len(source.splitlines()))
    start, end = line_offset + 1, line_offset + line_count
    try:
        diagram = parse(source)
    except ParseError as e:
        logger.info("Parse error at line %d: %s", e.line + line_offset, e.message)
        try:
            dialect = dialect_tag(detect_dialect(source) or "")
        except ParseError:
            dialect = ""
        detail = ErrorDetail(message=e.message, line=e.line + line_offset, column=e.column)
        return BlockResult(dialect=dialect, start_line=start, end_line=end, error=detail, strict=strict)

    diagnostics = validate(diagram, strict=strict, disabled=disabled)
    if line_offset:
        diagnostics = [d.shifted(line_offset) for d in diagnostics]
    return BlockResult(
        dialect=diagram.dialect,
        start_line=start,
        end_line=end,
        diagnostics=diagnostics,
        strict=strict,
    )


def _check_block(block: DiagramBlock, strict: bool, disabled: Iterable[str]) -> BlockResult:
    result = check_source(block.source, strict=strict, line_offset=block.line_offset, disabled=disabled)
    result.end_line = block.end_line
    return result


def check_document(
    text: str,
    strict: bool = False,
    disabled: Iterable[str] = (),
    workers: int = 1,
) -> List[BlockResult]:
    """
    Check every mermaid block of a Markdown document.

    Raises ExtractionError for an unterminated fence. With workers > 1 the
    blocks are checked in a thread pool; results keep document order.
    """
    blocks = extract_from_markdown(text)
    disabled = tuple(disabled)
    if workers <= 1 or len(blocks) <= 1:
        return [_check_block(block, strict, disabled) for block in blocks]

    logger.debug("Checking %d blocks with %d workers", len(blocks), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        return list(executor.map(lambda block: _check_block(block, strict, disabled), blocks))
