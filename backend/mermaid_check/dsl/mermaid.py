import logging
import re
from typing import Callable, Dict, Optional, Tuple

from mermaid_check.errors import ParseError
from mermaid_check.ir.base import Diagram
from mermaid_check.ir.generic import GenericDiagram

from .class_diagram import ClassParser
from .flowchart import FlowchartParser
from .lines import header_index, source_lines
from .sequence import SequenceParser
from .state import STATE_HEADERS, StateParser

logger = logging.getLogger(__name__)

MERMAID_DIRECTIVE_RE = re.compile(r"^(?P<keyword>[^\s;]+)")

# header keyword -> (dialect family, parser factory)
DIALECTS: Dict[str, Tuple[str, Callable]] = {
    "graph": ("flowchart", FlowchartParser),
    "flowchart": ("flowchart", FlowchartParser),
    "sequenceDiagram": ("sequence", SequenceParser),
    "classDiagram": ("class", ClassParser),
    "classDiagram-v2": ("class", ClassParser),
    "state": ("state", StateParser),
    "stateDiagram": ("state", StateParser),
    "stateDiagram-v2": ("state", StateParser),
}


def detect_dialect(source: str) -> Optional[str]:
    """
    Header keyword of the diagram, e.g. 'flowchart' or 'pie'.

    Blank lines, %% comments/directives and a leading --- front-matter
    block are skipped. Returns None when the source has no significant line.
    """
    lines = source_lines(source or "")
    idx = header_index(lines)
    if idx is None:
        return None
    match = MERMAID_DIRECTIVE_RE.match(lines[idx].text)
    return match.group("keyword") if match else None


def parse(source: str) -> Diagram:
    """
    Parse one Mermaid diagram into its typed syntax tree.

    Known headers go to their dialect parser; anything else is wrapped
    verbatim as a GenericDiagram. Raises ParseError on grammar violations,
    never returning a partial tree.
    """
    keyword = detect_dialect(source)
    if keyword is None:
        raise ParseError("empty diagram source")

    entry = DIALECTS.get(keyword)
    if entry is None:
        lines = source_lines(source)
        header = lines[header_index(lines)]
        logger.debug("No dialect parser for '%s', keeping it generic", keyword)
        return GenericDiagram(dialect=keyword, source=source, position=header.position)

    _, parser_cls = entry
    return parser_cls().parse(source)


def dialect_tag(keyword: str) -> str:
    """Dialect tag a successful parse of this header carries, e.g. 'sequence' for 'sequenceDiagram'."""
    if keyword in STATE_HEADERS:
        return STATE_HEADERS[keyword]
    entry = DIALECTS.get(keyword)
    if entry is None or entry[0] == "flowchart":
        return keyword
    return entry[0]


def is_supported(keyword: str) -> bool:
    """True when the header keyword has a dedicated dialect parser."""
    return keyword in DIALECTS
