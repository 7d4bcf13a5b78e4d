"""
Extract fenced mermaid blocks from Markdown documents.

Only ```mermaid and ~~~mermaid fences are extracted. Other fenced code is
skipped as a whole, so a mermaid fence shown inside a ```markdown example
is not picked up.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from mermaid_check.dsl.mermaid import detect_dialect
from mermaid_check.errors import ExtractionError, ParseError

logger = logging.getLogger(__name__)

FENCE_OPEN_RE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})\s*(?P<info>.*)$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(?P<fence>`{3,}|~{3,})\s*$")
MERMAID_FENCE_RE = re.compile(r"^ {0,3}(?:`{3,}|~{3,})\s*mermaid\b", re.MULTILINE)


@dataclass
class DiagramBlock:
    dialect_hint: str  # header keyword, "" for an empty block
    source: str
    start_line: int    # document line of the first source line
    end_line: int      # document line of the closing fence

    @property
    def line_offset(self) -> int:
        """Add to a block-relative line number to get the document line."""
        return self.start_line - 1

    @property
    def line_range(self) -> str:
        return f"L{self.start_line}-L{self.end_line}"


def has_mermaid_fences(text: str) -> bool:
    return MERMAID_FENCE_RE.search(text or "") is not None


def _is_mermaid(info: str) -> bool:
    words = info.split()
    return bool(words) and words[0].lower() == "mermaid"


def _closes(line: str, fence: str) -> bool:
    match = FENCE_CLOSE_RE.match(line)
    if not match:
        return False
    closing = match.group("fence")
    return closing[0] == fence[0] and len(closing) >= len(fence)


def _dedent(line: str, indent: int) -> str:
    stripped = len(line) - len(line.lstrip(" "))
    return line[min(indent, stripped):]


def _hint(source: str) -> str:
    try:
        return detect_dialect(source) or ""
    except ParseError:
        # unterminated front matter; the parser reports it per block
        return ""


def extract_from_markdown(text: str) -> List[DiagramBlock]:
    """
    Return every mermaid block of the document in order.

    Raises ExtractionError when a mermaid fence is never closed.
    """
    lines = (text or "").splitlines()
    blocks: List[DiagramBlock] = []
    i = 0
    while i < len(lines):
        match = FENCE_OPEN_RE.match(lines[i])
        if not match:
            i += 1
            continue

        fence = match.group("fence")
        if fence[0] == "`" and "`" in match.group("info"):
            # not a fence: backticks in a backtick info string
            i += 1
            continue

        opener = i
        mermaid = _is_mermaid(match.group("info"))
        indent = len(match.group("indent"))
        body: List[str] = []
        i += 1
        closed: Optional[int] = None
        while i < len(lines):
            if _closes(lines[i], fence):
                closed = i
                break
            body.append(_dedent(lines[i], indent))
            i += 1

        if closed is None:
            if mermaid:
                raise ExtractionError("unterminated mermaid code fence", opener + 1)
            break

        if mermaid:
            source = "\n".join(body)
            blocks.append(DiagramBlock(
                dialect_hint=_hint(source),
                source=source,
                start_line=opener + 2,
                end_line=closed + 1,
            ))
        i = closed + 1

    logger.debug("Extracted %d mermaid block(s)", len(blocks))
    return blocks
