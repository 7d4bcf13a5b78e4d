"""
Line handling shared by the dialect parsers.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional

from mermaid_check.errors import ParseError
from mermaid_check.ir.base import Position

OPENERS = {"[": "]", "(": ")", "{": "}"}
CLOSERS = {"]", ")", "}"}


@dataclass
class SourceLine:
    number: int  # 1-based
    column: int  # 1-based column of text[0] in the original line
    text: str    # stripped

    @property
    def position(self) -> Position:
        return Position(self.number, self.column)

    def at(self, offset: int) -> Position:
        """Position of text[offset]."""
        return Position(self.number, self.column + offset)

    def is_comment(self) -> bool:
        return self.text.startswith("%%")


def source_lines(source: str) -> List[SourceLine]:
    """Every non-blank line, stripped, with its 1-based number and column."""
    lines = []
    for idx, raw in enumerate(source.splitlines()):
        text = raw.strip()
        if not text:
            continue
        column = len(raw) - len(raw.lstrip()) + 1
        lines.append(SourceLine(number=idx + 1, column=column, text=text))
    return lines


def header_index(lines: List[SourceLine]) -> Optional[int]:
    """
    Index of the diagram header, skipping %% comments/directives and a
    leading YAML front-matter block.
    """
    i = 0
    if lines and lines[0].text == "---":
        i = 1
        while i < len(lines) and lines[i].text != "---":
            i += 1
        if i >= len(lines):
            raise ParseError("unterminated front matter block", lines[0].number, lines[0].column)
        i += 1
    while i < len(lines):
        if not lines[i].is_comment():
            return i
        i += 1
    return None


def split_statements(line: SourceLine) -> List[SourceLine]:
    """
    Split a line on ';' that sits outside brackets and quotes.
    Empty segments are dropped.
    """
    if line.is_comment() or ";" not in line.text:
        return [line]

    parts: List[SourceLine] = []
    depth = 0
    quoted = False
    start = 0
    text = line.text
    for i, ch in enumerate(text):
        if ch == '"':
            quoted = not quoted
        elif quoted:
            continue
        elif ch in OPENERS:
            depth += 1
        elif ch in CLOSERS and depth > 0:
            depth -= 1
        elif ch == ";" and depth == 0:
            parts.extend(_segment(line, start, i))
            start = i + 1
    parts.extend(_segment(line, start, len(text)))
    return parts


def _segment(line: SourceLine, start: int, end: int) -> Iterator[SourceLine]:
    chunk = line.text[start:end]
    stripped = chunk.strip()
    if stripped:
        lead = len(chunk) - len(chunk.lstrip())
        yield SourceLine(number=line.number, column=line.column + start + lead, text=stripped)


def first_word(text: str) -> str:
    parts = text.split(None, 1)
    return parts[0] if parts else ""


def rest_after(text: str, keyword: str) -> str:
    return text[len(keyword):].strip()
