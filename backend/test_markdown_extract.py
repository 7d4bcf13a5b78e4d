"""Tests for Markdown fence extraction"""

import pytest

from mermaid_check import extract_from_markdown
from mermaid_check.errors import ExtractionError
from mermaid_check.extract import has_mermaid_fences

DOC = """# Title

```mermaid
graph TD
    A --> B
```

```python
print("not a diagram")
```

~~~mermaid
sequenceDiagram
A->>B: hi
~~~
"""


def test_extracts_mermaid_blocks_in_order():
    blocks = extract_from_markdown(DOC)
    assert len(blocks) == 2

    first, second = blocks
    assert first.dialect_hint == "graph"
    assert first.source == "graph TD\n    A --> B"
    assert (first.start_line, first.end_line) == (4, 6)
    assert first.line_offset == 3
    assert first.line_range == "L4-L6"

    assert second.dialect_hint == "sequenceDiagram"
    assert (second.start_line, second.end_line) == (13, 15)


def test_no_blocks():
    assert extract_from_markdown("# Just prose\n\nNothing here.") == []
    assert extract_from_markdown("") == []


def test_mermaid_fence_inside_other_code_is_ignored():
    doc = "````markdown\n```mermaid\ngraph TD\n```\n````\n"
    assert extract_from_markdown(doc) == []


def test_indented_fence_is_dedented():
    doc = "1. Step\n\n  ```mermaid\n  graph TD\n    A --> B\n  ```\n"
    block = extract_from_markdown(doc)[0]
    assert block.source == "graph TD\n  A --> B"
    assert block.start_line == 4


def test_closing_fence_may_be_longer():
    blocks = extract_from_markdown("```mermaid\ngraph TD\n`````\n")
    assert len(blocks) == 1
    assert blocks[0].end_line == 3


def test_info_string_after_mermaid():
    blocks = extract_from_markdown("```mermaid title=x\nclassDiagram\nA <|-- B\n```")
    assert blocks[0].dialect_hint == "classDiagram"


def test_empty_block_has_empty_hint():
    block = extract_from_markdown("```mermaid\n```")[0]
    assert (block.source, block.dialect_hint) == ("", "")


@pytest.mark.parametrize("doc,line", [
    ("intro\n```mermaid\ngraph TD\nA --> B\n", 2),
    ("~~~mermaid\ngraph TD\n```\n", 1),
])
def test_unterminated_mermaid_fence(doc, line):
    with pytest.raises(ExtractionError) as exc:
        extract_from_markdown(doc)
    assert exc.value.line == line


def test_unterminated_other_fence_is_not_an_error():
    assert extract_from_markdown("```python\nx = 1\n") == []


def test_has_mermaid_fences():
    assert has_mermaid_fences(DOC)
    assert has_mermaid_fences("  ~~~mermaid\n")
    assert not has_mermaid_fences("graph TD\nA --> B")
