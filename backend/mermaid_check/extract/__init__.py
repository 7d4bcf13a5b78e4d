from .markdown import DiagramBlock, extract_from_markdown, has_mermaid_fences
