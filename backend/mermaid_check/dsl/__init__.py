"""
Line-oriented parsers for the Mermaid dialects, plus the header dispatcher.
"""

from .mermaid import DIALECTS, detect_dialect, dialect_tag, is_supported, parse
