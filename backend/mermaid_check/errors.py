from dataclasses import dataclass


class MermaidCheckError(Exception):
    """Base class for every error raised by mermaid_check."""


class ParseError(MermaidCheckError):
    """
    Grammar violation inside one diagram.

    Raised for unmatched block openers/terminators and malformed token
    sequences. Never raised for content that is lexically valid but
    semantically wrong (an unknown direction keyword, say); that is left
    to the validation rules.
    """

    def __init__(self, message: str, line: int = 1, column: int = 1):
        super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"line {self.line}, col {self.column}: {self.message}"


class ExtractionError(MermaidCheckError):
    """Raised when fenced diagram blocks cannot be extracted from a document."""

    def __init__(self, message: str, line: int = 1):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self) -> str:
        return f"line {self.line}: {self.message}"


class RuleConfigError(MermaidCheckError):
    """Invalid rules file or unknown rule name."""


@dataclass
class ErrorDetail:
    """Serializable view of a ParseError for API and CLI reporting."""
    message: str
    line: int
    column: int

    @classmethod
    def from_parse_error(cls, err: ParseError) -> "ErrorDetail":
        return cls(message=err.message, line=err.line, column=err.column)

    def to_dict(self) -> dict:
        return {"message": self.message, "line": self.line, "column": self.column}
