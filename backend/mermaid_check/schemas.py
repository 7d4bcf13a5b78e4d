from pydantic import BaseModel
from typing import Optional, Dict, Any, List, Literal


class ParseRequest(BaseModel):
    source: str  # text of exactly one diagram, header first


class ValidateRequest(BaseModel):
    source: str
    input_format: Literal["mermaid", "markdown"] = "mermaid"
    strict: Optional[bool] = None  # None -> server default
    disabled_rules: List[str] = []
    fail_on: Optional[Literal["error", "warning", "info"]] = None


class ErrorModel(BaseModel):
    message: str
    line: int
    column: int


class DiagnosticModel(BaseModel):
    line: int
    column: int
    severity: str
    message: str
    rule: str = ""


class BlockModel(BaseModel):
    dialect: str
    start_line: int
    end_line: int
    valid: bool
    diagnostics: List[DiagnosticModel] = []
    error: Optional[ErrorModel] = None


class ParseResponse(BaseModel):
    status: str  # success | error
    dialect: Optional[str] = None
    tree: Optional[Dict[str, Any]] = None
    error: Optional[ErrorModel] = None


class ValidateResponse(BaseModel):
    status: str  # success | invalid | error
    passed: bool
    strict: bool
    fail_on: str
    blocks: List[BlockModel] = []
    message: Optional[str] = None


class RuleModel(BaseModel):
    name: str
    dialect: str
    description: str
    strict_only: bool


class HealthResponse(BaseModel):
    status: str
    version: str
