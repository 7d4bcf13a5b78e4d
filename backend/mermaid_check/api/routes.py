import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException

from mermaid_check import __version__
from mermaid_check.api.serializers import serialize_tree
from mermaid_check.config import get_settings
from mermaid_check.dsl.mermaid import parse
from mermaid_check.errors import ExtractionError, ParseError, RuleConfigError
from mermaid_check.schemas import (
    HealthResponse,
    ParseRequest,
    ParseResponse,
    RuleModel,
    ValidateRequest,
    ValidateResponse,
)
from mermaid_check.service import check_document, check_source
from mermaid_check.validation.registry import get_rule_registry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok", "version": __version__}


@router.post("/parse", response_model=ParseResponse)
def parse_diagram(request: ParseRequest):
    """Parse one diagram and return its syntax tree"""
    try:
        diagram = parse(request.source)
    except ParseError as e:
        return {
            "status": "error",
            "error": {"message": e.message, "line": e.line, "column": e.column},
        }

    return {
        "status": "success",
        "dialect": diagram.dialect,
        "tree": serialize_tree(diagram),
    }


@router.post("/validate", response_model=ValidateResponse)
def validate_diagram(request: ValidateRequest):
    """
    Parse and validate one diagram, or every mermaid block of a Markdown
    document. Parse errors are reported per block, not as HTTP errors.
    """
    settings = get_settings()
    strict = settings.strict if request.strict is None else request.strict
    fail_on = request.fail_on or settings.fail_on
    disabled = request.disabled_rules or settings.disabled_rules

    try:
        get_rule_registry().check_names(disabled)
    except RuleConfigError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if request.input_format == "markdown":
        try:
            results = check_document(request.source, strict=strict, disabled=disabled, workers=settings.workers)
        except ExtractionError as e:
            return {
                "status": "error",
                "passed": False,
                "strict": strict,
                "fail_on": fail_on,
                "message": str(e),
            }
    else:
        results = [check_source(request.source, strict=strict, disabled=disabled)]

    passed = not any(r.fails(fail_on) for r in results)
    logger.info("Validated %d block(s): %s", len(results), "passed" if passed else "failed")
    return {
        "status": "success" if passed else "invalid",
        "passed": passed,
        "strict": strict,
        "fail_on": fail_on,
        "blocks": [r.to_dict() for r in results],
    }


@router.get("/rules", response_model=List[RuleModel])
def list_rules(dialect: Optional[str] = None):
    """List registered rules, optionally for one dialect"""
    registry = get_rule_registry()
    return [
        entry.to_dict()
        for entry in registry.list_all()
        if dialect is None or entry.kind == dialect
    ]
