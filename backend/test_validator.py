"""Tests for the validate dispatcher, the rule registry and DiagramValidator"""

import threading
import time

import pytest

from mermaid_check import DiagramValidator, parse, validate
from mermaid_check.errors import RuleConfigError
from mermaid_check.validation import Diagnostic, Severity, ValidationReport, Validator, get_rule_registry
from mermaid_check.validation import registry as registry_module
from mermaid_check.validation.flowchart_rules import ValidDirection


@pytest.mark.parametrize("kind,default_size,strict_size", [
    ("flowchart", 3, 4),
    ("sequence", 2, 3),
    ("class", 4, 4),
    ("state", 2, 2),
])
def test_catalog_sizes(kind, default_size, strict_size):
    registry = get_rule_registry()
    assert len(registry.rules_for(kind)) == default_size
    assert len(registry.rules_for(kind, strict=True)) == strict_size


def test_strict_catalog_extends_default_in_order():
    registry = get_rule_registry()
    default = [r.name for r in registry.rules_for("flowchart")]
    strict = [r.name for r in registry.rules_for("flowchart", strict=True)]
    assert default == ["valid-direction", "no-undefined-nodes", "no-duplicate-node-ids"]
    assert strict == default + ["no-parentheses-in-labels"]


def test_registry_entries():
    registry = get_rule_registry()
    assert registry.get_stats() == {"flowchart": 4, "sequence": 3, "class": 4, "state": 2}
    entry = registry.get("no-undeclared-participants")
    assert entry.strict_only
    assert entry.to_dict()["dialect"] == "sequence"
    assert registry.get("no-such-rule") is None
    assert len(registry.list_all()) == 13


def test_rules_for_returns_fresh_instances():
    registry = get_rule_registry()
    assert registry.rules_for("state")[0] is not registry.rules_for("state")[0]


def test_check_names():
    registry = get_rule_registry()
    registry.check_names(["valid-direction", "no-duplicate-states"])
    with pytest.raises(RuleConfigError, match="no-such-rule"):
        registry.check_names(["valid-direction", "no-such-rule"])


def test_generic_diagrams_validate_clean():
    diagram = parse('pie title Pets\n"Dogs" : 3')
    assert validate(diagram) == []
    assert validate(diagram, strict=True) == []


def test_validation_is_deterministic():
    diagram = parse("graph XY\nA[One]\nA[Two]")
    assert validate(diagram) == validate(diagram)
    assert len(validate(diagram)) == 2


def test_disabled_rules_are_skipped():
    diagram = parse("graph XY\nA[One]\nA[Two]")
    diagnostics = validate(diagram, disabled=["valid-direction"])
    assert [d.rule for d in diagnostics] == ["no-duplicate-node-ids"]


def test_validator_rejects_foreign_diagram():
    validator = Validator([ValidDirection()])
    assert validator.rule_names == ["valid-direction"]
    with pytest.raises(TypeError):
        validator.validate(parse("sequenceDiagram\nA->>B: hi"))


def test_diagram_validator_report():
    report = DiagramValidator(strict_mode=True).validate(
        parse("sequenceDiagram\nparticipant A\nA->>B: hi")
    )
    assert isinstance(report, ValidationReport)
    assert report.strict
    assert report.is_valid
    assert report.counts() == {"error": 0, "warning": 1, "info": 0}
    assert report.get_summary() == "sequence: valid | Errors: 0, Warnings: 1, Info: 0"
    assert report.to_dict()["warning_count"] == 1


def test_diagram_validator_rejects_unknown_disabled_rule():
    with pytest.raises(RuleConfigError):
        DiagramValidator(disabled_rules=["not-a-rule"])


@pytest.mark.parametrize("threshold,expected", [
    ("info", True),
    ("warning", True),
    ("error", False),
    (Severity.ERROR, False),
])
def test_report_fails_threshold(threshold, expected):
    report = ValidationReport(
        dialect="flowchart",
        diagnostics=[Diagnostic(line=2, column=1, message="m", severity=Severity.WARNING)],
    )
    assert report.fails(threshold) is expected


def test_empty_report_never_fails():
    report = ValidationReport(dialect="state")
    assert not report.fails("info")
    assert report.get_summary() == "state: valid | Errors: 0, Warnings: 0, Info: 0"


def test_first_registry_build_is_thread_safe(monkeypatch):
    register_catalog = registry_module._register_catalog

    def slow_register(*args):
        register_catalog(*args)
        time.sleep(0.01)

    monkeypatch.setattr(registry_module, "_registry", None)
    monkeypatch.setattr(registry_module, "_register_catalog", slow_register)

    barrier = threading.Barrier(8)
    counts = []

    def worker():
        barrier.wait()
        counts.append(len(validate(parse("graph XY\nA[1]\nA[2]"))))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert counts == [2] * 8
    assert len(get_rule_registry().list_all()) == 13
