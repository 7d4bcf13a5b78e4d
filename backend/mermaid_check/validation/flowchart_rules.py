from typing import Dict, List, Set

from mermaid_check.ir.base import Position
from mermaid_check.ir.flowchart import Direction, FlowchartDiagram, Link, NodeDef, walk_flow

from .diagnostics import Diagnostic
from .rules import FlowchartRule

VALID_DIRECTIONS = ("TB", "TD", "BT", "RL", "LR")


class ValidDirection(FlowchartRule):
    """Header direction and every `direction X` statement must be a known token."""
    name = "valid-direction"
    description = "direction must be one of TB, TD, BT, RL, LR"

    def check(self, diagram: FlowchartDiagram) -> List[Diagnostic]:
        issues = []
        if diagram.direction is not None and diagram.direction not in VALID_DIRECTIONS:
            issues.append(self._invalid(diagram.position, diagram.direction))
        for stmt in walk_flow(diagram.statements):
            if isinstance(stmt, Direction) and stmt.direction not in VALID_DIRECTIONS:
                issues.append(self._invalid(stmt.position, stmt.direction))
        return issues

    def _invalid(self, position: Position, direction: str) -> Diagnostic:
        return self.report(
            position,
            f"invalid direction '{direction}' (must be {', '.join(VALID_DIRECTIONS)})",
        )


class NoUndefinedNodes(FlowchartRule):
    """
    Collects node definitions and link endpoints into one namespace.

    Mermaid declares a node implicitly on first use, so a link endpoint
    without a definition is valid and this rule never reports.
    """
    name = "no-undefined-nodes"
    description = "link endpoints are implicitly declared"

    def check(self, diagram: FlowchartDiagram) -> List[Diagnostic]:
        known: Set[str] = set()
        for stmt in walk_flow(diagram.statements):
            if isinstance(stmt, NodeDef):
                known.add(stmt.node_id)
            elif isinstance(stmt, Link):
                known.update((stmt.source, stmt.target))
        return []


class NoDuplicateNodeIds(FlowchartRule):
    name = "no-duplicate-node-ids"
    description = "a node id may be defined only once, subgraphs included"

    def check(self, diagram: FlowchartDiagram) -> List[Diagnostic]:
        issues = []
        first_seen: Dict[str, Position] = {}
        for stmt in walk_flow(diagram.statements):
            if not isinstance(stmt, NodeDef):
                continue
            if stmt.node_id in first_seen:
                issues.append(self.report(
                    stmt.position,
                    f"duplicate node ID '{stmt.node_id}' (first defined at line {first_seen[stmt.node_id].line})",
                ))
            else:
                first_seen[stmt.node_id] = stmt.position
        return issues


class NoParenthesesInLabels(FlowchartRule):
    """
    Parentheses inside a label break some renderers; strict catalog only.

    Only labels that reach the tree are checked. An inline label on a link
    endpoint that already has a label is dropped by the parser, so text such
    as `C --> A[y (z)]` after `A[x]` is never seen here.
    """
    name = "no-parentheses-in-labels"
    description = "node labels must not contain '(' or ')'"

    def check(self, diagram: FlowchartDiagram) -> List[Diagnostic]:
        issues = []
        for stmt in walk_flow(diagram.statements):
            if isinstance(stmt, NodeDef) and stmt.label and ("(" in stmt.label or ")" in stmt.label):
                issues.append(self.report(
                    stmt.position,
                    f"label of node '{stmt.node_id}' contains parentheses: {stmt.label}",
                ))
        return issues


DEFAULT_RULES = (ValidDirection, NoUndefinedNodes, NoDuplicateNodeIds)
STRICT_RULES = DEFAULT_RULES + (NoParenthesesInLabels,)
