from typing import Dict, List, Set

from mermaid_check.ir.base import Position
from mermaid_check.ir.state import Choice, Fork, Join, State, StateDiagram, Transition, walk_states

from .diagnostics import Diagnostic
from .rules import StateRule


class NoDuplicateStates(StateRule):
    name = "no-duplicate-states"
    description = "a state may be declared only once, composite bodies included"

    def check(self, diagram: StateDiagram) -> List[Diagnostic]:
        issues = []
        first_seen: Dict[str, Position] = {}
        for stmt in walk_states(diagram.statements):
            if not isinstance(stmt, State):
                continue
            if stmt.state_id in first_seen:
                issues.append(self.report(
                    stmt.position,
                    f"duplicate state ID '{stmt.state_id}' (first defined at line {first_seen[stmt.state_id].line})",
                ))
            else:
                first_seen[stmt.state_id] = stmt.position
        return issues


class ValidStateReferences(StateRule):
    """
    Collects declared states, pseudostates and transition endpoints into one
    namespace. Transitions declare their endpoints implicitly, so nothing is
    reported.
    """
    name = "valid-state-references"
    description = "transition endpoints are implicitly declared"

    def check(self, diagram: StateDiagram) -> List[Diagnostic]:
        known: Set[str] = set()
        for stmt in walk_states(diagram.statements):
            if isinstance(stmt, (State, Fork, Join, Choice)):
                known.add(stmt.state_id)
            elif isinstance(stmt, Transition):
                known.update((stmt.source, stmt.target))
        return []


DEFAULT_RULES = (NoDuplicateStates, ValidStateReferences)
STRICT_RULES = DEFAULT_RULES
