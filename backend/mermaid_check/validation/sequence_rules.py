from typing import Dict, List, Set

from mermaid_check.ir.base import Position
from mermaid_check.ir.sequence import (
    Activation,
    Alt,
    Box,
    Break,
    Critical,
    Loop,
    Message,
    Note,
    Opt,
    Par,
    Participant,
    Rect,
    SequenceDiagram,
    walk_sequence,
)

from .diagnostics import Diagnostic, Severity
from .rules import SequenceRule


class NoDuplicateParticipants(SequenceRule):
    name = "no-duplicate-participants"
    description = "a participant or actor may be declared only once"

    def check(self, diagram: SequenceDiagram) -> List[Diagnostic]:
        issues = []
        first_seen: Dict[str, Position] = {}
        for stmt in walk_sequence(diagram.statements):
            if not isinstance(stmt, Participant):
                continue
            if stmt.participant_id in first_seen:
                issues.append(self.report(
                    stmt.position,
                    f"duplicate participant '{stmt.participant_id}' "
                    f"(first declared at line {first_seen[stmt.participant_id].line})",
                ))
            else:
                first_seen[stmt.participant_id] = stmt.position
        return issues


class NoUnbalancedActivations(SequenceRule):
    """
    Deactivating a participant that is not active is an error.

    Activations come from `activate X` and from a `+` message marker on the
    receiver; a `-` marker deactivates the sender. Branches of alt and
    critical blocks are alternatives, so each starts from the state before
    the block; par branches run one after another.
    """
    name = "no-unbalanced-activations"
    description = "deactivate only participants that are active"

    def check(self, diagram: SequenceDiagram) -> List[Diagnostic]:
        issues: List[Diagnostic] = []
        self._walk(diagram.statements, {}, issues)
        return issues

    def _walk(self, statements, active: Dict[str, int], issues: List[Diagnostic]) -> None:
        for stmt in statements:
            if isinstance(stmt, Activation):
                if stmt.active:
                    self._activate(active, stmt.participant_id)
                else:
                    self._deactivate(active, stmt.participant_id, stmt.position, issues)
            elif isinstance(stmt, Message):
                if stmt.activate:
                    self._activate(active, stmt.receiver)
                if stmt.deactivate:
                    self._deactivate(active, stmt.sender, stmt.position, issues)
            elif isinstance(stmt, (Alt, Critical)):
                before = dict(active)
                outcomes = []
                for branch in stmt.branches:
                    state = dict(before)
                    self._walk(branch.statements, state, issues)
                    outcomes.append(state)
                active.clear()
                active.update(outcomes[0] if outcomes else before)
            elif isinstance(stmt, Par):
                for branch in stmt.branches:
                    self._walk(branch.statements, active, issues)
            elif isinstance(stmt, (Loop, Opt, Break, Rect, Box)):
                self._walk(stmt.statements, active, issues)

    @staticmethod
    def _activate(active: Dict[str, int], participant: str) -> None:
        active[participant] = active.get(participant, 0) + 1

    def _deactivate(self, active: Dict[str, int], participant: str, position: Position, issues: List[Diagnostic]) -> None:
        if active.get(participant, 0) == 0:
            issues.append(self.report(position, f"participant '{participant}' is deactivated but not active"))
            return
        active[participant] -= 1


class NoUndeclaredParticipants(SequenceRule):
    """
    Once a diagram declares participants explicitly, every participant used
    by a message, note or activation should be declared too. Strict only.
    """
    name = "no-undeclared-participants"
    description = "participants used after explicit declarations must be declared"

    def check(self, diagram: SequenceDiagram) -> List[Diagnostic]:
        statements = list(walk_sequence(diagram.statements))
        declared: Set[str] = {s.participant_id for s in statements if isinstance(s, Participant)}
        if not declared:
            return []

        issues = []
        reported: Set[str] = set()
        for stmt in statements:
            if isinstance(stmt, Message):
                used = (stmt.sender, stmt.receiver)
            elif isinstance(stmt, Note):
                used = stmt.participants
            elif isinstance(stmt, Activation):
                used = (stmt.participant_id,)
            else:
                continue
            for participant in used:
                if participant in declared or participant in reported:
                    continue
                reported.add(participant)
                issues.append(self.report(
                    stmt.position,
                    f"participant '{participant}' is used but never declared",
                    Severity.WARNING,
                ))
        return issues


DEFAULT_RULES = (NoDuplicateParticipants, NoUnbalancedActivations)
STRICT_RULES = DEFAULT_RULES + (NoUndeclaredParticipants,)
