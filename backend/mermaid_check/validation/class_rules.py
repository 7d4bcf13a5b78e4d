from typing import Dict, List, Set

from mermaid_check.ir.base import Position
from mermaid_check.ir.class_diagram import (
    RELATIONSHIP_KINDS,
    VISIBILITY_SYMBOLS,
    ClassDecl,
    ClassDiagram,
    ClassMember,
    ClassNote,
    MemberDecl,
    Relationship,
)

from .diagnostics import Diagnostic
from .rules import ClassRule


class NoDuplicateClasses(ClassRule):
    name = "no-duplicate-classes"
    description = "a class may be declared only once"

    def check(self, diagram: ClassDiagram) -> List[Diagnostic]:
        issues = []
        first_seen: Dict[str, Position] = {}
        for stmt in diagram.statements:
            if not isinstance(stmt, ClassDecl):
                continue
            if stmt.name in first_seen:
                issues.append(self.report(
                    stmt.position,
                    f"duplicate class '{stmt.name}' (first defined at line {first_seen[stmt.name].line})",
                ))
            else:
                first_seen[stmt.name] = stmt.position
        return issues


class ValidClassReferences(ClassRule):
    """
    A note attached to a class must name a known class.

    Known means declared with `class`, given members with `Name : member`,
    or used as a relationship endpoint (implicit declaration).
    """
    name = "valid-class-references"
    description = "notes must reference a declared class"

    def check(self, diagram: ClassDiagram) -> List[Diagnostic]:
        known: Set[str] = set()
        for stmt in diagram.statements:
            if isinstance(stmt, ClassDecl):
                known.add(stmt.name)
            elif isinstance(stmt, MemberDecl):
                known.add(stmt.class_name)
            elif isinstance(stmt, Relationship):
                known.update((stmt.source, stmt.target))

        issues = []
        for stmt in diagram.statements:
            if isinstance(stmt, ClassNote) and stmt.class_name is not None and stmt.class_name not in known:
                issues.append(self.report(
                    stmt.position,
                    f"note references undefined class '{stmt.class_name}'",
                ))
        return issues


class ValidMemberVisibility(ClassRule):
    name = "valid-member-visibility"
    description = "member visibility must be one of + - # ~"

    def check(self, diagram: ClassDiagram) -> List[Diagnostic]:
        issues = []
        for stmt in diagram.statements:
            if isinstance(stmt, ClassDecl):
                owner, members = stmt.name, stmt.members
            elif isinstance(stmt, MemberDecl) and stmt.member is not None:
                owner, members = stmt.class_name, (stmt.member,)
            else:
                continue
            for member in members:
                if not self._is_valid(member):
                    issues.append(self.report(
                        member.position,
                        f"invalid visibility '{member.visibility}' on member '{member.name}' of class '{owner}' "
                        f"(must be one of {' '.join(VISIBILITY_SYMBOLS)})",
                    ))
        return issues

    @staticmethod
    def _is_valid(member: ClassMember) -> bool:
        return member.visibility == "" or member.visibility in VISIBILITY_SYMBOLS


class ValidRelationshipType(ClassRule):
    name = "valid-relationship-type"
    description = "relationship kind must be one of the six UML kinds"

    def check(self, diagram: ClassDiagram) -> List[Diagnostic]:
        return [
            self.report(
                stmt.position,
                f"invalid relationship type '{stmt.kind}' between '{stmt.source}' and '{stmt.target}'",
            )
            for stmt in diagram.statements
            if isinstance(stmt, Relationship) and stmt.kind not in RELATIONSHIP_KINDS
        ]


DEFAULT_RULES = (NoDuplicateClasses, ValidClassReferences, ValidMemberVisibility, ValidRelationshipType)
STRICT_RULES = DEFAULT_RULES
