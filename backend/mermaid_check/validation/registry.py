"""
Rule Registry - Central store for the per-dialect rule catalogs
"""

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Type

from mermaid_check.errors import RuleConfigError

from . import class_rules, flowchart_rules, sequence_rules, state_rules
from .rules import Rule

logger = logging.getLogger(__name__)

DIALECT_KINDS = ("flowchart", "sequence", "class", "state")


@dataclass
class RuleEntry:
    """A rule class registered for one dialect"""
    rule_cls: Type[Rule]
    kind: str
    strict_only: bool = False

    @property
    def name(self) -> str:
        return self.rule_cls.name

    def to_dict(self) -> dict:
        return {
            "name": self.rule_cls.name,
            "dialect": self.kind,
            "description": self.rule_cls.description,
            "strict_only": self.strict_only,
        }


class RuleRegistry:
    """
    Central registry for validation rules

    Each dialect has a default catalog and a strict catalog; strict is the
    default catalog plus every rule registered with strict_only=True.
    Registration order is rule order.
    """

    def __init__(self):
        self.entries: Dict[str, List[RuleEntry]] = {kind: [] for kind in DIALECT_KINDS}
        self._name_index: Dict[str, RuleEntry] = {}

    def register(self, rule_cls: Type[Rule], kind: str, strict_only: bool = False) -> None:
        """Register a rule class for a dialect"""
        if kind not in self.entries:
            self.entries[kind] = []
        entry = RuleEntry(rule_cls=rule_cls, kind=kind, strict_only=strict_only)
        self.entries[kind].append(entry)
        self._name_index[rule_cls.name] = entry
        logger.debug("Registered rule '%s' for %s (strict_only=%s)", rule_cls.name, kind, strict_only)

    def get(self, name: str) -> Optional[RuleEntry]:
        """Get a rule entry by name"""
        return self._name_index.get(name)

    def rules_for(self, kind: str, strict: bool = False, disabled: Iterable[str] = ()) -> List[Rule]:
        """Fresh rule instances of one dialect's catalog, in registration order"""
        skip = set(disabled)
        return [
            entry.rule_cls()
            for entry in self.entries.get(kind, [])
            if (strict or not entry.strict_only) and entry.name not in skip
        ]

    def check_names(self, names: Iterable[str]) -> None:
        """Raise RuleConfigError for any name that is not a registered rule"""
        unknown = sorted(set(names) - set(self._name_index))
        if unknown:
            raise RuleConfigError(f"unknown rule name(s): {', '.join(unknown)}")

    def list_all(self) -> List[RuleEntry]:
        return [entry for kind in self.entries for entry in self.entries[kind]]

    def get_stats(self) -> Dict[str, int]:
        """Get registry statistics"""
        return {
            kind: len(entries)
            for kind, entries in self.entries.items()
        }


def _register_catalog(registry: RuleRegistry, kind: str, default, strict) -> None:
    for rule_cls in default:
        registry.register(rule_cls, kind)
    for rule_cls in strict:
        if rule_cls not in default:
            registry.register(rule_cls, kind, strict_only=True)


# Global registry instance
_registry: Optional[RuleRegistry] = None
_registry_lock = threading.Lock()


def get_rule_registry() -> RuleRegistry:
    """Get or create the global rule registry"""
    global _registry
    if _registry is None:
        with _registry_lock:
            if _registry is None:
                registry = RuleRegistry()
                _register_catalog(registry, "flowchart", flowchart_rules.DEFAULT_RULES, flowchart_rules.STRICT_RULES)
                _register_catalog(registry, "sequence", sequence_rules.DEFAULT_RULES, sequence_rules.STRICT_RULES)
                _register_catalog(registry, "class", class_rules.DEFAULT_RULES, class_rules.STRICT_RULES)
                _register_catalog(registry, "state", state_rules.DEFAULT_RULES, state_rules.STRICT_RULES)
                # published only once every catalog is in place
                _registry = registry
    return _registry
