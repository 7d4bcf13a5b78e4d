import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Optional

import yaml
from dotenv import load_dotenv

from mermaid_check.errors import RuleConfigError
from mermaid_check.validation.registry import get_rule_registry

# Load .env from project root
load_dotenv()

SEVERITY_NAMES = ("error", "warning", "info")


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str = "") -> List[str]:
    return [item.strip() for item in os.getenv(name, default).split(",") if item.strip()]


@dataclass
class RulesFile:
    """Contents of a YAML rules file."""
    strict: Optional[bool] = None
    disabled_rules: List[str] = field(default_factory=list)


@dataclass
class Settings:
    strict: bool = False
    fail_on: str = "info"
    log_level: str = "INFO"
    rules_file: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    workers: int = 1
    disabled_rules: List[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Settings":
        fail_on = os.getenv("MERMAID_CHECK_FAIL_ON", "info").strip().lower()
        if fail_on not in SEVERITY_NAMES:
            raise RuleConfigError(
                f"MERMAID_CHECK_FAIL_ON must be one of {', '.join(SEVERITY_NAMES)}, got '{fail_on}'"
            )
        try:
            workers = int(os.getenv("MERMAID_CHECK_WORKERS", "1"))
        except ValueError:
            raise RuleConfigError("MERMAID_CHECK_WORKERS must be an integer")

        settings = cls(
            strict=_env_bool("MERMAID_CHECK_STRICT"),
            fail_on=fail_on,
            log_level=os.getenv("MERMAID_CHECK_LOG_LEVEL", "INFO"),
            rules_file=os.getenv("MERMAID_CHECK_RULES_FILE") or None,
            cors_origins=_env_list("MERMAID_CHECK_CORS_ORIGINS", "*"),
            workers=max(1, workers),
        )
        if settings.rules_file:
            settings.apply_rules_file(load_rules_file(settings.rules_file))
        return settings

    def apply_rules_file(self, rules: RulesFile) -> None:
        if rules.strict is not None:
            self.strict = rules.strict
        self.disabled_rules = list(rules.disabled_rules)


def load_rules_file(path: str) -> RulesFile:
    """
    Read a YAML rules file:

        strict: true
        disabled_rules:
          - no-parentheses-in-labels

    Unknown rule names are rejected.
    """
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise RuleConfigError(f"cannot read rules file {path}: {e}")
    except yaml.YAMLError as e:
        raise RuleConfigError(f"malformed rules file {path}: {e}")

    if not isinstance(data, dict):
        raise RuleConfigError(f"rules file {path} must contain a mapping")
    unknown_keys = set(data) - {"strict", "disabled_rules"}
    if unknown_keys:
        raise RuleConfigError(f"unknown key(s) in rules file {path}: {', '.join(sorted(unknown_keys))}")

    strict = data.get("strict")
    if strict is not None and not isinstance(strict, bool):
        raise RuleConfigError(f"'strict' in {path} must be true or false")
    disabled = data.get("disabled_rules") or []
    if not isinstance(disabled, list) or not all(isinstance(n, str) for n in disabled):
        raise RuleConfigError(f"'disabled_rules' in {path} must be a list of rule names")

    get_rule_registry().check_names(disabled)

    return RulesFile(strict=strict, disabled_rules=list(disabled))


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
