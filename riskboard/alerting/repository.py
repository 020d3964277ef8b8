"""
Alert Rule Repository: persistence boundary for the rule set.

The engine never touches storage; the monitor loads rules through a
repository before a pass and saves the updated firing state after it.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Iterable, Protocol, Union

import structlog
from pydantic import TypeAdapter, ValidationError

from riskboard.alerting.defaults import default_rules
from riskboard.alerting.schemas import AlertRule
from riskboard.exceptions import RuleRepositoryError

logger = structlog.get_logger(__name__)

_RULE_LIST = TypeAdapter(list[AlertRule])


class RuleRepository(Protocol):
    def load(self) -> list[AlertRule]:
        ...

    def save(self, rules: list[AlertRule]) -> None:
        ...


class InMemoryRuleRepository:
    """Keeps deep copies, so callers cannot mutate stored state by accident."""

    def __init__(self, rules: Iterable[AlertRule] = ()):
        self._rules = [r.model_copy(deep=True) for r in rules]

    def load(self) -> list[AlertRule]:
        return [r.model_copy(deep=True) for r in self._rules]

    def save(self, rules: list[AlertRule]) -> None:
        self._rules = [r.model_copy(deep=True) for r in rules]


class JsonFileRuleRepository:
    """
    Rules stored as a JSON array in one file.

    Keys are written in camelCase, the format the dashboard stores. A
    missing file yields the built-in default rules.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load(self) -> list[AlertRule]:
        if not self.path.exists():
            logger.info("alert_rules_defaulted", path=str(self.path))
            return default_rules()

        try:
            raw = self.path.read_bytes()
            rules = _RULE_LIST.validate_json(raw)
        except (OSError, ValidationError) as e:
            raise RuleRepositoryError(f"Cannot load alert rules from {self.path}: {e}") from e

        logger.debug("alert_rules_loaded", path=str(self.path), n_rules=len(rules))
        return rules

    def save(self, rules: list[AlertRule]) -> None:
        data = [r.model_dump(mode="json", by_alias=True) for r in rules]
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Write to a sibling temp file, then swap it in
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise RuleRepositoryError(f"Cannot save alert rules to {self.path}: {e}") from e

        logger.debug("alert_rules_saved", path=str(self.path), n_rules=len(rules))
