"""
Rule Catalogue

Loads the list of EN 16931 business rules from YAML. The catalogue is the
single place that says which rules exist, in which order they run, and
whether each one is implemented.

File format:
    rules:
      - id: BR-CO-14
        text: "Invoice total VAT amount (BT-110) = ..."
        status: implemented
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

import yaml
from loguru import logger

DEFAULT_CATALOGUE_PATH = Path(__file__).resolve().parent.parent / 'config' / 'business_rules.yaml'


class RuleCatalogueError(Exception):
    """The rule catalogue is unreadable or inconsistent with the rule implementations."""


class RuleStatus(Enum):
    """Implementation status of a catalogued rule."""
    IMPLEMENTED = 'implemented'
    NOT_IMPLEMENTED = 'not_implemented'


@dataclass(frozen=True)
class RuleDefinition:
    """One catalogue entry."""
    rule_id: str
    text: str
    status: RuleStatus

    @property
    def is_implemented(self) -> bool:
        return self.status == RuleStatus.IMPLEMENTED

    @classmethod
    def from_dict(cls, data: dict) -> 'RuleDefinition':
        """Create RuleDefinition from config dict."""
        if not isinstance(data, dict):
            raise RuleCatalogueError(f"Catalogue entry must be a mapping, got: {data!r}")

        rule_id = str(data.get('id', '')).strip()
        if not rule_id:
            raise RuleCatalogueError(f"Catalogue entry without id: {data!r}")

        text = str(data.get('text', '')).strip()
        if not text:
            raise RuleCatalogueError(f"Rule {rule_id} has no text")

        try:
            status = RuleStatus(data.get('status', RuleStatus.NOT_IMPLEMENTED.value))
        except ValueError as e:
            raise RuleCatalogueError(
                f"Rule {rule_id} has unknown status {data.get('status')!r}"
            ) from e

        return cls(rule_id=rule_id, text=text, status=status)

    def to_dict(self) -> dict:
        return {
            'id': self.rule_id,
            'text': self.text,
            'status': self.status.value,
        }


def load_catalogue(path: Optional[Path] = None) -> List[RuleDefinition]:
    """
    Load rule definitions from a YAML catalogue.

    Args:
        path: Catalogue file, defaults to the bundled business_rules.yaml

    Returns:
        Rule definitions in file order

    Raises:
        RuleCatalogueError: If the file is missing, malformed or lists a rule twice
    """
    path = Path(path) if path else DEFAULT_CATALOGUE_PATH
    logger.debug(f"Loading rule catalogue from: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise RuleCatalogueError(f"Failed to load rule catalogue {path}: {e}") from e

    entries = config.get('rules') if isinstance(config, dict) else None
    if not isinstance(entries, list):
        raise RuleCatalogueError(f"Rule catalogue {path} has no 'rules' list")

    definitions = [RuleDefinition.from_dict(entry) for entry in entries]

    seen = set()
    for definition in definitions:
        if definition.rule_id in seen:
            raise RuleCatalogueError(f"Rule {definition.rule_id} listed twice in {path}")
        seen.add(definition.rule_id)

    implemented = sum(1 for d in definitions if d.is_implemented)
    logger.info(f"Loaded {len(definitions)} rule definitions ({implemented} implemented)")
    return definitions
