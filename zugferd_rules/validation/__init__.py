"""
Invoice Validation Package

Two independent checks over an assembled invoice:

- Completeness: are all fields mandatory for the declared conformance tier
  present? Fails with a CompletenessError listing every missing field.
- Business rules: do the EN 16931 calculation rules hold? Returns a list
  of Violations; never fails.

Key Principle: the two channels are never mixed. A missing field for a
tier blocks the document at that tier; a rule violation is advisory.

Usage:
    from zugferd_rules.validation import CompletenessGate, BusinessRuleEngine

    CompletenessGate().check(snapshot, ConformanceTier.BASIC)

    for violation in BusinessRuleEngine().evaluate(snapshot):
        print(violation)
"""

from .completeness import (
    CompletenessGate,
    CompletenessError,
    FieldRequirement,
)
from .catalogue import (
    RuleDefinition,
    RuleStatus,
    RuleCatalogueError,
    load_catalogue,
)
from .business_rules import (
    BusinessRule,
    BusinessRuleEngine,
    RuleRegistry,
    Violation,
    MissingValue,
    IMPLEMENTED_RULES,
    DEFAULT_TOLERANCE,
)
from .report import ViolationReport

__all__ = [
    # Completeness
    'CompletenessGate',
    'CompletenessError',
    'FieldRequirement',

    # Catalogue
    'RuleDefinition',
    'RuleStatus',
    'RuleCatalogueError',
    'load_catalogue',

    # Business rules
    'BusinessRule',
    'BusinessRuleEngine',
    'RuleRegistry',
    'Violation',
    'MissingValue',
    'IMPLEMENTED_RULES',
    'DEFAULT_TOLERANCE',

    # Report
    'ViolationReport',
]
