"""
Business Rule Engine

Evaluates EN 16931 business rules (BR / BR-CO) against an invoice
snapshot and reports every violation found.

Rules Implemented:
- BR-12, BR-13, BR-14: header totals are present
- BR-CO-10: Sum of line net amounts (BT-106) = Σ line net amount (BT-131)
- BR-CO-13: Total without VAT (BT-109) = Σ BT-131 - allowances (BT-107) + charges (BT-108)
- BR-CO-14: Total VAT (BT-110) = Σ VAT category tax amount (BT-117)
- BR-CO-15: Total with VAT (BT-112) = BT-109 + BT-110
- BR-CO-17: VAT category tax (BT-117) = taxable amount (BT-116) x rate (BT-119) / 100

Design Philosophy:
- Decimal amounts, absolute tolerance of one minor unit (0.01), no rounding
- Every rule runs; one failure never hides another
- A missing operand is a violation of the rule that needed it, not an error
- Violations carry the operand values, so they stay meaningful after the
  invoice is gone
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from ..document.snapshot import InvoiceSnapshot
from .catalogue import RuleCatalogueError, RuleDefinition, load_catalogue

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = Decimal('0.01')


def format_amount(value: Decimal) -> str:
    return f"{value:.2f}"


@dataclass(frozen=True)
class Violation:
    """
    A business rule the invoice does not satisfy.

    field_snapshot holds (name, value) pairs for every operand the rule
    used, values formatted to two decimals.
    """
    rule_id: str
    rule_text: str
    message: str
    field_snapshot: Tuple[Tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def is_missing_value(self) -> bool:
        return self.message.startswith(MissingValue.PREFIX)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            'rule_id': self.rule_id,
            'rule_text': self.rule_text,
            'message': self.message,
            'field_snapshot': [[name, value] for name, value in self.field_snapshot],
        }

    def __str__(self) -> str:
        return f"[{self.rule_id}] {self.message}"


class MissingValue(Exception):
    """An operand a rule needs is not set on the invoice."""

    PREFIX = 'Value is missing'

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{self.PREFIX}: {name}")


class BusinessRule:
    """
    Base class for business rules.

    Subclasses set rule_id and implement check(); the rule text comes from
    the catalogue entry the rule is bound to.
    """

    rule_id: str = ''

    def __init__(self, definition: Optional[RuleDefinition] = None):
        if definition is not None and definition.rule_id != self.rule_id:
            raise RuleCatalogueError(
                f"{type(self).__name__} implements {self.rule_id}, not {definition.rule_id}"
            )
        self.text = definition.text if definition else ''

    def check(self, snapshot: InvoiceSnapshot, tolerance: Decimal) -> Optional[Violation]:
        """Return a Violation if the rule does not hold. Override in subclasses."""
        raise NotImplementedError

    def evaluate(
        self,
        snapshot: InvoiceSnapshot,
        tolerance: Decimal = DEFAULT_TOLERANCE,
    ) -> Optional[Violation]:
        """Run the rule, turning a missing operand into a violation."""
        try:
            return self.check(snapshot, tolerance)
        except MissingValue as e:
            return Violation(
                rule_id=self.rule_id,
                rule_text=self.text,
                message=str(e),
                field_snapshot=((e.name, ''),),
            )

    @staticmethod
    def require(value: Optional[Any], name: str) -> Any:
        if value is None:
            raise MissingValue(name)
        return value

    def compare(
        self,
        lhs_name: str,
        lhs: Decimal,
        rhs: Decimal,
        rhs_name: str,
        operands: Sequence[Tuple[str, Decimal]],
        tolerance: Decimal,
    ) -> Optional[Violation]:
        """Violation if lhs and rhs differ by more than the tolerance."""
        if abs(lhs - rhs) <= tolerance:
            return None

        return Violation(
            rule_id=self.rule_id,
            rule_text=self.text,
            message=f"{lhs_name} = {format_amount(lhs)} != {format_amount(rhs)} = {rhs_name}",
            field_snapshot=tuple((name, format_amount(value)) for name, value in operands),
        )


class PresenceRule(BusinessRule):
    """A header amount must be set."""

    field_name: str = ''

    def value(self, snapshot: InvoiceSnapshot) -> Optional[Decimal]:
        raise NotImplementedError

    def check(self, snapshot: InvoiceSnapshot, tolerance: Decimal) -> Optional[Violation]:
        self.require(self.value(snapshot), self.field_name)
        return None


class LineTotalPresentRule(PresenceRule):
    rule_id = 'BR-12'
    field_name = 'bt_106'

    def value(self, snapshot):
        return snapshot.monetary_summation.line_total


class TaxBasisTotalPresentRule(PresenceRule):
    rule_id = 'BR-13'
    field_name = 'bt_109'

    def value(self, snapshot):
        return snapshot.monetary_summation.tax_basis_total


class GrandTotalPresentRule(PresenceRule):
    rule_id = 'BR-14'
    field_name = 'bt_112'

    def value(self, snapshot):
        return snapshot.monetary_summation.grand_total


class LineTotalRule(BusinessRule):
    """BT-106 = Σ BT-131. Invoices without lines have nothing to reconcile."""

    rule_id = 'BR-CO-10'

    def check(self, snapshot, tolerance):
        bt_106 = self.require(snapshot.monetary_summation.line_total, 'bt_106')
        if not snapshot.line_items:
            return None

        bt_131_sum = snapshot.line_net_total
        return self.compare(
            'bt_106', bt_106, bt_131_sum, 'sum(bt_131)',
            [('bt_106', bt_106), ('sum(bt_131)', bt_131_sum)],
            tolerance,
        )


class TaxBasisTotalRule(BusinessRule):
    """
    BT-109 = Σ BT-131 - BT-107 + BT-108.

    Document level allowances and charges default to zero. Invoices without
    lines (BASIC WL) use the header line total BT-106 in place of Σ BT-131.
    """

    rule_id = 'BR-CO-13'

    def check(self, snapshot, tolerance):
        summation = snapshot.monetary_summation
        bt_109 = self.require(summation.tax_basis_total, 'bt_109')

        if snapshot.line_items:
            lines_name, lines_total = 'sum(bt_131)', snapshot.line_net_total
        else:
            lines_name, lines_total = 'bt_106', self.require(summation.line_total, 'bt_106')

        bt_107 = summation.allowance_total if summation.allowance_total is not None else Decimal('0')
        bt_108 = summation.charge_total if summation.charge_total is not None else Decimal('0')
        expected = lines_total - bt_107 + bt_108

        return self.compare(
            'bt_109', bt_109, expected, f"{lines_name} - bt_107 + bt_108",
            [('bt_109', bt_109), (lines_name, lines_total), ('bt_107', bt_107), ('bt_108', bt_108)],
            tolerance,
        )


class VATTotalRule(BusinessRule):
    """BT-110 = Σ BT-117 over all VAT breakdown groups."""

    rule_id = 'BR-CO-14'

    def check(self, snapshot, tolerance):
        tax_total = self.require(snapshot.monetary_summation.tax_total, 'bt_110')
        bt_110 = tax_total.amount
        bt_117_sum = sum(
            (t.calculated_amount for t in snapshot.trade_taxes if t.calculated_amount is not None),
            Decimal('0'),
        )
        return self.compare(
            'bt_110', bt_110, bt_117_sum, 'sum(bt_117)',
            [('bt_110', bt_110), ('sum(bt_117)', bt_117_sum)],
            tolerance,
        )


class GrandTotalRule(BusinessRule):
    """BT-112 = BT-109 + BT-110."""

    rule_id = 'BR-CO-15'

    def check(self, snapshot, tolerance):
        summation = snapshot.monetary_summation
        bt_112 = self.require(summation.grand_total, 'bt_112')
        bt_109 = self.require(summation.tax_basis_total, 'bt_109')
        bt_110 = self.require(summation.tax_total, 'bt_110').amount
        return self.compare(
            'bt_112', bt_112, bt_109 + bt_110, 'bt_109 + bt_110',
            [('bt_112', bt_112), ('bt_109', bt_109), ('bt_110', bt_110)],
            tolerance,
        )


class VATCategoryAmountRule(BusinessRule):
    """
    BT-117 = BT-116 x (BT-119 / 100) for each VAT breakdown group.

    Reports the first group that does not add up. With more than one group
    the message names the group by its 1-based position.
    """

    rule_id = 'BR-CO-17'

    def check(self, snapshot, tolerance):
        if not snapshot.trade_taxes:
            raise MissingValue('bg_23')

        numbered = len(snapshot.trade_taxes) > 1
        for i, tax in enumerate(snapshot.trade_taxes):
            bt_117 = self.require(tax.calculated_amount, 'bt_117')
            bt_116 = self.require(tax.basis_amount, 'bt_116')
            bt_119 = self.require(tax.rate_applicable_percent, 'bt_119')

            violation = self.compare(
                'bt_117', bt_117, bt_116 * (bt_119 / Decimal('100')), 'bt_116 * (bt_119 / 100)',
                [('bt_117', bt_117), ('bt_116', bt_116), ('bt_119', bt_119)],
                tolerance,
            )
            if violation and numbered:
                return replace(violation, message=f"VAT breakdown {i + 1}: {violation.message}")
            if violation:
                return violation

        return None


IMPLEMENTED_RULES: Dict[str, Type[BusinessRule]] = {
    rule.rule_id: rule
    for rule in (
        LineTotalPresentRule,
        TaxBasisTotalPresentRule,
        GrandTotalPresentRule,
        LineTotalRule,
        TaxBasisTotalRule,
        VATTotalRule,
        GrandTotalRule,
        VATCategoryAmountRule,
    )
}


class RuleRegistry:
    """
    The ordered set of rules the engine runs.

    Built from the catalogue: implemented entries are bound to their rule
    class, not implemented entries are kept as pending, and explicitly
    disabled rules are skipped but remembered.

    Usage:
        registry = RuleRegistry.from_catalogue(disabled=['BR-CO-10'])
        print([r.rule_id for r in registry.rules])
        print([d.rule_id for d in registry.pending])
    """

    def __init__(
        self,
        rules: Iterable[BusinessRule],
        pending: Iterable[RuleDefinition] = (),
        disabled: Iterable[str] = (),
    ):
        self.rules: List[BusinessRule] = list(rules)
        self.pending: List[RuleDefinition] = list(pending)
        self.disabled: List[str] = list(disabled)

    @classmethod
    def from_catalogue(
        cls,
        definitions: Optional[Sequence[RuleDefinition]] = None,
        disabled: Iterable[str] = (),
        catalogue_path: Optional[Path] = None,
        implementations: Optional[Dict[str, Type[BusinessRule]]] = None,
    ) -> 'RuleRegistry':
        """
        Bind catalogue entries to rule implementations.

        Raises:
            RuleCatalogueError: If an implemented entry has no rule class, a rule
                class has no catalogue entry, or a disabled id is not catalogued
        """
        if definitions is None:
            definitions = load_catalogue(catalogue_path)
        if implementations is None:
            implementations = IMPLEMENTED_RULES

        catalogued = {d.rule_id for d in definitions}
        uncatalogued = sorted(set(implementations) - catalogued)
        if uncatalogued:
            raise RuleCatalogueError(f"Rules implemented but not catalogued: {uncatalogued}")

        disabled = list(disabled)
        unknown = sorted(set(disabled) - catalogued)
        if unknown:
            raise RuleCatalogueError(f"Cannot disable unknown rules: {unknown}")

        rules: List[BusinessRule] = []
        pending: List[RuleDefinition] = []
        for definition in definitions:
            if not definition.is_implemented:
                if definition.rule_id in implementations:
                    raise RuleCatalogueError(
                        f"Rule {definition.rule_id} is implemented but catalogued as not implemented"
                    )
                pending.append(definition)
                continue

            rule_class = implementations.get(definition.rule_id)
            if rule_class is None:
                raise RuleCatalogueError(
                    f"Rule {definition.rule_id} is catalogued as implemented but has no implementation"
                )

            if definition.rule_id in disabled:
                logger.info(f"Business rule {definition.rule_id} disabled by configuration")
                continue

            rules.append(rule_class(definition))

        logger.debug(
            f"Rule registry: {len(rules)} active, {len(pending)} not implemented, "
            f"{len(disabled)} disabled"
        )
        return cls(rules=rules, pending=pending, disabled=disabled)

    @property
    def rule_ids(self) -> List[str]:
        return [rule.rule_id for rule in self.rules]

    @property
    def pending_ids(self) -> List[str]:
        return [d.rule_id for d in self.pending]

    def get(self, rule_id: str) -> Optional[BusinessRule]:
        """Get an active rule by id."""
        for rule in self.rules:
            if rule.rule_id == rule_id:
                return rule
        return None


class BusinessRuleEngine:
    """
    Runs every registered business rule against an invoice.

    Usage:
        engine = BusinessRuleEngine()

        for violation in engine.evaluate(snapshot):
            print(f"{violation.rule_id}: {violation.message}")
    """

    def __init__(
        self,
        registry: Optional[RuleRegistry] = None,
        tolerance: Optional[Decimal] = None,
    ):
        """
        Initialize engine.

        Args:
            registry: Rules to run, defaults to the bundled catalogue
            tolerance: Largest absolute difference still considered equal
        """
        self.registry = registry or RuleRegistry.from_catalogue()
        self.tolerance = tolerance if tolerance is not None else DEFAULT_TOLERANCE

    def evaluate(self, snapshot: InvoiceSnapshot) -> List[Violation]:
        """
        Evaluate all rules.

        Returns:
            Violations in rule registration order
        """
        violations: List[Violation] = []

        for rule in self.registry.rules:
            violation = rule.evaluate(snapshot, self.tolerance)
            if violation is not None:
                violations.append(violation)

        logger.debug(
            f"Evaluated {len(self.registry.rules)} business rules, "
            f"{len(violations)} violations"
        )
        return violations
