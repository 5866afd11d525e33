"""
Completeness Gate

Checks that every field mandatory for a conformance tier, and for every
tier below it, is present in an invoice snapshot.

Requirements are grouped per tier threshold and evaluated from MINIMUM
upward. A failing requirement adds one human-readable line to the result;
evaluation never stops early, so a single pass reports everything that is
missing.

Thresholds:
- MINIMUM: document identity, parties, buyer order reference, totals
- BASIC_WL: postal addresses, delivery date, VAT breakdown, payment due date, header totals
- BASIC: at least one invoice line
- XRECHNUNG: buyer reference (applies to XRECHNUNG only)
- EXTENDED: buyer reference, legal organisation identifiers
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Sequence, Tuple

from ..document.snapshot import InvoiceSnapshot
from ..profiles import ConformanceTier

logger = logging.getLogger(__name__)


class CompletenessError(Exception):
    """
    Raised when an invoice cannot satisfy the requested conformance tier.

    Lists every missing field found in one pass.
    """

    def __init__(self, tier: ConformanceTier, missing_field_descriptions: Sequence[str]):
        self.tier = tier
        self.missing_field_descriptions = list(missing_field_descriptions)
        super().__init__(self.text)

    @property
    def text(self) -> str:
        lines = ''.join(f"{d}\n" for d in self.missing_field_descriptions)
        return f"Errors for specification level {self.tier}:\n{lines}"

    def to_dict(self) -> dict:
        return {
            'tier': self.tier.label,
            'missing_fields': list(self.missing_field_descriptions),
        }


@dataclass(frozen=True)
class FieldRequirement:
    """A presence check returning one description per missing field."""
    name: str
    check: Callable[[InvoiceSnapshot], List[str]]


def required(description: str, getter: Callable[[InvoiceSnapshot], Any]) -> FieldRequirement:
    """Requirement that a single value is set (non-empty for strings)."""

    def check(snapshot: InvoiceSnapshot) -> List[str]:
        value = getter(snapshot)
        if value is None or (isinstance(value, str) and not value.strip()):
            return [description]
        return []

    return FieldRequirement(name=description, check=check)


def _trade_tax_complete(snapshot: InvoiceSnapshot) -> List[str]:
    if not snapshot.trade_taxes:
        return ["Applicable trade tax not set"]

    missing = []
    numbered = len(snapshot.trade_taxes) > 1
    for i, tax in enumerate(snapshot.trade_taxes):
        prefix = f"Applicable trade tax {i + 1}" if numbered else "Applicable trade tax"
        if tax.calculated_amount is None:
            missing.append(f"{prefix}: Calculated amount not set")
        if tax.basis_amount is None:
            missing.append(f"{prefix}: Basis amount not set")
        if tax.rate_applicable_percent is None:
            missing.append(f"{prefix}: Applicable percent rate not set")
    return missing


def _line_items_present(snapshot: InvoiceSnapshot) -> List[str]:
    if not snapshot.line_items:
        return ["No included supply chain trade line items set"]
    return []


_SUMMATION = "Specified trade settlement monetary summation"

MINIMUM_REQUIREMENTS: Tuple[FieldRequirement, ...] = (
    required("Invoice type code not set", lambda s: s.invoice_type_code),
    required("Invoice number not set", lambda s: s.invoice_number),
    required("Date of issue not set", lambda s: s.issue_date),
    required("Seller's name not set", lambda s: s.seller.name),
    required(
        "Seller's postal trade address country code not set",
        lambda s: s.seller.address.country_code,
    ),
    required(
        "Seller's specified tax registration not set",
        lambda s: s.seller.tax_registration_id,
    ),
    required("Buyer's name not set", lambda s: s.buyer.name),
    required("Buyer's order specified document not set", lambda s: s.buyer_order_reference),
    required("Invoice currency code not set", lambda s: s.currency_code),
    required(
        f"{_SUMMATION}: Tax basis total amount not set",
        lambda s: s.monetary_summation.tax_basis_total,
    ),
    required(
        f"{_SUMMATION}: Tax total amount not set",
        lambda s: s.monetary_summation.tax_total,
    ),
    required(
        f"{_SUMMATION}: Grand total amount not set",
        lambda s: s.monetary_summation.grand_total,
    ),
    required(
        f"{_SUMMATION}: Due payable amount not set",
        lambda s: s.monetary_summation.due_payable,
    ),
)

BASIC_WL_REQUIREMENTS: Tuple[FieldRequirement, ...] = (
    required("Sellers postal trade address: Postcode not set", lambda s: s.seller.address.postcode),
    required("Sellers postal trade address: Line one not set", lambda s: s.seller.address.line_one),
    required("Sellers postal trade address: City name not set", lambda s: s.seller.address.city),
    required("Buyers postal trade address: Postcode not set", lambda s: s.buyer.address.postcode),
    required("Buyers postal trade address: Line one not set", lambda s: s.buyer.address.line_one),
    required("Buyers postal trade address: City name not set", lambda s: s.buyer.address.city),
    required("Occurrence date not set", lambda s: s.delivery_date),
    FieldRequirement(name="Applicable trade tax", check=_trade_tax_complete),
    required(
        "Specified trade payment terms: Due date time not set",
        lambda s: s.payment_due_date,
    ),
    required(
        f"{_SUMMATION}: Line total amount not set",
        lambda s: s.monetary_summation.line_total,
    ),
    required(
        f"{_SUMMATION}: Charge total amount not set",
        lambda s: s.monetary_summation.charge_total,
    ),
    required(
        f"{_SUMMATION}: Allowance total amount not set",
        lambda s: s.monetary_summation.allowance_total,
    ),
)

BASIC_REQUIREMENTS: Tuple[FieldRequirement, ...] = (
    FieldRequirement(name="Line items", check=_line_items_present),
)

XRECHNUNG_REQUIREMENTS: Tuple[FieldRequirement, ...] = (
    required("Buyer reference not set", lambda s: s.buyer_reference),
)

EXTENDED_REQUIREMENTS: Tuple[FieldRequirement, ...] = (
    required("Buyer reference not set", lambda s: s.buyer_reference),
    required(
        "Seller's specified legal organization not set",
        lambda s: s.seller.legal_organization_id,
    ),
    required(
        "Buyer's specified legal organization not set",
        lambda s: s.buyer.legal_organization_id,
    ),
)


class CompletenessGate:
    """
    Tier-gated presence validation.

    Usage:
        gate = CompletenessGate()

        try:
            gate.check(snapshot, ConformanceTier.BASIC)
        except CompletenessError as e:
            for line in e.missing_field_descriptions:
                print(line)
    """

    THRESHOLDS: Tuple[Tuple[ConformanceTier, Tuple[FieldRequirement, ...]], ...] = (
        (ConformanceTier.MINIMUM, MINIMUM_REQUIREMENTS),
        (ConformanceTier.BASIC_WL, BASIC_WL_REQUIREMENTS),
        (ConformanceTier.BASIC, BASIC_REQUIREMENTS),
        (ConformanceTier.EN16931, ()),
        (ConformanceTier.XRECHNUNG, XRECHNUNG_REQUIREMENTS),
        (ConformanceTier.EXTENDED, EXTENDED_REQUIREMENTS),
    )

    @staticmethod
    def applies(threshold: ConformanceTier, tier: ConformanceTier) -> bool:
        """
        Whether a threshold's requirements bind a requested tier.

        Refinement thresholds (XRECHNUNG) bind only tiers sharing their
        ordinal; plain thresholds bind every tier at or above them.
        """
        if threshold.refinement:
            return tier.ordinal == threshold.ordinal and tier >= threshold
        return threshold <= tier

    def missing_fields(self, snapshot: InvoiceSnapshot, tier: Any) -> List[str]:
        """
        List every missing mandatory field for a tier.

        Raises:
            ValueError: If the tier is unknown
        """
        tier = ConformanceTier.parse(tier)
        missing: List[str] = []

        for threshold, requirements in self.THRESHOLDS:
            if not self.applies(threshold, tier):
                continue
            for requirement in requirements:
                missing.extend(requirement.check(snapshot))

        return missing

    def check(self, snapshot: InvoiceSnapshot, tier: Any) -> None:
        """
        Verify an invoice against a tier.

        Raises:
            CompletenessError: If any mandatory field is missing
            ValueError: If the tier is unknown
        """
        tier = ConformanceTier.parse(tier)
        missing = self.missing_fields(snapshot, tier)

        if missing:
            logger.debug(f"{len(missing)} fields missing for tier {tier}")
            raise CompletenessError(tier, missing)

    def is_complete(self, snapshot: InvoiceSnapshot, tier: Any) -> bool:
        return not self.missing_fields(snapshot, tier)
