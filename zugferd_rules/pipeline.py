"""
Invoice Validation Pipeline

Runs the completeness gate and the business rule engine over one invoice
and collects both outcomes into a ViolationReport.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .document.snapshot import InvoiceSnapshot
from .profiles import ConformanceTier
from .settings import ValidationSettings
from .validation.business_rules import BusinessRuleEngine, RuleRegistry
from .validation.completeness import CompletenessError, CompletenessGate
from .validation.report import ViolationReport

logger = logging.getLogger(__name__)


class InvoiceValidator:
    """
    Main validation entry point.

    Usage:
        validator = InvoiceValidator(load_settings(Path('settings.yaml')))
        report = validator.validate(snapshot, tier='basic')

        if not report.is_complete:
            ...  # do not serialize at this tier
        for violation in report.violations:
            print(violation)
    """

    def __init__(self, settings: Optional[ValidationSettings] = None):
        """
        Initialize validator.

        Args:
            settings: Validation settings, defaults apply when omitted
        """
        self.settings = settings or ValidationSettings()
        self.gate = CompletenessGate()
        self.registry = RuleRegistry.from_catalogue(
            disabled=self.settings.disabled_rules,
            catalogue_path=self.settings.catalogue_path,
        )
        self.engine = BusinessRuleEngine(
            registry=self.registry,
            tolerance=self.settings.tolerance,
        )

    def validate(self, snapshot: InvoiceSnapshot, tier: Any = None) -> ViolationReport:
        """
        Validate an invoice.

        Args:
            snapshot: Assembled invoice
            tier: Conformance tier to check completeness against; falls back
                to the configured default tier, skipped if neither is set

        Returns:
            ViolationReport with the completeness verdict and all violations

        Raises:
            ValueError: If the tier is unknown
        """
        resolved = ConformanceTier.parse(tier) if tier is not None else self.settings.tier

        completeness_error = None
        if resolved is not None:
            try:
                self.gate.check(snapshot, resolved)
            except CompletenessError as e:
                completeness_error = e
                logger.info(
                    f"Invoice {snapshot.invoice_number} incomplete for {resolved}: "
                    f"{len(e.missing_field_descriptions)} fields missing"
                )

        violations = self.engine.evaluate(snapshot)
        if violations:
            logger.info(
                f"Invoice {snapshot.invoice_number}: {len(violations)} business rule violations "
                f"({', '.join(v.rule_id for v in violations)})"
            )

        return ViolationReport(
            violations=violations,
            tier=resolved,
            completeness_error=completeness_error,
            rules_evaluated=self.registry.rule_ids,
            rules_pending=self.registry.pending_ids,
        )


def validate_invoice(
    snapshot: InvoiceSnapshot,
    tier: Any = None,
    settings: Optional[ValidationSettings] = None,
) -> ViolationReport:
    """
    Convenience function to validate one invoice.

    Args:
        snapshot: Assembled invoice
        tier: Optional conformance tier for the completeness check
        settings: Optional validation settings

    Returns:
        ViolationReport
    """
    return InvoiceValidator(settings).validate(snapshot, tier)
