"""
Violation Report

Aggregates the completeness verdict and the business rule violations for
one invoice. The report enforces no policy: whether a missing field or a
violated rule blocks the invoice is up to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ..profiles import ConformanceTier
from .business_rules import Violation
from .completeness import CompletenessError


@dataclass
class ViolationReport:
    """
    Complete validation result for an invoice.

    completeness_error is None when the gate passed or was not requested
    (tier is None in the latter case).
    """
    violations: List[Violation] = field(default_factory=list)
    tier: Optional[ConformanceTier] = None
    completeness_error: Optional[CompletenessError] = None
    rules_evaluated: List[str] = field(default_factory=list)
    rules_pending: List[str] = field(default_factory=list)

    @property
    def completeness_checked(self) -> bool:
        return self.tier is not None

    @property
    def is_complete(self) -> bool:
        """True if the gate passed, or was not requested."""
        return self.completeness_error is None

    @property
    def missing_fields(self) -> List[str]:
        if self.completeness_error is None:
            return []
        return list(self.completeness_error.missing_field_descriptions)

    @property
    def has_violations(self) -> bool:
        return len(self.violations) > 0

    @property
    def is_clean(self) -> bool:
        """Complete for the requested tier and no rule violated."""
        return self.is_complete and not self.has_violations

    @property
    def rule_ids(self) -> List[str]:
        """Ids of violated rules, in report order."""
        return [v.rule_id for v in self.violations]

    def violations_for(self, rule_id: str) -> List[Violation]:
        return [v for v in self.violations if v.rule_id == rule_id]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'tier': self.tier.label if self.tier else None,
            'is_complete': self.is_complete,
            'is_clean': self.is_clean,
            'missing_fields': self.missing_fields,
            'violation_count': len(self.violations),
            'violations': [v.to_dict() for v in self.violations],
            'rules_evaluated': list(self.rules_evaluated),
            'rules_pending': list(self.rules_pending),
        }

    def render(self, console: Optional[Console] = None) -> None:
        """Print the report as rich tables."""
        console = console or Console()

        if self.completeness_checked:
            if self.is_complete:
                console.print(f"[bold green]✓ Complete for {self.tier}[/]")
            else:
                console.print(f"[bold red]✗ Incomplete for {self.tier}[/]")
                for description in self.missing_fields:
                    console.print(f"  - {description}")

        if not self.has_violations:
            console.print(
                f"[green]No business rule violations[/] "
                f"({len(self.rules_evaluated)} rules evaluated)"
            )
            return

        table = Table(title="Business Rule Violations")
        table.add_column("Rule", style="cyan", no_wrap=True)
        table.add_column("Message")
        table.add_column("Operands", style="dim")

        for violation in self.violations:
            operands = ', '.join(f"{name}={value}" for name, value in violation.field_snapshot)
            table.add_row(violation.rule_id, violation.message, operands)

        console.print(table)
