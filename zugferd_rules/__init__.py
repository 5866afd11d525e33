"""
ZUGFeRD / Factur-X Rule Validation

Checks assembled electronic invoices before they are serialized:

- Level-gated completeness for the Factur-X profiles
  (MINIMUM, BASIC WL, BASIC, EN 16931, XRECHNUNG, EXTENDED)
- EN 16931 business rules on the invoice totals (BR-12..14, BR-CO-10,
  BR-CO-13..15, BR-CO-17)
- A complete, data-driven rule catalogue with every unimplemented rule
  reported as pending

Quick Start:
    from zugferd_rules import InvoiceBuilder, ConformanceTier, validate_invoice

    builder = InvoiceBuilder()
    builder.set_invoice_type_code('380') \\
        .set_invoice_number('INV-123456') \\
        .set_issue_date('2024-08-10') \\
        .set_currency_code('EUR')
    ...
    report = validate_invoice(builder.snapshot(), tier=ConformanceTier.MINIMUM)
    report.render()
"""

__version__ = '0.3.0'

# Profiles
from .profiles import ConformanceTier

# Document model
from .document import (
    InvoiceBuilder,
    InvoiceSnapshot,
    MonetarySummation,
    TaxTotalAmount,
    TradeTax,
    TradeParty,
    PostalAddress,
    LineItem,
    InvoiceTypeCode,
    VATCategoryCode,
    CountryCode,
    CurrencyCode,
)

# Validation
from .validation import (
    CompletenessGate,
    CompletenessError,
    BusinessRuleEngine,
    RuleRegistry,
    RuleCatalogueError,
    Violation,
    ViolationReport,
)

# Pipeline and settings
from .pipeline import InvoiceValidator, validate_invoice
from .settings import ValidationSettings, SettingsError, load_settings, setup_logging

__all__ = [
    '__version__',

    # Profiles
    'ConformanceTier',

    # Document model
    'InvoiceBuilder',
    'InvoiceSnapshot',
    'MonetarySummation',
    'TaxTotalAmount',
    'TradeTax',
    'TradeParty',
    'PostalAddress',
    'LineItem',
    'InvoiceTypeCode',
    'VATCategoryCode',
    'CountryCode',
    'CurrencyCode',

    # Validation
    'CompletenessGate',
    'CompletenessError',
    'BusinessRuleEngine',
    'RuleRegistry',
    'RuleCatalogueError',
    'Violation',
    'ViolationReport',

    # Pipeline and settings
    'InvoiceValidator',
    'validate_invoice',
    'ValidationSettings',
    'SettingsError',
    'load_settings',
    'setup_logging',
]
