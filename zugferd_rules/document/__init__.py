"""
Document Package

The invoice data model: code lists, the frozen snapshot validators read,
and the builder that assembles it.

Usage:
    from zugferd_rules.document import InvoiceBuilder, InvoiceTypeCode

    builder = InvoiceBuilder()
    builder.set_invoice_type_code(InvoiceTypeCode.COMMERCIAL_INVOICE)
    snapshot = builder.snapshot()
"""

from .codes import (
    InvoiceTypeCode,
    VATCategoryCode,
    CountryCode,
    CurrencyCode,
    coerce_code,
)
from .snapshot import (
    PostalAddress,
    TradeParty,
    TaxTotalAmount,
    MonetarySummation,
    TradeTax,
    LineItem,
    InvoiceSnapshot,
    parse_amount,
)
from .builder import (
    InvoiceBuilder,
    parse_date,
)

__all__ = [
    # Codes
    'InvoiceTypeCode',
    'VATCategoryCode',
    'CountryCode',
    'CurrencyCode',
    'coerce_code',

    # Snapshot
    'PostalAddress',
    'TradeParty',
    'TaxTotalAmount',
    'MonetarySummation',
    'TradeTax',
    'LineItem',
    'InvoiceSnapshot',

    # Builder
    'InvoiceBuilder',
    'parse_amount',
    'parse_date',
]
