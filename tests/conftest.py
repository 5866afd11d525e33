"""
Shared fixtures for the validation tests.

The complete invoice: two lines (100.00 + 44.00), one 19 % VAT group,
all parties and references set, totals consistent.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from zugferd_rules.document import InvoiceBuilder


def minimum_builder() -> InvoiceBuilder:
    """Everything MINIMUM requires, nothing more."""
    builder = InvoiceBuilder()
    builder.set_invoice_type_code('380') \
        .set_invoice_number('INV-123456') \
        .set_issue_date('2024-08-10') \
        .set_currency_code('EUR') \
        .set_seller_name('Lieferant GmbH') \
        .set_seller_country_code('DE') \
        .set_seller_tax_registration('DE123456789') \
        .set_buyer_name('Kunde AG') \
        .set_buyer_order_reference('PO-2024-0815') \
        .set_tax_basis_total_amount('144.00') \
        .set_tax_total_amount('27.36') \
        .set_grand_total_amount('171.36') \
        .set_due_payable_amount('171.36')
    return builder


def complete_builder() -> InvoiceBuilder:
    """Everything EXTENDED and XRECHNUNG require."""
    builder = minimum_builder()
    builder.set_seller_address(postcode='10115', line_one='Hauptstrasse 1', city='Berlin') \
        .set_buyer_address(
            postcode='80331', line_one='Marienplatz 2', city='Muenchen', country_code='DE'
        ) \
        .set_trade_tax_calculated_amount('27.36') \
        .set_trade_tax_basis_amount('144.00') \
        .set_trade_tax_rate('19') \
        .set_delivery_date('2024-08-05') \
        .set_payment_due_date('2024-09-09') \
        .set_line_total_amount('144.00') \
        .set_charge_total_amount('0') \
        .set_allowance_total_amount('0') \
        .add_line_item('100.00', name='Consulting') \
        .add_line_item('44.00', name='Travel') \
        .set_buyer_reference('04011000-12345-34') \
        .set_seller_legal_organization('HRB 12345') \
        .set_buyer_legal_organization('HRB 67890')
    return builder


@pytest.fixture
def minimum_invoice():
    return minimum_builder()


@pytest.fixture
def complete_invoice():
    return complete_builder()
