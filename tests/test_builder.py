"""
Tests for invoice assembly.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from zugferd_rules.document import (
    CountryCode,
    CurrencyCode,
    InvoiceBuilder,
    InvoiceTypeCode,
    VATCategoryCode,
    parse_amount,
    parse_date,
)
from zugferd_rules.profiles import ConformanceTier
from zugferd_rules.validation.completeness import CompletenessError


class TestParseAmount:
    """Tests for amount parsing."""

    def test_decimal_passthrough(self):
        assert parse_amount(Decimal('19.99')) == Decimal('19.99')

    def test_float_keeps_written_digits(self):
        assert parse_amount(19.99) == Decimal('19.99')
        assert str(parse_amount(0.1)) == '0.1'

    def test_int(self):
        assert parse_amount(100) == Decimal('100')

    def test_string_with_symbol(self):
        assert parse_amount('€ 1234.56') == Decimal('1234.56')

    def test_negative_in_parentheses(self):
        assert parse_amount('(50.00)') == Decimal('-50.00')

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            parse_amount(True)

    def test_garbage_rejected(self):
        with pytest.raises(ValueError, match='Cannot parse as amount'):
            parse_amount('twelve')

    def test_non_finite_rejected(self):
        with pytest.raises(ValueError, match='finite'):
            parse_amount(float('nan'))
        with pytest.raises(ValueError, match='finite'):
            parse_amount('Infinity')


class TestParseDate:
    """Tests for date parsing."""

    def test_iso(self):
        assert parse_date('2024-08-10') == date(2024, 8, 10)

    def test_format_102(self):
        assert parse_date('20240810') == date(2024, 8, 10)

    def test_datetime(self):
        assert parse_date(datetime(2024, 8, 10, 14, 30)) == date(2024, 8, 10)

    def test_day_first(self):
        assert parse_date('10.08.2024') == date(2024, 8, 10)

    def test_invalid(self):
        with pytest.raises(ValueError, match='Cannot parse as date'):
            parse_date('not a date')


class TestInvoiceBuilder:
    """Tests for the builder setters and snapshot."""

    def test_setters_are_chainable(self):
        builder = InvoiceBuilder()
        assert builder.set_invoice_number('1').set_currency_code('EUR') is builder

    def test_codes_are_coerced(self, minimum_invoice):
        snapshot = minimum_invoice.snapshot()
        assert snapshot.invoice_type_code is InvoiceTypeCode.COMMERCIAL_INVOICE
        assert snapshot.currency_code is CurrencyCode.EURO
        assert snapshot.seller.address.country_code is CountryCode.GERMANY

    def test_invalid_code(self):
        with pytest.raises(ValueError):
            InvoiceBuilder().set_currency_code('XYZ')

    def test_tax_total_tagged_with_invoice_currency(self, minimum_invoice):
        tax_total = minimum_invoice.snapshot().monetary_summation.tax_total
        assert tax_total.amount == Decimal('27.36')
        assert tax_total.currency_code is CurrencyCode.EURO

    def test_tax_total_explicit_currency(self, minimum_invoice):
        minimum_invoice.set_tax_total_amount('27.36', currency_code='CHF')
        tax_total = minimum_invoice.snapshot().monetary_summation.tax_total
        assert tax_total.currency_code is CurrencyCode.SWISS_FRANC

    def test_address_parts_merge(self):
        builder = InvoiceBuilder()
        builder.set_seller_country_code('FR').set_seller_address(city='Paris', postcode='75001')
        address = builder.snapshot().seller.address
        assert address.city == 'Paris'
        assert address.postcode == '75001'
        assert address.country_code is CountryCode.FRANCE

    def test_unknown_address_field(self):
        with pytest.raises(ValueError, match='Unknown address fields'):
            InvoiceBuilder().set_buyer_address(street='Main Street 1')

    def test_single_trade_tax_setters_share_group(self):
        builder = InvoiceBuilder()
        builder.set_trade_tax_basis_amount('100') \
            .set_trade_tax_rate('19') \
            .set_trade_tax_calculated_amount('19.00') \
            .set_trade_tax_category_code('Z')

        taxes = builder.snapshot().trade_taxes
        assert len(taxes) == 1
        assert taxes[0].is_complete
        assert taxes[0].category_code is VATCategoryCode.ZERO_RATED_GOODS

    def test_add_trade_tax(self, complete_invoice):
        complete_invoice.add_trade_tax('0.70', '10.00', '7')
        taxes = complete_invoice.snapshot().trade_taxes
        assert len(taxes) == 2
        assert taxes[1].rate_applicable_percent == Decimal('7')

    def test_line_ids_default_to_position(self, complete_invoice):
        complete_invoice.add_line_item('5.00', line_id='X-9')
        items = complete_invoice.snapshot().line_items
        assert [item.line_id for item in items] == ['1', '2', 'X-9']
        assert complete_invoice.snapshot().line_net_total == Decimal('149.00')

    def test_snapshot_is_frozen(self, complete_invoice):
        snapshot = complete_invoice.snapshot()
        with pytest.raises(AttributeError):
            snapshot.invoice_number = 'changed'

    def test_snapshot_not_affected_by_later_changes(self, complete_invoice):
        snapshot = complete_invoice.snapshot()
        complete_invoice.set_invoice_number('OTHER').add_line_item('1.00')
        assert snapshot.invoice_number == 'INV-123456'
        assert len(snapshot.line_items) == 2

    def test_snapshot_to_dict(self, complete_invoice):
        complete_invoice.set_invoice_notes(['Thank you'])
        data = complete_invoice.snapshot().to_dict()
        assert data['invoice_type_code'] == '380'
        assert data['issue_date'] == '2024-08-10'
        assert data['notes'] == ['Thank you']
        assert data['monetary_summation']['tax_total'] == {'amount': '27.36', 'currency_code': 'EUR'}
        assert data['line_items'][1]['line_net_amount'] == '44.00'


class TestBuild:
    """Tests for build() with a conformance tier."""

    def test_build_complete(self, complete_invoice):
        snapshot = complete_invoice.build(ConformanceTier.EXTENDED)
        assert snapshot.invoice_number == 'INV-123456'

    def test_build_accepts_tier_label(self, minimum_invoice):
        assert minimum_invoice.build('minimum').buyer.name == 'Kunde AG'

    def test_build_incomplete(self, minimum_invoice):
        with pytest.raises(CompletenessError) as exc_info:
            minimum_invoice.build(ConformanceTier.BASIC)
        assert "No included supply chain trade line items set" in exc_info.value.missing_field_descriptions
