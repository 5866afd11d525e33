"""
Invoice Builder

Incremental assembly of an invoice. Setters are chainable and only
record values; nothing is validated for completeness until build() is
called with a conformance tier.

Usage:
    builder = InvoiceBuilder()
    builder.set_invoice_type_code(InvoiceTypeCode.COMMERCIAL_INVOICE) \\
        .set_invoice_number('INV-123456') \\
        .set_issue_date('2024-08-10') \\
        .set_currency_code('EUR')

    snapshot = builder.build(ConformanceTier.MINIMUM)  # raises CompletenessError

Amounts may be given as Decimal, int, float or numeric strings. Floats are
converted through their string form so 19.99 stays Decimal('19.99').
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, List, Optional, Union

from dateutil import parser as date_parser
from loguru import logger

from .codes import (
    CountryCode,
    CurrencyCode,
    InvoiceTypeCode,
    VATCategoryCode,
    coerce_code,
)
from .snapshot import (
    AmountLike,
    InvoiceSnapshot,
    LineItem,
    MonetarySummation,
    PostalAddress,
    TaxTotalAmount,
    TradeParty,
    TradeTax,
    parse_amount,
)

DateLike = Union[date, datetime, str]


def parse_date(value: DateLike) -> date:
    """
    Parse a calendar date.

    ISO dates and the CII format 102 (YYYYMMDD) are read directly; other
    strings go through dateutil.

    Raises:
        ValueError: If the value is not a recognisable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        str_value = value.strip()
        for fmt in ('%Y-%m-%d', '%Y%m%d'):
            try:
                return datetime.strptime(str_value, fmt).date()
            except ValueError:
                continue

        try:
            parsed = date_parser.parse(str_value, dayfirst=True)
        except (ValueError, OverflowError) as e:
            raise ValueError(f"Cannot parse as date: {value!r}") from e

        logger.debug(f"Date '{value}' parsed leniently as {parsed.date()}")
        return parsed.date()

    raise ValueError(f"Cannot parse as date: {value!r}")


class InvoiceBuilder:
    """
    Collects invoice fields and freezes them into an InvoiceSnapshot.

    Single-group trade tax setters address the first VAT breakdown group,
    creating it on first use; add_trade_tax() appends further groups.
    """

    def __init__(self):
        self.invoice_type_code: Optional[InvoiceTypeCode] = None
        self.invoice_number: Optional[str] = None
        self.issue_date: Optional[date] = None
        self.currency_code: Optional[CurrencyCode] = None
        self.business_process: Optional[str] = None
        self.notes: List[str] = []
        self.buyer_reference: Optional[str] = None
        self.seller = TradeParty()
        self.buyer = TradeParty()
        self.buyer_order_reference: Optional[str] = None
        self.delivery_date: Optional[date] = None
        self.payment_due_date: Optional[date] = None
        self.trade_taxes: List[TradeTax] = []
        self.monetary_summation = MonetarySummation()
        self.tax_total_currency: Optional[CurrencyCode] = None
        self.line_items: List[LineItem] = []

    # Document

    def set_business_process(self, business_process: str) -> 'InvoiceBuilder':
        """Business process context (BT-23), defined by the buyer."""
        self.business_process = business_process
        return self

    def set_invoice_type_code(self, code: Union[InvoiceTypeCode, str]) -> 'InvoiceBuilder':
        self.invoice_type_code = coerce_code(InvoiceTypeCode, code)
        return self

    def set_invoice_number(self, invoice_number: str) -> 'InvoiceBuilder':
        self.invoice_number = invoice_number
        return self

    def set_issue_date(self, issue_date: DateLike) -> 'InvoiceBuilder':
        self.issue_date = parse_date(issue_date)
        return self

    def set_invoice_notes(self, notes: Iterable[str]) -> 'InvoiceBuilder':
        self.notes = [str(note) for note in notes]
        return self

    def set_currency_code(self, code: Union[CurrencyCode, str]) -> 'InvoiceBuilder':
        self.currency_code = coerce_code(CurrencyCode, code)
        return self

    def set_buyer_reference(self, buyer_reference: str) -> 'InvoiceBuilder':
        """
        Buyer reference (BT-10).

        Identifier assigned by the buyer for internal routing (contact ID,
        department, project code), provided by the seller in the invoice.
        """
        self.buyer_reference = buyer_reference
        return self

    def set_buyer_order_reference(self, reference: str) -> 'InvoiceBuilder':
        """Purchase order reference issued by the buyer (BT-13)."""
        self.buyer_order_reference = reference
        return self

    def set_delivery_date(self, delivery_date: DateLike) -> 'InvoiceBuilder':
        """Actual delivery date (BT-72)."""
        self.delivery_date = parse_date(delivery_date)
        return self

    def set_payment_due_date(self, due_date: DateLike) -> 'InvoiceBuilder':
        self.payment_due_date = parse_date(due_date)
        return self

    # Seller

    def set_seller_name(self, name: str) -> 'InvoiceBuilder':
        self.seller = replace(self.seller, name=name)
        return self

    def set_seller_legal_organization(self, identifier: str) -> 'InvoiceBuilder':
        """Official registration of the seller as a legal entity (BT-30)."""
        self.seller = replace(self.seller, legal_organization_id=identifier)
        return self

    def set_seller_tax_registration(self, identifier: str) -> 'InvoiceBuilder':
        """Seller VAT identifier (BT-31)."""
        self.seller = replace(self.seller, tax_registration_id=identifier)
        return self

    def set_seller_address(self, **parts: Any) -> 'InvoiceBuilder':
        """
        Set seller address parts.

        Accepts postcode, line_one, line_two, line_three, city, country_code.
        """
        self.seller = replace(self.seller, address=self._update_address(self.seller.address, parts))
        return self

    def set_seller_country_code(self, code: Union[CountryCode, str]) -> 'InvoiceBuilder':
        return self.set_seller_address(country_code=code)

    # Buyer

    def set_buyer_name(self, name: str) -> 'InvoiceBuilder':
        self.buyer = replace(self.buyer, name=name)
        return self

    def set_buyer_legal_organization(self, identifier: str) -> 'InvoiceBuilder':
        """Official registration of the buyer as a legal entity (BT-47)."""
        self.buyer = replace(self.buyer, legal_organization_id=identifier)
        return self

    def set_buyer_address(self, **parts: Any) -> 'InvoiceBuilder':
        self.buyer = replace(self.buyer, address=self._update_address(self.buyer.address, parts))
        return self

    def set_buyer_country_code(self, code: Union[CountryCode, str]) -> 'InvoiceBuilder':
        return self.set_buyer_address(country_code=code)

    # VAT breakdown

    def set_trade_tax_calculated_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """VAT category tax amount (BT-117)."""
        return self._update_first_trade_tax(calculated_amount=parse_amount(amount))

    def set_trade_tax_basis_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """VAT category taxable amount (BT-116)."""
        return self._update_first_trade_tax(basis_amount=parse_amount(amount))

    def set_trade_tax_rate(self, percent: AmountLike) -> 'InvoiceBuilder':
        """VAT category rate in percent (BT-119)."""
        return self._update_first_trade_tax(rate_applicable_percent=parse_amount(percent))

    def set_trade_tax_category_code(
        self,
        code: Union[VATCategoryCode, str],
    ) -> 'InvoiceBuilder':
        """VAT category (BT-118)."""
        return self._update_first_trade_tax(category_code=coerce_code(VATCategoryCode, code))

    def add_trade_tax(
        self,
        calculated_amount: Optional[AmountLike] = None,
        basis_amount: Optional[AmountLike] = None,
        rate_applicable_percent: Optional[AmountLike] = None,
        category_code: Union[VATCategoryCode, str] = VATCategoryCode.STANDARD_RATE,
    ) -> 'InvoiceBuilder':
        """Append a further VAT breakdown group."""
        self.trade_taxes.append(TradeTax(
            calculated_amount=self._optional_amount(calculated_amount),
            basis_amount=self._optional_amount(basis_amount),
            rate_applicable_percent=self._optional_amount(rate_applicable_percent),
            category_code=coerce_code(VATCategoryCode, category_code),
        ))
        return self

    # Monetary summation

    def set_line_total_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """Sum of invoice line net amounts (BT-106)."""
        return self._update_summation(line_total=parse_amount(amount))

    def set_charge_total_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """Charges on document level (BT-108)."""
        return self._update_summation(charge_total=parse_amount(amount))

    def set_allowance_total_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """Allowances on document level (BT-107)."""
        return self._update_summation(allowance_total=parse_amount(amount))

    def set_tax_basis_total_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """
        Invoice total without VAT (BT-109).

        Sum of line net amounts minus document allowances plus document charges.
        """
        return self._update_summation(tax_basis_total=parse_amount(amount))

    def set_tax_total_amount(
        self,
        amount: AmountLike,
        currency_code: Optional[Union[CurrencyCode, str]] = None,
    ) -> 'InvoiceBuilder':
        """
        Invoice total VAT amount (BT-110).

        Tagged with the given currency, or with the invoice currency at
        snapshot time.
        """
        if currency_code is not None:
            self.tax_total_currency = coerce_code(CurrencyCode, currency_code)
        return self._update_summation(tax_total=TaxTotalAmount(amount=parse_amount(amount)))

    def set_grand_total_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """Invoice total with VAT (BT-112)."""
        return self._update_summation(grand_total=parse_amount(amount))

    def set_due_payable_amount(self, amount: AmountLike) -> 'InvoiceBuilder':
        """Amount due for payment (BT-115), after prepayments."""
        return self._update_summation(due_payable=parse_amount(amount))

    # Lines

    def add_line_item(
        self,
        line_net_amount: AmountLike,
        line_id: Optional[str] = None,
        name: Optional[str] = None,
        billed_quantity: Optional[AmountLike] = None,
        net_price: Optional[AmountLike] = None,
    ) -> 'InvoiceBuilder':
        """Append an invoice line. Line ids default to the 1-based position."""
        self.line_items.append(LineItem(
            line_net_amount=parse_amount(line_net_amount),
            line_id=line_id or str(len(self.line_items) + 1),
            name=name,
            billed_quantity=self._optional_amount(billed_quantity),
            net_price=self._optional_amount(net_price),
        ))
        return self

    # Output

    def snapshot(self) -> InvoiceSnapshot:
        """Freeze the current state without checking completeness."""
        summation = self.monetary_summation
        if summation.tax_total is not None:
            currency = self.tax_total_currency or self.currency_code
            summation = replace(
                summation,
                tax_total=replace(summation.tax_total, currency_code=currency),
            )

        return InvoiceSnapshot(
            invoice_type_code=self.invoice_type_code,
            invoice_number=self.invoice_number,
            issue_date=self.issue_date,
            currency_code=self.currency_code,
            business_process=self.business_process,
            notes=tuple(self.notes),
            buyer_reference=self.buyer_reference,
            seller=self.seller,
            buyer=self.buyer,
            buyer_order_reference=self.buyer_order_reference,
            delivery_date=self.delivery_date,
            payment_due_date=self.payment_due_date,
            trade_taxes=tuple(self.trade_taxes),
            monetary_summation=summation,
            line_items=tuple(self.line_items),
        )

    def build(self, tier: Any) -> InvoiceSnapshot:
        """
        Freeze the invoice after checking it is complete for a tier.

        Raises:
            CompletenessError: If a field mandatory at the tier is missing
            ValueError: If the tier is unknown
        """
        from ..validation.completeness import CompletenessGate

        snapshot = self.snapshot()
        CompletenessGate().check(snapshot, tier)
        logger.info(f"Built invoice {snapshot.invoice_number} for tier {tier}")
        return snapshot

    # Helpers

    def _update_address(self, address: PostalAddress, parts: dict) -> PostalAddress:
        allowed = {'postcode', 'line_one', 'line_two', 'line_three', 'city', 'country_code'}
        unknown = set(parts) - allowed
        if unknown:
            raise ValueError(f"Unknown address fields: {sorted(unknown)}")

        if parts.get('country_code') is not None:
            parts = dict(parts, country_code=coerce_code(CountryCode, parts['country_code']))
        return replace(address, **parts)

    def _update_first_trade_tax(self, **values: Any) -> 'InvoiceBuilder':
        if self.trade_taxes:
            self.trade_taxes[0] = replace(self.trade_taxes[0], **values)
        else:
            self.trade_taxes.append(TradeTax(**values))
        return self

    def _update_summation(self, **values: Any) -> 'InvoiceBuilder':
        self.monetary_summation = replace(self.monetary_summation, **values)
        return self

    @staticmethod
    def _optional_amount(value: Optional[AmountLike]) -> Optional[Decimal]:
        return parse_amount(value) if value is not None else None
