"""
Invoice Snapshot

Frozen value objects describing an assembled invoice. Validators read
from these and never modify them.

Amount fields are normalized to Decimal on construction, so a snapshot
built directly from ints, floats or numeric strings compares the same way
as one produced by InvoiceBuilder.

Business term references (BT-x / BG-x) follow EN 16931.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional, Tuple, Dict, Any, Union

from .codes import CountryCode, CurrencyCode, InvoiceTypeCode, VATCategoryCode

AmountLike = Union[Decimal, int, float, str]


def parse_amount(value: AmountLike) -> Decimal:
    """
    Parse a monetary amount to Decimal.

    Raises:
        ValueError: If the value cannot be read as a number
    """
    if isinstance(value, bool):
        raise ValueError(f"Cannot parse as amount: {value!r}")

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Amount must be finite: {value!r}")
        return value

    if isinstance(value, (int, float)):
        try:
            parsed = Decimal(str(value))
        except InvalidOperation as e:
            raise ValueError(f"Cannot parse as amount: {value!r}") from e
        if not parsed.is_finite():
            raise ValueError(f"Amount must be finite: {value!r}")
        return parsed

    if isinstance(value, str):
        cleaned = value.strip().replace(' ', '')
        for symbol in ('€', '$', '£'):
            cleaned = cleaned.replace(symbol, '')

        # Negative in parentheses
        if cleaned.startswith('(') and cleaned.endswith(')'):
            cleaned = '-' + cleaned[1:-1]

        try:
            parsed = Decimal(cleaned)
        except InvalidOperation as e:
            raise ValueError(f"Cannot parse as amount: {value!r}") from e
        if not parsed.is_finite():
            raise ValueError(f"Amount must be finite: {value!r}")
        return parsed

    raise ValueError(f"Cannot parse as amount: {value!r}")


def _normalize_amounts(obj: Any, *names: str) -> None:
    """Replace the named amount fields of a frozen dataclass with Decimals."""
    for name in names:
        value = getattr(obj, name)
        if value is not None and not isinstance(value, Decimal):
            object.__setattr__(obj, name, parse_amount(value))


def _amount(value: Optional[Decimal]) -> Optional[str]:
    return str(value) if value is not None else None


def _code(value: Any) -> Optional[str]:
    return value.value if value is not None else None


@dataclass(frozen=True)
class PostalAddress:
    """Postal address of a trade party (BG-5 / BG-8)."""
    postcode: Optional[str] = None           # BT-38 / BT-53
    line_one: Optional[str] = None           # BT-35 / BT-50
    line_two: Optional[str] = None           # BT-36 / BT-51
    line_three: Optional[str] = None         # BT-162 / BT-163
    city: Optional[str] = None               # BT-37 / BT-52
    country_code: Optional[CountryCode] = None  # BT-40 / BT-55

    def to_dict(self) -> Dict[str, Any]:
        return {
            'postcode': self.postcode,
            'line_one': self.line_one,
            'line_two': self.line_two,
            'line_three': self.line_three,
            'city': self.city,
            'country_code': _code(self.country_code),
        }


@dataclass(frozen=True)
class TradeParty:
    """Seller (BG-4) or buyer (BG-7)."""
    name: Optional[str] = None
    legal_organization_id: Optional[str] = None  # BT-30 / BT-47
    tax_registration_id: Optional[str] = None    # BT-31
    address: PostalAddress = field(default_factory=PostalAddress)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'legal_organization_id': self.legal_organization_id,
            'tax_registration_id': self.tax_registration_id,
            'address': self.address.to_dict(),
        }


@dataclass(frozen=True)
class TaxTotalAmount:
    """Invoice total VAT amount (BT-110), tagged with its currency."""
    amount: Decimal
    currency_code: Optional[CurrencyCode] = None

    def __post_init__(self):
        _normalize_amounts(self, 'amount')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'amount': str(self.amount),
            'currency_code': _code(self.currency_code),
        }


@dataclass(frozen=True)
class MonetarySummation:
    """Document totals (BG-22)."""
    line_total: Optional[Decimal] = None         # BT-106
    charge_total: Optional[Decimal] = None       # BT-108
    allowance_total: Optional[Decimal] = None    # BT-107
    tax_basis_total: Optional[Decimal] = None    # BT-109
    tax_total: Optional[TaxTotalAmount] = None   # BT-110
    grand_total: Optional[Decimal] = None        # BT-112
    due_payable: Optional[Decimal] = None        # BT-115

    def __post_init__(self):
        _normalize_amounts(
            self, 'line_total', 'charge_total', 'allowance_total',
            'tax_basis_total', 'grand_total', 'due_payable',
        )
        if self.tax_total is not None and not isinstance(self.tax_total, TaxTotalAmount):
            object.__setattr__(self, 'tax_total', TaxTotalAmount(amount=self.tax_total))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'line_total': _amount(self.line_total),
            'charge_total': _amount(self.charge_total),
            'allowance_total': _amount(self.allowance_total),
            'tax_basis_total': _amount(self.tax_basis_total),
            'tax_total': self.tax_total.to_dict() if self.tax_total else None,
            'grand_total': _amount(self.grand_total),
            'due_payable': _amount(self.due_payable),
        }


@dataclass(frozen=True)
class TradeTax:
    """One VAT breakdown group (BG-23)."""
    calculated_amount: Optional[Decimal] = None        # BT-117
    basis_amount: Optional[Decimal] = None             # BT-116
    rate_applicable_percent: Optional[Decimal] = None  # BT-119
    category_code: VATCategoryCode = VATCategoryCode.STANDARD_RATE  # BT-118
    type_code: str = 'VAT'

    def __post_init__(self):
        _normalize_amounts(self, 'calculated_amount', 'basis_amount', 'rate_applicable_percent')

    @property
    def is_complete(self) -> bool:
        return (
            self.calculated_amount is not None
            and self.basis_amount is not None
            and self.rate_applicable_percent is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'calculated_amount': _amount(self.calculated_amount),
            'basis_amount': _amount(self.basis_amount),
            'rate_applicable_percent': _amount(self.rate_applicable_percent),
            'category_code': _code(self.category_code),
            'type_code': self.type_code,
        }


@dataclass(frozen=True)
class LineItem:
    """Invoice line (BG-25)."""
    line_net_amount: Decimal                     # BT-131
    line_id: Optional[str] = None                # BT-126
    name: Optional[str] = None                   # BT-153
    billed_quantity: Optional[Decimal] = None    # BT-129
    net_price: Optional[Decimal] = None          # BT-146

    def __post_init__(self):
        _normalize_amounts(self, 'line_net_amount', 'billed_quantity', 'net_price')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'line_id': self.line_id,
            'name': self.name,
            'line_net_amount': str(self.line_net_amount),
            'billed_quantity': _amount(self.billed_quantity),
            'net_price': _amount(self.net_price),
        }


@dataclass(frozen=True)
class InvoiceSnapshot:
    """
    Assembled invoice, read-only input to the completeness gate and the
    business-rule engine.

    Produced by InvoiceBuilder.snapshot() / build(); may also be constructed
    directly.
    """
    invoice_type_code: Optional[InvoiceTypeCode] = None   # BT-3
    invoice_number: Optional[str] = None                  # BT-1
    issue_date: Optional[date] = None                     # BT-2
    currency_code: Optional[CurrencyCode] = None          # BT-5
    business_process: Optional[str] = None                # BT-23
    notes: Tuple[str, ...] = ()                           # BT-22
    buyer_reference: Optional[str] = None                 # BT-10
    seller: TradeParty = field(default_factory=TradeParty)
    buyer: TradeParty = field(default_factory=TradeParty)
    buyer_order_reference: Optional[str] = None           # BT-13
    delivery_date: Optional[date] = None                  # BT-72
    payment_due_date: Optional[date] = None               # BT-9
    trade_taxes: Tuple[TradeTax, ...] = ()
    monetary_summation: MonetarySummation = field(default_factory=MonetarySummation)
    line_items: Tuple[LineItem, ...] = ()

    @property
    def line_net_total(self) -> Decimal:
        """Sum of all invoice line net amounts (Σ BT-131)."""
        return sum((item.line_net_amount for item in self.line_items), Decimal('0'))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            'invoice_type_code': _code(self.invoice_type_code),
            'invoice_number': self.invoice_number,
            'issue_date': self.issue_date.isoformat() if self.issue_date else None,
            'currency_code': _code(self.currency_code),
            'business_process': self.business_process,
            'notes': list(self.notes),
            'buyer_reference': self.buyer_reference,
            'seller': self.seller.to_dict(),
            'buyer': self.buyer.to_dict(),
            'buyer_order_reference': self.buyer_order_reference,
            'delivery_date': self.delivery_date.isoformat() if self.delivery_date else None,
            'payment_due_date': (
                self.payment_due_date.isoformat() if self.payment_due_date else None
            ),
            'trade_taxes': [t.to_dict() for t in self.trade_taxes],
            'monetary_summation': self.monetary_summation.to_dict(),
            'line_items': [item.to_dict() for item in self.line_items],
        }
