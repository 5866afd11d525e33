"""
Code Lists

Subsets of the code lists referenced by EN 16931 that invoices built
with this package use. Members carry the code written into the document.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Type, TypeVar

CodeT = TypeVar('CodeT', bound=Enum)


class InvoiceTypeCode(Enum):
    """UNTDID 1001 document type (BT-3)."""
    COMMERCIAL_INVOICE = '380'
    CREDIT_NOTE = '381'
    CORRECTED_INVOICE = '384'
    SELF_BILLED_INVOICE = '389'
    SELF_BILLED_CREDIT_NOTE = '261'
    PREPAYMENT_INVOICE = '386'
    ACCOUNTING_INFORMATION = '751'


class VATCategoryCode(Enum):
    """UNTDID 5305 VAT category (BT-118)."""
    STANDARD_RATE = 'S'
    ZERO_RATED_GOODS = 'Z'
    EXEMPT_FROM_TAX = 'E'
    REVERSE_CHARGE = 'AE'
    INTRA_COMMUNITY_SUPPLY = 'K'
    FREE_EXPORT = 'G'
    OUTSIDE_SCOPE = 'O'
    CANARY_ISLANDS_IGIC = 'L'
    CEUTA_MELILLA_IPSI = 'M'


class CountryCode(Enum):
    """ISO 3166-1 alpha-2 country (BT-40, BT-55)."""
    GERMANY = 'DE'
    FRANCE = 'FR'
    UNITED_STATES = 'US'
    UNITED_KINGDOM = 'GB'
    ITALY = 'IT'
    SPAIN = 'ES'
    AUSTRIA = 'AT'
    NETHERLANDS = 'NL'
    BELGIUM = 'BE'
    SWITZERLAND = 'CH'


class CurrencyCode(Enum):
    """ISO 4217 currency (BT-5)."""
    EURO = 'EUR'
    BRITISH_POUND = 'GBP'
    SWISS_FRANC = 'CHF'
    NORWEGIAN_KRONE = 'NOK'
    SWEDISH_KRONA = 'SEK'
    DANISH_KRONE = 'DKK'
    POLISH_ZLOTY = 'PLN'
    HUNGARIAN_FORINT = 'HUF'
    CZECH_KORUNA = 'CZK'
    ROMANIAN_LEU = 'RON'
    BULGARIAN_LEV = 'BGN'
    US_DOLLAR = 'USD'


def coerce_code(code_type: Type[CodeT], value: Any) -> CodeT:
    """
    Resolve a code list member from a member, its code or its name.

    Raises:
        ValueError: If the value is not part of the code list
    """
    if isinstance(value, code_type):
        return value

    if isinstance(value, str):
        cleaned = value.strip()
        try:
            return code_type(cleaned.upper())
        except ValueError:
            pass
        try:
            return code_type[cleaned.upper()]
        except KeyError:
            pass

    raise ValueError(f"Invalid {code_type.__name__}: {value!r}")
