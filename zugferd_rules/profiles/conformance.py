"""
Conformance Tiers

Factur-X / ZUGFeRD documents declare the profile they conform to. The
profiles are nested: every profile requires everything the profile below
it requires, plus its own fields.

Order:
    MINIMUM < BASIC_WL < BASIC < EN16931 < XRECHNUNG < EXTENDED

XRECHNUNG shares the EN16931 ordinal (it is a national refinement of
EN 16931, not a new level) but sorts after it so that the order stays
total and requirements never shrink going up.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Tuple


class ConformanceTier(Enum):
    """Conformance profile a document claims to satisfy."""

    # label, guideline URN, ordinal, refinement
    MINIMUM = ('minimum', 'urn:factur-x.eu:1p0:minimum', 1, 0)
    BASIC_WL = ('basicwl', 'urn:factur-x.eu:1p0:basicwl', 2, 0)
    BASIC = ('basic', 'urn:factur-x.eu:1p0:basic', 3, 0)
    EN16931 = ('en16931', 'urn:cen.eu:en16931:2017', 4, 0)
    XRECHNUNG = (
        'xrechnung',
        'urn:cen.eu:en16931:2017#compliant#urn:xeinkauf.de:kosit:xrechnung_3.0',
        4,
        1,
    )
    EXTENDED = ('extended', 'urn:factur-x.eu:1p0:extended', 5, 0)

    def __init__(self, label: str, urn: str, ordinal: int, refinement: int):
        self.label = label
        self.urn = urn
        self.ordinal = ordinal
        self.refinement = refinement

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.ordinal, self.refinement)

    @property
    def display_name(self) -> str:
        names = {
            ConformanceTier.MINIMUM: 'MINIMUM',
            ConformanceTier.BASIC_WL: 'BASIC WL',
            ConformanceTier.BASIC: 'BASIC',
            ConformanceTier.EN16931: 'EN 16931',
            ConformanceTier.XRECHNUNG: 'XRECHNUNG',
            ConformanceTier.EXTENDED: 'EXTENDED',
        }
        return names[self]

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, ConformanceTier):
            return NotImplemented
        return self.sort_key < other.sort_key

    def __le__(self, other: Any) -> bool:
        if not isinstance(other, ConformanceTier):
            return NotImplemented
        return self.sort_key <= other.sort_key

    def __gt__(self, other: Any) -> bool:
        if not isinstance(other, ConformanceTier):
            return NotImplemented
        return self.sort_key > other.sort_key

    def __ge__(self, other: Any) -> bool:
        if not isinstance(other, ConformanceTier):
            return NotImplemented
        return self.sort_key >= other.sort_key

    def __str__(self) -> str:
        return self.display_name

    @classmethod
    def parse(cls, value: Any) -> 'ConformanceTier':
        """
        Resolve a tier from a member, label, member name or guideline URN.

        Raises:
            ValueError: If the value does not name a known tier
        """
        if isinstance(value, cls):
            return value

        if isinstance(value, str):
            cleaned = value.strip()
            lowered = cleaned.lower()
            for tier in cls:
                if lowered in (tier.label, tier.name.lower()) or cleaned == tier.urn:
                    return tier
            # Common spellings
            aliases = {
                'basic_wl': cls.BASIC_WL,
                'basic wl': cls.BASIC_WL,
                'basicwithoutlines': cls.BASIC_WL,
                'en 16931': cls.EN16931,
                'comfort': cls.EN16931,
            }
            if lowered in aliases:
                return aliases[lowered]

        raise ValueError(f"Unknown conformance tier: {value!r}")

    @classmethod
    def ordered(cls) -> Tuple['ConformanceTier', ...]:
        """All tiers from lowest to highest."""
        return tuple(sorted(cls, key=lambda tier: tier.sort_key))
