"""
Conformance Profiles Package

Factur-X / ZUGFeRD profiles as an ordered, closed set.

Usage:
    from zugferd_rules.profiles import ConformanceTier

    tier = ConformanceTier.parse('basicwl')
    if tier >= ConformanceTier.BASIC_WL:
        print(tier.urn)
"""

from .conformance import ConformanceTier

__all__ = [
    'ConformanceTier',
]
