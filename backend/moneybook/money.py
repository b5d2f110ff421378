"""
Exact money helpers.

Amounts travel as ``Decimal`` with two places and are persisted as integer
minor units.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value: Union[Decimal, int, str]) -> Decimal:
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def to_minor(value: Union[Decimal, int, str]) -> int:
    return int(quantize(value) * 100)


def from_minor(minor: Optional[int]) -> Decimal:
    """Convert a minor-unit integer (or a NULL aggregate) to a Decimal."""
    if minor is None:
        return ZERO
    return (Decimal(int(minor)) / 100).quantize(CENT)
