"""
Money helpers.

All amounts are Decimal with two places; floats never touch a balance.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from sqlalchemy import Numeric, func

CENT = Decimal("0.01")

Amount = Union[Decimal, int, str]


def to_money(value: Amount) -> Decimal:
    """Quantize to cents. None is treated as zero (freshly created rows)."""
    if value is None:
        return Decimal("0.00")
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Amount, percent: Amount) -> Decimal:
    """`percent`% of `amount`, rounded to cents."""
    return to_money(to_money(amount) * Decimal(str(percent)) / Decimal("100"))


def cents(column):
    """SQL expression rounding a money column to cents before it is compared."""
    # Backends without a native decimal type store float residue
    return func.round(column, 2, type_=Numeric(18, 2))
