"""
Money Utilities

Exact decimal helpers shared by the balance and settlement code. Amounts are
either Decimal values or integer counts of the smallest currency unit
("cents"); native floats are never accepted.
"""

from decimal import Context, Decimal, DivisionByZero, Inexact, InvalidOperation, localcontext
from typing import Dict, Iterable, Sequence, Union

from split_settlement.utils.errors import InvalidBill

CENT = Decimal('0.01')


def exact_context(values: Sequence[Decimal]) -> Context:
    """
    Decimal context wide enough to add, subtract and compare the given
    values (and their running sums) without rounding.

    Inexact results raise instead of being rounded silently.
    """
    finite = [value for value in values if value.is_finite() and value != 0]
    prec = 28
    if finite:
        highest = max(value.adjusted() for value in finite)
        lowest = min(value.as_tuple().exponent for value in finite)
        prec = max(prec, highest - lowest + len(str(len(finite))) + 2)
    return Context(prec=prec, traps=[Inexact, InvalidOperation, DivisionByZero])


def parse_money(value: Union[Decimal, int, str]) -> Decimal:
    """
    Convert a boundary value into a Decimal.

    Accepts Decimal, int or a decimal string. Floats are rejected because
    their binary representation cannot hold most cent values exactly.

    Raises:
        TypeError: If value is a float, bool or any other type
        ValueError: If the string is not a finite decimal number
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(
            f"Monetary values must be Decimal, int or str, got {type(value).__name__}"
        )
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise ValueError(f"Invalid monetary value: {value!r}")
    else:
        raise TypeError(
            f"Monetary values must be Decimal, int or str, got {type(value).__name__}"
        )

    if not result.is_finite():
        raise ValueError(f"Monetary value must be finite, got {value!r}")
    return result


def to_cents(value: Decimal, unit: Decimal = CENT) -> int:
    """
    Convert an exact Decimal amount into an integer number of currency units.

    Raises:
        InvalidBill: If the amount is finer than the currency unit
    """
    try:
        with localcontext(exact_context([value, unit])):
            units = value / unit
    except (Inexact, InvalidOperation, DivisionByZero):
        units = None
    if units is None or units != units.to_integral_value():
        raise InvalidBill(f"Amount {value} is not a whole multiple of {unit}")
    return int(units)


def from_cents(cents: int, unit: Decimal = CENT) -> Decimal:
    """Convert an integer number of currency units back into a Decimal."""
    amount = Decimal(cents)
    with localcontext(exact_context([amount, unit])):
        return (amount * unit).quantize(unit)


def split_evenly(cents: int, owner_ids: Iterable[str]) -> Dict[str, int]:
    """
    Split an integer amount evenly across owners without losing a unit.

    Owners are ordered ascending; the first ``cents % k`` owners get one extra
    unit, so the shares always add back up to ``cents``.

    Example:
        >>> split_evenly(1000, ["C", "A", "B"])
        {'A': 334, 'B': 333, 'C': 333}
    """
    owners = sorted(set(owner_ids))
    if not owners:
        raise ValueError("Cannot split an amount across zero owners")

    base, remainder = divmod(cents, len(owners))
    return {
        owner: base + 1 if index < remainder else base
        for index, owner in enumerate(owners)
    }
