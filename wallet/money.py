"""
Integer minor-unit helpers.

Balances are stored as ints of the ledger currency's smallest unit (cents for
cash, single coins for the coin ledger). Derived amounts such as the receiver
share of a gift are rounded half-to-even back to whole minor units.
"""

from decimal import Decimal, ROUND_HALF_EVEN, InvalidOperation
from typing import Union

from .errors import InvalidAmountError

Rate = Union[Decimal, str, int, float]


def to_rate(value: Rate) -> Decimal:
    """Parse a fraction such as 0.3 into a Decimal within [0, 1]."""
    try:
        rate = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Invalid rate: {value!r}")
    if not rate.is_finite() or rate < 0 or rate > 1:
        raise InvalidAmountError(f"Rate must be between 0 and 1, got {value!r}")
    return rate


def validate_amount(amount) -> int:
    # bool is an int subclass but never a meaningful amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmountError(f"Amount must be an integer number of minor units, got {amount!r}")
    if amount < 0:
        raise InvalidAmountError(f"Amount must be non-negative, got {amount}")
    return amount


def round_minor(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_EVEN))


def split_amount(gross: int, cut_rate: Rate) -> tuple[int, int]:
    """Return (net, platform) for a gross amount; the two always sum to gross."""
    gross = validate_amount(gross)
    rate = to_rate(cut_rate)
    net = round_minor(Decimal(gross) * (1 - rate))
    return net, gross - net


def apply_rate(amount: int, rate: Rate) -> int:
    return round_minor(Decimal(validate_amount(amount)) * to_rate(rate))


def to_minor_units(value: Union[Decimal, str, int], exponent: int = 2) -> int:
    """Convert a major-unit price like Decimal("4.99") into 499."""
    scaled = Decimal(str(value)).scaleb(exponent)
    return round_minor(scaled)


def from_minor_units(amount: int, exponent: int = 2) -> Decimal:
    return Decimal(amount).scaleb(-exponent)
