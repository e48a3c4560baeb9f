from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# Type alias for money values (Kwanza, 2 decimal places)
Money = Decimal

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def round_money(value: Union[Decimal, float, int, str, None]) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money("5000")
        Decimal('5000.00')
        >>> round_money(None)
        Decimal('0.00')
    """
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)
