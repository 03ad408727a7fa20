"""Display formatting for amounts and odometer readings."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from constants import CURRENCY_SYMBOL


def round_currency(value: Any) -> int:
    """
    Round an amount to the nearest whole rupee, halves rounding up.

    Matches the backend's whole-rupee rounding rather than Python's
    banker's rounding, so 2.5 becomes 3.

    Args:
        value: Amount (Decimal, number, numeric string or None)

    Returns:
        Whole-unit amount
    """
    if value is None or value == "":
        return 0
    amount = value if isinstance(value, Decimal) else Decimal(str(value))
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def group_indian(number: int) -> str:
    """
    Group digits the Indian way: last three, then pairs (12,34,567).

    Args:
        number: Non-negative integer

    Returns:
        Grouped digit string
    """
    digits = str(number)
    if len(digits) <= 3:
        return digits

    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups + [tail])


def format_currency(amount: Any) -> str:
    """
    Format an amount as INR without decimals, e.g. ``₹1,23,456``.

    Args:
        amount: Amount to format (None is treated as zero)

    Returns:
        Formatted amount
    """
    value = round_currency(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{group_indian(abs(value))}"


def format_km(value: Optional[Decimal]) -> str:
    """Format an odometer distance with two decimals, or N/A."""
    if value is None:
        return "N/A"
    return f"{Decimal(value):.2f} km"
