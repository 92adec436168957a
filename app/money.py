from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

TWO_DP = Decimal("0.01")
ZERO = Decimal("0.00")

# Preset buttons on the transaction screen
PRESET_AMOUNTS: tuple[Decimal, ...] = tuple(
    Decimal(a) for a in ("0.25", "0.50", "1", "2", "3", "5", "10", "20")
)

AmountInput = Union[str, int, float, Decimal]


def parse_amount(value: Optional[AmountInput]) -> Optional[Decimal]:
    """Return the value as a 2 dp Decimal, or None if it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        if isinstance(value, float):
            # repr keeps 2.675 as "2.675" instead of its binary expansion
            amount = Decimal(repr(value))
        else:
            amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite():
        return None
    return amount.quantize(TWO_DP, rounding=ROUND_HALF_UP)


def to_amount(value: AmountInput) -> Decimal:
    amount = parse_amount(value)
    if amount is None:
        raise ValueError(f"Not a valid amount: {value!r}")
    return amount


def is_positive(value: Optional[AmountInput]) -> bool:
    amount = parse_amount(value)
    return amount is not None and amount > 0


def total(amounts) -> Decimal:
    return sum(amounts, ZERO).quantize(TWO_DP, rounding=ROUND_HALF_UP)


def format_amount(value: AmountInput) -> str:
    """Cents below a dollar ("50¢"), otherwise dollars ("$1.50")."""
    amount = parse_amount(value)
    if amount is None:
        return ""
    if Decimal("0.01") <= amount < 1:
        return f"{int(amount * 100)}¢"
    return f"${amount:.2f}"
