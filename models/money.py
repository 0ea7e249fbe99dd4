"""Decimal helpers for monetary amounts (two places, half-up)."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWOPLACES = Decimal("0.01")


def to_decimal(value) -> Decimal:
    """
    Coerce a number or numeric-looking string to Decimal.

    Raises ValueError for None, booleans, blanks, non-numeric text, NaN and
    infinities.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f"Not a number: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Not a number: empty value")
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Not a number: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Not a finite number: {value!r}")
    return result


def to_money(value) -> Decimal:
    """Coerce to Decimal and round to cents."""
    return to_decimal(value).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
