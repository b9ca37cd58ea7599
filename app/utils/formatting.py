"""
Formatting helpers for budget amounts and dates.

Amounts are printed the way the shop's customers read them (es-CO):
dot as thousands separator, comma as decimal separator.
"""
import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

Number = Union[Decimal, float, int, str, None]

CENTS = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """
    Coerce a form value into a Decimal.

    Empty or non-numeric values count as zero, mirroring how blank quantity
    and price cells are treated on the budget form.
    """
    if value is None or value == "":
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")


def quantize_money(value: Number) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: Number, unit_price: Number) -> Decimal:
    """
    Total of a line as it is stored.

    Quantity and unit price are rounded to cents first, so the stored
    total always equals the stored quantity times the stored price.
    """
    return quantize_money(quantize_money(quantity) * quantize_money(unit_price))


def _group_thousands(integer_part: int) -> str:
    return f"{integer_part:,}".replace(",", ".")


def _split(value: Number):
    amount = quantize_money(value)
    sign = "-" if amount < 0 else ""
    integer_part, _, fraction = f"{abs(amount):.2f}".partition(".")
    return sign, _group_thousands(int(integer_part)), fraction


def format_currency(value: Number, symbol: str = "$") -> str:
    """
    Format an amount as es-CO currency.

    >>> format_currency(1234567)
    '$ 1.234.567,00'
    """
    sign, grouped, fraction = _split(value)
    return f"{sign}{symbol} {grouped},{fraction}"


def format_number(value: Number) -> str:
    """
    Format an amount with es-CO grouping and no symbol.

    Decimals are shown only when present: 1234567 -> '1.234.567',
    2.5 -> '2,5'.
    """
    sign, grouped, fraction = _split(value)
    fraction = fraction.rstrip("0")
    if fraction:
        return f"{sign}{grouped},{fraction}"
    return f"{sign}{grouped}"


def format_date(value: Union[date, datetime, str, None]) -> str:
    """Short es-CO date, d/m/yyyy."""
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    return f"{value.day}/{value.month}/{value.year}"


def only_digits(value: Optional[str]) -> str:
    """Keep the digits of a value, e.g. '85.000 km' -> '85000'."""
    if value is None:
        return ""
    return re.sub(r"\D", "", str(value))
