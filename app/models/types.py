"""
Money column type and decimal helpers.

All monetary amounts are decimal.Decimal values with exactly two decimal
places. On disk they are stored as integer minor units (cents) in a BIGINT
column, so arithmetic is exact on every backend, including SQLite, which has
no native decimal type. Floats never appear anywhere in the money path.

    Decimal("10.50")  <->  1050
"""

from decimal import Decimal, InvalidOperation

from sqlalchemy import BigInteger
from sqlalchemy.types import TypeDecorator


MONEY_DECIMAL_PLACES = 2
CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    """
    Convert a value to a two-place Decimal without rounding.

    Accepts Decimal, int, or str. Floats are rejected outright because they
    cannot represent most cent values exactly.

    Raises:
        ValueError: If the value is not a finite number, is a float,
            or carries more than two decimal places.
    """
    if isinstance(value, float):
        raise ValueError("Monetary amounts must not be floats")
    try:
        amount = Decimal(value)
        if not amount.is_finite():
            raise ValueError(f"Invalid monetary amount: {value!r}")
        quantized = amount.quantize(CENT)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid monetary amount: {value!r}") from exc
    if quantized != amount:
        raise ValueError(
            f"Monetary amounts allow at most {MONEY_DECIMAL_PLACES} decimal places"
        )
    return quantized


class Money(TypeDecorator):
    """Decimal in Python, integer cents in the database."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(to_money(value).scaleb(MONEY_DECIMAL_PLACES))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(int(value)).scaleb(-MONEY_DECIMAL_PLACES).quantize(CENT)
