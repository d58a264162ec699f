"""
Custom column types
"""

from decimal import Decimal, InvalidOperation
from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class Amount(TypeDecorator):
    """
    Arbitrary-precision decimal stored as canonical text.

    Token amounts carry up to 18 fractional digits and exceed what NUMERIC
    round-trips on every backend, so the value is persisted as the plain
    decimal string and handed back to Python as Decimal.
    """

    impl = String(100)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        try:
            d = value if isinstance(value, Decimal) else Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"{value!r} is not a valid decimal amount")
        return format(d, "f")

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(value)
