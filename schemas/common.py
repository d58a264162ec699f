"""
Shared schema helpers
"""

from decimal import Decimal, InvalidOperation
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Configurable rules:
MAX_DIGITS = 78  # uint256 fits in 78 decimal digits
MAX_DECIMAL_PLACES = 18  # wei precision


def enforce_amount(value) -> Optional[Decimal]:
    """
    Convert input to Decimal, enforce finite, >= 0 and digit limits.
    Accepts str, int, float, Decimal. Values are never rounded.
    """
    if value is None:
        return value
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, TypeError):
        raise ValueError("value is not a valid decimal")

    if not d.is_finite():
        raise ValueError("value must be a finite number")

    if d < Decimal("0"):
        raise ValueError("value must be >= 0")

    sign, digits, exponent = d.as_tuple()
    if exponent < 0 and -exponent > MAX_DECIMAL_PLACES:
        raise ValueError(
            f"value has too many decimal places (max {MAX_DECIMAL_PLACES})"
        )
    if len(digits) + max(exponent, 0) > MAX_DIGITS:
        raise ValueError(f"value has too many digits (max {MAX_DIGITS})")

    return d


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input and emits camelCase"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class Page(CamelModel):
    total: int
    page: int
    per_page: int
    total_pages: int
