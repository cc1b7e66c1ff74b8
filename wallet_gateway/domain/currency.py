"""Minor/major currency unit conversion"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional, Union

MINOR_UNITS_PER_MAJOR = 100
CENT = Decimal("0.01")

Amount = Union[Decimal, int, float, str]


def to_minor(amount: Optional[Amount]) -> int:
    """
    Convert a major-unit amount to integer minor units (cents).

    Floats go through str() first so 50.25 becomes 5025, not 5024.
    Half-cent inputs round half up. None converts to 0.
    """
    if amount is None:
        return 0
    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value.quantize(CENT, rounding=ROUND_HALF_UP) * MINOR_UNITS_PER_MAJOR).to_integral_value())


def to_major(cents: Optional[Union[int, str]]) -> Decimal:
    """Convert integer minor units to a two-place Decimal major amount"""
    if cents is None or cents == "":
        return Decimal("0.00")
    return (Decimal(str(cents)) / MINOR_UNITS_PER_MAJOR).quantize(CENT)


def convert_fields_to_major(payload: Dict[str, Any], fields: Iterable[str]) -> Dict[str, Any]:
    """Copy of payload with the named fields converted minor -> major; absent or null fields are left alone"""
    converted = dict(payload)
    for field in fields:
        if converted.get(field) is not None:
            converted[field] = to_major(converted[field])
    return converted
