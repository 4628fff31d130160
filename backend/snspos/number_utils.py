from __future__ import annotations

from typing import Optional


def as_number(value: Optional[float]) -> Optional[float | int]:
    """Whole floats serialize as ints (2.0 -> 2); everything else passes through."""
    if value is None:
        return None
    value = float(value)
    if value.is_integer():
        return int(value)
    return round(value, 4)
