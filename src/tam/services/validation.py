from __future__ import annotations

import math
from typing import Optional

from tam.domain.errors import ValidationError


def parse_amount(value, label: str, *, default: Optional[float] = None) -> float:
    """Form/sheet value -> float. Blank uses ``default`` (required when None)."""
    if value is None or str(value).strip() == "":
        if default is None:
            raise ValidationError(f"{label} is required.")
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number.") from None
    if not math.isfinite(result):
        raise ValidationError(f"{label} must be a finite number.")
    return result
