"""Small numeric helpers shared by the engine components."""

from __future__ import annotations

import math
from typing import Any


def clamp(value: float, minimum: float, maximum: float) -> float:
    """Clamp a value between a minimum and maximum."""
    return max(minimum, min(maximum, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (Python's round() is banker's)."""
    return int(math.floor(value + 0.5))


def parse_difficulty(difficulty: Any, default: int = 3) -> int:
    """
    Parse and normalize a difficulty from storage or a payload.

    Non-numeric values fall back to ``default``; the result is always in [1, 6].
    """
    try:
        parsed = int(float(difficulty))
    except (TypeError, ValueError):
        parsed = default
    return int(clamp(parsed, 1, 6))
