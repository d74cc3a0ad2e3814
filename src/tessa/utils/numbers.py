"""Округление для человекочитаемых описаний."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Округлить к ближайшему целому, половины — вверх.

    ``round()`` в Python использует банковское округление (``round(2.5) == 2``),
    что даёт неожиданные проценты в описаниях инсайтов.
    """
    return int(math.floor(value + 0.5))


def percent(value: float) -> int:
    """Доля 0..1 → целый процент."""
    return round_half_up(value * 100)
