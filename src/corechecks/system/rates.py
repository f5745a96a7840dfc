"""Percentage rates from two cumulative CPU snapshots."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..errors import InsufficientElapsedTime
from .sampler import CATEGORIES, Snapshot

logger = logging.getLogger(__name__)

RATE_FLOOR = 0.0


@dataclass
class RateResult:
    """Per-category CPU percentages for one interval."""

    rates: dict[str, float] = field(default_factory=dict)
    interrupt: float | None = None

    def total(self) -> float:
        return sum(self.rates.values())


def compute_rates(prev: Snapshot, curr: Snapshot) -> RateResult:
    """Convert the delta between *prev* and *curr* into percentages.

    Both snapshots are normalized to per-logical-CPU cycles; each category
    delta is then scaled by ``100 / delta_cycles``.  Raises
    :class:`InsufficientElapsedTime` when no time elapsed between them.
    Values are not renormalized, but a negative rate is floored at
    ``RATE_FLOOR`` and logged.
    """
    delta_cycles = curr.cycles() - prev.cycles()
    if delta_cycles <= 0:
        raise InsufficientElapsedTime(
            f"no CPU time elapsed between samples (delta={delta_cycles:.6f})"
        )

    scale = 100.0 / delta_cycles
    rates: dict[str, float] = {}
    for category in CATEGORIES:
        delta = (curr.get(category) - prev.get(category)) / curr.cpu_count
        rate = delta * scale
        if rate < RATE_FLOOR:
            logger.warning(
                "Counter for %s went backwards (rate %.2f%%); reporting %.1f",
                category,
                rate,
                RATE_FLOOR,
            )
            rate = RATE_FLOOR
        rates[category] = rate
    return RateResult(rates=rates)
