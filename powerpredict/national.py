"""
National grid trend adapter.

Reduces the national collaborator's year-over-year demand change to a single
multiplicative factor. The adjustment is best effort: missing data yields the
neutral factor 1.0 and never stops a forecast.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np

from .config import NATIONAL_RECENT_MONTHS, STATIC_GRID_MONTHS
from .schemas import GridMonth, NationalGridSnapshot, Sourced, SourceKind

logger = logging.getLogger(__name__)

NEUTRAL_FACTOR = 1.0


def static_grid_months() -> Sequence[GridMonth]:
    """Bundled REN reference months used when nothing else is available."""
    return tuple(
        GridMonth(year=year, month=month, consumption_gwh=float(gwh),
                  yoy_pct=yoy, yoy_corrected_pct=corrected)
        for year, month, gwh, yoy, corrected in STATIC_GRID_MONTHS
    )


class NationalTrendAdapter:
    """Turns a recent corrected YoY percentage into a forecast multiplier."""

    def __init__(self, recent_months: int = NATIONAL_RECENT_MONTHS):
        self.recent_months = recent_months

    def recent_average_pct(self, months: Sequence[GridMonth]) -> Optional[float]:
        """
        Rolling mean of the corrected YoY % over the latest months.

        Only months with positive consumption count. Returns None when no
        month qualifies.
        """
        valid = sorted(
            (m for m in months if m.consumption_gwh > 0),
            key=lambda m: (m.year, m.month),
        )
        if not valid:
            return None

        latest = valid[-self.recent_months:]
        return round(float(np.mean([m.yoy_corrected_pct for m in latest])), 2)

    @staticmethod
    def factor(percentage: Optional[float]) -> float:
        if percentage is None:
            return NEUTRAL_FACTOR
        return round(1 + percentage / 100, 4)

    def from_snapshot(
        self,
        snapshot: Optional[NationalGridSnapshot],
        source: SourceKind = SourceKind.LIVE
    ) -> Sourced[float]:
        """Factor for a collaborator snapshot, neutral when it carries no value."""
        if snapshot is None:
            logger.info("National grid data unavailable; using neutral factor")
            return Sourced(NEUTRAL_FACTOR, SourceKind.FALLBACK)

        pct = snapshot.recent_average_corrected_pct
        if pct is None:
            pct = self.recent_average_pct(snapshot.months)
        if pct is None:
            logger.info("National grid snapshot has no usable months; using neutral factor")
            return Sourced(NEUTRAL_FACTOR, SourceKind.FALLBACK)

        return Sourced(self.factor(pct), source)

    def static_fallback(self) -> Sourced[float]:
        pct = self.recent_average_pct(static_grid_months())
        return Sourced(self.factor(pct), SourceKind.FALLBACK)


def coerce_national_factor(value: Union[Sourced, float, int, None]) -> Sourced[float]:
    """Accept a tagged factor, a bare number or None."""
    if value is None:
        return Sourced(NEUTRAL_FACTOR, SourceKind.FALLBACK)
    if isinstance(value, Sourced):
        if value.value is None:
            return Sourced(NEUTRAL_FACTOR, SourceKind.FALLBACK)
        return Sourced(float(value.value), value.source)
    return Sourced(float(value), SourceKind.LIVE)
