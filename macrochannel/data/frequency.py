"""
Frequency normalization.

Reduces a RawSeries to one observation per calendar period (month or
quarter), keyed by the period start date.
"""

from __future__ import annotations

import logging
from typing import Literal

import pandas as pd

from macrochannel.data.series import RawSeries
from macrochannel.errors import PipelineError

logger = logging.getLogger(__name__)

FREQUENCY_ORDER = ["daily", "monthly", "quarterly", "annual"]

PERIOD_CODES = {
    "daily": "D",
    "monthly": "M",
    "quarterly": "Q",
    "annual": "Y",
}


class FrequencyMismatch(PipelineError):
    """Exception raised when frequencies cannot be aligned."""

    stage = "normalize"

    def __init__(self, message: str, source_freq: str, target_freq: str):
        self.source_freq = source_freq
        self.target_freq = target_freq
        super().__init__(f"{message}: {source_freq} → {target_freq}")


def get_frequency_rank(freq: str) -> int:
    """Get rank of frequency (lower = finer)."""
    try:
        return FREQUENCY_ORDER.index(freq)
    except ValueError:
        return -1  # Unknown frequency


def can_aggregate(source_freq: str, target_freq: str) -> bool:
    """Check if source can be aggregated to target."""
    source_rank = get_frequency_rank(source_freq)
    target_rank = get_frequency_rank(target_freq)
    return source_rank >= 0 and target_rank >= 0 and source_rank <= target_rank


def normalize(
    raw: RawSeries,
    target: str = "monthly",
    method: Literal["mean", "last"] = "mean",
) -> pd.Series:
    """
    Collapse a raw series to one value per calendar period.

    Missing observations are ignored. `mean` averages the observations of a
    period; `last` keeps the right-most one. A period whose observations
    are all missing is omitted, never filled.

    Args:
        raw: Series at native frequency
        target: Target frequency ("monthly" or "quarterly")
        method: Aggregation rule

    Returns:
        Series indexed by period start ("date"), strictly increasing

    Raises:
        FrequencyMismatch: If target is finer than the native frequency
    """
    if not can_aggregate(raw.frequency, target):
        raise FrequencyMismatch(f"Cannot aggregate {raw.name}", raw.frequency, target)
    if method not in ("mean", "last"):
        raise ValueError(f"Unknown aggregation method: {method}")

    values = raw.values.dropna().sort_index()
    period_start = values.index.to_period(PERIOD_CODES[target]).to_timestamp()
    grouped = values.groupby(period_start)
    result = grouped.mean() if method == "mean" else grouped.last()

    result = result.astype(float)
    result.index = pd.DatetimeIndex(result.index, name="date")
    result.name = raw.name

    logger.debug(
        f"Normalized {raw.name}: {len(raw.values)} {raw.frequency} obs → "
        f"{len(result)} {target} ({method})"
    )
    return result
