"""
Derived indicators: year-over-year growth and first differences.

Lags are calendar lags. The value k periods back is looked up by date, so a
gap in the series yields a missing value instead of a comparison with the
wrong period.
"""

from __future__ import annotations

import pandas as pd

PERIODS_PER_YEAR = {"monthly": 12, "quarterly": 4}

_MONTHS_PER_PERIOD = {"monthly": 1, "quarterly": 3}


def calendar_lag(series: pd.Series, frequency: str, periods: int) -> pd.Series:
    """Value `periods` calendar periods earlier, aligned to each date (NaN if absent)."""
    if frequency not in _MONTHS_PER_PERIOD:
        raise ValueError(f"Unsupported frequency for lags: {frequency}")
    offset = pd.DateOffset(months=periods * _MONTHS_PER_PERIOD[frequency])
    lagged_dates = series.index - offset
    return pd.Series(series.reindex(lagged_dates).to_numpy(), index=series.index, name=series.name)


def yoy_growth(series: pd.Series, frequency: str) -> pd.Series:
    """Year-over-year percent change: (x_t / x_{t-k} - 1) * 100."""
    lagged = calendar_lag(series, frequency, PERIODS_PER_YEAR[frequency])
    return (series / lagged - 1.0) * 100.0


def first_difference(series: pd.Series, frequency: str) -> pd.Series:
    """x_t - x_{t-1}, without scaling."""
    return series - calendar_lag(series, frequency, 1)
