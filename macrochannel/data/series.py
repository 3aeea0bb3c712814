"""
Series catalog and provider response shapes.

The two providers answer in different shapes: Eurostat returns dimensioned
panel rows, FRED returns one named series. Both are normalized right away
into a RawSeries so nothing downstream sees provider quirks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union

import pandas as pd

from macrochannel.errors import FetchError

logger = logging.getLogger(__name__)

Frequency = Literal["daily", "monthly", "quarterly"]


class Indicator(Enum):
    """Raw series feeding the panel."""

    HICP = "hicp"  # Harmonized index of consumer prices, all items
    UNEMPLOYMENT = "unemployment"  # Monthly unemployment rate
    POLICY_RATE = "policy_rate"  # ECB deposit facility rate
    GDP = "gdp"  # Quarterly gross domestic product


@dataclass(frozen=True)
class SeriesConfig:
    """Where a raw series comes from and how it is brought to calendar frequency."""

    provider: Literal["eurostat", "fred"]
    identifier: str
    native_frequency: Frequency
    target_frequency: Frequency
    aggregation: Literal["mean", "last"]
    filters: dict[str, str] = field(default_factory=dict)
    description: str = ""


SERIES_CONFIGS: dict[Indicator, SeriesConfig] = {
    Indicator.HICP: SeriesConfig(
        provider="eurostat",
        identifier="prc_hicp_midx",
        native_frequency="monthly",
        target_frequency="monthly",
        aggregation="mean",
        filters={"coicop": "CP00", "unit": "I15"},
        description="HICP monthly index, all-items (2015=100)",
    ),
    Indicator.UNEMPLOYMENT: SeriesConfig(
        provider="eurostat",
        identifier="une_rt_m",
        native_frequency="monthly",
        target_frequency="monthly",
        aggregation="mean",
        filters={"s_adj": "SA", "age": "TOTAL", "sex": "T", "unit": "PC_ACT"},
        description="Unemployment rate, seasonally adjusted, % of active population",
    ),
    Indicator.POLICY_RATE: SeriesConfig(
        provider="fred",
        identifier="ECBDFR",
        native_frequency="daily",
        target_frequency="monthly",
        aggregation="last",
        description="ECB deposit facility rate for euro area",
    ),
    Indicator.GDP: SeriesConfig(
        provider="eurostat",
        identifier="namq_10_gdp",
        native_frequency="quarterly",
        target_frequency="quarterly",
        aggregation="mean",
        filters={"unit": "CP_MNAC", "s_adj": "SCA", "na_item": "B1GQ"},
        description="GDP at current prices, national currency, seasonally and calendar adjusted",
    ),
}


@dataclass(frozen=True)
class DimensionedPanel:
    """Statistical-office response: one row per (time, dimension codes) cell."""

    dataset: str
    rows: pd.DataFrame  # columns: time, <dimension codes...>, value
    frequency: Frequency
    source: str = "eurostat"


@dataclass(frozen=True)
class NamedSeries:
    """Financial-data response: a single dated series."""

    series_id: str
    values: pd.Series
    frequency: Frequency
    source: str = "fred"


ProviderResponse = Union[DimensionedPanel, NamedSeries]


@dataclass(frozen=True)
class RawSeries:
    """A series at native provider frequency, possibly with missing values."""

    name: str
    values: pd.Series  # float values indexed by timestamp
    frequency: Frequency
    source: str

    def summary(self) -> str:
        non_missing = self.values.dropna()
        if non_missing.empty:
            return f"{self.name} ({self.source}, {self.frequency}): no observations"
        return (
            f"{self.name} ({self.source}, {self.frequency}): {len(non_missing)} obs, "
            f"{non_missing.index.min():%Y-%m-%d} to {non_missing.index.max():%Y-%m-%d}"
        )


def to_raw_series(
    response: ProviderResponse,
    name: str,
    filters: dict[str, str] | None = None,
) -> RawSeries:
    """
    Normalize a provider response into a RawSeries.

    Dimensioned panels keep only rows that match every filter exactly and are
    then averaged over any remaining dimension per time point.

    Raises:
        FetchError: If a filter names an unknown dimension or nothing matches
    """
    if isinstance(response, NamedSeries):
        values = pd.to_numeric(response.values, errors="coerce").astype(float)
        values.index = pd.DatetimeIndex(response.values.index)
        values = values.sort_index()
        values.name = name
        if values.dropna().empty:
            raise FetchError(f"Series {response.series_id} returned no observations")
        return RawSeries(name=name, values=values, frequency=response.frequency, source=response.source)

    if isinstance(response, DimensionedPanel):
        rows = response.rows
        for dim, code in (filters or {}).items():
            if dim not in rows.columns:
                raise FetchError(f"Dataset {response.dataset} has no dimension '{dim}'")
            rows = rows[rows[dim].astype(str) == str(code)]

        if rows.empty or rows["value"].dropna().empty:
            raise FetchError(
                f"Dataset {response.dataset} has no observations for filters {filters or {}}"
            )

        residual = [c for c in rows.columns if c not in ("time", "value", *(filters or {}))]
        residual = [c for c in residual if rows[c].nunique() > 1]
        if residual:
            logger.debug(f"{response.dataset}: averaging over residual dimensions {residual}")

        values = (
            rows.assign(value=pd.to_numeric(rows["value"], errors="coerce"))
            .groupby("time")["value"]
            .mean()
            .astype(float)
            .sort_index()
        )
        values.index = pd.DatetimeIndex(values.index)
        values.name = name
        return RawSeries(name=name, values=values, frequency=response.frequency, source=response.source)

    raise TypeError(f"Unsupported provider response: {type(response).__name__}")
