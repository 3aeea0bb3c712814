"""
Panel merging and alignment.

Joins the processed series on a monthly date key, spreads quarterly GDP
growth across its months and applies the completeness gate.
"""

from __future__ import annotations

import logging

import pandas as pd

from macrochannel.data.indicators import first_difference

logger = logging.getLogger(__name__)

PANEL_COLUMNS = ["Inflation_YY", "Interest_Rate", "Unemployment_Rate", "GDP_Growth_YY"]
STATIONARY_COLUMNS = ["Inflation_YY", "D_Interest_Rate", "D_Unemployment_Rate", "GDP_Growth_YY"]

DIFFERENCED = {
    "Interest_Rate": "D_Interest_Rate",
    "Unemployment_Rate": "D_Unemployment_Rate",
}


def fill_quarterly(series: pd.Series) -> pd.Series:
    """
    Spread a quarterly series over every month of a monthly index.

    Each month takes the value observed in its calendar quarter; months in
    quarters without an observation are filled forward, then backward.
    """
    quarter = series.index.to_period("Q")
    within_quarter = series.groupby(quarter).transform("first")
    return within_quarter.ffill().bfill()


def merge_panel(
    inflation: pd.Series,
    interest_rate: pd.Series,
    unemployment: pd.Series,
    gdp_growth: pd.Series,
    start: str | pd.Timestamp = "2001-01-01",
) -> pd.DataFrame:
    """
    Merge the four processed series into the monthly panel.

    Args:
        inflation: Monthly HICP year-over-year growth
        interest_rate: Monthly policy rate
        unemployment: Monthly unemployment rate
        gdp_growth: Quarterly GDP year-over-year growth (quarter-start dates)
        start: First date kept in the panel

    Returns:
        DataFrame indexed by `date` with PANEL_COLUMNS and no missing values.
        The panel ends at the earliest last observation across the sources.
    """
    sources = {
        "Inflation_YY": inflation,
        "Interest_Rate": interest_rate,
        "Unemployment_Rate": unemployment,
        "GDP_Growth_YY": gdp_growth,
    }
    joined = pd.concat(sources, axis=1, join="outer").sort_index()

    if joined.empty:
        logger.warning("Outer join produced no dates")
        return pd.DataFrame(columns=PANEL_COLUMNS, index=pd.DatetimeIndex([], name="date"), dtype=float)

    coverage_ends = [s.dropna().index.max() for n, s in sources.items() if n != "GDP_Growth_YY"]
    gdp_obs = gdp_growth.dropna()
    if not gdp_obs.empty:
        # a quarterly value covers every month of its quarter
        coverage_ends.append(gdp_obs.index.max().to_period("Q").asfreq("M", how="end").to_timestamp())
    coverage_ends = [d for d in coverage_ends if pd.notna(d)]

    filled = joined.assign(GDP_Growth_YY=fill_quarterly(joined["GDP_Growth_YY"]))
    panel = filled[PANEL_COLUMNS]
    panel = panel[panel.index >= pd.Timestamp(start)]
    if coverage_ends:
        panel = panel[panel.index <= min(coverage_ends)]

    before = len(panel)
    panel = panel.dropna()
    panel.index = pd.DatetimeIndex(panel.index, name="date")

    logger.info(
        f"Merged panel: {len(panel)} complete rows ({before - len(panel)} dropped as incomplete)"
    )
    return panel


def make_stationary(panel: pd.DataFrame) -> pd.DataFrame:
    """Replace the interest and unemployment rates by their first differences."""
    stationary = panel.copy()
    for level, diff in DIFFERENCED.items():
        stationary[diff] = first_difference(panel[level], "monthly")
    stationary = stationary[STATIONARY_COLUMNS].dropna()
    return stationary
