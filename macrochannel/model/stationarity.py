"""
Unit-root tests and VAR lag-order selection.

Implements:
- Augmented Dickey-Fuller tests on levels and first differences
- Information-criterion lag selection with an explicit criterion policy
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass, field
from enum import Enum

import numpy as np
import pandas as pd
from statsmodels.tsa.api import VAR
from statsmodels.tsa.stattools import adfuller

from macrochannel.errors import InsufficientDataError, ModelError

logger = logging.getLogger(__name__)


class LagCriterion(str, Enum):
    """Information criterion used to pick the VAR order."""

    AIC = "aic"
    BIC = "bic"
    HQIC = "hqic"
    FPE = "fpe"


@dataclass
class UnitRootResult:
    """Results from an augmented Dickey-Fuller test."""

    variable: str
    transform: str  # "level" or "diff"
    statistic: float
    pvalue: float
    lag: int
    nobs: int
    critical_values: dict[str, float] = field(default_factory=dict)

    @property
    def stationary(self) -> bool:
        """Unit root rejected at 5%."""
        return self.pvalue < 0.05


@dataclass
class LagSelection:
    """Information criteria per VAR order and the selected order."""

    table: pd.DataFrame  # index: lag order 1..max, columns: criteria
    selected: dict[str, int]
    criterion: LagCriterion
    max_lags: int

    @property
    def p_opt(self) -> int:
        return self.selected[self.criterion.value]

    def disagreement(self) -> bool:
        """True when the criteria do not pick the same order."""
        return len(set(self.selected.values())) > 1

    def summary(self) -> str:
        lines = [
            "=" * 60,
            f"VAR LAG SELECTION (max {self.max_lags}, policy: {self.criterion.value.upper()})",
            "=" * 60,
        ]
        for crit, order in self.selected.items():
            marker = " <-" if crit == self.criterion.value else ""
            lines.append(f"  {crit.upper():<5} selects p = {order}{marker}")
        return "\n".join(lines)


def adf_lag(n: int) -> int:
    """Default ADF lag order trunc((n - 1)^(1/3))."""
    return int(np.trunc((n - 1) ** (1.0 / 3.0)))


def adf_test(series: pd.Series, transform: str = "level", lag: int | None = None) -> UnitRootResult:
    """
    ADF test with constant and linear trend at a fixed lag.

    Raises:
        InsufficientDataError: If the series is too short for the lag
        ModelError: If the test cannot be computed (e.g. constant series)
    """
    values = series.dropna().to_numpy(dtype=float)
    n = len(values)
    lag = adf_lag(n) if lag is None else lag
    # constant and trend take two of the n//2 usable lags
    if lag > n // 2 - 3:
        raise InsufficientDataError(
            f"ADF on {series.name} ({transform}) needs more than {n} observations for lag {lag}"
        )

    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", FutureWarning)
            result = adfuller(values, maxlag=lag, regression="ct", autolag=None)
    except ValueError as e:
        raise ModelError(f"ADF test failed for {series.name} ({transform}): {e}") from e

    statistic, pvalue, used_lag, nobs, critical = result[:5]
    return UnitRootResult(
        variable=str(series.name),
        transform=transform,
        statistic=float(statistic),
        pvalue=float(pvalue),
        lag=int(used_lag),
        nobs=int(nobs),
        critical_values={k: float(v) for k, v in critical.items()},
    )


def adf_tests(levels: pd.DataFrame) -> list[UnitRootResult]:
    """ADF tests on every level series and on its first difference."""
    results = []
    for column in levels.columns:
        series = levels[column]
        results.append(adf_test(series, "level"))
        results.append(adf_test(series.diff().dropna().rename(column), "diff"))

    for r in results:
        logger.info(f"ADF {r.variable} [{r.transform}]: stat={r.statistic:.3f}, p={r.pvalue:.3f}")
    return results


def select_lag_order(
    diffs: pd.DataFrame,
    max_lags: int = 12,
    criterion: LagCriterion | str = LagCriterion.HQIC,
) -> LagSelection:
    """
    Select the VAR order over orders 1..max_lags on differenced data.

    All criteria are computed on a common sample with a constant term; the
    configured criterion decides `p_opt`.

    Raises:
        InsufficientDataError: If max_lags cannot be estimated with the sample
        ModelError: If the VAR moment matrices are singular
    """
    criterion = LagCriterion(criterion)
    if max_lags < 1:
        raise ValueError(f"max_lags must be at least 1, got {max_lags}")

    data = diffs.dropna().reset_index(drop=True)
    n, k = data.shape
    max_estimable = (n - k - 1) // (1 + k)
    if max_lags > max_estimable:
        raise InsufficientDataError(
            f"Lag selection up to {max_lags} needs more observations: "
            f"{n} rows support at most {max(max_estimable, 0)} lags for {k} variables"
        )

    try:
        orders = VAR(data).select_order(maxlags=max_lags, trend="c")
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ModelError(f"Lag selection failed (singular system): {e}") from e
    table = pd.DataFrame({crit: values for crit, values in orders.ics.items()})
    table.index.name = "lag"
    # Order 0 carries only the constant; candidates start at 1
    table = table.loc[1:]

    selected = {crit: int(table[crit].idxmin()) for crit in table.columns}
    selection = LagSelection(table=table, selected=selected, criterion=criterion, max_lags=max_lags)

    if selection.disagreement():
        logger.warning(f"Lag criteria disagree: {selected}; using {criterion.value}")
    logger.info(f"Selected VAR order p = {selection.p_opt} ({criterion.value})")
    return selection
