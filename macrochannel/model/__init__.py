"""
Econometric models.

Contains:
- regression.py: OLS of inflation on the stationary indicators
- stationarity.py: ADF tests and VAR lag selection
- vecm.py: Johansen test, VECM, level VAR and bootstrapped IRF
"""

from macrochannel.model.regression import RegressionResult, RegressionSpec, fit_ols
from macrochannel.model.stationarity import (
    LagCriterion,
    LagSelection,
    UnitRootResult,
    adf_tests,
    select_lag_order,
)
from macrochannel.model.vecm import (
    CHOLESKY_ORDERING,
    COINTEGRATION_RANK,
    ImpulseResponse,
    JohansenResult,
    TimeSeriesResult,
    TimeSeriesSpec,
    VECMResult,
    WhitenessResult,
    fit_vecm,
    impulse_response,
    johansen_test,
    residual_whiteness,
    run_time_series_analysis,
)

__all__ = [
    "RegressionResult",
    "RegressionSpec",
    "fit_ols",
    "LagCriterion",
    "LagSelection",
    "UnitRootResult",
    "adf_tests",
    "select_lag_order",
    "CHOLESKY_ORDERING",
    "COINTEGRATION_RANK",
    "ImpulseResponse",
    "JohansenResult",
    "TimeSeriesResult",
    "TimeSeriesSpec",
    "VECMResult",
    "WhitenessResult",
    "fit_vecm",
    "impulse_response",
    "johansen_test",
    "residual_whiteness",
    "run_time_series_analysis",
]
