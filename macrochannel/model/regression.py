"""
OLS regression of inflation on the transformed macro indicators.
"""

import logging
from dataclasses import dataclass

import pandas as pd
import statsmodels.formula.api as smf

from macrochannel.errors import InsufficientDataError, ModelError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegressionSpec:
    """Specification for the inflation regression."""

    dependent: str = "Inflation_YY"
    regressors: tuple[str, ...] = ("D_Interest_Rate", "D_Unemployment_Rate", "GDP_Growth_YY")

    @property
    def formula(self) -> str:
        return f"{self.dependent} ~ {' + '.join(self.regressors)}"


@dataclass
class RegressionResult:
    """Coefficient table and fit statistics of an OLS fit."""

    formula: str
    params: pd.Series
    std_errors: pd.Series
    tvalues: pd.Series
    pvalues: pd.Series
    rsquared: float
    rsquared_adj: float
    fvalue: float
    f_pvalue: float
    nobs: int

    def coefficient_table(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "coefficient": self.params,
                "std_error": self.std_errors,
                "t_stat": self.tvalues,
                "pvalue": self.pvalues,
            }
        )

    def summary(self) -> str:
        lines = [
            "=" * 60,
            f"OLS: {self.formula}",
            "=" * 60,
        ]
        for name, row in self.coefficient_table().iterrows():
            lines.append(
                f"  {name:<22} {row['coefficient']:>10.4f} "
                f"(se={row['std_error']:.4f}, t={row['t_stat']:.2f}, p={row['pvalue']:.3f})"
            )
        lines.append(f"R²: {self.rsquared:.4f}  Adj. R²: {self.rsquared_adj:.4f}")
        lines.append(f"F: {self.fvalue:.2f} (p={self.f_pvalue:.4f})  N: {self.nobs}")
        return "\n".join(lines)


def fit_ols(panel: pd.DataFrame, spec: RegressionSpec | None = None) -> RegressionResult:
    """
    Fit the regression with an intercept on a stationary panel.

    Raises:
        ModelError: If a variable of the formula is missing from the panel
        InsufficientDataError: If there are not more rows than regressors + 1
    """
    spec = spec or RegressionSpec()
    columns = [spec.dependent, *spec.regressors]
    missing = [c for c in columns if c not in panel.columns]
    if missing:
        raise ModelError(f"Panel lacks regression variables: {missing}")

    data = panel[columns].dropna()
    n_params = len(spec.regressors) + 1
    # n == n_params leaves no residual degrees of freedom
    if len(data) <= n_params:
        raise InsufficientDataError(
            f"OLS needs more than {n_params} complete rows, panel has {len(data)}"
        )

    model = smf.ols(spec.formula, data=data.reset_index(drop=True)).fit()
    logger.info(f"Fitted {spec.formula} on {int(model.nobs)} observations")

    return RegressionResult(
        formula=spec.formula,
        params=model.params,
        std_errors=model.bse,
        tvalues=model.tvalues,
        pvalues=model.pvalues,
        rsquared=float(model.rsquared),
        rsquared_adj=float(model.rsquared_adj),
        fvalue=float(model.fvalue),
        f_pvalue=float(model.f_pvalue),
        nobs=int(model.nobs),
    )
