"""
Cointegration analysis: Johansen test, VECM, level-VAR conversion,
residual diagnostics and bootstrapped orthogonalized impulse responses.

The stages form a fixed script over the level series
(GDP growth, inflation, interest rate):

1. ADF tests on levels and differences (diagnostic)
2. VAR lag selection on differences -> p_opt
3. Johansen trace test on levels with k_ar_diff = p_opt - 1
4. VECM with rank r (constant inside the cointegration relation),
   converted to its level-VAR form
5. Portmanteau test on the VECM residuals
6. Cholesky-orthogonalized IRF with residual-bootstrap bands

The cointegration rank and the variable ordering are modeling assumptions,
not estimated: both are named constants and overridable via TimeSeriesSpec.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np
import pandas as pd
from statsmodels.tsa.vector_ar.vecm import VECM, VECMResults, coint_johansen

from config.settings import Settings
from macrochannel.errors import InsufficientDataError, ModelError
from macrochannel.model.stationarity import (
    LagCriterion,
    LagSelection,
    UnitRootResult,
    adf_tests,
    select_lag_order,
)

logger = logging.getLogger(__name__)

COINTEGRATION_RANK = 1
CHOLESKY_ORDERING = ("GDP_Growth_YY", "Inflation_YY", "Interest_Rate")


@dataclass(frozen=True)
class TimeSeriesSpec:
    """Configuration of the time-series modeling sequence."""

    ordering: tuple[str, ...] = CHOLESKY_ORDERING
    max_lags: int = 12
    criterion: LagCriterion = LagCriterion.HQIC
    coint_rank: int = COINTEGRATION_RANK
    serial_lags: int = 12
    impulse: str = "Interest_Rate"
    response: str = "Inflation_YY"
    horizon: int = 24
    ci: float = 0.95
    runs: int = 500
    seed: int | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> TimeSeriesSpec:
        return cls(
            ordering=tuple(settings.var_ordering),
            max_lags=settings.lag_max,
            criterion=LagCriterion(settings.lag_criterion),
            coint_rank=settings.coint_rank,
            serial_lags=settings.serial_lags,
            impulse=settings.irf_impulse,
            response=settings.irf_response,
            horizon=settings.irf_horizon,
            ci=settings.irf_ci,
            runs=settings.irf_runs,
            seed=settings.bootstrap_seed,
        )


@dataclass
class JohansenResult:
    """Johansen trace test."""

    variables: list[str]
    k_ar_diff: int
    trace_stats: np.ndarray  # H0: rank <= r, r = 0..K-1
    crit_values: np.ndarray  # K x 3, columns 90% / 95% / 99%
    eigenvalues: np.ndarray
    eigenvectors: np.ndarray  # columns are cointegrating vectors
    deterministic: str = "unrestricted constant"

    @property
    def suggested_rank(self) -> int:
        """Smallest r whose trace statistic is below the 95% critical value."""
        for r, (stat, cv) in enumerate(zip(self.trace_stats, self.crit_values[:, 1])):
            if stat < cv:
                return r
        return len(self.trace_stats)

    @property
    def cointegrating_vector(self) -> pd.Series:
        """First eigenvector normalized on the first variable."""
        v = self.eigenvectors[:, 0]
        return pd.Series(v / v[0], index=self.variables, name="beta_1")

    def trace_table(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "trace": self.trace_stats,
                "cv_90": self.crit_values[:, 0],
                "cv_95": self.crit_values[:, 1],
                "cv_99": self.crit_values[:, 2],
                "eigenvalue": self.eigenvalues,
            },
            index=pd.Index([f"r <= {r}" for r in range(len(self.trace_stats))], name="H0"),
        )


@dataclass
class VECMResult:
    """Fitted VECM and its level-VAR representation."""

    variables: list[str]
    lag_order: int  # level-VAR order p
    coint_rank: int
    alpha: np.ndarray  # K x r loadings
    beta: np.ndarray  # K x r cointegrating vectors
    const_coint: np.ndarray  # 1 x r constants inside the relation
    var_coefficients: np.ndarray  # p x K x K, A_1..A_p
    var_intercept: np.ndarray  # K
    sigma_u: np.ndarray
    resid: np.ndarray  # nobs x K
    nobs: int
    results: VECMResults = field(repr=False)

    @property
    def cointegrating_vector(self) -> pd.Series:
        """First normalized cointegrating relation including its constant."""
        values = np.append(self.beta[:, 0], self.const_coint[0, 0])
        return pd.Series(values, index=[*self.variables, "const"], name="beta_1")

    def companion_stable(self) -> bool:
        """Whether all companion eigenvalues lie inside or on the unit circle."""
        k = len(self.variables)
        p = self.lag_order
        companion = np.zeros((k * p, k * p))
        companion[:k, :] = np.hstack(list(self.var_coefficients))
        if p > 1:
            companion[k:, :-k] = np.eye(k * (p - 1))
        return bool(np.all(np.abs(np.linalg.eigvals(companion)) <= 1 + 1e-8))


@dataclass
class WhitenessResult:
    """Multivariate portmanteau test on residuals."""

    statistic: float
    pvalue: float
    df: int
    lags: int

    @property
    def white(self) -> bool:
        return self.pvalue >= 0.05


@dataclass
class ImpulseResponse:
    """Orthogonalized impulse response with bootstrap percentile bands."""

    impulse: str
    response: str
    horizons: list[int]
    point: np.ndarray
    lower: np.ndarray
    upper: np.ndarray
    ci: float
    runs: int

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame for plotting."""
        return pd.DataFrame(
            {
                "horizon": self.horizons,
                "response": self.point,
                "conf_lower": self.lower,
                "conf_upper": self.upper,
            }
        )


@dataclass
class TimeSeriesResult:
    """Output of the full modeling sequence."""

    unit_roots: list[UnitRootResult]
    lag_selection: LagSelection
    johansen: JohansenResult
    vecm: VECMResult
    whiteness: WhitenessResult
    irf: ImpulseResponse

    def summary(self) -> str:
        lines = [
            "=" * 60,
            "TIME-SERIES MODEL SUMMARY",
            "=" * 60,
            "\nUnit-root tests (ADF, constant + trend):",
        ]
        for r in self.unit_roots:
            lines.append(
                f"  {r.variable:<15} {r.transform:<5} stat={r.statistic:>8.3f}  "
                f"p={r.pvalue:.3f}  lag={r.lag}"
            )
        lines.append(f"\n{self.lag_selection.summary()}")
        lines.append(
            f"\nJohansen trace test ({self.johansen.deterministic}, "
            f"k_ar_diff = {self.johansen.k_ar_diff}):"
        )
        lines.append(self.johansen.trace_table().round(3).to_string())
        lines.append(f"  Suggested rank (5%): {self.johansen.suggested_rank}")
        lines.append(f"  Imposed rank: {self.vecm.coint_rank}")
        lines.append(
            "  Level VAR companion matrix: "
            + ("stable" if self.vecm.companion_stable() else "explosive roots")
        )
        lines.append("\nCointegrating vector (normalized):")
        for name, value in self.vecm.cointegrating_vector.items():
            lines.append(f"  {name:<15} {value:>10.4f}")
        lines.append(
            f"\nPortmanteau test ({self.whiteness.lags} lags): "
            f"stat={self.whiteness.statistic:.2f}, df={self.whiteness.df}, "
            f"p={self.whiteness.pvalue:.4f}"
        )
        lines.append(
            f"\nIRF {self.irf.impulse} -> {self.irf.response} "
            f"({self.irf.ci:.0%} bootstrap CI, {self.irf.runs} runs):"
        )
        for h in (0, 6, 12, 24):
            if h < len(self.irf.point):
                lines.append(
                    f"  h={h:<3} {self.irf.point[h]:>8.4f} "
                    f"[{self.irf.lower[h]:.4f}, {self.irf.upper[h]:.4f}]"
                )
        return "\n".join(lines)


def _ordered_levels(panel: pd.DataFrame, ordering: tuple[str, ...]) -> pd.DataFrame:
    missing = [c for c in ordering if c not in panel.columns]
    if missing:
        raise ModelError(f"Panel lacks variables of the VAR ordering: {missing}")
    return panel[list(ordering)].dropna().reset_index(drop=True).astype(float)


def _check_sample(levels: pd.DataFrame, lag_order: int) -> None:
    n, k = levels.shape
    if lag_order < 1:
        raise ModelError(f"Lag order must be at least 1, got {lag_order}")
    # each VECM equation has K*p regressors plus the deterministic term
    if n - lag_order <= k * lag_order + 1:
        raise InsufficientDataError(
            f"{n} observations are too few for a {k}-variable VECM with lag order {lag_order}"
        )
    _check_full_rank(levels, "Level series")
    _check_full_rank(levels.diff().dropna(), "Differenced series")


def _check_full_rank(frame: pd.DataFrame, label: str) -> None:
    # an exact linear relation (up to a constant) makes the moment matrices singular
    values = frame.to_numpy(dtype=float)
    rank = np.linalg.matrix_rank(values - values.mean(axis=0))
    if rank < frame.shape[1]:
        raise ModelError(
            f"{label} are collinear (rank {rank} for {frame.shape[1]} variables); "
            "the system is singular"
        )


def _check_covariance(sigma_u: np.ndarray, tol: float = 1e-6) -> None:
    std = np.sqrt(np.diag(sigma_u))
    if np.any(std <= 0):
        raise ModelError("Residual covariance has a zero variance; the system is singular")
    corr = sigma_u / np.outer(std, std)
    smallest = float(np.linalg.eigvalsh(corr).min())
    if smallest < tol:
        raise ModelError(
            f"Residual covariance is near singular (smallest correlation eigenvalue {smallest:.2e})"
        )


def johansen_test(levels: pd.DataFrame, lag_order: int) -> JohansenResult:
    """
    Johansen trace test on level series with a constant term.

    Args:
        levels: Level series, one column per variable
        lag_order: Level-VAR order p_opt (k_ar_diff = p_opt - 1)
    """
    _check_sample(levels, lag_order)
    try:
        result = coint_johansen(levels.to_numpy(dtype=float), det_order=0, k_ar_diff=lag_order - 1)
    except np.linalg.LinAlgError as e:
        raise ModelError(f"Johansen test failed (singular moment matrix): {e}") from e

    johansen = JohansenResult(
        variables=list(levels.columns),
        k_ar_diff=lag_order - 1,
        trace_stats=np.asarray(result.lr1, dtype=float),
        crit_values=np.asarray(result.cvt, dtype=float),
        eigenvalues=np.asarray(result.eig, dtype=float),
        eigenvectors=np.asarray(result.evec, dtype=float),
    )
    logger.info(f"Johansen trace test suggests rank {johansen.suggested_rank}")
    return johansen


def _fit(levels: pd.DataFrame, lag_order: int, coint_rank: int) -> VECMResults:
    model = VECM(
        levels,
        k_ar_diff=lag_order - 1,
        coint_rank=coint_rank,
        deterministic="ci",
    )
    return model.fit()


def fit_vecm(
    levels: pd.DataFrame,
    lag_order: int,
    coint_rank: int = COINTEGRATION_RANK,
) -> VECMResult:
    """
    Estimate the VECM and convert it to the equivalent level VAR(p).

    Raises:
        ModelError: If the rank is outside 1..K-1 or estimation fails
        InsufficientDataError: If the sample is too short for the lag order
    """
    k = levels.shape[1]
    if not 1 <= coint_rank < k:
        raise ModelError(f"Cointegration rank must be between 1 and {k - 1}, got {coint_rank}")
    _check_sample(levels, lag_order)

    try:
        res = _fit(levels, lag_order, coint_rank)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise ModelError(f"VECM estimation failed: {e}") from e
    _check_covariance(np.asarray(res.sigma_u, dtype=float))

    intercept = (res.alpha @ res.const_coint.T).ravel()
    if res.const.size:
        intercept = intercept + res.const.ravel()

    vecm = VECMResult(
        variables=list(levels.columns),
        lag_order=lag_order,
        coint_rank=coint_rank,
        alpha=np.asarray(res.alpha, dtype=float),
        beta=np.asarray(res.beta, dtype=float),
        const_coint=np.asarray(res.const_coint, dtype=float),
        var_coefficients=np.asarray(res.var_rep, dtype=float),
        var_intercept=np.asarray(intercept, dtype=float),
        sigma_u=np.asarray(res.sigma_u, dtype=float),
        resid=np.asarray(res.resid, dtype=float),
        nobs=int(res.nobs),
        results=res,
    )
    logger.info(f"VECM fitted: p={lag_order}, r={coint_rank}, nobs={vecm.nobs}")
    return vecm


def residual_whiteness(vecm: VECMResult, lags: int = 12) -> WhitenessResult:
    """
    Portmanteau test for residual autocorrelation up to `lags`.

    Raises:
        ModelError: If the test has no degrees of freedom at this lag count
    """
    k = len(vecm.variables)
    df = k**2 * (lags - vecm.lag_order + 1) - k * vecm.coint_rank
    if df <= 0:
        raise ModelError(
            f"Portmanteau test with {lags} lags has no degrees of freedom "
            f"for lag order {vecm.lag_order}"
        )
    if lags >= vecm.nobs:
        raise InsufficientDataError(f"{vecm.nobs} residuals are too few for {lags} lags")

    try:
        test = vecm.results.test_whiteness(nlags=lags, adjusted=False)
    except np.linalg.LinAlgError as e:
        raise ModelError(f"Residual covariance is singular: {e}") from e

    result = WhitenessResult(
        statistic=float(test.test_statistic),
        pvalue=float(test.pvalue),
        df=int(test.df),
        lags=lags,
    )
    if not result.white:
        logger.warning(f"Residual autocorrelation detected (p={result.pvalue:.4f})")
    return result


def orthogonal_irf(
    results: VECMResults,
    impulse: int,
    response: int,
    horizon: int,
) -> np.ndarray:
    """Response to a one-standard-deviation Cholesky shock, h = 0..horizon."""
    try:
        chol = np.linalg.cholesky(results.sigma_u)
    except np.linalg.LinAlgError as e:
        raise ModelError(f"Residual covariance is not positive definite: {e}") from e
    return results.orth_ma_rep(maxn=horizon, P=chol)[:, response, impulse]


def simulate_levels(
    vecm: VECMResult,
    initial: np.ndarray,
    innovations: np.ndarray,
) -> np.ndarray:
    """
    Generate level data from the level VAR.

    Args:
        vecm: Fitted model providing A_1..A_p and the intercept
        initial: First p observed rows (p x K)
        innovations: Shocks for each generated period (T - p x K)

    Returns:
        Simulated levels (T x K) starting with `initial`
    """
    p = vecm.lag_order
    coefs = vecm.var_coefficients
    n_new, k = innovations.shape
    y = np.empty((p + n_new, k))
    y[:p] = initial
    for t in range(p, p + n_new):
        y[t] = vecm.var_intercept + innovations[t - p]
        for i in range(p):
            y[t] += coefs[i] @ y[t - i - 1]
    return y


def impulse_response(
    levels: pd.DataFrame,
    vecm: VECMResult,
    impulse: str,
    response: str,
    horizon: int = 24,
    ci: float = 0.95,
    runs: int = 500,
    seed: int | None = None,
) -> ImpulseResponse:
    """
    Orthogonalized impulse response with residual-bootstrap bands.

    Each draw resamples the centered VECM residuals with replacement,
    regenerates the levels from the level VAR starting at the observed
    initial values, re-estimates the VECM with the same lag order and rank
    and recomputes the orthogonalized response.

    Raises:
        ModelError: If a variable is unknown or a bootstrap draw fails
    """
    variables = vecm.variables
    for name in (impulse, response):
        if name not in variables:
            raise ModelError(f"Unknown IRF variable {name!r}; model has {variables}")
    if not 0 < ci < 1:
        raise ValueError(f"ci must be in (0, 1), got {ci}")
    if runs < 1 or horizon < 0:
        raise ValueError(f"runs must be positive and horizon non-negative (runs={runs}, horizon={horizon})")

    imp, resp = variables.index(impulse), variables.index(response)
    point = orthogonal_irf(vecm.results, imp, resp, horizon)

    rng = np.random.default_rng(seed)
    data = levels[variables].to_numpy(dtype=float)
    p = vecm.lag_order
    resid = vecm.resid - vecm.resid.mean(axis=0)
    n_resid = resid.shape[0]

    draws = np.empty((runs, horizon + 1))
    for b in range(runs):
        shocks = resid[rng.integers(0, n_resid, size=n_resid)]
        simulated = simulate_levels(vecm, data[:p], shocks)
        frame = pd.DataFrame(simulated, columns=variables)
        try:
            boot = _fit(frame, p, vecm.coint_rank)
        except (np.linalg.LinAlgError, ValueError) as e:
            raise ModelError(f"Bootstrap draw {b + 1}/{runs} failed to re-estimate: {e}") from e
        draws[b] = orthogonal_irf(boot, imp, resp, horizon)

    alpha = (1.0 - ci) / 2.0
    lower = np.quantile(draws, alpha, axis=0)
    upper = np.quantile(draws, 1.0 - alpha, axis=0)

    logger.info(f"IRF {impulse} -> {response}: {runs} bootstrap runs, horizon {horizon}")
    return ImpulseResponse(
        impulse=impulse,
        response=response,
        horizons=list(range(horizon + 1)),
        point=np.asarray(point, dtype=float),
        lower=lower,
        upper=upper,
        ci=ci,
        runs=runs,
    )


def run_time_series_analysis(
    panel: pd.DataFrame,
    spec: TimeSeriesSpec | None = None,
) -> TimeSeriesResult:
    """
    Run the full modeling sequence on the merged (level) panel.

    Args:
        panel: Merged panel containing the variables of spec.ordering
        spec: Modeling configuration

    Returns:
        TimeSeriesResult with every stage's output
    """
    spec = spec or TimeSeriesSpec()
    levels = _ordered_levels(panel, spec.ordering)
    if len(levels) == 0:
        raise InsufficientDataError("Panel is empty; nothing to model")

    logger.info("Stage 1: unit-root tests")
    unit_roots = adf_tests(levels)

    logger.info("Stage 2: lag-order selection on differences")
    _check_full_rank(levels, "Level series")
    _check_full_rank(levels.diff().dropna(), "Differenced series")
    selection = select_lag_order(levels.diff().dropna(), spec.max_lags, spec.criterion)
    p_opt = selection.p_opt

    logger.info("Stage 3: Johansen cointegration test")
    johansen = johansen_test(levels, p_opt)

    logger.info("Stage 4: VECM estimation and level-VAR conversion")
    vecm = fit_vecm(levels, p_opt, spec.coint_rank)

    logger.info("Stage 5: residual portmanteau test")
    whiteness = residual_whiteness(vecm, spec.serial_lags)

    logger.info("Stage 6: bootstrapped impulse response")
    irf = impulse_response(
        levels,
        vecm,
        spec.impulse,
        spec.response,
        horizon=spec.horizon,
        ci=spec.ci,
        runs=spec.runs,
        seed=spec.seed,
    )

    return TimeSeriesResult(
        unit_roots=unit_roots,
        lag_selection=selection,
        johansen=johansen,
        vecm=vecm,
        whiteness=whiteness,
        irf=irf,
    )
