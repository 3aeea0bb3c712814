"""
Tests for unit-root tests, lag selection, Johansen, VECM and the IRF bootstrap.
"""

from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pandas as pd
import pytest

from macrochannel.errors import InsufficientDataError, ModelError
from macrochannel.model.stationarity import (
    LagCriterion,
    adf_lag,
    adf_test,
    adf_tests,
    select_lag_order,
)
from macrochannel.model.vecm import (
    CHOLESKY_ORDERING,
    TimeSeriesSpec,
    fit_vecm,
    impulse_response,
    johansen_test,
    orthogonal_irf,
    residual_whiteness,
    run_time_series_analysis,
    simulate_levels,
)
from tests.fixtures.synthetic_dgp import make_cointegrated_panel


@pytest.fixture(scope="module")
def levels():
    panel = make_cointegrated_panel(n=240, seed=42)
    return panel[list(CHOLESKY_ORDERING)].reset_index(drop=True)


@pytest.fixture(scope="module")
def vecm(levels):
    return fit_vecm(levels, lag_order=2, coint_rank=1)


class TestUnitRoot:
    """Test ADF wrappers."""

    def test_default_lag(self):
        assert adf_lag(240) == 6
        assert adf_lag(30) == 3

    def test_white_noise_is_stationary(self):
        rng = np.random.default_rng(0)
        result = adf_test(pd.Series(rng.standard_normal(300), name="noise"))

        assert result.stationary
        assert result.transform == "level"
        assert set(result.critical_values) == {"1%", "5%", "10%"}

    def test_levels_and_differences(self, levels):
        results = adf_tests(levels)

        assert len(results) == 2 * levels.shape[1]
        assert [r.transform for r in results[:2]] == ["level", "diff"]
        assert {r.variable for r in results} == set(levels.columns)

    def test_constant_series(self):
        with pytest.raises(ModelError):
            adf_test(pd.Series(np.ones(50), name="flat"))

    def test_too_short(self):
        with pytest.raises(InsufficientDataError):
            adf_test(pd.Series([1.0, 2.0, 1.5, 2.5, 2.0, 3.0], name="short"))


class TestLagSelection:
    """Test the information-criterion policy."""

    def test_orders_start_at_one(self, levels):
        selection = select_lag_order(levels.diff().dropna(), max_lags=8)

        assert list(selection.table.index) == list(range(1, 9))
        assert set(selection.table.columns) == {"aic", "bic", "hqic", "fpe"}
        assert 1 <= selection.p_opt <= 8
        assert all(1 <= p <= 8 for p in selection.selected.values())

    def test_policy_picks_configured_criterion(self, levels):
        diffs = levels.diff().dropna()
        by_aic = select_lag_order(diffs, max_lags=6, criterion="aic")
        by_bic = select_lag_order(diffs, max_lags=6, criterion=LagCriterion.BIC)

        assert by_aic.p_opt == by_aic.selected["aic"]
        assert by_bic.p_opt == by_bic.selected["bic"]
        assert by_aic.p_opt == int(by_aic.table["aic"].idxmin())

    def test_unknown_criterion(self, levels):
        with pytest.raises(ValueError):
            select_lag_order(levels.diff().dropna(), criterion="sic")

    def test_too_few_observations(self, levels):
        with pytest.raises(InsufficientDataError):
            select_lag_order(levels.diff().dropna().iloc[:20], max_lags=12)


class TestJohansen:
    """Test the trace test on a cointegrated system."""

    def test_detects_cointegration(self, levels):
        result = johansen_test(levels, lag_order=2)

        assert result.k_ar_diff == 1
        assert result.trace_stats.shape == (3,)
        assert result.crit_values.shape == (3, 3)
        assert result.suggested_rank >= 1

    def test_normalized_vector(self, levels):
        vector = johansen_test(levels, lag_order=2).cointegrating_vector
        assert vector.iloc[0] == pytest.approx(1.0)
        assert list(vector.index) == list(levels.columns)

    def test_insufficient_sample(self, levels):
        with pytest.raises(InsufficientDataError):
            johansen_test(levels.iloc[:12], lag_order=4)


class TestVECM:
    """Test estimation and the level-VAR conversion."""

    def test_var_representation_shape(self, vecm):
        assert vecm.var_coefficients.shape == (2, 3, 3)
        assert vecm.var_intercept.shape == (3,)
        assert vecm.nobs == 238

    def test_level_var_reproduces_fitted_values(self, levels, vecm):
        y = levels.to_numpy()
        p = vecm.lag_order
        fitted = np.array([
            vecm.var_intercept + sum(vecm.var_coefficients[i] @ y[t - i - 1] for i in range(p))
            for t in range(p, len(y))
        ])
        np.testing.assert_allclose(fitted, vecm.results.fittedvalues, atol=1e-8)

    def test_cointegrating_vector_has_constant(self, vecm):
        vector = vecm.cointegrating_vector
        assert list(vector.index) == [*CHOLESKY_ORDERING, "const"]
        assert vector.iloc[0] == pytest.approx(1.0)

    def test_explosive_companion_is_flagged(self, vecm):
        explosive = replace(vecm, var_coefficients=np.stack([1.5 * np.eye(3), np.zeros((3, 3))]))
        assert not explosive.companion_stable()

    def test_unit_roots_count_as_stable(self, vecm):
        random_walk = replace(vecm, var_coefficients=np.stack([np.eye(3), np.zeros((3, 3))]))
        assert random_walk.companion_stable()

    @pytest.mark.parametrize("rank", [0, 3])
    def test_rank_outside_range(self, levels, rank):
        with pytest.raises(ModelError):
            fit_vecm(levels, lag_order=2, coint_rank=rank)

    def test_simulation_without_shocks_follows_recursion(self, levels, vecm):
        y = levels.to_numpy()
        sim = simulate_levels(vecm, y[:2], np.zeros((3, 3)))
        expected = vecm.var_intercept + vecm.var_coefficients[0] @ y[1] + vecm.var_coefficients[1] @ y[0]
        np.testing.assert_allclose(sim[2], expected)
        assert sim.shape == (5, 3)


class TestWhiteness:
    """Test the portmanteau test wrapper."""

    def test_statistic(self, vecm):
        result = residual_whiteness(vecm, lags=12)

        assert result.df == 9 * (12 - 2 + 1) - 3
        assert 0.0 <= result.pvalue <= 1.0
        assert result.statistic > 0

    def test_no_degrees_of_freedom(self, vecm):
        with pytest.raises(ModelError):
            residual_whiteness(vecm, lags=1)


class TestImpulseResponse:
    """Test the orthogonalized IRF and its bootstrap bands."""

    def test_shapes_and_band_order(self, levels, vecm):
        irf = impulse_response(levels, vecm, "Interest_Rate", "Inflation_YY", horizon=12, runs=20, seed=1)

        assert irf.horizons == list(range(13))
        assert irf.point.shape == irf.lower.shape == irf.upper.shape == (13,)
        assert (irf.lower <= irf.upper).all()
        assert list(irf.to_dataframe().columns) == ["horizon", "response", "conf_lower", "conf_upper"]

    def test_cholesky_ordering_zero_impact(self, levels, vecm):
        # Inflation is ordered before the interest rate
        irf = impulse_response(levels, vecm, "Interest_Rate", "Inflation_YY", horizon=4, runs=10, seed=1)

        assert irf.point[0] == pytest.approx(0.0, abs=1e-10)
        assert irf.lower[0] == pytest.approx(0.0, abs=1e-10)
        assert irf.upper[0] == pytest.approx(0.0, abs=1e-10)

    def test_own_shock_impact_is_positive(self, levels, vecm):
        irf = impulse_response(levels, vecm, "Interest_Rate", "Interest_Rate", horizon=4, runs=5, seed=1)
        assert irf.point[0] > 0

    def test_reproducible_with_seed(self, levels, vecm):
        a = impulse_response(levels, vecm, "Interest_Rate", "Inflation_YY", horizon=6, runs=10, seed=7)
        b = impulse_response(levels, vecm, "Interest_Rate", "Inflation_YY", horizon=6, runs=10, seed=7)

        np.testing.assert_array_equal(a.lower, b.lower)
        np.testing.assert_array_equal(a.upper, b.upper)

    def test_unknown_variable(self, levels, vecm):
        with pytest.raises(ModelError):
            impulse_response(levels, vecm, "Exchange_Rate", "Inflation_YY", runs=2)


class TestRunTimeSeriesAnalysis:
    """Test the scripted sequence end to end."""

    def test_full_sequence(self):
        panel = make_cointegrated_panel(n=200, seed=3)
        spec = TimeSeriesSpec(max_lags=6, runs=10, horizon=12, seed=0)
        result = run_time_series_analysis(panel, spec)

        assert len(result.unit_roots) == 6
        assert result.vecm.lag_order == result.lag_selection.p_opt
        assert result.johansen.k_ar_diff == result.lag_selection.p_opt - 1
        assert result.irf.impulse == "Interest_Rate"
        assert len(result.irf.point) == 13
        summary = result.summary()
        assert "TIME-SERIES MODEL SUMMARY" in summary
        assert "unrestricted constant" in summary
        assert "Level VAR companion matrix" in summary

    def test_missing_variable(self):
        panel = make_cointegrated_panel(n=100).drop(columns=["GDP_Growth_YY"])
        with pytest.raises(ModelError):
            run_time_series_analysis(panel, TimeSeriesSpec(runs=2))

    def test_empty_panel(self):
        panel = make_cointegrated_panel(n=10).iloc[:0]
        with pytest.raises(InsufficientDataError):
            run_time_series_analysis(panel, TimeSeriesSpec(runs=2))


@pytest.fixture
def collinear_levels(levels):
    singular = levels.copy()
    singular["Inflation_YY"] = 1.0 + 0.8 * singular["Interest_Rate"]
    return singular


class TestSingularSystems:
    """Test that degenerate systems stop with ModelError."""

    def test_lag_selection_linalg_failure(self, levels):
        with patch("macrochannel.model.stationarity.VAR") as var_cls:
            var_cls.return_value.select_order.side_effect = np.linalg.LinAlgError(
                "3-th leading minor of the array is not positive definite"
            )
            with pytest.raises(ModelError, match="Lag selection failed"):
                select_lag_order(levels.diff().dropna(), max_lags=4)

    def test_run_rejects_collinear_levels(self, collinear_levels):
        with pytest.raises(ModelError, match="collinear"):
            run_time_series_analysis(collinear_levels, TimeSeriesSpec(max_lags=4, runs=2))

    def test_johansen_rejects_collinear_levels(self, collinear_levels):
        with pytest.raises(ModelError, match="collinear"):
            johansen_test(collinear_levels, lag_order=2)

    def test_vecm_rejects_collinear_levels(self, collinear_levels):
        with pytest.raises(ModelError, match="collinear"):
            fit_vecm(collinear_levels, lag_order=2)

    def test_vecm_rejects_near_singular_covariance(self, levels):
        degenerate = MagicMock()
        degenerate.sigma_u = np.array([[1.0, 1.0, 0.0], [1.0, 1.0, 0.0], [0.0, 0.0, 1.0]])
        with patch("macrochannel.model.vecm._fit", return_value=degenerate):
            with pytest.raises(ModelError, match="near singular"):
                fit_vecm(levels, lag_order=2)

    def test_irf_rejects_non_positive_definite_covariance(self):
        results = SimpleNamespace(sigma_u=np.zeros((3, 3)))
        with pytest.raises(ModelError, match="not positive definite"):
            orthogonal_irf(results, impulse=2, response=1, horizon=4)

    def test_failed_bootstrap_draw(self, levels, vecm):
        with patch("macrochannel.model.vecm._fit", side_effect=np.linalg.LinAlgError("singular matrix")):
            with pytest.raises(ModelError, match="Bootstrap draw 1/3"):
                impulse_response(levels, vecm, "Interest_Rate", "Inflation_YY", horizon=4, runs=3, seed=0)
