"""
Tests for the inflation OLS regression.
"""

import numpy as np
import pytest

from macrochannel.errors import InsufficientDataError, ModelError
from macrochannel.model.regression import RegressionSpec, fit_ols
from tests.fixtures.synthetic_dgp import make_regression_panel


class TestFitOLS:
    """Test coefficient recovery and degenerate samples."""

    def test_recovers_known_coefficients(self):
        panel = make_regression_panel(n=200, betas=(2.0, -1.0, 0.5), intercept=1.0)
        result = fit_ols(panel)

        assert result.params["Intercept"] == pytest.approx(1.0, abs=0.05)
        assert result.params["D_Interest_Rate"] == pytest.approx(2.0, abs=0.05)
        assert result.params["D_Unemployment_Rate"] == pytest.approx(-1.0, abs=0.05)
        assert result.params["GDP_Growth_YY"] == pytest.approx(0.5, abs=0.05)
        assert result.rsquared > 0.95
        assert result.nobs == 200

    def test_coefficient_table(self):
        result = fit_ols(make_regression_panel(n=100))
        table = result.coefficient_table()

        assert list(table.columns) == ["coefficient", "std_error", "t_stat", "pvalue"]
        assert len(table) == 4
        assert (table["std_error"] > 0).all()

    def test_formula(self):
        assert RegressionSpec().formula == (
            "Inflation_YY ~ D_Interest_Rate + D_Unemployment_Rate + GDP_Growth_YY"
        )

    def test_fewer_rows_than_regressors_plus_one(self):
        panel = make_regression_panel(n=3)
        with pytest.raises(InsufficientDataError):
            fit_ols(panel)

    def test_saturated_fit_is_rejected(self):
        # four rows for four parameters leave no residual degrees of freedom
        panel = make_regression_panel(n=4)
        with pytest.raises(InsufficientDataError):
            fit_ols(panel)

    def test_one_residual_degree_of_freedom(self):
        result = fit_ols(make_regression_panel(n=5))
        assert result.nobs == 5
        assert np.isfinite(result.std_errors).all()

    def test_empty_panel(self):
        panel = make_regression_panel(n=10).iloc[:0]
        with pytest.raises(InsufficientDataError):
            fit_ols(panel)

    def test_missing_column(self):
        panel = make_regression_panel(n=50).drop(columns=["GDP_Growth_YY"])
        with pytest.raises(ModelError):
            fit_ols(panel)

    def test_summary_mentions_terms(self):
        text = fit_ols(make_regression_panel(n=60)).summary()
        assert "D_Interest_Rate" in text
        assert "R²" in text
