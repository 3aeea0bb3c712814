"""
Smoke test for the end-to-end pipeline with stubbed providers.

The provider clients are replaced by mocks returning synthetic raw series,
so the run exercises normalization, merge, modeling and reporting offline.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pandas as pd
import pytest
from pydantic import ValidationError
from typer.testing import CliRunner

from config.settings import Settings
from macrochannel.cli import app
from macrochannel.data.data_pipeline import DataPipeline
from macrochannel.data.panel import PANEL_COLUMNS
from macrochannel.data.series import Indicator
from macrochannel.errors import FetchError, InsufficientDataError
from macrochannel.output.export import read_panel_csv, write_panel_csv
from macrochannel.pipeline import model_panel, run_pipeline
from macrochannel.model.vecm import TimeSeriesSpec
from tests.fixtures.synthetic_dgp import make_cointegrated_panel, make_raw_series


@pytest.fixture
def settings(tmp_path):
    return Settings(
        output_dir=tmp_path / "outputs",
        cache_dir=tmp_path / "cache",
        irf_runs=10,
        irf_horizon=12,
        lag_max=6,
        bootstrap_seed=11,
    )


@pytest.fixture
def stub_pipeline(settings):
    raw = make_raw_series()

    eurostat = MagicMock()
    eurostat.fetch_series.side_effect = lambda config, name, geo, refresh=False: raw[name]
    fred = MagicMock()
    fred.fetch_series.side_effect = lambda config, name, start_date=None, refresh=False: raw[name]

    return DataPipeline(settings, eurostat_client=eurostat, fred_client=fred)


class TestDataPipeline:
    """Test orchestration with stubbed providers."""

    def test_fetch_all_raw(self, stub_pipeline):
        raw = stub_pipeline.fetch_all_raw()

        assert set(raw) == set(Indicator)
        assert stub_pipeline.eurostat_client.fetch_series.call_count == 3
        assert stub_pipeline.fred_client.fetch_series.call_count == 1
        geo = stub_pipeline.eurostat_client.fetch_series.call_args.kwargs["geo"]
        assert geo == "HR"

    def test_build_panel(self, stub_pipeline):
        panel = stub_pipeline.build_panel()

        assert list(panel.columns) == PANEL_COLUMNS
        assert panel.index.min() == pd.Timestamp("2001-01-01")
        assert panel.index.max() == pd.Timestamp("2020-12-01")
        assert not panel.isnull().any().any()

        report = stub_pipeline.get_quality_reports()[-1]
        assert report.total_rows == len(panel)
        assert "Data Quality Report" in report.summary()

    def test_fetch_failure_is_fatal(self, settings):
        eurostat = MagicMock()
        eurostat.fetch_series.side_effect = FetchError("Eurostat unreachable")
        pipeline = DataPipeline(settings, eurostat_client=eurostat, fred_client=MagicMock())

        with pytest.raises(FetchError):
            pipeline.build_panel()


class TestRunPipeline:
    """Test the complete run."""

    def test_writes_all_artifacts(self, settings, stub_pipeline):
        result = run_pipeline(settings, data_pipeline=stub_pipeline)

        assert result.csv_path.name == "RH_Macro_Channel_Final.csv"
        assert result.csv_path.exists()
        assert result.chart_path.exists()
        assert result.irf_chart_path.exists()
        assert result.regression.nobs == len(result.stationary)
        assert len(result.time_series.irf.point) == 13

        exported = read_panel_csv(result.csv_path)
        assert len(exported) == len(result.panel)

    def test_empty_panel_stops_before_writing(self, settings):
        pipeline = MagicMock()
        pipeline.build_panel.return_value = pd.DataFrame(columns=PANEL_COLUMNS, dtype=float)

        with pytest.raises(InsufficientDataError):
            run_pipeline(settings, data_pipeline=pipeline)
        assert not (settings.output_dir / settings.csv_filename).exists()

    def test_model_panel(self):
        panel = make_cointegrated_panel(n=180, seed=9)
        stationary, regression, time_series = model_panel(
            panel, TimeSeriesSpec(max_lags=4, runs=5, horizon=6, seed=2)
        )

        assert len(stationary) == len(panel) - 1
        assert regression.nobs == len(stationary)
        assert time_series.irf.runs == 5


class TestCLI:
    """Test the model command on an exported panel."""

    def test_model_command(self, tmp_path):
        path = write_panel_csv(make_cointegrated_panel(n=180, seed=4), tmp_path / "panel.csv")
        runner = CliRunner()
        result = runner.invoke(
            app, ["model", str(path), "--runs", "5", "--seed", "1", "--irf-chart", str(tmp_path / "irf.png")]
        )

        assert result.exit_code == 0, result.output
        assert (tmp_path / "irf.png").exists()

    def test_model_command_missing_file(self, tmp_path):
        result = CliRunner().invoke(app, ["model", str(tmp_path / "missing.csv")])
        assert result.exit_code == 1

    def test_invalid_criterion(self, tmp_path):
        path = write_panel_csv(make_cointegrated_panel(n=60, seed=4), tmp_path / "panel.csv")
        result = CliRunner().invoke(app, ["model", str(path), "--criterion", "sic"])
        assert result.exit_code == 1

    def test_zero_bootstrap_runs_is_rejected(self, tmp_path):
        path = write_panel_csv(make_cointegrated_panel(n=60, seed=4), tmp_path / "panel.csv")
        result = CliRunner().invoke(app, ["model", str(path), "--runs", "0"])

        assert result.exit_code == 1
        assert "Invalid option" in result.output

    def test_collinear_panel_reports_model_stage(self, tmp_path):
        panel = make_cointegrated_panel(n=180, seed=4)
        panel["Inflation_YY"] = 1.0 + 0.8 * panel["Interest_Rate"]
        path = write_panel_csv(panel, tmp_path / "panel.csv")
        result = CliRunner().invoke(app, ["model", str(path), "--runs", "5"])

        assert result.exit_code == 1
        assert "stage 'model'" in result.output


class TestSettingsValidation:
    """Test bounds on the bootstrap settings."""

    @pytest.mark.parametrize(
        "field, value",
        [("irf_runs", 0), ("irf_ci", 1.0), ("irf_ci", 0.0), ("irf_horizon", -1)],
    )
    def test_out_of_range(self, tmp_path, field, value):
        with pytest.raises(ValidationError):
            Settings(output_dir=tmp_path, **{field: value})
