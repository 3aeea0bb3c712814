"""
End-to-end run: fetch, align, model and report for one country.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from config.settings import Settings, get_settings
from macrochannel.data.data_pipeline import DataPipeline
from macrochannel.data.panel import make_stationary
from macrochannel.errors import InsufficientDataError
from macrochannel.model.regression import RegressionResult, RegressionSpec, fit_ols
from macrochannel.model.vecm import TimeSeriesResult, TimeSeriesSpec, run_time_series_analysis
from macrochannel.output.charts import plot_impulse_response, plot_panel
from macrochannel.output.export import write_panel_csv

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Artifacts of a complete run."""

    panel: pd.DataFrame
    stationary: pd.DataFrame
    regression: RegressionResult
    time_series: TimeSeriesResult
    csv_path: Path
    chart_path: Path
    irf_chart_path: Path


@dataclass
class PanelArtifacts:
    csv_path: Path
    chart_path: Path


def export_panel(panel: pd.DataFrame, output_dir: Path, settings: Settings) -> PanelArtifacts:
    """Write the panel CSV and its chart into output_dir."""
    csv_path = write_panel_csv(panel, output_dir / settings.csv_filename)
    chart_path = plot_panel(panel, output_dir / settings.chart_filename)
    return PanelArtifacts(csv_path=csv_path, chart_path=chart_path)


def model_panel(
    panel: pd.DataFrame,
    time_series_spec: TimeSeriesSpec,
    regression_spec: RegressionSpec | None = None,
) -> tuple[pd.DataFrame, RegressionResult, TimeSeriesResult]:
    """Run the regression on the stationary panel and the VECM sequence on levels."""
    if panel.empty:
        raise InsufficientDataError("Merged panel is empty: the sources share no complete month")

    stationary = make_stationary(panel)
    logger.info(f"Stationary panel: {len(stationary)} rows")

    regression = fit_ols(stationary, regression_spec)
    logger.info("\n" + regression.summary())

    time_series = run_time_series_analysis(panel, time_series_spec)
    logger.info("\n" + time_series.summary())

    return stationary, regression, time_series


def run_pipeline(
    settings: Settings | None = None,
    data_pipeline: DataPipeline | None = None,
    time_series_spec: TimeSeriesSpec | None = None,
    output_dir: Path | None = None,
    refresh: bool = False,
) -> PipelineResult:
    """
    Run the complete pipeline.

    Files are only written once every stage has succeeded.

    Args:
        settings: Settings (defaults to the cached environment settings)
        data_pipeline: Data orchestration (built from settings when omitted)
        time_series_spec: Modeling configuration (built from settings when omitted)
        output_dir: Directory for the CSV and charts
        refresh: Bypass the download cache

    Returns:
        PipelineResult with all artifacts
    """
    settings = settings or get_settings()
    data_pipeline = data_pipeline or DataPipeline(settings)
    time_series_spec = time_series_spec or TimeSeriesSpec.from_settings(settings)
    output_dir = Path(output_dir or settings.resolved_output_dir)

    logger.info(f"Building panel for {settings.country_code}...")
    panel = data_pipeline.build_panel(refresh=refresh)

    stationary, regression, time_series = model_panel(panel, time_series_spec)

    artifacts = export_panel(panel, output_dir, settings)
    irf_chart_path = plot_impulse_response(
        time_series.irf, output_dir / settings.irf_chart_filename
    )

    return PipelineResult(
        panel=panel,
        stationary=stationary,
        regression=regression,
        time_series=time_series,
        csv_path=artifacts.csv_path,
        chart_path=artifacts.chart_path,
        irf_chart_path=irf_chart_path,
    )
