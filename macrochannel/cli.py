"""
CLI for the monetary transmission channel pipeline.
"""

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from config.settings import Settings, get_settings
from macrochannel.errors import PipelineError

app = typer.Typer(
    name="macrochannel",
    help="Eurostat/FRED macro panel with OLS and VECM impulse responses",
)
console = Console()


def setup_logging(level: str = "INFO") -> None:
    """Configure logging with rich output."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _settings(country: Optional[str] = None, **overrides) -> Settings:
    """Environment settings with command-line overrides applied and validated."""
    update = {k: v for k, v in overrides.items() if v is not None}
    if country:
        update["country_code"] = country.upper()
    try:
        return Settings(**{**get_settings().model_dump(), **update})
    except ValidationError as e:
        console.print(f"[red]Invalid option: {e}[/red]")
        raise typer.Exit(1)


def _fail(error: PipelineError) -> NoReturn:
    console.print(f"[red]Pipeline stopped at stage '{error.stage}': {error}[/red]")
    raise typer.Exit(1)


@app.command()
def run(
    country: Optional[str] = typer.Option(None, help="Eurostat geo code (default from settings)"),
    output_dir: Optional[Path] = typer.Option(None, help="Directory for CSV and charts"),
    runs: Optional[int] = typer.Option(None, help="IRF bootstrap replications"),
    criterion: Optional[str] = typer.Option(None, help="Lag criterion: aic | bic | hqic | fpe"),
    seed: Optional[int] = typer.Option(None, help="Bootstrap seed"),
    refresh: bool = typer.Option(False, help="Bypass the download cache"),
):
    """Run the full pipeline: fetch, align, model, report."""
    settings = _settings(
        country, irf_runs=runs, lag_criterion=criterion, bootstrap_seed=seed
    )
    setup_logging(settings.log_level)

    from macrochannel.output.report import print_panel_head, print_regression, print_time_series
    from macrochannel.pipeline import run_pipeline

    console.print(f"[bold]Running pipeline for {settings.country_code}...[/bold]")
    try:
        result = run_pipeline(settings, output_dir=output_dir, refresh=refresh)
    except PipelineError as e:
        _fail(e)

    print_panel_head(console, result.panel)
    print_regression(console, result.regression)
    print_time_series(console, result.time_series)

    console.print(f"\nSaved panel to {result.csv_path}")
    console.print(f"Saved chart to {result.chart_path}")
    console.print(f"Saved IRF chart to {result.irf_chart_path}")


@app.command()
def fetch(
    country: Optional[str] = typer.Option(None, help="Eurostat geo code (default from settings)"),
    refresh: bool = typer.Option(False, help="Bypass the download cache"),
):
    """Fetch the raw series and print their coverage."""
    settings = _settings(country)
    setup_logging(settings.log_level)

    from macrochannel.data.data_pipeline import DataPipeline

    console.print(f"[bold]Fetching series for {settings.country_code}...[/bold]")
    pipeline = DataPipeline(settings)
    try:
        raw = pipeline.fetch_all_raw(refresh=refresh)
    except PipelineError as e:
        _fail(e)

    for indicator, series in raw.items():
        console.print(f"  [cyan]{indicator.value}[/cyan]: {series.summary()}")
    for source in (pipeline.eurostat_client, pipeline.fred_client):
        for meta in source.metadata:
            console.print(
                f"  [dim]downloaded {meta.row_count} rows {meta.date_range} from {meta.url}[/dim]"
            )


@app.command()
def build_panel(
    country: Optional[str] = typer.Option(None, help="Eurostat geo code (default from settings)"),
    output_dir: Optional[Path] = typer.Option(None, help="Directory for CSV and chart"),
    refresh: bool = typer.Option(False, help="Bypass the download cache"),
):
    """Build the merged panel and export its CSV and chart."""
    settings = _settings(country)
    setup_logging(settings.log_level)

    from macrochannel.data.data_pipeline import DataPipeline
    from macrochannel.output.report import print_panel_head, print_quality_report
    from macrochannel.pipeline import export_panel

    console.print(f"[bold]Building panel for {settings.country_code}...[/bold]")
    pipeline = DataPipeline(settings)
    try:
        panel = pipeline.build_panel(refresh=refresh)
    except PipelineError as e:
        _fail(e)

    print_quality_report(console, pipeline.get_quality_reports()[-1])
    if panel.empty:
        console.print("[red]Panel is empty, nothing to export[/red]")
        raise typer.Exit(1)

    print_panel_head(console, panel)
    artifacts = export_panel(panel, Path(output_dir or settings.resolved_output_dir), settings)
    console.print(f"Saved panel to {artifacts.csv_path}")
    console.print(f"Saved chart to {artifacts.chart_path}")


@app.command()
def model(
    panel_csv: Path = typer.Argument(..., help="Panel CSV written by build-panel"),
    runs: Optional[int] = typer.Option(None, help="IRF bootstrap replications"),
    criterion: Optional[str] = typer.Option(None, help="Lag criterion: aic | bic | hqic | fpe"),
    seed: Optional[int] = typer.Option(None, help="Bootstrap seed"),
    irf_chart: Optional[Path] = typer.Option(None, help="Write the IRF chart to this path"),
):
    """Run the regression and the VECM sequence on an exported panel."""
    settings = _settings(irf_runs=runs, lag_criterion=criterion, bootstrap_seed=seed)
    setup_logging(settings.log_level)

    from macrochannel.model.vecm import TimeSeriesSpec
    from macrochannel.output.charts import plot_impulse_response
    from macrochannel.output.export import read_panel_csv
    from macrochannel.output.report import print_regression, print_time_series
    from macrochannel.pipeline import model_panel

    if not panel_csv.exists():
        console.print(f"[red]Panel file not found: {panel_csv}[/red]")
        raise typer.Exit(1)

    panel = read_panel_csv(panel_csv)
    console.print(f"[bold]Modeling {len(panel)} monthly observations...[/bold]")
    try:
        _, regression, time_series = model_panel(panel, TimeSeriesSpec.from_settings(settings))
    except PipelineError as e:
        _fail(e)

    print_regression(console, regression)
    print_time_series(console, time_series)

    if irf_chart:
        path = plot_impulse_response(time_series.irf, irf_chart)
        console.print(f"Saved IRF chart to {path}")


if __name__ == "__main__":
    app()
