"""
Console rendering of the panel and model artifacts.
"""

import pandas as pd
from rich.console import Console
from rich.table import Table

from macrochannel.data.data_pipeline import DataQualityReport
from macrochannel.model.regression import RegressionResult
from macrochannel.model.vecm import TimeSeriesResult


def print_panel_head(console: Console, panel: pd.DataFrame, n: int = 6) -> None:
    """Print the first rows of the panel."""
    table = Table(title=f"Merged panel (first {min(n, len(panel))} of {len(panel)} rows)")
    table.add_column("date", style="cyan", no_wrap=True)
    for column in panel.columns:
        table.add_column(column, justify="right")

    for date, row in panel.head(n).iterrows():
        table.add_row(f"{date:%Y-%m-%d}", *(f"{v:.3f}" for v in row))

    console.print(table)


def print_quality_report(console: Console, report: DataQualityReport) -> None:
    console.print(f"[bold]Panel:[/bold] {report.total_rows} rows, {report.date_range}")
    console.print(f"  Rows dropped by completeness gate: {report.rows_dropped}")
    for warning in report.warnings:
        console.print(f"  [yellow]⚠ {warning}[/yellow]")


def print_regression(console: Console, result: RegressionResult) -> None:
    """Print the OLS coefficient table and fit statistics."""
    table = Table(title=f"OLS: {result.formula}")
    table.add_column("Term", style="cyan")
    table.add_column("Estimate", justify="right")
    table.add_column("Std. Error", justify="right")
    table.add_column("t", justify="right")
    table.add_column("p", justify="right")

    for name, row in result.coefficient_table().iterrows():
        table.add_row(
            str(name),
            f"{row['coefficient']:.4f}",
            f"{row['std_error']:.4f}",
            f"{row['t_stat']:.2f}",
            f"{row['pvalue']:.4f}",
        )

    console.print(table)
    console.print(
        f"R² = {result.rsquared:.4f}, adj. R² = {result.rsquared_adj:.4f}, "
        f"F = {result.fvalue:.2f} (p = {result.f_pvalue:.4f}), N = {result.nobs}"
    )


def print_time_series(console: Console, result: TimeSeriesResult) -> None:
    """Print unit-root, lag, cointegration, diagnostic and IRF results."""
    adf = Table(title="ADF unit-root tests (constant + trend)")
    adf.add_column("Variable", style="cyan")
    adf.add_column("Series", style="white")
    adf.add_column("Statistic", justify="right")
    adf.add_column("p", justify="right")
    adf.add_column("Lag", justify="right")
    for r in result.unit_roots:
        adf.add_row(r.variable, r.transform, f"{r.statistic:.3f}", f"{r.pvalue:.3f}", str(r.lag))
    console.print(adf)

    lags = Table(title=f"VAR lag selection (policy: {result.lag_selection.criterion.value.upper()})")
    lags.add_column("p", justify="right", style="cyan")
    for crit in result.lag_selection.table.columns:
        lags.add_column(crit.upper(), justify="right")
    for order, row in result.lag_selection.table.iterrows():
        cells = []
        for crit, value in row.items():
            mark = "*" if result.lag_selection.selected[crit] == order else ""
            cells.append(f"{value:.4g}{mark}")
        lags.add_row(str(order), *cells)
    console.print(lags)
    console.print(f"Selected lag order p = {result.lag_selection.p_opt}")

    johansen = Table(
        title=f"Johansen trace test ({result.johansen.deterministic}, "
        f"k_ar_diff = {result.johansen.k_ar_diff})"
    )
    johansen.add_column("H0", style="cyan")
    for column in ("trace", "cv_90", "cv_95", "cv_99"):
        johansen.add_column(column, justify="right")
    for h0, row in result.johansen.trace_table().iterrows():
        johansen.add_row(
            str(h0),
            f"{row['trace']:.2f}",
            f"{row['cv_90']:.2f}",
            f"{row['cv_95']:.2f}",
            f"{row['cv_99']:.2f}",
        )
    console.print(johansen)
    console.print(
        f"Suggested rank (5%): {result.johansen.suggested_rank}; "
        f"imposed rank: {result.vecm.coint_rank}"
    )
    stability = "stable" if result.vecm.companion_stable() else "[red]explosive roots[/red]"
    console.print(f"Level VAR companion matrix: {stability}")
    vector = ", ".join(f"{k}={v:.4f}" for k, v in result.vecm.cointegrating_vector.items())
    console.print(f"Cointegrating vector: {vector}")

    w = result.whiteness
    status = "[green]white[/green]" if w.white else "[red]autocorrelated[/red]"
    console.print(
        f"Portmanteau ({w.lags} lags): stat = {w.statistic:.2f}, df = {w.df}, "
        f"p = {w.pvalue:.4f} → {status}"
    )

    irf = Table(
        title=f"Orthogonal IRF {result.irf.impulse} → {result.irf.response} "
        f"({result.irf.ci:.0%} CI, {result.irf.runs} runs)"
    )
    irf.add_column("h", justify="right", style="cyan")
    irf.add_column("Response", justify="right")
    irf.add_column("Lower", justify="right")
    irf.add_column("Upper", justify="right")
    for _, row in result.irf.to_dataframe().iterrows():
        irf.add_row(
            str(int(row["horizon"])),
            f"{row['response']:.4f}",
            f"{row['conf_lower']:.4f}",
            f"{row['conf_upper']:.4f}",
        )
    console.print(irf)
