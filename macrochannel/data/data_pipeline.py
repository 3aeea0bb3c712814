"""
Data pipeline orchestration.

Coordinates fetching, frequency normalization, indicator derivation and
panel construction for one country.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

import pandas as pd

from config.settings import Settings, get_settings
from macrochannel.data.eurostat_client import EurostatClient
from macrochannel.data.fred_client import FREDClient
from macrochannel.data.frequency import normalize
from macrochannel.data.indicators import yoy_growth
from macrochannel.data.panel import PANEL_COLUMNS, merge_panel
from macrochannel.data.series import SERIES_CONFIGS, Indicator, RawSeries

logger = logging.getLogger(__name__)


@dataclass
class DataQualityReport:
    """Report on data quality issues."""

    source: str
    total_rows: int
    missing_values: dict[str, int]
    date_range: tuple[str, str] | None
    rows_dropped: int
    warnings: list[str]
    timestamp: datetime = field(default_factory=datetime.now)

    def summary(self) -> str:
        lines = [
            "=" * 60,
            f"Data Quality Report: {self.source}",
            "=" * 60,
            f"Total rows: {self.total_rows:,}",
            f"Date range: {self.date_range}",
            f"Rows dropped by completeness gate: {self.rows_dropped:,}",
        ]
        if self.missing_values:
            lines.append("Missing values before the gate:")
            for col, count in self.missing_values.items():
                lines.append(f"  - {col}: {count:,}")
        for warning in self.warnings:
            lines.append(f"  ⚠ {warning}")
        return "\n".join(lines)


class DataPipeline:
    """Orchestrates data collection and panel construction."""

    def __init__(
        self,
        settings: Settings | None = None,
        eurostat_client: EurostatClient | None = None,
        fred_client: FREDClient | None = None,
    ):
        self.settings = settings or get_settings()
        self.eurostat_client = eurostat_client or EurostatClient()
        self.fred_client = fred_client or FREDClient()
        self._quality_reports: list[DataQualityReport] = []

    def fetch_all_raw(self, refresh: bool = False) -> dict[Indicator, RawSeries]:
        """
        Fetch every catalog series at native frequency.

        Any fetch failure propagates; there is no partial result.
        """
        country = self.settings.country_code
        results: dict[Indicator, RawSeries] = {}

        for indicator, config in SERIES_CONFIGS.items():
            logger.info(f"Fetching {indicator.value} ({config.provider}:{config.identifier})...")
            if config.provider == "eurostat":
                raw = self.eurostat_client.fetch_series(
                    config, name=indicator.value, geo=country, refresh=refresh
                )
            else:
                raw = self.fred_client.fetch_series(
                    config,
                    name=indicator.value,
                    start_date=self.settings.fred_start,
                    refresh=refresh,
                )
            logger.info(raw.summary())
            results[indicator] = raw

        return results

    def process(self, raw: dict[Indicator, RawSeries]) -> dict[str, pd.Series]:
        """Normalize raw series to calendar frequency and derive the panel indicators."""

        def calendar(indicator: Indicator) -> pd.Series:
            config = SERIES_CONFIGS[indicator]
            return normalize(raw[indicator], config.target_frequency, config.aggregation)

        return {
            "Inflation_YY": yoy_growth(calendar(Indicator.HICP), "monthly"),
            "Interest_Rate": calendar(Indicator.POLICY_RATE),
            "Unemployment_Rate": calendar(Indicator.UNEMPLOYMENT),
            "GDP_Growth_YY": yoy_growth(calendar(Indicator.GDP), "quarterly"),
        }

    def build_panel(
        self,
        raw: dict[Indicator, RawSeries] | None = None,
        refresh: bool = False,
    ) -> pd.DataFrame:
        """
        Build the merged monthly panel.

        Args:
            raw: Previously fetched raw series (fetched when omitted)
            refresh: Bypass the download cache when fetching

        Returns:
            Panel indexed by date with PANEL_COLUMNS
        """
        if raw is None:
            raw = self.fetch_all_raw(refresh=refresh)

        processed = self.process(raw)
        panel = merge_panel(
            processed["Inflation_YY"],
            processed["Interest_Rate"],
            processed["Unemployment_Rate"],
            processed["GDP_Growth_YY"],
            start=self.settings.analysis_start,
        )

        report = self._generate_quality_report(processed, panel)
        logger.info("\n" + report.summary())

        return panel

    def _generate_quality_report(
        self, processed: dict[str, pd.Series], panel: pd.DataFrame
    ) -> DataQualityReport:
        """Compare the processed series with the panel that survived the gate."""
        start = pd.Timestamp(self.settings.analysis_start)
        months = pd.concat(processed, axis=1)
        months = months[months.index >= start]
        if not panel.empty:
            months = months[months.index <= panel.index.max()]

        # GDP is quarterly before the fill, so only monthly columns are counted
        monthly_cols = [c for c in PANEL_COLUMNS if c != "GDP_Growth_YY"]
        missing = {k: int(v) for k, v in months[monthly_cols].isnull().sum().items() if v > 0}
        warnings = []
        if panel.empty:
            warnings.append("Panel is empty: the series share no complete month")
        elif len(panel) < 60:
            warnings.append(f"Short panel: only {len(panel)} monthly observations")

        date_range = None
        if not panel.empty:
            date_range = (
                panel.index.min().strftime("%Y-%m-%d"),
                panel.index.max().strftime("%Y-%m-%d"),
            )

        report = DataQualityReport(
            source="panel",
            total_rows=len(panel),
            missing_values=missing,
            date_range=date_range,
            rows_dropped=max(len(months) - len(panel), 0),
            warnings=warnings,
        )
        self._quality_reports.append(report)
        return report

    def get_quality_reports(self) -> list[DataQualityReport]:
        """Get all data quality reports."""
        return self._quality_reports
