"""
Data layer: provider clients, frequency normalization, indicators and panel.

Contains:
- base.py: DataSource base classes with disk caching
- eurostat_client.py: Eurostat JSON-stat client
- fred_client.py: FRED client
- series.py: Series catalog and provider response shapes
- frequency.py: Calendar frequency normalization
- indicators.py: Year-over-year growth and first differences
- panel.py: Panel merge and completeness gate
- data_pipeline.py: Orchestration
"""

from macrochannel.data.base import DataSource, HTTPDataSource, DataSourceMetadata
from macrochannel.data.eurostat_client import EurostatClient
from macrochannel.data.fred_client import FREDClient
from macrochannel.data.series import (
    SERIES_CONFIGS,
    DimensionedPanel,
    Indicator,
    NamedSeries,
    RawSeries,
    SeriesConfig,
    to_raw_series,
)
from macrochannel.data.frequency import FrequencyMismatch, normalize
from macrochannel.data.indicators import first_difference, yoy_growth
from macrochannel.data.panel import PANEL_COLUMNS, STATIONARY_COLUMNS, make_stationary, merge_panel

__all__ = [
    # Base classes
    "DataSource",
    "HTTPDataSource",
    "DataSourceMetadata",
    # Providers
    "EurostatClient",
    "FREDClient",
    # Series
    "SERIES_CONFIGS",
    "DimensionedPanel",
    "Indicator",
    "NamedSeries",
    "RawSeries",
    "SeriesConfig",
    "to_raw_series",
    # Transformations
    "FrequencyMismatch",
    "normalize",
    "first_difference",
    "yoy_growth",
    "PANEL_COLUMNS",
    "STATIONARY_COLUMNS",
    "make_stationary",
    "merge_panel",
]
