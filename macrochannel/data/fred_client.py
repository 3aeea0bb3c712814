"""
FRED (Federal Reserve Economic Data) client.

Fetches:
- ECBDFR (ECB deposit facility rate, daily)

Uses fredapi when an API key is configured and the public fredgraph CSV
download otherwise.
"""

import io
import logging
from datetime import date
from pathlib import Path
from typing import Any

import httpx
import pandas as pd
from fredapi import Fred

from config.settings import get_settings
from macrochannel.data.base import HTTPDataSource
from macrochannel.data.series import Frequency, NamedSeries, RawSeries, SeriesConfig, to_raw_series
from macrochannel.errors import FetchError

logger = logging.getLogger(__name__)


def parse_graph_csv(text: str, series_id: str) -> pd.DataFrame:
    """Parse a fredgraph.csv download into date/value rows."""
    raw = pd.read_csv(io.StringIO(text), na_values=[".", ""], dtype=str)
    if raw.shape[1] < 2:
        raise FetchError(f"FRED CSV for {series_id} has unexpected columns: {list(raw.columns)}")
    value_col = series_id if series_id in raw.columns else raw.columns[1]
    return pd.DataFrame(
        {
            "date": pd.to_datetime(raw.iloc[:, 0]),
            "value": pd.to_numeric(raw[value_col], errors="coerce"),
        }
    )


class FREDClient(HTTPDataSource):
    """Client for FRED economic data."""

    @property
    def source_name(self) -> str:
        return "fred"

    def __init__(
        self,
        api_key: str | None = None,
        cache_dir: Path | None = None,
        client: httpx.Client | None = None,
    ):
        super().__init__(cache_dir, client)
        settings = get_settings()
        self.api_key = api_key if api_key is not None else settings.fred_api_key
        if not self.api_key:
            logger.info("No FRED API key configured; using the fredgraph CSV download")
        self.graph_url = settings.fred_graph_url
        self._fred: Fred | None = None

    @property
    def fred(self) -> Fred:
        """Lazy-loaded fredapi client."""
        if self._fred is None:
            self._fred = Fred(api_key=self.api_key)
        return self._fred

    def _fetch_api(self, series_id: str, start_date: str) -> pd.DataFrame:
        try:
            data = self.fred.get_series(series_id, observation_start=start_date)
        except ValueError as e:
            # fredapi reports API errors (unknown series, bad key) as ValueError
            raise FetchError(f"FRED API error for {series_id}: {e}") from e
        except OSError as e:
            raise FetchError(f"FRED request for {series_id} failed: {e}") from e

        return pd.DataFrame(
            {
                "date": pd.to_datetime(data.index),
                "value": pd.to_numeric(data.to_numpy(), errors="coerce"),
            }
        )

    def fetch(
        self,
        series_id: str,
        start_date: str | None = None,
        **kwargs: Any,
    ) -> pd.DataFrame:
        """
        Fetch a single series from start_date to the latest observation.

        Args:
            series_id: FRED series ID
            start_date: Start date (YYYY-MM-DD)

        Returns:
            DataFrame with date and value columns
        """
        start_date = start_date or get_settings().fred_start

        if self.api_key:
            url = f"https://fred.stlouisfed.org/series/{series_id}"
            df = self._fetch_api(series_id, start_date)
        else:
            url = self.graph_url
            response = self._get(url, params={"id": series_id, "cosd": start_date})
            df = parse_graph_csv(response.text, series_id)

        df = df[df["date"] >= pd.Timestamp(start_date)].sort_values("date").reset_index(drop=True)
        if df["value"].dropna().empty:
            raise FetchError(f"FRED {series_id} returned no observations since {start_date}")

        self._record(url, df, "date", notes=f"{series_id} through {date.today():%Y-%m-%d}")
        logger.info(f"Fetched {series_id}: {len(df)} observations")
        return df

    def fetch_response(
        self,
        series_id: str,
        frequency: Frequency,
        start_date: str | None = None,
        refresh: bool = False,
    ) -> NamedSeries:
        """Fetch a series (through the cache) as a NamedSeries."""
        start_date = start_date or get_settings().fred_start
        df = self.fetch_with_cache(refresh=refresh, series_id=series_id, start_date=start_date)
        values = pd.Series(
            df["value"].to_numpy(dtype=float),
            index=pd.DatetimeIndex(pd.to_datetime(df["date"])),
            name=series_id,
        )
        return NamedSeries(series_id=series_id, values=values, frequency=frequency)

    def fetch_series(
        self,
        config: SeriesConfig,
        name: str,
        start_date: str | None = None,
        refresh: bool = False,
    ) -> RawSeries:
        """Fetch a catalog series and normalize it to a RawSeries."""
        response = self.fetch_response(
            config.identifier,
            frequency=config.native_frequency,
            start_date=start_date,
            refresh=refresh,
        )
        return to_raw_series(response, name=name)
