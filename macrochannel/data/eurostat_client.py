"""
Eurostat dissemination API client.

Fetches dimensioned datasets (JSON-stat 2.0) filtered on a geographic code
and category dimensions:
- prc_hicp_midx (HICP monthly index)
- une_rt_m (monthly unemployment rate)
- namq_10_gdp (quarterly national accounts)
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import httpx
import numpy as np
import pandas as pd

from config.settings import get_settings
from macrochannel.data.base import HTTPDataSource
from macrochannel.data.series import DimensionedPanel, Frequency, RawSeries, SeriesConfig, to_raw_series
from macrochannel.errors import FetchError

logger = logging.getLogger(__name__)

_MONTHLY = re.compile(r"^(\d{4})-?M?(\d{2})$")
_QUARTERLY = re.compile(r"^(\d{4})-?Q([1-4])$")
_ANNUAL = re.compile(r"^(\d{4})$")


def parse_time_code(code: str) -> pd.Timestamp:
    """Convert a Eurostat time code to the timestamp of the period start."""
    code = code.strip()
    if m := _QUARTERLY.match(code):
        return pd.Timestamp(year=int(m.group(1)), month=3 * int(m.group(2)) - 2, day=1)
    if m := _MONTHLY.match(code):
        return pd.Timestamp(year=int(m.group(1)), month=int(m.group(2)), day=1)
    if m := _ANNUAL.match(code):
        return pd.Timestamp(year=int(m.group(1)), month=1, day=1)
    raise FetchError(f"Unrecognized Eurostat time code: {code!r}")


def _category_codes(dimension: dict[str, Any]) -> list[str]:
    """Category codes of a JSON-stat dimension ordered by position."""
    index = dimension["category"]["index"]
    if isinstance(index, list):
        return [str(c) for c in index]
    codes = [""] * len(index)
    for code, pos in index.items():
        codes[int(pos)] = str(code)
    return codes


def decode_jsonstat(payload: dict[str, Any]) -> pd.DataFrame:
    """
    Decode a JSON-stat 2.0 dataset into long rows.

    Returns:
        DataFrame with one column per dimension (codes), a `time` column of
        period-start timestamps and a float `value` column. Cells without a
        value are not emitted.
    """
    if "error" in payload:
        raise FetchError(f"Eurostat returned an error: {payload['error']}")
    try:
        dims: list[str] = list(payload["id"])
        size: list[int] = [int(s) for s in payload["size"]]
        codes = {d: _category_codes(payload["dimension"][d]) for d in dims}
        raw_values = payload["value"]
    except (KeyError, TypeError, ValueError) as e:
        raise FetchError(f"Malformed JSON-stat payload: {e}") from e

    if isinstance(raw_values, dict):
        positions = np.array([int(k) for k in raw_values], dtype=np.int64)
        values = np.array([np.nan if v is None else v for v in raw_values.values()], dtype=float)
    else:
        values = np.array([np.nan if v is None else v for v in raw_values], dtype=float)
        positions = np.arange(len(values), dtype=np.int64)

    keep = ~np.isnan(values)
    positions, values = positions[keep], values[keep]

    columns: dict[str, Any] = {}
    if len(positions):
        unravelled = np.unravel_index(positions, size)
        for dim, idx in zip(dims, unravelled):
            columns[dim] = np.asarray(codes[dim], dtype=object)[idx]
    else:
        columns = {dim: np.array([], dtype=object) for dim in dims}

    rows = pd.DataFrame(columns)
    time_dim = "time" if "time" in dims else dims[-1]
    rows["time"] = pd.to_datetime([parse_time_code(c) for c in rows.pop(time_dim)])
    rows["value"] = values
    rows = rows.sort_values("time").reset_index(drop=True)
    return rows


class EurostatClient(HTTPDataSource):
    """Client for the Eurostat statistics dissemination API."""

    @property
    def source_name(self) -> str:
        return "eurostat"

    def __init__(
        self,
        base_url: str | None = None,
        cache_dir: Path | None = None,
        client: httpx.Client | None = None,
    ):
        super().__init__(cache_dir, client)
        settings = get_settings()
        self.base_url = (base_url or settings.eurostat_base_url).rstrip("/")

    def fetch(
        self,
        dataset: str,
        geo: str,
        filters: dict[str, str] | None = None,
        **kwargs: Any,
    ) -> pd.DataFrame:
        """
        Fetch a dataset for one country.

        Args:
            dataset: Eurostat dataset code, e.g. "prc_hicp_midx"
            geo: Geographic code, e.g. "HR"
            filters: Category filters sent as query parameters

        Returns:
            Long rows with time, dimension codes and value
        """
        url = f"{self.base_url}/{dataset}"
        params: list[tuple[str, str]] = [("format", "JSON"), ("lang", "EN"), ("geo", geo)]
        params.extend((dim, code) for dim, code in (filters or {}).items())

        response = self._get(url, params=params)
        try:
            payload = response.json()
        except ValueError as e:
            raise FetchError(f"Eurostat {dataset} returned a non-JSON body") from e

        rows = decode_jsonstat(payload)
        if rows.empty:
            raise FetchError(f"Eurostat {dataset} returned no observations for geo={geo}")

        self._record(str(response.url), rows, "time", notes=dataset)
        logger.info(f"Fetched {dataset}: {len(rows)} cells")
        return rows

    def fetch_response(
        self,
        dataset: str,
        geo: str,
        frequency: Frequency,
        filters: dict[str, str] | None = None,
        refresh: bool = False,
    ) -> DimensionedPanel:
        """Fetch a dataset (through the cache) as a DimensionedPanel."""
        rows = self.fetch_with_cache(refresh=refresh, dataset=dataset, geo=geo, filters=filters or {})
        rows = rows.assign(time=pd.to_datetime(rows["time"]))
        return DimensionedPanel(dataset=dataset, rows=rows, frequency=frequency)

    def fetch_series(
        self,
        config: SeriesConfig,
        name: str,
        geo: str,
        refresh: bool = False,
    ) -> RawSeries:
        """Fetch a catalog series and reduce it to a RawSeries."""
        response = self.fetch_response(
            config.identifier,
            geo=geo,
            frequency=config.native_frequency,
            filters=config.filters,
            refresh=refresh,
        )
        return to_raw_series(response, name=name, filters={"geo": geo, **config.filters})
