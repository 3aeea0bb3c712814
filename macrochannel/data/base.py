"""
Abstract base classes for data sources.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
import hashlib
import json
import logging

import httpx
import pandas as pd
from diskcache import Cache

from config.settings import get_settings
from macrochannel.errors import FetchError

logger = logging.getLogger(__name__)


@dataclass
class DataSourceMetadata:
    """Metadata about a data source fetch."""

    source_name: str
    fetch_time: datetime
    url: str | None = None
    row_count: int | None = None
    columns: list[str] = field(default_factory=list)
    date_range: tuple[str, str] | None = None
    notes: str = ""


class DataSource(ABC):
    """Abstract base class for all data sources."""

    def __init__(self, cache_dir: Path | None = None):
        settings = get_settings()
        self.cache_dir = cache_dir or settings.resolved_cache_dir
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = Cache(str(self.cache_dir / self.source_name))
        self._metadata: list[DataSourceMetadata] = []

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Unique identifier for this data source."""
        pass

    @abstractmethod
    def fetch(self, **kwargs: Any) -> pd.DataFrame:
        """Fetch data from the source."""
        pass

    @property
    def metadata(self) -> list[DataSourceMetadata]:
        return list(self._metadata)

    def _cache_key(self, **kwargs: Any) -> str:
        """Generate cache key from parameters."""
        key_data = json.dumps(kwargs, sort_keys=True, default=str)
        return hashlib.sha256(key_data.encode()).hexdigest()[:16]

    def get_cached(self, cache_key: str) -> pd.DataFrame | None:
        """Retrieve data from cache if available."""
        try:
            data = self._cache.get(cache_key)
            if data is not None:
                logger.debug(f"Cache hit for {self.source_name}: {cache_key}")
                return pd.DataFrame(data)
        except Exception as e:
            logger.warning(f"Cache read error: {e}")
        return None

    def set_cached(
        self, cache_key: str, df: pd.DataFrame, ttl_seconds: int | None = None
    ) -> None:
        """Store data in cache."""
        settings = get_settings()
        ttl = ttl_seconds or (settings.cache_ttl_days * 86400)
        try:
            self._cache.set(cache_key, df.to_dict("records"), expire=ttl)
            logger.debug(f"Cached {self.source_name}: {cache_key}")
        except Exception as e:
            logger.warning(f"Cache write error: {e}")

    def clear_cache(self) -> None:
        """Clear all cached data for this source."""
        self._cache.clear()
        logger.info(f"Cleared cache for {self.source_name}")

    def fetch_with_cache(self, refresh: bool = False, **kwargs: Any) -> pd.DataFrame:
        """Fetch data with caching.

        Args:
            refresh: Skip the cache lookup and fetch fresh data
            **kwargs: Parameters forwarded to fetch() and used as cache key
        """
        cache_key = self._cache_key(**kwargs)

        if not refresh:
            cached = self.get_cached(cache_key)
            if cached is not None:
                return cached

        logger.info(f"Fetching {self.source_name} with params: {kwargs}")
        df = self.fetch(**kwargs)

        self.set_cached(cache_key, df)

        return df

    def _record(self, url: str, df: pd.DataFrame, date_col: str, notes: str = "") -> None:
        date_range = None
        if not df.empty:
            dates = pd.to_datetime(df[date_col])
            date_range = (
                dates.min().strftime("%Y-%m-%d"),
                dates.max().strftime("%Y-%m-%d"),
            )
        self._metadata.append(
            DataSourceMetadata(
                source_name=self.source_name,
                fetch_time=datetime.now(),
                url=url,
                row_count=len(df),
                columns=list(df.columns),
                date_range=date_range,
                notes=notes,
            )
        )


class HTTPDataSource(DataSource):
    """Base class for HTTP-based data sources."""

    def __init__(self, cache_dir: Path | None = None, client: httpx.Client | None = None):
        super().__init__(cache_dir)
        self._client = client

    @property
    def client(self) -> httpx.Client:
        """Lazy-loaded HTTP client."""
        if self._client is None:
            settings = get_settings()
            self._client = httpx.Client(
                timeout=settings.http_timeout,
                follow_redirects=True,
                headers={"User-Agent": "Mozilla/5.0 (compatible; macrochannel/0.1)"},
            )
        return self._client

    def _get(self, url: str, params: dict[str, Any] | list[tuple[str, Any]] | None = None) -> httpx.Response:
        """GET a URL, turning transport and status failures into FetchError."""
        try:
            response = self.client.get(url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"{self.source_name} request failed with HTTP {e.response.status_code}: {e.request.url}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"{self.source_name} request failed: {e}") from e
        return response

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
