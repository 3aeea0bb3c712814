"""
macrochannel settings.
"""

from pathlib import Path
from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Keys
    fred_api_key: str = Field(
        default="",
        description="FRED API key (optional; the public CSV download is used without one)",
    )

    # Directories
    project_root: Path = Field(
        default_factory=lambda: Path(__file__).parent.parent,
        description="Project root directory",
    )
    cache_dir: Path = Field(default=Path(".cache"), description="Cache directory")
    output_dir: Path = Field(default=Path("outputs"), description="Output directory")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Data collection
    http_timeout: float = Field(default=60.0, description="HTTP request timeout in seconds")
    cache_ttl_days: int = Field(default=1, description="Cache TTL in days")
    eurostat_base_url: str = Field(
        default="https://ec.europa.eu/eurostat/api/dissemination/statistics/1.0/data",
        description="Eurostat dissemination API base URL",
    )
    fred_graph_url: str = Field(
        default="https://fred.stlouisfed.org/graph/fredgraph.csv",
        description="FRED public CSV download URL",
    )

    # Sample
    country_code: str = Field(default="HR", description="Eurostat geo code of the country")
    analysis_start: str = Field(
        default="2001-01-01", description="First date kept in the merged panel"
    )
    fred_start: str = Field(
        default="2000-01-01", description="First date requested from FRED"
    )

    # Model settings
    lag_max: int = Field(default=12, description="Maximum VAR order for lag selection")
    lag_criterion: Literal["aic", "bic", "hqic", "fpe"] = Field(
        default="hqic", description="Lag selection criterion: aic | bic | hqic | fpe"
    )
    coint_rank: int = Field(default=1, description="Cointegration rank of the VECM")
    var_ordering: list[str] = Field(
        default=["GDP_Growth_YY", "Inflation_YY", "Interest_Rate"],
        description="Variable ordering (Cholesky ordering) of the VECM",
    )
    serial_lags: int = Field(default=12, description="Lags of the portmanteau test")
    irf_impulse: str = Field(default="Interest_Rate", description="IRF impulse variable")
    irf_response: str = Field(default="Inflation_YY", description="IRF response variable")
    irf_horizon: int = Field(default=24, ge=0, description="IRF horizon in months")
    irf_ci: float = Field(default=0.95, gt=0, lt=1, description="IRF bootstrap confidence level")
    irf_runs: int = Field(default=500, gt=0, description="IRF bootstrap replications")
    bootstrap_seed: int | None = Field(
        default=None, description="Seed for the IRF bootstrap"
    )

    # Outputs
    csv_filename: str = Field(
        default="RH_Macro_Channel_Final.csv", description="Merged panel CSV file name"
    )
    chart_filename: str = Field(
        default="TimeSeries.png", description="Panel chart file name"
    )
    irf_chart_filename: str = Field(
        default="IRF_Interest_Inflation.png", description="Impulse response chart file name"
    )

    @property
    def resolved_output_dir(self) -> Path:
        if self.output_dir.is_absolute():
            return self.output_dir
        return self.project_root / self.output_dir

    @property
    def resolved_cache_dir(self) -> Path:
        if self.cache_dir.is_absolute():
            return self.cache_dir
        return self.project_root / self.cache_dir


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
