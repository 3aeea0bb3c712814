"""
Flat-file export of the merged panel.
"""

import logging
from pathlib import Path

import pandas as pd

from macrochannel.data.panel import PANEL_COLUMNS

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def write_panel_csv(panel: pd.DataFrame, path: Path) -> Path:
    """
    Write the panel as `date, Inflation_YY, Interest_Rate, Unemployment_Rate, GDP_Growth_YY`.

    Raises:
        ValueError: If the panel has missing values or lacks a column
    """
    missing_cols = [c for c in PANEL_COLUMNS if c not in panel.columns]
    if missing_cols:
        raise ValueError(f"Panel lacks columns: {missing_cols}")
    data = panel[PANEL_COLUMNS]
    if data.isnull().any().any():
        raise ValueError("Refusing to export a panel with missing values")

    out = data.reset_index(names="date")
    out["date"] = pd.to_datetime(out["date"]).dt.strftime(DATE_FORMAT)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    out.to_csv(path, index=False)

    logger.info(f"Saved panel ({len(out)} rows) to {path}")
    return path


def read_panel_csv(path: Path) -> pd.DataFrame:
    """Read a panel written by write_panel_csv back into a date-indexed frame."""
    df = pd.read_csv(path, parse_dates=["date"])
    missing_cols = [c for c in ["date", *PANEL_COLUMNS] if c not in df.columns]
    if missing_cols:
        raise ValueError(f"{path} lacks columns: {missing_cols}")
    panel = df.set_index("date")[PANEL_COLUMNS].astype(float)
    panel.index = pd.DatetimeIndex(panel.index, name="date")
    return panel
