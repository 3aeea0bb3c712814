"""
Chart rendering for the merged panel and the impulse response.
"""

import logging
import math
from pathlib import Path

import pandas as pd

from macrochannel.model.vecm import ImpulseResponse

logger = logging.getLogger(__name__)

PANEL_TITLES = {
    "Inflation_YY": "Inflation (HICP, Y/Y %)",
    "Interest_Rate": "Policy rate (ECB deposit facility, %)",
    "Unemployment_Rate": "Unemployment rate (%)",
    "GDP_Growth_YY": "GDP growth (Y/Y %)",
}


def _pyplot():
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    return plt


def plot_panel(
    panel: pd.DataFrame,
    path: Path,
    figsize: tuple[int, int] = (10, 7),
    source_note: str = "Source: Eurostat and FRED",
) -> Path:
    """
    Small-multiple line chart of the panel, one facet per column.

    Facets share the date axis and keep independent y scales, laid out
    two per row.
    """
    if panel.empty:
        raise ValueError("Cannot plot an empty panel")

    plt = _pyplot()
    columns = list(panel.columns)
    n_rows = math.ceil(len(columns) / 2)

    fig, axes = plt.subplots(n_rows, 2, figsize=figsize, sharex=True, squeeze=False)
    for ax, column in zip(axes.flat, columns):
        ax.plot(panel.index, panel[column], color="steelblue", linewidth=1)
        ax.set_title(PANEL_TITLES.get(column, column), fontsize=10)
        ax.grid(alpha=0.3)
    for ax in list(axes.flat)[len(columns):]:
        ax.set_visible(False)

    first, last = panel.index.min().year, panel.index.max().year
    fig.suptitle(f"Visual Check of Original Time Series ({first}-{last})", fontsize=12)
    fig.text(0.5, 0.01, source_note, ha="center", fontsize=8, color="gray")
    fig.tight_layout(rect=(0, 0.03, 1, 0.97))

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=100)
    plt.close(fig)

    logger.info(f"Saved panel chart to {path}")
    return path


def plot_impulse_response(
    irf: ImpulseResponse,
    path: Path,
    figsize: tuple[int, int] = (10, 6),
) -> Path:
    """Impulse response line with its bootstrap band and a zero line."""
    plt = _pyplot()
    df = irf.to_dataframe()

    fig, ax = plt.subplots(figsize=figsize)
    ax.plot(df["horizon"], df["response"], color="black", linewidth=1.5)
    ax.fill_between(
        df["horizon"],
        df["conf_lower"],
        df["conf_upper"],
        alpha=0.2,
        color="red",
        label=f"{irf.ci:.0%} bootstrap CI",
    )
    ax.axhline(0, color="red", linestyle="--", linewidth=0.8)
    ax.set_xlabel("Months after shock")
    ax.set_ylabel(f"Response of {irf.response}")
    ax.set_title(f"Orthogonal impulse response: {irf.impulse} → {irf.response}")
    ax.legend()
    fig.tight_layout()

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(path, dpi=100)
    plt.close(fig)

    logger.info(f"Saved impulse response chart to {path}")
    return path
