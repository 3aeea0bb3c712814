"""
Reporting: charts, CSV export and console output.
"""

from macrochannel.output.charts import plot_impulse_response, plot_panel
from macrochannel.output.export import read_panel_csv, write_panel_csv

__all__ = [
    "plot_impulse_response",
    "plot_panel",
    "read_panel_csv",
    "write_panel_csv",
]
