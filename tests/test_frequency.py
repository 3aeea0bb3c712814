"""
Tests for calendar frequency normalization.
"""

import numpy as np
import pandas as pd
import pytest

from macrochannel.data.frequency import FrequencyMismatch, can_aggregate, normalize
from macrochannel.data.series import RawSeries


def _raw(values, index, frequency="daily", name="x"):
    return RawSeries(name=name, values=pd.Series(values, index=pd.DatetimeIndex(index), dtype=float),
                     frequency=frequency, source="test")


class TestCanAggregate:
    """Test frequency ordering."""

    def test_finer_to_coarser(self):
        assert can_aggregate("daily", "monthly")
        assert can_aggregate("monthly", "quarterly")
        assert can_aggregate("monthly", "monthly")

    def test_coarser_to_finer(self):
        assert not can_aggregate("quarterly", "monthly")

    def test_unknown_frequency(self):
        assert not can_aggregate("weekly", "monthly")


class TestNormalize:
    """Test collapsing raw observations to one value per month."""

    def test_mean_ignores_missing(self):
        raw = _raw(
            [1.0, np.nan, 3.0, 10.0],
            ["2020-01-05", "2020-01-10", "2020-01-20", "2020-02-03"],
        )
        result = normalize(raw, "monthly", "mean")

        assert list(result.index) == [pd.Timestamp("2020-01-01"), pd.Timestamp("2020-02-01")]
        assert result.iloc[0] == pytest.approx(2.0)
        assert result.iloc[1] == pytest.approx(10.0)

    def test_last_takes_rightmost_observation(self):
        raw = _raw(
            [3.00, 3.25, np.nan, 3.50],
            ["2020-03-01", "2020-03-18", "2020-03-31", "2020-04-02"],
        )
        result = normalize(raw, "monthly", "last")

        assert result.loc["2020-03-01"] == pytest.approx(3.25)
        assert result.loc["2020-04-01"] == pytest.approx(3.50)

    def test_last_uses_order_of_dates_not_input(self):
        raw = _raw([5.0, 4.0], ["2020-05-20", "2020-05-02"])
        result = normalize(raw, "monthly", "last")
        assert result.iloc[0] == pytest.approx(5.0)

    def test_all_missing_month_is_omitted(self):
        raw = _raw(
            [1.0, np.nan, np.nan, 4.0],
            ["2020-01-15", "2020-02-10", "2020-02-20", "2020-03-15"],
        )
        result = normalize(raw, "monthly", "mean")

        assert pd.Timestamp("2020-02-01") not in result.index
        assert len(result) == 2
        assert not (result == 0).any()

    def test_one_entry_per_month_strictly_increasing(self):
        days = pd.date_range("2019-12-15", "2020-06-15", freq="D")
        raw = _raw(np.arange(len(days)), days)
        result = normalize(raw, "monthly", "mean")

        assert result.index.is_monotonic_increasing
        assert result.index.is_unique
        assert (result.index.day == 1).all()
        assert len(result) == 7

    def test_monthly_to_quarterly(self):
        raw = _raw([1.0, 2.0, 3.0, 4.0], pd.date_range("2020-01-01", periods=4, freq="MS"), "monthly")
        result = normalize(raw, "quarterly", "mean")

        assert list(result.index) == [pd.Timestamp("2020-01-01"), pd.Timestamp("2020-04-01")]
        assert result.iloc[0] == pytest.approx(2.0)

    def test_quarterly_is_kept_at_quarter_starts(self):
        raw = _raw([100.0, 101.0], ["2020-01-01", "2020-04-01"], "quarterly")
        result = normalize(raw, "quarterly", "mean")
        assert list(result.values) == [100.0, 101.0]

    def test_finer_target_raises(self):
        raw = _raw([100.0], ["2020-01-01"], "quarterly")
        with pytest.raises(FrequencyMismatch):
            normalize(raw, "monthly")

    def test_does_not_mutate_input(self):
        raw = _raw([1.0, np.nan], ["2020-01-01", "2020-01-02"])
        before = raw.values.copy()
        normalize(raw, "monthly")
        pd.testing.assert_series_equal(raw.values, before)
