"""
Tests for observation cleaning and the column schema
"""

import numpy as np
import pandas as pd
import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from meteocan.cleaning import (
    add_time_id,
    clean_observations,
    drop_flag_columns,
    remove_empty_columns,
)
from meteocan.schema import ObservationSchema


@pytest.fixture
def raw_observations():
    return pd.DataFrame(
        {
            "station_id": [30578, 30578, 30578, 49568, 49568],
            "station_name": ["OTTAWA CDA RCS"] * 3 + ["OTTAWA INTL A"] * 2,
            "date": pd.to_datetime(
                ["2018-02-01", "2018-02-02", "2018-02-03", "2018-02-01", "2018-02-02"]
            ),
            "lat": [45.38, 45.38, 45.38, 45.32, 45.32],
            "lon": [-75.71, -75.71, -75.71, -75.67, -75.67],
            "max_temp": [-3.1, np.nan, 1.2, -2.8, 0.4],
            "max_temp_flag": [None, "M", None, None, None],
            "data_quality": [np.nan] * 5,
            "hmdx": [np.nan] * 5,
        }
    )


class TestCleaning:
    """Test cases for the cleaning steps."""

    def test_remove_empty_columns(self, raw_observations):
        cleaned = remove_empty_columns(raw_observations)
        assert "data_quality" not in cleaned.columns
        assert "hmdx" not in cleaned.columns
        assert "max_temp" in cleaned.columns

    def test_drop_flag_columns(self, raw_observations):
        cleaned = drop_flag_columns(raw_observations)
        assert not any(col.endswith("_flag") for col in cleaned.columns)
        assert "max_temp" in cleaned.columns

    def test_time_id_restarts_per_station(self, raw_observations):
        """time_id counts 1, 2, 3 ... within each station."""
        with_ids = add_time_id(raw_observations)
        assert with_ids["time_id"].tolist() == [1, 2, 3, 1, 2]

    def test_time_id_follows_row_order_for_interleaved_stations(self):
        df = pd.DataFrame({"station_id": [1, 2, 1, 2, 1], "x": range(5)})
        assert add_time_id(df)["time_id"].tolist() == [1, 1, 2, 2, 3]

    def test_clean_observations(self, raw_observations):
        cleaned = clean_observations(raw_observations)

        assert list(cleaned.columns) == [
            "station_id",
            "station_name",
            "date",
            "lat",
            "lon",
            "max_temp",
            "time_id",
        ]
        # Input is not modified
        assert "max_temp_flag" in raw_observations.columns

        for _, group in cleaned.groupby("station_id"):
            np.testing.assert_array_equal(group["time_id"], np.arange(1, len(group) + 1))


class TestObservationSchema:
    """Test cases for column role detection."""

    def test_from_frame(self, raw_observations):
        cleaned = clean_observations(raw_observations)
        schema = ObservationSchema.from_frame(cleaned)

        assert schema.keys == ("station_id", "time_id")
        assert schema.constants == ("lat", "lon")
        assert schema.targets == ("max_temp",)
        assert schema.attributes == ("station_name", "date")
        assert schema.numeric_columns == ["station_id", "time_id", "max_temp"]

    def test_boolean_columns_are_attributes(self):
        df = pd.DataFrame(
            {"station_id": [1, 2], "time_id": [1, 1], "wet": [True, False], "temp": [1.0, 2.0]}
        )
        schema = ObservationSchema.from_frame(df)
        assert schema.attributes == ("wet",)
        assert schema.targets == ("temp",)

    def test_missing_keys_raise(self):
        with pytest.raises(ValueError):
            ObservationSchema.from_frame(pd.DataFrame({"station_id": [1], "temp": [1.0]}))

    def test_numeric_view(self, raw_observations):
        cleaned = clean_observations(raw_observations)
        schema = ObservationSchema.from_frame(cleaned)
        view = schema.numeric_view(cleaned)
        assert list(view.columns) == ["station_id", "time_id", "max_temp"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
