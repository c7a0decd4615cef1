"""
Tests for the ECCC observation downloader
"""

from datetime import date
from unittest.mock import Mock

import pandas as pd
import pytest
import requests
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from meteocan.download import WeatherClient, check_interval, normalize_column, parse_date

DAILY_HEADER = (
    '"Longitude (x)","Latitude (y)","Station Name","Climate ID","Date/Time","Year","Month",'
    '"Day","Data Quality","Max Temp (°C)","Max Temp Flag","Min Temp (°C)","Min Temp Flag",'
    '"Total Precip (mm)","Total Precip Flag"'
)

HOURLY_HEADER = (
    '"Longitude (x)","Latitude (y)","Station Name","Climate ID","Date/Time (LST)","Year",'
    '"Month","Day","Time (LST)","Temp (°C)","Temp Flag","Rel Hum (%)","Rel Hum Flag","Weather"'
)


def daily_csv(station_id, days):
    rows = [
        f'"-75.71","45.38","STATION {station_id}","0{station_id}","{day}","{day[:4]}",'
        f'"{day[5:7]}","{day[8:]}","","{i + 0.5}","","{i - 5.5}","","",""'
        for i, day in enumerate(days)
    ]
    return "\ufeff" + "\n".join([DAILY_HEADER] + rows) + "\n"


def hourly_csv(station_id, year, month):
    days = pd.date_range(f"{year}-{month:02d}-01", periods=3, freq="D")
    rows = []
    for day in days:
        for hour in ("00:00", "12:00"):
            rows.append(
                f'"-75.67","45.32","STATION {station_id}","0{station_id}",'
                f'"{day:%Y-%m-%d} {hour}","{year}","{month:02d}","{day:%d}","{hour}",'
                f'"1.5","","80","","Cloudy"'
            )
    return "\n".join([HOURLY_HEADER] + rows) + "\n"


def response_for(text):
    response = Mock()
    response.content = text.encode("utf-8")
    response.raise_for_status.return_value = None
    return response


class TestHelpers:
    def test_normalize_column(self):
        assert normalize_column("Max Temp (°C)") == "max_temp"
        assert normalize_column("Max Temp Flag") == "max_temp_flag"
        assert normalize_column("Precip. Amount (mm)") == "precip_amount"
        assert normalize_column("Longitude (x)") == "lon"
        assert normalize_column("Date/Time (LST)") == "time"

    def test_parse_date(self):
        assert parse_date("2018-02-01") == date(2018, 2, 1)
        assert parse_date(date(2018, 2, 1)) == date(2018, 2, 1)

    def test_check_interval(self):
        assert check_interval("hour") == "hour"
        with pytest.raises(ValueError):
            check_interval("month")


class TestDailyDownload:
    """Test cases for daily downloads."""

    def make_client(self):
        days = ["2018-01-31", "2018-02-01", "2018-02-02", "2018-02-03"]
        session = Mock()
        session.get.side_effect = lambda url, params, timeout: response_for(
            daily_csv(params["stationID"], days)
        )
        return WeatherClient(session=session), session

    def test_one_request_per_station_year(self):
        client, session = self.make_client()
        client.weather_dl([49568, 30578], "2018-02-01", "2018-02-02", "day")

        assert session.get.call_count == 2
        params = session.get.call_args_list[0].kwargs["params"]
        assert params["stationID"] == 49568
        assert params["timeframe"] == 2
        assert params["Year"] == 2018

    def test_rows_filtered_and_ordered(self):
        client, _ = self.make_client()
        df = client.weather_dl([49568, 30578], "2018-02-01", "2018-02-02", "day")

        assert df["station_id"].tolist() == [49568, 49568, 30578, 30578]
        assert df["date"].dt.strftime("%Y-%m-%d").tolist() == [
            "2018-02-01",
            "2018-02-02",
        ] * 2

    def test_columns_normalized(self):
        client, _ = self.make_client()
        df = client.weather_dl([49568], "2018-02-01", "2018-02-03", "day")

        for col in ["station_id", "lat", "lon", "station_name", "climate_id", "max_temp",
                    "max_temp_flag", "min_temp", "total_precip"]:
            assert col in df.columns
        assert df["month"].iloc[0] == "02"
        assert df["climate_id"].iloc[0] == "049568"
        assert pd.api.types.is_numeric_dtype(df["max_temp"])

    def test_catalog_attributes_attached(self):
        client, _ = self.make_client()
        catalog = Mock()
        catalog.stations.return_value = pd.DataFrame(
            {"station_id": [49568], "prov": ["ON"], "elev": [114.0]}
        )
        client.catalog = catalog

        df = client.weather_dl([49568], "2018-02-01", "2018-02-02", "day")
        assert df["prov"].tolist() == ["ON", "ON"]
        assert df["elev"].tolist() == [114.0, 114.0]

    def test_start_after_end(self):
        client, _ = self.make_client()
        with pytest.raises(ValueError):
            client.weather_dl([49568], "2018-03-01", "2018-02-01", "day")

    def test_no_stations(self):
        client, _ = self.make_client()
        with pytest.raises(ValueError):
            client.weather_dl([], "2018-02-01", "2018-02-02", "day")


class TestHourlyDownload:
    def test_one_request_per_month(self):
        session = Mock()
        session.get.side_effect = lambda url, params, timeout: response_for(
            hourly_csv(params["stationID"], params["Year"], params["Month"])
        )
        client = WeatherClient(session=session)

        df = client.weather_dl([49568], "2018-02-02", "2018-03-01", "hour")

        assert session.get.call_count == 2
        months = [call.kwargs["params"]["Month"] for call in session.get.call_args_list]
        assert months == [2, 3]
        assert all(call.kwargs["params"]["timeframe"] == 1 for call in session.get.call_args_list)

        # Feb 2 and Feb 3 from the first month, Mar 1 from the second
        assert len(df) == 6
        assert df["time"].min() == pd.Timestamp("2018-02-02 00:00")
        assert df["time"].max() == pd.Timestamp("2018-03-01 12:00")
        assert df["hour"].iloc[0] == "00:00"
        assert "date" in df.columns


class TestDownloadErrors:
    """Provider errors propagate to the caller."""

    def test_http_error_propagates(self):
        session = Mock()
        response = response_for("")
        response.raise_for_status.side_effect = requests.HTTPError("404")
        session.get.return_value = response

        with pytest.raises(requests.HTTPError):
            WeatherClient(session=session).weather_dl([1], "2018-02-01", "2018-02-02")

    def test_non_csv_response_raises(self):
        session = Mock()
        session.get.return_value = response_for("<html>Station not found</html>")

        with pytest.raises(ValueError):
            WeatherClient(session=session).weather_dl([1], "2018-02-01", "2018-02-02")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
