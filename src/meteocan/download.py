"""
Observation downloader for the ECCC bulk data service.
"""

import logging
import re
from datetime import date
from io import StringIO
from typing import Iterable, List, Tuple

import pandas as pd
import requests

from . import config

logger = logging.getLogger(__name__)

RENAMES = {
    "Longitude (x)": "lon",
    "Latitude (y)": "lat",
    "Station Name": "station_name",
    "Climate ID": "climate_id",
    "Date/Time": "date",
    "Date/Time (LST)": "time",
    "Time (LST)": "hour",
}

# Calendar parts stay as text so they are not mistaken for measurements
TEXT_FIELDS = ["Climate ID", "Year", "Month", "Day", "Time (LST)"]


def parse_date(value) -> date:
    """Parse a ``YYYY-MM-DD`` string (or date-like) into a date."""
    return pd.Timestamp(value).date()


def check_interval(interval: str) -> str:
    if interval not in config.INTERVALS:
        raise ValueError(f"Unknown interval: {interval}")
    return interval


def normalize_column(name: str) -> str:
    """
    Convert an ECCC column header to snake case.

    >>> normalize_column("Max Temp (°C)")
    'max_temp'
    >>> normalize_column("Max Temp Flag")
    'max_temp_flag'
    """
    if name in RENAMES:
        return RENAMES[name]
    name = re.sub(r"\s*\(.*?\)", "", name)
    name = re.sub(r"[^0-9a-zA-Z]+", "_", name.lower())
    return name.strip("_")


def _chunks(start: date, end: date, interval: str) -> List[Tuple[int, int]]:
    """(year, month) pairs to request: one per year for daily, per month for hourly."""
    if interval == "day":
        return [(year, 1) for year in range(start.year, end.year + 1)]
    months = pd.period_range(start=pd.Timestamp(start), end=pd.Timestamp(end), freq="M")
    return [(p.year, p.month) for p in months]


class WeatherClient:
    """
    Client for historical ECCC observations.

    Parameters
    ----------
    catalog : StationCatalog, optional
        When given, province and elevation are attached from the catalog.
    session : requests.Session, optional
        HTTP session used for downloads.
    timeout : float, default=config.HTTP_TIMEOUT
        Request timeout in seconds.
    """

    def __init__(self, catalog=None, session=None, timeout: float = config.HTTP_TIMEOUT):
        self.catalog = catalog
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout

    def _get_csv(self, station_id: int, year: int, month: int, interval: str) -> pd.DataFrame:
        params = {
            "format": "csv",
            "stationID": station_id,
            "Year": year,
            "Month": month,
            "Day": 1,
            "timeframe": config.TIMEFRAMES[interval],
            "submit": "Download Data",
        }
        logger.debug(f"GET {config.BULK_DATA_URL} {params}")
        response = self.session.get(config.BULK_DATA_URL, params=params, timeout=self.timeout)
        response.raise_for_status()

        text = response.content.decode("utf-8-sig")
        if "Date/Time" not in text[:500]:
            raise ValueError(
                f"No data returned for station {station_id} ({year}-{month:02d}, {interval})"
            )

        dtypes = {field: str for field in TEXT_FIELDS}
        return pd.read_csv(StringIO(text), dtype=dtypes)

    def _station_frame(
        self, station_id: int, start: date, end: date, interval: str
    ) -> pd.DataFrame:
        frames = [
            self._get_csv(station_id, year, month, interval)
            for year, month in _chunks(start, end, interval)
        ]
        df = pd.concat(frames, ignore_index=True)
        df.columns = [normalize_column(col) for col in df.columns]

        if interval == "hour":
            df["time"] = pd.to_datetime(df["time"])
            df["date"] = df["time"].dt.normalize()
            upper = pd.Timestamp(end) + pd.Timedelta(days=1)
            in_range = (df["time"] >= pd.Timestamp(start)) & (df["time"] < upper)
        else:
            df["date"] = pd.to_datetime(df["date"])
            in_range = (df["date"] >= pd.Timestamp(start)) & (df["date"] <= pd.Timestamp(end))

        df = df[in_range].copy()
        df.insert(0, "station_id", int(station_id))
        logger.info(f"Downloaded {len(df)} {interval} rows for station {station_id}")
        return df

    def weather_dl(
        self,
        station_ids: Iterable[int],
        start=config.DEFAULT_START,
        end=config.DEFAULT_END,
        interval: str = config.DEFAULT_INTERVAL,
    ) -> pd.DataFrame:
        """
        Download observations for several stations.

        Parameters
        ----------
        station_ids : iterable of int
            ECCC station identifiers, in the order rows should appear.
        start, end : str or date
            Inclusive date range.
        interval : str, default='day'
            ``'day'`` or ``'hour'``.

        Returns
        -------
        observations : pd.DataFrame
            One row per (station, timestamp).
        """
        interval = check_interval(interval)
        start, end = parse_date(start), parse_date(end)
        if start > end:
            raise ValueError(f"start ({start}) is after end ({end})")

        station_ids = list(station_ids)
        if not station_ids:
            raise ValueError("No station ids to download")

        frames = [self._station_frame(sid, start, end, interval) for sid in station_ids]
        observations = pd.concat(frames, ignore_index=True)

        if self.catalog is not None:
            meta = self.catalog.stations()[["station_id", "prov", "elev"]]
            observations = observations.merge(meta, on="station_id", how="left")

        return observations
