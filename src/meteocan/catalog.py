"""
ECCC station catalog.

Keeps a local copy of the Environment and Climate Change Canada station
inventory, refreshes it when stale and searches it for stations near a
coordinate.
"""

import json
import logging
from dataclasses import dataclass
from datetime import date
from io import StringIO
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import requests

from . import config

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

CATALOG_FILE = "stations.csv"
META_FILE = "stations_meta.json"

INVENTORY_COLUMNS = {
    "Name": "station_name",
    "Province": "prov",
    "Climate ID": "climate_id",
    "Station ID": "station_id",
    "WMO ID": "WMO_id",
    "TC ID": "TC_id",
    "Latitude (Decimal Degrees)": "lat",
    "Longitude (Decimal Degrees)": "lon",
    "Elevation (m)": "elev",
    "HLY First Year": "hour_start",
    "HLY Last Year": "hour_end",
    "DLY First Year": "day_start",
    "DLY Last Year": "day_end",
    "MLY First Year": "month_start",
    "MLY Last Year": "month_end",
}

TEXT_COLUMNS = ["station_name", "prov", "climate_id", "WMO_id", "TC_id"]


@dataclass
class Station:
    """A catalog station matched by a search."""

    station_id: int
    station_name: str
    prov: Optional[str]
    climate_id: Optional[str]
    lat: float
    lon: float
    elev: Optional[float]
    interval: str
    start: int  # first year with records for ``interval``
    end: int
    distance: float  # km from the search coordinate


def haversine_km(lat1, lon1, lat2, lon2):
    """
    Great-circle distance in km. Accepts scalars or numpy arrays.
    """
    lat1, lon1, lat2, lon2 = map(np.radians, (lat1, lon1, lat2, lon2))
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(a))


def parse_inventory(text: str) -> pd.DataFrame:
    """
    Parse the raw ECCC station inventory CSV into the normalized catalog.

    The inventory opens with a few lines of notes before the header row.
    """
    lines = text.splitlines()
    header_idx = next(
        (i for i, line in enumerate(lines) if line.lstrip('"').startswith("Name")),
        None,
    )
    if header_idx is None:
        raise ValueError("Station inventory has no header row")

    raw = pd.read_csv(StringIO("\n".join(lines[header_idx:])), dtype=str)
    missing = [col for col in INVENTORY_COLUMNS if col not in raw.columns]
    if missing:
        raise ValueError(f"Station inventory lacks columns: {missing}")

    stations = raw[list(INVENTORY_COLUMNS)].rename(columns=INVENTORY_COLUMNS)
    for col in stations.columns:
        if col not in TEXT_COLUMNS:
            stations[col] = pd.to_numeric(stations[col], errors="coerce")
    stations = stations.dropna(subset=["station_id", "lat", "lon"])
    stations["station_id"] = stations["station_id"].astype(int)

    return stations.reset_index(drop=True)


class StationCatalog:
    """
    Local copy of the ECCC station inventory.

    Parameters
    ----------
    cache_dir : str or Path, optional
        Directory for the cached inventory. Defaults to
        :func:`meteocan.config.cache_dir`.
    session : requests.Session, optional
        HTTP session used for refreshing.
    timeout : float, default=config.HTTP_TIMEOUT
        Request timeout in seconds.
    """

    def __init__(self, cache_dir=None, session=None, timeout: float = config.HTTP_TIMEOUT):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else config.cache_dir()
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self._stations = None

    @property
    def catalog_path(self) -> Path:
        return self.cache_dir / CATALOG_FILE

    @property
    def meta_path(self) -> Path:
        return self.cache_dir / META_FILE

    def get_metadata_timestamp(self) -> Optional[date]:
        """Date of the last refresh, or None if nothing is cached."""
        if not self.meta_path.exists() or not self.catalog_path.exists():
            return None
        with open(self.meta_path) as fh:
            meta = json.load(fh)
        return date.fromisoformat(meta["modified"])

    def refresh_catalog(self, today: Optional[date] = None) -> pd.DataFrame:
        """Download the full station inventory and replace the cached copy."""
        logger.info(f"Downloading station inventory from {config.STATION_INVENTORY_URL}")
        response = self.session.get(config.STATION_INVENTORY_URL, timeout=self.timeout)
        response.raise_for_status()

        stations = parse_inventory(response.content.decode("utf-8-sig"))

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        stations.to_csv(self.catalog_path, index=False)
        modified = today or date.today()
        with open(self.meta_path, "w") as fh:
            json.dump({"modified": modified.isoformat()}, fh)

        logger.info(f"Saved {len(stations)} stations to {self.catalog_path}")
        self._stations = stations
        return stations

    def stations(self) -> pd.DataFrame:
        """The normalized catalog, downloading it if nothing is cached."""
        if self._stations is None:
            if self.catalog_path.exists():
                self._stations = pd.read_csv(
                    self.catalog_path, dtype={col: str for col in TEXT_COLUMNS}
                )
            else:
                self.refresh_catalog()
        return self._stations

    def search_stations(
        self,
        coords: Tuple[float, float],
        dist: float,
        interval: str,
        starts_latest: Optional[int] = None,
        ends_earliest: Optional[int] = None,
    ) -> List[Station]:
        """
        Find stations near a coordinate.

        Parameters
        ----------
        coords : tuple of float
            Target ``(lat, lon)``.
        dist : float
            Maximum distance in km.
        interval : str
            ``'day'`` or ``'hour'``; stations without records at this
            interval are excluded.
        starts_latest : int, optional
            Keep stations whose records start in or before this year.
        ends_earliest : int, optional
            Keep stations whose records end in or after this year.

        Returns
        -------
        stations : list of Station
            Matching stations sorted by ascending distance.
        """
        if interval not in config.INTERVALS:
            raise ValueError(f"Unknown interval: {interval}")

        df = self.stations()
        start_col = f"{interval}_start"
        end_col = f"{interval}_end"

        df = df.dropna(subset=[start_col, end_col]).copy()
        df["distance"] = haversine_km(coords[0], coords[1], df["lat"].values, df["lon"].values)

        keep = df["distance"] <= dist
        if starts_latest is not None:
            keep &= df[start_col] <= starts_latest
        if ends_earliest is not None:
            keep &= df[end_col] >= ends_earliest
        df = df[keep].sort_values("distance", kind="mergesort")

        logger.debug(f"{len(df)} stations within {dist} km of {coords}")

        return [
            Station(
                station_id=int(row["station_id"]),
                station_name=row["station_name"],
                prov=row.get("prov"),
                climate_id=row.get("climate_id"),
                lat=float(row["lat"]),
                lon=float(row["lon"]),
                elev=None if pd.isna(row.get("elev")) else float(row["elev"]),
                interval=interval,
                start=int(row[start_col]),
                end=int(row[end_col]),
                distance=float(row["distance"]),
            )
            for _, row in df.iterrows()
        ]


def check_freshness(
    catalog,
    today: Optional[date] = None,
    max_age_days: int = config.METADATA_MAX_AGE_DAYS,
) -> bool:
    """
    Refresh ``catalog`` when it is older than ``max_age_days``.

    A catalog with no timestamp counts as stale. Refresh errors propagate.

    Returns
    -------
    refreshed : bool
        Whether a refresh was triggered.
    """
    today = today or date.today()
    modified = catalog.get_metadata_timestamp()
    if modified is not None and (today - modified).days <= max_age_days:
        return False

    logger.info("The weather station database is outdated. Updating...")
    catalog.refresh_catalog(today=today)
    return True


def select_stations(
    catalog,
    lat: float,
    lon: float,
    interval: str,
    start: date,
    end: date,
    n: int = config.N_STATIONS,
) -> List[Station]:
    """
    The ``n`` nearest stations within the search radius covering
    ``start.year`` through ``end.year``. Returns fewer if fewer match.
    """
    stations = catalog.search_stations(
        coords=(lat, lon),
        dist=config.SEARCH_RADIUS_KM,
        interval=interval,
        starts_latest=start.year,
        ends_earliest=end.year,
    )
    selected = list(stations)[:n]
    logger.info(
        f"Selected {len(selected)} station(s): "
        + ", ".join(f"{s.station_id} ({s.distance:.1f} km)" for s in selected)
    )
    return selected
