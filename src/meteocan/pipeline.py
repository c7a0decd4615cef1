"""
End-to-end retrieval and imputation of ECCC observations.
"""

import logging
from datetime import date
from typing import Optional

import pandas as pd

from . import config
from .catalog import StationCatalog, check_freshness, select_stations
from .cleaning import clean_observations
from .download import WeatherClient, check_interval, parse_date
from .imputer import RandomForestColumnImputer
from .recompose import recompose
from .schema import ObservationSchema

logger = logging.getLogger(__name__)


def check_options(station_encoding: str, attributes: str) -> None:
    """Reject unknown encodings and recomposition modes before any work is done."""
    if station_encoding not in config.STATION_ENCODINGS:
        raise ValueError(f"Unknown station_encoding: {station_encoding}")
    if attributes not in config.RECOMPOSE_MODES:
        raise ValueError(f"Unknown recompose mode: {attributes}")


def impute_observations(
    observations: pd.DataFrame,
    reference_station_id: int,
    random_state: Optional[int] = None,
    station_encoding: str = "numeric",
    attributes: str = "per_station",
    n_estimators: int = config.N_TREES,
    n_jobs: Optional[int] = None,
) -> pd.DataFrame:
    """
    Clean a downloaded observation table, impute it and join it back.

    Parameters
    ----------
    observations : pd.DataFrame
        Raw observations with one row per (station, timestamp).
    reference_station_id : int
        Nearest station, used by ``attributes='reference'``.
    random_state : int, optional
        Seed for the random forests.
    station_encoding : str, default='numeric'
        See :class:`RandomForestColumnImputer`.
    attributes : str, default='per_station'
        Recomposition mode, see :func:`meteocan.recompose.recompose`.
    n_estimators : int, default=5000
        Trees per column model.
    n_jobs : int, optional
        Parallel jobs per forest.

    Returns
    -------
    result : pd.DataFrame
    """
    check_options(station_encoding, attributes)

    cleaned = clean_observations(observations)
    schema = ObservationSchema.from_frame(cleaned)

    imputer = RandomForestColumnImputer(
        n_estimators=n_estimators,
        station_encoding=station_encoding,
        random_state=random_state,
        n_jobs=n_jobs,
    )
    imputed = imputer.fit_transform(schema.numeric_view(cleaned), schema)
    logger.info(
        f"Imputed columns: {imputer.imputed_columns_}; "
        f"skipped: {imputer.skipped_columns_}"
    )

    return recompose(cleaned, imputed, reference_station_id, mode=attributes, schema=schema)


def fetch_and_impute(
    lat: float,
    lon: float,
    interval: str = config.DEFAULT_INTERVAL,
    start=config.DEFAULT_START,
    end=config.DEFAULT_END,
    *,
    catalog=None,
    client=None,
    random_state: Optional[int] = None,
    station_encoding: str = "numeric",
    attributes: str = "per_station",
    n_estimators: int = config.N_TREES,
    n_jobs: Optional[int] = None,
    today: Optional[date] = None,
) -> pd.DataFrame:
    """
    Retrieve observations from the stations nearest to a point and fill
    their missing numeric values.

    Parameters
    ----------
    lat, lon : float
        Target coordinate in decimal degrees.
    interval : str, default='day'
        ``'day'`` or ``'hour'``.
    start, end : str or date, default='2018-02-01', '2018-04-15'
        Inclusive date range.
    catalog : StationCatalog, optional
        Station catalog; a default cached catalog is used when omitted.
    client : WeatherClient, optional
        Observation downloader; built on ``catalog`` when omitted.
    random_state : int, optional
        Seed for the random forests. Fix it for reproducible output.
    station_encoding : str, default='numeric'
        'numeric' or 'onehot' encoding of ``station_id``.
    attributes : str, default='per_station'
        'per_station' or 'reference' recomposition of non-numeric columns.
    n_estimators : int, default=5000
        Trees per column model.
    n_jobs : int, optional
        Parallel jobs per forest.
    today : date, optional
        Date used for the catalog freshness check.

    Returns
    -------
    result : pd.DataFrame
        Observations of up to 5 stations with missing values imputed.

    Examples
    --------
    >>> weather = fetch_and_impute(45.4215, -75.6972, random_state=42)
    """
    check_options(station_encoding, attributes)
    interval = check_interval(interval)
    start, end = parse_date(start), parse_date(end)
    if start > end:
        raise ValueError(f"start ({start}) is after end ({end})")

    catalog = catalog if catalog is not None else StationCatalog()
    client = client if client is not None else WeatherClient(catalog=catalog)

    check_freshness(catalog, today=today)

    stations = select_stations(catalog, lat, lon, interval, start, end)
    if not stations:
        raise ValueError(
            f"No {interval} stations within {config.SEARCH_RADIUS_KM} km of "
            f"({lat}, {lon}) covering {start.year}-{end.year}"
        )

    observations = client.weather_dl(
        [s.station_id for s in stations], start=start, end=end, interval=interval
    )

    return impute_observations(
        observations,
        reference_station_id=stations[0].station_id,
        random_state=random_state,
        station_encoding=station_encoding,
        attributes=attributes,
        n_estimators=n_estimators,
        n_jobs=n_jobs,
    )
