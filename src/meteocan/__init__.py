"""
Nearest-station ECCC weather retrieval with random forest gap filling
"""

from .catalog import Station, StationCatalog, check_freshness, select_stations
from .cleaning import clean_observations
from .download import WeatherClient
from .imputer import RandomForestColumnImputer
from .pipeline import fetch_and_impute, impute_observations
from .recompose import recompose
from .schema import ObservationSchema

__version__ = "0.1.0"
__all__ = [
    "Station",
    "StationCatalog",
    "WeatherClient",
    "ObservationSchema",
    "RandomForestColumnImputer",
    "check_freshness",
    "select_stations",
    "clean_observations",
    "recompose",
    "fetch_and_impute",
    "impute_observations",
]
