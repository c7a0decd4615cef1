"""
Configuration constants for meteocan.

All pipeline parameters are call-time arguments; the values here are the
defaults they fall back to.
"""

import os
from pathlib import Path

# ============================================================================
# STATION CATALOG
# ============================================================================

# ECCC station inventory, re-downloaded in full on refresh
STATION_INVENTORY_URL = (
    "https://collaboration.cmc.ec.gc.ca/cmc/climate/Get_More_Data_Plus_de_donnees/"
    "Station%20Inventory%20EN.csv"
)

# Catalog older than this (in days) is refreshed before searching
METADATA_MAX_AGE_DAYS = 90

# Search radius around the target coordinate, in km
SEARCH_RADIUS_KM = 200

# Number of nearest stations kept
N_STATIONS = 5

# ============================================================================
# OBSERVATIONS
# ============================================================================

BULK_DATA_URL = "https://climate.weather.gc.ca/climate_data/bulk_data_e.html"

INTERVALS = ("day", "hour")

# ECCC "timeframe" codes for the bulk data endpoint
TIMEFRAMES = {"hour": 1, "day": 2}

DEFAULT_INTERVAL = "day"
DEFAULT_START = "2018-02-01"
DEFAULT_END = "2018-04-15"

HTTP_TIMEOUT = 60

FLAG_SUFFIX = "_flag"

# ============================================================================
# IMPUTATION
# ============================================================================

# Columns with fewer distinct present values are not imputed
MIN_DISTINCT_VALUES = 5

N_TREES = 5000
MAX_FEATURES = 2
MIN_SAMPLES_LEAF = 5

STATION_ENCODINGS = ("numeric", "onehot")
RECOMPOSE_MODES = ("per_station", "reference")

# ============================================================================
# CACHE
# ============================================================================

CACHE_DIR_ENV = "METEOCAN_CACHE_DIR"


def cache_dir() -> Path:
    """Return the directory holding the cached station catalog."""
    env = os.environ.get(CACHE_DIR_ENV)
    if env:
        return Path(env)
    return Path.home() / ".cache" / "meteocan"
