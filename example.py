#!/usr/bin/env python3
"""
Example script demonstrating random forest gap filling of ECCC observations.

This script shows how to:
1. Check the station catalog and pick the nearest stations
2. Download daily observations
3. Impute missing values
4. Compare station encodings
"""

import sys
import os
import logging

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from meteocan import (
    StationCatalog,
    WeatherClient,
    check_freshness,
    fetch_and_impute,
    impute_observations,
    select_stations,
)
from meteocan.download import parse_date

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

# Ottawa, Canada
LAT = 45.4215
LON = -75.6972
START = "2018-02-01"
END = "2018-04-15"
RANDOM_SEED = 42


def main():
    """Run the imputation example."""
    print("=" * 60)
    print("Nearest-station weather retrieval with RF imputation")
    print("=" * 60)

    catalog = StationCatalog()
    client = WeatherClient(catalog=catalog)

    print("\n1. Checking the station catalog...")
    refreshed = check_freshness(catalog)
    print(f"   Catalog refreshed: {refreshed}")

    stations = select_stations(catalog, LAT, LON, "day", parse_date(START), parse_date(END))
    print(f"\n2. Nearest stations ({len(stations)}):")
    for station in stations:
        print(f"   {station.station_id:<8} {station.station_name:<30} {station.distance:6.1f} km")

    print("\n3. Downloading daily observations...")
    observations = client.weather_dl([s.station_id for s in stations], START, END, "day")
    n_missing = observations.select_dtypes("number").isna().sum().sum()
    print(f"   Rows: {len(observations)}, missing numeric values: {n_missing}")

    print("\n4. Imputing with both station encodings...")
    print("-" * 50)
    for encoding in ("numeric", "onehot"):
        result = impute_observations(
            observations,
            reference_station_id=stations[0].station_id,
            random_state=RANDOM_SEED,
            station_encoding=encoding,
            n_estimators=500,
        )
        remaining = result.select_dtypes("number").isna().sum().sum()
        print(f"   {encoding:<8} remaining missing numeric values: {remaining}")

    print("\n5. Full pipeline in one call...")
    weather = fetch_and_impute(
        LAT, LON, "day", START, END, catalog=catalog, client=client, random_state=RANDOM_SEED
    )
    print(weather.head())

    print("\n" + "=" * 60)
    print("Example completed successfully!")
    print("=" * 60)


if __name__ == "__main__":
    main()
