"""
Cleaning of downloaded observation tables.
"""

import logging

import pandas as pd

from . import config

logger = logging.getLogger(__name__)


def remove_empty_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Drop columns that are missing in every row."""
    empty = [col for col in df.columns if df[col].isna().all()]
    if empty:
        logger.debug(f"Dropping empty columns: {empty}")
    return df.drop(columns=empty)


def drop_flag_columns(df: pd.DataFrame, suffix: str = config.FLAG_SUFFIX) -> pd.DataFrame:
    """Drop quality-flag columns (names ending in ``suffix``)."""
    flags = [col for col in df.columns if str(col).endswith(suffix)]
    return df.drop(columns=flags)


def add_time_id(df: pd.DataFrame, group: str = "station_id") -> pd.DataFrame:
    """
    Number each station's rows 1, 2, 3, ... in their current order.

    The sequence restarts for every station.
    """
    df = df.copy()
    df["time_id"] = df.groupby(group, sort=False).cumcount() + 1
    return df


def clean_observations(df: pd.DataFrame) -> pd.DataFrame:
    """Drop empty and flag columns, then add ``time_id``."""
    n_cols = df.shape[1]
    df = remove_empty_columns(df)
    df = drop_flag_columns(df)
    df = add_time_id(df)
    logger.info(f"Cleaned observations: {len(df)} rows, {n_cols} -> {df.shape[1] - 1} columns")
    return df
