"""
Recombination of imputed numeric columns with the non-numeric attributes.
"""

import logging
from typing import Optional

import pandas as pd

from . import config
from .schema import ObservationSchema

logger = logging.getLogger(__name__)


def recompose(
    observations: pd.DataFrame,
    imputed: pd.DataFrame,
    reference_station_id: int,
    mode: str = "per_station",
    schema: Optional[ObservationSchema] = None,
) -> pd.DataFrame:
    """
    Join non-numeric attributes back onto the imputed numeric table.

    Parameters
    ----------
    observations : pd.DataFrame
        Cleaned observation table (before imputation).
    imputed : pd.DataFrame
        Imputed table holding at least the key and target columns.
    reference_station_id : int
        The nearest station. Used only when ``mode='reference'``.
    mode : str, default='per_station'
        Where attributes (and lat/lon/elev) come from:
        - 'per_station': each row keeps its own station's attributes.
        - 'reference': attributes come from the reference station's rows
          only; rows of other stations get missing attributes.
    schema : ObservationSchema, optional
        Column roles; derived from ``observations`` when omitted.

    Returns
    -------
    result : pd.DataFrame
        One row per (station_id, time_id) of ``imputed``.
    """
    if mode not in config.RECOMPOSE_MODES:
        raise ValueError(f"Unknown recompose mode: {mode}")

    schema = schema or ObservationSchema.from_frame(observations)
    keys = list(schema.keys)
    context_cols = list(schema.attributes) + keys + list(schema.constants)

    context = observations[context_cols]
    if mode == "reference":
        context = context[context["station_id"] == reference_station_id]
        logger.debug(
            f"Attributes taken from station {reference_station_id} ({len(context)} rows)"
        )

    result = imputed[schema.numeric_columns].merge(context, on=keys, how="left")
    return result[context_cols + list(schema.targets)]
