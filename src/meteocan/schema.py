"""
Typed column schema for observation tables.

Splits a cleaned observation table into predictor keys, constant station
attributes, candidate imputation targets and non-numeric attributes.
"""

from dataclasses import dataclass
from typing import List, Tuple

import pandas as pd

KEY_COLUMNS = ("station_id", "time_id")
CONSTANT_COLUMNS = ("lat", "lon", "elev")


def is_numeric_column(series: pd.Series) -> bool:
    """Numeric measurement columns; booleans count as attributes."""
    return pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)


@dataclass(frozen=True)
class ObservationSchema:
    """
    Column roles of an observation table.

    Parameters
    ----------
    keys : tuple of str
        Predictor and join columns (``station_id``, ``time_id``).
    constants : tuple of str
        Numeric station constants present in the table, never modelled.
    targets : tuple of str
        Numeric columns that are candidates for imputation.
    attributes : tuple of str
        Non-numeric columns (dates, names, identifiers).
    """

    keys: Tuple[str, ...] = KEY_COLUMNS
    constants: Tuple[str, ...] = ()
    targets: Tuple[str, ...] = ()
    attributes: Tuple[str, ...] = ()

    @property
    def numeric_columns(self) -> List[str]:
        return list(self.keys) + list(self.targets)

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "ObservationSchema":
        """
        Derive the schema of a cleaned observation table.

        Parameters
        ----------
        df : pd.DataFrame
            Table holding at least the key columns.

        Returns
        -------
        schema : ObservationSchema
        """
        missing = [col for col in KEY_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Observation table lacks key columns: {missing}")

        constants = []
        targets = []
        attributes = []
        for col in df.columns:
            if col in KEY_COLUMNS:
                continue
            if col in CONSTANT_COLUMNS:
                constants.append(col)
            elif is_numeric_column(df[col]):
                targets.append(col)
            else:
                attributes.append(col)

        return cls(
            keys=KEY_COLUMNS,
            constants=tuple(constants),
            targets=tuple(targets),
            attributes=tuple(attributes),
        )

    def numeric_view(self, df: pd.DataFrame) -> pd.DataFrame:
        """Project ``df`` to the key and target columns."""
        return df[self.numeric_columns].copy()
