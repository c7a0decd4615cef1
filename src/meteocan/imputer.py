"""
Random Forest Imputer for Multi-Station Weather Observations

This module fills missing numeric readings with one random forest per
column, trained on station identity and the per-station time index.
"""

import hashlib
import logging
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
from sklearn.ensemble import RandomForestRegressor

from . import config
from .schema import ObservationSchema

logger = logging.getLogger(__name__)


def stable_hash(name: str) -> int:
    """Integer hash of a column name that is stable across runs."""
    return int(hashlib.md5(name.encode()).hexdigest(), 16) % 10000


class RandomForestColumnImputer:
    """
    Column-wise random forest imputer for observation tables.

    Each candidate column gets its own :class:`RandomForestRegressor`
    trained on the rows where the column is present, with ``station_id``
    and ``time_id`` as the only predictors. Predictions replace missing
    entries only; observed values are never changed.

    Parameters
    ----------
    n_estimators : int, default=5000
        Number of trees per column model.
    max_features : int, default=2
        Candidate predictors per split, clamped to the number of
        predictor columns.
    min_samples_leaf : int, default=5
        Minimum rows per leaf (the terminal node size of the forests).
    min_distinct : int, default=5
        Columns with fewer distinct present values are left as they are.
    station_encoding : str, default='numeric'
        How ``station_id`` enters the model:
        - 'numeric': the raw identifier as a single ordinal predictor.
        - 'onehot': one indicator column per station seen during fit.
    random_state : int, optional
        Seed for the forests. Each column derives its own seed from this
        value and the column name, so results do not depend on column
        order.
    n_jobs : int, optional
        Parallel jobs used by each forest.

    Attributes
    ----------
    models_ : dict
        Fitted forest per imputed column.
    imputed_columns_ : list of str
        Columns that passed the eligibility check.
    skipped_columns_ : list of str
        Columns left unimputed for lack of distinct values.
    n_filled_ : dict
        Number of entries filled per column by the last ``transform``.

    Examples
    --------
    >>> imputer = RandomForestColumnImputer(n_estimators=100, random_state=0)
    >>> filled = imputer.fit_transform(observations)
    """

    def __init__(
        self,
        n_estimators: int = config.N_TREES,
        max_features: int = config.MAX_FEATURES,
        min_samples_leaf: int = config.MIN_SAMPLES_LEAF,
        min_distinct: int = config.MIN_DISTINCT_VALUES,
        station_encoding: str = "numeric",
        random_state: Optional[int] = None,
        n_jobs: Optional[int] = None,
    ):
        self.n_estimators = n_estimators
        self.max_features = max_features
        self.min_samples_leaf = min_samples_leaf
        self.min_distinct = min_distinct
        self.station_encoding = station_encoding
        self.random_state = random_state
        self.n_jobs = n_jobs
        self._fitted = False
        self._stations = None
        self.schema_ = None
        self.models_: Dict[str, RandomForestRegressor] = {}
        self.imputed_columns_: List[str] = []
        self.skipped_columns_: List[str] = []
        self.n_filled_: Dict[str, int] = {}

    def _predictors(self, df: pd.DataFrame) -> np.ndarray:
        """Design matrix built from ``station_id`` and ``time_id``."""
        time_id = df["time_id"].to_numpy(dtype=np.float64)
        if self.station_encoding == "numeric":
            station = df["station_id"].to_numpy(dtype=np.float64)
            return np.column_stack([station, time_id])

        indicators = [
            (df["station_id"] == station).to_numpy(dtype=np.float64)
            for station in self._stations
        ]
        return np.column_stack(indicators + [time_id])

    def _seed(self, column: str) -> Optional[int]:
        if self.random_state is None:
            return None
        return (self.random_state + stable_hash(column)) % (2**32)

    def fit(
        self, df: pd.DataFrame, schema: Optional[ObservationSchema] = None
    ) -> "RandomForestColumnImputer":
        """
        Train one forest per eligible column.

        Parameters
        ----------
        df : pd.DataFrame
            Cleaned observation table with ``station_id`` and ``time_id``.
        schema : ObservationSchema, optional
            Column roles; derived from ``df`` when omitted.

        Returns
        -------
        self : RandomForestColumnImputer
            Returns self.
        """
        if self.station_encoding not in config.STATION_ENCODINGS:
            raise ValueError(f"Unknown station_encoding: {self.station_encoding}")

        schema = schema or ObservationSchema.from_frame(df)
        self.schema_ = schema
        self._stations = sorted(df["station_id"].dropna().unique())
        self.models_ = {}
        self.imputed_columns_ = []
        self.skipped_columns_ = []

        X = self._predictors(df)
        max_features = min(self.max_features, X.shape[1])

        for column in schema.targets:
            values = df[column]
            n_distinct = values.dropna().nunique()
            if n_distinct < self.min_distinct:
                logger.info(f"Skipping {column}: {n_distinct} distinct values")
                self.skipped_columns_.append(column)
                continue

            present = values.notna().to_numpy()
            logger.debug(
                f"Training {self.n_estimators} trees for {column} on {present.sum()} rows"
            )
            model = RandomForestRegressor(
                n_estimators=self.n_estimators,
                max_features=max_features,
                min_samples_leaf=self.min_samples_leaf,
                random_state=self._seed(column),
                n_jobs=self.n_jobs,
            )
            model.fit(X[present], values.to_numpy(dtype=np.float64, na_value=np.nan)[present])

            self.models_[column] = model
            self.imputed_columns_.append(column)

        self._fitted = True
        return self

    def transform(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Fill missing entries of the fitted columns with model predictions.

        Parameters
        ----------
        df : pd.DataFrame
            Observation table with the columns seen during ``fit``.

        Returns
        -------
        df_imputed : pd.DataFrame
            Copy of ``df`` with missing values of imputed columns filled.
        """
        if not self._fitted:
            raise ValueError("Imputer has not been fitted. Call 'fit' first.")

        df_imputed = df.copy()
        self.n_filled_ = {}

        if not self.models_:
            return df_imputed

        X = self._predictors(df_imputed)

        for column, model in self.models_.items():
            missing = df_imputed[column].isna().to_numpy()
            self.n_filled_[column] = int(missing.sum())
            if not missing.any():
                continue

            predictions = model.predict(X)
            observed = df_imputed[column].to_numpy(dtype=np.float64, na_value=np.nan)
            filled = np.where(missing, predictions, observed)
            df_imputed[column] = filled

            logger.info(f"Imputed {missing.sum()} missing value(s) in {column}")

        return df_imputed

    def fit_transform(
        self, df: pd.DataFrame, schema: Optional[ObservationSchema] = None
    ) -> pd.DataFrame:
        """
        Fit the imputer and fill ``df`` in one step.

        Parameters
        ----------
        df : pd.DataFrame
            Cleaned observation table.
        schema : ObservationSchema, optional
            Column roles; derived from ``df`` when omitted.

        Returns
        -------
        df_imputed : pd.DataFrame
            Data with missing values imputed.
        """
        return self.fit(df, schema).transform(df)

    def get_params(self) -> dict:
        """
        Get parameters of the imputer.

        Returns
        -------
        params : dict
            Dictionary of parameters.
        """
        return {
            "n_estimators": self.n_estimators,
            "max_features": self.max_features,
            "min_samples_leaf": self.min_samples_leaf,
            "min_distinct": self.min_distinct,
            "station_encoding": self.station_encoding,
            "random_state": self.random_state,
            "n_jobs": self.n_jobs,
        }

    def set_params(self, **params) -> "RandomForestColumnImputer":
        """
        Set parameters of the imputer.

        Parameters
        ----------
        **params : dict
            Parameters to set.

        Returns
        -------
        self : RandomForestColumnImputer
            Returns self.
        """
        for key, value in params.items():
            if hasattr(self, key):
                setattr(self, key, value)
        return self
