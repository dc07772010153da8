# pos_analytics/utilities/pca.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Union

import numpy as np
import pandas as pd

from sklearn.decomposition import PCA
from sklearn.preprocessing import StandardScaler

from pos_analytics.domain.errors import DegenerateColumnError, InsufficientDimensionsError


@dataclass(frozen=True)
class PCAResult:
    points: np.ndarray                    # (n_rows, 2): PC1, PC2
    explained_variance_ratio: List[float]
    components: np.ndarray                # (2, n_columns)


def _as_frame(matrix: Union[pd.DataFrame, np.ndarray]) -> pd.DataFrame:
    if isinstance(matrix, pd.DataFrame):
        return matrix
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2:
        raise InsufficientDimensionsError(f"Expected a 2-D matrix, got shape {arr.shape}")
    return pd.DataFrame(arr, columns=[f"x{i}" for i in range(arr.shape[1])])


def reduce_to_2d(
    matrix: Union[pd.DataFrame, np.ndarray],
    *,
    random_state: Optional[int] = None,
) -> PCAResult:
    """
    Project a numeric matrix onto its top-2 principal components.

    Columns are standardized (zero mean, unit variance) before the
    decomposition, so the components are those of the correlation structure.
    The sign of each component follows scikit-learn's deterministic SVD sign
    flip and is therefore the same for every row and every repeated call.

    Raises:
      InsufficientDimensionsError: fewer than 2 columns or 2 rows
      DegenerateColumnError: a column with zero variance
    """
    df = _as_frame(matrix)
    n_rows, n_cols = df.shape

    # shape checks come before any numeric work
    if n_cols < 2:
        raise InsufficientDimensionsError(
            f"PCA needs at least two numeric columns, got {n_cols}: {list(df.columns)}"
        )
    if n_rows < 2:
        raise InsufficientDimensionsError(f"PCA needs at least two rows, got {n_rows}")

    X = df.to_numpy(dtype=float)

    flat = [str(col) for col, span in zip(df.columns, np.ptp(X, axis=0)) if span == 0]
    if flat:
        raise DegenerateColumnError(flat)

    X_scaled = StandardScaler().fit_transform(X)

    pca = PCA(n_components=2, svd_solver="full", random_state=random_state)
    points = pca.fit_transform(X_scaled)

    return PCAResult(
        points=points,
        explained_variance_ratio=pca.explained_variance_ratio_.tolist(),
        components=pca.components_,
    )
