from __future__ import annotations

from typing import Tuple
import logging

import numpy as np
import pandas as pd

from sklearn.metrics import silhouette_score

from pos_analytics.domain.footprint import AnalysisFootprint
from pos_analytics.pipelines.cleaning import Step
from pos_analytics.utilities.kmeans import lloyd_kmeans
from pos_analytics.utilities.pca import reduce_to_2d

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------
def build_numeric_matrix(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Numeric-only projection of the clean table (age, total, count when
    present), row-aligned with fp.clean_df.
    """
    cfg = fp.config
    df = fp.clean_df
    if df is None:
        raise ValueError("fp.clean_df is None. Run cleaning pipeline first.")

    cols = [c for c in cfg.numeric_columns if c in df.columns]
    fp.numeric_matrix = df.loc[:, cols].astype(float)
    fp.add_extra("numeric_columns", cols)
    return fp


def apply_pca(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Standardize the numeric matrix and project it onto PC1 / PC2.
    """
    cfg = fp.config
    X = fp.numeric_matrix
    if X is None:
        raise ValueError("numeric_matrix is None. Run build_numeric_matrix first.")

    result = reduce_to_2d(X, random_state=cfg.random_state)

    fp.pca_embeddings = result.points
    fp.explained_variance_ratio = result.explained_variance_ratio
    fp.metrics["pca_explained_variance"] = float(np.sum(result.explained_variance_ratio))
    log.info(
        "PCA done: explained variance ratio PC1=%.3f PC2=%.3f",
        *result.explained_variance_ratio,
    )
    return fp


def cluster_points(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Cluster the PCA points with K-Means (Lloyd).
    """
    cfg = fp.config
    X = fp.pca_embeddings
    if X is None:
        raise ValueError("pca_embeddings is None. Run apply_pca first.")

    result = lloyd_kmeans(
        X,
        cfg.n_clusters,
        random_state=cfg.random_state,
        max_iter=cfg.kmeans_max_iter,
    )

    fp.cluster_labels = result.labels
    fp.centroids = result.centroids
    fp.metrics["kmeans_inertia"] = result.inertia
    fp.metrics["kmeans_iterations"] = result.n_iter
    fp.metrics["kmeans_converged"] = result.converged

    # Quality metric
    n_labels = len(set(result.labels.tolist()))
    if 2 <= n_labels <= len(X) - 1:
        fp.metrics["silhouette"] = float(silhouette_score(X, result.labels))

    if not result.converged:
        log.warning("K-Means stopped after max_iter=%d without converging", cfg.kmeans_max_iter)
    log.info("K-Means done: k=%d, iterations=%d", cfg.n_clusters, result.n_iter)
    return fp


def attach_clusters(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Build the caller-facing tables:
      - clustered_df: clean rows + `cluster`
      - reduced_df: PC1, PC2, cluster (scatter-plot input)
    """
    if fp.clean_df is None or fp.pca_embeddings is None or fp.cluster_labels is None:
        raise ValueError("Segmentation artifacts missing. Run apply_pca and cluster_points first.")

    clustered = fp.clean_df.copy()
    clustered["cluster"] = fp.cluster_labels

    reduced = pd.DataFrame(fp.pca_embeddings, columns=["PC1", "PC2"], index=fp.clean_df.index)
    reduced["cluster"] = fp.cluster_labels

    fp.clustered_df = clustered
    fp.reduced_df = reduced
    fp.add_extra("cluster_sizes", np.bincount(fp.cluster_labels, minlength=fp.config.n_clusters).tolist())
    return fp


SEGMENTATION_STEPS: Tuple[Step, ...] = (
    build_numeric_matrix,
    apply_pca,
    cluster_points,
    attach_clusters,
)
