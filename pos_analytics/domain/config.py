from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from pos_analytics.domain.errors import InvalidClusterCountError, InvalidThresholdError


@dataclass(frozen=True)
class Config:
    """
    Configuration object for one analysis run.

    A fresh Config is built by the caller for every invocation and passed,
    together with the raw dataset, into the pipeline entry points. It is
    frozen: use `Config.replace(...)` to derive a variant.
    """

    # -------------------------
    # Dataset schema
    # -------------------------
    col_payment_type: str = "paymentType"
    col_age: str = "age"
    col_city: str = "city"
    col_items: str = "items"
    col_total: str = "total"

    # optional: validated and used as a numeric feature only when present
    col_count: Optional[str] = "count"

    item_delimiter: str = ","

    # -------------------------
    # Cleaning rules
    # -------------------------
    outlier_col: str = "total"
    iqr_multiplier: float = 1.5

    # -------------------------
    # Clustering
    # -------------------------
    n_clusters: int = 3
    # bounds of the dashboard slider; the algorithm itself accepts 1..n_points
    min_clusters: int = 2
    max_clusters: int = 4
    kmeans_max_iter: int = 100
    random_state: Optional[int] = 42

    # -------------------------
    # Association rules
    # -------------------------
    min_support: float = 0.01
    min_confidence: float = 0.01
    max_rule_length: Optional[int] = None
    top_n_rules: int = 100

    # -------------------------
    # Summaries
    # -------------------------
    histogram_binwidth: float = 50.0

    # -------------------------
    # Runtime
    # -------------------------
    workers: int = 1

    def __post_init__(self) -> None:
        for name in ("min_support", "min_confidence"):
            value = getattr(self, name)
            if not 0.0 < value <= 1.0:
                raise InvalidThresholdError(f"{name} must be in (0, 1], got {value!r}")

        if not self.min_clusters <= self.n_clusters <= self.max_clusters:
            raise InvalidClusterCountError(
                f"n_clusters must be in [{self.min_clusters}, {self.max_clusters}], "
                f"got {self.n_clusters}"
            )

        if self.kmeans_max_iter < 1:
            raise ValueError("kmeans_max_iter must be >= 1")
        if self.iqr_multiplier < 0:
            raise ValueError("iqr_multiplier must be >= 0")
        if self.histogram_binwidth <= 0:
            raise ValueError("histogram_binwidth must be > 0")
        if self.workers < 1:
            raise ValueError("workers must be >= 1")

    @property
    def required_columns(self) -> Tuple[str, ...]:
        return (
            self.col_payment_type,
            self.col_age,
            self.col_city,
            self.col_items,
            self.col_total,
        )

    @property
    def numeric_columns(self) -> Tuple[str, ...]:
        """Numeric schema columns, optional `count` included."""
        cols = (self.col_age, self.col_total)
        if self.col_count:
            cols = cols + (self.col_count,)
        return cols

    @property
    def categorical_columns(self) -> Tuple[str, ...]:
        return (self.col_payment_type, self.col_city, self.col_items)

    def replace(self, **changes) -> "Config":
        return replace(self, **changes)
