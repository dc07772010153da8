"""
Error taxonomy of the analytics core.

Every error is raised synchronously by the stage that detects it. Stages never
return a half-populated result: they either complete or raise.

    AnalysisError
    ├── EmptyDatasetError
    ├── MissingColumnsError
    ├── InvalidThresholdError
    └── SegmentationError
        ├── InsufficientDimensionsError
        ├── DegenerateColumnError
        └── InvalidClusterCountError

Empty mining results (no frequent itemsets, no rules) are NOT errors.
"""

from __future__ import annotations

from typing import Sequence


class AnalysisError(Exception):
    """Base class for all errors raised by the analytics core."""


class EmptyDatasetError(AnalysisError):
    """Cleaning left no usable rows; the pipeline must stop."""


class MissingColumnsError(AnalysisError, KeyError):
    """The input table lacks one or more required schema columns."""

    def __init__(self, missing: Sequence[str], available: Sequence[str]) -> None:
        self.missing = list(missing)
        self.available = list(available)
        super().__init__(
            f"Dataset is missing required columns: {self.missing}. "
            f"Available columns: {self.available[:50]}"
        )

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class InvalidThresholdError(AnalysisError, ValueError):
    """A support / confidence threshold is outside (0, 1]."""


class SegmentationError(AnalysisError):
    """Numeric data is unsuitable for PCA / K-Means. Mining may still proceed."""


class InsufficientDimensionsError(SegmentationError):
    """Fewer than two numeric columns (or rows) available for PCA."""


class DegenerateColumnError(SegmentationError):
    """A numeric column has zero variance and cannot be standardized."""

    def __init__(self, columns: Sequence[str]) -> None:
        self.columns = list(columns)
        super().__init__(
            f"Zero-variance numeric column(s) cannot be standardized: {self.columns}"
        )


class InvalidClusterCountError(SegmentationError, ValueError):
    """k is outside the valid bounds for the number of points."""
