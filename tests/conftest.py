from __future__ import annotations

from typing import Dict, List

import pandas as pd
import pytest

from pos_analytics.domain.config import Config

BASKETS = [
    "milk,bread",
    "milk,bread,eggs",
    "bread,eggs",
    "milk",
    "coffee,sugar",
    "coffee,milk",
]


def make_rows(n: int = 40) -> List[Dict]:
    """
    Two spending groups: even rows are young / low spend, odd rows are
    older / high spend. Every row is distinct and none is an outlier.
    """
    rows = []
    for i in range(n):
        young = i % 2 == 0
        rows.append(
            {
                "paymentType": "Cash" if i % 3 else "Credit",
                "age": 20 + (i % 5) if young else 55 + (i % 7),
                "city": ["Cairo", "Giza", "Alex"][i % 3],
                "items": BASKETS[i % len(BASKETS)],
                "total": 50.0 + i if young else 200.0 + i,
                "count": float(1 + i % 3) if young else float(4 + i % 3),
            }
        )
    return rows


@pytest.fixture
def config() -> Config:
    return Config(n_clusters=2, min_support=0.1, min_confidence=0.3, random_state=7)


@pytest.fixture
def store_df() -> pd.DataFrame:
    return pd.DataFrame(make_rows())


@pytest.fixture
def messy_df() -> pd.DataFrame:
    """
    Expected survivors of cleaning: rows 0, 1, 5, 6 (in that order).
    """
    return pd.DataFrame(
        [
            {"paymentType": "Cash", "age": 25, "city": "Cairo", "items": " milk, bread ", "total": 120.0, "count": 2},
            {"paymentType": "Credit", "age": 40, "city": "Giza", "items": "milk,eggs", "total": 150.0, "count": 3},
            # duplicate of row 0
            {"paymentType": "Cash", "age": 25, "city": "Cairo", "items": " milk, bread ", "total": 120.0, "count": 2},
            # missing age
            {"paymentType": "Cash", "age": None, "city": "Alex", "items": "bread", "total": 90.0, "count": 1},
            # negative total
            {"paymentType": "Credit", "age": 33, "city": "Giza", "items": "eggs", "total": -5.0, "count": 1},
            {"paymentType": "Cash", "age": 51, "city": "Alex", "items": "bread,eggs", "total": 100.0, "count": 2},
            {"paymentType": "Credit", "age": 29, "city": "Cairo", "items": "milk", "total": 130.0, "count": 2},
            # outlier on total
            {"paymentType": "Cash", "age": 60, "city": "Giza", "items": "bread", "total": 5000.0, "count": 2},
            # unparseable age
            {"paymentType": "Credit", "age": "abc", "city": "Cairo", "items": "milk", "total": 110.0, "count": 1},
            # item list without tokens
            {"paymentType": "Cash", "age": 35, "city": "Alex", "items": " , ", "total": 110.0, "count": 1},
        ]
    )


@pytest.fixture
def example_transactions() -> List[frozenset]:
    return [
        frozenset({"milk", "bread"}),
        frozenset({"milk", "bread", "eggs"}),
        frozenset({"bread", "eggs"}),
        frozenset({"milk"}),
    ]
