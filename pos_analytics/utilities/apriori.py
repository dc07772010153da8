# pos_analytics/utilities/apriori.py
from __future__ import annotations

from collections import Counter
from concurrent.futures import ProcessPoolExecutor
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from pos_analytics.domain.errors import InvalidThresholdError

ITEMSET_COLUMNS = ["support", "itemsets", "count", "length"]

# Itemsets are handled internally as sorted tuples of integer item ids; a
# transaction (and a candidate) is also kept as a bitmask over those ids.
IdSet = Tuple[int, ...]


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _check_threshold(name: str, value: float) -> None:
    if not 0.0 < value <= 1.0:
        raise InvalidThresholdError(f"{name} must be in (0, 1], got {value!r}")


def _encode(transactions: Sequence[Iterable[str]]) -> Tuple[List[str], List[int]]:
    """
    Map tokens to integer ids (sorted token order) and transactions to bitmasks.
    """
    baskets = [frozenset(t) for t in transactions]
    vocabulary = sorted(set().union(*baskets)) if baskets else []
    ids = {item: i for i, item in enumerate(vocabulary)}

    masks: List[int] = []
    for basket in baskets:
        m = 0
        for item in basket:
            m |= 1 << ids[item]
        masks.append(m)
    return vocabulary, masks


def _mask(itemset: IdSet) -> int:
    m = 0
    for i in itemset:
        m |= 1 << i
    return m


def _generate_candidates(frequent: Sequence[IdSet]) -> List[IdSet]:
    """
    Join frequent (L-1)-itemsets sharing their first L-2 ids, then prune every
    candidate that has an infrequent (L-1)-subset.
    """
    prev = sorted(frequent)
    if not prev:
        return []
    prev_set = set(prev)
    size = len(prev[0]) + 1

    candidates: List[IdSet] = []
    for i in range(len(prev)):
        a = prev[i]
        for j in range(i + 1, len(prev)):
            b = prev[j]
            # prev is sorted, so once prefixes differ no later b can match
            if a[:-1] != b[:-1]:
                break
            cand = a + (b[-1],)
            if all(sub in prev_set for sub in combinations(cand, size - 1)):
                candidates.append(cand)
    return candidates


def _count_batch(transaction_masks: Sequence[int], candidate_masks: Sequence[int]) -> List[int]:
    counts = [0] * len(candidate_masks)
    for t in transaction_masks:
        for idx, c in enumerate(candidate_masks):
            if t & c == c:
                counts[idx] += 1
    return counts


def _count_support(
    transaction_masks: Sequence[int],
    candidate_masks: Sequence[int],
    *,
    workers: int,
) -> List[int]:
    """
    Count, for each candidate, the transactions containing it.

    With workers > 1 the transactions are split into contiguous batches counted
    in a process pool; batch counts are summed so the result does not depend on
    the number of workers.
    """
    if workers <= 1 or len(transaction_masks) < 2 * workers:
        return _count_batch(transaction_masks, candidate_masks)

    size = -(-len(transaction_masks) // workers)
    batches = [transaction_masks[i:i + size] for i in range(0, len(transaction_masks), size)]

    totals = [0] * len(candidate_masks)
    with ProcessPoolExecutor(max_workers=workers) as ex:
        for partial in ex.map(_count_batch, batches, [candidate_masks] * len(batches)):
            for idx, value in enumerate(partial):
                totals[idx] += value
    return totals


def _empty_itemsets() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "support": pd.Series(dtype=float),
            "itemsets": pd.Series(dtype=object),
            "count": pd.Series(dtype=int),
            "length": pd.Series(dtype=int),
        },
        columns=ITEMSET_COLUMNS,
    )


# -----------------------------------------------------------------------------
# Public API
# -----------------------------------------------------------------------------
def frequent_itemsets(
    transactions: Sequence[Iterable[str]],
    min_support: float,
    *,
    max_len: Optional[int] = None,
    workers: int = 1,
) -> pd.DataFrame:
    """
    Mine every itemset with support >= min_support (level-wise Apriori).

    Support is always `count / len(transactions)`, with the same denominator
    for the whole run. A threshold too strict for any item yields an empty
    DataFrame, not an error.

    Returns a DataFrame with columns:
      - support: float
      - itemsets: frozenset of item tokens
      - count: number of transactions containing the itemset
      - length: itemset size
    ordered by length, then support (descending), then sorted tokens.
    """
    _check_threshold("min_support", min_support)
    if max_len is not None and max_len < 1:
        raise ValueError("max_len must be >= 1")

    n_transactions = len(transactions)
    if n_transactions == 0:
        return _empty_itemsets()

    vocabulary, masks = _encode(transactions)

    found: Dict[IdSet, int] = {}

    # Level 1: plain counting
    item_counts: Counter = Counter()
    for m in masks:
        while m:
            low = m & -m
            item_counts[low.bit_length() - 1] += 1
            m ^= low
    level = sorted(
        (i,) for i, c in item_counts.items() if c / n_transactions >= min_support
    )
    for itemset in level:
        found[itemset] = item_counts[itemset[0]]

    size = 1
    while level and (max_len is None or size < max_len):
        size += 1
        candidates = _generate_candidates(level)
        if not candidates:
            break
        counts = _count_support(masks, [_mask(c) for c in candidates], workers=workers)

        level = []
        for cand, count in zip(candidates, counts):
            if count / n_transactions >= min_support:
                found[cand] = count
                level.append(cand)

    if not found:
        return _empty_itemsets()

    rows = []
    for ids, count in found.items():
        tokens = tuple(vocabulary[i] for i in ids)
        rows.append((len(ids), -count, tokens, count))
    rows.sort()

    return pd.DataFrame(
        {
            "support": [c / n_transactions for _, _, _, c in rows],
            "itemsets": [frozenset(tokens) for _, _, tokens, _ in rows],
            "count": [c for _, _, _, c in rows],
            "length": [length for length, _, _, _ in rows],
        },
        columns=ITEMSET_COLUMNS,
    )


def support_map(itemsets: pd.DataFrame) -> Dict[frozenset, float]:
    """Itemset -> support lookup built from a `frequent_itemsets` result."""
    return dict(zip(itemsets["itemsets"], itemsets["support"]))
