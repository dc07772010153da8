# pos_analytics/utilities/rules.py
from __future__ import annotations

from itertools import combinations
from typing import Dict, List, Optional, Tuple

import pandas as pd

from pos_analytics.domain.errors import InvalidThresholdError
from pos_analytics.utilities.apriori import support_map

RULE_COLUMNS = [
    "antecedents",
    "consequents",
    "antecedent support",
    "consequent support",
    "support",
    "confidence",
    "lift",
    "count",
]

RANK_METRICS = ("confidence", "support", "lift")


def _empty_rules() -> pd.DataFrame:
    return pd.DataFrame({c: pd.Series(dtype=object) for c in RULE_COLUMNS}, columns=RULE_COLUMNS)


def _token_key(itemset: frozenset) -> Tuple[str, ...]:
    return tuple(sorted(itemset))


def association_rules(itemsets: pd.DataFrame, min_confidence: float) -> pd.DataFrame:
    """
    Derive association rules from a `frequent_itemsets` result.

    For each frequent itemset I with |I| >= 2, every non-empty proper subset A
    is an antecedent and C = I - A the consequent:

      support    = support(I)
      confidence = support(I) / support(A)
      lift       = confidence / support(C)

    Rules with confidence >= min_confidence are kept, one row per
    (antecedents, consequents) pair. No rule passing -> empty DataFrame.
    """
    if not 0.0 < min_confidence <= 1.0:
        raise InvalidThresholdError(f"min_confidence must be in (0, 1], got {min_confidence!r}")

    if itemsets is None or itemsets.empty:
        return _empty_rules()

    supports = support_map(itemsets)
    counts: Dict[frozenset, int] = dict(zip(itemsets["itemsets"], itemsets["count"]))

    seen = set()
    rows: List[dict] = []
    for itemset, sup in supports.items():
        if len(itemset) < 2:
            continue
        tokens = _token_key(itemset)
        for r in range(1, len(tokens)):
            for ante_tokens in combinations(tokens, r):
                antecedent = frozenset(ante_tokens)
                consequent = itemset - antecedent
                key = (antecedent, consequent)
                if key in seen:
                    continue

                # anti-monotonicity guarantees both subsets are frequent
                ante_sup = supports[antecedent]
                cons_sup = supports[consequent]
                confidence = sup / ante_sup
                if confidence < min_confidence:
                    continue

                seen.add(key)
                rows.append(
                    {
                        "antecedents": antecedent,
                        "consequents": consequent,
                        "antecedent support": ante_sup,
                        "consequent support": cons_sup,
                        "support": sup,
                        "confidence": confidence,
                        "lift": confidence / cons_sup,
                        "count": counts[itemset],
                    }
                )

    if not rows:
        return _empty_rules()
    return pd.DataFrame(rows, columns=RULE_COLUMNS)


def rank_rules(rules: pd.DataFrame, by: str = "confidence", top_n: Optional[int] = 100) -> pd.DataFrame:
    """
    Sort rules by `by` (descending) and keep the first `top_n`.

    Ties are broken by the antecedent's sorted tokens, then the consequent's,
    so the ranking is fully deterministic.
    """
    if by not in RANK_METRICS:
        raise ValueError(f"Unsupported ranking metric '{by}'. Use one of {RANK_METRICS}.")
    if rules is None or rules.empty:
        return _empty_rules()

    metric = rules[by].tolist()
    ante = [_token_key(a) for a in rules["antecedents"]]
    cons = [_token_key(c) for c in rules["consequents"]]

    order = sorted(range(len(rules)), key=lambda i: (-metric[i], ante[i], cons[i]))
    if top_n is not None:
        order = order[:top_n]

    return rules.iloc[order].reset_index(drop=True)


def format_itemset(itemset: frozenset) -> str:
    return "{" + ",".join(_token_key(itemset)) + "}"


def format_rules(rules: pd.DataFrame) -> str:
    """
    Render rules as text, one per line:

        {bread} => {milk}  support=0.500 confidence=0.667 lift=0.889 count=2
    """
    if rules is None or rules.empty:
        return ""

    lines = []
    width = max(len(format_itemset(a)) for a in rules["antecedents"])
    for row in rules.to_dict("records"):
        lhs = format_itemset(row["antecedents"])
        rhs = format_itemset(row["consequents"])
        lines.append(
            f"{lhs:<{width}} => {rhs}  "
            f"support={row['support']:.3f} confidence={row['confidence']:.3f} "
            f"lift={row['lift']:.3f} count={int(row['count'])}"
        )
    return "\n".join(lines)
