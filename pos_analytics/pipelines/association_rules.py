from __future__ import annotations

from typing import Tuple
import logging

from pos_analytics.domain.footprint import AnalysisFootprint
from pos_analytics.pipelines.cleaning import Step
from pos_analytics.utilities.apriori import frequent_itemsets
from pos_analytics.utilities.items import build_transactions
from pos_analytics.utilities.rules import association_rules, rank_rules

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------
def build_basket_transactions(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    One token set per clean row, parsed from the item-list column.
    """
    cfg = fp.config
    if fp.clean_df is None:
        raise ValueError("fp.clean_df is None. Run cleaning pipeline first.")

    fp.transactions = build_transactions(fp.clean_df[cfg.col_items], cfg.item_delimiter)
    fp.add_extra("transactions_count", len(fp.transactions))
    fp.add_extra("unique_items", len(set().union(*fp.transactions)) if fp.transactions else 0)
    return fp


def mine_frequent_itemsets(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Mine frequent itemsets with Apriori.
    """
    cfg = fp.config
    if fp.transactions is None:
        raise ValueError("transactions not found. Run build_basket_transactions first.")

    freq_items = frequent_itemsets(
        fp.transactions,
        cfg.min_support,
        max_len=cfg.max_rule_length,
        workers=cfg.workers,
    )

    fp.frequent_itemsets = freq_items
    fp.add_extra("frequent_itemsets_count", int(len(freq_items)))
    log.info("Apriori: %d frequent itemset(s) at min_support=%s", len(freq_items), cfg.min_support)
    return fp


def generate_rules(fp: AnalysisFootprint) -> AnalysisFootprint:
    """
    Derive association rules and rank them by confidence and by support.
    """
    cfg = fp.config
    if fp.frequent_itemsets is None:
        raise ValueError("frequent_itemsets not found. Run mine_frequent_itemsets first.")

    rules = association_rules(fp.frequent_itemsets, cfg.min_confidence)

    fp.rules = rules
    fp.rules_by_confidence = rank_rules(rules, by="confidence", top_n=cfg.top_n_rules)
    fp.rules_by_support = rank_rules(rules, by="support", top_n=cfg.top_n_rules)
    fp.add_extra("rules_count", int(len(rules)))

    if rules.empty:
        log.info("No rules at min_support=%s min_confidence=%s", cfg.min_support, cfg.min_confidence)
    else:
        log.info("Generated %d rule(s) at min_confidence=%s", len(rules), cfg.min_confidence)
    return fp


BASKET_STEPS: Tuple[Step, ...] = (
    build_basket_transactions,
    mine_frequent_itemsets,
    generate_rules,
)
