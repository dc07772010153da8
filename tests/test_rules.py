from __future__ import annotations

import pytest

from pos_analytics.domain.errors import InvalidThresholdError
from pos_analytics.utilities.apriori import frequent_itemsets, support_map
from pos_analytics.utilities.rules import (
    RULE_COLUMNS,
    association_rules,
    format_rules,
    rank_rules,
)


@pytest.fixture
def example_itemsets(example_transactions):
    return frequent_itemsets(example_transactions, 0.5)


def _pairs(rules):
    return [
        (tuple(sorted(a)), tuple(sorted(c)))
        for a, c in zip(rules["antecedents"], rules["consequents"])
    ]


def test_milk_implies_bread_is_retained(example_itemsets):
    rules = association_rules(example_itemsets, 0.5)
    mask = [
        a == frozenset({"milk"}) and c == frozenset({"bread"})
        for a, c in zip(rules["antecedents"], rules["consequents"])
    ]
    row = rules[mask]
    assert len(row) == 1
    assert row["confidence"].iloc[0] == pytest.approx(0.5 / 0.75)
    assert row["support"].iloc[0] == pytest.approx(0.5)
    assert row["lift"].iloc[0] == pytest.approx((0.5 / 0.75) / 0.75)


def test_rule_invariants(example_itemsets):
    supports = support_map(example_itemsets)
    min_conf = 0.5
    rules = association_rules(example_itemsets, min_conf)

    assert list(rules.columns) == RULE_COLUMNS
    assert len(rules) == 4
    for row in rules.to_dict("records"):
        assert row["confidence"] >= min_conf
        assert not (row["antecedents"] & row["consequents"])
        assert row["support"] == supports[row["antecedents"] | row["consequents"]]


def test_rules_are_unique(example_itemsets):
    rules = association_rules(example_itemsets, 0.1)
    pairs = _pairs(rules)
    assert len(pairs) == len(set(pairs))


def test_three_item_itemset_gives_six_rules():
    transactions = [frozenset({"a", "b", "c"})] * 3
    rules = association_rules(frequent_itemsets(transactions, 0.5), 0.5)
    three = rules[rules["antecedents"].apply(len) + rules["consequents"].apply(len) == 3]
    assert len(three) == 6


def test_rank_by_confidence_breaks_ties_by_antecedent(example_itemsets):
    rules = association_rules(example_itemsets, 0.5)
    ranked = rank_rules(rules, by="confidence")

    assert _pairs(ranked) == [
        (("eggs",), ("bread",)),
        (("bread",), ("eggs",)),
        (("bread",), ("milk",)),
        (("milk",), ("bread",)),
    ]
    assert ranked["confidence"].is_monotonic_decreasing


def test_rank_by_support(example_itemsets):
    rules = association_rules(example_itemsets, 0.5)
    ranked = rank_rules(rules, by="support")

    assert _pairs(ranked) == [
        (("bread",), ("eggs",)),
        (("bread",), ("milk",)),
        (("eggs",), ("bread",)),
        (("milk",), ("bread",)),
    ]


def test_rank_truncates(example_itemsets):
    rules = association_rules(example_itemsets, 0.5)
    assert len(rank_rules(rules, by="confidence", top_n=2)) == 2


def test_rank_rejects_unknown_metric(example_itemsets):
    with pytest.raises(ValueError):
        rank_rules(association_rules(example_itemsets, 0.5), by="leverage")


def test_strict_confidence_gives_empty_result(example_itemsets):
    rules = association_rules(example_itemsets, 1.0)
    # {eggs} -> {bread} has confidence exactly 1.0
    assert len(rules) == 1

    rules = association_rules(frequent_itemsets([frozenset({"a"}), frozenset({"b"})], 0.5), 0.5)
    assert rules.empty
    assert list(rules.columns) == RULE_COLUMNS
    assert rank_rules(rules, by="support").empty
    assert format_rules(rules) == ""


def test_empty_itemsets_give_empty_rules(example_transactions):
    rules = association_rules(frequent_itemsets(example_transactions, 1.0), 0.5)
    assert rules.empty


@pytest.mark.parametrize("min_confidence", [0.0, 1.01])
def test_invalid_min_confidence(example_itemsets, min_confidence):
    with pytest.raises(InvalidThresholdError):
        association_rules(example_itemsets, min_confidence)


def test_format_rules(example_itemsets):
    ranked = rank_rules(association_rules(example_itemsets, 0.5), by="confidence")
    text = format_rules(ranked)
    lines = text.splitlines()

    assert len(lines) == 4
    assert lines[0].startswith("{eggs}")
    assert "=> {bread}" in lines[0]
    assert "confidence=1.000" in lines[0]
    assert lines[3].startswith("{milk}")
    assert lines[3].rstrip().endswith("count=2")
