"""Tests for answer_key rule selection: exact, then tightest subset, then best partial."""

from nutrasage_quiz.models import Rule
from nutrasage_quiz.recommendation.rule_matcher import EXACT, PARTIAL, SUBSET, match_rule, tag_key


def _rule(rid, key, products="P"):
    return Rule(id=rid, tag_combination=key, recommended_products=products)


class TestExactMatch:
    def test_exact_key_wins_over_subset_and_partial(self):
        rules = [
            _rule(1, "joint-pain,low-energy,stress"),   # subset candidate
            _rule(2, "low-energy"),                     # partial candidate
            _rule(3, "joint-pain,low-energy"),          # exact
        ]
        match = match_rule({"low-energy", "joint-pain"}, rules)
        assert match.rule.id == 3
        assert match.kind == EXACT

    def test_unsorted_rule_key_still_matches_exactly(self):
        rules = [_rule(1, "low-energy,joint-pain,stress"), _rule(2, " low-energy , joint-pain ")]
        match = match_rule({"joint-pain", "low-energy"}, rules)
        assert match.rule.id == 2
        assert match.kind == EXACT

    def test_first_of_duplicate_exact_rules_wins(self):
        rules = [_rule(1, "stress"), _rule(2, "stress")]
        assert match_rule({"stress"}, rules).rule.id == 1


class TestSubsetMatch:
    def test_subset_preferred_over_partial(self):
        # user tags are all inside A; B shares only one
        rule_a = _rule(1, "joint-pain,low-energy,sleep")
        rule_b = _rule(2, "low-energy,stress")
        match = match_rule({"low-energy", "joint-pain"}, [rule_b, rule_a])
        assert match.rule.id == 1
        assert match.kind == SUBSET

    def test_tightest_superset_wins(self):
        rule_a = _rule(1, "joint-pain,low-energy,stress")
        rule_b = _rule(2, "joint-pain,low-energy")
        match = match_rule({"low-energy"}, [rule_a, rule_b])
        assert match.rule.id == 2
        assert match.kind == SUBSET

    def test_equal_size_subsets_keep_list_order(self):
        rules = [_rule(1, "low-energy,stress"), _rule(2, "joint-pain,low-energy")]
        assert match_rule({"low-energy"}, rules).rule.id == 1


class TestPartialMatch:
    def test_highest_overlap_wins(self):
        rules = [_rule(1, "low-energy,sleep"), _rule(2, "joint-pain,low-energy,sleep")]
        match = match_rule({"low-energy", "joint-pain", "stress"}, rules)
        assert match.rule.id == 2
        assert match.kind == PARTIAL
        assert match.overlap == 2

    def test_overlap_ties_keep_list_order(self):
        rules = [_rule(1, "low-energy,sleep"), _rule(2, "stress,sleep")]
        assert match_rule({"low-energy", "stress"}, rules).rule.id == 1

    def test_zero_overlap_is_no_match(self):
        rules = [_rule(1, "sleep"), _rule(2, "skin-health")]
        assert match_rule({"low-energy"}, rules) is None


class TestNoMatch:
    def test_empty_tag_set_never_matches(self):
        assert match_rule(set(), [_rule(1, "stress"), _rule(2, "")]) is None

    def test_blank_tags_are_ignored(self):
        assert match_rule({" ", ""}, [_rule(1, "stress")]) is None

    def test_no_rules(self):
        assert match_rule({"stress"}, []) is None


def test_tag_key_is_sorted_and_deduplicated():
    assert tag_key(["stress", " low-energy", "stress", ""]) == "low-energy,stress"
