"""Tests for retention evaluation."""

import logging

import pytest

from registry_retention.domain import RetentionRule, TagMatcher
from registry_retention.retention_window import RetentionWindow
from registry_retention.rules import parse_rule_set
from registry_retention.services import (
    RetentionEvaluator,
    collect_protected_digests,
    dedupe_tags,
    evaluate,
)


def rule(match=None, retention="30d", minimum=None):
    return RetentionRule(
        match=TagMatcher(match),
        retention=RetentionWindow.parse(retention) if retention else None,
        minimum=minimum,
    )


def names(tags):
    return [tag.name for tag in tags]


class TestEvaluateExamples:
    """End-to-end examples over a static snapshot."""

    def test_minimum_and_match_example(self, make_tag, now):
        tags = [
            make_tag("v1", 40, 40),
            make_tag("v2", 5, 5),
            make_tag("other", 90, 90),
        ]
        rule_set = parse_rule_set(multiple=[{"match": "^v", "retention": "30d", "minimum": 1}])
        assert names(evaluate(tags, rule_set.retention_rules, set(), now=now)) == ["v1"]

    def test_exception_propagates_through_shared_digest(self, make_tag, now):
        tags = [
            make_tag("stable", 1, 1, digests=["sha256:amd64", "sha256:arm64"]),
            make_tag("v1-arm64", 100, 100, digests=["sha256:arm64"]),
            make_tag("v0", 100, 100, digests=["sha256:old"]),
        ]
        rule_set = parse_rule_set(
            multiple=[{"match": "^v", "retention": "30d"}],
            unless=[{"match": "^stable$"}],
        )
        protected = collect_protected_digests(tags, rule_set.exception_rules)
        assert names(evaluate(tags, rule_set.retention_rules, protected, now=now)) == ["v0"]


class TestDeletionConditions:
    """A tag is deleted only when old, outside the minimum and unprotected."""

    @pytest.fixture
    def base(self, make_tag):
        return [make_tag("keep-1", 1, 1), make_tag("target", 60, 60)]

    def test_all_conditions_met(self, base, now):
        assert names(evaluate(base, [rule(minimum=1)], set(), now=now)) == ["target"]

    def test_recent_pull_saves_tag(self, make_tag, now):
        tags = [make_tag("keep-1", 1, 1), make_tag("target", 60, 2)]
        assert evaluate(tags, [rule(minimum=1)], set(), now=now) == []

    def test_recent_push_saves_tag(self, make_tag, now):
        tags = [make_tag("keep-1", 1, 1), make_tag("target", 2, 60)]
        assert evaluate(tags, [rule(minimum=1)], set(), now=now) == []

    def test_minimum_saves_tag(self, base, now):
        assert evaluate(base, [rule(minimum=2)], set(), now=now) == []

    def test_protection_saves_tag(self, base, now):
        assert evaluate(base, [rule(minimum=1)], {"sha256:target"}, now=now) == []

    def test_never_pulled_tag_is_kept(self, make_tag, now):
        tags = [make_tag("v1", 500, None)]
        rule_set = parse_rule_set(match="^v", retention="30d")
        assert evaluate(tags, rule_set.retention_rules, set(), now=now) == []

    def test_cutoff_is_strict(self, make_tag, now):
        tags = [make_tag("edge", 30, 30)]
        # 30 days before `now` is exactly the cutoff
        assert evaluate(tags, [rule(retention="30d")], set(), now=now) == []


class TestMinimumKeep:

    def test_minimum_is_independent_of_age(self, make_tag, now):
        tags = [make_tag("a", 300, 300), make_tag("b", 100, 100), make_tag("c", 200, 200)]
        evaluation = RetentionEvaluator(now=now).evaluate(tags, [rule(minimum=2)], set())
        assert names(evaluation.to_delete) == ["a"]
        assert names(evaluation.outcomes[0].kept_by_minimum) == ["b", "c"]

    def test_minimum_zero_keeps_nothing(self, make_tag, now):
        tags = [make_tag("a", 100, 100)]
        assert names(evaluate(tags, [rule(minimum=0)], set(), now=now)) == ["a"]

    def test_minimum_larger_than_candidates(self, make_tag, now, caplog):
        caplog.set_level(logging.INFO)
        tags = [make_tag("a", 100, 100)]
        assert evaluate(tags, [rule(minimum=5)], set(), now=now) == []
        assert "removing the first 1 tags" in caplog.text

    def test_minimum_counts_only_matching_unprotected_tags(self, make_tag, now):
        tags = [
            make_tag("x-newest", 1, 1),
            make_tag("v-protected", 2, 2),
            make_tag("v-new", 50, 50),
            make_tag("v-old", 60, 60),
        ]
        result = evaluate(tags, [rule("^v", minimum=1)], {"sha256:v-protected"}, now=now)
        assert names(result) == ["v-old"]

    def test_ties_keep_inventory_order(self, make_tag, now):
        tags = [make_tag("first", 100, 100), make_tag("second", 100, 100), make_tag("third", 100, 100)]
        evaluation = RetentionEvaluator(now=now).evaluate(tags, [rule(minimum=1)], set())
        assert names(evaluation.outcomes[0].kept_by_minimum) == ["first"]
        assert names(evaluation.to_delete) == ["second", "third"]

    def test_tags_without_push_time_sort_last(self, make_tag, now):
        tags = [make_tag("unknown", None, 100), make_tag("old", 100, 100)]
        evaluation = RetentionEvaluator(now=now).evaluate(tags, [rule(minimum=1)], set())
        assert names(evaluation.outcomes[0].kept_by_minimum) == ["old"]
        assert evaluation.to_delete == []


class TestMultipleRules:

    def test_rules_apply_in_order(self, make_tag, now):
        tags = [make_tag("pr-1", 20, 20), make_tag("v1", 400, 400), make_tag("v2", 20, 20)]
        rules = [rule("^pr-", "14d"), rule("^v", "1y")]
        assert names(evaluate(tags, rules, set(), now=now)) == ["pr-1", "v1"]

    def test_overlapping_rules_are_deduplicated(self, make_tag, now):
        tags = [make_tag("v1", 100, 100)]
        evaluation = RetentionEvaluator(now=now).evaluate(tags, [rule("^v"), rule("1$")], set())
        assert [names(o.selected) for o in evaluation.outcomes] == [["v1"], ["v1"]]
        assert names(evaluation.to_delete) == ["v1"]

    def test_rule_without_retention_selects_nothing(self, make_tag, now):
        tags = [make_tag("v1", 1000, 1000)]
        assert evaluate(tags, [rule(retention=None)], set(), now=now) == []

    def test_no_rules(self, make_tag, now):
        assert evaluate([make_tag("v1", 100, 100)], [], set(), now=now) == []


class TestEvaluatorProperties:

    def test_idempotent(self, make_tag, now):
        tags = [make_tag(f"t{i}", i * 10, i * 5) for i in range(10)]
        rules = [rule(minimum=2), rule("^t[0-4]$", "7d")]
        evaluator = RetentionEvaluator(now=now)
        first = evaluator.evaluate(tags, rules, {"sha256:t9"}).to_delete
        second = evaluator.evaluate(tags, rules, {"sha256:t9"}).to_delete
        assert first == second

    def test_inventory_is_not_mutated(self, make_tag, now):
        tags = [make_tag("a", 1, 1), make_tag("b", 100, 100)]
        snapshot = list(tags)
        evaluate(tags, [rule(minimum=1)], set(), now=now)
        assert tags == snapshot

    def test_outcome_to_dict(self, make_tag, now):
        tags = [make_tag("v1", 100, 100), make_tag("v2", 1, 1)]
        evaluation = RetentionEvaluator(now=now).evaluate(tags, [rule("^v", minimum=1)], set())
        d = evaluation.outcomes[0].to_dict()
        assert d['match'] == "^v"
        assert d['matched'] == 2
        assert d['kept_by_minimum'] == ["v2"]
        assert d['selected'] == ["v1"]
        assert d['cutoff'] == "2024-05-16T12:00:00+00:00"


class TestDedupeTags:
    def test_keeps_first_occurrence(self, make_tag):
        a, b = make_tag("a"), make_tag("b")
        assert names(dedupe_tags([a, b, a, b, a])) == ["a", "b"]
