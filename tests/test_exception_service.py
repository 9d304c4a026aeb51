"""Tests for exception digest collection."""

from registry_retention.domain import ExceptionRule, TagMatcher
from registry_retention.services import collect_protected_digests


class TestCollectProtectedDigests:

    def test_no_rules_protects_nothing(self, make_tag):
        tags = [make_tag("v1", 10, 10)]
        assert collect_protected_digests(tags, []) == set()

    def test_matching_tags_contribute_all_digests(self, make_tag):
        tags = [
            make_tag("stable", 10, 10, digests=["sha256:amd64", "sha256:arm64"]),
            make_tag("v1", 10, 10, digests=["sha256:v1"]),
        ]
        protected = collect_protected_digests(tags, [ExceptionRule(TagMatcher("^stable$"))])
        assert protected == {"sha256:amd64", "sha256:arm64"}

    def test_union_across_rules(self, make_tag):
        tags = [
            make_tag("stable", 10, 10, digests=["sha256:a"]),
            make_tag("latest", 10, 10, digests=["sha256:b"]),
            make_tag("v1", 10, 10, digests=["sha256:c"]),
        ]
        rules = [ExceptionRule(TagMatcher("^stable$")), ExceptionRule(TagMatcher("^latest$"))]
        assert collect_protected_digests(tags, rules) == {"sha256:a", "sha256:b"}

    def test_rule_without_match_protects_every_tag(self, make_tag):
        tags = [make_tag("a", 1, 1), make_tag("b", 1, 1)]
        assert collect_protected_digests(tags, [ExceptionRule()]) == {"sha256:a", "sha256:b"}

    def test_rule_matching_nothing(self, make_tag):
        tags = [make_tag("a", 1, 1)]
        assert collect_protected_digests(tags, [ExceptionRule(TagMatcher("^zzz"))]) == set()
