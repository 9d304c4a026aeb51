"""
Retention evaluation for registry-retention.

For each retention rule, in order:
    1. resolve the cutoff from the rule's retention window
    2. keep tags whose name matches the rule
    3. drop tags referencing a protected digest
    4. sort by last push, most recent first (stable)
    5. drop the first `minimum` tags, regardless of age
    6. select tags both pushed and pulled before the cutoff

Selections from all rules are concatenated and deduplicated by tag name,
keeping the first occurrence.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Set

from ..domain import RetentionRule, Tag
from ..retention_window import utcnow

logger = logging.getLogger(__name__)

# Sort key for tags without a push time: after every real timestamp
_NEVER = datetime.min.replace(tzinfo=timezone.utc)


@dataclass
class RuleOutcome:
    """What one retention rule did to the inventory."""
    rule: RetentionRule
    cutoff: Optional[datetime]
    matched: int = 0
    protected: int = 0
    kept_by_minimum: List[Tag] = field(default_factory=list)
    selected: List[Tag] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            **self.rule.to_dict(),
            'cutoff': self.cutoff.isoformat() if self.cutoff else None,
            'matched': self.matched,
            'protected': self.protected,
            'kept_by_minimum': [tag.name for tag in self.kept_by_minimum],
            'selected': [tag.name for tag in self.selected],
        }


@dataclass
class Evaluation:
    """Result of evaluating all retention rules against one inventory."""
    outcomes: List[RuleOutcome] = field(default_factory=list)
    protected_digests: Set[str] = field(default_factory=set)
    to_delete: List[Tag] = field(default_factory=list)

    @property
    def names(self) -> List[str]:
        return [tag.name for tag in self.to_delete]


def dedupe_tags(tags: Sequence[Tag]) -> List[Tag]:
    """Remove repeated tag names, keeping first-occurrence order."""
    seen = set()
    unique = []
    for tag in tags:
        if tag.name in seen:
            continue
        seen.add(tag.name)
        unique.append(tag)
    return unique


class RetentionEvaluator:
    """
    Evaluates retention rules against a tag inventory.

    The evaluator is pure: the same inventory, rules, protected digests
    and reference time always give the same result.

    Example:
        evaluator = RetentionEvaluator()
        evaluation = evaluator.evaluate(tags, rule_set.retention_rules, protected)
        for tag in evaluation.to_delete:
            print(tag.name)
    """

    def __init__(self, now: Optional[datetime] = None):
        """
        Initialize RetentionEvaluator.

        Args:
            now: Reference time for cutoffs (defaults to the time of each evaluate() call)
        """
        self.now = now

    def evaluate_rule(
        self,
        tags: Sequence[Tag],
        rule: RetentionRule,
        protected_digests: Set[str],
        now: datetime,
    ) -> RuleOutcome:
        """Apply a single retention rule."""
        cutoff = rule.retention.cutoff(now) if rule.retention else None
        outcome = RuleOutcome(rule=rule, cutoff=cutoff)

        matching = [tag for tag in tags if rule.match(tag.name)]
        outcome.matched = len(matching)

        candidates = [tag for tag in matching if not tag.is_protected(protected_digests)]
        outcome.protected = len(matching) - len(candidates)

        candidates = sorted(
            candidates,
            key=lambda tag: tag.last_pushed or _NEVER,
            reverse=True,
        )

        if rule.minimum is not None:
            outcome.kept_by_minimum = candidates[:rule.minimum]
            candidates = candidates[rule.minimum:]
            logger.info(f"removing the first {len(outcome.kept_by_minimum)} tags")

        if cutoff is None:
            logger.debug(f"rule {str(rule.match)!r} has no retention, nothing expires")
            return outcome

        outcome.selected = [tag for tag in candidates if tag.is_older_than(cutoff)]
        return outcome

    def evaluate(
        self,
        tags: Sequence[Tag],
        retention_rules: Sequence[RetentionRule],
        protected_digests: Optional[Set[str]] = None,
    ) -> Evaluation:
        """
        Apply every retention rule in order.

        Args:
            tags: Tag inventory snapshot
            retention_rules: Rules in configuration order
            protected_digests: Digests that must never be deleted

        Returns:
            Evaluation with per-rule outcomes and the deduplicated delete list
        """
        protected = set(protected_digests or ())
        now = self.now or utcnow()
        evaluation = Evaluation(protected_digests=protected)

        selected: List[Tag] = []
        for rule in retention_rules:
            outcome = self.evaluate_rule(tags, rule, protected, now)
            evaluation.outcomes.append(outcome)
            selected.extend(outcome.selected)

        evaluation.to_delete = dedupe_tags(selected)
        if len(evaluation.to_delete) < len(selected):
            logger.debug(
                f"{len(selected) - len(evaluation.to_delete)} tags matched more than one rule"
            )
        return evaluation


def evaluate(
    tags: Sequence[Tag],
    retention_rules: Sequence[RetentionRule],
    protected_digests: Optional[Set[str]] = None,
    now: Optional[datetime] = None,
) -> List[Tag]:
    """Return the tags to delete (see RetentionEvaluator.evaluate)."""
    return RetentionEvaluator(now=now).evaluate(tags, retention_rules, protected_digests).to_delete
