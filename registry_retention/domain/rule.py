"""
Rule domain objects for registry-retention.

- TagMatcher: tag-name predicate built from an optional regular expression
- RetentionRule: match + retention window + minimum-keep count
- ExceptionRule: match whose tags' digests are protected everywhere
- RuleSet: ordered retention rules plus ordered exception rules
"""

import re
from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Any

from ..errors import InvalidMatchPattern
from ..retention_window import RetentionWindow


@dataclass(frozen=True)
class TagMatcher:
    """
    Predicate over tag names.

    An empty or absent pattern matches every name. Otherwise the pattern is
    a case-sensitive regular expression searched anywhere in the name, so
    "^v" matches tags starting with "v" and "rc" matches any tag containing
    "rc".
    """

    pattern: Optional[str] = None
    _compiled: Optional[re.Pattern] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.pattern:
            try:
                compiled = re.compile(self.pattern)
            except re.error as e:
                raise InvalidMatchPattern(self.pattern, str(e)) from e
            object.__setattr__(self, '_compiled', compiled)

    @property
    def matches_all(self) -> bool:
        return self._compiled is None

    def __call__(self, name: str) -> bool:
        if self._compiled is None:
            return True
        return self._compiled.search(name) is not None

    def __str__(self) -> str:
        return self.pattern or ''


@dataclass(frozen=True)
class RetentionRule:
    """
    One retention policy entry.

    Attributes:
        match: Which tags the rule applies to
        retention: Age window; None means the rule never expires anything
        minimum: Number of most recently pushed matching tags always kept
    """

    match: TagMatcher = field(default_factory=TagMatcher)
    retention: Optional[RetentionWindow] = None
    minimum: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'match': str(self.match),
            'retention': str(self.retention) if self.retention else '',
            'minimum': '' if self.minimum is None else str(self.minimum),
        }


@dataclass(frozen=True)
class ExceptionRule:
    """Match pattern whose tags' image digests are never deleted."""

    match: TagMatcher = field(default_factory=TagMatcher)

    def to_dict(self) -> Dict[str, Any]:
        return {'match': str(self.match)}


@dataclass(frozen=True)
class RuleSet:
    """Normalized configuration: retention rules and exception rules, in order."""

    retention_rules: Tuple[RetentionRule, ...] = ()
    exception_rules: Tuple[ExceptionRule, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'rules': [rule.to_dict() for rule in self.retention_rules],
            'unless': [rule.to_dict() for rule in self.exception_rules],
        }
