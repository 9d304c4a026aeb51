"""
Domain layer for registry-retention.

Contains pure domain objects with no I/O or side effects:
- Tag, Image: Registry inventory snapshot
- TagMatcher: Tag-name predicate
- RetentionRule, ExceptionRule, RuleSet: Normalized retention configuration

These objects are immutable and provide serialization methods for
JSONL output.
"""

from .tag import Tag, Image, parse_timestamp
from .rule import TagMatcher, RetentionRule, ExceptionRule, RuleSet

__all__ = [
    'Tag',
    'Image',
    'parse_timestamp',
    'TagMatcher',
    'RetentionRule',
    'ExceptionRule',
    'RuleSet',
]
