"""
Exception digest collection for registry-retention.

Exception rules protect images, not tag names: every digest referenced by
a tag matching an exception rule is protected under every retention rule.
A multi-arch tag therefore shields any other tag sharing one of its images.
"""

import logging
from typing import Iterable, Sequence, Set

from ..domain import ExceptionRule, Tag

logger = logging.getLogger(__name__)


def collect_protected_digests(
    tags: Sequence[Tag],
    exception_rules: Iterable[ExceptionRule],
) -> Set[str]:
    """
    Collect the image digests that must never be deleted.

    Args:
        tags: Full tag inventory of the repository
        exception_rules: Exception rules, in configuration order

    Returns:
        Set of protected image digests
    """
    protected: Set[str] = set()

    for rule in exception_rules:
        matching = [tag for tag in tags if rule.match(tag.name)]
        for tag in matching:
            protected.update(tag.digests)
        logger.debug(
            f"unless {str(rule.match)!r}: {len(matching)} tags, "
            f"{len(protected)} protected digests so far"
        )

    return protected
