"""
Retention window parsing for registry-retention.

A retention window is written as ``<integer><unit>``:
    - "30d"  thirty days
    - "6m"   six calendar months
    - "1y"   one calendar year

Months and years use calendar arithmetic (dateutil.relativedelta), so
"1m" before 31 March is the last day of February, not 30 days earlier.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from dateutil.relativedelta import relativedelta

from .errors import InvalidRetentionFormat, InvalidRetentionUnit

logger = logging.getLogger(__name__)

RETENTION_PATTERN = re.compile(r'([0-9]+)([dmy])')

UNIT_NAMES = {
    'd': 'days',
    'm': 'months',
    'y': 'years',
}

# Earliest representable instant
EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RetentionWindow:
    """
    Parsed retention expression.

    Attributes:
        amount: Number of units
        unit: One of 'd', 'm', 'y'
    """

    amount: int
    unit: str

    def __post_init__(self):
        if self.unit not in UNIT_NAMES:
            raise InvalidRetentionUnit(self.unit)

    @classmethod
    def parse(cls, expression: str) -> 'RetentionWindow':
        """
        Parse a retention expression such as "30d".

        Raises:
            InvalidRetentionFormat: If the expression is not <integer><d|m|y>
        """
        if not isinstance(expression, str):
            raise InvalidRetentionFormat(str(expression))

        match = RETENTION_PATTERN.fullmatch(expression)
        if not match:
            raise InvalidRetentionFormat(expression)

        amount, unit = match.groups()
        return cls(amount=int(amount), unit=unit)

    @property
    def delta(self) -> relativedelta:
        """Calendar offset covered by this window."""
        return relativedelta(**{UNIT_NAMES[self.unit]: self.amount})

    def cutoff(self, now: Optional[datetime] = None) -> datetime:
        """
        Instant `amount` units before `now` (defaults to the current UTC time).

        Windows reaching past the earliest representable date clamp to it,
        so nothing is old enough to expire.
        """
        if now is None:
            now = utcnow()
        try:
            return now - self.delta
        except (OverflowError, ValueError):
            logger.debug(f"retention {self} reaches past {EARLIEST}, clamping")
            return EARLIEST

    def __str__(self) -> str:
        return f"{self.amount}{self.unit}"


def resolve(expression: str, now: Optional[datetime] = None) -> datetime:
    """
    Convert a retention expression into an absolute cutoff instant.

    Args:
        expression: Retention expression ("30d", "6m", "1y")
        now: Reference time (defaults to the current UTC time)

    Returns:
        Timezone-aware datetime before which tags are expired

    Raises:
        InvalidRetentionFormat: If the expression does not match <integer><d|m|y>
    """
    return RetentionWindow.parse(expression).cutoff(now)
