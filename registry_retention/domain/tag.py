"""
Tag domain object for registry-retention.

A tag is a named pointer to one or more images in a repository:
- Single-arch tags reference one image
- Multi-arch tags reference one image per platform

Tags are immutable snapshots of the registry inventory. Evaluation
derives a keep/delete partition from them without changing them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple, Dict, Any, FrozenSet

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp into a timezone-aware datetime.

    Naive timestamps are taken as UTC. Empty or unparseable values
    return None.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = date_parser.isoparse(str(value))
        except (ValueError, OverflowError) as e:
            logger.debug(f"Ignoring unparseable timestamp {value!r}: {e}")
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class Image:
    """One image manifest referenced by a tag."""
    digest: str
    architecture: Optional[str] = None
    os: Optional[str] = None
    size: Optional[int] = None

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Image':
        return cls(
            digest=data.get('digest') or '',
            architecture=data.get('architecture'),
            os=data.get('os'),
            size=data.get('size'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'digest': self.digest,
            'architecture': self.architecture,
            'os': self.os,
            'size': self.size,
        }


@dataclass(frozen=True)
class Tag:
    """
    Named image reference in a repository.

    Attributes:
        name: Tag name, unique within the repository
        last_pushed: When the tag was last pushed (None if unknown)
        last_pulled: When the tag was last pulled (None if never)
        images: Images referenced by the tag, in registry order
    """

    name: str
    last_pushed: Optional[datetime] = None
    last_pulled: Optional[datetime] = None
    images: Tuple[Image, ...] = ()

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Tag':
        """Create from a Docker Hub tag record."""
        images = data.get('images') or []
        return cls(
            name=data.get('name', ''),
            last_pushed=parse_timestamp(data.get('tag_last_pushed')),
            last_pulled=parse_timestamp(data.get('tag_last_pulled')),
            images=tuple(Image.from_api_response(i) for i in images if isinstance(i, dict)),
        )

    @property
    def digests(self) -> FrozenSet[str]:
        """Digests of every image this tag references."""
        return frozenset(image.digest for image in self.images if image.digest)

    def is_protected(self, protected_digests) -> bool:
        """True if any referenced image digest is protected."""
        return any(digest in protected_digests for digest in self.digests)

    def is_older_than(self, cutoff: datetime) -> bool:
        """
        True if both the push and the pull happened strictly before `cutoff`.

        A tag missing either timestamp (never pushed or never pulled) is
        never considered old.
        """
        if self.last_pushed is None or self.last_pulled is None:
            return False
        return self.last_pushed < cutoff and self.last_pulled < cutoff

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'name': self.name,
            'last_pushed': self.last_pushed.isoformat() if self.last_pushed else None,
            'last_pulled': self.last_pulled.isoformat() if self.last_pulled else None,
            'digests': sorted(self.digests),
        }

    def __str__(self) -> str:
        return self.name
