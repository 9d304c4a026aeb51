"""
Deletion executor for registry-retention.

Deletes tags one at a time through the registry client. A failed delete
is logged and recorded, and the remaining deletions still run.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Sequence

from ..domain import Tag
from ..errors import RegistryError

logger = logging.getLogger(__name__)


@dataclass
class DeletionResult:
    """Result of a deletion pass."""
    dry_run: bool = False
    planned: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return len(self.failed) == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'dry_run': self.dry_run,
            'planned': self.planned,
            'deleted': self.deleted,
            'failed': self.failed,
        }


class DeletionExecutor:
    """
    Executes (or previews) tag deletions.

    Example:
        executor = DeletionExecutor(client)
        result = executor.execute(evaluation.to_delete, dry_run=True)
        print(result.planned)
    """

    def __init__(self, client):
        """
        Initialize DeletionExecutor.

        Args:
            client: Registry client providing delete_tag(name)
        """
        self.client = client

    def execute(self, to_delete: Sequence[Tag], dry_run: bool = False) -> DeletionResult:
        """
        Delete every tag in `to_delete`, in order.

        In dry-run mode only the would-be deletions are reported.
        """
        result = DeletionResult(dry_run=dry_run, planned=[tag.name for tag in to_delete])

        if dry_run:
            logger.info(f"dry-run: would have deleted the following tags: {len(to_delete)}")
            for tag in to_delete:
                logger.info(f"- {tag.name}")
            return result

        logger.info(f"delete the following tags: {len(to_delete)}")
        for tag in to_delete:
            logger.info(f"- {tag.name}")
            try:
                self.client.delete_tag(tag.name)
            except RegistryError as e:
                logger.warning(f"failed to delete {tag.name}: {e}")
                result.failed[tag.name] = str(e)
                continue
            result.deleted.append(tag.name)

        return result
