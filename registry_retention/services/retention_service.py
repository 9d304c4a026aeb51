"""
Retention run orchestration for registry-retention.

Runs one retention pass against a repository:
    authenticate (if credentials given) -> list tags -> collect protected
    digests -> evaluate rules -> delete (or preview)

Configuration errors never reach this layer; they are raised while the
rule set is parsed. Registry errors are fatal unless the configuration
sets behavior.fail_on_registry_error to false, in which case they are
logged as a warning and recorded on the result.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..config import load_config
from ..domain import RuleSet, Tag
from ..errors import RegistryError
from .deletion_service import DeletionExecutor, DeletionResult
from .evaluation_service import Evaluation, RetentionEvaluator
from .exception_service import collect_protected_digests

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of one retention run."""
    repository: str
    dry_run: bool = False
    inventory: List[Tag] = field(default_factory=list)
    evaluation: Optional[Evaluation] = None
    deletion: Optional[DeletionResult] = None
    warning: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repository': self.repository,
            'dry_run': self.dry_run,
            'tags': len(self.inventory),
            'protected_digests': sorted(self.evaluation.protected_digests) if self.evaluation else [],
            'rules': [o.to_dict() for o in self.evaluation.outcomes] if self.evaluation else [],
            'deletion': self.deletion.to_dict() if self.deletion else None,
            'warning': self.warning,
        }


class RetentionService:
    """
    Service that applies a RuleSet to one repository.

    Example:
        client = DockerHubClient("myorg/myimage")
        service = RetentionService(client)
        result = service.run("myorg/myimage", rule_set, dry_run=True)
        print(result.deletion.planned)
    """

    def __init__(self, client, config: Optional[Dict[str, Any]] = None, now: Optional[datetime] = None):
        """
        Initialize RetentionService.

        Args:
            client: Registry client (login, list_tags, delete_tag)
            config: Configuration dict (loads default if None)
            now: Reference time for retention cutoffs (defaults to now)
        """
        self.client = client
        self.config = config or load_config()
        self.now = now

    @property
    def fail_on_registry_error(self) -> bool:
        return bool(self.config.get('behavior', {}).get('fail_on_registry_error', True))

    def run(
        self,
        repository: str,
        rule_set: RuleSet,
        username: Optional[str] = None,
        password: Optional[str] = None,
        dry_run: bool = False,
    ) -> RunResult:
        """
        Run retention against `repository`.

        Raises:
            RegistryError: On login or listing failure (strict mode only)
        """
        logger.info(f"repository: {repository}")
        logger.info(f"config: {json.dumps(rule_set.to_dict())}")

        result = RunResult(repository=repository, dry_run=dry_run)

        try:
            self._run(result, rule_set, username, password)
        except RegistryError as e:
            if self.fail_on_registry_error:
                raise
            logger.warning(f"tag retention failed: {e}")
            result.warning = str(e)

        return result

    def _run(
        self,
        result: RunResult,
        rule_set: RuleSet,
        username: Optional[str],
        password: Optional[str],
    ) -> None:
        if username and password:
            self.client.login(username, password)

        result.inventory = list(self.client.list_tags())
        logger.debug(f"found {len(result.inventory)} tags")

        protected = collect_protected_digests(result.inventory, rule_set.exception_rules)

        evaluator = RetentionEvaluator(now=self.now)
        result.evaluation = evaluator.evaluate(result.inventory, rule_set.retention_rules, protected)

        executor = DeletionExecutor(self.client)
        result.deletion = executor.execute(result.evaluation.to_delete, dry_run=result.dry_run)
