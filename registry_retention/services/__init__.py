"""
Service layer for registry-retention.

Contains the retention decision engine and its orchestration:
- collect_protected_digests: Exception rules to protected image digests
- RetentionEvaluator: Per-rule filtering, minimum-keep and age test
- DeletionExecutor: Dry-run reporting or best-effort deletion
- RetentionService: Authenticate, list, evaluate, delete

Services are the primary API for commands to use.
"""

from .exception_service import collect_protected_digests
from .evaluation_service import RetentionEvaluator, RuleOutcome, Evaluation, evaluate, dedupe_tags
from .deletion_service import DeletionExecutor, DeletionResult
from .retention_service import RetentionService, RunResult

__all__ = [
    'collect_protected_digests',
    'RetentionEvaluator',
    'RuleOutcome',
    'Evaluation',
    'evaluate',
    'dedupe_tags',
    'DeletionExecutor',
    'DeletionResult',
    'RetentionService',
    'RunResult',
]
