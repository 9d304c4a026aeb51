"""
registry-retention - Retention policies for container image tags.

Decides which tags of a registry repository have outlived their retention
window, keeps the most recent tags of every rule, and protects any image
referenced by an exception rule.

Quick Start:
    from registry_retention import DockerHubClient, RetentionService, parse_rule_set

    rule_set = parse_rule_set(
        multiple='''
        - match: ^pr-
          retention: 14d
        - match: ^v
          retention: 1y
          minimum: 5
        ''',
        unless='''
        - match: ^stable$
        ''',
    )

    with DockerHubClient("myorg/myimage") as client:
        service = RetentionService(client)
        result = service.run("myorg/myimage", rule_set, dry_run=True)

    for name in result.deletion.planned:
        print(name)

Domain Objects:
    Tag, Image - Registry inventory snapshot
    RetentionRule, ExceptionRule, RuleSet - Normalized configuration

Services:
    collect_protected_digests - Exception rules to protected digests
    RetentionEvaluator - Rule evaluation
    DeletionExecutor - Dry-run or best-effort deletion
    RetentionService - Full run against a registry client
"""

__version__ = "0.3.0"

# Domain objects
from .domain import (
    Tag,
    Image,
    TagMatcher,
    RetentionRule,
    ExceptionRule,
    RuleSet,
)

# Rule parsing
from .retention_window import RetentionWindow, resolve
from .rules import parse_rule_set, validate_rule_set, ValidationResult

# Services
from .services import (
    collect_protected_digests,
    RetentionEvaluator,
    DeletionExecutor,
    RetentionService,
    evaluate,
)

# Infrastructure
from .infra import DockerHubClient

# Configuration
from .config import load_config, save_config

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Tag",
    "Image",
    "TagMatcher",
    "RetentionRule",
    "ExceptionRule",
    "RuleSet",
    # Rule parsing
    "RetentionWindow",
    "resolve",
    "parse_rule_set",
    "validate_rule_set",
    "ValidationResult",
    # Services
    "collect_protected_digests",
    "RetentionEvaluator",
    "DeletionExecutor",
    "RetentionService",
    "evaluate",
    # Infrastructure
    "DockerHubClient",
    # Configuration
    "load_config",
    "save_config",
]
