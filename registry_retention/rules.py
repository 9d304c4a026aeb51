"""
Rule set parsing for registry-retention.

Normalizes the two configuration surfaces into one RuleSet:

    Single rule:
        match="^v", retention="30d", minimum="2"

    Multiple rules (YAML or JSON list, takes precedence when given):
        multiple='''
        - match: ^v
          retention: 6m
          minimum: 5
        - match: ^pr-
          retention: 14d
        '''

    Exceptions (YAML or JSON list):
        unless='''
        - match: ^stable$
        '''

Every multi-rule entry must have both match and retention. The single
rule is accepted even when empty: no match means every tag, no retention
means nothing ever expires.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import yaml

from .domain import ExceptionRule, RetentionRule, RuleSet, TagMatcher
from .errors import ConfigMissingFields, ConfigNotArray, ConfigParseError, InvalidMinimum
from .exit_codes import ConfigError
from .retention_window import RetentionWindow

logger = logging.getLogger(__name__)

RuleInput = Union[str, List[Any], None]


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _as_text(value: Any) -> Optional[str]:
    if _is_blank(value):
        return None
    return str(value).strip()


def parse_minimum(value: Any) -> Optional[int]:
    """
    Parse a minimum-keep count.

    Returns None when absent. Accepts ints and decimal strings.

    Raises:
        InvalidMinimum: For negative, fractional or non-numeric values
    """
    if _is_blank(value):
        return None
    if isinstance(value, bool):
        raise InvalidMinimum(value)
    if isinstance(value, int):
        minimum = value
    else:
        text = str(value).strip()
        if not text.isdecimal():
            raise InvalidMinimum(value)
        minimum = int(text)
    if minimum < 0:
        raise InvalidMinimum(value)
    return minimum


def load_rule_list(value: RuleInput, name: str) -> Optional[List[Any]]:
    """
    Deserialize a rule list input.

    Args:
        value: YAML/JSON string, an already-parsed list, or None
        name: Input name used in error messages ("multiple", "unless")

    Returns:
        The list, or None when the input was not supplied

    Raises:
        ConfigParseError: If a string input is not valid YAML
        ConfigNotArray: If the input is not a list
    """
    if _is_blank(value):
        return None

    if isinstance(value, str):
        try:
            value = yaml.safe_load(value)
        except yaml.YAMLError as e:
            raise ConfigParseError(name, str(e)) from e

    if not isinstance(value, list):
        raise ConfigNotArray(name)
    return value


def _parse_multiple(entries: List[Any]) -> List[RetentionRule]:
    rules = []
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ConfigMissingFields(index, ['match', 'retention'])

        missing = [key for key in ('match', 'retention') if _is_blank(entry.get(key))]
        if missing:
            raise ConfigMissingFields(index, missing)

        rules.append(RetentionRule(
            match=TagMatcher(_as_text(entry['match'])),
            retention=RetentionWindow.parse(str(entry['retention'])),
            minimum=parse_minimum(entry.get('minimum')),
        ))
    return rules


def _parse_single(match: Any, retention: Any, minimum: Any) -> RetentionRule:
    retention_text = _as_text(retention)
    return RetentionRule(
        match=TagMatcher(_as_text(match)),
        retention=RetentionWindow.parse(retention_text) if retention_text else None,
        minimum=parse_minimum(minimum),
    )


def _parse_unless(entries: List[Any]) -> List[ExceptionRule]:
    rules = []
    for index, entry in enumerate(entries):
        pattern = entry.get('match') if isinstance(entry, dict) else None
        if _is_blank(pattern):
            logger.warning(f"unless entry {index} has no match: every tag will be protected")
        rules.append(ExceptionRule(match=TagMatcher(_as_text(pattern))))
    return rules


def parse_rule_set(
    match: Any = None,
    retention: Any = None,
    minimum: Any = None,
    multiple: RuleInput = None,
    unless: RuleInput = None,
) -> RuleSet:
    """
    Build a RuleSet from raw configuration inputs.

    Args:
        match: Single-rule tag pattern
        retention: Single-rule retention expression
        minimum: Single-rule minimum-keep count
        multiple: List of {match, retention, minimum} (string or list)
        unless: List of {match} exception entries (string or list)

    Returns:
        Normalized RuleSet

    Raises:
        ConfigError: On any invalid input (see registry_retention.errors)
    """
    entries = load_rule_list(multiple, 'multiple')
    if entries is not None:
        retention_rules = _parse_multiple(entries)
    else:
        retention_rules = [_parse_single(match, retention, minimum)]

    exception_entries = load_rule_list(unless, 'unless') or []
    exception_rules = _parse_unless(exception_entries)

    return RuleSet(
        retention_rules=tuple(retention_rules),
        exception_rules=tuple(exception_rules),
    )


@dataclass
class ValidationResult:
    """Outcome of validating rule inputs without raising."""
    rule_set: Optional[RuleSet] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.ok:
            return {'valid': True, 'config': self.rule_set.to_dict()}
        return {'valid': False, 'error': self.error, 'type': self.error_type}


def validate_rule_set(**inputs) -> ValidationResult:
    """
    Validate rule inputs, returning a ValidationResult instead of raising.

    Accepts the same keyword arguments as parse_rule_set().
    """
    try:
        return ValidationResult(rule_set=parse_rule_set(**inputs))
    except ConfigError as e:
        return ValidationResult(error=str(e), error_type=type(e).__name__)
