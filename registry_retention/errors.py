"""
Error taxonomy for registry-retention.

Configuration errors are raised while reading rule inputs, before any
registry call, and are always fatal. Registry errors come from the
registry client during login, listing or deletion.
"""

from typing import Optional, Sequence

from .exit_codes import APIError, AUTH_ERROR, ConfigError


class InvalidRetentionFormat(ConfigError):
    """Retention expression is not ``<integer><d|m|y>``."""
    def __init__(self, expression: str):
        super().__init__(f"invalid retention format: {expression}")
        self.expression = expression


class InvalidRetentionUnit(ConfigError):
    """Retention unit is not one of d, m, y."""
    def __init__(self, unit: str):
        super().__init__(f"invalid retention unit: {unit}")
        self.unit = unit


class ConfigNotArray(ConfigError):
    """A multi-rule or exception input did not deserialize to a list."""
    def __init__(self, name: str):
        super().__init__(f"{name} config must be an array")
        self.name = name


class ConfigMissingFields(ConfigError):
    """A multi-rule entry lacks match or retention."""
    def __init__(self, index: int, missing: Sequence[str]):
        fields = ", ".join(missing)
        super().__init__(
            f"multiple config must contain match and retention "
            f"(entry {index} is missing: {fields})"
        )
        self.index = index
        self.missing = tuple(missing)


class ConfigParseError(ConfigError):
    """A serialized rule list is not valid YAML/JSON."""
    def __init__(self, name: str, detail: str):
        super().__init__(f"{name} config could not be parsed: {detail}")
        self.name = name


class InvalidMinimum(ConfigError):
    """Minimum-keep count is not a non-negative integer."""
    def __init__(self, value):
        super().__init__(f"invalid minimum: {value!r} (expected a non-negative integer)")
        self.value = value


class InvalidMatchPattern(ConfigError):
    """Match pattern is not a valid regular expression."""
    def __init__(self, pattern: str, detail: str):
        super().__init__(f"invalid match pattern {pattern!r}: {detail}")
        self.pattern = pattern


class RegistryError(APIError):
    """A registry API call failed."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RegistryError):
    """The registry rejected the supplied credentials."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message, status_code)
        self.exit_code = AUTH_ERROR
