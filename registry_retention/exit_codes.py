"""
Exit codes for registry-retention commands.

Codes above 64 follow the BSD sysexits range:
    0    retention run finished (including lenient-mode registry warnings)
    1    unexpected failure
    65   registry API error while listing or deleting
    66   invalid configuration or rule input (raised before any registry call)
    69   registry rejected the credentials
    71   some deletions failed
    130  interrupted
"""

SUCCESS = 0
GENERAL_ERROR = 1
API_ERROR = 65
CONFIG_ERROR = 66
AUTH_ERROR = 69
PARTIAL_SUCCESS = 71
INTERRUPTED = 130


def get_exit_code_for_exception(exc: BaseException) -> int:
    """Exit code carried by a CommandError, GENERAL_ERROR for anything else."""
    if isinstance(exc, CommandError):
        return exc.exit_code
    return GENERAL_ERROR


class CommandError(Exception):
    """Base for errors that end a command with a specific exit code."""

    def __init__(self, message: str, exit_code: int = GENERAL_ERROR):
        super().__init__(message)
        self.exit_code = exit_code


class APIError(CommandError):
    """A registry API call failed."""

    def __init__(self, message: str):
        super().__init__(message, API_ERROR)


class ConfigError(CommandError):
    """Configuration or rule input is unusable."""

    def __init__(self, message: str):
        super().__init__(message, CONFIG_ERROR)


class PartialSuccessError(CommandError):
    """
    Some deletions succeeded and some failed.

    Attributes:
        succeeded: Number of tags deleted
        failed: Number of tags whose deletion failed
    """

    def __init__(self, message: str, succeeded: int = 0, failed: int = 0):
        super().__init__(message, PARTIAL_SUCCESS)
        self.succeeded = succeeded
        self.failed = failed
