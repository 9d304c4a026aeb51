"""
Common CLI utilities and decorators for consistent command behavior.
"""

import logging
import sys
import click
from functools import wraps

from .exit_codes import (
    SUCCESS, INTERRUPTED,
    get_exit_code_for_exception, CommandError
)
from .output import emit_error

logger = logging.getLogger(__name__)


def standard_command(func):
    """
    Decorator that provides standard CLI behavior:
    - Clean JSON output on stdout, errors as JSON on stderr
    - Exit codes from registry_retention.exit_codes
    - One error report per failure
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            func(*args, **kwargs)
        except KeyboardInterrupt:
            emit_error("Interrupted by user", type="KeyboardInterrupt")
            sys.exit(INTERRUPTED)
        except click.ClickException:
            # Click exceptions already have their exit code
            raise
        except CommandError as e:
            error_context = {"exit_code": e.exit_code}
            # Add extra fields for PartialSuccessError
            if hasattr(e, 'succeeded'):
                error_context['succeeded'] = e.succeeded
                error_context['failed'] = e.failed
            emit_error(str(e), type=type(e).__name__, context=error_context)
            sys.exit(e.exit_code)
        except Exception as e:
            logger.debug("Unhandled error", exc_info=True)
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

        sys.exit(SUCCESS)

    return wrapper


# Standard options that many commands share
common_options = {
    'dry_run': click.option('--dry-run', is_flag=True,
                            help='Report what would be deleted without deleting'),
    'json': click.option('--json', 'output_json', is_flag=True,
                         help='Output tags as JSONL on stdout'),
    'pretty': click.option('--pretty', is_flag=True,
                           help='Display tags in a rich table'),
    'debug': click.option('--debug', is_flag=True, help='Enable debug logging'),
}

# Rule input options shared by `prune` and `config validate`
rule_options = {
    'match': click.option('--match', default=None,
                          help='Regular expression tested against tag names'),
    'retention': click.option('--retention', default=None,
                              help='Retention window, e.g. 30d, 6m, 1y'),
    'minimum': click.option('--minimum', default=None,
                            help='Most recently pushed matching tags always kept'),
    'multiple': click.option('--multiple', default=None,
                             help='YAML/JSON list of {match, retention, minimum} rules'),
    'unless': click.option('--unless', default=None,
                           help='YAML/JSON list of {match} exception rules'),
}


def _add_options(options, option_names):
    def decorator(func):
        for name in reversed(option_names):
            if name in options:
                func = options[name](func)
        return func
    return decorator


def add_common_options(*option_names):
    """
    Decorator to add common options to a command.

    Example:
        @add_common_options('dry_run', 'debug')
        def my_command(dry_run, debug):
            ...
    """
    return _add_options(common_options, option_names)


def add_rule_options(*option_names):
    """Decorator to add rule input options (all of them when none are named)."""
    return _add_options(rule_options, option_names or tuple(rule_options))
