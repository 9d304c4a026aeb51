"""
Prune command for registry-retention.

Applies retention rules to one repository and deletes (or previews) the
expired tags.
"""

import logging
from typing import Optional

import click

from ..cli_utils import standard_command, add_common_options, add_rule_options
from ..config import load_config, collect_inputs, set_log_level
from ..exit_codes import ConfigError, PartialSuccessError
from ..infra import DockerHubClient
from ..output import emit
from ..rules import parse_rule_set
from ..services import RetentionService, RunResult

logger = logging.getLogger(__name__)


@click.command('prune')
@click.option('-r', '--repository', default=None, help='Repository, e.g. myorg/myimage')
@click.option('--username', default=None, help='Registry username')
@click.option('--password', default=None, help='Registry password or access token')
@add_rule_options()
@add_common_options('dry_run', 'json', 'pretty', 'debug')
@standard_command
def prune_handler(
    repository: Optional[str],
    username: Optional[str],
    password: Optional[str],
    match: Optional[str],
    retention: Optional[str],
    minimum: Optional[str],
    multiple: Optional[str],
    unless: Optional[str],
    dry_run: bool,
    output_json: bool,
    pretty: bool,
    debug: bool,
):
    """
    Delete tags that fall outside the retention rules.

    Inputs not given as options are read from INPUT_<NAME> environment
    variables, then from the `retention` section of the config file.

    \b
    Examples:
        # Preview deletion of v* tags older than 30 days, keeping the newest 3
        registry-retention prune -r myorg/app --match '^v' --retention 30d --minimum 3 --dry-run
        # Several rules, protecting anything that shares an image with "stable"
        registry-retention prune -r myorg/app \\
            --multiple '[{match: "^pr-", retention: 14d}, {match: "^v", retention: 1y}]' \\
            --unless '[{match: "^stable$"}]'
    """
    config = load_config()
    set_log_level(config.get('logging', {}).get('level', 'INFO'))
    if debug:
        set_log_level('DEBUG')

    inputs = collect_inputs(config, overrides={
        'repository': repository,
        'username': username,
        'password': password,
        'match': match,
        'retention': retention,
        'minimum': minimum,
        'multiple': multiple,
        'unless': unless,
        'dryrun': True if dry_run else None,
    })

    if not inputs['repository']:
        raise ConfigError("repository is required (use --repository or INPUT_REPOSITORY)")

    # Configuration errors surface here, before any registry call
    rule_set = parse_rule_set(
        match=inputs['match'],
        retention=inputs['retention'],
        minimum=inputs['minimum'],
        multiple=inputs['multiple'],
        unless=inputs['unless'],
    )

    with DockerHubClient.from_config(inputs['repository'], config) as client:
        service = RetentionService(client, config=config)
        result = service.run(
            inputs['repository'],
            rule_set,
            username=inputs['username'],
            password=inputs['password'],
            dry_run=inputs['dryrun'],
        )

    _emit_result(result, output_json, pretty)

    if result.deletion and not result.deletion.success and service.fail_on_registry_error:
        raise PartialSuccessError(
            f"{len(result.deletion.failed)} of {len(result.deletion.planned)} deletions failed",
            succeeded=len(result.deletion.deleted),
            failed=len(result.deletion.failed),
        )


def _tag_rows(result: RunResult):
    deletion = result.deletion
    for tag in result.evaluation.to_delete:
        row = tag.to_dict()
        if deletion.dry_run:
            row['status'] = 'would_delete'
        elif tag.name in deletion.failed:
            row['status'] = 'failed'
            row['error'] = deletion.failed[tag.name]
        else:
            row['status'] = 'deleted'
        yield row


def _emit_result(result: RunResult, output_json: bool, pretty: bool):
    if result.evaluation is None or result.deletion is None:
        return

    if pretty:
        title = f"{result.repository}: {'would delete' if result.dry_run else 'deleted'}"
        emit(_tag_rows(result), pretty=True,
             columns=['name', 'last_pushed', 'last_pulled', 'status'], title=title)
    elif output_json:
        emit(_tag_rows(result))
