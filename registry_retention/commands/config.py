import click
import json
import sys

from ..cli_utils import add_rule_options
from ..config import load_config, save_config, get_config_path, get_default_config, collect_inputs
from ..exit_codes import CONFIG_ERROR
from ..rules import validate_rule_set


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
def show_config(pretty):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    """
    config = load_config()

    if pretty:
        print(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        print(json.dumps(config, ensure_ascii=False))


@config_cmd.command("path")
def config_path():
    """Show the config file path being used."""
    print(json.dumps({"config_path": str(get_config_path())}))


@config_cmd.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def init_config(force):
    """Write the default configuration file."""
    path = get_config_path()
    if path.exists() and not force:
        click.echo(f"Configuration already exists at {path} (use --force to overwrite)", err=True)
        sys.exit(1)
    save_config(get_default_config(), path)
    print(json.dumps({"config_path": str(path)}))


@config_cmd.command("validate")
@add_rule_options()
def validate_config(match, retention, minimum, multiple, unless):
    """Check retention rules without contacting the registry.

    Rules come from the options, INPUT_<NAME> environment variables and
    the config file, in that order of precedence.

    \b
    Examples:
        registry-retention config validate --match '^v' --retention 30d
        registry-retention config validate --multiple '[{match: "^pr-"}]'
    """
    inputs = collect_inputs(load_config(), overrides={
        'match': match,
        'retention': retention,
        'minimum': minimum,
        'multiple': multiple,
        'unless': unless,
    })
    result = validate_rule_set(
        match=inputs['match'],
        retention=inputs['retention'],
        minimum=inputs['minimum'],
        multiple=inputs['multiple'],
        unless=inputs['unless'],
    )
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    if not result.ok:
        sys.exit(CONFIG_ERROR)
