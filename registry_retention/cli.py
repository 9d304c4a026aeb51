#!/usr/bin/env python3

import click

from registry_retention.commands.prune import prune_handler
from registry_retention.commands.config import config_cmd


@click.group()
@click.version_option(package_name='registry-retention')
def cli():
    """registry-retention - Retention policies for container image tags.

    Deletes tags that are older than their retention window, keeps the
    newest tags of each rule, and never touches images referenced by an
    exception rule.
    """
    pass


cli.add_command(prune_handler, name='prune')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
