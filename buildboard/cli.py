#!/usr/bin/env python3

import click

from buildboard.commands.snapshot import snapshot_handler, repos_handler
from buildboard.commands.config import config_cmd


@click.group()
@click.version_option(package_name='buildboard')
def cli():
    """buildboard - Build health snapshots for GitLab repositories.

    Reports the latest CI pipeline and commit of each tracked repository
    and reconciles published packages and images against those commits.
    """
    pass


cli.add_command(snapshot_handler, name='snapshot')
cli.add_command(repos_handler, name='repos')
cli.add_command(config_cmd)


def main():
    cli()

if __name__ == "__main__":
    main()
