"""
Snapshot and repos commands for buildboard.

Default output is JSONL on stdout: one object per repository and per
platform, each tagged with a 'kind' field. Interactive terminals get rich
tables instead.
"""

import logging
import sys
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

import click

from ..api import Dashboard
from ..cli_utils import standard_command, add_common_options
from ..config import load_config, setup_logging, get_tracked_repositories
from ..domain import Snapshot
from ..infra.gitlab_client import GitLabClient
from ..render import render_snapshot, render_repositories_table
from ..services.repository_status_service import RepositoryStatusService


def _prepare_config(verbose: bool) -> Dict[str, Any]:
    config = load_config()
    setup_logging(config)
    if verbose:
        logging.getLogger('buildboard').setLevel(logging.DEBUG)
    return config


def snapshot_records(snapshot: Snapshot) -> Iterator[Dict[str, Any]]:
    """Flatten a snapshot into JSONL records."""
    for repo in snapshot.repositories:
        yield {'kind': 'repository', **repo.to_dict()}
    for platform in snapshot.platforms:
        yield {'kind': 'platform', **platform.to_dict()}
    yield {
        'kind': 'snapshot',
        'captured_at': snapshot.captured_at.isoformat(),
        'repositories': len(snapshot.repositories),
        'platforms': len(snapshot.platforms),
    }


@click.command('snapshot')
@click.option('-p', '--platform', 'platforms', multiple=True,
              help='Only reconcile these platforms (repeatable)')
@click.option('--table/--no-table', default=None,
              help='Display as formatted tables (auto-detected by default)')
@add_common_options('verbose', 'quiet', 'format')
@standard_command
def snapshot_handler(platforms: tuple, table: Optional[bool], verbose: bool, quiet: bool,
                     format: Optional[str]):
    """
    Build a snapshot of CI and artifact health.

    \b
    Examples:
        buildboard snapshot                      # JSONL (tables on a terminal)
        buildboard snapshot -p x86_64 --table    # One platform, as tables
        buildboard snapshot -f json              # JSON array
    """
    config = _prepare_config(verbose)
    if platforms:
        config.setdefault('artifacts', {})['platforms'] = list(platforms)

    board = Dashboard(config=config)
    now = datetime.now()
    snapshot = board.snapshot(now)

    if table is None:
        table = sys.stdout.isatty()
    if table:
        if not quiet:
            render_snapshot(snapshot, now, config['artifacts'].get('stale_hours', 48))
        return None

    return snapshot_records(snapshot)


@click.command('repos')
@click.option('--table/--no-table', default=None,
              help='Display as a formatted table (auto-detected by default)')
@add_common_options('verbose', 'quiet', 'format')
@standard_command
def repos_handler(table: Optional[bool], verbose: bool, quiet: bool, format: Optional[str]):
    """
    Show CI pipeline and latest commit of every tracked repository.

    Only queries GitLab, the artifact host is not contacted.
    """
    config = _prepare_config(verbose)
    max_workers = config.get('general', {}).get('max_concurrent_requests', 8)
    service = RepositoryStatusService(GitLabClient.from_config(config), max_workers=max_workers)

    now = datetime.now()
    statuses = service.fetch_all(get_tracked_repositories(config))

    if table is None:
        table = sys.stdout.isatty()
    if table:
        if not quiet:
            snapshot = Snapshot(repositories=tuple(statuses), platforms=(), captured_at=now)
            render_repositories_table(snapshot, now)
        return None

    return [status.to_dict() for status in statuses]
