"""
Rendering functions for buildboard output.

This module handles all pretty-printing and table formatting.
Services return data, this module makes it human-readable.
"""

from datetime import datetime
from typing import Optional

from rich.table import Table
from rich.console import Console
from rich import box

from .domain import PipelineState, PlatformSnapshot, Snapshot, SyncState
from .domain.artifact import ArtifactIndexEntry
from .services.reconciliation import hours_since

console = Console()

PIPELINE_STYLES = {
    PipelineState.SUCCESS: "green",
    PipelineState.FAILED: "red",
    PipelineState.RUNNING: "blue",
    PipelineState.PENDING: "yellow",
    PipelineState.CANCELED: "dim",
    PipelineState.UNKNOWN: "dim",
}

SYNC_STYLES = {
    SyncState.SYNCED: "green",
    SyncState.PENDING: "yellow",
    SyncState.OUTDATED: "red",
}

# (upper bound in seconds, divisor, unit)
_UNITS = [
    (60, 1, 'second'),
    (3600, 60, 'minute'),
    (86400, 3600, 'hour'),
    (604800, 86400, 'day'),
    (2592000, 604800, 'week'),
    (31536000, 2592000, 'month'),
]


def humanize(seconds: float) -> str:
    """
    Convert an elapsed time in seconds to a relative phrase.

    Examples:
        humanize(30)    -> "30 seconds ago"
        humanize(3600)  -> "1 hour ago"
    """
    for bound, divisor, unit in _UNITS:
        if seconds < bound:
            value = round(seconds / divisor)
            break
    else:
        value, unit = round(seconds / 31536000), 'year'
    plural = '' if value == 1 else 's'
    return f"{value} {unit}{plural} ago"


def humanize_since(then: Optional[datetime], now: datetime) -> str:
    """Relative age of a timestamp, 'N/A' when unknown."""
    if then is None:
        return "N/A"
    return humanize(hours_since(then, now) * 3600)


def _artifact_cell(entry: Optional[ArtifactIndexEntry], now: datetime, stale_hours: float) -> str:
    if entry is None:
        return "[dim]missing[/dim]"
    badge = f"[red]Stale (> {stale_hours:g}h)[/red]" if entry.is_stale else "[green]OK[/green]"
    return f"{badge} {humanize_since(entry.last_modified, now)}"


def render_repositories_table(snapshot: Snapshot, now: datetime) -> None:
    """Render CI status of every repository."""
    if not snapshot.repositories:
        console.print("[yellow]No repositories found.[/yellow]")
        return

    table = Table(
        title="GitLab CI Status",
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Repository", style="cyan")
    table.add_column("Latest CI Status")
    table.add_column("Latest Commit", max_width=50, no_wrap=True)
    table.add_column("Author")
    table.add_column("Date")

    for repo in snapshot.repositories:
        style = PIPELINE_STYLES[repo.pipeline_state]
        commit = repo.latest_commit
        table.add_row(
            repo.name,
            f"[{style}]{repo.pipeline_state.value}[/{style}]",
            commit.message if commit else "N/A",
            commit.author if commit else "N/A",
            humanize_since(commit.timestamp, now) if commit else "N/A",
        )

    console.print(table)


def render_platform_table(platform: PlatformSnapshot, now: datetime, stale_hours: float) -> None:
    """Render artifacts and package reconciliation of one platform."""
    descriptor = platform.repository_descriptor
    table = Table(
        title=(
            f"{platform.platform}  package: {_artifact_cell(platform.package_index, now, stale_hours)}"
            f"  image: {_artifact_cell(platform.image_index, now, stale_hours)}"
            f"  repository: {descriptor.synced_count}/{descriptor.total_count}"
        ),
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )
    table.add_column("Package", style="cyan")
    table.add_column("State")
    table.add_column("Commit")
    table.add_column("Published")

    for package in platform.packages:
        style = SYNC_STYLES[package.sync_state]
        if package.sync_state is SyncState.SYNCED:
            commits = f"{package.package_commit} (latest)"
        else:
            commits = f"{package.package_commit} vs {package.repository_commit}"
        published = package.descriptor.published_at if package.descriptor else None
        table.add_row(
            package.package_name,
            f"[{style}]{package.sync_state.value}[/{style}]",
            commits,
            humanize_since(published, now),
        )

    console.print(table)

    if descriptor.outdated_packages:
        console.print(f"[bold]Outdated packages ({descriptor.outdated_count}):[/bold]")
        for name, outdated in descriptor.outdated_packages.items():
            console.print(f"  [red]{name}[/red] since {humanize_since(outdated.published_at, now)}")


def render_snapshot(snapshot: Snapshot, now: datetime, stale_hours: float) -> None:
    """Render a whole snapshot: platforms first, then repositories."""
    for platform in snapshot.platforms:
        render_platform_table(platform, now, stale_hours)
    render_repositories_table(snapshot, now)
    console.print(
        f"[dim]Last updated: {snapshot.captured_at:%Y-%m-%d %H:%M:%S} "
        f"({humanize_since(snapshot.captured_at, now)})[/dim]"
    )
