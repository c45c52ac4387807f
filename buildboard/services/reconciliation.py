"""
Package reconciliation for buildboard.

Classifies a published package against the latest commit of the repository
it is built from. The result is three-way rather than a boolean so that a
package that is behind but was rebuilt recently (pending) is told apart
from one that is behind with nothing happening (outdated).
"""

from datetime import datetime, timedelta
from typing import Optional

from ..domain.artifact import PackageDescriptor, PackageReconciliation, SyncState
from ..domain.repository import RepositoryStatus, short_hash


def hours_since(then: datetime, now: datetime) -> float:
    """
    Hours elapsed between then and now.

    Naive datetimes are local time. If only one side is timezone-aware,
    now is converted to match then.
    """
    if then.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    elif then.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    return (now - then) / timedelta(hours=1)


def classify(
    repository: RepositoryStatus,
    descriptor: Optional[PackageDescriptor],
    now: datetime,
    stale_hours: float,
) -> SyncState:
    if descriptor is None:
        return SyncState.OUTDATED

    latest = repository.latest_commit.hash if repository.latest_commit else None
    built = short_hash(descriptor.built_commit_hash)
    if built == short_hash(latest):
        return SyncState.SYNCED

    if descriptor.published_at is not None and hours_since(descriptor.published_at, now) < stale_hours:
        return SyncState.PENDING

    return SyncState.OUTDATED


def reconcile_package(
    package_name: str,
    repository: RepositoryStatus,
    descriptor: Optional[PackageDescriptor],
    now: datetime,
    stale_hours: float,
    descriptor_url: Optional[str] = None,
) -> PackageReconciliation:
    """
    Reconcile one package with its repository.

    Args:
        package_name: Name of the package
        repository: Status of the repository the package is built from
        descriptor: Published package descriptor, None if absent
        now: Reference time for the staleness window
        stale_hours: Staleness window in hours
        descriptor_url: Where the descriptor lives (for display)

    Returns:
        PackageReconciliation with sync_state synced, pending or outdated
    """
    return PackageReconciliation(
        package_name=package_name,
        repository=repository,
        descriptor=descriptor,
        sync_state=classify(repository, descriptor, now, stale_hours),
        descriptor_url=descriptor_url,
    )
