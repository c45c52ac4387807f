"""
buildboard - Build health snapshots for a set of GitLab repositories.

buildboard tracks the latest CI pipeline and commit of each configured
repository, and reconciles the packages and disk images published on a
static artifact host against those commits.

Quick Start:
    import buildboard

    board = buildboard.Dashboard()
    snapshot = board.snapshot()

    for repo in snapshot.repositories:
        print(repo.path, repo.pipeline_state.value)

    for platform in snapshot.platforms:
        for package in platform.packages:
            print(platform.platform, package.package_name, package.sync_state.value)

Domain Objects:
    TrackedRepository - A repository listed in the configuration
    RepositoryStatus - CI and commit status of a repository
    PackageReconciliation - A package classified as synced, pending or outdated
    Snapshot - The immutable result of one refresh cycle
"""

__version__ = "0.3.0"

# High-level API
from .api import Dashboard, create

# Domain objects
from .domain import (
    TrackedRepository,
    RepositoryStatus,
    CommitInfo,
    PipelineState,
    ArtifactIndexEntry,
    PackageDescriptor,
    RepositoryDescriptor,
    SyncState,
    PackageReconciliation,
    PlatformSnapshot,
    Snapshot,
)

# Services (for advanced use)
from .services import SnapshotCache, SnapshotService, CacheState

# Configuration
from .config import load_config, save_config

# Errors
from .exit_codes import SnapshotRefreshError

__all__ = [
    # Version
    "__version__",
    # High-level API
    "Dashboard",
    "create",
    # Domain objects
    "TrackedRepository",
    "RepositoryStatus",
    "CommitInfo",
    "PipelineState",
    "ArtifactIndexEntry",
    "PackageDescriptor",
    "RepositoryDescriptor",
    "SyncState",
    "PackageReconciliation",
    "PlatformSnapshot",
    "Snapshot",
    # Services
    "SnapshotCache",
    "SnapshotService",
    "CacheState",
    # Configuration
    "load_config",
    "save_config",
    # Errors
    "SnapshotRefreshError",
]
