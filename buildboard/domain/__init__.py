"""
Domain layer for buildboard.

Contains pure domain objects with no I/O or side effects:
- TrackedRepository / RepositoryStatus: what we watch and what GitLab says about it
- ArtifactIndexEntry, PackageDescriptor, RepositoryDescriptor: what the artifact host publishes
- PackageReconciliation, PlatformSnapshot, Snapshot: results of a refresh cycle

These objects are immutable and provide serialization methods for JSONL output.
"""

from .repository import (
    TrackedRepository,
    RepositoryStatus,
    CommitInfo,
    PipelineState,
    short_hash,
    parse_timestamp,
)
from .artifact import (
    ArtifactIndexEntry,
    PackageDescriptor,
    DescriptorResult,
    RepositoryDescriptor,
    SyncState,
    PackageReconciliation,
    PlatformSnapshot,
    Snapshot,
)

__all__ = [
    'TrackedRepository',
    'RepositoryStatus',
    'CommitInfo',
    'PipelineState',
    'short_hash',
    'parse_timestamp',
    'ArtifactIndexEntry',
    'PackageDescriptor',
    'DescriptorResult',
    'RepositoryDescriptor',
    'SyncState',
    'PackageReconciliation',
    'PlatformSnapshot',
    'Snapshot',
]
