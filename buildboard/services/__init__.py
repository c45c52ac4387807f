"""
Service layer for buildboard.

Services orchestrate domain objects and infrastructure:
- RepositoryStatusService: parallel GitLab lookups for tracked repositories
- DescriptorService: package and repository TOML descriptors
- SnapshotService: one full refresh cycle
- SnapshotCache: TTL cache with single-flight refresh

Parsing and classification are plain functions:
- parse_artifact_index / list_artifact_index: Apache autoindex pages
- reconcile_package: synced / pending / outdated classification
"""

from .artifact_index import parse_artifact_index, list_artifact_index, is_stale
from .descriptor_service import DescriptorService
from .reconciliation import reconcile_package, hours_since
from .repository_status_service import RepositoryStatusService
from .snapshot_cache import SnapshotCache, CacheState
from .snapshot_service import SnapshotService

__all__ = [
    'parse_artifact_index',
    'list_artifact_index',
    'is_stale',
    'DescriptorService',
    'reconcile_package',
    'hours_since',
    'RepositoryStatusService',
    'SnapshotCache',
    'CacheState',
    'SnapshotService',
]
