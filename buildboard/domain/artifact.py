"""
Artifact domain objects for buildboard.

Covers what the static artifact host publishes (directory index entries,
package and repository descriptors) and the result of reconciling those
artifacts against the tracked repositories.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from .repository import RepositoryStatus, parse_timestamp, short_hash


class SyncState(Enum):
    """How a published package relates to its repository's latest commit."""
    SYNCED = "synced"      # built from the latest commit
    PENDING = "pending"    # behind, but published recently enough that a rebuild may be in flight
    OUTDATED = "outdated"  # behind and stale, or never published


@dataclass(frozen=True)
class ArtifactIndexEntry:
    """One row of an artifact directory listing, selected for a platform."""
    platform: str
    name: str
    url: str
    last_modified: datetime  # naive, local time of the artifact host
    is_stale: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'name': self.name,
            'url': self.url,
            'last_modified': self.last_modified.isoformat(),
            'is_stale': self.is_stale,
        }


@dataclass(frozen=True)
class PackageDescriptor:
    """
    Metadata embedded in a published package.

    Parsed from the package's TOML descriptor:
        commit_identifier -> source_commit_hash (recipe tree commit)
        source_identifier -> built_commit_hash (repository commit the artifact was built from)
        time_identifier   -> published_at
    """
    source_commit_hash: str = ""
    built_commit_hash: str = ""
    published_at: Optional[datetime] = None
    version: Optional[str] = None

    @classmethod
    def from_toml(cls, data: Dict[str, Any]) -> 'PackageDescriptor':
        """Create from a parsed descriptor document."""
        version = data.get('version')
        return cls(
            source_commit_hash=str(data.get('commit_identifier') or ''),
            built_commit_hash=str(data.get('source_identifier') or ''),
            published_at=parse_timestamp(data.get('time_identifier')),
            version=str(version) if version not in (None, '') else None,
        )

    @property
    def short_hash(self) -> str:
        return short_hash(self.built_commit_hash)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_commit_hash': self.source_commit_hash,
            'built_commit_hash': self.built_commit_hash,
            'published_at': self.published_at.isoformat() if self.published_at else None,
            'version': self.version,
        }


@dataclass(frozen=True)
class DescriptorResult:
    """
    Outcome of fetching one package descriptor.

    descriptor is None either because the package is not published yet
    (error is None) or because fetching/parsing failed (error is set).
    """
    package_name: str
    url: str
    descriptor: Optional[PackageDescriptor] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.descriptor is not None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class RepositoryDescriptor:
    """Server-side classification of a platform's package set (repo.toml)."""
    synced_packages: Dict[str, str] = field(default_factory=dict)
    outdated_packages: Dict[str, PackageDescriptor] = field(default_factory=dict)

    @classmethod
    def from_toml(cls, data: Dict[str, Any]) -> 'RepositoryDescriptor':
        """Create from a parsed repo.toml, either table may be missing."""
        packages = data.get('packages') or {}
        outdated = data.get('outdated_packages') or {}
        return cls(
            synced_packages={name: str(marker) for name, marker in packages.items()},
            outdated_packages={
                name: PackageDescriptor.from_toml(entry if isinstance(entry, dict) else {})
                for name, entry in outdated.items()
            },
        )

    @property
    def total_count(self) -> int:
        return len(set(self.synced_packages) | set(self.outdated_packages))

    @property
    def outdated_count(self) -> int:
        return len(self.outdated_packages)

    @property
    def synced_count(self) -> int:
        return self.total_count - self.outdated_count

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total': self.total_count,
            'synced': self.synced_count,
            'outdated': self.outdated_count,
            'outdated_packages': {
                name: descriptor.to_dict()
                for name, descriptor in self.outdated_packages.items()
            },
        }


@dataclass(frozen=True)
class PackageReconciliation:
    """A tracked package on one platform, classified against its repository."""
    package_name: str
    repository: RepositoryStatus
    descriptor: Optional[PackageDescriptor]
    sync_state: SyncState
    descriptor_url: Optional[str] = None

    @property
    def package_commit(self) -> str:
        return self.descriptor.short_hash if self.descriptor else short_hash(None)

    @property
    def repository_commit(self) -> str:
        commit = self.repository.latest_commit
        return commit.short_hash if commit else short_hash(None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'package': self.package_name,
            'repository': self.repository.path,
            'sync_state': self.sync_state.value,
            'package_commit': self.package_commit,
            'repository_commit': self.repository_commit,
            'published_at': (
                self.descriptor.published_at.isoformat()
                if self.descriptor and self.descriptor.published_at else None
            ),
            'descriptor_url': self.descriptor_url,
        }


@dataclass(frozen=True)
class PlatformSnapshot:
    """Artifact state of one platform."""
    platform: str
    package_index: Optional[ArtifactIndexEntry]
    image_index: Optional[ArtifactIndexEntry]
    packages: tuple = ()
    repository_descriptor: RepositoryDescriptor = field(default_factory=RepositoryDescriptor)
    package_url: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'platform': self.platform,
            'package_url': self.package_url,
            'package_index': self.package_index.to_dict() if self.package_index else None,
            'image_index': self.image_index.to_dict() if self.image_index else None,
            'packages': [p.to_dict() for p in self.packages],
            'repository': self.repository_descriptor.to_dict(),
        }


@dataclass(frozen=True)
class Snapshot:
    """
    The complete result of one refresh cycle.

    This is the only object handed to consumers. A refresh builds a new
    Snapshot; an existing one is never modified.
    """
    repositories: tuple
    platforms: tuple
    captured_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            'captured_at': self.captured_at.isoformat(),
            'repositories': [r.to_dict() for r in self.repositories],
            'platforms': [p.to_dict() for p in self.platforms],
        }
