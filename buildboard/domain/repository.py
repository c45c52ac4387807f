"""
Repository domain objects for buildboard.

TrackedRepository is the static description of a repository we watch.
RepositoryStatus is what one refresh cycle learned about it from GitLab.
Both are immutable and serializable for JSONL output.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any, Iterable

# Length of the commit prefix used for display and for matching
SHORT_HASH_LENGTH = 7

# Shown when a commit is unknown
COMMIT_PLACEHOLDER = "-"


def short_hash(commit_hash: Optional[str]) -> str:
    """Truncate a commit hash the same way on every side of a comparison."""
    if not commit_hash:
        return COMMIT_PLACEHOLDER
    return commit_hash[:SHORT_HASH_LENGTH]


class PipelineState(Enum):
    """Status of the most recent CI pipeline."""
    SUCCESS = "success"
    FAILED = "failed"
    RUNNING = "running"
    PENDING = "pending"
    CANCELED = "canceled"
    UNKNOWN = "unknown"

    @classmethod
    def from_api(cls, value: Optional[str]) -> 'PipelineState':
        """Map a GitLab pipeline status string, anything unexpected is UNKNOWN."""
        if not isinstance(value, str) or not value:
            return cls.UNKNOWN
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class TrackedRepository:
    """A repository listed in the configuration."""
    path: str  # e.g. "redox-os/relibc"
    branch: str = "master"
    package_names: tuple = ()

    @classmethod
    def create(cls, path: str, branch: Optional[str] = None,
               packages: Optional[Iterable[str]] = None) -> 'TrackedRepository':
        """Build a TrackedRepository, de-duplicating package names in order."""
        names = []
        for name in packages or ():
            if name not in names:
                names.append(name)
        return cls(path=path, branch=branch or "master", package_names=tuple(names))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'branch': self.branch,
            'packages': list(self.package_names),
        }


@dataclass(frozen=True)
class CommitInfo:
    """Latest commit of a repository."""
    hash: str
    message: str = ""
    author: str = ""
    timestamp: Optional[datetime] = None

    @property
    def short_hash(self) -> str:
        return short_hash(self.hash)

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'CommitInfo':
        """Create from a GitLab commit object."""
        return cls(
            hash=data.get('id', ''),
            message=data.get('title', ''),
            author=data.get('author_name', ''),
            timestamp=parse_timestamp(data.get('created_at')),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'hash': self.hash,
            'short_hash': self.short_hash,
            'message': self.message,
            'author': self.author,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class RepositoryStatus:
    """
    CI and commit status of one tracked repository.

    Produced fresh on every refresh cycle, never mutated afterwards.
    """
    id: Any
    path: str
    name: str
    url: str
    branch: str = "master"
    pipeline_state: PipelineState = PipelineState.UNKNOWN
    pipeline_url: Optional[str] = None
    latest_commit: Optional[CommitInfo] = None

    @property
    def commits_url(self) -> str:
        """Web URL listing the commits of the tracked branch."""
        return f"{self.url}/-/commits/{self.branch}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'path': self.path,
            'name': self.name,
            'url': self.url,
            'branch': self.branch,
            'pipeline_state': self.pipeline_state.value,
            'pipeline_url': self.pipeline_url,
            'latest_commit': self.latest_commit.to_dict() if self.latest_commit else None,
        }


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp from an API or descriptor document.

    Accepts datetime objects as-is (TOML datetimes arrive already parsed).
    Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.strip())
    except ValueError:
        return None
