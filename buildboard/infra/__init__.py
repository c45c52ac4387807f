"""
Infrastructure layer for buildboard.

Contains abstractions for external systems:
- GitLabClient: GitLab v4 API access (projects, pipelines, commits)
- ArtifactClient: static artifact host (directory listings, TOML descriptors)

These provide clean interfaces that can be mocked for testing.
"""

from .gitlab_client import GitLabClient, RateLimitStatus
from .artifact_client import ArtifactClient

__all__ = [
    'GitLabClient',
    'RateLimitStatus',
    'ArtifactClient',
]
