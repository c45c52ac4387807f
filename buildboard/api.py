"""
High-level Python API for buildboard.

Example:
    import buildboard

    # Create instance (uses config defaults)
    board = buildboard.Dashboard()

    # Current snapshot, refreshed at most once per TTL
    snapshot = board.snapshot()
    for repo in snapshot.repositories:
        print(repo.name, repo.pipeline_state.value)

    for platform in snapshot.platforms:
        for package in platform.packages:
            print(platform.platform, package.package_name, package.sync_state.value)

    # Low-level access
    board.cache
    board.service
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import logging

from .config import load_config
from .domain import Snapshot
from .infra import ArtifactClient, GitLabClient
from .services import SnapshotCache, SnapshotService

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Owns the SnapshotCache and the service that refreshes it.

    Rendering layers hold one Dashboard and call snapshot(); they never
    trigger network calls themselves.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        gitlab_token: Optional[str] = None,
        gitlab_client: Optional[GitLabClient] = None,
        artifact_client: Optional[ArtifactClient] = None,
    ):
        """
        Initialize Dashboard.

        Args:
            config: Full config dict (loads default config if None)
            gitlab_token: GitLab private token (overrides config/env)
            gitlab_client: GitLabClient to use (created from config if None)
            artifact_client: ArtifactClient to use (created from config if None)
        """
        self._config = config if config is not None else load_config()

        if gitlab_token:
            self._config.setdefault('gitlab', {})['token'] = gitlab_token

        self.service = SnapshotService.from_config(
            self._config,
            gitlab_client=gitlab_client,
            artifact_client=artifact_client,
        )
        ttl_seconds = self._config.get('cache', {}).get('ttl_seconds', 3600)
        self.cache = SnapshotCache(self.service.build, ttl=timedelta(seconds=ttl_seconds))

    @property
    def config(self) -> Dict[str, Any]:
        return self._config

    def snapshot(self, now: Optional[datetime] = None) -> Snapshot:
        """
        Current snapshot.

        Raises:
            SnapshotRefreshError: if the cache had expired and the refresh failed
        """
        return self.cache.get_snapshot(now)

    def refresh(self, now: Optional[datetime] = None) -> Snapshot:
        """Drop the cached snapshot and build a new one."""
        self.cache.invalidate()
        return self.cache.get_snapshot(now)


def create(config: Optional[Dict[str, Any]] = None, **kwargs) -> Dashboard:
    """
    Create a Dashboard instance.

    Convenience function for:
        board = buildboard.create()
    """
    return Dashboard(config=config, **kwargs)
