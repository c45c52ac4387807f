"""
Snapshot building for buildboard.

Runs one complete refresh cycle: repository statuses and artifact listings
are fetched in parallel, then every platform is assembled from its listing
entries, its repo.toml and the descriptors of the tracked packages, and each
package is reconciled with its repository.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_artifact_urls, get_platforms, get_tracked_repositories
from ..domain.artifact import PlatformSnapshot, Snapshot
from ..domain.repository import RepositoryStatus, TrackedRepository
from ..exit_codes import APIError, SnapshotRefreshError
from ..infra.artifact_client import ArtifactClient
from ..infra.gitlab_client import GitLabClient
from .artifact_index import parse_artifact_index
from .descriptor_service import DescriptorService
from .reconciliation import reconcile_package
from .repository_status_service import RepositoryStatusService

logger = logging.getLogger(__name__)


class SnapshotService:
    """
    Builds Snapshot values.

    Example:
        service = SnapshotService.from_config(load_config())
        snapshot = service.build(datetime.now())
    """

    def __init__(
        self,
        repository_service: RepositoryStatusService,
        artifact_client: ArtifactClient,
        descriptor_service: DescriptorService,
        tracked: Sequence[TrackedRepository],
        platforms: Sequence[str],
        package_url: str,
        image_url: str,
        stale_hours: float = 48,
        max_workers: int = 8,
    ):
        self.repository_service = repository_service
        self.artifact_client = artifact_client
        self.descriptor_service = descriptor_service
        self.tracked = tuple(tracked)
        self.platforms = tuple(platforms)
        self.package_url = package_url
        self.image_url = image_url
        self.stale_hours = stale_hours
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        gitlab_client: Optional[GitLabClient] = None,
        artifact_client: Optional[ArtifactClient] = None,
    ) -> 'SnapshotService':
        """Wire up clients and services from a configuration dict."""
        max_workers = config.get('general', {}).get('max_concurrent_requests', 8)
        gitlab_client = gitlab_client or GitLabClient.from_config(config)
        artifact_client = artifact_client or ArtifactClient.from_config(config)
        urls = get_artifact_urls(config)
        return cls(
            repository_service=RepositoryStatusService(gitlab_client, max_workers=max_workers),
            artifact_client=artifact_client,
            descriptor_service=DescriptorService(artifact_client, max_workers=max_workers),
            tracked=get_tracked_repositories(config),
            platforms=get_platforms(config),
            package_url=urls['package_url'],
            image_url=urls['image_url'],
            stale_hours=config.get('artifacts', {}).get('stale_hours', 48),
            max_workers=max_workers,
        )

    def _listing(self, future: Future, url: str) -> Optional[str]:
        try:
            return future.result()
        except APIError as e:
            logger.error(f"Failed to fetch artifact index {url}: {e}")
            return None

    def build(self, now: datetime) -> Snapshot:
        """
        Run a full refresh cycle.

        Raises:
            SnapshotRefreshError: if nothing at all could be fetched
        """
        logger.info("Refreshing snapshot...")
        with ThreadPoolExecutor(max_workers=3) as executor:
            repos_future = executor.submit(self.repository_service.fetch_all, self.tracked)
            package_future = executor.submit(self.artifact_client.get_text, self.package_url)
            image_future = executor.submit(self.artifact_client.get_text, self.image_url)

            repositories = repos_future.result()
            package_html = self._listing(package_future, self.package_url)
            image_html = self._listing(image_future, self.image_url)

        platforms = self._build_platforms(repositories, package_html, image_html, now)

        attempted = bool(self.tracked) or bool(self.platforms)
        if attempted and not repositories and not platforms:
            raise SnapshotRefreshError(
                "Could not fetch any repository or artifact data"
            )

        logger.info(
            f"Snapshot ready: {len(repositories)}/{len(self.tracked)} repositories, "
            f"{len(platforms)}/{len(self.platforms)} platforms"
        )
        return Snapshot(
            repositories=tuple(repositories),
            platforms=tuple(platforms),
            captured_at=now,
        )

    def _build_platforms(
        self,
        repositories: List[RepositoryStatus],
        package_html: Optional[str],
        image_html: Optional[str],
        now: datetime,
    ) -> List[PlatformSnapshot]:
        if not self.platforms:
            return []
        if package_html is None or image_html is None:
            logger.error(f"Artifact index unavailable, omitting platforms {', '.join(self.platforms)}")
            return []

        by_path = {status.path: status for status in repositories}

        def build_one(platform: str) -> Optional[PlatformSnapshot]:
            try:
                return self.build_platform(platform, by_path, package_html, image_html, now)
            except APIError as e:
                logger.error(f"Failed to build platform {platform}: {e}")
                return None

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(self.platforms))) as executor:
            results = list(executor.map(build_one, self.platforms))
        return [platform for platform in results if platform is not None]

    def platform_package_url(self, platform: str, package_index=None) -> str:
        """Directory holding a platform's descriptors."""
        if package_index is not None and package_index.name.endswith('/'):
            return package_index.url
        return f"{self.package_url}{platform}/"

    def build_platform(
        self,
        platform: str,
        repositories_by_path: Dict[str, RepositoryStatus],
        package_html: str,
        image_html: str,
        now: datetime,
    ) -> PlatformSnapshot:
        """Assemble the PlatformSnapshot for one platform token."""
        package_index = parse_artifact_index(package_html, platform, self.package_url, now, self.stale_hours)
        image_index = parse_artifact_index(image_html, platform, self.image_url, now, self.stale_hours)
        platform_url = self.platform_package_url(platform, package_index)

        # Packages of repositories that could not be resolved are skipped
        owners: Dict[str, RepositoryStatus] = {}
        for repo in self.tracked:
            status = repositories_by_path.get(repo.path)
            if status is None:
                continue
            for name in repo.package_names:
                owners.setdefault(name, status)

        descriptors = self.descriptor_service.fetch_packages(platform_url, list(owners))
        repository_descriptor = self.descriptor_service.fetch_repository(platform_url)

        packages = []
        for name, status in owners.items():
            result = descriptors[name]
            packages.append(reconcile_package(
                name,
                status,
                result.descriptor,
                now,
                self.stale_hours,
                descriptor_url=result.url,
            ))

        return PlatformSnapshot(
            platform=platform,
            package_index=package_index,
            image_index=image_index,
            packages=tuple(packages),
            repository_descriptor=repository_descriptor,
            package_url=platform_url,
        )
