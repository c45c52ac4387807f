"""
Repository status service for buildboard.

Resolves every tracked repository against GitLab (project, latest pipeline,
latest commit) in parallel. Each repository is fetched independently: a
failure for one is logged and that repository is dropped, the rest of the
batch is unaffected.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Any, List, Optional, Sequence

from ..domain.repository import (
    CommitInfo,
    PipelineState,
    RepositoryStatus,
    TrackedRepository,
)
from ..exit_codes import APIError
from ..infra.gitlab_client import GitLabClient

logger = logging.getLogger(__name__)


class RepositoryStatusService:
    """
    Fetches RepositoryStatus values for tracked repositories.

    Example:
        service = RepositoryStatusService(GitLabClient(), max_workers=8)
        statuses = service.fetch_all(tracked)
    """

    def __init__(self, client: GitLabClient, max_workers: int = 8):
        self.client = client
        self.max_workers = max(1, max_workers)

    def fetch_one(self, repo: TrackedRepository) -> Optional[RepositoryStatus]:
        """
        Fetch the status of a single repository.

        Returns None if the project cannot be resolved.
        Raises APIError if a request fails after the project was found.
        """
        project = self.client.get_project(repo.path)
        if project is None:
            logger.error(f"Failed to fetch project {repo.path}: not found")
            return None

        project_id = project['id']
        pipeline = self.client.get_latest_pipeline(project_id, repo.branch)
        commit = self.client.get_latest_commit(project_id)

        return build_repository_status(repo, project, pipeline, commit)

    def _fetch_isolated(self, repo: TrackedRepository) -> Optional[RepositoryStatus]:
        try:
            return self.fetch_one(repo)
        except APIError as e:
            logger.error(f"Failed to process project {repo.path}: {e}")
        except Exception as e:
            logger.error(f"Unexpected response for project {repo.path}: {e}")
        return None

    def fetch_all(self, repos: Sequence[TrackedRepository]) -> List[RepositoryStatus]:
        """
        Fetch all repositories concurrently.

        Returns statuses in tracked order, omitting repositories that could
        not be resolved.
        """
        if not repos:
            return []

        logger.info(f"Fetching data for {len(repos)} projects...")
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(repos))) as executor:
            results = list(executor.map(self._fetch_isolated, repos))

        statuses = [status for status in results if status is not None]
        if len(statuses) < len(repos):
            logger.warning(f"Resolved {len(statuses)}/{len(repos)} projects")
        return statuses


def build_repository_status(
    repo: TrackedRepository,
    project: Dict[str, Any],
    pipeline: Optional[Dict[str, Any]],
    commit: Optional[Dict[str, Any]],
) -> RepositoryStatus:
    """Combine GitLab API responses into a RepositoryStatus."""
    return RepositoryStatus(
        id=project['id'],
        path=repo.path,
        name=project.get('name_with_namespace') or project.get('name') or repo.path,
        url=project.get('web_url', ''),
        branch=repo.branch,
        pipeline_state=PipelineState.from_api(pipeline.get('status')) if pipeline else PipelineState.UNKNOWN,
        pipeline_url=pipeline.get('web_url') if pipeline else None,
        latest_commit=CommitInfo.from_api_response(commit) if commit else None,
    )
