"""
GitLab API client infrastructure for buildboard.

Provides a thin abstraction over the GitLab v4 REST API:
- Optional PRIVATE-TOKEN authentication for higher rate limits
- Handles rate limiting with exponential backoff
- 404 is reported as None, other failures raise GitLabAPIError
"""

import time
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any
from urllib.parse import quote

import requests

from ..exit_codes import GitLabAPIError

logger = logging.getLogger(__name__)

DEFAULT_GITLAB_URL = "https://gitlab.redox-os.org"


@dataclass
class RateLimitStatus:
    """GitLab API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 10% remaining)."""
        return self.limit > 0 and self.remaining < self.limit // 10


class GitLabClient:
    """
    GitLab API client with rate limiting.

    Example:
        client = GitLabClient("https://gitlab.redox-os.org")
        project = client.get_project("redox-os/relibc")
        if project:
            pipeline = client.get_latest_pipeline(project['id'], "master")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_GITLAB_URL,
        token: Optional[str] = None,
        timeout: int = 30,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize GitLabClient.

        Args:
            base_url: GitLab instance URL, without /api/v4
            token: Private token sent as PRIVATE-TOKEN header (optional)
            timeout: Per-request timeout in seconds
            max_retries: Maximum attempts for rate-limited requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            session: requests.Session to use (created if None)
        """
        self.base_url = base_url.rstrip('/')
        self.token = token or None
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._rate_limit_status: Optional[RateLimitStatus] = None

        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/json',
            'User-Agent': 'buildboard',
        })
        if self.token:
            self.session.headers['PRIVATE-TOKEN'] = self.token
        else:
            logger.warning(
                "GitLab token is not set. API requests will be unauthenticated and may be rate-limited."
            )

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitLabClient':
        """Create a client from the 'gitlab' configuration section."""
        gitlab = config.get('gitlab', {})
        return cls(
            base_url=gitlab.get('url') or DEFAULT_GITLAB_URL,
            token=gitlab.get('token') or None,
            timeout=gitlab.get('timeout_seconds', 30),
            max_retries=gitlab.get('max_retries', 3),
            max_delay=gitlab.get('max_delay_seconds', 60),
        )

    @property
    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status seen on the last response, if any."""
        return self._rate_limit_status

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('RateLimit-Remaining', -1))
            limit = int(headers.get('RateLimit-Limit', -1))
            reset_time = int(headers.get('RateLimit-Reset', 0))
        except (ValueError, TypeError):
            return

        if remaining < 0 or limit < 0:
            return

        self._rate_limit_status = RateLimitStatus(
            remaining=remaining,
            limit=limit,
            reset_time=reset_time,
        )
        if self._rate_limit_status.is_low:
            logger.warning(
                f"GitLab API rate limit low: {remaining}/{limit} remaining, "
                f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
            )

    def _retry_delay(self, response: requests.Response, attempt: int) -> float:
        retry_after = response.headers.get('Retry-After')
        if retry_after and retry_after.isdigit():
            wait_time = int(retry_after)
            if 0 < wait_time < self.max_delay:
                return wait_time
        return min(self.base_delay * (2 ** attempt), self.max_delay)

    def _api(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """
        GET an API endpoint and decode its JSON body.

        Returns None on 404. Raises GitLabAPIError on network failures,
        unexpected status codes, invalid JSON, or exhausted retries.
        """
        url = f"{self.base_url}/api/v4/{endpoint}"

        for attempt in range(self.max_retries):
            try:
                response = self.session.get(url, params=params, timeout=self.timeout)
            except requests.RequestException as e:
                raise GitLabAPIError(f"GitLab request to {endpoint} failed: {e}") from e

            self._update_rate_limit_from_headers(response.headers)

            if response.status_code == 200:
                try:
                    return response.json()
                except ValueError as e:
                    raise GitLabAPIError(f"GitLab returned invalid JSON for {endpoint}: {e}") from e

            if response.status_code == 404:
                return None

            if response.status_code == 429 and attempt < self.max_retries - 1:
                delay = self._retry_delay(response, attempt)
                logger.info(f"Rate limited, waiting {delay}s (attempt {attempt + 1})")
                time.sleep(delay)
                continue

            raise GitLabAPIError(
                f"GitLab API error {response.status_code} for {endpoint}",
                status_code=response.status_code,
            )

        raise GitLabAPIError(f"GitLab API retries exhausted for {endpoint}")

    def _first(self, endpoint: str, params: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        data = self._api(endpoint, params=params)
        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0]
        return None

    def get_project(self, path: str) -> Optional[Dict[str, Any]]:
        """
        Get project metadata by its namespaced path.

        Args:
            path: Project path such as "redox-os/relibc"

        Returns:
            Project dict or None if not found
        """
        data = self._api(f"projects/{quote(path, safe='')}")
        if isinstance(data, dict) and 'id' in data:
            return data
        return None

    def get_latest_pipeline(self, project_id: Any, ref: str) -> Optional[Dict[str, Any]]:
        """Most recent pipeline for a branch, or None."""
        return self._first(
            f"projects/{project_id}/pipelines",
            {'ref': ref, 'per_page': 1, 'page': 1},
        )

    def get_latest_commit(self, project_id: Any) -> Optional[Dict[str, Any]]:
        """Most recent commit on the default branch, or None."""
        return self._first(
            f"projects/{project_id}/repository/commits",
            {'per_page': 1, 'page': 1},
        )

