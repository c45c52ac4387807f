"""
Static artifact host client for buildboard.

Fetches Apache autoindex listings and TOML descriptor documents from the
server that publishes packages and disk images.
"""

import logging
import tomllib
from typing import Any, Dict, Optional

import requests

from ..exit_codes import ArtifactFetchError

logger = logging.getLogger(__name__)


class ArtifactClient:
    """
    Client for the static artifact host.

    Example:
        client = ArtifactClient()
        html = client.get_text("https://static.redox-os.org/pkg/")
        descriptor = client.get_toml("https://static.redox-os.org/pkg/x86_64-unknown-redox/repo.toml")
    """

    def __init__(self, timeout: int = 30, session: Optional[requests.Session] = None):
        """
        Initialize ArtifactClient.

        Args:
            timeout: HTTP request timeout in seconds
            session: requests.Session to use (created if None)
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': 'buildboard'})

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'ArtifactClient':
        return cls(timeout=config.get('artifacts', {}).get('timeout_seconds', 30))

    def _get(self, url: str) -> Optional[requests.Response]:
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ArtifactFetchError(f"Request to {url} failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise ArtifactFetchError(
                f"Artifact host returned {response.status_code} for {url}",
                status_code=response.status_code,
            )
        return response

    def get_text(self, url: str) -> str:
        """
        Fetch a document as text.

        Raises:
            ArtifactFetchError: on network failure or any non-200 status
        """
        response = self._get(url)
        if response is None:
            raise ArtifactFetchError(f"Artifact host returned 404 for {url}", status_code=404)
        return response.text

    def get_toml(self, url: str) -> Optional[Dict[str, Any]]:
        """
        Fetch and parse a TOML document.

        Returns None if the document does not exist (404).

        Raises:
            ArtifactFetchError: on network failure, bad status or invalid TOML
        """
        response = self._get(url)
        if response is None:
            return None
        try:
            return tomllib.loads(response.text)
        except tomllib.TOMLDecodeError as e:
            raise ArtifactFetchError(f"Invalid TOML at {url}: {e}") from e
