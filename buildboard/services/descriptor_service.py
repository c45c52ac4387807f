"""
Descriptor fetching for buildboard.

Each platform directory on the artifact host holds one TOML descriptor per
package (<name>.toml) and one for the whole package set (repo.toml).
"""

import logging
import tomllib
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Sequence

from ..domain.artifact import DescriptorResult, PackageDescriptor, RepositoryDescriptor
from ..exit_codes import APIError
from ..infra.artifact_client import ArtifactClient

logger = logging.getLogger(__name__)

REPOSITORY_DESCRIPTOR = "repo.toml"


def package_descriptor_url(platform_url: str, package_name: str) -> str:
    return f"{platform_url}{package_name}.toml"


def repository_descriptor_url(platform_url: str) -> str:
    return f"{platform_url}{REPOSITORY_DESCRIPTOR}"


class DescriptorService:
    """Downloads and parses package and repository descriptors."""

    def __init__(self, client: ArtifactClient, max_workers: int = 8):
        self.client = client
        self.max_workers = max(1, max_workers)

    def fetch_package(self, platform_url: str, package_name: str) -> DescriptorResult:
        """
        Fetch one package descriptor.

        Never raises for fetch or parse problems: those are reported in the
        result's error field so sibling packages are unaffected.
        """
        url = package_descriptor_url(platform_url, package_name)
        try:
            data = self.client.get_toml(url)
            if data is None:
                return DescriptorResult(package_name=package_name, url=url)
            descriptor = PackageDescriptor.from_toml(data)
        except (APIError, tomllib.TOMLDecodeError, TypeError, ValueError) as e:
            logger.warning(f"Failed to fetch descriptor for {package_name}: {e}")
            return DescriptorResult(package_name=package_name, url=url, error=str(e))
        return DescriptorResult(package_name=package_name, url=url, descriptor=descriptor)

    def fetch_packages(
        self,
        platform_url: str,
        package_names: Sequence[str],
    ) -> Dict[str, DescriptorResult]:
        """Fetch descriptors for several packages concurrently, keyed by name."""
        names: List[str] = list(dict.fromkeys(package_names))
        if not names:
            return {}

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(names))) as executor:
            results = executor.map(lambda name: self.fetch_package(platform_url, name), names)
            return {result.package_name: result for result in results}

    def fetch_repository(self, platform_url: str) -> RepositoryDescriptor:
        """
        Fetch the platform's repo.toml.

        A missing or unreadable document yields an empty descriptor.
        """
        url = repository_descriptor_url(platform_url)
        try:
            data = self.client.get_toml(url)
        except APIError as e:
            logger.warning(f"Failed to fetch repository descriptor {url}: {e}")
            return RepositoryDescriptor()
        if data is None:
            logger.info(f"No repository descriptor at {url}")
            return RepositoryDescriptor()
        try:
            return RepositoryDescriptor.from_toml(data)
        except (AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Malformed repository descriptor {url}: {e}")
            return RepositoryDescriptor()
