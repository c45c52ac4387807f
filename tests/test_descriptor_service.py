"""
Tests for DescriptorService.

The artifact client is replaced by a MagicMock whose get_toml() answers
from a dict of URL -> document (or exception).
"""

import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from buildboard.exit_codes import ArtifactFetchError
from buildboard.services.descriptor_service import (
    DescriptorService,
    package_descriptor_url,
    repository_descriptor_url,
)

PLATFORM_URL = "https://static.example/pkg/x86_64-unknown-redox/"

RELIBC = {
    "name": "relibc",
    "version": "0.2.5",
    "source_identifier": "abcdef1234567890",
    "commit_identifier": "fedcba0987654321",
    "time_identifier": "2024-01-01T00:00:00Z",
}


def fake_client(documents):
    def get_toml(url):
        value = documents.get(url)
        if isinstance(value, Exception):
            raise value
        return value

    client = MagicMock()
    client.get_toml.side_effect = get_toml
    return client


class TestDescriptorUrls(unittest.TestCase):
    def test_urls(self):
        self.assertEqual(package_descriptor_url(PLATFORM_URL, "relibc"), PLATFORM_URL + "relibc.toml")
        self.assertEqual(repository_descriptor_url(PLATFORM_URL), PLATFORM_URL + "repo.toml")


class TestFetchPackages(unittest.TestCase):
    """Per-package fetches are isolated from each other."""

    def setUp(self):
        self.client = fake_client({
            PLATFORM_URL + "relibc.toml": RELIBC,
            PLATFORM_URL + "kernel.toml": ArtifactFetchError("HTTP 500", status_code=500),
            # orbital.toml missing -> None (404)
        })
        self.service = DescriptorService(self.client, max_workers=4)

    def test_one_failure_does_not_affect_others(self):
        results = self.service.fetch_packages(PLATFORM_URL, ["relibc", "kernel", "orbital"])

        self.assertEqual(set(results), {"relibc", "kernel", "orbital"})

        relibc = results["relibc"]
        self.assertTrue(relibc.ok)
        self.assertEqual(relibc.descriptor.built_commit_hash, "abcdef1234567890")
        self.assertEqual(relibc.descriptor.published_at, datetime(2024, 1, 1, tzinfo=timezone.utc))

        kernel = results["kernel"]
        self.assertIsNone(kernel.descriptor)
        self.assertTrue(kernel.failed)
        self.assertIn("500", kernel.error)

    def test_not_published_is_not_an_error(self):
        result = self.service.fetch_package(PLATFORM_URL, "orbital")
        self.assertIsNone(result.descriptor)
        self.assertIsNone(result.error)
        self.assertEqual(result.url, PLATFORM_URL + "orbital.toml")

    def test_duplicate_names_fetched_once(self):
        results = self.service.fetch_packages(PLATFORM_URL, ["relibc", "relibc"])
        self.assertEqual(list(results), ["relibc"])
        self.assertEqual(self.client.get_toml.call_count, 1)

    def test_empty(self):
        self.assertEqual(self.service.fetch_packages(PLATFORM_URL, []), {})
        self.client.get_toml.assert_not_called()


class TestFetchRepository(unittest.TestCase):
    """repo.toml handling."""

    def test_parses_document(self):
        client = fake_client({
            PLATFORM_URL + "repo.toml": {
                "packages": {"relibc": "abc", "kernel": "def"},
                "outdated_packages": {"kernel": {"source_identifier": "def"}},
            },
        })
        descriptor = DescriptorService(client).fetch_repository(PLATFORM_URL)
        self.assertEqual(descriptor.total_count, 2)
        self.assertEqual(descriptor.outdated_count, 1)
        self.assertEqual(descriptor.synced_count, 1)

    def test_missing_tables_default_to_empty(self):
        client = fake_client({PLATFORM_URL + "repo.toml": {"packages": {"relibc": "abc"}}})
        descriptor = DescriptorService(client).fetch_repository(PLATFORM_URL)
        self.assertEqual(descriptor.outdated_packages, {})
        self.assertEqual(descriptor.synced_count, 1)

    def test_missing_document(self):
        descriptor = DescriptorService(fake_client({})).fetch_repository(PLATFORM_URL)
        self.assertEqual(descriptor.total_count, 0)

    def test_fetch_error_yields_empty(self):
        client = fake_client({PLATFORM_URL + "repo.toml": ArtifactFetchError("Invalid TOML")})
        descriptor = DescriptorService(client).fetch_repository(PLATFORM_URL)
        self.assertEqual(descriptor.total_count, 0)

    def test_malformed_document_yields_empty(self):
        client = fake_client({PLATFORM_URL + "repo.toml": {"packages": ["not", "a", "table"]}})
        descriptor = DescriptorService(client).fetch_repository(PLATFORM_URL)
        self.assertEqual(descriptor.total_count, 0)


if __name__ == '__main__':
    unittest.main()
