"""Tests for package reconciliation."""

from datetime import datetime, timedelta, timezone

import pytest

from buildboard.domain import (
    CommitInfo,
    PackageDescriptor,
    RepositoryStatus,
    SyncState,
)
from buildboard.services.reconciliation import classify, hours_since, reconcile_package

NOW = datetime(2024, 6, 1, 12, 0)
LATEST = "abcdef1234567890"


def repository(commit_hash=LATEST):
    return RepositoryStatus(
        id=42,
        path="redox-os/relibc",
        name="redox-os / relibc",
        url="https://gitlab.example/redox-os/relibc",
        latest_commit=CommitInfo(hash=commit_hash) if commit_hash is not None else None,
    )


def descriptor(built, hours_ago=None):
    published = NOW - timedelta(hours=hours_ago) if hours_ago is not None else None
    return PackageDescriptor(built_commit_hash=built, published_at=published)


class TestClassify:
    """Tests for the three-way sync state."""

    def test_synced_on_matching_prefix(self):
        """Only the first seven characters are compared."""
        state = classify(repository(), descriptor("abcdef1ffffffff", hours_ago=100), NOW, 48)
        assert state == SyncState.SYNCED

    def test_pending_when_recently_published(self):
        state = classify(repository(), descriptor("0000000", hours_ago=1), NOW, 48)
        assert state == SyncState.PENDING

    def test_outdated_when_stale(self):
        state = classify(repository(), descriptor("0000000", hours_ago=48), NOW, 48)
        assert state == SyncState.OUTDATED

    def test_outdated_without_descriptor(self):
        assert classify(repository(), None, NOW, 48) == SyncState.OUTDATED

    def test_outdated_without_publish_time(self):
        assert classify(repository(), descriptor("0000000"), NOW, 48) == SyncState.OUTDATED

    def test_unknown_on_both_sides_is_synced(self):
        """Both commits fall back to the placeholder and compare equal."""
        state = classify(repository(commit_hash=None), descriptor("", hours_ago=100), NOW, 48)
        assert state == SyncState.SYNCED

    def test_unknown_repository_commit(self):
        state = classify(repository(commit_hash=None), descriptor(LATEST, hours_ago=2), NOW, 48)
        assert state == SyncState.PENDING

    def test_aware_publish_time_against_naive_now(self):
        now = datetime.now()
        published = now.astimezone(timezone.utc) - timedelta(hours=1)
        state = classify(
            repository(),
            PackageDescriptor(built_commit_hash="0000000", published_at=published),
            now,
            48,
        )
        assert state == SyncState.PENDING


class TestReconcilePackage:
    def test_result_fields(self):
        result = reconcile_package(
            "relibc", repository(), descriptor(LATEST, hours_ago=3), NOW, 48,
            descriptor_url="https://static.example/pkg/x86_64/relibc.toml",
        )
        assert result.sync_state == SyncState.SYNCED
        assert result.package_commit == "abcdef1"
        assert result.repository_commit == "abcdef1"

        data = result.to_dict()
        assert data['package'] == "relibc"
        assert data['repository'] == "redox-os/relibc"
        assert data['sync_state'] == "synced"
        assert data['published_at'] == "2024-06-01T09:00:00"
        assert data['descriptor_url'].endswith("relibc.toml")

    def test_absent_descriptor_placeholders(self):
        result = reconcile_package("relibc", repository(), None, NOW, 48)
        assert result.package_commit == "-"
        assert result.to_dict()['published_at'] is None


class TestHoursSince:
    def test_naive(self):
        assert hours_since(NOW - timedelta(hours=5), NOW) == pytest.approx(5)

    def test_both_aware(self):
        now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
        then = datetime(2024, 6, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
        assert hours_since(then, now) == pytest.approx(2)

    def test_naive_then_aware_now(self):
        now = datetime.now().astimezone()
        then = datetime.now() - timedelta(hours=3)
        assert hours_since(then, now) == pytest.approx(3, abs=0.01)
