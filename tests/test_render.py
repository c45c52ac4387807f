"""Tests for the rendering helpers."""

from datetime import datetime, timedelta

import pytest
from rich.console import Console

from buildboard import render
from buildboard.domain import (
    ArtifactIndexEntry,
    CommitInfo,
    PackageDescriptor,
    PipelineState,
    PlatformSnapshot,
    RepositoryDescriptor,
    RepositoryStatus,
    Snapshot,
)
from buildboard.services.reconciliation import reconcile_package

NOW = datetime(2024, 1, 2, 12, 0)


class TestHumanize:
    @pytest.mark.parametrize("seconds,expected", [
        (0, "0 seconds ago"),
        (1, "1 second ago"),
        (30, "30 seconds ago"),
        (90, "2 minutes ago"),
        (3600, "1 hour ago"),
        (5 * 3600, "5 hours ago"),
        (86400, "1 day ago"),
        (3 * 604800, "3 weeks ago"),
        (2 * 2592000, "2 months ago"),
        (2 * 31536000, "2 years ago"),
    ])
    def test_humanize(self, seconds, expected):
        assert render.humanize(seconds) == expected

    def test_humanize_since_unknown(self):
        assert render.humanize_since(None, NOW) == "N/A"

    def test_humanize_since(self):
        assert render.humanize_since(NOW - timedelta(hours=2), NOW) == "2 hours ago"


def sample_snapshot():
    repo = RepositoryStatus(
        id=1,
        path="redox-os/relibc",
        name="redox-os / relibc",
        url="https://gitlab.example/redox-os/relibc",
        pipeline_state=PipelineState.FAILED,
        latest_commit=CommitInfo(hash="abcdef1234", message="Fix printf", author="Dev",
                                 timestamp=NOW - timedelta(hours=1)),
    )
    descriptor = PackageDescriptor(built_commit_hash="0000000", published_at=NOW - timedelta(days=3))
    entry = ArtifactIndexEntry(
        platform="x86_64",
        name="x86_64-unknown-redox/",
        url="https://static.example/pkg/x86_64-unknown-redox/",
        last_modified=NOW - timedelta(days=3),
        is_stale=True,
    )
    platform = PlatformSnapshot(
        platform="x86_64",
        package_index=entry,
        image_index=None,
        packages=(reconcile_package("relibc", repo, descriptor, NOW, 48),),
        repository_descriptor=RepositoryDescriptor(outdated_packages={"relibc": descriptor}),
    )
    return Snapshot(repositories=(repo,), platforms=(platform,), captured_at=NOW)


class TestRenderSnapshot:
    @pytest.fixture(autouse=True)
    def wide_console(self, monkeypatch):
        monkeypatch.setattr(render, "console", Console(width=200, color_system=None))

    def test_tables(self):
        with render.console.capture() as capture:
            render.render_snapshot(sample_snapshot(), NOW, 48)
        output = capture.get()

        assert "GitLab CI Status" in output
        assert "redox-os / relibc" in output
        assert "failed" in output
        assert "outdated" in output
        assert "0000000 vs abcdef1" in output
        assert "Stale (> 48h)" in output
        assert "missing" in output
        assert "Outdated packages (1)" in output

    def test_no_repositories(self):
        snapshot = Snapshot(repositories=(), platforms=(), captured_at=NOW)
        with render.console.capture() as capture:
            render.render_repositories_table(snapshot, NOW)
        assert "No repositories found." in capture.get()
