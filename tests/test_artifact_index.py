"""
Tests for Apache autoindex parsing.

Tests cover:
- Selecting the first row for a platform token
- Literal (non-regex) prefix matching
- Malformed timestamp rows being skipped
- Staleness threshold
"""

from datetime import datetime, timedelta

import pytest

from buildboard.services.artifact_index import (
    is_stale,
    list_artifact_index,
    parse_artifact_index,
    parse_listing_timestamp,
)

BASE_URL = "https://static.example.org/pkg/"
NOW = datetime(2024, 1, 2, 12, 0)


def row(name, timestamp):
    return (
        '<tr><td valign="top"><img src="/icons/folder.gif" alt="[DIR]"></td>'
        f'<td><a href="{name}">{name}</a></td>'
        f'<td align="right">{timestamp}  </td><td align="right">  - </td><td>&nbsp;</td></tr>\n'
    )


def listing(*rows):
    return (
        "<html><head><title>Index of /pkg</title></head><body><h1>Index of /pkg</h1><table>"
        '<tr><th valign="top"><img src="/icons/blank.gif" alt="[ICO]"></th>'
        '<th><a href="?C=N;O=D">Name</a></th><th><a href="?C=M;O=A">Last modified</a></th></tr>'
        '<tr><td valign="top"><img src="/icons/back.gif" alt="[PARENTDIR]"></td>'
        '<td><a href="/">Parent Directory</a></td><td>&nbsp;</td><td align="right">  - </td></tr>\n'
        + "".join(rows)
        + "</table></body></html>"
    )


SAMPLE = listing(
    row("x86_64-unknown-redox/", "2024-01-01 00:00"),
    row("aarch64-unknown-redox/", "2024-01-01 00:00"),
)


class TestParseArtifactIndex:
    """Tests for parse_artifact_index()."""

    def test_selects_matching_row(self):
        entry = parse_artifact_index(SAMPLE, "x86_64", BASE_URL, NOW, 48)
        assert entry is not None
        assert entry.name == "x86_64-unknown-redox/"
        assert entry.platform == "x86_64"
        assert entry.url == BASE_URL + "x86_64-unknown-redox/"
        assert entry.last_modified == datetime(2024, 1, 1, 0, 0)

    def test_selects_second_row_for_other_platform(self):
        entry = parse_artifact_index(SAMPLE, "aarch64", BASE_URL, NOW, 48)
        assert entry.name == "aarch64-unknown-redox/"

    def test_first_match_wins(self):
        html = listing(
            row("x86_64-unknown-redox/", "2024-01-01 00:00"),
            row("x86_64-unknown-redox-old/", "2023-01-01 00:00"),
        )
        entry = parse_artifact_index(html, "x86_64", BASE_URL, NOW, 48)
        assert entry.name == "x86_64-unknown-redox/"

    def test_no_match(self):
        assert parse_artifact_index(SAMPLE, "riscv64gc", BASE_URL, NOW, 48) is None

    def test_empty_document(self):
        assert parse_artifact_index("", "x86_64", BASE_URL, NOW, 48) is None

    def test_prefix_is_literal(self):
        """Regex metacharacters in the token are matched literally."""
        html = listing(
            row("x86X64-unknown-redox/", "2024-01-01 00:00"),
            row("x86.64+/", "2024-01-01 00:00"),
        )
        assert parse_artifact_index(html, "x86.64", BASE_URL, NOW, 48).name == "x86.64+/"
        assert parse_artifact_index(html, "x86.64+", BASE_URL, NOW, 48).name == "x86.64+/"

    def test_malformed_timestamp_row_skipped(self):
        html = listing(
            row("x86_64-broken/", "  - "),
            row("x86_64-unknown-redox/", "2024-01-01 00:00"),
        )
        entry = parse_artifact_index(html, "x86_64", BASE_URL, NOW, 48)
        assert entry.name == "x86_64-unknown-redox/"

    def test_file_rows_ignored(self):
        html = listing(
            '<tr><td valign="top"><img src="/icons/unknown.gif" alt="[   ]"></td>'
            '<td><a href="x86_64.tar">x86_64.tar</a></td>'
            '<td align="right">2024-01-01 00:00  </td></tr>\n',
            row("x86_64-unknown-redox/", "2023-12-31 00:00"),
        )
        entry = parse_artifact_index(html, "x86_64", BASE_URL, NOW, 48)
        assert entry.name == "x86_64-unknown-redox/"


class TestListArtifactIndex:
    def test_lists_all_rows_in_order(self):
        entries = list_artifact_index(SAMPLE, BASE_URL, NOW, 48)
        assert [e.name for e in entries] == ["x86_64-unknown-redox/", "aarch64-unknown-redox/"]
        assert entries[0].platform == "x86_64-unknown-redox"


class TestStaleness:
    """Staleness is (now - last_modified) > threshold."""

    def test_23_hours_not_stale(self):
        assert not is_stale(NOW - timedelta(hours=23), NOW, 24)

    def test_25_hours_stale(self):
        assert is_stale(NOW - timedelta(hours=25), NOW, 24)

    def test_exactly_threshold_not_stale(self):
        assert not is_stale(NOW - timedelta(hours=24), NOW, 24)

    def test_entry_flag(self):
        html = listing(row("x86_64-unknown-redox/", "2024-01-01 11:00"))
        fresh = parse_artifact_index(html, "x86_64", BASE_URL, datetime(2024, 1, 2, 10, 0), 24)
        stale = parse_artifact_index(html, "x86_64", BASE_URL, datetime(2024, 1, 2, 12, 0), 24)
        assert fresh.is_stale is False
        assert stale.is_stale is True


class TestParseListingTimestamp:
    @pytest.mark.parametrize("value", ["", "  - ", "2024-13-01 00:00", "2024-01-01", "01/01/2024 00:00"])
    def test_invalid(self, value):
        assert parse_listing_timestamp(value) is None

    def test_valid_with_padding(self):
        assert parse_listing_timestamp(" 2024-02-03 04:05  ") == datetime(2024, 2, 3, 4, 5)
