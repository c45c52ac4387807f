"""
Apache autoindex parsing for buildboard.

The artifact host publishes one directory per platform, listed in an
Apache-style autoindex page. A row looks like:

    <tr><td valign="top"><img src="/icons/folder.gif" alt="[DIR]"></td>
    <td><a href="x86_64-unknown-redox/">x86_64-unknown-redox/</a></td>
    <td align="right">2024-01-01 00:00  </td><td align="right">  - </td></tr>

This module turns such a page into ArtifactIndexEntry values.
"""

import re
from datetime import datetime
from typing import List, Optional

from ..domain.artifact import ArtifactIndexEntry
from .reconciliation import hours_since

# One listing row: folder icon, anchor (href == entry name), then the first
# right-aligned cell, which holds the last-modified time. A match never
# crosses into the next row's icon.
_WITHIN_ROW = r'(?:(?!<img\s).)*?'
ROW_PATTERN = re.compile(
    r'<img\s[^>]*src="/icons/folder\.gif"[^>]*>' + _WITHIN_ROW +
    r'<a href="([^"]+)">[^<]*</a>' + _WITHIN_ROW +
    r'<td align="right">([^<]*)</td>',
    re.DOTALL | re.IGNORECASE,
)

TIMESTAMP_PATTERN = re.compile(r'^\s*(\d{4}-\d{2}-\d{2} \d{2}:\d{2})\s*$')
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"


def parse_listing_timestamp(value: str) -> Optional[datetime]:
    """Parse a 'YYYY-MM-DD HH:MM' cell as a naive local datetime."""
    match = TIMESTAMP_PATTERN.match(value)
    if not match:
        return None
    try:
        return datetime.strptime(match.group(1), TIMESTAMP_FORMAT)
    except ValueError:
        return None


def is_stale(last_modified: datetime, now: datetime, stale_hours: float) -> bool:
    """True when last_modified is more than stale_hours before now."""
    return hours_since(last_modified, now) > stale_hours


def list_artifact_index(
    html: str,
    base_url: str,
    now: datetime,
    stale_hours: float,
    platform: str = "",
) -> List[ArtifactIndexEntry]:
    """
    Parse every directory row of an autoindex page, in document order.

    Rows without a well-formed timestamp are skipped. When platform is
    given, only rows whose name starts with it are returned.
    """
    entries = []
    for match in ROW_PATTERN.finditer(html):
        name = match.group(1)
        if platform and not name.startswith(platform):
            continue
        last_modified = parse_listing_timestamp(match.group(2))
        if last_modified is None:
            continue
        entries.append(ArtifactIndexEntry(
            platform=platform or name.rstrip('/'),
            name=name,
            url=f"{base_url}{name}",
            last_modified=last_modified,
            is_stale=is_stale(last_modified, now, stale_hours),
        ))
    return entries


def parse_artifact_index(
    html: str,
    platform: str,
    base_url: str,
    now: datetime,
    stale_hours: float,
) -> Optional[ArtifactIndexEntry]:
    """
    Select the entry for one platform from an autoindex page.

    Returns the first row (in document order) whose name starts with the
    literal platform token, or None if there is no such row.
    """
    entries = list_artifact_index(html, base_url, now, stale_hours, platform=platform)
    return entries[0] if entries else None
