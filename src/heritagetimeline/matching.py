"""Nearest-match lookups between a continuous date and discrete dated items."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import numpy as np
from pytz import utc

from heritagetimeline.dates import to_ms, to_utc
from heritagetimeline.models import Release


def _ms_array(dates: Sequence[datetime]) -> np.ndarray:
    return np.fromiter((to_ms(d) for d in dates), dtype=np.int64, count=len(dates))


def find_nearest_index(dates: Sequence[datetime], target: datetime) -> int:
    """Index of the date closest to target.

    Distances are absolute, so the input does not need to be sorted. When two
    dates are equally close the lower index wins. A target outside the list's
    span resolves to the nearest boundary element.

    Args:
        dates: Dated items, normally ascending.
        target: Date to match.

    Returns:
        Index into ``dates``; 0 for an empty list (callers must guard).
    """
    if len(dates) == 0:
        return 0
    distances = np.abs(_ms_array(dates) - to_ms(target))
    # argmin returns the first occurrence of the minimum
    return int(np.argmin(distances))


def find_nearest_release_index(releases: Sequence[Release], target: datetime) -> int:
    return find_nearest_index([r.date for r in releases], target)


def find_nearest_release(releases: Sequence[Release], target: datetime) -> Release | None:
    if not releases:
        return None
    return releases[find_nearest_release_index(releases, target)]


def find_next_release_index(releases: Sequence[Release], target: datetime) -> int:
    """Index of the earliest release strictly after target.

    Shows the imagery captured right after an event. Falls back to the last
    release when nothing comes after, and to 0 for an empty list.
    """
    if not releases:
        return 0
    target = to_utc(target)
    for i, release in enumerate(releases):
        if release.date > target:
            return i
    return len(releases) - 1


def sort_releases(releases: Sequence[Release]) -> list[Release]:
    """Releases ordered oldest first (stable for equal dates)."""
    return sorted(releases, key=lambda r: r.date)


def filter_releases_by_date_range(
    releases: Sequence[Release],
    start: datetime,
    end: datetime,
) -> list[Release]:
    start, end = to_utc(start), to_utc(end)
    return [r for r in releases if start <= r.date <= end]


@dataclass(frozen=True)
class YearMarker:
    year: int
    release_index: int
    position: float  # Percent along the release slider (0-100)


def year_markers(releases: Sequence[Release]) -> list[YearMarker]:
    """One marker per calendar year covered by a sorted release list.

    Each marker points at the release closest to January 1 of its year.
    """
    if not releases:
        return []
    span = max(len(releases) - 1, 1)
    markers: list[YearMarker] = []
    for year in range(releases[0].date.year, releases[-1].date.year + 1):
        index = find_nearest_release_index(releases, datetime(year, 1, 1, tzinfo=utc))
        markers.append(YearMarker(year=year, release_index=index, position=index / span * 100))
    return markers
