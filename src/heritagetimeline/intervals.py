"""Comparison intervals — choosing the "before" date for a two-image comparison.

Fixed-duration selectors are pure calendar arithmetic and ignore release data,
so the same (reference, selector) pair always yields the same date. Alignment
to an actual release happens afterwards through the nearest-match lookup.
The availability-aware selectors (largest / smallest) consult the releases.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from heritagetimeline.dates import subtract_days, subtract_years, to_utc
from heritagetimeline.i18n import t
from heritagetimeline.matching import find_nearest_release_index, find_next_release_index
from heritagetimeline.models import Release

logger = logging.getLogger(__name__)


class ComparisonInterval(str, Enum):
    AS_LARGE_AS_POSSIBLE = "as_large_as_possible"
    AS_SMALL_AS_POSSIBLE = "as_small_as_possible"
    ONE_MONTH = "1_month"
    ONE_YEAR = "1_year"
    FIVE_YEARS = "5_years"


DEFAULT_COMPARISON_INTERVAL = ComparisonInterval.AS_LARGE_AS_POSSIBLE


@dataclass(frozen=True)
class IntervalSettings:
    month_days: int = 30
    largest_fallback_years: int = 10  # Used when no releases are available
    smallest_fallback_days: int = 7  # Used when no release precedes the reference


@dataclass(frozen=True)
class IntervalOption:
    value: ComparisonInterval
    label_key: str
    order: int

    def label(self, lang: str = "en") -> str:
        return t(self.label_key, lang)


_OPTIONS: tuple[IntervalOption, ...] = (
    IntervalOption(ComparisonInterval.AS_LARGE_AS_POSSIBLE, "timeline.intervalAsLargeAsPossible", 1),
    IntervalOption(ComparisonInterval.AS_SMALL_AS_POSSIBLE, "timeline.intervalAsSmallAsPossible", 2),
    IntervalOption(ComparisonInterval.ONE_MONTH, "timeline.interval1Month", 3),
    IntervalOption(ComparisonInterval.ONE_YEAR, "timeline.interval1Year", 4),
    IntervalOption(ComparisonInterval.FIVE_YEARS, "timeline.interval5Years", 5),
)


def interval_option_catalog() -> list[IntervalOption]:
    """Selector options in display order."""
    return sorted(_OPTIONS, key=lambda o: o.order)


def _coerce(interval: ComparisonInterval | str) -> ComparisonInterval:
    try:
        return ComparisonInterval(interval)
    except ValueError:
        logger.warning("Unknown comparison interval %r, using 1 month", interval)
        return ComparisonInterval.ONE_MONTH


def calculate_calendar_before_date(
    reference: datetime,
    interval: ComparisonInterval | str,
    settings: IntervalSettings | None = None,
) -> datetime:
    """Before-date using calendar arithmetic only (no release data)."""
    settings = settings or IntervalSettings()
    reference = to_utc(reference)
    interval = _coerce(interval)

    if interval is ComparisonInterval.AS_LARGE_AS_POSSIBLE:
        return subtract_years(reference, settings.largest_fallback_years)
    if interval is ComparisonInterval.AS_SMALL_AS_POSSIBLE:
        return subtract_days(reference, settings.smallest_fallback_days)
    if interval is ComparisonInterval.ONE_YEAR:
        return subtract_years(reference, 1)
    if interval is ComparisonInterval.FIVE_YEARS:
        return subtract_years(reference, 5)
    return subtract_days(reference, settings.month_days)


def calculate_before_date(
    reference: datetime,
    interval: ComparisonInterval | str,
    releases: Sequence[Release] | None = None,
    settings: IntervalSettings | None = None,
) -> datetime:
    """Choose the "before" date for comparing imagery around ``reference``.

    With releases (sorted oldest first):
      * largest-available → date of the first release, maximising the gap.
      * smallest-available → latest release strictly before ``reference``,
        or the calendar fallback when none precedes it.
    Fixed-duration selectors always use calendar arithmetic.

    Args:
        reference: Reference date, typically a destruction date.
        interval: Selector; unknown strings degrade to 1 month.
        releases: Optional sorted release list.
        settings: Calendar constants.

    Returns:
        The before-date as a UTC datetime.
    """
    reference = to_utc(reference)
    interval = _coerce(interval)

    if releases:
        if interval is ComparisonInterval.AS_LARGE_AS_POSSIBLE:
            return releases[0].date
        if interval is ComparisonInterval.AS_SMALL_AS_POSSIBLE:
            earlier = [r.date for r in releases if r.date < reference]
            if earlier:
                return max(earlier)

    return calculate_calendar_before_date(reference, interval, settings)


def comparison_release_indices(
    reference: datetime,
    interval: ComparisonInterval | str,
    releases: Sequence[Release],
    settings: IntervalSettings | None = None,
) -> tuple[int, int]:
    """Release indices for a before/after comparison around ``reference``.

    The after image is the first release following the reference; the before
    image is the release nearest to the computed before-date.

    Returns:
        (before_index, after_index); (0, 0) for an empty list.
    """
    if not releases:
        return 0, 0
    before_date = calculate_before_date(reference, interval, releases, settings)
    return (
        find_nearest_release_index(releases, before_date),
        find_next_release_index(releases, reference),
    )
