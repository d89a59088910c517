"""Timeline bounds derived from a site collection."""

from collections.abc import Iterable
from datetime import datetime, timedelta

from heritagetimeline.dates import now_utc, to_utc
from heritagetimeline.models import DateRange, Site

DEFAULT_BUFFER_DAYS = 7


def derive_date_range(
    sites: Iterable[Site],
    fallback_start: datetime,
    fallback_end: datetime | None = None,
    buffer_days: int = DEFAULT_BUFFER_DAYS,
) -> DateRange:
    """Compute the playback window for a site collection.

    The window spans the earliest to the latest destruction date, widened by
    ``buffer_days`` on each side so boundary events are not drawn at the very
    edge. Sites without a destruction date are ignored.

    Args:
        sites: Site collection.
        fallback_start: Start used when no site has a destruction date.
        fallback_end: End used when no site has a destruction date (default: now).
        buffer_days: Days added before the earliest and after the latest date.

    Returns:
        DateRange for the clock.
    """
    dates = [s.destruction_date for s in sites if s.destruction_date is not None]
    if not dates:
        end = fallback_end if fallback_end is not None else now_utc()
        return DateRange(start=fallback_start, end=max(to_utc(end), to_utc(fallback_start)))

    buffer = timedelta(days=buffer_days)
    return DateRange(start=min(dates) - buffer, end=max(dates) + buffer)


def filter_sites_by_date_range(
    sites: Iterable[Site],
    start: datetime | None,
    end: datetime | None,
) -> list[Site]:
    """Sites whose destruction date falls inside [start, end].

    A ``None`` bound is open. With both bounds open every site is returned,
    including those without a destruction date.
    """
    sites = list(sites)
    if start is None and end is None:
        return sites

    start = to_utc(start) if start is not None else None
    end = to_utc(end) if end is not None else None
    result: list[Site] = []
    for site in sites:
        when = site.destruction_date
        if when is None:
            continue
        if start is not None and when < start:
            continue
        if end is not None and when > end:
            continue
        result.append(site)
    return result


def adjusted_date_range(
    filtered: Iterable[Site],
    has_active_filter: bool,
    fallback: DateRange,
) -> DateRange:
    """Range matching a filtered site set, or ``fallback`` when no filter applies.

    Unlike derive_date_range no buffer is added: the result hugs the filtered
    destruction dates exactly.
    """
    dates = [s.destruction_date for s in filtered if s.destruction_date is not None]
    if not dates or not has_active_filter:
        return fallback
    return DateRange(start=min(dates), end=max(dates))
