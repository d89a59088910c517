"""Imagery release archive client — fetch, parse, and static fallback."""

import logging
import re
from datetime import datetime
from typing import Any

import httpx
from pytz import utc

from heritagetimeline.config import ReleaseSourceConfig
from heritagetimeline.dates import parse_date, today_utc
from heritagetimeline.i18n import t
from heritagetimeline.matching import sort_releases
from heritagetimeline.models import Release

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"(\d{4}-\d{2}-\d{2})")
_DEFAULT_MAX_DETAIL_LEVEL = 19  # World Imagery max zoom
# InvalidURL and StreamError do not derive from HTTPError
_FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError, ValueError)
_WAYBACK_TILE = (
    "https://wayback.maptiles.arcgis.com/arcgis/rest/services/World_Imagery/WMTS/1.0.0/"
    "default028mm/MapServer/tile/{release}/{{z}}/{{y}}/{{x}}"
)
_CURRENT_TILE = (
    "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}"
)


class ReleaseFetchError(Exception):
    """Archive call failure or unusable payload."""


def fallback_releases() -> list[Release]:
    """Static releases used whenever the archive cannot be read.

    Spans the baseline imagery, the pre-conflict period, and today.
    """
    return [
        Release(
            index=10,
            date=datetime(2014, 2, 20, tzinfo=utc),
            imagery_locator=_WAYBACK_TILE.format(release=10),
            max_detail_level=17,
            label="2014-02-20",
        ),
        Release(
            index=64776,
            date=datetime(2023, 8, 31, tzinfo=utc),
            imagery_locator=_WAYBACK_TILE.format(release=64776),
            max_detail_level=18,
            label="2023-08-31",
        ),
        Release(
            index=99999,
            date=today_utc(),
            imagery_locator=_CURRENT_TILE,
            max_detail_level=_DEFAULT_MAX_DETAIL_LEVEL,
            label=t("releases.current", "en"),
        ),
    ]


def _parse_item(release_num: str, item: Any) -> Release:
    if not isinstance(item, dict):
        raise ReleaseFetchError(f"release {release_num}: item is not an object")
    try:
        title = str(item["itemTitle"])
        url = str(item["itemURL"])
        index = int(release_num)
    except (KeyError, ValueError) as e:
        raise ReleaseFetchError(f"release {release_num}: {e!r}") from e

    # Title format: "World Imagery (Wayback 2025-09-25)"
    match = _DATE_RE.search(title)
    try:
        date = parse_date(match.group(1)) if match else today_utc()
    except ValueError as e:
        raise ReleaseFetchError(f"release {release_num}: bad date in {title!r}") from e
    locator = url.replace("{level}", "{z}").replace("{row}", "{y}").replace("{col}", "{x}")
    return Release(
        index=index,
        date=date,
        imagery_locator=locator,
        max_detail_level=_DEFAULT_MAX_DETAIL_LEVEL,
        label=match.group(1) if match else release_num,
    )


def parse_releases(payload: Any) -> list[Release]:
    """Convert the archive payload (an object keyed by release number) into sorted releases.

    Args:
        payload: Decoded JSON body.

    Returns:
        Releases ordered oldest first.

    Raises:
        ReleaseFetchError: If the payload shape is not recognised.
    """
    if not isinstance(payload, dict):
        raise ReleaseFetchError(f"expected an object, got {type(payload).__name__}")
    releases = [_parse_item(num, item) for num, item in payload.items()]
    return sort_releases(releases)


def fetch_releases_strict(
    config: ReleaseSourceConfig | None = None,
    client: httpx.Client | None = None,
) -> list[Release]:
    """Single archive call. Raises on any failure.

    Raises:
        ReleaseFetchError: On HTTP error, invalid JSON, bad shape, or an empty archive.
    """
    config = config or ReleaseSourceConfig()
    try:
        if client is None:
            resp = httpx.get(config.url, timeout=config.timeout)
        else:
            resp = client.get(config.url, timeout=config.timeout)
        resp.raise_for_status()
        payload = resp.json()
    except _FETCH_ERRORS as e:
        raise ReleaseFetchError(f"archive request failed: {e}") from e

    releases = parse_releases(payload)
    if not releases:
        raise ReleaseFetchError("archive returned no releases")
    return releases


def fetch_releases(
    config: ReleaseSourceConfig | None = None,
    client: httpx.Client | None = None,
) -> list[Release]:
    """Fetch the release archive, substituting the static fallback on any failure.

    Never raises for data problems: callers always get a sorted, non-empty list.
    """
    try:
        return fetch_releases_strict(config, client)
    except ReleaseFetchError as e:
        logger.warning("Release archive unavailable, using fallback releases: %s", e)
        return fallback_releases()


async def afetch_releases(
    config: ReleaseSourceConfig | None = None,
    client: httpx.AsyncClient | None = None,
) -> list[Release]:
    """Async variant of fetch_releases for use on an asyncio event loop."""
    config = config or ReleaseSourceConfig()
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=config.timeout) as owned:
                resp = await owned.get(config.url)
        else:
            resp = await client.get(config.url, timeout=config.timeout)
        resp.raise_for_status()
        releases = parse_releases(resp.json())
        if not releases:
            raise ReleaseFetchError("archive returned no releases")
        return releases
    except _FETCH_ERRORS + (ReleaseFetchError,) as e:
        logger.warning("Release archive unavailable, using fallback releases: %s", e)
        return fallback_releases()
