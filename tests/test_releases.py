"""
Tests for the imagery release archive client.
"""

import httpx
import pytest

from heritagetimeline.config import ReleaseSourceConfig
from heritagetimeline.dates import today_utc
from heritagetimeline.releases import (
    ReleaseFetchError,
    afetch_releases,
    fallback_releases,
    fetch_releases,
    fetch_releases_strict,
    parse_releases,
)

from conftest import utc_dt

CONFIG = ReleaseSourceConfig(url="https://archive.test/waybackconfig.json", timeout=2.0)

BAD_URL = "http://exa mple.com/\x00"

TILE = "https://wayback.test/tile/{num}/{{level}}/{{row}}/{{col}}"

PAYLOAD = {
    "10": {"itemTitle": "World Imagery (Wayback 2014-02-20)", "itemURL": TILE.format(num=10)},
    "20000": {"itemTitle": "World Imagery (Wayback 2023-10-01)", "itemURL": TILE.format(num=20000)},
    "5000": {"itemTitle": "World Imagery (Wayback 2020-06-15)", "itemURL": TILE.format(num=5000)},
}


def client_for(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


def json_handler(payload, status_code=200):
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == CONFIG.url
        return httpx.Response(status_code, json=payload)

    return handler


class TestParseReleases:
    def test_sorted_oldest_first(self):
        releases = parse_releases(PAYLOAD)
        assert [r.index for r in releases] == [10, 5000, 20000]
        assert [r.date for r in releases] == [utc_dt(2014, 2, 20), utc_dt(2020, 6, 15), utc_dt(2023, 10, 1)]

    def test_locator_uses_xyz_placeholders(self):
        release = parse_releases(PAYLOAD)[0]
        assert release.imagery_locator == "https://wayback.test/tile/10/{z}/{y}/{x}"
        assert release.max_detail_level == 19
        assert release.label == "2014-02-20"

    def test_title_without_date(self):
        payload = {"77": {"itemTitle": "World Imagery", "itemURL": TILE.format(num=77)}}
        release = parse_releases(payload)[0]
        assert release.date == today_utc()
        assert release.label == "77"

    def test_non_object_payload(self):
        with pytest.raises(ReleaseFetchError, match="expected an object"):
            parse_releases([1, 2, 3])

    def test_missing_fields(self):
        with pytest.raises(ReleaseFetchError):
            parse_releases({"1": {"itemTitle": "World Imagery (Wayback 2020-01-01)"}})

    def test_non_numeric_key(self):
        with pytest.raises(ReleaseFetchError):
            parse_releases({"abc": {"itemTitle": "x", "itemURL": "y"}})

    def test_invalid_date(self):
        with pytest.raises(ReleaseFetchError, match="bad date"):
            parse_releases({"1": {"itemTitle": "World Imagery (Wayback 2020-13-45)", "itemURL": "y"}})


class TestFallback:
    def test_three_static_releases(self):
        releases = fallback_releases()
        assert [r.index for r in releases] == [10, 64776, 99999]
        assert releases[0].date == utc_dt(2014, 2, 20)
        assert releases[1].date == utc_dt(2023, 8, 31)
        assert releases[2].date == today_utc()
        assert releases[2].label == "Current"
        assert all("{z}/{y}/{x}" in r.imagery_locator for r in releases)


class TestFetchReleases:
    def test_success(self):
        with client_for(json_handler(PAYLOAD)) as client:
            releases = fetch_releases(CONFIG, client)
        assert [r.index for r in releases] == [10, 5000, 20000]

    @pytest.mark.parametrize(
        "handler",
        [
            json_handler(PAYLOAD, status_code=500),
            json_handler([]),
            json_handler({}),
            json_handler({"1": "not-an-object"}),
            lambda request: httpx.Response(200, text="<html>"),
        ],
        ids=["http-500", "list", "empty", "bad-item", "not-json"],
    )
    def test_falls_back_on_bad_response(self, handler, caplog):
        with client_for(handler) as client:
            releases = fetch_releases(CONFIG, client)
        assert [r.index for r in releases] == [10, 64776, 99999]
        assert "fallback" in caplog.text

    def test_falls_back_on_network_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        with client_for(handler) as client:
            releases = fetch_releases(CONFIG, client)
        assert len(releases) == 3

    @pytest.mark.parametrize("use_client", [False, True], ids=["module-get", "client"])
    def test_falls_back_on_malformed_url(self, use_client):
        config = ReleaseSourceConfig(url=BAD_URL)
        if use_client:
            with client_for(lambda request: httpx.Response(200, json=PAYLOAD)) as client:
                releases = fetch_releases(config, client)
        else:
            releases = fetch_releases(config)
        assert [r.index for r in releases] == [10, 64776, 99999]

    def test_strict_wraps_malformed_url(self):
        with pytest.raises(ReleaseFetchError, match="archive request failed"):
            fetch_releases_strict(ReleaseSourceConfig(url=BAD_URL))

    def test_strict_raises(self):
        with client_for(json_handler(PAYLOAD, status_code=503)) as client:
            with pytest.raises(ReleaseFetchError, match="archive request failed"):
                fetch_releases_strict(CONFIG, client)

    def test_strict_empty_archive(self):
        with client_for(json_handler({})) as client:
            with pytest.raises(ReleaseFetchError, match="no releases"):
                fetch_releases_strict(CONFIG, client)


class TestAsyncFetch:
    @pytest.mark.asyncio
    async def test_success(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(json_handler(PAYLOAD))) as client:
            releases = await afetch_releases(CONFIG, client)
        assert [r.index for r in releases] == [10, 5000, 20000]

    @pytest.mark.asyncio
    async def test_fallback(self):
        async with httpx.AsyncClient(transport=httpx.MockTransport(json_handler(None, 502))) as client:
            releases = await afetch_releases(CONFIG, client)
        assert [r.index for r in releases] == [10, 64776, 99999]

    @pytest.mark.asyncio
    async def test_fallback_on_malformed_url(self):
        releases = await afetch_releases(ReleaseSourceConfig(url=BAD_URL))
        assert [r.index for r in releases] == [10, 64776, 99999]
