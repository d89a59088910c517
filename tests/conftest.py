from datetime import datetime

import pytest
from pytz import utc

from heritagetimeline.clock import PlaybackClock
from heritagetimeline.models import Release, Site
from heritagetimeline.scheduling import ManualScheduler


def utc_dt(year: int, month: int, day: int, hour: int = 0) -> datetime:
    return datetime(year, month, day, hour, tzinfo=utc)


@pytest.fixture
def sites() -> list[Site]:
    return [
        Site(
            id="great-mosque",
            name="Great Omari Mosque",
            coordinates=(31.504, 34.464),
            status="destroyed",
            type="mosque",
            year_built="1200",
            destruction_date=utc_dt(2024, 1, 1),
            religious_significance=True,
        ),
        Site(
            id="pasha-palace",
            name="Qasr al-Basha",
            coordinates=(31.503, 34.462),
            status="heavily-damaged",
            type="museum",
            year_built="1950",
            destruction_date=utc_dt(2024, 12, 31),
        ),
        Site(
            id="old-school",
            name="Old School",
            coordinates=(31.51, 34.47),
            status="damaged",
            type="historic-building",
            year_built="1990",
        ),
    ]


@pytest.fixture
def releases() -> list[Release]:
    return [
        Release(10, utc_dt(2014, 2, 20), "https://tiles/10/{z}/{y}/{x}", 17, "2014-02-20"),
        Release(20, utc_dt(2020, 6, 15), "https://tiles/20/{z}/{y}/{x}", 18, "2020-06-15"),
        Release(30, utc_dt(2023, 10, 1), "https://tiles/30/{z}/{y}/{x}", 19, "2023-10-01"),
    ]


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def clock(sites, scheduler):
    clock = PlaybackClock(sites, scheduler=scheduler)
    yield clock
    clock.close()
