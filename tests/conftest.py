from datetime import datetime, timedelta

import httpx
import pytest

from astroview.models import Coordinate, HourlyForecast, Location, RawForecast, RawPass

LA = "America/Los_Angeles"
PST_OFFSET = -28800


@pytest.fixture
def portland() -> Location:
    return Location(
        name="Portland",
        coordinate=Coordinate(latitude=45.5152, longitude=-122.6784),
        elevation=50.0,
        timezone=LA,
    )


@pytest.fixture
def make_hourly():
    """Factory for HourlyForecast samples with benign defaults."""

    def _make(time: datetime, **overrides) -> HourlyForecast:
        fields = {
            "time": time,
            "cloud_cover": 50,
            "humidity": 80,
            "wind_speed": 10.0,
            "wind_direction": 180,
            "temperature": 15.0,
            "dew_point": 12.0,
            "visibility": 10000.0,
            "low_cloud_cover": 30,
        }
        fields.update(overrides)
        return HourlyForecast(**fields)

    return _make


@pytest.fixture
def make_raw_forecast():
    """Factory for a Open-Meteo style series of ``hours`` naive local timestamps starting at ``start``."""

    def _make(
        start: datetime,
        hours: int = 72,
        utc_offset_seconds: int | None = PST_OFFSET,
        timezone: str | None = LA,
        omit: tuple[str, ...] = (),
    ) -> RawForecast:
        times = tuple((start + timedelta(hours=i)).strftime("%Y-%m-%dT%H:%M") for i in range(hours))
        columns = {
            "cloud_cover": tuple(50 for _ in range(hours)),
            "relative_humidity_2m": tuple(80 for _ in range(hours)),
            "wind_speed_10m": tuple(10.0 for _ in range(hours)),
            "wind_direction_10m": tuple(180 for _ in range(hours)),
            "temperature_2m": tuple(15.0 for _ in range(hours)),
            "dew_point_2m": tuple(12.0 for _ in range(hours)),
            "visibility": tuple(10000.0 for _ in range(hours)),
            "cloud_cover_low": tuple(30 for _ in range(hours)),
        }
        for name in omit:
            columns.pop(name)
        return RawForecast(
            times=times,
            utc_offset_seconds=utc_offset_seconds,
            timezone=timezone,
            columns=columns,
        )

    return _make


@pytest.fixture
def raw_passes() -> list[RawPass]:
    return [
        RawPass(rise_time=1700000000, duration=300, max_elevation=45.0),
        RawPass(rise_time=1700086400, duration=420),
    ]


@pytest.fixture
def mock_client():
    """Build an httpx.Client whose requests are answered by ``handler``."""
    clients: list[httpx.Client] = []

    def _make(handler) -> httpx.Client:
        client = httpx.Client(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _make
    for client in clients:
        client.close()


ISS_TLE = """\
ISS (ZARYA)
1 25544U 98067A   14020.93268519  .00009878  00000-0  18200-3 0  5082
2 25544  51.6498 109.4756 0003572  55.9686 274.8005 15.49815350868473
"""


@pytest.fixture
def iss_tle() -> str:
    """ISS element set from January 2014, with passes over Bluffton, Ohio on the 23rd."""
    return ISS_TLE


@pytest.fixture
def bluffton() -> Location:
    return Location(name="Bluffton", coordinate=Coordinate(40.8939, -83.8917))
