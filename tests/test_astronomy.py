from datetime import date, datetime, timedelta

import pytest
import pytz
from pytz import utc

from astroview import astronomy
from astroview.errors import ValidationError
from astroview.models import Coordinate

NEW_YORK = Coordinate(40.7128, -74.0060)
PORTLAND = Coordinate(45.4627, -122.7491)
EQUATOR = Coordinate(0.0, 0.0)
NEAR_POLE = Coordinate(89.0, 0.0)
HELSINKI_ISH = Coordinate(60.0, 25.0)
SYDNEY = Coordinate(-33.87, 151.21)
APIA = Coordinate(-13.83, -171.76)

NEW_YORK_TZ = pytz.timezone("America/New_York")
PORTLAND_TZ = pytz.timezone("America/Los_Angeles")
HELSINKI_TZ = pytz.timezone("Europe/Helsinki")
SYDNEY_TZ = pytz.timezone("Australia/Sydney")
APIA_TZ = pytz.timezone("Pacific/Apia")


def _ordered(events):
    return [
        events.astronomical_twilight_begin,
        events.nautical_twilight_begin,
        events.civil_twilight_begin,
        events.sunrise,
        events.sunset,
        events.civil_twilight_end,
        events.nautical_twilight_end,
        events.astronomical_twilight_end,
    ]


def _close(actual: datetime, expected: datetime, minutes: float = 3.0) -> bool:
    return abs((actual - expected).total_seconds()) <= minutes * 60


class TestSunEvents:
    def test_new_york_solstice(self):
        """Sunrise 05:25 EDT and sunset 20:31 EDT on 2024-06-21."""
        events = astronomy.sun_events(NEW_YORK, date(2024, 6, 21), NEW_YORK_TZ)
        assert _close(events.sunrise, datetime(2024, 6, 21, 9, 25, tzinfo=utc))
        assert _close(events.sunset, datetime(2024, 6, 22, 0, 31, tzinfo=utc))

    def test_instants_are_utc(self):
        events = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        assert all(instant.utcoffset() == timedelta(0) for instant in _ordered(events))

    @pytest.mark.parametrize(
        "coordinate,tz",
        [(EQUATOR, utc), (PORTLAND, PORTLAND_TZ), (NEW_YORK, NEW_YORK_TZ), (SYDNEY, SYDNEY_TZ)],
    )
    @pytest.mark.parametrize("on", [date(2026, 3, 20), date(2026, 6, 21), date(2026, 9, 23), date(2026, 12, 21)])
    def test_boundaries_are_ordered(self, coordinate, tz, on):
        boundaries = _ordered(astronomy.sun_events(coordinate, on, tz))
        assert boundaries == sorted(boundaries)
        assert len(set(boundaries)) == len(boundaries)

    def test_solar_noon_sits_between_sunrise_and_sunset(self):
        events = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        assert events.sunrise < events.solar_noon < events.sunset
        midpoint = events.sunrise + (events.sunset - events.sunrise) / 2
        assert _close(events.solar_noon, midpoint, minutes=2)

    def test_equinox_day_is_about_twelve_hours_at_equator(self):
        events = astronomy.sun_events(EQUATOR, date(2026, 3, 20))
        length = events.sunset - events.sunrise
        assert timedelta(hours=12) <= length <= timedelta(hours=12, minutes=10)

    def test_datetime_is_reduced_to_its_date(self):
        by_date = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        by_datetime = astronomy.sun_events(PORTLAND, datetime(2026, 2, 22, 18, 30, tzinfo=utc), PORTLAND_TZ)
        assert by_date == by_datetime

    def test_is_pure(self):
        first = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        assert first == astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)

    def test_consecutive_days_differ(self):
        first = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        second = astronomy.sun_events(PORTLAND, date(2026, 2, 23), PORTLAND_TZ)
        delta = second.sunset - first.sunset
        assert timedelta(hours=24) < delta < timedelta(hours=24, minutes=3)

    def test_day_is_the_local_calendar_day_east_of_the_date_line(self):
        """Apia runs on UTC+13, so its local day starts about a day ahead of local mean time."""
        events = astronomy.sun_events(APIA, date(2026, 2, 22), APIA_TZ)
        assert events.sunrise.astimezone(APIA_TZ).date() == date(2026, 2, 22)
        assert events.sunset.astimezone(APIA_TZ).date() == date(2026, 2, 22)
        assert astronomy.sun_events(APIA, date(2026, 2, 22)).sunrise > events.sunrise + timedelta(hours=23)

    def test_end_may_fall_after_local_midnight(self):
        """Portland's June astronomical dusk comes near midnight; the end belongs to the evening it closes."""
        events = astronomy.sun_events(PORTLAND, date(2026, 6, 21), PORTLAND_TZ)
        start = PORTLAND_TZ.localize(datetime(2026, 6, 21))
        assert start <= events.astronomical_twilight_begin < start + timedelta(days=1)
        assert events.astronomical_twilight_end > events.sunset
        assert events.astronomical_twilight_end - events.astronomical_twilight_begin < timedelta(hours=24)


class TestPolarDays:
    def test_midnight_sun_collapses_every_pair(self):
        events = astronomy.sun_events(NEAR_POLE, date(2026, 6, 21))
        collapsed = events.solar_noon + timedelta(hours=12)
        assert set(_ordered(events)) == {collapsed}
        assert events.astronomical_night_duration() == timedelta(0)

    def test_polar_night_collapses_onto_noon(self):
        events = astronomy.sun_events(NEAR_POLE, date(2026, 12, 21))
        assert set(_ordered(events)) == {events.solar_noon}
        assert events.astronomical_night_duration() == timedelta(days=1)

    def test_white_night_keeps_civil_twilight(self):
        """At 60°N in June the Sun dips below -6° but never below -12°."""
        events = astronomy.sun_events(HELSINKI_ISH, date(2026, 6, 21), HELSINKI_TZ)
        collapsed = events.solar_noon + timedelta(hours=12)
        assert events.sunrise < events.sunset
        assert events.civil_twilight_begin < events.civil_twilight_end
        assert events.nautical_twilight_begin == events.nautical_twilight_end == collapsed
        assert events.astronomical_twilight_begin == events.astronomical_twilight_end == collapsed
        assert events.astronomical_night_duration() == timedelta(0)


class TestAstronomicalNight:
    def test_duration_uses_next_dawn(self):
        today = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        tomorrow = astronomy.sun_events(PORTLAND, date(2026, 2, 23), PORTLAND_TZ)
        assert today.astronomical_night_start == today.astronomical_twilight_end
        assert today.astronomical_night_end(tomorrow) == tomorrow.astronomical_twilight_begin
        night = today.astronomical_night_duration(tomorrow)
        assert timedelta(hours=9) < night < timedelta(hours=12)

    def test_without_next_day_falls_back_to_a_day_later(self):
        today = astronomy.sun_events(PORTLAND, date(2026, 2, 22), PORTLAND_TZ)
        assert today.astronomical_night_end() == today.astronomical_twilight_begin + timedelta(days=1)


class TestMoonInfo:
    def test_full_moon(self):
        info = astronomy.moon_info(PORTLAND, datetime(2024, 1, 25, 17, 54, tzinfo=utc))
        assert info.phase == pytest.approx(0.5, abs=0.02)
        assert info.phase_name == "Full Moon"
        assert info.emoji == "🌕"
        assert info.illumination >= 99

    def test_new_moon(self):
        info = astronomy.moon_info(PORTLAND, datetime(2024, 1, 11, 11, 57, tzinfo=utc))
        assert min(info.phase, 1 - info.phase) < 0.02
        assert info.phase_name == "New Moon"
        assert info.illumination <= 1

    def test_first_quarter(self):
        info = astronomy.moon_info(PORTLAND, datetime(2024, 1, 18, 3, 52, tzinfo=utc))
        assert info.phase == pytest.approx(0.25, abs=0.02)
        assert info.phase_name == "First Quarter"
        assert 40 <= info.illumination <= 60

    def test_full_moon_is_high_at_local_midnight(self):
        """Opposite the Sun, the full Moon culminates near local midnight and is down at local noon."""
        instant = datetime(2024, 1, 25, 17, 54, tzinfo=utc)
        assert astronomy.moon_info(Coordinate(0.0, 94.5), instant).altitude > 50
        assert astronomy.moon_info(Coordinate(0.0, -85.5), instant).altitude < -50

    def test_month_sweep_stays_in_range(self):
        start = datetime(2026, 2, 1, tzinfo=utc)
        for hours in range(0, 30 * 24, 6):
            info = astronomy.moon_info(PORTLAND, start + timedelta(hours=hours))
            assert 0.0 <= info.phase < 1.0
            assert 0 <= info.illumination <= 100
            assert -90.0 <= info.altitude <= 90.0
            assert (info.phase_name, info.emoji) in astronomy.MOON_PHASES

    def test_phase_advances_through_the_month(self):
        start = datetime(2024, 1, 11, 12, tzinfo=utc)
        phases = [astronomy.moon_info(PORTLAND, start + timedelta(days=d)).phase for d in range(1, 29)]
        assert phases == sorted(phases)

    def test_naive_instant_rejected(self):
        with pytest.raises(ValidationError):
            astronomy.moon_info(PORTLAND, datetime(2024, 1, 25, 17, 54))


class TestMoonPhaseBucket:
    @pytest.mark.parametrize(
        "phase,name",
        [
            (0.0, "New Moon"),
            (0.97, "New Moon"),
            (0.1, "Waxing Crescent"),
            (0.25, "First Quarter"),
            (0.4, "Waxing Gibbous"),
            (0.5, "Full Moon"),
            (0.6, "Waning Gibbous"),
            (0.75, "Last Quarter"),
            (0.85, "Waning Crescent"),
        ],
    )
    def test_buckets(self, phase, name):
        assert astronomy.moon_phase_bucket(phase)[0] == name


class TestCoordinate:
    @pytest.mark.parametrize("lat,lon", [(91.0, 0.0), (-90.5, 0.0), (0.0, 181.0), (float("nan"), 0.0), (0.0, float("inf"))])
    def test_out_of_domain(self, lat, lon):
        with pytest.raises(ValidationError):
            Coordinate(lat, lon)
