"""Sun and Moon calculations for an observer — twilight boundaries, lunar phase and altitude.

Positions come from the JPL DE421 ephemeris through skyfield; rise, set and
twilight instants are found with ``skyfield.almanac.find_discrete``. The
ephemeris file is fetched once into ``ASTROVIEW_DATA_DIR`` (default: the
``resources`` directory next to the source tree) the first time it is needed.

All functions are pure: they depend only on their arguments.
"""

import os
from datetime import date, datetime, timedelta, tzinfo
from functools import cache
from pathlib import Path

from pytz import utc
from skyfield import almanac
from skyfield.api import Loader, wgs84

from astroview.errors import ValidationError
from astroview.models import Coordinate, MoonInfo, SunEvents
from astroview.timeutil import local_date, local_midnight

_ROOT = Path(__file__).parent.parent.parent
_loader = Loader(os.environ.get("ASTROVIEW_DATA_DIR") or str(_ROOT / "resources"))
_ts = _loader.timescale(builtin=True)

EPHEMERIS = "de421.bsp"

# Solar elevation of each boundary (degrees). Sunrise/sunset include refraction and the solar radius.
SUNRISE_ALTITUDE = -0.833
CIVIL_ALTITUDE = -6.0
NAUTICAL_ALTITUDE = -12.0
ASTRONOMICAL_ALTITUDE = -18.0

# Sampling interval for find_discrete; short enough to catch a white-night dip below -6°.
STEP_DAYS = 0.01

MOON_PHASES: tuple[tuple[str, str], ...] = (
    ("New Moon", "🌑"),
    ("Waxing Crescent", "🌒"),
    ("First Quarter", "🌓"),
    ("Waxing Gibbous", "🌔"),
    ("Full Moon", "🌕"),
    ("Waning Gibbous", "🌖"),
    ("Last Quarter", "🌗"),
    ("Waning Crescent", "🌘"),
)

_HALF_DAY = timedelta(hours=12)
_ONE_DAY = timedelta(days=1)


@cache
def _ephemeris():
    return _loader(EPHEMERIS)


def _topos(coordinate: Coordinate):
    return wgs84.latlon(latitude_degrees=coordinate.latitude, longitude_degrees=coordinate.longitude)


def _altitude(coordinate: Coordinate, body: str, when: datetime) -> float:
    eph = _ephemeris()
    ground = eph["earth"] + _topos(coordinate)
    alt, _, _ = ground.at(_ts.from_datetime(when)).observe(eph[body]).apparent().altaz()
    return float(alt.degrees)


def _discrete(start: datetime, end: datetime, f) -> list[tuple[datetime, int]]:
    f.step_days = STEP_DAYS
    times, values = almanac.find_discrete(_ts.from_datetime(start), _ts.from_datetime(end), f)
    if not len(times):
        return []
    return [(instant.astimezone(utc), int(value)) for instant, value in zip(times.utc_datetime(), values)]


def _solar_noon(coordinate: Coordinate, start: datetime, end: datetime) -> datetime:
    """Upper transit of the Sun inside ``[start, end)``, or the first one after ``start``."""
    eph = _ephemeris()
    f = almanac.meridian_transits(eph, eph["sun"], _topos(coordinate))
    transits = _discrete(start, end + _ONE_DAY, f)
    upper = [instant for instant, value in transits if value == 1]
    return upper[0] if upper else start + (end - start) / 2


def _boundary_pair(
    coordinate: Coordinate, altitude: float, start: datetime, end: datetime, solar_noon: datetime
) -> tuple[datetime, datetime]:
    """First crossing upwards through ``altitude`` in ``[start, end)`` and the next crossing back down.

    When the Sun does not cross the altitude both ways, the pair collapses onto
    ``solar_noon`` (Sun below at noon) or ``solar_noon + 12h`` (Sun above).
    """
    eph = _ephemeris()
    f = almanac.risings_and_settings(
        eph, eph["sun"], _topos(coordinate), horizon_degrees=altitude, radius_degrees=0
    )
    crossings = _discrete(start, end + _ONE_DAY, f)
    begin = next((t for t, up in crossings if up and start <= t < end), None)
    if begin is not None:
        finish = next((t for t, up in crossings if not up and t > begin), None)
        if finish is not None:
            return begin, finish
    if _altitude(coordinate, "sun", solar_noon) > altitude:
        return solar_noon + _HALF_DAY, solar_noon + _HALF_DAY
    return solar_noon, solar_noon


def sun_events(coordinate: Coordinate, on: date, tz: tzinfo = utc) -> SunEvents:
    """Sunrise, sunset and the three twilight pairs for one local calendar day.

    Each "begin" boundary is the first upward crossing between local midnight
    of ``on`` and the next local midnight in ``tz``; the matching "end" is the
    following downward crossing, which may fall after midnight.

    Args:
        coordinate: Observer position.
        on: Calendar date. A datetime is reduced to its date in ``tz``.
        tz: Zone whose calendar defines the day. Defaults to UTC.

    Returns:
        SunEvents with tz-aware UTC instants. Boundaries the Sun never reaches
        collapse onto ``solar_noon`` (always below) or ``solar_noon + 12h``
        (always above).
    """
    if isinstance(on, datetime):
        on = local_date(on, tz) if on.tzinfo is not None else on.date()
    start = local_midnight(on, tz).astimezone(utc)
    end = local_midnight(on + _ONE_DAY, tz).astimezone(utc)
    noon = _solar_noon(coordinate, start, end)

    def pair(altitude: float) -> tuple[datetime, datetime]:
        return _boundary_pair(coordinate, altitude, start, end, noon)

    sunrise, sunset = pair(SUNRISE_ALTITUDE)
    civil_begin, civil_end = pair(CIVIL_ALTITUDE)
    nautical_begin, nautical_end = pair(NAUTICAL_ALTITUDE)
    astro_begin, astro_end = pair(ASTRONOMICAL_ALTITUDE)
    return SunEvents(
        sunrise=sunrise,
        sunset=sunset,
        civil_twilight_begin=civil_begin,
        civil_twilight_end=civil_end,
        nautical_twilight_begin=nautical_begin,
        nautical_twilight_end=nautical_end,
        astronomical_twilight_begin=astro_begin,
        astronomical_twilight_end=astro_end,
        solar_noon=noon,
    )


def moon_phase_bucket(phase: float) -> tuple[str, str]:
    """Name and glyph for a phase in [0, 1); eight equal arcs centred on the named phases."""
    return MOON_PHASES[int(phase * 8 + 0.5) % 8]


def moon_info(coordinate: Coordinate, when: datetime) -> MoonInfo:
    """Phase, illumination and topocentric altitude of the Moon for an observer at an instant.

    Raises:
        ValidationError: ``when`` is a naive datetime.
    """
    if when.tzinfo is None or when.utcoffset() is None:
        raise ValidationError(f"moon_info needs a timezone-aware instant, got {when!r}")

    eph = _ephemeris()
    t = _ts.from_datetime(when)
    phase = float(almanac.moon_phase(eph, t).degrees) / 360.0
    if not 0.0 <= phase < 1.0:
        phase = 0.0
    illumination = round(float(almanac.fraction_illuminated(eph, "moon", t)) * 100)
    altitude = _altitude(coordinate, "moon", when)

    name, emoji = moon_phase_bucket(phase)
    return MoonInfo(
        phase=phase,
        phase_name=name,
        altitude=max(-90.0, min(90.0, altitude)),
        illumination=max(0, min(100, illumination)),
        emoji=emoji,
    )
