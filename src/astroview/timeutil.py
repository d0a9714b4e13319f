"""Time normalization — naive provider timestamps to instants, and fetch-anchored day windows.

Providers such as Open-Meteo emit wall-clock strings with no zone designator
("2026-02-19T00:00" meaning local midnight) plus one UTC offset for the whole
series. Every string is parsed as if it were UTC and then shifted by the
negated offset, which yields the true instant.

Day selection is always computed against the instant the data was fetched,
never against the current time, so a view rendered after local midnight still
labels and filters days the same way as the data set it is showing.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import date, datetime, timedelta, tzinfo
from typing import TypeVar

import pytz
from pytz import utc
from timezonefinder import TimezoneFinder

from astroview.errors import MalformedInputError, ValidationError
from astroview.models import Coordinate

T = TypeVar("T")

_tf = TimezoneFinder()


def parse_naive_timestamp(value: str, index: int | None = None) -> datetime:
    """Parse a zone-less ``YYYY-MM-DDTHH:MM[:SS]`` string as a UTC instant.

    Raises:
        MalformedInputError: The value is empty, unparseable, or carries its own offset.
    """
    where = f" at index {index}" if index is not None else ""
    if not isinstance(value, str) or not value.strip():
        raise MalformedInputError(f"Empty timestamp{where}: {value!r}")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError as exc:
        raise MalformedInputError(f"Unparseable timestamp{where}: {value!r}") from exc
    if parsed.tzinfo is not None:
        raise MalformedInputError(f"Expected a naive local timestamp{where}, got offset-qualified {value!r}")
    return utc.localize(parsed)


def to_local_instants(
    raw_timestamps: Sequence[str], utc_offset_seconds: int | None
) -> tuple[datetime, ...]:
    """Convert a series of naive local timestamps into absolute UTC instants.

    Args:
        raw_timestamps: Wall-clock strings already expressed in the target local time.
        utc_offset_seconds: Signed offset of that wall clock from UTC. None is treated as 0.

    Returns:
        Tuple of tz-aware UTC datetimes, ``parsed_as_utc - offset`` for each input.
    """
    shift = timedelta(seconds=-(utc_offset_seconds or 0))
    return tuple(
        parse_naive_timestamp(raw, index) + shift
        for index, raw in enumerate(raw_timestamps)
    )


def get_timezone(name: str) -> tzinfo:
    """Look up an IANA zone. Raises ValidationError on unknown names."""
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError as exc:
        raise ValidationError(f"Unknown time zone: {name!r}") from exc


def require_aware(instant: datetime, label: str) -> None:
    if instant.tzinfo is None or instant.utcoffset() is None:
        raise ValidationError(f"{label} must be timezone-aware, got {instant!r}")


def local_date(instant: datetime, tz: tzinfo) -> date:
    """Calendar date of an instant as seen in ``tz``."""
    require_aware(instant, "instant")
    return instant.astimezone(tz).date()


def local_midnight(day: date, tz: tzinfo) -> datetime:
    naive = datetime(day.year, day.month, day.day)
    if hasattr(tz, "localize"):
        return tz.normalize(tz.localize(naive))
    return naive.replace(tzinfo=tz)


def start_of_day(instant: datetime, tz: tzinfo) -> datetime:
    """Local midnight opening the calendar day that contains ``instant``."""
    return local_midnight(local_date(instant, tz), tz)


def day_window(anchor: datetime, day_index: int, tz: tzinfo) -> tuple[datetime, datetime]:
    """Half-open ``[start, end)`` window of the day ``day_index`` days after the anchor's day.

    Windows follow the local calendar, so DST transition days are 23 or 25 hours long.
    """
    if day_index < 0:
        raise ValidationError(f"day_index must be >= 0, got {day_index}")
    first = local_date(anchor, tz) + timedelta(days=day_index)
    return local_midnight(first, tz), local_midnight(first + timedelta(days=1), tz)


def in_day_window(anchor: datetime, day_index: int, tz: tzinfo) -> Callable[[datetime], bool]:
    """Predicate accepting instants that fall inside :func:`day_window`."""
    start, end = day_window(anchor, day_index, tz)
    return lambda instant: start <= instant < end


def bucket_by_day(
    items: Iterable[T],
    anchor: datetime,
    day_index: int,
    tz: tzinfo,
    key: Callable[[T], datetime] | None = None,
) -> list[T]:
    """Items whose instant (``key(item)``, or the item itself) lies in the anchored day window."""
    accept = in_day_window(anchor, day_index, tz)
    get_time = key or (lambda item: item)
    return [item for item in items if accept(get_time(item))]


def elapsed_days(anchor: datetime, now: datetime, tz: tzinfo) -> int:
    """Local calendar days between the anchor's day and ``now``'s day (0 on the same day)."""
    return (local_date(now, tz) - local_date(anchor, tz)).days


def fetch_day_title(anchor: datetime, day_index: int, tz: tzinfo) -> str:
    """Tab label for a day offset: "Today", "Tomorrow", else a short date like "Wed, Feb 25"."""
    if day_index == 0:
        return "Today"
    if day_index == 1:
        return "Tomorrow"
    start, _ = day_window(anchor, day_index, tz)
    return f"{start:%a, %b} {start.day}"


def _zone_for_offset(utc_offset_seconds: int | None) -> str:
    if not utc_offset_seconds or utc_offset_seconds % 3600:
        return "UTC"
    hours = utc_offset_seconds // 3600
    # POSIX-style Etc zones invert the sign: Etc/GMT+8 is UTC-8
    return f"Etc/GMT{-hours:+d}"


def resolve_timezone(coordinate: Coordinate, utc_offset_seconds: int | None = None) -> str:
    """Find the IANA zone for a coordinate.

    Falls back to a fixed ``Etc/GMT±N`` zone built from a whole-hour offset, then to UTC.
    """
    name = _tf.timezone_at(lat=coordinate.latitude, lng=coordinate.longitude)
    if name is None:
        return _zone_for_offset(utc_offset_seconds)
    return name
