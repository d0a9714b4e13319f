"""Viewing-conditions aggregation — one immutable snapshot per fetch cycle, and fetch-anchored day lookups.

``build_snapshot`` is deterministic: the only notion of time it uses is the
``fetched_at`` instant passed in, which also anchors every day offset the
consumers ask for afterwards.
"""

import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from pytz import utc

from astroview import astronomy, fog, passes
from astroview.errors import ProviderError, ValidationError
from astroview.forecast import parse_hourly_forecasts
from astroview.models import (
    DaySelection,
    HourlyForecast,
    Location,
    MoonInfo,
    RawForecast,
    RawPass,
    SunEvents,
    ViewingConditions,
)
from astroview.providers.base import PassProvider, WeatherProvider
from astroview.timeutil import (
    bucket_by_day,
    elapsed_days as _elapsed_days,
    fetch_day_title,
    get_timezone,
    local_date,
    require_aware,
    resolve_timezone,
)

logger = logging.getLogger(__name__)

DEFAULT_DAYS = 3
STALE_AFTER = timedelta(minutes=30)


def _same_wall_time_on_day(anchor: datetime, day_index: int, tz) -> datetime:
    local = anchor.astimezone(tz)
    naive = local.replace(tzinfo=None) + timedelta(days=day_index)
    return tz.normalize(tz.localize(naive))


def build_snapshot(
    location: Location,
    fetched_at: datetime,
    raw_forecast: RawForecast,
    raw_passes: Sequence[RawPass],
    days: int = DEFAULT_DAYS,
) -> ViewingConditions:
    """Assemble a ViewingConditions snapshot from raw provider payloads.

    Args:
        location: Observing site. Its time zone wins over the provider's.
        fetched_at: Instant the payloads were fetched; anchors day 0.
        raw_forecast: Hourly series with naive local timestamps.
        raw_passes: Pass records from the tracking provider.
        days: Number of day offsets (0..days-1) to compute Sun and Moon for.

    Returns:
        Fully computed, immutable ViewingConditions.

    Raises:
        MalformedInputError: A forecast or pass record is unparseable.
        ValidationError: Naive ``fetched_at``, ``days`` < 1, or an out-of-domain value.
    """
    if fetched_at.tzinfo is None or fetched_at.utcoffset() is None:
        raise ValidationError(f"fetched_at must be timezone-aware, got {fetched_at!r}")
    if days < 1:
        raise ValidationError(f"days must be >= 1, got {days}")

    forecasts = parse_hourly_forecasts(raw_forecast)
    tz_name = (
        location.timezone
        or raw_forecast.timezone
        or resolve_timezone(location.coordinate, raw_forecast.utc_offset_seconds)
    )
    tz = get_timezone(tz_name)

    first_day = local_date(fetched_at, tz)
    daily_sun = tuple(
        astronomy.sun_events(location.coordinate, first_day + timedelta(days=n), tz) for n in range(days)
    )
    daily_moon = tuple(
        astronomy.moon_info(location.coordinate, _same_wall_time_on_day(fetched_at, n, tz))
        for n in range(days)
    )

    return ViewingConditions(
        fetched_at=fetched_at.astimezone(utc),
        location=location,
        timezone=tz_name,
        hourly_forecasts=forecasts,
        daily_sun_events=daily_sun,
        daily_moon_info=daily_moon,
        passes=passes.normalize_all(raw_passes),
        fog_score=fog.score_current(forecasts),
    )


def forecasts_for_day(conditions: ViewingConditions, day: DaySelection | int) -> list[HourlyForecast]:
    """Hourly forecasts whose local day is the fetch day plus ``day``."""
    tz = get_timezone(conditions.timezone)
    return bucket_by_day(
        conditions.hourly_forecasts, conditions.fetched_at, int(day), tz, key=lambda f: f.time
    )


def sun_events_for_day(conditions: ViewingConditions, day: DaySelection | int) -> SunEvents | None:
    index = int(day)
    if 0 <= index < len(conditions.daily_sun_events):
        return conditions.daily_sun_events[index]
    return None


def moon_info_for_day(conditions: ViewingConditions, day: DaySelection | int) -> MoonInfo | None:
    index = int(day)
    if 0 <= index < len(conditions.daily_moon_info):
        return conditions.daily_moon_info[index]
    return None


def day_title(conditions: ViewingConditions, day: DaySelection | int) -> str:
    """Label for a day offset, computed from the fetch day rather than today."""
    return fetch_day_title(conditions.fetched_at, int(day), get_timezone(conditions.timezone))


def elapsed_days(conditions: ViewingConditions, now: datetime) -> int:
    """How many local days ``now`` has moved past the fetch day. Non-zero means "Today" is stale."""
    return _elapsed_days(conditions.fetched_at, now, get_timezone(conditions.timezone))


def is_stale(conditions: ViewingConditions, now: datetime, max_age: timedelta = STALE_AFTER) -> bool:
    require_aware(now, "now")
    return now - conditions.fetched_at > max_age


class ConditionsService:
    """Runs one fetch cycle against injected providers and builds the snapshot."""

    def __init__(
        self,
        weather_provider: WeatherProvider,
        pass_provider: PassProvider,
        *,
        days: int = DEFAULT_DAYS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if days < 1:
            raise ValidationError(f"days must be >= 1, got {days}")
        self.weather_provider = weather_provider
        self.pass_provider = pass_provider
        self.days = days
        self._clock = clock or (lambda: datetime.now(utc))

    def fetch(self, location: Location, fetched_at: datetime | None = None) -> ViewingConditions:
        """Fetch raw data for ``location`` and build a fresh snapshot.

        Raises:
            ProviderError: A provider failed; the caller decides whether to keep stale data.
        """
        fetched_at = fetched_at or self._clock()
        logger.info(
            "Fetching conditions for %s (%.4f, %.4f) at %s",
            location.name,
            location.latitude,
            location.longitude,
            fetched_at.isoformat(),
        )
        try:
            raw_forecast = self.weather_provider.fetch_forecast(location, days=self.days)
            raw_passes = self.pass_provider.fetch_passes(location, start=fetched_at, days=self.days)
        except ProviderError as exc:
            logger.error("Fetch cycle for %s failed: %s", location.name, exc)
            raise

        snapshot = build_snapshot(location, fetched_at, raw_forecast, raw_passes, days=self.days)
        logger.info(
            "Built snapshot for %s: %d hours, %d passes, fog %d%%",
            location.name,
            len(snapshot.hourly_forecasts),
            len(snapshot.passes),
            snapshot.fog_score.score,
        )
        return snapshot

    def close(self) -> None:
        """Release provider resources such as pooled HTTP connections."""
        for provider in (self.weather_provider, self.pass_provider):
            close = getattr(provider, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "ConditionsService":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
