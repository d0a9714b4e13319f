"""Data model definitions — immutable snapshots passed between providers, calculators and consumers."""

import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, IntEnum

from astroview.errors import ValidationError

_FULL_DAY = timedelta(days=1)


@dataclass(frozen=True)
class Coordinate:
    """Observer position on the WGS84 ellipsoid. Validated on construction."""

    latitude: float  # Decimal degrees, [-90, 90]
    longitude: float  # Decimal degrees, [-180, 180]

    def __post_init__(self) -> None:
        for name, value, bound in (
            ("latitude", self.latitude, 90.0),
            ("longitude", self.longitude, 180.0),
        ):
            if not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ValidationError(f"{name} must be a finite number, got {value!r}")
            if abs(value) > bound:
                raise ValidationError(f"{name} {value} outside [-{bound:g}, {bound:g}]")


@dataclass(frozen=True)
class Location:
    """A named observing site."""

    name: str
    coordinate: Coordinate
    elevation: float | None = None  # Metres; display only
    timezone: str | None = None  # IANA zone name ("America/Los_Angeles"); resolved when absent

    @property
    def latitude(self) -> float:
        return self.coordinate.latitude

    @property
    def longitude(self) -> float:
        return self.coordinate.longitude


@dataclass(frozen=True)
class HourlyForecast:
    """One hour of forecast weather. Optional fields are None when the provider omits them."""

    time: datetime  # Absolute instant (tz-aware, UTC)
    cloud_cover: int  # Percent, [0, 100]
    humidity: int  # Relative humidity percent, [0, 100]
    wind_speed: float  # km/h at 10 m
    wind_direction: int  # Degrees, [0, 360)
    temperature: float  # °C at 2 m
    dew_point: float | None = None  # °C at 2 m
    visibility: float | None = None  # Metres
    low_cloud_cover: int | None = None  # Percent, [0, 100]


class FogFactor(str, Enum):
    """Closed set of conditions that contribute to fog risk. Values are the wire names."""

    HIGH_HUMIDITY = "highHumidity"
    LOW_TEMP_DEW_DIFF = "lowTempDewDiff"
    LOW_VISIBILITY = "lowVisibility"
    HIGH_LOW_CLOUD = "highLowCloud"
    LOW_WIND = "lowWind"

    @property
    def description(self) -> str:
        return _FOG_FACTOR_DESCRIPTIONS[self]


_FOG_FACTOR_DESCRIPTIONS: dict[FogFactor, str] = {
    FogFactor.HIGH_HUMIDITY: "High humidity",
    FogFactor.LOW_TEMP_DEW_DIFF: "Temperature near dew point",
    FogFactor.LOW_VISIBILITY: "Low visibility",
    FogFactor.HIGH_LOW_CLOUD: "Extensive low cloud",
    FogFactor.LOW_WIND: "Calm wind",
}


@dataclass(frozen=True)
class FogScore:
    """Bounded fog-risk score. Out-of-range scores are clamped to [0, 100] on construction."""

    score: int
    factors: frozenset[FogFactor] = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "score", max(0, min(100, int(self.score))))
        object.__setattr__(self, "factors", frozenset(FogFactor(f) for f in self.factors))

    @property
    def level(self) -> str:
        """Coarse risk band: low / moderate / high / severe."""
        if self.score < 25:
            return "low"
        if self.score < 50:
            return "moderate"
        if self.score < 75:
            return "high"
        return "severe"


@dataclass(frozen=True)
class SunEvents:
    """Solar elevation crossings for one date at one location.

    A threshold the sun never crosses that day collapses its begin/end pair onto
    a single instant: ``solar_noon`` when the sun stays below the threshold,
    ``solar_noon + 12h`` when it stays above.
    """

    sunrise: datetime
    sunset: datetime
    civil_twilight_begin: datetime
    civil_twilight_end: datetime
    nautical_twilight_begin: datetime
    nautical_twilight_end: datetime
    astronomical_twilight_begin: datetime
    astronomical_twilight_end: datetime
    solar_noon: datetime

    @property
    def astronomical_night_start(self) -> datetime:
        return self.astronomical_twilight_end

    def astronomical_night_end(self, next_day: "SunEvents | None" = None) -> datetime:
        """Astronomical dawn that closes the night starting this evening."""
        if next_day is not None and not next_day._astronomical_pair_collapsed:
            return next_day.astronomical_twilight_begin
        return self.astronomical_twilight_begin + _FULL_DAY

    def astronomical_night_duration(self, next_day: "SunEvents | None" = None) -> timedelta:
        """Time between astronomical dusk and the next astronomical dawn.

        Zero when the sun never sinks 18° below the horizon, a full day when it
        never rises above that depth.
        """
        if self._astronomical_pair_collapsed:
            if self.astronomical_twilight_end == self.solar_noon:
                return _FULL_DAY
            return timedelta(0)
        night = self.astronomical_night_end(next_day) - self.astronomical_twilight_end
        return max(timedelta(0), night)

    @property
    def _astronomical_pair_collapsed(self) -> bool:
        return self.astronomical_twilight_begin == self.astronomical_twilight_end


@dataclass(frozen=True)
class MoonInfo:
    """Lunar state for an observer at an instant."""

    phase: float  # [0, 1): 0 = new, 0.5 = full
    phase_name: str  # One of the eight named phases
    altitude: float  # Topocentric degrees, [-90, 90]
    illumination: int  # Percent of the disc lit, [0, 100]
    emoji: str  # Glyph for the phase bucket


def _new_pass_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ISSPass:
    """A single visible transit of a tracked object.

    Every instance gets its own ``id``, so two passes with identical timing are
    still different passes.
    """

    rise_time: datetime  # tz-aware UTC
    duration: float  # Seconds, > 0
    max_elevation: float  # Degrees, [0, 90]
    estimated: bool = False  # True when max_elevation came from the duration heuristic
    id: str = field(default_factory=_new_pass_id)

    @property
    def set_time(self) -> datetime:
        return self.rise_time + timedelta(seconds=self.duration)


@dataclass(frozen=True)
class RawForecast:
    """Hourly forecast as delivered by a weather provider, before normalization."""

    times: tuple[str, ...]  # Naive local wall-clock strings ("2026-02-19T00:00")
    utc_offset_seconds: int | None  # Offset of the wall clock from UTC; None means 0
    timezone: str | None  # IANA zone name reported by the provider
    columns: dict[str, tuple]  # Open-Meteo hourly variable name -> values


@dataclass(frozen=True)
class RawPass:
    """A pass record as delivered by a pass-tracking provider."""

    rise_time: int  # Unix epoch seconds
    duration: int  # Seconds
    max_elevation: float | None = None  # Degrees; None on providers that omit it


class DaySelection(IntEnum):
    """Day offsets relative to the fetch day."""

    TODAY = 0
    TOMORROW = 1
    DAY_AFTER = 2


@dataclass(frozen=True)
class ViewingConditions:
    """The aggregate snapshot produced once per fetch cycle. Read-only to consumers."""

    fetched_at: datetime  # Anchor instant for day selection (tz-aware)
    location: Location
    timezone: str  # IANA zone used for day bucketing
    hourly_forecasts: tuple[HourlyForecast, ...]
    daily_sun_events: tuple[SunEvents, ...]  # Indexed by day offset from fetched_at
    daily_moon_info: tuple[MoonInfo, ...]  # Same indexing as daily_sun_events
    passes: tuple[ISSPass, ...]
    fog_score: FogScore
