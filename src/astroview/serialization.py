"""JSON-compatible encoding of the core entities.

Instants are written as ISO-8601 UTC strings with a ``Z`` suffix; fog factors
as their wire names, sorted. ``from_dict(type, to_dict(obj)) == obj`` holds for
every entity, including the per-instance id of a pass.
"""

import json
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from astroview.errors import MalformedInputError
from astroview.models import (
    Coordinate,
    FogScore,
    HourlyForecast,
    ISSPass,
    Location,
    MoonInfo,
    SunEvents,
    ViewingConditions,
)

T = TypeVar("T")

_SUN_FIELDS = (
    "sunrise",
    "sunset",
    "civil_twilight_begin",
    "civil_twilight_end",
    "nautical_twilight_begin",
    "nautical_twilight_end",
    "astronomical_twilight_begin",
    "astronomical_twilight_end",
    "solar_noon",
)


def _instant(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _parse_instant(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError) as exc:
        raise MalformedInputError(f"Invalid instant: {value!r}") from exc


def _coordinate(obj: Coordinate) -> dict:
    return {"latitude": obj.latitude, "longitude": obj.longitude}


def _location(obj: Location) -> dict:
    return {
        "name": obj.name,
        "coordinate": _coordinate(obj.coordinate),
        "elevation": obj.elevation,
        "timezone": obj.timezone,
    }


def _hourly(obj: HourlyForecast) -> dict:
    return {
        "time": _instant(obj.time),
        "cloud_cover": obj.cloud_cover,
        "humidity": obj.humidity,
        "wind_speed": obj.wind_speed,
        "wind_direction": obj.wind_direction,
        "temperature": obj.temperature,
        "dew_point": obj.dew_point,
        "visibility": obj.visibility,
        "low_cloud_cover": obj.low_cloud_cover,
    }


def _fog(obj: FogScore) -> dict:
    return {"score": obj.score, "factors": sorted(f.value for f in obj.factors)}


def _sun(obj: SunEvents) -> dict:
    return {name: _instant(getattr(obj, name)) for name in _SUN_FIELDS}


def _moon(obj: MoonInfo) -> dict:
    return {
        "phase": obj.phase,
        "phase_name": obj.phase_name,
        "altitude": obj.altitude,
        "illumination": obj.illumination,
        "emoji": obj.emoji,
    }


def _pass(obj: ISSPass) -> dict:
    return {
        "id": obj.id,
        "rise_time": _instant(obj.rise_time),
        "duration": obj.duration,
        "max_elevation": obj.max_elevation,
        "estimated": obj.estimated,
    }


def _conditions(obj: ViewingConditions) -> dict:
    return {
        "fetched_at": _instant(obj.fetched_at),
        "location": _location(obj.location),
        "timezone": obj.timezone,
        "hourly_forecasts": [_hourly(f) for f in obj.hourly_forecasts],
        "daily_sun_events": [_sun(s) for s in obj.daily_sun_events],
        "daily_moon_info": [_moon(m) for m in obj.daily_moon_info],
        "passes": [_pass(p) for p in obj.passes],
        "fog_score": _fog(obj.fog_score),
    }


def _read_coordinate(data: dict) -> Coordinate:
    return Coordinate(latitude=data["latitude"], longitude=data["longitude"])


def _read_location(data: dict) -> Location:
    return Location(
        name=data["name"],
        coordinate=_read_coordinate(data["coordinate"]),
        elevation=data.get("elevation"),
        timezone=data.get("timezone"),
    )


def _read_hourly(data: dict) -> HourlyForecast:
    return HourlyForecast(
        time=_parse_instant(data["time"]),
        cloud_cover=data["cloud_cover"],
        humidity=data["humidity"],
        wind_speed=data["wind_speed"],
        wind_direction=data["wind_direction"],
        temperature=data["temperature"],
        dew_point=data.get("dew_point"),
        visibility=data.get("visibility"),
        low_cloud_cover=data.get("low_cloud_cover"),
    )


def _read_fog(data: dict) -> FogScore:
    return FogScore(score=data["score"], factors=frozenset(data.get("factors", ())))


def _read_sun(data: dict) -> SunEvents:
    return SunEvents(**{name: _parse_instant(data[name]) for name in _SUN_FIELDS})


def _read_moon(data: dict) -> MoonInfo:
    return MoonInfo(
        phase=data["phase"],
        phase_name=data["phase_name"],
        altitude=data["altitude"],
        illumination=data["illumination"],
        emoji=data["emoji"],
    )


def _read_pass(data: dict) -> ISSPass:
    return ISSPass(
        rise_time=_parse_instant(data["rise_time"]),
        duration=data["duration"],
        max_elevation=data["max_elevation"],
        estimated=data.get("estimated", False),
        id=data["id"],
    )


def _read_conditions(data: dict) -> ViewingConditions:
    return ViewingConditions(
        fetched_at=_parse_instant(data["fetched_at"]),
        location=_read_location(data["location"]),
        timezone=data["timezone"],
        hourly_forecasts=tuple(_read_hourly(f) for f in data["hourly_forecasts"]),
        daily_sun_events=tuple(_read_sun(s) for s in data["daily_sun_events"]),
        daily_moon_info=tuple(_read_moon(m) for m in data["daily_moon_info"]),
        passes=tuple(_read_pass(p) for p in data["passes"]),
        fog_score=_read_fog(data["fog_score"]),
    )


_CODECS: dict[type, tuple[Callable[[Any], dict], Callable[[dict], Any]]] = {
    Coordinate: (_coordinate, _read_coordinate),
    Location: (_location, _read_location),
    HourlyForecast: (_hourly, _read_hourly),
    FogScore: (_fog, _read_fog),
    SunEvents: (_sun, _read_sun),
    MoonInfo: (_moon, _read_moon),
    ISSPass: (_pass, _read_pass),
    ViewingConditions: (_conditions, _read_conditions),
}


def to_dict(obj: Any) -> dict:
    """Encode a core entity as a JSON-compatible dict."""
    try:
        encode, _ = _CODECS[type(obj)]
    except KeyError:
        raise TypeError(f"No encoder for {type(obj).__name__}") from None
    return encode(obj)


def from_dict(cls: type[T], data: dict) -> T:
    """Decode a dict produced by :func:`to_dict` back into ``cls``.

    Raises:
        MalformedInputError: A field is missing or has the wrong shape.
    """
    try:
        _, decode = _CODECS[cls]
    except KeyError:
        raise TypeError(f"No decoder for {cls.__name__}") from None
    try:
        return decode(data)
    except (KeyError, TypeError) as exc:
        raise MalformedInputError(f"Cannot decode {cls.__name__}: {exc}") from exc


def dumps(conditions: ViewingConditions, **kwargs: Any) -> str:
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(to_dict(conditions), **kwargs)


def loads(text: str) -> ViewingConditions:
    try:
        data = json.loads(text)
    except ValueError as exc:
        raise MalformedInputError(f"Invalid JSON: {exc}") from exc
    return from_dict(ViewingConditions, data)
