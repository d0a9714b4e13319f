"""Hourly forecast parsing — provider columns to timezone-correct HourlyForecast records."""

from collections.abc import Sequence

from astroview.errors import MalformedInputError
from astroview.models import HourlyForecast, RawForecast
from astroview.timeutil import to_local_instants

# Open-Meteo hourly variable names
CLOUD_COVER = "cloud_cover"
CLOUD_COVER_LOW = "cloud_cover_low"
HUMIDITY = "relative_humidity_2m"
WIND_SPEED = "wind_speed_10m"
WIND_DIRECTION = "wind_direction_10m"
TEMPERATURE = "temperature_2m"
DEW_POINT = "dew_point_2m"
VISIBILITY = "visibility"

REQUIRED_VARIABLES = (CLOUD_COVER, HUMIDITY, WIND_SPEED, WIND_DIRECTION, TEMPERATURE)
OPTIONAL_VARIABLES = (DEW_POINT, VISIBILITY, CLOUD_COVER_LOW)
HOURLY_VARIABLES = REQUIRED_VARIABLES + OPTIONAL_VARIABLES


def _value_at(values: Sequence | None, index: int):
    if values is None or index >= len(values):
        return None
    return values[index]


def _required(raw: RawForecast, name: str, index: int) -> float:
    value = _value_at(raw.columns.get(name), index)
    if value is None:
        raise MalformedInputError(
            f"Forecast record {index} ({raw.times[index]}) is missing required field {name!r}"
        )
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(
            f"Forecast record {index} ({raw.times[index]}) has non-numeric {name!r}: {value!r}"
        ) from exc


def _optional(raw: RawForecast, name: str, index: int) -> float | None:
    value = _value_at(raw.columns.get(name), index)
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(
            f"Forecast record {index} ({raw.times[index]}) has non-numeric {name!r}: {value!r}"
        ) from exc


def parse_hourly_forecasts(raw: RawForecast) -> tuple[HourlyForecast, ...]:
    """Normalize a raw provider series.

    Timestamps are shifted to true instants with the series' UTC offset before
    anything else looks at them. Optional variables the provider omitted stay
    None; a missing required variable fails the whole parse.

    Raises:
        MalformedInputError: Unparseable timestamp or missing/non-numeric required value.
    """
    instants = to_local_instants(raw.times, raw.utc_offset_seconds)
    forecasts: list[HourlyForecast] = []
    for index, instant in enumerate(instants):
        low_cloud = _optional(raw, CLOUD_COVER_LOW, index)
        forecasts.append(
            HourlyForecast(
                time=instant,
                cloud_cover=int(_required(raw, CLOUD_COVER, index)),
                humidity=int(_required(raw, HUMIDITY, index)),
                wind_speed=_required(raw, WIND_SPEED, index),
                wind_direction=int(_required(raw, WIND_DIRECTION, index)) % 360,
                temperature=_required(raw, TEMPERATURE, index),
                dew_point=_optional(raw, DEW_POINT, index),
                visibility=_optional(raw, VISIBILITY, index),
                low_cloud_cover=int(low_cloud) if low_cloud is not None else None,
            )
        )
    return tuple(forecasts)
