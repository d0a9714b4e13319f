"""Fog-risk scoring from a single hourly forecast sample.

Five independent components, each a linear ramp from 0 at a "safe" threshold
to a fixed cap at a "risk" threshold:

  humidity          0 at 80 %   -> 40 at 100 %
  dew-point spread  0 at 2 °C   -> 30 at 0 °C
  visibility        0 at 1000 m -> 20 at 0 m
  low cloud         0 at 70 %   -> 10 at 100 %
  wind              0 at 3 m/s  -> 15 at 0 m/s

Components are summed as floats, truncated to an int once, and clamped to
[0, 100] by FogScore. A component whose input is absent contributes nothing.
"""

from collections.abc import Sequence

from astroview.models import FogFactor, FogScore, HourlyForecast

KMH_PER_MS = 3.6

HUMIDITY_SAFE, HUMIDITY_SPAN, HUMIDITY_CAP = 80.0, 20.0, 40.0
SPREAD_SAFE, SPREAD_SPAN, SPREAD_CAP = 2.0, 2.0, 30.0
VISIBILITY_SAFE, VISIBILITY_SPAN, VISIBILITY_CAP = 1000.0, 1000.0, 20.0
LOW_CLOUD_SAFE, LOW_CLOUD_SPAN, LOW_CLOUD_CAP = 70.0, 30.0, 10.0
WIND_SAFE_MS, WIND_SPAN_MS, WIND_CAP = 3.0, 3.0, 15.0


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, value))


def _rising(value: float, safe: float, span: float, cap: float) -> float:
    return _clamp01((value - safe) / span) * cap


def _falling(value: float, safe: float, span: float, cap: float) -> float:
    return _clamp01((safe - value) / span) * cap


def fog_components(sample: HourlyForecast) -> dict[FogFactor, float]:
    """Per-factor contributions before summing. Absent inputs are left out entirely."""
    parts: dict[FogFactor, float] = {
        FogFactor.HIGH_HUMIDITY: _rising(sample.humidity, HUMIDITY_SAFE, HUMIDITY_SPAN, HUMIDITY_CAP),
    }
    if sample.dew_point is not None:
        spread = sample.temperature - sample.dew_point
        parts[FogFactor.LOW_TEMP_DEW_DIFF] = _falling(spread, SPREAD_SAFE, SPREAD_SPAN, SPREAD_CAP)
    if sample.visibility is not None:
        parts[FogFactor.LOW_VISIBILITY] = _falling(
            sample.visibility, VISIBILITY_SAFE, VISIBILITY_SPAN, VISIBILITY_CAP
        )
    if sample.low_cloud_cover is not None:
        parts[FogFactor.HIGH_LOW_CLOUD] = _rising(
            sample.low_cloud_cover, LOW_CLOUD_SAFE, LOW_CLOUD_SPAN, LOW_CLOUD_CAP
        )
    # wind_speed is km/h; the ramp is defined in m/s
    wind_ms = sample.wind_speed / KMH_PER_MS
    parts[FogFactor.LOW_WIND] = _falling(wind_ms, WIND_SAFE_MS, WIND_SPAN_MS, WIND_CAP)
    return parts


def score(sample: HourlyForecast) -> FogScore:
    """Score one hourly sample. Pure and total."""
    parts = fog_components(sample)
    factors = frozenset(factor for factor, value in parts.items() if value > 0)
    return FogScore(score=int(sum(parts.values())), factors=factors)


def score_current(series: Sequence[HourlyForecast]) -> FogScore:
    """Score the first sample of a series; an empty series scores zero."""
    if not series:
        return FogScore(score=0)
    return score(series[0])
