"""Normalization of raw satellite pass records into ISSPass objects."""

import math
from collections.abc import Iterable
from datetime import datetime

from pytz import utc

from astroview.errors import MalformedInputError, ValidationError
from astroview.models import ISSPass, RawPass

# (minimum duration in minutes, exclusive) -> elevation estimate at the bucket midpoint
_ELEVATION_BUCKETS: tuple[tuple[float, float], ...] = (
    (6.0, 85.0),  # near zenith, 80-90°
    (4.0, 70.0),  # 60-80°
    (2.0, 50.0),  # 40-60°
)
_LOW_PASS_ELEVATION = 25.0  # 10-40°


def estimate_max_elevation(duration_seconds: float) -> float:
    """Coarse max-elevation guess from pass duration.

    Longer passes climb higher; this is a step heuristic for providers that do
    not report elevation, not a physical derivation.
    """
    minutes = duration_seconds / 60.0
    for threshold, elevation in _ELEVATION_BUCKETS:
        if minutes > threshold:
            return elevation
    return _LOW_PASS_ELEVATION


def normalize(raw: RawPass) -> ISSPass:
    """Convert one provider record into an ISSPass.

    Raises:
        MalformedInputError: A required field is missing or not numeric.
        ValidationError: The duration is not positive, or a reported max elevation is outside [0, 90].
    """
    try:
        rise_epoch = float(raw.rise_time)
        duration = float(raw.duration)
    except (TypeError, ValueError) as exc:
        raise MalformedInputError(f"Pass record has non-numeric rise/duration: {raw!r}") from exc
    if not (math.isfinite(rise_epoch) and math.isfinite(duration)):
        raise MalformedInputError(f"Pass record has non-finite rise/duration: {raw!r}")
    if duration <= 0:
        raise ValidationError(f"Pass duration must be positive, got {duration:g}s")

    estimated = raw.max_elevation is None
    if estimated:
        max_elevation = estimate_max_elevation(duration)
    else:
        try:
            max_elevation = float(raw.max_elevation)
        except (TypeError, ValueError) as exc:
            raise MalformedInputError(f"Pass record has non-numeric max elevation: {raw!r}") from exc
        if not (math.isfinite(max_elevation) and 0.0 <= max_elevation <= 90.0):
            raise ValidationError(f"Pass max elevation must be within [0, 90], got {max_elevation!r}")
    return ISSPass(
        rise_time=datetime.fromtimestamp(rise_epoch, tz=utc),
        duration=duration,
        max_elevation=max_elevation,
        estimated=estimated,
    )


def normalize_all(records: Iterable[RawPass]) -> tuple[ISSPass, ...]:
    """Normalize every record, preserving order. Past passes are kept; filtering is up to callers."""
    return tuple(normalize(raw) for raw in records)


def format_duration(seconds: float) -> str:
    """Display form of a pass duration: "5m 0s", or "45s" under a minute."""
    minutes, remainder = divmod(int(seconds), 60)
    if minutes > 0:
        return f"{minutes}m {remainder}s"
    return f"{remainder}s"
