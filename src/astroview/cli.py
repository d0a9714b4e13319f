"""CLI entry point: fetch conditions for a coordinate and print a short report or JSON.

    uv run astroview --lat 45.4627 --lon -122.7491 --name Portland
"""

import argparse
import dataclasses
import logging
import sys
from datetime import datetime

from dotenv import load_dotenv

load_dotenv()

from astroview import conditions as cond  # noqa: E402
from astroview.config import build_service, load_settings  # noqa: E402
from astroview.errors import AstroViewError  # noqa: E402
from astroview.models import Coordinate, DaySelection, Location, ViewingConditions  # noqa: E402
from astroview.passes import format_duration  # noqa: E402
from astroview.serialization import dumps  # noqa: E402
from astroview.timeutil import get_timezone  # noqa: E402

logger = logging.getLogger("astroview")


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="astroview", description="Night-sky viewing conditions")
    parser.add_argument("--lat", type=float, required=True, help="Latitude in decimal degrees")
    parser.add_argument("--lon", type=float, required=True, help="Longitude in decimal degrees")
    parser.add_argument("--name", default="Here", help="Label for the location")
    parser.add_argument("--elevation", type=float, default=None, help="Site elevation in metres")
    parser.add_argument("--timezone", default=None, help="IANA zone; resolved from the coordinate if omitted")
    parser.add_argument("--days", type=int, default=None, help="Days to cover (default from settings)")
    parser.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    return parser.parse_args(argv)


def _clock(value: datetime, tz) -> str:
    return value.astimezone(tz).strftime("%H:%M")


def render_report(snapshot: ViewingConditions, now: datetime) -> str:
    """Plain-text summary of a snapshot, one block per day."""
    tz = get_timezone(snapshot.timezone)
    score = snapshot.fog_score
    lines = [
        f"{snapshot.location.name} ({snapshot.location.latitude:.4f}, {snapshot.location.longitude:.4f})"
        f" [{snapshot.timezone}]",
        f"Fog risk: {score.score}% ({score.level})",
    ]
    for factor in sorted(score.factors, key=lambda f: f.value):
        lines.append(f"  - {factor.description}")

    for index, sun in enumerate(snapshot.daily_sun_events):
        day = DaySelection(index) if index < len(DaySelection) else index
        moon = cond.moon_info_for_day(snapshot, day)
        hours = cond.forecasts_for_day(snapshot, day)
        lines.append("")
        lines.append(f"[{cond.day_title(snapshot, day)}]")
        lines.append(f"  Sunrise {_clock(sun.sunrise, tz)}  Sunset {_clock(sun.sunset, tz)}")
        night = sun.astronomical_night_duration(
            snapshot.daily_sun_events[index + 1] if index + 1 < len(snapshot.daily_sun_events) else None
        )
        hours_part, minutes_part = divmod(int(night.total_seconds()) // 60, 60)
        lines.append(f"  Astronomical night {hours_part}h {minutes_part:02d}m")
        if moon is not None:
            lines.append(
                f"  Moon {moon.emoji} {moon.phase_name}, {moon.illumination}% lit, altitude {moon.altitude:.1f}°"
            )
        if hours:
            mean_cloud = sum(h.cloud_cover for h in hours) / len(hours)
            lines.append(f"  Mean cloud cover {mean_cloud:.0f}% over {len(hours)} hours")

    upcoming = [p for p in snapshot.passes if p.set_time > now]
    lines.append("")
    lines.append(f"Upcoming passes: {len(upcoming)}")
    for item in upcoming:
        marker = "~" if item.estimated else ""
        lines.append(
            f"  {item.rise_time.astimezone(tz):%a %H:%M}  {format_duration(item.duration)}"
            f"  max {marker}{item.max_elevation:.0f}°"
        )
    if cond.is_stale(snapshot, now):
        lines.append("(data is more than 30 minutes old)")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings()
        logging.basicConfig(
            level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
        location = Location(
            name=args.name,
            coordinate=Coordinate(latitude=args.lat, longitude=args.lon),
            elevation=args.elevation,
            timezone=args.timezone,
        )
        if args.days is not None:
            settings = dataclasses.replace(settings, forecast_days=args.days)
        with build_service(settings) as service:
            snapshot = service.fetch(location)
    except AstroViewError as exc:
        logger.debug("Fetch failed", exc_info=exc)
        print(f"astroview: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(dumps(snapshot, indent=2))
    else:
        print(render_report(snapshot, snapshot.fetched_at))
    return 0


if __name__ == "__main__":
    sys.exit(main())
