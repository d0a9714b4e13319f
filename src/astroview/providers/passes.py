"""Satellite pass providers — N2YO, the legacy Open Notify endpoint, and local TLE prediction."""

from datetime import datetime, timedelta
from typing import Any

import httpx
from pytz import utc
from skyfield.api import EarthSatellite, load, wgs84

from astroview.errors import ProviderError, ValidationError
from astroview.models import Location, RawPass
from astroview.providers.base import DEFAULT_TIMEOUT, HttpProvider

ISS_NORAD_ID = 25544
N2YO_URL = "https://api.n2yo.com/rest/v1/satellite"
OPEN_NOTIFY_URL = "http://api.open-notify.org/iss-pass.json"
CELESTRAK_URL = "https://celestrak.org/NORAD/elements/gp.php"

_ts = load.timescale(builtin=True)


def _elevation_m(location: Location) -> float:
    return location.elevation or 0.0


class N2YOPassProvider(HttpProvider):
    """Visual passes from the N2YO REST API. Reports max elevation directly."""

    name = "n2yo"

    def __init__(
        self,
        api_key: str,
        norad_id: int = ISS_NORAD_ID,
        base_url: str = N2YO_URL,
        min_visibility_seconds: int = 60,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        if not api_key:
            raise ValidationError("N2YO pass provider needs an API key")
        super().__init__(client=client, timeout=timeout)
        self.api_key = api_key
        self.norad_id = norad_id
        self.base_url = base_url.rstrip("/")
        self.min_visibility_seconds = min_visibility_seconds

    def fetch_passes(
        self, location: Location, *, start: datetime | None = None, days: int = 3
    ) -> list[RawPass]:
        # N2YO always predicts from its own "now"; start is not supported
        url = (
            f"{self.base_url}/visualpasses/{self.norad_id}/"
            f"{location.latitude}/{location.longitude}/{_elevation_m(location):.0f}/"
            f"{max(1, min(days, 10))}/{self.min_visibility_seconds}/"
        )
        data = self._get_json(url, params={"apiKey": self.api_key})
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name}: unexpected payload type {type(data).__name__}")
        if data.get("error"):
            raise ProviderError(f"{self.name}: {data['error']}")
        return [self._to_raw(item) for item in data.get("passes") or []]

    def _to_raw(self, item: dict[str, Any]) -> RawPass:
        try:
            return RawPass(
                rise_time=int(item["startUTC"]),
                duration=int(item["duration"]),
                max_elevation=float(item["maxEl"]) if item.get("maxEl") is not None else None,
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError(f"{self.name}: malformed pass record {item!r}") from exc


class OpenNotifyPassProvider(HttpProvider):
    """Legacy ``iss-pass.json`` endpoint. Gives rise time and duration only."""

    name = "open-notify"

    def __init__(
        self,
        base_url: str = OPEN_NOTIFY_URL,
        count: int = 10,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.base_url = base_url
        self.count = count

    def fetch_passes(
        self, location: Location, *, start: datetime | None = None, days: int = 3
    ) -> list[RawPass]:
        params = {
            "lat": location.latitude,
            "lon": location.longitude,
            "alt": _elevation_m(location),
            "n": self.count,
        }
        data = self._get_json(self.base_url, params=params)
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name}: unexpected payload type {type(data).__name__}")
        if data.get("message") != "success":
            raise ProviderError(f"{self.name}: {data.get('message') or data.get('reason') or 'failure'}")
        raw: list[RawPass] = []
        for item in data.get("response") or []:
            try:
                raw.append(RawPass(rise_time=int(item["risetime"]), duration=int(item["duration"])))
            except (KeyError, TypeError, ValueError) as exc:
                raise ProviderError(f"{self.name}: malformed pass record {item!r}") from exc
        return raw


def parse_tle(text: str) -> tuple[str | None, str, str]:
    """Split a two- or three-line element set into (name, line1, line2)."""
    lines = [line.strip() for line in text.strip().splitlines() if line.strip()]
    if len(lines) >= 3 and lines[1].startswith("1 ") and lines[2].startswith("2 "):
        return lines[0], lines[1], lines[2]
    if len(lines) >= 2 and lines[0].startswith("1 ") and lines[1].startswith("2 "):
        return None, lines[0], lines[1]
    raise ProviderError(f"Not a TLE element set: {text[:80]!r}")


def predict_passes(
    satellite: EarthSatellite,
    location: Location,
    start: datetime,
    days: int = 3,
    min_elevation: float = 10.0,
) -> list[RawPass]:
    """Passes above ``min_elevation`` between ``start`` and ``start + days``.

    Passes already in progress at ``start`` or unfinished at the window end are dropped.
    """
    observer = wgs84.latlon(location.latitude, location.longitude, elevation_m=_elevation_m(location))
    t0 = _ts.from_datetime(start)
    t1 = _ts.from_datetime(start + timedelta(days=days))
    times, events = satellite.find_events(observer, t0, t1, altitude_degrees=min_elevation)

    difference = satellite - observer
    passes: list[RawPass] = []
    rise = None
    peak = None
    for t, event in zip(times, events):
        if event == 0:
            rise, peak = t, None
        elif event == 1 and rise is not None:
            altitude, _, _ = difference.at(t).altaz()
            peak = max(peak or 0.0, float(altitude.degrees))
        elif event == 2 and rise is not None:
            rise_at = rise.utc_datetime()
            duration = (t - rise) * 86400.0
            passes.append(
                RawPass(
                    rise_time=int(round(rise_at.timestamp())),
                    duration=int(round(duration)),
                    max_elevation=round(peak, 1) if peak is not None else None,
                )
            )
            rise = None
    return passes


class TLEPassProvider(HttpProvider):
    """Predicts passes locally from a CelesTrak element set with skyfield."""

    name = "celestrak"

    def __init__(
        self,
        norad_id: int = ISS_NORAD_ID,
        base_url: str = CELESTRAK_URL,
        min_elevation: float = 10.0,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.norad_id = norad_id
        self.base_url = base_url
        self.min_elevation = min_elevation

    def fetch_satellite(self) -> EarthSatellite:
        response = self._get(self.base_url, params={"CATNR": self.norad_id, "FORMAT": "TLE"})
        name, line1, line2 = parse_tle(response.text)
        return EarthSatellite(line1, line2, name or str(self.norad_id), _ts)

    def fetch_passes(
        self, location: Location, *, start: datetime | None = None, days: int = 3
    ) -> list[RawPass]:
        satellite = self.fetch_satellite()
        start = start or datetime.now(utc)
        raw = predict_passes(satellite, location, start, days=days, min_elevation=self.min_elevation)
        self._log.debug("Predicted %d passes of %s for %s", len(raw), satellite.name, location.name)
        return raw
