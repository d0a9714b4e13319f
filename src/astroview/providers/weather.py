"""Open-Meteo hourly forecast client."""

import httpx

from astroview.errors import ProviderError
from astroview.forecast import HOURLY_VARIABLES
from astroview.models import Location, RawForecast
from astroview.providers.base import DEFAULT_TIMEOUT, HttpProvider

OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"


class OpenMeteoProvider(HttpProvider):
    """Fetches hourly forecasts with ``timezone=auto``.

    Open-Meteo then reports every hour as a zone-less local wall-clock string
    together with ``utc_offset_seconds``; the raw payload is returned untouched
    and normalized later.
    """

    name = "open-meteo"

    def __init__(
        self,
        base_url: str = OPEN_METEO_URL,
        client: httpx.Client | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.base_url = base_url

    def fetch_forecast(self, location: Location, days: int = 3) -> RawForecast:
        params = {
            "latitude": location.latitude,
            "longitude": location.longitude,
            "hourly": ",".join(HOURLY_VARIABLES),
            "timezone": "auto",
            "forecast_days": days,
        }
        data = self._get_json(self.base_url, params=params)
        if not isinstance(data, dict):
            raise ProviderError(f"{self.name}: unexpected payload type {type(data).__name__}")
        if data.get("error"):
            raise ProviderError(f"{self.name}: {data.get('reason', 'unknown error')}")
        hourly = data.get("hourly")
        if not isinstance(hourly, dict) or not hourly.get("time"):
            raise ProviderError(f"{self.name}: missing hourly data")

        self._log.debug("Received %d hourly records for %s", len(hourly["time"]), location.name)
        return RawForecast(
            times=tuple(hourly["time"]),
            utc_offset_seconds=data.get("utc_offset_seconds"),
            timezone=data.get("timezone"),
            columns={
                name: tuple(values)
                for name, values in hourly.items()
                if name != "time" and isinstance(values, list)
            },
        )
