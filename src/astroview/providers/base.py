"""Provider contracts and the shared HTTP client plumbing."""

import logging
from datetime import datetime
from typing import Any, Protocol

import httpx

from astroview.errors import ProviderError, QuotaExceeded
from astroview.models import Location, RawForecast, RawPass

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "astroview/0.1"


class WeatherProvider(Protocol):
    """A source of hourly forecasts with naive local timestamps."""

    def fetch_forecast(self, location: Location, days: int = 3) -> RawForecast:
        ...


class PassProvider(Protocol):
    """A source of satellite pass records for a ground location."""

    def fetch_passes(
        self, location: Location, *, start: datetime | None = None, days: int = 3
    ) -> list[RawPass]:
        ...


class HttpProvider:
    """Base class for providers that talk JSON over HTTP.

    A caller-supplied ``httpx.Client`` is used as-is (tests inject one with a
    mock transport); otherwise the provider owns a client of its own.
    """

    name = "http"

    def __init__(self, client: httpx.Client | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=timeout, headers={"User-Agent": USER_AGENT})
        self._log = logging.getLogger(self.__class__.__name__)

    def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._owns_client:
            self._client.close()

    def _get(self, url: str, params: dict[str, Any] | None = None) -> httpx.Response:
        try:
            response = self._client.get(url, params=params)
        except httpx.TimeoutException as exc:
            self._log.error("%s request timed out: %s", self.name, url)
            raise ProviderError(f"{self.name}: request timed out") from exc
        except httpx.HTTPError as exc:
            self._log.error("%s request failed: %s", self.name, exc)
            raise ProviderError(f"{self.name}: request failed: {exc}") from exc
        if response.status_code == 429:
            self._log.warning("%s quota exceeded: %s", self.name, response.text)
            raise QuotaExceeded(f"{self.name}: quota exceeded")
        if response.status_code >= 400:
            self._log.error("%s returned HTTP %s: %s", self.name, response.status_code, response.text)
            raise ProviderError(f"{self.name}: HTTP {response.status_code}")
        return response

    def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        response = self._get(url, params=params)
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("%s returned invalid JSON", self.name)
            raise ProviderError(f"{self.name}: invalid JSON") from exc
