"""Runtime settings read from ``ASTROVIEW_*`` environment variables (a ``.env`` file is loaded by the CLI)."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from astroview.conditions import DEFAULT_DAYS, ConditionsService
from astroview.errors import ValidationError
from astroview.providers.base import DEFAULT_TIMEOUT
from astroview.providers.passes import (
    CELESTRAK_URL,
    ISS_NORAD_ID,
    N2YO_URL,
    OPEN_NOTIFY_URL,
    N2YOPassProvider,
    OpenNotifyPassProvider,
    TLEPassProvider,
)
from astroview.providers.weather import OPEN_METEO_URL, OpenMeteoProvider

PASS_SOURCES = ("n2yo", "open-notify", "tle")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Settings:
    """Validated configuration. Build with :func:`load_settings`."""

    open_meteo_url: str = OPEN_METEO_URL
    pass_source: str = "tle"  # One of PASS_SOURCES
    n2yo_url: str = N2YO_URL
    n2yo_api_key: str | None = None
    open_notify_url: str = OPEN_NOTIFY_URL
    celestrak_url: str = CELESTRAK_URL
    norad_id: int = ISS_NORAD_ID
    forecast_days: int = DEFAULT_DAYS
    http_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "WARNING"


def _int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be an integer, got {raw!r}") from exc


def _float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ValidationError(f"{key} must be a number, got {raw!r}") from exc


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """Read settings from ``env`` (defaults to ``os.environ``).

    Raises:
        ValidationError: A value is malformed or out of range.
    """
    env = os.environ if env is None else env
    defaults = Settings()
    pass_source = env.get("ASTROVIEW_PASS_SOURCE", defaults.pass_source).strip().lower()
    if pass_source not in PASS_SOURCES:
        raise ValidationError(f"ASTROVIEW_PASS_SOURCE must be one of {PASS_SOURCES}, got {pass_source!r}")
    log_level = env.get("ASTROVIEW_LOG_LEVEL", defaults.log_level).strip().upper()
    if log_level not in LOG_LEVELS:
        raise ValidationError(f"ASTROVIEW_LOG_LEVEL must be one of {LOG_LEVELS}, got {log_level!r}")

    settings = Settings(
        open_meteo_url=env.get("ASTROVIEW_OPEN_METEO_URL", defaults.open_meteo_url),
        pass_source=pass_source,
        n2yo_url=env.get("ASTROVIEW_N2YO_URL", defaults.n2yo_url),
        n2yo_api_key=env.get("ASTROVIEW_N2YO_API_KEY") or None,
        open_notify_url=env.get("ASTROVIEW_OPEN_NOTIFY_URL", defaults.open_notify_url),
        celestrak_url=env.get("ASTROVIEW_CELESTRAK_URL", defaults.celestrak_url),
        norad_id=_int(env, "ASTROVIEW_NORAD_ID", defaults.norad_id),
        forecast_days=_int(env, "ASTROVIEW_FORECAST_DAYS", defaults.forecast_days),
        http_timeout=_float(env, "ASTROVIEW_HTTP_TIMEOUT", defaults.http_timeout),
        log_level=log_level,
    )
    if not 1 <= settings.forecast_days <= 16:
        raise ValidationError(f"ASTROVIEW_FORECAST_DAYS must be in [1, 16], got {settings.forecast_days}")
    if settings.http_timeout <= 0:
        raise ValidationError(f"ASTROVIEW_HTTP_TIMEOUT must be positive, got {settings.http_timeout}")
    if settings.pass_source == "n2yo" and not settings.n2yo_api_key:
        raise ValidationError("ASTROVIEW_PASS_SOURCE=n2yo requires ASTROVIEW_N2YO_API_KEY")
    return settings


def build_service(settings: Settings) -> ConditionsService:
    """Wire the configured providers into a ConditionsService."""
    weather = OpenMeteoProvider(base_url=settings.open_meteo_url, timeout=settings.http_timeout)
    if settings.pass_source == "n2yo":
        pass_provider = N2YOPassProvider(
            api_key=settings.n2yo_api_key,
            norad_id=settings.norad_id,
            base_url=settings.n2yo_url,
            timeout=settings.http_timeout,
        )
    elif settings.pass_source == "open-notify":
        pass_provider = OpenNotifyPassProvider(base_url=settings.open_notify_url, timeout=settings.http_timeout)
    else:
        pass_provider = TLEPassProvider(
            norad_id=settings.norad_id, base_url=settings.celestrak_url, timeout=settings.http_timeout
        )
    return ConditionsService(weather, pass_provider, days=settings.forecast_days)
