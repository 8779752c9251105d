"""Weather provider abstractions and implementations."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, ValidationError

from tools.observability import instrument_tool


LOGGER = logging.getLogger(__name__)

CURRENT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"
FORECAST_ENTRIES = 5


class _WeatherCondition(BaseModel):
    description: str = "unknown"


class _Wind(BaseModel):
    speed: float = 0.0


class _CurrentMain(BaseModel):
    temp: float
    humidity: float = 0.0


class _CurrentResponse(BaseModel):
    name: str
    main: _CurrentMain
    wind: _Wind = _Wind()
    weather: List[_WeatherCondition] = []


class _ForecastMain(BaseModel):
    temp_min: float
    temp_max: float


class _ForecastEntry(BaseModel):
    dt: int
    main: _ForecastMain
    weather: List[_WeatherCondition] = []
    rain: Dict[str, float] = {}


class _ForecastResponse(BaseModel):
    list: List[_ForecastEntry] = []


class CurrentConditions(BaseModel):
    temperature: int
    condition: str
    humidity: float
    windSpeed: float


class ForecastDay(BaseModel):
    date: str
    high: int
    low: int
    condition: str
    precipitation: float


class WeatherData(BaseModel):
    """Current conditions plus a short forecast for one location."""

    location: str
    current: CurrentConditions
    forecast: List[ForecastDay] = []


def fallback_weather(location: str, today: Optional[date] = None) -> WeatherData:
    """Static payload served whenever the live lookup fails."""

    today = today or datetime.now(timezone.utc).date()
    return WeatherData(
        location=location,
        current=CurrentConditions(temperature=15, condition="partly cloudy", humidity=65, windSpeed=10),
        forecast=[
            ForecastDay(date=today.isoformat(), high=18, low=8, condition="sunny", precipitation=0),
            ForecastDay(
                date=(today + timedelta(days=1)).isoformat(),
                high=16,
                low=6,
                condition="cloudy",
                precipitation=0.2,
            ),
        ],
    )


class WeatherProvider(ABC):
    """Abstract weather provider interface."""

    @abstractmethod
    def get_weather_forecast(self, location: str, dates: Optional[str] = None) -> WeatherData:
        """Return current conditions and forecast; never raises for provider failures."""

    def close(self) -> None:
        """Release network resources."""


class OpenWeatherProvider(WeatherProvider):
    """OpenWeather provider with schema validation and graceful fallbacks."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout_seconds: float = 5.0,
        units: str = "metric",
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.units = units
        self.session = session or requests.Session()

    def _fallback(self, location: str, reason: str) -> WeatherData:
        LOGGER.warning("Using fallback weather data", extra={"reason": reason})
        return fallback_weather(location)

    def _fetch(self, url: str, location: str) -> Any:
        params = {"q": location, "appid": self.api_key, "units": self.units}
        response = self.session.get(url, params=params, timeout=self.timeout_seconds)
        response.raise_for_status()
        return response.json()

    def _forecast_days(self, payload: Any) -> List[ForecastDay]:
        parsed = _ForecastResponse.model_validate(payload)
        days: List[ForecastDay] = []
        for entry in parsed.list[:FORECAST_ENTRIES]:
            days.append(
                ForecastDay(
                    date=datetime.fromtimestamp(entry.dt, tz=timezone.utc).date().isoformat(),
                    high=round(entry.main.temp_max),
                    low=round(entry.main.temp_min),
                    condition=entry.weather[0].description if entry.weather else "unknown",
                    precipitation=entry.rain.get("3h", 0.0),
                )
            )
        return days

    @instrument_tool("get_weather_forecast")
    def get_weather_forecast(self, location: str, dates: Optional[str] = None) -> WeatherData:
        if not self.api_key:
            return self._fallback(location, "missing_api_key")

        LOGGER.info("Fetching weather forecast", extra={"dates": dates})
        try:
            current = _CurrentResponse.model_validate(self._fetch(CURRENT_WEATHER_URL, location))
            try:
                forecast = self._forecast_days(self._fetch(FORECAST_URL, location))
            except (requests.RequestException, ValidationError) as exc:
                LOGGER.warning("Forecast unavailable", exc_info=exc)
                forecast = []

            return WeatherData(
                location=current.name,
                current=CurrentConditions(
                    temperature=round(current.main.temp),
                    condition=current.weather[0].description if current.weather else "unknown",
                    humidity=current.main.humidity,
                    windSpeed=current.wind.speed,
                ),
                forecast=forecast,
            )
        except (requests.Timeout, requests.RequestException) as exc:
            LOGGER.error("Weather API unreachable", exc_info=exc)
            return self._fallback(location, "request_error")
        except (ValidationError, ValueError) as exc:
            LOGGER.error("Weather payload schema validation failed", exc_info=exc)
            return self._fallback(location, "schema_validation")

    def close(self) -> None:
        self.session.close()


class MockWeatherProvider(WeatherProvider):
    """Offline deterministic weather provider for tests."""

    def __init__(self, weather: WeatherData | None = None) -> None:
        self.weather = weather

    def get_weather_forecast(self, location: str, dates: Optional[str] = None) -> WeatherData:
        LOGGER.info("Returning mock forecast", extra={"dates": dates})
        if self.weather is None:
            return fallback_weather(location)
        return self.weather.model_copy(update={"location": location})


__all__ = [
    "WeatherData",
    "WeatherProvider",
    "OpenWeatherProvider",
    "MockWeatherProvider",
    "fallback_weather",
]
