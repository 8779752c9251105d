"""Weather lookup: live parsing and the static fallback."""

from datetime import date

import pytest
import requests

from tools.weather_provider import MockWeatherProvider, OpenWeatherProvider, fallback_weather


class _FakeResponse:
    def __init__(self, payload: dict, status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"status {self.status_code}")

    def json(self) -> dict:
        return self._payload


class _FakeSession:
    """Routes the two OpenWeather endpoints to canned responses."""

    def __init__(self, current: _FakeResponse, forecast: _FakeResponse | Exception) -> None:
        self.current = current
        self.forecast = forecast
        self.calls: list[dict] = []
        self.closed = False

    def get(self, url: str, params: dict | None = None, timeout: float | None = None) -> _FakeResponse:
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if url.endswith("/forecast"):
            if isinstance(self.forecast, Exception):
                raise self.forecast
            return self.forecast
        return self.current

    def close(self) -> None:
        self.closed = True


CURRENT_PAYLOAD = {
    "name": "Chamonix",
    "main": {"temp": 3.6, "humidity": 80},
    "wind": {"speed": 4.1},
    "weather": [{"description": "light snow"}],
}
FORECAST_PAYLOAD = {
    "list": [
        {
            "dt": 1700000000,
            "main": {"temp_min": -2.4, "temp_max": 4.6},
            "weather": [{"description": "snow"}],
            "rain": {"3h": 1.2},
        },
        {"dt": 1700010800, "main": {"temp_min": -1.2, "temp_max": 2.2}, "weather": []},
    ]
}


def test_fallback_payload_shape() -> None:
    weather = fallback_weather("Nowhere", today=date(2025, 3, 1))

    assert weather.location == "Nowhere"
    assert weather.current.temperature == 15
    assert weather.current.condition == "partly cloudy"
    assert [day.date for day in weather.forecast] == ["2025-03-01", "2025-03-02"]
    assert weather.forecast[1].precipitation == pytest.approx(0.2)


def test_missing_api_key_serves_fallback_without_network() -> None:
    session = _FakeSession(_FakeResponse(CURRENT_PAYLOAD), _FakeResponse(FORECAST_PAYLOAD))
    provider = OpenWeatherProvider(api_key=None, session=session)

    weather = provider.get_weather_forecast("Nowhere", "next weekend")

    assert weather.location == "Nowhere"
    assert weather.forecast
    assert session.calls == []


def test_unreachable_provider_serves_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    provider = OpenWeatherProvider(api_key="key")

    def _refuse(*_args, **_kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(provider.session, "get", _refuse)

    weather = provider.get_weather_forecast("Nowhere")

    assert weather.location == "Nowhere"
    assert weather.current.condition == "partly cloudy"
    assert len(weather.forecast) == 2


def test_malformed_payload_serves_fallback() -> None:
    session = _FakeSession(_FakeResponse({"unexpected": True}), _FakeResponse(FORECAST_PAYLOAD))
    provider = OpenWeatherProvider(api_key="key", session=session)

    weather = provider.get_weather_forecast("Atlantis")

    assert weather.location == "Atlantis"
    assert weather.current.temperature == 15


def test_live_payload_is_mapped() -> None:
    session = _FakeSession(_FakeResponse(CURRENT_PAYLOAD), _FakeResponse(FORECAST_PAYLOAD))
    provider = OpenWeatherProvider(api_key="key", timeout_seconds=2.0, session=session)

    weather = provider.get_weather_forecast("chamonix")

    assert weather.location == "Chamonix"
    assert weather.current.temperature == 4
    assert weather.current.condition == "light snow"
    assert weather.current.windSpeed == pytest.approx(4.1)
    assert weather.forecast[0].model_dump() == {
        "date": "2023-11-14",
        "high": 5,
        "low": -2,
        "condition": "snow",
        "precipitation": 1.2,
    }
    assert weather.forecast[1].condition == "unknown"
    assert weather.forecast[1].precipitation == 0.0
    assert session.calls[0]["params"] == {"q": "chamonix", "appid": "key", "units": "metric"}
    assert session.calls[0]["timeout"] == 2.0


def test_forecast_failure_keeps_current_conditions() -> None:
    session = _FakeSession(_FakeResponse(CURRENT_PAYLOAD), requests.Timeout("slow"))
    provider = OpenWeatherProvider(api_key="key", session=session)

    weather = provider.get_weather_forecast("Chamonix")

    assert weather.current.temperature == 4
    assert weather.forecast == []


def test_malformed_forecast_keeps_current_conditions() -> None:
    session = _FakeSession(_FakeResponse(CURRENT_PAYLOAD), _FakeResponse({"list": [{"dt": "not-a-time"}]}))
    provider = OpenWeatherProvider(api_key="key", session=session)

    weather = provider.get_weather_forecast("Chamonix")

    assert weather.location == "Chamonix"
    assert weather.current.temperature == 4
    assert weather.forecast == []


def test_close_releases_session() -> None:
    session = _FakeSession(_FakeResponse(CURRENT_PAYLOAD), _FakeResponse(FORECAST_PAYLOAD))
    OpenWeatherProvider(api_key="key", session=session).close()

    assert session.closed


def test_mock_provider_returns_fixed_weather_for_any_location() -> None:
    fixed = fallback_weather("Template", today=date(2025, 1, 1))
    provider = MockWeatherProvider(fixed)

    assert provider.get_weather_forecast("Zermatt").location == "Zermatt"
    assert provider.get_weather_forecast("Zermatt").forecast == fixed.forecast
    assert MockWeatherProvider().get_weather_forecast("Nowhere").location == "Nowhere"
