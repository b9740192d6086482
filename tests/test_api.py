import unittest

from fastapi.testclient import TestClient

from congestiq.assistant import FALLBACK_REPLY, AssistantContextBuilder
from congestiq.data_sources import CallableWeatherDataSource
from congestiq.errors import ConfigurationError, UpstreamFetchError
from congestiq.main import app as fastapi_app
from congestiq.weather_service import WeatherImpactService


def _weather_source(code=502, weather_exc=None, calls=None):
    calls = calls if calls is not None else {"air": 0}

    def fake_weather(lat, lon, **kwargs):
        if weather_exc:
            raise weather_exc
        return {
            "weather": [{"id": code, "description": "heavy intensity rain", "icon": "10n"}],
            "main": {"temp": 51.2, "feels_like": 49.9, "humidity": 93},
            "wind": {"speed": 9.4},
            "visibility": 10000,
            "name": "San Francisco",
        }

    def fake_air(lat, lon, **kwargs):
        calls["air"] += 1
        return {"list": [{"main": {"aqi": 3}, "components": {"pm2_5": 20.5, "pm10": 30.0}}]}

    return CallableWeatherDataSource(current_weather=fake_weather, air_pollution=fake_air)


class FakeGateway:
    def __init__(self, reply=None, exc=None):
        self.reply = reply
        self.exc = exc
        self.sent = []

    def complete(self, messages):
        self.sent.append(messages)
        if self.exc:
            raise self.exc
        return self.reply


class TestApi(unittest.TestCase):
    def setUp(self):
        import congestiq.api as api_mod
        from congestiq.config import settings

        self.api_mod = api_mod
        self.client = TestClient(fastapi_app)
        self._orig_build_weather = api_mod.build_weather_service
        self._orig_build_assistant = api_mod.build_assistant
        self._orig_weather_key = settings.openweather_api_key
        self._orig_gateway_key = settings.ai_gateway_api_key
        self._orig_max_messages = settings.max_chat_messages

    def tearDown(self):
        from congestiq.config import settings

        self.api_mod.build_weather_service = self._orig_build_weather
        self.api_mod.build_assistant = self._orig_build_assistant
        settings.openweather_api_key = self._orig_weather_key
        settings.ai_gateway_api_key = self._orig_gateway_key
        settings.max_chat_messages = self._orig_max_messages

    # --- /get-weather -------------------------------------------------

    def test_get_weather_200(self):
        self.api_mod.build_weather_service = lambda: WeatherImpactService("k", _weather_source(502))

        resp = self.client.post("/v1/get-weather", json={"lat": 37.7749, "lon": -122.4194})
        self.assertEqual(resp.status_code, 200)
        data = resp.json()
        self.assertEqual(data["trafficImpact"]["description"], "Heavy - Rain")
        self.assertEqual(data["trafficImpact"]["level"], 2)
        self.assertEqual(data["weather"]["temp"], 51)
        self.assertEqual(data["weather"]["visibility"], 6)
        self.assertEqual(data["airQuality"]["aqi"], 3)
        self.assertEqual(data["airQuality"]["label"], "Moderate")
        self.assertEqual(resp.headers["access-control-allow-origin"], "*")

    def test_get_weather_missing_lat_400(self):
        self.api_mod.build_weather_service = lambda: WeatherImpactService("k", _weather_source())

        resp = self.client.post("/v1/get-weather", json={"lon": -122.4194})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json(), {"error": "Latitude and longitude are required"})

        resp = self.client.post("/v1/get-weather", json={"lat": None, "lon": 1})
        self.assertEqual(resp.status_code, 400)

        resp = self.client.post("/v1/get-weather", json={"lat": "north", "lon": 1})
        self.assertEqual(resp.status_code, 400)

    def test_get_weather_rejects_numeric_strings(self):
        self.api_mod.build_weather_service = lambda: WeatherImpactService("k", _weather_source())

        for body in ({"lat": "37.7", "lon": -122.4}, {"lat": 37.7, "lon": "-122.4"}):
            with self.subTest(body=body):
                resp = self.client.post("/v1/get-weather", json=body)
                self.assertEqual(resp.status_code, 400)
                self.assertEqual(resp.json(), {"error": "Latitude and longitude are required"})

        resp = self.client.post("/v1/get-weather", json={"lat": 37, "lon": -122.4})
        self.assertEqual(resp.status_code, 200)

    def test_get_weather_accepts_zero_coordinates(self):
        self.api_mod.build_weather_service = lambda: WeatherImpactService("k", _weather_source(800))

        resp = self.client.post("/v1/get-weather", json={"lat": 0, "lon": 0})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["trafficImpact"], {"description": "None", "level": 0, "affects_travel": False})

    def test_get_weather_invalid_json_400(self):
        self.api_mod.build_weather_service = lambda: WeatherImpactService("k", _weather_source())

        resp = self.client.post(
            "/v1/get-weather", content=b"{not json", headers={"Content-Type": "application/json"}
        )
        self.assertEqual(resp.status_code, 400)
        self.assertIn("error", resp.json())

    def test_get_weather_missing_key_500(self):
        from congestiq.config import settings

        settings.openweather_api_key = None
        resp = self.client.post("/v1/get-weather", json={"lat": 1, "lon": 2})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "OpenWeather API key not configured"})

    def test_get_weather_upstream_failure_500_without_air_fetch(self):
        calls = {"air": 0}
        source = _weather_source(weather_exc=UpstreamFetchError("provider said 500", status=500), calls=calls)
        self.api_mod.build_weather_service = lambda: WeatherImpactService("k", source)

        resp = self.client.post("/v1/get-weather", json={"lat": 1, "lon": 2})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "Failed to fetch weather data"})
        self.assertEqual(calls["air"], 0)

    def test_get_weather_unexpected_error_is_sanitized(self):
        class Exploding:
            def assess_conditions(self, lat, lon):
                raise KeyError("appid=secret")

        self.api_mod.build_weather_service = lambda: Exploding()
        resp = self.client.post("/v1/get-weather", json={"lat": 1, "lon": 2})
        self.assertEqual(resp.status_code, 500)
        self.assertNotIn("secret", resp.text)

    def test_options_preflight(self):
        for path in ("/v1/get-weather", "/v1/ai-chat"):
            with self.subTest(path=path):
                resp = self.client.options(path)
                self.assertEqual(resp.status_code, 200)
                self.assertEqual(resp.headers["access-control-allow-origin"], "*")

                resp = self.client.options(
                    path,
                    headers={
                        "Origin": "https://dashboard.example",
                        "Access-Control-Request-Method": "POST",
                        "Access-Control-Request-Headers": "content-type",
                    },
                )
                self.assertEqual(resp.status_code, 200)
                self.assertIn("access-control-allow-origin", resp.headers)

    # --- /ai-chat -----------------------------------------------------

    def test_ai_chat_200(self):
        gateway = FakeGateway("Use the Bay Bridge.")
        self.api_mod.build_assistant = lambda: AssistantContextBuilder(gateway)

        resp = self.client.post(
            "/v1/ai-chat",
            json={
                "messages": [{"role": "user", "content": "Best route downtown?"}],
                "weatherContext": {"temperature": 50, "condition": "Light Rain Showers", "humidity": 88},
                "locationContext": {"address": "Oakland, CA"},
                "userId": "0123456789abcdef",
            },
        )
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "Use the Bay Bridge.", "success": True})
        sent = gateway.sent[0]
        self.assertEqual(sent[0]["role"], "system")
        self.assertIn("Oakland, CA", sent[0]["content"])
        self.assertEqual(sent[1], {"role": "user", "content": "Best route downtown?"})

    def test_ai_chat_fallback_when_no_content(self):
        self.api_mod.build_assistant = lambda: AssistantContextBuilder(FakeGateway(None))

        resp = self.client.post("/v1/ai-chat", json={"messages": []})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["message"], FALLBACK_REPLY)

    def test_ai_chat_upstream_error_hides_status(self):
        gateway = FakeGateway(exc=UpstreamFetchError("AI gateway error: 402", status=402))
        self.api_mod.build_assistant = lambda: AssistantContextBuilder(gateway)

        resp = self.client.post("/v1/ai-chat", json={"messages": [{"role": "user", "content": "hi"}]})
        self.assertEqual(resp.status_code, 500)
        data = resp.json()
        self.assertFalse(data["success"])
        self.assertNotIn("402", data["error"])

    def test_ai_chat_missing_key_500(self):
        from congestiq.config import settings

        settings.ai_gateway_api_key = None
        resp = self.client.post("/v1/ai-chat", json={"messages": []})
        self.assertEqual(resp.status_code, 500)
        self.assertEqual(resp.json(), {"error": "AI gateway API key not configured", "success": False})

    def test_ai_chat_malformed_body(self):
        self.api_mod.build_assistant = lambda: AssistantContextBuilder(FakeGateway("ok"))

        for body in ({"messages": [{"role": "robot", "content": "x"}]}, {"weatherContext": {}}, [1, 2]):
            with self.subTest(body=body):
                resp = self.client.post("/v1/ai-chat", json=body)
                self.assertEqual(resp.status_code, 500)
                self.assertEqual(resp.json()["success"], False)

    def test_ai_chat_passes_long_history_by_default(self):
        from congestiq.config import settings

        settings.max_chat_messages = None
        gateway = FakeGateway("ok")
        self.api_mod.build_assistant = lambda: AssistantContextBuilder(gateway)
        messages = [{"role": "user", "content": str(i)} for i in range(51)]

        resp = self.client.post("/v1/ai-chat", json={"messages": messages})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"message": "ok", "success": True})
        sent = gateway.sent[0]
        self.assertEqual(len(sent), 52)
        self.assertEqual(sent[0]["role"], "system")
        self.assertEqual([m["content"] for m in sent[1:]], [str(i) for i in range(51)])

    def test_ai_chat_rejects_history_over_configured_cap(self):
        from congestiq.config import settings

        settings.max_chat_messages = 2
        self.api_mod.build_assistant = lambda: AssistantContextBuilder(FakeGateway("ok"))
        messages = [{"role": "user", "content": str(i)} for i in range(3)]

        resp = self.client.post("/v1/ai-chat", json={"messages": messages})
        self.assertEqual(resp.status_code, 500)
        self.assertIn("limit 2", resp.json()["error"])

    def test_build_assistant_requires_key(self):
        from congestiq.config import settings

        settings.ai_gateway_api_key = None
        with self.assertRaises(ConfigurationError):
            self._orig_build_assistant()

    # --- /health ------------------------------------------------------

    def test_health_reports_configuration(self):
        from congestiq.config import settings

        settings.openweather_api_key = "w"
        settings.ai_gateway_api_key = None
        resp = self.client.get("/v1/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {"ok": False, "weather_configured": True, "assistant_configured": False},
        )


if __name__ == "__main__":
    unittest.main()
