"""Unit tests for the marine conditions client. HTTP is mocked."""

from unittest.mock import MagicMock

import pytest
import requests

from src.utils.weather_api import APIError, MarineConditionsAPI


def make_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


WEATHER_PAYLOAD = {
    "hours": [{
        "time": "2024-07-15T12:00:00+00:00",
        "waterTemperature": {"noaa": 27.9, "sg": 28.4},
        "windSpeed": {"icon": 6.2},
        "currentSpeed": {"sg": 0.35},
    }]
}

BIO_PAYLOAD = {
    "hours": [{
        "time": "2024-07-15T12:00:00+00:00",
        "salinity": {"sg": 34.6},
        "chlorophyll": {"sg": None, "noaa": 0.82},
    }]
}


@pytest.fixture
def session():
    return MagicMock(spec=requests.Session)


class TestFetchConditions:
    """Tests for successful lookups."""

    def test_builds_reading(self, session):
        session.get.side_effect = [make_response(WEATHER_PAYLOAD), make_response(BIO_PAYLOAD)]
        api = MarineConditionsAPI(api_key="test-key", session=session)

        reading = api.fetch_conditions(3.0, 101.3, vessel_speed_knots=12.0, days_since_clean=30)

        assert reading.sea_temperature_c == 28.4
        assert reading.salinity_psu == 34.6
        assert reading.chlorophyll_a_mg_m3 == 0.82
        assert reading.wind_speed_mps == 6.2
        assert reading.current_speed_mps == 0.35
        assert reading.vessel_speed_knots == 12.0
        assert reading.days_since_clean == 30

    def test_request_parameters(self, session):
        session.get.side_effect = [make_response(WEATHER_PAYLOAD), make_response(BIO_PAYLOAD)]
        api = MarineConditionsAPI(api_key="test-key", session=session,
                                  base_url="https://example.test/v2/")

        api.fetch_conditions(3.0, 101.3)

        weather_call, bio_call = session.get.call_args_list
        assert weather_call.args[0] == "https://example.test/v2/weather/point"
        assert bio_call.args[0] == "https://example.test/v2/bio/point"
        assert weather_call.kwargs["headers"] == {"Authorization": "test-key"}
        assert weather_call.kwargs["params"]["lng"] == 101.3
        assert bio_call.kwargs["params"]["params"] == "salinity,chlorophyll"

    def test_optional_values_default(self, session):
        weather = {"hours": [{"waterTemperature": {"sg": 26.0}}]}
        bio = {"hours": [{"salinity": {"meto": 35.5}}]}
        session.get.side_effect = [make_response(weather), make_response(bio)]

        reading = MarineConditionsAPI(api_key="k", session=session).fetch_conditions(0.0, 0.0)

        assert reading.salinity_psu == 35.5
        assert reading.chlorophyll_a_mg_m3 == 0.5
        assert reading.wind_speed_mps == 5.0
        assert reading.current_speed_mps == 0.5

    def test_missing_salinity_raises(self, session):
        session.get.side_effect = [make_response(WEATHER_PAYLOAD), make_response({"hours": [{}]})]
        with pytest.raises(APIError, match="salinity"):
            MarineConditionsAPI(api_key="k", session=session).fetch_conditions(0.0, 0.0)


class TestFallback:
    """Tests for degraded lookups."""

    def test_connection_error(self, session):
        session.get.side_effect = requests.ConnectionError("offline")
        api = MarineConditionsAPI(api_key="k", session=session)

        reading = api.get_conditions(3.0, 101.3, vessel_speed_knots=8.0, idle_hours=4.0,
                                     days_since_clean=12)

        assert reading.sea_temperature_c == 25.0
        assert reading.salinity_psu == 35.0
        assert reading.vessel_speed_knots == 8.0
        assert reading.idle_hours == 4.0
        assert reading.days_since_clean == 12

    def test_http_error(self, session):
        response = make_response({})
        response.raise_for_status.side_effect = requests.HTTPError("402 Payment Required")
        session.get.return_value = response

        with pytest.raises(APIError, match="weather/point"):
            MarineConditionsAPI(api_key="k", session=session).fetch_conditions(0.0, 0.0)

    def test_no_hours(self, session):
        session.get.return_value = make_response({"hours": []})
        reading = MarineConditionsAPI(api_key="k", session=session).get_conditions(0.0, 0.0)
        assert reading.sea_temperature_c == 25.0

    def test_non_numeric_value_falls_back(self, session):
        bio = {"hours": [{"salinity": {"sg": "n/a"}}]}
        session.get.side_effect = [make_response(WEATHER_PAYLOAD), make_response(bio)]

        reading = MarineConditionsAPI(api_key="k", session=session).get_conditions(0.0, 0.0)

        assert reading.sea_temperature_c == 25.0
        assert reading.salinity_psu == 35.0

    @pytest.mark.parametrize("hours", [["not an hour"], [{"waterTemperature": 28.0}]])
    def test_malformed_entries_raise(self, session, hours):
        session.get.side_effect = [make_response({"hours": hours}), make_response(BIO_PAYLOAD)]
        with pytest.raises(APIError, match="Unexpected"):
            MarineConditionsAPI(api_key="k", session=session).fetch_conditions(0.0, 0.0)

    def test_invalid_json(self, session):
        response = make_response(None)
        response.json.side_effect = ValueError("not json")
        session.get.return_value = response

        with pytest.raises(APIError, match="Invalid JSON"):
            MarineConditionsAPI(api_key="k", session=session).fetch_conditions(0.0, 0.0)
