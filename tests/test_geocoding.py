import pytest
import requests

from sagleads.services.geocoding import GoogleGeocoder
from sagleads.utils.errors import ConfigError, GeocodingError


class _FakeResponse:
    def __init__(self, status_code=200, json_data=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._json = json_data

    def json(self):
        if self._json is None:
            raise ValueError("No JSON")
        return self._json


class _FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


OK_BODY = {
    "status": "OK",
    "results": [{"geometry": {"location": {"lat": 35.7796, "lng": -78.6382}}, "formatted_address": "Raleigh, NC"}],
}


def test_geocode_ok():
    session = _FakeSession(_FakeResponse(json_data=OK_BODY))
    loc = GoogleGeocoder("k3y", session=session, timeout=5).geocode("  100 Oak St, Raleigh ")
    assert (loc.lat, loc.lng) == (35.7796, -78.6382)
    assert session.calls[0]["params"] == {"address": "100 Oak St, Raleigh", "key": "k3y"}
    assert session.calls[0]["timeout"] == 5


def test_empty_address_skips_network():
    session = _FakeSession(_FakeResponse(json_data=OK_BODY))
    with pytest.raises(GeocodingError):
        GoogleGeocoder("k3y", session=session).geocode("   ")
    assert session.calls == []


def test_http_error_carries_address():
    session = _FakeSession(_FakeResponse(status_code=500, reason="Server Error"))
    with pytest.raises(GeocodingError) as exc:
        GoogleGeocoder("k3y", session=session).geocode("100 Oak St")
    assert exc.value.address == "100 Oak St"
    assert "Could not geocode address: 100 Oak St" in str(exc.value)
    assert "500" in str(exc.value)


def test_zero_results():
    session = _FakeSession(_FakeResponse(json_data={"status": "ZERO_RESULTS", "results": []}))
    with pytest.raises(GeocodingError, match="ZERO_RESULTS"):
        GoogleGeocoder("k3y", session=session).geocode("nowhere at all")


def test_non_object_body_is_rejected():
    session = _FakeSession(_FakeResponse(json_data=["OK"]))
    with pytest.raises(GeocodingError, match="unexpected response"):
        GoogleGeocoder("k3y", session=session).geocode("100 Oak St")


def test_transport_error_is_wrapped():
    session = _FakeSession(error=requests.ConnectionError("connection refused"))
    with pytest.raises(GeocodingError, match="connection refused"):
        GoogleGeocoder("k3y", session=session).geocode("100 Oak St")


def test_missing_api_key():
    with pytest.raises(ConfigError):
        GoogleGeocoder("  ")
