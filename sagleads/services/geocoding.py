# sagleads/services/geocoding.py
from __future__ import annotations

from typing import Optional

import requests
from loguru import logger

from sagleads.utils.errors import ConfigError, GeocodingError
from sagleads.utils.schema import Location


GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
HTTP_TIMEOUT = 10.0


class GoogleGeocoder:
    """
    Free-text address -> Location over the Google Geocoding API.

    Every failure (empty address, transport error, non-2xx, no match) surfaces
    as GeocodingError carrying the address. No retries: the importer moves on.
    """

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = HTTP_TIMEOUT,
        url: str = GEOCODE_URL,
    ) -> None:
        if not (api_key or "").strip():
            raise ConfigError("GOOGLE_MAPS_API_KEY is not set")
        self.api_key = api_key.strip()
        self.session = session or requests.Session()
        self.timeout = timeout
        self.url = url

    def geocode(self, address: str) -> Location:
        address = (address or "").strip()
        if not address:
            raise GeocodingError(address, "address is empty")

        logger.debug(f"Geocoding address: {address!r}")
        try:
            resp = self.session.get(
                self.url,
                params={"address": address, "key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GeocodingError(address, f"request failed: {e}") from e

        if not 200 <= resp.status_code < 300:
            raise GeocodingError(address, f"HTTP {resp.status_code} {resp.reason or ''}".strip())

        try:
            data = resp.json()
        except ValueError as e:
            raise GeocodingError(address, "invalid JSON response") from e
        if not isinstance(data, dict):
            raise GeocodingError(address, "unexpected response")

        status = data.get("status", "")
        results = data.get("results") or []
        if status != "OK" or not results:
            raise GeocodingError(address, f"status {status or 'UNKNOWN'}")

        loc = results[0].get("geometry", {}).get("location", {})
        try:
            return Location(lat=float(loc["lat"]), lng=float(loc["lng"]))
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(address, "response has no coordinates") from e
