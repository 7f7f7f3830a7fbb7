"""Single-shot reference location sources."""

import logging
from typing import Optional

import requests

from foodswipe.core.config import Settings, get_settings
from foodswipe.core.errors import LocationUnavailable
from foodswipe.core.models import Coordinate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()


class FixedLocationProvider:
    """Always answers with the coordinate it was built with."""

    def __init__(self, coordinate: Coordinate) -> None:
        self._coordinate = coordinate

    def get_current_location(self) -> Coordinate:
        return self._coordinate


class IpLocationProvider:
    """Approximates the device position from its public IP address."""

    def __init__(self, url: str = "http://ip-api.com/json", timeout: int = 5) -> None:
        self._url = url
        self._timeout = timeout

    def get_current_location(self) -> Coordinate:
        try:
            response = _SESSION.get(self._url, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.warning("IP geolocation lookup failed: %s", exc)
            raise LocationUnavailable(f"location lookup failed: {exc}") from exc

        if response.status_code != 200:
            raise LocationUnavailable(f"location lookup returned status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise LocationUnavailable("location lookup returned an unreadable body") from exc

        if payload.get("status", "success") != "success":
            raise LocationUnavailable(payload.get("message") or "location lookup was refused")

        try:
            coordinate = Coordinate(float(payload["lat"]), float(payload["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise LocationUnavailable("location lookup did not include coordinates") from exc

        logger.info("Resolved reference location from IP: %.4f,%.4f", coordinate.latitude, coordinate.longitude)
        return coordinate


def build_location_provider(settings: Optional[Settings] = None):
    settings = settings or get_settings()
    if settings.default_latitude is not None and settings.default_longitude is not None:
        return FixedLocationProvider(Coordinate(settings.default_latitude, settings.default_longitude))
    return IpLocationProvider(settings.ip_location_url)
