"""Client for the Yelp Fusion business search API."""

import logging
from typing import Any, Dict, List, Optional

import requests

from foodswipe.core.config import Settings, get_settings, require_api_key
from foodswipe.core.errors import DecodeFailure, InvalidQuery, TransportFailure, UpstreamRejected
from foodswipe.core.models import Coordinate

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

MAX_LIMIT = 50
MAX_RADIUS = 40000
REQUEST_TIMEOUT = 10


def _error_description(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        return error.get("description") or error.get("code") or str(error)
    return str(payload)[:200]


class YelpGateway:
    """Pages through ``/businesses/search`` and returns the raw business dicts."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        settings = settings or get_settings()
        self._api_key = require_api_key(settings)
        self._base_url = settings.yelp_api_url.rstrip("/")
        self._locale = settings.yelp_locale

    def build_params(
        self,
        center: Coordinate,
        radius_meters: int,
        category_token: str,
        limit: int,
        offset: int,
        sort_token: str,
        open_only: bool,
    ) -> Dict[str, Any]:
        if not 1 <= radius_meters <= MAX_RADIUS:
            raise InvalidQuery(f"radius must be between 1 and {MAX_RADIUS} meters, got {radius_meters}")
        if not 1 <= limit <= MAX_LIMIT:
            raise InvalidQuery(f"limit must be between 1 and {MAX_LIMIT}, got {limit}")
        if offset < 0:
            raise InvalidQuery(f"offset must not be negative, got {offset}")
        if not category_token or not category_token.strip():
            raise InvalidQuery("category token must be provided")
        if not sort_token or not sort_token.strip():
            raise InvalidQuery("sort token must be provided")

        return {
            "latitude": center.latitude,
            "longitude": center.longitude,
            "radius": int(radius_meters),
            "categories": category_token.strip(),
            "limit": limit,
            "offset": offset,
            "sort_by": sort_token.strip(),
            "locale": self._locale,
            "open_now": "true" if open_only else "false",
        }

    def search(
        self,
        center: Coordinate,
        radius_meters: int,
        category_token: str,
        limit: int,
        offset: int,
        sort_token: str,
        open_only: bool,
    ) -> List[Dict[str, Any]]:
        params = self.build_params(center, radius_meters, category_token, limit, offset, sort_token, open_only)
        headers = {"Authorization": f"Bearer {self._api_key}", "Accept": "application/json"}

        logger.info(
            "Calling Yelp search categories=%s offset=%s limit=%s sort_by=%s",
            params["categories"],
            offset,
            limit,
            params["sort_by"],
        )
        try:
            response = _SESSION.get(
                f"{self._base_url}/businesses/search",
                params=params,
                headers=headers,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.error("Yelp search request failed: %s", exc)
            raise TransportFailure(f"search request failed: {exc}") from exc

        if response.status_code != 200:
            description = _error_description(response)
            logger.error("Yelp search rejected: status=%s, error=%s", response.status_code, description)
            raise UpstreamRejected(
                f"search service returned status {response.status_code}: {description}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeFailure("search response is not valid JSON") from exc

        businesses = payload.get("businesses") if isinstance(payload, dict) else None
        if not isinstance(businesses, list):
            raise DecodeFailure("search response is missing the businesses list")
        logger.info("Yelp returned %d businesses (total=%s)", len(businesses), payload.get("total"))
        return businesses
