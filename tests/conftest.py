import math
import sys
from pathlib import Path

import pytest

# Ensure the `foodswipe` package is importable when running pytest from the repo root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from foodswipe.core import config  # noqa: E402
from foodswipe.core.models import Coordinate  # noqa: E402
from foodswipe.etl.transform import EARTH_RADIUS_METERS  # noqa: E402

ORIGIN = Coordinate(0.0, 0.0)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()


@pytest.fixture
def origin():
    return ORIGIN


@pytest.fixture
def business_factory():
    """Build Yelp-shaped business dicts placed ``meters`` due north of the origin."""

    def make(venue_id, rating=None, image=True, meters=0.0, is_closed=None, **extra):
        business = {
            "id": venue_id,
            "name": f"Venue {venue_id}",
            "categories": [{"alias": "ramen", "title": "Ramen"}],
            "coordinates": {"latitude": math.degrees(meters / EARTH_RADIUS_METERS), "longitude": 0.0},
            "image_url": f"https://img.example.com/{venue_id}.jpg" if image else "",
            "phone": "+886212345678",
            "display_phone": "02 1234 5678",
            "location": {"city": "Taipei"},
        }
        if rating is not None:
            business["rating"] = rating
        if is_closed is not None:
            business["is_closed"] = is_closed
        business.update(extra)
        return business

    return make
