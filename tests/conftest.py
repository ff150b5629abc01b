from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from swipely.api.dependencies import get_config, get_store
from swipely.api.feed_api import app
from swipely.config import ServiceConfig
from swipely.discovery.listings import listings_frame
from swipely.local_store import LocalStore

NOW = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)
AUSTIN = (30.2672, -97.7431)


def _days_ago(days):
    return (NOW - timedelta(days=days)).isoformat()


def make_listing(listing_id, title, latitude, longitude, **extra):
    row = {
        "id": listing_id,
        "title": title,
        "latitude": latitude,
        "longitude": longitude,
        "city": "Austin",
        "category": "food",
        "tags": [],
        "is_featured": False,
        "is_published": True,
        "created_at": _days_ago(60),
    }
    row.update(extra)
    return row


@pytest.fixture
def listing_rows():
    """Austin inventory around the default center, plus two far-away listings."""
    return [
        make_listing("a1", "Alpha Cafe", 30.2672, -97.7431, category="coffee", price_tier=1,
                     created_at=_days_ago(2), hours="7:00 AM - 3:00 PM"),
        make_listing("a2", "Bravo Tacos", 30.2750, -97.7431, category="restaurants", price_tier=2,
                     created_at=_days_ago(10), tags=["tacos", "outdoor"]),
        make_listing("a3", "Charlie Park", 30.3000, -97.7431, category="outdoors",
                     created_at=_days_ago(1), tags=["outdoor"]),
        make_listing("a4", "Delta Bar", 30.2700, -97.7400, category="nightlife", price_tier=3,
                     is_featured=True, created_at=_days_ago(30), hours="4:00 PM - 2:00 AM"),
        make_listing("a5", "Echo Museum", None, None, category="museum", price_tier=2,
                     created_at=None, subtitle="Downtown", description="Late-night gallery opening",
                     event_start_date="2025-11-20T18:30:00Z"),
        make_listing("far", "Foxtrot Ranch", 31.0, -97.7431, category="outdoors", price_tier=1,
                     city="Round Rock"),
        make_listing("sf1", "Golden Bakery", 37.7614, -122.4241, city="San Francisco"),
    ]


@pytest.fixture
def inventory(listing_rows):
    return listings_frame(listing_rows)


@pytest.fixture
def store(listing_rows):
    return LocalStore(listing_rows, developers=["dev"])


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_config] = lambda: ServiceConfig()
    yield TestClient(app)
    app.dependency_overrides.clear()
