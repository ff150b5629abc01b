from datetime import timedelta

import pytest

from swipely.discovery.business import (
    business_source,
    listing_from_pending,
    new_pending_listing,
    new_profile,
    owns_listing,
    promotion_update,
    review_listing,
    review_queue,
    validate_listing,
    validate_profile,
)
from swipely.errors import ForbiddenError, ModerationError, ValidationError

from conftest import AUSTIN, NOW

PROFILE = {"id": "b1", "user_id": "owner"}


def _listing(**overrides):
    data = {
        "title": " Zulu Bakery ",
        "description": "Kolaches all day",
        "city": "Austin",
        "latitude": AUSTIN[0],
        "longitude": AUSTIN[1],
        "category": "Restaurants",
    }
    data.update(overrides)
    return data


def test_validate_profile_cleans_fields():
    profile = validate_profile({"business_name": " Zulu Bakery ", "contact_email": "hi@zulu.com",
                                "website": "  "})
    assert profile == {"business_name": "Zulu Bakery", "contact_email": "hi@zulu.com",
                       "contact_phone": None, "website": None}


@pytest.mark.parametrize("data", [
    {"contact_email": "hi@zulu.com"},
    {"business_name": "Zulu", "contact_email": "not-an-email"},
    {"business_name": "Zulu", "contact_email": "hi@zulu.com", "is_verified": True},
])
def test_validate_profile_rejects(data):
    with pytest.raises(ValidationError):
        validate_profile(data)


def test_new_profile_defaults():
    profile = new_profile("owner", {"business_name": "Zulu", "contact_email": "hi@zulu.com"}, NOW)
    assert profile["user_id"] == "owner"
    assert profile["subscription_tier"] == "free"
    assert profile["is_verified"] is False
    assert profile["created_at"] == NOW.isoformat()

    with pytest.raises(ForbiddenError):
        new_profile("", {"business_name": "Zulu", "contact_email": "hi@zulu.com"})


def test_validate_listing_normalizes():
    cleaned = validate_listing(_listing(price_tier=2))
    assert cleaned["title"] == "Zulu Bakery"
    assert cleaned["category"] == "food"
    assert cleaned["price_tier"] == 2
    assert cleaned["subtitle"] is None

    assert validate_listing(_listing(category=None))["category"] == "food"


def test_validate_listing_requires_a_location():
    with pytest.raises(ValidationError, match="Location not verified"):
        validate_listing(_listing(latitude=None))


@pytest.mark.parametrize("overrides", [
    {"title": " "},
    {"description": ""},
    {"longitude": 200},
    {"price_tier": 5},
    {"price_tier": True},
    {"source": "seed"},
])
def test_validate_listing_rejects(overrides):
    with pytest.raises(ValidationError):
        validate_listing(_listing(**overrides))


def test_new_pending_listing_needs_a_profile():
    with pytest.raises(ForbiddenError):
        new_pending_listing(None, _listing())

    pending = new_pending_listing(PROFILE, _listing(), NOW)
    assert pending["business_id"] == "b1"
    assert pending["status"] == "pending"
    assert pending["submitted_at"] == NOW.isoformat()


def test_review_listing():
    pending = {"id": "p1", "status": "pending"}

    approved = review_listing(pending, "approve", "dev", now=NOW)
    assert approved == {"status": "approved", "reviewed_by": "dev", "reviewed_at": NOW.isoformat()}

    rejected = review_listing(pending, "reject", "dev", reason="  Duplicate ")
    assert rejected["rejection_reason"] == "Duplicate"

    with pytest.raises(ModerationError):
        review_listing({"id": "p1", "status": "approved"}, "reject", "dev")
    with pytest.raises(ValidationError):
        review_listing(pending, "publish", "dev")


def test_listing_from_pending():
    pending = {**new_pending_listing(PROFILE, _listing(), NOW), "id": "p1"}
    listing = listing_from_pending(pending, NOW)

    assert listing["source"] == business_source(PROFILE) == "business-b1"
    assert listing["is_published"] is True
    assert listing["is_featured"] is False
    assert listing["title"] == "Zulu Bakery"
    assert listing["id"] != "p1"


def test_review_queue_newest_first():
    rows = [
        {"id": "old", "status": "pending", "submitted_at": (NOW - timedelta(days=3)).isoformat()},
        {"id": "done", "status": "approved", "submitted_at": NOW.isoformat()},
        {"id": "new", "status": "pending", "submitted_at": NOW.isoformat()},
    ]
    assert [r["id"] for r in review_queue(rows)] == ["new", "old"]
    assert [r["id"] for r in review_queue(rows, limit=1)] == ["new"]


def test_only_the_owner_can_promote():
    mine = {"id": "l1", "source": "business-b1"}
    theirs = {"id": "l2", "source": "business-b2"}

    assert owns_listing(PROFILE, mine)
    assert not owns_listing(None, mine)
    assert promotion_update(PROFILE, mine, True) == {"is_featured": True}
    assert promotion_update(PROFILE, mine, False) == {"is_featured": False}
    with pytest.raises(ForbiddenError):
        promotion_update(PROFILE, theirs, True)
    with pytest.raises(ForbiddenError):
        promotion_update(PROFILE, {"id": "a1", "source": "seed"}, True)
