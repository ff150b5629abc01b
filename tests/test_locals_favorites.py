from datetime import timedelta

import pytest

from swipely.discovery.locals_favorites import (
    can_view,
    edit_favorite,
    ensure_can_delete,
    moderate,
    new_favorite,
    pending_queue,
    query_favorites,
    validate_submission,
)
from swipely.errors import ForbiddenError, ModerationError, ValidationError

from conftest import AUSTIN, NOW


def _submission(**overrides):
    data = {
        "name": "  Secret Garden  ",
        "category": "Parks",
        "latitude": 30.27,
        "longitude": -97.74,
        "city": "Austin",
        "description": "",
        "tags": ["quiet", " shade "],
    }
    data.update(overrides)
    return data


def _favorite(favorite_id, status="approved", days_ago=0, likes=0, lat=30.27, lng=-97.74, **extra):
    favorite = new_favorite("owner", _submission(latitude=lat, longitude=lng), NOW - timedelta(days=days_ago))
    favorite.update({"id": favorite_id, "status": status, "likes_count": likes})
    favorite.update(extra)
    return favorite


def test_validate_submission_cleans_fields():
    cleaned = validate_submission(_submission(price_tier=2))

    assert cleaned["name"] == "Secret Garden"
    assert cleaned["category"] == "outdoors"
    assert cleaned["description"] is None
    assert cleaned["tags"] == ["quiet", "shade"]
    assert cleaned["price_tier"] == 2


@pytest.mark.parametrize(
    "overrides",
    [
        {"name": ""},
        {"category": "   "},
        {"latitude": 91},
        {"longitude": -180.5},
        {"latitude": "north"},
        {"price_tier": 5},
        {"price_tier": True},
        {"tags": "quiet"},
        {"rating": 5},
    ],
)
def test_validate_submission_rejects(overrides):
    with pytest.raises(ValidationError):
        validate_submission(_submission(**overrides))


def test_validate_missing_required_field():
    data = _submission()
    del data["longitude"]
    with pytest.raises(ValidationError):
        validate_submission(data)
    assert validate_submission({"name": "New name"}, partial=True) == {"name": "New name"}


def test_new_favorite_starts_pending_with_zero_engagement():
    favorite = new_favorite("u1", _submission(), NOW)

    assert favorite["status"] == "pending"
    assert favorite["user_id"] == "u1"
    assert favorite["likes_count"] == favorite["saves_count"] == favorite["views_count"] == 0
    assert favorite["created_at"] == favorite["updated_at"] == NOW.isoformat()
    assert favorite["moderated_by"] is None


def test_new_favorite_requires_a_user():
    with pytest.raises(ForbiddenError):
        new_favorite("", _submission(), NOW)


def test_owner_edits_pending_only():
    favorite = _favorite("f1", status="pending")

    updates = edit_favorite(favorite, "owner", {"hours": "9-5"}, NOW)
    assert updates == {"hours": "9-5", "updated_at": NOW.isoformat()}

    with pytest.raises(ForbiddenError):
        edit_favorite(favorite, "someone-else", {"hours": "9-5"}, NOW)
    with pytest.raises(ForbiddenError):
        edit_favorite(_favorite("f2", status="approved"), "owner", {"hours": "9-5"}, NOW)
    with pytest.raises(ValidationError):
        edit_favorite(favorite, "owner", {}, NOW)


def test_only_owner_deletes():
    favorite = _favorite("f1", status="rejected")
    ensure_can_delete(favorite, "owner")
    with pytest.raises(ForbiddenError):
        ensure_can_delete(favorite, "dev")


def test_visibility():
    pending = _favorite("f1", status="pending")
    assert can_view(_favorite("f2"), None)
    assert not can_view(pending, None)
    assert not can_view(pending, "stranger")
    assert can_view(pending, "owner")
    assert can_view(pending, "stranger", is_developer=True)


def test_moderation_approve_and_reject():
    approved = moderate(_favorite("f1", status="pending"), "approve", "dev", now=NOW)
    assert approved["status"] == "approved"
    assert approved["moderated_by"] == "dev"
    assert approved["moderated_at"] == NOW.isoformat()
    assert "rejection_reason" not in approved

    rejected = moderate(_favorite("f2", status="pending"), "reject", "dev", reason=" Closed ", now=NOW)
    assert rejected["status"] == "rejected"
    assert rejected["rejection_reason"] == "Closed"


def test_moderation_only_from_pending():
    with pytest.raises(ModerationError):
        moderate(_favorite("f1", status="approved"), "reject", "dev")
    with pytest.raises(ValidationError):
        moderate(_favorite("f2", status="pending"), "archive", "dev")


def test_query_sorts():
    favorites = [
        _favorite("old-popular", days_ago=5, likes=10, lat=30.40, lng=-97.74),
        _favorite("new", days_ago=0, likes=1, lat=30.30, lng=-97.74),
        _favorite("mid", days_ago=2, likes=10, lat=AUSTIN[0], lng=AUSTIN[1]),
    ]

    newest = query_favorites(favorites)
    assert [f["id"] for f in newest] == ["new", "mid", "old-popular"]

    trending = query_favorites(favorites, sort_by="trending")
    assert [f["id"] for f in trending] == ["mid", "old-popular", "new"]

    nearby = query_favorites(favorites, sort_by="nearby", lat=AUSTIN[0], lng=AUSTIN[1])
    assert [f["id"] for f in nearby] == ["mid", "new", "old-popular"]
    assert nearby[0]["distance_km"] == 0.0
    assert nearby[1]["distance_km"] == 3.7


def test_query_filters_and_pages():
    favorites = [
        _favorite("a", days_ago=0),
        _favorite("b", days_ago=1, status="pending"),
        _favorite("c", days_ago=2, lat=31.5, lng=-97.74),
        _favorite("d", days_ago=3, city="Reston"),
    ]

    assert [f["id"] for f in query_favorites(favorites, status="approved")] == ["a", "c", "d"]
    assert [f["id"] for f in query_favorites(favorites, city="Northern Virginia")] == ["d"]
    within = query_favorites(favorites, lat=AUSTIN[0], lng=AUSTIN[1], radius_km=10)
    assert "c" not in [f["id"] for f in within]
    assert [f["id"] for f in query_favorites(favorites, limit=2, offset=1)] == ["b", "c"]
    assert query_favorites(favorites, category="parks")[0]["category"] == "outdoors"


def test_query_argument_errors():
    with pytest.raises(ValidationError):
        query_favorites([], sort_by="nearby")
    with pytest.raises(ValidationError):
        query_favorites([], radius_km=5)
    with pytest.raises(ValidationError):
        query_favorites([], sort_by="random")
    with pytest.raises(ValidationError):
        query_favorites([], status="archived")


def test_pending_queue():
    favorites = [
        _favorite("p-old", status="pending", days_ago=3),
        _favorite("a", status="approved"),
        _favorite("p-new", status="pending", days_ago=1),
    ]
    assert [f["id"] for f in pending_queue(favorites)] == ["p-new", "p-old"]
    assert len(pending_queue(favorites, limit=1)) == 1
