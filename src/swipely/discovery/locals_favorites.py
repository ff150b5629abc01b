"""
Locals' favorites: hidden gems submitted by users.

Every submission starts out pending and only becomes public once a developer
approves it. Owners can still edit a submission while it is pending and can
withdraw it at any time.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..errors import ForbiddenError, ModerationError, ValidationError
from .categories import cities_for, normalize_category
from .geo import has_coordinates, rounded_distance
from .timeutils import as_utc, utc_isoformat

LOGGER = logging.getLogger(__name__)

STATUSES = ("pending", "approved", "rejected")
SORT_OPTIONS = ("newest", "trending", "nearby")
MODERATION_ACTIONS = {"approve": "approved", "reject": "rejected"}

REQUIRED_FIELDS = ("name", "category", "latitude", "longitude")
OPTIONAL_FIELDS = (
    "description",
    "address",
    "city",
    "photo_url",
    "hours",
    "price_tier",
    "website",
    "tags",
    "vibes",
)
EDITABLE_FIELDS = REQUIRED_FIELDS + OPTIONAL_FIELDS
ENGAGEMENT_COUNTERS = ("likes_count", "saves_count", "views_count")


def _coordinate(value: Any, name: str, bound: float) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number") from None
    if not -bound <= number <= bound:
        raise ValidationError(f"{name} must be between {-bound} and {bound}")
    return number


def _string_list(value: Any, name: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise ValidationError(f"{name} must be a list of strings")
    return [str(v).strip() for v in value if str(v).strip()]


def validate_submission(data: Mapping[str, Any], partial: bool = False) -> Dict[str, Any]:
    """
    Check a submission (or, with ``partial``, an edit) and return cleaned fields.

    Raises:
        ValidationError: unknown fields, missing required fields or values out
            of range
    """
    unknown = sorted(set(data) - set(EDITABLE_FIELDS))
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(unknown)}")

    cleaned: Dict[str, Any] = {}
    for key in REQUIRED_FIELDS:
        if key not in data or data[key] is None or data[key] == "":
            if partial and key not in data:
                continue
            raise ValidationError(f"{key} is required")

    if "name" in data:
        cleaned["name"] = str(data["name"]).strip()
        if not cleaned["name"]:
            raise ValidationError("name is required")
    if "category" in data:
        category = str(data["category"]).strip()
        if not category:
            raise ValidationError("category is required")
        cleaned["category"] = normalize_category(category)
    if "latitude" in data:
        cleaned["latitude"] = _coordinate(data["latitude"], "latitude", 90.0)
    if "longitude" in data:
        cleaned["longitude"] = _coordinate(data["longitude"], "longitude", 180.0)

    if "price_tier" in data:
        tier = data["price_tier"]
        if tier is not None:
            if isinstance(tier, bool) or not isinstance(tier, int) or not 1 <= tier <= 4:
                raise ValidationError("price_tier must be between 1 and 4")
        cleaned["price_tier"] = tier
    for key in ("tags", "vibes"):
        if key in data:
            cleaned[key] = _string_list(data[key], key)
    for key in ("description", "address", "city", "photo_url", "hours", "website"):
        if key in data:
            value = data[key]
            text = str(value).strip() if value is not None else ""
            cleaned[key] = text or None
    return cleaned


def new_favorite(user_id: str, data: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Build the row for a fresh submission."""
    if not user_id:
        raise ForbiddenError("Sign in to submit a favorite")
    cleaned = validate_submission(data)
    timestamp = utc_isoformat(now)
    favorite: Dict[str, Any] = {key: None for key in OPTIONAL_FIELDS}
    favorite.update({"tags": [], "vibes": []})
    favorite.update(cleaned)
    favorite.update(
        {
            "user_id": user_id,
            "status": "pending",
            "rejection_reason": None,
            "moderated_by": None,
            "moderated_at": None,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
    )
    for counter in ENGAGEMENT_COUNTERS:
        favorite[counter] = 0
    return favorite


def is_owner(favorite: Mapping[str, Any], user_id: Optional[str]) -> bool:
    return bool(user_id) and favorite.get("user_id") == user_id


def can_view(favorite: Mapping[str, Any], user_id: Optional[str], is_developer: bool = False) -> bool:
    return favorite.get("status") == "approved" or is_developer or is_owner(favorite, user_id)


def edit_favorite(
    favorite: Mapping[str, Any],
    user_id: Optional[str],
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Return the column updates for an owner's edit of a pending submission."""
    if not is_owner(favorite, user_id):
        raise ForbiddenError("Only the submitter can edit this favorite")
    if favorite.get("status") != "pending":
        raise ForbiddenError("Only pending submissions can be edited")
    updates = validate_submission(changes, partial=True)
    if not updates:
        raise ValidationError("Nothing to update")
    updates["updated_at"] = utc_isoformat(now)
    return updates


def ensure_can_delete(favorite: Mapping[str, Any], user_id: Optional[str]) -> None:
    if not is_owner(favorite, user_id):
        raise ForbiddenError("Only the submitter can delete this favorite")


def moderate(
    favorite: Mapping[str, Any],
    action: str,
    moderator_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Return the column updates for approving or rejecting a submission.

    Raises:
        ValidationError: unknown action
        ModerationError: the submission was already moderated
    """
    if action not in MODERATION_ACTIONS:
        raise ValidationError(f"Unknown moderation action {action!r}")
    status = favorite.get("status")
    if status != "pending":
        raise ModerationError(f"Favorite {favorite.get('id')} is already {status}")
    timestamp = utc_isoformat(now)
    updates: Dict[str, Any] = {
        "status": MODERATION_ACTIONS[action],
        "moderated_by": moderator_id,
        "moderated_at": timestamp,
        "updated_at": timestamp,
    }
    if action == "reject":
        updates["rejection_reason"] = (reason or "").strip() or None
    LOGGER.info("Favorite %s %s by %s", favorite.get("id"), updates["status"], moderator_id)
    return updates


def _sort_key_newest(favorite: Mapping[str, Any]):
    return as_utc(favorite.get("created_at") or "1970-01-01T00:00:00Z")


def query_favorites(
    favorites: Iterable[Mapping[str, Any]],
    status: Optional[str] = None,
    category: Optional[str] = None,
    city: Optional[str] = None,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    radius_km: Optional[float] = None,
    sort_by: str = "newest",
    limit: int = 50,
    offset: int = 0,
) -> List[Dict[str, Any]]:
    """
    Filter, sort and page favorites.

    A point (``lat``/``lng``) attaches ``distance_km`` to each result and is
    required for ``sort_by="nearby"`` and for ``radius_km``.
    """
    if status is not None and status not in STATUSES:
        raise ValidationError(f"status must be one of {STATUSES}")
    if sort_by not in SORT_OPTIONS:
        raise ValidationError(f"sort_by must be one of {SORT_OPTIONS}")
    has_point = lat is not None and lng is not None
    if (sort_by == "nearby" or radius_km is not None) and not has_point:
        raise ValidationError("lat and lng are required to sort or filter by distance")

    wanted_category = normalize_category(category) if category else None
    wanted_cities = set(cities_for(city)) if city else None

    results: List[Dict[str, Any]] = []
    for favorite in favorites:
        if status and favorite.get("status") != status:
            continue
        if wanted_category and normalize_category(favorite.get("category")) != wanted_category:
            continue
        if wanted_cities is not None and favorite.get("city") not in wanted_cities:
            continue
        item = dict(favorite)
        if has_point:
            if has_coordinates(item.get("latitude"), item.get("longitude")):
                item["distance_km"] = rounded_distance(lat, lng, item["latitude"], item["longitude"])
            else:
                item["distance_km"] = None
            if radius_km is not None and item["distance_km"] is not None and item["distance_km"] > radius_km:
                continue
        results.append(item)

    results.sort(key=_sort_key_newest, reverse=True)
    if sort_by == "trending":
        results.sort(key=lambda f: int(f.get("likes_count") or 0), reverse=True)
    elif sort_by == "nearby":
        results.sort(key=lambda f: (f["distance_km"] is None, f["distance_km"] or 0.0))

    start = max(offset, 0)
    return results[start: start + limit]


def pending_queue(favorites: Iterable[Mapping[str, Any]], limit: int = 100) -> List[Dict[str, Any]]:
    """Submissions waiting for a developer, newest first."""
    return query_favorites(favorites, status="pending", sort_by="newest", limit=limit)
