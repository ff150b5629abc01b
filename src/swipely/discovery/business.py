"""
Business accounts.

A user can hold one business profile. Businesses submit listings that wait
in a review queue until a developer approves them; approval publishes a
listing whose ``source`` ties it to the business. Owners can then promote
their listings, which marks them featured so they rank ahead of the rest of
the feed.
"""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..errors import ForbiddenError, ModerationError, ValidationError
from .categories import normalize_category
from .locals_favorites import MODERATION_ACTIONS
from .timeutils import as_utc, utc_isoformat

LOGGER = logging.getLogger(__name__)

SOURCE_PREFIX = "business-"
DEFAULT_LISTING_CATEGORY = "food"
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

PROFILE_FIELDS = ("business_name", "contact_email", "contact_phone", "website")
LISTING_FIELDS = (
    "title",
    "subtitle",
    "description",
    "category",
    "price_tier",
    "latitude",
    "longitude",
    "city",
    "hours",
    "phone",
    "website",
)


def _text(value: Any) -> Optional[str]:
    text = str(value).strip() if value is not None else ""
    return text or None


def _required_text(data: Mapping[str, Any], key: str) -> str:
    text = _text(data.get(key))
    if text is None:
        raise ValidationError(f"{key} is required")
    return text


def _coordinate(value: Any, name: str, bound: float) -> float:
    if value is None:
        raise ValidationError("Location not verified: latitude and longitude are required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number") from None
    if not -bound <= number <= bound:
        raise ValidationError(f"{name} must be between {-bound} and {bound}")
    return number


def _reject_unknown(data: Mapping[str, Any], allowed: Iterable[str]) -> None:
    unknown = sorted(set(data) - set(allowed))
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(unknown)}")


# ==================== PROFILES ====================

def validate_profile(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Return the cleaned profile fields; name and a valid email are required."""
    _reject_unknown(data, PROFILE_FIELDS)
    email = _required_text(data, "contact_email")
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("contact_email must be a valid email address")
    return {
        "business_name": _required_text(data, "business_name"),
        "contact_email": email,
        "contact_phone": _text(data.get("contact_phone")),
        "website": _text(data.get("website")),
    }


def new_profile(user_id: str, data: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    if not user_id:
        raise ForbiddenError("Sign in to create a business profile")
    timestamp = utc_isoformat(now)
    profile = validate_profile(data)
    profile.update(
        {
            "user_id": user_id,
            "is_verified": False,
            "is_active": True,
            "subscription_tier": "free",
            "created_at": timestamp,
            "updated_at": timestamp,
        }
    )
    return profile


def business_source(profile: Mapping[str, Any]) -> str:
    """The ``source`` value carried by every listing a business publishes."""
    return f"{SOURCE_PREFIX}{profile['id']}"


# ==================== LISTING SUBMISSIONS ====================

def validate_listing(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Check a business listing submission and return cleaned fields.

    Raises:
        ValidationError: unknown fields, a missing title, description, city or
            location, or a price tier outside 1-4
    """
    _reject_unknown(data, LISTING_FIELDS)
    cleaned: Dict[str, Any] = {
        "title": _required_text(data, "title"),
        "description": _required_text(data, "description"),
        "city": _required_text(data, "city"),
        "latitude": _coordinate(data.get("latitude"), "latitude", 90.0),
        "longitude": _coordinate(data.get("longitude"), "longitude", 180.0),
        "category": normalize_category(_text(data.get("category")) or DEFAULT_LISTING_CATEGORY),
    }
    tier = data.get("price_tier")
    if tier is not None:
        if isinstance(tier, bool) or not isinstance(tier, int) or not 1 <= tier <= 4:
            raise ValidationError("price_tier must be between 1 and 4")
    cleaned["price_tier"] = tier
    for key in ("subtitle", "hours", "phone", "website"):
        cleaned[key] = _text(data.get(key))
    return cleaned


def new_pending_listing(
    profile: Optional[Mapping[str, Any]],
    data: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the review-queue row for a business's listing submission."""
    if not profile:
        raise ForbiddenError("Create a business profile before submitting listings")
    pending = validate_listing(data)
    pending.update(
        {
            "business_id": profile["id"],
            "status": "pending",
            "rejection_reason": None,
            "submitted_at": utc_isoformat(now),
            "reviewed_at": None,
            "reviewed_by": None,
            "listing_id": None,
        }
    )
    return pending


def review_listing(
    pending: Mapping[str, Any],
    action: str,
    reviewer_id: str,
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Return the column updates for approving or rejecting a submission.

    Raises:
        ValidationError: unknown action
        ModerationError: the submission was already reviewed
    """
    if action not in MODERATION_ACTIONS:
        raise ValidationError(f"Unknown moderation action {action!r}")
    status = pending.get("status")
    if status != "pending":
        raise ModerationError(f"Listing submission {pending.get('id')} is already {status}")
    updates: Dict[str, Any] = {
        "status": MODERATION_ACTIONS[action],
        "reviewed_by": reviewer_id,
        "reviewed_at": utc_isoformat(now),
    }
    if action == "reject":
        updates["rejection_reason"] = (reason or "").strip() or None
    LOGGER.info("Listing submission %s %s by %s", pending.get("id"), updates["status"], reviewer_id)
    return updates


def listing_from_pending(pending: Mapping[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """The published listing row for an approved submission."""
    listing = {key: pending.get(key) for key in LISTING_FIELDS}
    listing.update(
        {
            "id": str(uuid.uuid4()),
            "source": f"{SOURCE_PREFIX}{pending['business_id']}",
            "is_featured": False,
            "is_published": True,
            "created_at": utc_isoformat(now),
        }
    )
    return listing


def review_queue(rows: Iterable[Mapping[str, Any]], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Pending submissions, newest first, like the favorites queue."""
    queue = [dict(row) for row in rows if row.get("status") == "pending"]
    queue.sort(key=lambda row: as_utc(row.get("submitted_at") or "1970-01-01T00:00:00Z"), reverse=True)
    return queue[:limit] if limit else queue


# ==================== PROMOTION ====================

def owns_listing(profile: Optional[Mapping[str, Any]], listing: Mapping[str, Any]) -> bool:
    return bool(profile) and listing.get("source") == business_source(profile)


def promotion_update(
    profile: Optional[Mapping[str, Any]],
    listing: Mapping[str, Any],
    featured: bool,
) -> Dict[str, Any]:
    """Return the column update that promotes (or unpromotes) a listing."""
    if not owns_listing(profile, listing):
        raise ForbiddenError("Only the business that owns this listing can promote it")
    LOGGER.info("Listing %s %s", listing.get("id"), "promoted" if featured else "unpromoted")
    return {"is_featured": featured}
