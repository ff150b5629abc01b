"""
In-memory store with the same interface as ``SupabaseService``.

Used when Supabase is not configured: the listing inventory comes from the
bundled seed file and everything users do lives for the life of the process.
"""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from .discovery.feed import search_listings as search_frame
from .discovery.listings import listings_frame
from .discovery.timeutils import as_utc, utc_isoformat
from .discovery.trending import adjust_count

LOGGER = logging.getLogger(__name__)

FAVORITE_REACTIONS = {"likes": "likes_count", "saves": "saves_count"}


def load_seed_listings(path: Path) -> List[Dict[str, Any]]:
    if not path.exists():
        LOGGER.warning("Seed listings file %s not found; starting empty", path)
        return []
    with path.open(encoding="utf-8") as handle:
        listings = json.load(handle)
    LOGGER.info("Loaded %d seed listings from %s", len(listings), path)
    return listings


class LocalStore:
    """Process-local stand-in for the Supabase tables the service uses."""

    def __init__(self, listings: Iterable[Dict[str, Any]] = (), developers: Iterable[str] = ()):
        self.listings: Dict[str, Dict[str, Any]] = {}
        for row in listings:
            self.listings[str(row["id"])] = dict(row)
        self.swipes: List[Dict[str, Any]] = []
        self.saves: Dict[tuple, Dict[str, Any]] = {}
        self.upvotes: Dict[tuple, Dict[str, Any]] = {}
        self.favorites: Dict[str, Dict[str, Any]] = {}
        self.favorite_reactions: Dict[str, set] = {kind: set() for kind in FAVORITE_REACTIONS}
        self.business_profiles: Dict[str, Dict[str, Any]] = {}
        self.pending_listings: Dict[str, Dict[str, Any]] = {}
        self.developers = set(developers)

    # ==================== LISTINGS ====================

    def _published(self) -> List[Dict[str, Any]]:
        rows = [row for row in self.listings.values() if row.get("is_published", True)]
        rows.sort(key=lambda r: as_utc(r.get("created_at") or "1970-01-01T00:00:00Z"), reverse=True)
        return rows

    def fetch_listings(self, cities: Optional[List[str]] = None,
                       price_tiers: Optional[List[int]] = None,
                       limit: int = 300, include_seed: bool = True) -> List[Dict[str, Any]]:
        rows = self._published()
        if not include_seed:
            rows = [r for r in rows if r.get("source") != "seed"]
        if cities:
            wanted = set(cities)
            rows = [r for r in rows if r.get("city") in wanted]
        if price_tiers:
            tiers = set(price_tiers)
            rows = [r for r in rows if not r.get("price_tier") or r.get("price_tier") in tiers]
        return [dict(r) for r in rows[:limit]]

    def get_listing(self, listing_id: str) -> Optional[Dict[str, Any]]:
        row = self.listings.get(str(listing_id))
        if row is None or not row.get("is_published", True):
            return None
        return dict(row)

    def search_listings(self, text: str, limit: int = 20) -> List[Dict[str, Any]]:
        hits = search_frame(listings_frame(self._published()), text, limit)
        return [dict(self.listings[listing_id]) for listing_id in hits["id"]]

    # ==================== SWIPES ====================

    def record_swipe(self, user_id: str, listing_id: str, direction: str) -> Dict[str, Any]:
        row = {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "listing_id": str(listing_id),
            "direction": direction,
            "created_at": utc_isoformat(),
        }
        self.swipes.append(row)
        return dict(row)

    def get_swipes(self, user_id: str, limit: int = 200) -> List[Dict[str, Any]]:
        rows = [s for s in self.swipes if s["user_id"] == user_id]
        rows.sort(key=lambda s: as_utc(s["created_at"]), reverse=True)
        result = []
        for swipe in rows[:limit]:
            listing = self.listings.get(swipe["listing_id"]) or {}
            result.append({
                "listing_id": swipe["listing_id"],
                "direction": swipe["direction"],
                "created_at": swipe["created_at"],
                "category": listing.get("category"),
                "tags": list(listing.get("tags") or []),
            })
        return result

    # ==================== SAVES ====================

    def save_listing(self, user_id: str, listing_id: str, list_name: str) -> Dict[str, Any]:
        key = (user_id, str(listing_id))
        existing = self.saves.get(key)
        row = {
            "id": existing["id"] if existing else str(uuid.uuid4()),
            "user_id": user_id,
            "listing_id": str(listing_id),
            "list_name": list_name,
            "created_at": existing["created_at"] if existing else utc_isoformat(),
        }
        self.saves[key] = row
        return dict(row)

    def unsave_listing(self, user_id: str, listing_id: str) -> bool:
        return self.saves.pop((user_id, str(listing_id)), None) is not None

    def get_saves(self, user_id: str) -> List[Dict[str, Any]]:
        rows = []
        for (owner, listing_id), save in self.saves.items():
            listing = self.listings.get(listing_id)
            if owner != user_id or listing is None:
                continue
            rows.append({**save, "listing": dict(listing)})
        rows.sort(key=lambda r: as_utc(r["created_at"]), reverse=True)
        return rows

    # ==================== UPVOTES ====================

    def add_upvote(self, user_id: str, listing_id: str) -> bool:
        key = (str(listing_id), user_id)
        if key in self.upvotes:
            return False
        self.upvotes[key] = {
            "listing_id": str(listing_id),
            "user_id": user_id,
            "created_at": utc_isoformat(),
        }
        return True

    def remove_upvote(self, user_id: str, listing_id: str) -> bool:
        return self.upvotes.pop((str(listing_id), user_id), None) is not None

    def get_upvotes(self, listing_id: Optional[str] = None, user_id: Optional[str] = None,
                    since: Optional[str] = None) -> List[Dict[str, Any]]:
        cutoff = as_utc(since) if since else None
        rows = []
        for row in self.upvotes.values():
            if listing_id and row["listing_id"] != str(listing_id):
                continue
            if user_id and row["user_id"] != user_id:
                continue
            if cutoff is not None and as_utc(row["created_at"]) < cutoff:
                continue
            listing = self.listings.get(row["listing_id"]) or {}
            rows.append({**row, "city": listing.get("city")})
        return rows

    # ==================== LOCALS FAVORITES ====================

    def create_local_favorite(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {**data, "id": str(uuid.uuid4())}
        self.favorites[row["id"]] = row
        return dict(row)

    def get_local_favorite(self, favorite_id: str) -> Optional[Dict[str, Any]]:
        row = self.favorites.get(favorite_id)
        return dict(row) if row else None

    def get_local_favorites(self, status: Optional[str] = None, user_id: Optional[str] = None,
                            limit: int = 500) -> List[Dict[str, Any]]:
        rows = [
            dict(f) for f in self.favorites.values()
            if (not status or f.get("status") == status)
            and (not user_id or f.get("user_id") == user_id)
        ]
        rows.sort(key=lambda f: as_utc(f["created_at"]), reverse=True)
        return rows[:limit]

    def update_local_favorite(self, favorite_id: str, **kwargs) -> Optional[Dict[str, Any]]:
        row = self.favorites.get(favorite_id)
        if row is None:
            return None
        row.update(kwargs)
        return dict(row)

    def delete_local_favorite(self, favorite_id: str) -> bool:
        if self.favorites.pop(favorite_id, None) is None:
            return False
        for reactions in self.favorite_reactions.values():
            reactions.difference_update({r for r in reactions if r[1] == favorite_id})
        return True

    def add_favorite_reaction(self, kind: str, user_id: str, favorite_id: str) -> bool:
        reactions = self.favorite_reactions[kind]
        key = (user_id, favorite_id)
        if key in reactions or favorite_id not in self.favorites:
            return False
        reactions.add(key)
        counter = FAVORITE_REACTIONS[kind]
        favorite = self.favorites[favorite_id]
        favorite[counter] = adjust_count(favorite.get(counter), +1)
        return True

    def remove_favorite_reaction(self, kind: str, user_id: str, favorite_id: str) -> bool:
        reactions = self.favorite_reactions[kind]
        key = (user_id, favorite_id)
        if key not in reactions:
            return False
        reactions.discard(key)
        counter = FAVORITE_REACTIONS[kind]
        favorite = self.favorites.get(favorite_id)
        if favorite is not None:
            favorite[counter] = adjust_count(favorite.get(counter), -1)
        return True

    def has_favorite_reaction(self, kind: str, user_id: str, favorite_id: str) -> bool:
        return (user_id, favorite_id) in self.favorite_reactions[kind]

    # ==================== BUSINESSES ====================

    def create_business_profile(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        if self.get_business_profile(data["user_id"]) is not None:
            return None
        row = {**data, "id": str(uuid.uuid4())}
        self.business_profiles[row["id"]] = row
        return dict(row)

    def get_business_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        for profile in self.business_profiles.values():
            if profile["user_id"] == user_id:
                return dict(profile)
        return None

    def create_pending_listing(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = {**data, "id": str(uuid.uuid4())}
        self.pending_listings[row["id"]] = row
        return dict(row)

    def get_pending_listing(self, pending_id: str) -> Optional[Dict[str, Any]]:
        row = self.pending_listings.get(pending_id)
        return dict(row) if row else None

    def get_pending_listings(self, status: Optional[str] = None, business_id: Optional[str] = None,
                             limit: int = 500) -> List[Dict[str, Any]]:
        rows = [
            dict(p) for p in self.pending_listings.values()
            if (not status or p.get("status") == status)
            and (not business_id or p.get("business_id") == business_id)
        ]
        rows.sort(key=lambda p: as_utc(p["submitted_at"]), reverse=True)
        return rows[:limit]

    def update_pending_listing(self, pending_id: str, **kwargs) -> Optional[Dict[str, Any]]:
        row = self.pending_listings.get(pending_id)
        if row is None:
            return None
        row.update(kwargs)
        return dict(row)

    def create_listing(self, data: Dict[str, Any]) -> Dict[str, Any]:
        row = dict(data)
        self.listings[str(row["id"])] = row
        return dict(row)

    def get_listings_by_source(self, source: str) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._published() if r.get("source") == source]

    def update_listing(self, listing_id: str, **kwargs) -> Optional[Dict[str, Any]]:
        row = self.listings.get(str(listing_id))
        if row is None:
            return None
        row.update(kwargs)
        return dict(row)

    # ==================== DEVELOPERS ====================

    def is_developer(self, user_id: Optional[str]) -> bool:
        return bool(user_id) and user_id in self.developers
