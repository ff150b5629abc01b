import logging
import re
from typing import Optional, List, Dict, Any

from postgrest.exceptions import APIError
from supabase import create_client, Client

from ..config import SupabaseSettings

LOGGER = logging.getLogger(__name__)

LISTING_SELECT = "*, listing_photos(url, sort_order), listing_tags(tags(name))"
UNIQUE_VIOLATION = "23505"
FAVORITE_REACTION_TABLES = {
    "likes": "locals_favorites_likes",
    "saves": "locals_favorites_saves",
}
SEARCH_COLUMNS = ("title", "description", "category")
# Characters that would break an or_() filter; "_" matches any single character
FILTER_RESERVED = re.compile(r'[,().%*:"\\]')


def _ilike_pattern(text: str) -> str:
    return FILTER_RESERVED.sub("_", text.strip())


def _is_duplicate(exc: APIError) -> bool:
    return getattr(exc, "code", None) == UNIQUE_VIOLATION


class SupabaseService:
    """Supabase access for listings, swipes, saves, upvotes, locals' favorites and businesses"""

    def __init__(self, settings: Optional[SupabaseSettings] = None):
        settings = settings or SupabaseSettings.from_env()

        if not settings.configured:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set in environment")

        self.client: Client = create_client(settings.url, settings.key)

    # ==================== LISTINGS ====================

    def fetch_listings(self, cities: Optional[List[str]] = None,
                       price_tiers: Optional[List[int]] = None,
                       limit: int = 300, include_seed: bool = True) -> List[Dict[str, Any]]:
        """Get published listings, newest first"""
        query = self.client.table("listings").select(LISTING_SELECT).eq("is_published", True)
        if not include_seed:
            query = query.neq("source", "seed")
        if cities:
            query = query.in_("city", cities)
        if price_tiers:
            # Rows without a tier stay in; the feed filter keeps them too
            tiers = ",".join(str(int(t)) for t in price_tiers)
            query = query.or_(f"price_tier.is.null,price_tier.in.({tiers})")
        response = query.order("created_at", desc=True).limit(limit).execute()
        LOGGER.debug("Fetched %d listings (cities=%s)", len(response.data), cities)
        return response.data

    def get_listing(self, listing_id: str) -> Optional[Dict[str, Any]]:
        """Get a published listing by ID"""
        response = (self.client.table("listings")
                    .select(LISTING_SELECT)
                    .eq("id", listing_id)
                    .eq("is_published", True)
                    .execute())
        return response.data[0] if response.data else None

    def search_listings(self, text: str, limit: int = 20) -> List[Dict[str, Any]]:
        """Search published listings by title, description or category"""
        pattern = _ilike_pattern(text)
        if not pattern:
            return []
        filters = ",".join(f"{column}.ilike.%{pattern}%" for column in SEARCH_COLUMNS)
        response = (self.client.table("listings")
                    .select(LISTING_SELECT)
                    .eq("is_published", True)
                    .or_(filters)
                    .limit(limit)
                    .execute())
        return response.data

    # ==================== SWIPES ====================

    def record_swipe(self, user_id: str, listing_id: str, direction: str) -> Dict[str, Any]:
        """Store a swipe"""
        data = {"user_id": user_id, "listing_id": listing_id, "direction": direction}
        response = self.client.table("swipes").insert(data).execute()
        return response.data[0] if response.data else None

    def get_swipes(self, user_id: str, limit: int = 200) -> List[Dict[str, Any]]:
        """Get a user's swipes, newest first, with the swiped listing's category and tags"""
        response = (self.client.table("swipes")
                    .select("listing_id,direction,created_at,"
                            "listings(category,listing_tags(tags(name)))")
                    .eq("user_id", user_id)
                    .order("created_at", desc=True)
                    .limit(limit)
                    .execute())
        rows = []
        for row in response.data:
            listing = row.pop("listings", None) or {}
            row["category"] = listing.get("category")
            row["tags"] = [
                (item.get("tags") or {}).get("name")
                for item in listing.get("listing_tags") or []
                if (item.get("tags") or {}).get("name")
            ]
            rows.append(row)
        return rows

    # ==================== SAVES ====================

    def save_listing(self, user_id: str, listing_id: str, list_name: str) -> Dict[str, Any]:
        """Save a listing, or move it to another list if already saved"""
        data = {"user_id": user_id, "listing_id": listing_id, "list_name": list_name}
        response = (self.client.table("saves")
                    .upsert(data, on_conflict="user_id,listing_id")
                    .execute())
        return response.data[0] if response.data else None

    def unsave_listing(self, user_id: str, listing_id: str) -> bool:
        """Remove a saved listing"""
        response = (self.client.table("saves")
                    .delete()
                    .eq("user_id", user_id)
                    .eq("listing_id", listing_id)
                    .execute())
        return len(response.data) > 0

    def get_saves(self, user_id: str) -> List[Dict[str, Any]]:
        """Get a user's saves joined with their listings"""
        response = (self.client.table("saves")
                    .select("id,listing_id,list_name,created_at,"
                            "listing:listings(*, listing_photos(url, sort_order))")
                    .eq("user_id", user_id)
                    .order("created_at", desc=True)
                    .execute())
        return [row for row in response.data if row.get("listing")]

    # ==================== UPVOTES ====================

    def add_upvote(self, user_id: str, listing_id: str) -> bool:
        """Upvote a listing; returns False if the user already upvoted it"""
        try:
            self.client.table("listing_upvotes").insert(
                {"user_id": user_id, "listing_id": listing_id}
            ).execute()
        except APIError as exc:
            if _is_duplicate(exc):
                return False
            raise
        return True

    def remove_upvote(self, user_id: str, listing_id: str) -> bool:
        """Remove an upvote"""
        response = (self.client.table("listing_upvotes")
                    .delete()
                    .eq("user_id", user_id)
                    .eq("listing_id", listing_id)
                    .execute())
        return len(response.data) > 0

    def get_upvotes(self, listing_id: Optional[str] = None, user_id: Optional[str] = None,
                    since: Optional[str] = None) -> List[Dict[str, Any]]:
        """Get upvotes with the upvoted listing's city"""
        query = self.client.table("listing_upvotes").select(
            "listing_id,user_id,created_at,listings(city)"
        )
        if listing_id:
            query = query.eq("listing_id", listing_id)
        if user_id:
            query = query.eq("user_id", user_id)
        if since:
            query = query.gte("created_at", since)
        response = query.execute()
        rows = []
        for row in response.data:
            listing = row.pop("listings", None) or {}
            row["city"] = listing.get("city")
            rows.append(row)
        return rows

    # ==================== LOCALS FAVORITES ====================

    def create_local_favorite(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a favorite submission"""
        response = self.client.table("locals_favorites").insert(data).execute()
        return response.data[0] if response.data else None

    def get_local_favorite(self, favorite_id: str) -> Optional[Dict[str, Any]]:
        """Get a favorite by ID"""
        response = self.client.table("locals_favorites").select("*").eq("id", favorite_id).execute()
        return response.data[0] if response.data else None

    def get_local_favorites(self, status: Optional[str] = None, user_id: Optional[str] = None,
                            limit: int = 500) -> List[Dict[str, Any]]:
        """Get favorites, newest first, optionally filtered by status or submitter"""
        query = self.client.table("locals_favorites").select("*")
        if status:
            query = query.eq("status", status)
        if user_id:
            query = query.eq("user_id", user_id)
        response = query.order("created_at", desc=True).limit(limit).execute()
        return response.data

    def update_local_favorite(self, favorite_id: str, **kwargs) -> Optional[Dict[str, Any]]:
        """Update a favorite"""
        response = self.client.table("locals_favorites").update(kwargs).eq("id", favorite_id).execute()
        return response.data[0] if response.data else None

    def delete_local_favorite(self, favorite_id: str) -> bool:
        """Delete a favorite"""
        response = self.client.table("locals_favorites").delete().eq("id", favorite_id).execute()
        return len(response.data) > 0

    def add_favorite_reaction(self, kind: str, user_id: str, favorite_id: str) -> bool:
        """Like or save a favorite; counters are kept by database triggers"""
        try:
            self.client.table(FAVORITE_REACTION_TABLES[kind]).insert(
                {"user_id": user_id, "favorite_id": favorite_id}
            ).execute()
        except APIError as exc:
            if _is_duplicate(exc):
                return False
            raise
        return True

    def remove_favorite_reaction(self, kind: str, user_id: str, favorite_id: str) -> bool:
        """Remove a like or save"""
        response = (self.client.table(FAVORITE_REACTION_TABLES[kind])
                    .delete()
                    .eq("user_id", user_id)
                    .eq("favorite_id", favorite_id)
                    .execute())
        return len(response.data) > 0

    def has_favorite_reaction(self, kind: str, user_id: str, favorite_id: str) -> bool:
        response = (self.client.table(FAVORITE_REACTION_TABLES[kind])
                    .select("id")
                    .eq("user_id", user_id)
                    .eq("favorite_id", favorite_id)
                    .execute())
        return bool(response.data)

    # ==================== BUSINESSES ====================

    def create_business_profile(self, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Create a business profile; returns None if the user already has one"""
        try:
            response = self.client.table("business_profiles").insert(data).execute()
        except APIError as exc:
            if _is_duplicate(exc):
                return None
            raise
        return response.data[0] if response.data else None

    def get_business_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Get a user's business profile"""
        response = self.client.table("business_profiles").select("*").eq("user_id", user_id).execute()
        return response.data[0] if response.data else None

    def create_pending_listing(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Queue a business listing submission for review"""
        response = self.client.table("pending_listings").insert(data).execute()
        return response.data[0] if response.data else None

    def get_pending_listing(self, pending_id: str) -> Optional[Dict[str, Any]]:
        response = self.client.table("pending_listings").select("*").eq("id", pending_id).execute()
        return response.data[0] if response.data else None

    def get_pending_listings(self, status: Optional[str] = None, business_id: Optional[str] = None,
                             limit: int = 500) -> List[Dict[str, Any]]:
        """Get listing submissions, newest first"""
        query = self.client.table("pending_listings").select("*")
        if status:
            query = query.eq("status", status)
        if business_id:
            query = query.eq("business_id", business_id)
        response = query.order("submitted_at", desc=True).limit(limit).execute()
        return response.data

    def update_pending_listing(self, pending_id: str, **kwargs) -> Optional[Dict[str, Any]]:
        response = self.client.table("pending_listings").update(kwargs).eq("id", pending_id).execute()
        return response.data[0] if response.data else None

    def create_listing(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Publish a listing"""
        response = self.client.table("listings").insert(data).execute()
        return response.data[0] if response.data else None

    def get_listings_by_source(self, source: str) -> List[Dict[str, Any]]:
        """Get the published listings that came from one source, newest first"""
        response = (self.client.table("listings")
                    .select(LISTING_SELECT)
                    .eq("source", source)
                    .eq("is_published", True)
                    .order("created_at", desc=True)
                    .execute())
        return response.data

    def update_listing(self, listing_id: str, **kwargs) -> Optional[Dict[str, Any]]:
        """Update a listing"""
        response = self.client.table("listings").update(kwargs).eq("id", listing_id).execute()
        return response.data[0] if response.data else None

    # ==================== DEVELOPERS ====================

    def is_developer(self, user_id: Optional[str]) -> bool:
        """Check whether a user has an active developer (moderator) account"""
        if not user_id:
            return False
        response = (self.client.table("developers")
                    .select("user_id")
                    .eq("user_id", user_id)
                    .eq("is_active", True)
                    .execute())
        return bool(response.data)

