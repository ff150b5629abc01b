"""
FastAPI service for the Swipely discovery feed.
Exposes REST endpoints for the swipe feed, saved lists, upvotes, locals' favorites
and the business portal.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..config import ALL_PRICE_TIERS, DEFAULT_CENTER, ServiceConfig, TrendingSettings
from ..discovery.business import (
    business_source,
    listing_from_pending,
    new_pending_listing,
    new_profile,
    promotion_update,
    review_listing,
    review_queue,
)
from ..discovery.categories import cities_for
from ..discovery.events import calendar_url_for_listing, event_summary
from ..discovery.feed import FeedParams, build_feed, filter_city_listings
from ..discovery.listings import listing_from_row, listings_frame
from ..discovery.locals_favorites import (
    SORT_OPTIONS,
    can_view,
    edit_favorite,
    ensure_can_delete,
    moderate,
    new_favorite,
    pending_queue,
    query_favorites,
)
from ..discovery.saved_lists import group_by_list, list_name_or_default, saved_item_from_row, saved_items
from ..discovery.swipe_history import DIRECTIONS, SwipeHistory
from ..discovery.trending import rank_trending, trending_records
from ..errors import (
    ConflictError,
    ForbiddenError,
    ModerationError,
    NotFoundError,
    SwipelyError,
    ValidationError,
)
from ..supabase_client.supabase_service import SupabaseService
from .dependencies import Store, get_config, get_store

LOGGER = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: 400,
    ForbiddenError: 403,
    NotFoundError: 404,
    ModerationError: 409,
    ConflictError: 409,
}
FAVORITE_REACTION_ROUTES = {"like": "likes", "save": "saves"}


# Pydantic models for request/response
class EventInfo(BaseModel):
    label: str
    starts_in: str
    is_soon: bool
    in_progress: bool
    is_past: bool


class ListingOut(BaseModel):
    id: str
    title: str
    subtitle: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    price_tier: Optional[int] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    city: Optional[str] = None
    images: List[str] = []
    tags: List[str] = []
    hours: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    is_featured: bool = False
    source: Optional[str] = None
    created_at: Optional[str] = None
    event_start_date: Optional[str] = None
    event_end_date: Optional[str] = None
    distance_km: Optional[float] = None
    recommendation_score: Optional[float] = None
    event: Optional[EventInfo] = None


class FeedResponse(BaseModel):
    items: List[ListingOut]
    total: int
    page: int
    page_size: int
    has_more: bool
    timestamp: str


class CityListingsResponse(BaseModel):
    city: str
    items: List[ListingOut]
    total: int
    timestamp: str


class SwipeRequest(BaseModel):
    listing_id: str = Field(..., description="Swiped listing")
    direction: str = Field(..., description="'right' to like, 'left' to pass")


class SaveRequest(BaseModel):
    list_name: Optional[str] = Field(None, description="Saved list; defaults to 'default'")


class FavoriteSubmission(BaseModel):
    name: str
    category: str
    latitude: float
    longitude: float
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    photo_url: Optional[str] = None
    hours: Optional[str] = None
    price_tier: Optional[int] = None
    website: Optional[str] = None
    tags: List[str] = []
    vibes: List[str] = []


class FavoriteUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    photo_url: Optional[str] = None
    hours: Optional[str] = None
    price_tier: Optional[int] = None
    website: Optional[str] = None
    tags: Optional[List[str]] = None
    vibes: Optional[List[str]] = None


class FavoriteOut(BaseModel):
    id: str
    user_id: str
    name: str
    category: str
    latitude: float
    longitude: float
    description: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    photo_url: Optional[str] = None
    hours: Optional[str] = None
    price_tier: Optional[int] = None
    website: Optional[str] = None
    tags: List[str] = []
    vibes: List[str] = []
    status: str
    rejection_reason: Optional[str] = None
    moderated_by: Optional[str] = None
    moderated_at: Optional[str] = None
    likes_count: int = 0
    saves_count: int = 0
    views_count: int = 0
    created_at: str
    updated_at: Optional[str] = None
    distance_km: Optional[float] = None


class ModerationRequest(BaseModel):
    reason: Optional[str] = Field(None, description="Shown to the submitter on rejection")


class BusinessProfileRequest(BaseModel):
    business_name: str
    contact_email: str
    contact_phone: Optional[str] = None
    website: Optional[str] = None


class BusinessProfileOut(BaseModel):
    id: str
    user_id: str
    business_name: str
    contact_email: str
    contact_phone: Optional[str] = None
    website: Optional[str] = None
    is_verified: bool = False
    is_active: bool = True
    subscription_tier: str = "free"
    created_at: Optional[str] = None


class BusinessListingSubmission(BaseModel):
    title: str
    description: str
    city: str
    latitude: Optional[float] = Field(None, description="From the address lookup")
    longitude: Optional[float] = Field(None, description="From the address lookup")
    category: str = "food"
    subtitle: Optional[str] = None
    price_tier: Optional[int] = None
    hours: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None


class PendingListingOut(BaseModel):
    id: str
    business_id: str
    title: str
    description: Optional[str] = None
    category: str
    city: str
    latitude: float
    longitude: float
    subtitle: Optional[str] = None
    price_tier: Optional[int] = None
    hours: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    status: str
    rejection_reason: Optional[str] = None
    submitted_at: str
    reviewed_at: Optional[str] = None
    reviewed_by: Optional[str] = None
    listing_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    backend: str


# Initialize FastAPI app
app = FastAPI(
    title="Swipely Discovery API",
    description="Swipe feed, saved lists and locals' favorites for local discovery",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SwipelyError)
async def swipely_error_handler(request: Request, exc: SwipelyError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        400,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _parse_price_tiers(value: Optional[str]) -> List[int]:
    try:
        tiers = [int(part) for part in _split_csv(value)]
    except ValueError:
        raise ValidationError("price_tiers must be comma-separated integers") from None
    invalid = [t for t in tiers if t not in ALL_PRICE_TIERS]
    if invalid:
        raise ValidationError(f"price_tiers must be between 1 and 4, got {invalid}")
    return tiers or list(ALL_PRICE_TIERS)


def _require_user(user_id: Optional[str]) -> str:
    if not user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header is required")
    return user_id


def _require_self(user_id: str, caller: Optional[str]) -> None:
    if _require_user(caller) != user_id:
        raise ForbiddenError("Saved lists are private")


def _require_developer(store: Store, caller: Optional[str]) -> str:
    caller = _require_user(caller)
    if not store.is_developer(caller):
        raise ForbiddenError("Moderation is limited to developers")
    return caller


def _fetch_inventory(store: Store, params: FeedParams, limit: int, include_seed: bool):
    """Push city and price down to the store; categories are matched in memory
    because stored rows use several spellings."""
    tiers = sorted(set(params.price_tiers))
    rows = store.fetch_listings(
        cities=cities_for(params.city) if params.city else None,
        price_tiers=tiers if 0 < len(tiers) < len(ALL_PRICE_TIERS) else None,
        limit=limit,
        include_seed=include_seed,
    )
    return listings_frame(rows)


def _history_for(store: Store, user_id: Optional[str], config: ServiceConfig) -> Optional[SwipeHistory]:
    if not user_id:
        return None
    rows = store.get_swipes(user_id, limit=config.swipes.max_history)
    return SwipeHistory.from_rows(rows, config.swipes)


def _with_event(item: Dict[str, Any], now: datetime) -> Dict[str, Any]:
    item["event"] = event_summary(item, now)
    return item


def _get_listing_or_404(store: Store, listing_id: str) -> Dict[str, Any]:
    row = store.get_listing(listing_id)
    if row is None:
        raise NotFoundError(f"Listing '{listing_id}' not found")
    return row


def _get_favorite_or_404(store: Store, favorite_id: str, caller: Optional[str]) -> Dict[str, Any]:
    favorite = store.get_local_favorite(favorite_id)
    # Unapproved submissions are hidden from everyone but their owner and developers
    if favorite is None or not can_view(favorite, caller, store.is_developer(caller)):
        raise NotFoundError(f"Favorite '{favorite_id}' not found")
    return favorite


@app.get("/", response_model=Dict[str, str])
async def root():
    """Root endpoint."""
    return {
        "message": "Swipely Discovery API",
        "version": "1.0.0",
        "docs": "/docs",
    }


@app.get("/health", response_model=HealthResponse)
def health_check(store: Store = Depends(get_store)):
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=_now().isoformat(),
        backend="supabase" if isinstance(store, SupabaseService) else "local",
    )


# ==================== FEED ====================

@app.get("/feed", response_model=FeedResponse)
def get_feed(
    lat: float = Query(DEFAULT_CENTER[0], ge=-90, le=90),
    lng: float = Query(DEFAULT_CENTER[1], ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0, description="Defaults to the feed radius"),
    categories: Optional[str] = Query(None, description="Comma-separated categories"),
    price_tiers: Optional[str] = Query(None, description="Comma-separated tiers 1-4"),
    exclude_ids: Optional[str] = Query(None, description="Comma-separated listing ids"),
    page: int = Query(0, ge=0),
    page_size: Optional[int] = Query(None, ge=1, le=100),
    show_new_this_week: bool = False,
    show_open_now: bool = False,
    city: Optional[str] = None,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """
    Get one page of the swipe feed.

    Listings are filtered by distance, category, price tier, excluded ids and
    the quick toggles, then ranked: featured first, then the caller's
    recommendation score, then distance, then title.
    """
    params = FeedParams(
        lat=lat,
        lng=lng,
        radius_km=radius_km if radius_km is not None else config.feed.radius_km,
        categories=_split_csv(categories),
        price_tiers=_parse_price_tiers(price_tiers),
        exclude_ids=_split_csv(exclude_ids),
        page=page,
        page_size=min(page_size or config.feed.page_size, config.feed.max_page_size),
        show_new_this_week=show_new_this_week,
        show_open_now=show_open_now,
        city=city,
        user_id=user_id,
    )
    now = _now()
    inventory = _fetch_inventory(
        store, params, config.feed.feed_fetch_limit, config.feed.include_seed_listings
    )
    feed = build_feed(inventory, params, _history_for(store, user_id, config), now)
    items = [_with_event(item, now) for item in feed.items]
    return FeedResponse(
        items=items,
        total=feed.total,
        page=params.page,
        page_size=params.page_size,
        has_more=(params.page + 1) * params.page_size < feed.total,
        timestamp=now.isoformat(),
    )


@app.get("/cities/{city}/listings", response_model=CityListingsResponse)
def get_city_listings(
    city: str,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    distance_km: Optional[float] = Query(None, gt=0),
    categories: Optional[str] = None,
    price_tiers: Optional[str] = None,
    exclude_ids: Optional[str] = None,
    show_new_this_week: bool = False,
    show_open_now: bool = False,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """
    Get every listing of a city (metro areas expand to their member cities),
    filtered and ranked in one go.

    The distance filter only applies when the caller's position is known.
    """
    has_point = lat is not None and lng is not None
    params = FeedParams(
        lat=lat if has_point else DEFAULT_CENTER[0],
        lng=lng if has_point else DEFAULT_CENTER[1],
        radius_km=(distance_km or config.filters.distance_km) if has_point else None,
        categories=_split_csv(categories),
        price_tiers=_parse_price_tiers(price_tiers),
        exclude_ids=_split_csv(exclude_ids),
        show_new_this_week=show_new_this_week,
        show_open_now=show_open_now,
        city=city,
        user_id=user_id,
    )
    now = _now()
    inventory = _fetch_inventory(
        store, params, config.feed.city_fetch_limit, config.feed.include_seed_listings
    )
    result = filter_city_listings(inventory, params, _history_for(store, user_id, config), now)
    items = [_with_event(item, now) for item in result.items]
    if not has_point:
        for item in items:
            item["distance_km"] = None
    return CityListingsResponse(city=city, items=items, total=result.total, timestamp=now.isoformat())


@app.get("/listings/{listing_id}", response_model=ListingOut)
def get_listing(listing_id: str, store: Store = Depends(get_store)):
    """Get a single published listing."""
    listing = listing_from_row(_get_listing_or_404(store, listing_id))
    return _with_event(listing, _now())


@app.get("/listings/{listing_id}/calendar-link", response_model=Dict[str, str])
def get_calendar_link(listing_id: str, store: Store = Depends(get_store)):
    """Google Calendar link for an event listing."""
    listing = listing_from_row(_get_listing_or_404(store, listing_id))
    return {"listing_id": listing["id"], "url": calendar_url_for_listing(listing)}


@app.get("/search", response_model=List[ListingOut])
def search(
    q: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """Search published listings by text."""
    rows = store.search_listings(q, limit=limit or config.feed.search_limit)
    now = _now()
    return [_with_event(listing_from_row(row), now) for row in rows]


# ==================== SWIPES ====================

@app.post("/swipes", response_model=Dict[str, Any], status_code=201)
def record_swipe(
    request: SwipeRequest,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Record a swipe; right swipes feed the caller's recommendation score."""
    caller = _require_user(user_id)
    if request.direction not in DIRECTIONS:
        raise ValidationError(f"direction must be one of {DIRECTIONS}")
    _get_listing_or_404(store, request.listing_id)
    row = store.record_swipe(caller, request.listing_id, request.direction)
    LOGGER.debug("User %s swiped %s on %s", caller, request.direction, request.listing_id)
    return {"recorded": True, "swipe": row}


@app.get("/users/{user_id}/recommendation-profile", response_model=Dict[str, Any])
def get_recommendation_profile(
    user_id: str,
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """Summary of what a user has been swiping right on."""
    history = _history_for(store, user_id, config)
    profile = history.profile()
    return {
        "user_id": user_id,
        "total_swipes": profile["total_swipes"],
        "recent_likes": profile["recent_likes"],
        "top_categories": [
            {"category": category, "count": count} for category, count in profile["top_categories"]
        ],
        "top_tags": [{"tag": tag, "count": count} for tag, count in profile["top_tags"]],
        "trending_listing_ids": profile["trending_listing_ids"],
    }


# ==================== UPVOTES ====================

@app.post("/listings/{listing_id}/upvote", response_model=Dict[str, Any])
def upvote_listing(
    listing_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Upvote a listing; upvoting twice is a no-op."""
    caller = _require_user(user_id)
    _get_listing_or_404(store, listing_id)
    created = store.add_upvote(caller, listing_id)
    return {
        "listing_id": listing_id,
        "upvoted": True,
        "created": created,
        "upvote_count": len(store.get_upvotes(listing_id=listing_id)),
    }


@app.delete("/listings/{listing_id}/upvote", response_model=Dict[str, Any])
def remove_upvote(
    listing_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Remove an upvote; removing a missing upvote is a no-op."""
    caller = _require_user(user_id)
    removed = store.remove_upvote(caller, listing_id)
    return {
        "listing_id": listing_id,
        "upvoted": False,
        "removed": removed,
        "upvote_count": len(store.get_upvotes(listing_id=listing_id)),
    }


@app.get("/trending", response_model=List[Dict[str, Any]])
def get_trending(
    city: Optional[str] = None,
    days: int = Query(30, ge=1, le=365),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """
    Most upvoted listings over the last ``days`` days; upvotes from the last
    week count three times.
    """
    now = _now()
    since = (now - timedelta(days=days)).isoformat()
    settings = TrendingSettings(
        days_window=days,
        recent_days=config.trending.recent_days,
        recent_weight=config.trending.recent_weight,
        max_results=config.trending.max_results,
    )
    ranked = trending_records(rank_trending(store.get_upvotes(since=since), city, now, settings))
    for entry in ranked:
        row = store.get_listing(entry["listing_id"])
        entry["listing"] = listing_from_row(row) if row else None
    return ranked


# ==================== SAVED LISTS ====================

@app.get("/users/{user_id}/saves", response_model=Dict[str, Any])
def get_saves(
    user_id: str,
    list_name: Optional[str] = None,
    caller: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """A user's saved listings, newest first, optionally from one list."""
    _require_self(user_id, caller)
    items = saved_items(store.get_saves(user_id))
    if list_name:
        items = [item for item in items if item["list_name"] == list_name]
    return {"user_id": user_id, "total": len(items), "items": items}


@app.get("/users/{user_id}/saves/lists", response_model=Dict[str, Any])
def get_saved_lists(
    user_id: str,
    caller: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """A user's saved listings grouped by list name."""
    _require_self(user_id, caller)
    return {"user_id": user_id, "lists": group_by_list(saved_items(store.get_saves(user_id)))}


@app.post("/users/{user_id}/saves/{listing_id}", response_model=Dict[str, Any], status_code=201)
def save_listing(
    user_id: str,
    listing_id: str,
    request: Optional[SaveRequest] = None,
    caller: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Save a listing; saving it again moves it to the given list."""
    _require_self(user_id, caller)
    listing = _get_listing_or_404(store, listing_id)
    list_name = list_name_or_default(request.list_name if request else None)
    row = store.save_listing(user_id, listing_id, list_name)
    return saved_item_from_row({**row, "listing": listing})


@app.delete("/users/{user_id}/saves/{listing_id}", response_model=Dict[str, Any])
def unsave_listing(
    user_id: str,
    listing_id: str,
    caller: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    _require_self(user_id, caller)
    return {"listing_id": listing_id, "removed": store.unsave_listing(user_id, listing_id)}


# ==================== LOCALS FAVORITES ====================

@app.get("/locals-favorites", response_model=List[FavoriteOut])
def list_local_favorites(
    status: Optional[str] = None,
    category: Optional[str] = None,
    city: Optional[str] = None,
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    radius_km: Optional[float] = Query(None, gt=0),
    sort_by: str = Query("newest", description=f"One of {', '.join(SORT_OPTIONS)}"),
    mine: bool = False,
    limit: Optional[int] = Query(None, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """
    Browse locals' favorites.

    Everyone sees approved favorites; submitters also see their own in any
    status and developers see everything.
    """
    if mine:
        _require_user(user_id)
    is_developer = store.is_developer(user_id)
    rows = store.get_local_favorites(status=status, user_id=user_id if mine else None)
    visible = [row for row in rows if can_view(row, user_id, is_developer)]
    if status is None and not mine:
        visible = [row for row in visible if row.get("status") == "approved"]
    return query_favorites(
        visible,
        status=status,
        category=category,
        city=city,
        lat=lat,
        lng=lng,
        radius_km=radius_km,
        sort_by=sort_by,
        limit=limit or config.moderation.default_page_size,
        offset=offset,
    )


@app.post("/locals-favorites", response_model=FavoriteOut, status_code=201)
def submit_local_favorite(
    submission: FavoriteSubmission,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Submit a hidden gem; it stays pending until a developer approves it."""
    caller = _require_user(user_id)
    row = new_favorite(caller, submission.model_dump(), _now())
    created = store.create_local_favorite(row)
    LOGGER.info("User %s submitted favorite %s", caller, created["id"])
    return created


@app.get("/locals-favorites/{favorite_id}", response_model=FavoriteOut)
def get_local_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _get_favorite_or_404(store, favorite_id, user_id)


@app.patch("/locals-favorites/{favorite_id}", response_model=FavoriteOut)
def update_local_favorite(
    favorite_id: str,
    changes: FavoriteUpdate,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Edit a pending submission (owner only)."""
    caller = _require_user(user_id)
    favorite = _get_favorite_or_404(store, favorite_id, caller)
    updates = edit_favorite(favorite, caller, changes.model_dump(exclude_unset=True), _now())
    return store.update_local_favorite(favorite_id, **updates)


@app.delete("/locals-favorites/{favorite_id}", response_model=Dict[str, Any])
def delete_local_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Withdraw a submission (owner only, any status)."""
    caller = _require_user(user_id)
    favorite = _get_favorite_or_404(store, favorite_id, caller)
    ensure_can_delete(favorite, caller)
    return {"favorite_id": favorite_id, "deleted": store.delete_local_favorite(favorite_id)}


def _react(store: Store, favorite_id: str, reaction: str, user_id: Optional[str], add: bool) -> Dict[str, Any]:
    caller = _require_user(user_id)
    kind = FAVORITE_REACTION_ROUTES[reaction]
    favorite = _get_favorite_or_404(store, favorite_id, caller)
    if add:
        if favorite.get("status") != "approved":
            raise ForbiddenError("Only approved favorites can be liked or saved")
        changed = store.add_favorite_reaction(kind, caller, favorite_id)
    else:
        changed = store.remove_favorite_reaction(kind, caller, favorite_id)
    favorite = store.get_local_favorite(favorite_id) or favorite
    return {
        "favorite_id": favorite_id,
        reaction: add,
        "changed": changed,
        "likes_count": int(favorite.get("likes_count") or 0),
        "saves_count": int(favorite.get("saves_count") or 0),
    }


@app.post("/locals-favorites/{favorite_id}/like", response_model=Dict[str, Any])
def like_local_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _react(store, favorite_id, "like", user_id, add=True)


@app.delete("/locals-favorites/{favorite_id}/like", response_model=Dict[str, Any])
def unlike_local_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _react(store, favorite_id, "like", user_id, add=False)


@app.post("/locals-favorites/{favorite_id}/save", response_model=Dict[str, Any])
def save_local_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _react(store, favorite_id, "save", user_id, add=True)


@app.delete("/locals-favorites/{favorite_id}/save", response_model=Dict[str, Any])
def unsave_local_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _react(store, favorite_id, "save", user_id, add=False)


# ==================== MODERATION ====================

@app.get("/moderation/pending", response_model=List[FavoriteOut])
def get_pending_favorites(
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """Pending submissions, newest first (developers only)."""
    _require_developer(store, user_id)
    limit = config.moderation.pending_queue_limit
    return pending_queue(store.get_local_favorites(status="pending", limit=limit), limit=limit)


def _moderate(store: Store, favorite_id: str, action: str, user_id: Optional[str],
              reason: Optional[str] = None) -> Dict[str, Any]:
    moderator = _require_developer(store, user_id)
    favorite = store.get_local_favorite(favorite_id)
    if favorite is None:
        raise NotFoundError(f"Favorite '{favorite_id}' not found")
    updates = moderate(favorite, action, moderator, reason, _now())
    return store.update_local_favorite(favorite_id, **updates)


@app.post("/moderation/{favorite_id}/approve", response_model=FavoriteOut)
def approve_favorite(
    favorite_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _moderate(store, favorite_id, "approve", user_id)


@app.post("/moderation/{favorite_id}/reject", response_model=FavoriteOut)
def reject_favorite(
    favorite_id: str,
    request: Optional[ModerationRequest] = None,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _moderate(store, favorite_id, "reject", user_id, request.reason if request else None)


# ==================== BUSINESSES ====================

def _require_business(store: Store, user_id: Optional[str]) -> Dict[str, Any]:
    profile = store.get_business_profile(_require_user(user_id))
    if profile is None:
        raise ForbiddenError("Create a business profile first")
    return profile


@app.post("/business/profile", response_model=BusinessProfileOut, status_code=201)
def create_business_profile(
    request: BusinessProfileRequest,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Create the caller's business profile; each user can have one."""
    caller = _require_user(user_id)
    created = store.create_business_profile(new_profile(caller, request.model_dump(), _now()))
    if created is None:
        raise ConflictError("You already have a business profile.")
    LOGGER.info("User %s created business profile %s", caller, created["id"])
    return created


@app.get("/business/profile", response_model=BusinessProfileOut)
def get_business_profile(
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    profile = store.get_business_profile(_require_user(user_id))
    if profile is None:
        raise NotFoundError("No business profile found")
    return profile


@app.post("/business/listings", response_model=PendingListingOut, status_code=201)
def submit_business_listing(
    submission: BusinessListingSubmission,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Submit a listing for review; it is published once a developer approves it."""
    profile = _require_business(store, user_id)
    created = store.create_pending_listing(new_pending_listing(profile, submission.model_dump(), _now()))
    LOGGER.info("Business %s submitted listing %s", profile["id"], created["id"])
    return created


@app.get("/business/listings", response_model=Dict[str, Any])
def get_business_listings(
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """The caller's published listings and the submissions still under review."""
    profile = _require_business(store, user_id)
    published = [listing_from_row(row) for row in store.get_listings_by_source(business_source(profile))]
    return {
        "published": published,
        "submissions": store.get_pending_listings(business_id=profile["id"]),
    }


def _promote(store: Store, listing_id: str, user_id: Optional[str], featured: bool) -> Dict[str, Any]:
    profile = _require_business(store, user_id)
    listing = _get_listing_or_404(store, listing_id)
    store.update_listing(listing_id, **promotion_update(profile, listing, featured))
    return listing_from_row(_get_listing_or_404(store, listing_id))


@app.post("/business/listings/{listing_id}/promote", response_model=ListingOut)
def promote_listing(
    listing_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Feature one of the caller's listings so it ranks ahead of the rest of the feed."""
    return _promote(store, listing_id, user_id, featured=True)


@app.delete("/business/listings/{listing_id}/promote", response_model=ListingOut)
def unpromote_listing(
    listing_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _promote(store, listing_id, user_id, featured=False)


@app.get("/moderation/listings/pending", response_model=List[PendingListingOut])
def get_pending_business_listings(
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
    config: ServiceConfig = Depends(get_config),
):
    """Business listing submissions waiting for review (developers only)."""
    _require_developer(store, user_id)
    limit = config.moderation.pending_queue_limit
    return review_queue(store.get_pending_listings(status="pending", limit=limit), limit=limit)


def _review(store: Store, pending_id: str, action: str, user_id: Optional[str],
            reason: Optional[str] = None) -> Dict[str, Any]:
    reviewer = _require_developer(store, user_id)
    pending = store.get_pending_listing(pending_id)
    if pending is None:
        raise NotFoundError(f"Listing submission '{pending_id}' not found")
    now = _now()
    updates = review_listing(pending, action, reviewer, reason, now)
    if action == "approve":
        listing = store.create_listing(listing_from_pending(pending, now))
        updates["listing_id"] = str(listing["id"])
    return store.update_pending_listing(pending_id, **updates)


@app.post("/moderation/listings/{pending_id}/approve", response_model=PendingListingOut)
def approve_business_listing(
    pending_id: str,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    """Approve a submission and publish it as a listing."""
    return _review(store, pending_id, "approve", user_id)


@app.post("/moderation/listings/{pending_id}/reject", response_model=PendingListingOut)
def reject_business_listing(
    pending_id: str,
    request: Optional[ModerationRequest] = None,
    user_id: Optional[str] = Header(None, alias="X-User-Id"),
    store: Store = Depends(get_store),
):
    return _review(store, pending_id, "reject", user_id, request.reason if request else None)
