"""
Swipe feed: filter the listing inventory for a point and a filter set, rank
it, and cut one page out of it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..config import ALL_PRICE_TIERS, DEFAULT_CENTER, NEW_THIS_WEEK_DAYS
from .categories import TOTAL_CATEGORIES, cities_for, normalize_categories, normalize_category
from .geo import calculate_distances
from .listings import frame_to_records
from .swipe_history import SwipeHistory
from .timeutils import as_utc, parse_timestamps

LOGGER = logging.getLogger(__name__)


@dataclass
class FeedParams:
    """Parameters for one feed request."""

    lat: float = DEFAULT_CENTER[0]
    lng: float = DEFAULT_CENTER[1]
    radius_km: Optional[float] = 15.0
    categories: List[str] = field(default_factory=list)
    price_tiers: List[int] = field(default_factory=lambda: list(ALL_PRICE_TIERS))
    exclude_ids: List[str] = field(default_factory=list)
    page: int = 0
    page_size: int = 20
    show_new_this_week: bool = False
    show_open_now: bool = False
    city: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class FeedPage:
    items: List[Dict[str, Any]]
    total: int


def filter_by_city(listings: pd.DataFrame, city: Optional[str]) -> pd.DataFrame:
    if not city:
        return listings
    return listings[listings["city"].isin(cities_for(city))]


def filter_by_radius(listings: pd.DataFrame, radius_km: Optional[float]) -> pd.DataFrame:
    """Keep listings inside the radius; listings without a position always stay."""
    if radius_km is None:
        return listings
    distance = listings["distance_km"]
    return listings[distance.isna() | (distance <= radius_km)]


def filter_by_category(listings: pd.DataFrame, categories: Iterable[str]) -> pd.DataFrame:
    categories = list(categories)
    if not categories or len(categories) >= TOTAL_CATEGORIES:
        return listings
    selected = normalize_categories(categories)
    normalized = listings["category"].map(
        lambda c: normalize_category(c) if isinstance(c, str) else c
    )
    return listings[normalized.isin(selected)]


def filter_by_price_tier(listings: pd.DataFrame, price_tiers: Iterable[int]) -> pd.DataFrame:
    selected = {int(t) for t in price_tiers}
    if not selected or selected.issuperset(ALL_PRICE_TIERS):
        return listings
    tier = listings["price_tier"]
    # Listings without a tier are never hidden by the price filter
    keep = tier.isna() | (tier == 0) | tier.isin(sorted(selected))
    return listings[keep]


def exclude_listings(listings: pd.DataFrame, exclude_ids: Iterable[str]) -> pd.DataFrame:
    excluded = {str(i) for i in exclude_ids}
    if not excluded:
        return listings
    return listings[~listings["id"].astype(str).isin(excluded)]


def filter_new_this_week(listings: pd.DataFrame, now: Optional[datetime] = None) -> pd.DataFrame:
    cutoff = as_utc(now) - pd.Timedelta(days=NEW_THIS_WEEK_DAYS)
    created = parse_timestamps(listings["created_at"])
    return listings[created.notna() & (created > cutoff)]


def filter_open_now(listings: pd.DataFrame) -> pd.DataFrame:
    # Hours are free text; a listing that publishes hours counts as open
    hours = listings["hours"].fillna("").astype(str).str.strip()
    return listings[hours != ""]


def filter_listings(
    listings: pd.DataFrame,
    params: FeedParams,
    now: Optional[datetime] = None,
) -> pd.DataFrame:
    """
    Apply every feed filter and attach ``distance_km``.

    Args:
        listings: Listing inventory (see ``listings_frame``)
        params: Feed parameters
        now: Reference time for the "new this week" filter

    Returns:
        Filtered copy of the inventory with a 'distance_km' column
    """
    result = filter_by_city(listings, params.city).copy()
    result["distance_km"] = calculate_distances(params.lat, params.lng, result)

    before = len(result)
    result = filter_by_radius(result, params.radius_km)
    LOGGER.debug("Distance filter (%s km): %d -> %d", params.radius_km, before, len(result))

    before = len(result)
    result = filter_by_category(result, params.categories)
    LOGGER.debug("Category filter %s: %d -> %d", params.categories, before, len(result))

    result = filter_by_price_tier(result, params.price_tiers)
    result = exclude_listings(result, params.exclude_ids)
    if params.show_new_this_week:
        result = filter_new_this_week(result, now)
    if params.show_open_now:
        result = filter_open_now(result)
    return result


def rank_listings(listings: pd.DataFrame, scores: Optional[pd.Series] = None) -> pd.DataFrame:
    """
    Order listings for the swipe deck.

    Featured listings come first, then higher recommendation scores, then
    listings with a known distance nearest first, then by title. Equal keys
    keep their incoming order.
    """
    df = listings.reset_index(drop=True)
    if scores is not None:
        df["recommendation_score"] = scores.reset_index(drop=True).astype(float)
    elif "recommendation_score" not in df.columns:
        df["recommendation_score"] = 0.0
    if "distance_km" not in df.columns:
        df["distance_km"] = np.nan
    if df.empty:
        return df

    keys = pd.DataFrame(
        {
            "featured": ~df["is_featured"].fillna(False).astype(bool),
            "score": -df["recommendation_score"].fillna(0.0).astype(float),
            "no_distance": df["distance_km"].isna(),
            "distance": df["distance_km"].fillna(0.0).astype(float),
            "title": df["title"].fillna("").astype(str).str.casefold(),
        },
        index=df.index,
    )
    order = keys.sort_values(by=list(keys.columns)).index
    return df.loc[order].reset_index(drop=True)


def paginate(listings: pd.DataFrame, page: int, page_size: int) -> pd.DataFrame:
    start = max(page, 0) * page_size
    return listings.iloc[start: start + page_size]


def _ranked(
    listings: pd.DataFrame,
    params: FeedParams,
    history: Optional[SwipeHistory],
    now: Optional[datetime],
) -> pd.DataFrame:
    filtered = filter_listings(listings, params, now)
    scores = history.score_frame(filtered) if history is not None else None
    return rank_listings(filtered, scores)


def build_feed(
    listings: pd.DataFrame,
    params: Optional[FeedParams] = None,
    history: Optional[SwipeHistory] = None,
    now: Optional[datetime] = None,
) -> FeedPage:
    """
    Build one page of the swipe feed.

    ``total`` is the number of listings that passed the filters, before paging.
    """
    if params is None:
        params = FeedParams()
    ranked = _ranked(listings, params, history, now)
    page = paginate(ranked, params.page, params.page_size)
    LOGGER.info(
        "Feed page %d: returning %d of %d listings (inventory %d)",
        params.page, len(page), len(ranked), len(listings),
    )
    return FeedPage(items=frame_to_records(page), total=len(ranked))


def filter_city_listings(
    listings: pd.DataFrame,
    params: FeedParams,
    history: Optional[SwipeHistory] = None,
    now: Optional[datetime] = None,
) -> FeedPage:
    """Filter a whole city's inventory at once, without paging."""
    ranked = _ranked(listings, params, history, now)
    LOGGER.info("Filtered %d/%d listings for %s", len(ranked), len(listings), params.city)
    return FeedPage(items=frame_to_records(ranked), total=len(ranked))


def search_listings(listings: pd.DataFrame, query: str, limit: int = 20) -> pd.DataFrame:
    """Case-insensitive substring match on title, description and category."""
    needle = query.strip().lower()
    if not needle or listings.empty:
        return listings.iloc[0:0]
    haystacks = [
        listings[col].fillna("").astype(str).str.lower()
        for col in ("title", "description", "category")
    ]
    mask = pd.Series(False, index=listings.index)
    for haystack in haystacks:
        mask |= haystack.str.contains(needle, regex=False)
    return listings[mask].head(limit)
