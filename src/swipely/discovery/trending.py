"""Upvote counting and recency-weighted trending listings."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from ..config import TrendingSettings
from .categories import city_matches
from .timeutils import as_utc, parse_timestamps

TRENDING_COLUMNS = ["listing_id", "total_upvotes", "recent_upvotes", "weighted_score"]


def adjust_count(count: Optional[int], delta: int) -> int:
    """Apply a +1/-1 change to an engagement counter without going negative."""
    return max(0, int(count or 0) + delta)


def upvote_counts(upvotes: Iterable[Mapping[str, Any]]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for row in upvotes:
        listing_id = str(row["listing_id"])
        counts[listing_id] = counts.get(listing_id, 0) + 1
    return counts


def rank_trending(
    upvotes: Iterable[Mapping[str, Any]],
    city: Optional[str] = None,
    now: Optional[datetime] = None,
    settings: Optional[TrendingSettings] = None,
) -> pd.DataFrame:
    """
    Rank listings by recency-weighted upvotes.

    Args:
        upvotes: Rows with 'listing_id', 'created_at' and the listing's 'city'
        city: Only count upvotes on listings whose city contains this name
        now: Reference time
        settings: Window and weighting parameters

    Returns:
        DataFrame with listing_id, total_upvotes, recent_upvotes and
        weighted_score, best first
    """
    settings = settings or TrendingSettings()
    df = pd.DataFrame(list(upvotes), columns=["listing_id", "user_id", "created_at", "city"])
    if df.empty:
        return pd.DataFrame(columns=TRENDING_COLUMNS)

    if city:
        df = df[df["city"].apply(lambda c: city_matches(c, city)).astype(bool)]

    current = as_utc(now)
    created = parse_timestamps(df["created_at"])
    df = df.assign(created=created)
    df = df[df["created"].notna() & (df["created"] > current - pd.Timedelta(days=settings.days_window))].copy()
    if df.empty:
        return pd.DataFrame(columns=TRENDING_COLUMNS)

    recent_cutoff = current - pd.Timedelta(days=settings.recent_days)
    df["listing_id"] = df["listing_id"].astype(str)
    df["recent"] = (df["created"] > recent_cutoff).astype(int)

    grouped = df.groupby("listing_id").agg(
        total_upvotes=("recent", "size"),
        recent_upvotes=("recent", "sum"),
    )
    older = grouped["total_upvotes"] - grouped["recent_upvotes"]
    grouped["weighted_score"] = grouped["recent_upvotes"] * settings.recent_weight + older
    grouped = grouped.reset_index().sort_values(
        by=["weighted_score", "total_upvotes", "listing_id"],
        ascending=[False, False, True],
    )
    return grouped[TRENDING_COLUMNS].head(settings.max_results).reset_index(drop=True)


def trending_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    return [
        {
            "listing_id": str(row.listing_id),
            "total_upvotes": int(row.total_upvotes),
            "recent_upvotes": int(row.recent_upvotes),
            "weighted_score": int(row.weighted_score),
        }
        for row in frame.itertuples()
    ]
