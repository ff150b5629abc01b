from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

import pandas as pd

from .categories import normalize_category


LISTING_COLUMNS: List[str] = [
    "id",
    "title",
    "subtitle",
    "description",
    "category",
    "price_tier",
    "latitude",
    "longitude",
    "city",
    "images",
    "tags",
    "hours",
    "phone",
    "website",
    "is_featured",
    "is_published",
    "source",
    "created_at",
    "event_start_date",
    "event_end_date",
]


def _photo_urls(photos: Any) -> List[str]:
    if not photos:
        return []
    ordered = sorted(photos, key=lambda p: p.get("sort_order") or 0)
    return [p["url"] for p in ordered if p.get("url")]


def _tag_names(raw: Any) -> List[str]:
    # Accepts plain names or the nested listing_tags(tags(name)) join
    if not raw:
        return []
    names = []
    for item in raw:
        if isinstance(item, str):
            names.append(item)
        elif isinstance(item, Mapping):
            tag = item.get("tags") or item
            if isinstance(tag, Mapping) and tag.get("name"):
                names.append(tag["name"])
    return names


def listing_from_row(row: Mapping[str, Any]) -> Dict[str, Any]:
    """Flatten a stored listing row into the shape the feed works with."""
    listing = {col: row.get(col) for col in LISTING_COLUMNS}
    if "listing_photos" in row:
        listing["images"] = _photo_urls(row.get("listing_photos"))
    else:
        listing["images"] = list(row.get("images") or [])
    if "listing_tags" in row:
        listing["tags"] = _tag_names(row.get("listing_tags"))
    else:
        listing["tags"] = _tag_names(row.get("tags"))
    listing["id"] = str(row["id"])
    listing["title"] = row.get("title") or ""
    listing["category"] = normalize_category(row.get("category")) or row.get("category")
    listing["is_featured"] = bool(row.get("is_featured") or False)
    is_published = row.get("is_published")
    listing["is_published"] = True if is_published is None else bool(is_published)
    return listing


def listings_frame(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Build the listing inventory frame; columns are fixed even with no rows."""
    records = [listing_from_row(row) for row in rows]
    df = pd.DataFrame(records, columns=LISTING_COLUMNS)
    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
    df["price_tier"] = pd.to_numeric(df["price_tier"], errors="coerce")
    return df


def frame_to_records(frame: pd.DataFrame) -> List[Dict[str, Any]]:
    """Convert a listing frame to JSON-safe dicts (NaN becomes None)."""
    if frame.empty:
        return []
    cleaned = frame.astype(object).where(frame.notna(), None)
    records = cleaned.to_dict(orient="records")
    for record in records:
        tier = record.get("price_tier")
        if tier is not None:
            record["price_tier"] = int(tier)
    return records
