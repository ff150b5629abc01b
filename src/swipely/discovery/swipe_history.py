from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set

import pandas as pd

from ..config import SwipeSettings
from ..errors import ValidationError
from .categories import normalize_category

DIRECTIONS = ("left", "right")


@dataclass(frozen=True)
class SwipeRecord:
    listing_id: str
    direction: str
    category: Optional[str]
    tags: tuple = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def liked(self) -> bool:
        return self.direction == "right"


class SwipeHistory:
    """A user's recent swipes, newest first."""

    def __init__(self, records: Iterable[SwipeRecord] = (), settings: Optional[SwipeSettings] = None):
        self.settings = settings or SwipeSettings()
        ordered = sorted(records, key=lambda r: r.timestamp, reverse=True)
        self.records: List[SwipeRecord] = ordered[: self.settings.max_history]

    def __len__(self) -> int:
        return len(self.records)

    def record(
        self,
        listing_id: str,
        direction: str,
        category: Optional[str] = None,
        tags: Iterable[str] = (),
        timestamp: Optional[datetime] = None,
    ) -> SwipeRecord:
        if direction not in DIRECTIONS:
            raise ValidationError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
        record = SwipeRecord(
            listing_id=str(listing_id),
            direction=direction,
            category=normalize_category(category),
            tags=tuple(tags),
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        self.records = [record, *self.records][: self.settings.max_history]
        return record

    def liked(self, window: Optional[int] = None) -> List[SwipeRecord]:
        recent = self.records[: window] if window else self.records
        return [r for r in recent if r.liked]

    def recommendation_score(self, category: Optional[str], tags: Iterable[str] = ()) -> float:
        """Score a listing against what the user swiped right on recently.

        Category share of recent likes earns up to ``category_points``; each
        tag the listing shares with any liked listing earns ``tag_points``.
        """
        liked = self.liked(self.settings.scoring_window)
        if not liked:
            return 0.0
        category = normalize_category(category)
        matches = sum(1 for r in liked if r.category == category)
        score = (matches / len(liked)) * self.settings.category_points
        liked_tags: Set[str] = {t for r in liked for t in r.tags}
        shared = sum(1 for t in tags if t in liked_tags)
        score += shared * self.settings.tag_points
        return score

    def trending_listing_ids(self) -> Set[str]:
        likes = Counter(r.listing_id for r in self.records if r.liked)
        return {lid for lid, count in likes.items() if count >= self.settings.trending_min_likes}

    def score_frame(self, listings: pd.DataFrame) -> pd.Series:
        if listings.empty:
            return pd.Series([], index=listings.index, dtype=float)
        scores = [
            self.recommendation_score(row.category, row.tags or ())
            for row in listings.itertuples()
        ]
        return pd.Series(scores, index=listings.index, dtype=float)

    def profile(self) -> Dict[str, Any]:
        liked = self.liked(self.settings.scoring_window)
        return {
            "total_swipes": len(self.records),
            "recent_likes": len(liked),
            "top_categories": Counter(r.category for r in liked if r.category).most_common(5),
            "top_tags": Counter(t for r in liked for t in r.tags).most_common(10),
            "trending_listing_ids": sorted(self.trending_listing_ids()),
        }

    @classmethod
    def from_rows(
        cls, rows: Iterable[Mapping[str, Any]], settings: Optional[SwipeSettings] = None
    ) -> "SwipeHistory":
        records = []
        for row in rows:
            direction = row.get("direction")
            if direction not in DIRECTIONS:
                continue
            created = row.get("created_at")
            timestamp = (
                pd.to_datetime(created, utc=True).to_pydatetime()
                if created
                else datetime.now(timezone.utc)
            )
            records.append(
                SwipeRecord(
                    listing_id=str(row["listing_id"]),
                    direction=direction,
                    category=normalize_category(row.get("category")),
                    tags=tuple(row.get("tags") or ()),
                    timestamp=timestamp,
                )
            )
        return cls(records, settings)
