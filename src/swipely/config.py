from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


DEFAULT_CENTER = (30.2672, -97.7431)  # Austin, TX

NEW_THIS_WEEK_DAYS = 7
ALL_PRICE_TIERS = (1, 2, 3, 4)


@dataclass
class FilterDefaults:
    """Filter values a fresh user starts with."""

    categories: List[str] = field(default_factory=list)
    price_tiers: List[int] = field(default_factory=lambda: list(ALL_PRICE_TIERS))
    distance_km: float = 50.0
    show_new_this_week: bool = False
    show_open_now: bool = False


@dataclass
class FeedSettings:
    """Limits used when pulling listings and paging the feed."""

    radius_km: float = 15.0
    page_size: int = 20
    max_page_size: int = 100
    feed_fetch_limit: int = 300
    city_fetch_limit: int = 3000
    search_limit: int = 20
    include_seed_listings: bool = True


@dataclass
class SwipeSettings:
    max_history: int = 200
    scoring_window: int = 50
    category_points: float = 10.0
    tag_points: float = 5.0
    trending_min_likes: int = 3


@dataclass
class TrendingSettings:
    """Upvote weighting: recent upvotes count more than older ones."""

    days_window: int = 30
    recent_days: int = 7
    recent_weight: int = 3
    max_results: int = 50


@dataclass
class ModerationSettings:
    pending_queue_limit: int = 100
    default_page_size: int = 50


@dataclass
class SupabaseSettings:
    url: Optional[str] = None
    key: Optional[str] = None

    @classmethod
    def from_env(cls) -> "SupabaseSettings":
        # Service role key gives full access; anon key is enough for reads
        key = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or os.getenv("SUPABASE_ANON_KEY")
        return cls(url=os.getenv("SUPABASE_URL"), key=key)

    @property
    def configured(self) -> bool:
        return bool(self.url and self.key)


@dataclass
class ServerSettings:
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False
    log_level: str = "info"

    @classmethod
    def from_env(cls) -> "ServerSettings":
        return cls(
            host=os.getenv("SWIPELY_HOST", cls.host),
            port=int(os.getenv("SWIPELY_PORT", cls.port)),
            reload=os.getenv("SWIPELY_RELOAD", "").lower() in ("1", "true", "yes"),
            log_level=os.getenv("SWIPELY_LOG_LEVEL", cls.log_level).lower(),
        )


@dataclass
class ServiceConfig:
    seed_listings_path: Path = Path(
        os.getenv("SWIPELY_SEED_LISTINGS", "data/seed_listings.json")
    )
    # Developer accounts for the in-memory store; Supabase keeps its own table
    developer_ids: List[str] = field(
        default_factory=lambda: [
            uid.strip() for uid in os.getenv("SWIPELY_DEVELOPER_IDS", "").split(",") if uid.strip()
        ]
    )
    feed: FeedSettings = field(default_factory=FeedSettings)
    filters: FilterDefaults = field(default_factory=FilterDefaults)
    swipes: SwipeSettings = field(default_factory=SwipeSettings)
    trending: TrendingSettings = field(default_factory=TrendingSettings)
    moderation: ModerationSettings = field(default_factory=ModerationSettings)
    supabase: SupabaseSettings = field(default_factory=SupabaseSettings.from_env)
