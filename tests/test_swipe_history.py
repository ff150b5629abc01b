from datetime import datetime, timedelta, timezone

import pytest

from swipely.config import SwipeSettings
from swipely.discovery.swipe_history import SwipeHistory
from swipely.errors import ValidationError


def test_no_likes_scores_zero():
    history = SwipeHistory()
    history.record("x", "left", category="coffee")
    assert history.recommendation_score("coffee", ["wifi"]) == 0.0


def test_invalid_direction_is_rejected():
    with pytest.raises(ValidationError):
        SwipeHistory().record("x", "up")


def test_score_combines_category_share_and_shared_tags():
    history = SwipeHistory()
    history.record("c1", "right", category="cafe", tags=["wifi"])
    history.record("c2", "right", category="coffee")
    history.record("f1", "right", category="food", tags=["patio"])
    history.record("c3", "left", category="coffee", tags=["quiet"])

    # 2 of 3 likes are coffee, and "wifi" was on a liked listing
    score = history.recommendation_score("Coffee", ["wifi", "quiet"])
    assert score == pytest.approx(2 / 3 * 10 + 5)


def test_only_recent_swipes_count():
    history = SwipeHistory()
    history.record("old", "right", category="coffee")
    for i in range(50):
        history.record(f"f{i}", "right", category="food")

    assert len(history) == 51
    assert history.recommendation_score("coffee") == 0.0
    assert history.recommendation_score("food") == 10.0


def test_history_is_capped():
    history = SwipeHistory(settings=SwipeSettings(max_history=200))
    for i in range(205):
        history.record(str(i), "left")
    assert len(history) == 200
    assert history.records[0].listing_id == "204"


def test_trending_ids_need_three_likes():
    history = SwipeHistory()
    for _ in range(3):
        history.record("hot", "right")
    for _ in range(2):
        history.record("warm", "right")
    history.record("cold", "left")

    assert history.trending_listing_ids() == {"hot"}


def test_from_rows_orders_newest_first_and_skips_bad_rows():
    base = datetime(2025, 10, 1, tzinfo=timezone.utc)
    rows = [
        {"listing_id": 1, "direction": "right", "category": "cafe", "tags": ["wifi"],
         "created_at": (base - timedelta(hours=2)).isoformat()},
        {"listing_id": 2, "direction": "left", "category": "food",
         "created_at": base.isoformat()},
        {"listing_id": 3, "direction": "sideways", "created_at": base.isoformat()},
    ]
    history = SwipeHistory.from_rows(rows)

    assert [r.listing_id for r in history.records] == ["2", "1"]
    assert history.records[1].category == "coffee"
    assert history.records[1].tags == ("wifi",)


def test_profile_summarizes_likes():
    history = SwipeHistory()
    history.record("a", "right", category="coffee", tags=["wifi"])
    history.record("b", "right", category="coffee", tags=["wifi", "patio"])
    history.record("c", "left", category="food")

    profile = history.profile()

    assert profile["total_swipes"] == 3
    assert profile["recent_likes"] == 2
    assert profile["top_categories"] == [("coffee", 2)]
    assert profile["top_tags"][0] == ("wifi", 2)
    assert profile["trending_listing_ids"] == []
