import json
from pathlib import Path

from swipely.discovery.categories import cities_for
from swipely.local_store import LocalStore, load_seed_listings


def test_fetch_listings_newest_first(store):
    ids = [row["id"] for row in store.fetch_listings()]
    assert ids[:3] == ["a3", "a1", "a2"]
    assert ids[-1] == "a5"


def test_fetch_listings_filters(store):
    assert [r["id"] for r in store.fetch_listings(cities=["San Francisco"])] == ["sf1"]
    assert {r["id"] for r in store.fetch_listings(price_tiers=[3])} == {"a3", "a4", "sf1"}
    assert len(store.fetch_listings(limit=2)) == 2


def test_unpublished_listings_are_hidden():
    store = LocalStore([{"id": "x", "title": "Draft", "is_published": False}])
    assert store.get_listing("x") is None
    assert store.fetch_listings() == []


def test_search_listings(store):
    assert [r["id"] for r in store.search_listings("tacos bravo")] == []
    assert [r["id"] for r in store.search_listings("bravo")] == ["a2"]
    assert [r["id"] for r in store.search_listings("museum")] == ["a5"]
    assert [r["id"] for r in store.search_listings("Nightlife")] == ["a4"]


def test_swipes_carry_listing_category_and_tags(store):
    store.record_swipe("u1", "a2", "right")
    swipes = store.get_swipes("u1")
    assert swipes[0]["category"] == "restaurants"
    assert swipes[0]["tags"] == ["tacos", "outdoor"]
    assert store.get_swipes("u2") == []


def test_save_is_idempotent_and_moves_lists(store):
    first = store.save_listing("u1", "a1", "default")
    second = store.save_listing("u1", "a1", "weekend")

    assert first["id"] == second["id"]
    saves = store.get_saves("u1")
    assert len(saves) == 1
    assert saves[0]["list_name"] == "weekend"
    assert saves[0]["listing"]["id"] == "a1"
    assert store.unsave_listing("u1", "a1") is True
    assert store.unsave_listing("u1", "a1") is False


def test_one_upvote_per_user(store):
    assert store.add_upvote("u1", "a1") is True
    assert store.add_upvote("u1", "a1") is False
    assert store.add_upvote("u2", "a1") is True

    upvotes = store.get_upvotes(listing_id="a1")
    assert len(upvotes) == 2
    assert upvotes[0]["city"] == "Austin"
    assert store.remove_upvote("u1", "a1") is True
    assert store.remove_upvote("u1", "a1") is False


def test_favorite_reaction_counts(store):
    favorite = store.create_local_favorite({"name": "Gem", "likes_count": 0, "saves_count": 0,
                                            "created_at": "2025-10-01T00:00:00+00:00"})
    fid = favorite["id"]

    assert store.add_favorite_reaction("likes", "u1", fid) is True
    assert store.add_favorite_reaction("likes", "u1", fid) is False
    assert store.get_local_favorite(fid)["likes_count"] == 1
    assert store.has_favorite_reaction("likes", "u1", fid)

    assert store.remove_favorite_reaction("likes", "u1", fid) is True
    assert store.remove_favorite_reaction("likes", "u1", fid) is False
    assert store.get_local_favorite(fid)["likes_count"] == 0
    assert store.add_favorite_reaction("saves", "u1", "missing") is False


def test_developers(store):
    assert store.is_developer("dev")
    assert not store.is_developer("u1")
    assert not store.is_developer(None)


def test_load_seed_listings(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps([{"id": "s1", "title": "Seed"}]), encoding="utf-8")

    assert load_seed_listings(path) == [{"id": "s1", "title": "Seed"}]
    assert load_seed_listings(tmp_path / "missing.json") == []


def test_bundled_seed_file_has_metro_cities():
    rows = load_seed_listings(Path(__file__).parent.parent / "data" / "seed_listings.json")
    cities = {row["city"] for row in rows}
    assert "Austin" in cities
    assert cities & set(cities_for("Northern Virginia"))
    assert cities & set(cities_for("San Francisco"))


def test_one_business_profile_per_user(store):
    first = store.create_business_profile({"user_id": "owner", "business_name": "Zulu"})
    assert store.create_business_profile({"user_id": "owner", "business_name": "Zulu Two"}) is None
    assert store.get_business_profile("owner")["id"] == first["id"]
    assert store.get_business_profile("someone") is None


def test_business_listings_by_source(store):
    store.create_listing({"id": "b1", "title": "Zulu Bakery", "source": "business-x",
                          "created_at": "2025-10-01T00:00:00+00:00"})
    store.update_listing("b1", is_featured=True)

    assert [r["id"] for r in store.get_listings_by_source("business-x")] == ["b1"]
    assert store.get_listing("b1")["is_featured"] is True
    assert store.update_listing("missing", is_featured=True) is None
