import pytest

from swipely.discovery.categories import (
    CATEGORY_SYNONYMS,
    cities_for,
    city_matches,
    normalize_categories,
    normalize_category,
)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("coffee", "coffee"),
        ("Coffee", "coffee"),
        ("cafe", "coffee"),
        ("Coffee Shops", "coffee"),
        ("Arts & Culture", "arts-culture"),
        ("arts and culture", "arts-culture"),
        ("Relax and recharge", "relax-recharge"),
        ("restaurants", "food"),
        ("bars", "nightlife"),
        ("Live Music", "live-music"),
        ("museums", "museum"),
        ("Bowling", "Bowling"),  # unknown categories pass through
        ("", None),
        (None, None),
    ],
)
def test_normalize_category(value, expected):
    assert normalize_category(value) == expected


def test_every_canonical_slug_maps_to_itself():
    for slug in CATEGORY_SYNONYMS:
        assert normalize_category(slug) == slug


def test_normalize_categories_dedupes_and_keeps_order():
    assert normalize_categories(["cafe", "food", "Coffee", "restaurants", ""]) == ["coffee", "food"]


def test_cities_for_expands_metro_areas():
    nova = cities_for("Northern Virginia")
    assert "Reston" in nova
    assert "Washington" in nova
    assert nova[0] == "Northern Virginia"
    assert len(nova) == len(set(nova))


def test_cities_for_plain_city():
    assert cities_for("Austin") == ["Austin"]


def test_city_matches_is_case_insensitive_containment():
    assert city_matches("Austin, TX", "austin")
    assert not city_matches("Round Rock", "Austin")
    assert not city_matches(None, "Austin")
