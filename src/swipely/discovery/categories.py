"""Category synonyms and metro-area city groupings."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional


CATEGORY_SYNONYMS: Dict[str, List[str]] = {
    "arts-culture": ["arts-culture", "arts and culture", "Arts & Culture"],
    "live-music": ["live-music", "live music", "Live Music"],
    "games-entertainment": ["games-entertainment", "games and entertainment", "Games & Entertainment"],
    "relax-recharge": ["relax-recharge", "relax and recharge", "Relax & Recharge", "Relax and recharge"],
    "sports-recreation": ["sports-recreation", "sports and recreation", "Sports & Recreation"],
    "drinks-bars": ["drinks-bars", "drinks and bars", "Drinks & Bars"],
    "pet-friendly": ["pet-friendly", "pet friendly", "Pet-Friendly"],
    "road-trip-getaways": ["road-trip-getaways", "road trip getaways", "Road Trip Getaways"],
    "festivals-pop-ups": ["festivals-pop-ups", "festivals & pop-ups", "Festivals & Pop-Ups", "festivals and pop ups"],
    "fitness-classes": ["fitness-classes", "fitness classes", "Fitness & Classes"],
    "museum": ["museum", "museums"],
    "coffee": ["coffee", "cafe", "coffee shops"],
    "food": ["food", "restaurants"],
    "outdoors": ["outdoors", "parks"],
    "nightlife": ["nightlife", "bars"],
    "shopping": ["shopping", "shops"],
}

# Selecting none or every one of these means "no category filter"
TOTAL_CATEGORIES = 18

_SYNONYM_LOOKUP: Dict[str, str] = {
    spelling.lower(): canonical
    for canonical, spellings in CATEGORY_SYNONYMS.items()
    for spelling in spellings
}


def normalize_category(value: Optional[str]) -> Optional[str]:
    """Map any accepted spelling onto its canonical slug.

    Unknown categories are returned unchanged so that new values coming from
    imports still show up in the feed.
    """
    if not value:
        return None
    lower = value.lower()
    if lower in CATEGORY_SYNONYMS:
        return lower
    return _SYNONYM_LOOKUP.get(lower, value)


def normalize_categories(values: Iterable[str]) -> List[str]:
    normalized = []
    for value in values:
        canonical = normalize_category(value)
        if canonical and canonical not in normalized:
            normalized.append(canonical)
    return normalized


METRO_AREA_CITIES: Dict[str, List[str]] = {
    "Northern Virginia": [
        "Northern Virginia", "Fairfax", "Arlington", "Alexandria", "Reston", "Vienna",
        "Falls Church", "McLean", "Tysons", "Annandale", "Springfield", "Centreville",
        "Herndon", "Chantilly", "Great Falls", "Clifton", "Fairfax Station",
        "Occoquan Historic District", "Manassas", "Ashburn", "Leesburg", "Sterling",
        "Burke", "Lorton", "Mount Vernon", "Oakton", "Dunn Loring", "Merrifield",
        "Woodbridge", "Dale City", "Lake Ridge", "Gainesville", "Haymarket",
        # DC area
        "Washington", "Washington, DC", "District of Columbia",
        # Maryland areas near NV
        "Frederick, MD", "Solomons", "Silver Spring", "National Harbor", "Bethesda",
        "Middleburg", "Waterford", "Fredericksburg", "Stafford", "Prince William",
        "Fairfax County", "Franconia", "Lincolnia", "Dulles", "Dumfries", "Fort Belvoir",
        "Gaithersburg", "Kensington", "Darnestown", "Accokeek", "Aldie", "Annapolis",
        "Ashton-Sandy Spring", "Bluemont", "Delaplane", "Dickerson", "Easton", "Frederick",
        "Georgetown", "Harpers Ferry", "Laurel",
    ],
    "San Francisco": [
        "San Francisco", "Berkeley", "Oakland", "Alameda", "Emeryville", "Brisbane",
        "Daly City", "Colma", "Burlingame", "Half Moon Bay", "Bolinas", "Guerneville",
        "Healdsburg", "Bodega Bay", "Castro Valley", "El Cerrito", "Fremont", "Concord",
        "Albany", "Brentwood", "Dublin", "Inverness", "Belmont Park",
    ],
}


def cities_for(city: str) -> List[str]:
    """Expand a metro area into its member cities; other cities stand alone."""
    members = METRO_AREA_CITIES.get(city)
    if not members:
        return [city]
    return list(dict.fromkeys(members))


def city_matches(listing_city: Optional[str], city: str) -> bool:
    if not listing_city or not city:
        return False
    return city.lower() in listing_city.lower()
