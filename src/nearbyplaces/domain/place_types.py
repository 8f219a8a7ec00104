"""
Place category vocabulary accepted by nearby searches.

The values mirror the Google Places "supported types" table. Users may write them in any
case (`Cafe`, `CAFE`); requests always carry the lowercase wire form.
"""

from __future__ import annotations

from typing import Any

PLACE_TYPES: frozenset[str] = frozenset(
    {
        "accounting",
        "airport",
        "amusement_park",
        "aquarium",
        "art_gallery",
        "atm",
        "bakery",
        "bank",
        "bar",
        "beauty_salon",
        "bicycle_store",
        "book_store",
        "bowling_alley",
        "bus_station",
        "cafe",
        "campground",
        "car_dealer",
        "car_rental",
        "car_repair",
        "car_wash",
        "casino",
        "cemetery",
        "church",
        "city_hall",
        "clothing_store",
        "convenience_store",
        "courthouse",
        "dentist",
        "department_store",
        "doctor",
        "drugstore",
        "electrician",
        "electronics_store",
        "embassy",
        "fire_station",
        "florist",
        "funeral_home",
        "furniture_store",
        "gas_station",
        "grocery_or_supermarket",
        "gym",
        "hair_care",
        "hardware_store",
        "hindu_temple",
        "home_goods_store",
        "hospital",
        "insurance_agency",
        "jewelry_store",
        "laundry",
        "lawyer",
        "library",
        "light_rail_station",
        "liquor_store",
        "local_government_office",
        "locksmith",
        "lodging",
        "meal_delivery",
        "meal_takeaway",
        "mosque",
        "movie_rental",
        "movie_theater",
        "moving_company",
        "museum",
        "night_club",
        "painter",
        "park",
        "parking",
        "pet_store",
        "pharmacy",
        "physiotherapist",
        "plumber",
        "police",
        "post_office",
        "primary_school",
        "real_estate_agency",
        "restaurant",
        "roofing_contractor",
        "rv_park",
        "school",
        "secondary_school",
        "shoe_store",
        "shopping_mall",
        "spa",
        "stadium",
        "storage",
        "store",
        "subway_station",
        "supermarket",
        "synagogue",
        "taxi_stand",
        "tourist_attraction",
        "train_station",
        "transit_station",
        "travel_agency",
        "university",
        "veterinary_care",
        "zoo",
    }
)

SUPPORTED_TYPES_URL = "https://developers.google.com/maps/documentation/places/web-service/supported_types"


def normalize_place_type(value: Any) -> str | None:
    """Return the canonical lowercase place type, or None for an empty value.

    Raises:
        ValueError: If `value` is not a string, or is non-empty and not in `PLACE_TYPES`.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(
            f"Unknown type of place: {value!r}. See {SUPPORTED_TYPES_URL} for a list of supported types."
        )
    if not value.strip():
        return None
    key = value.strip().lower()
    if key not in PLACE_TYPES:
        raise ValueError(
            f"Unknown type of place: {value}. See {SUPPORTED_TYPES_URL} for a list of supported types."
        )
    return key
