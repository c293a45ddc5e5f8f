# sagleads/processors/places.py
from __future__ import annotations
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger

from sagleads.utils.schema import Lead, LeadType, Location


EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371
DEFAULT_RESULT_LIMIT = 50

# Text queries sent to the places search for each requested lead type
SEARCH_QUERIES: Dict[str, Tuple[str, ...]] = {
    "pool": ("swimming pool", "community pool", "public pool", "aquatic center"),
    "hoa": ("homeowners association", "HOA", "property management", "community association"),
    "neighborhood": ("neighborhood", "subdivision", "residential community"),
}

# ---- Classification rules, checked in order; first match wins ----
POOL_NAME_WORDS = ("pool", "aquatic", "natatorium")
POOL_PLACE_TYPES = ("swimming_pool",)
HOA_NAME_WORDS = ("hoa", "homeowners", "association", "property management")
NEIGHBORHOOD_PLACE_TYPES = ("neighborhood", "locality", "administrative_area_level_3")


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle (haversine) distance in kilometres."""
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def classify_place(name: str, types: Iterable[str] = ()) -> LeadType:
    name_l = (name or "").lower()
    types_l = {t.lower() for t in types}

    if any(w in name_l for w in POOL_NAME_WORDS) or types_l.intersection(POOL_PLACE_TYPES):
        return "pool"
    if any(w in name_l for w in HOA_NAME_WORDS):
        return "hoa"
    if types_l.intersection(NEIGHBORHOOD_PLACE_TYPES):
        return "neighborhood"
    return "other"


def _place_location(place: Dict[str, Any]) -> Location:
    loc = (place.get("geometry") or {}).get("location") or {}
    return Location(lat=loc.get("lat") or 0, lng=loc.get("lng") or 0)


def format_place_result(place: Dict[str, Any], center: Location, lead_type: Optional[LeadType] = None) -> Lead:
    """
    Shape one Places API result (the JSON dict) into a Lead.
    `distance` is miles from `center`, rounded to 2 places. Without an explicit
    type the place is classified from its name and place types.
    """
    location = _place_location(place)
    km = calculate_distance(center.lat, center.lng, location.lat, location.lng)
    return Lead(
        id=place.get("place_id") or "",
        name=place.get("name") or "",
        address=place.get("formatted_address") or "",
        location=location,
        type=lead_type or classify_place(place.get("name") or "", place.get("types") or ()),
        phone=place.get("formatted_phone_number") or place.get("international_phone_number"),
        website=place.get("website"),
        rating=place.get("rating"),
        review_count=place.get("user_ratings_total"),
        business_status=place.get("business_status"),
        distance=round(km * KM_TO_MILES, 2),
    )


def collect_place_results(
    batches: Iterable[Tuple[LeadType, Sequence[Dict[str, Any]]]],
    center: Location,
    radius_m: float,
    limit: int = DEFAULT_RESULT_LIMIT,
) -> List[Lead]:
    """
    Merge search result batches into leads:
      - a place id seen earlier is skipped (the first batch's type wins)
      - places farther than `radius_m` metres from the center are dropped
      - nearest first, at most `limit`
    """
    seen: Dict[str, Lead] = {}
    for lead_type, places in batches:
        for place in places:
            place_id = place.get("place_id")
            if not place_id or place_id in seen:
                continue
            loc = _place_location(place)
            if calculate_distance(center.lat, center.lng, loc.lat, loc.lng) * 1000 > radius_m:
                continue
            seen[place_id] = format_place_result(place, center, lead_type)

    leads = sorted(seen.values(), key=lambda lead: lead.distance)
    logger.debug(f"Collected {len(leads)} place(s) within {radius_m} m, keeping {min(len(leads), limit)}")
    return leads[:limit]
