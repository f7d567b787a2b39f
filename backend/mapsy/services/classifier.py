from typing import Dict, List
from mapsy.models.places_model import Feature

# Evaluated top to bottom, first match wins
CATEGORY_RULES = [
    ("commercial.supermarket", "supermarket"),
    ("healthcare.pharmacy", "pharmacy"),
    ("catering.restaurant", "restaurant"),
    ("catering.fast_food", "fastfood"),
    ("accommodation.hotel", "hotel"),
]

PROVIDER_CATEGORIES = [tag for tag, _ in CATEGORY_RULES]


def empty_result() -> Dict[str, List[Feature]]:
    return {bucket: [] for _, bucket in CATEGORY_RULES}


def sort_by_category(poi: Feature, poi_categories: List[str], append_to: Dict[str, List[Feature]]) -> str | None:
    """
    Puts the POI into the bucket of the first matching rule and tags it with
    that bucket name. POIs matching no rule are left out.
    """
    for tag, bucket in CATEGORY_RULES:
        if tag in poi_categories:
            poi.setdefault("properties", {}).setdefault("categories", []).append(bucket)
            append_to[bucket].append(poi)
            return bucket
    return None
