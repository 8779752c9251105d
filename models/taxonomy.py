"""Canonical gear categories.

This module centralises the closed category enumeration used by the store,
the request schemas and the function catalog exposed to the language model,
so that every layer validates against the same list.
"""

from typing import List


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_").replace("-", "_")


GEAR_CATEGORIES: List[str] = [
    "base_layer",
    "insulation",
    "shell",
    "footwear",
    "accessories",
    "pants",
    "headwear",
    "gloves",
    "sleep_system",
    "shelter",
    "navigation",
    "safety",
    "hydration",
    "nutrition",
    "specialized_equipment",
]

DEFAULT_CATEGORY = "accessories"


def validate_category(value: str) -> str:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the canonical
    enumeration.
    """

    key = _normalize_key(str(value))
    if key not in GEAR_CATEGORIES:
        raise ValueError(f"Unsupported category '{value}'. Allowed: {GEAR_CATEGORIES}")
    return key


def category_label(category: str) -> str:
    """Heading used in inventory listings, e.g. ``BASE LAYER``."""

    return category.upper().replace("_", " ", 1)


__all__ = ["GEAR_CATEGORIES", "DEFAULT_CATEGORY", "validate_category", "category_label"]
