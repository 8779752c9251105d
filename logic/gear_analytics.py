"""Rule-based gear analytics over a snapshot of the inventory.

All functions are pure: they only read the items passed in and return fresh
dictionaries, so the same snapshot always yields the same result.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Literal, Sequence, TypedDict

from models.gear_item import GearItem


Priority = Literal["high", "medium", "low"]

# The enumeration has no "midlayer" category; insulation items fill that slot.
MIDLAYER_CATEGORIES = ("insulation",)

SCORE_WEIGHTS: Dict[str, float] = {
    "base_layer": 0.2,
    "midlayer": 0.2,
    "shell": 0.25,
    "footwear": 0.25,
    "accessories": 0.1,
}


class GearGap(TypedDict):
    category: str
    priority: Priority
    reason: str
    suggestions: List[str]


class LayeringRecommendation(TypedDict):
    activity: str
    conditions: Dict[str, Any]
    layers: Dict[str, List[str]]
    accessories: List[str]


class GearScore(TypedDict):
    overall: int
    categories: Dict[str, int]
    recommendations: List[str]


def _category_counts(items: Iterable[GearItem]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for item in items:
        slot = "midlayer" if item.category in MIDLAYER_CATEGORIES else item.category
        counts[slot] = counts.get(slot, 0) + 1
    return counts


def analyze_gear_gaps(items: Sequence[GearItem], activities: Sequence[str] = ()) -> List[GearGap]:
    """Flag essential layering categories that are missing or thin.

    ``activities`` is accepted so callers can pass trip context; the current
    rules only look at category coverage.
    """

    counts = _category_counts(items)
    gaps: List[GearGap] = []

    if counts.get("base_layer", 0) < 2:
        gaps.append(
            {
                "category": "base_layer",
                "priority": "high",
                "reason": "Need both warm and cool weather base layers",
                "suggestions": ["Merino wool base layer", "Synthetic moisture-wicking shirt"],
            }
        )
    if not counts.get("shell"):
        gaps.append(
            {
                "category": "shell",
                "priority": "high",
                "reason": "Essential weather protection missing",
                "suggestions": ["Hardshell rain jacket", "Windbreaker for lighter conditions"],
            }
        )
    if not counts.get("midlayer"):
        gaps.append(
            {
                "category": "midlayer",
                "priority": "medium",
                "reason": "Insulation layer for variable conditions",
                "suggestions": ["Fleece jacket", "Synthetic insulation layer", "Down jacket"],
            }
        )
    if not counts.get("footwear"):
        gaps.append(
            {
                "category": "footwear",
                "priority": "high",
                "reason": "Proper footwear critical for safety and comfort",
                "suggestions": ["Hiking boots", "Trail running shoes", "Approach shoes"],
            }
        )
    return gaps


def recommend_layering(
    activity: str, conditions: Dict[str, Any], items: Sequence[GearItem]
) -> LayeringRecommendation:
    """Threshold temperature and weather into base/mid/shell layers plus accessories."""

    temperature = float(conditions.get("temperature", 0))
    weather = str(conditions.get("weather", "") or "").lower()
    activity_key = activity.lower()
    is_wet = "rain" in weather or "snow" in weather

    base: List[str] = []
    mid: List[str] = []
    shell: List[str] = []
    accessories: List[str] = []

    if temperature < 0:
        base.append("Heavy merino wool base layer")
    elif temperature < 15:
        base.append("Medium weight base layer")
    else:
        base.append("Lightweight moisture-wicking shirt")

    if temperature < 5:
        mid.append("Insulated jacket or heavy fleece")
    elif temperature < 15:
        mid.append("Light fleece or softshell")

    if is_wet or "wind" in weather:
        shell.append("Waterproof hardshell jacket")
    elif temperature < 20:
        shell.append("Windbreaker or light shell")

    if "climbing" in activity_key or "alpine" in activity_key:
        accessories.extend(["Helmet", "Gloves", "Approach shoes"])
    if "hiking" in activity_key or "backpacking" in activity_key:
        accessories.extend(["Hiking poles", "Daypack or backpack"])

    return {
        "activity": activity,
        "conditions": dict(conditions),
        "layers": {"base": base, "mid": mid, "shell": shell},
        "accessories": accessories,
    }


def calculate_gear_score(items: Sequence[GearItem]) -> GearScore:
    """Weighted completeness score; each category saturates at four items."""

    counts = _category_counts(items)
    categories: Dict[str, int] = {}
    recommendations: List[str] = []
    overall = 0.0

    for category, weight in SCORE_WEIGHTS.items():
        score = min(counts.get(category, 0) * 25, 100)
        categories[category] = score
        overall += score * weight
        if score < 50:
            recommendations.append(f"Add more {category.replace('_', ' ', 1)} options")

    return {
        "overall": int(math.floor(overall + 0.5)),
        "categories": categories,
        "recommendations": recommendations,
    }


__all__ = [
    "GearGap",
    "GearScore",
    "LayeringRecommendation",
    "SCORE_WEIGHTS",
    "analyze_gear_gaps",
    "calculate_gear_score",
    "recommend_layering",
]
