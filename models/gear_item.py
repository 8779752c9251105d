"""Stored gear, performance, trip and chat transcript records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.taxonomy import validate_category


def _ensure_dict(value: Any) -> Dict[str, Any]:
    """Coerce a missing map column into an empty dict."""

    if value is None:
        return {}
    return dict(value)


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


@dataclass
class GearItem:
    """A piece of equipment in the user's inventory."""

    id: str
    brand: str
    model: str
    category: str
    subcategory: Optional[str] = None
    size: Optional[str] = None
    purchase_date: Optional[str] = None
    cost: Optional[float] = None
    weight_grams: Optional[int] = None
    status: str = "active"
    specifications: Dict[str, Any] = field(default_factory=dict)
    compatibility: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.brand or not self.model:
            raise ValueError("GearItem requires brand and model")
        self.category = validate_category(self.category)
        self.status = self.status or "active"
        self.specifications = _ensure_dict(self.specifications)
        self.compatibility = _ensure_dict(self.compatibility)

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "brand": self.brand,
            "model": self.model,
            "category": self.category,
            "subcategory": self.subcategory,
            "size": self.size,
            "purchaseDate": self.purchase_date,
            "cost": self.cost,
            "weightGrams": self.weight_grams,
            "status": self.status,
            "specifications": self.specifications,
            "compatibility": self.compatibility,
            "createdAt": self.created_at,
        }


@dataclass
class GearPerformance:
    """A rating of how a gear item performed during an activity."""

    id: str
    gear_id: str
    rating: int
    activity_type: Optional[str] = None
    specific_activity: Optional[str] = None
    conditions: Dict[str, Any] = field(default_factory=dict)
    performance_aspects: Dict[str, Any] = field(default_factory=dict)
    notes: Optional[str] = None
    date_logged: Optional[str] = None
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        self.rating = int(self.rating)
        if not 1 <= self.rating <= 10:
            raise ValueError(f"rating must be between 1 and 10, got {self.rating}")
        self.conditions = _ensure_dict(self.conditions)
        self.performance_aspects = _ensure_dict(self.performance_aspects)

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "gearId": self.gear_id,
            "activityType": self.activity_type,
            "specificActivity": self.specific_activity,
            "conditions": self.conditions,
            "rating": self.rating,
            "performanceAspects": self.performance_aspects,
            "notes": self.notes,
            "dateLogged": self.date_logged,
            "createdAt": self.created_at,
        }


@dataclass
class Trip:
    """A planned or completed trip."""

    id: str
    name: str
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    activities: List[str] = field(default_factory=list)
    expected_conditions: Dict[str, Any] = field(default_factory=dict)
    gear_used: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    weather_data: Dict[str, Any] = field(default_factory=dict)
    created_at: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Trip requires a name")
        self.activities = [str(a) for a in _ensure_list(self.activities)]
        self.gear_used = [str(g) for g in _ensure_list(self.gear_used)]
        self.expected_conditions = _ensure_dict(self.expected_conditions)
        self.weather_data = _ensure_dict(self.weather_data)

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "location": self.location,
            "startDate": self.start_date,
            "endDate": self.end_date,
            "activities": self.activities,
            "expectedConditions": self.expected_conditions,
            "gearUsed": self.gear_used,
            "notes": self.notes,
            "weatherData": self.weather_data,
            "createdAt": self.created_at,
        }


@dataclass
class ChatMessage:
    """One transcript entry: the user's text, the reply and the calls requested."""

    id: str
    message: str
    response: Optional[str] = None
    function_calls: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[str] = None

    def to_api(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "message": self.message,
            "response": self.response,
            "functionCalls": self.function_calls or None,
            "timestamp": self.timestamp,
        }


__all__ = ["GearItem", "GearPerformance", "Trip", "ChatMessage"]
