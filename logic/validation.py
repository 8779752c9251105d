"""Pydantic schemas for validating HTTP bodies and model-requested arguments."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from models.taxonomy import validate_category


class _CamelModel(BaseModel):
    """Accept camelCase keys on the wire and snake_case keys in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GearItemInput(_CamelModel):
    """Fields accepted when creating a gear item."""

    brand: str = Field(min_length=1)
    model: str = Field(min_length=1)
    category: str
    subcategory: Optional[str] = None
    size: Optional[str] = None
    purchase_date: Optional[str] = None
    cost: Optional[float] = None
    weight_grams: Optional[int] = None
    status: str = "active"
    specifications: Optional[Dict[str, Any]] = None
    compatibility: Optional[Dict[str, Any]] = None

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: str) -> str:
        return validate_category(value)


class GearItemPatch(_CamelModel):
    """Partial update for a gear item; only fields that were sent are applied."""

    brand: Optional[str] = Field(default=None, min_length=1)
    model: Optional[str] = Field(default=None, min_length=1)
    category: Optional[str] = None
    subcategory: Optional[str] = None
    size: Optional[str] = None
    purchase_date: Optional[str] = None
    cost: Optional[float] = None
    weight_grams: Optional[int] = None
    status: Optional[str] = None
    specifications: Optional[Dict[str, Any]] = None
    compatibility: Optional[Dict[str, Any]] = None

    @field_validator("category")
    @classmethod
    def _validate_category(cls, value: Optional[str]) -> Optional[str]:
        return validate_category(value) if value is not None else None


class GearPerformanceInput(_CamelModel):
    """A performance rating; ``rating`` is bounded to 1..10."""

    gear_id: str = Field(min_length=1)
    rating: int = Field(ge=1, le=10)
    activity_type: Optional[str] = None
    specific_activity: Optional[str] = None
    conditions: Optional[Dict[str, Any]] = None
    performance_aspects: Optional[Dict[str, float]] = None
    notes: Optional[str] = None
    date_logged: Optional[str] = None


class TripInput(_CamelModel):
    name: str = Field(min_length=1)
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    activities: Optional[List[str]] = None
    expected_conditions: Optional[Dict[str, Any]] = None
    gear_used: Optional[List[str]] = None
    notes: Optional[str] = None
    weather_data: Optional[Dict[str, Any]] = None


class TripPatch(_CamelModel):
    name: Optional[str] = Field(default=None, min_length=1)
    location: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    activities: Optional[List[str]] = None
    expected_conditions: Optional[Dict[str, Any]] = None
    gear_used: Optional[List[str]] = None
    notes: Optional[str] = None
    weather_data: Optional[Dict[str, Any]] = None


class ChatRequest(BaseModel):
    """Inbound chat message."""

    message: str = Field(min_length=1)

    @field_validator("message")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class ClassifyRequest(BaseModel):
    description: str = Field(min_length=1)


class LayeringConditions(BaseModel):
    temperature: float
    weather: str = ""
    season: str = ""


class LayeringRequest(BaseModel):
    activity: str = Field(min_length=1)
    conditions: LayeringConditions


__all__ = [
    "GearItemInput",
    "GearItemPatch",
    "GearPerformanceInput",
    "TripInput",
    "TripPatch",
    "ChatRequest",
    "ClassifyRequest",
    "LayeringConditions",
    "LayeringRequest",
]
