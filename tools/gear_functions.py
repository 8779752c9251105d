"""Function catalog offered to the language model for structured gear commands.

Declarations use the OpenAPI schema subset shared by function-calling model
APIs: ``type``, ``description``, ``properties``, ``items``, ``enum`` and
``required``. Numeric ranges are described in text because not every provider
accepts ``minimum``/``maximum``.
"""

from __future__ import annotations

from typing import Any, Dict, List

from models.taxonomy import GEAR_CATEGORIES

DELETE_GEAR_ITEM = "delete_gear_item"
ADD_GEAR_ITEM = "add_gear_item"
RATE_GEAR_PERFORMANCE = "rate_gear_performance"
SEARCH_GEAR = "search_gear"
PLAN_TRIP_GEAR = "plan_trip_gear"
ANALYZE_GEAR_GAPS = "analyze_gear_gaps"

# Names older prompts produced; executed as pass-through markers.
LEGACY_MARKER_FUNCTIONS = ("analyze_gear_setup", "recommend_layering")

GEAR_FUNCTIONS: List[Dict[str, Any]] = [
    {
        "name": DELETE_GEAR_ITEM,
        "description": "Delete a gear item from inventory by brand and model",
        "parameters": {
            "type": "object",
            "properties": {
                "brand": {"type": "string", "description": "Brand of the gear to delete"},
                "model": {"type": "string", "description": "Model of the gear to delete"},
            },
            "required": ["brand", "model"],
        },
    },
    {
        "name": ADD_GEAR_ITEM,
        "description": "Add new gear to inventory",
        "parameters": {
            "type": "object",
            "properties": {
                "brand": {"type": "string"},
                "model": {"type": "string"},
                "category": {"type": "string", "enum": list(GEAR_CATEGORIES)},
                "subcategory": {"type": "string"},
                "size": {"type": "string"},
                "cost": {"type": "number"},
                "weightGrams": {"type": "number"},
                "specifications": {
                    "type": "object",
                    "description": "Technical details such as fabric and features",
                    "properties": {
                        "fabric": {"type": "string"},
                        "features": {"type": "array", "items": {"type": "string"}},
                    },
                },
            },
            "required": ["brand", "model", "category"],
        },
    },
    {
        "name": RATE_GEAR_PERFORMANCE,
        "description": "Rate how gear performed in specific activities and conditions",
        "parameters": {
            "type": "object",
            "properties": {
                "gearId": {
                    "type": "string",
                    "description": "Id of the rated gear, or its brand and model when the id is unknown",
                },
                "rating": {"type": "number", "description": "Overall rating from 1 to 10"},
                "activityType": {
                    "type": "string",
                    "description": "Type of activity - use natural language based on what user describes",
                },
                "specificActivity": {
                    "type": "string",
                    "description": "Specific context: '3-day family camping', 'morning trail run', etc",
                },
                "conditions": {
                    "type": "object",
                    "properties": {
                        "temperature": {"type": "number"},
                        "weather": {"type": "string"},
                        "terrain": {"type": "string"},
                        "duration": {"type": "string"},
                        "intensity": {"type": "string"},
                    },
                },
                "performanceAspects": {
                    "type": "object",
                    "description": "Sub-scores from 1 to 10",
                    "properties": {
                        "comfort": {"type": "number"},
                        "durability": {"type": "number"},
                        "weatherProtection": {"type": "number"},
                        "breathability": {"type": "number"},
                        "versatility": {"type": "number"},
                    },
                },
                "notes": {"type": "string"},
            },
            "required": ["gearId", "rating", "activityType"],
        },
    },
    {
        "name": SEARCH_GEAR,
        "description": "Search and filter gear inventory",
        "parameters": {
            "type": "object",
            "properties": {
                "category": {"type": "string"},
                "brand": {"type": "string"},
                "query": {"type": "string"},
            },
        },
    },
    {
        "name": PLAN_TRIP_GEAR,
        "description": "Generate gear recommendations for a planned trip",
        "parameters": {
            "type": "object",
            "properties": {
                "location": {"type": "string"},
                "dates": {"type": "string"},
                "activities": {"type": "array", "items": {"type": "string"}},
                "expectedConditions": {
                    "type": "object",
                    "properties": {
                        "temperature": {"type": "number"},
                        "weather": {"type": "string"},
                        "season": {"type": "string"},
                    },
                },
            },
            "required": ["location", "activities"],
        },
    },
    {
        "name": ANALYZE_GEAR_GAPS,
        "description": "Identify missing gear for user's activities",
        "parameters": {
            "type": "object",
            "properties": {
                "activities": {"type": "array", "items": {"type": "string"}},
                "currentIssues": {"type": "array", "items": {"type": "string"}},
            },
        },
    },
]


def function_names() -> List[str]:
    return [declaration["name"] for declaration in GEAR_FUNCTIONS]


__all__ = [
    "GEAR_FUNCTIONS",
    "LEGACY_MARKER_FUNCTIONS",
    "DELETE_GEAR_ITEM",
    "ADD_GEAR_ITEM",
    "RATE_GEAR_PERFORMANCE",
    "SEARCH_GEAR",
    "PLAN_TRIP_GEAR",
    "ANALYZE_GEAR_GAPS",
    "function_names",
]
