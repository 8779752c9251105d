"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.gear_item import ChatMessage, GearItem, GearPerformance, Trip

__all__ = ["ChatMessage", "GearItem", "GearPerformance", "Trip"]
