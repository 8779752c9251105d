"""Gear Concierge application container."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from agents.chat_orchestrator import ChatOrchestrator
from agents.command_executor import CommandExecutor
from agents.intent_interpreter import IntentInterpreter
from gear_app.config import AppConfig
from gear_app.logging_config import configure_logging, get_logger, log_event
from logic.gear_analytics import analyze_gear_gaps, calculate_gear_score, recommend_layering
from logic.inventory import category_breakdown
from tools.gear_store import GearStore, SQLiteGearStore
from tools.language_model import GeminiLanguageModel, LanguageModel
from tools.weather_provider import OpenWeatherProvider, WeatherProvider


LOGGER = get_logger(__name__)


class GearConciergeApp:
    """Wires together the store, external capabilities and chat pipeline.

    One instance is built per process (see ``server.api``'s lifespan) and
    closed on shutdown. Collaborators can be injected for tests.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        store: GearStore | None = None,
        language_model: LanguageModel | None = None,
        weather_provider: WeatherProvider | None = None,
    ) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging()

        self.store = store or SQLiteGearStore(self.config.gear_db_path)
        self.language_model = language_model or GeminiLanguageModel(
            model=self.config.model, api_key=self.config.api_key
        )
        self.weather_provider = weather_provider or OpenWeatherProvider(
            api_key=self.config.weather_api_key,
            timeout_seconds=self.config.weather_timeout_seconds,
        )
        self.interpreter = IntentInterpreter(
            self.language_model, history_turns=self.config.prompt_history_turns
        )
        self.executor = CommandExecutor(self.store)
        self.orchestrator = ChatOrchestrator(
            store=self.store,
            interpreter=self.interpreter,
            executor=self.executor,
            history_window=self.config.history_window,
        )

    def analytics_stats(self) -> Dict[str, Any]:
        """Inventory and trip counts with the mean recorded rating."""

        gear = self.store.get_gear_items()
        trips = self.store.get_trips()
        ratings = [record.rating for record in self.store.list_gear_performance()]
        average = round(sum(ratings) / len(ratings), 1) if ratings else None
        return {
            "totalItems": len(gear),
            "tripsPlanned": len(trips),
            "averageRating": average,
            "categoryBreakdown": category_breakdown(gear),
        }

    def gear_gaps(self, activities: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        return [dict(gap) for gap in analyze_gear_gaps(self.store.get_gear_items(), activities or [])]

    def gear_score(self) -> Dict[str, Any]:
        return dict(calculate_gear_score(self.store.get_gear_items()))

    def layering(self, activity: str, conditions: Dict[str, Any]) -> Dict[str, Any]:
        return dict(recommend_layering(activity, conditions, self.store.get_gear_items()))

    def close(self) -> None:
        """Release network sessions and store handles."""

        self.weather_provider.close()
        self.store.close()
        log_event(LOGGER, logging.INFO, "app_closed")


__all__ = ["GearConciergeApp"]
