"""Command executor: applies model-requested calls to the equipment store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional, Sequence

from gear_app.logging_config import get_logger, log_event
from logic.validation import GearItemInput, GearPerformanceInput
from models.gear_item import GearItem
from tools.gear_functions import (
    ADD_GEAR_ITEM,
    ANALYZE_GEAR_GAPS,
    DELETE_GEAR_ITEM,
    LEGACY_MARKER_FUNCTIONS,
    PLAN_TRIP_GEAR,
    RATE_GEAR_PERFORMANCE,
    SEARCH_GEAR,
)
from tools.gear_store import GearStore
from tools.language_model import FunctionCall
from tools.observability import instrument_tool


LOGGER = get_logger(__name__)

MARKER_FUNCTIONS = (PLAN_TRIP_GEAR, ANALYZE_GEAR_GAPS, *LEGACY_MARKER_FUNCTIONS)

OutcomeStatus = Literal["ok", "failed", "skipped"]


@dataclass
class CommandOutcome:
    """Result of one call; ``result`` is ``None`` for failed and skipped calls."""

    name: str
    arguments: Dict[str, Any]
    status: OutcomeStatus
    result: Any = None
    error: Optional[str] = None


@dataclass
class ExecutionReport:
    outcomes: List[CommandOutcome] = field(default_factory=list)
    gear: Optional[List[GearItem]] = None

    @property
    def failures(self) -> List[CommandOutcome]:
        return [outcome for outcome in self.outcomes if outcome.status == "failed"]


@dataclass
class _RequestState:
    """Snapshot shared by the calls of one request."""

    gear: Optional[List[GearItem]]


def resolve_gear_reference(hint: str, gear: Optional[Sequence[GearItem]]) -> Optional[GearItem]:
    """Find the item whose brand and model both appear in a free-text reference."""

    lowered = hint.lower()
    for item in gear or []:
        if item.brand.lower() in lowered and item.model.lower() in lowered:
            return item
    return None


def find_by_brand_and_model(brand: str, model: str, gear: Optional[Sequence[GearItem]]) -> Optional[GearItem]:
    for item in gear or []:
        if item.brand.lower() == brand.lower() and item.model.lower() == model.lower():
            return item
    return None


def _today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


Handler = Callable[[Dict[str, Any], _RequestState], Awaitable[Any]]


class CommandExecutor:
    """Runs every call concurrently and collects per-call outcomes.

    One call failing never cancels or blocks the others; there is no rollback
    of calls that already succeeded.
    """

    def __init__(self, store: GearStore) -> None:
        self.store = store
        self._handlers: Dict[str, Handler] = {
            DELETE_GEAR_ITEM: self._delete_gear_item,
            ADD_GEAR_ITEM: self._add_gear_item,
            RATE_GEAR_PERFORMANCE: self._rate_gear_performance,
            SEARCH_GEAR: self._search_gear,
        }

    async def execute(
        self, calls: Sequence[FunctionCall], gear: Optional[List[GearItem]] = None
    ) -> ExecutionReport:
        state = _RequestState(gear=gear)
        if not calls:
            return ExecutionReport(outcomes=[], gear=state.gear)

        results = await asyncio.gather(*(self._run(call, state) for call in calls), return_exceptions=True)

        outcomes: List[CommandOutcome] = []
        for call, result in zip(calls, results):
            if isinstance(result, BaseException):
                outcomes.append(
                    CommandOutcome(name=call.name, arguments=call.arguments, status="failed", error=str(result))
                )
            else:
                outcomes.append(result)

        log_event(
            LOGGER,
            logging.INFO,
            "commands_settled",
            total=len(outcomes),
            failed=sum(1 for outcome in outcomes if outcome.status == "failed"),
        )
        return ExecutionReport(outcomes=outcomes, gear=state.gear)

    async def _run(self, call: FunctionCall, state: _RequestState) -> CommandOutcome:
        arguments = dict(call.arguments or {})
        if call.name in MARKER_FUNCTIONS:
            return CommandOutcome(
                name=call.name,
                arguments=arguments,
                status="ok",
                result={"action": call.name, "args": arguments},
            )

        handler = self._handlers.get(call.name)
        if handler is None:
            log_event(LOGGER, logging.WARNING, "command_unknown", function=call.name)
            return CommandOutcome(name=call.name, arguments=arguments, status="skipped")

        instrumented = instrument_tool(f"command:{call.name}")(handler)
        try:
            result = await instrumented(arguments, state)
        except Exception as exc:
            return CommandOutcome(name=call.name, arguments=arguments, status="failed", error=str(exc))
        return CommandOutcome(name=call.name, arguments=arguments, status="ok", result=result)

    async def _delete_gear_item(self, arguments: Dict[str, Any], state: _RequestState) -> Dict[str, Any]:
        brand = str(arguments["brand"])
        model = str(arguments["model"])
        match = find_by_brand_and_model(brand, model, state.gear)
        if not match:
            log_event(LOGGER, logging.INFO, "delete_target_not_found", brand=brand, model=model)
            return {"deleted": False, "reason": "Item not found"}

        await asyncio.to_thread(self.store.delete_gear_item, match.id)
        return {"deleted": True, "item": f"{brand} {model}"}

    async def _add_gear_item(self, arguments: Dict[str, Any], state: _RequestState) -> Dict[str, Any]:
        gear = GearItemInput.model_validate(arguments)
        created = await asyncio.to_thread(self.store.create_gear_item, gear)
        return created.to_api()

    async def _rate_gear_performance(self, arguments: Dict[str, Any], state: _RequestState) -> Dict[str, Any]:
        hint = str(arguments.get("gearId") or "")
        match = resolve_gear_reference(hint, state.gear) if hint else None
        if match:
            gear_id = match.id
        else:
            gear_id = hint
            log_event(LOGGER, logging.WARNING, "gear_reference_unresolved", hint=hint)

        performance = GearPerformanceInput.model_validate(
            {
                "gearId": gear_id,
                "rating": arguments.get("rating"),
                "activityType": arguments.get("activityType"),
                "specificActivity": arguments.get("specificActivity"),
                "conditions": arguments.get("conditions"),
                "performanceAspects": arguments.get("performanceAspects"),
                "notes": arguments.get("notes"),
                "dateLogged": _today(),
            }
        )
        created = await asyncio.to_thread(self.store.create_gear_performance, performance)
        return created.to_api()

    async def _search_gear(self, arguments: Dict[str, Any], state: _RequestState) -> List[Dict[str, Any]]:
        if state.gear is None:
            state.gear = await asyncio.to_thread(self.store.get_gear_items, arguments.get("category"))
        return [item.to_api() for item in state.gear]


__all__ = [
    "CommandExecutor",
    "CommandOutcome",
    "ExecutionReport",
    "find_by_brand_and_model",
    "resolve_gear_reference",
]
