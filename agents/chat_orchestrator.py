"""Chat orchestrator: sequences one chat request from message to persisted transcript."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from agents.command_executor import CommandExecutor, CommandOutcome
from agents.intent_interpreter import IntentInterpreter
from gear_app.logging_config import get_logger, log_event, operation_context
from logic.inventory import inventory_digest
from logic.validation import ChatRequest
from models.gear_item import GearItem
from tools.gear_store import GearStore
from tools.language_model import FunctionCall


LOGGER = get_logger(__name__)

LISTING_KEYWORDS = ("list", "show", "my gear", "inventory")
MUTATION_KEYWORDS = ("delete", "remove", "retire")


def is_listing_request(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in LISTING_KEYWORDS)


def is_mutation_request(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in MUTATION_KEYWORDS)


def calls_by_name(calls: List[FunctionCall]) -> Dict[str, Any]:
    """Transcript form of the requested calls; a repeated name keeps its last arguments."""

    summary: Dict[str, Any] = {}
    for call in calls:
        summary[call.name] = call.arguments
    return summary


@dataclass
class ChatResult:
    response: str
    functions: Optional[List[FunctionCall]] = None
    data: Optional[List[GearItem]] = None
    outcomes: List[CommandOutcome] = field(default_factory=list)
    short_circuited: bool = False

    def to_api(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"response": self.response}
        if self.functions:
            payload["functions"] = [call.to_api() for call in self.functions]
        if self.data is not None:
            payload["data"] = [item.to_api() for item in self.data]
        return payload


class ChatOrchestrator:
    """Handles one chat message at a time; nothing is cached between requests."""

    def __init__(
        self,
        store: GearStore,
        interpreter: IntentInterpreter,
        executor: CommandExecutor,
        history_window: int = 8,
    ) -> None:
        self.store = store
        self.interpreter = interpreter
        self.executor = executor
        self.history_window = history_window

    async def handle_message(self, message: str) -> ChatResult:
        """Validate, interpret, execute and persist.

        Raises :class:`pydantic.ValidationError` for a missing or blank message.
        Store failures propagate to the caller; model failures do not.
        """

        request = ChatRequest.model_validate({"message": message})
        message = request.message

        with operation_context("agent:chat_orchestrator.handle_message") as correlation_id:
            listing = is_listing_request(message)
            mutation = is_mutation_request(message)
            log_event(
                LOGGER,
                logging.INFO,
                "chat_request_started",
                correlation_id=correlation_id,
                listing=listing,
                mutation=mutation,
            )

            gear: Optional[List[GearItem]] = None
            if listing or mutation:
                gear = await asyncio.to_thread(self.store.get_gear_items)

            if listing and not mutation and gear:
                return await self._answer_with_inventory(message, gear)

            history = await asyncio.to_thread(self.store.get_chat_history, self.history_window)
            pairs = [(entry.message, entry.response or "") for entry in history]

            interpretation = await self.interpreter.interpret(message, pairs, gear)
            report = await self.executor.execute(interpretation.calls, gear)

            await asyncio.to_thread(
                self.store.create_chat_message,
                message,
                interpretation.response,
                calls_by_name(interpretation.calls) or None,
            )

            log_event(
                LOGGER,
                logging.INFO,
                "chat_request_completed",
                correlation_id=correlation_id,
                call_names=[call.name for call in interpretation.calls],
                failed_calls=len(report.failures),
            )
            return ChatResult(
                response=interpretation.response,
                functions=interpretation.calls or None,
                data=report.gear,
                outcomes=report.outcomes,
            )

    async def _answer_with_inventory(self, message: str, gear: List[GearItem]) -> ChatResult:
        response = inventory_digest(gear)
        await asyncio.to_thread(self.store.create_chat_message, message, response, None)
        log_event(LOGGER, logging.INFO, "chat_inventory_listed", item_count=len(gear))
        return ChatResult(response=response, data=gear, short_circuited=True)


__all__ = [
    "ChatOrchestrator",
    "ChatResult",
    "LISTING_KEYWORDS",
    "MUTATION_KEYWORDS",
    "calls_by_name",
    "is_listing_request",
    "is_mutation_request",
]
