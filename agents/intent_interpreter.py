"""Intent interpreter: turns a chat message into reply text and structured calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from gear_app.logging_config import get_logger, log_event
from logic import prompts
from logic.inventory import compact_summary, formatted_listing
from models.gear_item import GearItem
from models.taxonomy import DEFAULT_CATEGORY, GEAR_CATEGORIES, validate_category
from tools.gear_functions import (
    ADD_GEAR_ITEM,
    DELETE_GEAR_ITEM,
    GEAR_FUNCTIONS,
    RATE_GEAR_PERFORMANCE,
    SEARCH_GEAR,
)
from tools.language_model import FunctionCall, LanguageModel


LOGGER = get_logger(__name__)

APOLOGY_RESPONSE = "I'm having trouble processing your request right now. Please try again."
DEFAULT_RESPONSE = "I'm here to help with your outdoor gear."
MIN_RESPONSE_LENGTH = 10
LISTING_PROMPT_KEYWORDS = ("list", "show")


@dataclass
class Interpretation:
    """Reply text plus the calls the model asked for."""

    response: str
    calls: List[FunctionCall] = field(default_factory=list)


def _fallback_response(calls: Sequence[FunctionCall]) -> str:
    """Templated reply used when the model's own text is missing or too short."""

    by_name = {}
    for call in calls:
        by_name.setdefault(call.name, call)

    if ADD_GEAR_ITEM in by_name:
        args = by_name[ADD_GEAR_ITEM].arguments
        return f"Added {args.get('brand')} {args.get('model')} to your gear inventory."
    if DELETE_GEAR_ITEM in by_name:
        args = by_name[DELETE_GEAR_ITEM].arguments
        return f"Removed {args.get('brand')} {args.get('model')} from your inventory."
    if RATE_GEAR_PERFORMANCE in by_name:
        return "Logged performance rating for your gear."
    if SEARCH_GEAR in by_name:
        return "Here's your gear collection."
    return DEFAULT_RESPONSE


class IntentInterpreter:
    """Builds prompts, calls the language model and normalises its reply."""

    def __init__(self, model: LanguageModel, history_turns: int = 4) -> None:
        self.model = model
        self.history_turns = history_turns

    def build_system_instruction(
        self,
        history: Sequence[Tuple[str, str]] = (),
        gear: Optional[Sequence[GearItem]] = None,
    ) -> str:
        sections = [prompts.system_instruction()]
        if gear:
            sections.append(prompts.owned_gear_section(len(gear), compact_summary(gear)))

        recent = list(history)[-self.history_turns:] if self.history_turns > 0 else []
        if recent:
            context = "\n\n".join(f"User: {message}\nAssistant: {response}" for message, response in recent)
            sections.append(prompts.history_section(context))
        return "\n\n".join(sections)

    def build_prompt(self, message: str, gear: Optional[Sequence[GearItem]] = None) -> str:
        lowered = message.lower()
        if gear and any(keyword in lowered for keyword in LISTING_PROMPT_KEYWORDS):
            return (
                f"{message}\n\nHere is my gear inventory ({len(gear)} items total):\n\n"
                f"{formatted_listing(gear)}\n\nPlease format this nicely and provide analysis."
            )
        return message

    async def interpret(
        self,
        message: str,
        history: Sequence[Tuple[str, str]] = (),
        gear: Optional[Sequence[GearItem]] = None,
    ) -> Interpretation:
        """Never raises: model failures become a fixed apology with no calls."""

        system_instruction = self.build_system_instruction(history, gear)
        prompt = self.build_prompt(message, gear)
        try:
            reply = await self.model.interpret(system_instruction, prompt, GEAR_FUNCTIONS)
        except Exception:
            log_event(LOGGER, logging.ERROR, "model_call_failed", exc_info=True)
            return Interpretation(response=APOLOGY_RESPONSE)

        calls = list(reply.calls)
        text = (reply.text or "").strip()
        if len(text) < MIN_RESPONSE_LENGTH:
            text = _fallback_response(calls)
            log_event(
                LOGGER,
                logging.INFO,
                "model_reply_templated",
                call_names=[call.name for call in calls],
            )
        return Interpretation(response=text, calls=calls)

    async def classify_gear(self, description: str) -> Dict[str, Any]:
        """Ask the model for a category guess; degrade to ``accessories`` on any failure."""

        instruction = prompts.CLASSIFIER_INSTRUCTION.format(categories=", ".join(GEAR_CATEGORIES))
        try:
            payload = await self.model.complete_json(instruction, f"Classify this gear: {description}")
        except Exception:
            log_event(LOGGER, logging.WARNING, "gear_classification_failed", exc_info=True)
            return {"category": DEFAULT_CATEGORY, "confidence": 0.1}

        try:
            category = validate_category(str(payload.get("category") or DEFAULT_CATEGORY))
        except ValueError:
            category = DEFAULT_CATEGORY
        try:
            confidence = float(payload.get("confidence") or 0.5)
        except (TypeError, ValueError):
            confidence = 0.5

        result: Dict[str, Any] = {"category": category, "confidence": confidence}
        if payload.get("subcategory"):
            result["subcategory"] = str(payload["subcategory"])
        return result


__all__ = ["APOLOGY_RESPONSE", "DEFAULT_RESPONSE", "Interpretation", "IntentInterpreter"]
