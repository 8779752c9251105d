"""Language-model capability used to interpret chat messages into gear commands.

The interpreter only depends on :class:`LanguageModel`; the Gemini client is
one implementation and the mock is used for offline tests.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import google.generativeai as genai

from gear_app.config import DEFAULT_GEMINI_MODEL
from gear_app.logging_config import get_logger, log_event


LOGGER = get_logger(__name__)


@dataclass
class FunctionCall:
    """A structured call requested by the model."""

    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_api(self) -> Dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}


@dataclass
class ModelReply:
    """Free text plus zero or more structured calls, in the order the model gave them."""

    text: str = ""
    calls: List[FunctionCall] = field(default_factory=list)


def _to_plain(value: Any) -> Any:
    """Convert protobuf map/repeated composites into plain dicts and lists."""

    if isinstance(value, Mapping):
        return {str(key): _to_plain(item) for key, item in value.items()}
    if isinstance(value, (str, bytes, int, float, bool)) or value is None:
        return value
    if hasattr(value, "__iter__"):
        return [_to_plain(item) for item in value]
    return value


class LanguageModel(ABC):
    """Capability interface: interpret text against a function catalog."""

    @abstractmethod
    async def interpret(
        self, system_instruction: str, prompt: str, functions: List[Dict[str, Any]]
    ) -> ModelReply:
        """Return the model's reply; implementations may raise on provider errors."""

    @abstractmethod
    async def complete_json(self, system_instruction: str, prompt: str) -> Dict[str, Any]:
        """Return a JSON object produced by the model."""


class GeminiLanguageModel(LanguageModel):
    """Gemini function-calling client built on ``google-generativeai``."""

    def __init__(
        self,
        model: str = DEFAULT_GEMINI_MODEL,
        api_key: str | None = None,
        temperature: float = 0.3,
    ) -> None:
        self.model = model
        self.temperature = temperature
        genai.configure(api_key=api_key)

    def _build_model(self, system_instruction: str, **kwargs: Any) -> genai.GenerativeModel:
        return genai.GenerativeModel(
            model_name=self.model,
            system_instruction=system_instruction,
            **kwargs,
        )

    async def interpret(
        self, system_instruction: str, prompt: str, functions: List[Dict[str, Any]]
    ) -> ModelReply:
        model = self._build_model(
            system_instruction,
            tools=[{"function_declarations": functions}],
            generation_config={"temperature": self.temperature},
        )
        response = await model.generate_content_async(prompt)
        reply = self._parse(response)
        log_event(
            LOGGER,
            logging.INFO,
            "model_reply_received",
            model=self.model,
            call_names=[call.name for call in reply.calls],
            text_length=len(reply.text),
        )
        return reply

    async def complete_json(self, system_instruction: str, prompt: str) -> Dict[str, Any]:
        model = self._build_model(
            system_instruction,
            generation_config={"response_mime_type": "application/json"},
        )
        response = await model.generate_content_async(prompt)
        payload = json.loads(response.text or "{}")
        if not isinstance(payload, dict):
            raise ValueError("model returned a non-object JSON payload")
        return payload

    @staticmethod
    def _parse(response: Any) -> ModelReply:
        texts: List[str] = []
        calls: List[FunctionCall] = []
        candidates = list(getattr(response, "candidates", []) or [])
        if not candidates:
            return ModelReply()

        for part in candidates[0].content.parts:
            function_call = part.function_call
            if function_call.name:
                calls.append(FunctionCall(name=function_call.name, arguments=_to_plain(function_call.args) or {}))
            elif part.text:
                texts.append(part.text)
        return ModelReply(text="".join(texts), calls=calls)


ReplyFactory = Callable[[str, str], ModelReply]


class MockLanguageModel(LanguageModel):
    """Offline deterministic model for tests.

    ``reply`` may be a fixed :class:`ModelReply` or a callable receiving
    ``(system_instruction, prompt)``. Every request is recorded in ``requests``.
    """

    def __init__(
        self,
        reply: Union[ModelReply, ReplyFactory, None] = None,
        json_payload: Optional[Dict[str, Any]] = None,
        error: Exception | None = None,
    ) -> None:
        self.reply = reply or ModelReply(text="I'm here to help with your outdoor gear.")
        self.json_payload = json_payload or {}
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def interpret(
        self, system_instruction: str, prompt: str, functions: List[Dict[str, Any]]
    ) -> ModelReply:
        self.requests.append(
            {"system_instruction": system_instruction, "prompt": prompt, "functions": functions}
        )
        if self.error:
            raise self.error
        if callable(self.reply):
            return self.reply(system_instruction, prompt)
        return self.reply

    async def complete_json(self, system_instruction: str, prompt: str) -> Dict[str, Any]:
        self.requests.append({"system_instruction": system_instruction, "prompt": prompt})
        if self.error:
            raise self.error
        return dict(self.json_payload)


__all__ = [
    "FunctionCall",
    "ModelReply",
    "LanguageModel",
    "GeminiLanguageModel",
    "MockLanguageModel",
]
