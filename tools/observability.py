"""Structured start/completion/failure logging around tool and command calls."""

from __future__ import annotations

import inspect
import logging
import time
from functools import wraps
from typing import Any, Callable, Dict, TypeVar

from gear_app.logging_config import ensure_correlation_id, get_logger, log_event

LOGGER = get_logger(__name__)
F = TypeVar("F", bound=Callable[..., Any])

MAX_PREVIEW_KEYS = 6


def _preview_kwargs(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    preview = dict(list(kwargs.items())[:MAX_PREVIEW_KEYS])
    if len(kwargs) > MAX_PREVIEW_KEYS:
        preview["truncated"] = True
    return preview


class _CallLog:
    """Timing and correlation for one invocation of an instrumented tool."""

    def __init__(self, tool_name: str, kwargs: Dict[str, Any]) -> None:
        self.tool_name = tool_name
        self.correlation_id = ensure_correlation_id()
        self.started = time.perf_counter()
        self._emit(logging.INFO, "tool_call_started", kwargs=_preview_kwargs(kwargs))

    def _emit(self, level: int, event: str, **fields: Any) -> None:
        log_event(LOGGER, level, event, tool=self.tool_name, correlation_id=self.correlation_id, **fields)

    def _elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.started) * 1000, 2)

    def completed(self) -> None:
        self._emit(logging.INFO, "tool_call_completed", duration_ms=self._elapsed_ms())

    def failed(self) -> None:
        self._emit(logging.ERROR, "tool_call_failed", duration_ms=self._elapsed_ms(), exc_info=True)


def instrument_tool(tool_name: str) -> Callable[[F], F]:
    """Wrap a sync or async callable so every call is logged; exceptions are re-raised."""

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                call = _CallLog(tool_name, kwargs)
                try:
                    result = await func(*args, **kwargs)
                except Exception:
                    call.failed()
                    raise
                call.completed()
                return result

            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            call = _CallLog(tool_name, kwargs)
            try:
                result = func(*args, **kwargs)
            except Exception:
                call.failed()
                raise
            call.completed()
            return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["instrument_tool"]
