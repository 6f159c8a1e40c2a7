"""
Stream-event normalizer.

Translates the upstream model's chunk lifecycle (message_start,
content_block_start/delta/stop, message_delta, message_stop) into the compact
event vocabulary in chat.events, running tool calls in-line: when a tool_use
block closes, its accumulated JSON arguments are parsed, the tool is awaited,
and exactly one tool_result or tool_error is emitted before content_block_stop.

StreamNormalizer is the per-turn state machine; normalize() is the pull-based
driver that owns the upstream iterator, cancellation, and terminal errors.
Chunks may be SDK objects or plain dicts.
"""
from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Mapping, Optional, Protocol

from dex_core.errors import StreamTerminal
from .events import (
    ContentBlockStart,
    ContentBlockStop,
    ErrorEvent,
    MessageStart,
    MessageStop,
    StreamEvent,
    TextDelta,
    ToolError,
    ToolResult,
)

RATE_LIMIT_MESSAGE = "You've made too many requests. Please wait a moment before trying again."
CONNECTION_MESSAGE = "Unable to establish connection with the AI service. Please try again."


class ToolExecutor(Protocol):
    async def execute(self, name: str, arguments: Mapping[str, Any]) -> Any: ...


class NormalizerState(Enum):
    IDLE = "idle"
    STARTED = "started"
    EMITTING_TEXT = "emitting_text"
    AWAITING_TOOL_INPUT = "awaiting_tool_input"
    COMPLETED = "completed"
    ERRORED = "errored"


@dataclass
class PendingToolCall:
    id: str
    name: str
    partial_input: str = ""


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _plain(obj: Any) -> Dict[str, Any]:
    """SDK models -> JSON-ready dicts; dicts pass through."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return dict(obj)
    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        return dump(mode="json")
    return {k: v for k, v in vars(obj).items() if not k.startswith("_")}


def _is_rate_limit(exc: BaseException) -> bool:
    if getattr(exc, "status_code", None) == 429:
        return True
    return "rate limit" in str(exc).lower()


class StreamNormalizer:
    def __init__(self, tools: ToolExecutor, debug: bool = False):
        self._tools = tools
        self._debug = debug
        self.state = NormalizerState.IDLE
        self.pending: Optional[PendingToolCall] = None
        self.error: Optional[StreamTerminal] = None

    async def handle(self, chunk: Any) -> List[StreamEvent]:
        """Process one upstream chunk; may suspend while a finished tool call runs."""
        ctype = _field(chunk, "type")

        if ctype == "message_start":
            self.state = NormalizerState.STARTED
            return [MessageStart(message=_plain(_field(chunk, "message")))]

        if ctype == "content_block_start":
            block = _field(chunk, "content_block")
            if _field(block, "type") == "tool_use":
                self.pending = PendingToolCall(id=str(_field(block, "id", "")), name=str(_field(block, "name", "")))
                self.state = NormalizerState.AWAITING_TOOL_INPUT
            else:
                self.state = NormalizerState.EMITTING_TEXT
            return [ContentBlockStart(content_block=_plain(block))]

        if ctype == "content_block_delta":
            delta = _field(chunk, "delta")
            dtype = _field(delta, "type")
            if dtype == "text_delta":
                return [TextDelta(text=_field(delta, "text") or "")]
            if dtype == "input_json_delta" and self.pending is not None:
                partial = _field(delta, "partial_json")
                if isinstance(partial, str):
                    self.pending.partial_input += partial
            return []

        if ctype == "content_block_stop":
            events: List[StreamEvent] = []
            if self.pending is not None:
                call, self.pending = self.pending, None
                events.append(await self._finish_tool(call))
            self.state = NormalizerState.STARTED
            events.append(ContentBlockStop())
            return events

        if ctype == "message_delta":
            stop_reason = _field(_field(chunk, "delta"), "stop_reason")
            if stop_reason:
                self.state = NormalizerState.COMPLETED
                return [MessageStop(stop_reason=stop_reason)]
            return []

        if ctype == "message_stop":
            self.state = NormalizerState.COMPLETED
            return [MessageStop()]

        # ping and anything newer than this vocabulary
        return []

    async def _finish_tool(self, call: PendingToolCall) -> StreamEvent:
        raw = call.partial_input.strip() or "{}"
        try:
            arguments = json.loads(raw)
        except json.JSONDecodeError as e:
            return ToolError(tool_call_id=call.id, error=f"Invalid tool input JSON: {e.msg}")
        if not isinstance(arguments, dict):
            return ToolError(tool_call_id=call.id, error="Invalid tool input format - expected object")

        try:
            result = await self._tools.execute(call.name, arguments)
        except Exception as e:
            print(f"[Chat] Tool {call.name} ({call.id}) failed: {e}")
            return ToolError(tool_call_id=call.id, error=str(e) or "Tool execution failed")
        return ToolResult(tool_call_id=call.id, result=result)

    def fail(self, exc: BaseException) -> ErrorEvent:
        self.state = NormalizerState.ERRORED
        self.pending = None
        self.error = exc if isinstance(exc, StreamTerminal) else StreamTerminal(str(exc) or type(exc).__name__)
        print(f"[Chat] Upstream stream failed: {exc!r}")
        return ErrorEvent(
            error="Failed to connect to AI service",
            message=RATE_LIMIT_MESSAGE if _is_rate_limit(exc) else CONNECTION_MESSAGE,
            details=self.error.message if self._debug else None,
        )


async def normalize(
    chunks: AsyncIterable[Any],
    tools: ToolExecutor,
    cancel: Optional[asyncio.Event] = None,
    debug: bool = False,
    normalizer: Optional[StreamNormalizer] = None,
) -> AsyncIterator[StreamEvent]:
    """
    Drive a StreamNormalizer over an upstream chunk iterator. The cancel event
    is checked once per received chunk; a failure yields a single error event
    and ends the generator.
    """
    normalizer = normalizer or StreamNormalizer(tools, debug=debug)
    iterator = chunks.__aiter__()
    try:
        while True:
            try:
                chunk = await iterator.__anext__()
            except StopAsyncIteration:
                return
            except Exception as e:
                yield normalizer.fail(e)
                return

            if cancel is not None and cancel.is_set():
                print("[Chat] Stream cancelled by client")
                return
            if chunk is None:
                continue

            try:
                events = await normalizer.handle(chunk)
            except Exception as e:
                yield normalizer.fail(e)
                return
            for event in events:
                yield event
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
