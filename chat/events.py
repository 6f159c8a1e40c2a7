"""
Normalized stream events surfaced to the SSE layer. One class per event type,
each holding only its own payload; to_dict() produces the wire JSON.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union


@dataclass(frozen=True)
class MessageStart:
    message: Dict[str, Any]
    type: str = field(default="message_start", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "message": self.message}


@dataclass(frozen=True)
class ContentBlockStart:
    content_block: Dict[str, Any]
    type: str = field(default="content_block_start", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "content_block": self.content_block}


@dataclass(frozen=True)
class TextDelta:
    text: str
    type: str = field(default="text_delta", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "text": self.text}


@dataclass(frozen=True)
class ContentBlockStop:
    type: str = field(default="content_block_stop", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class ToolResult:
    tool_call_id: str
    result: Any
    type: str = field(default="tool_result", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "tool_call_id": self.tool_call_id, "result": self.result}


@dataclass(frozen=True)
class ToolError:
    tool_call_id: str
    error: str
    type: str = field(default="tool_error", init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "tool_call_id": self.tool_call_id, "error": self.error}


@dataclass(frozen=True)
class MessageStop:
    stop_reason: Optional[str] = None
    type: str = field(default="message_stop", init=False)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type}
        if self.stop_reason is not None:
            out["stop_reason"] = self.stop_reason
        return out


@dataclass(frozen=True)
class ErrorEvent:
    error: str
    message: str
    details: Optional[str] = None
    type: str = field(default="error", init=False)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"type": self.type, "error": self.error, "message": self.message}
        if self.details is not None:
            out["details"] = self.details
        return out


StreamEvent = Union[
    MessageStart,
    ContentBlockStart,
    TextDelta,
    ContentBlockStop,
    ToolResult,
    ToolError,
    MessageStop,
    ErrorEvent,
]
