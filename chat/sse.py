# chat/sse.py
# Server-Sent Events framing for the chat endpoint, and the matching client-side decoder.
from __future__ import annotations

import json
from typing import Any, AsyncIterable, AsyncIterator, Dict, Union

from .events import StreamEvent

DONE_FRAME = b"data: [DONE]\n\n"


def encode_event(event: Union[StreamEvent, Dict[str, Any]]) -> bytes:
    payload = event if isinstance(event, dict) else event.to_dict()
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def _decode_data_line(line: str):
    """Returns (done, payload). payload is None for non-data or undecodable lines."""
    stripped = line.strip()
    if not stripped.startswith("data: "):
        return False, None
    data = stripped[6:]
    if data == "[DONE]":
        return True, None
    try:
        return False, json.loads(data)
    except json.JSONDecodeError:
        print(f"[SSE] Failed to parse SSE data: {data[:200]}")
        return False, None


async def iter_sse_events(chunks: AsyncIterable[bytes]) -> AsyncIterator[Dict[str, Any]]:
    """
    Decode a byte stream of `data: <json>` frames. Partial lines are buffered
    across chunks; iteration ends at the `[DONE]` marker or when the stream does.
    """
    buffer = ""
    async for chunk in chunks:
        buffer += chunk.decode("utf-8", errors="replace") if isinstance(chunk, bytes) else str(chunk)
        lines = buffer.split("\n")
        buffer = lines.pop()
        for line in lines:
            done, payload = _decode_data_line(line)
            if done:
                return
            if payload is not None:
                yield payload

    # trailing frame without its blank line
    done, payload = _decode_data_line(buffer)
    if not done and payload is not None:
        yield payload
