# chat/transcript.py
from __future__ import annotations

from typing import Any, Dict, List

from dex_core.errors import InvalidInput, NoValidMessages

ROLES = {"user", "assistant"}


def validate_messages(messages: Any) -> List[Dict[str, str]]:
    """
    Keep only entries with a string role of user/assistant (any case) and a
    non-empty string content. Bad entries are dropped, not fatal; an empty
    result is.
    """
    if not isinstance(messages, list):
        raise InvalidInput("Invalid messages format")

    out: List[Dict[str, str]] = []
    for msg in messages:
        if not isinstance(msg, dict):
            continue
        role = msg.get("role")
        content = msg.get("content")
        if not isinstance(role, str) or not isinstance(content, str) or not content:
            continue
        role = role.lower()
        if role not in ROLES:
            continue
        out.append({"role": role, "content": content})

    if not out:
        raise NoValidMessages()
    return out
