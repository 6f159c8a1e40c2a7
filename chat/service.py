# chat/service.py
from __future__ import annotations

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional

from anthropic import AsyncAnthropic

from dex_core.config import Settings
from dex_core.errors import ServiceNotConfigured
from .events import StreamEvent
from .normalizer import ToolExecutor, normalize
from .prompts import SYSTEM_PROMPT
from .tools import TOOL_DEFINITIONS


class ChatService:
    """
    Wraps the Anthropic Messages API for one process. Built once from Settings
    and shared by every request; the SDK client is created on first use and
    reused afterwards. Each stream_chat() call owns its own normalizer, so
    concurrent turns share nothing mutable.
    """

    def __init__(self, settings: Settings, tools: ToolExecutor, client: Optional[Any] = None):
        self.settings = settings
        self.tools = tools
        self._client = client

    @property
    def configured(self) -> bool:
        return self._client is not None or self.settings.chat_enabled

    def _ensure_client(self) -> Any:
        # No await between the check and the assignment: one client per process.
        if self._client is None:
            if not self.settings.anthropic_api_key:
                raise ServiceNotConfigured("ANTHROPIC_API_KEY not configured")
            self._client = AsyncAnthropic(api_key=self.settings.anthropic_api_key)
            print(f"[Chat] Anthropic client ready (model={self.settings.anthropic_model})")
        return self._client

    async def _upstream(self, messages: List[Dict[str, str]]) -> AsyncIterator[Any]:
        client = self._ensure_client()
        stream = await client.messages.create(
            model=self.settings.anthropic_model,
            max_tokens=self.settings.anthropic_max_tokens,
            system=SYSTEM_PROMPT,
            tools=TOOL_DEFINITIONS,
            messages=[{"role": m["role"], "content": m["content"]} for m in messages],
            stream=True,
        )
        async with stream:
            async for chunk in stream:
                yield chunk

    def stream_chat(
        self,
        messages: List[Dict[str, str]],
        cancel: Optional[asyncio.Event] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Normalized events for one assistant turn; expects an already validated transcript."""
        return normalize(self._upstream(messages), self.tools, cancel=cancel, debug=self.settings.debug)
