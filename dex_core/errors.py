"""
Error taxonomy shared by the battle resolvers, the catalog client, the chat
stream and the HTTP layer. Each class carries the HTTP status the web app
answers with.
"""
from __future__ import annotations

from typing import Optional


class DexError(Exception):
    status: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInput(DexError):
    status = 400


class NoValidMessages(InvalidInput):
    def __init__(self, message: str = "No valid messages provided"):
        super().__init__(message)


class NotFound(DexError):
    status = 404

    def __init__(self, key: str, kind: str = "Pokémon"):
        super().__init__(f'{kind} "{key}" not found')
        self.key = key
        self.kind = kind


class CatalogError(DexError):
    """The catalog answered with something other than data or a 404, or not at all."""
    status = 502


class LookupFailed(DexError):
    status = 502

    def __init__(self, name: str, detail: str, cause: Optional[BaseException] = None):
        super().__init__(f"Battle simulation failed: could not fetch '{name}': {detail}")
        self.name = name
        self.detail = detail
        # Missing creatures read as 404s, rejected names as 400s, transport failures as 502s
        if isinstance(cause, NotFound):
            self.status = 404
        elif isinstance(cause, InvalidInput):
            self.status = 400


class EmptyTeam(DexError):
    status = 400

    def __init__(self, message: str = "Both teams must have at least one Pokémon"):
        super().__init__(message)


class UnknownTool(DexError):
    status = 400

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InvalidToolInput(DexError):
    status = 400


class StreamTerminal(DexError):
    status = 502


class ServiceNotConfigured(DexError):
    status = 400
