"""
HTTP surface: chat over Server-Sent Events plus JSON lookup/battle endpoints.

    POST /api/chat                                   {messages: [...]} -> text/event-stream
    GET  /api/pokemon/{name}
    GET  /api/pokemon-species/{key}
    GET  /api/pokemon-species/{key}/evolution-chain
    GET  /api/move/{name}
    POST /api/battle                                 {pokemon1, pokemon2}
    POST /api/battle/team                            {team1: [...], team2: [...]} or {roster: [...]}
    GET  /api/type-chart
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

from aiohttp import web

from battle.single import resolve_single_battle
from battle.team import resolve_team_battle_by_names, split_roster
from battle.type_chart import type_chart_as_dict
from chat.events import ErrorEvent
from chat.service import ChatService
from chat.sse import DONE_FRAME, encode_event
from chat.tools import ToolRegistry
from chat.transcript import validate_messages
from dex_core.config import Settings, load_settings
from dex_core.errors import DexError, InvalidInput
from pokedex.pokeapi import PokeAPIClient

SETTINGS_KEY = web.AppKey("settings", Settings)
CATALOG_KEY = web.AppKey("catalog", PokeAPIClient)
CHAT_KEY = web.AppKey("chat_service", ChatService)

SSE_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def _error_body(error: str, message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    body.update(extra)
    return body


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except DexError as e:
        return web.json_response(_error_body(type(e).__name__, e.message), status=e.status)
    except Exception as e:
        print(f"[Server] Unhandled error on {request.method} {request.path}: {e!r}")
        debug = request.app[SETTINGS_KEY].debug
        extra = {"details": str(e)} if debug else {}
        return web.json_response(
            _error_body(
                "Internal server error",
                "An unexpected error occurred while processing your request. Please try again later.",
                **extra,
            ),
            status=500,
        )


async def _read_json(request: web.Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise InvalidInput("The request body contains invalid JSON.")
    if not isinstance(body, dict):
        raise InvalidInput("The request body must be a JSON object.")
    return body


# ---------- chat ----------
async def chat_handler(request: web.Request) -> web.StreamResponse:
    service = request.app[CHAT_KEY]
    if not service.configured:
        return web.json_response(
            _error_body(
                "ANTHROPIC_API_KEY not configured",
                "Please add your Anthropic API key to the environment variables in your project settings "
                "to enable AI chat functionality.",
                needsApiKey=True,
            ),
            status=400,
        )

    body = await _read_json(request)
    messages = validate_messages(body.get("messages"))

    resp = web.StreamResponse(status=200, headers=SSE_HEADERS)
    await resp.prepare(request)

    cancel = asyncio.Event()
    errored = False
    events = service.stream_chat(messages, cancel=cancel)
    try:
        async for event in events:
            if isinstance(event, ErrorEvent):
                errored = True
            try:
                await resp.write(encode_event(event))
            except ConnectionResetError:
                print("[Server] Chat client disconnected; stopping stream")
                cancel.set()
                return resp
        if not errored:
            await resp.write(DONE_FRAME)
    except ConnectionResetError:
        print("[Server] Chat client disconnected before completion")
        return resp
    except Exception as e:
        # Headers are already sent; report on the stream instead of through the middleware.
        print(f"[Server] Chat stream failed after headers were sent: {e!r}")
        debug = request.app[SETTINGS_KEY].debug
        failure = ErrorEvent(
            error="Internal server error",
            message="The chat stream ended unexpectedly. Please try again.",
            details=str(e) if debug else None,
        )
        try:
            await resp.write(encode_event(failure))
        except ConnectionResetError:
            return resp
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
    await resp.write_eof()
    return resp


# ---------- lookups ----------
async def pokemon_handler(request: web.Request) -> web.Response:
    creature = await request.app[CATALOG_KEY].get_pokemon(request.match_info["name"])
    return web.json_response(creature.to_dict())


async def species_handler(request: web.Request) -> web.Response:
    return web.json_response(await request.app[CATALOG_KEY].get_species(request.match_info["key"]))


async def evolution_chain_handler(request: web.Request) -> web.Response:
    chain = await request.app[CATALOG_KEY].get_species_evolution_chain(request.match_info["key"])
    return web.json_response(chain)


async def move_handler(request: web.Request) -> web.Response:
    return web.json_response(await request.app[CATALOG_KEY].get_move(request.match_info["name"]))


async def type_chart_handler(request: web.Request) -> web.Response:
    return web.json_response(type_chart_as_dict())


# ---------- battles ----------
async def battle_handler(request: web.Request) -> web.Response:
    body = await _read_json(request)
    catalog = request.app[CATALOG_KEY]
    result = await resolve_single_battle(body.get("pokemon1"), body.get("pokemon2"), catalog.get_pokemon)
    return web.json_response(result.to_dict())


async def team_battle_handler(request: web.Request) -> web.Response:
    body = await _read_json(request)
    catalog = request.app[CATALOG_KEY]
    if "roster" in body:
        roster = body.get("roster")
        if not isinstance(roster, list):
            raise InvalidInput("roster must be a list of Pokémon names.")
        team1, team2 = split_roster(roster)
    else:
        team1, team2 = body.get("team1"), body.get("team2")
    result = await resolve_team_battle_by_names(team1, team2, catalog.get_pokemon)
    return web.json_response(result.to_dict())


def create_app(
    settings: Optional[Settings] = None,
    catalog: Optional[PokeAPIClient] = None,
    chat_service: Optional[ChatService] = None,
) -> web.Application:
    settings = settings or load_settings()
    catalog = catalog or PokeAPIClient.from_settings(settings)
    chat_service = chat_service or ChatService(settings, ToolRegistry(catalog.get_pokemon))

    app = web.Application(middlewares=[error_middleware])
    app[SETTINGS_KEY] = settings
    app[CATALOG_KEY] = catalog
    app[CHAT_KEY] = chat_service

    app.router.add_post("/api/chat", chat_handler)
    app.router.add_get("/api/pokemon/{name}", pokemon_handler)
    app.router.add_get("/api/pokemon-species/{key}", species_handler)
    app.router.add_get("/api/pokemon-species/{key}/evolution-chain", evolution_chain_handler)
    app.router.add_get("/api/move/{name}", move_handler)
    app.router.add_post("/api/battle", battle_handler)
    app.router.add_post("/api/battle/team", team_battle_handler)
    app.router.add_get("/api/type-chart", type_chart_handler)
    return app


def run(settings: Optional[Settings] = None) -> None:
    settings = settings or load_settings()
    if not settings.chat_enabled:
        print("[Server] ANTHROPIC_API_KEY is not set; /api/chat will answer 400 until it is configured")
    print(f"[Server] DexChat listening on http://{settings.host}:{settings.port}")
    web.run_app(create_app(settings), host=settings.host, port=settings.port, print=None)
