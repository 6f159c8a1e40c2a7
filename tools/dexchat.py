# tools/dexchat.py
# Command-line entry point: serve the API, look up Pokémon, run battles, or chat against a running server.
from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import replace
from typing import List, Optional

import aiohttp

from battle.single import resolve_single_battle
from battle.team import resolve_team_battle_by_names
from battle.type_chart import type_chart_as_dict
from chat.sse import iter_sse_events
from dex_core.config import Settings, load_settings
from dex_core.errors import DexError
from pokedex.pokeapi import PokeAPIClient


def _split_names(raw: str) -> List[str]:
    return [p.strip() for p in (raw or "").split(",") if p.strip()]


async def _lookup(settings: Settings, name: str) -> None:
    creature = await PokeAPIClient.from_settings(settings).get_pokemon(name)
    stats = " ".join(f"{st.name}={st.base_stat}" for st in creature.stats)
    print(f"#{creature.id} {creature.name.upper()} [{'/'.join(creature.type_names)}]")
    print(f"  height {creature.height_m:.1f} m  weight {creature.weight_kg:.1f} kg")
    print(f"  {stats}")
    print(f"  abilities: {', '.join(a.name + (' (hidden)' if a.is_hidden else '') for a in creature.abilities)}")


async def _battle(settings: Settings, name1: str, name2: str) -> None:
    catalog = PokeAPIClient.from_settings(settings)
    result = await resolve_single_battle(name1, name2, catalog.get_pokemon)
    print(result.battle_analysis)


async def _team(settings: Settings, team1: List[str], team2: List[str]) -> None:
    catalog = PokeAPIClient.from_settings(settings)
    result = await resolve_team_battle_by_names(team1, team2, catalog.get_pokemon)
    for line in result.battle_log:
        print(line)


async def _chat(url: str) -> None:
    """Read prompts from stdin, stream replies from the server's SSE chat endpoint."""
    transcript: List[dict] = []
    async with aiohttp.ClientSession() as sess:
        while True:
            try:
                prompt = input("you> ").strip()
            except EOFError:
                print()
                return
            if not prompt:
                continue
            if prompt in {"/quit", "/exit"}:
                return
            transcript.append({"role": "user", "content": prompt})
            reply = ""
            async with sess.post(url, json={"messages": transcript}) as resp:
                if resp.status != 200:
                    body = await resp.json(content_type=None)
                    print(f"error: {body.get('message') or body.get('error')}")
                    transcript.pop()
                    continue
                sys.stdout.write("dex> ")
                async for event in iter_sse_events(resp.content.iter_any()):
                    etype = event.get("type")
                    if etype == "text_delta":
                        reply += event.get("text") or ""
                        sys.stdout.write(event.get("text") or "")
                        sys.stdout.flush()
                    elif etype == "tool_result":
                        sys.stdout.write(f"\n  [tool {event.get('tool_call_id')} ok]\n")
                    elif etype == "tool_error":
                        sys.stdout.write(f"\n  [tool {event.get('tool_call_id')} failed: {event.get('error')}]\n")
                    elif etype == "error":
                        sys.stdout.write(f"\n  [{event.get('message')}]")
                print()
            if reply:
                transcript.append({"role": "assistant", "content": reply})


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="DexChat: Pokédex assistant and battle simulator.")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("serve", help="Run the HTTP API")
    sp.add_argument("--host", type=str, help="Bind host (default from DEXCHAT_HOST)")
    sp.add_argument("--port", type=int, help="Bind port (default from DEXCHAT_PORT)")

    sp = sub.add_parser("lookup", help="Show one Pokémon")
    sp.add_argument("name")

    sp = sub.add_parser("battle", help="Simulate a 1v1 battle")
    sp.add_argument("pokemon1")
    sp.add_argument("pokemon2")

    sp = sub.add_parser("team", help="Simulate a team battle")
    sp.add_argument("--team1", required=True, help="Comma-separated names")
    sp.add_argument("--team2", required=True, help="Comma-separated names")

    sub.add_parser("chart", help="Print the type chart as JSON")

    sp = sub.add_parser("chat", help="Chat with a running DexChat server")
    sp.add_argument("--url", type=str, help="Chat endpoint (default http://HOST:PORT/api/chat)")

    args = ap.parse_args(argv)
    settings = load_settings()

    if args.command == "serve":
        from web.app import run
        overrides = {}
        if args.host:
            overrides["host"] = args.host
        if args.port:
            overrides["port"] = args.port
        run(replace(settings, **overrides))
        return 0

    if args.command == "chart":
        print(json.dumps(type_chart_as_dict(), indent=2))
        return 0

    try:
        if args.command == "lookup":
            asyncio.run(_lookup(settings, args.name))
        elif args.command == "battle":
            asyncio.run(_battle(settings, args.pokemon1, args.pokemon2))
        elif args.command == "team":
            asyncio.run(_team(settings, _split_names(args.team1), _split_names(args.team2)))
        elif args.command == "chat":
            url = args.url or f"http://{settings.host}:{settings.port}/api/chat"
            asyncio.run(_chat(url))
    except DexError as e:
        print(f"error: {e.message}", file=sys.stderr)
        return 1
    except aiohttp.ClientError as e:
        print(f"error: could not reach server: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
