import asyncio
import json

from aiohttp.test_utils import TestClient, TestServer

from chat.events import MessageStart, ToolResult
from chat.prompts import SYSTEM_PROMPT
from chat.service import ChatService
from chat.tools import TOOL_DEFINITIONS, ToolRegistry
from dex_core.config import Settings
from dex_core.errors import NotFound
from web.app import create_app


class FakeCatalog:
    def __init__(self, lookup):
        self._lookup = lookup

    async def get_pokemon(self, name):
        return await self._lookup(str(name).strip().lower())

    async def get_species(self, key):
        if key != "pikachu":
            raise NotFound(key, "Pokémon species")
        return {"id": 25, "name": "pikachu"}

    async def get_species_evolution_chain(self, key):
        return {"id": 10, "chain": {"species": {"name": "pichu"}}}

    async def get_move(self, name):
        raise RuntimeError("move table corrupted")


class FakeStream:
    def __init__(self, chunks):
        self._chunks = list(chunks)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for chunk in self._chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            yield chunk


class FakeMessages:
    def __init__(self, chunks):
        self.chunks = chunks
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return FakeStream(self.chunks)


class FakeAnthropic:
    def __init__(self, chunks):
        self.messages = FakeMessages(chunks)


TEXT_TURN = [
    {"type": "message_start", "message": {"id": "msg_1", "role": "assistant"}},
    {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
    {"type": "content_block_delta", "index": 0, "delta": {"type": "text_delta", "text": "Pika!"}},
    {"type": "content_block_stop", "index": 0},
    {"type": "message_delta", "delta": {"stop_reason": "end_turn"}},
    {"type": "message_stop"},
]


def _frames(body: str):
    return [f[len("data: "):] for f in body.split("\n\n") if f]


def _serve(lookup, scenario, chunks=None, settings=None):
    settings = settings or Settings()

    async def run():
        catalog = FakeCatalog(lookup)
        client = FakeAnthropic(chunks) if chunks is not None else None
        service = ChatService(settings, ToolRegistry(catalog.get_pokemon), client=client)
        app = create_app(settings=settings, catalog=catalog, chat_service=service)
        async with TestClient(TestServer(app)) as http:
            await scenario(http, client)

    asyncio.run(run())


def test_chat_streams_sse_then_done(lookup):
    async def scenario(http, upstream):
        resp = await http.post("/api/chat", json={"messages": [{"role": "User", "content": "Hi"}]})
        assert resp.status == 200
        assert resp.headers["Content-Type"].startswith("text/event-stream")
        assert resp.headers["Cache-Control"] == "no-cache"
        frames = _frames(await resp.text())
        assert frames[-1] == "[DONE]"
        events = [json.loads(f) for f in frames[:-1]]
        assert [e["type"] for e in events] == [
            "message_start",
            "content_block_start",
            "text_delta",
            "content_block_stop",
            "message_stop",
            "message_stop",
        ]
        assert events[2]["text"] == "Pika!"
        assert events[4]["stop_reason"] == "end_turn"

        call = upstream.messages.calls[0]
        assert call["messages"] == [{"role": "user", "content": "Hi"}]
        assert call["tools"] == TOOL_DEFINITIONS
        assert call["system"] == SYSTEM_PROMPT
        assert call["stream"] is True

    _serve(lookup, scenario, chunks=TEXT_TURN)


def test_chat_runs_tools_inline(lookup):
    chunks = [
        {"type": "message_start", "message": {"id": "msg_2", "role": "assistant"}},
        {"type": "content_block_start", "index": 0,
         "content_block": {"type": "tool_use", "id": "toolu_9", "name": "pokemon_battle_simulator", "input": {}}},
        {"type": "content_block_delta", "index": 0,
         "delta": {"type": "input_json_delta", "partial_json": '{"pokemon1": "pikachu", '}},
        {"type": "content_block_delta", "index": 0,
         "delta": {"type": "input_json_delta", "partial_json": '"pokemon2": "blastoise"}'}},
        {"type": "content_block_stop", "index": 0},
        {"type": "message_delta", "delta": {"stop_reason": "tool_use"}},
        {"type": "message_stop"},
    ]

    async def scenario(http, upstream):
        resp = await http.post("/api/chat", json={"messages": [{"role": "user", "content": "Pikachu vs Blastoise?"}]})
        events = [json.loads(f) for f in _frames(await resp.text())[:-1]]
        result = [e for e in events if e["type"] == "tool_result"][0]
        assert result["tool_call_id"] == "toolu_9"
        assert result["result"]["winner"] == "Pikachu"
        assert result["result"]["typeAdvantage"] == "pikachu has type advantage over blastoise"

    _serve(lookup, scenario, chunks=chunks)


def test_chat_upstream_failure_ends_with_error_and_no_done(lookup):
    async def scenario(http, upstream):
        resp = await http.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
        assert resp.status == 200
        frames = _frames(await resp.text())
        assert "[DONE]" not in frames
        events = [json.loads(f) for f in frames]
        assert [e["type"] for e in events] == ["message_start", "error"]
        assert events[-1]["error"] == "Failed to connect to AI service"
        assert "details" not in events[-1]

    _serve(lookup, scenario, chunks=TEXT_TURN[:1] + [ConnectionError("reset by peer")])


def test_chat_without_api_key(lookup):
    async def scenario(http, upstream):
        resp = await http.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
        assert resp.status == 400
        body = await resp.json()
        assert body["needsApiKey"] is True
        assert body["error"] == "ANTHROPIC_API_KEY not configured"

    _serve(lookup, scenario)


def test_chat_rejects_bad_transcripts(lookup):
    async def scenario(http, upstream):
        resp = await http.post("/api/chat", json={"messages": "hi"})
        assert resp.status == 400
        assert await resp.json() == {"error": "InvalidInput", "message": "Invalid messages format"}

        resp = await http.post("/api/chat", json={"messages": [{"role": "system", "content": "x"}]})
        assert resp.status == 400
        assert (await resp.json())["message"] == "No valid messages provided"

        resp = await http.post("/api/chat", data="{not json", headers={"Content-Type": "application/json"})
        assert resp.status == 400
        assert (await resp.json())["error"] == "InvalidInput"
        assert upstream.messages.calls == []

    _serve(lookup, scenario, chunks=TEXT_TURN)


def test_pokemon_lookup(lookup):
    async def scenario(http, upstream):
        resp = await http.get("/api/pokemon/Pikachu")
        assert resp.status == 200
        assert (await resp.json())["name"] == "pikachu"

        resp = await http.get("/api/pokemon/agumon")
        assert resp.status == 404
        assert await resp.json() == {"error": "NotFound", "message": 'Pokémon "agumon" not found'}

    _serve(lookup, scenario)


def test_species_and_chain(lookup):
    async def scenario(http, upstream):
        resp = await http.get("/api/pokemon-species/pikachu")
        assert (await resp.json())["id"] == 25
        resp = await http.get("/api/pokemon-species/pikachu/evolution-chain")
        assert (await resp.json())["chain"]["species"]["name"] == "pichu"
        resp = await http.get("/api/pokemon-species/digimon")
        assert resp.status == 404

    _serve(lookup, scenario)


def test_unexpected_errors_are_500(lookup):
    async def scenario(http, upstream):
        resp = await http.get("/api/move/thunderbolt")
        assert resp.status == 500
        body = await resp.json()
        assert body["error"] == "Internal server error"
        assert "details" not in body

    _serve(lookup, scenario)

    async def debug_scenario(http, upstream):
        resp = await http.get("/api/move/thunderbolt")
        assert (await resp.json())["details"] == "move table corrupted"

    _serve(lookup, debug_scenario, settings=Settings(debug=True))


def test_type_chart(lookup):
    async def scenario(http, upstream):
        resp = await http.get("/api/type-chart")
        chart = await resp.json()
        assert len(chart) == 18
        assert chart["ghost"]["immune"] == ["normal"]

    _serve(lookup, scenario)


def test_single_battle_endpoint(lookup):
    async def scenario(http, upstream):
        resp = await http.post("/api/battle", json={"pokemon1": "Charizard", "pokemon2": "venusaur"})
        assert resp.status == 200
        body = await resp.json()
        assert body["winner"] == "Charizard"
        assert body["battleAnalysis"].startswith("Battle Analysis:")

        resp = await http.post("/api/battle", json={"pokemon1": "pikachu"})
        assert resp.status == 400
        assert (await resp.json())["message"] == "Invalid second Pokémon name provided."

        resp = await http.post("/api/battle", json={"pokemon1": "pikachu", "pokemon2": "agumon"})
        assert resp.status == 404
        body = await resp.json()
        assert body["error"] == "LookupFailed"
        assert "agumon" in body["message"]

    _serve(lookup, scenario)


def test_team_battle_endpoint(lookup):
    async def scenario(http, upstream):
        resp = await http.post(
            "/api/battle/team",
            json={"team1": ["charizard", "pikachu"], "team2": ["venusaur", "blastoise"]},
        )
        assert resp.status == 200
        body = await resp.json()
        assert body["battleLog"][0] == "Team Battle: 2 vs 2 Pokémon"
        assert set(body["totalScore"]) == {"team1", "team2"}

        resp = await http.post("/api/battle/team", json={"roster": ["charizard", "pikachu", "venusaur"]})
        assert resp.status == 200
        assert (await resp.json())["battleLog"][0] == "Team Battle: 2 vs 1 Pokémon"

        resp = await http.post("/api/battle/team", json={"team1": [], "team2": ["pikachu"]})
        assert resp.status == 400
        assert (await resp.json())["error"] == "EmptyTeam"

    _serve(lookup, scenario)


class BrokenStreamService:
    """Yields one good event, then one the encoder cannot serialize."""

    configured = True

    def stream_chat(self, messages, cancel=None):
        async def events():
            yield MessageStart(message={"id": "msg_3", "role": "assistant"})
            yield ToolResult(tool_call_id="toolu_3", result={"moves": {"tackle", "growl"}})
        return events()


def _serve_with(service, scenario, settings=None):
    settings = settings or Settings()

    async def run():
        app = create_app(settings=settings, catalog=FakeCatalog(None), chat_service=service)
        async with TestClient(TestServer(app)) as http:
            await scenario(http)

    asyncio.run(run())


def test_chat_failure_after_headers_is_reported_on_the_stream():
    async def scenario(http):
        resp = await http.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
        assert resp.status == 200
        assert resp.headers["Content-Type"].startswith("text/event-stream")
        frames = _frames(await resp.text())
        assert "[DONE]" not in frames
        events = [json.loads(f) for f in frames]
        assert [e["type"] for e in events] == ["message_start", "error"]
        assert events[-1]["error"] == "Internal server error"
        assert "details" not in events[-1]

    _serve_with(BrokenStreamService(), scenario)

    async def debug_scenario(http):
        resp = await http.post("/api/chat", json={"messages": [{"role": "user", "content": "Hi"}]})
        events = [json.loads(f) for f in _frames(await resp.text())]
        assert "not JSON serializable" in events[-1]["details"]

    _serve_with(BrokenStreamService(), debug_scenario, settings=Settings(debug=True))


def test_team_battle_endpoint_limits_roster(lookup):
    async def scenario(http, upstream):
        resp = await http.post("/api/battle/team", json={"roster": [f"mon{i}" for i in range(7)]})
        assert resp.status == 400
        assert (await resp.json())["message"] == "Roster can have at most 6 Pokémon."

        resp = await http.post("/api/battle/team", json={"team1": ["pikachu"] * 2, "team2": ["eevee"]})
        assert resp.status == 400
        assert lookup.calls == []

    _serve(lookup, scenario)
