# chat/tools.py
# Tools the model may call mid-turn, their JSON input schemas, and the executor.
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from battle.lookup import CreatureLookup
from battle.single import resolve_single_battle
from dex_core.errors import InvalidToolInput, UnknownTool

GET_POKEMON_DATA = "get_pokemon_data"
BATTLE_SIMULATOR = "pokemon_battle_simulator"

TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "name": GET_POKEMON_DATA,
        "description": (
            "Fetch detailed information about a specific Pokémon including stats, types, abilities, "
            "and sprites. Use this when users ask about specific Pokémon or want to compare Pokémon stats."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "pokemon": {
                    "type": "string",
                    "description": "The name or ID of the Pokémon to look up (e.g., 'pikachu', 'charizard', '25')",
                },
            },
            "required": ["pokemon"],
        },
    },
    {
        "name": BATTLE_SIMULATOR,
        "description": (
            "Simulate a battle between two Pokémon and determine the likely winner based on stats, types, "
            "and type effectiveness. Use this when users ask about battles, matchups, or 'who would win' questions."
        ),
        "input_schema": {
            "type": "object",
            "properties": {
                "pokemon1": {"type": "string", "description": "Name of the first Pokémon in the battle"},
                "pokemon2": {"type": "string", "description": "Name of the second Pokémon in the battle"},
            },
            "required": ["pokemon1", "pokemon2"],
        },
    },
]


def _required_str(arguments: Mapping[str, Any], key: str, label: str) -> str:
    value = arguments.get(key)
    if not isinstance(value, str) or not value.strip():
        raise InvalidToolInput(f"{label} name is required and must be a string")
    return value.strip()


class ToolRegistry:
    """Runs the two registered tools against a creature lookup. Results are JSON-ready dicts."""

    def __init__(self, lookup: CreatureLookup):
        self._lookup = lookup

    @property
    def names(self) -> List[str]:
        return [t["name"] for t in TOOL_DEFINITIONS]

    async def execute(self, name: str, arguments: Mapping[str, Any]) -> Dict[str, Any]:
        if name == GET_POKEMON_DATA:
            pokemon = _required_str(arguments, "pokemon", "Pokemon")
            creature = await self._lookup(pokemon.lower())
            return creature.to_dict()

        if name == BATTLE_SIMULATOR:
            pokemon1 = _required_str(arguments, "pokemon1", "Pokemon1")
            pokemon2 = _required_str(arguments, "pokemon2", "Pokemon2")
            result = await resolve_single_battle(pokemon1, pokemon2, self._lookup)
            return result.to_dict()

        raise UnknownTool(name)
