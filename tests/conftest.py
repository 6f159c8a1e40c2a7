import asyncio
from typing import Dict, Iterable, List

import pytest

from dex_core.errors import NotFound
from pokedex.models import Ability, Creature, StatEntry, TypeSlot


def build_creature(name: str, types: Iterable[str], base: int = 50, id: int = 1, **stats: int) -> Creature:
    """Every stat is `base` unless overridden, e.g. special_attack=90."""
    values = {
        "hp": base,
        "attack": base,
        "defense": base,
        "special-attack": base,
        "special-defense": base,
        "speed": base,
    }
    for key, value in stats.items():
        values[key.replace("_", "-")] = value
    return Creature(
        id=id,
        name=name,
        height=10,
        weight=100,
        base_experience=64,
        types=tuple(TypeSlot(slot=i + 1, name=t) for i, t in enumerate(types)),
        stats=tuple(StatEntry(name=k, base_stat=v) for k, v in values.items()),
        abilities=(Ability(name="overgrow"),),
    )


class FakeLookup:
    """Creature lookup over a dict; records every key it was asked for."""

    def __init__(self, creatures: Iterable[Creature]):
        self.creatures: Dict[str, Creature] = {c.name: c for c in creatures}
        self.calls: List[str] = []

    async def __call__(self, name: str) -> Creature:
        self.calls.append(name)
        await asyncio.sleep(0)
        if name not in self.creatures:
            raise NotFound(name)
        return self.creatures[name]


@pytest.fixture
def make_creature():
    return build_creature


@pytest.fixture
def starters():
    return [
        build_creature("charizard", ["fire", "flying"], id=6),
        build_creature("venusaur", ["grass", "poison"], id=3),
        build_creature("blastoise", ["water"], id=9),
        build_creature("pikachu", ["electric"], id=25),
    ]


@pytest.fixture
def lookup(starters):
    return FakeLookup(starters)


@pytest.fixture
def lookup_factory():
    return FakeLookup
