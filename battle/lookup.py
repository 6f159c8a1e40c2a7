# battle/lookup.py
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Sequence

from dex_core.errors import InvalidInput, LookupFailed
from pokedex.models import Creature

CreatureLookup = Callable[[str], Awaitable[Creature]]


def clean_name(raw: object, label: str) -> str:
    if not isinstance(raw, str):
        raise InvalidInput(f"Invalid {label} Pokémon name provided.")
    name = raw.strip()
    if not name:
        raise InvalidInput(f"{label.capitalize()} Pokémon name cannot be empty.")
    return name


async def fetch_creatures(names: Sequence[str], lookup: CreatureLookup) -> List[Creature]:
    """
    Fetch every name concurrently. The first failure in argument order is
    reported as LookupFailed naming that creature; the rest are dropped.
    """
    results = await asyncio.gather(
        *(lookup(n.strip().lower()) for n in names),
        return_exceptions=True,
    )
    out: List[Creature] = []
    for name, res in zip(names, results):
        if isinstance(res, BaseException):
            if not isinstance(res, Exception):
                raise res
            raise LookupFailed(name, str(res), cause=res) from res
        out.append(res)
    return out
