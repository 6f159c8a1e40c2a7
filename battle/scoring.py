# battle/scoring.py
from __future__ import annotations

import math

from pokedex.models import Creature


def battle_score(creature: Creature, type_multiplier: float) -> float:
    """
    (hp + (atk + spa)/2 + (def + spd)/2 + spe) * type_multiplier.
    Stats the record lacks count as 0.
    """
    hp = creature.base_stat("hp")
    attack = creature.base_stat("attack")
    defense = creature.base_stat("defense")
    sp_attack = creature.base_stat("special-attack")
    sp_defense = creature.base_stat("special-defense")
    speed = creature.base_stat("speed")

    offensive = (attack + sp_attack) / 2
    defensive = (defense + sp_defense) / 2
    return (hp + offensive + defensive + speed) * type_multiplier


def round_half_up(value: float) -> int:
    # Scores land on .5 often; round() would send those to the even neighbour.
    return int(math.floor(value + 0.5))
