# battle/single.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

from pokedex.models import Creature, display_name
from .lookup import CreatureLookup, clean_name, fetch_creatures
from .scoring import battle_score, round_half_up
from .type_chart import type_multiplier


@dataclass(frozen=True)
class SingleBattleResult:
    winner: str
    loser: str
    winner_stats: Creature
    loser_stats: Creature
    battle_analysis: str
    type_advantage: Optional[str]
    winner_score: float
    loser_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winner": self.winner,
            "loser": self.loser,
            "winnerStats": self.winner_stats.to_dict(),
            "loserStats": self.loser_stats.to_dict(),
            "battleAnalysis": self.battle_analysis,
            "typeAdvantage": self.type_advantage,
        }


def decide_single_battle(pokemon1: Creature, pokemon2: Creature) -> SingleBattleResult:
    types1 = pokemon1.type_names
    types2 = pokemon2.type_names

    adv1 = type_multiplier(types1, types2)
    adv2 = type_multiplier(types2, types1)

    score1 = battle_score(pokemon1, adv1)
    score2 = battle_score(pokemon2, adv2)

    # Strict ">" on side 1: an exact tie goes to pokemon2.
    side1_wins = score1 > score2
    winner, loser = (pokemon1, pokemon2) if side1_wins else (pokemon2, pokemon1)
    winner_score, loser_score = (score1, score2) if side1_wins else (score2, score1)

    type_advantage: Optional[str] = None
    if adv1 > 1:
        type_advantage = f"{pokemon1.name} has type advantage over {pokemon2.name}"
    elif adv2 > 1:
        type_advantage = f"{pokemon2.name} has type advantage over {pokemon1.name}"

    winner_name = display_name(winner.name)
    loser_name = display_name(loser.name)
    lines = [
        "Battle Analysis:",
        f"- {winner_name} wins with a battle score of {round_half_up(winner_score)}",
        f"- {loser_name} scores {round_half_up(loser_score)}",
        f"- Winner's types: {', '.join(winner.type_names)}",
        f"- Loser's types: {', '.join(loser.type_names)}",
        f"- {type_advantage}" if type_advantage else "- No significant type advantage",
    ]

    return SingleBattleResult(
        winner=winner_name,
        loser=loser_name,
        winner_stats=winner,
        loser_stats=loser,
        battle_analysis="\n".join(lines),
        type_advantage=type_advantage,
        winner_score=winner_score,
        loser_score=loser_score,
    )


async def resolve_single_battle(name1: Any, name2: Any, lookup: CreatureLookup) -> SingleBattleResult:
    """Validate both names, fetch both creatures concurrently, then score the matchup."""
    first = clean_name(name1, "first")
    second = clean_name(name2, "second")
    pokemon1, pokemon2 = await fetch_creatures([first, second], lookup)
    return decide_single_battle(pokemon1, pokemon2)
