# battle/team.py
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple, TypeVar

from dex_core.errors import EmptyTeam, InvalidInput
from pokedex.models import Creature
from .lookup import CreatureLookup, clean_name, fetch_creatures
from .scoring import battle_score, round_half_up
from .type_chart import type_multiplier

SEPARATOR = "=" * 40
MAX_TEAM_SIZE = 6

T = TypeVar("T")


@dataclass(frozen=True)
class TeamBattleResult:
    winning_team: List[Creature]
    losing_team: List[Creature]
    battle_log: List[str]
    total_score: Tuple[int, int]
    mvp: Creature
    mvp_score: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "winningTeam": [c.to_dict() for c in self.winning_team],
            "losingTeam": [c.to_dict() for c in self.losing_team],
            "battleLog": list(self.battle_log),
            "totalScore": {"team1": self.total_score[0], "team2": self.total_score[1]},
            "mvp": self.mvp.to_dict(),
            "mvpScore": self.mvp_score,
        }


def resolve_team_battle(team1: Sequence[Creature], team2: Sequence[Creature]) -> TeamBattleResult:
    """
    Round i pairs team1[i % len1] with team2[i % len2] for max(len1, len2) rounds,
    so the shorter roster cycles. Rounds are independent full-strength comparisons.
    """
    if len(team1) == 0 or len(team2) == 0:
        raise EmptyTeam()

    log: List[str] = [f"Team Battle: {len(team1)} vs {len(team2)} Pokémon", SEPARATOR]
    team1_score = 0.0
    team2_score = 0.0
    mvp = team1[0]
    mvp_score = 0.0

    for i in range(max(len(team1), len(team2))):
        pokemon1 = team1[i % len(team1)]
        pokemon2 = team2[i % len(team2)]

        types1 = pokemon1.type_names
        types2 = pokemon2.type_names
        score1 = battle_score(pokemon1, type_multiplier(types1, types2))
        score2 = battle_score(pokemon2, type_multiplier(types2, types1))

        team1_score += score1
        team2_score += score2

        # incumbent MVP keeps the title on equal scores
        if score1 > mvp_score:
            mvp_score, mvp = score1, pokemon1
        if score2 > mvp_score:
            mvp_score, mvp = score2, pokemon2

        round_winner = pokemon1.name if score1 > score2 else pokemon2.name
        log.append(
            f"Round {i + 1}: {pokemon1.name.upper()} vs {pokemon2.name.upper()} - Winner: {round_winner.upper()}"
        )

    log.append(SEPARATOR)
    log.append(f"Final Scores - Team 1: {round_half_up(team1_score)} | Team 2: {round_half_up(team2_score)}")
    log.append(f"MVP: {mvp.name.upper()} (Score: {round_half_up(mvp_score)})")

    team1_wins = team1_score > team2_score
    return TeamBattleResult(
        winning_team=list(team1 if team1_wins else team2),
        losing_team=list(team2 if team1_wins else team1),
        battle_log=log,
        total_score=(round_half_up(team1_score), round_half_up(team2_score)),
        mvp=mvp,
        mvp_score=round_half_up(mvp_score),
    )


def _check_roster(names: Sequence[Any], label: str) -> None:
    """A battle team holds at most MAX_TEAM_SIZE distinct members."""
    if len(names) > MAX_TEAM_SIZE:
        raise InvalidInput(f"{label} can have at most {MAX_TEAM_SIZE} Pokémon.")
    seen = set()
    for n in names:
        key = n.strip().lower() if isinstance(n, str) else ""
        if not key:
            continue
        if key in seen:
            raise InvalidInput(f"{label} lists {key} more than once.")
        seen.add(key)


def split_roster(members: Sequence[T]) -> Tuple[List[T], List[T]]:
    """One battle team split in two: the first ceil(n/2) members against the rest."""
    _check_roster(members, "Roster")
    if len(members) < 2:
        raise EmptyTeam("A team battle needs at least 2 Pokémon to split into two teams")
    half = math.ceil(len(members) / 2)
    return list(members[:half]), list(members[half:])


async def resolve_team_battle_by_names(
    names1: Sequence[Any],
    names2: Sequence[Any],
    lookup: CreatureLookup,
) -> TeamBattleResult:
    if not isinstance(names1, (list, tuple)) or not isinstance(names2, (list, tuple)):
        raise InvalidInput("Teams must be lists of Pokémon names.")
    if len(names1) == 0 or len(names2) == 0:
        raise EmptyTeam()
    _check_roster(names1, "Team 1")
    _check_roster(names2, "Team 2")
    clean1 = [clean_name(n, "team 1") for n in names1]
    clean2 = [clean_name(n, "team 2") for n in names2]
    fetched = await fetch_creatures(clean1 + clean2, lookup)
    return resolve_team_battle(fetched[:len(clean1)], fetched[len(clean1):])
