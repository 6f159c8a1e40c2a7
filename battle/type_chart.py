# ---- type chart (Gen 6+) ----
# Attack-type indexed: each entry lists what that type hits for 2x, 0.5x and 0x.
# Defensive relationships are read by looking up the attacker, never the defender.
from __future__ import annotations

from typing import Dict, FrozenSet, Iterable, List, Mapping

ALL_TYPES = [
    "normal", "fire", "water", "electric", "grass", "ice", "fighting", "poison", "ground",
    "flying", "psychic", "bug", "rock", "ghost", "dragon", "dark", "steel", "fairy",
]


def _entry(strong=(), weak=(), immune=()) -> Dict[str, FrozenSet[str]]:
    return {"strong": frozenset(strong), "weak": frozenset(weak), "immune": frozenset(immune)}


TYPE_CHART: Mapping[str, Dict[str, FrozenSet[str]]] = {
    "normal":   _entry(weak=["rock", "steel"], immune=["ghost"]),
    "fire":     _entry(strong=["grass", "ice", "bug", "steel"], weak=["fire", "water", "rock", "dragon"]),
    "water":    _entry(strong=["fire", "ground", "rock"], weak=["water", "grass", "dragon"]),
    "electric": _entry(strong=["water", "flying"], weak=["electric", "grass", "dragon"], immune=["ground"]),
    "grass":    _entry(strong=["water", "ground", "rock"],
                       weak=["fire", "grass", "poison", "flying", "bug", "dragon", "steel"]),
    "ice":      _entry(strong=["grass", "ground", "flying", "dragon"], weak=["fire", "water", "ice", "steel"]),
    "fighting": _entry(strong=["normal", "ice", "rock", "dark", "steel"],
                       weak=["poison", "flying", "psychic", "bug", "fairy"], immune=["ghost"]),
    "poison":   _entry(strong=["grass", "fairy"], weak=["poison", "ground", "rock", "ghost"], immune=["steel"]),
    "ground":   _entry(strong=["fire", "electric", "poison", "rock", "steel"], weak=["grass", "bug"],
                       immune=["flying"]),
    "flying":   _entry(strong=["grass", "fighting", "bug"], weak=["electric", "rock", "steel"]),
    "psychic":  _entry(strong=["fighting", "poison"], weak=["psychic", "steel"], immune=["dark"]),
    "bug":      _entry(strong=["grass", "psychic", "dark"],
                       weak=["fire", "fighting", "poison", "flying", "ghost", "steel", "fairy"]),
    "rock":     _entry(strong=["fire", "ice", "flying", "bug"], weak=["fighting", "ground", "steel"]),
    "ghost":    _entry(strong=["psychic", "ghost"], weak=["dark"], immune=["normal"]),
    "dragon":   _entry(strong=["dragon"], weak=["steel"], immune=["fairy"]),
    "dark":     _entry(strong=["psychic", "ghost"], weak=["fighting", "dark", "fairy"]),
    "steel":    _entry(strong=["ice", "rock", "fairy"], weak=["fire", "water", "electric", "steel"]),
    "fairy":    _entry(strong=["fighting", "dragon", "dark"], weak=["fire", "poison", "steel"]),
}


def _norm(t: str) -> str:
    return str(t or "").strip().lower()


def type_multiplier(attacker_types: Iterable[str], defender_types: Iterable[str]) -> float:
    """
    Product over every (attack type, defense type) pair: immune -> x0, strong -> x2,
    weak -> x0.5, otherwise x1. Dual types compound, so fire vs grass/bug is 4.0.
    """
    defenders = [_norm(d) for d in defender_types]
    multiplier = 1.0
    for a in attacker_types:
        entry = TYPE_CHART.get(_norm(a))
        if entry is None:
            continue
        for d in defenders:
            if d in entry["immune"]:
                multiplier *= 0
            elif d in entry["strong"]:
                multiplier *= 2
            elif d in entry["weak"]:
                multiplier *= 0.5
    return multiplier


def type_chart_as_dict() -> Dict[str, Dict[str, List[str]]]:
    """JSON-ready copy of the chart, lists sorted for stable output."""
    return {
        t: {k: sorted(v) for k, v in TYPE_CHART[t].items()}
        for t in ALL_TYPES
    }
