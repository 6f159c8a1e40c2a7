# pokedex/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

STAT_NAMES = ("hp", "attack", "defense", "special-attack", "special-defense", "speed")


@dataclass(frozen=True)
class StatEntry:
    name: str
    base_stat: int
    effort: int = 0


@dataclass(frozen=True)
class TypeSlot:
    slot: int
    name: str


@dataclass(frozen=True)
class Ability:
    name: str
    is_hidden: bool = False
    slot: int = 1


@dataclass(frozen=True)
class Sprites:
    front_default: Optional[str] = None
    front_shiny: Optional[str] = None
    back_default: Optional[str] = None
    back_shiny: Optional[str] = None


@dataclass(frozen=True)
class Creature:
    """One species as the catalog describes it. Height/weight stay in catalog units (dm/hg)."""
    id: int
    name: str
    height: int = 0
    weight: int = 0
    base_experience: Optional[int] = None
    types: Tuple[TypeSlot, ...] = ()
    stats: Tuple[StatEntry, ...] = ()
    abilities: Tuple[Ability, ...] = ()
    sprites: Sprites = field(default_factory=Sprites)

    @property
    def type_names(self) -> List[str]:
        return [t.name for t in self.types]

    @property
    def height_m(self) -> float:
        return self.height / 10.0

    @property
    def weight_kg(self) -> float:
        return self.weight / 10.0

    def base_stat(self, name: str) -> int:
        for st in self.stats:
            if st.name == name:
                return st.base_stat
        return 0

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Creature":
        types = tuple(
            TypeSlot(slot=int(t.get("slot", i + 1)), name=str(t["type"]["name"]).lower())
            for i, t in enumerate(data.get("types") or [])
        )
        stats = tuple(
            StatEntry(
                name=str(st["stat"]["name"]),
                base_stat=int(st.get("base_stat") or 0),
                effort=int(st.get("effort") or 0),
            )
            for st in (data.get("stats") or [])
        )
        abilities = tuple(
            Ability(
                name=str(a["ability"]["name"]),
                is_hidden=bool(a.get("is_hidden", False)),
                slot=int(a.get("slot") or 1),
            )
            for a in (data.get("abilities") or [])
        )
        sp = data.get("sprites") or {}
        return cls(
            id=int(data["id"]),
            name=str(data["name"]),
            height=int(data.get("height") or 0),
            weight=int(data.get("weight") or 0),
            base_experience=data.get("base_experience"),
            types=tuple(sorted(types, key=lambda t: t.slot)),
            stats=stats,
            abilities=abilities,
            sprites=Sprites(
                front_default=sp.get("front_default"),
                front_shiny=sp.get("front_shiny"),
                back_default=sp.get("back_default"),
                back_shiny=sp.get("back_shiny"),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Catalog-shaped JSON, the same layout from_api reads."""
        return {
            "id": self.id,
            "name": self.name,
            "height": self.height,
            "weight": self.weight,
            "base_experience": self.base_experience,
            "sprites": {
                "front_default": self.sprites.front_default,
                "front_shiny": self.sprites.front_shiny,
                "back_default": self.sprites.back_default,
                "back_shiny": self.sprites.back_shiny,
            },
            "types": [{"slot": t.slot, "type": {"name": t.name}} for t in self.types],
            "stats": [
                {"base_stat": st.base_stat, "effort": st.effort, "stat": {"name": st.name}}
                for st in self.stats
            ],
            "abilities": [
                {"ability": {"name": a.name}, "is_hidden": a.is_hidden, "slot": a.slot}
                for a in self.abilities
            ],
        }


def display_name(raw: str) -> str:
    """First character upper-cased, the rest untouched ("mr-mime" -> "Mr-mime")."""
    return raw[:1].upper() + raw[1:]
