from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Literal, Optional, Set, Tuple

ParticipantKind = Literal["player", "npc", "monster"]

# (round, initiative) under which a participant submitted its turn
ActedKey = Tuple[int, int]

DEFAULT_FALLBACK_INITIATIVE = 20
DEFAULT_REVIVAL_INITIATIVE = 1


@dataclass
class DamageRecord:
    name: str
    amount: int

    def __post_init__(self) -> None:
        self.amount = max(0, int(self.amount))


@dataclass
class AttackSet:
    """One submission's worth of attacks, damage, healing and actions."""

    attacks_made: int = 0
    damage_dealt: List[DamageRecord] = field(default_factory=list)
    damage_taken: List[DamageRecord] = field(default_factory=list)
    healing_dealt: List[DamageRecord] = field(default_factory=list)
    healing_taken: List[DamageRecord] = field(default_factory=list)
    actions_taken: List[str] = field(default_factory=list)


@dataclass
class RoundEntry:
    round_id: int
    attack_sets: List[AttackSet] = field(default_factory=list)
    # append-only, names of participants felled this round
    killing_blows: List[str] = field(default_factory=list)


@dataclass
class Participant:
    name: str
    hp_max: int
    hp_current: Optional[int] = None
    initiative: int = 0
    is_dead: bool = False
    round_log: List[RoundEntry] = field(default_factory=list)

    kind: ClassVar[ParticipantKind]

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("participant name must not be empty")
        if int(self.hp_max) <= 0:
            raise ValueError(f"hp_max must be positive, got {self.hp_max!r}")
        self.hp_max = int(self.hp_max)

        hp = self.hp_max if self.hp_current is None else int(self.hp_current)
        self.hp_current = min(self.hp_max, max(0, hp))
        self.initiative = max(0, int(self.initiative))

        # a participant flagged dead is at 0 HP, and 0 HP means dead
        if self.is_dead:
            self.hp_current = 0
        if self.hp_current == 0:
            self.is_dead = True
        if self.is_dead:
            self.initiative = 0

    @property
    def hp(self) -> int:
        return self.hp_current or 0


@dataclass
class Player(Participant):
    # the person at the table, not the character
    player_name: str = ""

    kind: ClassVar[ParticipantKind] = "player"


@dataclass
class NPC(Participant):
    race: str = ""

    kind: ClassVar[ParticipantKind] = "npc"


@dataclass
class Monster(Participant):
    kind: ClassVar[ParticipantKind] = "monster"

    @property
    def monster_type(self) -> str:
        return self.name


PARTICIPANT_TYPES: Dict[ParticipantKind, type[Participant]] = {
    "player": Player,
    "npc": NPC,
    "monster": Monster,
}


@dataclass
class EncounterState:
    round: int = 1
    initiative: int = 0

    players: List[Player] = field(default_factory=list)
    npcs: List[NPC] = field(default_factory=list)
    monsters: List[Monster] = field(default_factory=list)

    # participant name -> (round, initiative) keys it submitted under
    acted: Dict[str, Set[ActedKey]] = field(default_factory=dict)

    seq: int = 0
    t: int = 0

    fallback_initiative: int = DEFAULT_FALLBACK_INITIATIVE
    revival_initiative: int = DEFAULT_REVIVAL_INITIATIVE

    @classmethod
    def start(
        cls,
        *,
        players: Optional[List[Player]] = None,
        npcs: Optional[List[NPC]] = None,
        monsters: Optional[List[Monster]] = None,
        fallback_initiative: int = DEFAULT_FALLBACK_INITIATIVE,
        revival_initiative: int = DEFAULT_REVIVAL_INITIATIVE,
    ) -> "EncounterState":
        """Round 1, initiative at the top of the living order."""
        from dndtracker.core.engine.turns import top_of_order

        state = cls(
            players=list(players or []),
            npcs=list(npcs or []),
            monsters=list(monsters or []),
            fallback_initiative=fallback_initiative,
            revival_initiative=revival_initiative,
        )
        zero_dead_initiatives(state)
        state.round = 1
        state.initiative = top_of_order(state)
        return state

    def category(self, kind: ParticipantKind) -> List[Participant]:
        if kind == "player":
            return self.players  # type: ignore[return-value]
        if kind == "npc":
            return self.npcs  # type: ignore[return-value]
        return self.monsters  # type: ignore[return-value]


def zero_dead_initiatives(state: EncounterState) -> None:
    for p in (*state.players, *state.npcs, *state.monsters):
        if p.is_dead:
            p.initiative = 0


def hp_fraction(p: Participant) -> float:
    return p.hp / p.hp_max


def hp_band(p: Participant) -> str:
    pct = hp_fraction(p) * 100
    if pct > 60:
        return "healthy"
    if pct > 25:
        return "wounded"
    return "critical"
