from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from dndtracker.core.engine.state import (
    EncounterState,
    Participant,
    ParticipantKind,
    Player,
)

# Names are expected to be unique across the whole roster. Lookups scan
# players, then NPCs, then monsters and return the first match.


@dataclass(frozen=True)
class Target:
    name: str
    kind: ParticipantKind
    participant: Participant


def all_participants(state: EncounterState) -> List[Participant]:
    return [*state.players, *state.npcs, *state.monsters]


def living_participants(state: EncounterState) -> List[Participant]:
    return [p for p in all_participants(state) if not p.is_dead]


def participants_by_kind(
    state: EncounterState, kind: ParticipantKind
) -> List[Participant]:
    return list(state.category(kind))


def find_by_name(state: EncounterState, name: str) -> Optional[Participant]:
    """Return the participant called ``name`` or None when nobody matches."""
    for p in all_participants(state):
        if p.name == name:
            return p
    return None


def name_taken(state: EncounterState, name: str) -> bool:
    return find_by_name(state, name) is not None


def living_targets(
    state: EncounterState, exclude: Optional[str] = None
) -> List[Target]:
    return [
        Target(name=p.name, kind=p.kind, participant=p)
        for p in living_participants(state)
        if p.name != exclude
    ]


def players_by_initiative(state: EncounterState) -> List[Player]:
    # stable sort: equal initiatives keep roster order
    return sorted(state.players, key=lambda p: -p.initiative)


def add_participant(state: EncounterState, participant: Participant) -> None:
    if name_taken(state, participant.name):
        raise ValueError(f"participant name already in roster: {participant.name!r}")
    state.category(participant.kind).append(participant)
