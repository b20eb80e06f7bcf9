from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, cast

from dndtracker.core.adapters import is_legacy_record, participant_from_legacy
from dndtracker.core.engine.turns import distinct_living_initiatives, top_of_order
from dndtracker.core.engine.state import (
    DEFAULT_FALLBACK_INITIATIVE,
    DEFAULT_REVIVAL_INITIATIVE,
    NPC,
    PARTICIPANT_TYPES,
    AttackSet,
    DamageRecord,
    EncounterState,
    Monster,
    Participant,
    ParticipantKind,
    Player,
    RoundEntry,
)

SNAPSHOT_KEYS = ("round", "initiative", "players", "npcs", "monsters", "timestamp")

_CATEGORY_KIND: Dict[str, ParticipantKind] = {
    "players": "player",
    "npcs": "npc",
    "monsters": "monster",
}


# ---------- participant codec ----------


def participant_to_dict(p: Participant) -> dict[str, Any]:
    d = cast(dict[str, Any], asdict(p))
    d["kind"] = p.kind
    return d


def _records(raw: Any) -> List[DamageRecord]:
    return [DamageRecord(name=str(r["name"]), amount=int(r["amount"])) for r in raw or []]


def _round_log(raw: Any) -> List[RoundEntry]:
    return [
        RoundEntry(
            round_id=int(e["round_id"]),
            attack_sets=[
                AttackSet(
                    attacks_made=int(s.get("attacks_made", 0)),
                    damage_dealt=_records(s.get("damage_dealt")),
                    damage_taken=_records(s.get("damage_taken")),
                    healing_dealt=_records(s.get("healing_dealt")),
                    healing_taken=_records(s.get("healing_taken")),
                    actions_taken=[str(a) for a in s.get("actions_taken") or []],
                )
                for s in e.get("attack_sets") or []
            ],
            killing_blows=[str(n) for n in e.get("killing_blows") or []],
        )
        for e in raw or []
    ]


def participant_from_dict(d: dict[str, Any], kind: ParticipantKind) -> Participant:
    if not isinstance(d, Mapping):
        raise ValueError(f"participant record must be an object, got {type(d).__name__}")
    d = dict(d)
    if is_legacy_record(d):
        return participant_from_legacy(d, kind)

    cls = PARTICIPANT_TYPES[cast(ParticipantKind, d.get("kind", kind))]
    common: Dict[str, Any] = {
        "name": str(d["name"]),
        "hp_max": int(d["hp_max"]),
        "hp_current": d.get("hp_current"),
        "initiative": int(d.get("initiative", 0)),
        "is_dead": bool(d.get("is_dead", False)),
        "round_log": _round_log(d.get("round_log")),
    }
    if cls is Player:
        return Player(player_name=str(d.get("player_name", "")), **common)
    if cls is NPC:
        return NPC(race=str(d.get("race", "")), **common)
    return Monster(**common)


# ---------- snapshot document ----------


def encounter_snapshot(
    state: EncounterState, now: Optional[datetime] = None
) -> dict[str, Any]:
    """
    The save document: turn state plus the full roster with every ledger.
    """
    ts = (now or datetime.now(timezone.utc)).isoformat()
    return {
        "round": state.round,
        "initiative": state.initiative,
        "players": [participant_to_dict(p) for p in state.players],
        "npcs": [participant_to_dict(p) for p in state.npcs],
        "monsters": [participant_to_dict(p) for p in state.monsters],
        "timestamp": ts,
    }


def encounter_state_from_snapshot(
    doc: dict[str, Any],
    *,
    fallback_initiative: int = DEFAULT_FALLBACK_INITIATIVE,
    revival_initiative: int = DEFAULT_REVIVAL_INITIATIVE,
) -> EncounterState:
    missing = [k for k in ("players", "npcs", "monsters") if k not in doc]
    if missing:
        raise ValueError(f"snapshot is missing {', '.join(missing)}")

    roster: Dict[str, list] = {}
    for key, kind in _CATEGORY_KIND.items():
        raw = doc.get(key) or []
        if not isinstance(raw, list):
            raise ValueError(f"snapshot field {key!r} must be a list")
        roster[key] = [participant_from_dict(d, kind) for d in raw]

    seen: set = set()
    for p in roster["players"] + roster["npcs"] + roster["monsters"]:
        if p.name in seen:
            raise ValueError(f"duplicate participant name {p.name!r}")
        seen.add(p.name)

    state = EncounterState.start(
        players=roster["players"],
        npcs=roster["npcs"],
        monsters=roster["monsters"],
        fallback_initiative=fallback_initiative,
        revival_initiative=revival_initiative,
    )

    # saved turn state wins over the computed start
    if "round" in doc:
        state.round = max(1, int(doc["round"]))
    if "initiative" in doc:
        state.initiative = max(0, int(doc["initiative"]))
        # a saved value nobody alive holds any more goes back to the top
        if state.initiative not in distinct_living_initiatives(state):
            state.initiative = top_of_order(state)
    return state


def snapshot_filename(day: Optional[date] = None) -> str:
    day = day or datetime.now(timezone.utc).date()
    return f"dnd-round-tracker-{day.isoformat()}.json"
