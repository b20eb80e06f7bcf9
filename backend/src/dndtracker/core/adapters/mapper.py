from __future__ import annotations

from collections.abc import Mapping as ABCMapping
from typing import Any, Dict, List, Optional, cast

from dndtracker.core.engine.state import (
    NPC,
    AttackSet,
    DamageRecord,
    Monster,
    Participant,
    ParticipantKind,
    Player,
    RoundEntry,
)

# NOTE:
# "Legacy" here is the document shape of the browser tracker this service
# replaces: camelCase keys, the name stored under a different key per
# category (characterName / npcName / npcType), actions wrapped as
# {"action": "..."}.


def _as_dict(obj: Any) -> dict[str, Any]:
    """Turn a pydantic model / mapping into dict[str, Any]."""
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return cast(dict[str, Any], obj)

    dump = getattr(obj, "model_dump", None)
    if callable(dump):
        res = dump()
        if isinstance(res, dict):
            return cast(dict[str, Any], res)

    if isinstance(obj, ABCMapping):
        return dict(cast(ABCMapping[str, Any], obj))

    raise TypeError(f"cannot read participant record from {type(obj).__name__}")


def legacy_kind(d: dict[str, Any]) -> Optional[ParticipantKind]:
    if d.get("characterName"):
        return "player"
    if d.get("npcName"):
        return "npc"
    if d.get("npcType"):
        return "monster"
    return None


def is_legacy_record(d: dict[str, Any]) -> bool:
    return legacy_kind(d) is not None or "maxHps" in d


def _records(raw: Any) -> List[DamageRecord]:
    out: List[DamageRecord] = []
    for r in raw or []:
        if isinstance(r, dict):
            out.append(DamageRecord(name=str(r.get("name", "")), amount=int(r.get("amount", 0) or 0)))
    return out


def _actions(raw: Any) -> List[str]:
    out: List[str] = []
    for a in raw or []:
        if isinstance(a, dict):
            text = a.get("action")
            if text:
                out.append(str(text))
        elif isinstance(a, str) and a:
            out.append(a)
    return out


def round_log_from_legacy(raw: Any) -> List[RoundEntry]:
    entries: List[RoundEntry] = []
    for rs in raw or []:
        if not isinstance(rs, dict):
            continue
        entries.append(
            RoundEntry(
                round_id=int(rs.get("roundId", 1)),
                attack_sets=[
                    AttackSet(
                        attacks_made=int(a.get("noOfAttacks", 0) or 0),
                        damage_dealt=_records(a.get("damageDealt")),
                        damage_taken=_records(a.get("damageTaken")),
                        healing_dealt=_records(a.get("healingDealt")),
                        healing_taken=_records(a.get("healingTaken")),
                        actions_taken=_actions(a.get("actions")),
                    )
                    for a in rs.get("attacks") or []
                    if isinstance(a, dict)
                ],
                killing_blows=[str(n) for n in rs.get("killingBlows") or []],
            )
        )
    return entries


def participant_from_legacy(
    obj: Any, kind: Optional[ParticipantKind] = None
) -> Participant:
    d = _as_dict(obj)
    kind = kind or legacy_kind(d)
    if kind is None:
        raise ValueError("cannot tell participant category from legacy record")

    common: Dict[str, Any] = {
        "hp_max": int(d.get("maxHps", 0) or 0),
        "hp_current": d.get("currentHps"),
        "initiative": int(d.get("initiative", 0) or 0),
        "is_dead": bool(d.get("isDead", False)),
        "round_log": round_log_from_legacy(d.get("roundStats")),
    }

    if kind == "player":
        return Player(
            name=str(d.get("characterName", "")),
            player_name=str(d.get("playerName", "")),
            **common,
        )
    if kind == "npc":
        return NPC(name=str(d.get("npcName", "")), race=str(d.get("npcRace", "")), **common)
    return Monster(name=str(d.get("npcType", "")), **common)


def _records_to_legacy(records: List[DamageRecord]) -> List[dict[str, Any]]:
    return [{"name": r.name, "amount": r.amount} for r in records]


def participant_to_legacy(p: Participant) -> dict[str, Any]:
    d: dict[str, Any] = {}
    if isinstance(p, Player):
        d["playerName"] = p.player_name
        d["characterName"] = p.name
    elif isinstance(p, NPC):
        d["npcName"] = p.name
        d["npcRace"] = p.race
    else:
        d["npcType"] = p.name

    d.update(
        {
            "maxHps": p.hp_max,
            "currentHps": p.hp,
            "initiative": p.initiative,
            "isDead": p.is_dead,
            "roundStats": [
                {
                    "roundId": e.round_id,
                    "attacks": [
                        {
                            "noOfAttacks": s.attacks_made,
                            "damageDealt": _records_to_legacy(s.damage_dealt),
                            "damageTaken": _records_to_legacy(s.damage_taken),
                            "healingDealt": _records_to_legacy(s.healing_dealt),
                            "healingTaken": _records_to_legacy(s.healing_taken),
                            "actions": [{"action": a} for a in s.actions_taken],
                        }
                        for s in e.attack_sets
                    ],
                    "killingBlows": list(e.killing_blows),
                }
                for e in p.round_log
            ],
        }
    )
    return d


# A small table to start from, in the legacy document shape.
DEMO_ROSTER: dict[str, list[dict[str, Any]]] = {
    "players": [
        {
            "playerName": "Alex",
            "characterName": "Thorin Ironbeard",
            "maxHps": 45,
            "currentHps": 38,
            "initiative": 16,
            "isDead": False,
            "roundStats": [],
        },
        {
            "playerName": "Sarah",
            "characterName": "Luna Starweaver",
            "maxHps": 32,
            "currentHps": 32,
            "initiative": 14,
            "isDead": False,
            "roundStats": [],
        },
        {
            "playerName": "Mike",
            "characterName": "Shadow",
            "maxHps": 28,
            "currentHps": 21,
            "initiative": 18,
            "isDead": False,
            "roundStats": [],
        },
    ],
    "npcs": [
        {
            "npcName": "Captain Aldric",
            "npcRace": "Human",
            "maxHps": 58,
            "currentHps": 58,
            "initiative": 12,
            "isDead": False,
            "roundStats": [],
        },
        {
            "npcName": "Elara Moonwhisper",
            "npcRace": "Elf",
            "maxHps": 27,
            "currentHps": 27,
            "initiative": 15,
            "isDead": False,
            "roundStats": [],
        },
    ],
    "monsters": [
        {
            "npcType": "Orc Berserker",
            "maxHps": 67,
            "currentHps": 23,
            "initiative": 13,
            "isDead": False,
            "roundStats": [],
        },
        {
            "npcType": "Goblin Archer",
            "maxHps": 7,
            "currentHps": 7,
            "initiative": 10,
            "isDead": False,
            "roundStats": [],
        },
    ],
}
