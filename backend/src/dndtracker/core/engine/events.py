from __future__ import annotations

from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class EventEnvelope(BaseModel):
    model_config = ConfigDict(extra="forbid")

    event_id: UUID = Field(default_factory=uuid4)
    seq: int
    t: int
    type: str

    round: int
    initiative: int
    actor: Optional[str] = None

    payload: dict[str, Any] = Field(default_factory=dict)


def ev_command_rejected(
    *,
    seq: int,
    t: int,
    round_: int,
    initiative: int,
    actor: Optional[str],
    command: dict,
    code: str,
    message: str,
    meta: dict,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="CommandRejected",
        round=round_,
        initiative=initiative,
        actor=actor,
        payload={
            "command": command,
            "code": code,
            "message": message,
            "meta": meta,
        },
    )


def ev_initiative_advanced(
    *, seq: int, t: int, round_: int, initiative: int, previous: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="InitiativeAdvanced",
        round=round_,
        initiative=initiative,
        payload={"from": previous, "to": initiative},
    )


def ev_round_started(
    *, seq: int, t: int, round_: int, initiative: int, reason: str
) -> EventEnvelope:
    # reason: "rollover" | "manual"
    return EventEnvelope(
        seq=seq,
        t=t,
        type="RoundStarted",
        round=round_,
        initiative=initiative,
        payload={"round": round_, "reason": reason},
    )


def ev_initiative_retreated(
    *, seq: int, t: int, round_: int, initiative: int, previous: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="InitiativeRetreated",
        round=round_,
        initiative=initiative,
        payload={"from": previous, "to": initiative},
    )


def ev_initiative_reset(
    *, seq: int, t: int, round_: int, initiative: int, previous: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="InitiativeReset",
        round=round_,
        initiative=initiative,
        payload={"from": previous, "to": initiative},
    )


def ev_round_changed(
    *, seq: int, t: int, round_: int, initiative: int, previous_round: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="RoundChanged",
        round=round_,
        initiative=initiative,
        payload={"from": previous_round, "to": round_},
    )


def ev_damage_applied(
    *,
    seq: int,
    t: int,
    round_: int,
    initiative: int,
    actor: Optional[str],
    target: str,
    amount: int,
    hp_before: int,
    hp_after: int,
    source: str,
) -> EventEnvelope:
    # source: "attack" | "damage_taken"
    return EventEnvelope(
        seq=seq,
        t=t,
        type="DamageApplied",
        round=round_,
        initiative=initiative,
        actor=actor,
        payload={
            "target": target,
            "amount": amount,
            "hp_before": hp_before,
            "hp_after": hp_after,
            "source": source,
        },
    )


def ev_participant_died(
    *, seq: int, t: int, round_: int, initiative: int, actor: Optional[str], target: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="ParticipantDied",
        round=round_,
        initiative=initiative,
        actor=actor,
        payload={"target": target},
    )


def ev_killing_blow_recorded(
    *, seq: int, t: int, round_: int, initiative: int, actor: str, target: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="KillingBlowRecorded",
        round=round_,
        initiative=initiative,
        actor=actor,
        payload={"target": target, "round_id": round_},
    )


def ev_healing_applied(
    *,
    seq: int,
    t: int,
    round_: int,
    initiative: int,
    actor: Optional[str],
    target: str,
    amount: int,
    hp_before: int,
    hp_after: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="HealingApplied",
        round=round_,
        initiative=initiative,
        actor=actor,
        payload={
            "target": target,
            "amount": amount,
            "hp_before": hp_before,
            "hp_after": hp_after,
        },
    )


def ev_participant_revived(
    *, seq: int, t: int, round_: int, initiative: int, target: str, new_initiative: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="ParticipantRevived",
        round=round_,
        initiative=initiative,
        payload={"target": target, "initiative": new_initiative},
    )


def ev_round_entry_recorded(
    *,
    seq: int,
    t: int,
    round_: int,
    initiative: int,
    actor: str,
    round_id: int,
    attack_set: dict,
    attack_set_index: int,
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="RoundEntryRecorded",
        round=round_,
        initiative=initiative,
        actor=actor,
        payload={
            "round_id": round_id,
            "attack_set": attack_set,
            "attack_set_index": attack_set_index,
        },
    )


def ev_initiative_set(
    *, seq: int, t: int, round_: int, initiative: int, target: str, previous: int, value: int
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="InitiativeSet",
        round=round_,
        initiative=initiative,
        actor=target,
        payload={"target": target, "from": previous, "to": value},
    )


def ev_participant_added(
    *, seq: int, t: int, round_: int, initiative: int, name: str, kind: str
) -> EventEnvelope:
    return EventEnvelope(
        seq=seq,
        t=t,
        type="ParticipantAdded",
        round=round_,
        initiative=initiative,
        actor=name,
        payload={"name": name, "kind": kind},
    )
