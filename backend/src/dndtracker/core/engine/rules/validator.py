from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from dndtracker.core.engine.commands import (
    AddParticipant,
    AdvanceInitiative,
    ApplyHealing,
    Command,
    NextRound,
    PreviousRound,
    ResetInitiative,
    RetreatInitiative,
    RoundSubmission,
    SetInitiative,
    SubmitRoundEntry,
)
from dndtracker.core.engine.roster import find_by_name, name_taken
from dndtracker.core.engine.state import EncounterState


@dataclass
class ValidationError:
    code: str
    message: str
    meta: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ValidationResult:
    ok: bool
    errors: List[ValidationError] = field(default_factory=list)


def _err(code: str, message: str, **meta: Any) -> ValidationResult:
    return ValidationResult(
        ok=False, errors=[ValidationError(code=code, message=message, meta=meta)]
    )


def _has_content(sub: RoundSubmission) -> bool:
    has_attacks = any(a.damage > 0 for a in sub.attack_lines())
    has_damage = sub.damage_taken is not None and sub.damage_taken.amount > 0
    has_healing = sub.healing is not None and sub.healing.amount > 0
    has_actions = bool(sub.action_lines())
    has_magic = any(s.total_damage > 0 or s.spell_name for s in sub.spell_lines())
    return has_attacks or has_damage or has_healing or has_actions or has_magic


def validate_submission(sub: RoundSubmission) -> ValidationResult:
    if not _has_content(sub):
        return _err(
            "EMPTY_SUBMISSION",
            "Please enter at least one action, attack, damage taken, healing, "
            "or magic spell.",
        )

    for i, attack in enumerate(sub.attack_lines()):
        if attack.target_name and attack.damage <= 0:
            return _err(
                "ATTACK_WITHOUT_DAMAGE",
                "Attack has a target but no damage specified.",
                index=i,
                target_name=attack.target_name,
            )

    return ValidationResult(ok=True)


def validate_command(state: EncounterState, cmd: Command) -> ValidationResult:
    if isinstance(
        cmd,
        (AdvanceInitiative, RetreatInitiative, ResetInitiative, NextRound, PreviousRound),
    ):
        return ValidationResult(ok=True)

    if isinstance(cmd, SubmitRoundEntry):
        if find_by_name(state, cmd.participant_name) is None:
            return _err(
                "UNKNOWN_PARTICIPANT",
                "Unknown participant",
                participant_name=cmd.participant_name,
            )
        if cmd.round_id is not None and cmd.round_id < 1:
            return _err("BAD_ROUND", "round_id must be >= 1", round_id=cmd.round_id)
        return validate_submission(cmd.submission)

    if isinstance(cmd, ApplyHealing):
        if cmd.amount < 0:
            return _err("NEGATIVE_AMOUNT", "Healing amount must not be negative")
        if find_by_name(state, cmd.target_name) is None:
            return _err(
                "UNKNOWN_PARTICIPANT", "Target not found", target_name=cmd.target_name
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, SetInitiative):
        p = find_by_name(state, cmd.participant_name)
        if p is None:
            return _err(
                "UNKNOWN_PARTICIPANT",
                "Unknown participant",
                participant_name=cmd.participant_name,
            )
        if cmd.initiative < 0:
            return _err("NEGATIVE_AMOUNT", "Initiative must not be negative")
        if p.is_dead and cmd.initiative > 0:
            return _err(
                "DEAD_PARTICIPANT",
                "A dead participant keeps initiative 0; heal it first",
                participant_name=p.name,
            )
        return ValidationResult(ok=True)

    if isinstance(cmd, AddParticipant):
        if not cmd.name.strip():
            return _err("EMPTY_NAME", "Participant name must not be empty")
        if name_taken(state, cmd.name):
            return _err(
                "DUPLICATE_NAME",
                "Participant names must be unique across the roster",
                name=cmd.name,
            )
        if cmd.hp_max <= 0:
            return _err("BAD_HP", "hp_max must be positive", hp_max=cmd.hp_max)
        if cmd.initiative < 0:
            return _err("NEGATIVE_AMOUNT", "Initiative must not be negative")
        return ValidationResult(ok=True)

    return _err("UNKNOWN_COMMAND", "Unhandled command")
