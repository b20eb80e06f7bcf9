from __future__ import annotations

import logging
from dataclasses import asdict
from typing import List, Optional, Tuple

from dndtracker.core.engine import turns
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
from dndtracker.core.engine.events import (
    ev_command_rejected,
    ev_damage_applied,
    ev_healing_applied,
    ev_initiative_advanced,
    ev_initiative_reset,
    ev_initiative_retreated,
    ev_initiative_set,
    ev_killing_blow_recorded,
    ev_participant_added,
    ev_participant_died,
    ev_participant_revived,
    ev_round_changed,
    ev_round_entry_recorded,
    ev_round_started,
)
from dndtracker.core.engine.ledger import ensure_entry, record_round
from dndtracker.core.engine.roster import add_participant, find_by_name
from dndtracker.core.engine.rules.validator import validate_command
from dndtracker.core.engine.state import (
    PARTICIPANT_TYPES,
    AttackSet,
    DamageRecord,
    EncounterState,
    Participant,
)

logger = logging.getLogger(__name__)


def _bump(state: EncounterState) -> Tuple[int, int]:
    state.seq += 1
    state.t += 1
    return state.seq, state.t


def _actor_of(cmd: Command) -> Optional[str]:
    return (
        getattr(cmd, "participant_name", None)
        or getattr(cmd, "target_name", None)
        or getattr(cmd, "name", None)
    )


def _kill(
    state: EncounterState,
    target: Participant,
    attacker: Optional[Participant],
    round_id: int,
) -> List[dict]:
    target.is_dead = True
    target.initiative = 0
    logger.info(
        "%s died (round %d)%s",
        target.name,
        state.round,
        f", killed by {attacker.name}" if attacker is not None else "",
    )

    seq, t = _bump(state)
    evs = [
        ev_participant_died(
            seq=seq,
            t=t,
            round_=state.round,
            initiative=state.initiative,
            actor=attacker.name if attacker is not None else None,
            target=target.name,
        ).model_dump()
    ]

    # no actor, no killing blow
    if attacker is not None:
        entry = ensure_entry(attacker, round_id)
        entry.killing_blows.append(target.name)
        seq, t = _bump(state)
        evs.append(
            ev_killing_blow_recorded(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                actor=attacker.name,
                target=target.name,
            ).model_dump()
        )
    return evs


def _heal(
    state: EncounterState, target: Participant, amount: int, healer: Optional[str]
) -> List[dict]:
    hp_before = target.hp
    target.hp_current = min(target.hp_max, hp_before + max(0, amount))

    seq, t = _bump(state)
    evs = [
        ev_healing_applied(
            seq=seq,
            t=t,
            round_=state.round,
            initiative=state.initiative,
            actor=healer,
            target=target.name,
            amount=amount,
            hp_before=hp_before,
            hp_after=target.hp,
        ).model_dump()
    ]

    if target.is_dead and target.hp > 0:
        target.is_dead = False
        # placeholder until someone sets the real value
        if target.initiative == 0:
            target.initiative = state.revival_initiative
        logger.info("%s revived with initiative %d", target.name, target.initiative)

        seq, t = _bump(state)
        evs.append(
            ev_participant_revived(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                target=target.name,
                new_initiative=target.initiative,
            ).model_dump()
        )
    return evs


def _take_damage(
    state: EncounterState,
    target: Participant,
    amount: int,
    *,
    attacker: Optional[Participant],
    source: str,
    round_id: Optional[int] = None,
) -> List[dict]:
    hp_before = target.hp
    hp_after = max(0, hp_before - max(0, amount))

    died = hp_before > 0 and hp_after == 0
    target.hp_current = hp_after

    evs: List[dict] = []

    seq, t = _bump(state)
    evs.append(
        ev_damage_applied(
            seq=seq,
            t=t,
            round_=state.round,
            initiative=state.initiative,
            actor=attacker.name if attacker is not None else None,
            target=target.name,
            amount=amount,
            hp_before=hp_before,
            hp_after=hp_after,
            source=source,
        ).model_dump()
    )
    if died:
        evs.extend(
            _kill(state, target, attacker, round_id if round_id is not None else state.round)
        )
    return evs


def apply_damage_to_target(
    state: EncounterState,
    target_name: str,
    amount: int,
    attacker: Optional[Participant] = None,
    round_id: Optional[int] = None,
) -> List[dict]:
    """
    Damage ``target_name``; a blow that takes it from positive HP to 0 kills it
    and, when ``attacker`` is given, lands in the attacker's killing blows for
    ``round_id`` (the current round when omitted).

    An unknown target is skipped and yields no events.
    """
    target = find_by_name(state, target_name)
    if target is None:
        logger.warning("attack target %r not found; line skipped", target_name)
        return []
    return _take_damage(
        state, target, amount, attacker=attacker, source="attack", round_id=round_id
    )


def apply_healing_to_target(
    state: EncounterState, target_name: str, amount: int
) -> List[dict]:
    """
    Heal ``target_name`` up to its max HP. A dead target brought above 0 HP is
    revived with the placeholder initiative.
    """
    target = find_by_name(state, target_name)
    if target is None:
        logger.warning("healing target %r not found", target_name)
        return []
    return _heal(state, target, amount, healer=None)


def _resolve_submission(
    state: EncounterState, actor: Participant, round_id: int, sub: RoundSubmission
) -> List[dict]:
    events: List[dict] = []

    attack_lines = sub.attack_lines()
    attack_set = AttackSet(
        attacks_made=len(attack_lines),
        actions_taken=sub.action_lines(),
    )

    # 1. weapon attacks, applied to their targets right away
    for line in attack_lines:
        if line.damage <= 0:
            continue
        attack_set.damage_dealt.append(
            DamageRecord(name=line.target_name or "Unknown Target", amount=line.damage)
        )
        if line.target_name:
            events.extend(
                apply_damage_to_target(
                    state, line.target_name, line.damage, attacker=actor, round_id=round_id
                )
            )

    # 2. spells: recorded only, untargeted
    for spell in sub.spell_lines():
        if spell.total_damage > 0:
            attack_set.damage_dealt.append(
                DamageRecord(name=spell.spell_name or "Magic Spell", amount=spell.total_damage)
            )
        if spell.spell_name:
            notes = f" ({spell.notes})" if spell.notes else ""
            attack_set.actions_taken.append(f"Cast {spell.spell_name}{notes}")

    # 3. damage taken by the actor, no attacker to credit
    taken = sub.damage_taken
    if taken is not None and taken.amount > 0:
        attack_set.damage_taken.append(
            DamageRecord(name=taken.source or "Unknown", amount=taken.amount)
        )
        events.extend(
            _take_damage(state, actor, taken.amount, attacker=None, source="damage_taken")
        )

    # 4. healing
    healing = sub.healing
    if healing is not None and healing.amount > 0:
        if healing.type == "self":
            attack_set.healing_taken.append(
                DamageRecord(name="Self Healing", amount=healing.amount)
            )
            events.extend(_heal(state, actor, healing.amount, healer=actor.name))
        else:
            # recorded as given; nobody else's HP changes
            label = (
                f"Healing to {healing.healer_name}"
                if healing.healer_name
                else "Healing Others"
            )
            attack_set.healing_dealt.append(DamageRecord(name=label, amount=healing.amount))

    # 5. commit
    entry = record_round(actor, round_id, attack_set)
    turns.mark_acted(state, actor.name)

    seq, t = _bump(state)
    events.append(
        ev_round_entry_recorded(
            seq=seq,
            t=t,
            round_=state.round,
            initiative=state.initiative,
            actor=actor.name,
            round_id=round_id,
            attack_set=asdict(attack_set),
            attack_set_index=len(entry.attack_sets) - 1,
        ).model_dump()
    )
    logger.info(
        "round %d entry recorded for %s (%d attack set(s))",
        round_id,
        actor.name,
        len(entry.attack_sets),
    )
    return events


def apply_command(
    state: EncounterState, cmd: Command
) -> Tuple[EncounterState, List[dict]]:
    """
    Return (state, events_as_dicts).
    A command that fails validation yields a single CommandRejected event and
    leaves the state untouched.
    """
    vr = validate_command(state, cmd)
    if not vr.ok:
        e = vr.errors[0]
        logger.warning("%s rejected: %s (%s)", cmd.type, e.message, e.code)
        seq, t = _bump(state)
        rej = ev_command_rejected(
            seq=seq,
            t=t,
            round_=state.round,
            initiative=state.initiative,
            actor=_actor_of(cmd),
            command=cmd.model_dump(),
            code=e.code,
            message=e.message,
            meta=e.meta,
        ).model_dump()
        return state, [rej]

    events: List[dict] = []

    if isinstance(cmd, AdvanceInitiative):
        previous = state.initiative
        rolled = turns.advance(state)
        seq, t = _bump(state)
        if rolled:
            events.append(
                ev_round_started(
                    seq=seq,
                    t=t,
                    round_=state.round,
                    initiative=state.initiative,
                    reason="rollover",
                ).model_dump()
            )
        else:
            events.append(
                ev_initiative_advanced(
                    seq=seq,
                    t=t,
                    round_=state.round,
                    initiative=state.initiative,
                    previous=previous,
                ).model_dump()
            )
        logger.debug("advance: %d -> %d (round %d)", previous, state.initiative, state.round)
        return state, events

    if isinstance(cmd, RetreatInitiative):
        previous = state.initiative
        if not turns.retreat(state):
            return state, events
        seq, t = _bump(state)
        events.append(
            ev_initiative_retreated(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                previous=previous,
            ).model_dump()
        )
        return state, events

    if isinstance(cmd, ResetInitiative):
        previous = state.initiative
        turns.reset_to_top_of_round(state)
        seq, t = _bump(state)
        events.append(
            ev_initiative_reset(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                previous=previous,
            ).model_dump()
        )
        return state, events

    if isinstance(cmd, NextRound):
        previous_round = state.round
        turns.next_round(state)
        seq, t = _bump(state)
        events.append(
            ev_round_changed(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                previous_round=previous_round,
            ).model_dump()
        )
        seq, t = _bump(state)
        events.append(
            ev_round_started(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                reason="manual",
            ).model_dump()
        )
        logger.info("round set to %d", state.round)
        return state, events

    if isinstance(cmd, PreviousRound):
        previous_round = state.round
        if not turns.previous_round(state):
            return state, events
        seq, t = _bump(state)
        events.append(
            ev_round_changed(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                previous_round=previous_round,
            ).model_dump()
        )
        logger.info("round set back to %d", state.round)
        return state, events

    if isinstance(cmd, SetInitiative):
        p = find_by_name(state, cmd.participant_name)
        assert p is not None
        previous = p.initiative
        p.initiative = cmd.initiative
        seq, t = _bump(state)
        events.append(
            ev_initiative_set(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                target=p.name,
                previous=previous,
                value=p.initiative,
            ).model_dump()
        )
        return state, events

    if isinstance(cmd, SubmitRoundEntry):
        actor = find_by_name(state, cmd.participant_name)
        assert actor is not None
        round_id = cmd.round_id if cmd.round_id is not None else state.round
        events.extend(_resolve_submission(state, actor, round_id, cmd.submission))
        return state, events

    if isinstance(cmd, ApplyHealing):
        events.extend(apply_healing_to_target(state, cmd.target_name, cmd.amount))
        return state, events

    if isinstance(cmd, AddParticipant):
        cls = PARTICIPANT_TYPES[cmd.kind]
        extra = {}
        if cmd.kind == "player":
            extra["player_name"] = cmd.player_name
        elif cmd.kind == "npc":
            extra["race"] = cmd.race
        participant = cls(
            name=cmd.name,
            hp_max=cmd.hp_max,
            hp_current=cmd.hp_current,
            initiative=cmd.initiative,
            **extra,
        )
        add_participant(state, participant)
        seq, t = _bump(state)
        events.append(
            ev_participant_added(
                seq=seq,
                t=t,
                round_=state.round,
                initiative=state.initiative,
                name=participant.name,
                kind=participant.kind,
            ).model_dump()
        )
        return state, events

    # validate_command already rejects anything else
    seq, t = _bump(state)
    events.append(
        ev_command_rejected(
            seq=seq,
            t=t,
            round_=state.round,
            initiative=state.initiative,
            actor=None,
            command=cmd.model_dump(),
            code="UNKNOWN_COMMAND",
            message="Unhandled command",
            meta={},
        ).model_dump()
    )
    return state, events
