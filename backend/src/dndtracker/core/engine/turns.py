from __future__ import annotations

import logging
from typing import List, Literal, Optional

from dndtracker.core.engine.roster import living_participants
from dndtracker.core.engine.state import EncounterState, Participant

logger = logging.getLogger(__name__)

TurnPhase = Literal["dead", "current", "done", "upcoming"]


def distinct_living_initiatives(state: EncounterState) -> List[int]:
    """
    Distinct positive initiatives of living participants, highest first.

    Always recomputed from the roster: deaths and revivals change it
    between calls.
    """
    values = {p.initiative for p in living_participants(state) if p.initiative > 0}
    return sorted(values, reverse=True)


def top_of_order(state: EncounterState, order: Optional[List[int]] = None) -> int:
    if order is None:
        order = distinct_living_initiatives(state)
    return order[0] if order else state.fallback_initiative


def advance(state: EncounterState) -> bool:
    """
    Step to the next lower initiative. Returns True when the round rolled over.

    Past the lowest value (or when nothing lower is alive any more) the
    round is incremented and initiative goes back to the top.
    """
    order = distinct_living_initiatives(state)
    current = state.initiative

    if current in order:
        idx = order.index(current)
        if idx < len(order) - 1:
            state.initiative = order[idx + 1]
            return False
    else:
        lower = [v for v in order if v < current]
        if lower:
            state.initiative = lower[0]
            return False

    finished = state.round
    state.round += 1
    state.initiative = top_of_order(state, order)
    clear_acted_through(state, finished)
    logger.info("round %d started at initiative %d", state.round, state.initiative)
    return True


def retreat(state: EncounterState) -> bool:
    """
    Step back to the previous (higher) initiative. Returns False on a no-op.

    Never rolls the round back: at the top of the order nothing happens.
    """
    order = distinct_living_initiatives(state)
    current = state.initiative

    if current in order:
        idx = order.index(current)
        if idx == 0:
            return False
        state.initiative = order[idx - 1]
        return True

    # current value died out: closest lower value, else the top
    lower = [v for v in order if v < current]
    target = lower[0] if lower else top_of_order(state, order)
    if target == current:
        return False
    state.initiative = target
    return True


def reset_to_top_of_round(state: EncounterState) -> None:
    state.initiative = top_of_order(state)


def next_round(state: EncounterState) -> None:
    finished = state.round
    state.round += 1
    state.initiative = top_of_order(state)
    clear_acted_through(state, finished)


def previous_round(state: EncounterState) -> bool:
    if state.round <= 1:
        return False
    state.round -= 1
    state.initiative = top_of_order(state)
    return True


# --- turn-taken markers ---


def mark_acted(state: EncounterState, name: str) -> None:
    state.acted.setdefault(name, set()).add((state.round, state.initiative))


def has_acted(
    state: EncounterState,
    name: str,
    round_: Optional[int] = None,
    initiative: Optional[int] = None,
) -> bool:
    key = (
        state.round if round_ is None else round_,
        state.initiative if initiative is None else initiative,
    )
    return key in state.acted.get(name, set())


def acted_this_round(state: EncounterState, name: str) -> bool:
    return any(r == state.round for r, _ in state.acted.get(name, set()))


def clear_acted_through(state: EncounterState, round_: int) -> None:
    for name in list(state.acted):
        keys = {k for k in state.acted[name] if k[0] > round_}
        if keys:
            state.acted[name] = keys
        else:
            del state.acted[name]


def turn_phase(state: EncounterState, p: Participant) -> TurnPhase:
    if p.is_dead:
        return "dead"
    if p.initiative == state.initiative:
        return "current"
    if p.initiative > state.initiative:
        return "done"
    return "upcoming"
