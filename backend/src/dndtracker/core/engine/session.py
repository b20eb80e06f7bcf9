from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union

from dndtracker.core.engine import ledger, roster, turns
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
from dndtracker.core.engine.rules.apply import apply_command
from dndtracker.core.engine.state import EncounterState, Participant, RoundEntry
from dndtracker.core.persistence.state_codec import encounter_snapshot

logger = logging.getLogger(__name__)

Listener = Callable[[EncounterState, List[dict]], None]
ParticipantRef = Union[str, Participant]


@dataclass
class CommandOutcome:
    ok: bool
    events: List[dict] = field(default_factory=list)
    code: Optional[str] = None
    message: Optional[str] = None

    @property
    def changed(self) -> bool:
        return self.ok and bool(self.events)


class EncounterSession:
    """
    One encounter in progress.

    Queries read the current state; commands go through ``apply_command`` and
    return a ``CommandOutcome``. Mutating calls are serialized, and listeners
    are told about every accepted command that changed something.
    """

    def __init__(self, state: Optional[EncounterState] = None) -> None:
        self.state = state if state is not None else EncounterState.start()
        self.events: List[dict] = []
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    # --- change notification ---

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, events: List[dict]) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state, events)
            except Exception:
                # the command stays applied
                logger.exception("state-change listener failed")

    # --- commands ---

    def dispatch(self, cmd: Command) -> CommandOutcome:
        with self._lock:
            self.state, events = apply_command(self.state, cmd)
            self.events.extend(events)

            if events and events[0]["type"] == "CommandRejected":
                payload = events[0]["payload"]
                return CommandOutcome(
                    ok=False,
                    events=events,
                    code=payload["code"],
                    message=payload["message"],
                )

            if events:
                self._notify(events)
            return CommandOutcome(ok=True, events=events)

    def advance(self) -> CommandOutcome:
        return self.dispatch(AdvanceInitiative())

    def retreat(self) -> CommandOutcome:
        return self.dispatch(RetreatInitiative())

    def reset_to_top_of_round(self) -> CommandOutcome:
        return self.dispatch(ResetInitiative())

    def next_round(self) -> CommandOutcome:
        return self.dispatch(NextRound())

    def previous_round(self) -> CommandOutcome:
        return self.dispatch(PreviousRound())

    def submit_round_entry(
        self,
        participant: ParticipantRef,
        submission: Union[RoundSubmission, Dict[str, Any]],
        round_id: Optional[int] = None,
    ) -> CommandOutcome:
        if isinstance(submission, dict):
            submission = RoundSubmission.model_validate(submission)
        return self.dispatch(
            SubmitRoundEntry(
                participant_name=_name_of(participant),
                submission=submission,
                round_id=round_id,
            )
        )

    def apply_healing_to_target(self, name: str, amount: int) -> CommandOutcome:
        return self.dispatch(ApplyHealing(target_name=name, amount=amount))

    def set_initiative(self, participant: ParticipantRef, value: int) -> CommandOutcome:
        return self.dispatch(
            SetInitiative(participant_name=_name_of(participant), initiative=value)
        )

    def add_participant(self, **fields: Any) -> CommandOutcome:
        return self.dispatch(AddParticipant(**fields))

    # --- queries ---

    def get_current_round(self) -> int:
        return self.state.round

    def get_current_initiative(self) -> int:
        return self.state.initiative

    def distinct_living_initiatives(self) -> List[int]:
        return turns.distinct_living_initiatives(self.state)

    def find_by_name(self, name: str) -> Optional[Participant]:
        return roster.find_by_name(self.state, name)

    def all_participants(self) -> List[Participant]:
        return roster.all_participants(self.state)

    def living_participants(self) -> List[Participant]:
        return roster.living_participants(self.state)

    def last_entry(self, participant: ParticipantRef) -> Optional[RoundEntry]:
        p = self._resolve(participant)
        return ledger.last_entry(p) if p is not None else None

    def has_acted(self, participant: ParticipantRef) -> bool:
        return turns.has_acted(self.state, _name_of(participant))

    def turn_phase(self, participant: ParticipantRef) -> Optional[str]:
        p = self._resolve(participant)
        return turns.turn_phase(self.state, p) if p is not None else None

    def export_snapshot(self, now: Optional[datetime] = None) -> dict[str, Any]:
        with self._lock:
            return encounter_snapshot(self.state, now=now)

    def _resolve(self, participant: ParticipantRef) -> Optional[Participant]:
        if isinstance(participant, Participant):
            return participant
        return roster.find_by_name(self.state, participant)


def _name_of(participant: ParticipantRef) -> str:
    return participant.name if isinstance(participant, Participant) else participant
