from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from dndtracker.api.schemas import (
    ApplyCommandRequest,
    CommandResponse,
    ParticipantReportOut,
    ParticipantView,
    TurnStateOut,
)
from dndtracker.core.engine import ledger, turns
from dndtracker.core.engine.commands import Command
from dndtracker.core.engine.session import EncounterSession
from dndtracker.core.engine.state import NPC, Participant, Player, hp_band
from dndtracker.core.persistence.runtime_store import runtime_store
from dndtracker.core.persistence.state_codec import snapshot_filename
from dndtracker.db.deps import get_db
from dndtracker.db.models import Encounter

router = APIRouter(prefix="/encounters", tags=["encounter-runtime"])

_command_adapter: TypeAdapter = TypeAdapter(Command)


def _session_for(encounter_id: str, db: Session) -> EncounterSession:
    if db.get(Encounter, encounter_id) is None:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return runtime_store.get_or_open(encounter_id)


def _view(session: EncounterSession, p: Participant) -> ParticipantView:
    state = session.state
    return ParticipantView(
        name=p.name,
        kind=p.kind,
        hp_current=p.hp,
        hp_max=p.hp_max,
        hp_band=hp_band(p),
        initiative=p.initiative,
        is_dead=p.is_dead,
        turn_phase=turns.turn_phase(state, p),
        has_acted=turns.has_acted(state, p.name),
        acted_this_round=turns.acted_this_round(state, p.name),
        attacks_last_round=ledger.total_attacks_in_last_round(p),
        kills_last_round=len(ledger.killing_blows_in_last_round(p)),
        player_name=p.player_name if isinstance(p, Player) else None,
        race=p.race if isinstance(p, NPC) else None,
    )


@router.get("/{encounter_id}/state", response_model=TurnStateOut)
def get_state(encounter_id: str, db: Session = Depends(get_db)):
    session = _session_for(encounter_id, db)
    state = session.state
    return TurnStateOut(
        encounter_id=encounter_id,
        round=session.get_current_round(),
        initiative=session.get_current_initiative(),
        living_initiatives=session.distinct_living_initiatives(),
        players=[_view(session, p) for p in state.players],
        npcs=[_view(session, p) for p in state.npcs],
        monsters=[_view(session, p) for p in state.monsters],
    )


@router.post("/{encounter_id}/commands:apply", response_model=CommandResponse)
def apply_command(
    encounter_id: str, req: ApplyCommandRequest, db: Session = Depends(get_db)
):
    session = _session_for(encounter_id, db)

    try:
        cmd = _command_adapter.validate_python(req.command)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid command: {e}")

    outcome = session.dispatch(cmd)
    return CommandResponse(
        encounter_id=encounter_id,
        ok=outcome.ok,
        code=outcome.code,
        message=outcome.message,
        round=session.get_current_round(),
        initiative=session.get_current_initiative(),
        events_delta=outcome.events,
    )


@router.get(
    "/{encounter_id}/participants/{name}/report", response_model=ParticipantReportOut
)
def participant_report(encounter_id: str, name: str, db: Session = Depends(get_db)):
    session = _session_for(encounter_id, db)
    p = session.find_by_name(name)
    if p is None:
        raise HTTPException(status_code=404, detail="Participant not found")

    totals = ledger.ledger_totals(p)
    return ParticipantReportOut(
        name=p.name,
        report=ledger.format_round_report(p),
        totals=vars(totals),
    )


@router.get("/{encounter_id}/snapshot")
def export_snapshot(encounter_id: str, db: Session = Depends(get_db)):
    session = _session_for(encounter_id, db)
    doc = session.export_snapshot()
    return Response(
        content=json.dumps(doc, indent=2),
        media_type="application/json",
        headers={
            "Content-Disposition": f'attachment; filename="{snapshot_filename()}"'
        },
    )
