from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dndtracker.api.schemas import EncounterCreate, EncounterOut
from dndtracker.core.adapters import DEMO_ROSTER
from dndtracker.core.persistence.runtime_store import runtime_store
from dndtracker.db.deps import get_db
from dndtracker.db.models import Encounter

router = APIRouter(prefix="/encounters", tags=["encounters"])


def _out(obj: Encounter) -> EncounterOut:
    return EncounterOut(
        id=obj.id,
        name=obj.name,
        created_at=obj.created_at,
        updated_at=obj.updated_at,
    )


@router.get("", response_model=list[EncounterOut])
def list_encounters(db: Session = Depends(get_db)):
    items = db.query(Encounter).order_by(Encounter.created_at.desc()).all()
    return [_out(e) for e in items]


@router.get("/{encounter_id}", response_model=EncounterOut)
def get_encounter(encounter_id: str, db: Session = Depends(get_db)):
    obj = db.get(Encounter, encounter_id)
    if not obj:
        raise HTTPException(status_code=404, detail="Encounter not found")
    return _out(obj)


@router.post("", response_model=EncounterOut)
def create_encounter(payload: EncounterCreate, db: Session = Depends(get_db)):
    roster = DEMO_ROSTER if payload.demo else payload.roster

    obj = Encounter(name=payload.name)
    db.add(obj)
    db.flush()

    try:
        runtime_store.open(obj.id, roster)
    except (ValueError, KeyError, TypeError) as e:
        db.rollback()
        raise HTTPException(status_code=422, detail=f"Invalid roster: {e}")

    db.commit()
    db.refresh(obj)
    return _out(obj)
