from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from dndtracker.api.schemas import (
    EncounterSaveCreate,
    EncounterSaveOut,
    EncounterSaveWithSnapshotOut,
)
from dndtracker.core.persistence.runtime_store import runtime_store
from dndtracker.db.deps import get_db
from dndtracker.db.models import Encounter, EncounterSave

router = APIRouter(prefix="/encounters", tags=["encounter_saves"])


def _out(obj: EncounterSave) -> EncounterSaveOut:
    return EncounterSaveOut(
        id=obj.id,
        encounter_id=obj.encounter_id,
        label=obj.label,
        created_at=obj.created_at,
    )


@router.post("/{encounter_id}/saves", response_model=EncounterSaveOut)
def create_save(
    encounter_id: str, payload: EncounterSaveCreate, db: Session = Depends(get_db)
):
    enc = db.get(Encounter, encounter_id)
    if not enc:
        raise HTTPException(status_code=404, detail="Encounter not found")

    session = runtime_store.get_or_open(encounter_id)
    obj = EncounterSave(
        encounter_id=encounter_id,
        label=payload.label,
        snapshot_json=session.export_snapshot(),
    )

    db.add(obj)
    db.commit()
    db.refresh(obj)
    return _out(obj)


@router.get("/{encounter_id}/saves", response_model=list[EncounterSaveOut])
def list_saves(encounter_id: str, db: Session = Depends(get_db)):
    enc = db.get(Encounter, encounter_id)
    if not enc:
        raise HTTPException(status_code=404, detail="Encounter not found")

    items = (
        db.query(EncounterSave)
        .filter(EncounterSave.encounter_id == encounter_id)
        .order_by(EncounterSave.created_at.desc())
        .all()
    )
    return [_out(s) for s in items]


@router.get(
    "/{encounter_id}/saves/{save_id}", response_model=EncounterSaveWithSnapshotOut
)
def load_save(encounter_id: str, save_id: str, db: Session = Depends(get_db)):
    obj = db.get(EncounterSave, save_id)
    if not obj or obj.encounter_id != encounter_id:
        raise HTTPException(status_code=404, detail="Save not found")

    return EncounterSaveWithSnapshotOut(
        id=obj.id,
        encounter_id=obj.encounter_id,
        label=obj.label,
        created_at=obj.created_at,
        snapshot=obj.snapshot_json,
    )


@router.post("/{encounter_id}/saves/{save_id}:restore", response_model=EncounterSaveOut)
def restore_save(encounter_id: str, save_id: str, db: Session = Depends(get_db)):
    obj = db.get(EncounterSave, save_id)
    if not obj or obj.encounter_id != encounter_id:
        raise HTTPException(status_code=404, detail="Save not found")

    try:
        runtime_store.open(encounter_id, obj.snapshot_json)
    except (ValueError, KeyError, TypeError) as e:
        raise HTTPException(status_code=422, detail=f"Save cannot be restored: {e}")
    return _out(obj)
