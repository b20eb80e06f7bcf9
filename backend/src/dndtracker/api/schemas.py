from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---- encounters ----


class EncounterCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    # snapshot-shaped roster: {players, npcs, monsters[, round, initiative]}
    roster: Optional[Dict[str, Any]] = None
    demo: bool = False


class EncounterOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    name: str
    created_at: datetime
    updated_at: datetime


# ---- runtime ----


class ParticipantView(BaseModel):
    name: str
    kind: str
    hp_current: int
    hp_max: int
    hp_band: str
    initiative: int
    is_dead: bool
    turn_phase: str
    has_acted: bool
    acted_this_round: bool
    attacks_last_round: int
    kills_last_round: int
    player_name: Optional[str] = None
    race: Optional[str] = None


class TurnStateOut(BaseModel):
    encounter_id: str
    round: int
    initiative: int
    living_initiatives: List[int] = Field(default_factory=list)
    players: List[ParticipantView] = Field(default_factory=list)
    npcs: List[ParticipantView] = Field(default_factory=list)
    monsters: List[ParticipantView] = Field(default_factory=list)


class ApplyCommandRequest(BaseModel):
    command: Dict[str, Any]


class CommandResponse(BaseModel):
    encounter_id: str
    ok: bool
    code: Optional[str] = None
    message: Optional[str] = None
    round: int
    initiative: int
    events_delta: List[Dict[str, Any]] = Field(default_factory=list)


class ParticipantReportOut(BaseModel):
    name: str
    report: str
    totals: Dict[str, int]


# ---- saves ----


class EncounterSaveCreate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    label: Optional[str] = None


class EncounterSaveOut(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str
    encounter_id: str
    label: Optional[str] = None
    created_at: datetime


class EncounterSaveWithSnapshotOut(EncounterSaveOut):
    snapshot: Dict[str, Any]
