from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class Encounter(Base):
    __tablename__ = "encounters"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    saves: Mapped[list["EncounterSave"]] = relationship(
        back_populates="encounter", cascade="all, delete-orphan"
    )


class EncounterSave(Base):
    __tablename__ = "encounter_saves"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    encounter_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("encounters.id"), nullable=False, index=True
    )
    label: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # snapshot document: {round, initiative, players, npcs, monsters, timestamp}
    snapshot_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    encounter: Mapped[Encounter] = relationship(back_populates="saves")
