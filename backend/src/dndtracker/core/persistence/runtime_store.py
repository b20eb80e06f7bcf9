from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Optional

from dndtracker.config import TrackerSettings, get_settings
from dndtracker.core.engine.session import EncounterSession
from dndtracker.core.persistence.state_codec import encounter_state_from_snapshot

logger = logging.getLogger(__name__)


class RuntimeStore:
    """
    Live encounter sessions keyed by encounter id.

    Sessions exist for the lifetime of the process only; exported snapshots
    are the only thing that can be written elsewhere.
    """

    def __init__(self, settings: Optional[TrackerSettings] = None) -> None:
        self._settings = settings
        self._sessions: Dict[str, EncounterSession] = {}
        self._lock = threading.RLock()

    @property
    def settings(self) -> TrackerSettings:
        return self._settings or get_settings()

    def open(
        self, encounter_id: str, roster: Optional[Dict[str, Any]] = None
    ) -> EncounterSession:
        """Start (or restart) the session of ``encounter_id`` from a roster document."""
        doc = {"players": [], "npcs": [], "monsters": []}
        if roster:
            doc.update({k: roster[k] for k in ("players", "npcs", "monsters") if k in roster})
            for key in ("round", "initiative"):
                if key in roster:
                    doc[key] = roster[key]

        state = encounter_state_from_snapshot(
            doc,
            fallback_initiative=self.settings.fallback_initiative,
            revival_initiative=self.settings.revival_initiative,
        )
        session = EncounterSession(state)
        with self._lock:
            self._sessions[encounter_id] = session
        logger.info(
            "encounter %s opened with %d participant(s)",
            encounter_id,
            len(session.all_participants()),
        )
        return session

    def get(self, encounter_id: str) -> Optional[EncounterSession]:
        with self._lock:
            return self._sessions.get(encounter_id)

    def get_or_open(self, encounter_id: str) -> EncounterSession:
        with self._lock:
            session = self._sessions.get(encounter_id)
            if session is None:
                session = self.open(encounter_id)
            return session

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


runtime_store = RuntimeStore()
