from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field

ENV_PREFIX = "DNDTRACKER_"


class TrackerSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    # in-memory by default: saves live as long as the process
    database_url: str = "sqlite+pysqlite:///:memory:"

    # initiative shown when nobody alive has a positive initiative
    fallback_initiative: int = Field(default=20, ge=0)

    # placeholder initiative given to a revived participant
    revival_initiative: int = Field(default=1, ge=1)

    log_level: str = "INFO"


def settings_from_env(environ: dict[str, str] | None = None) -> TrackerSettings:
    env = os.environ if environ is None else environ
    raw: dict[str, str] = {}
    for name in TrackerSettings.model_fields:
        key = ENV_PREFIX + name.upper()
        if key in env:
            raw[name] = env[key]
    return TrackerSettings.model_validate(raw)


@lru_cache(maxsize=1)
def get_settings() -> TrackerSettings:
    return settings_from_env()
