from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from dndtracker.config import get_settings


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite") and ":memory:" in url:
        # one shared connection, otherwise every checkout sees an empty db
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )
    return create_engine(url, echo=False, future=True)


engine = make_engine(get_settings().database_url)

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
