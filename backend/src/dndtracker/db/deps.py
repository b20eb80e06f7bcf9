from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session

from . import session


def get_db() -> Iterator[Session]:
    db = session.SessionLocal()
    try:
        yield db
    finally:
        db.close()
