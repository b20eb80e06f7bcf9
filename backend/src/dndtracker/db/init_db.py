from __future__ import annotations

from . import session
from .base import Base
from . import models  # noqa: F401  (registers tables)


def init_db() -> None:
    Base.metadata.create_all(bind=session.engine)
