from .mapper import (
    DEMO_ROSTER,
    is_legacy_record,
    participant_from_legacy,
    participant_to_legacy,
)

__all__ = [
    "DEMO_ROSTER",
    "is_legacy_record",
    "participant_from_legacy",
    "participant_to_legacy",
]
