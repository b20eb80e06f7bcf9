from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from dndtracker.core.engine.state import AttackSet, Participant, RoundEntry

logger = logging.getLogger(__name__)


@dataclass
class LedgerTotals:
    attacks_made: int = 0
    damage_dealt: int = 0
    damage_taken: int = 0
    healing_dealt: int = 0
    healing_taken: int = 0
    killing_blows: int = 0
    rounds: int = 0


def find_entry(p: Participant, round_id: int) -> Optional[RoundEntry]:
    for entry in p.round_log:
        if entry.round_id == round_id:
            return entry
    return None


def ensure_entry(p: Participant, round_id: int) -> RoundEntry:
    """Find-or-create the participant's entry for ``round_id``."""
    entry = find_entry(p, round_id)
    if entry is None:
        entry = RoundEntry(round_id=round_id)
        p.round_log.append(entry)
    return entry


def record_round(p: Participant, round_id: int, attack_set: AttackSet) -> RoundEntry:
    """
    Append ``attack_set`` to the participant's entry for ``round_id``.

    A second submission in the same round lands in the same entry; earlier
    attack sets are never replaced.
    """
    entry = ensure_entry(p, round_id)
    entry.attack_sets.append(attack_set)
    return entry


def last_entry(p: Participant) -> Optional[RoundEntry]:
    if not p.round_log:
        return None
    return p.round_log[-1]


def total_attacks_in_last_round(p: Participant) -> int:
    entry = last_entry(p)
    if entry is None:
        return 0
    return sum(s.attacks_made for s in entry.attack_sets)


def killing_blows_in_last_round(p: Participant) -> List[str]:
    entry = last_entry(p)
    return list(entry.killing_blows) if entry is not None else []


def ledger_totals(p: Participant) -> LedgerTotals:
    totals = LedgerTotals(rounds=len(p.round_log))
    for entry in p.round_log:
        totals.killing_blows += len(entry.killing_blows)
        for s in entry.attack_sets:
            totals.attacks_made += s.attacks_made
            totals.damage_dealt += sum(r.amount for r in s.damage_dealt)
            totals.damage_taken += sum(r.amount for r in s.damage_taken)
            totals.healing_dealt += sum(r.amount for r in s.healing_dealt)
            totals.healing_taken += sum(r.amount for r in s.healing_taken)
    return totals


def format_round_report(p: Participant) -> str:
    lines: List[str] = [
        f"=== ROUND STATS FOR {p.name.upper()} ===",
        f"Type: {p.kind.upper()}",
        f"Initiative: {p.initiative}",
        f"Current HP: {p.hp_current}/{p.hp_max}",
        f"Status: {'DEAD' if p.is_dead else 'ALIVE'}",
        "--- ROUND-BY-ROUND BREAKDOWN ---",
    ]

    if not p.round_log:
        lines.append("No round stats available.")
    for entry in p.round_log:
        lines.append(f"ROUND {entry.round_id}:")
        for i, s in enumerate(entry.attack_sets, start=1):
            lines.append(f"  Attack Set {i}:")
            lines.append(f"    Number of Attacks: {s.attacks_made}")
            for title, records, unit in (
                ("Damage Dealt", s.damage_dealt, "damage"),
                ("Damage Taken", s.damage_taken, "damage"),
                ("Healing Dealt", s.healing_dealt, "healing"),
                ("Healing Received", s.healing_taken, "healing"),
            ):
                if records:
                    lines.append(f"    {title}:")
                    lines.extend(f"      - {r.name}: {r.amount} {unit}" for r in records)
            if s.actions_taken:
                lines.append("    Actions:")
                lines.extend(f"      - {a}" for a in s.actions_taken)
        if entry.killing_blows:
            lines.append(f"  Killing Blows: {', '.join(entry.killing_blows)}")

    report = "\n".join(lines)
    logger.debug("round report for %s\n%s", p.name, report)
    return report
