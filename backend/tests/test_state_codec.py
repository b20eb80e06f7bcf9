from datetime import date

import pytest

from dndtracker.core.adapters import DEMO_ROSTER, participant_from_legacy, participant_to_legacy
from dndtracker.core.engine.commands import AttackLine, RoundSubmission, SubmitRoundEntry
from dndtracker.core.engine.rules.apply import apply_command
from dndtracker.core.engine.state import EncounterState, Monster, NPC, Player
from dndtracker.core.persistence.state_codec import (
    encounter_snapshot,
    encounter_state_from_snapshot,
    snapshot_filename,
)


def _played() -> EncounterState:
    state = EncounterState.start(
        players=[Player(name="Thorin", player_name="Alex", hp_max=45, initiative=16)],
        npcs=[NPC(name="Aldric", race="Human", hp_max=58, initiative=12)],
        monsters=[Monster(name="Goblin", hp_max=7, initiative=10)],
    )
    state, _ = apply_command(
        state,
        SubmitRoundEntry(
            participant_name="Thorin",
            submission=RoundSubmission(attacks=[AttackLine(target_name="Goblin", damage=9)]),
        ),
    )
    return state


def test_snapshot_restores_roster_ledgers_and_turn_state():
    state = _played()
    state.round = 3
    state.initiative = 12

    restored = encounter_state_from_snapshot(encounter_snapshot(state))

    assert restored.round == 3
    assert restored.initiative == 12
    thorin = restored.players[0]
    assert thorin.player_name == "Alex"
    assert thorin.round_log[0].killing_blows == ["Goblin"]
    assert thorin.round_log[0].attack_sets[0].damage_dealt[0].amount == 9
    assert restored.npcs[0].race == "Human"
    goblin = restored.monsters[0]
    assert (goblin.hp_current, goblin.is_dead, goblin.initiative) == (0, True, 0)


def test_snapshot_without_turn_state_starts_at_top():
    doc = encounter_snapshot(_played())
    del doc["round"]
    del doc["initiative"]

    restored = encounter_state_from_snapshot(doc)

    assert restored.round == 1
    assert restored.initiative == 16


def test_snapshot_missing_category_is_rejected():
    with pytest.raises(ValueError):
        encounter_state_from_snapshot({"players": [], "npcs": []})


def test_legacy_document_is_imported():
    state = encounter_state_from_snapshot(DEMO_ROSTER)

    assert [p.name for p in state.players] == ["Thorin Ironbeard", "Luna Starweaver", "Shadow"]
    assert state.npcs[1].race == "Elf"
    assert state.monsters[0].hp_current == 23
    assert state.initiative == 18


def test_legacy_record_keeps_round_stats():
    raw = {
        "npcType": "Orc Warrior",
        "maxHps": 15,
        "currentHps": 0,
        "initiative": 13,
        "isDead": True,
        "roundStats": [
            {
                "roundId": 2,
                "attacks": [
                    {
                        "noOfAttacks": 2,
                        "damageDealt": [{"name": "Thorin", "amount": 6}],
                        "damageTaken": [],
                        "healingDealt": [],
                        "healingTaken": [],
                        "actions": [{"action": "Rage"}],
                    }
                ],
                "killingBlows": [],
            }
        ],
    }

    orc = participant_from_legacy(raw)

    assert orc.kind == "monster"
    assert orc.initiative == 0
    assert orc.round_log[0].round_id == 2
    assert orc.round_log[0].attack_sets[0].actions_taken == ["Rage"]
    assert participant_to_legacy(orc)["roundStats"][0]["attacks"][0]["noOfAttacks"] == 2


def test_snapshot_filename():
    assert snapshot_filename(date(2024, 3, 9)) == "dnd-round-tracker-2024-03-09.json"


def test_duplicate_names_across_categories_are_rejected():
    doc = {
        "players": [{"name": "Kim", "player_name": "Jo", "hp_max": 10, "initiative": 5}],
        "npcs": [],
        "monsters": [{"name": "Kim", "hp_max": 4, "initiative": 7}],
    }
    with pytest.raises(ValueError):
        encounter_state_from_snapshot(doc)


def test_non_object_record_is_rejected():
    with pytest.raises(ValueError):
        encounter_state_from_snapshot({"players": ["oops"], "npcs": [], "monsters": []})


def test_saved_initiative_that_died_out_goes_to_top():
    doc = encounter_snapshot(_played())
    doc["initiative"] = 10  # the goblin's value; the goblin is dead

    restored = encounter_state_from_snapshot(doc)

    assert restored.initiative == 16
