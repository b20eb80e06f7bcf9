import pytest

from dndtracker.core.engine.state import EncounterState, Player, NPC, Monster, hp_band
from dndtracker.core.engine.commands import AddParticipant
from dndtracker.core.engine.rules.apply import apply_command
from dndtracker.core.engine import roster


def _table() -> EncounterState:
    return EncounterState.start(
        players=[
            Player(name="Thorin", player_name="Alex", hp_max=45, initiative=16),
            Player(name="Shadow", player_name="Mike", hp_max=28, initiative=18),
        ],
        npcs=[NPC(name="Grimjaw", race="Halfling", hp_max=18, initiative=8)],
        monsters=[
            Monster(name="Goblin", hp_max=7, initiative=10),
            Monster(name="Skeleton", hp_max=13, is_dead=True, initiative=9),
        ],
    )


def test_all_participants_keeps_category_and_roster_order():
    state = _table()
    assert [p.name for p in roster.all_participants(state)] == [
        "Thorin",
        "Shadow",
        "Grimjaw",
        "Goblin",
        "Skeleton",
    ]


def test_living_participants_and_targets():
    state = _table()
    assert [p.name for p in roster.living_participants(state)] == [
        "Thorin",
        "Shadow",
        "Grimjaw",
        "Goblin",
    ]
    targets = roster.living_targets(state, exclude="Thorin")
    assert [(t.name, t.kind) for t in targets] == [
        ("Shadow", "player"),
        ("Grimjaw", "npc"),
        ("Goblin", "monster"),
    ]


def test_find_by_name_across_categories():
    state = _table()
    assert roster.find_by_name(state, "Grimjaw").kind == "npc"
    assert roster.find_by_name(state, "Goblin").monster_type == "Goblin"
    assert roster.find_by_name(state, "Nobody") is None


def test_players_by_initiative():
    state = _table()
    assert [p.name for p in roster.players_by_initiative(state)] == ["Shadow", "Thorin"]


def test_constructor_normalizes_participants():
    skeleton = Monster(name="Skeleton", hp_max=13, hp_current=5, is_dead=True, initiative=9)
    assert (skeleton.hp_current, skeleton.initiative) == (0, 0)

    over = Player(name="Over", hp_max=10, hp_current=99, initiative=-3)
    assert (over.hp_current, over.initiative, over.is_dead) == (10, 0, False)

    with pytest.raises(ValueError):
        NPC(name="Nil", hp_max=0)


def test_hp_band():
    assert hp_band(Player(name="A", hp_max=100, hp_current=61)) == "healthy"
    assert hp_band(Player(name="B", hp_max=100, hp_current=60)) == "wounded"
    assert hp_band(Player(name="C", hp_max=100, hp_current=25)) == "critical"


def test_add_participant_command():
    state = _table()

    state, ev = apply_command(
        state,
        AddParticipant(kind="npc", name="Elara", race="Elf", hp_max=27, initiative=15),
    )
    assert [e["type"] for e in ev] == ["ParticipantAdded"]
    assert state.npcs[-1].name == "Elara"
    assert state.npcs[-1].race == "Elf"

    state, ev = apply_command(
        state, AddParticipant(kind="monster", name="Thorin", hp_max=5)
    )
    assert ev[0]["payload"]["code"] == "DUPLICATE_NAME"
    assert len(state.monsters) == 2


def test_add_participant_helper_rejects_duplicates():
    state = _table()
    with pytest.raises(ValueError):
        roster.add_participant(state, Monster(name="Goblin", hp_max=7))


def test_participants_by_kind_is_a_copy():
    state = _table()
    monsters = roster.participants_by_kind(state, "monster")
    assert [m.name for m in monsters] == ["Goblin", "Skeleton"]
    monsters.clear()
    assert len(state.monsters) == 2
