def _demo(client):
    r = client.post("/encounters", json={"name": "Goblin Ambush", "demo": True})
    assert r.status_code == 200, r.text
    return r.json()["id"]


def _apply(client, enc_id, command):
    r = client.post(f"/encounters/{enc_id}/commands:apply", json={"command": command})
    assert r.status_code == 200, r.text
    return r.json()


def test_encounters_create_list_and_get(client):
    r = client.post("/encounters", json={"name": "Empty Table"})
    assert r.status_code == 200, r.text
    enc_id = r.json()["id"]

    r = client.get("/encounters")
    assert r.status_code == 200
    assert [e["id"] for e in r.json()] == [enc_id]

    r = client.get(f"/encounters/{enc_id}")
    assert r.status_code == 200
    assert r.json()["name"] == "Empty Table"

    # nobody at the table: the fallback initiative is shown
    r = client.get(f"/encounters/{enc_id}/state")
    assert r.json()["initiative"] == 20
    assert r.json()["living_initiatives"] == []


def test_demo_encounter_state(client):
    enc_id = _demo(client)

    r = client.get(f"/encounters/{enc_id}/state")
    assert r.status_code == 200
    st = r.json()
    assert st["round"] == 1
    assert st["initiative"] == 18
    assert st["living_initiatives"] == [18, 16, 15, 14, 13, 12, 10]
    shadow = next(p for p in st["players"] if p["name"] == "Shadow")
    assert shadow["turn_phase"] == "current"
    assert shadow["player_name"] == "Mike"
    orc = st["monsters"][0]
    assert orc["hp_band"] == "wounded"
    assert orc["turn_phase"] == "upcoming"


def test_create_with_roster_document(client):
    roster = {
        "players": [{"name": "Vex", "player_name": "Kim", "hp_max": 20, "initiative": 9}],
        "npcs": [],
        "monsters": [{"npcType": "Wolf", "maxHps": 11, "initiative": 12}],
    }
    r = client.post("/encounters", json={"name": "Mixed", "roster": roster})
    assert r.status_code == 200, r.text

    st = client.get(f"/encounters/{r.json()['id']}/state").json()
    assert st["initiative"] == 12
    assert [p["name"] for p in st["monsters"]] == ["Wolf"]


def test_create_with_bad_roster_is_422(client):
    roster = {"players": [{"name": "Nobody", "hp_max": 0}], "npcs": [], "monsters": []}
    r = client.post("/encounters", json={"name": "Bad", "roster": roster})
    assert r.status_code == 422


def test_commands_drive_the_encounter(client):
    enc_id = _demo(client)

    out = _apply(client, enc_id, {"type": "AdvanceInitiative"})
    assert out["ok"] is True
    assert out["initiative"] == 16
    assert [e["type"] for e in out["events_delta"]] == ["InitiativeAdvanced"]

    out = _apply(
        client,
        enc_id,
        {
            "type": "SubmitRoundEntry",
            "participant_name": "Thorin Ironbeard",
            "submission": {
                "attacks": [{"target_name": "Goblin Archer", "damage": 8}],
                "actions": ["Shove"],
            },
        },
    )
    assert out["ok"] is True
    types = [e["type"] for e in out["events_delta"]]
    assert "ParticipantDied" in types
    assert "KillingBlowRecorded" in types

    st = client.get(f"/encounters/{enc_id}/state").json()
    thorin = next(p for p in st["players"] if p["name"] == "Thorin Ironbeard")
    assert thorin["has_acted"] is True
    assert thorin["kills_last_round"] == 1
    assert thorin["attacks_last_round"] == 1
    assert 10 not in st["living_initiatives"]


def test_rejected_command_is_ok_false(client):
    enc_id = _demo(client)

    out = _apply(
        client,
        enc_id,
        {"type": "SubmitRoundEntry", "participant_name": "Shadow", "submission": {}},
    )
    assert out["ok"] is False
    assert out["code"] == "EMPTY_SUBMISSION"
    assert out["round"] == 1


def test_participant_report(client):
    enc_id = _demo(client)
    _apply(
        client,
        enc_id,
        {
            "type": "SubmitRoundEntry",
            "participant_name": "Luna Starweaver",
            "submission": {"spells": [{"spell_name": "Fireball", "total_damage": 28}]},
        },
    )

    r = client.get(f"/encounters/{enc_id}/participants/Luna Starweaver/report")
    assert r.status_code == 200, r.text
    body = r.json()
    assert "=== ROUND STATS FOR LUNA STARWEAVER ===" in body["report"]
    assert "Cast Fireball" in body["report"]
    assert body["totals"]["damage_dealt"] == 28

    r = client.get(f"/encounters/{enc_id}/participants/Nobody/report")
    assert r.status_code == 404


def test_snapshot_download(client):
    enc_id = _demo(client)

    r = client.get(f"/encounters/{enc_id}/snapshot")
    assert r.status_code == 200
    assert "dnd-round-tracker-" in r.headers["content-disposition"]
    doc = r.json()
    assert doc["round"] == 1
    assert len(doc["players"]) == 3


def test_saves_create_list_load_restore(client):
    enc_id = _demo(client)

    r = client.post(f"/encounters/{enc_id}/saves", json={"label": "round1"})
    assert r.status_code == 200, r.text
    save_id = r.json()["id"]

    r = client.get(f"/encounters/{enc_id}/saves")
    assert r.status_code == 200
    assert [s["id"] for s in r.json()] == [save_id]

    r = client.get(f"/encounters/{enc_id}/saves/{save_id}")
    assert r.status_code == 200
    loaded = r.json()
    assert loaded["label"] == "round1"
    assert loaded["snapshot"]["initiative"] == 18

    _apply(client, enc_id, {"type": "NextRound"})
    assert client.get(f"/encounters/{enc_id}/state").json()["round"] == 2

    r = client.post(f"/encounters/{enc_id}/saves/{save_id}:restore")
    assert r.status_code == 200, r.text
    assert client.get(f"/encounters/{enc_id}/state").json()["round"] == 1


def test_unknown_encounter_is_404(client):
    assert client.get("/encounters/nope").status_code == 404
    assert client.get("/encounters/nope/state").status_code == 404
    assert client.get("/encounters/nope/saves").status_code == 404
    r = client.post("/encounters/nope/commands:apply", json={"command": {"type": "NextRound"}})
    assert r.status_code == 404


def test_roster_with_repeated_name_is_422(client):
    roster = {
        "players": [{"name": "Kim", "player_name": "Jo", "hp_max": 10}],
        "npcs": [],
        "monsters": [{"name": "Kim", "hp_max": 4}],
    }
    r = client.post("/encounters", json={"name": "Twins", "roster": roster})
    assert r.status_code == 422


def test_roster_with_non_object_entry_is_422(client):
    roster = {"players": ["oops"], "npcs": [], "monsters": []}
    r = client.post("/encounters", json={"name": "Typo", "roster": roster})
    assert r.status_code == 422
