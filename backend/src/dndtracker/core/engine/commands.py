# backend/src/dndtracker/core/engine/commands.py

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class CommandBase(BaseModel):
    model_config = ConfigDict(extra="forbid")
    type: str


# --- round submission payload ---


class AttackLine(BaseModel):
    model_config = ConfigDict(extra="forbid")

    target_name: str = ""
    damage: int = 0

    def is_blank(self) -> bool:
        return not self.target_name and self.damage <= 0


class DamageTakenLine(BaseModel):
    model_config = ConfigDict(extra="forbid")

    amount: int = 0
    source: str = ""


class HealingLine(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: Literal["self", "others"] = "self"
    amount: int = 0
    healer_name: str = ""


class SpellLine(BaseModel):
    model_config = ConfigDict(extra="forbid")

    spell_name: str = ""
    number_of_attacks: int = 0
    total_damage: int = 0
    notes: str = ""

    def is_blank(self) -> bool:
        return not self.spell_name and self.number_of_attacks <= 0 and self.total_damage <= 0


class RoundSubmission(BaseModel):
    model_config = ConfigDict(extra="forbid")

    attacks: list[AttackLine] = Field(default_factory=list)
    damage_taken: Optional[DamageTakenLine] = None
    healing: Optional[HealingLine] = None
    spells: list[SpellLine] = Field(default_factory=list)
    actions: list[str] = Field(default_factory=list)

    def attack_lines(self) -> list[AttackLine]:
        return [a for a in self.attacks if not a.is_blank()]

    def spell_lines(self) -> list[SpellLine]:
        return [s for s in self.spells if not s.is_blank()]

    def action_lines(self) -> list[str]:
        return [a.strip() for a in self.actions if a and a.strip()]


# --- turn sequencer ---


class AdvanceInitiative(CommandBase):
    type: Literal["AdvanceInitiative"] = "AdvanceInitiative"


class RetreatInitiative(CommandBase):
    type: Literal["RetreatInitiative"] = "RetreatInitiative"


class ResetInitiative(CommandBase):
    type: Literal["ResetInitiative"] = "ResetInitiative"


class NextRound(CommandBase):
    type: Literal["NextRound"] = "NextRound"


class PreviousRound(CommandBase):
    type: Literal["PreviousRound"] = "PreviousRound"


class SetInitiative(CommandBase):
    type: Literal["SetInitiative"] = "SetInitiative"
    participant_name: str
    initiative: int


# --- resolution ---


class SubmitRoundEntry(CommandBase):
    type: Literal["SubmitRoundEntry"] = "SubmitRoundEntry"
    participant_name: str
    submission: RoundSubmission
    round_id: Optional[int] = None  # None -> current round


class ApplyHealing(CommandBase):
    type: Literal["ApplyHealing"] = "ApplyHealing"
    target_name: str
    amount: int


# --- roster ---


class AddParticipant(CommandBase):
    type: Literal["AddParticipant"] = "AddParticipant"
    kind: Literal["player", "npc", "monster"]
    name: str
    hp_max: int
    hp_current: Optional[int] = None
    initiative: int = 0
    player_name: str = ""  # players only
    race: str = ""  # NPCs only


Command = Annotated[
    Union[
        AdvanceInitiative,
        RetreatInitiative,
        ResetInitiative,
        NextRound,
        PreviousRound,
        SetInitiative,
        SubmitRoundEntry,
        ApplyHealing,
        AddParticipant,
    ],
    Field(discriminator="type"),
]
