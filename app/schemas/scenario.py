"""Pydantic schemas for scenarios, steps and options."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ScenarioOutSchema(BaseModel):
    id: int
    title: str
    role: str
    difficulty: Difficulty
    description: str
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class OptionSchema(BaseModel):
    """One choice at a step. next_step_id None means the choice ends the scenario."""

    id: str
    text: str
    xp_change: int
    next_step_id: int | None = None


class StepSchema(BaseModel):
    """Full step as stored, including score deltas and outgoing edges."""

    id: int
    scenario_id: int
    context: str
    options: list[OptionSchema]
    is_root: bool = False

    @property
    def is_final(self) -> bool:
        return all(o.next_step_id is None for o in self.options)

    def find_option(self, option_id: str) -> OptionSchema | None:
        return next((o for o in self.options if o.id == option_id), None)


class OptionOutSchema(BaseModel):
    id: str
    text: str


class StepOutSchema(BaseModel):
    """Step as shown to the player: context and choice texts only."""

    id: int
    context: str
    options: list[OptionOutSchema]

    @classmethod
    def from_step(cls, step: StepSchema) -> "StepOutSchema":
        return cls(
            id=step.id,
            context=step.context,
            options=[OptionOutSchema(id=o.id, text=o.text) for o in step.options],
        )


class AnswerSubmitSchema(BaseModel):
    option_id: str = Field(min_length=1, max_length=64)
