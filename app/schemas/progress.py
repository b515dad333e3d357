"""Pydantic schemas for progress snapshots and progression results."""
from datetime import datetime

from pydantic import BaseModel

from app.schemas.scenario import ScenarioOutSchema, StepOutSchema
from app.schemas.summary import DecisionQuality, SummarySchema


class DecisionRecord(BaseModel):
    step_id: int
    option_id: str
    xp_change: int
    timestamp: datetime

    class Config:
        frozen = True


class ProgressSnapshot(BaseModel):
    """Read-only copy of a Progress row and its decision history."""

    id: int
    user_id: str
    scenario_id: int
    current_step_id: int | None
    score: int
    completed: bool
    failed: bool
    bad_decision_count: int
    version: int
    decisions: list[DecisionRecord] = []

    class Config:
        frozen = True

    @property
    def is_terminal(self) -> bool:
        return self.completed or self.failed

    @property
    def status(self) -> str:
        if self.failed:
            return "failed"
        if self.completed:
            return "completed"
        return "in_progress"


class ProgressStatusSchema(BaseModel):
    total_xp: int
    bad_decision_count: int


class StartResultSchema(BaseModel):
    step: StepOutSchema
    progress: ProgressSnapshot


class StepViewSchema(BaseModel):
    step: StepOutSchema
    progress: ProgressStatusSchema


class SubmitResultSchema(BaseModel):
    is_complete: bool
    is_failed: bool
    xp_gained: int
    decision_quality: DecisionQuality
    progress: ProgressStatusSchema
    reason: str | None = None
    next_step: StepOutSchema | None = None
    summary: SummarySchema | None = None


class ProgressOutSchema(BaseModel):
    progress: ProgressSnapshot
    status: str
    scenario: ScenarioOutSchema
