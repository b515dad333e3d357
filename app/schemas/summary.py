"""Pydantic schemas for run summaries, analysis transcripts and narrative output."""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.scenario import ScenarioOutSchema


class DecisionQuality(str, Enum):
    GOOD = "good"
    RISKY = "risky"
    BAD = "bad"


class Performance(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    AVERAGE = "average"
    POOR = "poor"


class SummaryDecisionSchema(BaseModel):
    step_id: int
    option_id: str
    xp_change: int
    quality: DecisionQuality
    timestamp: datetime


class SummarySchema(BaseModel):
    total_xp: int
    total_decisions: int
    good_decisions: int
    risky_decisions: int
    bad_decisions: int
    performance: Performance
    completed: bool
    failed: bool
    decisions: list[SummaryDecisionSchema]


class EnrichedDecisionSchema(BaseModel):
    step_context: str
    option_text: str
    xp_change: int


class AnalysisContextSchema(BaseModel):
    """Everything the narrative collaborator gets to see about one run."""

    scenario: ScenarioOutSchema
    outcome: str  # COMPLETED | FAILED | INCOMPLETE
    final_score: int
    bad_decision_count: int
    summary: SummarySchema
    decisions: list[EnrichedDecisionSchema]


class NarrativeAnalysis(BaseModel):
    """Structured mentoring feedback. All five fields are required and non-null."""

    summary: str
    strengths: list[str]
    mistakes: list[str]
    recommendations: list[str]
    senior_perspective: str = Field(alias="seniorPerspective")

    class Config:
        populate_by_name = True


class AnalysisMetadataSchema(BaseModel):
    scenario_title: str
    scenario_role: str
    scenario_difficulty: str
    completed: bool
    failed: bool
    final_score: int
    total_decisions: int
    bad_decisions: int


class AnalysisOutSchema(BaseModel):
    analysis: NarrativeAnalysis
    metadata: AnalysisMetadataSchema
