from app.schemas.scenario import (
    AnswerSubmitSchema,
    Difficulty,
    OptionSchema,
    ScenarioOutSchema,
    StepOutSchema,
    StepSchema,
)
from app.schemas.summary import DecisionQuality, NarrativeAnalysis, Performance, SummarySchema
from app.schemas.progress import ProgressSnapshot, SubmitResultSchema

__all__ = [
    "AnswerSubmitSchema",
    "DecisionQuality",
    "Difficulty",
    "NarrativeAnalysis",
    "OptionSchema",
    "Performance",
    "ProgressSnapshot",
    "ScenarioOutSchema",
    "StepOutSchema",
    "StepSchema",
    "SubmitResultSchema",
    "SummarySchema",
]
