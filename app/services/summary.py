"""Run summaries and the enriched transcript handed to the narrative collaborator."""
import logging
from collections import Counter
from collections.abc import Awaitable, Callable

from app.schemas.progress import ProgressSnapshot
from app.schemas.scenario import ScenarioOutSchema, StepSchema
from app.schemas.summary import (
    AnalysisContextSchema,
    DecisionQuality,
    EnrichedDecisionSchema,
    SummaryDecisionSchema,
    SummarySchema,
)
from app.services.errors import ProgressionError
from app.services.scoring import compute_performance, evaluate_decision

logger = logging.getLogger(__name__)

CONTEXT_PLACEHOLDER = "Context not available"
OPTION_PLACEHOLDER = "Option not available"

StepLookup = Callable[[int], Awaitable[StepSchema]]


def outcome_label(progress: ProgressSnapshot) -> str:
    if progress.completed:
        return "COMPLETED"
    if progress.failed:
        return "FAILED"
    return "INCOMPLETE"


def generate_summary(progress: ProgressSnapshot) -> SummarySchema:
    """Count decisions per quality tier and grade the final score."""
    annotated = [
        SummaryDecisionSchema(
            step_id=d.step_id,
            option_id=d.option_id,
            xp_change=d.xp_change,
            quality=evaluate_decision(d.xp_change),
            timestamp=d.timestamp,
        )
        for d in progress.decisions
    ]
    counts = Counter(d.quality for d in annotated)
    return SummarySchema(
        total_xp=progress.score,
        total_decisions=len(annotated),
        good_decisions=counts[DecisionQuality.GOOD],
        risky_decisions=counts[DecisionQuality.RISKY],
        bad_decisions=counts[DecisionQuality.BAD],
        performance=compute_performance(progress.score),
        completed=progress.completed,
        failed=progress.failed,
        decisions=annotated,
    )


async def enrich_for_analysis(
    progress: ProgressSnapshot,
    scenario: ScenarioOutSchema,
    lookup_step: StepLookup,
) -> AnalysisContextSchema:
    """Attach step context and option text to every decision.

    A decision whose step or option can no longer be resolved gets
    placeholder text; the remaining decisions are still enriched.
    """
    transcript = []
    for decision in progress.decisions:
        context, option_text = CONTEXT_PLACEHOLDER, OPTION_PLACEHOLDER
        try:
            step = await lookup_step(decision.step_id)
        except ProgressionError as exc:
            logger.warning("Could not enrich decision at step %s: %s", decision.step_id, exc)
        else:
            context = step.context or CONTEXT_PLACEHOLDER
            option = step.find_option(decision.option_id)
            if option is not None and option.text:
                option_text = option.text
        transcript.append(
            EnrichedDecisionSchema(step_context=context, option_text=option_text, xp_change=decision.xp_change)
        )

    return AnalysisContextSchema(
        scenario=scenario,
        outcome=outcome_label(progress),
        final_score=progress.score,
        bad_decision_count=progress.bad_decision_count,
        summary=generate_summary(progress),
        decisions=transcript,
    )
