"""Scenario progression: start, read the live step, submit answers, summarize.

Per (user, scenario) a run moves NotStarted -> InProgress -> Completed | Failed.
Completed and Failed are terminal; only a new start leaves them, and start
always rebuilds the run from the root step.
"""
import logging
from datetime import datetime, timezone

from app.schemas.progress import (
    DecisionRecord,
    ProgressOutSchema,
    ProgressSnapshot,
    ProgressStatusSchema,
    StartResultSchema,
    StepViewSchema,
    SubmitResultSchema,
)
from app.schemas.scenario import StepOutSchema, StepSchema
from app.schemas.summary import (
    AnalysisContextSchema,
    AnalysisMetadataSchema,
    AnalysisOutSchema,
    SummarySchema,
)
from app.services.errors import (
    DataIntegrityError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    UpstreamAnalysisError,
)
from app.services.graph import ScenarioGraph
from app.services.narrative import Narrator, parse_analysis
from app.services.scoring import evaluate_decision, has_failed, is_bad_decision
from app.services.store import ProgressStore
from app.services.summary import enrich_for_analysis, generate_summary

logger = logging.getLogger(__name__)


class ProgressionEngine:
    def __init__(self, graph: ScenarioGraph, store: ProgressStore):
        self.graph = graph
        self.store = store

    async def start(self, user_id: str, scenario_id: int) -> StartResultSchema:
        """Create or fully reset the user's run and return the root step."""
        await self.graph.get_scenario(scenario_id)
        root = await self.graph.get_root_step(scenario_id)
        progress = await self.store.reset(user_id, scenario_id, root.id)
        logger.info("User %s started scenario %s at step %s", user_id, scenario_id, root.id)
        return StartResultSchema(step=StepOutSchema.from_step(root), progress=progress)

    async def _load_live(self, user_id: str, scenario_id: int, step_id: int) -> tuple[ProgressSnapshot, StepSchema]:
        progress = await self.store.load(user_id, scenario_id)
        if progress is None:
            raise NotFoundError("No active progress found. Start the scenario first.")
        if progress.is_terminal:
            raise InvalidStateError("Scenario already completed or failed")
        if progress.current_step_id != step_id:
            raise InvalidStateError("This is not the current step")
        step = await self.graph.get_step(step_id, scenario_id)
        return progress, step

    async def get_step(self, user_id: str, scenario_id: int, step_id: int) -> StepViewSchema:
        progress, step = await self._load_live(user_id, scenario_id, step_id)
        return StepViewSchema(
            step=StepOutSchema.from_step(step),
            progress=ProgressStatusSchema(total_xp=progress.score, bad_decision_count=progress.bad_decision_count),
        )

    async def submit_answer(self, user_id: str, scenario_id: int, step_id: int, option_id: str) -> SubmitResultSchema:
        progress, step = await self._load_live(user_id, scenario_id, step_id)
        option = step.find_option(option_id)
        if option is None:
            raise InvalidInputError("Invalid option selected")

        delta = option.xp_change
        quality = evaluate_decision(delta)
        score = progress.score + delta
        bad_count = progress.bad_decision_count + (1 if is_bad_decision(delta) else 0)
        decision = DecisionRecord(
            step_id=step_id,
            option_id=option_id,
            xp_change=delta,
            timestamp=datetime.now(timezone.utc),
        )
        status = ProgressStatusSchema(total_xp=score, bad_decision_count=bad_count)

        # failure wins over completion when both apply
        if has_failed(bad_count):
            updated = await self.store.record_decision(
                progress, decision, score=score, bad_decision_count=bad_count, current_step_id=None, failed=True
            )
            logger.info("User %s failed scenario %s with score %s", user_id, scenario_id, score)
            return SubmitResultSchema(
                is_complete=True,
                is_failed=True,
                reason="Too many bad decisions",
                xp_gained=delta,
                decision_quality=quality,
                progress=status,
                summary=generate_summary(updated),
            )

        if option.next_step_id is None:
            updated = await self.store.record_decision(
                progress, decision, score=score, bad_decision_count=bad_count, current_step_id=None, completed=True
            )
            logger.info("User %s completed scenario %s with score %s", user_id, scenario_id, score)
            return SubmitResultSchema(
                is_complete=True,
                is_failed=False,
                xp_gained=delta,
                decision_quality=quality,
                progress=status,
                summary=generate_summary(updated),
            )

        try:
            next_step = await self.graph.get_step(option.next_step_id, scenario_id)
        except NotFoundError as exc:
            logger.error(
                "Option %r of step %s points to missing step %s", option_id, step_id, option.next_step_id
            )
            raise DataIntegrityError("Next step not found") from exc

        await self.store.record_decision(
            progress, decision, score=score, bad_decision_count=bad_count, current_step_id=next_step.id
        )
        logger.debug("User %s moved from step %s to %s (%+d)", user_id, step_id, next_step.id, delta)
        return SubmitResultSchema(
            is_complete=False,
            is_failed=False,
            xp_gained=delta,
            decision_quality=quality,
            next_step=StepOutSchema.from_step(next_step),
            progress=status,
        )

    async def get_progress(self, user_id: str, scenario_id: int) -> ProgressOutSchema:
        scenario = await self.graph.get_scenario(scenario_id)
        progress = await self.store.load(user_id, scenario_id)
        if progress is None:
            raise NotFoundError("Progress not found for this scenario")
        return ProgressOutSchema(progress=progress, status=progress.status, scenario=scenario)

    async def get_summary(self, user_id: str, scenario_id: int) -> SummarySchema:
        progress = await self.store.load(user_id, scenario_id)
        if progress is None:
            raise NotFoundError("Progress not found for this scenario")
        return generate_summary(progress)

    async def get_summary_for_analysis(self, user_id: str, scenario_id: int) -> AnalysisContextSchema:
        progress = await self.store.load(user_id, scenario_id)
        if progress is None:
            raise NotFoundError("Progress not found for this scenario")
        scenario = await self.graph.get_scenario(scenario_id)

        async def lookup_step(step_id: int) -> StepSchema:
            return await self.graph.get_step(step_id, scenario_id)

        return await enrich_for_analysis(progress, scenario, lookup_step)

    async def analyze(self, user_id: str, scenario_id: int, narrator: Narrator) -> AnalysisOutSchema:
        """Ask the narrator for a post-mortem of a finished run."""
        context = await self.get_summary_for_analysis(user_id, scenario_id)
        if context.outcome == "INCOMPLETE":
            raise InvalidStateError("Analysis can only be generated for completed or failed scenarios")

        try:
            analysis = parse_analysis(await narrator.generate(context))
        except UpstreamAnalysisError as exc:
            logger.error("Narrative analysis failed for user %s scenario %s: %s", user_id, scenario_id, exc)
            raise UpstreamAnalysisError(exc.message, summary=context.summary) from exc

        return AnalysisOutSchema(
            analysis=analysis,
            metadata=AnalysisMetadataSchema(
                scenario_title=context.scenario.title,
                scenario_role=context.scenario.role,
                scenario_difficulty=context.scenario.difficulty.value,
                completed=context.summary.completed,
                failed=context.summary.failed,
                final_score=context.final_score,
                total_decisions=context.summary.total_decisions,
                bad_decisions=context.bad_decision_count,
            ),
        )
