"""Read-only access to scenarios and their step graphs."""
import json
import logging
from collections import deque

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.scenario import Scenario
from app.models.step import Step
from app.schemas.scenario import OptionSchema, ScenarioOutSchema, StepSchema
from app.services.errors import DataIntegrityError, NotFoundError

logger = logging.getLogger(__name__)


def to_step_schema(step: Step) -> StepSchema:
    options = [OptionSchema(**o) for o in json.loads(step.options_json or "[]")]
    return StepSchema(
        id=step.id,
        scenario_id=step.scenario_id,
        context=step.context,
        options=options,
        is_root=bool(step.is_root),
    )


class ScenarioGraph:
    """Scenario and step lookups. Never writes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_scenarios(
        self,
        difficulty: str | None = None,
        role: str | None = None,
        search: str | None = None,
    ) -> list[ScenarioOutSchema]:
        stmt = select(Scenario)
        if difficulty:
            stmt = stmt.where(Scenario.difficulty == difficulty)
        if role:
            stmt = stmt.where(Scenario.role == role)
        if search:
            pattern = f"%{search}%"
            stmt = stmt.where(or_(Scenario.title.ilike(pattern), Scenario.description.ilike(pattern)))
        result = await self.db.execute(stmt.order_by(Scenario.created_at.desc(), Scenario.id.desc()))
        return [ScenarioOutSchema.model_validate(s) for s in result.scalars().all()]

    async def get_scenario(self, scenario_id: int) -> ScenarioOutSchema:
        result = await self.db.execute(select(Scenario).where(Scenario.id == scenario_id))
        scenario = result.scalar_one_or_none()
        if scenario is None:
            raise NotFoundError("Scenario not found")
        return ScenarioOutSchema.model_validate(scenario)

    async def get_root_step(self, scenario_id: int) -> StepSchema:
        result = await self.db.execute(
            select(Step).where(Step.scenario_id == scenario_id, Step.is_root == True)  # noqa: E712
        )
        roots = result.scalars().all()
        if not roots:
            raise NotFoundError("Root step not found for this scenario")
        if len(roots) > 1:
            raise DataIntegrityError(f"Scenario {scenario_id} has {len(roots)} root steps")
        return to_step_schema(roots[0])

    async def get_step(self, step_id: int, expected_scenario_id: int) -> StepSchema:
        """Return the step, refusing steps that belong to another scenario."""
        result = await self.db.execute(select(Step).where(Step.id == step_id))
        step = result.scalar_one_or_none()
        if step is None or step.scenario_id != expected_scenario_id:
            raise NotFoundError("Step not found")
        return to_step_schema(step)

    async def get_steps(self, scenario_id: int) -> list[StepSchema]:
        result = await self.db.execute(
            select(Step).where(Step.scenario_id == scenario_id).order_by(Step.id)
        )
        return [to_step_schema(s) for s in result.scalars().all()]

    async def check_graph(self, scenario_id: int) -> list[str]:
        """Return a list of structural problems; empty means the graph is sound."""
        return find_graph_problems(await self.get_steps(scenario_id))


def find_graph_problems(steps: list[StepSchema]) -> list[str]:
    problems = []
    by_id = {s.id: s for s in steps}
    roots = [s for s in steps if s.is_root]
    if len(roots) != 1:
        problems.append(f"expected exactly one root step, found {len(roots)}")

    for step in steps:
        option_ids = [o.id for o in step.options]
        if len(option_ids) != len(set(option_ids)):
            problems.append(f"step {step.id} has duplicate option ids")
        for option in step.options:
            if option.next_step_id is not None and option.next_step_id not in by_id:
                problems.append(
                    f"option {option.id!r} of step {step.id} points to missing step {option.next_step_id}"
                )

    if len(roots) == 1:
        seen = {roots[0].id}
        queue = deque([roots[0]])
        while queue:
            for option in queue.popleft().options:
                nxt = by_id.get(option.next_step_id)
                if nxt is not None and nxt.id not in seen:
                    seen.add(nxt.id)
                    queue.append(nxt)
        for step in steps:
            if step.id not in seen:
                problems.append(f"step {step.id} is unreachable from the root")

    if problems:
        logger.debug("Graph problems: %s", problems)
    return problems
