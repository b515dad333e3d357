"""API routes: JSON for scenarios, step progression, summaries and analysis."""
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.db.session import get_db
from app.schemas.progress import ProgressOutSchema, StartResultSchema, StepViewSchema, SubmitResultSchema
from app.schemas.scenario import AnswerSubmitSchema, Difficulty, ScenarioOutSchema
from app.schemas.summary import AnalysisOutSchema, SummarySchema
from app.services.graph import ScenarioGraph
from app.services.narrative import GeminiNarrator, Narrator
from app.services.progression import ProgressionEngine
from app.services.store import ProgressStore

router = APIRouter(prefix="/api", tags=["api"])
settings = get_settings()


def get_user_id(request: Request, response: Response) -> str:
    """Identity comes from the session cookie; a new guest id is issued when absent."""
    sid = request.cookies.get(settings.session_cookie_name)
    if not sid:
        sid = str(uuid.uuid4())
        response.set_cookie(
            key=settings.session_cookie_name,
            value=sid,
            max_age=settings.session_cookie_max_age,
            httponly=True,
            samesite="lax",
        )
    return sid


def get_graph(db: Annotated[AsyncSession, Depends(get_db)]) -> ScenarioGraph:
    return ScenarioGraph(db)


def get_engine(
    db: Annotated[AsyncSession, Depends(get_db)],
    graph: Annotated[ScenarioGraph, Depends(get_graph)],
) -> ProgressionEngine:
    return ProgressionEngine(graph, ProgressStore(db))


def get_narrator() -> Narrator:
    return GeminiNarrator(get_settings())


UserId = Annotated[str, Depends(get_user_id)]
Engine = Annotated[ProgressionEngine, Depends(get_engine)]


@router.get("/scenarios", response_model=list[ScenarioOutSchema])
async def list_scenarios(
    graph: Annotated[ScenarioGraph, Depends(get_graph)],
    difficulty: Difficulty | None = None,
    role: str | None = None,
    search: str | None = None,
):
    """List scenarios, newest first. Steps are not included."""
    return await graph.list_scenarios(
        difficulty=difficulty.value if difficulty else None,
        role=role,
        search=search,
    )


@router.get("/scenarios/{scenario_id}", response_model=ScenarioOutSchema)
async def get_scenario(
    scenario_id: int,
    graph: Annotated[ScenarioGraph, Depends(get_graph)],
):
    return await graph.get_scenario(scenario_id)


@router.post("/scenarios/{scenario_id}/start", response_model=StartResultSchema)
async def start_scenario(scenario_id: int, user_id: UserId, engine: Engine):
    """Start (or restart from scratch) a scenario; returns the root step."""
    return await engine.start(user_id, scenario_id)


@router.get("/scenarios/{scenario_id}/steps/{step_id}", response_model=StepViewSchema)
async def get_step(scenario_id: int, step_id: int, user_id: UserId, engine: Engine):
    return await engine.get_step(user_id, scenario_id, step_id)


@router.post("/scenarios/{scenario_id}/steps/{step_id}/answer", response_model=SubmitResultSchema)
async def submit_answer(
    scenario_id: int,
    step_id: int,
    body: AnswerSubmitSchema,
    user_id: UserId,
    engine: Engine,
):
    """Submit the chosen option for the current step."""
    return await engine.submit_answer(user_id, scenario_id, step_id, body.option_id)


@router.get("/scenarios/{scenario_id}/summary", response_model=SummarySchema)
async def get_summary(scenario_id: int, user_id: UserId, engine: Engine):
    return await engine.get_summary(user_id, scenario_id)


@router.post("/scenarios/{scenario_id}/analyze", response_model=AnalysisOutSchema)
async def analyze(
    scenario_id: int,
    user_id: UserId,
    engine: Engine,
    narrator: Annotated[Narrator, Depends(get_narrator)],
):
    """Generate the narrative post-mortem for a completed or failed run."""
    return await engine.analyze(user_id, scenario_id, narrator)


@router.get("/progress/{scenario_id}", response_model=ProgressOutSchema)
async def get_progress(scenario_id: int, user_id: UserId, engine: Engine):
    return await engine.get_progress(user_id, scenario_id)
