"""Shared fixtures: in-memory database and a scenario graph builder."""
import json

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.models.scenario import Scenario
from app.models.step import Step
from app.services.graph import ScenarioGraph
from app.services.progression import ProgressionEngine
from app.services.store import ProgressStore


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def engine(db) -> ProgressionEngine:
    return ProgressionEngine(ScenarioGraph(db), ProgressStore(db))


@pytest.fixture
def make_scenario(db):
    """Insert a scenario from {key: (context, [(option_id, xp, next_key), ...])}.

    Returns (scenario_id, {key: step_id}). next_key may be None (terminal) or
    an int, which is stored verbatim as a raw step id.
    """

    async def _make(steps: dict, root: str | None, *, title="Outage", role="SRE", difficulty="medium",
                    description="Something is on fire"):
        scenario = Scenario(title=title, role=role, difficulty=difficulty, description=description)
        db.add(scenario)
        await db.flush()
        rows = {key: Step(scenario_id=scenario.id, context=ctx, is_root=(key == root)) for key, (ctx, _) in steps.items()}
        db.add_all(rows.values())
        await db.flush()
        for key, (_, options) in steps.items():
            rows[key].options_json = json.dumps([
                {
                    "id": option_id,
                    "text": f"Do {option_id}",
                    "xp_change": xp,
                    "next_step_id": nxt if nxt is None or isinstance(nxt, int) else rows[nxt].id,
                }
                for option_id, xp, nxt in options
            ])
        await db.commit()
        return scenario.id, {key: row.id for key, row in rows.items()}

    return _make


@pytest.fixture
async def branching(make_scenario):
    """Root with A (+20 -> b) and B (-5 -> end); b ends with a good or a bad choice."""
    return await make_scenario(
        {
            "root": ("Alerts are firing", [("A", 20, "b"), ("B", -5, None)]),
            "b": ("The database is slow", [("fix", 30, None), ("ignore", -10, None)]),
        },
        root="root",
    )


@pytest.fixture
async def gauntlet(make_scenario):
    """Four steps where every step offers a bad choice that keeps the run going."""
    return await make_scenario(
        {
            "s1": ("Pager goes off", [("bad", -10, "s2"), ("good", 20, "s2")]),
            "s2": ("Logs are noisy", [("bad", 0, "s3"), ("risky", 5, "s3")]),
            "s3": (
                "Customers complain",
                [("bad_end", -10, None), ("bad_next", -10, "s4"), ("good_end", 20, None)],
            ),
            "s4": ("Wrap up", [("finish", 15, None)]),
        },
        root="s1",
    )
