"""Seed the built-in scenario graphs when the database has none."""
import json
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.scenario import Scenario
from app.models.step import Step
from app.services.errors import DataIntegrityError
from app.services.graph import find_graph_problems, to_step_schema

logger = logging.getLogger(__name__)

# Steps reference each other by key; "next" None ends the scenario.
SEED_SCENARIOS = [
    {
        "title": "Checkout latency spike on Black Friday",
        "role": "Backend Engineer",
        "difficulty": "medium",
        "description": (
            "p99 latency on the checkout service jumped from 300 ms to 9 s minutes after a deploy. "
            "Orders are timing out and the on-call channel is getting loud."
        ),
        "root": "page",
        "steps": {
            "page": {
                "context": "You are paged: checkout p99 is 9 s and error rate is 12%. A deploy went out 10 minutes ago.",
                "options": [
                    {"id": "ack_and_declare", "text": "Acknowledge, declare an incident and open a channel", "xp_change": 20, "next": "triage"},
                    {"id": "check_dashboards", "text": "Quietly look at dashboards before telling anyone", "xp_change": 5, "next": "triage"},
                    {"id": "restart_all", "text": "Restart every checkout pod right away", "xp_change": -10, "next": "triage"},
                ],
            },
            "triage": {
                "context": "Dashboards show DB connection pool saturation that started with the new release.",
                "options": [
                    {"id": "rollback", "text": "Roll back the deploy and watch the metrics", "xp_change": 25, "next": "stabilized"},
                    {"id": "bump_pool", "text": "Double the connection pool size in production config", "xp_change": 5, "next": "stabilized"},
                    {"id": "hotfix", "text": "Write a hotfix and push it straight to main", "xp_change": -15, "next": "hotfix_fallout"},
                ],
            },
            "hotfix_fallout": {
                "context": "The hotfix skipped CI and now the payment worker is crash-looping as well.",
                "options": [
                    {"id": "rollback_both", "text": "Roll back both releases to the last known good build", "xp_change": 10, "next": "stabilized"},
                    {"id": "another_hotfix", "text": "Push another untested hotfix", "xp_change": -20, "next": None},
                ],
            },
            "stabilized": {
                "context": "Latency is back under 400 ms. Stakeholders are asking what happened.",
                "options": [
                    {"id": "postmortem", "text": "Post a status update and schedule a blameless postmortem", "xp_change": 20, "next": None},
                    {"id": "close_silently", "text": "Close the incident and go back to feature work", "xp_change": 0, "next": None},
                ],
            },
        },
    },
]


async def seed_scenarios(db: AsyncSession) -> None:
    """Insert SEED_SCENARIOS if the scenarios table is empty."""
    count = (await db.execute(select(func.count(Scenario.id)))).scalar_one()
    if count:
        return

    for data in SEED_SCENARIOS:
        scenario = Scenario(
            title=data["title"],
            role=data["role"],
            difficulty=data["difficulty"],
            description=data["description"],
        )
        db.add(scenario)
        await db.flush()

        steps = {
            key: Step(scenario_id=scenario.id, context=step_data["context"], is_root=(key == data["root"]))
            for key, step_data in data["steps"].items()
        }
        db.add_all(steps.values())
        await db.flush()

        for key, step_data in data["steps"].items():
            options = [
                {
                    "id": o["id"],
                    "text": o["text"],
                    "xp_change": o["xp_change"],
                    "next_step_id": steps[o["next"]].id if o["next"] else None,
                }
                for o in step_data["options"]
            ]
            steps[key].options_json = json.dumps(options)

        problems = find_graph_problems([to_step_schema(s) for s in steps.values()])
        if problems:
            await db.rollback()
            raise DataIntegrityError(f"Seed scenario {data['title']!r} is malformed: {'; '.join(problems)}")
        logger.info("Seeded scenario %r with %d steps", scenario.title, len(steps))

    await db.commit()
