"""Tests for run summaries and transcript enrichment."""
from datetime import datetime, timedelta, timezone

from app.schemas.progress import DecisionRecord, ProgressSnapshot
from app.schemas.scenario import OptionSchema, ScenarioOutSchema, StepSchema
from app.schemas.summary import DecisionQuality, Performance
from app.services.errors import NotFoundError
from app.services.summary import CONTEXT_PLACEHOLDER, OPTION_PLACEHOLDER, enrich_for_analysis, generate_summary

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _progress(deltas, **overrides) -> ProgressSnapshot:
    decisions = [
        DecisionRecord(step_id=i + 1, option_id=f"o{i + 1}", xp_change=d, timestamp=T0 + timedelta(minutes=i))
        for i, d in enumerate(deltas)
    ]
    fields = {
        "id": 1,
        "user_id": "u1",
        "scenario_id": 7,
        "current_step_id": None,
        "score": sum(deltas),
        "completed": True,
        "failed": False,
        "bad_decision_count": sum(1 for d in deltas if d <= 0),
        "version": len(deltas),
        "decisions": decisions,
    }
    fields.update(overrides)
    return ProgressSnapshot(**fields)


def _scenario() -> ScenarioOutSchema:
    return ScenarioOutSchema(id=7, title="Disk full", role="SRE", difficulty="easy", description="The disk is full")


def test_generate_summary_counts_tiers():
    summary = generate_summary(_progress([20, 15, 14, 1, 0, -5]))

    assert summary.total_decisions == 6
    assert summary.good_decisions == 2
    assert summary.risky_decisions == 2
    assert summary.bad_decisions == 2
    assert summary.total_xp == 45
    assert summary.performance is Performance.AVERAGE
    assert summary.completed and not summary.failed
    assert [d.quality for d in summary.decisions][:3] == [
        DecisionQuality.GOOD,
        DecisionQuality.GOOD,
        DecisionQuality.RISKY,
    ]
    assert summary.decisions[1].timestamp == T0 + timedelta(minutes=1)


def test_generate_summary_empty_history():
    summary = generate_summary(_progress([], completed=False))

    assert summary.total_decisions == 0
    assert summary.performance is Performance.AVERAGE
    assert summary.decisions == []


async def test_enrich_uses_placeholders_without_aborting():
    steps = {
        1: StepSchema(id=1, scenario_id=7, context="Disk at 95%", options=[OptionSchema(id="o1", text="Rotate logs", xp_change=20)]),
        3: StepSchema(id=3, scenario_id=7, context="Disk at 100%", options=[]),
    }

    async def lookup(step_id: int) -> StepSchema:
        if step_id not in steps:
            raise NotFoundError("Step not found")
        return steps[step_id]

    context = await enrich_for_analysis(_progress([20, -5, 0], failed=True, completed=False), _scenario(), lookup)

    assert [(d.step_context, d.option_text) for d in context.decisions] == [
        ("Disk at 95%", "Rotate logs"),
        (CONTEXT_PLACEHOLDER, OPTION_PLACEHOLDER),
        ("Disk at 100%", OPTION_PLACEHOLDER),
    ]
    assert [d.xp_change for d in context.decisions] == [20, -5, 0]
    assert context.outcome == "FAILED"
    assert context.final_score == 15
    assert context.bad_decision_count == 2
    assert context.summary.total_decisions == 3
    assert context.scenario.title == "Disk full"


async def test_enrich_outcome_labels():
    async def lookup(step_id: int) -> StepSchema:
        raise NotFoundError("gone")

    completed = await enrich_for_analysis(_progress([20]), _scenario(), lookup)
    incomplete = await enrich_for_analysis(_progress([20], completed=False, current_step_id=2), _scenario(), lookup)

    assert completed.outcome == "COMPLETED"
    assert incomplete.outcome == "INCOMPLETE"
