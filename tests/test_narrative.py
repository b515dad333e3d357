"""Tests for narrative prompt building, response validation and the analyze flow."""
import json

import pytest

from app.core.config import Settings
from app.schemas.scenario import ScenarioOutSchema
from app.schemas.summary import AnalysisContextSchema, EnrichedDecisionSchema, SummarySchema
from app.services.errors import InvalidStateError, UpstreamAnalysisError
from app.services.narrative import GeminiNarrator, build_analysis_prompt, parse_analysis
from tests.fakes import ANALYSIS, FakeNarrator


def _context(decisions=None) -> AnalysisContextSchema:
    decisions = decisions if decisions is not None else [
        EnrichedDecisionSchema(step_context="Pager fires", option_text="Declare incident", xp_change=20),
        EnrichedDecisionSchema(step_context="DB saturated", option_text="Hotfix to main", xp_change=-15),
    ]
    return AnalysisContextSchema(
        scenario=ScenarioOutSchema(id=1, title="Checkout latency", role="Backend Engineer", difficulty="medium",
                                   description="p99 is 9 s"),
        outcome="COMPLETED",
        final_score=5,
        bad_decision_count=1,
        summary=SummarySchema(
            total_xp=5, total_decisions=len(decisions), good_decisions=1, risky_decisions=0, bad_decisions=1,
            performance="average", completed=True, failed=False, decisions=[],
        ),
        decisions=decisions,
    )


def test_parse_analysis_plain_and_fenced():
    plain = parse_analysis(json.dumps(ANALYSIS))
    fenced = parse_analysis("```json\n" + json.dumps(ANALYSIS) + "\n```")

    assert plain == fenced
    assert plain.senior_perspective == "Stabilize, then investigate."
    assert plain.model_dump(by_alias=True) == ANALYSIS


@pytest.mark.parametrize("field", list(ANALYSIS))
def test_parse_analysis_rejects_missing_field(field):
    data = {k: v for k, v in ANALYSIS.items() if k != field}
    with pytest.raises(UpstreamAnalysisError):
        parse_analysis(json.dumps(data))


def test_parse_analysis_rejects_null_field():
    with pytest.raises(UpstreamAnalysisError, match="strengths"):
        parse_analysis(json.dumps({**ANALYSIS, "strengths": None}))


@pytest.mark.parametrize("text", ["", "not json", "[1, 2]", None])
def test_parse_analysis_rejects_garbage(text):
    with pytest.raises(UpstreamAnalysisError):
        parse_analysis(text)


def test_build_analysis_prompt_includes_transcript():
    prompt = build_analysis_prompt(_context())

    assert "Checkout latency" in prompt
    assert "Status: COMPLETED" in prompt
    assert "Decision 2:" in prompt
    assert "Hotfix to main" in prompt
    assert "Impact: -15" in prompt
    assert "Impact: +20" in prompt
    assert '"seniorPerspective"' in prompt


def test_build_analysis_prompt_without_decisions():
    prompt = build_analysis_prompt(_context(decisions=[]))

    assert "No decisions were recorded" in prompt
    assert "Decision 1:" not in prompt


async def test_gemini_narrator_requires_api_key():
    narrator = GeminiNarrator(Settings(gemini_api_key=None))
    with pytest.raises(UpstreamAnalysisError, match="not configured"):
        await narrator.generate(_context())


async def test_analyze_finished_run(engine, branching):
    scenario_id, steps = branching
    await engine.start("u1", scenario_id)
    await engine.submit_answer("u1", scenario_id, steps["root"], "A")
    await engine.submit_answer("u1", scenario_id, steps["b"], "fix")
    narrator = FakeNarrator(json.dumps(ANALYSIS))

    out = await engine.analyze("u1", scenario_id, narrator)

    assert out.analysis.summary == "Calm and methodical."
    assert out.metadata.completed
    assert out.metadata.final_score == 50
    assert out.metadata.total_decisions == 2
    assert out.metadata.scenario_difficulty == "medium"
    sent = narrator.contexts[0]
    assert [d.step_context for d in sent.decisions] == ["Alerts are firing", "The database is slow"]
    assert [d.option_text for d in sent.decisions] == ["Do A", "Do fix"]


async def test_analyze_requires_terminal_run(engine, branching):
    scenario_id, _ = branching
    await engine.start("u1", scenario_id)

    with pytest.raises(InvalidStateError):
        await engine.analyze("u1", scenario_id, FakeNarrator(json.dumps(ANALYSIS)))


async def test_analyze_malformed_reply_keeps_summary(engine, branching):
    scenario_id, steps = branching
    await engine.start("u1", scenario_id)
    await engine.submit_answer("u1", scenario_id, steps["root"], "B")
    partial = {k: v for k, v in ANALYSIS.items() if k != "recommendations"}

    with pytest.raises(UpstreamAnalysisError) as exc_info:
        await engine.analyze("u1", scenario_id, FakeNarrator(json.dumps(partial)))

    summary = exc_info.value.summary
    assert summary is not None
    assert summary.total_xp == -5
    assert summary.completed
