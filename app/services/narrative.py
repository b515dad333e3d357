"""Narrative post-mortem: prompt construction, Gemini adapter and response validation."""
import json
import logging
import re

from google import genai
from google.genai import types
from pydantic import ValidationError

from app.core.config import Settings
from app.schemas.summary import AnalysisContextSchema, NarrativeAnalysis
from app.services.errors import UpstreamAnalysisError

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?```$", re.DOTALL)

_RESPONSE_FORMAT = """Respond with valid JSON only, using exactly this structure:
{
  "summary": "2-3 sentence overall assessment",
  "strengths": ["2-4 specific things done well"],
  "mistakes": ["2-4 risky or ineffective decisions, each with a short explanation"],
  "recommendations": ["3-5 concrete, actionable improvements"],
  "seniorPerspective": "One paragraph on how an experienced staff engineer would handle this incident"
}"""


def _scenario_block(context: AnalysisContextSchema) -> str:
    s = context.scenario
    return (
        "Scenario:\n"
        f"- Title: {s.title}\n"
        f"- Role: {s.role}\n"
        f"- Difficulty: {s.difficulty.value}\n"
        f"- Description: {s.description}\n\n"
        "Outcome:\n"
        f"- Status: {context.outcome}\n"
        f"- Final score: {context.final_score}\n"
        f"- Poor decisions: {context.bad_decision_count}\n"
        f"- Total decisions: {len(context.decisions)}\n"
    )


def build_analysis_prompt(context: AnalysisContextSchema) -> str:
    """Build the mentoring prompt for one finished run."""
    intro = (
        "You are a staff-level software engineer mentoring someone who just played "
        "an incident response simulation.\n\n"
    )
    if not context.decisions:
        return (
            intro
            + _scenario_block(context)
            + "\nNo decisions were recorded for this run. Say so briefly and suggest "
            "retrying the scenario.\n\n"
            + _RESPONSE_FORMAT
        )

    lines = []
    for i, d in enumerate(context.decisions, start=1):
        lines.append(
            f"Decision {i}:\n"
            f"- Situation: {d.step_context}\n"
            f"- Chosen action: {d.option_text}\n"
            f"- Impact: {d.xp_change:+d}\n"
        )
    return (
        intro
        + _scenario_block(context)
        + "\nDecision sequence:\n"
        + "\n".join(lines)
        + "\nReview this sequence from a real-world engineering point of view: what went well, "
        "where risks were taken, what a senior engineer would have done differently and how "
        "to improve. Keep a calm, constructive tone and do not mention points, XP or game "
        "mechanics.\n\n"
        + _RESPONSE_FORMAT
    )


def parse_analysis(text: str | None) -> NarrativeAnalysis:
    """Parse the collaborator's raw text. Missing or null fields are an upstream error."""
    cleaned = (text or "").strip()
    match = _FENCE_RE.match(cleaned)
    if match:
        cleaned = match.group(1).strip()
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise UpstreamAnalysisError(f"Analysis response is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise UpstreamAnalysisError("Analysis response is not a JSON object")
    try:
        return NarrativeAnalysis.model_validate(data)
    except ValidationError as exc:
        fields = sorted({str(e["loc"][0]) for e in exc.errors() if e["loc"]})
        raise UpstreamAnalysisError(f"Invalid analysis structure, bad fields: {', '.join(fields)}") from exc


class Narrator:
    """Turns an analysis context into raw model text."""

    async def generate(self, context: AnalysisContextSchema) -> str:
        raise NotImplementedError


class GeminiNarrator(Narrator):
    def __init__(self, settings: Settings):
        self.settings = settings

    async def generate(self, context: AnalysisContextSchema) -> str:
        if not self.settings.gemini_api_key:
            raise UpstreamAnalysisError("Narrative analysis is not configured (GEMINI_API_KEY missing)")

        client = genai.Client(api_key=self.settings.gemini_api_key)
        try:
            response = await client.aio.models.generate_content(
                model=self.settings.gemini_model,
                contents=build_analysis_prompt(context),
                config=types.GenerateContentConfig(
                    temperature=self.settings.analysis_temperature,
                    response_mime_type="application/json",
                ),
            )
        except Exception as exc:
            logger.error("Gemini request failed: %s", exc)
            raise UpstreamAnalysisError(f"Failed to generate analysis: {exc}") from exc
        return response.text or ""
