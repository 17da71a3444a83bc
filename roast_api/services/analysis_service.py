"""LLM analysis: resume + job description in, validated StructuredAnalysis out."""
import json
import logging
from functools import lru_cache
from typing import Optional

import httpx
from openai import OpenAI, OpenAIError
from pydantic import ValidationError

from roast_api.core.config import settings
from roast_api.errors.exceptions import AnalysisError
from roast_api.schemas.analysis_schemas import StructuredAnalysis

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a brutally honest hiring expert with 20 years of recruiting experience. "
    "Respond only with valid JSON. Be specific, be funny, be helpful."
)

ANALYSIS_PROMPT = """You are a brutally honest hiring manager and recruiter who reviews job applications. A candidate applied for a job and didn't get it. Provide a COMPREHENSIVE analysis.

RESUME:
{resume}

JOB DESCRIPTION:
{job_description}

Provide your analysis in the following JSON format:
{{
  "grade": "A+" to "F" letter grade (A+ = perfect fit, F = complete mismatch). Include + or - modifiers,
  "headline": "A one-line brutal summary (funny but true, max 100 chars)",
  "rejection": "2-3 paragraphs explaining exactly why they didn't get the job. Be specific. Be brutally honest but constructive.",
  "recruiterNotes": [
    {{ "section": "Experience" | "Skills" | "Education" | "Overall", "note": "What the recruiter actually thought" }}
  ],
  "skillGapHeatmap": [
    {{ "skill": "Required skill from JD", "status": "missing" | "weak" | "strong", "jdMention": true, "resumeMention": false }}
  ],
  "priorities": [
    {{ "rank": 1, "issue": "Most critical issue to fix", "effort": "Low" | "Medium" | "High", "impact": "Low" | "Medium" | "High", "action": "Specific action to take" }}
  ],
  "competition": {{
    "estimatedApplicants": number (50-500),
    "estimatedRank": number,
    "percentile": number (0-100),
    "competitionLevel": "Low" | "Medium" | "High" | "Extreme"
  }},
  "bulletRewrite": {{ "before": "Their weakest bullet point", "after": "Impactful, quantified rewrite", "why": "What makes it better" }},
  "atsScore": {{
    "score": number (0-100),
    "issues": [{{ "category": "Keywords" | "Formatting" | "Sections" | "Length" | "Contact Info", "severity": "Critical" | "Warning" | "Minor", "issue": "Specific ATS issue" }}],
    "missingKeywords": ["Important JD keywords missing in the resume"],
    "tips": ["3 ATS optimization tips"]
  }},
  "hiringManagerQuote": "What the hiring manager probably said (funny, realistic)",
  "improvements": ["4-5 specific, actionable improvement tips"]
}}

Analyze 6-10 key requirements in skillGapHeatmap and give exactly 3 priorities.
Be savage but helpful. Make it entertaining AND genuinely useful."""


def parse_analysis(content: Optional[str]) -> StructuredAnalysis:
    """Validate raw model output. Raises AnalysisError on empty, non-JSON or off-schema content."""
    if not content or not content.strip():
        raise AnalysisError("No response from AI")
    try:
        payload = json.loads(content)
    except json.JSONDecodeError as exc:
        raise AnalysisError(f"AI returned invalid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise AnalysisError("AI returned a non-object JSON payload")
    try:
        return StructuredAnalysis.model_validate(payload)
    except ValidationError as exc:
        raise AnalysisError(f"AI response did not match the analysis schema: {exc.error_count()} error(s)") from exc


class AnalysisService:
    """Thin adapter over OpenAI chat completions in JSON mode."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        client: Optional[OpenAI] = None,
    ):
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.model = model or settings.OPENAI_MODEL
        if client is not None:
            self.client = client
            return
        if not self.api_key:
            raise AnalysisError("OPENAI_API_KEY is not configured")
        self.client = OpenAI(
            api_key=self.api_key,
            timeout=httpx.Timeout(settings.ANALYSIS_TIMEOUT_SECONDS, connect=10.0),
            max_retries=0,
        )

    def analyze(self, resume: str, job_description: str) -> StructuredAnalysis:
        """
        Run one analysis. Any transport, API or parsing failure is raised as
        AnalysisError; the caller treats it as retryable.
        """
        prompt = ANALYSIS_PROMPT.format(resume=resume, job_description=job_description)
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
                temperature=settings.OPENAI_TEMPERATURE,
            )
        except OpenAIError as exc:
            logger.error(f"OpenAI call failed: {exc}")
            raise AnalysisError(f"Analysis provider error: {exc}") from exc

        if not completion.choices:
            raise AnalysisError("No response from AI")
        analysis = parse_analysis(completion.choices[0].message.content)
        logger.info(f"Analysis complete: model={self.model}, grade={analysis.grade}")
        return analysis


@lru_cache
def get_analysis_service() -> AnalysisService:
    """FastAPI dependency; tests override it with a fake analyzer."""
    return AnalysisService()
