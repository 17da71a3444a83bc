"""Validated shape of the LLM analysis.

The model output is parsed once, here. Required narrative fields must be
present; every extended field has an explicit default so downstream code never
sees a missing key.
"""
import re
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

GRADE_PATTERN = re.compile(r"^[A-DF][+-]?$")
_LEVELS = ("Low", "Medium", "High")


class _CamelModel(BaseModel):
    """Accepts the camelCase keys the prompt asks for, serializes snake_case."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"


def _title_level(value, allowed):
    if isinstance(value, str):
        candidate = value.strip().title()
        if candidate in allowed:
            return candidate
    return value


class RecruiterNote(_CamelModel):
    section: str
    note: str


class SkillGap(_CamelModel):
    skill: str
    status: Literal["missing", "weak", "strong"] = "missing"
    jd_mention: bool = True
    resume_mention: bool = False

    @field_validator("status", mode="before")
    @classmethod
    def lower_status(cls, value):
        return value.strip().lower() if isinstance(value, str) else value


class Priority(_CamelModel):
    rank: int = 1
    issue: str
    effort: Literal["Low", "Medium", "High"] = "Medium"
    impact: Literal["Low", "Medium", "High"] = "Medium"
    action: str = ""

    @field_validator("effort", "impact", mode="before")
    @classmethod
    def title_level(cls, value):
        return _title_level(value, _LEVELS)


class Competition(_CamelModel):
    estimated_applicants: int = 150
    estimated_rank: int = 75
    percentile: int = 50
    competition_level: Literal["Low", "Medium", "High", "Extreme"] = "Medium"

    @field_validator("percentile", mode="after")
    @classmethod
    def clamp_percentile(cls, value: int) -> int:
        return max(0, min(100, value))

    @field_validator("competition_level", mode="before")
    @classmethod
    def title_level(cls, value):
        return _title_level(value, _LEVELS + ("Extreme",))


class BulletRewrite(_CamelModel):
    before: str
    after: str
    why: str = ""


class ATSIssue(_CamelModel):
    category: str = "Keywords"
    issue: str
    severity: Literal["Critical", "Warning", "Minor"] = "Warning"

    @field_validator("severity", mode="before")
    @classmethod
    def title_severity(cls, value):
        return _title_level(value, ("Critical", "Warning", "Minor"))


class ATSScore(_CamelModel):
    score: int = 50
    issues: List[ATSIssue] = Field(default_factory=list)
    missing_keywords: List[str] = Field(default_factory=list)
    tips: List[str] = Field(default_factory=list)

    @field_validator("score", mode="after")
    @classmethod
    def clamp_score(cls, value: int) -> int:
        return max(0, min(100, value))


class StructuredAnalysis(_CamelModel):
    """The full roast. ``grade``, ``headline`` and ``rejection`` are mandatory."""
    grade: str
    headline: str = Field(..., min_length=1)
    rejection: str = Field(..., min_length=1)
    hiring_manager_quote: str = ""
    improvements: List[str] = Field(default_factory=list)

    recruiter_notes: List[RecruiterNote] = Field(default_factory=list)
    skill_gap_heatmap: List[SkillGap] = Field(default_factory=list)
    priorities: List[Priority] = Field(default_factory=list)
    competition: Competition = Field(default_factory=Competition)
    bullet_rewrite: Optional[BulletRewrite] = None
    ats_score: ATSScore = Field(default_factory=ATSScore)

    @field_validator("grade", mode="before")
    @classmethod
    def normalize_grade(cls, value):
        if not isinstance(value, str):
            raise ValueError("grade must be a letter grade string")
        grade = value.strip().upper()
        if not GRADE_PATTERN.match(grade):
            raise ValueError(f"unrecognised grade: {value!r}")
        return grade

    @field_validator("headline", mode="after")
    @classmethod
    def trim_headline(cls, value: str) -> str:
        value = value.strip()
        return value if len(value) <= 255 else value[:252] + "..."

    @field_validator("improvements", mode="before")
    @classmethod
    def drop_blank_improvements(cls, value):
        if isinstance(value, list):
            return [item for item in value if isinstance(item, str) and item.strip()]
        return value

    @property
    def skill_gaps(self) -> List[str]:
        """Skills the resume is missing or weak on."""
        return [gap.skill for gap in self.skill_gap_heatmap if gap.status != "strong"]
