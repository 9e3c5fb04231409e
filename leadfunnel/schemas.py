import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from leadfunnel.constants import (
    AI_STAGE_OPTIONS,
    DEFAULT_BUDGET,
    DEPARTMENT_LEVEL_OPTIONS,
    TEAM_SIZE_OPTIONS,
    TIMELINE_OPTIONS,
)
from leadfunnel.steps import Step

SET_FIELDS = ("industries", "business_domains", "challenges", "solutions")


def _digits(value: Any) -> str:
    return re.sub(r"[^0-9]", "", str(value or ""))


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FormData(CamelModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    role: str = ""
    company_name: str = ""
    website: str = ""
    team_size: str = TEAM_SIZE_OPTIONS[1]
    company_summary: str = ""
    website_insights: Optional[List[str]] = None
    industries: List[str] = Field(default_factory=list)
    department_level: str = DEPARTMENT_LEVEL_OPTIONS[1]
    business_domains: List[str] = Field(default_factory=list)
    other_business_domain: str = ""
    challenges: List[str] = Field(default_factory=list)
    challenge_clarification: str = ""
    ai_stage: str = AI_STAGE_OPTIONS[0]
    ai_use_case: str = ""
    solutions: List[str] = Field(default_factory=list)
    timeline: str = TIMELINE_OPTIONS[1]
    budget: str = DEFAULT_BUDGET
    generated_quote: Optional[str] = None
    is_quote_loading: Optional[bool] = None
    internal_notes: Optional[str] = None

    @field_validator(*SET_FIELDS)
    @classmethod
    def _unique(cls, value: List[str]) -> List[str]:
        return list(dict.fromkeys(value))

    @field_validator("budget", mode="before")
    @classmethod
    def _budget_digits(cls, value: Any) -> str:
        return _digits(value)

    def merged(self, patch: Dict[str, Any]) -> "FormData":
        """Return a validated copy with ``patch`` (attribute names) applied."""
        data = self.model_dump()
        data.update(patch)
        return FormData.model_validate(data)

    def all_domains(self) -> List[str]:
        return [d for d in [*self.business_domains, self.other_business_domain] if d]


class Draft(CamelModel):
    form_data: FormData
    current_step: Step

    @field_validator("current_step", mode="before")
    @classmethod
    def _integer_step(cls, value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("currentStep must be an integer")
        return value


class GuideContent(CamelModel):
    guide_text: str
    suggestions: List[str] = Field(default_factory=list)


class WebsiteSummary(BaseModel):
    summary: str
    insights: List[str] = Field(default_factory=list)


class SubmissionStatus(str, Enum):
    NEW = "new"
    IN_PROGRESS = "in_progress"
    PROPOSAL_SENT = "proposal_sent"
    CLOSED = "closed"


class SubmissionOut(FormData):
    id: str
    submitted_at: datetime
    status: SubmissionStatus = SubmissionStatus.NEW
    proposal_sent_at: Optional[datetime] = None


class SubmissionUpdate(CamelModel):
    status: Optional[SubmissionStatus] = None
    generated_quote: Optional[str] = None
    is_quote_loading: Optional[bool] = None
    internal_notes: Optional[str] = None
    proposal_sent_at: Optional[datetime] = None
    company_name: Optional[str] = None
    website: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    ai_stage: Optional[str] = None
    business_domains: Optional[List[str]] = None
    other_business_domain: Optional[str] = None
    challenges: Optional[List[str]] = None
    solutions: Optional[List[str]] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None

    @field_validator("budget", mode="before")
    @classmethod
    def _budget_digits(cls, value: Any) -> Optional[str]:
        return None if value is None else _digits(value)


class GuideIn(CamelModel):
    step: Step
    form_data: FormData = Field(default_factory=FormData)


class CompanySummaryIn(BaseModel):
    website: str


class RegenerateIn(CamelModel):
    executive_brief: str


class SendQuoteIn(CamelModel):
    subject: Optional[str] = None
    quote_content: Optional[str] = None


class ConfirmationEmailIn(CamelModel):
    email: EmailStr
    name: Optional[str] = None
    company_name: Optional[str] = None


class StatsQuery(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    industries: List[str] = Field(default_factory=list)
    ai_stages: List[str] = Field(default_factory=list)
    team_sizes: List[str] = Field(default_factory=list)
    budget_min: Optional[int] = None
    budget_max: Optional[int] = None
    search: Optional[str] = None
