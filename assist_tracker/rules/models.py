from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class EnrollmentRules(BaseModel):
    default_portal_url: str
    handoff_requires_logout: bool = True

class CalendarRules(BaseModel):
    # Shown in the schedule when the patient has no refill date recorded.
    fallback_refill_days: int = Field(default=15, ge=0)

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

class Rules(BaseModel):
    project: ProjectRules
    enrollment: EnrollmentRules
    calendar: CalendarRules = Field(default_factory=CalendarRules)
    ops: OpsRules = Field(default_factory=OpsRules)
