from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

# --- Enums / Literals ---
ProgramStatus = Literal["open", "waitlisted", "closed", "identified", "other"]
# None on the wire means "rejected"; see domain.state for the tagged form.
EnrollmentStatus = Literal["enrolled", "ongoing", "completed"]


def _new_id() -> str:
    return str(uuid4())


def _utcnow() -> datetime:
    return datetime.now(UTC)


# --- Catalog ---

class Program(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    sponsor: str = ""
    monetary_cap: str = ""
    description: str = ""
    enrollment_link: str | None = None
    program_status: ProgramStatus = "other"
    re_enrollment_date: date | None = None
    created_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)


class Drug(BaseModel):
    id: str = Field(default_factory=_new_id)
    name: str
    weekly_price: Decimal = Field(default=Decimal("0"), ge=0)
    monthly_price: Decimal = Field(default=Decimal("0"), ge=0)
    yearly_price: Decimal = Field(default=Decimal("0"), ge=0)


# --- Patient records ---

class Enrollment(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    program_id: str
    status: EnrollmentStatus | None = None
    completion_date: date | None = None
    enrolled_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class PatientDrug(BaseModel):
    id: str = Field(default_factory=_new_id)
    user_id: str
    drug_id: str
    refill_date: date | None = None
    # Snapshotted from the catalog Drug when the patient selects it.
    weekly_price: Decimal = Field(default=Decimal("0"), ge=0)
    monthly_price: Decimal = Field(default=Decimal("0"), ge=0)
    yearly_price: Decimal = Field(default=Decimal("0"), ge=0)
    created_at: datetime = Field(default_factory=_utcnow)


# --- Session ---

class SessionState(BaseModel):
    """Per-login session. Created at login, discarded at logout."""

    session_id: str = Field(default_factory=_new_id)
    user_id: str
    started_at: datetime = Field(default_factory=_utcnow)

    model_config = ConfigDict(frozen=True)
