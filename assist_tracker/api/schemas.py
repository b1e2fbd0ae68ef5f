from datetime import date, datetime
from decimal import Decimal

from fastapi import HTTPException
from pydantic import BaseModel

from assist_tracker.components.calendar import DayMarker, MonthGrid
from assist_tracker.components.enrollment import EnrollmentValidationError, ProgramView
from assist_tracker.domain.entities import Enrollment, EnrollmentStatus, PatientDrug, ProgramStatus
from assist_tracker.domain.state import Action, StateKind


# --- Session ---
class SessionCreateRequest(BaseModel):
    user_id: str


class SessionResponse(BaseModel):
    session_id: str
    user_id: str
    started_at: datetime


# --- Enrollment ---
class EnrollmentResponse(BaseModel):
    id: str
    program_id: str
    status: EnrollmentStatus | None
    completion_date: date | None
    enrolled_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, enrollment: Enrollment) -> "EnrollmentResponse":
        return cls(
            id=enrollment.id,
            program_id=enrollment.program_id,
            status=enrollment.status,
            completion_date=enrollment.completion_date,
            enrolled_at=enrollment.enrolled_at,
            updated_at=enrollment.updated_at,
        )


class TransitionRequest(BaseModel):
    action: Action
    completion_date: date | None = None


class TransitionResponse(BaseModel):
    enrollment: EnrollmentResponse
    requires_external_handoff: bool
    handoff_url: str | None
    logout_after_handoff: bool


# --- Calendar ---
class CalendarDayResponse(BaseModel):
    day: int
    marker: DayMarker


class MonthResponse(BaseModel):
    year: int
    month: int
    label: str
    days_in_month: int
    first_weekday: int
    day_names: list[str]
    days: list[CalendarDayResponse]

    @classmethod
    def from_grid(cls, grid: MonthGrid) -> "MonthResponse":
        return cls(
            year=grid.view.year,
            month=grid.view.month,
            label=grid.label,
            days_in_month=grid.days_in_month,
            first_weekday=grid.first_weekday,
            day_names=list(grid.day_names),
            days=[CalendarDayResponse(day=d.day, marker=d.marker) for d in grid.days],
        )


class ScheduleResponse(BaseModel):
    refill_date: date
    refill_date_estimated: bool
    re_enrollment_date: date | None
    month: MonthResponse


# --- Programs ---
class CostResponse(BaseModel):
    yearly_drug_cost: Decimal
    potential_saving: Decimal
    out_of_pocket_cost: Decimal


class ProgramResponse(BaseModel):
    id: str
    name: str
    sponsor: str
    monetary_cap: str
    description: str
    program_status: ProgramStatus
    re_enrollment_date: date | None
    state: StateKind
    enrollment: EnrollmentResponse | None
    actions: list[Action]
    notice: str | None
    cost: CostResponse | None
    schedule: ScheduleResponse | None

    @classmethod
    def from_view(cls, view: ProgramView) -> "ProgramResponse":
        program = view.program
        cost = None
        if view.cost is not None:
            cost = CostResponse(
                yearly_drug_cost=view.cost.yearly_drug_cost,
                potential_saving=view.cost.potential_saving,
                out_of_pocket_cost=view.cost.out_of_pocket_cost,
            )
        schedule = None
        if view.schedule is not None:
            schedule = ScheduleResponse(
                refill_date=view.schedule.refill_date,
                refill_date_estimated=view.schedule.refill_date_estimated,
                re_enrollment_date=view.schedule.re_enrollment_date,
                month=MonthResponse.from_grid(view.schedule.grid),
            )
        return cls(
            id=program.id,
            name=program.name,
            sponsor=program.sponsor,
            monetary_cap=program.monetary_cap,
            description=program.description,
            program_status=program.program_status,
            re_enrollment_date=program.re_enrollment_date,
            state=view.state.kind,
            enrollment=EnrollmentResponse.from_entity(view.enrollment) if view.enrollment else None,
            actions=list(view.actions),
            notice=view.notice,
            cost=cost,
            schedule=schedule,
        )


class ProgramListResponse(BaseModel):
    items: list[ProgramResponse]
    total: int


# --- Medication ---
class SelectDrugRequest(BaseModel):
    drug_id: str
    refill_date: date | None = None


class RefillDateRequest(BaseModel):
    refill_date: date


class PatientDrugResponse(BaseModel):
    drug_id: str
    refill_date: date | None
    weekly_price: Decimal
    monthly_price: Decimal
    yearly_price: Decimal

    @classmethod
    def from_entity(cls, patient_drug: PatientDrug) -> "PatientDrugResponse":
        return cls(
            drug_id=patient_drug.drug_id,
            refill_date=patient_drug.refill_date,
            weekly_price=patient_drug.weekly_price,
            monthly_price=patient_drug.monthly_price,
            yearly_price=patient_drug.yearly_price,
        )


# --- Errors ---
_STATUS_BY_CODE = {
    "program_not_found": 404,
    "no_patient_drug": 409,
    "program_not_open": 409,
    "illegal_transition": 409,
    "completion_date_required": 400,
    "completion_date_in_future": 400,
    "persistence_failed": 503,
}


def raise_for_errors(errors: list[EnrollmentValidationError]) -> None:
    """Raise an HTTPException describing ``errors``, if there are any."""
    if not errors:
        return
    raise HTTPException(
        status_code=_STATUS_BY_CODE.get(errors[0].code, 400),
        detail=[{"code": err.code, "message": err.message} for err in errors],
    )
