"""
Enrollment component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime

from assist_tracker.components.calendar import MonthGrid, MonthView
from assist_tracker.components.costs import CostSummary
from assist_tracker.domain.entities import Drug, Enrollment, PatientDrug, Program
from assist_tracker.domain.state import Action, EnrollmentState

# --- Validation Error ---


@dataclass(frozen=True)
class EnrollmentValidationError:
    """Enrollment validation or persistence error."""

    code: str
    message: str
    program_id: str | None = None


# --- Snapshot ---


@dataclass(frozen=True)
class PatientSnapshot:
    """Programs, enrollments and drug for one patient, as last read."""

    user_id: str
    programs: tuple[Program, ...]
    enrollments: dict[str, Enrollment]
    patient_drug: PatientDrug | None
    loaded_at: datetime

    def program(self, program_id: str) -> Program | None:
        for program in self.programs:
            if program.id == program_id:
                return program
        return None

    def enrollment_for(self, program_id: str) -> Enrollment | None:
        return self.enrollments.get(program_id)


# --- Views ---


@dataclass(frozen=True)
class ScheduleView:
    """Refill and re-enrollment calendar for a program."""

    grid: MonthGrid
    refill_date: date
    refill_date_estimated: bool
    re_enrollment_date: date | None


@dataclass(frozen=True)
class ProgramView:
    program: Program
    state: EnrollmentState
    enrollment: Enrollment | None
    actions: tuple[Action, ...]
    cost: CostSummary | None = None
    schedule: ScheduleView | None = None
    notice: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class TransitionInput:
    """Input for applying a status action to a program."""

    program_id: str
    action: Action
    completion_date: date | None = None


@dataclass(frozen=True)
class ProgramViewInput:
    program_id: str
    view: MonthView | None = None


@dataclass(frozen=True)
class SelectDrugInput:
    """Input for selecting (or changing) the patient's medication."""

    drug: Drug
    refill_date: date | None = None


@dataclass(frozen=True)
class UpdateRefillDateInput:
    refill_date: date


# --- Output Models ---


@dataclass(frozen=True)
class LoadOutput:
    snapshot: PatientSnapshot | None
    errors: list[EnrollmentValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class TransitionOutput:
    """Output for a transition-and-persist operation."""

    enrollment: Enrollment | None
    snapshot: PatientSnapshot | None
    errors: list[EnrollmentValidationError] = field(default_factory=list)
    success: bool = True
    requires_external_handoff: bool = False
    handoff_url: str | None = None
    logout_after_handoff: bool = False


@dataclass(frozen=True)
class ProgramViewOutput:
    view: ProgramView | None
    errors: list[EnrollmentValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class ProgramListOutput:
    views: tuple[ProgramView, ...]
    errors: list[EnrollmentValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class DrugOutput:
    patient_drug: PatientDrug | None
    errors: list[EnrollmentValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class RemoveDrugOutput:
    removed: bool
    errors: list[EnrollmentValidationError] = field(default_factory=list)
    success: bool = True
