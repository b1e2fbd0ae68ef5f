"""
Enrollment component - Program enrollment lifecycle orchestration.
"""

from ._impl import (
    EnrollmentConfig,
    EnrollmentService,
    TransitionOutcome,
    notice_for,
)
from .component import (
    run_apply,
    run_list_programs,
    run_load,
    run_program_view,
    run_remove_drug,
    run_select_drug,
    run_update_refill_date,
)
from .models import (
    DrugOutput,
    EnrollmentValidationError,
    LoadOutput,
    PatientSnapshot,
    ProgramListOutput,
    ProgramView,
    ProgramViewInput,
    ProgramViewOutput,
    RemoveDrugOutput,
    ScheduleView,
    SelectDrugInput,
    TransitionInput,
    TransitionOutput,
    UpdateRefillDateInput,
)
from .ports import (
    ClockPort,
    EnrollmentRepoPort,
    PatientDrugRepoPort,
    PersistenceError,
    ProgramRepoPort,
)

__all__ = [
    # Entry points
    "run_apply",
    "run_list_programs",
    "run_load",
    "run_program_view",
    "run_remove_drug",
    "run_select_drug",
    "run_update_refill_date",
    # Input models
    "ProgramViewInput",
    "SelectDrugInput",
    "TransitionInput",
    "UpdateRefillDateInput",
    # Output models
    "DrugOutput",
    "EnrollmentValidationError",
    "LoadOutput",
    "PatientSnapshot",
    "ProgramListOutput",
    "ProgramView",
    "ProgramViewOutput",
    "RemoveDrugOutput",
    "ScheduleView",
    "TransitionOutput",
    # Ports
    "ClockPort",
    "EnrollmentRepoPort",
    "PatientDrugRepoPort",
    "PersistenceError",
    "ProgramRepoPort",
    # Service
    "EnrollmentConfig",
    "EnrollmentService",
    "TransitionOutcome",
    "notice_for",
]
