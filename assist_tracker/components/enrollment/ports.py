"""
Enrollment component port definitions.
"""

from __future__ import annotations

from assist_tracker.ports.clock import ClockPort
from assist_tracker.ports.repo import (
    EnrollmentRepoPort,
    PatientDrugRepoPort,
    PersistenceError,
    ProgramRepoPort,
)

__all__ = [
    "ClockPort",
    "EnrollmentRepoPort",
    "PatientDrugRepoPort",
    "PersistenceError",
    "ProgramRepoPort",
]
