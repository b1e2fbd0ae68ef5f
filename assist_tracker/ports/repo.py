from datetime import date
from typing import Protocol

from assist_tracker.domain.entities import Enrollment, PatientDrug, Program


class PersistenceError(Exception):
    """Raised by repository adapters when a read or write fails."""


class ProgramRepoPort(Protocol):
    async def load_programs(self, program_ids: set[str] | None = None) -> list[Program]:
        """Programs ordered by name. ``None`` loads every program."""
        ...

    async def list_patient_program_ids(self, user_id: str) -> set[str]:
        ...


class EnrollmentRepoPort(Protocol):
    async def load_enrollment(self, user_id: str, program_id: str) -> Enrollment | None:
        ...

    async def upsert_enrollment(self, record: Enrollment) -> Enrollment:
        ...

    async def list_enrollments(self, user_id: str) -> list[Enrollment]:
        ...


class PatientDrugRepoPort(Protocol):
    async def load_patient_drug(self, user_id: str) -> PatientDrug | None:
        ...

    async def replace_patient_drug(self, record: PatientDrug) -> PatientDrug:
        """Delete the user's current drug row, then insert ``record``."""
        ...

    async def update_refill_date(self, user_id: str, refill_date: date | None) -> PatientDrug | None:
        """Set the refill date on the current row. Returns None if the user has no drug."""
        ...

    async def remove_patient_drug(self, user_id: str) -> bool:
        """Delete the user's drug row. Returns False if there was none."""
        ...
