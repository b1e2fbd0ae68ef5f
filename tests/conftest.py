from datetime import UTC, date, datetime
from decimal import Decimal
from pathlib import Path

import pytest

from assist_tracker.adapters.sqlite.migrator import SQLiteMigrator
from assist_tracker.components.enrollment import EnrollmentService, PersistenceError
from assist_tracker.domain.entities import Enrollment, PatientDrug, Program, SessionState

PROJECT_ROOT = Path(__file__).parent.parent
MIGRATIONS_DIR = PROJECT_ROOT / "migrations"

TODAY = date(2026, 10, 19)


class FixedClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.current = now or datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self.current

    def today(self) -> date:
        return self.current.date()


# --- Mock Repositories ---


class MockProgramRepo:
    """In-memory programs plus per-patient allow-lists."""

    def __init__(self) -> None:
        self.programs: dict[str, Program] = {}
        self.allowed: dict[str, set[str]] = {}
        self.fail = False

    def add(self, program: Program, *user_ids: str) -> Program:
        self.programs[program.id] = program
        for user_id in user_ids:
            self.allowed.setdefault(user_id, set()).add(program.id)
        return program

    async def load_programs(self, program_ids: set[str] | None = None) -> list[Program]:
        if self.fail:
            raise PersistenceError("programs unavailable")
        found = [
            p for p in self.programs.values() if program_ids is None or p.id in program_ids
        ]
        return sorted(found, key=lambda p: p.name)

    async def list_patient_program_ids(self, user_id: str) -> set[str]:
        if self.fail:
            raise PersistenceError("programs unavailable")
        return set(self.allowed.get(user_id, set()))


class MockEnrollmentRepo:
    def __init__(self) -> None:
        self.rows: dict[tuple[str, str], Enrollment] = {}
        self.upserts = 0
        self.fail_writes = False
        self.fail_reads = False

    async def load_enrollment(self, user_id: str, program_id: str) -> Enrollment | None:
        if self.fail_reads:
            raise PersistenceError("enrollments unavailable")
        return self.rows.get((user_id, program_id))

    async def upsert_enrollment(self, record: Enrollment) -> Enrollment:
        if self.fail_writes:
            raise PersistenceError("write failed")
        self.upserts += 1
        self.rows[(record.user_id, record.program_id)] = record
        return record

    async def list_enrollments(self, user_id: str) -> list[Enrollment]:
        if self.fail_reads:
            raise PersistenceError("enrollments unavailable")
        return [e for (uid, _), e in self.rows.items() if uid == user_id]


class MockPatientDrugRepo:
    def __init__(self) -> None:
        self.rows: dict[str, PatientDrug] = {}
        self.fail = False

    async def load_patient_drug(self, user_id: str) -> PatientDrug | None:
        if self.fail:
            raise PersistenceError("drugs unavailable")
        return self.rows.get(user_id)

    async def replace_patient_drug(self, record: PatientDrug) -> PatientDrug:
        if self.fail:
            raise PersistenceError("drugs unavailable")
        self.rows[record.user_id] = record
        return record

    async def update_refill_date(self, user_id: str, refill_date: date | None) -> PatientDrug | None:
        if self.fail:
            raise PersistenceError("drugs unavailable")
        current = self.rows.get(user_id)
        if current is None:
            return None
        self.rows[user_id] = current.model_copy(update={"refill_date": refill_date})
        return self.rows[user_id]

    async def remove_patient_drug(self, user_id: str) -> bool:
        if self.fail:
            raise PersistenceError("drugs unavailable")
        return self.rows.pop(user_id, None) is not None


# --- Fixtures ---


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def program_repo() -> MockProgramRepo:
    return MockProgramRepo()


@pytest.fixture
def enrollment_repo() -> MockEnrollmentRepo:
    return MockEnrollmentRepo()


@pytest.fixture
def drug_repo() -> MockPatientDrugRepo:
    return MockPatientDrugRepo()


@pytest.fixture
def service(
    program_repo: MockProgramRepo,
    enrollment_repo: MockEnrollmentRepo,
    drug_repo: MockPatientDrugRepo,
    clock: FixedClock,
) -> EnrollmentService:
    return EnrollmentService(
        programs=program_repo,
        enrollments=enrollment_repo,
        drugs=drug_repo,
        clock=clock,
    )


@pytest.fixture
def session() -> SessionState:
    return SessionState(user_id="patient-1")


@pytest.fixture
def open_program(program_repo: MockProgramRepo, session: SessionState) -> Program:
    return program_repo.add(
        Program(
            id="prog-open",
            name="Copay Relief",
            sponsor="Acme Pharma",
            monetary_cap="$1,200.00",
            program_status="open",
            re_enrollment_date=date(2026, 12, 1),
        ),
        session.user_id,
    )


@pytest.fixture
def patient_drug(drug_repo: MockPatientDrugRepo, session: SessionState) -> PatientDrug:
    record = PatientDrug(
        user_id=session.user_id,
        drug_id="drug-1",
        refill_date=date(2026, 10, 25),
        weekly_price=Decimal("25"),
        monthly_price=Decimal("100"),
        yearly_price=Decimal("1000"),
    )
    drug_repo.rows[session.user_id] = record
    return record


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    """A migrated SQLite database in a temp directory."""
    path = str(tmp_path / "assist.db")
    SQLiteMigrator(path, str(MIGRATIONS_DIR)).run_migrations()
    return path
