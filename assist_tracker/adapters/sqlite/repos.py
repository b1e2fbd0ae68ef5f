import sqlite3
from collections.abc import Callable
from datetime import date, datetime
from decimal import Decimal
from typing import Any, TypeVar

import anyio.to_thread

from assist_tracker.domain.entities import Drug, Enrollment, PatientDrug, Program
from assist_tracker.ports.repo import PersistenceError

T = TypeVar("T")


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


def _date(value: str | None) -> date | None:
    return date.fromisoformat(value) if value else None


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _with_conn(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        conn = self._get_conn()
        try:
            result = fn(conn)
            conn.commit()
            return result
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run ``fn`` on a fresh connection in a worker thread."""
        try:
            return await anyio.to_thread.run_sync(self._with_conn, fn)
        except sqlite3.Error as e:
            raise PersistenceError(str(e)) from e


class SQLiteProgramRepo(_SQLiteRepo):
    def _row_to_program(self, row: dict[str, Any]) -> Program:
        return Program(
            id=row["id"],
            name=row["name"],
            sponsor=row["sponsor"],
            monetary_cap=row["monetary_cap"],
            description=row["description"],
            enrollment_link=row["enrollment_link"],
            program_status=row["program_status"],
            re_enrollment_date=_date(row["re_enrollment_date"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    async def load_programs(self, program_ids: set[str] | None = None) -> list[Program]:
        def query(conn: sqlite3.Connection) -> list[Program]:
            if program_ids is None:
                rows = conn.execute("SELECT * FROM programs ORDER BY name").fetchall()
            else:
                ids = sorted(program_ids)
                placeholders = ", ".join("?" for _ in ids)
                rows = conn.execute(
                    f"SELECT * FROM programs WHERE id IN ({placeholders}) ORDER BY name",
                    ids,
                ).fetchall()
            return [self._row_to_program(row) for row in rows]

        if program_ids is not None and not program_ids:
            return []
        return await self._run(query)

    async def list_patient_program_ids(self, user_id: str) -> set[str]:
        def query(conn: sqlite3.Connection) -> set[str]:
            rows = conn.execute(
                "SELECT program_id FROM patient_programs WHERE user_id = ?", (user_id,)
            ).fetchall()
            return {row["program_id"] for row in rows}

        return await self._run(query)

    async def save(self, program: Program) -> Program:
        def write(conn: sqlite3.Connection) -> Program:
            conn.execute(
                """
                INSERT INTO programs (
                    id, name, sponsor, monetary_cap, description,
                    enrollment_link, program_status, re_enrollment_date, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    sponsor=excluded.sponsor,
                    monetary_cap=excluded.monetary_cap,
                    description=excluded.description,
                    enrollment_link=excluded.enrollment_link,
                    program_status=excluded.program_status,
                    re_enrollment_date=excluded.re_enrollment_date
                """,
                (
                    program.id,
                    program.name,
                    program.sponsor,
                    program.monetary_cap,
                    program.description,
                    program.enrollment_link,
                    program.program_status,
                    _iso(program.re_enrollment_date),
                    program.created_at.isoformat(),
                ),
            )
            return program

        return await self._run(write)

    async def assign(self, user_id: str, program_id: str) -> None:
        """Add a program to a patient's allow-list."""

        def write(conn: sqlite3.Connection) -> None:
            conn.execute(
                "INSERT OR IGNORE INTO patient_programs (user_id, program_id) VALUES (?, ?)",
                (user_id, program_id),
            )

        await self._run(write)


class SQLiteEnrollmentRepo(_SQLiteRepo):
    def _row_to_enrollment(self, row: dict[str, Any]) -> Enrollment:
        return Enrollment(
            id=row["id"],
            user_id=row["user_id"],
            program_id=row["program_id"],
            status=row["status"],
            completion_date=_date(row["completion_date"]),
            enrolled_at=datetime.fromisoformat(row["enrolled_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    async def load_enrollment(self, user_id: str, program_id: str) -> Enrollment | None:
        def query(conn: sqlite3.Connection) -> Enrollment | None:
            row = conn.execute(
                "SELECT * FROM enrollments WHERE user_id = ? AND program_id = ?",
                (user_id, program_id),
            ).fetchone()
            return self._row_to_enrollment(row) if row else None

        return await self._run(query)

    async def upsert_enrollment(self, record: Enrollment) -> Enrollment:
        def write(conn: sqlite3.Connection) -> Enrollment:
            # Keyed on (user_id, program_id): one row per patient and program.
            conn.execute(
                """
                INSERT INTO enrollments (
                    id, user_id, program_id, status, completion_date,
                    enrolled_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(user_id, program_id) DO UPDATE SET
                    status=excluded.status,
                    completion_date=excluded.completion_date,
                    updated_at=excluded.updated_at
                """,
                (
                    record.id,
                    record.user_id,
                    record.program_id,
                    record.status,
                    _iso(record.completion_date),
                    record.enrolled_at.isoformat(),
                    record.updated_at.isoformat(),
                ),
            )
            row = conn.execute(
                "SELECT * FROM enrollments WHERE user_id = ? AND program_id = ?",
                (record.user_id, record.program_id),
            ).fetchone()
            return self._row_to_enrollment(row)

        return await self._run(write)

    async def list_enrollments(self, user_id: str) -> list[Enrollment]:
        def query(conn: sqlite3.Connection) -> list[Enrollment]:
            rows = conn.execute(
                "SELECT * FROM enrollments WHERE user_id = ?", (user_id,)
            ).fetchall()
            return [self._row_to_enrollment(row) for row in rows]

        return await self._run(query)


class SQLitePatientDrugRepo(_SQLiteRepo):
    def _row_to_patient_drug(self, row: dict[str, Any]) -> PatientDrug:
        return PatientDrug(
            id=row["id"],
            user_id=row["user_id"],
            drug_id=row["drug_id"],
            refill_date=_date(row["refill_date"]),
            weekly_price=Decimal(row["weekly_price"]),
            monthly_price=Decimal(row["monthly_price"]),
            yearly_price=Decimal(row["yearly_price"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def _fetch(self, conn: sqlite3.Connection, user_id: str) -> PatientDrug | None:
        row = conn.execute(
            "SELECT * FROM patient_drugs WHERE user_id = ?", (user_id,)
        ).fetchone()
        return self._row_to_patient_drug(row) if row else None

    async def load_patient_drug(self, user_id: str) -> PatientDrug | None:
        return await self._run(lambda conn: self._fetch(conn, user_id))

    async def replace_patient_drug(self, record: PatientDrug) -> PatientDrug:
        def write(conn: sqlite3.Connection) -> PatientDrug:
            conn.execute("DELETE FROM patient_drugs WHERE user_id = ?", (record.user_id,))
            conn.execute(
                """
                INSERT INTO patient_drugs (
                    id, user_id, drug_id, refill_date,
                    weekly_price, monthly_price, yearly_price, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.id,
                    record.user_id,
                    record.drug_id,
                    _iso(record.refill_date),
                    str(record.weekly_price),
                    str(record.monthly_price),
                    str(record.yearly_price),
                    record.created_at.isoformat(),
                ),
            )
            return record

        return await self._run(write)

    async def update_refill_date(self, user_id: str, refill_date: date | None) -> PatientDrug | None:
        def write(conn: sqlite3.Connection) -> PatientDrug | None:
            conn.execute(
                "UPDATE patient_drugs SET refill_date = ? WHERE user_id = ?",
                (_iso(refill_date), user_id),
            )
            return self._fetch(conn, user_id)

        return await self._run(write)

    async def remove_patient_drug(self, user_id: str) -> bool:
        def write(conn: sqlite3.Connection) -> bool:
            cursor = conn.execute("DELETE FROM patient_drugs WHERE user_id = ?", (user_id,))
            return cursor.rowcount > 0

        return await self._run(write)


class SQLiteDrugCatalogRepo(_SQLiteRepo):
    """Read access to the drug catalog, the price source for selections."""

    async def get_by_id(self, drug_id: str) -> Drug | None:
        def query(conn: sqlite3.Connection) -> Drug | None:
            row = conn.execute("SELECT * FROM drugs WHERE id = ?", (drug_id,)).fetchone()
            if not row:
                return None
            return Drug(
                id=row["id"],
                name=row["name"],
                weekly_price=Decimal(row["weekly_price"]),
                monthly_price=Decimal(row["monthly_price"]),
                yearly_price=Decimal(row["yearly_price"]),
            )

        return await self._run(query)

    async def save(self, drug: Drug) -> Drug:
        def write(conn: sqlite3.Connection) -> Drug:
            conn.execute(
                """
                INSERT INTO drugs (id, name, weekly_price, monthly_price, yearly_price)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name=excluded.name,
                    weekly_price=excluded.weekly_price,
                    monthly_price=excluded.monthly_price,
                    yearly_price=excluded.yearly_price
                """,
                (
                    drug.id,
                    drug.name,
                    str(drug.weekly_price),
                    str(drug.monthly_price),
                    str(drug.yearly_price),
                ),
            )
            return drug

        return await self._run(write)
