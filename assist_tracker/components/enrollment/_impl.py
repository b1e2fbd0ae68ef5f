"""
EnrollmentService - Enrollment lifecycle orchestration.

Loads a patient's programs, enrollments and drug through the repository
ports, runs requested status actions through the state machine, persists the
result with a single upsert and re-reads the patient's data afterward.

Key behaviors:
- Exactly one upsert per accepted transition, none for refused ones
- Refused transitions and failed writes leave the cached snapshot unchanged
- No locking: callers serialize requests for the same (user, program) pair
- The "Enroll Now" handoff is reported, never performed
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta

from assist_tracker.components.calendar import MonthView, build_month, jump_to_today
from assist_tracker.components.costs import cost_summary
from assist_tracker.domain.entities import Drug, Enrollment, PatientDrug, Program, SessionState
from assist_tracker.domain.state import (
    Action,
    EnrollmentState,
    TransitionError,
    apply_to_record,
    available_actions,
    requires_external_handoff,
    state_from_record,
    transition,
)

from .models import EnrollmentValidationError, PatientSnapshot, ProgramView, ScheduleView
from .ports import (
    ClockPort,
    EnrollmentRepoPort,
    PatientDrugRepoPort,
    PersistenceError,
    ProgramRepoPort,
)

logger = logging.getLogger(__name__)

# --- Configuration ---


@dataclass(frozen=True)
class EnrollmentConfig:
    """Enrollment configuration from rules."""

    default_portal_url: str = "https://portal.copays.org/#/register"
    handoff_requires_logout: bool = True
    fallback_refill_days: int = 15


DEFAULT_CONFIG = EnrollmentConfig()


# --- Transition Outcome ---


@dataclass(frozen=True)
class TransitionOutcome:
    """Result of an accepted transition."""

    enrollment: Enrollment
    previous: EnrollmentState
    current: EnrollmentState
    requires_external_handoff: bool = False
    handoff_url: str | None = None


def _error(code: str, message: str, program_id: str | None = None) -> EnrollmentValidationError:
    return EnrollmentValidationError(code=code, message=message, program_id=program_id)


def persistence_error(program_id: str | None = None) -> EnrollmentValidationError:
    return _error("persistence_failed", "Could not reach the data store", program_id)


def notice_for(program: Program, state: EnrollmentState) -> str | None:
    """Explanatory text for states that offer no actions."""
    if state.kind == "rejected":
        return "This program is marked as rejected and cannot be changed."
    if state.kind == "no_enrollment" and program.program_status != "open":
        return (
            f"This program is currently {program.program_status}. "
            "Enrollment is not available at this time."
        )
    return None


# --- EnrollmentService ---


class EnrollmentService:
    """
    Enrollment orchestration service.

    Holds one cached PatientSnapshot per session, refreshed after each
    mutation and dropped on ``discard``.
    """

    def __init__(
        self,
        programs: ProgramRepoPort,
        enrollments: EnrollmentRepoPort,
        drugs: PatientDrugRepoPort,
        clock: ClockPort | None = None,
        config: EnrollmentConfig | None = None,
    ) -> None:
        self._programs = programs
        self._enrollments = enrollments
        self._drugs = drugs
        self._clock = clock
        self._config = config or DEFAULT_CONFIG
        self._snapshots: dict[str, PatientSnapshot] = {}

    def _now(self) -> datetime:
        if self._clock:
            return self._clock.now()
        return datetime.now(UTC)

    def _today(self) -> date:
        if self._clock:
            return self._clock.today()
        return date.today()

    # --- Loading ---

    async def load(self, session: SessionState) -> PatientSnapshot:
        """
        Read the patient's programs, enrollments and drug and cache them.

        Only programs on the patient's allow-list are loaded; an empty
        allow-list yields no programs.

        Raises:
            PersistenceError: if any read fails. The cache is left as it was.
        """
        user_id = session.user_id
        allowed = await self._programs.list_patient_program_ids(user_id)
        programs = await self._programs.load_programs(allowed) if allowed else []
        enrollments = await self._enrollments.list_enrollments(user_id)
        patient_drug = await self._drugs.load_patient_drug(user_id)

        snapshot = PatientSnapshot(
            user_id=user_id,
            programs=tuple(programs),
            enrollments={e.program_id: e for e in enrollments},
            patient_drug=patient_drug,
            loaded_at=self._now(),
        )
        self._snapshots[session.session_id] = snapshot
        return snapshot

    def cached(self, session: SessionState) -> PatientSnapshot | None:
        return self._snapshots.get(session.session_id)

    def discard(self, session: SessionState) -> None:
        """Forget everything cached for a session (logout)."""
        self._snapshots.pop(session.session_id, None)

    async def _snapshot(self, session: SessionState) -> PatientSnapshot:
        return self.cached(session) or await self.load(session)

    async def _refresh(self, session: SessionState) -> None:
        """Re-read after a write. A failed re-read drops the stale cache."""
        try:
            await self.load(session)
        except PersistenceError:
            logger.exception("Re-load after write failed for user %s", session.user_id)
            self.discard(session)

    # --- Transitions ---

    async def apply(
        self,
        session: SessionState,
        program_id: str,
        action: Action,
        completion_date: date | None = None,
    ) -> tuple[TransitionOutcome | None, list[EnrollmentValidationError]]:
        """
        Apply a status action to the patient's enrollment in a program.

        Returns:
            Tuple of (outcome, errors). Outcome is None if errors.
        """
        user_id = session.user_id

        try:
            allowed = await self._programs.list_patient_program_ids(user_id)
            found = []
            if program_id in allowed:
                found = await self._programs.load_programs({program_id})
            if not found:
                return None, [_error("program_not_found", "Program not found", program_id)]
            program = found[0]
            record = await self._enrollments.load_enrollment(user_id, program_id)
        except PersistenceError:
            logger.exception("Loading enrollment failed for user %s", user_id)
            return None, [persistence_error(program_id)]

        before = state_from_record(record)
        try:
            after = transition(
                before, action, program.program_status, completion_date, self._today()
            )
        except TransitionError as e:
            logger.info(
                "Refused %s on program %s for user %s: %s", action, program_id, user_id, e
            )
            return None, [_error(e.code, str(e), program_id)]

        updated = apply_to_record(
            record, after, user_id=user_id, program_id=program_id, now=self._now()
        )
        try:
            saved = await self._enrollments.upsert_enrollment(updated)
        except PersistenceError:
            logger.exception("Saving enrollment failed for user %s", user_id)
            return None, [persistence_error(program_id)]

        logger.info(
            "Enrollment %s for user %s: %s -> %s", program_id, user_id, before.kind, after.kind
        )
        await self._refresh(session)

        handoff = requires_external_handoff(before, action)
        handoff_url = None
        if handoff:
            handoff_url = program.enrollment_link or self._config.default_portal_url

        outcome = TransitionOutcome(
            enrollment=saved,
            previous=before,
            current=after,
            requires_external_handoff=handoff,
            handoff_url=handoff_url,
        )
        return outcome, []

    # --- Views ---

    def _schedule(
        self, program: Program, patient_drug: PatientDrug, view: MonthView | None
    ) -> ScheduleView:
        today = self._today()
        refill_date = patient_drug.refill_date
        estimated = refill_date is None
        if refill_date is None:
            refill_date = today + timedelta(days=self._config.fallback_refill_days)

        grid = build_month(
            view or jump_to_today(today), today, refill_date, program.re_enrollment_date
        )
        return ScheduleView(
            grid=grid,
            refill_date=refill_date,
            refill_date_estimated=estimated,
            re_enrollment_date=program.re_enrollment_date,
        )

    def build_view(
        self, snapshot: PatientSnapshot, program: Program, view: MonthView | None = None
    ) -> ProgramView:
        enrollment = snapshot.enrollment_for(program.id)
        state = state_from_record(enrollment)

        cost = None
        schedule = None
        # Cost and schedule are only meaningful once a program is completed.
        if state.kind == "completed" and snapshot.patient_drug is not None:
            cost = cost_summary(program, snapshot.patient_drug)
            schedule = self._schedule(program, snapshot.patient_drug, view)

        return ProgramView(
            program=program,
            state=state,
            enrollment=enrollment,
            actions=available_actions(state, program.program_status),
            cost=cost,
            schedule=schedule,
            notice=notice_for(program, state),
        )

    async def program_view(
        self, session: SessionState, program_id: str, view: MonthView | None = None
    ) -> tuple[ProgramView | None, list[EnrollmentValidationError]]:
        try:
            snapshot = await self._snapshot(session)
        except PersistenceError:
            logger.exception("Loading patient data failed for user %s", session.user_id)
            return None, [persistence_error(program_id)]

        program = snapshot.program(program_id)
        if program is None:
            return None, [_error("program_not_found", "Program not found", program_id)]
        return self.build_view(snapshot, program, view), []

    async def program_views(
        self, session: SessionState
    ) -> tuple[list[ProgramView], list[EnrollmentValidationError]]:
        try:
            snapshot = await self._snapshot(session)
        except PersistenceError:
            logger.exception("Loading patient data failed for user %s", session.user_id)
            return [], [persistence_error()]
        return [self.build_view(snapshot, p) for p in snapshot.programs], []

    # --- Medication ---

    async def select_drug(
        self, session: SessionState, drug: Drug, refill_date: date | None = None
    ) -> tuple[PatientDrug | None, list[EnrollmentValidationError]]:
        """
        Replace the patient's medication, snapshotting the drug's prices.
        """
        record = PatientDrug(
            user_id=session.user_id,
            drug_id=drug.id,
            refill_date=refill_date,
            weekly_price=drug.weekly_price,
            monthly_price=drug.monthly_price,
            yearly_price=drug.yearly_price,
            created_at=self._now(),
        )
        try:
            saved = await self._drugs.replace_patient_drug(record)
        except PersistenceError:
            logger.exception("Replacing drug failed for user %s", session.user_id)
            return None, [persistence_error()]

        logger.info("User %s selected drug %s", session.user_id, drug.id)
        await self._refresh(session)
        return saved, []

    async def update_refill_date(
        self, session: SessionState, refill_date: date | None
    ) -> tuple[PatientDrug | None, list[EnrollmentValidationError]]:
        try:
            saved = await self._drugs.update_refill_date(session.user_id, refill_date)
        except PersistenceError:
            logger.exception("Updating refill date failed for user %s", session.user_id)
            return None, [persistence_error()]

        if saved is None:
            return None, [_error("no_patient_drug", "Select a medication first")]

        await self._refresh(session)
        return saved, []

    async def remove_drug(
        self, session: SessionState
    ) -> tuple[bool, list[EnrollmentValidationError]]:
        """
        Clear the patient's medication. Removing when none is selected is a no-op.

        Returns:
            Tuple of (removed, errors).
        """
        try:
            removed = await self._drugs.remove_patient_drug(session.user_id)
        except PersistenceError:
            logger.exception("Removing drug failed for user %s", session.user_id)
            return False, [persistence_error()]

        if removed:
            logger.info("User %s removed their drug", session.user_id)
            await self._refresh(session)
        return removed, []
