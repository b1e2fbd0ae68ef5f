"""
Enrollment component - Program enrollment lifecycle.

Shell Layer - wraps EnrollmentService results into output models. Entry
points never raise for refused transitions or data store failures; both
come back as errors with ``success=False``.

Invariants:
- I1: At most one enrollment per (user, program)
- I2: Completed and rejected enrollments are terminal
- I3: Completion dates are never in the future
- I4: A refused or failed operation leaves stored and cached state unchanged
"""

from __future__ import annotations

from assist_tracker.domain.entities import SessionState

from ._impl import EnrollmentService, persistence_error
from .models import (
    DrugOutput,
    LoadOutput,
    ProgramListOutput,
    ProgramViewInput,
    ProgramViewOutput,
    RemoveDrugOutput,
    SelectDrugInput,
    TransitionInput,
    TransitionOutput,
    UpdateRefillDateInput,
)
from .ports import PersistenceError


async def run_load(session: SessionState, service: EnrollmentService) -> LoadOutput:
    """Load (or reload) the patient's programs, enrollments and drug."""
    try:
        snapshot = await service.load(session)
    except PersistenceError:
        return LoadOutput(snapshot=None, errors=[persistence_error()], success=False)
    return LoadOutput(snapshot=snapshot)


async def run_apply(
    inp: TransitionInput,
    session: SessionState,
    service: EnrollmentService,
    *,
    handoff_requires_logout: bool = True,
) -> TransitionOutput:
    """
    Apply a status action and persist it.

    Args:
        inp: Program, action and optional completion date.
        session: The patient's session.
        service: Enrollment service.
        handoff_requires_logout: Whether the caller should log the patient
            out after opening the enrollment portal.

    Returns:
        TransitionOutput with the saved enrollment and the refreshed snapshot.
    """
    outcome, errors = await service.apply(
        session, inp.program_id, inp.action, inp.completion_date
    )

    if outcome is None:
        return TransitionOutput(
            enrollment=None,
            snapshot=service.cached(session),
            errors=errors,
            success=False,
        )

    return TransitionOutput(
        enrollment=outcome.enrollment,
        snapshot=service.cached(session),
        requires_external_handoff=outcome.requires_external_handoff,
        handoff_url=outcome.handoff_url,
        logout_after_handoff=outcome.requires_external_handoff and handoff_requires_logout,
    )


async def run_program_view(
    inp: ProgramViewInput,
    session: SessionState,
    service: EnrollmentService,
) -> ProgramViewOutput:
    view, errors = await service.program_view(session, inp.program_id, inp.view)
    return ProgramViewOutput(view=view, errors=errors, success=view is not None)


async def run_list_programs(
    session: SessionState,
    service: EnrollmentService,
) -> ProgramListOutput:
    views, errors = await service.program_views(session)
    return ProgramListOutput(views=tuple(views), errors=errors, success=not errors)


async def run_select_drug(
    inp: SelectDrugInput,
    session: SessionState,
    service: EnrollmentService,
) -> DrugOutput:
    """Select a medication, replacing any previous selection."""
    patient_drug, errors = await service.select_drug(session, inp.drug, inp.refill_date)
    return DrugOutput(patient_drug=patient_drug, errors=errors, success=patient_drug is not None)


async def run_update_refill_date(
    inp: UpdateRefillDateInput,
    session: SessionState,
    service: EnrollmentService,
) -> DrugOutput:
    patient_drug, errors = await service.update_refill_date(session, inp.refill_date)
    return DrugOutput(patient_drug=patient_drug, errors=errors, success=patient_drug is not None)


async def run_remove_drug(
    session: SessionState,
    service: EnrollmentService,
) -> RemoveDrugOutput:
    """Clear the patient's medication selection."""
    removed, errors = await service.remove_drug(session)
    return RemoveDrugOutput(removed=removed, errors=errors, success=not errors)
