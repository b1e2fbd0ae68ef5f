"""Patient-facing program routes: browse, view and change enrollment status."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query

from assist_tracker.api.deps import get_current_session, get_enrollment_service, get_rules
from assist_tracker.api.schemas import (
    EnrollmentResponse,
    ProgramListResponse,
    ProgramResponse,
    TransitionRequest,
    TransitionResponse,
    raise_for_errors,
)
from assist_tracker.components.calendar import MonthView
from assist_tracker.components.enrollment import (
    EnrollmentService,
    ProgramViewInput,
    TransitionInput,
    run_apply,
    run_list_programs,
    run_program_view,
)
from assist_tracker.domain.entities import SessionState
from assist_tracker.rules.models import Rules

router = APIRouter()


@router.get("", response_model=ProgramListResponse)
async def list_programs(
    session: SessionState = Depends(get_current_session),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ProgramListResponse:
    """List the programs available to the patient."""
    result = await run_list_programs(session, service)
    raise_for_errors(result.errors)
    return ProgramListResponse(
        items=[ProgramResponse.from_view(view) for view in result.views],
        total=len(result.views),
    )


@router.get("/{program_id}", response_model=ProgramResponse)
async def get_program(
    program_id: str,
    year: Annotated[int | None, Query(ge=1, le=9999)] = None,
    month: Annotated[int | None, Query(ge=1, le=12)] = None,
    session: SessionState = Depends(get_current_session),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> ProgramResponse:
    """Program detail, with the schedule calendar at ``year``/``month`` (default: today)."""
    if (year is None) != (month is None):
        raise HTTPException(status_code=400, detail="year and month must be given together")

    view = MonthView(year, month) if year is not None and month is not None else None
    result = await run_program_view(ProgramViewInput(program_id, view), session, service)
    raise_for_errors(result.errors)
    assert result.view is not None  # Success guarantees view is not None
    return ProgramResponse.from_view(result.view)


@router.post("/{program_id}/enrollment", response_model=TransitionResponse)
async def change_enrollment(
    program_id: str,
    data: TransitionRequest,
    session: SessionState = Depends(get_current_session),
    service: EnrollmentService = Depends(get_enrollment_service),
    rules: Rules = Depends(get_rules),
) -> TransitionResponse:
    """Enroll, or mark a program ongoing, completed or rejected."""
    inp = TransitionInput(
        program_id=program_id,
        action=data.action,
        completion_date=data.completion_date,
    )
    result = await run_apply(
        inp,
        session,
        service,
        handoff_requires_logout=rules.enrollment.handoff_requires_logout,
    )
    raise_for_errors(result.errors)

    enrollment = result.enrollment
    assert enrollment is not None  # Success guarantees enrollment is not None
    return TransitionResponse(
        enrollment=EnrollmentResponse.from_entity(enrollment),
        requires_external_handoff=result.requires_external_handoff,
        handoff_url=result.handoff_url,
        logout_after_handoff=result.logout_after_handoff,
    )
