"""Patient medication routes: select a drug and record the refill date."""

from fastapi import APIRouter, Depends, HTTPException

from assist_tracker.adapters.sqlite.repos import SQLiteDrugCatalogRepo
from assist_tracker.api.deps import get_current_session, get_drug_catalog, get_enrollment_service
from assist_tracker.api.schemas import (
    PatientDrugResponse,
    RefillDateRequest,
    SelectDrugRequest,
    raise_for_errors,
)
from assist_tracker.components.enrollment import (
    EnrollmentService,
    SelectDrugInput,
    UpdateRefillDateInput,
    run_remove_drug,
    run_select_drug,
    run_update_refill_date,
)
from assist_tracker.domain.entities import SessionState
from assist_tracker.ports.repo import PersistenceError

router = APIRouter()


@router.put("", response_model=PatientDrugResponse)
async def select_drug(
    data: SelectDrugRequest,
    session: SessionState = Depends(get_current_session),
    service: EnrollmentService = Depends(get_enrollment_service),
    catalog: SQLiteDrugCatalogRepo = Depends(get_drug_catalog),
) -> PatientDrugResponse:
    """Select the patient's medication, replacing any previous one."""
    try:
        drug = await catalog.get_by_id(data.drug_id)
    except PersistenceError as e:
        raise HTTPException(status_code=503, detail="Could not reach the data store") from e
    if drug is None:
        raise HTTPException(status_code=404, detail="Drug not found")

    result = await run_select_drug(SelectDrugInput(drug, data.refill_date), session, service)
    raise_for_errors(result.errors)
    assert result.patient_drug is not None
    return PatientDrugResponse.from_entity(result.patient_drug)


@router.patch("/refill-date", response_model=PatientDrugResponse)
async def update_refill_date(
    data: RefillDateRequest,
    session: SessionState = Depends(get_current_session),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> PatientDrugResponse:
    result = await run_update_refill_date(UpdateRefillDateInput(data.refill_date), session, service)
    raise_for_errors(result.errors)
    assert result.patient_drug is not None
    return PatientDrugResponse.from_entity(result.patient_drug)


@router.delete("", status_code=204)
async def remove_drug(
    session: SessionState = Depends(get_current_session),
    service: EnrollmentService = Depends(get_enrollment_service),
) -> None:
    """Clear the patient's medication. Succeeds when none is selected."""
    result = await run_remove_drug(session, service)
    raise_for_errors(result.errors)
