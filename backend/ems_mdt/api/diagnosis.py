"""Diagnosis API endpoints."""

import logging

from fastapi import APIRouter

from ems_mdt.core.security import RequireAuth
from ems_mdt.schemas.diagnosis import AnalyzeRequest, AnalyzeResponse
from ems_mdt.services.diagnosis import VitalReading, get_diagnosis_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/diagnosis", tags=["Diagnosis"])


@router.get(
    "/symptoms",
    response_model=list[str],
    summary="List symptoms",
    description="Sorted list of every distinct symptom known to the disease catalog.",
)
def list_symptoms(identity: RequireAuth) -> list[str]:
    return get_diagnosis_service().list_symptoms()


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    summary="Analyze vital signs",
    description="Eliminate profiles whose vital ranges exclude the readings, then rank survivors by confidence.",
)
def analyze(request: AnalyzeRequest, identity: RequireAuth) -> AnalyzeResponse:
    """Run a differential diagnosis for one symptom and four vitals.

    A result with no match is a normal ``unknown`` outcome, not an error.
    """
    reading = VitalReading(
        temperature=request.vitals.temp,
        heart_rate=request.vitals.hr,
        oxygen_saturation=request.vitals.o2,
        blood_pressure=request.vitals.bp,
    )
    outcome = get_diagnosis_service().analyze(request.visibleSymptom, reading)
    logger.info(f"user={identity.user_id} analyzed {request.visibleSymptom!r}: {outcome.status.value}")
    return AnalyzeResponse.model_validate(outcome.to_dict())
