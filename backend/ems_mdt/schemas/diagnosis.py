"""Diagnosis request and response schemas."""

from pydantic import BaseModel, Field, field_validator

from ems_mdt.services.diagnosis import DiagnosisStatus


class VitalsInput(BaseModel):
    """Four vital signs. Numeric strings are accepted and coerced."""

    temp: float = Field(..., allow_inf_nan=False, description="Body temperature (°C)")
    hr: float = Field(..., allow_inf_nan=False, description="Heart rate (bpm)")
    o2: float = Field(..., allow_inf_nan=False, description="Oxygen saturation (%)")
    bp: float = Field(..., allow_inf_nan=False, description="Blood pressure (mmHg)")

    @field_validator("temp", "hr", "o2", "bp", mode="before")
    @classmethod
    def reject_booleans(cls, value: object) -> object:
        if isinstance(value, bool):
            raise ValueError("boolean is not a vital reading")
        return value


class AnalyzeRequest(BaseModel):
    """Request body for an analysis."""

    visibleSymptom: str = Field(..., min_length=1, description="Symptom reported or observed")
    vitals: VitalsInput = Field(..., description="Vital-sign readings")


class DiagnosisResultOut(BaseModel):
    """One surviving disease profile with its confidence."""

    name: str = Field(..., description="Disease name")
    symptoms: list[str] = Field(..., description="Symptoms of the profile")
    temp: list[float] = Field(..., description="Temperature range [min, max]")
    hr: list[float] = Field(..., description="Heart rate range [min, max]")
    o2: list[float] = Field(..., description="Oxygen saturation range [min, max]")
    bp: list[float] = Field(..., description="Blood pressure range [min, max]")
    organ: str = Field(..., description="Target organ")
    med: str = Field(..., description="Recommended medication")
    desc: str = Field(..., description="Description")
    confidence: int = Field(..., ge=0, le=100, description="Proximity score")


class AnalyzeResponse(BaseModel):
    """Outcome of an analysis."""

    status: DiagnosisStatus = Field(..., description="unknown, confirmed or multiple")
    message: str = Field(..., description="Human-readable outcome")
    results: list[DiagnosisResultOut] = Field(default_factory=list, description="Ranked matches")
