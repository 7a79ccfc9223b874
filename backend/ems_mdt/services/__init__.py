"""Services for the EMS MDT backend.

Services implement the domain logic:
- DiagnosisService: filter-then-score differential diagnosis
- permissions: identity resolution, predicates and hierarchy rule
- ManagementService: grade and user administration (ems_mdt.services.management)
"""

from ems_mdt.services.diagnosis import (
    DISEASE_CATALOG,
    DiagnosisOutcome,
    DiagnosisService,
    DiagnosisStatus,
    DiseaseProfile,
    VitalRange,
    VitalReading,
    get_diagnosis_service,
    reset_diagnosis_service,
)
from ems_mdt.services.permissions import (
    AccessLevel,
    EffectiveIdentity,
    Permission,
    has_permission,
    is_admin,
    is_authenticated,
    resolve_user_identity,
)

__all__ = [
    # Diagnosis
    "DISEASE_CATALOG",
    "DiagnosisOutcome",
    "DiagnosisService",
    "DiagnosisStatus",
    "DiseaseProfile",
    "VitalRange",
    "VitalReading",
    "get_diagnosis_service",
    "reset_diagnosis_service",
    # Permissions
    "AccessLevel",
    "EffectiveIdentity",
    "Permission",
    "has_permission",
    "is_admin",
    "is_authenticated",
    "resolve_user_identity",
]
