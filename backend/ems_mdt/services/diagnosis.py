"""Differential Diagnosis Service.

Maps one reported symptom plus four vital-sign readings to a ranked,
confidence-scored list of matching disease profiles.

The procedure has two phases:
- Strict elimination: a profile survives only if the symptom is one of its
  symptoms AND every vital sign lies inside the profile's closed range.
- Proximity scoring: each survivor scores 0-100 from how close every vital
  sits to the midpoint of its range.

The catalog is reference data held in memory. It is validated once when the
service is built; a malformed profile aborts startup.
"""

import logging
import math
import threading
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ems_mdt.core.errors import CatalogError, InvalidInputError

logger = logging.getLogger(__name__)


class DiagnosisStatus(str, Enum):
    """Outcome of an analysis."""

    UNKNOWN = "unknown"  # No profile survived elimination
    CONFIRMED = "confirmed"  # Exactly one survivor
    MULTIPLE = "multiple"  # Several survivors, ranked by confidence


STATUS_MESSAGES: dict[DiagnosisStatus, str] = {
    DiagnosisStatus.UNKNOWN: "Aucune maladie ne correspond à ces constantes précises.",
    DiagnosisStatus.CONFIRMED: "Correspondance unique trouvée.",
    DiagnosisStatus.MULTIPLE: "Plusieurs maladies correspondent aux critères ({count}).",
}


@dataclass(frozen=True)
class VitalRange:
    """Closed interval [minimum, maximum] for one vital sign."""

    minimum: float
    maximum: float

    @property
    def midpoint(self) -> float:
        return (self.minimum + self.maximum) / 2

    @property
    def half_range(self) -> float:
        return (self.maximum - self.minimum) / 2

    def contains(self, value: float) -> bool:
        """True if value lies inside the range, bounds included."""
        return self.minimum <= value <= self.maximum

    def proximity(self, value: float) -> float:
        """Score in [0, 1]: 1 at the midpoint, 0 at or beyond either bound."""
        deviation = abs(value - self.midpoint) / self.half_range
        return max(0.0, 1.0 - deviation)


@dataclass(frozen=True)
class VitalReading:
    """Four vital signs taken from one patient for one analysis."""

    temperature: float
    heart_rate: float
    oxygen_saturation: float
    blood_pressure: float

    @classmethod
    def from_mapping(cls, vitals: Mapping[str, Any] | None) -> "VitalReading":
        """Build a reading from the wire mapping ``{temp, hr, o2, bp}``.

        Values may be numbers or numeric strings.

        Raises:
            InvalidInputError: If the mapping or any value is missing or not numeric.
        """
        if not vitals:
            raise InvalidInputError("Données incomplètes: constantes vitales manquantes")

        values: dict[str, float] = {}
        for wire_name, attr in VITAL_FIELDS.items():
            raw = vitals.get(wire_name)
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                raise InvalidInputError(
                    f"Données incomplètes: constante '{wire_name}' manquante",
                    details={"field": wire_name},
                )
            if isinstance(raw, bool):
                raise InvalidInputError(
                    f"Constante '{wire_name}' invalide: {raw!r}",
                    details={"field": wire_name},
                )
            try:
                number = float(raw)
            except (TypeError, ValueError) as exc:
                raise InvalidInputError(
                    f"Constante '{wire_name}' invalide: {raw!r}",
                    details={"field": wire_name},
                ) from exc
            if not math.isfinite(number):
                raise InvalidInputError(
                    f"Constante '{wire_name}' invalide: {raw!r}",
                    details={"field": wire_name},
                )
            values[attr] = number

        return cls(**values)


# Wire name -> VitalReading / DiseaseProfile attribute
VITAL_FIELDS: dict[str, str] = {
    "temp": "temperature",
    "hr": "heart_rate",
    "o2": "oxygen_saturation",
    "bp": "blood_pressure",
}


@dataclass(frozen=True)
class DiseaseProfile:
    """A disease with the symptoms and vital-sign ranges it presents with."""

    name: str
    symptoms: tuple[str, ...]  # declaration order
    temperature: VitalRange
    heart_rate: VitalRange
    oxygen_saturation: VitalRange
    blood_pressure: VitalRange
    target_organ: str
    recommended_medication: str
    description: str

    def ranges(self) -> dict[str, VitalRange]:
        """Vital ranges keyed by attribute name, in scoring order."""
        return {attr: getattr(self, attr) for attr in VITAL_FIELDS.values()}

    def admits(self, reading: VitalReading) -> bool:
        """True only if every vital of the reading lies inside its range."""
        return all(
            vital_range.contains(getattr(reading, attr))
            for attr, vital_range in self.ranges().items()
        )

    def confidence(self, reading: VitalReading) -> int:
        """Proximity of the reading to the ideal midpoints, as 0-100."""
        total = sum(
            vital_range.proximity(getattr(reading, attr))
            for attr, vital_range in self.ranges().items()
        )
        # Half-up rounding; total is never negative
        return int(math.floor(total / len(VITAL_FIELDS) * 100 + 0.5))


@dataclass
class DiagnosisMatch:
    """A profile that survived elimination, with its score."""

    profile: DiseaseProfile
    confidence: int

    def to_dict(self) -> dict[str, Any]:
        p = self.profile
        return {
            "name": p.name,
            "symptoms": list(p.symptoms),
            "temp": [p.temperature.minimum, p.temperature.maximum],
            "hr": [p.heart_rate.minimum, p.heart_rate.maximum],
            "o2": [p.oxygen_saturation.minimum, p.oxygen_saturation.maximum],
            "bp": [p.blood_pressure.minimum, p.blood_pressure.maximum],
            "organ": p.target_organ,
            "med": p.recommended_medication,
            "desc": p.description,
            "confidence": self.confidence,
        }


@dataclass
class DiagnosisOutcome:
    """Result of one analysis. ``results`` is always a list."""

    status: DiagnosisStatus
    message: str
    results: list[DiagnosisMatch] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "results": [match.to_dict() for match in self.results],
        }


def _profile(
    name: str,
    symptoms: Sequence[str],
    temp: tuple[float, float],
    hr: tuple[float, float],
    o2: tuple[float, float],
    bp: tuple[float, float],
    organ: str,
    med: str,
    desc: str,
) -> DiseaseProfile:
    return DiseaseProfile(
        name=name,
        symptoms=tuple(symptoms),
        temperature=VitalRange(*temp),
        heart_rate=VitalRange(*hr),
        oxygen_saturation=VitalRange(*o2),
        blood_pressure=VitalRange(*bp),
        target_organ=organ,
        recommended_medication=med,
        description=desc,
    )


# ============================================================================
# Disease Catalog
# ============================================================================

DISEASE_CATALOG: list[DiseaseProfile] = [
    _profile(
        "Virus Respiratoire", ["Toux", "Eternuement"],
        temp=(38.0, 39.2), hr=(95, 110), o2=(82, 90), bp=(110, 125),
        organ="Poumons", med="Ribavirine",
        desc="Infection virale causant toux et fièvre.",
    ),
    _profile(
        "Pneumonie Bactérienne", ["Courte respiration", "Toux"],
        temp=(38.5, 39.8), hr=(111, 130), o2=(75, 85), bp=(90, 105),
        organ="Poumons", med="Céfotaxime",
        desc="Infection pulmonaire sévère avec forte fièvre.",
    ),
    _profile(
        "Hémorragie Interne", ["Vomissement"],
        temp=(35.5, 36.8), hr=(120, 150), o2=(75, 88), bp=(60, 85),
        organ="Foie ou estomac", med="Acide Tranexamique",
        desc="Hémorragie interne grave suite à un traumatisme.",
    ),
    _profile(
        "Jambe Cassée", ["Boiter (Limping)"],
        temp=(36.0, 37.0), hr=(100, 120), o2=(95, 98), bp=(110, 125),
        organ="Jambe", med="Acide Tranexamique",
        desc="Fracture suite à un traumatisme à fort impact.",
    ),
    _profile(
        "Pneumonie Virale", ["Courte respiration", "Toux"],
        temp=(38.5, 39.5), hr=(100, 120), o2=(78, 88), bp=(100, 115),
        organ="Poumons", med="Ribavirine",
        desc="Inflammation pulmonaire sévère virale.",
    ),
    _profile(
        "Méningite Virale", ["Titubement"],
        temp=(38.0, 39.0), hr=(105, 130), o2=(85, 92), bp=(120, 135),
        organ="Cerveau", med="Ribavirine",
        desc="Infection des membranes cérébrales.",
    ),
    _profile(
        "Hépatite Virale", ["Douleur estomac"],
        temp=(37.8, 38.8), hr=(90, 110), o2=(88, 94), bp=(105, 120),
        organ="Foie", med="Ribavirine",
        desc="Infection virale causant une inflammation du foie.",
    ),
    _profile(
        "Gastro-entérite Virale", ["Vomissement", "Douleur estomac"],
        temp=(37.5, 38.5), hr=(95, 105), o2=(90, 95), bp=(105, 115),
        organ="Estomac", med="Ribavirine",
        desc="Infection virale estomac/intestins.",
    ),
    _profile(
        "Septicémie", ["Titubement"],
        temp=(39.0, 40.0), hr=(120, 140), o2=(80, 90), bp=(70, 85),
        organ="Foie ou reins", med="Céfotaxime",
        desc="Infection du sang généralisée.",
    ),
    _profile(
        "Méningite Bactérienne", ["Titubement", "Courte respiration"],
        temp=(38.8, 39.8), hr=(100, 120), o2=(88, 92), bp=(110, 125),
        organ="Cerveau", med="Céfotaxime",
        desc="Infection cérébrale grave bactérienne.",
    ),
    _profile(
        "Gastro-entérite Bactérienne", ["Vomissement"],
        temp=(38.0, 38.8), hr=(95, 110), o2=(90, 95), bp=(100, 115),
        organ="Estomac", med="Céfotaxime",
        desc="Infection bactérienne estomac.",
    ),
    _profile(
        "Arthrite", ["Boiter (Limping)"],
        temp=(37.5, 38.5), hr=(80, 95), o2=(95, 98), bp=(115, 130),
        organ="Jambe", med="Dexaméthasone",
        desc="Inflammation articulaire sévère.",
    ),
    _profile(
        "Péritonite", ["Douleur estomac"],
        temp=(38.5, 39.2), hr=(95, 110), o2=(90, 95), bp=(105, 120),
        organ="Estomac ou reins", med="Dexaméthasone",
        desc="Inflammation sévère de la paroi abdominale.",
    ),
    _profile(
        "Gastrite", ["Vomissement"],
        temp=(37.5, 38.5), hr=(90, 100), o2=(93, 97), bp=(110, 125),
        organ="Estomac", med="Dexaméthasone",
        desc="Inflammation de la muqueuse de l'estomac.",
    ),
    _profile(
        "Blessure par Balle", ["Injury (Blessure)"],
        temp=(36.0, 37.0), hr=(115, 135), o2=(85, 92), bp=(75, 90),
        organ="Estomac ou foie", med="Acide Tranexamique",
        desc="Traumatisme balistique avec hémorragie.",
    ),
    _profile(
        "Blessure par Arme Blanche", ["Injury (Blessure)"],
        temp=(36.5, 37.2), hr=(120, 140), o2=(70, 85), bp=(80, 95),
        organ="Estomac ou foie", med="Acide Tranexamique",
        desc="Traumatisme pénétrant thorax/abdomen.",
    ),
]


def validate_catalog(catalog: Sequence[DiseaseProfile]) -> None:
    """Check catalog invariants before the catalog is used for scoring.

    Zero-width ranges are rejected here because scoring divides by the
    half-range.

    Raises:
        CatalogError: On an empty symptom set, a range with min >= max,
            or a duplicated profile name.
    """
    seen: set[str] = set()
    for profile in catalog:
        if profile.name in seen:
            raise CatalogError(
                f"Duplicate disease profile '{profile.name}'",
                details={"profile": profile.name},
            )
        seen.add(profile.name)

        if not profile.symptoms:
            raise CatalogError(
                f"Disease profile '{profile.name}' has no symptoms",
                details={"profile": profile.name},
            )

        for attr, vital_range in profile.ranges().items():
            if not vital_range.minimum < vital_range.maximum:
                raise CatalogError(
                    f"Disease profile '{profile.name}' has an invalid {attr} range "
                    f"[{vital_range.minimum}, {vital_range.maximum}]",
                    details={"profile": profile.name, "vital": attr},
                )


# ============================================================================
# Diagnosis Service
# ============================================================================

# Singleton instance and lock for thread safety
_diagnosis_service: "DiagnosisService | None" = None
_diagnosis_lock = threading.Lock()


def get_diagnosis_service() -> "DiagnosisService":
    """Get the singleton diagnosis service instance."""
    global _diagnosis_service
    if _diagnosis_service is None:
        with _diagnosis_lock:
            if _diagnosis_service is None:
                _diagnosis_service = DiagnosisService()
    return _diagnosis_service


def reset_diagnosis_service() -> None:
    """Reset the singleton instance (for testing)."""
    global _diagnosis_service
    with _diagnosis_lock:
        _diagnosis_service = None


class DiagnosisService:
    """Filter-then-score differential diagnosis over a fixed catalog."""

    def __init__(self, catalog: Sequence[DiseaseProfile] | None = None) -> None:
        """Validate the catalog and build the symptom index.

        Raises:
            CatalogError: If the catalog breaks an invariant.
        """
        profiles = list(DISEASE_CATALOG if catalog is None else catalog)
        validate_catalog(profiles)
        self._profiles: tuple[DiseaseProfile, ...] = tuple(profiles)
        self._symptoms: list[str] = sorted({s for p in self._profiles for s in p.symptoms})
        logger.debug(
            f"Diagnosis catalog loaded: {len(self._profiles)} profiles, "
            f"{len(self._symptoms)} symptoms"
        )

    @property
    def profiles(self) -> tuple[DiseaseProfile, ...]:
        return self._profiles

    def list_symptoms(self) -> list[str]:
        """All distinct symptoms across the catalog, sorted ascending."""
        return list(self._symptoms)

    def candidates(self, symptom: str) -> list[DiseaseProfile]:
        """Profiles presenting the symptom (exact, case-sensitive), in catalog order."""
        return [p for p in self._profiles if symptom in p.symptoms]

    def analyze(self, symptom: str | None, vitals: Mapping[str, Any] | VitalReading | None) -> DiagnosisOutcome:
        """Run elimination and scoring for one symptom and one set of vitals.

        Args:
            symptom: The visible symptom; need not exist in the catalog.
            vitals: A VitalReading or the wire mapping ``{temp, hr, o2, bp}``.

        Returns:
            DiagnosisOutcome with survivors sorted by descending confidence,
            ties kept in catalog order.

        Raises:
            InvalidInputError: If symptom or vitals are missing or malformed.
        """
        if not symptom or not isinstance(symptom, str):
            raise InvalidInputError("Données incomplètes: symptôme visible manquant")
        if vitals is None:
            raise InvalidInputError("Données incomplètes: constantes vitales manquantes")

        reading = vitals if isinstance(vitals, VitalReading) else VitalReading.from_mapping(vitals)

        candidates = self.candidates(symptom)
        survivors = [p for p in candidates if p.admits(reading)]
        matches = [DiagnosisMatch(profile=p, confidence=p.confidence(reading)) for p in survivors]
        # sorted() is stable, so equal scores keep catalog order
        matches = sorted(matches, key=lambda m: m.confidence, reverse=True)

        if not matches:
            status = DiagnosisStatus.UNKNOWN
        elif len(matches) == 1:
            status = DiagnosisStatus.CONFIRMED
        else:
            status = DiagnosisStatus.MULTIPLE
        message = STATUS_MESSAGES[status].format(count=len(matches))

        logger.info(
            f"Diagnosis for symptom={symptom!r}: status={status.value}, "
            f"candidates={len(candidates)}, survivors={len(matches)}"
        )
        return DiagnosisOutcome(status=status, message=message, results=matches)

    def get_profile(self, name: str) -> DiseaseProfile | None:
        """Get a profile by name (case-insensitive)."""
        for profile in self._profiles:
            if profile.name.lower() == name.lower():
                return profile
        return None

    def get_stats(self) -> dict:
        """Get statistics about the disease catalog."""
        by_organ: dict[str, int] = {}
        for profile in self._profiles:
            by_organ[profile.target_organ] = by_organ.get(profile.target_organ, 0) + 1

        return {
            "total_profiles": len(self._profiles),
            "total_symptoms": len(self._symptoms),
            "by_organ": by_organ,
        }
