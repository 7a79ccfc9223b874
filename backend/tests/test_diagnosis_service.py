"""Tests for the Diagnosis Service.

Covers catalog validation, symptom listing, strict elimination,
proximity scoring and outcome classification.
"""

from unittest.mock import patch

import pytest

from ems_mdt.core.errors import CatalogError, InvalidInputError
from ems_mdt.services.diagnosis import (
    DISEASE_CATALOG,
    DiagnosisService,
    DiagnosisStatus,
    DiseaseProfile,
    VitalRange,
    VitalReading,
    get_diagnosis_service,
    reset_diagnosis_service,
    validate_catalog,
)


def profile(name: str, symptoms: list[str], temp=(36.0, 38.0), hr=(60, 100), o2=(90, 100), bp=(100, 140)) -> DiseaseProfile:
    return DiseaseProfile(
        name=name,
        symptoms=tuple(symptoms),
        temperature=VitalRange(*temp),
        heart_rate=VitalRange(*hr),
        oxygen_saturation=VitalRange(*o2),
        blood_pressure=VitalRange(*bp),
        target_organ="Test",
        recommended_medication="Test",
        description="Test",
    )


def midpoint_vitals(p: DiseaseProfile) -> dict[str, float]:
    return {
        "temp": p.temperature.midpoint,
        "hr": p.heart_rate.midpoint,
        "o2": p.oxygen_saturation.midpoint,
        "bp": p.blood_pressure.midpoint,
    }


# ============================================================================
# Service Tests
# ============================================================================


class TestServiceInit:
    """Test service initialization."""

    def setup_method(self):
        """Reset singleton before each test."""
        reset_diagnosis_service()

    def test_service_creation(self):
        service = DiagnosisService()
        assert len(service.profiles) == len(DISEASE_CATALOG)

    def test_singleton_pattern(self):
        service1 = get_diagnosis_service()
        service2 = get_diagnosis_service()
        assert service1 is service2

    def test_singleton_reset(self):
        service1 = get_diagnosis_service()
        reset_diagnosis_service()
        service2 = get_diagnosis_service()
        assert service1 is not service2

    def test_stats(self):
        stats = DiagnosisService().get_stats()
        assert stats["total_profiles"] == 16
        assert stats["total_symptoms"] == 8
        assert stats["by_organ"]["Poumons"] == 3


# ============================================================================
# Catalog Content Tests
# ============================================================================


class TestCatalogContent:
    """Test the built-in disease catalog."""

    def test_catalog_has_sixteen_profiles(self):
        assert len(DISEASE_CATALOG) == 16

    def test_catalog_is_valid(self):
        validate_catalog(DISEASE_CATALOG)

    def test_every_profile_has_symptoms_and_ordered_ranges(self):
        for p in DISEASE_CATALOG:
            assert p.symptoms
            for vital_range in p.ranges().values():
                assert vital_range.minimum < vital_range.maximum

    def test_get_profile_case_insensitive(self):
        service = DiagnosisService()
        found = service.get_profile("virus respiratoire")
        assert found is not None
        assert found.name == "Virus Respiratoire"
        assert service.get_profile("Inconnue") is None


class TestCatalogValidation:
    """Malformed profiles are rejected when the catalog is loaded."""

    def test_zero_width_range_rejected(self):
        bad = profile("Flat", ["Toux"], hr=(90, 90))
        with pytest.raises(CatalogError) as exc_info:
            DiagnosisService([bad])
        assert exc_info.value.details["vital"] == "heart_rate"

    def test_inverted_range_rejected(self):
        bad = profile("Inverted", ["Toux"], temp=(39.0, 38.0))
        with pytest.raises(CatalogError):
            DiagnosisService([bad])

    def test_empty_symptoms_rejected(self):
        bad = profile("NoSymptom", [])
        with pytest.raises(CatalogError):
            DiagnosisService([bad])

    def test_duplicate_name_rejected(self):
        with pytest.raises(CatalogError):
            DiagnosisService([profile("Same", ["A"]), profile("Same", ["B"])])


# ============================================================================
# Symptom Listing Tests
# ============================================================================


class TestListSymptoms:
    """Test the distinct symptom list."""

    def test_sorted_and_distinct(self):
        symptoms = DiagnosisService().list_symptoms()
        assert symptoms == sorted(set(symptoms))

    def test_contains_catalog_symptoms(self):
        symptoms = DiagnosisService().list_symptoms()
        assert symptoms == [
            "Boiter (Limping)",
            "Courte respiration",
            "Douleur estomac",
            "Eternuement",
            "Injury (Blessure)",
            "Titubement",
            "Toux",
            "Vomissement",
        ]

    def test_returns_copy(self):
        service = DiagnosisService()
        service.list_symptoms().append("Mutated")
        assert "Mutated" not in service.list_symptoms()


# ============================================================================
# Analysis Tests
# ============================================================================


class TestSymptomFilter:
    """A profile is a candidate iff the symptom is one of its symptoms."""

    def test_candidates_match_membership(self):
        service = DiagnosisService()
        for symptom in service.list_symptoms():
            names = {p.name for p in service.candidates(symptom)}
            expected = {p.name for p in DISEASE_CATALOG if symptom in p.symptoms}
            assert names == expected

    def test_match_is_case_sensitive(self):
        assert DiagnosisService().candidates("toux") == []

    def test_unknown_symptom_yields_unknown_status(self):
        outcome = DiagnosisService().analyze("Hoquet", {"temp": 37, "hr": 80, "o2": 97, "bp": 120})
        assert outcome.status == DiagnosisStatus.UNKNOWN
        assert outcome.results == []


class TestStrictElimination:
    """One out-of-range vital eliminates the whole profile."""

    def test_single_vital_out_of_range_eliminates(self):
        service = DiagnosisService()
        virus = service.get_profile("Virus Respiratoire")
        vitals = midpoint_vitals(virus)
        vitals["hr"] = 200

        outcome = service.analyze("Toux", vitals)
        assert "Virus Respiratoire" not in [m.profile.name for m in outcome.results]

    def test_bounds_are_inclusive(self):
        service = DiagnosisService([profile("Edge", ["A"])])
        outcome = service.analyze("A", {"temp": 36.0, "hr": 100, "o2": 90, "bp": 140})
        assert outcome.status == DiagnosisStatus.CONFIRMED

    def test_just_outside_bound_eliminates(self):
        service = DiagnosisService([profile("Edge", ["A"])])
        outcome = service.analyze("A", {"temp": 35.99, "hr": 80, "o2": 95, "bp": 120})
        assert outcome.status == DiagnosisStatus.UNKNOWN


class TestScoring:
    """Proximity scoring of surviving profiles."""

    def test_midpoint_scores_hundred(self):
        service = DiagnosisService()
        for p in DISEASE_CATALOG:
            symptom = sorted(p.symptoms)[0]
            outcome = service.analyze(symptom, midpoint_vitals(p))
            match = next(m for m in outcome.results if m.profile.name == p.name)
            assert match.confidence == 100

    def test_boundary_contributes_zero(self):
        hr = VitalRange(95, 110)
        assert hr.proximity(95) == 0.0
        assert hr.proximity(110) == 0.0
        assert hr.proximity(102.5) == 1.0

    def test_proximity_never_negative(self):
        assert VitalRange(95, 110).proximity(500) == 0.0

    def test_one_dimension_at_edge_scores_seventy_five(self):
        p = profile("Quarter", ["A"])
        vitals = midpoint_vitals(p)
        vitals["hr"] = 60
        outcome = DiagnosisService([p]).analyze("A", vitals)
        assert outcome.results[0].confidence == 75

    def test_confidence_bounded(self):
        service = DiagnosisService()
        outcome = service.analyze("Vomissement", {"temp": 38.0, "hr": 100, "o2": 93, "bp": 112})
        for match in outcome.results:
            assert 0 <= match.confidence <= 100

    def test_half_rounds_up(self):
        # temp at edge (0), hr halfway (0.5): 2.5 / 4 = 62.5% -> 63
        p = profile("Half", ["A"])
        vitals = midpoint_vitals(p)
        vitals["temp"] = 36.0
        vitals["hr"] = 70
        outcome = DiagnosisService([p]).analyze("A", vitals)
        assert outcome.results[0].confidence == 63


class TestOutcome:
    """Outcome classification and ordering."""

    def test_respiratory_virus_scenario(self):
        outcome = DiagnosisService().analyze("Toux", {"temp": 38.6, "hr": 100, "o2": 86, "bp": 117})

        assert outcome.status == DiagnosisStatus.CONFIRMED
        assert outcome.message == "Correspondance unique trouvée."
        assert len(outcome.results) == 1
        assert outcome.results[0].profile.name == "Virus Respiratoire"
        assert outcome.results[0].confidence == 90

    def test_unknown_message(self):
        outcome = DiagnosisService().analyze("Toux", {"temp": 30, "hr": 30, "o2": 30, "bp": 30})
        assert outcome.status == DiagnosisStatus.UNKNOWN
        assert outcome.message == "Aucune maladie ne correspond à ces constantes précises."
        assert outcome.to_dict()["results"] == []

    def test_multiple_message_includes_count(self):
        catalog = [profile("A1", ["S"]), profile("A2", ["S"]), profile("A3", ["S"])]
        outcome = DiagnosisService(catalog).analyze("S", {"temp": 37, "hr": 80, "o2": 95, "bp": 120})
        assert outcome.status == DiagnosisStatus.MULTIPLE
        assert "(3)" in outcome.message

    def test_sorted_by_confidence_descending(self):
        catalog = [
            profile("Wide", ["S"], hr=(40, 120)),
            profile("Centered", ["S"], hr=(70, 90)),
        ]
        outcome = DiagnosisService(catalog).analyze("S", {"temp": 37, "hr": 85, "o2": 95, "bp": 120})
        confidences = [m.confidence for m in outcome.results]
        assert confidences == sorted(confidences, reverse=True)

    def test_ties_keep_catalog_order(self):
        catalog = [profile("First", ["S"]), profile("Second", ["S"]), profile("Third", ["S"])]
        outcome = DiagnosisService(catalog).analyze("S", {"temp": 37, "hr": 80, "o2": 95, "bp": 120})
        assert [m.profile.name for m in outcome.results] == ["First", "Second", "Third"]

    def test_to_dict_shape(self):
        outcome = DiagnosisService().analyze("Toux", {"temp": 38.6, "hr": 100, "o2": 86, "bp": 117})
        data = outcome.to_dict()
        assert data["status"] == "confirmed"
        result = data["results"][0]
        assert result["organ"] == "Poumons"
        assert result["med"] == "Ribavirine"
        assert result["symptoms"] == ["Toux", "Eternuement"]
        assert result["temp"] == [38.0, 39.2]
        assert result["confidence"] == 90

    def test_symptom_filter_runs_once_per_analysis(self):
        service = DiagnosisService()
        with patch.object(service, "candidates", wraps=service.candidates) as candidates:
            service.analyze("Toux", {"temp": 38.6, "hr": 100, "o2": 86, "bp": 117})
        candidates.assert_called_once_with("Toux")


class TestInputValidation:
    """Missing or malformed input is an error, never an empty result."""

    def test_missing_symptom(self):
        with pytest.raises(InvalidInputError):
            DiagnosisService().analyze("", {"temp": 37, "hr": 80, "o2": 95, "bp": 120})

    def test_none_symptom(self):
        with pytest.raises(InvalidInputError):
            DiagnosisService().analyze(None, {"temp": 37, "hr": 80, "o2": 95, "bp": 120})

    def test_missing_vitals(self):
        with pytest.raises(InvalidInputError):
            DiagnosisService().analyze("Toux", None)

    def test_missing_single_vital(self):
        with pytest.raises(InvalidInputError) as exc_info:
            DiagnosisService().analyze("Toux", {"temp": 37, "hr": 80, "o2": 95})
        assert exc_info.value.details["field"] == "bp"

    def test_non_numeric_vital(self):
        with pytest.raises(InvalidInputError):
            VitalReading.from_mapping({"temp": "chaud", "hr": 80, "o2": 95, "bp": 120})

    def test_non_finite_vital(self):
        with pytest.raises(InvalidInputError):
            VitalReading.from_mapping({"temp": "nan", "hr": 80, "o2": 95, "bp": 120})

    def test_numeric_strings_are_coerced(self):
        reading = VitalReading.from_mapping({"temp": "38.6", "hr": "100", "o2": 86, "bp": "117"})
        assert reading == VitalReading(38.6, 100.0, 86.0, 117.0)

    def test_accepts_vital_reading(self):
        outcome = DiagnosisService().analyze("Toux", VitalReading(38.6, 100, 86, 117))
        assert outcome.status == DiagnosisStatus.CONFIRMED
