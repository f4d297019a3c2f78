from datetime import datetime, timedelta, timezone

from app.schemas.validation import ValidationOptions
from app.services.compliance import (
    parse_timestamp,
    score_intervention,
    validate_compliance,
    validate_intervention_data,
    validate_intervention_photos,
    validate_intervention_steps,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _intervention(**overrides):
    created = NOW - timedelta(days=2)
    data = {
        "id": "0b7e4a3c-5d6f-4a1b-9c2d-3e4f5a6b7c8d",
        "client_id": "client-1",
        "technician_id": "tech-1",
        "vehicle_make": "Tesla",
        "vehicle_model": "Model 3",
        "vehicle_year": 2024,
        "vehicle_vin": "5YJ3E1EA7KF000001",
        "status": "step_2_preparation",
        "current_step": 2,
        "completion_percentage": 25,
        "created_at": created.isoformat(),
        "updated_at": (created + timedelta(hours=3)).isoformat(),
    }
    data.update(overrides)
    return data


def _photo(angle, **overrides):
    photo = {"id": f"photo-{angle}", "angle": angle, "latitude": 45.1, "longitude": 7.6, "quality_score": 90}
    photo.update(overrides)
    return photo


FULL_COVERAGE = [_photo("front"), _photo("rear"), _photo("left"), _photo("right")]
ONLY_DATA = ValidationOptions(validate_steps=False, validate_photos=False, validate_compliance=False)


def test_parse_timestamp_variants():
    assert parse_timestamp("2026-03-01T12:00:00Z") == NOW
    assert parse_timestamp("2026-03-01T12:00:00") == NOW
    assert parse_timestamp(int(NOW.timestamp() * 1000)) == NOW
    assert parse_timestamp(None) is None
    assert parse_timestamp("not a date") is None


def test_complete_intervention_has_no_findings():
    result = score_intervention(_intervention(), [], FULL_COVERAGE, ONLY_DATA, now=NOW)
    assert result.is_valid is True
    assert result.errors == []
    assert result.warnings == []
    assert result.score == 100


def test_updated_before_created_is_single_data_error():
    intervention = _intervention(
        created_at=(NOW - timedelta(days=1)).isoformat(),
        updated_at=(NOW - timedelta(days=2)).isoformat(),
    )
    steps = [{"id": "s1", "step_type": "inspection", "status": "in_progress"}]

    result = score_intervention(intervention, steps, FULL_COVERAGE, now=NOW)

    assert result.errors == ["Updated date cannot be before created date"]
    assert result.score == 80
    assert result.is_valid is False
    assert result.details.data_validation is False
    assert result.details.step_validation is True


def test_missing_identity_fields_are_warnings_only():
    result = validate_intervention_data({"created_at": None, "updated_at": None})
    assert result.is_valid is True
    assert result.errors == []
    assert result.warnings == [
        "Client ID is missing",
        "Technician ID is missing",
        "Vehicle information is incomplete",
        "Vehicle year is missing",
        "Vehicle VIN is missing",
    ]


def test_empty_steps_is_a_warning():
    result = validate_intervention_steps([])
    assert result.is_valid is True
    assert result.warnings == ["No steps found for intervention"]


def test_multiple_in_progress_and_missing_type():
    steps = [
        {"id": "s1", "step_type": "inspection", "status": "in_progress"},
        {"id": "s2", "step_type": None, "status": "in_progress"},
    ]
    result = validate_intervention_steps(steps)
    assert result.is_valid is True
    assert "Multiple steps are in progress (not recommended)" in result.warnings
    assert "Step s2 is missing step type" in result.warnings
    assert len(result.warnings) == 2


def test_five_completed_steps_without_timestamps():
    steps = [
        {"id": f"s{i}", "step_type": "installation", "status": "completed", "completed_at": None}
        for i in range(5)
    ]
    options = ValidationOptions(validate_photos=False, validate_compliance=False)

    result = score_intervention(_intervention(), steps, [], options, now=NOW)

    assert len(result.warnings) == 5
    assert result.errors == []
    assert result.is_valid is True
    assert result.score == 100


def test_zero_photos_only_warns():
    pass_result = validate_intervention_photos([])
    assert pass_result.is_valid is True
    assert pass_result.errors == []
    assert pass_result.warnings == ["No photos found for intervention (photos are recommended)"]

    result = score_intervention(_intervention(), [], [], ValidationOptions(validate_steps=False), now=NOW)
    assert result.score == 100
    assert result.details.photo_validation is True


def test_photo_gps_quality_and_angle_coverage():
    photos = [
        _photo("front", latitude=None),
        _photo("rear", quality_score=55),
        _photo("front-left"),
    ]
    result = validate_intervention_photos(photos)
    assert result.is_valid is True
    assert result.warnings == [
        "Photo photo-front is missing GPS coordinates",
        "Photo photo-rear has low quality score: 55",
        "Consider adding photos for angle: left",
        "Consider adding photos for angle: right",
    ]


def test_quality_score_at_threshold_is_accepted():
    result = validate_intervention_photos([_photo(a, quality_score=70) for a in ("front", "rear", "left", "right")])
    assert result.warnings == []


def test_completion_percentage_out_of_range_is_single_warning():
    intervention = _intervention(completion_percentage=150)

    pass_result = validate_compliance(intervention, now=NOW)
    assert pass_result.warnings == ["Progress percentage should be between 0 and 100"]

    result = score_intervention(
        intervention, [], FULL_COVERAGE, ValidationOptions(validate_steps=False), now=NOW
    )
    assert result.warnings == ["Progress percentage should be between 0 and 100"]
    assert result.is_valid is True
    assert result.score == 100


def test_long_open_and_unknown_status():
    intervention = _intervention(
        created_at=(NOW - timedelta(days=45)).isoformat(),
        updated_at=(NOW - timedelta(days=1)).isoformat(),
        status="on_hold",
    )
    result = validate_compliance(intervention, now=NOW)
    assert result.is_valid is True
    assert result.warnings == [
        "Intervention has been open for more than 30 days",
        "Unusual intervention status: on_hold",
    ]


def test_disabled_passes_are_healthy():
    options = ValidationOptions(validate_steps=False, validate_photos=False, validate_compliance=False)
    result = score_intervention(_intervention(completion_percentage=-5), [], [], options, now=NOW)
    assert result.warnings == []
    assert result.details.step_validation is True
    assert result.details.photo_validation is True
    assert result.details.compliance_validation is True


def test_validation_options_accept_camel_case():
    options = ValidationOptions.model_validate({"validateSteps": False, "strictMode": True})
    assert options.validate_steps is False
    assert options.validate_photos is True
    assert options.strict_mode is True
    assert options.model_dump(by_alias=True) == {
        "validateSteps": False,
        "validatePhotos": True,
        "validateCompliance": True,
        "strictMode": True,
    }


def test_result_serializes_with_camel_case_keys():
    result = score_intervention(_intervention(), [], FULL_COVERAGE, ONLY_DATA, now=NOW)
    dumped = result.model_dump(by_alias=True)
    assert dumped["isValid"] is True
    assert set(dumped["details"]) == {
        "dataValidation", "stepValidation", "photoValidation", "complianceValidation",
    }
