"""Compliance scoring for PPF interventions.

Four independent passes look at an intervention snapshot, its stage records
and its photos. Incomplete real-world records degrade to warnings; only
contradictory data (an update before creation) is a hard error. Warnings never
touch the score or the validity flag.

All inputs are plain dicts (the API serializes ORM rows through the response
schemas first), so the scorer has no database access and no side effects.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from app.config import settings
from app.models.intervention import VALID_STATUSES
from app.schemas.validation import PassResult, ValidationOptions, ValidationResult

logger = logging.getLogger(__name__)

ERROR_WEIGHTS = {
    "data": 20,
    "steps": 15,
    "photos": 10,
    "compliance": 25,
}

SUGGESTED_ANGLES = ["front", "rear", "left", "right"]


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 string or epoch milliseconds into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_intervention_data(intervention: dict) -> PassResult:
    result = PassResult()

    created = parse_timestamp(intervention.get("created_at"))
    updated = parse_timestamp(intervention.get("updated_at"))
    if created and updated and updated < created:
        result.error("Updated date cannot be before created date")

    if not intervention.get("client_id"):
        result.warn("Client ID is missing")
    if not intervention.get("technician_id"):
        result.warn("Technician ID is missing")
    if not intervention.get("vehicle_make") or not intervention.get("vehicle_model"):
        result.warn("Vehicle information is incomplete")
    if not intervention.get("vehicle_year"):
        result.warn("Vehicle year is missing")
    if not intervention.get("vehicle_vin"):
        result.warn("Vehicle VIN is missing")

    return result


def validate_intervention_steps(steps: list[dict]) -> PassResult:
    result = PassResult()

    if not steps:
        result.warn("No steps found for intervention")
        return result

    in_progress = [s for s in steps if s.get("status") == "in_progress"]
    if len(in_progress) > 1:
        result.warn("Multiple steps are in progress (not recommended)")

    for step in steps:
        if not step.get("step_type"):
            result.warn(f"Step {step.get('id')} is missing step type")
        if step.get("status") == "completed" and not step.get("completed_at"):
            result.warn(
                f"Completed step {step.get('step_type') or step.get('id')} is missing completion timestamp"
            )

    return result


def validate_intervention_photos(photos: list[dict]) -> PassResult:
    result = PassResult()

    if not photos:
        result.warn("No photos found for intervention (photos are recommended)")
        return result

    threshold = settings.photo_quality_threshold
    for photo in photos:
        if photo.get("latitude") is None or photo.get("longitude") is None:
            result.warn(f"Photo {photo.get('id')} is missing GPS coordinates")

        quality = photo.get("quality_score")
        if isinstance(quality, (int, float)) and not isinstance(quality, bool) and quality < threshold:
            result.warn(f"Photo {photo.get('id')} has low quality score: {quality}")

    angles = {p.get("angle") for p in photos if p.get("angle")}
    for angle in SUGGESTED_ANGLES:
        if angle not in angles:
            result.warn(f"Consider adding photos for angle: {angle}")

    return result


def validate_compliance(intervention: dict, now: datetime | None = None) -> PassResult:
    result = PassResult()
    now = now or datetime.now(timezone.utc)

    created = parse_timestamp(intervention.get("created_at"))
    if created:
        days_open = (now - created).total_seconds() / 86400
        if days_open > settings.max_open_days:
            result.warn(f"Intervention has been open for more than {settings.max_open_days} days")

    status = intervention.get("status")
    if status and status not in VALID_STATUSES:
        result.warn(f"Unusual intervention status: {status}")

    progress = intervention.get("completion_percentage")
    if progress is not None and (progress < 0 or progress > 100):
        result.warn("Progress percentage should be between 0 and 100")

    return result


def score_intervention(
    intervention: dict,
    steps: list[dict],
    photos: list[dict],
    options: ValidationOptions | None = None,
    now: datetime | None = None,
) -> ValidationResult:
    """Run the enabled passes and fold them into a single weighted report.

    The data pass always runs. A disabled pass keeps its detail flag at
    ``True`` and contributes nothing to the score.
    """
    options = options or ValidationOptions()
    report = ValidationResult()
    deductions = 0

    passes: list[tuple[str, str, PassResult]] = [
        ("data", "data_validation", validate_intervention_data(intervention)),
    ]
    if options.validate_steps:
        passes.append(("steps", "step_validation", validate_intervention_steps(steps)))
    if options.validate_photos:
        passes.append(("photos", "photo_validation", validate_intervention_photos(photos)))
    if options.validate_compliance:
        passes.append(("compliance", "compliance_validation", validate_compliance(intervention, now)))

    for name, detail_field, outcome in passes:
        setattr(report.details, detail_field, outcome.is_valid)
        report.errors.extend(outcome.errors)
        report.warnings.extend(outcome.warnings)
        deductions += len(outcome.errors) * ERROR_WEIGHTS[name]

    report.score = max(0, min(100, 100 - deductions))
    report.is_valid = not report.errors

    logger.info(
        "Intervention validation completed: %s score=%d errors=%d warnings=%d",
        intervention.get("id"), report.score, len(report.errors), len(report.warnings),
    )
    return report
