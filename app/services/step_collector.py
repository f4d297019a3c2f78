"""Shape checks for a single stage submission.

Field conditions make strict per-field validation unreliable, so this layer
only rejects structurally impossible input. The internal keys of
``collected_data`` are never inspected here; domain rules live in the
compliance scorer.
"""
import math
from typing import Any
from urllib.parse import urlparse

from pydantic import ValidationError

from app.config import settings
from app.schemas.intervention import AdvanceRequest, GeoLocation


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def is_url_shaped(value: Any) -> bool:
    if not isinstance(value, str) or not value.strip():
        return False
    if value.startswith("/"):
        return True
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def check_measurements(measurements: Any) -> list[str]:
    if measurements is None:
        return []
    if not isinstance(measurements, dict):
        return ["measurements must be an object of numeric values"]
    return [
        f"measurements.{key} must be a number"
        for key, value in measurements.items()
        if not _is_number(value)
    ]


def check_observations(observations: Any) -> list[str]:
    if observations is None:
        return []
    if not isinstance(observations, list):
        return ["observations must be a list of strings"]
    return [
        f"observations[{i}] must be a string"
        for i, item in enumerate(observations)
        if not isinstance(item, str)
    ]


def check_photo_urls(photo_urls: Any) -> list[str]:
    if photo_urls is None:
        return []
    if not isinstance(photo_urls, list):
        return ["photo_urls must be a list of URLs"]
    return [
        f"photo_urls[{i}] is not a valid URL"
        for i, url in enumerate(photo_urls)
        if not is_url_shaped(url)
    ]


def check_geolocation(location: Any) -> list[str]:
    if location is None:
        return []
    if not isinstance(location, dict):
        return ["current_location must be an object"]

    try:
        geo = GeoLocation.model_validate(location)
    except ValidationError as e:
        return [
            f"current_location.{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]

    if geo.accuracy > settings.gps_max_accuracy_meters:
        return [f"current_location.accuracy is implausible: {geo.accuracy}"]
    return []


def validate_submission(submission: AdvanceRequest) -> list[str]:
    """Return every shape problem found in ``submission``; empty means accepted."""
    errors: list[str] = []

    if submission.data is not None and not isinstance(submission.data, dict):
        errors.append("data must be an object")
    if submission.notes is not None and not isinstance(submission.notes, str):
        errors.append("notes must be a string")

    errors.extend(check_measurements(submission.measurements))
    errors.extend(check_observations(submission.observations))
    errors.extend(check_photo_urls(submission.photo_urls))
    errors.extend(check_geolocation(submission.current_location))
    return errors
