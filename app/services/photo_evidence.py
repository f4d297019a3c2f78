"""Best-effort ingestion of photo evidence from field capture devices.

Capture devices regularly lose or mangle angle/category metadata, so unknown
values fall back to a canonical default instead of failing the upload. Every
fallback is logged and reported back so systematic metadata loss is visible.
"""
import asyncio
import logging
import os
import uuid
from datetime import datetime, timezone

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session
from app.models.photo import PhotoEvidence
from app.schemas.photo import PhotoDeleteOutcome
from app.services.storage import LocalPhotoStorage
from app.utils.exceptions import InternalError, MalformedInput, UnsupportedMediaType

logger = logging.getLogger(__name__)

PHOTO_ANGLES = (
    "front", "rear", "left", "right",
    "front-left", "front-right", "rear-left", "rear-right",
    "top", "interior", "detail",
)
PHOTO_CATEGORIES = (
    "vehicle-condition", "installation-progress", "quality-check",
    "final-result", "damage", "other",
)
DEFAULT_ANGLE = "front-left"
DEFAULT_CATEGORY = "installation-progress"


def normalize_angle(value: str | None) -> tuple[str, bool]:
    """Return ``(angle, defaulted)``."""
    cleaned = (value or "").strip().lower()
    if cleaned in PHOTO_ANGLES:
        return cleaned, False
    logger.warning("Photo angle %r not recognized, falling back to %s", value, DEFAULT_ANGLE)
    return DEFAULT_ANGLE, True


def normalize_category(value: str | None) -> tuple[str, bool]:
    """Return ``(category, defaulted)``."""
    cleaned = (value or "").strip().lower()
    if cleaned in PHOTO_CATEGORIES:
        return cleaned, False
    logger.warning("Photo category %r not recognized, falling back to %s", value, DEFAULT_CATEGORY)
    return DEFAULT_CATEGORY, True


def _value_at(values: list[str] | None, index: int) -> str | None:
    if not values or index >= len(values):
        return None
    value = values[index]
    return value if value != "" else None


def _parse_bounded(raw: str | None, field: str, low: float, high: float) -> float | None:
    if raw is None:
        return None
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Dropping unparsable photo %s: %r", field, raw)
        return None
    if not low <= value <= high:
        logger.warning("Dropping out-of-range photo %s: %r", field, raw)
        return None
    return value


def check_transport(content_type: str | None) -> None:
    if not content_type or not content_type.lower().startswith("multipart/form-data"):
        raise UnsupportedMediaType("Photo uploads must be sent as multipart/form-data")


def plan_batch(
    files: list[UploadFile],
    angles: list[str] | None = None,
    categories: list[str] | None = None,
    notes: list[str] | None = None,
    quality_scores: list[str] | None = None,
    latitudes: list[str] | None = None,
    longitudes: list[str] | None = None,
) -> list[dict]:
    """Pair each file with its metadata, aligned by position.

    Raises ``MalformedInput`` only when the batch has no files at all.
    """
    files = [f for f in files or [] if f is not None and f.filename]
    if not files:
        raise MalformedInput("At least one photo file is required")

    drafts = []
    for i, upload in enumerate(files):
        angle, angle_defaulted = normalize_angle(_value_at(angles, i))
        category, category_defaulted = normalize_category(_value_at(categories, i))
        quality = _parse_bounded(_value_at(quality_scores, i), "quality_score", 0, 100)
        drafts.append({
            "file": upload,
            "angle": angle,
            "category": category,
            "notes": _value_at(notes, i),
            "quality_score": int(quality) if quality is not None else None,
            "latitude": _parse_bounded(_value_at(latitudes, i), "latitude", -90, 90),
            "longitude": _parse_bounded(_value_at(longitudes, i), "longitude", -180, 180),
            "defaulted": [
                name for name, flag in (("angle", angle_defaulted), ("category", category_defaulted)) if flag
            ],
        })
    return drafts


async def _store_file(storage: LocalPhotoStorage, intervention_id: str, photo_id: str, upload: UploadFile) -> tuple[str, int]:
    content = await upload.read()
    extension = os.path.splitext(upload.filename or "")[1].lower() or ".jpg"
    file_path = await storage.save(intervention_id, photo_id, content, extension)
    return file_path, len(content)


async def store_batch(
    db: AsyncSession,
    storage: LocalPhotoStorage,
    intervention_id: str,
    step_number: int,
    drafts: list[dict],
) -> list[tuple[PhotoEvidence, list[str]]]:
    """Write all files concurrently, then record them in a single commit."""
    photo_ids = [str(uuid.uuid4()) for _ in drafts]
    stored = await asyncio.gather(*(
        _store_file(storage, intervention_id, photo_id, draft["file"])
        for photo_id, draft in zip(photo_ids, drafts)
    ), return_exceptions=True)

    failures = [r for r in stored if isinstance(r, Exception)]
    if failures:
        written = [r[0] for r in stored if not isinstance(r, Exception)]
        await asyncio.gather(*(storage.delete(path) for path in written))
        logger.error(
            "Failed to write %d of %d photos for intervention %s: %s",
            len(failures), len(stored), intervention_id, failures[0],
        )
        raise InternalError("Failed to store photo files")

    uploaded_at = datetime.now(timezone.utc).isoformat()
    created = []
    for photo_id, draft, (file_path, size) in zip(photo_ids, drafts, stored):
        photo = PhotoEvidence(
            id=photo_id,
            intervention_id=intervention_id,
            step_number=step_number,
            angle=draft["angle"],
            category=draft["category"],
            latitude=draft["latitude"],
            longitude=draft["longitude"],
            quality_score=draft["quality_score"],
            notes=draft["notes"],
            file_path=file_path,
            content_type=draft["file"].content_type,
            file_size=size,
            uploaded_at=uploaded_at,
        )
        db.add(photo)
        created.append((photo, draft["defaulted"]))

    try:
        await db.commit()
    except Exception:
        await db.rollback()
        await asyncio.gather(*(storage.delete(path) for path, _ in stored))
        raise

    defaulted = sum(1 for _, d in created if d)
    logger.info(
        "Stored %d photos for intervention %s step %d (%d with defaulted metadata)",
        len(created), intervention_id, step_number, defaulted,
    )
    return created


async def list_photos(db: AsyncSession, intervention_id: str, step_number: int | None = None) -> list[PhotoEvidence]:
    query = select(PhotoEvidence).where(PhotoEvidence.intervention_id == intervention_id)
    if step_number is not None:
        query = query.where(PhotoEvidence.step_number == step_number)
    result = await db.execute(query.order_by(PhotoEvidence.uploaded_at))
    return list(result.scalars().all())


async def _delete_one(storage: LocalPhotoStorage, intervention_id: str, photo_id: str) -> PhotoDeleteOutcome:
    try:
        async with async_session() as db:
            photo = await db.get(PhotoEvidence, photo_id)
            if photo is None or photo.intervention_id != intervention_id:
                return PhotoDeleteOutcome(id=photo_id, ok=False, error="Photo not found")
            file_path = photo.file_path
            await db.delete(photo)
            await db.commit()
        await storage.delete(file_path)
    except Exception as e:
        logger.exception("Failed to delete photo %s: %s", photo_id, e)
        return PhotoDeleteOutcome(id=photo_id, ok=False, error="Internal error")
    return PhotoDeleteOutcome(id=photo_id, ok=True)


async def delete_photos(storage: LocalPhotoStorage, intervention_id: str, photo_ids: list[str]) -> list[PhotoDeleteOutcome]:
    """Delete each photo independently; there is no rollback across the batch."""
    unique_ids = list(dict.fromkeys(photo_ids))
    outcomes = await asyncio.gather(*(_delete_one(storage, intervention_id, pid) for pid in unique_ids))
    failed = [o.id for o in outcomes if not o.ok]
    if failed:
        logger.warning("Bulk delete on %s: %d of %d failed", intervention_id, len(failed), len(outcomes))
    return list(outcomes)
