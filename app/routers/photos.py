from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_authorization, require_multipart
from app.schemas.photo import PhotoDeleteRequest, PhotoResponse
from app.services.authorizer import authorize_intervention
from app.services.photo_evidence import delete_photos, list_photos, plan_batch, store_batch
from app.services.storage import LocalPhotoStorage, get_storage
from app.utils.response import success_response

router = APIRouter(prefix="/interventions", tags=["photos"])


@router.post("/{intervention_id}/photos", status_code=201, dependencies=[Depends(require_multipart)])
async def upload_photos(
    intervention_id: str,
    step_number: int = Form(..., ge=1, le=4),
    files: list[UploadFile] | None = File(default=None),
    angle: list[str] | None = Form(default=None),
    category: list[str] | None = Form(default=None),
    notes: list[str] | None = Form(default=None),
    quality_score: list[str] | None = Form(default=None),
    latitude: list[str] | None = Form(default=None),
    longitude: list[str] | None = Form(default=None),
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
    storage: LocalPhotoStorage = Depends(get_storage),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    drafts = plan_batch(files or [], angle, category, notes, quality_score, latitude, longitude)

    created = await store_batch(db, storage, intervention.id, step_number, drafts)

    data = [
        {**PhotoResponse.model_validate(photo).model_dump(), "defaulted": defaulted}
        for photo, defaulted in created
    ]
    return success_response(data=data)


@router.get("/{intervention_id}/photos")
async def get_photos(
    intervention_id: str,
    step_number: int | None = None,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    photos = await list_photos(db, intervention.id, step_number)
    return success_response(data=[PhotoResponse.model_validate(p).model_dump() for p in photos])


@router.post("/{intervention_id}/photos/delete")
async def delete_photo_batch(
    intervention_id: str,
    payload: PhotoDeleteRequest,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
    storage: LocalPhotoStorage = Depends(get_storage),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    outcomes = await delete_photos(storage, intervention.id, payload.photo_ids)

    failed = sum(1 for o in outcomes if not o.ok)
    message = f"{failed} of {len(outcomes)} deletions failed" if failed else None
    return success_response(data=[o.model_dump() for o in outcomes], message=message)
