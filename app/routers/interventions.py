import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_authorization
from app.models.photo import PhotoEvidence
from app.schemas.intervention import (
    AdvanceRequest,
    CancelRequest,
    InterventionCreate,
    InterventionResponse,
    StepResponse,
)
from app.schemas.photo import PhotoResponse
from app.schemas.validation import ValidationOptions
from app.services import workflow
from app.services.authorizer import authorize_intervention, check_intervention_id, extract_bearer_token
from app.services.compliance import score_intervention
from app.services.photo_evidence import list_photos
from app.services.progress import build_progress
from app.utils.response import success_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/interventions", tags=["interventions"])


def _intervention_data(intervention) -> dict:
    return InterventionResponse.model_validate(intervention).model_dump()


def _steps_data(steps) -> list[dict]:
    return [StepResponse.model_validate(s).model_dump() for s in steps]


async def _read_validation_options(request: Request) -> ValidationOptions:
    """Parse the optional options body; an empty or unparsable body means defaults."""
    body = await request.body()
    if not body.strip():
        return ValidationOptions()
    try:
        return ValidationOptions.model_validate_json(body)
    except ValidationError:
        logger.info("Unparsable validation options, using defaults")
        return ValidationOptions()


@router.post("", status_code=201)
async def create_intervention(
    payload: InterventionCreate,
    response: Response,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    if payload.id is not None:
        check_intervention_id(payload.id)
    token = extract_bearer_token(authorization)

    intervention, created = await workflow.start_intervention(db, payload, token)
    if not created:
        response.status_code = 200
    return success_response(data=_intervention_data(intervention))


@router.get("/{intervention_id}")
async def get_intervention(
    intervention_id: str,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    return success_response(data=_intervention_data(intervention))


@router.post("/{intervention_id}/advance")
async def advance_step(
    intervention_id: str,
    payload: AdvanceRequest,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, token = await authorize_intervention(db, intervention_id, authorization)
    intervention = await workflow.advance(db, intervention, payload, token)
    return success_response(data=_intervention_data(intervention))


@router.get("/{intervention_id}/steps")
async def list_steps(
    intervention_id: str,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    steps = await workflow.get_steps(db, intervention.id)
    return success_response(data=_steps_data(steps))


@router.post("/{intervention_id}/validate")
async def validate_intervention(
    intervention_id: str,
    request: Request,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    options = await _read_validation_options(request)

    steps = await workflow.get_steps(db, intervention.id)
    photos = await list_photos(db, intervention.id)

    report = score_intervention(
        _intervention_data(intervention),
        _steps_data(steps),
        [PhotoResponse.model_validate(p).model_dump() for p in photos],
        options,
    )

    return success_response(data={
        "result": report.model_dump(by_alias=True),
        "meta": {
            "intervention_id": intervention.id,
            "validation_timestamp": datetime.now(timezone.utc).isoformat(),
            "validation_options": options.model_dump(by_alias=True),
        },
    })


@router.get("/{intervention_id}/progress")
async def get_progress(
    intervention_id: str,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, _ = await authorize_intervention(db, intervention_id, authorization)
    steps = await workflow.get_steps(db, intervention.id)

    result = await db.execute(
        select(PhotoEvidence.step_number, func.count(PhotoEvidence.id))
        .where(PhotoEvidence.intervention_id == intervention.id)
        .group_by(PhotoEvidence.step_number)
    )
    photo_counts = {step_number: count for step_number, count in result.all()}

    data = build_progress(_intervention_data(intervention), _steps_data(steps), photo_counts)
    return success_response(data=data)


@router.post("/{intervention_id}/cancel")
async def cancel_intervention(
    intervention_id: str,
    payload: CancelRequest | None = None,
    authorization: str = Depends(get_authorization),
    db: AsyncSession = Depends(get_db),
):
    intervention, token = await authorize_intervention(db, intervention_id, authorization)
    reason = payload.reason if payload else None
    intervention = await workflow.cancel(db, intervention, reason, token)
    return success_response(data=_intervention_data(intervention))
