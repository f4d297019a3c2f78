"""Four-stage PPF workflow: start, advance, cancel.

Stages run inspection -> preparation -> installation -> finalization, then the
intervention is completed. Cancellation is reachable from any active stage.
Every state change writes a ``WorkflowAudit`` row; out-of-order advances are
only allowed under ``force_validation`` or ``supervisor_override`` and are
always audited.
"""
import hashlib
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models.audit import WorkflowAudit
from app.models.intervention import Intervention, STATUS_BY_STEP
from app.models.step import StepRecord, STEP_TYPES
from app.schemas.intervention import AdvanceRequest, InterventionCreate
from app.services.step_collector import validate_submission
from app.utils.exceptions import Conflict, InvalidStep, UnprocessableStep, ValidationFailed

logger = logging.getLogger(__name__)

PERCENT_PER_STEP = 100 / len(STEP_TYPES)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def credential_fingerprint(credential: str | None) -> str | None:
    if not credential:
        return None
    return hashlib.sha256(credential.encode()).hexdigest()[:12]


def _audit(intervention_id: str, action: str, credential: str | None = None, **fields) -> WorkflowAudit:
    return WorkflowAudit(
        id=str(uuid.uuid4()),
        intervention_id=intervention_id,
        action=action,
        credential_fingerprint=credential_fingerprint(credential),
        created_at=_now(),
        **fields,
    )


def _new_step(intervention_id: str, number: int, now: str) -> StepRecord:
    return StepRecord(
        id=str(uuid.uuid4()),
        intervention_id=intervention_id,
        step_number=number,
        step_type=STEP_TYPES[number],
        status="pending",
        collected_data={},
        measurements={},
        observations=[],
        photo_urls=[],
        updated_at=now,
    )


async def get_steps(db: AsyncSession, intervention_id: str) -> list[StepRecord]:
    result = await db.execute(
        select(StepRecord)
        .where(StepRecord.intervention_id == intervention_id)
        .order_by(StepRecord.step_number)
    )
    return list(result.scalars().all())


async def _commit(db: AsyncSession, intervention_id: str) -> None:
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        logger.warning("Concurrent update detected on intervention %s", intervention_id)
        raise Conflict("Intervention was modified concurrently; reload and retry")


async def start_intervention(
    db: AsyncSession, payload: InterventionCreate, credential: str | None = None
) -> tuple[Intervention, bool]:
    """Create an intervention with its four stage records.

    Returns ``(intervention, created)``; a retried request with a known id
    returns the existing job and ``created`` is ``False``.
    """
    intervention_id = payload.id or str(uuid.uuid4())

    existing = await db.get(Intervention, intervention_id)
    if existing:
        return existing, False

    now = _now()
    intervention = Intervention(
        **payload.model_dump(exclude={"id"}),
        id=intervention_id,
        current_step=1,
        status=STATUS_BY_STEP[1],
        completion_percentage=0,
        created_at=now,
        updated_at=now,
    )
    db.add(intervention)
    # Parent row first; stage and audit rows reference it
    await db.flush()

    for number in STEP_TYPES:
        step = _new_step(intervention_id, number, now)
        if number == 1:
            step.status = "in_progress"
            step.started_at = now
        db.add(step)

    db.add(_audit(intervention_id, "start", credential, to_step=1))
    await db.commit()
    await db.refresh(intervention)

    logger.info("Intervention %s started", intervention_id)
    return intervention, True


def _merge_submission(record: StepRecord, submission: AdvanceRequest, now: str) -> None:
    """Merge a submission into an existing stage record.

    Maps are merged key by key, observations are appended and photo URLs are
    appended without duplicates. New objects are assigned so the JSON columns
    register the change.
    """
    if submission.data:
        record.collected_data = {**(record.collected_data or {}), **submission.data}
    if submission.measurements:
        record.measurements = {**(record.measurements or {}), **submission.measurements}
    if submission.observations:
        record.observations = [*(record.observations or []), *submission.observations]
    if submission.photo_urls:
        urls = list(record.photo_urls or [])
        urls.extend(u for u in submission.photo_urls if u not in urls)
        record.photo_urls = urls
    if submission.current_location is not None:
        record.geolocation = dict(submission.current_location)
    if submission.notes is not None:
        record.notes = submission.notes
    record.updated_at = now


async def advance(
    db: AsyncSession,
    intervention: Intervention,
    submission: AdvanceRequest,
    credential: str | None = None,
) -> Intervention:
    """Apply a stage submission and move the intervention forward.

    Raises ``UnprocessableStep`` (finalized job or step out of range),
    ``Conflict`` (stale ``expected_version`` or a concurrent write),
    ``InvalidStep`` (out of order without a flag) or ``ValidationFailed``
    (payload shape or finalization prerequisites).
    """
    step_number = submission.step_number

    if intervention.is_finalized:
        raise UnprocessableStep(
            f"Intervention is {intervention.status} and can no longer be advanced"
        )

    if step_number not in STEP_TYPES:
        raise UnprocessableStep(f"Step number must be between 1 and {len(STEP_TYPES)}, got {step_number}")

    if submission.expected_version is not None and submission.expected_version != intervention.version:
        raise Conflict(
            f"Intervention version is {intervention.version}, expected {submission.expected_version}"
        )

    out_of_order = step_number != intervention.current_step
    if out_of_order and not submission.has_override:
        raise InvalidStep(
            f"Cannot submit step {step_number}: intervention is at step {intervention.current_step}"
        )

    errors = validate_submission(submission)
    if errors:
        raise ValidationFailed("Step submission is invalid", errors)

    steps = {s.step_number: s for s in await get_steps(db, intervention.id)}

    if step_number == len(STEP_TYPES) and not submission.has_override:
        incomplete = [
            n for n in STEP_TYPES
            if n < step_number and (n not in steps or steps[n].status != "completed")
        ]
        if incomplete:
            raise ValidationFailed(
                "Cannot finalize intervention with incomplete steps",
                [f"Step {n} is not completed" for n in incomplete],
            )

    if out_of_order:
        logger.warning(
            "Out-of-order advance on %s: step %d submitted at step %d (force_validation=%s, supervisor_override=%s)",
            intervention.id, step_number, intervention.current_step,
            submission.force_validation, submission.supervisor_override,
        )

    now = _now()
    record = steps.get(step_number)
    if record is None:
        record = _new_step(intervention.id, step_number, now)
        db.add(record)
        steps[step_number] = record

    _merge_submission(record, submission, now)
    record.status = "completed"
    record.started_at = record.started_at or now
    record.completed_at = now

    from_step = intervention.current_step
    if step_number == len(STEP_TYPES):
        intervention.current_step = step_number
        intervention.status = "completed"
        intervention.completed_at = now
    else:
        next_number = step_number + 1
        intervention.current_step = next_number
        intervention.status = STATUS_BY_STEP[next_number]
        next_record = steps.get(next_number)
        if next_record is not None and next_record.status == "pending":
            next_record.status = "in_progress"
            next_record.started_at = now
            next_record.updated_at = now

    completed = sum(1 for s in steps.values() if s.status == "completed")
    intervention.completion_percentage = completed * PERCENT_PER_STEP
    intervention.updated_at = now

    db.add(_audit(
        intervention.id,
        "advance",
        credential,
        step_number=step_number,
        from_step=from_step,
        to_step=intervention.current_step,
        force_validation=int(submission.force_validation),
        supervisor_override=int(submission.supervisor_override),
        out_of_order=int(out_of_order),
        notes=submission.notes,
    ))
    await _commit(db, intervention.id)

    logger.info(
        "Intervention %s advanced: step %d completed, now %s at step %d",
        intervention.id, step_number, intervention.status, intervention.current_step,
    )
    return intervention


async def cancel(
    db: AsyncSession,
    intervention: Intervention,
    reason: str | None = None,
    credential: str | None = None,
) -> Intervention:
    if intervention.is_finalized:
        raise UnprocessableStep(f"Cannot cancel intervention in {intervention.status} state")

    now = _now()
    from_step = intervention.current_step
    intervention.status = "cancelled"
    intervention.cancelled_at = now
    intervention.cancellation_reason = reason
    intervention.updated_at = now

    db.add(_audit(intervention.id, "cancel", credential, from_step=from_step, notes=reason))
    await _commit(db, intervention.id)

    logger.info("Intervention %s cancelled at step %d", intervention.id, from_step)
    return intervention
