"""Request-boundary checks run before any workflow operation.

Order matters: identifier shape and credential presence are checked before
the database is touched. Only the credential format is verified; which users
may act on which interventions is not decided here.
"""
import re

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.intervention import Intervention
from app.utils.exceptions import MalformedInput, NotFound, Unauthorized

INTERVENTION_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)
BEARER_PATTERN = re.compile(r"^Bearer\s+(\S+)$")


def is_valid_intervention_id(intervention_id: str | None) -> bool:
    return bool(intervention_id) and bool(INTERVENTION_ID_PATTERN.match(intervention_id))


def check_intervention_id(intervention_id: str | None) -> str:
    if not intervention_id:
        raise MalformedInput("Intervention ID is required")
    if not is_valid_intervention_id(intervention_id):
        raise MalformedInput("Invalid intervention ID format")
    return intervention_id


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        raise Unauthorized("Authorization header required")
    match = BEARER_PATTERN.match(authorization.strip())
    if not match:
        raise Unauthorized("Authorization header must use the Bearer scheme")
    return match.group(1)


async def authorize_intervention(
    db: AsyncSession, intervention_id: str | None, authorization: str | None
) -> tuple[Intervention, str]:
    """Validate the id and credential, then load the intervention.

    Returns the intervention together with the bearer token so callers can
    attribute audit rows to it.
    """
    check_intervention_id(intervention_id)
    token = extract_bearer_token(authorization)

    intervention = await db.get(Intervention, intervention_id)
    if intervention is None:
        raise NotFound("Intervention not found")
    return intervention, token
