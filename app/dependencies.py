from fastapi import Header, HTTPException, Request

from app.config import settings
from app.services.photo_evidence import check_transport


async def verify_api_key(x_api_key: str = Header(default="")) -> None:
    if not settings.api_key:
        return
    if x_api_key != settings.api_key:
        raise HTTPException(status_code=403, detail="Invalid or missing API key")


async def get_authorization(authorization: str = Header(default="")) -> str:
    """Raw ``Authorization`` header; format is checked by the authorizer."""
    return authorization


async def require_multipart(request: Request) -> None:
    check_transport(request.headers.get("content-type"))
