# =============================================================================
# Settings API — Session Credential Management
# =============================================================================
#
# ENDPOINTS:
#   GET    /settings/api-key  — is a usable key set for this session?
#   PUT    /settings/api-key  — set (trim + overwrite) the key
#   DELETE /settings/api-key  — remove the key
#
# The key itself is never echoed back.
# =============================================================================

import logging

from fastapi import APIRouter, Depends

from finsage.api.deps import get_session
from finsage.models.requests import ApiKeyRequest
from finsage.models.responses import ApiKeyStatusResponse
from finsage.services.session import SessionContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get(
    "/api-key",
    response_model=ApiKeyStatusResponse,
    summary="Check whether an API key is set",
)
async def get_api_key_status(
    session: SessionContext = Depends(get_session),
) -> ApiKeyStatusResponse:
    return ApiKeyStatusResponse(has_api_key=await session.has_api_key())


@router.put(
    "/api-key",
    response_model=ApiKeyStatusResponse,
    summary="Set the Gemini API key for this session",
)
async def set_api_key(
    request: ApiKeyRequest,
    session: SessionContext = Depends(get_session),
) -> ApiKeyStatusResponse:
    await session.set_api_key(request.api_key)
    return ApiKeyStatusResponse(
        has_api_key=await session.has_api_key(),
        message="Your Gemini API key has been saved for this session.",
    )


@router.delete(
    "/api-key",
    response_model=ApiKeyStatusResponse,
    summary="Remove the Gemini API key from this session",
)
async def remove_api_key(
    session: SessionContext = Depends(get_session),
) -> ApiKeyStatusResponse:
    await session.remove_api_key()
    return ApiKeyStatusResponse(
        has_api_key=False,
        message="The Gemini API key has been removed from your session.",
    )
