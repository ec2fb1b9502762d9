import logging
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from contest_craze.core.config import settings
from contest_craze.models.auth.token import TokenRequest
from contest_craze.services.auth.security import security_service
from contest_craze.utils.response import error_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post("/jwt")
async def issue_token(token_request: TokenRequest):
    """
    Issue an access token for an identity the upstream identity provider has
    already verified. The client sends it back as `Authorization: Bearer`.
    """
    claims = {"sub": token_request.email, "email": token_request.email}
    if token_request.name:
        claims["name"] = token_request.name

    try:
        token = security_service.create_access_token(data=claims)
    except ValueError as e:
        logger.error("[ERROR] Token issuance failed: %s", e)
        return error_response(
            message="Server configuration error. Please contact administrator.",
            status_code=500
        )

    # Envelope kept as {token, success} for the web client
    return {"token": token, "success": True}


@router.post("/logout")
async def logout():
    """Clear the token cookie"""
    response = JSONResponse(content={"success": True})
    response.delete_cookie(
        "token",
        secure=settings.is_production,
        samesite="none" if settings.is_production else "strict"
    )
    return response
