"""
Authentication Router

Token refresh: a caller whose bearer token is within the refresh window
(30 minutes before expiry by default) exchanges it for a new one.

Security:
=========
- The old token is not revoked; it stays valid until its own exp
- Tokens further from expiry are rejected with NotRefreshable (400)
- Missing or invalid tokens are rejected with 401 before refresh runs
"""

import logging
from datetime import datetime

from fastapi import APIRouter, Header
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from skeleton_api.dependencies import CurrentIdentity, Tokens, bearer_token
from skeleton_api.schemas.envelope import Envelope, success

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
    responses={
        400: {"description": "Token is not eligible for refresh"},
        401: {"description": "Missing or invalid token"},
    },
)


class TokenResponse(BaseModel):
    """A freshly issued bearer token."""

    token: str = Field(..., description="Bearer token for the Authorization header")
    expires_at: datetime = Field(..., description="When the new token expires")


@router.post(
    "/refresh",
    response_model=Envelope[TokenResponse],
    summary="Refresh a bearer token",
)
def refresh_token(
    identity: CurrentIdentity,
    tokens: Tokens,
    authorization: str | None = Header(default=None),
) -> JSONResponse:
    """
    Exchange a token that is close to expiry for a fresh one.

    The new token carries the same identity with a full lifetime.
    """
    new_token = tokens.refresh(bearer_token(authorization or ""))
    claims = tokens.verify(new_token)

    logger.info(f"Token refreshed for {identity.identity}")

    return success(TokenResponse(token=new_token, expires_at=claims.expires_at))
