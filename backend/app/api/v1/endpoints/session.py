"""
Session Endpoints.

Sign-out for the current bearer token. The token stays on the revocation
list until it would have expired anyway.
"""

import logging
from fastapi import APIRouter, Depends
from backend.app.core.dependencies import get_current_user
from backend.app.core.token_revocation import revoke_token
from backend.app.schemas.auth import Principal, SignOutResponse

router = APIRouter(prefix="/auth", tags=["Session"])
logger = logging.getLogger("nexachain.auth")


@router.post("/logout", response_model=SignOutResponse)
async def logout(current_user: Principal = Depends(get_current_user)):
    await revoke_token(current_user.token, current_user.id)
    logger.info("Signed out", extra={"user_id": current_user.id})
    return SignOutResponse()
