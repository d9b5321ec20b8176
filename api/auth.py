"""
API Endpoints for Admin Login

Exchanges the admin key for an httpOnly session cookie.
"""

import logging

from fastapi import APIRouter, HTTPException, Response

from src.auth.config import get_auth_config
from src.auth.dependencies import is_valid_admin_key

from api.schemas import CamelModel, SuccessResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LoginRequest(CamelModel):
    key: str


@router.post("/login", response_model=SuccessResponse)
async def login(request: LoginRequest, response: Response):
    """Set the admin session cookie if the key matches."""
    if not is_valid_admin_key(request.key):
        logger.warning("Rejected admin login attempt")
        raise HTTPException(status_code=401, detail="Invalid Access Key")

    config = get_auth_config()
    response.set_cookie(
        key=config.cookie_name,
        value=request.key,
        httponly=True,
        secure=config.secure_cookies,
        samesite="strict",
        max_age=config.cookie_max_age,
        path="/",
    )
    return SuccessResponse()


@router.post("/logout", response_model=SuccessResponse)
async def logout(response: Response):
    """Clear the admin session cookie."""
    config = get_auth_config()
    response.delete_cookie(key=config.cookie_name, path="/")
    return SuccessResponse()
