"""
FastAPI Authentication Dependencies

Shared-secret admin check applied to every protected router.
"""

import logging
import secrets
from typing import Optional

from fastapi import HTTPException, Request, status

from src.auth.config import get_auth_config

logger = logging.getLogger(__name__)


def is_valid_admin_key(candidate: Optional[str]) -> bool:
    """Constant-time comparison against the configured ADMIN_KEY."""
    config = get_auth_config()
    if not config.is_configured or not candidate:
        return False
    return secrets.compare_digest(candidate.encode("utf-8"), config.admin_key.encode("utf-8"))


async def require_admin(request: Request) -> None:
    """
    Reject requests without the admin key.

    Accepted from the session cookie or the x-admin-key header.

    Usage:
        router = APIRouter(dependencies=[Depends(require_admin)])

    Raises:
        HTTPException 401: If not authenticated
    """
    config = get_auth_config()
    if not config.auth_enabled:
        return

    if not config.is_configured:
        logger.error("ADMIN_KEY is not set; rejecting request")

    cookie_value = request.cookies.get(config.cookie_name)
    header_value = request.headers.get(config.header_name)

    if is_valid_admin_key(cookie_value) or is_valid_admin_key(header_value):
        return

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
    )
