"""
Authentication Module

Single shared admin key, presented as a session cookie or header.

Usage:
    from src.auth import require_admin

    router = APIRouter(dependencies=[Depends(require_admin)])
"""

from src.auth.config import AuthConfig, get_auth_config
from src.auth.dependencies import is_valid_admin_key, require_admin

__all__ = [
    "AuthConfig",
    "get_auth_config",
    "is_valid_admin_key",
    "require_admin",
]
