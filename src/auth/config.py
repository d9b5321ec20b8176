"""
Authentication Configuration

Settings for the shared admin key and session cookie.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


class AuthConfig(BaseSettings):
    """Authentication configuration loaded from environment."""

    # Shared secret
    admin_key: str = ""

    # Auth behavior
    auth_enabled: bool = True  # Set to False for local dev without auth

    # Credential transport
    cookie_name: str = "admin_session"
    header_name: str = "x-admin-key"
    cookie_max_age: int = 60 * 60 * 24 * 7  # 1 week
    secure_cookies: bool = False

    class Config:
        env_prefix = ""
        extra = "ignore"

    @property
    def is_configured(self) -> bool:
        """Check if an admin key is set."""
        return bool(self.admin_key)


@lru_cache()
def get_auth_config() -> AuthConfig:
    """Get cached auth configuration."""
    return AuthConfig(
        admin_key=os.getenv("ADMIN_KEY", ""),
        auth_enabled=os.getenv("AUTH_ENABLED", "true").lower() == "true",
        secure_cookies=os.getenv("SECURE_COOKIES", "false").lower() == "true",
    )
