"""
Application settings loaded from environment variables.

Note: Connection credentials are never stored here. They live encrypted in
the connection records; only the key used to open them is configured.
See: dashvault/core/encryption.py
"""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Process-wide settings loaded from environment variables.
    """

    # -------------------------------------------------------------------------
    # Security
    # -------------------------------------------------------------------------

    # AES-256-GCM key for connection credentials, 32 bytes as 64 hex chars.
    # Generate with: python -c "import secrets; print(secrets.token_hex(32))"
    encryption_key: str = Field(
        default="",
        alias="ENCRYPTION_KEY",
        description="64-character hex key used to encrypt connection credentials",
    )

    # Debug mode
    debug_mode: bool = Field(default=False, alias="DEBUG_MODE")

    # -------------------------------------------------------------------------
    # Query preview
    # -------------------------------------------------------------------------

    # Row cap applied to ad-hoc preview queries (never to dashboard execution)
    preview_row_limit: int = Field(default=25, alias="PREVIEW_ROW_LIMIT", ge=1)

    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True


settings = Settings()
