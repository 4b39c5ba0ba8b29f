"""
edgectl Configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EdgectlSettings(BaseSettings):
    """
    CLI settings, read from EDGECTL_* environment variables and .env.
    """

    api_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        min_length=8,
        description="Base URL of the certificate registry API",
    )
    api_token: str | None = Field(default=None, description="Bearer token for the registry API")
    account_id: str | None = Field(default=None, description="Account scope for API and deploys")
    http_timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")
    verify_ssl: bool = Field(default=True, description="Whether to verify SSL certificates")
    log_level: str = Field(default="WARNING", description="Log level")

    # ===== Deploy =====
    package_manager: str = Field(default="npm", min_length=1, description="Runs the deploy script")
    poll_timeout_seconds: float = Field(
        default=300.0, gt=0, description="Deadline for the availability poll"
    )
    poll_interval_seconds: float = Field(
        default=1.0, ge=0, description="Sleep between availability checks"
    )
    poll_initial_delay_seconds: float = Field(
        default=10.0, ge=0, description="Wait before the first DNS lookup"
    )

    model_config = SettingsConfigDict(
        env_prefix="EDGECTL_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )
