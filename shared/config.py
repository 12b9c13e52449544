"""
Settings base for the bank token service.

Values come from the process environment and an optional ``.env`` file in
the working directory; subclasses add a prefix and their own fields.
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Settings every service process needs."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    env: str = Field(default="local", description="Deployment environment name")
    log_level: str = Field(default="info", description="Root log level")

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000, gt=0, lt=65536)

    cors_origins: List[str] = Field(
        default_factory=list,
        description="Allowed CORS origins; every origin is allowed when env is local"
    )
    git_commit: str = Field(default="unknown", description="Build commit reported by /health")

    @property
    def is_local(self) -> bool:
        return self.env == "local"
