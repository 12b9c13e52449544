"""
Configuration for the bank token service.

Values are read once at startup (environment variables prefixed ``TOKEN_``
or a ``.env`` file) and passed to the engine explicitly; signing and
verification code never reads the environment.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import SettingsConfigDict

from shared.config import BaseConfig
from .models import Algorithm, SigningContext


class TokenServiceConfig(BaseConfig):
    """Settings for issuing bank tokens.

    Defaults match the sandbox partner registration; production deployments
    override ``bank_id``, ``key_id`` and the key locations.
    """

    model_config = SettingsConfigDict(
        env_prefix="TOKEN_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    bank_id: str = Field(default="db01bea4-d823-4643-ae9d-e3a5b9ad85e4", min_length=1)
    key_id: str = Field(default="cbe-1762998726956-hu7b87", min_length=1)
    algorithm: Algorithm = Field(default=Algorithm.ES256)
    audience: str = Field(default="https://addisland-api.aii.et/", min_length=1)
    base_url: str = Field(default="https://addisland-api.aii.et/")
    ttl_seconds: int = Field(default=600, gt=0)

    # Tried in order; see keys.loader.key_source_from_location for the syntax
    private_key_locations: List[str] = Field(default_factory=lambda: ["./bank-private-key.pem"])

    @field_validator("algorithm", mode="before")
    @classmethod
    def _parse_algorithm(cls, value):
        return Algorithm.parse(value)

    @property
    def issuer(self) -> str:
        return f"bank:{self.bank_id}"

    def signing_context(self) -> SigningContext:
        """Default signing context for issuance requests."""
        return SigningContext(
            issuer_id=self.bank_id,
            audience=self.audience,
            key_id=self.key_id,
            algorithm=self.algorithm,
            ttl_seconds=self.ttl_seconds,
        )
