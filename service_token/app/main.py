"""
Token service for bank API authentication.
"""

import time
from typing import Any, Optional

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from shared.base_service import BaseService
from .config import TokenServiceConfig
from .engine import TokenEngine
from .errors import TokenServiceError
from .models import FailureKind

FAILURE_MESSAGES = {
    FailureKind.EXPIRED: "Token has expired",
    FailureKind.BAD_SIGNATURE: "Invalid token signature",
    FailureKind.CLAIM_MISMATCH: "Token claims validation failed",
    FailureKind.MALFORMED: "Token validation failed",
}


class TokenValidationRequest(BaseModel):
    """Request model for token validation.

    ``token`` is left untyped so a non-string value is reported as an invalid
    token rather than rejected by request validation.
    """
    token: Any = None


class TokenResponse(BaseModel):
    """Response model for token issuance."""
    token: str
    expiresIn: int
    tokenType: str = "Bearer"


class TokenService(BaseService):
    """Token service implementation."""

    def __init__(self, config: Optional[TokenServiceConfig] = None, engine: Optional[TokenEngine] = None):
        config = config or (engine.config if engine else TokenServiceConfig())
        super().__init__("token", config)
        # Load the key up front so requests never touch the filesystem
        self.engine = engine or TokenEngine.from_config(config)

        self._setup_token_routes()

    def _setup_token_routes(self):
        """Set up token-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "bank-token-service",
                "message": "Bank Token Service",
                "version": "1.0.0"
            }

        @self.app.get("/token")
        def issue_token():
            """Issue a fresh bearer token."""
            context = self.engine.default_context
            try:
                with self.metrics.time_signing(context.algorithm.value):
                    token = self.engine.issue_token(context)
            except TokenServiceError as e:
                self.logger.error("Token generation failed", code=e.code, error=e.message)
                self.metrics.record_error(e.code)
                return JSONResponse(
                    status_code=500,
                    content={
                        "error": "token_generation_failed",
                        "message": e.message
                    }
                )

            self.metrics.record_token_issued(context.algorithm.value)
            return TokenResponse(token=token, expiresIn=context.ttl_seconds).model_dump()

        @self.app.post("/validate-token")
        def validate_token(request: Optional[TokenValidationRequest] = None):
            """Validate a token issued for the configured bank and audience."""
            if request is None or not request.token:
                return JSONResponse(
                    status_code=400,
                    content={"valid": False, "message": "Token is required"}
                )

            start_time = time.time()
            result = self.engine.verify_token(request.token)
            self.metrics.record_token_verification(
                "valid" if result.valid else result.failure_kind.value
            )

            if result.valid:
                return {
                    "valid": True,
                    "message": "Token is valid",
                    "expiresAt": result.claims.get("exp"),
                    "issuedAt": result.claims.get("iat")
                }

            self.logger.info(
                "Token rejected",
                failure_kind=result.failure_kind.value,
                duration_ms=round((time.time() - start_time) * 1000, 2)
            )
            return {
                "valid": False,
                "message": FAILURE_MESSAGES[result.failure_kind],
                "error": result.failure_kind.value
            }

        @self.app.get("/public-key")
        async def public_key():
            """Public half of the signing key, for partners verifying our tokens."""
            return {
                "kid": self.config.key_id,
                "alg": self.config.algorithm.value,
                "pem": self.engine.public_key_pem
            }

    async def _check_dependencies(self):
        """Check the signing key is usable."""
        try:
            self.engine.key.public_key()
            return {"signing_key": "ok"}
        except Exception as e:
            self.logger.error("Signing key check failed", error=str(e))
            return {"signing_key": "error"}


def create_app(config: Optional[TokenServiceConfig] = None, engine: Optional[TokenEngine] = None):
    """Create FastAPI application."""
    service = TokenService(config, engine)
    return service.app


if __name__ == "__main__":
    service = TokenService()
    service.run()
