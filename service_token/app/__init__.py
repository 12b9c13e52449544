"""
Token service application package.

- app.keys: Private key loading and PKCS#8 normalization.
- app.signing: Header/claims assembly and compact JWS signing.
- app.validation: Signature and claims verification.
- app.engine: Issue/verify entry points bound to one signing key.
- app.main: FastAPI application exposing /token and /validate-token.
- app.client: Outbound partner API client carrying the bearer token.

Design notes:
- Module import must not read keys or the environment. The key is loaded
  once when the engine is built at startup.
- Use the shared/ utilities for logging, metrics and errors.
"""
