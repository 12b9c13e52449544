"""
HTTP client for the partner bank API.
"""

from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from .engine import TokenEngine


class BankApiClient:
    """Calls the partner API with a bearer token from the engine.

    A token is issued when the client is created; build a new client once it
    nears expiry. HTTP error statuses are returned, not raised.
    """

    def __init__(
        self,
        engine: TokenEngine,
        base_url: Optional[str] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.engine = engine
        self.logger = get_logger("token.bank_client")
        self.token = engine.issue_token()
        self._client = httpx.Client(
            base_url=base_url or engine.config.base_url,
            headers={
                "Authorization": f"Bearer {self.token}",
                "accept": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def __enter__(self) -> "BankApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get(self, path: str, **kwargs) -> httpx.Response:
        response = self._client.get(path, **kwargs)
        self.logger.info(
            "Bank API call",
            method="GET",
            path=path,
            status_code=response.status_code
        )
        return response

    def sample_info(self) -> Dict[str, Any]:
        """Call the sandbox info endpoint and attach the token used."""
        response = self.get("/api/bank-sample/info")
        try:
            data = response.json()
        except ValueError:
            data = {"body": response.text}
        if not isinstance(data, dict):
            data = {"data": data}
        return {**data, "status": response.status_code, "token": self.token}
