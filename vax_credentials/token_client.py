"""Client for exchanging signed assertions for bearer tokens."""

import logging

import httpx
from pydantic import ValidationError

from vax_credentials.config import CONNECT_TIMEOUT, TOKEN_EXCHANGE_TIMEOUT
from vax_credentials.errors import ExchangeError
from vax_credentials.jwt_signer import decode_expiry
from vax_credentials.models import TokenResponse

logger = logging.getLogger("vax_credentials.token_client")


class TokenExchanger:
    """Posts a signed assertion to the token endpoint and returns the issued bearer.

    Every failure, transport errors included, surfaces as ExchangeError.
    Pass ``client`` to share an httpx.Client; otherwise one is created and
    owned by this instance.
    """

    def __init__(self, client: httpx.Client | None = None, timeout: float = TOKEN_EXCHANGE_TIMEOUT):
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout, connect=min(CONNECT_TIMEOUT, timeout)),
        )

    def exchange(self, endpoint: str, assertion: str) -> tuple[str, float]:
        """Return ``(bearer_token, expires_at)`` with expires_at in epoch seconds."""
        if self._client.is_closed:
            raise ExchangeError("token client has been closed")
        try:
            resp = self._client.post(
                endpoint,
                json={"token": assertion},
                headers={"Content-Type": "application/json"},
            )
        except httpx.TimeoutException as e:
            logger.error("Timeout exchanging token at %s", endpoint)
            raise ExchangeError(f"token endpoint timed out: {e}") from e
        except httpx.InvalidURL as e:
            raise ExchangeError(f"invalid token endpoint {endpoint!r}: {e}") from e
        except httpx.HTTPError as e:
            logger.error("Token endpoint request error at %s: %s", endpoint, e)
            raise ExchangeError(f"network error during token refresh: {e}") from e

        if resp.status_code >= 400:
            raise ExchangeError(
                f"HTTP {resp.status_code}: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            data = TokenResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise ExchangeError(
                "invalid response: missing token",
                status_code=resp.status_code,
                body=resp.text,
            ) from e

        return data.token, decode_expiry(data.token)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "TokenExchanger":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
