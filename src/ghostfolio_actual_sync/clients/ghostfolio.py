"""
Ghostfolio API client.
Authenticates with an access token and fetches portfolio account values.
"""

from dataclasses import dataclass
from typing import Any, Optional
import logging

import httpx

from ..config import GhostfolioConfig
from ..utils.exceptions import AuthError, GatewayError
from .base import SourceGateway
from .response_shapes import extract_account_list

logger = logging.getLogger(__name__)

AUTH_PATH = "/api/v1/auth/anonymous"
ACCOUNTS_PATH = "/api/v1/account"
FEAR_AND_GREED_PATH = "/api/v1/symbol/RAPID_API/_GF_FEAR_AND_GREED_INDEX"

# Field names that different Ghostfolio versions use for the JWT
TOKEN_FIELDS = ("authToken", "token", "access_token", "accessToken")


@dataclass(frozen=True)
class GhostfolioSession:
    """An authenticated Ghostfolio session."""

    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


class GhostfolioClient(SourceGateway):
    """HTTP client for the Ghostfolio REST API."""

    def __init__(
        self,
        config: GhostfolioConfig,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Ghostfolio connection settings
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (config.base_url or "").rstrip("/")
        self.access_token = config.access_token
        self.timeout = config.timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Content-Type": "application/json"},
            transport=self._transport,
        )

    def authenticate(self) -> GhostfolioSession:
        """
        Exchange the access token for a JWT.

        Returns:
            Session carrying the bearer token

        Raises:
            AuthError: On a non-2xx response, transport error, or missing token
        """
        try:
            with self._client() as client:
                response = client.post(AUTH_PATH, json={"accessToken": self.access_token})
                response.raise_for_status()
                auth_response = response.json()
        except httpx.HTTPStatusError as e:
            raise AuthError(
                f"Ghostfolio authentication failed: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise AuthError(f"Ghostfolio authentication failed: {e}") from e

        token = None
        if isinstance(auth_response, dict):
            token = next(
                (auth_response[f] for f in TOKEN_FIELDS if auth_response.get(f)), None
            )
        if not token:
            raise AuthError(
                f"Ghostfolio authentication failed: no token found in auth response "
                f"(fields: {sorted(auth_response) if isinstance(auth_response, dict) else type(auth_response).__name__})"
            )

        logger.info("Successfully authenticated with Ghostfolio")
        return GhostfolioSession(token=token)

    def list_accounts(self, session: GhostfolioSession) -> list[dict[str, Any]]:
        """
        Fetch all accounts.

        Raises:
            GatewayError: On transport failure or an unrecognised payload
        """
        payload = self._get_json(session, ACCOUNTS_PATH, "fetch accounts")
        shape, accounts = extract_account_list(payload)
        logger.debug(f"Fetched {len(accounts)} Ghostfolio accounts ({shape} response)")
        return accounts

    def trigger_auxiliary_refresh(self, session: GhostfolioSession) -> Any:
        """
        Request the fear and greed index, which makes Ghostfolio refresh its market data.

        Raises:
            GatewayError: On failure; callers treat this as non-fatal
        """
        data = self._get_json(
            session,
            FEAR_AND_GREED_PATH,
            "trigger fear and greed update",
            params={"includeHistoricalData": 365},
        )
        logger.info("Successfully triggered fear and greed update")
        return data

    def _get_json(
        self,
        session: GhostfolioSession,
        path: str,
        action: str,
        params: Optional[dict[str, Any]] = None,
    ) -> Any:
        try:
            with self._client() as client:
                response = client.get(path, headers=session.headers, params=params)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            raise GatewayError(
                f"Failed to {action}: HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise GatewayError(f"Failed to {action}: {e}") from e
