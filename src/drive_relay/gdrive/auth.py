"""OAuth2 refresh-token exchange for the Drive relay.

The relay never runs an interactive consent flow. It is given a stored
refresh token and trades it for a short-lived access token once per run.

Example:
    from drive_relay.gdrive.auth import TokenExchanger

    exchanger = TokenExchanger()
    token = exchanger.exchange(credential)
    headers = token.apply({})
"""

import json
import logging
from typing import Optional
from urllib.parse import urlencode

import requests
from google.auth.exceptions import TransportError
from google.auth.transport.requests import Request

from drive_relay.gdrive.errors import AuthError
from drive_relay.models import AccessToken, Credential

# Set up structured logging
logger = logging.getLogger(__name__)

DEFAULT_TOKEN_URI = "https://oauth2.googleapis.com/token"
REFRESH_GRANT_TYPE = "refresh_token"


class TokenExchanger:
    """Exchanges a refresh token for a bearer access token.

    The exchange is a single form-encoded POST. Nothing is retried and
    nothing is cached: every call hits the token endpoint.

    Attributes:
        token_uri: OAuth2 token endpoint.
        timeout: Request timeout in seconds.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        token_uri: str = DEFAULT_TOKEN_URI,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the exchanger.

        Args:
            session: HTTP session to send the request with. A new one is
                created when omitted.
            token_uri: OAuth2 token endpoint.
            timeout: Request timeout in seconds.
        """
        self._request = Request(session=session)
        self.token_uri = token_uri
        self.timeout = timeout

    def exchange(self, credential: Credential) -> AccessToken:
        """Exchange ``credential`` for an access token.

        Args:
            credential: Client credentials and refresh token.

        Returns:
            AccessToken for this run.

        Raises:
            AuthError: If a credential field is empty, the endpoint is
                unreachable, rejects the request, or answers without a token.
        """
        missing = credential.missing_fields()
        if missing:
            raise AuthError(f"Credential is incomplete, empty fields: {', '.join(missing)}")

        body = urlencode(
            {
                "client_id": credential.client_id,
                "client_secret": credential.client_secret,
                "refresh_token": credential.refresh_token,
                "grant_type": REFRESH_GRANT_TYPE,
            }
        )

        logger.info("Exchanging refresh token for access token")
        try:
            response = self._request(
                url=self.token_uri,
                method="POST",
                body=body,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except TransportError as e:
            logger.error(
                "Token endpoint unreachable",
                extra={"token_uri": self.token_uri, "error": str(e)},
            )
            raise AuthError(f"Token exchange failed: {e}") from e

        text = _decode(response.data)
        if not 200 <= response.status < 300:
            logger.error(
                "Token exchange rejected",
                extra={"status": response.status, "token_uri": self.token_uri},
            )
            raise AuthError("Token exchange failed", status_code=response.status, body=text)

        try:
            payload = json.loads(text)
        except ValueError as e:
            raise AuthError(
                "Token endpoint returned a non-JSON body", status_code=response.status, body=text
            ) from e

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(access_token, str) or not access_token:
            raise AuthError(
                "Token endpoint response has no usable access_token",
                status_code=response.status,
                body=text,
            )

        logger.info("Access token obtained")
        return AccessToken(value=access_token)


def _decode(data: object) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return str(data or "")
