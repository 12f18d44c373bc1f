"""
Mailbox credentials.

The mailbox is read with a short-lived OAuth access token minted once per
test run from a client id, client secret and refresh token. The token is
wrapped in a ``Credential`` value that is passed explicitly to every
mailbox call and never printed.
"""

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import requests

from .exceptions import CredentialExchangeError

if TYPE_CHECKING:
    from .config import OAuthSettings

logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class Credential:
    """An opaque bearer token. Its value is excluded from repr()."""

    token: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("Credential token must not be empty")

    def __str__(self) -> str:
        return "Credential(token=***)"

    @property
    def authorization_header(self) -> dict[str, str]:
        """HTTP header carrying the bearer token."""
        return {"Authorization": f"Bearer {self.token}"}


def exchange_refresh_token(
    client_id: str,
    client_secret: str,
    refresh_token: str,
    *,
    token_url: str = GOOGLE_TOKEN_URL,
    timeout: float = 10.0,
    session: "requests.Session | None" = None,
) -> Credential:
    """
    Exchange an OAuth refresh token for an access token.

    Args:
        client_id: OAuth client ID.
        client_secret: OAuth client secret.
        refresh_token: Long-lived refresh token.
        token_url: Token endpoint.
        timeout: Request timeout in seconds.
        session: Optional requests session to send the request with.

    Returns:
        Credential wrapping the access token.

    Raises:
        CredentialExchangeError: If the endpoint rejects the grant or the
            response carries no access token.
    """
    http = session or requests
    data = {
        "client_id": client_id,
        "client_secret": client_secret,
        "refresh_token": refresh_token,
        "grant_type": "refresh_token",
    }

    try:
        response = http.post(token_url, data=data, timeout=timeout)
    except requests.RequestException as e:
        raise CredentialExchangeError(f"token endpoint unreachable: {e}") from e

    if not response.ok:
        reason = response.reason or "token endpoint rejected the request"
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if isinstance(payload, dict) and payload.get("error"):
            reason = str(payload.get("error_description") or payload["error"])
        raise CredentialExchangeError(reason, status_code=response.status_code)

    try:
        payload = response.json()
    except ValueError as e:
        raise CredentialExchangeError("token response is not JSON") from e

    access_token = payload.get("access_token") if isinstance(payload, dict) else None
    if not access_token:
        raise CredentialExchangeError("token response has no access_token")

    logger.info("Minted mailbox access token (expires in %ss)", payload.get("expires_in", "?"))
    return Credential(access_token)


def credential_from_settings(settings: "OAuthSettings", **kwargs) -> Credential:
    """
    Mint a credential from configured OAuth secrets.

    Raises:
        MissingConfigError: If a secret is not configured.
        CredentialExchangeError: If the exchange fails.
    """
    client_id, client_secret, refresh_token = settings.require()
    return exchange_refresh_token(client_id, client_secret, refresh_token, **kwargs)
