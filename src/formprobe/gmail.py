"""
Gmail implementation of the mail-search capability.

Uses the Gmail REST API: ``messages.list`` with a search expression, then
``messages.get`` for each listed id, in the order Gmail returns them
(newest first).
"""

import logging
from typing import Any, Optional, Sequence

import httpx

from .credentials import Credential
from .exceptions import MailAuthenticationError, MailSearchError, MalformedPayloadError
from .mailbox import MailMessage, MailSearch

logger = logging.getLogger(__name__)

GMAIL_API_URL = "https://gmail.googleapis.com/gmail/v1/users/me"


def _error_reason(response: httpx.Response) -> str:
    """Extract the API error message from a Gmail error response."""
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str):
        return error
    return response.reason_phrase


def extract_body(payload: dict[str, Any]) -> Optional[str]:
    """
    Find the encoded body in a Gmail message payload.

    Single-part messages carry the body in ``payload.body.data``. Multipart
    messages carry it in their parts; the first ``text/plain`` part wins,
    then the first part with any data.
    """
    data = (payload.get("body") or {}).get("data")
    if data:
        return data

    parts = payload.get("parts") or []
    for part in parts:
        if part.get("mimeType") == "text/plain":
            found = extract_body(part)
            if found:
                return found
    for part in parts:
        found = extract_body(part)
        if found:
            return found
    return None


def _header(payload: dict[str, Any], name: str) -> Optional[str]:
    for header in payload.get("headers") or []:
        if str(header.get("name", "")).lower() == name.lower():
            return header.get("value")
    return None


def parse_message(data: dict[str, Any]) -> MailMessage:
    """
    Convert a ``messages.get`` response into a MailMessage.

    Raises:
        MalformedPayloadError: If the message carries no body data.
    """
    payload = data.get("payload") or {}
    encoded_body = extract_body(payload)
    if encoded_body is None:
        raise MalformedPayloadError(
            f"message {data['id']} has no body data",
            details={"message_id": data["id"]},
        )
    internal_date = data.get("internalDate")
    return MailMessage(
        id=data["id"],
        encoded_body=encoded_body,
        thread_id=data.get("threadId"),
        subject=_header(payload, "Subject"),
        internal_date=int(internal_date) if internal_date is not None else None,
    )


class GmailSearch(MailSearch):
    """Read-only Gmail search over HTTP."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        api_url: str = GMAIL_API_URL,
        max_results: int = 10,
        timeout: float = 10.0,
    ):
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.api_url = api_url.rstrip("/")
        self.max_results = max_results

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "GmailSearch":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get(
        self,
        credential: Credential,
        query: str,
        path: str,
        params: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            response = await self.client.get(
                f"{self.api_url}/{path}",
                params=params,
                headers=credential.authorization_header,
            )
        except httpx.HTTPError as e:
            raise MailSearchError(query, f"{type(e).__name__}: {e}") from e

        if response.status_code in (401, 403):
            raise MailAuthenticationError(
                query, _error_reason(response), status_code=response.status_code
            )
        if not response.is_success:
            raise MailSearchError(
                query, _error_reason(response), status_code=response.status_code
            )

        try:
            return response.json()
        except ValueError as e:
            raise MailSearchError(query, "response is not JSON") from e

    async def search(
        self, credential: Credential, query: str
    ) -> Sequence[MailMessage]:
        listing = await self._get(
            credential, query, "messages",
            {"q": query, "maxResults": self.max_results},
        )
        refs = listing.get("messages") or []
        if not refs:
            return []

        messages = []
        for ref in refs:
            data = await self._get(
                credential, query, f"messages/{ref['id']}", {"format": "full"}
            )
            messages.append(parse_message(data))
        logger.debug("Gmail search %r returned %d messages", query, len(messages))
        return messages
