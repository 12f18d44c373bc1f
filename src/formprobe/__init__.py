"""formprobe - readiness gating and mailbox verification for website E2E tests."""

from formprobe.__version__ import (
    __author__,
    __description__,
    __license__,
    __title__,
    __version__,
    __version_info__,
    get_version,
)
from formprobe.credentials import Credential, exchange_refresh_token
from formprobe.decoding import decode_payload, encode_transport_safe
from formprobe.exceptions import (
    FormProbeError,
    MailAuthenticationError,
    MailSearchError,
    MalformedPayloadError,
    ReadinessTimeoutError,
)
from formprobe.mailbox import (
    MailboxVerifier,
    MailMessage,
    MailSearch,
    MailSearchQuery,
    SelectionPolicy,
    await_matching_message,
)
from formprobe.matching import contains_all, missing_fragments
from formprobe.readiness import ReadinessPoller, ReadinessQuery, wait_for_ready

__all__ = [
    "__version__",
    "__version_info__",
    "__title__",
    "__description__",
    "__author__",
    "__license__",
    "get_version",
    "Credential",
    "exchange_refresh_token",
    "decode_payload",
    "encode_transport_safe",
    "FormProbeError",
    "MailAuthenticationError",
    "MailSearchError",
    "MalformedPayloadError",
    "ReadinessTimeoutError",
    "MailboxVerifier",
    "MailMessage",
    "MailSearch",
    "MailSearchQuery",
    "SelectionPolicy",
    "await_matching_message",
    "contains_all",
    "missing_fragments",
    "ReadinessPoller",
    "ReadinessQuery",
    "wait_for_ready",
]
