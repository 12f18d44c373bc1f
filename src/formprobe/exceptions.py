"""
Custom exceptions for formprobe.

This module defines the exceptions raised by the verification pipeline.
Each exception carries a human-readable message and an optional details
dictionary for debugging.
"""

from typing import Any, Optional


class FormProbeError(Exception):
    """Base exception for all formprobe errors."""

    def __init__(self, message: str,
                 details: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error message.
            details: Optional dictionary with additional error details.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Readiness Exceptions
class ReadinessError(FormProbeError):
    """Base exception for readiness-gate errors."""


class ReadinessTimeoutError(ReadinessError):
    """Raised when a target does not become ready within its timeout window."""

    def __init__(
        self,
        target_url: str,
        elapsed_ms: float,
        attempts: int,
        last_error: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize readiness timeout error.

        Args:
            target_url: The URL that never answered with a 2xx status.
            elapsed_ms: Wall-clock time spent polling, in milliseconds.
            attempts: Number of requests issued.
            last_error: Last observed status or transport error.
            details: Optional dictionary with additional error details.
        """
        message = (
            f"Server not responding in time: '{target_url}' was not ready "
            f"after {elapsed_ms:.0f}ms ({attempts} attempts)"
        )
        if last_error:
            message += f", last result: {last_error}"
        super().__init__(message, details)
        self.target_url = target_url
        self.elapsed_ms = elapsed_ms
        self.attempts = attempts
        self.last_error = last_error


# Authentication Exceptions
class AuthenticationError(FormProbeError):
    """Base exception for authentication-related errors."""


class CredentialExchangeError(AuthenticationError):
    """Raised when a refresh token cannot be exchanged for an access token."""

    def __init__(
        self,
        reason: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        message = f"Failed to exchange refresh token: {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message, details)
        self.reason = reason
        self.status_code = status_code


# Mailbox Exceptions
class MailboxError(FormProbeError):
    """Base exception for mailbox verification errors."""


class MailSearchError(MailboxError):
    """Raised when the mail-search capability fails for a reason other than "no match"."""

    def __init__(
        self,
        query: str,
        reason: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize mail search error.

        Args:
            query: The search expression that failed.
            reason: Why the search failed.
            status_code: HTTP status returned by the search API, if any.
            details: Optional dictionary with additional error details.
        """
        message = f"Mail search failed for query '{query}': {reason}"
        if status_code is not None:
            message += f" (HTTP {status_code})"
        super().__init__(message, details)
        self.query = query
        self.reason = reason
        self.status_code = status_code


class MailAuthenticationError(MailSearchError, AuthenticationError):
    """Raised when the mail-search capability rejects the credential."""


# Payload Exceptions
class PayloadError(FormProbeError):
    """Base exception for message payload errors."""


class MalformedPayloadError(PayloadError):
    """Raised when an encoded message body cannot be decoded to text."""

    def __init__(
        self,
        reason: str,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(f"Malformed payload: {reason}", details)
        self.reason = reason


# Configuration Exceptions
class ConfigurationError(FormProbeError):
    """Base exception for configuration-related errors."""


class MissingConfigError(ConfigurationError):
    """Raised when a required configuration value is missing."""

    def __init__(
        self, config_key: str, details: Optional[dict[str, Any]] = None
    ) -> None:
        """
        Initialize missing config error.

        Args:
            config_key: The missing configuration key.
            details: Optional dictionary with additional error details.
        """
        super().__init__(
            f"Missing required configuration: '{config_key}'", details)
        self.config_key = config_key


class InvalidConfigError(ConfigurationError):
    """Raised when a configuration value is invalid."""

    def __init__(
        self,
        config_key: str,
        value: Any,
        reason: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        """
        Initialize invalid config error.

        Args:
            config_key: The configuration key with invalid value.
            value: The invalid value.
            reason: Optional reason why the value is invalid.
            details: Optional dictionary with additional error details.
        """
        message = f"Invalid configuration value for '{config_key}': {value}"
        if reason:
            message += f" - {reason}"
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value
        self.reason = reason
