"""
Configuration management for formprobe.

This module provides configuration loading from environment variables,
an optional ``.env`` file and TOML configuration files, with type-safe
settings classes.
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import InvalidConfigError, MissingConfigError


class SiteSettings(BaseSettings):
    """Website under test."""

    model_config = SettingsConfigDict(
        env_prefix="SITE_",
        env_file=".env",
        extra="ignore",
    )

    target: str = Field(default="remote", description="Which deployment to test: remote or local")
    remote_url: str = Field(
        default="https://dohertyalex.cc", description="Public deployment URL"
    )
    local_url: str = Field(
        default="http://web:5000", description="Local (CI compose) deployment URL"
    )

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        """Validate the deployment target."""
        v_lower = v.lower()
        if v_lower not in ("remote", "local"):
            raise ValueError("Target must be one of: remote, local")
        return v_lower

    @field_validator("remote_url", "local_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("URL must start with http:// or https://")
        return v.rstrip("/")

    @property
    def base_url(self) -> str:
        """Base URL of the selected deployment."""
        return self.local_url if self.target == "local" else self.remote_url


class ReadinessSettings(BaseSettings):
    """Readiness gate configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="READINESS_",
        env_file=".env",
        extra="ignore",
    )

    timeout_ms: int = Field(default=40000, gt=0, description="Readiness timeout window in ms")
    interval_ms: int = Field(default=500, gt=0, description="Delay between readiness probes in ms")
    path: str = Field(default="/", description="Path probed on the site")

    @model_validator(mode="after")
    def validate_interval_within_timeout(self) -> "ReadinessSettings":
        """Ensure at least one full interval fits in the timeout window."""
        if self.interval_ms >= self.timeout_ms:
            raise ValueError("interval_ms must be smaller than timeout_ms")
        return self


class MailboxSettings(BaseSettings):
    """Mailbox verification configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="MAILBOX_",
        env_file=".env",
        extra="ignore",
    )

    timeout_ms: int = Field(default=15000, gt=0, description="Mail search timeout window in ms")
    step_ms: int = Field(default=1500, gt=0, description="Delay between mail searches in ms")
    sender: str = Field(
        default="jbloggo96@gmail.com",
        description="Address the contact form relays messages from",
    )
    selection: str = Field(
        default="first_returned",
        description="Which match to return: first_returned or most_recent",
    )

    @field_validator("selection")
    @classmethod
    def validate_selection(cls, v: str) -> str:
        """Validate selection policy name."""
        v_lower = v.lower()
        if v_lower not in ("first_returned", "most_recent"):
            raise ValueError("Selection must be one of: first_returned, most_recent")
        return v_lower

    @model_validator(mode="after")
    def validate_step_within_timeout(self) -> "MailboxSettings":
        """Ensure at least one full step fits in the timeout window."""
        if self.step_ms >= self.timeout_ms:
            raise ValueError("step_ms must be smaller than timeout_ms")
        return self


class OAuthSettings(BaseSettings):
    """OAuth secrets used to mint the mailbox access token."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    client_id: Optional[SecretStr] = Field(None, description="OAuth client ID")
    client_secret: Optional[SecretStr] = Field(None, description="OAuth client secret")
    refresh_token: Optional[SecretStr] = Field(None, description="OAuth refresh token")

    def require(self) -> tuple[str, str, str]:
        """
        Return the three secrets as plain strings.

        Raises:
            MissingConfigError: If any secret is not configured.
        """
        values = []
        for key in ("client_id", "client_secret", "refresh_token"):
            secret = getattr(self, key)
            if secret is None or not secret.get_secret_value():
                raise MissingConfigError(key.upper())
            values.append(secret.get_secret_value())
        return values[0], values[1], values[2]


class BrowserSettings(BaseSettings):
    """Browser settings for the E2E suite."""

    model_config = SettingsConfigDict(
        env_prefix="E2E_",
        env_file=".env",
        extra="ignore",
    )

    enabled: bool = Field(default=False, description="Run browser scenarios")
    headless: bool = Field(default=True, description="Run in headless mode")
    slow_mo: int = Field(default=0, ge=0, description="Slow motion delay in ms")
    timeout: int = Field(default=40000, gt=0, description="Default Playwright timeout in ms")
    browser: str = Field(default="chromium", description="chromium, firefox or webkit")

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, v: str) -> str:
        """Validate browser engine name."""
        v_lower = v.lower()
        if v_lower not in ("chromium", "firefox", "webkit"):
            raise ValueError("Browser must be one of: chromium, firefox, webkit")
        return v_lower


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        extra="ignore",
    )

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {', '.join(valid_levels)}")
        return v_upper


class Settings(BaseSettings):
    """Main settings aggregating all configuration."""

    model_config = SettingsConfigDict(
        env_prefix="FORMPROBE_",
        extra="ignore",
    )

    site: SiteSettings = Field(default_factory=SiteSettings)
    readiness: ReadinessSettings = Field(default_factory=ReadinessSettings)
    mailbox: MailboxSettings = Field(default_factory=MailboxSettings)
    oauth: OAuthSettings = Field(default_factory=OAuthSettings)
    browser: BrowserSettings = Field(default_factory=BrowserSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml(cls, path: str | Path) -> "Settings":
        """
        Load settings from a TOML configuration file.

        Args:
            path: Path to the TOML configuration file.

        Returns:
            Settings instance with loaded configuration.

        Raises:
            ConfigurationError: If the file cannot be read or parsed.
        """
        path = Path(path)
        if not path.exists():
            raise MissingConfigError(f"Configuration file not found: {path}")

        try:
            with open(path, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise InvalidConfigError(
                config_key="config_file",
                value=str(path),
                reason=f"Failed to parse TOML: {e}",
            )

        return cls._from_dict(config_data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Create settings from a dictionary of TOML sections."""
        sections = {
            "site": SiteSettings,
            "readiness": ReadinessSettings,
            "mailbox": MailboxSettings,
            "oauth": OAuthSettings,
            "browser": BrowserSettings,
            "logging": LoggingSettings,
        }
        settings_kwargs: dict[str, Any] = {}
        for name, settings_cls in sections.items():
            if name in data:
                settings_kwargs[name] = settings_cls(**data[name])

        return cls(**settings_kwargs)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings.

    Settings come from environment variables and ``.env``, or from the
    TOML file named by ``FORMPROBE_CONFIG_FILE`` when it exists.
    """
    config_file = os.getenv("FORMPROBE_CONFIG_FILE")

    if config_file and Path(config_file).exists():
        settings = Settings.from_toml(config_file)
    else:
        settings = Settings()

    return settings


def reload_settings() -> Settings:
    """Reload settings, clearing the cache."""
    get_settings.cache_clear()
    return get_settings()
