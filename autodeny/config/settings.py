"""Typed runtime settings with dotenv support and startup validation."""

from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class AppSettings(BaseSettings):
    """Settings for PCE access, query behavior and runtime surfaces.

    Environment variable names map directly to field names in uppercase.
    Example: `pce_fqdn` reads from `PCE_FQDN`.

    Attributes:
        pce_fqdn: PCE host name.
        pce_port: PCE HTTPS port.
        pce_org_id: PCE organization identifier.
        pce_api_user: PCE API key username.
        pce_api_key: PCE API key secret.
        pce_verify_tls: Whether to verify the PCE TLS certificate.
        max_concurrent_queries: Global cap on in-flight traffic verifications.
        exclude_broadcast: Exclude broadcast destinations from traffic queries.
        exclude_multicast: Exclude multicast destinations from traffic queries.
        include_labels: Comma-separated env/app label values to keep.
        exclude_labels: Comma-separated env/app label values to drop.
        any_ip_list_name: IP list used as deny-rule consumer.
        delete_empty_rule_set: Delete the run's rule set when it stays empty.
        poll_interval_seconds: Delay between async query status polls.
        poll_timeout_seconds: Maximum wait for one async query.
        short_window_hours: First lookback window.
        long_window_days: Escalation lookback window.
        request_retry_attempts: Attempts per HTTP request.
        request_backoff_base_seconds: Base retry delay for exponential backoff.
        request_backoff_max_seconds: Maximum retry delay cap.
        request_timeout_seconds: HTTP request timeout.
        log_level: Root log level.
        log_format: `console` or `json` log rendering.
        verbose: Log request payloads and raw responses.
        application_host: Host interface for the API server.
        application_port: API server port.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    pce_fqdn: str = Field(min_length=1)
    pce_port: int = Field(default=443, ge=1, le=65535)
    pce_org_id: str = Field(min_length=1)
    pce_api_user: str = Field(min_length=1)
    pce_api_key: str = Field(min_length=1)
    pce_verify_tls: bool = Field(default=True)
    max_concurrent_queries: int = Field(default=2, ge=1)
    exclude_broadcast: bool = Field(default=False)
    exclude_multicast: bool = Field(default=False)
    include_labels: str = Field(default="")
    exclude_labels: str = Field(default="")
    any_ip_list_name: str = Field(default="Any (0.0.0.0/0 and ::/0)", min_length=1)
    delete_empty_rule_set: bool = Field(default=False)
    poll_interval_seconds: float = Field(default=5.0, gt=0)
    poll_timeout_seconds: float = Field(default=300.0, gt=0)
    short_window_hours: int = Field(default=24, ge=1)
    long_window_days: int = Field(default=89, ge=1)
    request_retry_attempts: int = Field(default=3, ge=1)
    request_backoff_base_seconds: float = Field(default=1.0, ge=0)
    request_backoff_max_seconds: float = Field(default=30.0, gt=0)
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json"] = Field(default="console")
    verbose: bool = Field(default=False)
    application_host: str = Field(default="0.0.0.0")
    application_port: int = Field(default=8000, ge=1, le=65535)

    @field_validator("pce_fqdn", "pce_org_id", "pce_api_user", "any_ip_list_name")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return normalized_value

    @field_validator("request_backoff_max_seconds")
    @classmethod
    def _validate_backoff_cap_bounds(cls, value: float, info) -> float:
        backoff_base_seconds = float(info.data.get("request_backoff_base_seconds", 1.0))
        if value < backoff_base_seconds:
            raise ValueError("request_backoff_max_seconds must be greater than or equal to request_backoff_base_seconds")
        return value

    @field_validator("long_window_days")
    @classmethod
    def _validate_window_bounds(cls, value: int, info) -> int:
        short_window_hours = int(info.data.get("short_window_hours", 24))
        if value * 24 < short_window_hours:
            raise ValueError("long_window_days must cover at least short_window_hours")
        return value

    @field_validator("poll_timeout_seconds")
    @classmethod
    def _validate_poll_bounds(cls, value: float, info) -> float:
        poll_interval_seconds = float(info.data.get("poll_interval_seconds", 5.0))
        if value < poll_interval_seconds:
            raise ValueError("poll_timeout_seconds must be greater than or equal to poll_interval_seconds")
        return value

    def settings_connection_label(self) -> str:
        """Return PCE target label without credentials."""

        return f"{self.pce_fqdn}:{self.pce_port}/orgs/{self.pce_org_id}"


def config_load_settings(**overrides: object) -> AppSettings:
    """Load and validate runtime settings from environment and dotenv.

    Args:
        overrides: Explicit values taking precedence over environment values,
            e.g. CLI flags.

    Returns:
        AppSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    explicit_values = {key: value for key, value in overrides.items() if value is not None}
    try:
        return AppSettings(**explicit_values)
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
