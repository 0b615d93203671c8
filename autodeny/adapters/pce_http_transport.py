"""PCE REST transport with bounded retries, exponential backoff and jitter."""

from __future__ import annotations

import json
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Final

import httpx
import structlog

from .pce_errors import TransportError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class _TransportRetryStrategy:
    """Immutable retry strategy config and calculation helpers.

    Attributes:
        retry_attempts: Total request attempts before giving up.
        backoff_base_seconds: Base delay for exponential backoff.
        max_backoff_seconds: Exponential delay cap before jitter.
        jitter_min_multiplier: Minimum jitter multiplier.
        jitter_max_multiplier: Maximum jitter multiplier.
        random_unit_interval_provider: Provider returning value in [0.0, 1.0].
    """

    retry_attempts: int
    backoff_base_seconds: float
    max_backoff_seconds: float
    jitter_min_multiplier: float
    jitter_max_multiplier: float
    random_unit_interval_provider: Callable[[], float]

    def strategy_calculate_retry_wait_seconds(self, retry_index: int) -> float:
        """Calculate exponential retry wait with cap and jitter.

        Args:
            retry_index: Zero-based index of the failed attempt.

        Returns:
            float: Seconds to wait before the next attempt.

        Raises:
            ValueError: Raised when retry index is negative.
            RuntimeError: Raised when jitter provider returns out-of-range value.
        """

        if retry_index < 0:
            raise ValueError("retry_index must be >= 0")

        backoff_seconds = self.backoff_base_seconds * (2**retry_index)
        capped_backoff_seconds = min(backoff_seconds, self.max_backoff_seconds)
        return capped_backoff_seconds * self.strategy_calculate_jitter_multiplier()

    def strategy_calculate_jitter_multiplier(self) -> float:
        """Return jitter multiplier using configured min/max bounds.

        Returns:
            float: Jitter multiplier value.

        Raises:
            RuntimeError: Raised when jitter source returns value outside [0.0, 1.0].
        """

        random_ratio = float(self.random_unit_interval_provider())
        if random_ratio < 0.0 or random_ratio > 1.0:
            raise RuntimeError("random_unit_interval_provider must return a value in [0.0, 1.0]")

        jitter_span = self.jitter_max_multiplier - self.jitter_min_multiplier
        return self.jitter_min_multiplier + (random_ratio * jitter_span)


class PceHttpTransport:
    """Authenticated JSON transport for the PCE `api/v2` REST surface.

    One pooled `httpx.Client` is shared by every caller; it is safe to use from
    the orchestrator's worker threads.
    """

    _USER_AGENT: Final[str] = "auto-deny-rules/0.3 (Python/httpx)"

    def __init__(
        self,
        fqdn: str,
        port: int,
        org_id: str,
        api_user: str,
        api_key: str,
        verify_tls: bool = True,
        retry_attempts: int = 3,
        retry_backoff_base_seconds: float = 1.0,
        retry_max_backoff_seconds: float = 30.0,
        jitter_min_multiplier: float = 1.0,
        jitter_max_multiplier: float = 1.5,
        random_unit_interval_provider: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
        request_timeout_seconds: float = 30.0,
        http_transport: httpx.BaseTransport | None = None,
    ):
        """Initialize PCE transport.

        Args:
            fqdn: PCE host name.
            port: PCE HTTPS port.
            org_id: PCE organization identifier.
            api_user: API key username.
            api_key: API key secret.
            verify_tls: Whether to verify the PCE TLS certificate.
            retry_attempts: Total attempts per request.
            retry_backoff_base_seconds: Base retry delay used by exponential backoff.
            retry_max_backoff_seconds: Maximum retry delay cap before applying jitter.
            jitter_min_multiplier: Minimum jitter multiplier for computed retry delay.
            jitter_max_multiplier: Maximum jitter multiplier for computed retry delay.
            random_unit_interval_provider: Optional provider returning random values in [0.0, 1.0].
            sleep: Optional sleep callable used between attempts.
            request_timeout_seconds: HTTP request timeout in seconds.
            http_transport: Optional httpx transport override.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_fqdn = fqdn.strip()
        normalized_org_id = str(org_id).strip()
        normalized_api_user = api_user.strip()

        if not normalized_fqdn:
            raise ValueError("fqdn must not be blank")
        if port < 1 or port > 65535:
            raise ValueError("port must be between 1 and 65535")
        if not normalized_org_id:
            raise ValueError("org_id must not be blank")
        if not normalized_api_user:
            raise ValueError("api_user must not be blank")
        if not api_key:
            raise ValueError("api_key must not be blank")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        if retry_backoff_base_seconds < 0:
            raise ValueError("retry_backoff_base_seconds must be >= 0")
        if retry_max_backoff_seconds <= 0:
            raise ValueError("retry_max_backoff_seconds must be > 0")
        if jitter_min_multiplier <= 0:
            raise ValueError("jitter_min_multiplier must be > 0")
        if jitter_max_multiplier < jitter_min_multiplier:
            raise ValueError("jitter_max_multiplier must be >= jitter_min_multiplier")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._base_url = f"https://{normalized_fqdn}:{port}/api/v2"
        self._org_id = normalized_org_id
        self._retry_strategy = _TransportRetryStrategy(
            retry_attempts=retry_attempts,
            backoff_base_seconds=retry_backoff_base_seconds,
            max_backoff_seconds=retry_max_backoff_seconds,
            jitter_min_multiplier=jitter_min_multiplier,
            jitter_max_multiplier=jitter_max_multiplier,
            random_unit_interval_provider=random_unit_interval_provider or random.random,
        )
        self._sleep = sleep or time.sleep
        self._client = httpx.Client(
            base_url=self._base_url,
            auth=httpx.BasicAuth(normalized_api_user, api_key),
            headers={
                "User-Agent": self._USER_AGENT,
                "Accept": "application/json",
            },
            timeout=request_timeout_seconds,
            verify=verify_tls,
            transport=http_transport,
        )

    def transport_base_url(self) -> str:
        """Return the `api/v2` base URL used for every request."""

        return self._base_url

    def transport_org_path(self, suffix: str) -> str:
        """Return an org-scoped API path, e.g. `/orgs/1/labels`."""

        return f"/orgs/{self._org_id}/{suffix.lstrip('/')}"

    def transport_request(
        self,
        method: str,
        path: str,
        json_body: Any | None = None,
        query_parameters: dict[str, str] | None = None,
    ) -> bytes:
        """Execute one API call, retrying transient failures.

        Network errors and non-2xx responses are retried with capped exponential
        backoff plus jitter until the attempt budget is spent.

        Args:
            method: HTTP method.
            path: Path relative to `api/v2`, starting with `/`.
            json_body: Optional JSON-compatible request body.
            query_parameters: Optional query string parameters.

        Returns:
            bytes: Raw response payload of the first successful attempt.

        Raises:
            TransportError: Raised after the final attempt fails.
        """

        normalized_method = method.strip().upper()
        request_content: bytes | None = None
        if json_body is not None:
            request_content = json.dumps(json_body).encode("utf-8")
            logger.debug("pce_request_payload", method=normalized_method, path=path, payload=json_body)

        last_error_message = "no attempt made"
        last_status_code: int | None = None
        for retry_index in range(self._retry_strategy.retry_attempts):
            try:
                response = self._client.request(
                    normalized_method,
                    path,
                    params=query_parameters,
                    content=request_content,
                    headers={"Content-Type": "application/json"} if request_content is not None else None,
                )
            except httpx.HTTPError as error:
                last_status_code = None
                last_error_message = f"{type(error).__name__}: {error}"
            else:
                logger.debug(
                    "pce_response",
                    method=normalized_method,
                    path=path,
                    status_code=response.status_code,
                    body=response.text,
                )
                if response.is_success:
                    return bytes(response.content)
                last_status_code = response.status_code
                last_error_message = f"HTTP {response.status_code}: {response.text}"

            if retry_index + 1 < self._retry_strategy.retry_attempts:
                wait_seconds = self.transport_calculate_retry_wait_seconds(retry_index=retry_index)
                logger.warning(
                    "pce_request_retrying",
                    method=normalized_method,
                    path=path,
                    attempt=retry_index + 1,
                    wait_seconds=round(wait_seconds, 3),
                    error=last_error_message,
                )
                self._sleep(wait_seconds)

        raise TransportError(
            f"{normalized_method} {path} failed after {self._retry_strategy.retry_attempts} attempts: "
            f"{last_error_message}",
            status_code=last_status_code,
        )

    def transport_calculate_retry_wait_seconds(self, retry_index: int) -> float:
        """Calculate exponential retry wait with cap and jitter.

        Args:
            retry_index: Zero-based index of the failed attempt.

        Returns:
            float: Computed wait seconds.

        Raises:
            ValueError: Raised when retry index is negative.
        """

        return self._retry_strategy.strategy_calculate_retry_wait_seconds(retry_index=retry_index)

    def transport_close(self) -> None:
        """Release pooled connections."""

        self._client.close()
