"""Two-phase traffic verifier driving PCE async traffic queries."""

from __future__ import annotations

import time
from dataclasses import replace
from datetime import datetime
from typing import Callable, Final

import structlog

from autodeny.adapters import PceTransportPort, QueryJobFailedError, QueryTimeoutError
from autodeny.adapters.pce_payloads import AsyncQueryPollPayload, HrefPayload, payload_parse
from autodeny.domain import (
    LONG_TRAFFIC_WINDOW,
    SHORT_TRAFFIC_WINDOW,
    Label,
    QueryJob,
    QueryJobStatus,
    Service,
    TrafficQueryWindow,
    TransmissionExclusions,
)
from autodeny.domain.timeline import domain_utc_now

from .interfaces import TrafficVerifierPort
from .query_builder import traffic_build_query_request

logger = structlog.get_logger(__name__)


class TrafficVerifier(TrafficVerifierPort):
    """Check one environment/application/service triple for observed flows.

    The short window is queried first; the long window is only queried when the
    short one reports zero flows. Any error aborts the check: absence of
    evidence is never reported as "no traffic".
    """

    _COMPLETED_STATUS: Final[str] = "completed"
    _FAILED_STATUSES: Final[frozenset[str]] = frozenset({"failed", "canceled", "killed"})

    def __init__(
        self,
        transport: PceTransportPort,
        poll_interval_seconds: float = 5.0,
        poll_timeout_seconds: float = 300.0,
        short_window: TrafficQueryWindow = SHORT_TRAFFIC_WINDOW,
        long_window: TrafficQueryWindow = LONG_TRAFFIC_WINDOW,
        monotonic_clock: Callable[[], float] | None = None,
        sleep: Callable[[float], None] | None = None,
        utc_now: Callable[[], datetime] | None = None,
    ):
        """Initialize traffic verifier.

        Args:
            transport: PCE transport collaborator with built-in retry.
            poll_interval_seconds: Fixed delay between job status polls.
            poll_timeout_seconds: Maximum local wait for one job.
            short_window: First lookback window.
            long_window: Escalation lookback window.
            monotonic_clock: Optional clock used for the polling deadline.
            sleep: Optional sleep callable used between polls.
            utc_now: Optional provider of the query end time.

        Raises:
            ValueError: Raised when config values are invalid.
        """

        if transport is None:
            raise ValueError("transport must not be None")
        if poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")
        if poll_timeout_seconds <= 0:
            raise ValueError("poll_timeout_seconds must be > 0")
        if long_window.lookback < short_window.lookback:
            raise ValueError("long_window must not be shorter than short_window")

        self._transport = transport
        self._poll_interval_seconds = poll_interval_seconds
        self._poll_timeout_seconds = poll_timeout_seconds
        self._query_windows = (short_window, long_window)
        self._monotonic_clock = monotonic_clock or time.monotonic
        self._sleep = sleep or time.sleep
        self._utc_now = utc_now or domain_utc_now

    def verifier_has_no_traffic(
        self,
        environment: Label,
        application: Label,
        service: Service,
        exclusions: TransmissionExclusions,
    ) -> bool:
        """Return True only when every lookback window reports zero flows.

        Args:
            environment: Destination environment label.
            application: Destination application label.
            service: Risky service.
            exclusions: Destination transmission exclusions.

        Returns:
            bool: True when no traffic was observed in either window.

        Raises:
            TransportError: Raised when the PCE cannot be reached.
            QueryTimeoutError: Raised when a query does not complete in time.
            QueryJobFailedError: Raised when a query fails remotely.
            PayloadContractError: Raised when a response is malformed.
        """

        for window in self._query_windows:
            flows_count = self.verifier_count_flows(
                environment=environment,
                application=application,
                service=service,
                exclusions=exclusions,
                window=window,
            )
            logger.debug(
                "traffic_window_checked",
                environment=environment.value,
                application=application.value,
                service=service.name,
                window=window.name,
                flows_count=flows_count,
            )
            if flows_count > 0:
                return False
        return True

    def verifier_count_flows(
        self,
        environment: Label,
        application: Label,
        service: Service,
        exclusions: TransmissionExclusions,
        window: TrafficQueryWindow,
    ) -> int:
        """Submit one async query for a window and wait for its flow count.

        Args:
            environment: Destination environment label.
            application: Destination application label.
            service: Risky service.
            exclusions: Destination transmission exclusions.
            window: Lookback window.

        Returns:
            int: Flow count reported by the completed job.

        Raises:
            TransportError: Raised when the PCE cannot be reached.
            QueryTimeoutError: Raised when the job does not complete in time.
            QueryJobFailedError: Raised when the job fails remotely.
            PayloadContractError: Raised when a response is malformed.
        """

        query_request = traffic_build_query_request(
            environment=environment,
            application=application,
            service=service,
            exclusions=exclusions,
            window=window,
            now_utc=self._utc_now(),
        )
        submit_payload = self._transport.transport_request(
            "POST",
            self._transport.transport_org_path("traffic_flows/async_queries"),
            json_body=query_request.payload_as_json(),
        )
        job_reference = payload_parse(HrefPayload, submit_payload, context_label="async query submission")

        completed_job = self.verifier_wait_for_job(QueryJob(href=job_reference.href))
        return int(completed_job.flows_count or 0)

    def verifier_wait_for_job(self, job: QueryJob) -> QueryJob:
        """Poll one job at a fixed interval until it leaves the pending state.

        Transitions: pending -> completed | failed | timed_out. Only a completed
        job is returned; the remote job is not canceled on timeout.

        Args:
            job: Pending job snapshot.

        Returns:
            QueryJob: Completed job snapshot with its flow count.

        Raises:
            QueryTimeoutError: Raised when the deadline passes while pending.
            QueryJobFailedError: Raised when the PCE reports a failed job.
            TransportError: Raised when a status poll exhausts retries.
            PayloadContractError: Raised when a poll response is malformed.
        """

        deadline = self._monotonic_clock() + self._poll_timeout_seconds
        poll_count = 0
        while not job.query_job_is_terminal():
            remaining_seconds = deadline - self._monotonic_clock()
            if remaining_seconds <= 0:
                job = replace(job, status=QueryJobStatus.TIMED_OUT)
                break
            self._sleep(min(self._poll_interval_seconds, remaining_seconds))
            poll_count += 1
            job = self._verifier_poll_job(job)

        if job.status is QueryJobStatus.TIMED_OUT:
            raise QueryTimeoutError(
                f"async query {job.href} did not complete within {self._poll_timeout_seconds:g}s "
                f"({poll_count} polls)"
            )
        if job.status is QueryJobStatus.FAILED:
            raise QueryJobFailedError(f"async query {job.href} failed remotely")
        return job

    def _verifier_poll_job(self, job: QueryJob) -> QueryJob:
        """Fetch job status once and map it onto the local state machine.

        Args:
            job: Current job snapshot.

        Returns:
            QueryJob: Updated job snapshot.
        """

        poll_payload = self._transport.transport_request("GET", job.href)
        poll_state = payload_parse(AsyncQueryPollPayload, poll_payload, context_label="async query status")
        if poll_state.status == self._COMPLETED_STATUS:
            return replace(job, status=QueryJobStatus.COMPLETED, flows_count=poll_state.flows_count)
        if poll_state.status in self._FAILED_STATUSES:
            return replace(job, status=QueryJobStatus.FAILED)
        return job
