"""Job-layer auto-deny orchestrator: catalog, bounded fan-out, aggregation, synthesis."""

from __future__ import annotations

import threading
import traceback
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

import structlog

from autodeny.adapters import AutoDenyError, RuleCreationError
from autodeny.catalog import CatalogLoaderPort, LabelValueFilter
from autodeny.domain import (
    AutoDenyRunSummary,
    EnvironmentAppSet,
    Label,
    NoTrafficFinding,
    Service,
    TransmissionExclusions,
    domain_build_stage_event,
)
from autodeny.domain.timeline import domain_elapsed_ms, domain_utc_now
from autodeny.rules import RuleSynthesizerPort
from autodeny.traffic import TrafficVerifierPort

from .interfaces import JobExecutionResult, JobOrchestratorPort
from .progress import QueryProgressTracker

logger = structlog.get_logger(__name__)

DEFAULT_ANY_IP_LIST_NAME = "Any (0.0.0.0/0 and ::/0)"


@dataclass(frozen=True)
class AutoDenyOrchestratorConfig:
    """Configuration values for one auto-deny run.

    Attributes:
        max_concurrent_queries: Global cap on in-flight verification calls.
        exclusions: Destination transmission exclusions passed to every query.
        label_filter: Environment/application label value filter.
        any_ip_list_name: Name of the IP list used as deny-rule consumer.
        rule_set_name_prefix: Prefix of the timestamped rule set name.
        delete_empty_rule_set: Delete the rule set when no deny rule was created.
    """

    max_concurrent_queries: int = 2
    exclusions: TransmissionExclusions = field(default_factory=TransmissionExclusions)
    label_filter: LabelValueFilter = field(default_factory=LabelValueFilter)
    any_ip_list_name: str = DEFAULT_ANY_IP_LIST_NAME
    rule_set_name_prefix: str = "Auto Deny Rules"
    delete_empty_rule_set: bool = False


class _NoTrafficAccumulator:
    """Lock-guarded set of silent applications for one environment/service group."""

    def __init__(self):
        self._applications: set[Label] = set()
        self._lock = threading.Lock()

    def accumulator_add(self, application: Label) -> None:
        with self._lock:
            self._applications.add(application)

    def accumulator_freeze(self) -> frozenset[Label]:
        with self._lock:
            return frozenset(self._applications)


class AutoDenyOrchestrator(JobOrchestratorPort):
    """Drive one full auto-deny run over environments x services x applications.

    Groups (environment, service) run one after another. Inside a group every
    application is verified concurrently on a worker pool shared by the whole
    run, and the group is joined before its finding is finalized.
    """

    _AUTO_DENY_JOB_NAME = "auto_deny_run"

    def __init__(
        self,
        catalog_loader: CatalogLoaderPort,
        traffic_verifier: TrafficVerifierPort,
        rule_synthesizer: RuleSynthesizerPort,
        config: AutoDenyOrchestratorConfig,
        local_now: Callable[[], datetime] | None = None,
    ):
        """Initialize orchestrator dependencies.

        Args:
            catalog_loader: Read-only catalog collaborator.
            traffic_verifier: Per-triple traffic verifier.
            rule_synthesizer: Rule set and deny-rule creator.
            config: Run configuration.
            local_now: Optional clock used for the rule set name.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if catalog_loader is None:
            raise ValueError("catalog_loader must not be None")
        if traffic_verifier is None:
            raise ValueError("traffic_verifier must not be None")
        if rule_synthesizer is None:
            raise ValueError("rule_synthesizer must not be None")
        if config.max_concurrent_queries < 1:
            raise ValueError("config.max_concurrent_queries must be >= 1")
        if not config.any_ip_list_name.strip():
            raise ValueError("config.any_ip_list_name must not be blank")
        if not config.rule_set_name_prefix.strip():
            raise ValueError("config.rule_set_name_prefix must not be blank")

        self._catalog_loader = catalog_loader
        self._traffic_verifier = traffic_verifier
        self._rule_synthesizer = rule_synthesizer
        self._config = config
        self._local_now = local_now or datetime.now

    def job_supported_names(self) -> tuple[str, ...]:
        """Return supported job names."""

        return (self._AUTO_DENY_JOB_NAME,)

    def job_execute(self, job_name: str) -> JobExecutionResult:
        """Execute the auto-deny workflow.

        Args:
            job_name: Name of job to execute.

        Returns:
            JobExecutionResult: Final execution status and run tally.

        Raises:
            ValueError: Raised when job name is unsupported.
        """

        normalized_job_name = job_name.strip()
        if normalized_job_name != self._AUTO_DENY_JOB_NAME:
            raise ValueError(f"unsupported job_name={normalized_job_name}")

        summary = self.job_run()
        return JobExecutionResult(job_name=normalized_job_name, status=summary.status, summary=summary)

    def job_run(self) -> AutoDenyRunSummary:
        """Run catalog loading, verification fan-out and deny-rule synthesis.

        Catalog, target resolution and rule-set creation failures end the run
        with status `failed`. Per-application and per-finding failures are
        logged, tallied and reported as status `partial`. An unexpected error
        after rule-set creation marks the run `failed` and reports or deletes
        the still-empty rule set before it propagates.

        Returns:
            AutoDenyRunSummary: Terminal run tally.

        Raises:
            Exception: Re-raises unexpected errors from verification or synthesis.
        """

        summary = AutoDenyRunSummary()
        summary.timeline.append(domain_build_stage_event(stage="run", status="started"))
        run_started_at = domain_utc_now()

        try:
            services, app_sets = self._job_load_catalog(summary)
            summary.total_queries = sum(len(app_set.applications) * len(services) for app_set in app_sets)
            if summary.total_queries == 0:
                logger.info("auto_deny_no_queries")
                summary.status = "success"
                summary.timeline.append(
                    domain_build_stage_event(stage="run", status="success", details={"skip_reason": "no_queries"})
                )
                return summary

            logger.info("auto_deny_queries_planned", total_queries=summary.total_queries)
            target_href = self._catalog_loader.catalog_resolve_any_address_target(self._config.any_ip_list_name)
            summary.rule_set_href = self._rule_synthesizer.rules_create_rule_set(self._job_rule_set_name())
        except AutoDenyError as error:
            return self._job_fail(summary, error)

        try:
            findings = self._job_verify_all_groups(services=services, app_sets=app_sets, summary=summary)
            summary.findings.extend(findings)
            self._job_synthesize_findings(summary=summary, target_href=target_href)
        except Exception as error:
            summary.rule_set_empty = summary.rules_created == 0
            self._job_fail(summary, error)
            self._job_handle_empty_rule_set(summary)
            if isinstance(error, AutoDenyError):
                return summary
            raise
        self._job_handle_empty_rule_set(summary)

        summary.status = "partial" if summary.failed_queries or summary.rule_failures else "success"
        summary.timeline.append(
            domain_build_stage_event(
                stage="run",
                status=summary.status,
                details={"run_duration_ms": domain_elapsed_ms(run_started_at)},
            )
        )
        logger.info(
            "auto_deny_run_completed",
            status=summary.status,
            total_queries=summary.total_queries,
            completed_queries=summary.completed_queries,
            failed_queries=summary.failed_queries,
            findings=len(summary.findings),
            rules_created=summary.rules_created,
            rule_failures=summary.rule_failures,
            rule_set_href=summary.rule_set_href,
        )
        return summary

    def _job_load_catalog(self, summary: AutoDenyRunSummary) -> tuple[list[Service], list[EnvironmentAppSet]]:
        """Load services and non-empty environment app sets after label filtering.

        Args:
            summary: Run tally receiving timeline events.

        Returns:
            tuple[list[Service], list[EnvironmentAppSet]]: Risky services and app sets to verify.

        Raises:
            CatalogError: Raised when any catalog listing fails.
        """

        summary.timeline.append(domain_build_stage_event(stage="catalog", status="started"))
        label_filter = self._config.label_filter
        environments = label_filter.filter_environments(self._catalog_loader.catalog_load_environments())
        services = self._catalog_loader.catalog_load_risky_services()

        app_sets: list[EnvironmentAppSet] = []
        skipped_environments: list[str] = []
        for environment in environments:
            app_set = label_filter.filter_app_set(
                self._catalog_loader.catalog_load_app_set_for_environment(environment)
            )
            if app_set.app_set_is_empty():
                skipped_environments.append(environment.value)
                continue
            app_sets.append(app_set)

        if skipped_environments:
            logger.info("auto_deny_environments_skipped", environments=skipped_environments, reason="no_applications")
        summary.timeline.append(
            domain_build_stage_event(
                stage="catalog",
                status="completed",
                details={
                    "environment_count": len(environments),
                    "service_count": len(services),
                    "app_set_count": len(app_sets),
                    "skipped_environments": skipped_environments,
                },
            )
        )
        return services, app_sets

    def _job_verify_all_groups(
        self,
        services: list[Service],
        app_sets: list[EnvironmentAppSet],
        summary: AutoDenyRunSummary,
    ) -> list[NoTrafficFinding]:
        """Verify every group in order on one bounded worker pool.

        Args:
            services: Risky services.
            app_sets: Non-empty environment app sets.
            summary: Run tally updated with progress counters.

        Returns:
            list[NoTrafficFinding]: Non-empty findings in group order.
        """

        summary.timeline.append(domain_build_stage_event(stage="verification", status="started"))
        progress = QueryProgressTracker(total=summary.total_queries)
        findings: list[NoTrafficFinding] = []

        with ThreadPoolExecutor(
            max_workers=self._config.max_concurrent_queries,
            thread_name_prefix="traffic-verifier",
        ) as executor:
            for app_set in app_sets:
                for service in services:
                    finding = self._job_verify_group(
                        executor=executor,
                        app_set=app_set,
                        service=service,
                        progress=progress,
                    )
                    if finding is not None:
                        findings.append(finding)

        progress_snapshot = progress.progress_snapshot()
        summary.completed_queries = progress_snapshot.completed
        summary.failed_queries = progress_snapshot.failed
        summary.timeline.append(
            domain_build_stage_event(
                stage="verification",
                status="completed",
                details={
                    "completed_queries": progress_snapshot.completed,
                    "failed_queries": progress_snapshot.failed,
                    "finding_count": len(findings),
                },
            )
        )
        return findings

    def _job_verify_group(
        self,
        executor: ThreadPoolExecutor,
        app_set: EnvironmentAppSet,
        service: Service,
        progress: QueryProgressTracker,
    ) -> NoTrafficFinding | None:
        """Verify all applications of one environment/service group and join.

        Args:
            executor: Run-wide bounded worker pool.
            app_set: Environment and its applications.
            service: Risky service.
            progress: Run-wide progress tracker.

        Returns:
            NoTrafficFinding | None: Finding when at least one application is silent.

        Raises:
            Exception: Re-raises unexpected worker errors after the whole group joined.
        """

        accumulator = _NoTrafficAccumulator()
        futures = [
            executor.submit(
                self._job_verify_application,
                app_set.environment,
                application,
                service,
                accumulator,
                progress,
            )
            for application in app_set.applications
        ]
        wait(futures)
        for future in futures:
            future.result()

        silent_applications = accumulator.accumulator_freeze()
        if not silent_applications:
            return None
        logger.info(
            "auto_deny_group_finding",
            environment=app_set.environment.value,
            service=service.name,
            applications=sorted(application.value for application in silent_applications),
        )
        return NoTrafficFinding(environment=app_set.environment, service=service, applications=silent_applications)

    def _job_verify_application(
        self,
        environment: Label,
        application: Label,
        service: Service,
        accumulator: _NoTrafficAccumulator,
        progress: QueryProgressTracker,
    ) -> None:
        """Worker body: verify one triple, record the outcome and progress.

        Expected verification failures exclude the application from the group's
        finding; they never abort sibling work.

        Args:
            environment: Environment label.
            application: Application label.
            service: Risky service.
            accumulator: Group accumulator for silent applications.
            progress: Run-wide progress tracker.
        """

        failed = False
        try:
            if self._traffic_verifier.verifier_has_no_traffic(
                environment=environment,
                application=application,
                service=service,
                exclusions=self._config.exclusions,
            ):
                accumulator.accumulator_add(application)
        except AutoDenyError as error:
            failed = True
            logger.error(
                "traffic_query_failed",
                environment=environment.value,
                application=application.value,
                service=service.name,
                error_type=type(error).__name__,
                error=str(error),
            )
        finally:
            progress_snapshot = progress.progress_record(failed=failed)
            logger.info(
                "traffic_query_progress",
                environment=environment.value,
                application=application.value,
                service=service.name,
                percent=progress_snapshot.progress_percent(),
                completed=progress_snapshot.completed,
                total=progress_snapshot.total,
            )

    def _job_synthesize_findings(self, summary: AutoDenyRunSummary, target_href: str) -> None:
        """Create one deny rule per finding; failures do not stop the rest.

        Args:
            summary: Run tally with findings and rule set href.
            target_href: Any-address IP list href.
        """

        if not summary.findings:
            logger.info("auto_deny_no_deny_rules_needed")
            return

        summary.timeline.append(
            domain_build_stage_event(stage="synthesis", status="started", details={"finding_count": len(summary.findings)})
        )
        for finding in summary.findings:
            try:
                self._rule_synthesizer.rules_synthesize(
                    rule_set_href=summary.rule_set_href or "",
                    finding=finding,
                    target_href=target_href,
                )
            except RuleCreationError as error:
                summary.rule_failures += 1
                logger.error(
                    "deny_rule_creation_failed",
                    environment=finding.environment.value,
                    service=finding.service.name,
                    error=str(error),
                )
                continue
            summary.rules_created += 1
            logger.info(
                "deny_rule_progress",
                percent=round(summary.rules_created / len(summary.findings) * 100, 1),
                created=summary.rules_created,
                total=len(summary.findings),
            )

        summary.rule_set_empty = summary.rules_created == 0
        summary.timeline.append(
            domain_build_stage_event(
                stage="synthesis",
                status="completed",
                details={"rules_created": summary.rules_created, "rule_failures": summary.rule_failures},
            )
        )

    def _job_handle_empty_rule_set(self, summary: AutoDenyRunSummary) -> None:
        """Report, and optionally delete, a rule set that received no deny rules."""

        if not summary.rule_set_empty or summary.rule_set_href is None:
            return
        if not self._config.delete_empty_rule_set:
            logger.warning("rule_set_empty_candidate_for_cleanup", rule_set_href=summary.rule_set_href)
            return
        try:
            self._rule_synthesizer.rules_delete_rule_set(summary.rule_set_href)
        except RuleCreationError as error:
            logger.error("rule_set_cleanup_failed", rule_set_href=summary.rule_set_href, error=str(error))
            return
        summary.timeline.append(
            domain_build_stage_event(stage="cleanup", status="completed", details={"deleted": summary.rule_set_href})
        )
        summary.rule_set_href = None

    def _job_rule_set_name(self) -> str:
        """Return timestamped rule set name, e.g. `Auto Deny Rules - Jan 02, 2026 15:04:05`."""

        return f"{self._config.rule_set_name_prefix} - {self._local_now().strftime('%b %d, %Y %H:%M:%S')}"

    def _job_fail(self, summary: AutoDenyRunSummary, error: Exception) -> AutoDenyRunSummary:
        """Finalize summary for a fatal run error.

        Args:
            summary: Run tally.
            error: Fatal error.

        Returns:
            AutoDenyRunSummary: Failed summary.
        """

        summary.status = "failed"
        summary.error_message = str(error)
        summary.timeline.append(
            domain_build_stage_event(
                stage="run",
                status="failed",
                details={
                    "error_type": type(error).__name__,
                    "error_message": str(error),
                    "traceback": traceback.format_exc(),
                },
            )
        )
        logger.error("auto_deny_run_failed", error_type=type(error).__name__, error=str(error))
        return summary
