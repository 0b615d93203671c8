"""Application bootstrap wiring for startup validation and dependency assembly."""

from datetime import timedelta

from fastapi import FastAPI

from autodeny.adapters import PceHealthService, PceHttpTransport
from autodeny.api import create_api_application
from autodeny.catalog import LabelValueFilter, PceCatalogLoader
from autodeny.config import AppSettings
from autodeny.domain import AppMetadata, TrafficQueryWindow, TransmissionExclusions
from autodeny.jobs import AutoDenyOrchestrator, AutoDenyOrchestratorConfig
from autodeny.rules import DenyRuleSynthesizer
from autodeny.traffic import TrafficVerifier

APP_METADATA = AppMetadata(application_name="auto-deny-rules", application_version="0.3.0")


def bootstrap_create_transport(settings: AppSettings) -> PceHttpTransport:
    """Build the shared PCE transport from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        PceHttpTransport: Transport with retry policy applied.
    """

    return PceHttpTransport(
        fqdn=settings.pce_fqdn,
        port=settings.pce_port,
        org_id=settings.pce_org_id,
        api_user=settings.pce_api_user,
        api_key=settings.pce_api_key,
        verify_tls=settings.pce_verify_tls,
        retry_attempts=settings.request_retry_attempts,
        retry_backoff_base_seconds=settings.request_backoff_base_seconds,
        retry_max_backoff_seconds=settings.request_backoff_max_seconds,
        request_timeout_seconds=settings.request_timeout_seconds,
    )


def bootstrap_create_orchestrator(settings: AppSettings, transport: PceHttpTransport) -> AutoDenyOrchestrator:
    """Build the auto-deny orchestrator and its collaborators.

    Args:
        settings: Validated runtime settings.
        transport: Shared PCE transport.

    Returns:
        AutoDenyOrchestrator: Fully wired orchestrator.
    """

    traffic_verifier = TrafficVerifier(
        transport=transport,
        poll_interval_seconds=settings.poll_interval_seconds,
        poll_timeout_seconds=settings.poll_timeout_seconds,
        short_window=TrafficQueryWindow(
            name=f"{settings.short_window_hours}h",
            lookback=timedelta(hours=settings.short_window_hours),
        ),
        long_window=TrafficQueryWindow(
            name=f"{settings.long_window_days}d",
            lookback=timedelta(days=settings.long_window_days),
        ),
    )
    return AutoDenyOrchestrator(
        catalog_loader=PceCatalogLoader(transport=transport),
        traffic_verifier=traffic_verifier,
        rule_synthesizer=DenyRuleSynthesizer(transport=transport),
        config=AutoDenyOrchestratorConfig(
            max_concurrent_queries=settings.max_concurrent_queries,
            exclusions=TransmissionExclusions(
                broadcast=settings.exclude_broadcast,
                multicast=settings.exclude_multicast,
            ),
            label_filter=LabelValueFilter.filter_from_csv(settings.include_labels, settings.exclude_labels),
            any_ip_list_name=settings.any_ip_list_name,
            delete_empty_rule_set=settings.delete_empty_rule_set,
        ),
    )


def bootstrap_create_application(settings: AppSettings) -> FastAPI:
    """Assemble the API application from validated settings.

    Args:
        settings: Validated runtime settings.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.
    """

    transport = bootstrap_create_transport(settings)
    return create_api_application(
        app_metadata=APP_METADATA,
        pce_health_service=PceHealthService(
            transport=transport,
            connection_label=settings.settings_connection_label(),
        ),
        orchestrator=bootstrap_create_orchestrator(settings, transport),
    )
