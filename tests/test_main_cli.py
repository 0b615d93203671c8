"""Regression tests for CLI argument parsing, exit codes and bootstrap wiring."""

from __future__ import annotations

import logging

import pytest
import structlog
from fastapi.testclient import TestClient

import autodeny.main as main_module
from autodeny.bootstrap import bootstrap_create_application, bootstrap_create_orchestrator, bootstrap_create_transport
from autodeny.config import config_load_settings
from autodeny.domain import AutoDenyRunSummary
from autodeny.jobs import AutoDenyOrchestrator, JobExecutionResult
from autodeny.telemetry import telemetry_setup_logging


class _TransportStub:
    """Transport stub tracking close calls."""

    def __init__(self):
        self.closed = False

    def transport_close(self) -> None:
        self.closed = True


class _FixedStatusOrchestrator:
    """Orchestrator stub returning a fixed terminal status."""

    def __init__(self, status: str):
        self._status = status

    def job_execute(self, job_name: str) -> JobExecutionResult:
        summary = AutoDenyRunSummary(status=self._status)
        return JobExecutionResult(job_name=job_name, status=self._status, summary=summary)


@pytest.fixture(name="cli_environment")
def fixture_cli_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> dict[str, object]:
    """Provide PCE settings and capture orchestrator wiring.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Temporary directory without a dotenv file.

    Returns:
        dict[str, object]: Captured wiring state.

    Raises:
        RuntimeError: This fixture does not raise runtime errors.
    """

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("PCE_FQDN", "pce.lab.local")
    monkeypatch.setenv("PCE_ORG_ID", "1")
    monkeypatch.setenv("PCE_API_USER", "api_1a2b3c")
    monkeypatch.setenv("PCE_API_KEY", "secret")

    captured: dict[str, object] = {"status": "success", "transport": _TransportStub()}

    def _fake_create_orchestrator(settings, transport):
        captured["settings"] = settings
        return _FixedStatusOrchestrator(str(captured["status"]))

    monkeypatch.setattr(main_module, "bootstrap_create_transport", lambda settings: captured["transport"])
    monkeypatch.setattr(main_module, "bootstrap_create_orchestrator", _fake_create_orchestrator)
    monkeypatch.setattr(main_module, "telemetry_setup_logging", lambda **kwargs: None)
    return captured


def test_main_success_run_returns_normally_and_closes_transport(cli_environment: dict[str, object]) -> None:
    """Exit normally after a successful run and release the transport.

    Args:
        cli_environment: Captured wiring state.

    Returns:
        None: Assertions validate success path.

    Raises:
        AssertionError: Raised when success path differs.
    """

    main_module.main(["-b", "-m", "-i", "PROD,CRM", "-e", "BILLING", "-c", "5"])

    settings = cli_environment["settings"]
    assert cli_environment["transport"].closed is True
    assert settings.exclude_broadcast is True
    assert settings.exclude_multicast is True
    assert settings.include_labels == "PROD,CRM"
    assert settings.exclude_labels == "BILLING"
    assert settings.max_concurrent_queries == 5


@pytest.mark.parametrize(("run_status", "exit_code"), [("partial", 2), ("failed", 1)])
def test_main_non_success_run_sets_exit_code(
    cli_environment: dict[str, object],
    run_status: str,
    exit_code: int,
) -> None:
    """Map partial and failed runs to distinct exit codes.

    Args:
        cli_environment: Captured wiring state.
        run_status: Terminal run status.
        exit_code: Expected process exit code.

    Returns:
        None: Assertions validate exit code mapping.

    Raises:
        AssertionError: Raised when exit code differs.
    """

    cli_environment["status"] = run_status

    with pytest.raises(SystemExit) as exit_info:
        main_module.main([])

    assert exit_info.value.code == exit_code
    assert cli_environment["transport"].closed is True


def test_main_invalid_configuration_exits_with_error(
    cli_environment: dict[str, object],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Exit with code 1 when settings cannot be validated.

    Args:
        cli_environment: Captured wiring state.
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        None: Assertions validate startup failure.

    Raises:
        AssertionError: Raised when invalid config starts a run.
    """

    monkeypatch.delenv("PCE_FQDN")

    with pytest.raises(SystemExit) as exit_info:
        main_module.main(["run"])

    assert exit_info.value.code == 1
    assert "settings" not in cli_environment


def test_main_version_flag_prints_version(capsys: pytest.CaptureFixture[str]) -> None:
    """Print name and version for `--version`.

    Args:
        capsys: Pytest capture fixture.

    Returns:
        None: Assertions validate version output.

    Raises:
        AssertionError: Raised when version output differs.
    """

    with pytest.raises(SystemExit) as exit_info:
        main_module.main_build_argument_parser().parse_args(["--version"])

    assert exit_info.value.code == 0
    assert "auto-deny-rules v0.3.0" in capsys.readouterr().out


def test_bootstrap_wires_orchestrator_and_application(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Build real transport, orchestrator and API application from settings.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Temporary directory without a dotenv file.

    Returns:
        None: Assertions validate bootstrap wiring.

    Raises:
        AssertionError: Raised when wiring fails.
    """

    monkeypatch.chdir(tmp_path)
    settings = config_load_settings(
        pce_fqdn="pce.lab.local",
        pce_port=8443,
        pce_org_id="1",
        pce_api_user="api_1a2b3c",
        pce_api_key="secret",
    )

    transport = bootstrap_create_transport(settings)
    try:
        orchestrator = bootstrap_create_orchestrator(settings, transport)
        assert isinstance(orchestrator, AutoDenyOrchestrator)
        assert transport.transport_base_url() == "https://pce.lab.local:8443/api/v2"
    finally:
        transport.transport_close()

    response = TestClient(bootstrap_create_application(settings)).get("/")
    assert response.json()["status"] == "ready"


def test_telemetry_verbose_forces_debug_level() -> None:
    """Force DEBUG root level when verbose logging is requested.

    Returns:
        None: Assertions validate log level selection.

    Raises:
        AssertionError: Raised when verbose mode is ignored.
    """

    root_logger = logging.getLogger()
    original_handlers = list(root_logger.handlers)
    original_level = root_logger.level
    try:
        telemetry_setup_logging(level="WARNING", log_format="json", verbose=True)
        assert root_logger.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
    finally:
        root_logger.handlers[:] = original_handlers
        root_logger.setLevel(original_level)
        structlog.reset_defaults()
