"""Regression tests for runtime settings loading and validation."""

from __future__ import annotations

import pytest

from autodeny.config import SettingsLoadError, config_load_settings

_REQUIRED_ENVIRONMENT = {
    "PCE_FQDN": "pce.lab.local",
    "PCE_ORG_ID": "1",
    "PCE_API_USER": "api_1a2b3c",
    "PCE_API_KEY": "secret",
}


@pytest.fixture(name="pce_environment")
def fixture_pce_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> pytest.MonkeyPatch:
    """Provide required PCE environment variables in an isolated directory.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Temporary directory without a dotenv file.

    Returns:
        pytest.MonkeyPatch: Monkeypatch fixture with environment applied.

    Raises:
        RuntimeError: This fixture does not raise runtime errors.
    """

    monkeypatch.chdir(tmp_path)
    for variable_name, variable_value in _REQUIRED_ENVIRONMENT.items():
        monkeypatch.setenv(variable_name, variable_value)
    return monkeypatch


def test_config_defaults_match_documented_values(pce_environment: pytest.MonkeyPatch) -> None:
    """Load documented defaults when only required values are set.

    Args:
        pce_environment: Environment fixture.

    Returns:
        None: Assertions validate defaults.

    Raises:
        AssertionError: Raised when defaults differ.
    """

    _ = pce_environment
    settings = config_load_settings()

    assert settings.pce_port == 443
    assert settings.max_concurrent_queries == 2
    assert settings.poll_interval_seconds == 5.0
    assert settings.poll_timeout_seconds == 300.0
    assert settings.short_window_hours == 24
    assert settings.long_window_days == 89
    assert settings.any_ip_list_name == "Any (0.0.0.0/0 and ::/0)"
    assert settings.settings_connection_label() == "pce.lab.local:443/orgs/1"


def test_config_overrides_take_precedence_and_none_is_ignored(pce_environment: pytest.MonkeyPatch) -> None:
    """Apply explicit overrides over environment values, skipping None.

    Args:
        pce_environment: Environment fixture.

    Returns:
        None: Assertions validate override precedence.

    Raises:
        AssertionError: Raised when overrides are not applied.
    """

    pce_environment.setenv("MAX_CONCURRENT_QUERIES", "4")
    pce_environment.setenv("LOG_LEVEL", "debug")

    settings = config_load_settings(max_concurrent_queries=8, exclude_broadcast=True, include_labels=None)

    assert settings.max_concurrent_queries == 8
    assert settings.exclude_broadcast is True
    assert settings.include_labels == ""
    assert settings.log_level == "DEBUG"


def test_config_missing_required_value_raises_load_error(
    pce_environment: pytest.MonkeyPatch,
) -> None:
    """Raise SettingsLoadError when a required PCE value is missing.

    Args:
        pce_environment: Environment fixture.

    Returns:
        None: Assertions validate startup failure.

    Raises:
        AssertionError: Raised when missing credentials are accepted.
    """

    pce_environment.delenv("PCE_API_KEY")

    with pytest.raises(SettingsLoadError, match="pce_api_key"):
        config_load_settings()


@pytest.mark.parametrize(
    "overrides",
    [
        {"max_concurrent_queries": 0},
        {"poll_interval_seconds": 30, "poll_timeout_seconds": 10},
        {"request_backoff_base_seconds": 10, "request_backoff_max_seconds": 5},
        {"log_level": "chatty"},
        {"pce_fqdn": "   "},
    ],
)
def test_config_rejects_invalid_values(pce_environment: pytest.MonkeyPatch, overrides: dict[str, object]) -> None:
    """Reject invalid bounds and blank values.

    Args:
        pce_environment: Environment fixture.
        overrides: Invalid values.

    Returns:
        None: Assertions validate validation errors.

    Raises:
        AssertionError: Raised when invalid values are accepted.
    """

    _ = pce_environment
    with pytest.raises(SettingsLoadError):
        config_load_settings(**overrides)
