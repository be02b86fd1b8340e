import pytest

from rumsessionlib.session.session_config import (
    ENV_VAR_INACTIVITY_POLICY,
    ENV_VAR_INACTIVITY_TIMEOUT,
    ENV_VAR_LIFETIME,
    SessionConfig,
)
from rumsessionlib.session.timeout_handlers import InactivityPolicy


@pytest.fixture(autouse=True)
def clear_session_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for env_var in (ENV_VAR_LIFETIME, ENV_VAR_INACTIVITY_TIMEOUT, ENV_VAR_INACTIVITY_POLICY):
        monkeypatch.delenv(env_var, raising=False)


def test_defaults_from_empty_environment() -> None:
    config = SessionConfig.from_environment()

    assert config == SessionConfig.default()
    assert config.lifetime_seconds == 4 * 60 * 60
    assert config.inactivity_timeout_seconds == 15 * 60
    assert config.inactivity_policy is InactivityPolicy.REARM_ON_ACCESS
    assert config.validate() == []


def test_values_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ENV_VAR_LIFETIME, "3600")
    monkeypatch.setenv(ENV_VAR_INACTIVITY_TIMEOUT, "30.5")
    monkeypatch.setenv(ENV_VAR_INACTIVITY_POLICY, " Explicit_Start ")

    config = SessionConfig.from_environment()

    assert config.lifetime_seconds == 3600
    assert config.inactivity_timeout_seconds == 30.5
    assert config.inactivity_policy is InactivityPolicy.EXPLICIT_START
    assert config.validate() == []


def test_unparseable_duration_falls_back_to_default(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv(ENV_VAR_LIFETIME, "four hours")

    config = SessionConfig.from_environment()

    assert config.lifetime_seconds == SessionConfig.DEFAULT_LIFETIME_SECONDS


def test_validate_reports_every_problem(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(ENV_VAR_LIFETIME, "-1")
    monkeypatch.setenv(ENV_VAR_INACTIVITY_TIMEOUT, "0")
    monkeypatch.setenv(ENV_VAR_INACTIVITY_POLICY, "whenever")

    errors = SessionConfig.from_environment().validate()

    assert len(errors) == 3
    assert any(ENV_VAR_LIFETIME in error for error in errors)
    assert any(ENV_VAR_INACTIVITY_TIMEOUT in error for error in errors)
    assert any("'whenever'" in error for error in errors)
