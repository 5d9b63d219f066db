from __future__ import annotations

import pytest
from pydantic import ValidationError

from foodrecipes.core.config import (
    REPO_ROOT,
    Settings,
    _resolve_env_files_from_override,
    load_settings,
)


def test_timeout_is_exposed_in_seconds():
    s = Settings(NETWORK_TIMEOUT_MS=2500)
    assert s.network_timeout_seconds == 2.5


@pytest.mark.parametrize(
    "overrides",
    [
        {"NETWORK_TIMEOUT_MS": 0},
        {"NETWORK_TIMEOUT_MS": -10},
        {"EXECUTOR_MAX_WORKERS": 0},
        {"CONNECT_TIMEOUT_SECONDS": 0},
    ],
)
def test_rejects_non_positive_limits(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


def test_unknown_setting_is_rejected():
    with pytest.raises(ValidationError):
        Settings(NOT_A_SETTING="x")  # type: ignore[call-arg]


def test_api_key_is_masked():
    s = Settings(API_KEY="s3cret")
    assert "s3cret" not in str(s)
    assert s.api_key_value == "s3cret"
    assert Settings(API_KEY=None).api_key_value == ""


def test_environment_variable_overrides_env_file(monkeypatch):
    monkeypatch.setenv("FOODRECIPES_NETWORK_TIMEOUT_MS", "1234")
    assert Settings().NETWORK_TIMEOUT_MS == 1234


def test_env_file_override_resolves_relative_and_absolute(monkeypatch, tmp_path):
    absolute = tmp_path / "b.env"
    monkeypatch.setenv("FOODRECIPES_ENV_FILE", f"a.env, {absolute}")

    resolved = _resolve_env_files_from_override(REPO_ROOT)

    assert resolved == (str(REPO_ROOT / "a.env"), str(absolute))


def test_env_file_override_absent(monkeypatch):
    monkeypatch.delenv("FOODRECIPES_ENV_FILE", raising=False)
    assert _resolve_env_files_from_override(REPO_ROOT) is None


def test_load_settings_reads_override_file(monkeypatch, tmp_path):
    env_file = tmp_path / "custom.env"
    env_file.write_text(
        "FOODRECIPES_BASE_URL=https://custom.test\nFOODRECIPES_NETWORK_TIMEOUT_MS=750\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("FOODRECIPES_ENV_FILE", str(env_file))

    s = load_settings()

    assert s.BASE_URL == "https://custom.test"
    assert s.NETWORK_TIMEOUT_MS == 750
