"""Tests for icnload.config -- XDG paths, atomic writes, profiles, precedence."""

from __future__ import annotations

import json
import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from icnload.config import (
    _atomic_write,
    delete_profile,
    get_config_dir,
    get_data_dir,
    get_profiles_dir,
    is_credential_source,
    list_profiles,
    load_profile,
    profile_exists,
    resolve_credential,
    resolve_password,
    resolve_step_config,
    save_profile,
)
from icnload.exceptions import ConfigurationError
from icnload.expand import VariableExpander
from icnload.models import Credentials, RequestConfig, StepConfig


class _Stdin:
    def __init__(self, tty: bool) -> None:
        self._tty = tty

    def isatty(self) -> bool:
        return self._tty


def _make_step(**overrides: str) -> StepConfig:
    values = {
        "url": "http://icn.example.com/navigator/",
        "username": "p8admin",
        "password": "env:ICN_PASSWORD",
        "file": "/opt/plugins/${JOB}.jar",
    }
    values.update(overrides)
    return StepConfig(**values)


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestPaths:
    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("icnload.config._is_xdg_platform", lambda: True)
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))

        result = get_config_dir()
        assert result == tmp_path / "cfg" / "icnload"
        assert result.is_dir()

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("icnload.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".config" / "icnload"

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("icnload.config._is_xdg_platform", lambda: True)
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_data_dir() == tmp_path / ".local" / "share" / "icnload"

    def test_fallback_dirs(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("icnload.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".icnload"
        assert get_data_dir() == tmp_path / ".icnload" / "data"

    def test_profiles_dir(self, isolated_config: Path) -> None:
        assert get_profiles_dir() == isolated_config / "config" / "icnload" / "profiles"


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_writes_content(self, tmp_path: Path) -> None:
        target = tmp_path / "sub" / "file.json"
        _atomic_write(target, '{"a": 1}\n')
        assert target.read_text() == '{"a": 1}\n'

    def test_owner_only_permissions(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        _atomic_write(target, "{}")
        assert stat.S_IMODE(os.stat(target).st_mode) == 0o600

    def test_failure_leaves_original_and_no_temp(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        target.write_text("original")

        with patch("icnload.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                _atomic_write(target, "new")

        assert target.read_text() == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["file.json"]


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


class TestProfiles:
    def test_save_and_load_roundtrip(self, isolated_config: Path) -> None:
        step = _make_step(request=RequestConfig(timeout=12, verify_ssl=False))
        path = save_profile("prod", step)

        assert path.name == "prod.json"
        assert load_profile("prod") == step
        data = json.loads(path.read_text())
        assert data["file"] == "/opt/plugins/${JOB}.jar"
        assert data["request"] == {"timeout": 12, "verify_ssl": False}

    def test_list_profiles_sorted(self, isolated_config: Path) -> None:
        save_profile("zeta", _make_step())
        save_profile("alpha", _make_step())
        assert list_profiles() == ["alpha", "zeta"]

    def test_profile_exists_and_delete(self, isolated_config: Path) -> None:
        save_profile("prod", _make_step())
        assert profile_exists("prod")
        delete_profile("prod")
        assert not profile_exists("prod")

    def test_load_missing(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_profile("nope")

    def test_delete_missing(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            delete_profile("nope")

    def test_load_invalid_json(self, isolated_config: Path) -> None:
        (get_profiles_dir() / "broken.json").write_text("{not json")
        with pytest.raises(ConfigurationError, match="Invalid profile"):
            load_profile("broken")

    def test_load_invalid_shape(self, isolated_config: Path) -> None:
        (get_profiles_dir() / "broken.json").write_text('{"url": 5}')
        with pytest.raises(ConfigurationError, match="Invalid profile"):
            load_profile("broken")

    @pytest.mark.parametrize("name", ["../escape", "a/b", "", ".hidden"])
    def test_rejects_unsafe_names(self, isolated_config: Path, name: str) -> None:
        with pytest.raises(ConfigurationError, match="Invalid profile name"):
            save_profile(name, _make_step())


# ---------------------------------------------------------------------------
# Precedence
# ---------------------------------------------------------------------------


class TestResolveStepConfig:
    def test_empty_without_anything(self, isolated_config: Path) -> None:
        assert resolve_step_config() == StepConfig()

    def test_profile_values(self, isolated_config: Path) -> None:
        save_profile("prod", _make_step())

        step = resolve_step_config(profile="prod")
        assert step.url == "http://icn.example.com/navigator/"
        assert step.password == "env:ICN_PASSWORD"
        assert step.file == "/opt/plugins/${JOB}.jar"

    def test_env_overrides_profile(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile("prod", _make_step(password="literal"))
        monkeypatch.setenv("ICNLOAD_FILE", "/other.jar")

        assert resolve_step_config(profile="prod").file == "/other.jar"

    def test_cli_overrides_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ICNLOAD_USERNAME", "from-env")
        assert resolve_step_config(username="from-cli").username == "from-cli"

    def test_profile_from_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        save_profile("staging", _make_step(password="literal"))
        monkeypatch.setenv("ICNLOAD_PROFILE", "staging")
        assert resolve_step_config().username == "p8admin"

    def test_stored_profile_not_modified(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ICN_PASSWORD", "s3cret")
        save_profile("prod", _make_step())

        resolve_step_config(profile="prod", url="http://elsewhere/")
        assert load_profile("prod") == _make_step()

    def test_password_source_kept_as_written(self, isolated_config: Path) -> None:
        step = resolve_step_config(password="env:UNSET_VAR")
        assert step.password == "env:UNSET_VAR"

    def test_keeps_profile_request(self, isolated_config: Path) -> None:
        save_profile("prod", _make_step(password="x", request=RequestConfig(timeout=3)))
        assert resolve_step_config(profile="prod").request.timeout == 3


# ---------------------------------------------------------------------------
# Credential sources
# ---------------------------------------------------------------------------


class TestResolveCredential:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("env:X", True),
            ("file:/tmp/x", True),
            ("prompt", True),
            ("hunter2", False),
            ("", False),
            ("prompting", False),
        ],
    )
    def test_is_credential_source(self, value: str, expected: bool) -> None:
        assert is_credential_source(value) is expected

    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ICN_PW", "s3cret")
        assert resolve_credential("env:ICN_PW") == "s3cret"

    def test_env_missing(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("ICN_PW", raising=False)
        with pytest.raises(ConfigurationError, match="ICN_PW"):
            resolve_credential("env:ICN_PW")

    def test_file(self, tmp_path: Path) -> None:
        secret = tmp_path / "pw"
        secret.write_text("s3cret\n")
        assert resolve_credential(f"file:{secret}") == "s3cret"

    def test_file_missing(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            resolve_credential(f"file:{tmp_path / 'nope'}")

    def test_prompt_requires_tty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("icnload.config.sys.stdin", _Stdin(tty=False))
        with pytest.raises(ConfigurationError, match="not a TTY"):
            resolve_credential("prompt")

    def test_prompt(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("icnload.config.sys.stdin", _Stdin(tty=True))
        monkeypatch.setattr("icnload.config.getpass.getpass", lambda prompt: "typed")
        assert resolve_credential("prompt") == "typed"

    def test_unknown(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown credential source"):
            resolve_credential("vault:thing")


class TestResolvePassword:
    def _credentials(self, password: str) -> Credentials:
        return Credentials(
            server_url="http://icn.example.com/navigator/",
            username="p8admin",
            password=password,
            plugin_file="/some/path",
        )

    def test_literal_unchanged(self) -> None:
        creds = self._credentials("hunter2")
        assert resolve_password(creds) is creds

    def test_source_replaced(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ICN_PW", "s3cret")
        resolved = resolve_password(self._credentials("env:ICN_PW"))
        assert resolved.password == "s3cret"
        assert resolved.username == "p8admin"

    def test_dollar_signs_in_secret_survive_expansion(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        secret = tmp_path / "pw"
        secret.write_text("pa$$w0rd$HOME\n")
        monkeypatch.setenv("HOME", str(tmp_path))
        monkeypatch.setenv("SECRETS", str(tmp_path))
        step = StepConfig(
            url="http://icn.example.com/navigator/",
            username="p8admin",
            password="file:${SECRETS}/pw",
            file="/some/path",
        )

        resolved = resolve_password(step.expand(VariableExpander()))
        assert resolved.password == "pa$$w0rd$HOME"
