"""Tests for configuration loading and validation."""

from __future__ import annotations

import os
import tempfile
from typing import Any, Dict

import pytest

from health_sentinel.config import load_sentinel_config, validate_config
from health_sentinel.config.loader import expand_env_vars
from health_sentinel.config.schema import ProbeSettings, SentinelConfig
from health_sentinel.errors import ConfigurationError


def _minimal() -> Dict[str, Any]:
    return {
        "monitor": {
            "unhealthy_threshold": 2,
            "healthy_threshold": 3,
            "probe_timeout": 1.5,
            "probe_interval": 5,
        },
        "targets": {"static": ["master-0:6443", "master-1:6443"]},
    }


def _write_config(directory: str, text: str, name: str = "config.yaml") -> str:
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


# ── Env expansion ────────────────────────────────────────────────────────


class TestExpandEnvVars:
    def test_expands_set_variable(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENTINEL_HOST", "master-0")
        assert expand_env_vars("${SENTINEL_HOST}:6443") == "master-0:6443"

    def test_unset_variable_left_alone(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("SENTINEL_UNSET", raising=False)
        assert expand_env_vars("${SENTINEL_UNSET}") == "${SENTINEL_UNSET}"

    def test_walks_nested_structures(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENTINEL_HOST", "h")
        assert expand_env_vars({"a": ["${SENTINEL_HOST}", 3]}) == {"a": ["h", 3]}


# ── Validation ───────────────────────────────────────────────────────────


class TestValidateConfig:
    def test_minimal(self) -> None:
        config = validate_config(_minimal())
        assert isinstance(config, SentinelConfig)
        assert config.monitor.unhealthy_threshold == 2
        assert config.targets.static == ["master-0:6443", "master-1:6443"]
        assert config.probe.scheme == "https"
        assert config.probe.path == "readyz"
        assert not config.server.enabled
        assert not config.telemetry.enabled

    @pytest.mark.parametrize(
        "field, value",
        [
            ("unhealthy_threshold", 0),
            ("healthy_threshold", 0),
            ("probe_timeout", 0),
            ("probe_interval", -1),
        ],
    )
    def test_invalid_monitor_values(self, field: str, value: float) -> None:
        raw = _minimal()
        raw["monitor"][field] = value
        with pytest.raises(ConfigurationError, match=field):
            validate_config(raw)

    def test_monitor_fields_are_required(self) -> None:
        raw = _minimal()
        del raw["monitor"]["probe_interval"]
        with pytest.raises(ConfigurationError, match="probe_interval"):
            validate_config(raw)

    def test_unknown_keys_rejected(self) -> None:
        raw = _minimal()
        raw["monitor"]["probe_jitter"] = 1
        with pytest.raises(ConfigurationError):
            validate_config(raw)

    def test_needs_exactly_one_target_source(self) -> None:
        raw = _minimal()
        raw["targets"] = {}
        with pytest.raises(ConfigurationError):
            validate_config(raw)
        raw["targets"] = {"static": ["a"], "file": "targets.yaml"}
        with pytest.raises(ConfigurationError):
            validate_config(raw)

    def test_all_errors_reported(self) -> None:
        raw = _minimal()
        raw["monitor"]["unhealthy_threshold"] = 0
        raw["monitor"]["healthy_threshold"] = 0
        with pytest.raises(ConfigurationError, match=r"2 error\(s\)"):
            validate_config(raw)

    def test_env_vars_expanded(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SENTINEL_TARGET", "10.0.0.1:6443")
        raw = _minimal()
        raw["targets"] = {"static": ["${SENTINEL_TARGET}"]}
        assert validate_config(raw).targets.static == ["10.0.0.1:6443"]


class TestProbeSettings:
    def test_path_leading_slash_stripped(self) -> None:
        assert ProbeSettings(path="/healthz").path == "healthz"

    def test_key_requires_cert(self) -> None:
        with pytest.raises(ValueError):
            ProbeSettings(key_file="client.key")

    def test_bad_scheme(self) -> None:
        with pytest.raises(ValueError):
            ProbeSettings(scheme="ftp")


# ── File loading ─────────────────────────────────────────────────────────


class TestLoadSentinelConfig:
    def test_loads_yaml_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(
                tmp,
                "monitor:\n"
                "  unhealthy_threshold: 1\n"
                "  healthy_threshold: 1\n"
                "  probe_timeout: 2\n"
                "  probe_interval: 10\n"
                "targets:\n"
                "  static: [a, b]\n"
                "server:\n"
                "  enabled: true\n"
                "  port: 9200\n",
            )
            config = load_sentinel_config(path)
        assert config.targets.static == ["a", "b"]
        assert config.server.enabled
        assert config.server.port == 9200

    def test_relative_paths_anchored_at_config_dir(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(
                tmp,
                "monitor:\n"
                "  unhealthy_threshold: 1\n"
                "  healthy_threshold: 1\n"
                "  probe_timeout: 2\n"
                "  probe_interval: 10\n"
                "targets:\n"
                "  file: targets.yaml\n"
                "probe:\n"
                "  ca_file: certs/ca.pem\n"
                "  cert_file: /etc/pki/client.pem\n",
            )
            config = load_sentinel_config(path)
            base = os.path.dirname(os.path.abspath(path))
        assert config.targets.file == os.path.join(base, "targets.yaml")
        assert config.probe.ca_file == os.path.join(base, "certs/ca.pem")
        assert config.probe.cert_file == "/etc/pki/client.pem"

    def test_missing_file(self) -> None:
        with pytest.raises(ConfigurationError, match="does not exist"):
            load_sentinel_config("/nonexistent/config.yaml")

    def test_non_yaml_extension(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(tmp, "{}", name="config.json")
            with pytest.raises(ConfigurationError, match="Unsupported"):
                load_sentinel_config(path)

    def test_top_level_must_be_mapping(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(tmp, "- a\n- b\n")
            with pytest.raises(ConfigurationError, match="mapping"):
                load_sentinel_config(path)

    def test_malformed_yaml(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(tmp, "monitor: [unclosed\n")
            with pytest.raises(ConfigurationError):
                load_sentinel_config(path)
