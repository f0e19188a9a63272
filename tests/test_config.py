"""
Tests for configuration parsing and startup validation.
"""

import logging
import os
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from kubeguard.__main__ import build_gateway, main
from kubeguard.config import ConfigValidator, EnvConfigProvider, GatewaySettings, ServerConfig
from kubeguard.logging_config import HealthCheckFilter, get_logging_config
from kubeguard.modules.gateway import LoggingTelemetry, NullTelemetry
from kubeguard.modules.security import AccessLevel, SecurityConfig


def _server(**overrides) -> ServerConfig:
    values = {"host": "127.0.0.1", "port": 8000, "log_level": "INFO", "collect_telemetry": True}
    values.update(overrides)
    return ServerConfig(**values)


class TestSecurityConfig:
    """Test SecurityConfig construction."""

    def test_defaults(self):
        config = SecurityConfig()
        assert config.access_level is AccessLevel.READ_ONLY
        assert config.allowed_namespaces == frozenset()
        assert config.enabled_tools == frozenset({"kubectl"})
        assert config.timeout_seconds == 60
        assert not config.restricts_namespaces

    def test_from_settings(self):
        config = SecurityConfig.from_settings(
            access_level="readwrite",
            allow_namespaces=" prod, staging ,,",
            additional_tools="helm,hubble",
            timeout_seconds=30,
        )
        assert config.access_level is AccessLevel.READ_WRITE
        assert config.allowed_namespaces == frozenset({"prod", "staging"})
        assert config.enabled_tools == frozenset({"kubectl", "helm", "hubble"})
        assert config.timeout_seconds == 30
        assert config.restricts_namespaces

    def test_kubectl_always_enabled(self):
        config = SecurityConfig(enabled_tools={"cilium"})
        assert "kubectl" in config.enabled_tools
        assert isinstance(config.enabled_tools, frozenset)

    def test_unknown_tool_rejected(self):
        with pytest.raises(ValueError) as exc_info:
            SecurityConfig.from_settings(additional_tools="helm,terraform")
        assert "terraform" in str(exc_info.value)

    def test_access_level_case_sensitive(self):
        with pytest.raises(ValueError):
            SecurityConfig.from_settings(access_level="Admin")

    def test_non_positive_timeout_rejected(self):
        with pytest.raises(ValueError):
            SecurityConfig(timeout_seconds=0)

    def test_frozen(self):
        config = SecurityConfig()
        with pytest.raises(AttributeError):
            config.access_level = AccessLevel.ADMIN


class TestEnvConfigProvider:
    """Test environment-based configuration."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            provider = EnvConfigProvider()
            server = provider.get_server_config()
            settings = provider.get_gateway_settings()

        assert server.host == "127.0.0.1"
        assert server.port == 8000
        assert server.log_level == "INFO"
        assert server.collect_telemetry is True
        assert settings.access_level == "readonly"
        assert settings.timeout_seconds == 60

    def test_environment_values(self):
        env = {
            "KUBEGUARD_ACCESS_LEVEL": "admin",
            "KUBEGUARD_ALLOW_NAMESPACES": "prod",
            "KUBEGUARD_ADDITIONAL_TOOLS": "cilium",
            "KUBEGUARD_TIMEOUT": "120",
            "KUBEGUARD_PORT": "9000",
            "KUBEGUARD_COLLECT_TELEMETRY": "false",
            "LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            provider = EnvConfigProvider()
            server = provider.get_server_config()
            config = provider.get_gateway_settings().to_security_config()

        assert server.port == 9000
        assert server.log_level == "DEBUG"
        assert server.collect_telemetry is False
        assert config.access_level is AccessLevel.ADMIN
        assert config.allowed_namespaces == frozenset({"prod"})
        assert config.enabled_tools == frozenset({"kubectl", "cilium"})
        assert config.timeout_seconds == 120

    def test_invalid_integer(self):
        with patch.dict(os.environ, {"KUBEGUARD_TIMEOUT": "soon"}, clear=True):
            with pytest.raises(ValueError) as exc_info:
                EnvConfigProvider().get_gateway_settings()
        assert "KUBEGUARD_TIMEOUT" in str(exc_info.value)

    def test_invalid_log_level(self):
        with patch.dict(os.environ, {"LOG_LEVEL": "chatty"}, clear=True):
            with pytest.raises(ValueError):
                EnvConfigProvider().get_server_config()


class TestConfigValidator:
    """Test startup validation."""

    def test_valid(self):
        validator = ConfigValidator(SecurityConfig(), _server(), which=lambda tool: f"/usr/bin/{tool}")
        assert validator.validate()
        assert validator.errors == []

    def test_collects_every_error(self):
        security = SecurityConfig(timeout_seconds=7200, enabled_tools={"helm"})
        validator = ConfigValidator(security, _server(host="", port=70000), which=lambda tool: None)

        assert not validator.validate()
        assert len(validator.errors) == 5
        assert any("timeout" in error for error in validator.errors)
        assert any("host" in error for error in validator.errors)
        assert any("port" in error for error in validator.errors)
        assert "helm binary not found on PATH" in validator.errors
        assert "kubectl binary not found on PATH" in validator.errors

    def test_checks_each_enabled_tool(self):
        looked_up = []

        def which(tool):
            looked_up.append(tool)
            return "/bin/" + tool

        security = SecurityConfig.from_settings(additional_tools="helm,cilium,hubble")
        ConfigValidator(security, _server(), which=which).validate()
        assert looked_up == ["cilium", "helm", "hubble", "kubectl"]


class TestCli:
    """Test the command line entry point."""

    @pytest.fixture(autouse=True)
    def clean_environment(self, monkeypatch):
        for name in (
            "KUBEGUARD_HOST",
            "KUBEGUARD_PORT",
            "KUBEGUARD_ACCESS_LEVEL",
            "KUBEGUARD_ALLOW_NAMESPACES",
            "KUBEGUARD_ADDITIONAL_TOOLS",
            "KUBEGUARD_TIMEOUT",
            "KUBEGUARD_COLLECT_TELEMETRY",
            "LOG_LEVEL",
        ):
            monkeypatch.delenv(name, raising=False)

    @pytest.fixture(autouse=True)
    def keep_logging_config(self):
        with patch("kubeguard.__main__.configure_logging"):
            yield

    def test_invalid_access_level(self):
        result = CliRunner().invoke(main, ["--access-level", "root"])
        assert result.exit_code != 0
        assert "root" in result.output

    def test_unknown_additional_tool(self):
        result = CliRunner().invoke(main, ["--additional-tools", "terraform"])
        assert result.exit_code != 0
        assert "terraform" in result.output

    def test_missing_binary_exits(self):
        with patch("kubeguard.__main__.uvicorn.run") as run, patch(
            "kubeguard.config.validator.shutil.which", return_value=None
        ):
            result = CliRunner().invoke(main, [])
        assert result.exit_code == 1
        run.assert_not_called()

    def test_starts_server(self):
        with patch("kubeguard.__main__.uvicorn.run") as run, patch(
            "kubeguard.config.validator.shutil.which", return_value="/usr/bin/kubectl"
        ):
            result = CliRunner().invoke(
                main, ["--port", "9001", "--access-level", "admin", "--allow-namespaces", "prod"]
            )
        assert result.exit_code == 0, result.output
        run.assert_called_once()
        app = run.call_args[0][0]
        assert app.state.gateway.config.access_level is AccessLevel.ADMIN
        assert app.state.gateway.config.allowed_namespaces == frozenset({"prod"})
        assert run.call_args[1]["port"] == 9001

    def test_environment_configures_server(self, monkeypatch):
        monkeypatch.setenv("KUBEGUARD_ACCESS_LEVEL", "readwrite")
        monkeypatch.setenv("KUBEGUARD_ALLOW_NAMESPACES", "prod,staging")
        monkeypatch.setenv("KUBEGUARD_PORT", "9100")
        monkeypatch.setenv("KUBEGUARD_COLLECT_TELEMETRY", "false")
        with patch("kubeguard.__main__.uvicorn.run") as run, patch(
            "kubeguard.config.validator.shutil.which", return_value="/usr/bin/kubectl"
        ):
            result = CliRunner().invoke(main, [])
        assert result.exit_code == 0, result.output
        gateway = run.call_args[0][0].state.gateway
        assert gateway.config.access_level is AccessLevel.READ_WRITE
        assert gateway.config.allowed_namespaces == frozenset({"prod", "staging"})
        assert isinstance(gateway.telemetry, NullTelemetry)
        assert run.call_args[1]["port"] == 9100

    def test_options_override_environment(self, monkeypatch):
        monkeypatch.setenv("KUBEGUARD_ACCESS_LEVEL", "admin")
        monkeypatch.setenv("KUBEGUARD_PORT", "9100")
        with patch("kubeguard.__main__.uvicorn.run") as run, patch(
            "kubeguard.config.validator.shutil.which", return_value="/usr/bin/kubectl"
        ):
            result = CliRunner().invoke(main, ["--access-level", "readonly", "--port", "9200"])
        assert result.exit_code == 0, result.output
        gateway = run.call_args[0][0].state.gateway
        assert gateway.config.access_level is AccessLevel.READ_ONLY
        assert isinstance(gateway.telemetry, LoggingTelemetry)
        assert run.call_args[1]["port"] == 9200

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv("KUBEGUARD_TIMEOUT", "soon")
        with patch("kubeguard.__main__.uvicorn.run") as run:
            result = CliRunner().invoke(main, [])
        assert result.exit_code != 0
        assert "KUBEGUARD_TIMEOUT" in result.output
        run.assert_not_called()

    def test_no_collect_telemetry_option(self):
        with patch("kubeguard.__main__.uvicorn.run") as run, patch(
            "kubeguard.config.validator.shutil.which", return_value="/usr/bin/kubectl"
        ):
            result = CliRunner().invoke(main, ["--no-collect-telemetry"])
        assert result.exit_code == 0, result.output
        assert isinstance(run.call_args[0][0].state.gateway.telemetry, NullTelemetry)

    def test_build_gateway_telemetry_choice(self):
        assert isinstance(build_gateway(SecurityConfig()).telemetry, LoggingTelemetry)
        assert isinstance(build_gateway(SecurityConfig(), collect_telemetry=False).telemetry, NullTelemetry)


class TestLoggingConfig:
    """Test logging configuration."""

    def test_level_applies_to_kubeguard_loggers(self):
        config = get_logging_config("debug")
        assert config["loggers"]["kubeguard"]["level"] == "DEBUG"
        assert config["loggers"]["uvicorn.access"]["handlers"] == ["access"]

    def test_health_check_filter(self):
        health_filter = HealthCheckFilter()
        health = logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1, '127.0.0.1 - "GET /health HTTP/1.1" 200', None, None
        )
        tools = logging.LogRecord(
            "uvicorn.access", logging.INFO, __file__, 1, '127.0.0.1 - "POST /tools/kubectl HTTP/1.1" 200', None, None
        )
        assert not health_filter.filter(health)
        assert health_filter.filter(tools)
