"""Unit tests for configuration Pydantic models."""

import pytest
from pydantic import ValidationError

from flow_platform.config.models import (
    ClusterConfig,
    MiddlewareType,
    PlatformConfig,
    WorkflowConfig,
)


class TestClusterConfig:
    def test_defaults(self):
        cfg = ClusterConfig()
        assert cfg.app_name == "flow_platform"
        assert cfg.pulsar_tenant == "public"
        assert cfg.tube_master is None

    def test_empty_app_name_rejected(self):
        with pytest.raises(ValidationError):
            ClusterConfig(app_name="")

    def test_middleware_values(self):
        assert MiddlewareType("PULSAR") is MiddlewareType.PULSAR
        assert MiddlewareType("TUBE") is MiddlewareType.TUBE


class TestWorkflowConfig:
    def test_defaults(self):
        cfg = WorkflowConfig()
        assert cfg.listener_timeout_seconds == 30.0
        assert cfg.async_workers == 4
        assert cfg.async_max_attempts == 1
        assert cfg.compensate_async_failures is False

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValidationError):
            WorkflowConfig(listener_timeout_seconds=0)

    def test_needs_one_async_worker(self):
        with pytest.raises(ValidationError):
            WorkflowConfig(async_workers=0)


class TestPlatformConfig:
    def test_defaults(self):
        cfg = PlatformConfig()
        assert cfg.log_json is False
        assert cfg.log_level == "INFO"
        assert isinstance(cfg.cluster, ClusterConfig)

    def test_log_level_normalized(self):
        assert PlatformConfig(log_level="debug").log_level == "DEBUG"

    def test_unknown_log_level(self):
        with pytest.raises(ValidationError, match="Unknown log level"):
            PlatformConfig(log_level="chatty")

    def test_extra_keys_forbidden(self):
        with pytest.raises(ValidationError):
            PlatformConfig(kafka={"bootstrap_servers": "x"})
