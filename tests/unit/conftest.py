from __future__ import annotations

import pytest

from flow_platform.config.models import ClusterConfig


@pytest.fixture
def cluster() -> ClusterConfig:
    return ClusterConfig(
        app_name="app",
        pulsar_admin_url="http://pulsar:8080",
        pulsar_service_url="pulsar://pulsar:6650",
        tube_master="tube:8715",
    )
