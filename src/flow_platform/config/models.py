"""Pydantic configuration models for the flow platform."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class MiddlewareType(StrEnum):
    """Transport middleware a group's data is carried on."""

    PULSAR = "PULSAR"
    TUBE = "TUBE"


class ClusterConfig(BaseModel):
    """Cluster coordinates the sort config compiler reads.

    Read-only during compilation; passed into the compiler explicitly.
    """

    app_name: str = Field(default="flow_platform", min_length=1)
    # -- Pulsar (queue/topic based) -------------------------------------------
    pulsar_admin_url: str = "http://127.0.0.1:8080"
    pulsar_service_url: str = "pulsar://127.0.0.1:6650"
    pulsar_tenant: str = "public"
    # -- TubeMQ (broker/log based) --------------------------------------------
    # Required by TUBE groups
    tube_master: str | None = None


class WorkflowConfig(BaseModel):
    """Listener dispatch tuning for the workflow engine."""

    listener_timeout_seconds: float = Field(default=30.0, gt=0)
    async_workers: int = Field(default=4, ge=1)
    async_max_attempts: int = Field(default=1, ge=1)
    async_retry_wait_seconds: float = Field(default=1.0, gt=0)
    # Off by default; async failures are only recorded in the audit trail.
    compensate_async_failures: bool = False


class PlatformConfig(BaseModel, extra="forbid"):
    """Top-level platform configuration."""

    cluster: ClusterConfig = ClusterConfig()
    workflow: WorkflowConfig = WorkflowConfig()
    log_json: bool = False
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level '{v}'"
            raise ValueError(msg)
        return level
