"""Application settings."""

import json
import socket
from enum import StrEnum
from ipaddress import IPv4Address
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from instance_coordinator.domain.models import RunParams
from instance_coordinator.domain.roles import (
    DEFAULT_ROLE_OCTET_INDEX,
    DEFAULT_ROLE_OCTETS,
    Role,
    RoleConvention,
)


class SyncBackend(StrEnum):
    """Available synchronization collector adapters."""

    HTTP = "http"
    IN_MEMORY = "in_memory"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables.

    Run identity is read from the harness variables (`TEST_PLAN`, `TEST_CASE`,
    `TEST_RUN`, `TEST_INSTANCE_COUNT`, `TEST_SIDECAR`); everything else uses
    the `COORD_` prefix.
    """

    test_plan: str = Field(default="", validation_alias="TEST_PLAN")
    test_case: str = Field(default="", validation_alias="TEST_CASE")
    test_run: str = Field(default="", validation_alias="TEST_RUN")
    test_instance_count: int = Field(default=1, validation_alias="TEST_INSTANCE_COUNT")
    test_sidecar: bool = Field(default=False, validation_alias="TEST_SIDECAR")
    instance_id: str = Field(default_factory=socket.gethostname)
    sync_backend: SyncBackend = SyncBackend.HTTP
    sync_service_url: str | None = None
    sync_request_timeout_seconds: float = 10.0
    barrier_timeout_seconds: float = 300.0
    barrier_poll_seconds: float = 0.5
    data_interface: str = "eth1"
    instance_address: IPv4Address | None = None
    listening_port: int = 1234
    accept_timeout_seconds: float = 300.0
    dial_timeout_seconds: float = 10.0
    role_octet_index: int = DEFAULT_ROLE_OCTET_INDEX
    role_octets: Annotated[dict[int, Role], NoDecode] = Field(
        default_factory=lambda: dict(DEFAULT_ROLE_OCTETS)
    )
    log_level: str = "INFO"

    @field_validator("role_octets", mode="before")
    @classmethod
    def parse_role_octets(cls, value: object) -> object:
        """Accept a JSON object or `2=listener,3=dialer` in addition to a mapping."""

        if not isinstance(value, str):
            return value
        stripped = value.strip()
        if stripped.startswith("{"):
            return json.loads(stripped)
        pairs: dict[str, str] = {}
        for item in stripped.split(","):
            if not item.strip():
                continue
            octet, separator, role = item.partition("=")
            if not separator:
                raise ValueError(f"Expected 'value=role', got '{item.strip()}'.")
            pairs[octet.strip()] = role.strip().lower()
        return pairs

    @field_validator("data_interface", "sync_service_url", mode="before")
    @classmethod
    def strip_text(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """Ensure backend-specific settings and bounds are valid."""

        service_url = (self.sync_service_url or "").rstrip("/")
        if self.sync_backend == SyncBackend.HTTP and not service_url:
            raise ValueError(
                "COORD_SYNC_SERVICE_URL is required when COORD_SYNC_BACKEND=http."
            )
        if self.instance_address is None and not self.data_interface:
            raise ValueError(
                "COORD_DATA_INTERFACE cannot be blank when COORD_INSTANCE_ADDRESS is unset."
            )
        if self.test_instance_count < 1:
            raise ValueError("TEST_INSTANCE_COUNT must be >= 1.")
        if self.sync_request_timeout_seconds <= 0:
            raise ValueError("COORD_SYNC_REQUEST_TIMEOUT_SECONDS must be > 0.")
        if self.barrier_timeout_seconds <= 0:
            raise ValueError("COORD_BARRIER_TIMEOUT_SECONDS must be > 0.")
        if self.barrier_poll_seconds <= 0:
            raise ValueError("COORD_BARRIER_POLL_SECONDS must be > 0.")
        if self.accept_timeout_seconds <= 0:
            raise ValueError("COORD_ACCEPT_TIMEOUT_SECONDS must be > 0.")
        if self.dial_timeout_seconds <= 0:
            raise ValueError("COORD_DIAL_TIMEOUT_SECONDS must be > 0.")
        if not 1 <= self.listening_port <= 65535:
            raise ValueError("COORD_LISTENING_PORT must be between 1 and 65535.")
        if self.log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError("COORD_LOG_LEVEL must be a standard logging level name.")
        # RoleConvention enforces octet bounds and the single-listener rule.
        _ = self.role_convention
        return self

    @property
    def role_convention(self) -> RoleConvention:
        return RoleConvention(octet_index=self.role_octet_index, roles=self.role_octets)

    @property
    def run_params(self) -> RunParams:
        return RunParams(
            plan=self.test_plan,
            case=self.test_case,
            run=self.test_run,
            instance_count=self.test_instance_count,
        )

    model_config = SettingsConfigDict(
        env_prefix="COORD_", extra="ignore", populate_by_name=True
    )


__all__ = ["Settings", "SyncBackend"]
