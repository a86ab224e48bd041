"""Pydantic models for the collector's JSON payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from instance_coordinator.domain.models import OutcomeStatus


class SyncModel(BaseModel):
    """Base model for collector messages."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class SignalEntryMessage(SyncModel):
    """Body of a signal request."""

    instance_id: str = Field(alias="instanceId")


class SignalEntryResponse(SyncModel):
    """Cumulative number of signals recorded for a state."""

    seq: int = Field(ge=1)


class StateCountResponse(SyncModel):
    """Current number of signals recorded for a state."""

    count: int = Field(ge=0)


class OutcomeReportMessage(SyncModel):
    """Terminal verdict posted by one instance."""

    run: str
    plan: str
    case: str
    instance_id: str = Field(alias="instanceId")
    status: OutcomeStatus
    message: str | None = None


__all__ = [
    "OutcomeReportMessage",
    "SignalEntryMessage",
    "SignalEntryResponse",
    "StateCountResponse",
    "SyncModel",
]
