"""Value objects shared across the coordinator."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from ipaddress import IPv4Address

from instance_coordinator.domain.roles import Role


@dataclass(slots=True, frozen=True)
class InstanceAddress:
    """Network identity assigned to this process."""

    ip: IPv4Address
    interface: str

    def __str__(self) -> str:
        return f"{self.ip}%{self.interface}"


@dataclass(slots=True, frozen=True)
class RunParams:
    """Identifies the test run an instance belongs to."""

    plan: str
    case: str
    run: str
    instance_count: int = 1

    def state_key(self, state: str) -> str:
        """Collector key for a signal/barrier state, scoped to this run."""

        return f"run:{self.run}:plan:{self.plan}:case:{self.case}:states:{state}"


class OutcomeStatus(StrEnum):
    """Terminal verdict for one instance."""

    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(slots=True, frozen=True)
class Outcome:
    """Final verdict reported once per instance."""

    status: OutcomeStatus
    message: str | None = None

    @classmethod
    def success(cls, message: str | None = None) -> Outcome:
        return cls(status=OutcomeStatus.SUCCESS, message=message)

    @classmethod
    def failure(cls, message: str) -> Outcome:
        return cls(status=OutcomeStatus.FAILURE, message=message)

    @property
    def succeeded(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS


class ProbeState(StrEnum):
    """States of the listener and dialer probe paths."""

    IDLE = "idle"
    BOUND = "bound"
    AWAITING_PEER = "awaiting_peer"
    WAITING_FOR_PEER = "waiting_for_peer"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(slots=True, frozen=True)
class ProbeResult:
    """What the connectivity probe observed."""

    role: Role
    local_address: IPv4Address
    peer_address: IPv4Address | None
    port: int
    transitions: tuple[ProbeState, ...]

    @property
    def state(self) -> ProbeState:
        return self.transitions[-1]


__all__ = [
    "InstanceAddress",
    "Outcome",
    "OutcomeStatus",
    "ProbeResult",
    "ProbeState",
    "RunParams",
]
