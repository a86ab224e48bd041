"""Domain public API."""

from instance_coordinator.domain.errors import (
    AcceptTimeoutError,
    AddressResolutionError,
    BindError,
    CoordinationError,
    CoordinatorError,
    DialError,
    OutcomeReportError,
    RoleResolutionError,
)
from instance_coordinator.domain.models import (
    InstanceAddress,
    Outcome,
    OutcomeStatus,
    ProbeResult,
    ProbeState,
    RunParams,
)
from instance_coordinator.domain.ports import AddressSource, ConnectivityChecker, SyncClient
from instance_coordinator.domain.roles import Role, RoleConvention, resolve_role
from instance_coordinator.domain.sync_models import (
    OutcomeReportMessage,
    SignalEntryMessage,
    SignalEntryResponse,
    StateCountResponse,
)

__all__ = [
    "AcceptTimeoutError",
    "AddressResolutionError",
    "AddressSource",
    "BindError",
    "ConnectivityChecker",
    "CoordinationError",
    "CoordinatorError",
    "DialError",
    "InstanceAddress",
    "Outcome",
    "OutcomeReportError",
    "OutcomeReportMessage",
    "OutcomeStatus",
    "ProbeResult",
    "ProbeState",
    "Role",
    "RoleConvention",
    "RoleResolutionError",
    "RunParams",
    "SignalEntryMessage",
    "SignalEntryResponse",
    "StateCountResponse",
    "SyncClient",
    "resolve_role",
]
