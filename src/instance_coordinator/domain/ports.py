"""Ports for the collector session and address discovery."""

from __future__ import annotations

from ipaddress import IPv4Address
from typing import Protocol

from instance_coordinator.domain.models import InstanceAddress, OutcomeStatus, ProbeResult
from instance_coordinator.domain.roles import Role


class SyncClient(Protocol):
    """One instance's session with the synchronization collector."""

    async def signal(self, state: str) -> int:
        """Record that this instance reached `state`; return the cluster-wide count."""

    async def barrier(self, state: str, target: int) -> None:
        """Block until `target` signals for `state` have been recorded."""

    async def signal_and_wait(self, state: str, target: int) -> int:
        """Signal `state`, then wait for `target` signals on it."""

    async def report_outcome(self, status: OutcomeStatus, message: str | None = None) -> None:
        """Record the terminal verdict for this instance."""

    async def wait_network_initialized(self) -> None:
        """Block until the network fabric for this instance is ready."""

    async def close(self) -> None:
        """Release the collector session."""


class AddressSource(Protocol):
    """Provides the address assigned to this instance."""

    def read(self) -> InstanceAddress:
        """Return the instance address."""


class ConnectivityChecker(Protocol):
    """Checks TCP reachability between this instance and its peer."""

    async def probe(self, role: Role, address: IPv4Address) -> ProbeResult:
        """Run the path for `role` from `address`."""


__all__ = ["AddressSource", "ConnectivityChecker", "SyncClient"]
