"""Collector-independent parts of the synchronization client."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod

from instance_coordinator.domain.errors import CoordinationError, OutcomeReportError
from instance_coordinator.domain.models import OutcomeStatus, RunParams
from instance_coordinator.domain.ports import SyncClient
from instance_coordinator.domain.sync_models import OutcomeReportMessage

# Watched by the harness to detect instances that reached the test body.
NETWORK_INITIALISATION_SUCCESSFUL = "network initialisation successful"
NETWORK_INITIALISATION_FAILED = "network initialisation failed"
NETWORK_INITIALIZED_STATE = "network-initialized"

_DEFAULT_BARRIER_TIMEOUT_SECONDS = 300.0

logger = logging.getLogger(__name__)


class BaseSyncClient(SyncClient, ABC):
    """Implements run scoping, barrier bounds and outcome wrapping.

    Subclasses provide the three collector primitives: incrementing a state
    counter, waiting for a counter to reach a target, and storing an outcome.
    """

    def __init__(
        self,
        run_params: RunParams,
        instance_id: str,
        barrier_timeout_seconds: float = _DEFAULT_BARRIER_TIMEOUT_SECONDS,
        sidecar_enabled: bool = False,
    ) -> None:
        if barrier_timeout_seconds <= 0:
            raise ValueError("barrier_timeout_seconds must be > 0.")
        self._run_params = run_params
        self._instance_id = instance_id
        self._barrier_timeout_seconds = barrier_timeout_seconds
        self._sidecar_enabled = sidecar_enabled

    @property
    def run_params(self) -> RunParams:
        return self._run_params

    @property
    def instance_id(self) -> str:
        return self._instance_id

    async def signal(self, state: str) -> int:
        """Increment the run-scoped counter for `state`."""

        key = self._run_params.state_key(state)
        logger.debug("Signalling entry to state '%s'.", key)
        seq = await self._increment(key)
        logger.debug("State '%s' now at %d.", key, seq)
        return seq

    async def barrier(self, state: str, target: int) -> None:
        """Wait until the counter for `state` reaches `target`.

        Raises `CoordinationError` when the collector fails or the barrier
        timeout expires first.
        """

        if target <= 0:
            return
        key = self._run_params.state_key(state)
        logger.debug("Waiting on barrier '%s' for %d signals.", key, target)
        try:
            await asyncio.wait_for(
                self._wait_for_count(key, target),
                timeout=self._barrier_timeout_seconds,
            )
        except TimeoutError as exc:
            raise CoordinationError(
                f"Barrier '{state}' timed out after {self._barrier_timeout_seconds:g}s "
                f"waiting for {target} signals."
            ) from exc

    async def signal_and_wait(self, state: str, target: int) -> int:
        try:
            seq = await self.signal(state)
        except CoordinationError as exc:
            raise CoordinationError(
                f"Failed while signalling entry to state '{state}': {exc}"
            ) from exc
        await self.barrier(state, target)
        return seq

    async def report_outcome(self, status: OutcomeStatus, message: str | None = None) -> None:
        """Publish the terminal verdict; failures raise `OutcomeReportError`."""

        report = OutcomeReportMessage(
            run=self._run_params.run,
            plan=self._run_params.plan,
            case=self._run_params.case,
            instance_id=self._instance_id,
            status=status,
            message=message,
        )
        try:
            await self._publish_outcome(report)
        except CoordinationError as exc:
            raise OutcomeReportError(f"Failed to report {status} outcome: {exc}") from exc

    async def wait_network_initialized(self) -> None:
        """Wait for every instance's sidecar to initialize the network, if enabled."""

        if self._sidecar_enabled:
            try:
                await self.barrier(NETWORK_INITIALIZED_STATE, self._run_params.instance_count)
            except CoordinationError as exc:
                logger.error(NETWORK_INITIALISATION_FAILED)
                raise CoordinationError(f"Failed to initialize network: {exc}") from exc
        logger.info(NETWORK_INITIALISATION_SUCCESSFUL)

    async def close(self) -> None:
        return None

    @abstractmethod
    async def _increment(self, key: str) -> int:
        """Increment `key` and return its new value."""

    @abstractmethod
    async def _wait_for_count(self, key: str, target: int) -> None:
        """Return once `key` is at least `target`."""

    @abstractmethod
    async def _publish_outcome(self, report: OutcomeReportMessage) -> None:
        """Store one outcome report."""


__all__ = [
    "BaseSyncClient",
    "NETWORK_INITIALISATION_FAILED",
    "NETWORK_INITIALISATION_SUCCESSFUL",
    "NETWORK_INITIALIZED_STATE",
]
