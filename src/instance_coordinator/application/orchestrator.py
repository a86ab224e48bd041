"""Top-level protocol for one test instance."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from instance_coordinator.domain.errors import CoordinatorError, RoleResolutionError
from instance_coordinator.domain.models import Outcome, ProbeResult
from instance_coordinator.domain.ports import AddressSource, ConnectivityChecker, SyncClient
from instance_coordinator.domain.roles import Role, RoleConvention

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class RunResult:
    """Result of one instance run, mapped to an exit code by the entrypoint."""

    outcome: Outcome
    role: Role | None = None
    probe: ProbeResult | None = None

    @property
    def exit_code(self) -> int:
        return EXIT_SUCCESS if self.outcome.succeeded else EXIT_FAILURE


class Orchestrator:
    """Resolves the role, runs the probe and reports exactly one outcome.

    Every failure before the report, expected or not, becomes a failure
    outcome. A failure of the report itself propagates to the caller.
    """

    def __init__(
        self,
        sync_client: SyncClient,
        address_source: AddressSource,
        prober: ConnectivityChecker,
        convention: RoleConvention | None = None,
    ) -> None:
        self._sync_client = sync_client
        self._address_source = address_source
        self._prober = prober
        self._convention = convention or RoleConvention()
        self._role: Role | None = None

    async def run(self) -> RunResult:
        probe: ProbeResult | None = None
        try:
            probe = await self._execute()
        except CoordinatorError as exc:
            logger.error("Instance failed: %s", exc)
            outcome = Outcome.failure(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error while running instance.")
            outcome = Outcome.failure(f"unexpected error: {exc}")
        else:
            outcome = Outcome.success()

        await self._sync_client.report_outcome(outcome.status, outcome.message)
        logger.info("Reported %s outcome.", outcome.status)
        return RunResult(outcome=outcome, role=self._role, probe=probe)

    async def _execute(self) -> ProbeResult:
        await self._sync_client.wait_network_initialized()

        address = self._address_source.read()
        self._role = self._convention.resolve(address.ip)
        logger.info("Instance address %s resolved to role '%s'.", address, self._role)
        if self._role is Role.INVALID:
            raise RoleResolutionError()

        return await self._prober.probe(self._role, address.ip)


__all__ = ["EXIT_FAILURE", "EXIT_SUCCESS", "Orchestrator", "RunResult"]
