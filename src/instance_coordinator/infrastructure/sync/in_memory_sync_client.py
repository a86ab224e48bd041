"""Process-local collector for single-process runs and tests."""

from __future__ import annotations

import asyncio
from collections import Counter

from instance_coordinator.domain.errors import CoordinationError
from instance_coordinator.domain.models import RunParams
from instance_coordinator.domain.sync_models import OutcomeReportMessage
from instance_coordinator.infrastructure.sync.base_sync_client import BaseSyncClient


class InMemorySyncService:
    """Shared counters and outcome log standing in for the collector."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self._signals: list[tuple[str, str]] = []
        self._outcomes: list[OutcomeReportMessage] = []
        self._condition: asyncio.Condition | None = None
        self._abort_reason: str | None = None

    @property
    def outcomes(self) -> list[OutcomeReportMessage]:
        """Outcome reports in arrival order."""

        return list(self._outcomes)

    @property
    def signals(self) -> list[tuple[str, str]]:
        """`(key, instance_id)` pairs in arrival order."""

        return list(self._signals)

    def count(self, key: str) -> int:
        return self._counts[key]

    def client(
        self,
        run_params: RunParams,
        instance_id: str,
        barrier_timeout_seconds: float = 300.0,
        sidecar_enabled: bool = False,
    ) -> InMemorySyncClient:
        """Open a session bound to this service."""

        return InMemorySyncClient(
            service=self,
            run_params=run_params,
            instance_id=instance_id,
            barrier_timeout_seconds=barrier_timeout_seconds,
            sidecar_enabled=sidecar_enabled,
        )

    async def increment(self, key: str, instance_id: str) -> int:
        condition = self._get_condition()
        async with condition:
            self._ensure_running()
            self._counts[key] += 1
            self._signals.append((key, instance_id))
            condition.notify_all()
            return self._counts[key]

    async def wait_for_count(self, key: str, target: int) -> None:
        condition = self._get_condition()
        async with condition:
            await condition.wait_for(
                lambda: self._abort_reason is not None or self._counts[key] >= target
            )
            if self._counts[key] < target:
                self._ensure_running()

    async def record_outcome(self, report: OutcomeReportMessage) -> None:
        async with self._get_condition():
            self._ensure_running()
            self._outcomes.append(report)

    async def abort(self, reason: str = "run aborted") -> None:
        """Fail pending and future calls, as an unreachable collector would."""

        condition = self._get_condition()
        async with condition:
            self._abort_reason = reason
            condition.notify_all()

    def _ensure_running(self) -> None:
        if self._abort_reason is not None:
            raise CoordinationError(f"Sync service unavailable: {self._abort_reason}")

    def _get_condition(self) -> asyncio.Condition:
        if self._condition is None:
            self._condition = asyncio.Condition()
        return self._condition


class InMemorySyncClient(BaseSyncClient):
    """Session with an `InMemorySyncService`."""

    def __init__(
        self,
        service: InMemorySyncService,
        run_params: RunParams,
        instance_id: str,
        barrier_timeout_seconds: float = 300.0,
        sidecar_enabled: bool = False,
    ) -> None:
        super().__init__(
            run_params=run_params,
            instance_id=instance_id,
            barrier_timeout_seconds=barrier_timeout_seconds,
            sidecar_enabled=sidecar_enabled,
        )
        self._service = service

    async def _increment(self, key: str) -> int:
        return await self._service.increment(key, self._instance_id)

    async def _wait_for_count(self, key: str, target: int) -> None:
        await self._service.wait_for_count(key, target)

    async def _publish_outcome(self, report: OutcomeReportMessage) -> None:
        await self._service.record_outcome(report)


__all__ = ["InMemorySyncClient", "InMemorySyncService"]
