from __future__ import annotations

import asyncio
import socket
import sys
from ipaddress import IPv4Address

import pytest

from instance_coordinator.application import EXIT_FAILURE, EXIT_SUCCESS, Orchestrator, RunResult
from instance_coordinator.domain.errors import AddressResolutionError, OutcomeReportError
from instance_coordinator.domain.models import (
    InstanceAddress,
    OutcomeStatus,
    ProbeResult,
    ProbeState,
    RunParams,
)
from instance_coordinator.domain.roles import Role
from instance_coordinator.infrastructure.network import (
    LISTENING_STATE,
    ConnectivityProber,
    StaticAddressSource,
)
from instance_coordinator.infrastructure.sync import InMemorySyncService

RUN_PARAMS = RunParams(plan="network", case="ping", run="run-1", instance_count=2)

linux_only = pytest.mark.skipif(
    sys.platform != "linux", reason="needs the whole 127.0.0.0/8 loopback range"
)


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.2", 0))
        return sock.getsockname()[1]


class RecordingProber:
    """Connectivity check double that records calls without touching sockets."""

    def __init__(self, result: ProbeResult | None = None) -> None:
        self.calls: list[tuple[Role, IPv4Address]] = []
        self._result = result

    async def probe(self, role: Role, address: IPv4Address) -> ProbeResult:
        self.calls.append((role, address))
        if self._result is None:
            raise AssertionError("connectivity check should not run")
        return self._result


class FailingAddressSource:
    def __init__(self, error: Exception) -> None:
        self._error = error

    def read(self) -> InstanceAddress:
        raise self._error


def make_orchestrator(
    service: InMemorySyncService,
    address: str,
    port: int,
    barrier_timeout_seconds: float = 2.0,
) -> Orchestrator:
    sync_client = service.client(
        RUN_PARAMS, f"instance-{address}", barrier_timeout_seconds=barrier_timeout_seconds
    )
    return Orchestrator(
        sync_client=sync_client,
        address_source=StaticAddressSource(
            InstanceAddress(ip=IPv4Address(address), interface="lo")
        ),
        prober=ConnectivityProber(
            sync_client=sync_client,
            port=port,
            accept_timeout_seconds=2.0,
            dial_timeout_seconds=1.0,
        ),
    )


def outcomes_for(service: InMemorySyncService, address: str) -> list[OutcomeStatus]:
    return [
        report.status
        for report in service.outcomes
        if report.instance_id == f"instance-{address}"
    ]


@linux_only
def test_listener_and_dialer_both_report_success() -> None:
    service = InMemorySyncService()
    port = free_port()

    async def scenario() -> list[RunResult]:
        return list(
            await asyncio.gather(
                make_orchestrator(service, "127.0.0.2", port).run(),
                make_orchestrator(service, "127.0.0.3", port).run(),
            )
        )

    listener, dialer = asyncio.run(scenario())

    assert listener.role is Role.LISTENER
    assert dialer.role is Role.DIALER
    assert listener.exit_code == EXIT_SUCCESS
    assert dialer.exit_code == EXIT_SUCCESS
    assert dialer.probe is not None
    assert dialer.probe.peer_address == IPv4Address("127.0.0.2")
    assert outcomes_for(service, "127.0.0.2") == [OutcomeStatus.SUCCESS]
    assert outcomes_for(service, "127.0.0.3") == [OutcomeStatus.SUCCESS]


@linux_only
def test_dialer_started_first_still_succeeds() -> None:
    service = InMemorySyncService()
    port = free_port()

    async def scenario() -> tuple[RunResult, RunResult]:
        dialer = asyncio.create_task(make_orchestrator(service, "127.0.0.3", port).run())
        await asyncio.sleep(0.05)
        listener = await make_orchestrator(service, "127.0.0.2", port).run()
        return listener, await dialer

    listener, dialer = asyncio.run(scenario())

    assert listener.outcome.succeeded
    assert dialer.outcome.succeeded


def test_dialer_without_listener_reports_coordination_timeout() -> None:
    service = InMemorySyncService()

    result = asyncio.run(
        make_orchestrator(service, "127.0.0.3", 1234, barrier_timeout_seconds=0.05).run()
    )

    assert result.exit_code == EXIT_FAILURE
    assert result.outcome.message is not None
    assert "Barrier 'listening' timed out" in result.outcome.message
    [report] = service.outcomes
    assert report.status is OutcomeStatus.FAILURE
    assert report.message == result.outcome.message


def test_invalid_address_reports_unexpected_address_without_probing() -> None:
    service = InMemorySyncService()
    sync_client = service.client(RUN_PARAMS, "instance-5")
    prober = RecordingProber()
    orchestrator = Orchestrator(
        sync_client=sync_client,
        address_source=StaticAddressSource(
            InstanceAddress(ip=IPv4Address("16.0.0.5"), interface="eth1")
        ),
        prober=prober,
    )

    result = asyncio.run(orchestrator.run())

    assert result.role is Role.INVALID
    assert result.exit_code == EXIT_FAILURE
    assert result.outcome.message == "unexpected address"
    assert prober.calls == []
    assert service.signals == []
    [report] = service.outcomes
    assert report.status is OutcomeStatus.FAILURE
    assert report.message == "unexpected address"


@linux_only
def test_duplicate_listener_fails_and_first_listener_is_unaffected() -> None:
    service = InMemorySyncService()
    port = free_port()
    listening_key = RUN_PARAMS.state_key(LISTENING_STATE)

    async def scenario() -> tuple[RunResult, RunResult, RunResult]:
        first = asyncio.create_task(make_orchestrator(service, "127.0.0.2", port).run())
        while service.count(listening_key) < 1:
            await asyncio.sleep(0.01)

        duplicate = Orchestrator(
            sync_client=service.client(RUN_PARAMS, "instance-duplicate"),
            address_source=StaticAddressSource(
                InstanceAddress(ip=IPv4Address("127.0.0.2"), interface="lo")
            ),
            prober=ConnectivityProber(
                sync_client=service.client(RUN_PARAMS, "instance-duplicate"),
                port=port,
            ),
        )
        second = await duplicate.run()
        dialer = await make_orchestrator(service, "127.0.0.3", port).run()
        return await first, second, dialer

    first, second, dialer = asyncio.run(scenario())

    assert first.outcome.succeeded
    assert dialer.outcome.succeeded
    assert second.exit_code == EXIT_FAILURE
    assert second.outcome.message is not None
    assert "Failed to listen" in second.outcome.message
    assert service.count(listening_key) == 1
    assert len(service.outcomes) == 3


def test_address_resolution_failure_is_reported() -> None:
    service = InMemorySyncService()
    sync_client = service.client(RUN_PARAMS, "instance-a")
    orchestrator = Orchestrator(
        sync_client=sync_client,
        address_source=FailingAddressSource(AddressResolutionError("no eth1")),
        prober=RecordingProber(),
    )

    result = asyncio.run(orchestrator.run())

    assert result.role is None
    assert result.outcome.message == "no eth1"
    assert [report.status for report in service.outcomes] == [OutcomeStatus.FAILURE]


def test_unexpected_exception_becomes_single_failure_report(
    caplog: pytest.LogCaptureFixture,
) -> None:
    service = InMemorySyncService()
    sync_client = service.client(RUN_PARAMS, "instance-a")
    orchestrator = Orchestrator(
        sync_client=sync_client,
        address_source=FailingAddressSource(RuntimeError("kaboom")),
        prober=RecordingProber(),
    )

    result = asyncio.run(orchestrator.run())

    assert result.outcome.message == "unexpected error: kaboom"
    assert len(service.outcomes) == 1
    assert "Unexpected error while running instance" in caplog.text


def test_network_initialization_failure_is_reported_before_role_resolution() -> None:
    service = InMemorySyncService()
    sync_client = service.client(
        RUN_PARAMS, "instance-a", barrier_timeout_seconds=0.05, sidecar_enabled=True
    )
    prober = RecordingProber()
    orchestrator = Orchestrator(
        sync_client=sync_client,
        address_source=FailingAddressSource(AssertionError("address read too early")),
        prober=prober,
    )

    result = asyncio.run(orchestrator.run())

    assert result.role is None
    assert result.outcome.message is not None
    assert result.outcome.message.startswith("Failed to initialize network")
    assert len(service.outcomes) == 1


def test_outcome_report_failure_propagates() -> None:
    service = InMemorySyncService()
    sync_client = service.client(RUN_PARAMS, "instance-a")
    orchestrator = Orchestrator(
        sync_client=sync_client,
        address_source=StaticAddressSource(
            InstanceAddress(ip=IPv4Address("16.0.0.9"), interface="eth1")
        ),
        prober=RecordingProber(),
    )

    async def scenario() -> None:
        await service.abort("collector unreachable")
        await orchestrator.run()

    with pytest.raises(OutcomeReportError, match="collector unreachable"):
        asyncio.run(scenario())
    assert service.outcomes == []


def test_orchestrator_accepts_any_connectivity_check_implementation() -> None:
    service = InMemorySyncService()
    sync_client = service.client(RUN_PARAMS, "instance-a")
    expected = ProbeResult(
        role=Role.DIALER,
        local_address=IPv4Address("16.0.0.3"),
        peer_address=IPv4Address("16.0.0.2"),
        port=1234,
        transitions=(ProbeState.IDLE, ProbeState.CONNECTED),
    )
    prober = RecordingProber(result=expected)
    orchestrator = Orchestrator(
        sync_client=sync_client,
        address_source=StaticAddressSource(
            InstanceAddress(ip=IPv4Address("16.0.0.3"), interface="eth1")
        ),
        prober=prober,
    )

    result = asyncio.run(orchestrator.run())

    assert result.exit_code == EXIT_SUCCESS
    assert result.probe is expected
    assert prober.calls == [(Role.DIALER, IPv4Address("16.0.0.3"))]
    assert [report.status for report in service.outcomes] == [OutcomeStatus.SUCCESS]
