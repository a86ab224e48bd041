"""Application bootstrap/wiring."""

import logging

from instance_coordinator.application import Orchestrator
from instance_coordinator.config import Settings, SyncBackend
from instance_coordinator.domain.models import InstanceAddress
from instance_coordinator.domain.ports import AddressSource
from instance_coordinator.infrastructure.network import (
    ConnectivityProber,
    InterfaceAddressSource,
    StaticAddressSource,
)
from instance_coordinator.infrastructure.sync import (
    BaseSyncClient,
    HttpSyncClient,
    InMemorySyncService,
)

logger = logging.getLogger(__name__)


def build_sync_client(
    settings: Settings,
    in_memory_service: InMemorySyncService | None = None,
) -> BaseSyncClient:
    """Open this instance's collector session for the configured backend."""

    if settings.sync_backend == SyncBackend.IN_MEMORY:
        service = in_memory_service or InMemorySyncService()
        return service.client(
            run_params=settings.run_params,
            instance_id=settings.instance_id,
            barrier_timeout_seconds=settings.barrier_timeout_seconds,
            sidecar_enabled=settings.test_sidecar,
        )

    if settings.sync_service_url is None:
        raise ValueError("COORD_SYNC_SERVICE_URL is required when COORD_SYNC_BACKEND=http.")
    return HttpSyncClient(
        base_url=settings.sync_service_url,
        run_params=settings.run_params,
        instance_id=settings.instance_id,
        request_timeout_seconds=settings.sync_request_timeout_seconds,
        barrier_timeout_seconds=settings.barrier_timeout_seconds,
        barrier_poll_seconds=settings.barrier_poll_seconds,
        sidecar_enabled=settings.test_sidecar,
    )


def build_address_source(settings: Settings) -> AddressSource:
    if settings.instance_address is not None:
        logger.info(
            "Using configured instance address %s instead of interface discovery.",
            settings.instance_address,
        )
        return StaticAddressSource(
            InstanceAddress(ip=settings.instance_address, interface=settings.data_interface)
        )
    return InterfaceAddressSource(settings.data_interface)


def build_orchestrator(settings: Settings, sync_client: BaseSyncClient) -> Orchestrator:
    """Compose the instance protocol around an open collector session."""

    convention = settings.role_convention
    return Orchestrator(
        sync_client=sync_client,
        address_source=build_address_source(settings),
        prober=ConnectivityProber(
            sync_client=sync_client,
            convention=convention,
            port=settings.listening_port,
            accept_timeout_seconds=settings.accept_timeout_seconds,
            dial_timeout_seconds=settings.dial_timeout_seconds,
        ),
        convention=convention,
    )


__all__ = ["build_address_source", "build_orchestrator", "build_sync_client"]
