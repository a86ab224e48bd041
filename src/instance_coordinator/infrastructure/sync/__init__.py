"""Synchronization collector adapters."""

from instance_coordinator.infrastructure.sync.base_sync_client import (
    NETWORK_INITIALISATION_FAILED,
    NETWORK_INITIALISATION_SUCCESSFUL,
    NETWORK_INITIALIZED_STATE,
    BaseSyncClient,
)
from instance_coordinator.infrastructure.sync.http_sync_client import HttpSyncClient
from instance_coordinator.infrastructure.sync.in_memory_sync_client import (
    InMemorySyncClient,
    InMemorySyncService,
)

__all__ = [
    "BaseSyncClient",
    "HttpSyncClient",
    "InMemorySyncClient",
    "InMemorySyncService",
    "NETWORK_INITIALISATION_FAILED",
    "NETWORK_INITIALISATION_SUCCESSFUL",
    "NETWORK_INITIALIZED_STATE",
]
