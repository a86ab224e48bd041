"""Network adapters: address discovery and the connectivity probe."""

from instance_coordinator.infrastructure.network.connectivity_prober import (
    DEFAULT_LISTENING_PORT,
    LISTENING_STATE,
    ConnectivityProber,
)
from instance_coordinator.infrastructure.network.interface_address import (
    InterfaceAddressSource,
    StaticAddressSource,
)

__all__ = [
    "ConnectivityProber",
    "DEFAULT_LISTENING_PORT",
    "InterfaceAddressSource",
    "LISTENING_STATE",
    "StaticAddressSource",
]
