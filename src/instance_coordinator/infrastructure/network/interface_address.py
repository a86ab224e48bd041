"""Instance address sources."""

from __future__ import annotations

import fcntl
import socket
import struct
from ipaddress import IPv4Address

from instance_coordinator.domain.errors import AddressResolutionError
from instance_coordinator.domain.models import InstanceAddress
from instance_coordinator.domain.ports import AddressSource

# linux/sockios.h
_SIOCGIFADDR = 0x8915
_IFNAMSIZ = 16


class InterfaceAddressSource(AddressSource):
    """Reads the IPv4 address bound to a network interface."""

    def __init__(self, interface: str) -> None:
        if not interface.strip():
            raise ValueError("interface cannot be empty.")
        self._interface = interface.strip()

    def read(self) -> InstanceAddress:
        name = self._interface.encode()
        if len(name) >= _IFNAMSIZ:
            raise AddressResolutionError(f"Interface name '{self._interface}' is too long.")
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
                ifreq = fcntl.ioctl(sock.fileno(), _SIOCGIFADDR, struct.pack("256s", name))
        except OSError as exc:
            raise AddressResolutionError(
                f"No IPv4 address on interface '{self._interface}': {exc}"
            ) from exc
        # struct ifreq: 16-byte name, then sockaddr_in (family, port, addr).
        return InstanceAddress(ip=IPv4Address(ifreq[20:24]), interface=self._interface)


class StaticAddressSource(AddressSource):
    """Returns a preconfigured address."""

    def __init__(self, address: InstanceAddress) -> None:
        self._address = address

    def read(self) -> InstanceAddress:
        return self._address


__all__ = ["InterfaceAddressSource", "StaticAddressSource"]
