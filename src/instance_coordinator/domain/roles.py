"""Role tags and the address-encodes-role convention."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from ipaddress import IPv4Address
from types import MappingProxyType


class Role(StrEnum):
    """Behavioral branch an instance takes."""

    LISTENER = "listener"
    DIALER = "dialer"
    INVALID = "invalid"


DEFAULT_ROLE_OCTET_INDEX = 3
DEFAULT_ROLE_OCTETS: Mapping[int, Role] = MappingProxyType(
    {2: Role.LISTENER, 3: Role.DIALER}
)


@dataclass(slots=True, frozen=True)
class RoleConvention:
    """Maps one octet of the instance address to a role."""

    octet_index: int = DEFAULT_ROLE_OCTET_INDEX
    roles: Mapping[int, Role] = field(default_factory=lambda: DEFAULT_ROLE_OCTETS)

    def __post_init__(self) -> None:
        if not 0 <= self.octet_index <= 3:
            raise ValueError("octet_index must be between 0 and 3.")
        for value, role in self.roles.items():
            if not 0 <= value <= 255:
                raise ValueError(f"Octet value {value} is outside 0..255.")
            if role is Role.INVALID:
                raise ValueError("The invalid role cannot be mapped to an octet value.")
        listeners = [value for value, role in self.roles.items() if role is Role.LISTENER]
        if len(listeners) != 1:
            raise ValueError("Exactly one octet value must map to the listener role.")
        object.__setattr__(self, "roles", MappingProxyType(dict(self.roles)))

    @property
    def listener_octet(self) -> int:
        """Octet value that marks the listener."""

        return next(value for value, role in self.roles.items() if role is Role.LISTENER)

    def resolve(self, address: IPv4Address) -> Role:
        """Return the role encoded in `address`; unknown values map to INVALID."""

        octet = address.packed[self.octet_index]
        return self.roles.get(octet, Role.INVALID)

    def peer_address(self, address: IPv4Address) -> IPv4Address:
        """Return `address` with its role octet forced to the listener value."""

        octets = bytearray(address.packed)
        octets[self.octet_index] = self.listener_octet
        return IPv4Address(bytes(octets))


def resolve_role(address: IPv4Address, convention: RoleConvention | None = None) -> Role:
    """Resolve a role using `convention`, or the default `.2`/`.3` convention."""

    return (convention or RoleConvention()).resolve(address)


__all__ = [
    "DEFAULT_ROLE_OCTETS",
    "DEFAULT_ROLE_OCTET_INDEX",
    "Role",
    "RoleConvention",
    "resolve_role",
]
