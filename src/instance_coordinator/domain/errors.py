"""Domain exceptions for instance coordination."""


class CoordinatorError(Exception):
    """Base class for coordination and probe errors."""


class AddressResolutionError(CoordinatorError):
    """Raised when the instance address cannot be read from its interface."""


class RoleResolutionError(CoordinatorError):
    """Raised when an address does not map to a usable role."""

    def __init__(self, message: str = "unexpected address") -> None:
        super().__init__(message)


class BindError(CoordinatorError):
    """Raised when the listening socket cannot be created."""


class AcceptTimeoutError(CoordinatorError):
    """Raised when no peer connects before the accept deadline."""


class DialError(CoordinatorError):
    """Raised when the connection attempt to the listener fails."""


class CoordinationError(CoordinatorError):
    """Raised when a signal, barrier, or report call to the collector fails."""


class OutcomeReportError(CoordinationError):
    """Raised when the terminal outcome could not be reported."""


__all__ = [
    "AcceptTimeoutError",
    "AddressResolutionError",
    "BindError",
    "CoordinationError",
    "CoordinatorError",
    "DialError",
    "OutcomeReportError",
    "RoleResolutionError",
]
