"""Role coordination and connectivity probing for distributed test instances."""

__version__ = "0.1.0"

__all__ = ["__version__"]
