"""Application layer."""

from instance_coordinator.application.orchestrator import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    Orchestrator,
    RunResult,
)

__all__ = ["EXIT_FAILURE", "EXIT_SUCCESS", "Orchestrator", "RunResult"]
