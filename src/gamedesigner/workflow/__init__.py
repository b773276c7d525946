"""Feature lifecycle workflow: prompts, reply parsing and the coordinator service."""

from .coordinator import WorkflowCoordinator, build_coordinator, get_coordinator

__all__ = [
    "WorkflowCoordinator",
    "build_coordinator",
    "get_coordinator",
]
