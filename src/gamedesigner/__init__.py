"""Game Designer: LLM-guided, feature-by-feature game design sessions served over MCP."""

from .models import ChatMessage, Feature, FeatureStatus, SessionRecord
from .workflow import WorkflowCoordinator, build_coordinator, get_coordinator

__version__ = "0.1.0"

__all__ = [
    "ChatMessage",
    "Feature",
    "FeatureStatus",
    "SessionRecord",
    "WorkflowCoordinator",
    "build_coordinator",
    "get_coordinator",
]
