import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class FeatureStatus(str, Enum):
    """Lifecycle status of a planned feature (values match the persisted document)."""

    PLANNED = "Planned"
    IN_PROGRESS = "InProgress"
    IMPLEMENTED = "Implemented"
    REVIEWED = "Reviewed"
    NEEDS_REWORK = "NeedsRework"


@dataclass
class ChatMessage:
    """One role-tagged message sent to or received from the designer LLM."""

    role: str
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass
class Feature:
    """A feature proposed by the designer LLM. `name` is its key within a session."""

    name: str
    description: str
    status: FeatureStatus = FeatureStatus.PLANNED


@dataclass
class SessionRecord:
    """State of a single game design session."""

    id: str
    initial_description: str
    chat_history: List[ChatMessage] = field(default_factory=list)
    planned_features: List[Feature] = field(default_factory=list)
    implemented_reports: Dict[str, str] = field(default_factory=dict)
    next_feature_to_implement: Optional[str] = None

    def find_feature(self, name: str) -> Feature | None:
        """Return the most recently planned feature called `name`, or None."""
        for feature in reversed(self.planned_features):
            if feature.name == name:
                return feature
        return None

    def active_feature(self) -> Feature | None:
        """Resolve `next_feature_to_implement`; None when unset or stale."""
        if self.next_feature_to_implement is None:
            return None
        return self.find_feature(self.next_feature_to_implement)

    def copy(self) -> "SessionRecord":
        return copy.deepcopy(self)
