from typing import List

from ..models import ChatMessage, Feature, SessionRecord
from ..settings import Settings

DESIGN_DOCUMENT_TEMPLATE = (
    "Create a comprehensive game design document for a game with this "
    "description: '{description}'.\n"
    "Include the following sections:\n"
    "1. Core Concept: A brief summary of the game's main idea\n"
    "2. Gameplay Mechanics: Key gameplay systems and interactions\n"
    "3. Story and Setting: The narrative context and world\n"
    "4. Target Audience: Who the game is designed for\n"
    "5. Unique Features: What makes this game stand out\n"
    "6. Technical Considerations: Any important technical aspects\n"
    "7. Development Milestones: Major phases of development\n\n"
    "Provide detailed but concise information for each section."
)


def _features_section(features: List[Feature]) -> str:
    if not features:
        return "(none yet)"
    return "\n".join(f"- {f.name} [{f.status.value}]: {f.description}" for f in features)


def _reports_section(record: SessionRecord) -> str:
    if not record.implemented_reports:
        return "(none yet)"
    return "\n\n".join(
        f"### {name}\n{report}" for name, report in record.implemented_reports.items()
    )


def build_design_document_messages(
    settings: Settings, description: str
) -> List[ChatMessage]:
    return [
        ChatMessage("system", settings.design_document_system_prompt),
        ChatMessage("user", DESIGN_DOCUMENT_TEMPLATE.format(description=description)),
    ]


def build_next_feature_messages(
    settings: Settings, record: SessionRecord
) -> List[ChatMessage]:
    """Planner prompt: design, every planned feature with status, every report."""
    user = (
        f"## Game design\n{record.initial_description}\n\n"
        f"## Planned features\n{_features_section(record.planned_features)}\n\n"
        f"## Implementation reports\n{_reports_section(record)}\n\n"
        'Propose the next feature as a JSON object {"name": ..., "description": ...}.'
    )
    return [
        ChatMessage("system", settings.feature_planner_system_prompt),
        ChatMessage("user", user),
    ]


def build_review_messages(
    settings: Settings,
    record: SessionRecord,
    feature: Feature,
    report: str,
) -> List[ChatMessage]:
    user = (
        f"## Game design\n{record.initial_description}\n\n"
        f"## Feature: {feature.name}\n{feature.description}\n\n"
        f"## Implementation report\n{report}\n\n"
        "Reply SATISFIED if the feature is complete, otherwise give feedback or questions."
    )
    return [
        ChatMessage("system", settings.reviewer_system_prompt),
        ChatMessage("user", user),
    ]


def build_review_reply_messages(
    settings: Settings,
    record: SessionRecord,
    feature: Feature,
    previous_report: str,
    reply: str,
) -> List[ChatMessage]:
    user = (
        f"## Game design\n{record.initial_description}\n\n"
        f"## Feature: {feature.name}\n{feature.description}\n\n"
        f"## Implementation report\n{previous_report}\n\n"
        "## Developer reply to your review feedback\n"
        f"{reply}\n\n"
        "Reply SATISFIED if the feature is now complete, otherwise give further "
        "feedback or questions."
    )
    return [
        ChatMessage("system", settings.reviewer_system_prompt),
        ChatMessage("user", user),
    ]


def build_question_messages(
    settings: Settings, record: SessionRecord, question: str
) -> List[ChatMessage]:
    parts = [
        f"## Game design\n{record.initial_description}",
        f"## Planned features\n{_features_section(record.planned_features)}",
    ]
    active = record.active_feature()
    if active is not None:
        parts.append(f"## Feature currently in progress: {active.name}\n{active.description}")
    parts.append(f"## Question\n{question}")
    return [
        ChatMessage("system", settings.advisor_system_prompt),
        ChatMessage("user", "\n\n".join(parts)),
    ]
