import logging
from typing import Sequence

from ..errors import (
    FeatureNotFound,
    InvalidStateTransition,
    LlmRequestFailed,
    LlmResponseMalformed,
    LlmUnavailable,
)
from ..models import ChatMessage, Feature, FeatureStatus, SessionRecord
from ..services.llm_client import LanguageModelClient, build_llm_client
from ..services.session_store import SessionStore, get_session_store
from ..settings import Settings, get_settings
from .parser import (
    ParseError,
    Satisfied,
    parse_feature_proposal,
    parse_review_verdict,
)
from .prompts import (
    build_design_document_messages,
    build_next_feature_messages,
    build_question_messages,
    build_review_messages,
    build_review_reply_messages,
)

logger = logging.getLogger(__name__)


class WorkflowCoordinator:
    """Drives the feature lifecycle of design sessions through the designer LLM.

    Every lifecycle operation and `ask_question` runs inside the store's
    session scope, so the lock is held across the LLM round trip. State
    changes are made on a copy of the session and written through only once
    every fallible step has succeeded.
    """

    def __init__(
        self,
        store: SessionStore,
        llm: LanguageModelClient | None,
        settings: Settings | None = None,
    ) -> None:
        self._store = store
        self._llm = llm
        self._settings = settings or get_settings()

    def _require_llm(self, session_id: str) -> LanguageModelClient:
        if self._llm is None:
            raise LlmUnavailable(session_id)
        return self._llm

    async def _complete(
        self,
        session_id: str,
        messages: Sequence[ChatMessage],
        feature_name: str | None = None,
    ) -> str:
        llm = self._require_llm(session_id)
        try:
            return await llm.complete(messages)
        except LlmRequestFailed as e:
            logger.error("Session %s: LLM request failed: %s", session_id, e)
            raise LlmRequestFailed(
                str(e), session_id=session_id, feature_name=feature_name
            ) from e

    async def create_session(self, session_id: str, description: str) -> str:
        """Create a session, expanding the brief into a design document when possible.

        The expansion runs without the store lock; `create` re-checks uniqueness.
        """
        await self._store.ensure_absent(session_id)

        initial_description = description
        if self._settings.expand_design_document:
            if self._llm is None:
                logger.warning("No LLM client available. Using original description.")
            else:
                try:
                    initial_description = await self._llm.complete(
                        build_design_document_messages(self._settings, description)
                    )
                except LlmRequestFailed as e:
                    logger.warning(
                        "Failed to get comprehensive description from LLM: %s. "
                        "Using original description.",
                        e,
                    )
                    initial_description = description

        await self._store.create(session_id, initial_description)
        return f"Session '{session_id}' created successfully with comprehensive game design."

    async def design_overview(self, session_id: str) -> str:
        record = await self._store.get_or_load(session_id)
        return record.initial_description

    async def request_next_feature(self, session_id: str) -> str:
        """Return the checked-out feature's description, asking the LLM for a new one if none."""
        async with self._store.session(session_id) as scope:
            record = scope.record
            active = record.active_feature()
            if active is not None:
                logger.info(
                    "Session %s: returning checked-out feature '%s'", session_id, active.name
                )
                return active.description

            raw = await self._complete(
                session_id, build_next_feature_messages(self._settings, record)
            )
            proposal = parse_feature_proposal(raw)
            if isinstance(proposal, ParseError):
                logger.error(
                    "Session %s: unparsable feature proposal (%s)", session_id, proposal.reason
                )
                raise LlmResponseMalformed(proposal.reason, proposal.raw, session_id=session_id)

            if record.find_feature(proposal.name) is not None:
                logger.warning(
                    "Session %s: LLM proposed duplicate feature name '%s'; appending anyway",
                    session_id,
                    proposal.name,
                )

            updated = record.copy()
            updated.planned_features.append(
                Feature(name=proposal.name, description=proposal.description)
            )
            updated.next_feature_to_implement = proposal.name
            await scope.put(updated)
            logger.info("Session %s: planned feature '%s'", session_id, proposal.name)
            return proposal.description

    def _checked_out_feature(self, record: SessionRecord) -> str:
        name = record.next_feature_to_implement
        if name is None:
            raise InvalidStateTransition(
                f"Session '{record.id}' has no feature checked out. Call nextFeature first.",
                session_id=record.id,
            )
        if record.find_feature(name) is None:
            raise FeatureNotFound(record.id, name)
        return name

    async def submit_feature_review(self, session_id: str, report: str) -> str:
        """Submit an implementation report for the checked-out feature.

        Returns the reviewer's raw reply.
        """
        async with self._store.session(session_id) as scope:
            record = scope.record
            name = self._checked_out_feature(record)
            feature = record.find_feature(name)

            raw = await self._complete(
                session_id,
                build_review_messages(self._settings, record, feature, report),
                feature_name=name,
            )
            verdict = parse_review_verdict(raw)

            updated = record.copy()
            updated.implemented_reports[name] = report
            self._apply_verdict(updated, name, isinstance(verdict, Satisfied))
            await scope.put(updated)
            return raw

    async def submit_review_reply(self, session_id: str, reply: str) -> str:
        """Answer the reviewer's feedback on a feature that needs rework.

        Returns the reviewer's raw reply. The stored report is left as is.
        """
        async with self._store.session(session_id) as scope:
            record = scope.record
            name = self._checked_out_feature(record)
            feature = record.find_feature(name)
            if feature.status != FeatureStatus.NEEDS_REWORK:
                raise InvalidStateTransition(
                    f"Feature '{name}' in session '{session_id}' is {feature.status.value}, "
                    f"not {FeatureStatus.NEEDS_REWORK.value}; there is no review to reply to.",
                    session_id=session_id,
                    feature_name=name,
                )
            previous_report = record.implemented_reports.get(name)
            if previous_report is None:
                raise InvalidStateTransition(
                    f"Feature '{name}' in session '{session_id}' has no report to reply about.",
                    session_id=session_id,
                    feature_name=name,
                )
            raw = await self._complete(
                session_id,
                build_review_reply_messages(
                    self._settings, record, feature, previous_report, reply
                ),
                feature_name=name,
            )
            verdict = parse_review_verdict(raw)

            updated = record.copy()
            self._apply_verdict(updated, name, isinstance(verdict, Satisfied))
            await scope.put(updated)
            return raw

    async def ask_question(self, session_id: str, question: str) -> str:
        """Answer an ad-hoc question about the design. Nothing is persisted."""
        async with self._store.session(session_id) as scope:
            return await self._complete(
                session_id, build_question_messages(self._settings, scope.record, question)
            )

    @staticmethod
    def _apply_verdict(record: SessionRecord, name: str, satisfied: bool) -> None:
        feature = record.find_feature(name)
        if satisfied:
            feature.status = FeatureStatus.REVIEWED
            record.next_feature_to_implement = None
        else:
            feature.status = FeatureStatus.NEEDS_REWORK
        logger.info(
            "Session %s: feature '%s' -> %s", record.id, name, feature.status.value
        )


def build_coordinator(settings: Settings | None = None) -> WorkflowCoordinator:
    """Wire store and LLM client from settings. Raises StorageInitError."""
    settings = settings or get_settings()
    return WorkflowCoordinator(
        store=get_session_store(settings),
        llm=build_llm_client(settings),
        settings=settings,
    )


_COORDINATOR: WorkflowCoordinator | None = None


def get_coordinator() -> WorkflowCoordinator:
    """Return the process-wide coordinator, building it on first use."""
    global _COORDINATOR
    if _COORDINATOR is None:
        _COORDINATOR = build_coordinator()
    return _COORDINATOR
