"""Errors raised by the game design session store and workflow."""


class GameDesignerError(Exception):
    """Base class for every error surfaced to tool callers."""

    def __init__(
        self,
        message: str,
        *,
        session_id: str | None = None,
        feature_name: str | None = None,
    ) -> None:
        super().__init__(message)
        self.session_id = session_id
        self.feature_name = feature_name


class SessionAlreadyExists(GameDesignerError):
    """A session with this id is already cached or persisted."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session '{session_id}' already exists.", session_id=session_id)


class InvalidSessionId(GameDesignerError):
    """The id cannot be used as a session file name."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Invalid session id: {session_id!r}", session_id=session_id)


class NotFoundError(GameDesignerError):
    pass


class SessionNotFound(NotFoundError):
    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session '{session_id}' not found.", session_id=session_id)


class FeatureNotFound(NotFoundError):
    def __init__(self, session_id: str, feature_name: str) -> None:
        super().__init__(
            f"Feature '{feature_name}' not found in session '{session_id}'.",
            session_id=session_id,
            feature_name=feature_name,
        )


class InvalidStateTransition(GameDesignerError):
    pass


class LlmUnavailable(GameDesignerError):
    """No language model client is configured."""

    def __init__(self, session_id: str | None = None) -> None:
        super().__init__(
            "No LLM client available. Set OPENROUTER_API_KEY to enable the designer LLM.",
            session_id=session_id,
        )


class LlmRequestFailed(GameDesignerError):
    """Transport failure or non-success response from the chat completion API."""


class LlmResponseMalformed(GameDesignerError):
    """The LLM reply could not be parsed into the expected structure."""

    def __init__(
        self,
        reason: str,
        raw: str,
        *,
        session_id: str | None = None,
    ) -> None:
        super().__init__(
            f"Malformed LLM response ({reason}). Raw response:\n{raw}",
            session_id=session_id,
        )
        self.reason = reason
        self.raw = raw


class PersistenceError(GameDesignerError):
    """Reading or writing the durable session store failed."""


class StorageInitError(PersistenceError):
    """The session storage directory could not be created."""
