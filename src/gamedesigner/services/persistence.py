import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from ..errors import (
    InvalidSessionId,
    PersistenceError,
    SessionNotFound,
    StorageInitError,
)
from ..models import ChatMessage, Feature, FeatureStatus, SessionRecord

logger = logging.getLogger(__name__)

SESSION_FILE_SUFFIX = ".json"


def session_to_dict(record: SessionRecord) -> Dict[str, Any]:
    """Serialize SessionRecord to the persisted JSON document shape."""
    return {
        "id": record.id,
        "initial_description": record.initial_description,
        "llm_chat_history": [m.to_dict() for m in record.chat_history],
        "planned_features": [
            {
                "name": f.name,
                "description": f.description,
                "status": f.status.value,
            }
            for f in record.planned_features
        ],
        "implemented_features_reports": dict(record.implemented_reports),
        "next_feature_to_implement": record.next_feature_to_implement,
    }


def session_from_dict(data: Dict[str, Any]) -> SessionRecord:
    """Build SessionRecord from a persisted document.

    Raises KeyError, TypeError or ValueError when the document is not shaped
    like one written by `session_to_dict`.
    """
    return SessionRecord(
        id=data["id"],
        initial_description=data["initial_description"],
        chat_history=[
            ChatMessage(role=m["role"], content=m["content"])
            for m in data.get("llm_chat_history", [])
        ],
        planned_features=[
            Feature(
                name=f["name"],
                description=f["description"],
                status=FeatureStatus(f["status"]),
            )
            for f in data.get("planned_features", [])
        ],
        implemented_reports=dict(data.get("implemented_features_reports", {})),
        next_feature_to_implement=data.get("next_feature_to_implement"),
    )


class SessionFileStore:
    """Durable session storage: one JSON document per session in a directory."""

    def __init__(self, root: Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def initialize(self) -> None:
        """Create the storage directory. Raises StorageInitError on failure."""
        try:
            self._root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageInitError(
                f"Cannot create session storage directory {self._root}: {e}"
            ) from e
        if not os.access(self._root, os.W_OK):
            raise StorageInitError(
                f"Session storage directory {self._root} is not writable"
            )
        logger.info("Session storage ready at %s", self._root.resolve())

    def path_for(self, session_id: str) -> Path:
        if (
            not session_id
            or session_id in (".", "..")
            or "/" in session_id
            or "\\" in session_id
            or "\x00" in session_id
        ):
            raise InvalidSessionId(session_id)
        return self._root / f"{session_id}{SESSION_FILE_SUFFIX}"

    async def exists(self, session_id: str) -> bool:
        path = self.path_for(session_id)
        return await asyncio.to_thread(path.is_file)

    async def read(self, session_id: str) -> SessionRecord:
        """Load a session. Raises SessionNotFound or PersistenceError."""
        path = self.path_for(session_id)
        try:
            raw = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except FileNotFoundError:
            raise SessionNotFound(session_id) from None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"Failed to read session '{session_id}' from {path}: {e}",
                session_id=session_id,
            ) from e
        try:
            record = session_from_dict(json.loads(raw))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise PersistenceError(
                f"Invalid session document for '{session_id}' at {path}: {e}",
                session_id=session_id,
            ) from e
        if record.id != session_id:
            raise PersistenceError(
                f"Session document at {path} has id '{record.id}', expected '{session_id}'",
                session_id=session_id,
            )
        return record

    async def write(self, session_id: str, record: SessionRecord) -> None:
        """Persist a session atomically. Raises PersistenceError on I/O failure."""
        path = self.path_for(session_id)
        payload = json.dumps(session_to_dict(record), indent=2, ensure_ascii=False)
        try:
            await asyncio.to_thread(self._write_atomic, path, payload)
        except OSError as e:
            raise PersistenceError(
                f"Failed to write session '{session_id}' to {path}: {e}",
                session_id=session_id,
            ) from e
        logger.debug("Session %s written to %s", session_id, path)

    def _write_atomic(self, path: Path, payload: str) -> None:
        fd, tmp_name = tempfile.mkstemp(
            dir=self._root, prefix=f".{path.stem}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except OSError:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
