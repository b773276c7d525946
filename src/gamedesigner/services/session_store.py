import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Dict, Protocol

from ..errors import SessionAlreadyExists
from ..models import SessionRecord
from ..settings import Settings, get_settings
from .persistence import SessionFileStore

logger = logging.getLogger(__name__)


class LockStrategy(Protocol):
    """Maps a session id to the lock that serializes work on it."""

    def lock_for(self, session_id: str) -> asyncio.Lock:
        ...


class GlobalLockStrategy:
    """One lock for the whole store: every operation on every session is serialized."""

    def __init__(self) -> None:
        self._lock = asyncio.Lock()

    def lock_for(self, session_id: str) -> asyncio.Lock:
        return self._lock


class PerSessionLockStrategy:
    """One lock per session id: unrelated sessions proceed concurrently.

    Locks are held weakly, so an id drops out once nobody holds or waits on its lock.
    """

    def __init__(self) -> None:
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def lock_for(self, session_id: str) -> asyncio.Lock:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        return lock


LOCK_STRATEGIES = {
    "global": GlobalLockStrategy,
    "per_session": PerSessionLockStrategy,
}


class LockedSession:
    """A session checked out of the store while its lock is held."""

    def __init__(self, store: "SessionStore", record: SessionRecord) -> None:
        self._store = store
        self.record = record

    async def put(self, record: SessionRecord) -> None:
        """Write `record` through to disk and cache without re-acquiring the lock."""
        if record.id != self.record.id:
            raise ValueError(
                f"Cannot store session '{record.id}' through the scope of '{self.record.id}'"
            )
        await self._store._put_unlocked(record)
        self.record = record


class SessionStore:
    """In-memory session map with write-through persistence.

    Records are cached after the first load. Every mutation is written to the
    file store before the cache is updated, so the cache never runs ahead of
    disk.
    """

    def __init__(
        self,
        files: SessionFileStore,
        lock_strategy: LockStrategy | None = None,
    ) -> None:
        self._files = files
        self._locks = lock_strategy or GlobalLockStrategy()
        self._sessions: Dict[str, SessionRecord] = {}

    @classmethod
    def open(
        cls,
        sessions_dir: Path,
        lock_strategy: LockStrategy | None = None,
    ) -> "SessionStore":
        """Initialize the storage directory and return a ready store.

        Raises StorageInitError if the directory cannot be created.
        """
        files = SessionFileStore(sessions_dir)
        files.initialize()
        return cls(files, lock_strategy)

    @property
    def files(self) -> SessionFileStore:
        return self._files

    def is_cached(self, session_id: str) -> bool:
        return session_id in self._sessions

    async def create(self, session_id: str, description: str) -> SessionRecord:
        """Create, persist and cache a fresh session. Raises SessionAlreadyExists."""
        async with self._locks.lock_for(session_id):
            await self._ensure_absent_unlocked(session_id)
            record = SessionRecord(id=session_id, initial_description=description)
            await self._put_unlocked(record)
            logger.info("Session %s created", session_id)
            return record

    async def ensure_absent(self, session_id: str) -> None:
        """Raise SessionAlreadyExists if the id is cached or on disk."""
        async with self._locks.lock_for(session_id):
            await self._ensure_absent_unlocked(session_id)

    async def get_or_load(self, session_id: str) -> SessionRecord:
        """Return the cached session, loading it from disk on a miss.

        Raises SessionNotFound when neither holds it.
        """
        async with self._locks.lock_for(session_id):
            return await self._get_or_load_unlocked(session_id)

    async def put(self, record: SessionRecord) -> None:
        async with self._locks.lock_for(record.id):
            await self._put_unlocked(record)

    @asynccontextmanager
    async def session(self, session_id: str) -> AsyncIterator[LockedSession]:
        """Hold the session's lock for the whole block and yield it."""
        async with self._locks.lock_for(session_id):
            record = await self._get_or_load_unlocked(session_id)
            yield LockedSession(self, record)

    async def _ensure_absent_unlocked(self, session_id: str) -> None:
        if session_id in self._sessions or await self._files.exists(session_id):
            raise SessionAlreadyExists(session_id)

    async def _get_or_load_unlocked(self, session_id: str) -> SessionRecord:
        cached = self._sessions.get(session_id)
        if cached is not None:
            return cached
        record = await self._files.read(session_id)
        self._sessions[session_id] = record
        logger.debug("Session %s loaded from disk", session_id)
        return record

    async def _put_unlocked(self, record: SessionRecord) -> None:
        await self._files.write(record.id, record)
        self._sessions[record.id] = record


def get_session_store(settings: Settings | None = None) -> SessionStore:
    """Build a SessionStore from settings (creates the sessions directory)."""
    settings = settings or get_settings()
    strategy = LOCK_STRATEGIES[settings.lock_strategy]()
    return SessionStore.open(settings.sessions_dir, strategy)
