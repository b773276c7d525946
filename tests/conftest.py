import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

_root = Path(__file__).resolve().parents[1]
_src = _root / "src"
if _src.exists() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from gamedesigner.services.session_store import SessionStore  # noqa: E402
from gamedesigner.settings import Settings  # noqa: E402
from gamedesigner.workflow.coordinator import WorkflowCoordinator  # noqa: E402


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings isolated from the environment's .env, storing sessions under tmp_path."""
    return Settings(
        _env_file=None,
        sessions_dir=tmp_path / "sessions",
        log_dir=tmp_path / "logs",
        expand_design_document=False,
    )


@pytest.fixture
def store(settings: Settings) -> SessionStore:
    return SessionStore.open(settings.sessions_dir)


@pytest.fixture
def llm() -> MagicMock:
    """Stub language model client; set `llm.complete.return_value` per test."""
    m = MagicMock()
    m.complete = AsyncMock(return_value="")
    return m


@pytest.fixture
def coordinator(store: SessionStore, llm: MagicMock, settings: Settings) -> WorkflowCoordinator:
    return WorkflowCoordinator(store=store, llm=llm, settings=settings)
