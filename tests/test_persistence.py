import json
from pathlib import Path

import pytest

from gamedesigner.errors import (
    InvalidSessionId,
    PersistenceError,
    SessionNotFound,
    StorageInitError,
)
from gamedesigner.models import ChatMessage, Feature, FeatureStatus, SessionRecord
from gamedesigner.services.persistence import (
    SessionFileStore,
    session_from_dict,
    session_to_dict,
)


@pytest.fixture
def files(tmp_path: Path) -> SessionFileStore:
    fs = SessionFileStore(tmp_path / "sessions")
    fs.initialize()
    return fs


def _full_record() -> SessionRecord:
    return SessionRecord(
        id="s1",
        initial_description="A 2D platformer about cats in space",
        chat_history=[
            ChatMessage("system", "You are a designer"),
            ChatMessage("user", "hi"),
            ChatMessage("assistant", "hello"),
        ],
        planned_features=[
            Feature("Jump", "Implement jump", FeatureStatus.REVIEWED),
            Feature("Dash", "Implement dash", FeatureStatus.NEEDS_REWORK),
            Feature("Swim", "Implement swimming", FeatureStatus.PLANNED),
            Feature("Fly", "Implement flight", FeatureStatus.IN_PROGRESS),
            Feature("Climb", "Implement climbing", FeatureStatus.IMPLEMENTED),
        ],
        implemented_reports={"Jump": "done", "Dash": "partial"},
        next_feature_to_implement="Dash",
    )


def test_initialize_creates_nested_directory(tmp_path: Path) -> None:
    """initialize creates the root directory and its parents."""
    root = tmp_path / "a" / "b" / "sessions"
    SessionFileStore(root).initialize()
    assert root.is_dir()


def test_initialize_fails_with_storage_init_error(tmp_path: Path) -> None:
    """initialize reports an error instead of crashing when the path is unusable."""
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(StorageInitError):
        SessionFileStore(blocker / "sessions").initialize()


@pytest.mark.parametrize("bad_id", ["", ".", "..", "../escape", "a/b", "a\\b"])
def test_path_for_rejects_unsafe_ids(files: SessionFileStore, bad_id: str) -> None:
    with pytest.raises(InvalidSessionId):
        files.path_for(bad_id)


def test_path_for_uses_json_file_named_by_id(files: SessionFileStore) -> None:
    assert files.path_for("my_game") == files.root / "my_game.json"


@pytest.mark.asyncio
async def test_write_then_read_round_trips_every_field(files: SessionFileStore) -> None:
    """A written record reads back equal in all fields."""
    record = _full_record()
    await files.write(record.id, record)
    loaded = await files.read(record.id)
    assert loaded == record
    assert loaded is not record


@pytest.mark.asyncio
async def test_empty_collections_are_written(files: SessionFileStore) -> None:
    """A fresh record keeps every key in the document, including empty ones."""
    record = SessionRecord(id="empty", initial_description="D")
    await files.write(record.id, record)
    doc = json.loads(files.path_for("empty").read_text(encoding="utf-8"))
    assert doc == {
        "id": "empty",
        "initial_description": "D",
        "llm_chat_history": [],
        "planned_features": [],
        "implemented_features_reports": {},
        "next_feature_to_implement": None,
    }


@pytest.mark.asyncio
async def test_document_uses_persisted_field_names(files: SessionFileStore) -> None:
    record = _full_record()
    await files.write(record.id, record)
    doc = json.loads(files.path_for("s1").read_text(encoding="utf-8"))
    assert doc["planned_features"][1] == {
        "name": "Dash",
        "description": "Implement dash",
        "status": "NeedsRework",
    }
    assert doc["implemented_features_reports"] == {"Jump": "done", "Dash": "partial"}
    assert doc["llm_chat_history"][0] == {"role": "system", "content": "You are a designer"}
    assert doc["next_feature_to_implement"] == "Dash"


@pytest.mark.asyncio
async def test_exists(files: SessionFileStore) -> None:
    assert await files.exists("s1") is False
    await files.write("s1", _full_record())
    assert await files.exists("s1") is True


@pytest.mark.asyncio
async def test_read_missing_raises_not_found(files: SessionFileStore) -> None:
    with pytest.raises(SessionNotFound) as exc:
        await files.read("nope")
    assert exc.value.session_id == "nope"


@pytest.mark.asyncio
async def test_read_invalid_json_raises_persistence_error(files: SessionFileStore) -> None:
    files.path_for("broken").write_text("not json", encoding="utf-8")
    with pytest.raises(PersistenceError) as exc:
        await files.read("broken")
    assert "broken" in str(exc.value)


@pytest.mark.asyncio
async def test_read_unknown_status_raises_persistence_error(files: SessionFileStore) -> None:
    doc = session_to_dict(_full_record())
    doc["planned_features"][0]["status"] = "Shipped"
    files.path_for("s1").write_text(json.dumps(doc), encoding="utf-8")
    with pytest.raises(PersistenceError):
        await files.read("s1")


@pytest.mark.asyncio
async def test_read_non_utf8_raises_persistence_error(files: SessionFileStore) -> None:
    """Bytes that are not UTF-8 surface as a PersistenceError for that session."""
    files.path_for("bad").write_bytes(b'{"id": "\xff\xfe"}')
    with pytest.raises(PersistenceError) as exc:
        await files.read("bad")
    assert exc.value.session_id == "bad"


@pytest.mark.asyncio
async def test_read_rejects_document_for_another_id(files: SessionFileStore) -> None:
    """A file whose document names a different session is not loaded."""
    doc = session_to_dict(SessionRecord(id="s2", initial_description="D"))
    files.path_for("s1").write_text(json.dumps(doc), encoding="utf-8")
    with pytest.raises(PersistenceError) as exc:
        await files.read("s1")
    assert exc.value.session_id == "s1"
    assert "'s2'" in str(exc.value)


@pytest.mark.asyncio
async def test_write_failure_raises_persistence_error(tmp_path: Path) -> None:
    """Writing after the directory disappeared surfaces a PersistenceError."""
    root = tmp_path / "sessions"
    fs = SessionFileStore(root)
    fs.initialize()
    root.rmdir()
    with pytest.raises(PersistenceError) as exc:
        await fs.write("s1", _full_record())
    assert exc.value.session_id == "s1"


@pytest.mark.asyncio
async def test_write_leaves_no_temp_files(files: SessionFileStore) -> None:
    await files.write("s1", _full_record())
    await files.write("s1", _full_record())
    assert sorted(p.name for p in files.root.iterdir()) == ["s1.json"]


def test_session_from_dict_requires_id() -> None:
    with pytest.raises(KeyError):
        session_from_dict({"initial_description": "D"})
