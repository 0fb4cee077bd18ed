import pytest
from pathlib import Path
from unittest.mock import patch, MagicMock
from sqlalchemy.pool import StaticPool

from resourceplanner.platform.config import Settings
from resourceplanner.storage.sql_adapter import SqlStorageAdapter


@pytest.fixture
def mock_engine():
    with patch("resourceplanner.storage.sql_adapter.create_engine") as mock:
        yield mock


def test_url_defaults_to_config():
    config = Settings(DATABASE_URL="sqlite:///data/test.db")
    assert SqlStorageAdapter(config).url == "sqlite:///data/test.db"
    assert SqlStorageAdapter(config, url="sqlite://").url == "sqlite://"


def test_in_memory_sqlite_shares_one_connection(mock_engine):
    adapter = SqlStorageAdapter(Settings(), url="sqlite://")
    adapter.connect()

    mock_engine.assert_called_once()
    _, kwargs = mock_engine.call_args
    assert kwargs["poolclass"] is StaticPool
    assert kwargs["connect_args"] == {"check_same_thread": False}


def test_file_sqlite_creates_parent_directory(mock_engine, test_data_dir):
    adapter = SqlStorageAdapter(Settings(), url=f"sqlite:///{test_data_dir}/nested/planner.db")
    adapter.connect()

    _, kwargs = mock_engine.call_args
    assert "poolclass" not in kwargs
    assert (Path(test_data_dir) / "nested").is_dir()


def test_connect_is_idempotent(mock_engine):
    adapter = SqlStorageAdapter(Settings(), url="sqlite://")
    adapter.connect()
    adapter.connect()
    mock_engine.assert_called_once()


def test_session_commits_on_success(mock_engine):
    """Verify session context manager commits on success."""
    adapter = SqlStorageAdapter(Settings(), url="sqlite://")
    adapter.connect()

    mock_session = MagicMock()
    adapter._session_factory = MagicMock(return_value=mock_session)

    with adapter.get_session() as session:
        session.add(MagicMock())

    mock_session.commit.assert_called_once()
    mock_session.close.assert_called_once()


def test_session_rolls_back_on_error(mock_engine):
    """Verify session rolls back on error."""
    adapter = SqlStorageAdapter(Settings(), url="sqlite://")
    adapter.connect()

    mock_session = MagicMock()
    adapter._session_factory = MagicMock(return_value=mock_session)

    with pytest.raises(ValueError):
        with adapter.get_session():
            raise ValueError("boom")

    mock_session.rollback.assert_called_once()
    mock_session.commit.assert_not_called()
    mock_session.close.assert_called_once()


def test_session_requires_connection():
    adapter = SqlStorageAdapter(Settings(), url="sqlite://")
    with pytest.raises(ConnectionError):
        with adapter.get_session():
            pass


def test_health_check_without_engine():
    assert SqlStorageAdapter(Settings(), url="sqlite://").health_check() is False
