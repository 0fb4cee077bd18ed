from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from typing import Generator, Optional
from contextlib import contextmanager
from pathlib import Path
import logging

from resourceplanner.platform.config import Settings, get_settings
from .base import StorageAdapter
from .models import Base

logger = logging.getLogger(__name__)

class SqlStorageAdapter(StorageAdapter):
    """
    SQLAlchemy-based adapter for the planning store.

    Any SQLAlchemy URL works; the default is a local SQLite file. In-memory
    SQLite shares one connection so every session sees the same database.
    """
    
    def __init__(self, config: Optional[Settings] = None, url: Optional[str] = None):
        self.config = config or get_settings()
        self.url = url or self.config.DATABASE_URL
        self._engine = None
        self._session_factory = None

    @property
    def engine(self):
        return self._engine
        
    def connect(self) -> None:
        if self._engine:
            return

        url = make_url(self.url)
        kwargs = {
            "echo": self.config.DATABASE_ECHO,
            "pool_pre_ping": self.config.DATABASE_POOL_PRE_PING,
        }
        if url.get_backend_name() == "sqlite":
            kwargs["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                kwargs["poolclass"] = StaticPool
            else:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)

        try:
            logger.info(f"Connecting to {url.get_backend_name()} store at {url.render_as_string(hide_password=True)}")
            
            self._engine = create_engine(url, **kwargs)
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
            logger.info("Planning store connection established.")
            
        except Exception as e:
            logger.error(f"Failed to connect to planning store: {e}")
            raise

    def create_schema(self) -> None:
        """Create all planning tables that do not exist yet."""
        if not self._engine:
            raise ConnectionError("Planning store is not connected. Call connect() first.")
        Base.metadata.create_all(self._engine)
        logger.info("Planning store schema ensured.")

    def close(self) -> None:
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Planning store connection closed.")

    def health_check(self) -> bool:
        if not self._engine:
            return False
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            logger.exception("planning store unhealthy")
            return False

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """
        Provide a transactional scope around a series of operations.
        """
        if not self._session_factory:
            raise ConnectionError("Planning store is not connected. Call connect() first.")
            
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
