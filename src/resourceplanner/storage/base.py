from abc import ABC, abstractmethod
from typing import ContextManager
from sqlalchemy.orm import Session

class StorageAdapter(ABC):
    """
    Where planning snapshots are loaded from and mutation results persisted to.

    The engine never talks to an adapter; callers open a session, load a
    snapshot, run the engine and hand the result back inside the same session.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the engine / connection pool. Idempotent."""

    @abstractmethod
    def create_schema(self) -> None:
        """Create the planning tables if they are missing."""

    @abstractmethod
    def close(self) -> None:
        """Release pooled connections."""

    @abstractmethod
    def health_check(self) -> bool:
        """True when the store answers a trivial query."""

    @abstractmethod
    def get_session(self) -> ContextManager[Session]:
        """Transactional session: commit on success, rollback on error."""
