"""
Session repository abstraction.

Persists GuessSession aggregates by id. save() replaces the whole aggregate
in one step so weights, logs and counters never diverge.
Implementations: in-memory (tests, simulation) and JSON file (local play).
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Protocol, Union

from ..errors import SessionNotFoundError
from ..models.session import GuessSession
from ..utils.json_files import atomic_write_json

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Protocol for session persistence."""

    def create(self, session: GuessSession) -> None:
        """Store a new session. Raises ValueError if the id already exists."""
        ...

    def get(self, session_id: str) -> GuessSession:
        """Return the session. Raises SessionNotFoundError if unknown."""
        ...

    def save(self, session: GuessSession) -> None:
        """Replace the stored session. Raises SessionNotFoundError if unknown."""
        ...

    def delete(self, session_id: str) -> bool:
        """Remove the session. Return True if it existed."""
        ...


class InMemorySessionRepository:
    """
    Sessions held in a dict.

    Stores and returns deep copies so callers never share state with the store.
    """

    def __init__(self):
        self._sessions: Dict[str, GuessSession] = {}

    def create(self, session: GuessSession) -> None:
        if session.session_id in self._sessions:
            raise ValueError(f"Session already exists: {session.session_id}")
        self._sessions[session.session_id] = session.model_copy(deep=True)

    def get(self, session_id: str) -> GuessSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session.model_copy(deep=True)

    def save(self, session: GuessSession) -> None:
        if session.session_id not in self._sessions:
            raise SessionNotFoundError(session.session_id)
        self._sessions[session.session_id] = session.model_copy(deep=True)

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def list_ids(self) -> List[str]:
        return list(self._sessions)


class JsonSessionRepository(InMemorySessionRepository):
    """Sessions kept in memory and written to a JSON file on every change."""

    def __init__(self, path: Union[Path, str]):
        super().__init__()
        self._path = Path(path)
        self._load()

    def _load(self) -> None:
        if not self._path.exists():
            return
        with open(self._path, encoding="utf-8") as f:
            data = json.load(f)
        for raw in data.get("sessions", []):
            session = GuessSession.model_validate(raw)
            self._sessions[session.session_id] = session
        logger.info("[sessions] LOADED path=%s sessions=%s", self._path, len(self._sessions))

    def _save(self) -> None:
        out = {"sessions": [s.model_dump(mode="json") for s in self._sessions.values()]}
        atomic_write_json(self._path, out)

    def create(self, session: GuessSession) -> None:
        super().create(session)
        self._save()

    def save(self, session: GuessSession) -> None:
        super().save(session)
        self._save()

    def delete(self, session_id: str) -> bool:
        deleted = super().delete(session_id)
        if deleted:
            self._save()
        return deleted
