"""
In-memory session registry for the API layer. Nothing is persisted.

Sessions that see no request for ``session_idle_timeout`` seconds are
expired, so clients that disappear without a DELETE do not hold a slot of
``max_active_sessions`` forever.
"""

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Tuple
import logging

from formcoach.config import Settings, get_settings
from formcoach.cv.exercise_catalog import get_exercise
from formcoach.cv.session_controller import SessionController

logger = logging.getLogger(__name__)


class SessionNotFoundError(KeyError):
    """Raised when a session id is not registered (or has expired)."""


class SessionLimitError(RuntimeError):
    """Raised when max_active_sessions would be exceeded."""


@dataclass
class ManagedSession:
    """A controller plus the lock that serializes its frames."""
    session_id: str
    controller: SessionController
    last_seen: float = 0.0
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class SessionRegistry:
    """Thread-safe map of session id -> ManagedSession."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings if settings is not None else get_settings()
        self._clock = clock
        self._sessions: Dict[str, ManagedSession] = {}
        self._lock = threading.Lock()

    def create(self, exercise_id: str) -> Tuple[str, ManagedSession]:
        """
        Register a new session with ``exercise_id`` selected.

        Raises:
            UnknownExerciseError: if the id is not in the catalog
            SessionLimitError: if the registry is full
        """
        # Fail on a bad id before taking a slot
        get_exercise(exercise_id)

        with self._lock:
            self._expire_idle_locked()
            if len(self._sessions) >= self.settings.max_active_sessions:
                raise SessionLimitError(
                    f"Too many active sessions (max {self.settings.max_active_sessions})"
                )

            session_id = str(uuid.uuid4())
            controller = SessionController(settings=self.settings)
            managed = ManagedSession(
                session_id=session_id,
                controller=controller,
                last_seen=self._clock(),
            )
            controller.select_exercise(exercise_id)
            self._sessions[session_id] = managed

        logger.info(f"Session {session_id} created ({exercise_id}), "
                    f"{len(self._sessions)} active")
        return session_id, managed

    def get(self, session_id: str) -> ManagedSession:
        """Look up a session and mark it as seen."""
        with self._lock:
            managed = self._sessions.get(session_id)
            if managed is None or self._is_idle(managed):
                if managed is not None:
                    del self._sessions[session_id]
                    logger.info(f"Session {session_id} expired")
                raise SessionNotFoundError(session_id)
            managed.last_seen = self._clock()
            return managed

    def delete(self, session_id: str):
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)
        logger.info(f"Session {session_id} deleted")

    def expire_idle(self) -> int:
        """Drop idle sessions; returns how many were removed."""
        with self._lock:
            return self._expire_idle_locked()

    def clear(self):
        with self._lock:
            self._sessions.clear()

    def _is_idle(self, managed: ManagedSession) -> bool:
        timeout = self.settings.session_idle_timeout
        return timeout > 0 and self._clock() - managed.last_seen > timeout

    def _expire_idle_locked(self) -> int:
        expired = [sid for sid, managed in self._sessions.items() if self._is_idle(managed)]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info(f"Expired {len(expired)} idle session(s)")
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)


_registry: Optional[SessionRegistry] = None


def get_registry() -> SessionRegistry:
    """FastAPI dependency returning the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = SessionRegistry()
    return _registry
