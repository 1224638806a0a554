"""Registry of named authenticators for multi-cloud and multi-project use."""

from typing import TYPE_CHECKING

from watcherclient.infrastructure.exceptions import SessionNotFoundError
from watcherclient.infrastructure.logger import get_logger
from watcherclient.infrastructure.rwlock import ReadWriteLock

if TYPE_CHECKING:
    from watcherclient.infrastructure.keystone_auth import Authenticator

logger = get_logger(__name__)


class SessionManager:
    """Keyed registry of independent Authenticator instances.

    The registry has its own reader/writer lock and never holds it while
    calling into an authenticator, so a session that is refreshing does not
    block lookups of other sessions. Build one explicitly and pass it where
    it is needed.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, "Authenticator"] = {}
        self._lock = ReadWriteLock()

    def add_session(self, name: str, authenticator: "Authenticator") -> None:
        """Register an authenticator under name, replacing any existing one."""
        with self._lock.write_lock():
            replaced = name in self._sessions
            self._sessions[name] = authenticator
        logger.debug("session_added", name=name, replaced=replaced)

    def get_session(self, name: str) -> "Authenticator":
        """Look up a session.

        Raises:
            SessionNotFoundError: If no session is registered under name
        """
        with self._lock.read_lock():
            authenticator = self._sessions.get(name)
        if authenticator is None:
            raise SessionNotFoundError(name)
        return authenticator

    def remove_session(self, name: str) -> None:
        """Remove a session. Removing an unknown name is a no-op."""
        with self._lock.write_lock():
            removed = self._sessions.pop(name, None) is not None
        if removed:
            logger.debug("session_removed", name=name)

    def list_sessions(self) -> list[str]:
        """Return the names of all registered sessions, in no particular order."""
        with self._lock.read_lock():
            return list(self._sessions)

    def cleanup_expired_sessions(self) -> int:
        """Drop every session whose token is known to be expired.

        No reauthentication is attempted first. Sessions whose expiry is
        unknown are kept.

        Returns:
            Number of sessions removed
        """
        with self._lock.read_lock():
            snapshot = list(self._sessions.items())

        # Registry lock released: is_token_expired may wait on a refresh
        candidates = [(name, auth) for name, auth in snapshot if auth.is_token_expired()]

        expired = []
        with self._lock.write_lock():
            for name, auth in candidates:
                # Skip names re-registered while the registry was unlocked
                if self._sessions.get(name) is auth:
                    del self._sessions[name]
                    expired.append(name)

        if expired:
            logger.info("expired_sessions_removed", count=len(expired), names=expired)
        return len(expired)

    def __len__(self) -> int:
        with self._lock.read_lock():
            return len(self._sessions)

    def __contains__(self, name: object) -> bool:
        with self._lock.read_lock():
            return name in self._sessions
