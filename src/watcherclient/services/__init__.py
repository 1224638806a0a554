"""Service layer for watcherclient."""

from watcherclient.services.session_manager import SessionManager

__all__ = ["SessionManager"]
