"""Session Services Package - derived platform session tokens.

Hey future me - SessionStore is the ONLY place session tokens live. The token
exchange writes it, everything else reads it. Absence means "not signed in".
"""

from gamepresence.application.services.sessions.session_store import SessionStore

__all__ = ["SessionStore"]
