import logging

from app.core.config import settings
from app.core.security import create_session_token, credentials_match, decode_session_token
from app.core.sessions import Session, SessionStore

logger = logging.getLogger(__name__)


def is_authenticated(session: Session | None) -> bool:
    return session is not None and session.user == settings.admin_user


def session_from_cookie(sessions: SessionStore, cookie_value: str | None) -> Session | None:
    if not cookie_value:
        return None
    session_id = decode_session_token(cookie_value)
    return sessions.get(session_id)


def login_admin(sessions: SessionStore, username: str, password: str) -> tuple[Session, str] | None:
    """Returns (session, cookie token) on a credential match, otherwise None."""
    if not credentials_match(username, password):
        logger.info("Rejected login attempt for username=%r", username)
        return None
    session = sessions.create(settings.admin_user)
    logger.info("Admin %s logged in", session.user)
    return session, create_session_token(session.id)


def logout(sessions: SessionStore, cookie_value: str | None) -> None:
    if not cookie_value:
        return
    sessions.destroy(decode_session_token(cookie_value))
