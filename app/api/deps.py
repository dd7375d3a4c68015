from fastapi import Depends, Request

from app.core.config import settings
from app.core.sessions import Session, SessionStore
from app.services.appointment_service import AppointmentStore
from app.services.auth_service import is_authenticated, session_from_cookie
from app.services.email_service import Notifier


class NotAuthenticatedError(Exception):
    """Raised by the admin gate; the app-level handler picks redirect vs 401."""


def get_store(request: Request) -> AppointmentStore:
    return request.app.state.store


def get_notifier(request: Request) -> Notifier:
    return request.app.state.notifier


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.sessions


def session_cookie(request: Request) -> str | None:
    """Extract the session cookie for login/logout endpoints."""
    return request.cookies.get(settings.session_cookie_name)


def get_current_session(
    sessions: SessionStore = Depends(get_session_store),
    cookie_value: str | None = Depends(session_cookie),
) -> Session | None:
    return session_from_cookie(sessions, cookie_value)


def require_admin(session: Session | None = Depends(get_current_session)) -> Session:
    if not is_authenticated(session):
        raise NotAuthenticatedError()
    return session


def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")
