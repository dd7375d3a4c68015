import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from app.core.config import settings


def credentials_match(username: str, password: str) -> bool:
    """Compare against the configured admin pair without short-circuiting on the username."""
    user_ok = secrets.compare_digest(username.encode(), settings.admin_user.encode())
    pass_ok = secrets.compare_digest(password.encode(), settings.admin_pass.encode())
    return user_ok and pass_ok


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def create_session_token(session_id: str) -> str:
    expire = datetime.now(UTC) + timedelta(seconds=settings.session_lifetime_seconds)
    to_encode = {"sid": session_id, "exp": expire, "type": "session"}
    return jwt.encode(to_encode, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> str | None:
    """Returns the session id carried by a cookie token, or None if forged/expired."""
    try:
        payload = jwt.decode(
            token, settings.session_secret, algorithms=[settings.session_algorithm]
        )
        if payload.get("type") != "session":
            return None
        sid = payload.get("sid")
        return str(sid) if sid else None
    except JWTError:
        return None
