import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.deps import get_current_session, get_session_store, session_cookie
from app.api.schemas.auth import LoginRequest, LoginResponse, WhoAmI
from app.core.config import settings
from app.core.sessions import Session, SessionStore
from app.services.auth_service import is_authenticated, login_admin, logout as end_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
) -> LoginResponse:
    result = login_admin(sessions, body.username, body.password)
    if not result:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
        )
    session, token = result
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.session_lifetime_seconds,
        path="/",
    )
    return LoginResponse(message="Logged in", user=session.user)


@router.get("/auth/me", response_model=WhoAmI, response_model_exclude_none=True)
async def me(session: Session | None = Depends(get_current_session)) -> WhoAmI:
    if is_authenticated(session):
        return WhoAmI(authenticated=True, user=session.user)
    return WhoAmI(authenticated=False)


@router.post("/logout")
async def logout(
    response: Response,
    sessions: SessionStore = Depends(get_session_store),
    cookie_value: str | None = Depends(session_cookie),
) -> dict:
    end_session(sessions, cookie_value)
    response.delete_cookie(
        key=settings.session_cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite=settings.cookie_samesite,
    )
    return {"message": "Logged out"}
