from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse, RedirectResponse

from app.api.deps import get_current_session, require_admin
from app.core.config import PUBLIC_DIR
from app.core.sessions import Session
from app.services.auth_service import is_authenticated

router = APIRouter(tags=["pages"], include_in_schema=False)


@router.get("/")
async def landing_page() -> FileResponse:
    return FileResponse(PUBLIC_DIR / "index.html")


@router.get("/login", response_model=None)
async def login_page(session: Session | None = Depends(get_current_session)) -> FileResponse | RedirectResponse:
    if is_authenticated(session):
        return RedirectResponse(url="/admin", status_code=302)
    return FileResponse(PUBLIC_DIR / "login.html")


@router.get("/admin")
async def admin_page(_admin: Session = Depends(require_admin)) -> FileResponse:
    return FileResponse(PUBLIC_DIR / "admin.html")
