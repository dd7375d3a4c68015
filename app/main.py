import logging
import os
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.deps import NotAuthenticatedError, wants_html
from app.api.routes import appointments, auth, mail, pages
from app.core.config import PUBLIC_DIR, _ENV_FILE, settings
from app.core.sessions import SessionStore
from app.services.appointment_service import AppointmentStore, select_store
from app.services.email_service import Notifier

if os.getenv("ENV") != "production":
    logging.basicConfig(level=logging.DEBUG)
else:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s"}',
    )
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Loading .env from: %s (exists: %s)", _ENV_FILE, _ENV_FILE.exists())
    if app.state.store is None:
        app.state.store = await select_store(settings)
    logger.info("Storage backend: %s", app.state.store.backend)
    if settings.email_enabled:
        await run_in_threadpool(app.state.notifier.verify)
    else:
        logger.warning("SMTP not configured. Set EMAIL_USER and EMAIL_PASS in %s", _ENV_FILE)
    yield
    await app.state.store.close()


def _field_name(loc: tuple) -> str:
    return str(loc[-1]) if loc else "body"


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") in ("missing", "string_too_short"):
        return f"Missing required field: {_field_name(first.get('loc', ()))}"
    return f"Invalid value for {_field_name(first.get('loc', ()))}: {first.get('msg', 'invalid')}"


def create_app(
    store: AppointmentStore | None = None,
    notifier: Notifier | None = None,
    sessions: SessionStore | None = None,
) -> FastAPI:
    """Build the application. A store passed in skips the startup database probe."""
    app = FastAPI(
        title="Consultation Booking API",
        description="Public booking form, admin dashboard API, confirmation emails",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.notifier = notifier or Notifier(settings)
    app.state.sessions = sessions or SessionStore(lifetime=timedelta(seconds=settings.session_lifetime_seconds))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    app.include_router(auth.router, prefix="/api")
    app.include_router(appointments.router, prefix="/api")
    app.include_router(mail.router, prefix="/api")
    app.include_router(pages.router)
    app.mount("/static", StaticFiles(directory=PUBLIC_DIR), name="static")

    @app.exception_handler(NotAuthenticatedError)
    async def not_authenticated_handler(request: Request, exc: NotAuthenticatedError) -> Response:
        if wants_html(request):
            return RedirectResponse(url="/login", status_code=302)
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        logger.info("Rejected %s %s: %s", request.method, request.url.path, message)
        return JSONResponse(status_code=400, content={"error": message})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        if isinstance(exc, HTTPException):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
        logger.exception("Unhandled exception: %s", exc)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/health")
    async def health() -> dict:
        current = app.state.store
        return {"status": "ok", "storage": current.backend if current is not None else "starting"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port, proxy_headers=True)
