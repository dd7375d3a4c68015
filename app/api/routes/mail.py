import logging

from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from app.api.deps import get_notifier, require_admin
from app.core.sessions import Session
from app.services.email_service import Notifier

logger = logging.getLogger(__name__)
router = APIRouter(tags=["mail"])


@router.get("/test-email")
async def test_email(
    notifier: Notifier = Depends(get_notifier),
    _admin: Session = Depends(require_admin),
) -> JSONResponse:
    """Send a probe message to the reply-to address to check SMTP credentials."""
    try:
        await run_in_threadpool(notifier.send_test_email)
    except Exception as e:
        logger.exception("SMTP test failed: %s", e)
        return JSONResponse(status_code=500, content={"ok": False, "error": "Failed to send test email"})
    return JSONResponse(content={"ok": True})
