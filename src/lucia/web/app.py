"""
HTTP surface for Lucia.

- POST /api/lucia          one chat turn
- POST /api/sync           catalog sync (cron, bearer secret)
- POST /api/lucia-simple   echo endpoint for connectivity checks
- GET  /health
"""

import hmac
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from lucia.core.config import SERVER_REQUIREMENTS, Settings, configure_logging, get_config_summary, validate_config
from lucia.core.context import LuciaContext
from lucia.core.errors import EmptyReply, RunFailedTerminal, RunTimeout

logger = logging.getLogger(__name__)

router = APIRouter()


class ChatRequest(BaseModel):
    message: str
    threadId: Optional[str] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def get_context(request: Request) -> LuciaContext:
    return request.app.state.context


# =============================================================================
# Chat
# =============================================================================

@router.post("/api/lucia")
def chat(body: ChatRequest, context: LuciaContext = Depends(get_context)):
    try:
        result = context.conversation().run_turn(body.message, thread_id=body.threadId)
    except RunFailedTerminal as e:
        return JSONResponse(
            status_code=500,
            content={
                "error": "A IA não conseguiu completar a requisição.",
                "details": jsonable_encoder(e.last_error),
            },
        )
    except RunTimeout as e:
        return JSONResponse(
            status_code=504,
            content={"error": "A IA demorou demais para responder.", "details": str(e)},
        )
    except EmptyReply as e:
        return JSONResponse(
            status_code=502,
            content={"error": "A IA não retornou uma resposta.", "details": str(e)},
        )
    except Exception as e:
        logger.exception(f"Error in /api/lucia: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Ocorreu um erro crítico.", "message": str(e)},
        )

    return {"response": result.reply, "threadId": result.thread_id}


@router.post("/api/lucia-simple")
async def echo(request: Request):
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    message = payload.get("message") or "No message provided"
    return {
        "success": True,
        "message": f"Received: {message}",
        "threadId": payload.get("threadId"),
        "timestamp": _now(),
    }


# =============================================================================
# Catalog Sync
# =============================================================================

def _authorized(header: Optional[str], secret: Optional[str]) -> bool:
    if not secret or not header:
        return False
    return hmac.compare_digest(header.encode("utf-8"), f"Bearer {secret}".encode("utf-8"))


@router.post("/api/sync")
def sync_catalog(
    authorization: Optional[str] = Header(default=None),
    context: LuciaContext = Depends(get_context)
):
    if not _authorized(authorization, context.settings.cron_secret):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    # Single-flight: overlapping cron invocations would race on the same keys
    if not context.sync_lock.acquire(blocking=False):
        logger.warning("Sync requested while another sync is running")
        return JSONResponse(
            status_code=409,
            content={"success": False, "error": "Sync already running", "timestamp": _now()},
        )

    try:
        result = context.catalog_sync().run()
    finally:
        context.sync_lock.release()

    if not result.success:
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": result.error, "timestamp": result.timestamp},
        )

    return {
        "success": True,
        "message": f"Sync completed in {result.duration}s",
        "duration": result.duration,
        "counts": result.counts,
        "timestamp": result.timestamp,
    }


@router.get("/health")
def health():
    return {"status": "ok"}


# =============================================================================
# App Factory
# =============================================================================

def create_app(context: Optional[LuciaContext] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        context: Prebuilt service context. When omitted it is built from the
            environment at startup, failing fast on missing configuration.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.context is None
        if owned:
            settings = Settings.from_env()
            configure_logging(settings.log_level)
            validate_config(settings, SERVER_REQUIREMENTS)
            logger.info(get_config_summary(settings))
            app.state.context = LuciaContext.from_settings(settings)
        yield
        if owned:
            app.state.context.close()

    app = FastAPI(title="Lucia", version="1.0.0", lifespan=lifespan)
    app.state.context = context
    app.include_router(router)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            return JSONResponse(status_code=405, content={"error": "Method not allowed"})
        return await http_exception_handler(request, exc)

    return app


app = create_app()
