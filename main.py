import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, BackgroundTasks
from fastapi.responses import PlainTextResponse

import db
from app.services import intake
from config import configure_logging

configure_logging()
_LOGGER = logging.getLogger(__name__)

# DB connections are created lazily; close the pool on shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await db.dispose_engine()

app = FastAPI(lifespan=lifespan)

# --------------------------------------------
# Background task: process the reply
# --------------------------------------------

async def process_reply_background(from_num: str, text: str):
    """Run ResponseIntake; failures are logged, never surfaced to the sender."""
    try:
        await intake.handle_reply(from_num, text)
    except Exception:  # noqa: BLE001
        _LOGGER.exception("Failed to process reply from %s", from_num)

# --------------------------------------------
# Endpoints
# --------------------------------------------
@app.get("/healthz")
async def healthz():
    return {"status": "ok"}


@app.post("/v1/sms/telnyx", response_class=PlainTextResponse)
async def telnyx_webhook(request: Request, background: BackgroundTasks):
    try:
        payload = (await request.json())["data"]["payload"]
    except (ValueError, KeyError, TypeError):
        _LOGGER.warning("[Webhook] Unreadable payload ignored")
        return PlainTextResponse("IGNORED")

    if payload.get("type") == "ping":
        return PlainTextResponse("PONG")

    sender = payload.get("from") or {}
    from_num = sender.get("phone_number") if isinstance(sender, dict) else None
    text = payload.get("text") or ""

    if not from_num:
        return PlainTextResponse("IGNORED")

    _LOGGER.info("[Webhook] Reply from %s", from_num)
    # Acknowledge regardless of processing outcome so the provider never retries.
    background.add_task(process_reply_background, from_num, text)
    return PlainTextResponse("OK")
