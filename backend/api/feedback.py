"""User feedback form, delivered by email through Mailgun."""

import asyncio
import json
import logging
from types import SimpleNamespace

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from api.deps import get_current_user
from core.config import APP_URL
from core.errors import MailgunError
from services.data_sources.mailgun import mailgun_configured, send_feedback_email

logger = logging.getLogger(__name__)

router = APIRouter(tags=["feedback"])


@router.options("/sendfeedback")
async def feedback_preflight():
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": APP_URL,
            "Access-Control-Allow-Methods": "POST, OPTIONS",
            "Access-Control-Allow-Headers": "Content-Type, Authorization",
        },
    )


@router.post("/sendfeedback")
async def send_feedback(
    request: Request, current_user: SimpleNamespace = Depends(get_current_user)
):
    """Send the feedback message; without Mailgun settings it is only logged."""
    if "application/json" not in request.headers.get("content-type", ""):
        return JSONResponse(
            status_code=415, content={"error": "Unsupported media type. Please send JSON."}
        )

    try:
        body = json.loads(await request.body())
    except ValueError as e:
        logger.error(f"Error parsing feedback JSON: {e}")
        return JSONResponse(status_code=400, content={"error": "Invalid JSON payload."})

    message = body.get("message") if isinstance(body, dict) else None
    if not message:
        return JSONResponse(
            status_code=400, content={"error": "All fields (message) are required."}
        )

    if not mailgun_configured():
        logger.info(f"Feedback from {current_user.email}: {message}")
        return {"submitted": True}

    try:
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(None, send_feedback_email, current_user.email, message)
    except MailgunError as e:
        logger.error(f"Error sending email: {e}")
        return JSONResponse(status_code=500, content={"error": "Failed to send email"})
    return {"submitted": True}
